"""Outgoing domain events on the RabbitMQ topic exchange."""
from __future__ import annotations

import json
import logging

import pika

from . import config

logger = logging.getLogger(__name__)


def _connection_params() -> pika.URLParameters:
    params = pika.URLParameters(config.RABBITMQ_URL)
    # Bounded waits on a blocked or unreachable broker
    params.heartbeat = 30
    params.blocked_connection_timeout = 30
    params.socket_timeout = 5
    return params


def publish_event(routing_key: str, payload: dict) -> bool:
    """Send ``payload`` as a persistent JSON message.

    Returns False without connecting when PUBLISH_EVENTS is off. Broker
    errors propagate to the caller.
    """
    if not config.PUBLISH_EVENTS:
        logger.debug("Event publishing disabled, dropping %s", routing_key)
        return False

    message = json.dumps(payload, ensure_ascii=False, default=str).encode("utf-8")
    properties = pika.BasicProperties(content_type="application/json", delivery_mode=2)

    with pika.BlockingConnection(_connection_params()) as connection:
        channel = connection.channel()
        channel.exchange_declare(exchange=config.EVENTS_EXCHANGE, exchange_type="topic", durable=True)
        channel.basic_publish(
            exchange=config.EVENTS_EXCHANGE,
            routing_key=routing_key,
            body=message,
            properties=properties,
        )

    logger.info("Published %s to %s", routing_key, config.EVENTS_EXCHANGE)
    return True
