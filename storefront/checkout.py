"""Checkout wizard: shipping -> payment -> confirmation.

The state lives in the ``checkout_sessions`` table, one row per user. Order
placement writes the order, its items and the stock decrements in a single
transaction; the follow-up steps (saving the address on the profile,
emptying the cart, publishing the event) are best-effort and only logged
when they fail.
"""
from __future__ import annotations

import datetime as dt
import logging
import re
import time
import uuid
from decimal import Decimal
from typing import Dict, Optional

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import config, crud, pricing
from .cart import CartPersistenceError, CartService, get_cart_service
from .messaging import publish_event
from .models import CheckoutSession, Order, OrderItem, Product, Profile

logger = logging.getLogger(__name__)

SHIPPING = "shipping"
PAYMENT = "payment"
CONFIRMATION = "confirmation"

TRANSITIONS = {
    (SHIPPING, PAYMENT),
    (PAYMENT, SHIPPING),
    (PAYMENT, CONFIRMATION),
}

SHIPPING_FIELDS = ("full_name", "email", "phone", "address", "city", "state", "pincode")
PAYMENT_METHODS = ("phonepe", "paypal", "cod")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[6-9]\d{9}$")
PINCODE_RE = re.compile(r"^\d{6}$")


class OrderPlacementError(RuntimeError):
    """Order placement failed and was rolled back."""


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value or ""))


def is_valid_phone(value: str) -> bool:
    return bool(PHONE_RE.match(value or ""))


def is_valid_pincode(value: str) -> bool:
    return bool(PINCODE_RE.match(value or ""))


def validate_shipping(info: Dict[str, str]) -> Dict[str, str]:
    """Return the cleaned shipping fields or raise ValueError naming the first broken rule."""
    cleaned = {field: (info.get(field) or "").strip() for field in SHIPPING_FIELDS}

    missing = [field for field in SHIPPING_FIELDS if not cleaned[field]]
    if missing:
        raise ValueError("missing_fields:" + ",".join(missing))
    if not is_valid_email(cleaned["email"]):
        raise ValueError("invalid_email")
    if not is_valid_phone(cleaned["phone"]):
        raise ValueError("invalid_phone")
    if not is_valid_pincode(cleaned["pincode"]):
        raise ValueError("invalid_pincode")
    return cleaned


def _ensure_transition(current: str, target: str) -> None:
    if (current, target) not in TRANSITIONS:
        raise ValueError(f"invalid_transition:{current}:{target}")


class CheckoutSequencer:
    def __init__(self, db: Session, user: Profile, cart: CartService):
        self.db = db
        self.user = user
        self.cart = cart

    def get_session(self, *, lock: bool = False) -> Optional[CheckoutSession]:
        query = self.db.query(CheckoutSession).filter(CheckoutSession.user_id == self.user.id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def current(self) -> CheckoutSession:
        session = self.get_session()
        if session is None:
            raise ValueError("checkout_not_started")
        return session

    def shipping_info(self, session: CheckoutSession) -> Dict[str, str]:
        return {field: getattr(session, field) or "" for field in SHIPPING_FIELDS}

    def totals(self, session: Optional[CheckoutSession] = None) -> Dict[str, Decimal]:
        promo_code = session.promo_code if session is not None else None
        return pricing.compute_totals(self.cart.get_cart_total(), promo_code)

    def start(self) -> CheckoutSession:
        """Open (or restart) the wizard on the shipping step, prefilled from the profile."""
        if not self.cart.items:
            raise ValueError("cart_empty")

        session = self.get_session()
        if session is None:
            session = CheckoutSession(user_id=self.user.id)
            self.db.add(session)

        session.step = SHIPPING
        session.full_name = self.user.full_name or ""
        session.email = self.user.email or ""
        session.phone = self.user.phone or ""
        session.address = self.user.address or ""
        session.city = self.user.city or ""
        session.state = self.user.state or ""
        session.pincode = self.user.pincode or ""
        session.promo_code = None
        session.payment_method = None
        session.order_id = None
        self.db.commit()
        self.db.refresh(session)
        return session

    def submit_shipping(self, info: Dict[str, str]) -> CheckoutSession:
        """Validate the form and move to payment. Fields left out keep their prefilled value."""
        session = self.current()
        _ensure_transition(session.step, PAYMENT)
        cleaned = validate_shipping({**self.shipping_info(session), **info})

        for field, value in cleaned.items():
            setattr(session, field, value)
        session.step = PAYMENT
        self.db.commit()
        self.db.refresh(session)
        return session

    def back_to_shipping(self) -> CheckoutSession:
        session = self.current()
        _ensure_transition(session.step, SHIPPING)
        session.step = SHIPPING
        self.db.commit()
        self.db.refresh(session)
        return session

    def apply_promo(self, code: str) -> CheckoutSession:
        session = self.current()
        if session.step == CONFIRMATION:
            raise ValueError(f"invalid_transition:{CONFIRMATION}:{CONFIRMATION}")
        normalized, _, _ = pricing.promo_discount(code, self.cart.get_cart_total())
        session.promo_code = normalized
        self.db.commit()
        self.db.refresh(session)
        return session

    def select_payment_method(self, payment_method: str) -> CheckoutSession:
        session = self.current()
        if session.step != PAYMENT:
            raise ValueError(f"invalid_transition:{session.step}:{PAYMENT}")
        if payment_method not in PAYMENT_METHODS:
            raise ValueError(f"invalid_payment_method:{payment_method}")
        session.payment_method = payment_method
        self.db.commit()
        self.db.refresh(session)
        return session

    def confirm(self, payment_method: Optional[str] = None) -> Order:
        """Place the order for the current cart and move to confirmation.

        The session row is locked so a second concurrent confirm sees the
        confirmation step and is rejected.
        """
        session = self.get_session(lock=True)
        if session is None:
            raise ValueError("checkout_not_started")
        _ensure_transition(session.step, CONFIRMATION)
        if session.order_id is not None:
            raise ValueError("order_already_placed")

        method = payment_method or session.payment_method or "phonepe"
        if method not in PAYMENT_METHODS:
            raise ValueError(f"invalid_payment_method:{method}")
        if not self.cart.items:
            raise ValueError("cart_empty")

        order = self._create_order(session, method)
        shipping = self.shipping_info(session)

        # Remember the address for the next checkout
        try:
            crud.update_profile(self.db, self.user.id, shipping)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to save shipping details on profile %s", self.user.id)

        try:
            self.cart.clear_cart()
        except CartPersistenceError:
            logger.error("Cart of user %s was not cleared after order %s", self.user.id, order.id)

        time.sleep(config.PAYMENT_SIMULATION_SECONDS)

        try:
            session = self.get_session(lock=True)
            order.payment_status = "completed"
            order.status = "confirmed"
            order.payment_id = f"pay_{uuid.uuid4().hex[:16]}"
            session.step = CONFIRMATION
            session.payment_method = method
            session.promo_code = None
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to confirm payment for order %s", order.id)
            raise OrderPlacementError("Failed to place order. Please try again.") from e

        self.db.refresh(order)
        logger.info("Order %s confirmed for user %s, total %s", order.id, self.user.id, order.total_amount)

        try:
            publish_event(
                "order.confirmed",
                {
                    "event": "order.confirmed",
                    "occurred_at": dt.datetime.now(dt.timezone.utc).isoformat().replace("+00:00", "Z"),
                    "order_id": order.id,
                    "user_id": order.user_id,
                    "user_email": self.user.email,
                    "total_amount": str(order.total_amount),
                    "payment_method": order.payment_method,
                    "items": [{"product_id": i.product_id, "quantity": i.quantity} for i in order.items],
                },
            )
        except Exception:
            logger.exception("Failed to publish order.confirmed for order %s", order.id)

        return order

    def _create_order(self, session: CheckoutSession, payment_method: str) -> Order:
        quantities = [(item.product_id, item.quantity) for item in self.cart.items]

        try:
            prices = self._reserve_stock(quantities)
            lines = [
                {"product_id": pid, "quantity": qty, "price": prices[pid]}
                for pid, qty in quantities
            ]
            subtotal = sum((line["price"] * line["quantity"] for line in lines), Decimal("0"))
            totals = pricing.compute_totals(subtotal, session.promo_code)

            db_order = Order(
                user_id=self.user.id,
                total_amount=totals["total"],
                shipping_fee=totals["shipping"],
                discount_amount=totals["discount"],
                status="pending",
                payment_status="pending",
                payment_method=payment_method,
                shipping_address=session.address,
                shipping_city=session.city,
                shipping_state=session.state,
                shipping_pincode=session.pincode,
                phone=session.phone,
            )
            self.db.add(db_order)
            self.db.flush()  # Get order ID without committing

            for line in lines:
                self.db.add(
                    OrderItem(
                        order_id=db_order.id,
                        product_id=line["product_id"],
                        quantity=line["quantity"],
                        price=line["price"],
                    )
                )

            session.order_id = db_order.id
            self.db.commit()
        except ValueError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Error creating order for user %s", self.user.id)
            raise OrderPlacementError("Failed to place order. Please try again.") from e

        self.db.refresh(db_order)
        logger.info("Order %s created for user %s with %d items", db_order.id, self.user.id, len(lines))
        return db_order

    def _reserve_stock(self, quantities) -> Dict[int, Decimal]:
        """Decrement stock for every product and return the current unit prices.

        Rows are re-read under lock so the check never runs against values
        cached in the session, and the decrement itself is a guarded UPDATE.
        """
        merged: Dict[int, int] = {}
        for pid, qty in quantities:
            merged[pid] = merged.get(pid, 0) + qty

        prices: Dict[int, Decimal] = {}
        # Lock rows in a stable order to avoid deadlocks
        for pid in sorted(merged):
            qty = merged[pid]
            product = (
                self.db.query(Product)
                .filter(Product.id == pid)
                .with_for_update()
                .populate_existing()
                .first()
            )
            if product is None or not product.is_active:
                raise ValueError(f"product_not_found:{pid}")

            updated = (
                self.db.query(Product)
                .filter(Product.id == pid, Product.stock_quantity >= qty)
                .update({Product.stock_quantity: Product.stock_quantity - qty}, synchronize_session=False)
            )
            if not updated:
                raise ValueError(f"insufficient_stock:{pid}:{product.stock_quantity}:{qty}")
            prices[pid] = pricing.money(product.price)
        return prices


def get_checkout_sequencer(cart: CartService = Depends(get_cart_service)) -> CheckoutSequencer:
    return CheckoutSequencer(cart.db, cart.user, cart)
