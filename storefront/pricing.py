"""Cart arithmetic shared by the cart summary and the checkout totals.

Amounts are Decimals quantized to two places. The shipping fee is flat and
waived from FREE_SHIPPING_THRESHOLD upwards; promo codes take a fixed
percentage off the subtotal and never stack.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Tuple

from . import config

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def shipping_fee(subtotal) -> Decimal:
    subtotal = money(subtotal)
    if subtotal <= 0:
        return ZERO
    return ZERO if subtotal >= config.FREE_SHIPPING_THRESHOLD else money(config.SHIPPING_FEE)


def amount_to_free_shipping(subtotal) -> Decimal:
    remaining = money(config.FREE_SHIPPING_THRESHOLD) - money(subtotal)
    return remaining if remaining > 0 else ZERO


def normalize_promo_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def promo_discount(code: Optional[str], subtotal) -> Tuple[str, Decimal, Decimal]:
    """Return (normalized code, percent, discount) or raise ValueError("invalid_promo_code")."""
    normalized = normalize_promo_code(code)
    percent = config.PROMO_CODES.get(normalized)
    if percent is None:
        raise ValueError("invalid_promo_code")
    return normalized, percent, money(money(subtotal) * percent / 100)


def compute_totals(subtotal, promo_code: Optional[str] = None) -> Dict[str, Decimal]:
    subtotal = money(subtotal)
    discount = ZERO
    if promo_code:
        _, _, discount = promo_discount(promo_code, subtotal)
    shipping = shipping_fee(subtotal)
    return {
        "subtotal": subtotal,
        "discount": discount,
        "shipping": shipping,
        "total": subtotal - discount + shipping,
    }
