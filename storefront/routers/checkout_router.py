from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, status

from ..checkout import CheckoutSequencer, OrderPlacementError, get_checkout_sequencer
from ..errors import http_error
from ..models import CheckoutSession
from ..schemas import CheckoutOut, OrderOut, PaymentMethod

router = APIRouter(prefix="/checkout", tags=["Checkout"])


def _checkout_state(checkout: CheckoutSequencer, session: CheckoutSession) -> dict:
    return {
        "step": session.step,
        "shipping_info": checkout.shipping_info(session),
        "payment_method": session.payment_method,
        "promo_code": session.promo_code,
        "item_count": checkout.cart.get_cart_item_count(),
        "order_id": session.order_id,
        **checkout.totals(session),
    }


@router.post("/", response_model=CheckoutOut)
def start_checkout(checkout: CheckoutSequencer = Depends(get_checkout_sequencer)):
    """Start (or restart) checkout on the shipping step, prefilled from the saved profile."""
    try:
        session = checkout.start()
    except ValueError as e:
        raise http_error(e)
    return _checkout_state(checkout, session)


@router.get("/", response_model=CheckoutOut)
def get_checkout(checkout: CheckoutSequencer = Depends(get_checkout_sequencer)):
    try:
        session = checkout.current()
    except ValueError as e:
        raise http_error(e)
    return _checkout_state(checkout, session)


@router.post("/shipping", response_model=CheckoutOut)
def submit_shipping(
    full_name: Optional[str] = Form(None, description="**Full name**", examples=[""]),
    email: Optional[str] = Form(None, description="**Email**", examples=[""]),
    phone: Optional[str] = Form(None, description="**10-digit mobile number**", examples=[""]),
    address: Optional[str] = Form(None, description="**Street address**", examples=[""]),
    city: Optional[str] = Form(None, description="**City**", examples=[""]),
    state: Optional[str] = Form(None, description="**State**", examples=[""]),
    pincode: Optional[str] = Form(None, description="**6-digit pincode**", examples=[""]),
    checkout: CheckoutSequencer = Depends(get_checkout_sequencer),
):
    """Validate the shipping form and move on to payment. Omitted fields keep their prefilled value."""
    info = {
        "full_name": full_name,
        "email": email,
        "phone": phone,
        "address": address,
        "city": city,
        "state": state,
        "pincode": pincode,
    }
    info = {k: v for k, v in info.items() if v is not None}
    try:
        session = checkout.submit_shipping(info)
    except ValueError as e:
        raise http_error(e)
    return _checkout_state(checkout, session)


@router.post("/back", response_model=CheckoutOut)
def back_to_shipping(checkout: CheckoutSequencer = Depends(get_checkout_sequencer)):
    try:
        session = checkout.back_to_shipping()
    except ValueError as e:
        raise http_error(e)
    return _checkout_state(checkout, session)


@router.post("/promo", response_model=CheckoutOut)
def apply_promo_code(
    code: str = Form(..., description="Promo code, e.g. WELCOME10", examples=[""]),
    checkout: CheckoutSequencer = Depends(get_checkout_sequencer),
):
    try:
        session = checkout.apply_promo(code)
    except ValueError as e:
        raise http_error(e)
    return _checkout_state(checkout, session)


@router.post("/payment-method", response_model=CheckoutOut)
def select_payment_method(
    payment_method: PaymentMethod = Form(..., description="phonepe, paypal or cod"),
    checkout: CheckoutSequencer = Depends(get_checkout_sequencer),
):
    try:
        session = checkout.select_payment_method(payment_method.value)
    except ValueError as e:
        raise http_error(e)
    return _checkout_state(checkout, session)


@router.post("/confirm", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def confirm_order(
    payment_method: Optional[PaymentMethod] = Form(None, description="Overrides the selected payment method"),
    checkout: CheckoutSequencer = Depends(get_checkout_sequencer),
):
    """Place the order for the cart, simulate the payment and return the confirmed order."""
    try:
        return checkout.confirm(payment_method.value if payment_method else None)
    except ValueError as e:
        raise http_error(e)
    except OrderPlacementError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
