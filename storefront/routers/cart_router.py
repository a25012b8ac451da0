from fastapi import APIRouter, Depends, Form, HTTPException, status

from .. import pricing
from ..cart import CartPersistenceError, CartService, get_cart_service
from ..errors import http_error
from ..schemas import CartOut, PromoQuote

router = APIRouter(prefix="/cart", tags=["Cart"])


def _cart_summary(cart: CartService) -> dict:
    subtotal = pricing.money(cart.get_cart_total())
    shipping = pricing.shipping_fee(subtotal)
    return {
        "items": cart.items,
        "item_count": cart.get_cart_item_count(),
        "subtotal": subtotal,
        "shipping": shipping,
        "total": subtotal + shipping,
        "amount_to_free_shipping": pricing.amount_to_free_shipping(subtotal),
    }


@router.get("/", response_model=CartOut)
def view_cart(cart: CartService = Depends(get_cart_service)):
    return _cart_summary(cart)


@router.post("/items", response_model=CartOut, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    product_id: int = Form(..., gt=0, description="Product ID", examples=[""]),
    quantity: int = Form(1, gt=0, description="Product quantity", examples=[""]),
    cart: CartService = Depends(get_cart_service),
):
    """Add a product to the cart. Adding a product that is already in the cart increases its quantity."""
    try:
        cart.add_to_cart(product_id, quantity)
    except ValueError as e:
        raise http_error(e)
    except CartPersistenceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return _cart_summary(cart)


@router.patch("/items/{line_id:int}", response_model=CartOut)
def update_quantity(
    line_id: int,
    quantity: int = Form(..., description="New quantity; 0 removes the item", examples=[""]),
    cart: CartService = Depends(get_cart_service),
):
    try:
        cart.update_quantity(line_id, quantity)
    except ValueError as e:
        raise http_error(e)
    except CartPersistenceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return _cart_summary(cart)


@router.delete("/items/{line_id:int}", response_model=CartOut)
def remove_from_cart(
    line_id: int,
    cart: CartService = Depends(get_cart_service),
):
    try:
        cart.remove_from_cart(line_id)
    except ValueError as e:
        raise http_error(e)
    except CartPersistenceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return _cart_summary(cart)


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(cart: CartService = Depends(get_cart_service)):
    try:
        cart.clear_cart()
    except CartPersistenceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return None


@router.post("/promo", response_model=PromoQuote)
def quote_promo_code(
    code: str = Form(..., description="Promo code, e.g. WELCOME10", examples=[""]),
    cart: CartService = Depends(get_cart_service),
):
    """Price the cart with a promo code. Nothing is stored; apply the code at checkout."""
    subtotal = pricing.money(cart.get_cart_total())
    try:
        normalized, percent, discount = pricing.promo_discount(code, subtotal)
    except ValueError as e:
        raise http_error(e)

    shipping = pricing.shipping_fee(subtotal)
    return {
        "code": normalized,
        "discount_percent": percent,
        "subtotal": subtotal,
        "discount": discount,
        "shipping": shipping,
        "total": subtotal - discount + shipping,
    }
