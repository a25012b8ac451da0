from fastapi import HTTPException, status

SHIPPING_FIELD_LABELS = {
    "full_name": "Full name",
    "email": "Email",
    "phone": "Phone",
    "address": "Address",
    "city": "City",
    "state": "State",
    "pincode": "Pincode",
}

MESSAGES = {
    "login_required": (status.HTTP_401_UNAUTHORIZED, "Please log in to continue"),
    "invalid_quantity": (status.HTTP_400_BAD_REQUEST, "Quantity must be at least 1"),
    "cart_empty": (status.HTTP_400_BAD_REQUEST, "Your cart is empty"),
    "checkout_not_started": (status.HTTP_404_NOT_FOUND, "No checkout in progress. Start checkout from your cart."),
    "invalid_promo_code": (status.HTTP_400_BAD_REQUEST, "Invalid promo code"),
    "invalid_email": (status.HTTP_400_BAD_REQUEST, "Please enter a valid email address"),
    "invalid_phone": (status.HTTP_400_BAD_REQUEST, "Please enter a valid 10-digit phone number"),
    "invalid_pincode": (status.HTTP_400_BAD_REQUEST, "Please enter a valid 6-digit pincode"),
    "order_already_placed": (status.HTTP_409_CONFLICT, "This order has already been placed"),
    "already_in_wishlist": (status.HTTP_409_CONFLICT, "Product already in wishlist"),
    "duplicate_email": (status.HTTP_400_BAD_REQUEST, "This email is already registered"),
    "email_required": (status.HTTP_400_BAD_REQUEST, "Email is required"),
    "name_required": (status.HTTP_400_BAD_REQUEST, "Product name is required"),
}


def http_error(e: ValueError) -> HTTPException:
    """Translate a domain ValueError code into the HTTPException shown to the client."""
    msg = str(e)
    if msg in MESSAGES:
        status_code, detail = MESSAGES[msg]
        return HTTPException(status_code=status_code, detail=detail)

    if msg.startswith("missing_fields:"):
        fields = msg.split(":", 1)[1].split(",")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "missing_fields",
                "message": "Please fill in all required fields",
                "fields": [SHIPPING_FIELD_LABELS.get(f, f) for f in fields],
            },
        )
    if msg.startswith("insufficient_stock:"):
        # format: insufficient_stock:<pid>:<available>:<requested>
        _, pid, available, requested = msg.split(":", 3)
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "insufficient_stock",
                "message": "Some items in your cart are no longer available in the requested quantity",
                "product_id": int(pid),
                "available": int(available),
                "requested": int(requested),
            },
        )
    if msg.startswith("invalid_transition:"):
        _, current, target = msg.split(":", 2)
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "invalid_transition",
                "message": f"Cannot move checkout from '{current}' to '{target}'",
                "step": current,
            },
        )
    if msg.startswith("product_not_found:"):
        _, pid = msg.split(":", 1)
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Product with id {pid} not found")
    if msg.startswith("cart_item_not_found:"):
        _, line_id = msg.split(":", 1)
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Cart item {line_id} not found")
    if msg.startswith("category_not_found:"):
        _, cid = msg.split(":", 1)
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Category with id {cid} not found")
    if msg.startswith("invalid_payment_method:"):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please choose PhonePe, PayPal or cash on delivery")
    if msg.startswith("invalid_sort:"):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown sort order")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=msg)
