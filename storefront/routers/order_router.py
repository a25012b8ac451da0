from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..auth import get_current_admin, get_current_user
from ..database import get_db
from ..models import Profile

router = APIRouter(
    prefix="/orders",
    tags=["Orders"]
)


@router.get("/me", response_model=schemas.OrderListResponse)
def get_user_orders(
    search: Optional[str] = Query(None, description="**Search** by order id or product name", examples=[""]),
    status_filter: Optional[schemas.OrderStatus] = Query(None, alias="status", description="**Status** filter"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    status_value = status_filter.value if status_filter else None
    orders = crud.get_orders_by_user(
        db,
        current_user.id,
        search=search,
        status=status_value,
        skip=skip,
        limit=limit,
    )
    return {
        "orders": orders,
        "total": crud.get_user_order_count(db, current_user.id, search=search, status=status_value),
    }


@router.get("/{order_id:int}", response_model=schemas.OrderOut)
def get_order(
    order_id: int,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    db_order = crud.get_user_order(db, current_user.id, order_id)
    if not db_order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order with id {order_id} not found"
        )
    return db_order


@router.patch("/{order_id:int}/status", response_model=schemas.OrderOut)
def update_order_status(
    order_id: int,
    status_update: schemas.OrderUpdate,
    current_admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Fulfillment update (processing, shipped, delivered, cancelled) by an admin."""
    if status_update.status is None and status_update.payment_status is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="'status' or 'payment_status' is required",
        )

    db_order = crud.update_order_status(
        db=db,
        order_id=order_id,
        new_status=status_update.status.value if status_update.status else None,
        new_payment_status=status_update.payment_status.value if status_update.payment_status else None,
    )

    if not db_order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order with id {order_id} not found"
        )

    return db_order
