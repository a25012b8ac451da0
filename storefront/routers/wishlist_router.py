from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud
from ..auth import get_current_user
from ..database import get_db
from ..errors import http_error
from ..models import Profile
from ..schemas import WishlistAdd, WishlistItemOut

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])


@router.get("/", response_model=List[WishlistItemOut])
def view_wishlist(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return crud.get_wishlist(db, current_user.id)


@router.post("/", response_model=WishlistItemOut, status_code=status.HTTP_201_CREATED)
def add_to_wishlist(
    body: WishlistAdd,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return crud.add_to_wishlist(db, current_user.id, body.product_id)
    except ValueError as e:
        raise http_error(e)
    except IntegrityError:
        # DB-level unique constraint (race conditions)
        db.rollback()
        raise http_error(ValueError("already_in_wishlist"))


@router.delete("/{item_id:int}", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_wishlist(
    item_id: int,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not crud.remove_from_wishlist(db, current_user.id, item_id):
        raise HTTPException(status_code=404, detail="Wishlist item not found")
    return None
