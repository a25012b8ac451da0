import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud
from .auth import get_current_user
from .database import get_db
from .models import CartItem, Profile

logger = logging.getLogger(__name__)


class CartPersistenceError(RuntimeError):
    """A cart write failed; the message is safe to show to the shopper."""


class CartService:
    """Cart of one authenticated shopper, bound to a database session.

    ``items`` mirrors the persisted lines and is only changed after the
    corresponding write has been committed.
    """

    def __init__(self, db: Session, user: Optional[Profile]):
        self.db = db
        self.user = user
        self.items: List[CartItem] = []
        if user is not None:
            self.refresh()

    def refresh(self) -> List[CartItem]:
        if self.user is None:
            self.items = []
            return self.items
        try:
            self.items = (
                self.db.query(CartItem)
                .filter(CartItem.user_id == self.user.id)
                .order_by(CartItem.id.asc())
                .all()
            )
        except SQLAlchemyError:
            logger.exception("Error fetching cart items for user %s", self.user.id)
            self.items = []
        return self.items

    def _require_user(self) -> Profile:
        if self.user is None:
            raise ValueError("login_required")
        return self.user

    def get_line(self, line_id: int) -> Optional[CartItem]:
        return next((item for item in self.items if item.id == line_id), None)

    def add_to_cart(self, product_id: int, quantity: int = 1) -> CartItem:
        user = self._require_user()
        if quantity < 1:
            raise ValueError("invalid_quantity")

        if crud.get_product(self.db, product_id) is None:
            raise ValueError(f"product_not_found:{product_id}")

        existing = next((item for item in self.items if item.product_id == product_id), None)
        if existing is not None:
            return self.update_quantity(existing.id, existing.quantity + quantity)

        try:
            self.db.add(CartItem(user_id=user.id, product_id=product_id, quantity=quantity))
            self.db.commit()
        except IntegrityError:
            # Another request created the line first; merge into it
            self.db.rollback()
            self.refresh()
            existing = next((item for item in self.items if item.product_id == product_id), None)
            if existing is None:
                logger.exception("Error adding product %s to cart", product_id)
                raise CartPersistenceError("Failed to add item to cart")
            return self.update_quantity(existing.id, existing.quantity + quantity)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Error adding product %s to cart", product_id)
            raise CartPersistenceError("Failed to add item to cart")

        self.refresh()
        return next(item for item in self.items if item.product_id == product_id)

    def update_quantity(self, line_id: int, quantity: int) -> Optional[CartItem]:
        """Set a line's quantity. Zero or less removes the line and returns None."""
        user = self._require_user()
        if quantity <= 0:
            self.remove_from_cart(line_id)
            return None

        line = self.get_line(line_id)
        if line is None:
            raise ValueError(f"cart_item_not_found:{line_id}")

        try:
            (
                self.db.query(CartItem)
                .filter(CartItem.id == line_id, CartItem.user_id == user.id)
                .update({CartItem.quantity: quantity}, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Error updating quantity of cart item %s", line_id)
            raise CartPersistenceError("Failed to update quantity")

        self.db.refresh(line)
        return line

    def remove_from_cart(self, line_id: int) -> None:
        user = self._require_user()
        if self.get_line(line_id) is None:
            raise ValueError(f"cart_item_not_found:{line_id}")
        remaining = [item for item in self.items if item.id != line_id]

        try:
            (
                self.db.query(CartItem)
                .filter(CartItem.id == line_id, CartItem.user_id == user.id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Error removing cart item %s", line_id)
            raise CartPersistenceError("Failed to remove item from cart")

        self.items = remaining

    def clear_cart(self) -> None:
        user = self._require_user()
        try:
            self.db.query(CartItem).filter(CartItem.user_id == user.id).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Error clearing cart for user %s", user.id)
            raise CartPersistenceError("Failed to clear cart")

        self.items = []

    def get_cart_total(self) -> Decimal:
        return sum((Decimal(str(item.product.price)) * item.quantity for item in self.items), Decimal("0"))

    def get_cart_item_count(self) -> int:
        return sum(item.quantity for item in self.items)


def get_cart_service(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CartService:
    return CartService(db, current_user)
