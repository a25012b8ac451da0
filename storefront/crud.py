import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import String, cast, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import Category, Order, OrderItem, Product, Profile, WishlistItem

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("full_name", "phone", "address", "city", "state", "pincode")


# -----------------------------
# Profiles
# -----------------------------

def get_profile_by_email(db: Session, email: str) -> Optional[Profile]:
    normalized = (email or "").strip().lower()
    if not normalized:
        return None
    return db.query(Profile).filter(func.lower(Profile.email) == normalized).first()


def get_profile(db: Session, user_id: int) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.id == user_id).first()


def create_profile(db: Session, *, email: str, hashed_password: str, full_name: Optional[str] = None,
                   is_admin: bool = False) -> Profile:
    email = (email or "").strip().lower()
    if not email:
        raise ValueError("email_required")
    if get_profile_by_email(db, email):
        raise ValueError("duplicate_email")

    db_profile = Profile(email=email, hashed_password=hashed_password, full_name=full_name, is_admin=is_admin)
    db.add(db_profile)
    db.commit()
    db.refresh(db_profile)
    return db_profile


def update_profile(db: Session, user_id: int, update_data: dict) -> Optional[Profile]:
    db_profile = get_profile(db, user_id)
    if not db_profile:
        return None

    for key, value in update_data.items():
        if key in PROFILE_FIELDS and value is not None:
            setattr(db_profile, key, value)
    db.commit()
    db.refresh(db_profile)
    return db_profile


# -----------------------------
# Catalog
# -----------------------------

PRODUCT_SORTS = {
    "name": (Product.name.asc(),),
    "price-low": (Product.price.asc(), Product.id.asc()),
    "price-high": (Product.price.desc(), Product.id.asc()),
    "rating": (Product.rating.desc(), Product.id.asc()),
    "newest": (Product.created_at.desc(), Product.id.desc()),
}


def get_product(db: Session, product_id: int, *, active_only: bool = True) -> Optional[Product]:
    query = db.query(Product).filter(Product.id == product_id)
    if active_only:
        query = query.filter(Product.is_active.is_(True))
    return query.first()


def get_products(
    db: Session,
    *,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    sort: str = "name",
    skip: int = 0,
    limit: int = 100,
) -> List[Product]:
    if sort not in PRODUCT_SORTS:
        raise ValueError(f"invalid_sort:{sort}")

    query = db.query(Product).filter(Product.is_active.is_(True))
    if search:
        search_pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Product.name.ilike(search_pattern),
                Product.description.ilike(search_pattern),
            )
        )
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)

    try:
        return query.order_by(*PRODUCT_SORTS[sort]).offset(skip).limit(limit).all()
    except SQLAlchemyError:
        logger.exception("Error fetching products")
        return []


def get_featured_products(db: Session, limit: int = 6) -> List[Product]:
    try:
        return (
            db.query(Product)
            .filter(Product.is_featured.is_(True), Product.is_active.is_(True))
            .order_by(Product.id.asc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Error fetching featured products")
        return []


def get_related_products(db: Session, product: Product, limit: int = 4) -> List[Product]:
    if product.category_id is None:
        return []
    try:
        return (
            db.query(Product)
            .filter(
                Product.category_id == product.category_id,
                Product.is_active.is_(True),
                Product.id != product.id,
            )
            .order_by(Product.id.asc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Error fetching related products for product %s", product.id)
        return []


def get_categories(db: Session, limit: Optional[int] = None) -> List[Category]:
    query = db.query(Category).order_by(Category.id.asc())
    if limit is not None:
        query = query.limit(limit)
    try:
        return query.all()
    except SQLAlchemyError:
        logger.exception("Error fetching categories")
        return []


def get_category(db: Session, category_id: int) -> Optional[Category]:
    return db.query(Category).filter(Category.id == category_id).first()


def create_product(db: Session, product_data: dict) -> Product:
    name = (product_data.get("name") or "").strip()
    if not name:
        raise ValueError("name_required")
    category_id = product_data.get("category_id")
    if category_id is not None and get_category(db, category_id) is None:
        raise ValueError(f"category_not_found:{category_id}")

    db_product = Product(**{**product_data, "name": name})
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


def update_product(db: Session, product_id: int, update_data: dict) -> Optional[Product]:
    db_product = get_product(db, product_id, active_only=False)
    if not db_product:
        return None

    if "name" in update_data and update_data.get("name") is not None:
        new_name = str(update_data["name"]).strip()
        if not new_name:
            raise ValueError("name_required")
        update_data["name"] = new_name
    category_id = update_data.get("category_id")
    if category_id is not None and get_category(db, category_id) is None:
        raise ValueError(f"category_not_found:{category_id}")

    for key, value in update_data.items():
        if value is not None:
            setattr(db_product, key, value)
    db.commit()
    db.refresh(db_product)
    return db_product


# -----------------------------
# Orders
# -----------------------------

def get_order(db: Session, order_id: int) -> Optional[Order]:
    return db.query(Order).filter(Order.id == order_id).first()


def get_user_order(db: Session, user_id: int, order_id: int) -> Optional[Order]:
    return db.query(Order).filter(Order.id == order_id, Order.user_id == user_id).first()


def _user_orders_query(db: Session, user_id: int, search: Optional[str] = None, status: Optional[str] = None):
    query = db.query(Order).filter(Order.user_id == user_id)
    if search:
        search_pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                cast(Order.id, String).ilike(search_pattern),
                Order.items.any(OrderItem.product.has(Product.name.ilike(search_pattern))),
            )
        )
    if status:
        query = query.filter(Order.status == status)
    return query


def get_orders_by_user(
    db: Session,
    user_id: int,
    *,
    search: Optional[str] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: Optional[int] = 100,
) -> List[Order]:
    """Orders of one user, newest first.

    search matches the order id or the name of any purchased product.
    """
    query = _user_orders_query(db, user_id, search, status)
    try:
        return query.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip).limit(limit).all()
    except SQLAlchemyError:
        logger.exception("Error fetching orders for user %s", user_id)
        return []


def get_user_order_count(db: Session, user_id: int, *, search: Optional[str] = None,
                         status: Optional[str] = None) -> int:
    return _user_orders_query(db, user_id, search, status).count()


def update_order_status(db: Session, order_id: int, new_status: Optional[str] = None,
                        new_payment_status: Optional[str] = None) -> Optional[Order]:
    db_order = get_order(db, order_id)
    if not db_order:
        return None

    if new_status is not None:
        db_order.status = new_status
    if new_payment_status is not None:
        db_order.payment_status = new_payment_status
    db.commit()
    db.refresh(db_order)
    return db_order


# -----------------------------
# Wishlist
# -----------------------------

def get_wishlist(db: Session, user_id: int) -> List[WishlistItem]:
    try:
        return (
            db.query(WishlistItem)
            .filter(WishlistItem.user_id == user_id)
            .order_by(WishlistItem.id.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Error fetching wishlist for user %s", user_id)
        return []


def add_to_wishlist(db: Session, user_id: int, product_id: int) -> WishlistItem:
    if get_product(db, product_id) is None:
        raise ValueError(f"product_not_found:{product_id}")

    existing = (
        db.query(WishlistItem)
        .filter(WishlistItem.user_id == user_id, WishlistItem.product_id == product_id)
        .first()
    )
    if existing:
        raise ValueError("already_in_wishlist")

    item = WishlistItem(user_id=user_id, product_id=product_id)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def remove_from_wishlist(db: Session, user_id: int, item_id: int) -> bool:
    item = (
        db.query(WishlistItem)
        .filter(WishlistItem.id == item_id, WishlistItem.user_id == user_id)
        .first()
    )
    if not item:
        return False
    db.delete(item)
    db.commit()
    return True
