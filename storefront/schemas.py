from pydantic import BaseModel, ConfigDict, Field
from decimal import Decimal
from typing import Optional, List
from datetime import datetime
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    PHONEPE = "phonepe"
    PAYPAL = "paypal"
    COD = "cod"


class CheckoutStep(str, Enum):
    SHIPPING = "shipping"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"


# Users / profiles
class UserOut(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    is_admin: bool = False

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str


# Catalog
class CategoryOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None

    model_config = {"from_attributes": True}


class ProductOut(BaseModel):
    id: int
    name: str
    description: str
    price: Decimal
    stock_quantity: int
    category_id: Optional[int] = None
    images: List[str] = []
    nutrition_info: Optional[str] = None
    ingredients: Optional[str] = None
    weight: Optional[str] = None
    is_featured: bool
    is_active: bool
    rating: Decimal
    rating_count: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProductDetailOut(BaseModel):
    product: ProductOut
    category: Optional[CategoryOut] = None
    related: List[ProductOut] = []


# Cart
class CartLineOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    product: ProductOut
    line_total: Decimal

    model_config = {"from_attributes": True}


class CartOut(BaseModel):
    items: List[CartLineOut]
    item_count: int
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    amount_to_free_shipping: Decimal


class PromoQuote(BaseModel):
    code: str
    discount_percent: Decimal
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    total: Decimal


# Checkout
class ShippingInfo(BaseModel):
    full_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""


class CheckoutOut(BaseModel):
    step: CheckoutStep
    shipping_info: ShippingInfo
    payment_method: Optional[PaymentMethod] = None
    promo_code: Optional[str] = None
    item_count: int
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    total: Decimal
    order_id: Optional[int] = None


# Orders
class OrderItemOut(BaseModel):
    id: int
    order_id: int
    product_id: int
    product_name: str
    quantity: int
    price: Decimal

    model_config = {"from_attributes": True}


class OrderOut(BaseModel):
    id: int
    user_id: int
    total_amount: Decimal
    shipping_fee: Decimal
    discount_amount: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    payment_id: Optional[str] = None
    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_pincode: str
    phone: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut] = []

    model_config = {"from_attributes": True}


class OrderListResponse(BaseModel):
    orders: List[OrderOut]
    total: int


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None


class DashboardOut(BaseModel):
    profile: UserOut
    recent_orders: List[OrderOut]
    total_orders: int
    total_spent: Decimal
    completed_orders: int


# Wishlist
class WishlistItemOut(BaseModel):
    id: int
    product_id: int
    product: ProductOut
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class WishlistAdd(BaseModel):
    product_id: int = Field(..., gt=0, description="Product ID")
