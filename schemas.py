"""
Database Schemas for the bookstore

Each Pydantic model represents a MongoDB collection. Collection name is the lowercase
class name (e.g., Product -> "product"). Payloads travel in camelCase
(``rewardPoints``, ``shippingAddress``); attributes stay snake_case.
"""
from __future__ import annotations
from typing import Annotated, Any, Dict, List, Optional
from enum import Enum

from pydantic import AfterValidator, AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

OBJECT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"
# largest integer BSON can store
MAX_INT64 = 2 ** 63 - 1

_any_url = TypeAdapter(AnyUrl)


def _check_url(value: str) -> str:
    # validate only; the client's spelling of the URL is what gets stored
    try:
        _any_url.validate_python(value)
    except PydanticValidationError:
        raise ValueError("Invalid url")
    return value


Url = Annotated[str, AfterValidator(_check_url)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Users

class User(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    password_hash: str


class SignupPayload(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    password: str = Field(..., min_length=6)


class LoginPayload(BaseModel):
    username: str
    password: str


class Token(BaseModel):
    token: str
    message: str = "Login successful"


# Products

class Price(CamelModel):
    original: float = Field(..., strict=True, gt=0)
    discounted: float = Field(..., strict=True, gt=0)
    discount_percentage: float = Field(..., strict=True, ge=0, le=100)


class Product(CamelModel):
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    binding: str = Field(..., min_length=1)
    reward_points: int = Field(..., strict=True, ge=0, le=MAX_INT64)
    product_code: str = Field(..., min_length=1)
    availability: str = Field(..., min_length=1)
    price: Price
    review: List[Dict[str, Any]]
    reviews_count: int = Field(..., strict=True, ge=0, le=MAX_INT64)
    description: str = Field(..., min_length=1)
    image: Url


# Carts

class CartItem(CamelModel):
    product_id: str = Field(..., pattern=OBJECT_ID_PATTERN)
    quantity: int = Field(..., strict=True, gt=0, le=MAX_INT64)


class Cart(CamelModel):
    user_id: str = Field(..., pattern=OBJECT_ID_PATTERN)
    items: List[CartItem]
    total_price: float = Field(..., strict=True, ge=0)


# Orders

class PaymentStatus(str, Enum):
    pending = "Pending"
    completed = "Completed"
    failed = "Failed"


class OrderStatus(str, Enum):
    processing = "Processing"
    shipped = "Shipped"
    delivered = "Delivered"
    cancelled = "Cancelled"


class OrderLine(CamelModel):
    product: str = Field(..., pattern=OBJECT_ID_PATTERN)
    quantity: int = Field(..., strict=True, gt=0, le=MAX_INT64)
    price: float = Field(..., strict=True, gt=0)


class ShippingAddress(CamelModel):
    address_line1: str = Field(..., min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class Order(CamelModel):
    user: str = Field(..., pattern=OBJECT_ID_PATTERN)
    products: List[OrderLine] = Field(..., min_length=1)
    order_total: float = Field(..., strict=True, gt=0)
    shipping_address: ShippingAddress
    payment_method: str = Field(..., min_length=1)
    payment_status: PaymentStatus
    order_status: OrderStatus


class OrderUpdate(CamelModel):
    """Partial order: every field optional, but an explicit null is rejected.

    Defaults are not validated, so leaving a field out keeps it unset while
    sending ``null`` fails the field's type check.
    """
    user: str = Field(None, pattern=OBJECT_ID_PATTERN)
    products: List[OrderLine] = Field(None, min_length=1)
    order_total: float = Field(None, strict=True, gt=0)
    shipping_address: ShippingAddress = None
    payment_method: str = Field(None, min_length=1)
    payment_status: PaymentStatus = None
    order_status: OrderStatus = None


def to_document(model: BaseModel) -> dict:
    """Dump a validated model the way it is stored: camelCase keys, JSON-safe values.

    Only fields the client supplied are kept, so optional fields left out
    stay absent and partial models carry just their changes.
    """
    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)
