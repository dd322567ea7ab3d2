"""
Schemas for the Chocolata marketplace

Persistence models map to MongoDB collections; the collection name is the
lowercase of the class name (User -> "user", Order -> "order", ...).
Core models (Product, CartLineItem, CatalogQueryState, OrderTotals,
StockValidationResult) are plain values passed to the catalog, pricing and
stock modules.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

Role = Literal["buyer", "seller", "admin"]
SellerStatus = Literal["pending", "approved", "rejected"]
SortKey = Literal["newest", "price_asc", "price_desc", "name_asc", "name_desc"]
OrderStatus = Literal["pending", "paid", "processing", "shipped", "delivered", "cancelled"]
StockFailureReason = Literal["not_found", "sold_out", "insufficient_stock", "empty_cart"]


def _decimal(v):
    # floats read back from Mongo go through str so 15.99 stays 15.99
    if isinstance(v, float):
        return Decimal(str(v))
    return v


# ----- Core values -----

class Product(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0)
    image_url: Optional[str] = None
    category: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    created_at: Optional[datetime] = None
    seller_id: Optional[str] = None
    is_active: bool = True

    coerce_price = field_validator("price", mode="before")(_decimal)


class CartLineItem(BaseModel):
    id: str
    product_id: str
    name: str
    price: Decimal = Field(..., description="Price snapshot taken when the item was added")
    quantity: int = Field(..., ge=1)
    image_url: Optional[str] = None

    coerce_price = field_validator("price", mode="before")(_decimal)


class CatalogQueryState(BaseModel):
    search_text: str = ""
    category: str = "all"
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    sort: SortKey = "newest"
    page: int = Field(1, ge=1)

    model_config = {"frozen": True}

    @field_validator("category", mode="before")
    @classmethod
    def blank_category_is_all(cls, v):
        return v or "all"


class CatalogPage(BaseModel):
    items: List[Product]
    total_count: int
    total_pages: int
    page: int


class OrderTotals(BaseModel):
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    total: Decimal
    estimated_delivery_date: date


class StockFailure(BaseModel):
    product_id: Optional[str] = None
    reason: StockFailureReason
    available_qty: Optional[int] = None


class StockValidationResult(BaseModel):
    valid: bool
    failures: List[StockFailure] = []


# ----- Collections -----

class User(BaseModel):
    name: str
    email: EmailStr
    password_hash: Optional[str] = None
    role: Role = "buyer"
    seller_status: Optional[SellerStatus] = None


class Category(BaseModel):
    name: str
    description: Optional[str] = None


class SellerVerification(BaseModel):
    seller_id: str
    seller_name: Optional[str] = None
    seller_email: Optional[str] = None
    documents: List[str] = Field(default_factory=list, description="Document URLs in external storage")
    status: SellerStatus = "pending"
    admin_notes: Optional[str] = None


class OrderItem(BaseModel):
    product_id: str
    seller_id: Optional[str] = None
    name: str
    image_url: Optional[str] = None
    price: Decimal
    quantity: int = Field(..., ge=1)

    coerce_price = field_validator("price", mode="before")(_decimal)


class Order(BaseModel):
    user_id: str
    items: List[OrderItem]
    seller_ids: List[str] = []
    shipping_name: str
    shipping_email: EmailStr
    shipping_address: str
    shipping_country: str
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str = "SEK"
    estimated_delivery_date: Optional[str] = None
    payment_method: str = "card"
    transaction_id: Optional[str] = None
    status: OrderStatus = "pending"
