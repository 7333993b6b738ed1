"""
Database and request schemas for the Storefront API

Each document model corresponds to a MongoDB collection (lowercased class name).
Request models accept the camelCase field names used by the web client as well
as their snake_case equivalents.
"""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import List, Optional, Literal

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed"]
Role = Literal["customer", "admin"]


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# -----------------------------
# Auth / Users
# -----------------------------
class TokenPayload(RequestModel):
    user_id: str = Field(..., alias="userId", min_length=1)
    email: EmailStr
    role: Role = "customer"


class Address(RequestModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., alias="zipCode", min_length=1)
    country: str = Field(..., min_length=1)


class User(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    role: Role = "customer"
    addresses: List[Address] = []


# -----------------------------
# Catalog
# -----------------------------
class Product(RequestModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    images: List[str] = []
    category: str = Field(..., min_length=1)
    brand: str = ""
    sku: str = Field(..., min_length=1)
    stock: int = Field(0, ge=0)
    is_active: bool = Field(True, alias="isActive")
    is_featured: bool = Field(False, alias="isFeatured")
    rating: float = Field(0.0, ge=0, le=5)
    review_count: int = Field(0, ge=0, alias="reviewCount")


class ProductUpdate(RequestModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    images: Optional[List[str]] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    sku: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = Field(None, alias="isActive")
    is_featured: Optional[bool] = Field(None, alias="isFeatured")


# -----------------------------
# Cart
# -----------------------------
class CartLine(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)


class AddCartItemRequest(RequestModel):
    product_id: str = Field(..., alias="productId", min_length=1)
    quantity: int = Field(..., ge=1)


class UpdateCartItemRequest(RequestModel):
    # zero or negative removes the line
    quantity: int


# -----------------------------
# Orders / Checkout
# -----------------------------
class OrderItem(BaseModel):
    product_id: str
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    image: str = ""


class Order(BaseModel):
    order_number: str
    user_id: str
    items: List[OrderItem]
    shipping_address: Address
    status: OrderStatus = "pending"
    payment_status: PaymentStatus = "pending"
    notes: Optional[str] = None
    subtotal: float = Field(..., ge=0)
    tax: float = Field(..., ge=0)
    shipping_cost: float = Field(..., ge=0)
    total: float = Field(..., ge=0)


class CreateOrderRequest(RequestModel):
    shipping_address: Address = Field(..., alias="shippingAddress")
    save_address: bool = Field(False, alias="saveAddress")


class UpdateOrderStatusRequest(RequestModel):
    status: OrderStatus
    notes: Optional[str] = None
    payment_status: Optional[PaymentStatus] = Field(None, alias="paymentStatus")


# -----------------------------
# Reviews
# -----------------------------
class Review(BaseModel):
    product_id: str
    user_id: str
    rating: int = Field(..., ge=1, le=5)
    title: str
    comment: str


class CreateReviewRequest(RequestModel):
    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1)
    comment: str = Field(..., min_length=1)
