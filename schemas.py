"""
Database Schemas for the garments marketplace

Each model maps to a MongoDB collection.

Collections:
- users
- products
- carts (placed orders, one product per entry)
- comments
- reviews (read-only here)
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class User(BaseModel):
    """
    Users collection schema
    Collection name: "users"
    """
    name: Optional[str] = Field(None, description="Display name")
    email: EmailStr = Field(..., description="Email address, unique per user")
    photoURL: Optional[str] = Field(None, description="Avatar URL")
    role: str = Field("user", description="user | manager | admin")
    status: str = Field("pending", description="pending | Approved | active | blocked")
    createdAt: datetime = Field(default_factory=utcnow)


class Product(BaseModel):
    """
    Products collection schema
    Collection name: "products"
    """
    productName: str = Field(..., description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    category: Optional[str] = Field(None, description="Garment category")
    price: float = Field(..., ge=0, description="Unit price in USD")
    availableQuantity: int = Field(..., ge=0, description="Units in stock")
    minimumOrderQuantity: int = Field(1, ge=1, description="Smallest accepted order")
    images: List[str] = Field(default_factory=list, description="Image URLs")
    demoVideo: Optional[str] = None
    paymentOptions: Optional[str] = None
    createdBy: Optional[EmailStr] = Field(None, description="Seller email")
    createdAt: datetime = Field(default_factory=utcnow)


class Order(BaseModel):
    """
    Cart entries are placed orders
    Collection name: "carts"
    """
    model_config = ConfigDict(use_enum_values=True)

    productId: str
    productName: Optional[str] = None
    orderedQty: int = Field(..., ge=1)
    totalPrice: float = Field(..., ge=0)
    userEmail: EmailStr
    paymentStatus: PaymentStatus = PaymentStatus.UNPAID
    createdAt: datetime = Field(default_factory=utcnow)


class Comment(BaseModel):
    """
    Comments collection schema
    Collection name: "comments"
    """
    text: str = Field(..., min_length=1)
    userName: Optional[str] = None
    userEmail: Optional[EmailStr] = None
    userPhoto: Optional[str] = None
    productId: Optional[str] = None
    createdAt: datetime = Field(default_factory=utcnow)
