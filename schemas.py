"""Pydantic schemas for request/response validation."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from models import OrderStatus


class ProductCreate(BaseModel):
    """Schema for creating a product."""
    name: str = Field(..., min_length=1)
    description: str = ""
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=0)
    category: str = ""
    image_url: Optional[str] = None


class ProductUpdate(BaseModel):
    """Schema for a partial product update."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None
    image_url: Optional[str] = None


class ProductResponse(BaseModel):
    """Schema for product response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    price: float
    quantity: int
    category: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str


class OrderItemRequest(BaseModel):
    """One line of an order request. ``price`` is the price the client saw."""
    product_id: str
    quantity: int = Field(..., gt=0)
    price: Optional[Decimal] = Field(None, ge=0)


class OrderCreateRequest(BaseModel):
    """Schema for placing an order."""
    customer_name: str = Field(..., min_length=1)
    customer_email: EmailStr
    items: List[OrderItemRequest] = Field(..., min_length=1)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    payment_details: Dict[str, Any] = Field(default_factory=dict)


class OrderItemResponse(BaseModel):
    """Schema for order item in response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    quantity: int
    price: float
    subtotal: float


class OrderResponse(BaseModel):
    """Schema for order response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_name: str
    customer_email: str
    status: str
    total_amount: float
    payment_method: Optional[str] = None
    payment_transaction_id: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemResponse]


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderStatusResponse(BaseModel):
    id: str
    status: str


class PaymentMethodRequest(BaseModel):
    method: str


class PaymentMethodResponse(BaseModel):
    method: str


class CredentialsRequest(BaseModel):
    """Username/password body for login and registration."""
    username: str
    password: str


class RegisterResponse(BaseModel):
    success: bool
    user_id: str


class LoginResponse(BaseModel):
    success: bool
    username: str
    role: str
