from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, EmailStr, Field

from gymstore.db.models.order import OrderStatus, PaymentMethod


class OrderItemRequest(BaseModel):
    product_id: int
    size: str = Field(min_length=1, max_length=20)
    quantity: int = Field(ge=1, le=100)


class ShippingAddress(BaseModel):
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(min_length=1, max_length=80)
    email: EmailStr
    street: str = Field(min_length=1, max_length=200)
    city: str = Field(min_length=1, max_length=80)
    state: str = Field(min_length=1, max_length=80)
    zipcode: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=80)
    phone: str = Field(min_length=5, max_length=32)

    model_config = {"str_strip_whitespace": True}


class OrderCreateRequest(BaseModel):
    items: list[OrderItemRequest] = Field(min_length=1)
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    address: ShippingAddress
    payment_method: PaymentMethod


class OrderItemResponse(BaseModel):
    product_id: int
    name: str
    size: str
    quantity: int
    unit_price: Decimal


class OrderResponse(BaseModel):
    id: int
    user_id: int
    items: list[OrderItemResponse]
    address: dict[str, Any]
    amount: Decimal
    payment_method: PaymentMethod
    payment: bool
    status: OrderStatus
    tracking_reference: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AdminOrderResponse(OrderResponse):
    admin_notes: str | None
    gateway_reference: str | None


class CheckoutSessionResponse(BaseModel):
    provider: PaymentMethod
    reference: str
    redirect_url: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class OrderCreateResponse(BaseModel):
    order: OrderResponse
    checkout: CheckoutSessionResponse | None = None


class PaymentVerifyRequest(BaseModel):
    order_id: int
    success: bool = True


class OrderStatusUpdateRequest(BaseModel):
    status: OrderStatus


class OrderDetailsUpdateRequest(BaseModel):
    admin_notes: str | None = Field(default=None, max_length=2000)
    tracking_reference: str | None = Field(default=None, max_length=120)


class OrderCancelResponse(BaseModel):
    order: OrderResponse
    notification_sent: bool
    notification_error: str | None = None


class OrderStatusUpdateResponse(BaseModel):
    order: AdminOrderResponse
    notification_sent: bool | None = None
    notification_error: str | None = None


class PaymentVerifyResponse(BaseModel):
    success: bool
    message: str
    order: OrderResponse | None = None
