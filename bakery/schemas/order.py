# bakery/schemas/order.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel

PaymentMethod = Literal["COD", "ONLINE"]
PaymentStatus = Literal["pending", "paid", "refunded"]
OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]


class OrderCreate(SQLModel):
    """
    Payload for placing an order from the current cart.

    User provides:
      - receiver_name (optional)
      - note (optional)
      - phone_number
      - delivery address (full_address, city, pincode)
      - payment_method

    Backend derives:
      - user_id from token
      - status = 'pending'
      - subtotal / discount / grand_total from the recalculated cart
      - delivery_fee from settings
      - items from cart
    """

    model_config = ConfigDict(extra="forbid")

    receiver_name: str | None = None
    phone_number: str
    full_address: str
    city: str
    pincode: str
    payment_method: PaymentMethod = "COD"
    note: str | None = None

    @field_validator("full_address", "city", "pincode", "phone_number")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("receiver_name", "note")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    user_id: uuid.UUID
    receiver_name: str | None
    phone_number: str
    note: str | None
    full_address: str
    city: str
    pincode: str
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    subtotal: float
    discount_amount: float
    coupon_code: str | None
    auto_coupon_code: str | None
    delivery_fee: float
    grand_total: float
    created_at: datetime


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID
    product_name: str | None
    unit: str
    grams: int | None
    variant_label: str | None
    quantity: int
    unit_price: float
    line_total: float
    is_gift: bool


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items.
    """

    items: list[OrderItemRead]


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status and/or payment status.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
