# bakery/models/order.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order placed from a cart.

    Amounts are snapshots of the cart at checkout:
      grand_total = cart.grand_total + delivery_fee
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    receiver_name: str | None = Field(
        default=None,
        description="Name of the person receiving the order (optional)",
    )
    phone_number: str = Field(
        description="Contact phone number for delivery",
    )
    note: str | None = Field(
        default=None,
        description="Optional note / special instructions",
    )

    full_address: str = Field(
        description="Full delivery address",
    )
    city: str = Field(
        description="City",
    )
    pincode: str = Field(
        description="Postal code",
    )

    # pending | processing | shipped | delivered | cancelled
    status: str = Field(
        default="pending",
        index=True,
        description="Order status lifecycle",
    )

    # COD | ONLINE
    payment_method: str = Field(default="COD")

    # pending | paid | refunded
    payment_status: str = Field(default="pending")

    subtotal: float = 0.0
    discount_amount: float = 0.0
    coupon_code: str | None = None
    auto_coupon_code: str | None = None
    delivery_fee: float = 0.0
    grand_total: float = Field(
        description="Final amount for this order (including delivery)",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order, copied from a cart line.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    product_name: str | None = None
    unit: str = Field(default="pc")
    grams: int | None = None
    variant_label: str | None = None

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    unit_price: float = Field(
        description="Unit price at time of order",
    )

    is_gift: bool = False
