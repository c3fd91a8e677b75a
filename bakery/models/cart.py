# bakery/models/cart.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Cart(SQLModel, table=True):
    """
    Shopping cart for a guest (user_id is NULL) or a signed-in user.

    status: active | merged | abandoned

    Derived fields (subtotal .. free_gift_applied) are written only by
    the recalculation in CartService.recalculate. `version` is bumped on
    every derived-field write and used as an optimistic lock.
    """

    __tablename__ = "carts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="users.id",
        index=True,
    )

    status: str = Field(default="active", index=True)

    currency: str = Field(default="INR", max_length=3)

    subtotal: float = 0.0
    discount_total: float = 0.0
    grand_total: float = 0.0

    # Manual coupon entered by the customer (stored upper-cased)
    coupon_code: str | None = None
    coupon_discount: float = 0.0

    # Best automatic coupon picked on the last recalculation
    auto_coupon_code: str | None = None
    auto_discount: float = 0.0

    free_gift_applied: bool = False

    version: int = Field(default=0, ge=0)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow, index=True)


class CartItem(SQLModel, table=True):
    """
    One line of a cart.

    unit_price is the price snapshot taken when the line was priced;
    line totals are always unit_price * quantity. Gift lines carry
    unit_price 0 and are owned by the gift reconciliation.
    """

    __tablename__ = "cart_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    cart_id: uuid.UUID = Field(
        foreign_key="carts.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    # pc | gm | variant
    unit: str = Field(default="pc")

    quantity: int = Field(
        gt=0,
        description="Must be >= 1",
    )

    grams: int | None = None
    variant_label: str | None = None

    unit_price: float = Field(
        default=0.0,
        ge=0,
        description="Price when added to cart",
    )

    is_gift: bool = Field(default=False, index=True)

    product_name: str | None = None

    created_at: datetime = Field(default_factory=_utcnow)
