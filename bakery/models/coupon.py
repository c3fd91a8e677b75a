# bakery/models/coupon.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Coupon(SQLModel, table=True):
    """
    Discount definition.

    The same row can be redeemed two ways:
      - manually, by a customer typing `code` (needs subtotal >=
        min_cart_amount)
      - automatically, when is_auto is set and the subtotal reaches
        auto_threshold; automatic winners may also grant a free gift line.

    max_uses / per_user_limit / valid_from / valid_to are stored for the
    admin screens and not enforced by cart pricing.
    """

    __tablename__ = "coupons"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    code: str = Field(
        max_length=50,
        unique=True,
        index=True,
        description="Upper-cased coupon code",
    )

    name: str | None = None
    description: str | None = None

    # percent | fixed
    type: str = Field(default="percent")
    value: float = Field(default=0.0, ge=0)

    min_cart_amount: float = Field(default=0.0, ge=0)

    is_active: bool = Field(default=True, index=True)

    max_uses: int | None = None
    used_count: int = Field(default=0, ge=0)
    per_user_limit: int | None = None
    valid_from: datetime | None = None
    valid_to: datetime | None = None

    is_auto: bool = Field(default=False, index=True)
    auto_threshold: float = Field(default=0.0, ge=0)

    free_gift_product_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="products.id",
    )
    free_gift_qty: int | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
