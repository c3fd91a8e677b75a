# bakery/schemas/cart.py
import uuid
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

UnitKind = Literal["pc", "gm", "variant"]


class CartItemCreate(SQLModel):
    """
    Payload for adding a product to the cart.

    - unit=gm: `grams` is optional and defaults to 100.
    - unit=variant: `variant_label` is required.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    unit: UnitKind = "pc"
    quantity: int = Field(default=1, ge=1)
    grams: int | None = Field(default=None, gt=0)
    variant_label: str | None = None

    @field_validator("variant_label")
    @classmethod
    def normalize_label(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def check_variant(self):
        if self.unit == "variant" and not self.variant_label:
            raise ValueError("variant_label is required for unit 'variant'")
        return self


class CartItemUpdate(SQLModel):
    """
    Payload for changing a cart line.

    Any field left out keeps its current value. Changing unit, grams or
    variant_label re-prices the line.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int | None = Field(default=None, ge=1)
    unit: UnitKind | None = None
    grams: int | None = Field(default=None, gt=0)
    variant_label: str | None = None

    @field_validator("variant_label")
    @classmethod
    def normalize_label(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @property
    def changes_pricing(self) -> bool:
        return (
            self.unit is not None
            or self.grams is not None
            or self.variant_label is not None
        )


class CouponApply(SQLModel):
    model_config = ConfigDict(extra="forbid")

    code: str = Field(min_length=1, max_length=50)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("code cannot be empty")
        return v


class CartItemRead(SQLModel):
    """
    Read model for a single cart line, including line_total.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str | None = None
    unit: str
    quantity: int
    grams: int | None = None
    variant_label: str | None = None
    unit_price: float
    line_total: float
    is_gift: bool


class CartRead(SQLModel):
    """
    Canonical cart view returned by every cart endpoint.
    """

    id: uuid.UUID
    user_id: uuid.UUID | None
    status: str
    currency: str
    subtotal: float
    discount_total: float
    grand_total: float
    coupon_code: str | None
    coupon_discount: float
    auto_coupon_code: str | None
    auto_discount: float
    free_gift_applied: bool
    items: list[CartItemRead]


class CouponOfferRead(SQLModel):
    """
    Public view of an automatic offer, for the storefront's coupon list.
    """

    code: str
    description: str | None = None
    type: str
    value: float
    min_cart_amount: float
    auto_threshold: float
    free_gift_product_id: uuid.UUID | None = None
    free_gift_qty: int | None = None
