# bakery/schemas/coupon.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

CouponType = Literal["percent", "fixed"]


def _clean_code(v: str) -> str:
    v = v.strip().upper()
    if not v:
        raise ValueError("code cannot be empty")
    return v


class CouponCreate(SQLModel):
    """
    Admin payload for a new coupon.

    - code is stored upper-cased and must be unique (case-insensitive)
    - free_gift_qty defaults to 1 when a gift product is set
    """

    model_config = ConfigDict(extra="forbid")

    code: str = Field(max_length=50)
    name: str | None = None
    description: str | None = None
    type: CouponType = "percent"
    value: float = Field(default=0, ge=0)
    min_cart_amount: float = Field(default=0, ge=0)
    is_active: bool = True

    max_uses: int | None = Field(default=None, ge=0)
    per_user_limit: int | None = Field(default=None, ge=0)
    valid_from: datetime | None = None
    valid_to: datetime | None = None

    is_auto: bool = False
    auto_threshold: float = Field(default=0, ge=0)
    free_gift_product_id: uuid.UUID | None = None
    free_gift_qty: int | None = Field(default=None, ge=1)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return _clean_code(v)

    @model_validator(mode="after")
    def check_values(self):
        if self.type == "percent" and self.value > 100:
            raise ValueError("percent value cannot exceed 100")
        if self.free_gift_product_id is None:
            self.free_gift_qty = None
        elif self.free_gift_qty is None:
            self.free_gift_qty = 1
        return self


class CouponUpdate(SQLModel):
    """
    Partial update payload for coupons.
    All fields are optional; explicit nulls clear nullable fields.
    """

    model_config = ConfigDict(extra="forbid")

    code: str | None = Field(default=None, max_length=50)
    name: str | None = None
    description: str | None = None
    type: CouponType | None = None
    value: float | None = Field(default=None, ge=0)
    min_cart_amount: float | None = Field(default=None, ge=0)
    is_active: bool | None = None

    max_uses: int | None = Field(default=None, ge=0)
    per_user_limit: int | None = Field(default=None, ge=0)
    valid_from: datetime | None = None
    valid_to: datetime | None = None

    is_auto: bool | None = None
    auto_threshold: float | None = Field(default=None, ge=0)
    free_gift_product_id: uuid.UUID | None = None
    free_gift_qty: int | None = Field(default=None, ge=1)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _clean_code(v)


class CouponRead(SQLModel):
    id: uuid.UUID
    code: str
    name: str | None
    description: str | None
    type: str
    value: float
    min_cart_amount: float
    is_active: bool
    max_uses: int | None
    used_count: int
    per_user_limit: int | None
    valid_from: datetime | None
    valid_to: datetime | None
    is_auto: bool
    auto_threshold: float
    free_gift_product_id: uuid.UUID | None
    free_gift_qty: int | None
    created_at: datetime
