# bakery/schemas/product.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

UnitKind = Literal["pc", "gm", "variant"]


class UnitOptionIn(SQLModel):
    """
    One named variant of a product (label + price, optional weight).
    """

    model_config = ConfigDict(extra="forbid")

    label: str = Field(max_length=50)
    grams: int | None = Field(default=None, gt=0)
    price: float = Field(ge=0)
    position: int = Field(default=0, ge=0)

    @field_validator("label")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("label cannot be empty")
        return v


class UnitOptionRead(SQLModel):
    id: uuid.UUID
    label: str
    grams: int | None
    price: float
    position: int


class ProductCreate(SQLModel):
    """
    Payload for creating a product.

    - slug is optional: if omitted, generated from `name`.
    - unit_options are stored as the product's named variants.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=100)
    slug: str | None = None
    category: str | None = Field(default=None, max_length=50)
    unit: UnitKind = "pc"
    price_per_pc: float | None = Field(default=None, ge=0)
    price_per_100g: float | None = Field(default=None, ge=0)
    description: str | None = None
    is_active: bool = True
    unit_options: list[UnitOptionIn] = []

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("slug cannot be empty if provided")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    slug: str | None = None
    category: str | None = Field(default=None, max_length=50)
    unit: UnitKind | None = None
    price_per_pc: float | None = Field(default=None, ge=0)
    price_per_100g: float | None = Field(default=None, ge=0)
    description: str | None = None
    is_active: bool | None = None

    @field_validator("name", "slug")
    @classmethod
    def not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ProductRead(SQLModel):
    """
    Product representation for clients, with its unit options.
    """

    id: uuid.UUID
    name: str
    slug: str
    category: str | None
    unit: str
    price_per_pc: float | None
    price_per_100g: float | None
    description: str | None
    is_active: bool
    created_at: datetime
    unit_options: list[UnitOptionRead] = []
