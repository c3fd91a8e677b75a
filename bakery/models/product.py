# bakery/models/product.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Catalog entry for a bakery item.

    A product carries up to three price schedules; which one applies is
    chosen by the unit kind of the cart line:
      - pc      -> price_per_pc
      - gm      -> price_per_100g (linear in grams)
      - variant -> a named ProductUnitOption
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        min_length=2,
        index=True,
        description="Display name of the product",
    )

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    category: str | None = Field(
        default=None,
        max_length=50,
        index=True,
    )

    # pc | gm | variant: what the storefront offers by default
    unit: str = Field(
        default="pc",
        description="Default unit kind shown on the storefront",
    )

    price_per_pc: float | None = Field(
        default=None,
        ge=0,
        description="Price of a single piece",
    )

    price_per_100g: float | None = Field(
        default=None,
        ge=0,
        description="Price per 100 grams for weight-based sale",
    )

    description: str | None = None

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product is visible on the storefront",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )


class ProductUnitOption(SQLModel, table=True):
    """
    Named variant of a product (e.g. "500g box", "1kg tin") with its own
    price and weight.
    """

    __tablename__ = "product_unit_options"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    label: str = Field(max_length=50)

    grams: int | None = Field(default=None, gt=0)

    price: float = Field(ge=0)

    position: int = Field(
        default=0,
        ge=0,
        description="Ordering index within the product's options",
    )
