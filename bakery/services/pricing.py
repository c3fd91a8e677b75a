# bakery/services/pricing.py
"""
Line pricing for cart items.

Pure functions: given a product, its variant options and the requested
selection they return the unit price and the normalized grams/variant
fields to persist. Nothing here touches the database.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

from bakery.core.errors import ProductNotFound, UnitNotAvailable, VariantNotFound
from bakery.models.cart import CartItem
from bakery.models.product import Product, ProductUnitOption

UNIT_PIECE = "pc"
UNIT_GRAM = "gm"
UNIT_VARIANT = "variant"

UNIT_KINDS = (UNIT_PIECE, UNIT_GRAM, UNIT_VARIANT)

DEFAULT_GRAMS = 100


@dataclass(frozen=True)
class LineSelection:
    unit: str
    grams: int | None = None
    variant_label: str | None = None


@dataclass(frozen=True)
class PricedLine:
    unit_price: float
    grams: int | None
    variant_label: str | None


def round_money(value: float) -> float:
    return round(float(value), 2)


def price_line(
    product: Product | None,
    options: Sequence[ProductUnitOption],
    selection: LineSelection,
) -> PricedLine:
    """
    Resolve the unit price for one cart line.

    - pc:      price_per_pc
    - gm:      (grams / 100) * price_per_100g, grams default to 100
    - variant: price of the option whose label matches exactly; grams
               come from the option

    Raises:
        ProductNotFound: product is unknown or no longer sold.
        VariantNotFound: no option matches the variant label.
        UnitNotAvailable: the product has no price for the unit kind.
    """
    if product is None or not product.is_active:
        raise ProductNotFound()

    if selection.unit == UNIT_PIECE:
        if product.price_per_pc is None:
            raise UnitNotAvailable("Product is not sold by the piece")
        return PricedLine(
            unit_price=round_money(product.price_per_pc),
            grams=None,
            variant_label=None,
        )

    if selection.unit == UNIT_GRAM:
        if product.price_per_100g is None:
            raise UnitNotAvailable("Product is not sold by weight")
        grams = selection.grams or DEFAULT_GRAMS
        return PricedLine(
            unit_price=round_money((grams / 100) * product.price_per_100g),
            grams=grams,
            variant_label=None,
        )

    if selection.unit == UNIT_VARIANT:
        option = next(
            (o for o in options if o.label == selection.variant_label),
            None,
        )
        if option is None:
            raise VariantNotFound()
        return PricedLine(
            unit_price=round_money(option.price),
            grams=option.grams,
            variant_label=option.label,
        )

    raise UnitNotAvailable(f"Unknown unit kind: {selection.unit}")


def line_total(item: CartItem) -> float:
    return round_money(item.unit_price * item.quantity)


def cart_subtotal(items: Iterable[CartItem]) -> float:
    """Sum of line totals over paid lines; gift lines never count."""
    return round_money(sum(line_total(it) for it in items if not it.is_gift))


def line_key(item: CartItem) -> tuple:
    """
    Identity of a paid line: two lines with the same key are the same
    purchase and get their quantities summed.
    """
    return (item.product_id, item.unit, item.grams, item.variant_label)
