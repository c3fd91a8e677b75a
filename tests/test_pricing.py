import uuid

import pytest

from bakery.core.errors import ProductNotFound, UnitNotAvailable, VariantNotFound
from bakery.models.cart import CartItem
from bakery.models.product import Product, ProductUnitOption
from bakery.services.pricing import (
    LineSelection,
    cart_subtotal,
    line_key,
    line_total,
    price_line,
)


def _product(**fields):
    fields.setdefault("name", "Kaju Katli")
    fields.setdefault("slug", "kaju-katli")
    return Product(id=uuid.uuid4(), **fields)


def _line(price, qty, is_gift=False, **fields):
    return CartItem(
        cart_id=uuid.uuid4(),
        product_id=fields.pop("product_id", uuid.uuid4()),
        unit_price=price,
        quantity=qty,
        is_gift=is_gift,
        **fields,
    )


def test_piece_price():
    priced = price_line(_product(price_per_pc=45.0), [], LineSelection("pc"))
    assert priced.unit_price == 45.0
    assert priced.grams is None
    assert priced.variant_label is None


def test_weight_price_is_linear_in_grams():
    priced = price_line(_product(price_per_100g=80.0), [], LineSelection("gm", grams=250))
    assert priced.unit_price == 200.0
    assert priced.grams == 250


def test_weight_defaults_to_100_grams():
    priced = price_line(_product(price_per_100g=80.0), [], LineSelection("gm"))
    assert priced.unit_price == 80.0
    assert priced.grams == 100


def test_variant_price_and_grams_come_from_option():
    product = _product(price_per_pc=10.0)
    options = [
        ProductUnitOption(product_id=product.id, label="250g box", grams=250, price=220.0),
        ProductUnitOption(product_id=product.id, label="500g box", grams=500, price=420.0),
    ]
    priced = price_line(product, options, LineSelection("variant", variant_label="500g box"))
    assert priced.unit_price == 420.0
    assert priced.grams == 500
    assert priced.variant_label == "500g box"


def test_unknown_variant_label():
    product = _product(price_per_pc=10.0)
    options = [ProductUnitOption(product_id=product.id, label="250g box", price=220.0)]
    with pytest.raises(VariantNotFound):
        price_line(product, options, LineSelection("variant", variant_label="1kg tin"))


def test_missing_price_schedule_is_unit_not_available():
    with pytest.raises(UnitNotAvailable):
        price_line(_product(price_per_pc=10.0), [], LineSelection("gm", grams=100))
    with pytest.raises(UnitNotAvailable):
        price_line(_product(price_per_100g=10.0), [], LineSelection("pc"))


def test_inactive_or_missing_product():
    with pytest.raises(ProductNotFound):
        price_line(None, [], LineSelection("pc"))
    with pytest.raises(ProductNotFound):
        price_line(_product(price_per_pc=10.0, is_active=False), [], LineSelection("pc"))


def test_prices_are_rounded_to_two_decimals():
    priced = price_line(_product(price_per_100g=33.33), [], LineSelection("gm", grams=333))
    assert priced.unit_price == 110.99


def test_subtotal_ignores_gift_lines():
    items = [_line(100.0, 2), _line(45.5, 1), _line(0.0, 1, is_gift=True)]
    assert line_total(items[0]) == 200.0
    assert cart_subtotal(items) == 245.5


def test_line_key_distinguishes_weights():
    product_id = uuid.uuid4()
    a = _line(80.0, 1, product_id=product_id, unit="gm", grams=100)
    b = _line(200.0, 1, product_id=product_id, unit="gm", grams=250)
    c = _line(80.0, 3, product_id=product_id, unit="gm", grams=100)
    assert line_key(a) != line_key(b)
    assert line_key(a) == line_key(c)
