import uuid

import pytest

from bakery.core.errors import CartConflict, GiftLineLocked, InvalidCoupon, ItemNotFound
from bakery.models.cart import Cart
from bakery.repositories.cart_repo import CartRepository
from bakery.repositories.coupon_repo import CouponRepository
from bakery.repositories.product_repo import ProductRepository
from bakery.schemas.cart import CartItemCreate, CartItemUpdate
from bakery.services.cart_service import CartService


@pytest.fixture
def service():
    return CartService(CartRepository(), ProductRepository(), CouponRepository())


@pytest.fixture
def cart(db_session, service):
    return service.resolve_cart(db_session, None, None)


def _add(service, session, cart, product, **fields):
    return service.add_item(session, cart, CartItemCreate(product_id=product.id, **fields))


def _paid(view):
    return [it for it in view.items if not it.is_gift]


def _gifts(view):
    return [it for it in view.items if it.is_gift]


def test_totals_follow_lines(db_session, service, cart, make_product):
    croissant = make_product("Butter Croissant", price_per_pc=120.0)
    view = _add(service, db_session, cart, croissant, quantity=3)

    assert view.subtotal == 360.0
    assert view.discount_total == 0.0
    assert view.grand_total == 360.0
    assert view.items[0].line_total == 360.0


def test_same_selection_sums_quantity(db_session, service, cart, make_product):
    product = make_product("Soan Papdi", price_per_pc=None, price_per_100g=80.0)
    _add(service, db_session, cart, product, unit="gm", grams=250)
    view = _add(service, db_session, cart, product, unit="gm", grams=250, quantity=2)

    assert len(view.items) == 1
    assert view.items[0].quantity == 3
    assert view.items[0].unit_price == 200.0
    assert view.subtotal == 600.0


def test_different_weights_are_separate_lines(db_session, service, cart, make_product):
    product = make_product("Soan Papdi", price_per_pc=None, price_per_100g=80.0)
    _add(service, db_session, cart, product, unit="gm", grams=250)
    view = _add(service, db_session, cart, product, unit="gm", grams=500)
    assert sorted(it.unit_price for it in view.items) == [200.0, 400.0]


def test_variant_line(db_session, service, cart, make_product, make_option):
    product = make_product("Dry Fruit Box")
    make_option(product, "500g box", 650.0, grams=500)
    view = _add(service, db_session, cart, product, unit="variant", variant_label="500g box")
    line = view.items[0]
    assert line.unit_price == 650.0
    assert line.grams == 500
    assert line.variant_label == "500g box"


def test_recalculate_is_idempotent(db_session, service, cart, make_product, make_coupon):
    make_coupon("AUTO50", type="fixed", value=50, is_auto=True, auto_threshold=100)
    _add(service, db_session, cart, make_product(price_per_pc=150.0))

    first = service.recalculate(db_session, cart.id)
    version = CartRepository().get_cart(db_session, cart.id).version
    second = service.recalculate(db_session, cart.id)

    assert second == first
    assert CartRepository().get_cart(db_session, cart.id).version == version


def test_auto_gift_added_and_removed(db_session, service, cart, make_product, make_coupon):
    cake = make_product("Black Forest Cake", price_per_pc=600.0)
    truffle = make_product("Choco Truffle", price_per_pc=80.0)
    make_coupon(
        "CAKEGIFT",
        type="fixed",
        value=0,
        is_auto=True,
        auto_threshold=1000,
        free_gift_product_id=truffle.id,
        free_gift_qty=1,
    )

    view = _add(service, db_session, cart, cake, quantity=2)
    assert view.subtotal == 1200.0
    assert view.free_gift_applied is True
    assert view.auto_coupon_code == "CAKEGIFT"
    gifts = _gifts(view)
    assert len(gifts) == 1
    assert gifts[0].product_id == truffle.id
    assert gifts[0].unit_price == 0.0
    assert gifts[0].product_name == "Choco Truffle"
    # gift never counts toward the subtotal
    assert view.subtotal == sum(it.line_total for it in _paid(view))

    # recalculating again does not duplicate the gift
    again = service.recalculate(db_session, cart.id)
    assert len(_gifts(again)) == 1

    line = _paid(view)[0]
    view = service.update_item(db_session, cart, line.id, CartItemUpdate(quantity=1))
    assert view.subtotal == 600.0
    assert view.free_gift_applied is False
    assert view.auto_coupon_code is None
    assert _gifts(view) == []


def test_gift_lines_cannot_be_edited(db_session, service, cart, make_product, make_coupon):
    truffle = make_product("Choco Truffle", price_per_pc=80.0)
    make_coupon("GIFT", is_auto=True, free_gift_product_id=truffle.id, free_gift_qty=1)
    view = _add(service, db_session, cart, make_product("Rusk", price_per_pc=50.0))

    gift = _gifts(view)[0]
    with pytest.raises(GiftLineLocked):
        service.update_item(db_session, cart, gift.id, CartItemUpdate(quantity=5))


def test_removed_gift_comes_back(db_session, service, cart, make_product, make_coupon):
    truffle = make_product("Choco Truffle", price_per_pc=80.0)
    make_coupon("GIFT", is_auto=True, free_gift_product_id=truffle.id, free_gift_qty=1)
    view = _add(service, db_session, cart, make_product("Rusk", price_per_pc=50.0))

    view = service.remove_item(db_session, cart, _gifts(view)[0].id)
    assert len(_gifts(view)) == 1


def test_manual_coupon_apply_and_remove(db_session, service, cart, make_product, make_coupon):
    make_coupon("SAVE10", type="percent", value=10)
    _add(service, db_session, cart, make_product(price_per_pc=500.0), quantity=2)

    view = service.apply_coupon(db_session, cart, " save10 ")
    assert view.coupon_code == "SAVE10"
    assert view.coupon_discount == 100.0
    assert view.grand_total == 900.0

    view = service.remove_coupon(db_session, cart)
    assert view.coupon_code is None
    assert view.grand_total == 1000.0


def test_invalid_coupon_is_cleared(db_session, service, cart, make_product, make_coupon):
    make_coupon("FLAT50", type="fixed", value=50, min_cart_amount=500)
    _add(service, db_session, cart, make_product(price_per_pc=100.0))

    with pytest.raises(InvalidCoupon):
        service.apply_coupon(db_session, cart, "FLAT50")

    view = service.recalculate(db_session, cart.id)
    assert view.coupon_code is None
    assert view.discount_total == 0.0


def test_coupon_dropped_when_cart_shrinks(db_session, service, cart, make_product, make_coupon):
    make_coupon("FLAT50", type="fixed", value=50, min_cart_amount=500)
    view = _add(service, db_session, cart, make_product(price_per_pc=300.0), quantity=2)
    view = service.apply_coupon(db_session, cart, "FLAT50")
    assert view.grand_total == 550.0

    view = service.update_item(db_session, cart, view.items[0].id, CartItemUpdate(quantity=1))
    assert view.coupon_code is None
    assert view.grand_total == 300.0


def test_grand_total_never_negative(db_session, service, cart, make_product, make_coupon):
    make_coupon("HUGE", type="fixed", value=1000)
    make_coupon("AUTO", type="fixed", value=1000, is_auto=True)
    _add(service, db_session, cart, make_product(price_per_pc=100.0))

    view = service.apply_coupon(db_session, cart, "HUGE")
    assert view.grand_total == 0.0


def test_unit_change_reprices_line(db_session, service, cart, make_product):
    product = make_product("Kaju Katli", price_per_pc=30.0, price_per_100g=120.0)
    view = _add(service, db_session, cart, product)
    line = view.items[0]

    view = service.update_item(
        db_session, cart, line.id, CartItemUpdate(unit="gm", grams=500)
    )
    line = view.items[0]
    assert line.unit == "gm"
    assert line.grams == 500
    assert line.unit_price == 600.0


def test_weight_change_onto_existing_line_folds_it(db_session, service, cart, make_product):
    product = make_product("Soan Papdi", price_per_pc=None, price_per_100g=80.0)
    _add(service, db_session, cart, product, unit="gm", grams=250)
    view = _add(service, db_session, cart, product, unit="gm", grams=500)
    heavy = next(it for it in view.items if it.grams == 500)

    view = service.update_item(db_session, cart, heavy.id, CartItemUpdate(grams=250))

    assert len(view.items) == 1
    assert view.items[0].grams == 250
    assert view.items[0].quantity == 2
    assert view.subtotal == 400.0


def test_folded_line_uses_requested_quantity(db_session, service, cart, make_product):
    product = make_product("Kaju Katli", price_per_pc=30.0, price_per_100g=120.0)
    _add(service, db_session, cart, product, quantity=2)
    view = _add(service, db_session, cart, product, unit="gm", grams=250)
    weighed = next(it for it in view.items if it.unit == "gm")

    view = service.update_item(
        db_session, cart, weighed.id, CartItemUpdate(unit="pc", quantity=3)
    )

    assert len(view.items) == 1
    assert view.items[0].unit == "pc"
    assert view.items[0].quantity == 5
    assert view.subtotal == 150.0


def test_unknown_line(db_session, service, cart):
    with pytest.raises(ItemNotFound):
        service.remove_item(db_session, cart, uuid.uuid4())


def test_clear_cart(db_session, service, cart, make_product, make_coupon):
    make_coupon("SAVE10", type="percent", value=10)
    _add(service, db_session, cart, make_product(price_per_pc=200.0))
    service.apply_coupon(db_session, cart, "SAVE10")

    view = service.clear_cart(db_session, cart)
    assert view.items == []
    assert view.subtotal == 0.0
    assert view.grand_total == 0.0
    assert view.coupon_code is None


def _make_dirty(session, cart_id):
    session.get(Cart, cart_id).subtotal = 0.0
    session.commit()


def test_stale_version_is_retried(db_session, service, cart, make_product, monkeypatch):
    _add(service, db_session, cart, make_product(price_per_pc=100.0))
    _make_dirty(db_session, cart.id)

    repo = service.cart_repo
    real_stage = repo.stage_totals
    calls = []

    def lose_first_race(session, cart_id, expected_version, values):
        calls.append(expected_version)
        if len(calls) == 1:
            return False
        return real_stage(session, cart_id, expected_version, values)

    monkeypatch.setattr(repo, "stage_totals", lose_first_race)
    view = service.recalculate(db_session, cart.id)

    assert len(calls) == 2
    assert view.subtotal == 100.0


def test_conflict_after_max_attempts(db_session, make_product, monkeypatch):
    service = CartService(
        CartRepository(), ProductRepository(), CouponRepository(), max_attempts=3
    )
    cart = service.resolve_cart(db_session, None, None)
    _add(service, db_session, cart, make_product(price_per_pc=100.0))
    _make_dirty(db_session, cart.id)

    calls = []

    def always_stale(session, cart_id, expected_version, values):
        calls.append(expected_version)
        return False

    monkeypatch.setattr(service.cart_repo, "stage_totals", always_stale)
    with pytest.raises(CartConflict):
        service.recalculate(db_session, cart.id)
    assert len(calls) == 3
