import uuid

from bakery.models.coupon import Coupon
from bakery.services.coupon_engine import compute_discount, evaluate


def _coupon(code, **fields):
    return Coupon(id=uuid.uuid4(), code=code, **fields)


def test_manual_percent_coupon():
    catalog = [_coupon("SAVE10", type="percent", value=10)]
    result = evaluate(1000.0, "save10", catalog)
    assert result.manual.code == "SAVE10"
    assert result.coupon_discount == 100.0
    assert result.auto is None
    assert result.discount_total == 100.0


def test_manual_below_minimum_is_rejected():
    catalog = [_coupon("FLAT50", type="fixed", value=50, min_cart_amount=500)]
    result = evaluate(400.0, "FLAT50", catalog)
    assert result.manual is None
    assert result.discount_total == 0.0


def test_manual_inactive_or_unknown_is_rejected():
    catalog = [_coupon("OLD", type="fixed", value=50, is_active=False)]
    assert evaluate(1000.0, "OLD", catalog).manual is None
    assert evaluate(1000.0, "NOPE", catalog).manual is None


def test_fixed_discount_never_exceeds_subtotal():
    coupon = _coupon("BIG", type="fixed", value=500)
    assert compute_discount(coupon, 300.0) == 300.0
    assert compute_discount(coupon, 0.0) == 0.0


def test_best_auto_wins():
    catalog = [
        _coupon("AUTO5", type="percent", value=5, is_auto=True, auto_threshold=500),
        _coupon("AUTO100", type="fixed", value=100, is_auto=True, auto_threshold=1000),
        _coupon("AUTO200", type="fixed", value=200, is_auto=True, auto_threshold=5000),
    ]
    result = evaluate(1200.0, None, catalog)
    assert result.auto.code == "AUTO100"
    assert result.auto_discount == 100.0


def test_auto_tie_goes_to_first_in_catalog():
    catalog = [
        _coupon("FIRST", type="fixed", value=100, is_auto=True),
        _coupon("SECOND", type="percent", value=10, is_auto=True),
    ]
    assert evaluate(1000.0, None, catalog).auto.code == "FIRST"
    assert evaluate(1000.0, None, list(reversed(catalog))).auto.code == "SECOND"


def test_auto_needs_a_positive_subtotal():
    catalog = [_coupon("FREEBIE", type="fixed", value=0, is_auto=True, auto_threshold=0)]
    assert evaluate(0.0, None, catalog).auto is None


def test_manual_and_auto_stack():
    catalog = [
        _coupon("SAVE10", type="percent", value=10),
        _coupon("AUTO50", type="fixed", value=50, is_auto=True, auto_threshold=500),
    ]
    result = evaluate(1000.0, "SAVE10", catalog)
    assert result.coupon_discount == 100.0
    assert result.auto_discount == 50.0
    assert result.discount_total == 150.0


def test_stacking_disabled_suppresses_auto():
    catalog = [
        _coupon("SAVE10", type="percent", value=10),
        _coupon("AUTO50", type="fixed", value=50, is_auto=True, auto_threshold=500),
    ]
    result = evaluate(1000.0, "SAVE10", catalog, stacking=False)
    assert result.auto is None
    assert result.discount_total == 100.0

    # without a valid manual code the auto offer still applies
    result = evaluate(1000.0, "NOPE", catalog, stacking=False)
    assert result.auto.code == "AUTO50"


def test_manual_code_is_not_also_counted_as_auto():
    catalog = [_coupon("WELCOME", type="fixed", value=50, is_auto=True)]
    result = evaluate(1000.0, "WELCOME", catalog)
    assert result.manual.code == "WELCOME"
    assert result.auto is None


def test_gift_only_from_auto_without_manual():
    gift_product = uuid.uuid4()
    catalog = [
        _coupon("SAVE10", type="percent", value=10),
        _coupon(
            "CAKEGIFT",
            type="fixed",
            value=0,
            is_auto=True,
            auto_threshold=1000,
            free_gift_product_id=gift_product,
            free_gift_qty=2,
        ),
    ]
    gift = evaluate(1200.0, None, catalog).gift
    assert gift.product_id == gift_product
    assert gift.quantity == 2

    assert evaluate(1200.0, "SAVE10", catalog).gift is None
    assert evaluate(900.0, None, catalog).gift is None
