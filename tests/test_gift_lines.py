import uuid

from bakery.models.cart import CartItem
from bakery.services.coupon_engine import GiftGrant
from bakery.services.gift_lines import plan_gift_lines

CART_ID = uuid.uuid4()


def _gift(product_id, qty=1):
    return CartItem(
        id=uuid.uuid4(),
        cart_id=CART_ID,
        product_id=product_id,
        quantity=qty,
        unit_price=0.0,
        is_gift=True,
    )


def test_inserts_missing_gift():
    product_id = uuid.uuid4()
    plan = plan_gift_lines(CART_ID, [], GiftGrant(product_id, 1), product_name="Choco Truffle")

    assert len(plan.insert) == 1
    line = plan.insert[0]
    assert line.product_id == product_id
    assert line.is_gift is True
    assert line.unit_price == 0.0
    assert line.quantity == 1
    assert line.product_name == "Choco Truffle"
    assert not plan.update and not plan.delete


def test_matching_gift_yields_empty_plan():
    product_id = uuid.uuid4()
    plan = plan_gift_lines(CART_ID, [_gift(product_id)], GiftGrant(product_id, 1))
    assert plan.is_empty


def test_quantity_drift_is_updated():
    product_id = uuid.uuid4()
    line = _gift(product_id, qty=3)
    plan = plan_gift_lines(CART_ID, [line], GiftGrant(product_id, 1))
    assert plan.update == [(line, 1)]
    assert not plan.insert and not plan.delete


def test_no_grant_deletes_all_gifts():
    lines = [_gift(uuid.uuid4()), _gift(uuid.uuid4())]
    plan = plan_gift_lines(CART_ID, lines, None)
    assert plan.delete == lines
    assert not plan.insert


def test_other_and_duplicate_gifts_are_removed():
    product_id = uuid.uuid4()
    keep = _gift(product_id)
    duplicate = _gift(product_id)
    stale = _gift(uuid.uuid4())
    plan = plan_gift_lines(CART_ID, [keep, duplicate, stale], GiftGrant(product_id, 1))
    assert plan.delete == [duplicate, stale]
    assert not plan.insert and not plan.update
