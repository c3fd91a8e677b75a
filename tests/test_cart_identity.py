import uuid

import pytest

from bakery.models.cart import Cart, CartItem
from bakery.repositories.cart_repo import CartRepository
from bakery.repositories.coupon_repo import CouponRepository
from bakery.repositories.product_repo import ProductRepository
from bakery.schemas.cart import CartItemCreate
from bakery.services.cart_identity import CartResolver
from bakery.services.cart_service import CartService


@pytest.fixture
def repo():
    return CartRepository()


@pytest.fixture
def resolver(repo):
    return CartResolver(repo)


@pytest.fixture
def service():
    return CartService(CartRepository(), ProductRepository(), CouponRepository())


def _lines(repo, session, cart_id):
    return repo.list_items(session, cart_id)


def test_guest_gets_new_anonymous_cart(db_session, resolver):
    resolved = resolver.resolve(db_session, None, None)
    assert resolved.cart.user_id is None
    assert resolved.cart.status == "active"
    assert resolved.merged_from is None


def test_guest_token_returns_same_cart(db_session, resolver):
    cart = resolver.resolve(db_session, None, None).cart
    again = resolver.resolve(db_session, cart.id, None).cart
    assert again.id == cart.id


def test_unknown_token_gets_fresh_cart(db_session, resolver):
    resolved = resolver.resolve(db_session, uuid.uuid4(), None)
    assert resolved.cart.user_id is None


def test_signed_in_user_gets_owned_cart(db_session, resolver, customer):
    first = resolver.resolve(db_session, None, customer.id).cart
    assert first.user_id == customer.id

    second = resolver.resolve(db_session, None, customer.id).cart
    assert second.id == first.id


def test_login_claims_anonymous_cart(db_session, resolver, customer):
    guest = resolver.resolve(db_session, None, None).cart

    claimed = resolver.resolve(db_session, guest.id, customer.id).cart
    assert claimed.id == guest.id
    assert claimed.user_id == customer.id


def test_foreign_cart_token_is_ignored(db_session, resolver, customer, admin):
    theirs = resolver.resolve(db_session, None, admin.id).cart

    mine = resolver.resolve(db_session, theirs.id, customer.id).cart
    assert mine.id != theirs.id
    assert mine.user_id == customer.id

    # an anonymous request holding an owned cart's token gets its own cart
    anon = resolver.resolve(db_session, theirs.id, None).cart
    assert anon.id != theirs.id
    assert anon.user_id is None


def test_login_merges_guest_into_user_cart(
    db_session, service, repo, customer, make_product
):
    croissant = make_product("Butter Croissant", price_per_pc=100.0)
    muffin = make_product("Blueberry Muffin", price_per_pc=60.0)

    user_cart = service.resolve_cart(db_session, None, customer.id)
    service.add_item(db_session, user_cart, CartItemCreate(product_id=croissant.id, quantity=2))

    guest = service.resolve_cart(db_session, None, None)
    service.add_item(db_session, guest, CartItemCreate(product_id=croissant.id, quantity=3))
    service.add_item(db_session, guest, CartItemCreate(product_id=muffin.id, quantity=1))

    merged = service.resolve_cart(db_session, guest.id, customer.id)
    assert merged.id == user_cart.id

    view = service.recalculate(db_session, merged.id)
    quantities = {it.product_id: it.quantity for it in view.items}
    assert quantities == {croissant.id: 5, muffin.id: 1}
    assert view.subtotal == 560.0

    source = repo.get_cart(db_session, guest.id)
    assert source.status == "merged"
    assert source.subtotal == 0.0
    assert _lines(repo, db_session, guest.id) == []


def test_merge_drops_guest_gift_lines(db_session, resolver, repo, customer, make_product):
    gift_product = make_product("Choco Truffle")
    user_cart = resolver.resolve(db_session, None, customer.id).cart
    guest = resolver.resolve(db_session, None, None).cart
    repo.create_item(
        db_session,
        CartItem(
            cart_id=guest.id,
            product_id=gift_product.id,
            quantity=1,
            unit_price=0.0,
            is_gift=True,
        ),
    )

    resolver.merge(db_session, guest.id, user_cart.id)

    assert _lines(repo, db_session, guest.id) == []
    assert _lines(repo, db_session, user_cart.id) == []


def test_rerunning_merge_converges(db_session, resolver, repo, customer, make_product):
    product = make_product(price_per_pc=100.0)
    user_cart = resolver.resolve(db_session, None, customer.id).cart
    guest = resolver.resolve(db_session, None, None).cart
    repo.create_item(
        db_session,
        CartItem(cart_id=user_cart.id, product_id=product.id, quantity=2, unit_price=100.0),
    )
    repo.create_item(
        db_session,
        CartItem(cart_id=guest.id, product_id=product.id, quantity=3, unit_price=100.0),
    )

    resolver.merge(db_session, guest.id, user_cart.id)
    resolver.merge(db_session, guest.id, user_cart.id)

    lines = _lines(repo, db_session, user_cart.id)
    assert len(lines) == 1
    assert lines[0].quantity == 5
    assert repo.get_cart(db_session, guest.id).status == "merged"


def test_merged_cart_token_is_not_reused(db_session, service, customer, make_product):
    product = make_product(price_per_pc=100.0)
    service.resolve_cart(db_session, None, customer.id)
    guest = service.resolve_cart(db_session, None, None)
    service.add_item(db_session, guest, CartItemCreate(product_id=product.id))
    service.resolve_cart(db_session, guest.id, customer.id)

    fresh = service.resolve_cart(db_session, guest.id, None)
    assert fresh.id != guest.id
    assert db_session.get(Cart, guest.id).status == "merged"
