# bakery/routers/cart.py
import uuid
from contextlib import contextmanager

from fastapi import APIRouter, Cookie, Depends, Header, Response
from sqlmodel import Session

from bakery.core.auth import get_app_settings, get_current_user
from bakery.core.config import Settings
from bakery.core.errors import BakeryError
from bakery.database import get_session
from bakery.models.cart import Cart
from bakery.models.user import User
from bakery.repositories.cart_repo import CartRepository
from bakery.repositories.coupon_repo import CouponRepository
from bakery.repositories.product_repo import ProductRepository
from bakery.schemas.cart import (
    CartItemCreate,
    CartItemUpdate,
    CartRead,
    CouponApply,
    CouponOfferRead,
)
from bakery.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

CART_HEADER = "x-cart-id"


def get_cart_service(settings: Settings = Depends(get_app_settings)) -> CartService:
    return CartService(
        CartRepository(),
        ProductRepository(),
        CouponRepository(),
        currency=settings.CART_CURRENCY,
        stacking=settings.COUPON_STACKING,
        max_attempts=settings.RECALC_MAX_ATTEMPTS,
    )


def get_cart_token(
    x_cart_id: str | None = Header(default=None),
    cart_id: str | None = Cookie(default=None),
) -> uuid.UUID | None:
    """
    Guest cart token from the x-cart-id header, falling back to the
    cart_id cookie. Garbage tokens are treated as absent.
    """
    raw = x_cart_id or cart_id
    if not raw:
        return None
    try:
        return uuid.UUID(raw.strip())
    except ValueError:
        return None


def get_cart(
    session: Session = Depends(get_session),
    cart_token: uuid.UUID | None = Depends(get_cart_token),
    current_user: User | None = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> Cart:
    """
    Resolve (and if needed create, claim or merge) the cart this request
    belongs to.
    """
    user_id = current_user.id if current_user else None
    return service.resolve_cart(session, cart_token, user_id)


def _respond(response: Response, view: CartRead) -> CartRead:
    response.headers[CART_HEADER] = str(view.id)
    return view


@contextmanager
def _cart_id_on_error(cart: Cart):
    """Keep the x-cart-id header on error responses too."""
    cart_id = str(cart.id)
    try:
        yield
    except BakeryError as exc:
        exc.headers = {**(exc.headers or {}), CART_HEADER: cart_id}
        raise


@router.get("", response_model=CartRead)
def get_my_cart(
    response: Response,
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Get the current cart (guest or signed-in), freshly recalculated.

    The resolved cart id is echoed in the x-cart-id response header so
    guest clients can keep it.
    """
    return _respond(response, service.recalculate(session, cart.id))


@router.get("/coupons", response_model=list[CouponOfferRead])
def list_available_coupons(
    session: Session = Depends(get_session),
    service: CartService = Depends(get_cart_service),
):
    """
    Active automatic offers, cheapest threshold first.
    """
    return service.list_offers(session)


@router.post("/items", response_model=CartRead)
def add_item(
    payload: CartItemCreate,
    response: Response,
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Add a product (by piece, weight or named variant) to the cart.
    """
    with _cart_id_on_error(cart):
        return _respond(response, service.add_item(session, cart, payload))


@router.patch("/items/{item_id}", response_model=CartRead)
def update_item(
    item_id: uuid.UUID,
    payload: CartItemUpdate,
    response: Response,
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Update quantity and/or unit selection of a cart line.
    """
    with _cart_id_on_error(cart):
        return _respond(response, service.update_item(session, cart, item_id, payload))


@router.delete("/items/{item_id}", response_model=CartRead)
def remove_item(
    item_id: uuid.UUID,
    response: Response,
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Remove a line from the cart.
    """
    with _cart_id_on_error(cart):
        return _respond(response, service.remove_item(session, cart, item_id))


@router.delete("", response_model=CartRead)
def clear_cart(
    response: Response,
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Remove every line and the manual coupon.
    """
    with _cart_id_on_error(cart):
        return _respond(response, service.clear_cart(session, cart))


@router.post("/apply-coupon", response_model=CartRead)
def apply_coupon(
    payload: CouponApply,
    response: Response,
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Apply a manual coupon code. 400 if the code is unknown, inactive or
    the cart is below its minimum amount.
    """
    with _cart_id_on_error(cart):
        return _respond(response, service.apply_coupon(session, cart, payload.code))


@router.delete("/coupon", response_model=CartRead)
def remove_coupon(
    response: Response,
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Drop the manual coupon; automatic offers are re-evaluated.
    """
    with _cart_id_on_error(cart):
        return _respond(response, service.remove_coupon(session, cart))
