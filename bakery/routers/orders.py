# bakery/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bakery.core.auth import get_app_settings, require_admin, require_auth
from bakery.core.config import Settings
from bakery.database import get_session
from bakery.models.user import User
from bakery.repositories.cart_repo import CartRepository
from bakery.repositories.coupon_repo import CouponRepository
from bakery.repositories.order_repo import OrderRepository
from bakery.routers.cart import get_cart_service
from bakery.schemas.order import (
    OrderCreate,
    OrderRead,
    OrderStatus,
    OrderStatusUpdate,
    OrderWithItemsRead,
)
from bakery.services.cart_service import CartService
from bakery.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


def get_order_service(
    settings: Settings = Depends(get_app_settings),
    cart_service: CartService = Depends(get_cart_service),
) -> OrderService:
    return OrderService(
        OrderRepository(),
        CartRepository(),
        CouponRepository(),
        cart_service,
        delivery_fee=settings.DELIVERY_FEE,
    )


# -------- User-facing endpoints --------


@router.post(
    "/checkout",
    response_model=OrderWithItemsRead,
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    service: OrderService = Depends(get_order_service),
):
    """
    Create an order from the current user's cart.
    """
    return service.place_order(session, current_user.id, payload)


@router.get("/me", response_model=list[OrderRead])
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    service: OrderService = Depends(get_order_service),
    skip: int = 0,
    limit: int = 50,
):
    """
    List the authenticated user's orders (without items).
    """
    return service.list_user_orders(session, current_user.id, skip, limit)


@router.get("/me/{order_id}", response_model=OrderWithItemsRead)
def get_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    service: OrderService = Depends(get_order_service),
):
    """
    Get a single order (with items) belonging to the current user.
    """
    return service.get_user_order(session, current_user.id, order_id)


@router.post("/me/{order_id}/cancel", response_model=OrderRead)
def cancel_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    service: OrderService = Depends(get_order_service),
):
    """
    Cancel one of the current user's orders (not once shipped).
    """
    return service.cancel_user_order(session, current_user.id, order_id)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[OrderRead],
    dependencies=[Depends(require_admin)],
)
def list_all_orders(
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
    skip: int = 0,
    limit: int = 50,
    status: OrderStatus | None = None,
):
    """
    List all orders, newest first (admin only). Optional `status` filter.
    """
    return service.list_all_orders(session, skip, limit, status)


@router.get(
    "/{order_id}",
    response_model=OrderWithItemsRead,
    dependencies=[Depends(require_admin)],
)
def get_order_admin(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Get any order with items (admin only).
    """
    return service.get_order_admin(session, order_id)


@router.patch(
    "/{order_id}/status",
    response_model=OrderRead,
    dependencies=[Depends(require_admin)],
)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Update order / payment status (admin only).

      pending    -> processing, cancelled

      processing -> shipped, cancelled

      shipped    -> delivered
    """
    return service.update_status(session, order_id, payload)
