# bakery/services/order_service.py
import logging
import uuid

from sqlmodel import Session

from bakery.core.errors import EmptyCart, InvalidOrderTransition, OrderNotFound
from bakery.database import storage_guard
from bakery.models.order import Order, OrderItem
from bakery.repositories.cart_repo import CartRepository
from bakery.repositories.coupon_repo import CouponRepository
from bakery.repositories.order_repo import OrderRepository
from bakery.schemas.cart import CartRead
from bakery.schemas.order import (
    OrderCreate,
    OrderItemRead,
    OrderRead,
    OrderStatusUpdate,
    OrderWithItemsRead,
)
from bakery.services.cart_service import CartService
from bakery.services.pricing import round_money

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}

# customers may cancel until the order leaves the bakery
CUSTOMER_CANCELLABLE = {"pending", "processing"}


class OrderService:
    """
    Checkout and order lifecycle.

    Checkout always prices from a freshly recalculated cart, so the order
    carries exactly the totals, discounts and gift lines the customer saw.
    Status changes are conditional on the status they were checked
    against; a concurrent change surfaces as InvalidOrderTransition.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        coupon_repo: CouponRepository,
        cart_service: CartService,
        delivery_fee: float = 0.0,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.coupon_repo = coupon_repo
        self.cart_service = cart_service
        self.delivery_fee = delivery_fee

    # -------- Checkout --------

    def place_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: OrderCreate,
    ) -> OrderWithItemsRead:
        """
        Turn the user's active cart into a pending order, then empty the
        cart. The manual coupon's used_count is bumped in the same
        transaction as the order insert.
        """
        cart = self.cart_repo.latest_active_for_user(session, user_id)
        if cart is None:
            raise EmptyCart()

        view = self.cart_service.recalculate(session, cart.id)
        if not any(not it.is_gift for it in view.items):
            raise EmptyCart()

        order = self._order_from_cart(user_id, payload, view)
        lines = [
            OrderItem(
                order_id=order.id,
                product_id=it.product_id,
                product_name=it.product_name,
                unit=it.unit,
                grams=it.grams,
                variant_label=it.variant_label,
                quantity=it.quantity,
                unit_price=it.unit_price,
                is_gift=it.is_gift,
            )
            for it in view.items
        ]

        with storage_guard(session, "place order"):
            self.order_repo.stage_order(session, order, lines)
            if view.coupon_code:
                self.coupon_repo.stage_increment_usage(session, view.coupon_code)
            session.commit()

        logger.info(
            "Order %s placed from cart %s (grand_total=%s)",
            order.id,
            cart.id,
            order.grand_total,
        )
        self.cart_service.clear_cart(session, cart)

        return self._with_lines(session, order.id)

    def _order_from_cart(
        self, user_id: uuid.UUID, payload: OrderCreate, view: CartRead
    ) -> Order:
        return Order(
            user_id=user_id,
            receiver_name=payload.receiver_name,
            phone_number=payload.phone_number,
            note=payload.note,
            full_address=payload.full_address,
            city=payload.city,
            pincode=payload.pincode,
            payment_method=payload.payment_method,
            status="pending",
            payment_status="pending",
            subtotal=view.subtotal,
            discount_amount=view.discount_total,
            coupon_code=view.coupon_code,
            auto_coupon_code=view.auto_coupon_code,
            delivery_fee=self.delivery_fee,
            grand_total=round_money(view.grand_total + self.delivery_fee),
        )

    # -------- Customer --------

    def list_user_orders(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        return self.order_repo.list_orders(session, user_id=user_id, skip=skip, limit=limit)

    def get_user_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> OrderWithItemsRead:
        """Someone else's order is reported as missing."""
        if self.order_repo.get_owned(session, order_id, user_id) is None:
            raise OrderNotFound()
        return self._with_lines(session, order_id)

    def cancel_user_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> Order:
        order = self.order_repo.get_owned(session, order_id, user_id)
        if order is None:
            raise OrderNotFound()
        if order.status not in CUSTOMER_CANCELLABLE:
            raise InvalidOrderTransition(f"Cannot cancel order that is {order.status}")

        self._transition(session, order, "cancelled")
        return self.order_repo.get_by_id(session, order_id)

    # -------- Admin --------

    def list_all_orders(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        status: str | None = None,
    ) -> list[Order]:
        return self.order_repo.list_orders(session, status=status, skip=skip, limit=limit)

    def get_order_admin(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> OrderWithItemsRead:
        if self.order_repo.get_by_id(session, order_id) is None:
            raise OrderNotFound()
        return self._with_lines(session, order_id)

    def update_status(
        self,
        session: Session,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> Order:
        """
        Admin status update:

          pending    -> processing, cancelled
          processing -> shipped, cancelled
          shipped    -> delivered

        payment_status (pending | paid | refunded) can be set on its own.
        """
        if payload.status is None and payload.payment_status is None:
            raise InvalidOrderTransition("Nothing to update")

        order = self.order_repo.get_by_id(session, order_id)
        if order is None:
            raise OrderNotFound()

        if payload.status is not None and payload.status != order.status:
            if payload.status not in ALLOWED_TRANSITIONS.get(order.status, set()):
                raise InvalidOrderTransition(
                    f"Invalid status transition: {order.status} -> {payload.status}"
                )
            self._transition(session, order, payload.status, commit=False)

        if payload.payment_status is not None:
            self.order_repo.stage_payment_status(session, order_id, payload.payment_status)

        with storage_guard(session, "update order"):
            session.commit()
        return self.order_repo.get_by_id(session, order_id)

    # -------- Helpers --------

    def _transition(
        self,
        session: Session,
        order: Order,
        to_status: str,
        commit: bool = True,
    ) -> None:
        from_status = order.status
        with storage_guard(session, "update order status"):
            if not self.order_repo.stage_transition(session, order.id, from_status, to_status):
                session.rollback()
                raise InvalidOrderTransition("Order status changed, please reload")
            if commit:
                session.commit()
        logger.info("Order %s: %s -> %s", order.id, from_status, to_status)

    def _with_lines(self, session: Session, order_id: uuid.UUID) -> OrderWithItemsRead:
        order = self.order_repo.get_by_id(session, order_id)
        lines = [
            OrderItemRead(
                id=it.id,
                order_id=it.order_id,
                product_id=it.product_id,
                product_name=it.product_name,
                unit=it.unit,
                grams=it.grams,
                variant_label=it.variant_label,
                quantity=it.quantity,
                unit_price=it.unit_price,
                line_total=round_money(it.quantity * it.unit_price),
                is_gift=it.is_gift,
            )
            for it in self.order_repo.list_lines(session, order_id)
        ]
        return OrderWithItemsRead(
            **OrderRead.model_validate(order, from_attributes=True).model_dump(),
            items=lines,
        )
