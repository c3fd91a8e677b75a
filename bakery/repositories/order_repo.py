# bakery/repositories/order_repo.py
import uuid

from sqlalchemy import update
from sqlmodel import Session, select

from bakery.models.order import Order, OrderItem


class OrderRepository:
    """
    Data access layer for orders and order_items.

    Nothing here commits: checkout writes the order, its lines and the
    coupon usage bump together, so the service owns the transaction.
    """

    # ---- Reads ----

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id, populate_existing=True)

    def get_owned(
        self, session: Session, order_id: uuid.UUID, user_id: uuid.UUID
    ) -> Order | None:
        stmt = select(Order).where(Order.id == order_id, Order.user_id == user_id)
        return session.exec(stmt).first()

    def list_orders(
        self,
        session: Session,
        user_id: uuid.UUID | None = None,
        status: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        """Newest first; optionally narrowed to one customer and/or status."""
        stmt = select(Order)
        if user_id is not None:
            stmt = stmt.where(Order.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        stmt = stmt.order_by(Order.created_at.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def has_purchased(
        self, session: Session, user_id: uuid.UUID, product_id: uuid.UUID
    ) -> bool:
        """Whether the customer has a non-cancelled order with a paid line of the product."""
        stmt = (
            select(OrderItem.id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(
                Order.user_id == user_id,
                Order.status != "cancelled",
                OrderItem.product_id == product_id,
                OrderItem.is_gift == False,  # noqa: E712
            )
            .limit(1)
        )
        return session.exec(stmt).first() is not None

    def list_lines(self, session: Session, order_id: uuid.UUID) -> list[OrderItem]:
        """Paid lines first, gifts last."""
        stmt = (
            select(OrderItem)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.is_gift, OrderItem.product_name)
        )
        return list(session.exec(stmt).all())

    # ---- Staged writes ----

    def stage_order(
        self,
        session: Session,
        order: Order,
        lines: list[OrderItem],
    ) -> Order:
        """Insert the order and its lines in one flush."""
        session.add(order)
        session.add_all(lines)
        session.flush()
        return order

    def stage_transition(
        self,
        session: Session,
        order_id: uuid.UUID,
        from_status: str,
        to_status: str,
    ) -> bool:
        """
        Move an order from `from_status` to `to_status`. False when the
        order is no longer in `from_status`.
        """
        result = session.exec(
            update(Order)
            .where(Order.id == order_id, Order.status == from_status)
            .values(status=to_status)
        )
        return result.rowcount == 1

    def stage_payment_status(
        self, session: Session, order_id: uuid.UUID, payment_status: str
    ) -> None:
        session.exec(
            update(Order)
            .where(Order.id == order_id)
            .values(payment_status=payment_status)
        )
