# bakery/repositories/cart_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, update
from sqlmodel import Session, select

from bakery.database import storage_guard
from bakery.models.cart import Cart, CartItem


def _eq_or_null(column, value):
    return column.is_(None) if value is None else column == value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CartRepository:
    """
    Data access layer for carts and cart_items.

    Single-row writes commit immediately. Methods prefixed with `stage_`
    only add to the session; the caller commits (recalculation writes
    gift lines and totals in one transaction). Conditional updates
    return whether a row was actually changed so callers can detect a
    lost race.
    """

    # ---- Carts ----

    def get_cart(self, session: Session, cart_id: uuid.UUID) -> Cart | None:
        return session.get(Cart, cart_id, populate_existing=True)

    def get_active_cart(self, session: Session, cart_id: uuid.UUID) -> Cart | None:
        stmt = (
            select(Cart)
            .where(Cart.id == cart_id, Cart.status == "active")
            .execution_options(populate_existing=True)
        )
        return session.exec(stmt).first()

    def latest_active_for_user(
        self, session: Session, user_id: uuid.UUID
    ) -> Cart | None:
        stmt = (
            select(Cart)
            .where(Cart.user_id == user_id, Cart.status == "active")
            .order_by(Cart.updated_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return session.exec(stmt).first()

    def create_cart(self, session: Session, cart: Cart) -> Cart:
        with storage_guard(session, "create cart"):
            session.add(cart)
            session.commit()
            session.refresh(cart)
        return cart

    def claim_cart(
        self, session: Session, cart_id: uuid.UUID, user_id: uuid.UUID
    ) -> bool:
        """Attach an anonymous cart to a user; False if it already has an owner."""
        stmt = (
            update(Cart)
            .where(Cart.id == cart_id, Cart.user_id.is_(None))
            .values(user_id=user_id, updated_at=_utcnow())
        )
        with storage_guard(session, "claim cart"):
            result = session.exec(stmt)
            session.commit()
        return result.rowcount == 1

    def mark_merged(self, session: Session, cart_id: uuid.UUID) -> bool:
        stmt = (
            update(Cart)
            .where(Cart.id == cart_id, Cart.status == "active")
            .values(status="merged", updated_at=_utcnow())
        )
        with storage_guard(session, "mark cart merged"):
            result = session.exec(stmt)
            session.commit()
        return result.rowcount == 1

    def set_coupon_code(
        self, session: Session, cart_id: uuid.UUID, code: str | None
    ) -> None:
        stmt = update(Cart).where(Cart.id == cart_id).values(coupon_code=code)
        with storage_guard(session, "update coupon code"):
            session.exec(stmt)
            session.commit()

    def stage_totals(
        self,
        session: Session,
        cart_id: uuid.UUID,
        expected_version: int,
        values: dict,
    ) -> bool:
        """
        Compare-and-swap write of derived cart fields. Not committed.
        Returns False when another writer bumped the version first.
        """
        stmt = (
            update(Cart)
            .where(Cart.id == cart_id, Cart.version == expected_version)
            .values(
                **values,
                version=expected_version + 1,
                updated_at=_utcnow(),
            )
        )
        result = session.exec(stmt)
        return result.rowcount == 1

    # ---- Items ----

    def list_items(self, session: Session, cart_id: uuid.UUID) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.cart_id == cart_id)
            .order_by(CartItem.created_at, CartItem.id)
            .execution_options(populate_existing=True)
        )
        return list(session.exec(stmt).all())

    def get_item(
        self, session: Session, cart_id: uuid.UUID, item_id: uuid.UUID
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.id == item_id, CartItem.cart_id == cart_id
        )
        return session.exec(stmt).first()

    def find_paid_line(
        self,
        session: Session,
        cart_id: uuid.UUID,
        product_id: uuid.UUID,
        unit: str,
        grams: int | None,
        variant_label: str | None,
        exclude_id: uuid.UUID | None = None,
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.cart_id == cart_id,
            CartItem.product_id == product_id,
            CartItem.unit == unit,
            _eq_or_null(CartItem.grams, grams),
            _eq_or_null(CartItem.variant_label, variant_label),
            CartItem.is_gift == False,  # noqa: E712
        )
        if exclude_id is not None:
            stmt = stmt.where(CartItem.id != exclude_id)
        return session.exec(stmt).first()

    def create_item(self, session: Session, item: CartItem) -> CartItem:
        with storage_guard(session, "add cart item"):
            session.add(item)
            session.commit()
            session.refresh(item)
        return item

    def update_item(self, session: Session, item: CartItem) -> CartItem:
        with storage_guard(session, "update cart item"):
            session.add(item)
            session.commit()
            session.refresh(item)
        return item

    def delete_item(self, session: Session, item: CartItem) -> None:
        with storage_guard(session, "remove cart item"):
            session.delete(item)
            session.commit()

    def clear_items(self, session: Session, cart_id: uuid.UUID) -> None:
        stmt = delete(CartItem).where(CartItem.cart_id == cart_id)
        with storage_guard(session, "clear cart"):
            session.exec(stmt)
            session.commit()

    def stage_insert(self, session: Session, item: CartItem) -> None:
        session.add(item)

    def stage_quantity(self, session: Session, item: CartItem, quantity: int) -> None:
        item.quantity = quantity
        session.add(item)

    def stage_delete(self, session: Session, item: CartItem) -> None:
        session.delete(item)

    # ---- Merge primitives ----
    # Each call is its own transaction and only acts if the source line
    # still belongs to the source cart, so a repeated merge is a no-op
    # for lines that were already moved.

    def fold_line_into(
        self,
        session: Session,
        source_cart_id: uuid.UUID,
        source_item_id: uuid.UUID,
        target_item_id: uuid.UUID,
        quantity: int,
    ) -> bool:
        """Delete the source line and add its quantity to the target line."""
        take = delete(CartItem).where(
            CartItem.id == source_item_id,
            CartItem.cart_id == source_cart_id,
        )
        bump = (
            update(CartItem)
            .where(CartItem.id == target_item_id)
            .values(quantity=CartItem.quantity + quantity)
        )
        with storage_guard(session, "merge cart line"):
            taken = session.exec(take).rowcount == 1
            if not taken:
                session.rollback()
                return False
            session.exec(bump)
            session.commit()
        return True

    def move_line(
        self,
        session: Session,
        source_cart_id: uuid.UUID,
        item_id: uuid.UUID,
        target_cart_id: uuid.UUID,
    ) -> bool:
        stmt = (
            update(CartItem)
            .where(CartItem.id == item_id, CartItem.cart_id == source_cart_id)
            .values(cart_id=target_cart_id)
        )
        with storage_guard(session, "move cart line"):
            moved = session.exec(stmt).rowcount == 1
            session.commit()
        return moved

    def drop_line(
        self, session: Session, source_cart_id: uuid.UUID, item_id: uuid.UUID
    ) -> None:
        stmt = delete(CartItem).where(
            CartItem.id == item_id, CartItem.cart_id == source_cart_id
        )
        with storage_guard(session, "drop cart line"):
            session.exec(stmt)
            session.commit()
