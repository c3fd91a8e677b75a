# bakery/repositories/coupon_repo.py
import uuid

from sqlalchemy import func, update
from sqlmodel import Session, select

from bakery.database import storage_guard
from bakery.models.coupon import Coupon


class CouponRepository:
    """
    Data access layer for coupons.

    The cart core only reads the catalog (list_active); writes come from
    the admin screens and from checkout's used_count bump.
    """

    def get_by_id(self, session: Session, coupon_id: uuid.UUID) -> Coupon | None:
        return session.get(Coupon, coupon_id)

    def get_by_code(self, session: Session, code: str) -> Coupon | None:
        """Case-insensitive code lookup."""
        stmt = select(Coupon).where(func.upper(Coupon.code) == code.strip().upper())
        return session.exec(stmt).first()

    def list_all(self, session: Session) -> list[Coupon]:
        stmt = select(Coupon).order_by(Coupon.created_at.desc())
        return list(session.exec(stmt).all())

    def list_active(self, session: Session) -> list[Coupon]:
        """Active coupons in catalog order (oldest first)."""
        stmt = (
            select(Coupon)
            .where(Coupon.is_active == True)  # noqa: E712
            .order_by(Coupon.created_at, Coupon.id)
        )
        return list(session.exec(stmt).all())

    def list_public_offers(self, session: Session) -> list[Coupon]:
        stmt = (
            select(Coupon)
            .where(Coupon.is_active == True, Coupon.is_auto == True)  # noqa: E712
            .order_by(Coupon.auto_threshold, Coupon.min_cart_amount)
        )
        return list(session.exec(stmt).all())

    def create(self, session: Session, coupon: Coupon) -> Coupon:
        with storage_guard(session, "create coupon"):
            session.add(coupon)
            session.commit()
            session.refresh(coupon)
        return coupon

    def update(self, session: Session, coupon: Coupon) -> Coupon:
        with storage_guard(session, "update coupon"):
            session.add(coupon)
            session.commit()
            session.refresh(coupon)
        return coupon

    def delete(self, session: Session, coupon: Coupon) -> None:
        with storage_guard(session, "delete coupon"):
            session.delete(coupon)
            session.commit()

    def stage_increment_usage(self, session: Session, code: str) -> None:
        """Bump used_count for a redeemed code. Not committed."""
        session.exec(
            update(Coupon)
            .where(func.upper(Coupon.code) == code.upper())
            .values(used_count=Coupon.used_count + 1)
            .execution_options(synchronize_session=False)
        )
