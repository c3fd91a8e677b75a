# bakery/repositories/address_repo.py
import uuid

from sqlalchemy import func, update
from sqlmodel import Session, select

from bakery.database import storage_guard
from bakery.models.address import Address


class AddressRepository:
    """
    Data access layer for saved addresses.

    Every write that can move the default flag does so in the same
    transaction as the row change, so a customer never ends up with two
    defaults.
    """

    def get_owned(
        self,
        session: Session,
        address_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Address | None:
        stmt = select(Address).where(Address.id == address_id, Address.user_id == user_id)
        return session.exec(stmt).first()

    def list_for_user(self, session: Session, user_id: uuid.UUID) -> list[Address]:
        """Default address first, then newest first."""
        stmt = (
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at.desc())
        )
        return list(session.exec(stmt).all())

    def count_for_user(self, session: Session, user_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Address).where(Address.user_id == user_id)
        return int(session.exec(stmt).one() or 0)

    def _stage_clear_default(
        self,
        session: Session,
        user_id: uuid.UUID,
        keep_id: uuid.UUID,
    ) -> None:
        session.exec(
            update(Address)
            .where(Address.user_id == user_id, Address.id != keep_id)
            .values(is_default=False)
            .execution_options(synchronize_session=False)
        )

    def save(self, session: Session, address: Address) -> Address:
        """Insert or update; a default address takes the flag from the others."""
        with storage_guard(session, "save address"):
            if address.is_default:
                self._stage_clear_default(session, address.user_id, address.id)
            session.add(address)
            session.commit()
            session.refresh(address)
        return address

    def delete(self, session: Session, address: Address) -> None:
        """Delete; if it was the default, the newest remaining address takes over."""
        user_id = address.user_id
        was_default = address.is_default
        with storage_guard(session, "delete address"):
            session.delete(address)
            session.flush()
            if was_default:
                successor = session.exec(
                    select(Address)
                    .where(Address.user_id == user_id)
                    .order_by(Address.created_at.desc())
                ).first()
                if successor is not None:
                    successor.is_default = True
                    session.add(successor)
            session.commit()
