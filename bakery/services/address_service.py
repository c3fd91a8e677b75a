# bakery/services/address_service.py
import logging
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from bakery.core.errors import AddressNotFound
from bakery.models.address import Address
from bakery.repositories.address_repo import AddressRepository
from bakery.schemas.address import AddressCreate, AddressUpdate

logger = logging.getLogger(__name__)

# columns that cannot be cleared with an explicit null
NOT_NULL_FIELDS = {
    "recipient_name",
    "recipient_phone",
    "street_address",
    "pincode",
    "city",
    "state",
    "type",
    "is_default",
}


class AddressService:
    """
    A customer's saved delivery addresses.

    All lookups are scoped to the owner: another customer's address id
    behaves like an unknown one.
    """

    def __init__(self, repo: AddressRepository):
        self.repo = repo

    def _get(self, session: Session, user_id: uuid.UUID, address_id: uuid.UUID) -> Address:
        address = self.repo.get_owned(session, address_id, user_id)
        if not address:
            raise AddressNotFound()
        return address

    def list_addresses(self, session: Session, user_id: uuid.UUID) -> list[Address]:
        return self.repo.list_for_user(session, user_id)

    def add_address(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: AddressCreate,
    ) -> Address:
        address = Address(user_id=user_id, **payload.model_dump())
        if self.repo.count_for_user(session, user_id) == 0:
            address.is_default = True
        address = self.repo.save(session, address)
        logger.info("User %s: saved address %s", user_id, address.id)
        return address

    def update_address(
        self,
        session: Session,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
        payload: AddressUpdate,
    ) -> Address:
        """
        Partial update. `is_default=True` moves the default flag here;
        `is_default=False` leaves the customer without a default.
        """
        address = self._get(session, user_id, address_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None and field in NOT_NULL_FIELDS:
                continue
            setattr(address, field, value)
        address.updated_at = datetime.now(timezone.utc)
        return self.repo.save(session, address)

    def delete_address(
        self,
        session: Session,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
    ) -> None:
        address = self._get(session, user_id, address_id)
        self.repo.delete(session, address)
        logger.info("User %s: deleted address %s", user_id, address_id)
