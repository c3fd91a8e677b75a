# bakery/routers/addresses.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bakery.core.auth import require_auth
from bakery.database import get_session
from bakery.models.user import User
from bakery.repositories.address_repo import AddressRepository
from bakery.schemas.address import AddressCreate, AddressRead, AddressUpdate
from bakery.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["Addresses"])

service = AddressService(AddressRepository())


@router.get("", response_model=list[AddressRead])
def list_addresses(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    The signed-in customer's addresses, default first.
    """
    return service.list_addresses(session, current_user.id)


@router.post("", response_model=AddressRead, status_code=status.HTTP_201_CREATED)
def add_address(
    payload: AddressCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Save a delivery address. The first one becomes the default.
    """
    return service.add_address(session, current_user.id, payload)


@router.put("/{address_id}", response_model=AddressRead)
def update_address(
    address_id: uuid.UUID,
    payload: AddressUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.update_address(session, current_user.id, address_id, payload)


@router.delete("/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_address(
    address_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Delete an address. If it was the default, the newest remaining
    address becomes the default.
    """
    service.delete_address(session, current_user.id, address_id)
    return None
