# bakery/routers/categories.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bakery.core.auth import require_admin
from bakery.database import get_session
from bakery.repositories.category_repo import CategoryRepository
from bakery.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate
from bakery.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])

service = CategoryService(CategoryRepository())


# -------- Public endpoints --------


@router.get("", response_model=list[CategoryRead])
def list_categories(session: Session = Depends(get_session)):
    """
    List categories, newest first.
    """
    return service.list_categories(session)


@router.get("/{category_id}", response_model=CategoryRead)
def get_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_category(session, category_id)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
):
    """
    Create a category (admin only). 409 if the name is taken.
    """
    return service.create_category(session, payload)


@router.put(
    "/{category_id}",
    response_model=CategoryRead,
    dependencies=[Depends(require_admin)],
)
def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
):
    """
    Rename or describe a category (admin only). Products follow a rename.
    """
    return service.update_category(session, category_id, payload)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a category (admin only). 409 while active products use it.
    """
    service.delete_category(session, category_id)
    return None
