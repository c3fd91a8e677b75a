# bakery/routers/products.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bakery.core.auth import require_admin
from bakery.database import get_session
from bakery.repositories.product_repo import ProductRepository
from bakery.schemas.product import (
    ProductCreate,
    ProductRead,
    ProductUpdate,
    UnitOptionIn,
    UnitOptionRead,
)
from bakery.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

service = ProductService(ProductRepository())


# -------- Public endpoints --------


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
    only_active: bool = True,
    category: str | None = None,
):
    """
    List products with their unit options.

    - Public endpoint.
    - `only_active=True` hides inactive products by default.
    """
    return service.list_products(
        session, skip=skip, limit=limit, only_active=only_active, category=category
    )


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Get a single product by id.
    """
    return service.get_product(session, product_id)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """
    Create a new product (admin only).
    """
    return service.create_product(session, payload)


@router.patch(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Update an existing product (admin only).
    """
    return service.update_product(session, product_id, payload)


@router.put(
    "/{product_id}/options",
    response_model=list[UnitOptionRead],
    dependencies=[Depends(require_admin)],
)
def replace_unit_options(
    product_id: uuid.UUID,
    payload: list[UnitOptionIn],
    session: Session = Depends(get_session),
):
    """
    Replace the product's named variants (admin only).
    """
    return service.replace_options(session, product_id, payload)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Retire a product (admin only). It is hidden from the catalog and can
    no longer be added to carts.
    """
    service.delete_product(session, product_id)
    return None
