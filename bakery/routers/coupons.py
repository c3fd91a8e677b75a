# bakery/routers/coupons.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bakery.core.auth import require_admin
from bakery.database import get_session
from bakery.repositories.coupon_repo import CouponRepository
from bakery.repositories.product_repo import ProductRepository
from bakery.schemas.coupon import CouponCreate, CouponRead, CouponUpdate
from bakery.services.coupon_service import CouponService

router = APIRouter(
    prefix="/admin/coupons",
    tags=["Admin Coupons"],
    dependencies=[Depends(require_admin)],
)

service = CouponService(CouponRepository(), ProductRepository())


@router.get("", response_model=list[CouponRead])
def list_coupons(session: Session = Depends(get_session)):
    """
    List every coupon, newest first (admin only).
    """
    return service.list_coupons(session)


@router.post("", response_model=CouponRead, status_code=status.HTTP_201_CREATED)
def create_coupon(
    payload: CouponCreate,
    session: Session = Depends(get_session),
):
    """
    Create a percent/fixed coupon, optionally automatic with a free gift.
    """
    return service.create_coupon(session, payload)


@router.put("/{coupon_id}", response_model=CouponRead)
def update_coupon(
    coupon_id: uuid.UUID,
    payload: CouponUpdate,
    session: Session = Depends(get_session),
):
    """
    Update a coupon; fields missing from the body are left unchanged.
    """
    return service.update_coupon(session, coupon_id, payload)


@router.delete("/{coupon_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_coupon(
    coupon_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    service.delete_coupon(session, coupon_id)
    return None
