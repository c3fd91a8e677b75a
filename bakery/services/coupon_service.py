# bakery/services/coupon_service.py
import uuid

from sqlmodel import Session

from bakery.core.errors import CouponCodeTaken, CouponNotFound, ProductNotFound
from bakery.models.coupon import Coupon
from bakery.repositories.coupon_repo import CouponRepository
from bakery.repositories.product_repo import ProductRepository
from bakery.schemas.coupon import CouponCreate, CouponUpdate


class CouponService:
    """
    Admin management of the coupon catalog.

    Responsibilities:
      - case-insensitive code uniqueness
      - gift product existence
      - free_gift_qty follows free_gift_product_id (1 by default, null
        without a gift)
    """

    def __init__(self, repo: CouponRepository, product_repo: ProductRepository):
        self.repo = repo
        self.product_repo = product_repo

    def _check_gift_product(self, session: Session, product_id: uuid.UUID | None) -> None:
        if product_id is not None and self.product_repo.get_by_id(session, product_id) is None:
            raise ProductNotFound("Free gift product not found")

    def list_coupons(self, session: Session) -> list[Coupon]:
        return self.repo.list_all(session)

    def get_coupon(self, session: Session, coupon_id: uuid.UUID) -> Coupon:
        coupon = self.repo.get_by_id(session, coupon_id)
        if not coupon:
            raise CouponNotFound()
        return coupon

    def create_coupon(self, session: Session, payload: CouponCreate) -> Coupon:
        if self.repo.get_by_code(session, payload.code) is not None:
            raise CouponCodeTaken()
        self._check_gift_product(session, payload.free_gift_product_id)

        return self.repo.create(session, Coupon(**payload.model_dump()))

    def update_coupon(
        self,
        session: Session,
        coupon_id: uuid.UUID,
        payload: CouponUpdate,
    ) -> Coupon:
        """
        Partial update; only fields present in the request body change.
        """
        coupon = self.get_coupon(session, coupon_id)
        changes = payload.model_dump(exclude_unset=True)

        new_code = changes.get("code")
        if new_code and new_code != coupon.code:
            conflict = self.repo.get_by_code(session, new_code)
            if conflict is not None and conflict.id != coupon.id:
                raise CouponCodeTaken("Another coupon already uses this code")

        if "free_gift_product_id" in changes:
            self._check_gift_product(session, changes["free_gift_product_id"])

        for field, value in changes.items():
            if field == "code" and value is None:
                continue
            setattr(coupon, field, value)

        if coupon.free_gift_product_id is None:
            coupon.free_gift_qty = None
        elif coupon.free_gift_qty is None:
            coupon.free_gift_qty = 1

        return self.repo.update(session, coupon)

    def delete_coupon(self, session: Session, coupon_id: uuid.UUID) -> None:
        coupon = self.get_coupon(session, coupon_id)
        self.repo.delete(session, coupon)
