# bakery/routers/reviews.py
import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel import Session

from bakery.core.auth import get_app_settings, get_current_user, require_admin
from bakery.core.config import Settings
from bakery.database import get_session
from bakery.models.user import User
from bakery.repositories.order_repo import OrderRepository
from bakery.repositories.product_repo import ProductRepository
from bakery.repositories.review_repo import ReviewRepository
from bakery.schemas.review import (
    AdminReviewSort,
    BulkActionResult,
    ReviewBulkAction,
    ReviewCreate,
    ReviewPage,
    ReviewRead,
    ReviewReject,
    ReviewReplyCreate,
    ReviewReplyRead,
    ReviewSort,
    ReviewStatus,
    ReviewSummary,
)
from bakery.services.review_service import ReviewService

router = APIRouter(prefix="/products", tags=["Reviews"])

admin_router = APIRouter(
    prefix="/admin/reviews",
    tags=["Admin Reviews"],
    dependencies=[Depends(require_admin)],
)


def get_review_service(settings: Settings = Depends(get_app_settings)) -> ReviewService:
    return ReviewService(
        ReviewRepository(),
        ProductRepository(),
        OrderRepository(),
        default_status=settings.REVIEW_DEFAULT_STATUS,
    )


# -------- Storefront --------


@router.get("/{product_id}/reviews", response_model=ReviewPage)
def list_product_reviews(
    product_id: uuid.UUID,
    sort: ReviewSort = "recent",
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    session: Session = Depends(get_session),
    service: ReviewService = Depends(get_review_service),
):
    """
    Approved reviews of a product with staff replies, newest or best
    rated first. `total` counts every approved review.
    """
    return service.list_product_reviews(
        session, product_id, sort=sort, limit=limit, offset=offset
    )


@router.get("/{product_id}/reviews/summary", response_model=ReviewSummary)
def review_summary(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: ReviewService = Depends(get_review_service),
):
    """
    Average rating and per-star counts over approved reviews.
    """
    return service.summary(session, product_id)


@router.post(
    "/{product_id}/reviews",
    response_model=ReviewRead,
    status_code=status.HTTP_201_CREATED,
)
def create_review(
    product_id: uuid.UUID,
    payload: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """
    Review a product. Guests may review; signed-in customers who ordered
    the product are marked as verified buyers.
    """
    return service.create_review(session, product_id, current_user, payload)


# -------- Moderation --------


@admin_router.get("", response_model=ReviewPage)
def list_reviews(
    status: ReviewStatus | None = None,
    product_id: uuid.UUID | None = None,
    min_rating: int | None = Query(default=None, ge=1, le=5),
    max_rating: int | None = Query(default=None, ge=1, le=5),
    verified: bool | None = None,
    search: str | None = None,
    sort: AdminReviewSort = "created_at.desc",
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    session: Session = Depends(get_session),
    service: ReviewService = Depends(get_review_service),
):
    """
    Every review, filterable by status, product, rating range, verified
    purchase and free text (admin only).
    """
    return service.list_reviews(
        session,
        status=status,
        product_id=product_id,
        min_rating=min_rating,
        max_rating=max_rating,
        verified=verified,
        search=search.strip() if search else None,
        sort=sort,
        limit=limit,
        offset=offset,
    )


@admin_router.get("/export")
def export_reviews(
    status: ReviewStatus | None = None,
    product_id: uuid.UUID | None = None,
    session: Session = Depends(get_session),
    service: ReviewService = Depends(get_review_service),
):
    """
    Download reviews as CSV (admin only).
    """
    return Response(
        content=service.export_csv(session, status=status, product_id=product_id),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=reviews-export.csv"},
    )


@admin_router.post("/bulk", response_model=BulkActionResult)
def bulk_action(
    payload: ReviewBulkAction,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    """
    Approve, reject or delete several reviews at once (admin only).
    """
    return service.bulk(session, admin.id, payload)


@admin_router.get("/{review_id}", response_model=ReviewRead)
def get_review(
    review_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: ReviewService = Depends(get_review_service),
):
    return service.get_review(session, review_id)


@admin_router.post("/{review_id}/approve", response_model=ReviewRead)
def approve_review(
    review_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: ReviewService = Depends(get_review_service),
):
    return service.approve(session, review_id)


@admin_router.post("/{review_id}/reject", response_model=ReviewRead)
def reject_review(
    review_id: uuid.UUID,
    payload: ReviewReject | None = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    """
    Reject a review; an optional reason is stored as a staff reply.
    """
    reason = payload.reason if payload else None
    return service.reject(session, review_id, admin.id, reason)


@admin_router.post(
    "/{review_id}/reply",
    response_model=ReviewReplyRead,
    status_code=status.HTTP_201_CREATED,
)
def reply_to_review(
    review_id: uuid.UUID,
    payload: ReviewReplyCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    return service.reply(session, review_id, admin.id, payload.body)


@admin_router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: ReviewService = Depends(get_review_service),
):
    """
    Delete a review and its replies (admin only).
    """
    service.delete_review(session, review_id)
    return None
