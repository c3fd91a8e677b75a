# bakery/services/review_service.py
import csv
import io
import logging
import uuid

from sqlmodel import Session

from bakery.core.errors import ProductNotFound, ReviewNotFound
from bakery.models.review import Review, ReviewReply
from bakery.models.user import User
from bakery.repositories.order_repo import OrderRepository
from bakery.repositories.product_repo import ProductRepository
from bakery.repositories.review_repo import ReviewRepository
from bakery.schemas.review import (
    BulkActionResult,
    ReviewBulkAction,
    ReviewCreate,
    ReviewPage,
    ReviewRead,
    ReviewReplyRead,
    ReviewSummary,
)
from bakery.services.pricing import round_money

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = (
    "id",
    "product_id",
    "user_id",
    "display_name",
    "rating",
    "title",
    "body",
    "is_verified_purchase",
    "status",
    "created_at",
    "updated_at",
)


class ReviewService:
    """
    Product reviews and their moderation.

    Public readers only ever see approved reviews. New reviews get the
    configured default status; staff approve, reject, reply or delete.
    """

    def __init__(
        self,
        repo: ReviewRepository,
        product_repo: ProductRepository,
        order_repo: OrderRepository,
        default_status: str = "approved",
    ):
        self.repo = repo
        self.product_repo = product_repo
        self.order_repo = order_repo
        self.default_status = default_status

    # ----- Helpers -----

    def _with_replies(self, session: Session, reviews: list[Review]) -> list[ReviewRead]:
        replies = self.repo.replies_for(session, [r.id for r in reviews])
        return [
            ReviewRead.model_validate(review, from_attributes=True).model_copy(
                update={
                    "replies": [
                        ReviewReplyRead.model_validate(reply, from_attributes=True)
                        for reply in replies.get(review.id, [])
                    ]
                }
            )
            for review in reviews
        ]

    def _read(self, session: Session, review: Review) -> ReviewRead:
        return self._with_replies(session, [review])[0]

    def _get(self, session: Session, review_id: uuid.UUID) -> Review:
        review = self.repo.get_by_id(session, review_id)
        if not review:
            raise ReviewNotFound()
        return review

    def _check_product(self, session: Session, product_id: uuid.UUID, active: bool = False):
        product = self.product_repo.get_by_id(session, product_id)
        if product is None or (active and not product.is_active):
            raise ProductNotFound()
        return product

    # ----- Storefront -----

    def create_review(
        self,
        session: Session,
        product_id: uuid.UUID,
        author: User | None,
        payload: ReviewCreate,
    ) -> ReviewRead:
        """
        Store a review of an active product.

        Signed-in authors default to their profile name and are marked as
        verified buyers when they have ordered the product.
        """
        self._check_product(session, product_id, active=True)

        verified = author is not None and self.order_repo.has_purchased(
            session, author.id, product_id
        )
        if payload.display_name:
            display_name = payload.display_name
        else:
            display_name = author.name if author is not None else "Anonymous"

        review = self.repo.create(
            session,
            Review(
                product_id=product_id,
                user_id=author.id if author is not None else None,
                display_name=display_name,
                rating=payload.rating,
                title=payload.title,
                body=payload.body,
                is_verified_purchase=verified,
                status=self.default_status,
            ),
        )
        logger.info(
            "Product %s: review %s (%s stars, %s)",
            product_id,
            review.id,
            review.rating,
            review.status,
        )
        return self._read(session, review)

    def list_product_reviews(
        self,
        session: Session,
        product_id: uuid.UUID,
        sort: str = "recent",
        limit: int = 10,
        offset: int = 0,
    ) -> ReviewPage:
        self._check_product(session, product_id)
        rows, total = self.repo.list_approved(
            session, product_id, sort=sort, limit=limit, offset=offset
        )
        return ReviewPage(data=self._with_replies(session, rows), total=total)

    def summary(self, session: Session, product_id: uuid.UUID) -> ReviewSummary:
        self._check_product(session, product_id)
        by_rating = self.repo.rating_counts(session, product_id)
        total = sum(by_rating.values())
        stars = sum(rating * count for rating, count in by_rating.items())
        return ReviewSummary(
            average=round_money(stars / total) if total else 0.0,
            total=total,
            counts={str(r): by_rating.get(r, 0) for r in range(5, 0, -1)},
        )

    # ----- Moderation -----

    def list_reviews(self, session: Session, **filters) -> ReviewPage:
        """
        Admin listing. Filters: status ("all" or None for every status),
        product_id, min_rating, max_rating, verified, search (title, body
        or display name), sort, limit, offset.
        """
        if filters.get("status") == "all":
            filters["status"] = None
        rows, total = self.repo.list_filtered(session, **filters)
        return ReviewPage(data=self._with_replies(session, rows), total=total)

    def get_review(self, session: Session, review_id: uuid.UUID) -> ReviewRead:
        return self._read(session, self._get(session, review_id))

    def approve(self, session: Session, review_id: uuid.UUID) -> ReviewRead:
        review = self.repo.set_status(session, self._get(session, review_id), "approved")
        return self._read(session, review)

    def reject(
        self,
        session: Session,
        review_id: uuid.UUID,
        admin_id: uuid.UUID,
        reason: str | None = None,
    ) -> ReviewRead:
        """Reject; a reason is kept as a staff reply on the review."""
        review = self._get(session, review_id)
        reply = None
        if reason:
            reply = ReviewReply(
                review_id=review.id,
                admin_id=admin_id,
                body=f"Moderation reason: {reason}",
            )
        review = self.repo.set_status(session, review, "rejected", reply=reply)
        return self._read(session, review)

    def reply(
        self,
        session: Session,
        review_id: uuid.UUID,
        admin_id: uuid.UUID,
        body: str,
    ) -> ReviewReply:
        review = self._get(session, review_id)
        return self.repo.add_reply(
            session,
            ReviewReply(review_id=review.id, admin_id=admin_id, body=body),
        )

    def delete_review(self, session: Session, review_id: uuid.UUID) -> None:
        self.repo.delete(session, self._get(session, review_id))

    def bulk(
        self,
        session: Session,
        admin_id: uuid.UUID,
        payload: ReviewBulkAction,
    ) -> BulkActionResult:
        """
        Apply one action to many reviews. Unknown ids are skipped;
        `affected` counts the reviews that were changed.
        """
        ids = self.repo.existing_ids(session, list(dict.fromkeys(payload.ids)))
        if not ids:
            return BulkActionResult(action=payload.action, affected=0)

        if payload.action == "delete":
            affected = self.repo.bulk_delete(session, ids)
        elif payload.action == "approve":
            affected = self.repo.bulk_set_status(session, ids, "approved")
        else:
            replies = None
            if payload.reason:
                replies = [
                    ReviewReply(
                        review_id=review_id,
                        admin_id=admin_id,
                        body=f"Bulk rejection: {payload.reason}",
                    )
                    for review_id in ids
                ]
            affected = self.repo.bulk_set_status(session, ids, "rejected", replies=replies)

        logger.info("Admin %s: bulk %s on %s reviews", admin_id, payload.action, affected)
        return BulkActionResult(action=payload.action, affected=affected)

    def export_csv(
        self,
        session: Session,
        status: str | None = None,
        product_id: uuid.UUID | None = None,
    ) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        for review in self.repo.list_for_export(session, status=status, product_id=product_id):
            writer.writerow({col: getattr(review, col) for col in EXPORT_COLUMNS})
        return buffer.getvalue()
