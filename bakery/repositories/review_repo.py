# bakery/repositories/review_repo.py
import uuid
from collections import defaultdict
from datetime import datetime, timezone

from sqlalchemy import delete, func, or_, update
from sqlmodel import Session, select

from bakery.database import storage_guard
from bakery.models.review import Review, ReviewReply

SORT_COLUMNS = {
    "created_at": Review.created_at,
    "rating": Review.rating,
}


class ReviewRepository:
    """
    Data access layer for reviews and their replies.

    List queries return (rows, total) where total ignores limit/offset.
    """

    # ---- Reads ----

    def get_by_id(self, session: Session, review_id: uuid.UUID) -> Review | None:
        return session.get(Review, review_id)

    def existing_ids(self, session: Session, review_ids: list[uuid.UUID]) -> list[uuid.UUID]:
        stmt = select(Review.id).where(Review.id.in_(review_ids))
        return list(session.exec(stmt).all())

    def replies_for(
        self,
        session: Session,
        review_ids: list[uuid.UUID],
    ) -> dict[uuid.UUID, list[ReviewReply]]:
        if not review_ids:
            return {}
        stmt = (
            select(ReviewReply)
            .where(ReviewReply.review_id.in_(review_ids))
            .order_by(ReviewReply.created_at)
        )
        grouped: dict[uuid.UUID, list[ReviewReply]] = defaultdict(list)
        for reply in session.exec(stmt).all():
            grouped[reply.review_id].append(reply)
        return grouped

    def _page(self, session: Session, stmt, order_by, limit: int, offset: int):
        total = session.exec(select(func.count()).select_from(stmt.subquery())).one()
        rows = session.exec(
            stmt.order_by(*order_by).offset(offset).limit(limit)
        ).all()
        return list(rows), int(total or 0)

    def list_approved(
        self,
        session: Session,
        product_id: uuid.UUID,
        sort: str = "recent",
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Review], int]:
        stmt = select(Review).where(
            Review.product_id == product_id,
            Review.status == "approved",
        )
        if sort == "rating_desc":
            order_by = (Review.rating.desc(), Review.created_at.desc())
        else:
            order_by = (Review.created_at.desc(),)
        return self._page(session, stmt, order_by, limit, offset)

    def rating_counts(self, session: Session, product_id: uuid.UUID) -> dict[int, int]:
        """Approved review count per rating value."""
        stmt = (
            select(Review.rating, func.count(Review.id))
            .where(Review.product_id == product_id, Review.status == "approved")
            .group_by(Review.rating)
        )
        return {int(rating): int(count) for rating, count in session.exec(stmt).all()}

    def list_filtered(
        self,
        session: Session,
        status: str | None = None,
        product_id: uuid.UUID | None = None,
        min_rating: int | None = None,
        max_rating: int | None = None,
        verified: bool | None = None,
        search: str | None = None,
        sort: str = "created_at.desc",
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Review], int]:
        stmt = select(Review)
        if status is not None:
            stmt = stmt.where(Review.status == status)
        if product_id is not None:
            stmt = stmt.where(Review.product_id == product_id)
        if min_rating is not None:
            stmt = stmt.where(Review.rating >= min_rating)
        if max_rating is not None:
            stmt = stmt.where(Review.rating <= max_rating)
        if verified is not None:
            stmt = stmt.where(Review.is_verified_purchase == verified)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Review.body).like(pattern),
                    func.lower(Review.title).like(pattern),
                    func.lower(Review.display_name).like(pattern),
                )
            )

        column, _, direction = sort.partition(".")
        order_col = SORT_COLUMNS.get(column, Review.created_at)
        order_by = (order_col.asc() if direction == "asc" else order_col.desc(), Review.id)
        return self._page(session, stmt, order_by, limit, offset)

    def list_for_export(
        self,
        session: Session,
        status: str | None = None,
        product_id: uuid.UUID | None = None,
    ) -> list[Review]:
        stmt = select(Review)
        if status is not None:
            stmt = stmt.where(Review.status == status)
        if product_id is not None:
            stmt = stmt.where(Review.product_id == product_id)
        return list(session.exec(stmt.order_by(Review.created_at.desc())).all())

    # ---- Writes ----

    def create(self, session: Session, review: Review) -> Review:
        with storage_guard(session, "create review"):
            session.add(review)
            session.commit()
            session.refresh(review)
        return review

    def set_status(
        self,
        session: Session,
        review: Review,
        status: str,
        reply: ReviewReply | None = None,
    ) -> Review:
        """Change status; an optional reply is stored in the same transaction."""
        with storage_guard(session, "moderate review"):
            review.status = status
            review.updated_at = datetime.now(timezone.utc)
            session.add(review)
            if reply is not None:
                session.add(reply)
            session.commit()
            session.refresh(review)
        return review

    def add_reply(self, session: Session, reply: ReviewReply) -> ReviewReply:
        with storage_guard(session, "reply to review"):
            session.add(reply)
            session.commit()
            session.refresh(reply)
        return reply

    def delete(self, session: Session, review: Review) -> None:
        with storage_guard(session, "delete review"):
            session.exec(delete(ReviewReply).where(ReviewReply.review_id == review.id))
            session.delete(review)
            session.commit()

    def bulk_set_status(
        self,
        session: Session,
        review_ids: list[uuid.UUID],
        status: str,
        replies: list[ReviewReply] | None = None,
    ) -> int:
        """Returns how many of the ids existed and were updated."""
        stmt = (
            update(Review)
            .where(Review.id.in_(review_ids))
            .values(status=status, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        with storage_guard(session, "moderate reviews"):
            affected = session.exec(stmt).rowcount
            if replies:
                session.add_all(replies)
            session.commit()
        return affected

    def bulk_delete(self, session: Session, review_ids: list[uuid.UUID]) -> int:
        with storage_guard(session, "delete reviews"):
            session.exec(delete(ReviewReply).where(ReviewReply.review_id.in_(review_ids)))
            affected = session.exec(delete(Review).where(Review.id.in_(review_ids))).rowcount
            session.commit()
        return affected
