# bakery/models/review.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Review(SQLModel, table=True):
    """
    Customer rating of a product.

    Only approved reviews are public. is_verified_purchase is set by the
    server when the author has a non-cancelled order containing the
    product.
    """

    __tablename__ = "reviews"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    # NULL for reviews left without signing in
    user_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="users.id",
        index=True,
    )

    display_name: str = Field(max_length=100)

    rating: int = Field(ge=1, le=5, index=True)

    title: str | None = Field(default=None, max_length=200)
    body: str | None = None

    is_verified_purchase: bool = Field(default=False)

    # pending | approved | rejected
    status: str = Field(default="approved", index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class ReviewReply(SQLModel, table=True):
    """
    Staff reply under a review, also used to record moderation reasons.
    """

    __tablename__ = "review_replies"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    review_id: uuid.UUID = Field(
        foreign_key="reviews.id",
        index=True,
    )

    admin_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="users.id",
    )

    body: str

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
