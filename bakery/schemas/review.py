# bakery/schemas/review.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

ReviewStatus = Literal["pending", "approved", "rejected"]
ReviewSort = Literal["recent", "rating_desc"]
BulkAction = Literal["approve", "reject", "delete"]
AdminReviewSort = Literal["created_at.desc", "created_at.asc", "rating.desc", "rating.asc"]


def _optional(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class ReviewCreate(SQLModel):
    """
    Payload for reviewing a product.

    The server decides status and is_verified_purchase; display_name
    falls back to "Verified Buyer" for signed-in authors and "Anonymous"
    otherwise.
    """

    model_config = ConfigDict(extra="forbid")

    rating: int = Field(ge=1, le=5)
    title: str | None = Field(default=None, max_length=200)
    body: str | None = None
    display_name: str | None = Field(default=None, max_length=100)

    @field_validator("title", "body", "display_name")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return _optional(v)


class ReviewReplyCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    body: str

    @field_validator("body")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Reply body required")
        return v


class ReviewReject(SQLModel):
    model_config = ConfigDict(extra="forbid")

    reason: str | None = None

    @field_validator("reason")
    @classmethod
    def normalize_reason(cls, v: str | None) -> str | None:
        return _optional(v)


class ReviewBulkAction(SQLModel):
    model_config = ConfigDict(extra="forbid")

    action: BulkAction
    ids: list[uuid.UUID] = Field(min_length=1)
    reason: str | None = None

    @field_validator("reason")
    @classmethod
    def normalize_reason(cls, v: str | None) -> str | None:
        return _optional(v)


class ReviewReplyRead(SQLModel):
    id: uuid.UUID
    review_id: uuid.UUID
    admin_id: uuid.UUID | None
    body: str
    created_at: datetime


class ReviewRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    user_id: uuid.UUID | None
    display_name: str
    rating: int
    title: str | None
    body: str | None
    is_verified_purchase: bool
    status: str
    created_at: datetime
    updated_at: datetime
    replies: list[ReviewReplyRead] = []


class ReviewPage(SQLModel):
    data: list[ReviewRead]
    total: int


class ReviewSummary(SQLModel):
    """
    Aggregate over approved reviews; counts are keyed "1".."5".
    """

    average: float
    total: int
    counts: dict[str, int]


class BulkActionResult(SQLModel):
    action: BulkAction
    affected: int
