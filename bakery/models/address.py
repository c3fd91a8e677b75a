# bakery/models/address.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Address(SQLModel, table=True):
    """
    Saved delivery address of a signed-in customer.

    A customer has at most one default address; their first address is
    always the default.
    """

    __tablename__ = "addresses"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    recipient_name: str = Field(max_length=100)
    recipient_phone: str = Field(max_length=20)

    house_no: str | None = Field(default=None, max_length=50)
    floor_no: str | None = Field(default=None, max_length=20)
    society_building: str | None = Field(default=None, max_length=100)
    street_address: str
    landmark: str | None = None

    pincode: str = Field(max_length=10)
    city: str = Field(max_length=100)
    state: str = Field(max_length=100)

    # Home | Work | Other
    type: str = Field(default="Home", max_length=20)

    is_default: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
