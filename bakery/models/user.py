# bakery/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Customer or staff profile, keyed by the Supabase auth user id.

    Rows are created on the first request carrying a valid token (see
    core.auth). Guests have no row; their carts have user_id NULL.
    """

    __tablename__ = "users"

    # same value as the JWT "sub" claim
    id: uuid.UUID = Field(primary_key=True, index=True)

    email: str = Field(unique=True, index=True)

    # local part of the email until the customer changes it
    name: str = Field(max_length=50)

    # user | admin; admins are promoted directly in the database
    role: str = Field(default="user", index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
