# bakery/schemas/address.py
import re
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

AddressType = Literal["Home", "Work", "Other"]

PHONE_RE = re.compile(r"^\+?[0-9]{7,15}$")
PINCODE_RE = re.compile(r"^[0-9]{6}$")


def _clean_phone(v: str) -> str:
    v = re.sub(r"[\s-]", "", v)
    if not PHONE_RE.match(v):
        raise ValueError("Valid phone number required")
    return v


def _clean_pincode(v: str) -> str:
    v = v.strip()
    if not PINCODE_RE.match(v):
        raise ValueError("Valid pincode required")
    return v


def _required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("field cannot be empty")
    return v


def _optional(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class AddressCreate(SQLModel):
    """
    Payload for saving a delivery address.

    - The first address of a customer becomes the default whatever
      `is_default` says.
    - `is_default=True` takes the default flag away from the others.
    """

    model_config = ConfigDict(extra="forbid")

    recipient_name: str = Field(max_length=100)
    recipient_phone: str
    house_no: str | None = Field(default=None, max_length=50)
    floor_no: str | None = Field(default=None, max_length=20)
    society_building: str | None = Field(default=None, max_length=100)
    street_address: str
    landmark: str | None = None
    pincode: str
    city: str = Field(max_length=100)
    state: str = Field(max_length=100)
    type: AddressType = "Home"
    is_default: bool = False

    @field_validator("recipient_name", "street_address", "city", "state")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return _required(v)

    @field_validator("house_no", "floor_no", "society_building", "landmark")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        return _optional(v)

    @field_validator("recipient_phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _clean_phone(v)

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v: str) -> str:
        return _clean_pincode(v)


class AddressUpdate(SQLModel):
    """
    Partial update payload; fields left out keep their value.
    """

    model_config = ConfigDict(extra="forbid")

    recipient_name: str | None = Field(default=None, max_length=100)
    recipient_phone: str | None = None
    house_no: str | None = Field(default=None, max_length=50)
    floor_no: str | None = Field(default=None, max_length=20)
    society_building: str | None = Field(default=None, max_length=100)
    street_address: str | None = None
    landmark: str | None = None
    pincode: str | None = None
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    type: AddressType | None = None
    is_default: bool | None = None

    @field_validator("recipient_name", "street_address", "city", "state")
    @classmethod
    def not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _required(v)

    @field_validator("house_no", "floor_no", "society_building", "landmark")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        return _optional(v)

    @field_validator("recipient_phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _clean_phone(v)

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _clean_pincode(v)


class AddressRead(SQLModel):
    id: uuid.UUID
    recipient_name: str
    recipient_phone: str
    house_no: str | None
    floor_no: str | None
    society_building: str | None
    street_address: str
    landmark: str | None
    pincode: str
    city: str
    state: str
    type: str
    is_default: bool
    created_at: datetime
    updated_at: datetime
