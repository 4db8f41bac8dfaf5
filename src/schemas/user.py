"""Pydantic schemas for users and profile updates."""
from datetime import datetime

from pydantic import field_validator

from schemas.base import ApiModel
from schemas.validators import validate_not_blank


class User(ApiModel):
    """
    The authenticated user as seen by the client.

    There is deliberately no password field: anything the server echoes back
    is discarded during validation.
    """

    id: str
    email: str
    name: str
    profile_picture: str | None = None
    created_at: datetime | None = None


class ProfileUpdate(ApiModel):
    """Schema for updating the current user's profile."""

    name: str
    profile_picture: str | None = None

    @field_validator("name")
    @classmethod
    def check_name_not_empty(cls, v: str) -> str:
        """Validate name is not empty."""
        return validate_not_blank(v, "Name")
