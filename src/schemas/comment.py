"""Pydantic schemas for comments."""
from datetime import datetime

from pydantic import field_validator

from schemas.base import ApiModel
from schemas.validators import validate_not_blank


class CommentCreate(ApiModel):
    """Schema for creating or editing a comment."""

    content: str

    @field_validator("content")
    @classmethod
    def check_content_not_empty(cls, v: str) -> str:
        """Validate content is not empty."""
        return validate_not_blank(v, "Comment")


class Comment(ApiModel):
    """A comment as returned by the API. Belongs to exactly one post."""

    id: str
    content: str
    post_id: str
    author_id: str
    author_name: str
    author_profile_picture: str | None = None
    created_at: datetime
    updated_at: datetime
