"""Pydantic schemas for blog posts."""
from datetime import datetime

from pydantic import field_validator

from schemas.base import ApiModel
from schemas.validators import validate_not_blank


class PostCreate(ApiModel):
    """Schema for creating a new post."""

    title: str
    content: str  # Markdown
    excerpt: str
    category: str | None = None

    @field_validator("title")
    @classmethod
    def check_title_not_empty(cls, v: str) -> str:
        """Validate title is not empty."""
        return validate_not_blank(v, "Title")

    @field_validator("content")
    @classmethod
    def check_content_not_empty(cls, v: str) -> str:
        """Validate content is not empty."""
        return validate_not_blank(v, "Content")


class PostUpdate(ApiModel):
    """Schema for updating an existing post. Omitted fields are left unchanged."""

    title: str | None = None
    content: str | None = None
    excerpt: str | None = None
    category: str | None = None

    @field_validator("title", "content")
    @classmethod
    def check_not_empty(cls, v: str | None) -> str | None:
        """Validate title/content are not empty (if provided)."""
        if v is not None and not v.strip():
            raise ValueError("Value cannot be empty")
        return v


class Post(ApiModel):
    """A post as returned by the API. `id` is assigned by the server and never changes."""

    id: str
    title: str
    content: str
    excerpt: str = ""
    category: str | None = None
    author_id: str
    author_name: str
    author_profile_picture: str | None = None
    created_at: datetime
    updated_at: datetime
