"""Pydantic schemas for login, registration and their outcomes."""
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator

from schemas.base import ApiModel
from schemas.user import User
from schemas.validators import validate_email, validate_not_blank, validate_password

AuthErrorCategory = Literal[
    "validation",       # Client-side form check failed, nothing was sent
    "auth_failed",      # Server rejected the credentials or registration
    "session_expired",  # Token missing, expired, or rejected
    "network",          # No response from the server
    "storage",          # Session could not be saved to durable storage
]


class LoginRequest(BaseModel):
    """Schema for the login form."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        """Validate email shape."""
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password_not_empty(cls, v: str) -> str:
        """Validate password is not empty."""
        return validate_not_blank(v, "Password")


class RegisterRequest(BaseModel):
    """Schema for the registration form."""

    email: str
    password: str
    name: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        """Validate email shape."""
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        """Validate password length."""
        return validate_password(v)

    @field_validator("name")
    @classmethod
    def check_name_not_empty(cls, v: str) -> str:
        """Validate name is not empty."""
        return validate_not_blank(v, "Name")


class AuthResponse(ApiModel):
    """Body returned by /auth/login and /auth/register."""

    token: str = Field(validation_alias=AliasChoices("access_token", "token", "accessToken"))
    user: User


class AuthResult(BaseModel):
    """
    Outcome of a login, registration or profile update.

    Auth operations never raise to their caller; failures are reported here
    with a message suitable for display.
    """

    success: bool
    error: str | None = None
    error_category: AuthErrorCategory | None = None

    @classmethod
    def ok(cls) -> "AuthResult":
        """Successful result."""
        return cls(success=True)

    @classmethod
    def failed(cls, error: str, category: AuthErrorCategory) -> "AuthResult":
        """Failed result with a display message."""
        return cls(success=False, error=error, error_category=category)
