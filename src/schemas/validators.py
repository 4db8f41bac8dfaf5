"""
Shared validation functions for Pydantic schemas.

These mirror the backend's rules for immediate feedback before any request is
sent. The backend remains authoritative: a request that passes here can still
be rejected by the server.
"""
import re

# Loose email shape check: something@something.tld, no whitespace
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 6


def validate_not_blank(value: str, field_label: str) -> str:
    """
    Reject empty or whitespace-only values.

    Raises:
        ValueError: If value is blank.
    """
    if not value or not value.strip():
        raise ValueError(f"{field_label} cannot be empty")
    return value


def validate_email(value: str) -> str:
    """
    Normalize and validate an email address.

    Returns:
        The trimmed email.

    Raises:
        ValueError: If the email is blank or doesn't look like an address.
    """
    normalized = value.strip()
    if not normalized:
        raise ValueError("Email cannot be empty")
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError("Please enter a valid email address")
    return normalized


def validate_password(value: str) -> str:
    """Require a password of at least MIN_PASSWORD_LENGTH characters."""
    if not value:
        raise ValueError("Password cannot be empty")
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return value
