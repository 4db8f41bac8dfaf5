"""
Errors raised by the API client and parsing of error response bodies.

Every failure of a request surfaces as one of the ApiError subclasses below,
so callers can catch ApiError for "the request didn't work" and branch on the
subclass when the reason matters.
"""
from typing import Any

import httpx

DEFAULT_ERROR_MESSAGE = "Request failed"
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."
NETWORK_ERROR_MESSAGE = "Network error. Please try again."


class ApiError(Exception):
    """Base class for request failures."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SessionExpiredError(ApiError):
    """The token was missing, had expired locally, or was rejected with a 401."""

    def __init__(
        self,
        message: str = SESSION_EXPIRED_MESSAGE,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code)


class RequestFailedError(ApiError):
    """The server answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message, status_code)

    @property
    def is_not_found(self) -> bool:
        """True for 404 responses."""
        return self.status_code == 404


class NetworkError(ApiError):
    """No response was received (connection refused, DNS failure, timeout, ...)."""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE) -> None:
        super().__init__(message)


def extract_error_message(response: httpx.Response) -> str | None:
    """
    Pull a human-readable message out of an error response body.

    Understands FastAPI-style bodies: `{"detail": "..."}`,
    `{"detail": {"message": "..."}}`, validation lists
    `{"detail": [{"loc": [...], "msg": "..."}]}`, and a top-level `message`.

    Returns:
        The message, or None if the body has nothing usable.
    """
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None

    detail = body.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, dict):
        message = detail.get("message")
        if isinstance(message, str) and message:
            return message
    if isinstance(detail, list):
        return _format_validation_errors(detail)

    message = body.get("message") or body.get("error")
    if isinstance(message, str) and message:
        return message
    return None


def _format_validation_errors(errors: list[Any]) -> str | None:
    """Join a FastAPI validation error list into `field: msg; field: msg`."""
    messages = []
    for err in errors:
        if isinstance(err, dict):
            loc = err.get("loc") or ["unknown"]
            field = loc[-1]
            msg = err.get("msg", "invalid")
            messages.append(f"{field}: {msg}")
    return "; ".join(messages) if messages else None
