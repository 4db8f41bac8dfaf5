"""HTTP client for the blog REST API."""

from .client import ApiClient, ExpiryListener
from .errors import ApiError, NetworkError, RequestFailedError, SessionExpiredError

__all__ = [
    "ApiClient",
    "ApiError",
    "ExpiryListener",
    "NetworkError",
    "RequestFailedError",
    "SessionExpiredError",
]
