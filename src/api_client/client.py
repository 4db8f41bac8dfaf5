"""HTTP client for the blog REST API."""
import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any, Self

import httpx

from api_client.errors import (
    DEFAULT_ERROR_MESSAGE,
    SESSION_EXPIRED_MESSAGE,
    NetworkError,
    RequestFailedError,
    SessionExpiredError,
    extract_error_message,
)
from core.token_store import TokenStore
from core.tokens import is_token_expired

logger = logging.getLogger(__name__)

ExpiryListener = Callable[[], None]


class ApiClient:
    """
    Sends JSON requests to the API and normalizes their failures.

    Requests that need authentication carry the stored bearer token. When the
    session turns out to be over, either because the stored token has already
    expired (no request is sent) or because the server answers 401, every
    registered expiry listener is notified, the token store is cleared, and
    SessionExpiredError is raised. Listeners must tolerate being called more
    than once for the same session.

    Args:
        token_store: Source of the bearer token.
        base_url: API root, e.g. "http://localhost:8000".
        timeout: Transport timeout in seconds.
        request_source: Value of the X-Request-Source header.
        http_client: Pre-built client (tests, connection sharing). When given,
            `base_url`/`timeout` are ignored and the caller owns its lifetime.
    """

    def __init__(
        self,
        token_store: TokenStore,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        request_source: str = "blog-client",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._token_store = token_store
        self._request_source = request_source
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._expiry_listeners: list[ExpiryListener] = []

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    def add_expiry_listener(self, listener: ExpiryListener) -> None:
        """Register a callback for session expiry. Registering twice is a no-op."""
        if listener not in self._expiry_listeners:
            self._expiry_listeners.append(listener)

    def remove_expiry_listener(self, listener: ExpiryListener) -> None:
        """Unregister a callback. Unknown listeners are ignored."""
        if listener in self._expiry_listeners:
            self._expiry_listeners.remove(listener)

    def _expire_session(self) -> None:
        for listener in list(self._expiry_listeners):
            listener()
        self._token_store.remove()

    def _get_headers(self, token: str | None) -> dict[str, str]:
        """Get common headers for API requests."""
        headers = {
            "Content-Type": "application/json",
            "X-Request-Source": self._request_source,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        require_auth: bool = False,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Args:
            method: HTTP method.
            path: Path relative to the API root, e.g. "/posts/1".
            json: Optional request body.
            require_auth: Attach the bearer token and treat 401 as session expiry.

        Returns:
            The parsed JSON body, or None for an empty body.

        Raises:
            SessionExpiredError: Token expired locally or rejected with 401.
            RequestFailedError: Any other non-2xx response.
            NetworkError: No response was received.
        """
        token = None
        if require_auth:
            token = self._token_store.retrieve()
            if token is not None and is_token_expired(token):
                logger.info("Stored token expired; not sending %s %s", method, path)
                self._expire_session()
                raise SessionExpiredError()

        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                headers=self._get_headers(token),
            )
        except httpx.RequestError as e:
            logger.warning("Request %s %s failed: %s", method, path, e)
            raise NetworkError() from e

        if response.status_code == 401 and require_auth:
            logger.info("Session rejected by server on %s %s", method, path)
            self._expire_session()
            raise SessionExpiredError(
                extract_error_message(response) or SESSION_EXPIRED_MESSAGE,
                status_code=401,
            )

        if response.is_error:
            message = extract_error_message(response) or DEFAULT_ERROR_MESSAGE
            logger.debug("%s %s returned %s: %s", method, path, response.status_code, message)
            raise RequestFailedError(message, response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RequestFailedError("Invalid response from server", response.status_code) from e

    async def get(self, path: str, require_auth: bool = False) -> Any:
        """Make a GET request to the API."""
        return await self.request("GET", path, require_auth=require_auth)

    async def post(self, path: str, json: Any = None, require_auth: bool = False) -> Any:
        """Make a POST request to the API."""
        return await self.request("POST", path, json=json, require_auth=require_auth)

    async def put(self, path: str, json: Any = None, require_auth: bool = False) -> Any:
        """Make a PUT request to the API."""
        return await self.request("PUT", path, json=json, require_auth=require_auth)

    async def delete(self, path: str, require_auth: bool = False) -> Any:
        """Make a DELETE request to the API."""
        return await self.request("DELETE", path, require_auth=require_auth)
