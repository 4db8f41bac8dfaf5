"""Assembly of the client's components for one application lifetime."""
import logging
from types import TracebackType
from typing import Self

import httpx

from api_client.client import ApiClient
from core.config import Settings, get_settings
from core.storage import FileStorage, KeyValueStorage
from core.token_store import TokenStore
from services.auth_backends import AuthBackend, InMemoryAuthBackend, RestAuthBackend
from services.auth_session import AuthSession
from services.content_cache import ContentCache

logger = logging.getLogger(__name__)


class BlogClient:
    """
    The auth session and content cache, wired to one API client.

    Use as an async context manager: entering connects the session to the
    API client's expiry notifications and restores any persisted session;
    leaving stops the session monitor and closes the HTTP client.
    """

    def __init__(
        self,
        api: ApiClient,
        token_store: TokenStore,
        session: AuthSession,
        content: ContentCache,
    ) -> None:
        self.api = api
        self.token_store = token_store
        self.session = session
        self.content = content

    async def __aenter__(self) -> Self:
        self.api.add_expiry_listener(self.session.expire)
        await self.session.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.session.close()
        self.api.remove_expiry_listener(self.session.expire)
        await self.api.aclose()


def create_auth_backend(
    settings: Settings,
    api: ApiClient,
    token_store: TokenStore,
) -> AuthBackend:
    """Build the auth implementation selected by `settings.auth_backend`."""
    if settings.auth_backend == "memory":
        logger.info("Using in-memory auth backend")
        return InMemoryAuthBackend(token_store)
    return RestAuthBackend(api)


def create_blog_client(
    settings: Settings | None = None,
    storage: KeyValueStorage | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> BlogClient:
    """
    Build a BlogClient from settings.

    Args:
        settings: Configuration; defaults to `get_settings()`.
        storage: Durable storage; defaults to a FileStorage at
            `settings.storage_path`.
        http_client: Optional pre-built HTTP client (owned by the caller).
    """
    settings = settings or get_settings()
    token_store = TokenStore(storage or FileStorage(settings.resolved_storage_path))
    api = ApiClient(
        token_store,
        base_url=settings.api_url,
        timeout=settings.api_timeout,
        request_source=settings.request_source,
        http_client=http_client,
    )
    session = AuthSession(
        create_auth_backend(settings, api, token_store),
        token_store,
        check_interval=settings.session_check_interval,
        expiring_soon_threshold=settings.expiring_soon_threshold,
    )
    return BlogClient(api, token_store, session, ContentCache(api))
