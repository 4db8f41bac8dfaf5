"""Pytest fixtures for testing."""
import time
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any

import jwt
import pytest
import respx

from api_client.client import ApiClient
from core.storage import MemoryStorage
from core.token_store import TokenStore

API_BASE_URL = "http://localhost:8000"

TokenFactory = Callable[..., str]


@pytest.fixture
def make_token() -> TokenFactory:
    """
    Build a signed JWT whose `exp` is `expires_in` seconds from now.

    The client never verifies signatures, so any key works.
    """

    def _make(
        expires_in: int = 3600,
        user_id: str = "1",
        now: float | None = None,
        **extra_claims: Any,
    ) -> str:
        issued_at = int(time.time() if now is None else now)
        claims = {
            "sub": user_id,
            "userId": user_id,
            "iat": issued_at,
            "exp": issued_at + expires_in,
            **extra_claims,
        }
        return jwt.encode(claims, "test-secret", algorithm="HS256")

    return _make


@pytest.fixture
def storage() -> MemoryStorage:
    """Empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def token_store(storage: MemoryStorage) -> TokenStore:
    """Token store over in-memory storage."""
    return TokenStore(storage)


@pytest.fixture
def mock_api() -> Generator[respx.MockRouter]:
    """Context manager for mocking API responses."""
    with respx.mock(base_url=API_BASE_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
async def api_client(token_store: TokenStore) -> AsyncGenerator[ApiClient]:
    """API client pointed at the mocked API."""
    client = ApiClient(token_store, base_url=API_BASE_URL)
    yield client
    await client.aclose()


@pytest.fixture
def sample_user() -> dict[str, Any]:
    """User as returned by the API (snake_case, password echoed back)."""
    return {
        "id": "1",
        "email": "john@example.com",
        "name": "John Doe",
        "password": "should-be-dropped",
        "profile_picture": None,
        "created_at": "2024-01-01T00:00:00Z",
    }


@pytest.fixture
def make_post() -> Callable[..., dict[str, Any]]:
    """Build a post payload as returned by the API."""

    def _make(post_id: str = "1", **overrides: Any) -> dict[str, Any]:
        post = {
            "id": post_id,
            "title": f"Post {post_id}",
            "content": "# Heading\n\nBody text",
            "excerpt": "Body text",
            "category": "Web Development",
            "author_id": "1",
            "author_name": "John Doe",
            "created_at": "2024-12-01T00:00:00Z",
            "updated_at": "2024-12-01T00:00:00Z",
        }
        post.update(overrides)
        return post

    return _make


@pytest.fixture
def make_comment() -> Callable[..., dict[str, Any]]:
    """Build a comment payload as returned by the API."""

    def _make(comment_id: str = "1", post_id: str = "1", **overrides: Any) -> dict[str, Any]:
        comment = {
            "id": comment_id,
            "content": "Nice post",
            "post_id": post_id,
            "author_id": "2",
            "author_name": "Jane Smith",
            "created_at": "2024-12-02T00:00:00Z",
            "updated_at": "2024-12-02T00:00:00Z",
        }
        comment.update(overrides)
        return comment

    return _make
