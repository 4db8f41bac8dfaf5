"""
Interchangeable implementations of the authentication endpoints.

AuthSession talks to exactly one AuthBackend, chosen when the client is
assembled (see blog_client.client.create_blog_client):

- RestAuthBackend: the real REST API.
- InMemoryAuthBackend: a self-contained stand-in seeded with demo users, for
  local development and tests. It plays the server's role, issuing and
  verifying its own signed tokens; the client side never verifies anything.
"""
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar

import jwt
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from api_client.client import ApiClient
from api_client.errors import ApiError, RequestFailedError, SessionExpiredError
from core.token_store import TokenStore
from schemas.auth import AuthResponse
from schemas.user import ProfileUpdate, User
from schemas.validators import MIN_PASSWORD_LENGTH, validate_email

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class AuthBackend(Protocol):
    """Operations AuthSession needs from the authentication service."""

    async def login(self, email: str, password: str) -> AuthResponse: ...

    async def register(self, email: str, password: str, name: str) -> AuthResponse: ...

    async def logout(self) -> None: ...

    async def update_profile(self, update: ProfileUpdate) -> User: ...

    async def fetch_current_user(self) -> User: ...


def _parse_response(model: type[ModelT], data: Any) -> ModelT:
    """Validate a response body, reporting a malformed one as a failed request."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        logger.warning("Unexpected %s response shape: %s", model.__name__, e)
        raise ApiError("Invalid response from server") from e


class RestAuthBackend:
    """
    Authentication against the REST API.

    The current-user and profile endpoints exist under two paths across
    backend versions (`/auth/me` vs `/users/me`, `/users/me` vs
    `/auth/profile`). The primary path is tried first and the alternative
    is used only when the primary answers 404.
    """

    CURRENT_USER_PATHS = ("/auth/me", "/users/me")
    PROFILE_PATHS = ("/users/me", "/auth/profile")

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def login(self, email: str, password: str) -> AuthResponse:  # noqa: D102
        data = await self._api.post("/auth/login", {"email": email, "password": password})
        return _parse_response(AuthResponse, data)

    async def register(self, email: str, password: str, name: str) -> AuthResponse:  # noqa: D102
        data = await self._api.post(
            "/auth/register",
            {"email": email, "password": password, "name": name},
        )
        return _parse_response(AuthResponse, data)

    async def logout(self) -> None:  # noqa: D102
        await self._api.post("/auth/logout", {}, require_auth=True)

    async def update_profile(self, update: ProfileUpdate) -> User:  # noqa: D102
        payload = update.model_dump()
        data = await self._first_found(
            self.PROFILE_PATHS,
            lambda path: self._api.put(path, payload, require_auth=True),
        )
        return _parse_response(User, data)

    async def fetch_current_user(self) -> User:  # noqa: D102
        data = await self._first_found(
            self.CURRENT_USER_PATHS,
            lambda path: self._api.get(path, require_auth=True),
        )
        return _parse_response(User, data)

    async def _first_found(
        self,
        paths: tuple[str, ...],
        send: Callable[[str], Awaitable[Any]],
    ) -> Any:
        """Send to each path in turn, moving on only when the server answers 404."""
        for path in paths[:-1]:
            try:
                return await send(path)
            except RequestFailedError as e:
                if not e.is_not_found:
                    raise
                logger.debug("%s not found, trying next path", path)
        return await send(paths[-1])


@dataclass
class _Account:
    user: User
    password: str


def _seed_accounts() -> list[_Account]:
    return [
        _Account(
            user=User(
                id="1",
                email="john@example.com",
                name="John Doe",
                created_at=datetime(2024, 1, 1, tzinfo=UTC),
            ),
            password="password123",
        ),
        _Account(
            user=User(
                id="2",
                email="jane@example.com",
                name="Jane Smith",
                created_at=datetime(2024, 1, 15, tzinfo=UTC),
            ),
            password="password123",
        ),
        _Account(
            user=User(
                id="3",
                email="bob@example.com",
                name="Bob Johnson",
                created_at=datetime(2024, 2, 1, tzinfo=UTC),
            ),
            password="password123",
        ),
    ]


class InMemoryAuthBackend:
    """
    Authentication served from process memory.

    Behaves like the REST backend from the session's point of view: bad
    credentials and duplicate registrations are rejected with the same error
    types, and authenticated calls read the bearer token from the token store
    and fail with SessionExpiredError when it is missing, expired, revoked, or
    not signed by this backend.

    Args:
        token_store: Where the client keeps its token.
        secret: HMAC key used to sign issued tokens.
        token_ttl: Lifetime of issued tokens, in seconds.
        seed_demo_users: Start with the john/jane/bob demo accounts.
    """

    ALGORITHM = "HS256"

    def __init__(
        self,
        token_store: TokenStore,
        secret: str | None = None,
        token_ttl: int = 3600,
        seed_demo_users: bool = True,
    ) -> None:
        self._token_store = token_store
        self._secret = secret or uuid.uuid4().hex
        self._token_ttl = token_ttl
        self._accounts: dict[str, _Account] = {}
        self._revoked: set[str] = set()
        if seed_demo_users:
            for account in _seed_accounts():
                self._accounts[account.user.email.lower()] = account

    def issue_token(self, user_id: str, now: float | None = None) -> str:
        """Create a signed token for a user."""
        issued_at = int(time.time() if now is None else now)
        claims = {
            "sub": user_id,
            "userId": user_id,
            "iat": issued_at,
            "exp": issued_at + self._token_ttl,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(claims, self._secret, algorithm=self.ALGORITHM)

    def _authenticated_account(self) -> _Account:
        token = self._token_store.retrieve()
        if token is None or token in self._revoked:
            raise SessionExpiredError(status_code=401)
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self.ALGORITHM])
        except jwt.PyJWTError as e:
            raise SessionExpiredError(status_code=401) from e
        for account in self._accounts.values():
            if account.user.id == str(claims.get("sub")):
                return account
        raise SessionExpiredError(status_code=401)

    async def login(self, email: str, password: str) -> AuthResponse:  # noqa: D102
        account = self._accounts.get(email.strip().lower())
        if account is None or account.password != password:
            raise RequestFailedError("Invalid email or password", 401)
        return AuthResponse(token=self.issue_token(account.user.id), user=account.user)

    async def register(self, email: str, password: str, name: str) -> AuthResponse:  # noqa: D102
        try:
            email = validate_email(email)
        except ValueError as e:
            raise RequestFailedError(str(e), 422) from e
        if len(password) < MIN_PASSWORD_LENGTH:
            raise RequestFailedError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters", 422,
            )
        if email.lower() in self._accounts:
            raise RequestFailedError("Email already registered", 400)

        user = User(
            id=str(uuid.uuid4()),
            email=email,
            name=name,
            created_at=datetime.now(UTC),
        )
        self._accounts[email.lower()] = _Account(user=user, password=password)
        logger.debug("Registered in-memory user id=%s", user.id)
        return AuthResponse(token=self.issue_token(user.id), user=user)

    async def logout(self) -> None:  # noqa: D102
        token = self._token_store.retrieve()
        if token is not None:
            self._revoked.add(token)

    async def update_profile(self, update: ProfileUpdate) -> User:  # noqa: D102
        account = self._authenticated_account()
        account.user = account.user.model_copy(
            update={"name": update.name, "profile_picture": update.profile_picture},
        )
        return account.user

    async def fetch_current_user(self) -> User:  # noqa: D102
        return self._authenticated_account().user
