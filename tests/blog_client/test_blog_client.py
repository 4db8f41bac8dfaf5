"""Tests for client assembly and the command-line entry point."""
from typing import Any

import pytest
from httpx import Response

from api_client.errors import SessionExpiredError
from blog_client import __main__ as cli
from blog_client.client import BlogClient, create_blog_client
from core.config import Settings
from core.storage import FileStorage, MemoryStorage
from services.auth_backends import InMemoryAuthBackend, RestAuthBackend
from services.auth_session import SessionState


def _settings(**overrides: Any) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestCreateBlogClient:
    """Tests for create_blog_client."""

    async def test__rest_backend_by_default(self) -> None:
        """Without configuration the REST backend is used."""
        client = create_blog_client(_settings(), storage=MemoryStorage())

        assert isinstance(client.session._backend, RestAuthBackend)
        await client.api.aclose()

    async def test__memory_backend(self) -> None:
        """BLOG_AUTH_BACKEND=memory selects the in-memory backend."""
        client = create_blog_client(_settings(BLOG_AUTH_BACKEND="memory"), storage=MemoryStorage())

        assert isinstance(client.session._backend, InMemoryAuthBackend)
        await client.api.aclose()

    async def test__file_storage_default(self, tmp_path) -> None:
        """Storage defaults to a file at the configured path."""
        path = tmp_path / "storage.json"
        client = create_blog_client(_settings(BLOG_STORAGE_PATH=str(path)))

        assert isinstance(client.token_store._storage, FileStorage)
        assert client.token_store._storage.path == path
        await client.api.aclose()

    async def test__shared_components(self) -> None:
        """Session and content share the one API client and token store."""
        client = create_blog_client(_settings(), storage=MemoryStorage())

        assert client.content._api is client.api
        assert client.session._token_store is client.token_store
        await client.api.aclose()


class TestBlogClientLifecycle:
    """Tests for the BlogClient context manager."""

    async def test__login_and_expire_through_api(
        self, mock_api, make_token, sample_user: dict[str, Any],
    ) -> None:
        """A 401 from any authenticated call ends the session."""
        storage = MemoryStorage()
        mock_api.post("/auth/login").mock(
            return_value=Response(200, json={"access_token": make_token(), "user": sample_user}),
        )
        mock_api.delete("/posts/1").mock(return_value=Response(401))

        async with create_blog_client(_settings(), storage=storage) as client:
            await client.session.login("john@example.com", "password123")
            assert client.session.is_authenticated is True

            with pytest.raises(SessionExpiredError):
                await client.content.delete_post("1")

            assert client.session.state is SessionState.SESSION_EXPIRED
            assert client.session.session_expired is True

        assert storage.get("auth_token") is None

    async def test__restores_persisted_session(
        self, mock_api, make_token, sample_user: dict[str, Any],
    ) -> None:
        """A session stored by an earlier run is restored on entry."""
        storage = MemoryStorage({"auth_token": make_token()})
        mock_api.get("/auth/me").mock(return_value=Response(200, json=sample_user))

        async with create_blog_client(_settings(), storage=storage) as client:
            assert client.session.is_authenticated is True
            assert client.session.user is not None
            assert client.session.user.email == "john@example.com"

    async def test__exit_stops_monitor_and_closes(self) -> None:
        """Leaving the context stops background checks and closes HTTP."""
        client = create_blog_client(_settings(BLOG_AUTH_BACKEND="memory"), storage=MemoryStorage())

        async with client:
            await client.session.login("john@example.com", "password123")
            assert client.session.monitor.is_running is True

        assert client.session.monitor.is_running is False
        assert client.api._client.is_closed is True


class TestCli:
    """Tests for the command-line handlers."""

    @pytest.fixture
    def memory_client(self, monkeypatch: pytest.MonkeyPatch) -> MemoryStorage:
        """Point the CLI at the in-memory backend with shared storage."""
        storage = MemoryStorage()

        def _create() -> BlogClient:
            return create_blog_client(_settings(BLOG_AUTH_BACKEND="memory"), storage=storage)

        monkeypatch.setattr(cli, "create_blog_client", _create)
        return storage

    def test__parser__login(self) -> None:
        """login takes an email and an optional password."""
        args = cli._build_parser().parse_args(["login", "john@example.com", "--password", "pw"])

        assert args.email == "john@example.com"
        assert args.password == "pw"
        assert args.handler is cli._login

    def test__parser__requires_command(self) -> None:
        """A subcommand is required."""
        with pytest.raises(SystemExit):
            cli._build_parser().parse_args([])

    async def test__login(
        self, memory_client: MemoryStorage, capsys: pytest.CaptureFixture[str],
    ) -> None:
        """A successful login prints the user and stores the token."""
        args = cli._build_parser().parse_args(
            ["login", "john@example.com", "--password", "password123"],
        )

        assert await cli._run(args) == 0
        assert "Logged in as John Doe" in capsys.readouterr().out
        assert memory_client.get("auth_token") is not None

    async def test__login__failure(
        self, memory_client: MemoryStorage, capsys: pytest.CaptureFixture[str],
    ) -> None:
        """A failed login exits non-zero with the reason."""
        args = cli._build_parser().parse_args(
            ["login", "john@example.com", "--password", "wrong"],
        )

        assert await cli._run(args) == 1
        assert "Invalid email or password" in capsys.readouterr().err

    async def test__whoami__anonymous(
        self, memory_client: MemoryStorage, capsys: pytest.CaptureFixture[str],
    ) -> None:
        """whoami without a session says so."""
        args = cli._build_parser().parse_args(["whoami"])

        assert await cli._run(args) == 1
        assert "Not logged in" in capsys.readouterr().out

    async def test__posts(
        self, mock_api, monkeypatch: pytest.MonkeyPatch, make_post,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """posts lists id, title, category and author."""
        monkeypatch.setattr(
            cli,
            "create_blog_client",
            lambda: create_blog_client(_settings(), storage=MemoryStorage()),
        )
        mock_api.get("/posts").mock(return_value=Response(200, json=[make_post("1")]))

        assert await cli._run(cli._build_parser().parse_args(["posts"])) == 0
        assert "1\tPost 1 [Web Development] by John Doe" in capsys.readouterr().out

    async def test__post__not_found(
        self, mock_api, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str],
    ) -> None:
        """A missing post exits non-zero."""
        monkeypatch.setattr(
            cli,
            "create_blog_client",
            lambda: create_blog_client(_settings(), storage=MemoryStorage()),
        )
        mock_api.get("/posts/9").mock(return_value=Response(404))

        assert await cli._run(cli._build_parser().parse_args(["post", "9"])) == 1
        assert "Post 9 not found" in capsys.readouterr().err
