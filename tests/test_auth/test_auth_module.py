"""Tests for AuthModule -- identity calls, probe sharing, login/logout redirects."""

from __future__ import annotations

import asyncio
from typing import Any, Callable
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from base44.auth.token_store import STORAGE_KEY
from base44.environment import MemoryStorage, StaticEnvironment
from base44.exceptions import AuthError, AuthRequiredError
from base44.factory import Base44Client
from base44.models import NavigationReason

TOKEN = "tok-secret-123"
ME_PATH = "/api/apps/app-123/auth/me"
USER = {"id": "u1", "email": "ada@example.com", "full_name": "Ada"}


# ---------------------------------------------------------------------------
# me / update_me
# ---------------------------------------------------------------------------


class TestMe:
    @pytest.mark.asyncio
    async def test_me_sends_bearer_token(self, backend, make_client) -> None:
        backend.route("GET", ME_PATH, json=USER)
        client = make_client(token=TOKEN)

        assert await client.auth.me() == USER
        assert backend.last.headers["authorization"] == f"Bearer {TOKEN}"

    @pytest.mark.asyncio
    async def test_me_without_token_makes_no_request(self, backend, make_client) -> None:
        client = make_client()
        with pytest.raises(AuthRequiredError):
            await client.auth.me()
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_me_rejected_token(self, backend, make_client) -> None:
        backend.route("GET", ME_PATH, status=401, json={"message": "Token expired"})
        client = make_client(token=TOKEN)
        with pytest.raises(AuthError) as exc_info:
            await client.auth.me()
        assert exc_info.value.status == 401
        assert str(exc_info.value) == "Token expired"

    @pytest.mark.asyncio
    async def test_update_me_puts_partial_data(self, backend, make_client) -> None:
        backend.route("PUT", ME_PATH, json={**USER, "full_name": "Ada L."})
        client = make_client(token=TOKEN)

        result = await client.auth.update_me({"full_name": "Ada L."})
        assert result["full_name"] == "Ada L."
        assert backend.last.method == "PUT"
        assert backend.last_json() == {"full_name": "Ada L."}

    @pytest.mark.asyncio
    async def test_update_me_requires_token(self, make_client) -> None:
        with pytest.raises(AuthRequiredError):
            await make_client().auth.update_me({"full_name": "x"})


# ---------------------------------------------------------------------------
# is_authenticated
# ---------------------------------------------------------------------------


class TestIsAuthenticated:
    @pytest.mark.asyncio
    async def test_false_without_token(self, backend, make_client) -> None:
        assert await make_client().auth.is_authenticated() is False
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_true_when_me_succeeds(self, backend, make_client) -> None:
        backend.route("GET", ME_PATH, json=USER)
        assert await make_client(token=TOKEN).auth.is_authenticated() is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403, 500])
    async def test_false_on_backend_error(self, backend, make_client, status: int) -> None:
        backend.route("GET", ME_PATH, status=status, json={"message": "no"})
        assert await make_client(token=TOKEN).auth.is_authenticated() is False

    @pytest.mark.asyncio
    async def test_false_on_network_error(self, backend, make_client) -> None:
        def _fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend.route("GET", ME_PATH, _fail)
        assert await make_client(token=TOKEN).auth.is_authenticated() is False

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_probe(self, backend, make_client) -> None:
        release = asyncio.Event()

        async def _slow(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200, json=USER)

        calls = 0

        class SlowTransport(httpx.AsyncBaseTransport):
            async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
                nonlocal calls
                calls += 1
                return await _slow(request)

        from base44.factory import create_client

        client = create_client(
            {"app_id": "app-123", "server_url": "https://api.test", "token": TOKEN},
            transport=SlowTransport(),
        )
        pending = [asyncio.ensure_future(client.auth.is_authenticated()) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()
        assert await asyncio.gather(*pending) == [True, True, True]
        assert calls == 1

        # A later call starts a new probe.
        assert await client.auth.is_authenticated() is True
        assert calls == 2


# ---------------------------------------------------------------------------
# Token management
# ---------------------------------------------------------------------------


class TestTokenManagement:
    @pytest.mark.asyncio
    async def test_set_token_applies_to_next_request(self, backend, make_client) -> None:
        backend.route("GET", ME_PATH, json=USER)
        client = make_client()
        client.auth.set_token("new-token")
        await client.auth.me()
        assert backend.last.headers["authorization"] == "Bearer new-token"

    def test_set_token_persists_unless_told_not_to(self, make_client, environment) -> None:
        client = make_client()
        client.auth.set_token("a", save_to_storage=False)
        assert environment.storage.get_item(STORAGE_KEY) is None
        client.set_token("b")
        assert environment.storage.get_item(STORAGE_KEY) == "b"
        assert client.auth.get_token() == "b"

    def test_remove_token(self, make_client, environment) -> None:
        client = make_client()
        client.set_token(TOKEN)
        client.auth.remove_token()
        assert client.auth.get_token() is None
        assert environment.storage.get_item(STORAGE_KEY) is None


# ---------------------------------------------------------------------------
# Redirects
# ---------------------------------------------------------------------------


def _query(url: str) -> dict[str, list[str]]:
    return parse_qs(urlsplit(url).query)


class TestLogin:
    def test_login_url_uses_current_location(self, make_client: Callable[..., Base44Client]) -> None:
        env = StaticEnvironment("https://myapp.test/tasks?view=all")
        client = make_client(env)

        result = client.auth.login()
        assert result.reason is NavigationReason.LOGIN
        assert result.url.startswith("https://api.test/login?")
        assert _query(result.url) == {
            "from_url": ["https://myapp.test/tasks?view=all"],
            "app_id": ["app-123"],
        }
        assert env.navigations == [result.url]

    def test_login_url_explicit_next(self, make_client: Callable[..., Base44Client]) -> None:
        env = StaticEnvironment("https://myapp.test/")
        client = make_client(env)
        url = client.auth.login_url("http://127.0.0.1:5000/callback")
        assert _query(url)["from_url"] == ["http://127.0.0.1:5000/callback"]
        assert env.navigations == []

    def test_login_url_without_location(self, make_client: Callable[..., Base44Client]) -> None:
        url = make_client().auth.login_url()
        assert _query(url)["from_url"] == ["https://api.test"]

    def test_from_url_is_percent_encoded(self, make_client: Callable[..., Base44Client]) -> None:
        url = make_client().auth.login_url("https://myapp.test/a b?x=1&y=2")
        assert "from_url=https%3A%2F%2Fmyapp.test%2Fa%20b%3Fx%3D1%26y%3D2" in url


class TestLogout:
    def test_logout_clears_storage_then_navigates(
        self, make_client: Callable[..., Base44Client]
    ) -> None:
        storage = MemoryStorage({STORAGE_KEY: TOKEN})
        seen: list[Any] = []

        class RecordingEnvironment(StaticEnvironment):
            def navigate(self, url: str) -> None:
                seen.append(self.storage.get_item(STORAGE_KEY))
                super().navigate(url)

        env = RecordingEnvironment("https://myapp.test/deep/page?x=1", storage=storage)
        client = make_client(env)
        assert client.auth.get_token() == TOKEN

        result = client.auth.logout()
        assert result.reason is NavigationReason.LOGOUT
        assert result.url == "https://myapp.test/"
        assert seen == [None]
        assert client.auth.get_token() is None

    def test_logout_explicit_redirect(self, make_client: Callable[..., Base44Client]) -> None:
        env = StaticEnvironment("https://myapp.test/")
        client = make_client(env)
        result = client.auth.logout("https://myapp.test/goodbye")
        assert env.navigations == ["https://myapp.test/goodbye"]
        assert result.url == "https://myapp.test/goodbye"

    def test_logout_without_location_goes_to_login(
        self, make_client: Callable[..., Base44Client], environment: StaticEnvironment
    ) -> None:
        result = make_client().auth.logout()
        assert result.url.startswith("https://api.test/login?")
        assert environment.navigations == [result.url]


@pytest.mark.asyncio
async def test_token_never_logged(backend, make_client, caplog: pytest.LogCaptureFixture) -> None:
    backend.route("GET", ME_PATH, json=USER)
    with caplog.at_level("DEBUG", logger="base44"):
        client = make_client(token=TOKEN)
        await client.auth.me()
        await client.auth.is_authenticated()
        client.auth.logout()
    assert caplog.records
    assert TOKEN not in caplog.text
    assert TOKEN not in repr(client)
