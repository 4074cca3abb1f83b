"""Shared test fixtures for base44.

Provides an in-process fake backend (an :class:`httpx.MockTransport` with
per-route responses and a request log), isolated config directories, clients
wired to the fake backend, output state management and a CLI runner. These
fixtures are discovered by pytest and available to all test modules.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx
import pytest

from base44.environment import MemoryStorage, StaticEnvironment
from base44.factory import Base44Client, create_client
from base44.output import OutputFormat, OutputManager, reset_output, set_output

APP_ID = "app-123"
SERVER_URL = "https://api.test"
TOKEN = "tok-secret-123"

Responder = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


# ---------------------------------------------------------------------------
# Fake backend
# ---------------------------------------------------------------------------


class FakeBackend:
    """Routes requests by ``(method, path)`` and records every request.

    Unrouted requests get ``404 {"message": "Not found"}``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], Responder] = {}

    def route(
        self,
        method: str,
        path: str,
        response: Optional[Responder] = None,
        *,
        json: Any = None,
        status: int = 200,
    ) -> None:
        if response is None:
            response = httpx.Response(status, json=json)
        self._routes[(method.upper(), path)] = response

    def app_route(self, method: str, suffix: str, **kwargs: Any) -> None:
        """Route a path below ``/api/apps/{APP_ID}``."""
        self.route(method, f"/api/apps/{APP_ID}/{suffix.lstrip('/')}", **kwargs)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self._routes.get((request.method, request.url.path))
        if responder is None:
            return httpx.Response(404, json={"message": "Not found"})
        if callable(responder):
            return responder(request)
        return responder

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def environment() -> StaticEnvironment:
    """A URL-less in-memory environment."""
    return StaticEnvironment(storage=MemoryStorage())


@pytest.fixture
def make_client(
    backend: FakeBackend, environment: StaticEnvironment
) -> Callable[..., Base44Client]:
    """Factory for clients wired to the fake backend.

    Keyword arguments are forwarded to :func:`create_client` as config
    overrides; ``environment=`` replaces the default environment fixture.
    """

    def _make(env: Optional[StaticEnvironment] = None, **overrides: Any) -> Base44Client:
        config: dict[str, Any] = {"app_id": APP_ID, "server_url": SERVER_URL}
        config.update(overrides)
        return create_client(
            config,
            environment=env if env is not None else environment,
            transport=backend.transport,
        )

    return _make


# ---------------------------------------------------------------------------
# Global output state
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> Iterator[None]:
    """Reset the global OutputManager after every test.

    The manager keeps references to sys.stdout/sys.stderr; CliRunner swaps
    those streams, so a stale manager would write to closed files.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> Iterator[OutputManager]:
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> Iterator[OutputManager]:
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and storage to a temporary directory.

    Points the XDG directories at ``tmp_path``, clears every ``BASE44_*``
    environment variable and changes the working directory to ``tmp_path``.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("base44.config._is_xdg_platform", lambda: True)

    for var in ["BASE44_APP_ID", "BASE44_SERVER_URL", "BASE44_ENV", "BASE44_TOKEN"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
