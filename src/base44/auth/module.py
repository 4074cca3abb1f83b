"""Identity operations: current user, profile updates, login and logout.

:class:`AuthModule` combines the :class:`~base44.auth.token_store.TokenStore`
with the :class:`~base44.client.executor.RequestExecutor`. Network
operations (:meth:`~AuthModule.me`, :meth:`~AuthModule.update_me`,
:meth:`~AuthModule.is_authenticated`) are coroutines; redirects
(:meth:`~AuthModule.login`, :meth:`~AuthModule.logout`) hand a URL to the
:class:`~base44.environment.Environment` and return a
:class:`~base44.models.NavigationResult`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Optional, Union
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from base44.auth.token_store import TokenStore
from base44.client.executor import RequestExecutor
from base44.environment import Environment
from base44.exceptions import AuthRequiredError, Base44Error
from base44.models import Entity, NavigationReason, NavigationResult

logger = logging.getLogger(__name__)


class AuthModule:
    """Authentication lifecycle for one client.

    Args:
        executor: Request executor bound to the application.
        token_store: Store holding the current token.
        environment: Host capability used for redirects.
        server_url: Backend base URL (hosts the login page).
        app_id: Application identifier passed to the login page.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        token_store: TokenStore,
        environment: Environment,
        *,
        server_url: str,
        app_id: Union[str, int],
    ) -> None:
        self._executor = executor
        self._token_store = token_store
        self._environment = environment
        self._server_url = server_url.rstrip("/")
        self._app_id = app_id
        self._probe: Optional[asyncio.Future[bool]] = None

    # ------------------------------------------------------------------ #
    # Identity
    # ------------------------------------------------------------------ #

    async def me(self) -> Entity:
        """Return the authenticated user.

        Raises:
            AuthRequiredError: If no token is set.
            AuthError: If the backend rejects the token (401/403).
        """
        self._require_token()
        return await self._executor.execute("GET", self._me_path())

    async def update_me(self, data: Mapping[str, Any]) -> Entity:
        """Apply a partial update to the authenticated user and return the result.

        Raises:
            AuthRequiredError: If no token is set.
        """
        self._require_token()
        return await self._executor.execute("PUT", self._me_path(), body=dict(data))

    async def is_authenticated(self) -> bool:
        """Return whether a token is set and the backend accepts it.

        Never raises for backend or network failures; those yield ``False``.
        Calls made while a probe is in flight share that probe.
        """
        if not self._token_store.get():
            return False
        if self._probe is None:
            probe = asyncio.ensure_future(self._run_probe())
            probe.add_done_callback(self._forget_probe)
            self._probe = probe
        return await asyncio.shield(self._probe)

    # ------------------------------------------------------------------ #
    # Token management
    # ------------------------------------------------------------------ #

    def set_token(self, token: str, save_to_storage: bool = True) -> None:
        """Use *token* for every subsequent request."""
        self._token_store.set(token, persist=save_to_storage)
        self._probe = None

    def remove_token(self) -> None:
        """Forget the token in memory and storage."""
        self._token_store.remove()
        self._probe = None

    def get_token(self) -> Optional[str]:
        return self._token_store.get()

    # ------------------------------------------------------------------ #
    # Redirects
    # ------------------------------------------------------------------ #

    def login_url(self, next_url: Optional[str] = None) -> str:
        """Build the hosted login URL.

        Args:
            next_url: Where the login page sends the user back to. Defaults
                to the current location, or the server URL when the host
                has none.
        """
        from_url = next_url or self._environment.current_url() or self._server_url
        query = urlencode({"from_url": from_url, "app_id": self._app_id}, quote_via=quote)
        return f"{self._server_url}/login?{query}"

    def login(self, next_url: Optional[str] = None) -> NavigationResult:
        """Navigate to the hosted login page.

        Returns:
            The :class:`~base44.models.NavigationResult` describing the
            redirect that was handed to the environment.
        """
        url = self.login_url(next_url)
        logger.debug("Redirecting to login page")
        self._environment.navigate(url)
        return NavigationResult(url=url, reason=NavigationReason.LOGIN)

    def logout(self, redirect_url: Optional[str] = None) -> NavigationResult:
        """Clear the token, then navigate away.

        Args:
            redirect_url: Target after logout. Defaults to the root of the
                current location, or the login page when there is none.
        """
        self.remove_token()
        target = redirect_url or self._app_root() or self.login_url()
        logger.debug("Logged out; redirecting")
        self._environment.navigate(target)
        return NavigationResult(url=target, reason=NavigationReason.LOGOUT)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _me_path(self) -> str:
        return self._executor.app_path("auth", "me")

    def _require_token(self) -> None:
        if not self._token_store.get():
            raise AuthRequiredError()

    def _app_root(self) -> Optional[str]:
        current = self._environment.current_url()
        if not current:
            return None
        parts = urlsplit(current)
        if not parts.scheme or not parts.netloc:
            return None
        return urlunsplit((parts.scheme, parts.netloc, "/", "", ""))

    async def _run_probe(self) -> bool:
        try:
            await self.me()
        except Base44Error as exc:
            logger.debug("Authentication probe failed: %s", exc.kind.value)
            return False
        return True

    def _forget_probe(self, probe: asyncio.Future[bool]) -> None:
        if self._probe is probe:
            self._probe = None
