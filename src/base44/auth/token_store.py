"""Access-token store backed by the host :class:`~base44.environment.Environment`.

The token has up to three homes: the query string of the current URL (right
after the hosted login page redirects back), persistent storage, and
memory. :meth:`TokenStore.init_from_environment` moves it from the first to
the other two and strips it from the URL so it cannot leak through history,
shared links or ``Referer`` headers.

The token value is never logged and never part of ``repr()``.

See Also:
    :class:`~base44.auth.module.AuthModule` -- identity operations built on
    this store.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import parse_qsl, unquote_plus, urlsplit, urlunsplit

from base44.environment import Environment

logger = logging.getLogger(__name__)

TOKEN_QUERY_PARAM = "access_token"
STORAGE_KEY = "base44_access_token"


def extract_query_param(url: str, name: str) -> Optional[str]:
    """Return the first non-empty value of query parameter *name* in *url*."""
    for key, value in parse_qsl(urlsplit(url).query, keep_blank_values=True):
        if key == name and value:
            return value
    return None


def strip_query_param(url: str, name: str) -> str:
    """Return *url* without any occurrence of query parameter *name*.

    The remaining query segments are kept byte-for-byte, in order, along
    with scheme, host, path and fragment.
    """
    parts = urlsplit(url)
    kept = [
        segment
        for segment in parts.query.split("&")
        if unquote_plus(segment.partition("=")[0]) != name
    ]
    return urlunsplit(parts._replace(query="&".join(kept)))


class TokenStore:
    """Holds the current access token and keeps storage in sync.

    Args:
        environment: Host capability providing the URL and storage.
        param_name: Query parameter carrying the token after login.
        storage_key: Key under which the token is persisted.

    Example::

        store = TokenStore(StaticEnvironment("https://app.test/?access_token=t1"))
        store.init_from_environment()   # 't1', URL is now 'https://app.test/'
        store.get()                     # 't1'
    """

    def __init__(
        self,
        environment: Environment,
        *,
        param_name: str = TOKEN_QUERY_PARAM,
        storage_key: str = STORAGE_KEY,
    ) -> None:
        self._environment = environment
        self._param_name = param_name
        self._storage_key = storage_key
        self._token: Optional[str] = None

    @property
    def param_name(self) -> str:
        return self._param_name

    def init_from_environment(self) -> Optional[str]:
        """Bootstrap the token from the current URL, falling back to storage.

        When the URL carries the token parameter, the token is persisted
        and the parameter is removed from the URL before this method
        returns. Safe to call repeatedly: once the URL is clean the stored
        token is returned.

        Returns:
            The token, or ``None`` if neither the URL nor storage has one.
        """
        url = self._environment.current_url()
        if url:
            token = extract_query_param(url, self._param_name)
            if token:
                self.set(token, persist=True)
                self._environment.replace_url(strip_query_param(url, self._param_name))
                logger.debug("Captured access token from URL and removed it from the location")
                return token

        stored = self._environment.storage.get_item(self._storage_key)
        if stored:
            self._token = stored
            logger.debug("Loaded access token from storage")
            return stored
        return None

    def get(self) -> Optional[str]:
        """Return the current token, or ``None``."""
        if self._token is not None:
            return self._token
        return self._environment.storage.get_item(self._storage_key) or None

    def set(self, token: str, persist: bool = True) -> None:
        """Replace the current token.

        Args:
            token: The new access token.
            persist: Also write the token to storage.
        """
        if not token:
            raise ValueError("token must be a non-empty string")
        self._token = token
        if persist:
            self._environment.storage.set_item(self._storage_key, token)
        logger.debug("Access token updated (persisted=%s)", persist)

    def remove(self) -> None:
        """Forget the token in memory and in storage."""
        self._token = None
        self._environment.storage.remove_item(self._storage_key)
        logger.debug("Access token removed")

    def __repr__(self) -> str:
        return f"TokenStore(param_name={self._param_name!r}, has_token={self.get() is not None})"
