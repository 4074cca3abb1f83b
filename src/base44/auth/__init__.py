"""Authentication for the base44 client.

The main entry points are:

- :class:`TokenStore` -- captures the access token from the current URL,
  persists it through the environment's storage and strips it from the URL.
- :class:`AuthModule` -- identity operations (``me``, ``update_me``,
  ``is_authenticated``) and the login/logout redirects.
- :class:`RedirectCapture` -- loopback listener used by the CLI to receive
  the login redirect.

Typical usage::

    client = create_client({"app_id": "my-app"}, environment=env)
    if not await client.auth.is_authenticated():
        client.auth.login()
"""

from base44.auth.callback import RedirectCapture
from base44.auth.module import AuthModule
from base44.auth.token_store import (
    STORAGE_KEY,
    TOKEN_QUERY_PARAM,
    TokenStore,
    extract_query_param,
    strip_query_param,
)

__all__ = [
    "AuthModule",
    "RedirectCapture",
    "STORAGE_KEY",
    "TOKEN_QUERY_PARAM",
    "TokenStore",
    "extract_query_param",
    "strip_query_param",
]
