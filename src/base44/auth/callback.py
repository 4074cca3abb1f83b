"""Loopback redirect capture for terminal logins.

The hosted login page sends the browser back to ``from_url`` with
``?access_token=...`` appended. :class:`RedirectCapture` listens on
``127.0.0.1`` for that single request and returns the full redirect URL,
which the CLI then feeds to
:meth:`~base44.auth.token_store.TokenStore.init_from_environment` -- the
same capture-persist-strip path a browser page takes.
"""

from __future__ import annotations

import socket
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional

from base44.auth.token_store import TOKEN_QUERY_PARAM, extract_query_param
from base44.exceptions import AuthRequiredError

_SUCCESS_PAGE = "Login successful! You can close this window and return to the terminal."
_FAILURE_PAGE = "Login failed: no access token was received."


def find_free_port() -> int:
    """Find a free TCP port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class RedirectCapture:
    """One-shot HTTP listener that records the login redirect.

    Use as a context manager so the socket is bound before the browser is
    sent to the login page::

        with RedirectCapture() as capture:
            client.auth.login(capture.callback_url)
            redirect_url = capture.wait()

    Args:
        port: Port to listen on; a free one is picked when ``None``.
        timeout: Seconds to wait for the redirect.
        param_name: Query parameter expected to carry the token.
    """

    def __init__(
        self,
        port: Optional[int] = None,
        timeout: float = 120,
        param_name: str = TOKEN_QUERY_PARAM,
    ) -> None:
        self._port = port or find_free_port()
        self._timeout = timeout
        self._param_name = param_name
        self._server: Optional[HTTPServer] = None
        self._captured: Optional[str] = None

    @property
    def callback_url(self) -> str:
        return f"http://127.0.0.1:{self._port}/callback"

    def __enter__(self) -> RedirectCapture:
        capture = self

        class CallbackHandler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:
                url = f"http://127.0.0.1:{capture._port}{self.path}"
                ok = extract_query_param(url, capture._param_name) is not None
                if ok:
                    capture._captured = url
                body = _SUCCESS_PAGE if ok else _FAILURE_PAGE
                self.send_response(200 if ok else 400)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.end_headers()
                self.wfile.write(f"<html><body><h2>{body}</h2></body></html>".encode("utf-8"))

            def log_message(self, format: str, *args: Any) -> None:
                pass  # request lines contain the token

        self._server = HTTPServer(("127.0.0.1", self._port), CallbackHandler)
        self._server.timeout = self._timeout
        return self

    def __exit__(self, *args: object) -> None:
        if self._server is not None:
            self._server.server_close()
            self._server = None

    def wait(self) -> str:
        """Block until the redirect arrives and return its full URL.

        Raises:
            AuthRequiredError: If no request carrying the token arrives
                before the timeout.
        """
        if self._server is None:
            raise RuntimeError("RedirectCapture must be used as a context manager")
        self._server.handle_request()
        if self._captured is None:
            raise AuthRequiredError(
                "No access token received from the login redirect",
                code="login_timeout",
            )
        return self._captured
