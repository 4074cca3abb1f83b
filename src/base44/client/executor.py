"""Asynchronous request executor -- the single funnel for every API call.

:class:`RequestExecutor` wraps :class:`httpx.AsyncClient` and is the only
component that talks to the network. Entity handles, integration endpoints
and the auth module all reduce each operation to exactly one
:meth:`RequestExecutor.execute` call, so query encoding, token injection and
error classification happen in one place:

1. the resource path and method are validated into a
   :class:`~base44.models.RequestDescriptor`;
2. the current token is read through the ``token_provider`` callable (never
   cached) and sent as ``Authorization: Bearer ...`` when present;
3. transport failures become :class:`~base44.exceptions.TransportError` and
   non-2xx answers become the matching
   :class:`~base44.exceptions.HTTPError` subclass;
4. successful bodies are returned as parsed, unmodified.

The executor never retries and sets no timeout of its own. Pass a
configured ``http_client`` or ``transport`` to change either.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union
from urllib.parse import quote

import httpx

from base44 import __version__
from base44.client.multipart import form_value
from base44.client.query import encode_query
from base44.client.response import extract_response_data, parse_error_body
from base44.exceptions import TransportError, error_for_status
from base44.models import HTTPMethod, RequestDescriptor

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]

_REDACTED = "***"
_SENSITIVE_HEADERS = frozenset({"authorization", "cookie"})


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of *headers* safe to log."""
    return {
        key: (_REDACTED if key.lower() in _SENSITIVE_HEADERS else value)
        for key, value in headers.items()
    }


class RequestExecutor:
    """Builds and sends requests scoped to one application.

    Args:
        server_url: Backend base URL, e.g. ``https://base44.app``.
        app_id: Application identifier embedded in every path.
        token_provider: Zero-argument callable returning the current token
            or ``None``; called once per request.
        transport: Optional :mod:`httpx` transport (tests pass an
            :class:`httpx.MockTransport`).
        http_client: Optional pre-configured :class:`httpx.AsyncClient`.
            It is used as-is and not closed by :meth:`aclose`.

    Example::

        executor = RequestExecutor("https://base44.app", "app-1", store.get)
        task = await executor.execute("GET", executor.app_path("entities", "Task", "42"))
    """

    def __init__(
        self,
        server_url: str,
        app_id: Union[str, int],
        token_provider: TokenProvider,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._server_url = server_url.rstrip("/")
        self._app_id = str(app_id)
        self._token_provider = token_provider
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self._server_url,
            timeout=None,
            follow_redirects=True,
            transport=transport,
        )
        self._default_headers = {
            "User-Agent": f"base44-python/{__version__}",
            "Accept": "application/json",
            "X-App-Id": self._app_id,
        }

    @property
    def server_url(self) -> str:
        return self._server_url

    @property
    def app_id(self) -> str:
        return self._app_id

    def app_path(self, *segments: Union[str, int]) -> str:
        """Build ``/api/apps/{app_id}/<segments...>`` with every segment percent-encoded."""
        parts = ["api", "apps", self._app_id, *(str(s) for s in segments)]
        return "/" + "/".join(quote(part, safe="") for part in parts)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def execute(
        self,
        method: Union[str, HTTPMethod],
        resource_path: str,
        *,
        query: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        files: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded response body.

        Args:
            method: GET, POST, PUT or DELETE.
            resource_path: Absolute path below the server URL.
            query: Query parameters, encoded by
                :func:`~base44.client.query.encode_query`.
            body: JSON body, or form fields when *files* is given.
            files: Multipart file parts (``{"file": (name, content)}``).

        Returns:
            The parsed JSON body, raw text for non-JSON bodies, or ``None``
            for empty bodies.

        Raises:
            ValueError: If *method* or *resource_path* is invalid.
            TransportError: If no response was received.
            HTTPError: On any non-2xx status (see
                :func:`~base44.exceptions.error_for_status`).
        """
        descriptor = self._describe(method, resource_path, query, body, files)
        response = await self._send(descriptor)
        if not response.is_success:
            message, code, data = parse_error_body(response)
            logger.debug(
                "%s %s -> %s (%s)",
                descriptor.method.value, descriptor.path, response.status_code, code,
            )
            raise error_for_status(response.status_code, message, code=code, data=data)

        logger.debug("%s %s -> %s", descriptor.method.value, descriptor.path, response.status_code)
        return extract_response_data(response)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this executor created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _describe(
        self,
        method: Union[str, HTTPMethod],
        resource_path: str,
        query: Optional[Mapping[str, Any]],
        body: Any,
        files: Optional[Mapping[str, Any]],
    ) -> RequestDescriptor:
        if files:
            form = {k: form_value(v) for k, v in dict(body or {}).items() if v is not None}
            return RequestDescriptor(
                method=method,
                path=resource_path,
                params=encode_query(query),
                form=form or None,
                files=dict(files),
            )
        return RequestDescriptor(
            method=method,
            path=resource_path,
            params=encode_query(query),
            json_body=body,
        )

    def _headers(self) -> dict[str, str]:
        headers = dict(self._default_headers)
        token = self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _send(self, descriptor: RequestDescriptor) -> httpx.Response:
        headers = self._headers()
        kwargs: dict[str, Any] = {
            "method": descriptor.method.value,
            "url": descriptor.path,
            "headers": headers,
        }
        if descriptor.params:
            kwargs["params"] = descriptor.params
        if descriptor.is_multipart:
            kwargs["files"] = descriptor.files
            if descriptor.form:
                kwargs["data"] = descriptor.form
        elif descriptor.json_body is not None:
            kwargs["json"] = descriptor.json_body

        logger.debug(
            "Sending %s %s params=%s headers=%s",
            descriptor.method.value,
            descriptor.path,
            [key for key, _ in descriptor.params],
            redact_headers(headers),
        )
        try:
            return await self._client.request(**kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(
                f"Network error during {descriptor.method.value} {descriptor.path}: {exc}",
                original_error=exc,
            ) from exc
