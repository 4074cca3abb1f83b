"""Error hierarchy for the base44 client.

Every failure surfaced to callers is a :class:`Base44Error` carrying the
same fields -- ``message``, ``status``, ``code``, ``data`` and
``original_error`` -- so one ``except Base44Error`` clause covers transport
failures, HTTP errors and configuration mistakes alike. The :attr:`kind`
attribute lets callers branch on the failure category without relying on
``isinstance`` checks::

    try:
        await client.entities.Task.get("42")
    except Base44Error as exc:
        if exc.kind is ErrorKind.TRANSPORT:
            ...

Subclass hierarchy::

    Base44Error
    +-- ConfigurationError   (kind=configuration, exit 1)
    +-- TransportError       (kind=transport,     exit 6)
    +-- AuthRequiredError    (kind=auth_required, exit 3)
    +-- HTTPError            (kind=http,          exit 1)
        +-- AuthError        (401 / 403,          exit 3)
        +-- NotFoundError    (404,                exit 4)
        +-- ServerError      (5xx,                exit 5)

:func:`error_for_status` is the single place where an HTTP status is mapped
onto a subclass.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from base44.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class ErrorKind(str, enum.Enum):
    """Failure category of a :class:`Base44Error`."""

    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    HTTP = "http"
    AUTH_REQUIRED = "auth_required"


class Base44Error(Exception):
    """Uniform error raised by every client operation.

    Args:
        message: Human-readable description.
        status: HTTP status code, or ``None`` when no response was received.
        code: Machine-readable error code reported by the backend.
        data: The parsed error body returned by the backend, if any.
        original_error: The underlying exception (transport failures).
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    _kind: Optional[ErrorKind] = None

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        data: Any = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.data = data
        self.original_error = original_error

    @property
    def kind(self) -> ErrorKind:
        """The failure category, derived from the status when not fixed by the subclass."""
        if self._kind is not None:
            return self._kind
        return ErrorKind.HTTP if self.status is not None else ErrorKind.TRANSPORT

    def to_dict(self) -> dict[str, Any]:
        """Return the error fields as a JSON-serialisable mapping."""
        return {
            "message": self.message,
            "status": self.status,
            "code": self.code,
            "data": self.data,
            "kind": self.kind.value,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, status={self.status!r}, "
            f"code={self.code!r})"
        )


class ConfigurationError(Base44Error):
    """Raised synchronously when the client configuration is invalid (e.g. no ``app_id``)."""

    _kind = ErrorKind.CONFIGURATION


class TransportError(Base44Error):
    """Raised when no HTTP response was received (DNS, refused connection, timeout).

    ``status`` is always ``None`` and ``original_error`` holds the
    :mod:`httpx` exception.
    """

    exit_code = EXIT_CONNECTION_ERROR
    _kind = ErrorKind.TRANSPORT


class AuthRequiredError(Base44Error):
    """Raised when an identity operation is attempted without a token."""

    exit_code = EXIT_AUTH_FAILURE
    _kind = ErrorKind.AUTH_REQUIRED

    def __init__(
        self,
        message: str = "Authentication required: no access token is set",
        status: Optional[int] = None,
        code: Optional[str] = "auth_required",
        data: Any = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, status, code, data, original_error)


class HTTPError(Base44Error):
    """Raised when the backend answers with a non-2xx status."""

    _kind = ErrorKind.HTTP


class AuthError(HTTPError):
    """Raised on HTTP 401 / 403 (token missing, expired or not allowed)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(HTTPError):
    """Raised on HTTP 404 (unknown entity, id or integration endpoint)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(HTTPError):
    """Raised on HTTP 5xx."""

    exit_code = EXIT_SERVER_ERROR


def error_for_status(
    status: int,
    message: str,
    code: Optional[str] = None,
    data: Any = None,
) -> HTTPError:
    """Build the :class:`HTTPError` subclass matching *status*."""
    cls: type[HTTPError]
    if status in (401, 403):
        cls = AuthError
    elif status == 404:
        cls = NotFoundError
    elif status >= 500:
        cls = ServerError
    else:
        cls = HTTPError
    return cls(message, status=status, code=code, data=data)
