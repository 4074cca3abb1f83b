"""Pydantic models shared across the base44 client.

This is the single source of truth for data shapes in the package:

**Configuration** -- :class:`ClientConfig` (what the caller declares) and
:class:`ConfigSnapshot` (what :meth:`~base44.factory.Base44Client.get_config`
hands back, without the token).

**Requests** -- :class:`HTTPMethod` and :class:`RequestDescriptor`, built by
the :class:`~base44.client.executor.RequestExecutor` for every call.

**Navigation** -- :class:`NavigationResult`, the value returned by
:meth:`~base44.auth.module.AuthModule.login` and
:meth:`~base44.auth.module.AuthModule.logout`.

Configuration models accept both ``snake_case`` and ``camelCase`` keys, so
``{"appId": 1}`` and ``{"app_id": 1}`` are equivalent.
"""

from __future__ import annotations

import enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_SERVER_URL = "https://base44.app"

# An entity is an open-ended record; only ``id`` is guaranteed by the backend.
Entity = dict[str, Any]


class AppEnv(str, enum.Enum):
    """Deployment environment of the target application."""

    PROD = "prod"
    DEV = "dev"


class ClientConfig(BaseModel):
    """Declared backend configuration, immutable once the client is built.

    Example::

        ClientConfig(app_id="64f1c0", token="eyJ...")
        ClientConfig.model_validate({"appId": 123, "serverUrl": "http://localhost:3000"})
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    server_url: str = Field(default=DEFAULT_SERVER_URL, description="Backend base URL")
    app_id: Union[str, int] = Field(description="Application identifier")
    env: AppEnv = Field(default=AppEnv.PROD, description="prod or dev")
    token: Optional[str] = Field(default=None, repr=False, description="Initial access token")
    requires_auth: bool = Field(
        default=False, description="Redirect to login at startup when no token is available"
    )
    auto_init_auth: bool = Field(
        default=True, description="Capture the token from the URL / storage at startup"
    )

    @field_validator("server_url")
    @classmethod
    def _normalise_server_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("server_url must start with http:// or https://")
        return value

    @field_validator("app_id")
    @classmethod
    def _require_app_id(cls, value: Union[str, int]) -> Union[str, int]:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("app_id must not be empty")
        return value

    def snapshot(self) -> ConfigSnapshot:
        """Return the token-free, read-only view of this configuration."""
        return ConfigSnapshot(
            server_url=self.server_url,
            app_id=self.app_id,
            env=self.env,
            requires_auth=self.requires_auth,
        )


class ConfigSnapshot(BaseModel):
    """Read-only copy of the public configuration fields."""

    model_config = ConfigDict(frozen=True)

    server_url: str
    app_id: Union[str, int]
    env: AppEnv
    requires_auth: bool


class HTTPMethod(str, enum.Enum):
    """HTTP methods the request executor accepts."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class RequestDescriptor(BaseModel):
    """One outgoing request, built per call and never persisted.

    Exactly one of ``json_body`` or ``files`` (optionally with ``form``)
    describes the payload.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    method: HTTPMethod
    path: str
    params: list[tuple[str, str]] = Field(default_factory=list)
    json_body: Any = None
    form: Optional[dict[str, str]] = None
    files: Optional[dict[str, Any]] = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("path")
    @classmethod
    def _require_path(cls, value: str) -> str:
        if not value or not value.strip("/"):
            raise ValueError("resource path must not be empty")
        return value

    @property
    def is_multipart(self) -> bool:
        return bool(self.files)


class NavigationReason(str, enum.Enum):
    """Why a navigation was initiated."""

    LOGIN = "login"
    LOGOUT = "logout"


class NavigationResult(BaseModel):
    """Sentinel returned once a full-page navigation has been handed to the environment."""

    model_config = ConfigDict(frozen=True)

    url: str
    reason: NavigationReason
