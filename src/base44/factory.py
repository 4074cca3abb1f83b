"""Client factory -- wires configuration, environment, token store and modules.

:func:`create_client` is the public entry point::

    async with create_client({"app_id": "64f1c0"}) as client:
        tasks = await client.entities.Task.list(sort="-created_date", limit=10)

Construction order:

1. the configuration is validated (``ConfigurationError`` before any I/O);
2. the token store bootstraps from the environment's URL and storage when
   ``auto_init_auth`` is set;
3. an explicit ``token`` in the configuration takes precedence, in memory
   only;
4. the executor and the entity/integration/auth modules are built;
5. with ``requires_auth`` and no token, the client redirects to login.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

import httpx

from base44.auth.module import AuthModule
from base44.auth.token_store import TokenStore
from base44.client.executor import RequestExecutor
from base44.config import validate_client_config
from base44.entities import EntitiesModule
from base44.environment import Environment, StaticEnvironment
from base44.integrations import IntegrationsModule
from base44.models import ClientConfig, ConfigSnapshot

logger = logging.getLogger(__name__)


class Base44Client:
    """A configured client for one base44 application.

    Built by :func:`create_client`; not meant to be instantiated directly.

    Attributes:
        entities: :class:`~base44.entities.EntitiesModule`.
        integrations: :class:`~base44.integrations.IntegrationsModule`.
        auth: :class:`~base44.auth.module.AuthModule`.
        environment: The :class:`~base44.environment.Environment` in use.
    """

    def __init__(
        self,
        config: ClientConfig,
        environment: Environment,
        token_store: TokenStore,
        executor: RequestExecutor,
    ) -> None:
        self._config = config
        self._token_store = token_store
        self._executor = executor
        self.environment = environment
        self.entities = EntitiesModule(executor)
        self.integrations = IntegrationsModule(executor)
        self.auth = AuthModule(
            executor,
            token_store,
            environment,
            server_url=config.server_url,
            app_id=config.app_id,
        )

    def set_token(self, token: str, save_to_storage: bool = True) -> None:
        """Use *token* for all subsequent requests (shortcut for ``auth.set_token``)."""
        self.auth.set_token(token, save_to_storage=save_to_storage)

    def get_config(self) -> ConfigSnapshot:
        """Return a read-only, token-free copy of the client configuration."""
        return self._config.snapshot()

    async def aclose(self) -> None:
        await self._executor.aclose()

    async def __aenter__(self) -> Base44Client:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"Base44Client(app_id={self._config.app_id!r}, "
            f"server_url={self._config.server_url!r}, env={self._config.env.value!r}, "
            f"authenticated={self._token_store.get() is not None})"
        )


def create_client(
    config: Union[ClientConfig, Mapping[str, Any], None] = None,
    *,
    environment: Optional[Environment] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    **overrides: Any,
) -> Base44Client:
    """Create a :class:`Base44Client`.

    Args:
        config: A :class:`~base44.models.ClientConfig` or a mapping with
            ``snake_case`` or ``camelCase`` keys.
        environment: Host capability; defaults to a
            :class:`~base44.environment.StaticEnvironment` with no URL and
            in-memory storage.
        transport: Optional httpx transport for the internal HTTP client.
        http_client: Optional pre-built :class:`httpx.AsyncClient`.
        **overrides: Configuration fields that override *config*.

    Raises:
        ConfigurationError: If ``app_id`` is missing or a value is invalid.
    """
    resolved = validate_client_config(config, **overrides)
    env = environment if environment is not None else StaticEnvironment()

    token_store = TokenStore(env)
    if resolved.auto_init_auth:
        token_store.init_from_environment()
    if resolved.token:
        token_store.set(resolved.token, persist=False)

    executor = RequestExecutor(
        resolved.server_url,
        resolved.app_id,
        token_store.get,
        transport=transport,
        http_client=http_client,
    )
    client = Base44Client(resolved, env, token_store, executor)
    logger.debug(
        "Created client for app %s at %s (token=%s)",
        resolved.app_id, resolved.server_url, token_store.get() is not None,
    )

    if resolved.requires_auth and not token_store.get():
        client.auth.login()
    return client
