"""base44 -- Python client for base44 application backends.

The client exposes three areas of an application's backend:

* **entities** -- CRUD for record types named at runtime
  (``client.entities.Task.list()``);
* **integrations** -- remote functions grouped by package
  (``client.integrations.Core.SendEmail({...})``);
* **auth** -- the current user, token lifecycle and login/logout redirects.

Typical usage::

    from base44 import create_client

    async with create_client({"app_id": "64f1c0"}) as client:
        user = await client.auth.me()

A ``base44`` command-line tool is installed alongside the library.

Modules:
    factory: :func:`create_client` and :class:`Base44Client`.
    client: the request executor and query encoding.
    auth: token store, auth module and loopback login capture.
    environment: injected URL/storage/navigation capability.
    exceptions: error hierarchy with exit-code mapping.
    app: Typer application and CLI entry point.
    webhooks: optional FastAPI webhook receivers.
"""

__version__ = "0.1.0"

from base44.environment import (  # noqa: E402
    DesktopEnvironment,
    Environment,
    FileStorage,
    MemoryStorage,
    StaticEnvironment,
    Storage,
)
from base44.exceptions import (  # noqa: E402
    AuthError,
    AuthRequiredError,
    Base44Error,
    ConfigurationError,
    ErrorKind,
    HTTPError,
    NotFoundError,
    ServerError,
    TransportError,
)
from base44.factory import Base44Client, create_client  # noqa: E402
from base44.models import ClientConfig, ConfigSnapshot, NavigationResult  # noqa: E402

__all__ = [
    "AuthError",
    "AuthRequiredError",
    "Base44Client",
    "Base44Error",
    "ClientConfig",
    "ConfigSnapshot",
    "ConfigurationError",
    "DesktopEnvironment",
    "Environment",
    "ErrorKind",
    "FileStorage",
    "HTTPError",
    "MemoryStorage",
    "NavigationResult",
    "NotFoundError",
    "ServerError",
    "StaticEnvironment",
    "Storage",
    "TransportError",
    "create_client",
    "__version__",
]
