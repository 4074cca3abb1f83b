"""Integration endpoints: ``client.integrations.<Package>.<Endpoint>(payload)``.

Packages and endpoints are resolved lazily and cached; resolving one never
touches the network. Calling an endpoint POSTs its payload to
``/api/apps/{app_id}/integrations/{package}/{endpoint}`` and returns the
backend's answer unmodified.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, Optional

from base44.client.executor import RequestExecutor
from base44.client.multipart import split_files


class IntegrationEndpoint:
    """A callable bound to one ``package``/``endpoint`` pair."""

    def __init__(self, executor: RequestExecutor, package: str, name: str) -> None:
        self._executor = executor
        self._package = package
        self._name = name

    @property
    def package(self) -> str:
        return self._package

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> str:
        return self._executor.app_path("integrations", self._package, self._name)

    async def __call__(self, payload: Optional[Mapping[str, Any]] = None, **fields: Any) -> Any:
        """Invoke the endpoint.

        Keyword arguments are merged over *payload*. When any value is a
        file (bytes, a binary file object or a :class:`pathlib.Path`) the
        request is sent as multipart form data, otherwise as JSON.

        Example::

            await client.integrations.Core.SendEmail({"to": "a@b.c", "subject": "Hi"})
            await client.integrations.Core.UploadFile(file=Path("report.pdf"))
        """
        data: dict[str, Any] = dict(payload or {})
        data.update(fields)
        form, files = split_files(data)
        if files:
            return await self._executor.execute("POST", self.path, body=form, files=files)
        return await self._executor.execute("POST", self.path, body=data)

    def __repr__(self) -> str:
        return f"IntegrationEndpoint({self._package!r}, {self._name!r})"


class IntegrationPackage:
    """Namespace of endpoints under one integration package.

    Every public attribute is an endpoint, so ``Core.name`` or
    ``Core.endpoint`` resolve to endpoints of those names.
    """

    def __init__(self, module: IntegrationsModule, name: str) -> None:
        self._module = module
        self._name = name

    def __getattr__(self, name: str) -> IntegrationEndpoint:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._module.endpoint(self._name, name)

    def __getitem__(self, name: str) -> IntegrationEndpoint:
        return self._module.endpoint(self._name, name)

    def __repr__(self) -> str:
        return f"IntegrationPackage({self._name!r})"


class IntegrationsModule:
    """Lazily-built cache of integration packages and their endpoints.

    Attribute access resolves package names, except for :meth:`package`
    and :meth:`endpoint` themselves; reach packages with those names
    through item access (``integrations["package"]``).
    """

    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor
        self._packages: dict[str, IntegrationPackage] = {}
        self._endpoints: dict[tuple[str, str], IntegrationEndpoint] = {}

    def package(self, name: str) -> IntegrationPackage:
        if not name:
            raise ValueError("integration package name must not be empty")
        package = self._packages.get(name)
        if package is None:
            package = IntegrationPackage(self, name)
            self._packages[name] = package
        return package

    def endpoint(self, package: str, name: str) -> IntegrationEndpoint:
        """Return the endpoint ``package/name``, creating it on first use."""
        if not package or not name:
            raise ValueError("integration package and endpoint names must not be empty")
        key = (package, name)
        endpoint = self._endpoints.get(key)
        if endpoint is None:
            endpoint = IntegrationEndpoint(self._executor, package, name)
            self._endpoints[key] = endpoint
        return endpoint

    def __getattr__(self, name: str) -> IntegrationPackage:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.package(name)

    def __getitem__(self, name: str) -> IntegrationPackage:
        return self.package(name)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._packages))

    def __repr__(self) -> str:
        return f"IntegrationsModule(packages={sorted(self._packages)!r})"
