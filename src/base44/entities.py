"""Entity handles: CRUD operations for entity names known only at runtime.

:class:`EntitiesModule` creates one :class:`EntityHandle` per name on first
access and caches it, so ``client.entities.Task``, ``client.entities["Task"]``
and ``client.entities.handle("Task")`` all return the same object. No
registry of valid names exists; an unknown name simply produces a 404 from
the backend (:class:`~base44.exceptions.NotFoundError`).

Each handle method is one :meth:`~base44.client.executor.RequestExecutor.execute`
call against ``/api/apps/{app_id}/entities/{name}[/{id}]``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Optional

from base44.client.executor import RequestExecutor
from base44.client.multipart import FileInput, file_part
from base44.client.query import FieldList, build_query
from base44.models import Entity


class EntityHandle:
    """CRUD operations for one entity type.

    Args:
        executor: Request executor bound to the application.
        name: Entity type name, embedded verbatim in the URL path.
    """

    def __init__(self, executor: RequestExecutor, name: str) -> None:
        self._executor = executor
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def _path(self, *segments: str) -> str:
        return self._executor.app_path("entities", self._name, *segments)

    @staticmethod
    def _require_id(entity_id: Any) -> str:
        value = str(entity_id) if entity_id is not None else ""
        if not value:
            raise ValueError("entity id must not be empty")
        return value

    async def list(
        self,
        sort: Optional[FieldList] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
        fields: Optional[FieldList] = None,
    ) -> list[Entity]:
        """Return records, optionally sorted, paginated and projected.

        Args:
            sort: Field name(s); prefix with ``-`` for descending order.
            limit: Maximum number of records.
            skip: Number of records to skip.
            fields: Field name(s) to include in each record.
        """
        query = build_query(sort=sort, limit=limit, skip=skip, fields=fields)
        return await self._executor.execute("GET", self._path(), query=query)

    async def filter(
        self,
        query: Mapping[str, Any],
        sort: Optional[FieldList] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
        fields: Optional[FieldList] = None,
    ) -> list[Entity]:
        """Return records matching every field of *query*.

        ``filter({"status": "open"}, "-created_date", 10, 0)`` requests
        ``?status=open&sort=-created_date&limit=10&skip=0``.
        """
        params = build_query(query, sort=sort, limit=limit, skip=skip, fields=fields)
        return await self._executor.execute("GET", self._path(), query=params)

    async def get(self, entity_id: str) -> Entity:
        """Return one record.

        Raises:
            NotFoundError: If no record has this id.
        """
        return await self._executor.execute("GET", self._path(self._require_id(entity_id)))

    async def create(self, data: Mapping[str, Any]) -> Entity:
        """Create a record; the backend assigns its ``id``."""
        return await self._executor.execute("POST", self._path(), body=dict(data))

    async def update(self, entity_id: str, data: Mapping[str, Any]) -> Entity:
        """Update the given fields of a record, leaving the others untouched."""
        return await self._executor.execute(
            "PUT", self._path(self._require_id(entity_id)), body=dict(data)
        )

    async def delete(self, entity_id: str) -> None:
        await self._executor.execute("DELETE", self._path(self._require_id(entity_id)))

    async def delete_many(self, query: Mapping[str, Any]) -> None:
        """Delete every record matching *query*."""
        await self._executor.execute("DELETE", self._path(), query=build_query(query))

    async def bulk_create(self, records: Sequence[Mapping[str, Any]]) -> list[Entity]:
        """Create several records in one request."""
        return await self._executor.execute(
            "POST", self._path("bulk"), body=[dict(record) for record in records]
        )

    async def import_entities(self, file: FileInput) -> Any:
        """Upload a file of records (CSV, JSON, ...) as multipart field ``file``.

        Args:
            file: A path, raw bytes, a binary file object or a
                ``(filename, content)`` tuple.
        """
        return await self._executor.execute(
            "POST", self._path("import"), files={"file": file_part(file)}
        )

    def __repr__(self) -> str:
        return f"EntityHandle({self._name!r})"


class EntitiesModule:
    """Lazily-built, per-name cache of :class:`EntityHandle` objects.

    An entity named ``handle`` is shadowed by :meth:`handle` on attribute
    access; use ``entities["handle"]`` for it.
    """

    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor
        self._handles: dict[str, EntityHandle] = {}

    def handle(self, name: str) -> EntityHandle:
        """Return the handle for entity *name*, creating it on first use."""
        if not name:
            raise ValueError("entity name must not be empty")
        handle = self._handles.get(name)
        if handle is None:
            handle = EntityHandle(self._executor, name)
            self._handles[name] = handle
        return handle

    def __getattr__(self, name: str) -> EntityHandle:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.handle(name)

    def __getitem__(self, name: str) -> EntityHandle:
        return self.handle(name)

    def __contains__(self, name: object) -> bool:
        return name in self._handles

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._handles))

    def __repr__(self) -> str:
        return f"EntitiesModule(handles={sorted(self._handles)!r})"
