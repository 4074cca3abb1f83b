"""Query-string encoding for entity list/filter calls.

One convention, applied to every request:

* filter fields become individual parameters: ``{"a": 1, "b": 2}`` ->
  ``a=1&b=2``;
* list, tuple and set values repeat the key: ``{"status": ["open", "done"]}``
  -> ``status=open&status=done``;
* mapping values (operator objects) are sent as compact JSON:
  ``{"age": {"$gt": 30}}`` -> ``age={"$gt":30}``;
* booleans are ``true`` / ``false`` and ``None`` values are dropped;
* ``sort`` and ``fields`` accept a string or a sequence and are
  comma-joined; a ``-`` prefix on a sort field means descending;
* ``limit`` and ``skip`` are non-negative integers (``0`` is sent).
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union

QUERY_OPTIONS = ("sort", "limit", "skip", "fields")

FieldList = Union[str, Sequence[str]]


def join_fields(value: FieldList) -> str:
    """Comma-join a sort or projection spec (``["-created_date", "name"]`` -> ``"-created_date,name"``)."""
    if isinstance(value, str):
        return value
    return ",".join(str(item) for item in value)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def _bound(name: str, value: int) -> int:
    number = int(value)
    if number < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return number


def build_query(
    filters: Optional[Mapping[str, Any]] = None,
    *,
    sort: Optional[FieldList] = None,
    limit: Optional[int] = None,
    skip: Optional[int] = None,
    fields: Optional[FieldList] = None,
) -> dict[str, Any]:
    """Merge filter fields and query options into one mapping.

    Explicit options override filter keys of the same name.
    """
    query: dict[str, Any] = dict(filters or {})
    if sort is not None:
        query["sort"] = join_fields(sort)
    if limit is not None:
        query["limit"] = _bound("limit", limit)
    if skip is not None:
        query["skip"] = _bound("skip", skip)
    if fields is not None:
        query["fields"] = join_fields(fields)
    return query


def encode_query(query: Optional[Mapping[str, Any]]) -> list[tuple[str, str]]:
    """Flatten *query* into ordered ``(key, value)`` pairs for the URL."""
    pairs: list[tuple[str, str]] = []
    for key, value in (query or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            items = sorted(value, key=str) if isinstance(value, (set, frozenset)) else value
            pairs.extend((key, _scalar(item)) for item in items if item is not None)
        else:
            pairs.append((key, _scalar(value)))
    return pairs
