"""HTTP layer of the base44 client.

:class:`RequestExecutor` wraps :class:`httpx.AsyncClient` with bearer-token
injection, a single query-encoding convention and uniform error mapping.
Every higher-level operation -- entity CRUD, integration calls, identity
lookups -- is one :meth:`RequestExecutor.execute` call.

Modules:
    executor: the executor itself.
    query: filter and option encoding (``sort``, ``limit``, ``skip``, ``fields``).
    multipart: file-part helpers for uploads.
    response: success-body and error-body decoding.
"""

from base44.client.executor import RequestExecutor
from base44.client.query import build_query, encode_query

__all__ = ["RequestExecutor", "build_query", "encode_query"]
