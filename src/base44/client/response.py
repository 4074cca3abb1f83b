"""Response decoding -- success bodies and backend error payloads.

:func:`extract_response_data` hands successful bodies back untouched (no
schema validation, no entity coercion). :func:`parse_error_body` pulls the
``message`` / ``code`` / ``data`` triple out of an error response for
:func:`~base44.exceptions.error_for_status`.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from a successful HTTP response.

    Attempts to parse the body as JSON first. If that fails (e.g. the
    response is plain text), returns the raw text. Returns ``None`` for
    responses with no content, which is the normal outcome of a DELETE.

    Args:
        response: The :class:`httpx.Response` to extract data from.

    Returns:
        A JSON-decoded object, a ``str`` of raw text, or ``None``.
    """
    if not response.content or not response.content.strip():
        return None

    try:
        return response.json()
    except ValueError:
        pass

    return response.text


def parse_error_body(response: httpx.Response) -> tuple[str, Optional[str], Any]:
    """Return ``(message, code, data)`` for a non-2xx response.

    ``data`` is the whole parsed body (or the text when it is not JSON).
    The message falls back to ``Request failed with status code N``.
    """
    fallback = f"Request failed with status code {response.status_code}"
    data = extract_response_data(response)

    if isinstance(data, dict):
        message = data.get("message") or data.get("detail") or data.get("error") or fallback
        if not isinstance(message, str):
            message = str(message)
        code = data.get("code")
        return message, (str(code) if code is not None else None), data

    if isinstance(data, str) and data.strip():
        return f"{fallback}: {data.strip()[:200]}", None, data

    return fallback, None, data
