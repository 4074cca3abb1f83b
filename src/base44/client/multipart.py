"""Helpers for file-bearing (multipart) requests."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import IO, Any, Union

FileInput = Union[str, os.PathLike, bytes, IO[bytes], tuple]


def file_part(file: FileInput, default_name: str = "upload") -> tuple[str, Any]:
    """Normalise *file* into an httpx ``(filename, content)`` part.

    Accepts a filesystem path, raw bytes, a binary file object or an
    already-built ``(filename, content[, content_type])`` tuple.
    """
    if isinstance(file, tuple):
        return file
    if isinstance(file, (str, os.PathLike)):
        path = Path(file)
        return (path.name, path.read_bytes())
    if isinstance(file, (bytes, bytearray)):
        return (default_name, bytes(file))
    if hasattr(file, "read"):
        name = getattr(file, "name", None)
        return (Path(name).name if isinstance(name, str) else default_name, file)
    raise TypeError(f"Unsupported file input: {type(file).__name__}")


def is_file_value(value: Any) -> bool:
    """Return True for values that must travel as a multipart file part.

    Plain strings are never files; wrap paths in :class:`pathlib.Path` to
    upload them.
    """
    if isinstance(value, (bytes, bytearray, Path)):
        return True
    return hasattr(value, "read") and not isinstance(value, (str, Mapping))


def form_value(value: Any) -> str:
    """Encode a non-file field for a multipart form."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value, default=str)


def split_files(payload: Mapping[str, Any]) -> tuple[dict[str, str], dict[str, tuple[str, Any]]]:
    """Separate *payload* into form fields and file parts.

    Returns:
        ``(form, files)``; ``files`` is empty when the payload has no
        file-like values.
    """
    form: dict[str, str] = {}
    files: dict[str, tuple[str, Any]] = {}
    for key, value in payload.items():
        if value is None:
            continue
        if is_file_value(value):
            files[key] = file_part(value, default_name=key)
        else:
            form[key] = form_value(value)
    return form, files
