"""Configuration management: XDG paths, atomic writes and precedence resolution.

This module handles everything the client reads from or writes to the host:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.base44/`` on macOS and Windows. See :func:`get_data_dir`.
* **Atomic writes** -- :func:`atomic_write` writes through a temporary file
  and ``os.replace`` so a crash never leaves a half-written token file.
* **Validation** -- :func:`validate_client_config` turns raw mappings into a
  :class:`~base44.models.ClientConfig`, raising
  :class:`~base44.exceptions.ConfigurationError` instead of pydantic errors.
* **Precedence resolution** -- :func:`resolve_client_config` merges CLI
  flags, ``BASE44_*`` environment variables and a project-local
  ``base44.json`` into the effective configuration.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from base44.exceptions import ConfigurationError
from base44.models import ClientConfig

_APP_NAME = "base44"
_PROJECT_CONFIG_FILENAME = "base44.json"

ENV_APP_ID = "BASE44_APP_ID"
ENV_SERVER_URL = "BASE44_SERVER_URL"
ENV_ENV = "BASE44_ENV"
ENV_TOKEN = "BASE44_TOKEN"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_data_dir() -> Path:
    """Return the data directory (persisted token storage, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/base44/`` (default ``~/.local/share/base44/``).
    On macOS/Windows: ``~/.base44/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file is created next to *path* so that ``os.replace`` is
    an atomic rename on POSIX. When *mode* is given the permissions are
    applied to the temporary file before any content is written, so
    secrets are never world-readable, even momentarily.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Validation ---


def validate_client_config(
    config: Union[ClientConfig, Mapping[str, Any], None] = None,
    **overrides: Any,
) -> ClientConfig:
    """Build a :class:`~base44.models.ClientConfig` from a mapping and keyword overrides.

    Keys may be ``snake_case`` or ``camelCase``. Overrides whose value is
    ``None`` are ignored so callers can forward optional CLI flags as-is.

    Raises:
        ConfigurationError: If ``app_id`` is missing or any value is invalid.
    """
    if isinstance(config, ClientConfig):
        data: dict[str, Any] = config.model_dump()
    else:
        data = dict(config or {})
    data.update({key: value for key, value in overrides.items() if value is not None})

    if data.get("app_id") in (None, "") and data.get("appId") in (None, ""):
        raise ConfigurationError(
            "app_id is required to create a client",
            code="missing_app_id",
        )
    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(
            f"Invalid client configuration: {problems}",
            code="invalid_config",
            original_error=exc,
        ) from exc


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./base44.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigurationError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_client_config(
    cli_app_id: Optional[str] = None,
    cli_server_url: Optional[str] = None,
    cli_env: Optional[str] = None,
    cli_token: Optional[str] = None,
) -> ClientConfig:
    """Resolve the effective client configuration.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``BASE44_APP_ID``, ``BASE44_SERVER_URL``,
           ``BASE44_ENV``, ``BASE44_TOKEN``)
        3. Project config (``./base44.json``)
        4. Defaults

    Raises:
        ConfigurationError: If no ``app_id`` is found at any level.
    """
    merged: dict[str, Any] = {}

    project = load_project_config()
    if project is not None:
        # Normalise camelCase keys so later layers override them cleanly.
        probe = {key: value for key, value in project.items() if value is not None}
        for field_name, field in ClientConfig.model_fields.items():
            if field.alias in probe:
                merged[field_name] = probe[field.alias]
            if field_name in probe:
                merged[field_name] = probe[field_name]

    env_layer = {
        "app_id": os.environ.get(ENV_APP_ID),
        "server_url": os.environ.get(ENV_SERVER_URL),
        "env": os.environ.get(ENV_ENV),
        "token": os.environ.get(ENV_TOKEN),
    }
    merged.update({key: value for key, value in env_layer.items() if value})

    cli_layer = {
        "app_id": cli_app_id,
        "server_url": cli_server_url,
        "env": cli_env,
        "token": cli_token,
    }
    merged.update({key: value for key, value in cli_layer.items() if value is not None})

    return validate_client_config(merged)
