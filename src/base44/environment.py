"""Host environment capability: current URL, URL rewriting, navigation and storage.

A browser SDK reads ``window.location`` and ``localStorage`` directly. Here
those ambient facilities are an explicit :class:`Environment` object handed
to the :class:`~base44.auth.token_store.TokenStore` and the
:class:`~base44.auth.module.AuthModule`, which keeps both deterministic
under test.

Implementations:

* :class:`StaticEnvironment` -- URL held in memory, navigations recorded in
  a list. The default for :func:`~base44.factory.create_client`; also what
  server-side code and tests use.
* :class:`DesktopEnvironment` -- persistent :class:`FileStorage` and real
  navigation through the system web browser. Used by the ``base44`` CLI.

Storage backends implement the three-method :class:`Storage` contract
(``get_item`` / ``set_item`` / ``remove_item``).
"""

from __future__ import annotations

import json
import logging
import webbrowser
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from base44.config import atomic_write, get_data_dir

logger = logging.getLogger(__name__)


# --- Storage ---


class Storage(ABC):
    """Minimal key/value persistence contract."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value for *key*, or ``None``."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete *key*. A no-op when the key is absent."""
        ...


class MemoryStorage(Storage):
    """Process-local storage backed by a dict."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)


class FileStorage(Storage):
    """JSON key/value file, written atomically with ``0o600`` permissions.

    Defaults to ``<data_dir>/storage.json`` (see
    :func:`~base44.config.get_data_dir`). A missing or corrupt file behaves
    as empty storage.

    Args:
        path: Explicit file location.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else get_data_dir() / "storage.json"

    @property
    def path(self) -> Path:
        """The filesystem path of the storage file."""
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.is_file():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, ValueError, OSError):
            logger.debug("Ignoring unreadable storage file %s", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, items: dict[str, str]) -> None:
        atomic_write(self._path, json.dumps(items, indent=2) + "\n", mode=0o600)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._save(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if key in items:
            del items[key]
            self._save(items)


# --- Environments ---


class Environment(ABC):
    """Everything the auth layer needs from its host.

    Args:
        storage: Persistent storage for the access token.
    """

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    @abstractmethod
    def current_url(self) -> Optional[str]:
        """Return the host's current location, or ``None`` if it has none."""
        ...

    @abstractmethod
    def replace_url(self, url: str) -> None:
        """Rewrite the current location in place, without navigating or adding history."""
        ...

    @abstractmethod
    def navigate(self, url: str) -> None:
        """Perform a full navigation to *url*."""
        ...


class StaticEnvironment(Environment):
    """In-memory environment.

    The current URL is a plain attribute; :meth:`navigate` records the
    target in :attr:`navigations` and makes it the current URL, as a page
    load would.

    Example::

        env = StaticEnvironment("https://app.example.com/?access_token=abc")
        client = create_client({"app_id": "x"}, environment=env)
        env.current_url()   # 'https://app.example.com/'
    """

    def __init__(self, url: Optional[str] = None, storage: Optional[Storage] = None) -> None:
        super().__init__(storage if storage is not None else MemoryStorage())
        self._url = url
        self.navigations: list[str] = []

    def current_url(self) -> Optional[str]:
        return self._url

    def replace_url(self, url: str) -> None:
        self._url = url

    def navigate(self, url: str) -> None:
        self.navigations.append(url)
        self._url = url


class DesktopEnvironment(StaticEnvironment):
    """Environment for terminal use: token kept in :class:`FileStorage`, navigation opens a browser."""

    def __init__(self, url: Optional[str] = None, storage: Optional[Storage] = None) -> None:
        super().__init__(url, storage if storage is not None else FileStorage())

    def navigate(self, url: str) -> None:
        super().navigate(url)
        if not webbrowser.open(url):
            logger.warning("Could not open a browser; visit %s manually", url)
