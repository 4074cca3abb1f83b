"""Tests for base44.config -- XDG paths, atomic writes, validation, precedence."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from typing import Any

import pytest

from base44.config import (
    atomic_write,
    get_data_dir,
    load_project_config,
    resolve_client_config,
    validate_client_config,
)
from base44.exceptions import ConfigurationError
from base44.models import AppEnv, ClientConfig


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG paths
# ---------------------------------------------------------------------------


class TestDataDir:
    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("base44.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "base44"
        assert result.is_dir()

    def test_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("base44.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

        assert get_data_dir() == tmp_path / "data" / "base44"

    def test_non_xdg_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("base44.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".base44"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "file.json"
        atomic_write(target, '{"a": 1}')
        assert target.read_text(encoding="utf-8") == '{"a": 1}'

    def test_replaces_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "file.txt"
        target.write_text("old")
        atomic_write(target, "new")
        assert target.read_text() == "new"

    def test_leaves_no_temp_files(self, tmp_path: Path) -> None:
        atomic_write(tmp_path / "file.txt", "x")
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_applies_mode(self, tmp_path: Path) -> None:
        target = tmp_path / "secret.json"
        atomic_write(target, "{}", mode=0o600)
        assert stat.S_IMODE(target.stat().st_mode) == 0o600


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidateClientConfig:
    def test_from_mapping(self) -> None:
        config = validate_client_config({"appId": "a1", "env": "dev"})
        assert config.app_id == "a1"
        assert config.env is AppEnv.DEV

    def test_overrides_win(self) -> None:
        config = validate_client_config({"app_id": "a1"}, server_url="http://localhost:8000")
        assert config.server_url == "http://localhost:8000"

    def test_none_overrides_ignored(self) -> None:
        config = validate_client_config({"app_id": "a1"}, server_url=None)
        assert config.server_url == "https://base44.app"

    def test_accepts_client_config(self) -> None:
        original = ClientConfig(app_id="a1", token="t")
        config = validate_client_config(original, env="dev")
        assert config.app_id == "a1"
        assert config.token == "t"
        assert config.env is AppEnv.DEV

    @pytest.mark.parametrize("config", [None, {}, {"app_id": ""}, {"appId": None}])
    def test_missing_app_id(self, config: Any) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            validate_client_config(config)
        assert exc_info.value.code == "missing_app_id"

    def test_invalid_value_wrapped(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            validate_client_config({"app_id": "a", "server_url": "not-a-url"})
        assert exc_info.value.code == "invalid_config"
        assert "server_url" in str(exc_info.value)
        assert exc_info.value.original_error is not None


# ---------------------------------------------------------------------------
# Project config and precedence
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_missing_returns_none(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_loads_object(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "base44.json", {"appId": "from-file"})
        assert load_project_config() == {"appId": "from-file"}

    def test_invalid_json(self, isolated_config: Path) -> None:
        (isolated_config / "base44.json").write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_project_config()

    def test_non_object(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "base44.json", ["a"])
        with pytest.raises(ConfigurationError):
            load_project_config()


class TestResolveClientConfig:
    def test_project_file_only(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "base44.json",
            {"appId": "file-app", "serverUrl": "http://file.test"},
        )
        config = resolve_client_config()
        assert config.app_id == "file-app"
        assert config.server_url == "http://file.test"

    def test_env_overrides_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(isolated_config / "base44.json", {"appId": "file-app"})
        monkeypatch.setenv("BASE44_APP_ID", "env-app")
        monkeypatch.setenv("BASE44_ENV", "dev")
        monkeypatch.setenv("BASE44_TOKEN", "env-token")

        config = resolve_client_config()
        assert config.app_id == "env-app"
        assert config.env is AppEnv.DEV
        assert config.token == "env-token"

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("BASE44_APP_ID", "env-app")
        monkeypatch.setenv("BASE44_SERVER_URL", "http://env.test")

        config = resolve_client_config(cli_app_id="cli-app")
        assert config.app_id == "cli-app"
        assert config.server_url == "http://env.test"

    def test_nothing_configured(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigurationError):
            resolve_client_config()
