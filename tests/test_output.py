"""Tests for CLI output -- format resolution, stream discipline, record rendering."""

from __future__ import annotations

import json

import pytest

from base44.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    record_columns,
    reset_output,
    set_output,
)


@pytest.fixture(autouse=True)
def _reset_global_output():
    reset_output()
    yield
    reset_output()


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("base44.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("base44.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# Format and colour resolution
# ------------------------------------------------------------------ #


class TestFormatResolution:
    def test_auto_is_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_is_rich_on_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_is_plain_on_tty_without_color(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# Stream discipline
# ------------------------------------------------------------------ #


class TestStreams:
    def test_data_to_stdout_diagnostics_to_stderr(self, capfd, non_tty):
        out = OutputManager(format=OutputFormat.JSON, no_color=True)
        out.info("working")
        out.format_response({"id": "t1"})
        out.error("failed")
        captured = capfd.readouterr()
        assert json.loads(captured.out) == {"id": "t1"}
        assert "working" in captured.err
        assert "Error: failed" in captured.err

    def test_quiet_suppresses_info_success_suggest(self, capfd, non_tty):
        out = OutputManager(no_color=True, quiet=True)
        out.info("i")
        out.success("s")
        out.suggest("g")
        out.warning("w")
        out.error("e")
        err = capfd.readouterr().err
        assert err.splitlines() == ["Warning: w", "Error: e"]

    def test_debug_only_when_verbose(self, capfd, non_tty):
        OutputManager(no_color=True).debug("hidden")
        OutputManager(no_color=True, verbose=True).debug("shown")
        err = capfd.readouterr().err
        assert "hidden" not in err
        assert "[debug] shown" in err

    def test_suggest_prefix(self, capfd, non_tty):
        OutputManager(no_color=True).suggest("Log in: base44 auth login")
        assert capfd.readouterr().err.strip() == "→ Log in: base44 auth login"


# ------------------------------------------------------------------ #
# format_response
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_none_prints_nothing(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response(None)
        assert capfd.readouterr().out == ""

    def test_json_list(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response([{"id": "a"}, {"id": "b"}])
        assert json.loads(capfd.readouterr().out) == [{"id": "a"}, {"id": "b"}]

    def test_plain_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response({"id": "a", "done": True})
        assert capfd.readouterr().out.splitlines() == ["id\ta", "done\ttrue"]

    def test_plain_records(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response(
            [{"id": "a", "tags": ["x"]}, {"id": "b", "tags": None}]
        )
        assert capfd.readouterr().out.splitlines() == ['a\t["x"]', "b\t"]

    def test_plain_string(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response("pong")
        assert capfd.readouterr().out == "pong\n"

    def test_rich_records_render_table(self, capfd, non_tty):
        out = OutputManager(format=OutputFormat.RICH, no_color=True)
        out.format_response([{"title": "Write docs", "id": "t1"}], title="Task")
        text = capfd.readouterr().out
        assert "Task" in text
        assert "Write docs" in text
        assert text.index("id") < text.index("title")

    def test_rich_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response({"id": "t1"})
        assert "t1" in capfd.readouterr().out


def test_record_columns_order() -> None:
    records = [
        {"title": "A", "updated_date": "u", "id": "1"},
        {"status": "open", "created_date": "c"},
    ]
    assert record_columns(records) == ["id", "created_date", "updated_date", "title", "status"]


class TestModuleFunctions:
    def test_delegate_to_installed_manager(self, capfd, non_tty):
        from base44 import output

        set_output(OutputManager(format=OutputFormat.JSON, no_color=True, verbose=True))
        output.info("i")
        output.success("s")
        output.warning("w")
        output.error("e")
        output.suggest("g")
        output.debug("d")
        output.format_response({"id": "t1"})
        captured = capfd.readouterr()
        assert json.loads(captured.out) == {"id": "t1"}
        assert captured.err.splitlines() == [
            "i",
            "s",
            "Warning: w",
            "Error: e",
            "→ g",
            "[debug] d",
        ]


class TestGlobalInstance:
    def test_get_output_creates_default(self, non_tty):
        assert isinstance(get_output(), OutputManager)

    def test_set_and_reset(self, non_tty):
        custom = OutputManager(format=OutputFormat.JSON)
        set_output(custom)
        assert get_output() is custom
        reset_output()
        assert get_output() is not custom
