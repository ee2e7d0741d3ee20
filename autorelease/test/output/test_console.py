"""Tests for autorelease.output.console."""

from __future__ import annotations

import pytest

from autorelease.output.console import MockConsole, RichConsole, Style


class TestMockConsole:
    def test_captures_levels(self) -> None:
        console = MockConsole()

        console.success("done")
        console.error("broke")
        console.warning("careful")
        console.info("fyi")

        assert console.messages == ["OK done", "error: broke", "warning: careful", "info: fyi"]
        assert console.has_success()
        assert console.has_error()
        assert console.has_warning()

    def test_debug_always_captured(self) -> None:
        console = MockConsole()

        console.debug("$ gh pr view 1")

        assert console.messages == ["[DEBUG] $ gh pr view 1"]
        assert console.count(Style.DEBUG) == 1

    def test_find_and_clear(self) -> None:
        console = MockConsole()
        console.print("PR #12: https://x", Style.INFO)
        console.print("other")

        assert len(console.find("PR #12")) == 1

        console.clear()
        assert console.outputs == []


class TestRichConsole:
    def test_debug_hidden_unless_enabled(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().debug("hidden")
        RichConsole(debug=True).debug("shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "[DEBUG] shown" in out

    def test_brackets_are_not_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()

        console.print("## [1.2.0] notes", Style.INFO)
        console.error("bad [red]input[/red]")

        out = capsys.readouterr().out
        assert "## [1.2.0] notes" in out
        assert "[red]input[/red]" in out
