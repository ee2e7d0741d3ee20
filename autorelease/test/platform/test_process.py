"""Tests for autorelease.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from autorelease.core.result import Err, Ok
from autorelease.platform.process import ProcessError, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("git", "status"), returncode=1, stdout="", stderr="fatal")
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(("gh", "pr", "merge", "12", "--squash"), 1, "", "")
        assert str(error) == "gh pr merge ... failed (exit 1)"

    def test_detail_prefers_stderr(self) -> None:
        assert ProcessError(("x",), 1, "out", " err \n").detail == "err"
        assert ProcessError(("x",), 1, "out", "").detail == "out"
        assert ProcessError(("x",), 3, "", "").detail == "x failed (exit 3)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(42)"],
            cwd=tmp_path,
        )

        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert "bad" in result.error.stderr

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert result.error.stderr

    def test_timeout(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2
        )

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert "timed out" in result.error.stderr

    def test_trace_sees_command_output_and_exit(self, tmp_path: Path) -> None:
        lines: list[str] = []

        run([sys.executable, "-c", "print('traced')"], cwd=tmp_path, trace=lines.append)

        assert lines[0].startswith("$ ")
        assert any("stdout: traced" in line for line in lines)
        assert lines[-1] == "  exit 0"

    def test_trace_clips_long_output(self, tmp_path: Path) -> None:
        lines: list[str] = []

        run([sys.executable, "-c", "print('x' * 5000)"], cwd=tmp_path, trace=lines.append)

        stdout_line = next(line for line in lines if "stdout:" in line)
        assert "more chars" in stdout_line
        assert len(stdout_line) < 2100
