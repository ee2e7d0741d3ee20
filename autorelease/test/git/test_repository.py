"""Tests for git/repository.py."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from autorelease.core.result import Err, Ok, Result
from autorelease.git import repository as repository_module
from autorelease.git.repository import Repository
from autorelease.platform.process import ProcessError

Responder = Callable[[list[str]], Result[str, ProcessError]]


def _install(monkeypatch: pytest.MonkeyPatch, respond: Responder) -> list[list[str]]:
    seen: list[list[str]] = []

    def fake_run(
        cmd: list[str],
        cwd: Path,
        env: dict[str, str] | None = None,
        *,
        timeout: float | None = None,
        trace: Callable[[str], None] | None = None,
    ) -> Result[str, ProcessError]:
        args = cmd[3:]  # drop "git -C <path>"
        seen.append(args)
        return respond(args)

    monkeypatch.setattr(repository_module, "run_process", fake_run)
    return seen


def _fail(args: list[str], stderr: str, code: int = 1) -> Err[ProcessError]:
    return Err(ProcessError(("git", *args), code, "", stderr))


class TestQueries:
    def test_current_branch(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        _install(monkeypatch, lambda args: Ok("feature/x\n"))

        assert Repository(tmp_path).current_branch() == Ok("feature/x")

    def test_detached_head_is_an_error(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        _install(monkeypatch, lambda args: Ok("\n"))

        result = Repository(tmp_path).current_branch()

        assert isinstance(result, Err)
        assert "detached" in result.error.message

    def test_changed_paths(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        _install(monkeypatch, lambda args: Ok(" M src/app.py\n?? notes.txt\n"))

        assert Repository(tmp_path).changed_paths() == Ok(("src/app.py", "notes.txt"))

    def test_clean_tree(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        _install(monkeypatch, lambda args: Ok(""))

        assert Repository(tmp_path).changed_paths() == Ok(())

    def test_last_commit_message(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        seen = _install(monkeypatch, lambda args: Ok("Fix thing\n\nDetails\n"))

        assert Repository(tmp_path).last_commit_message() == Ok("Fix thing\n\nDetails")
        assert seen == [["log", "-1", "--pretty=%B"]]


class TestCommands:
    def test_push_error_carries_stderr(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        _install(monkeypatch, lambda args: _fail(args, "rejected: non-fast-forward\n"))

        result = Repository(tmp_path).push("origin", "feature/x")

        assert isinstance(result, Err)
        assert result.error.command == "push"
        assert result.error.message == "rejected: non-fast-forward"

    def test_force_push_uses_lease(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        seen = _install(monkeypatch, lambda args: Ok(""))

        Repository(tmp_path).force_push_with_lease("origin", "feature/x")

        assert seen == [["push", "origin", "feature/x", "--force-with-lease"]]

    def test_failed_rebase_is_aborted(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        def respond(args: list[str]) -> Result[str, ProcessError]:
            if args == ["rebase", "origin/main"]:
                return _fail(args, "CONFLICT")
            return Ok("")

        seen = _install(monkeypatch, respond)

        result = Repository(tmp_path).rebase("origin/main")

        assert isinstance(result, Err)
        assert seen == [["rebase", "origin/main"], ["rebase", "--abort"]]

    def test_failed_merge_is_aborted(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        def respond(args: list[str]) -> Result[str, ProcessError]:
            if args[0] == "merge" and "--abort" not in args:
                return _fail(args, "CONFLICT")
            return Ok("")

        seen = _install(monkeypatch, respond)

        Repository(tmp_path).merge("origin/main")

        assert seen == [["merge", "--no-edit", "origin/main"], ["merge", "--abort"]]

    def test_pull_is_fast_forward_only(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        seen = _install(monkeypatch, lambda args: Ok(""))

        Repository(tmp_path).pull_ff("origin", "main")

        assert seen == [["pull", "--ff-only", "origin", "main"]]


class TestTagExists:
    def test_local_tag(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        seen = _install(monkeypatch, lambda args: Ok("v1.0.0\n"))

        assert Repository(tmp_path).tag_exists("v1.0.0", "origin") == Ok(True)
        assert seen == [["tag", "-l", "v1.0.0"]]

    def test_remote_tag(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        def respond(args: list[str]) -> Result[str, ProcessError]:
            if args[0] == "ls-remote":
                return Ok("abc123\trefs/tags/v1.0.0\n")
            return Ok("")

        _install(monkeypatch, respond)

        assert Repository(tmp_path).tag_exists("v1.0.0", "origin") == Ok(True)

    def test_missing_everywhere(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        _install(monkeypatch, lambda args: Ok(""))

        assert Repository(tmp_path).tag_exists("v1.0.0", "origin") == Ok(False)
