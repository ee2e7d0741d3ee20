"""Scripted in-memory ``GitClient`` for tests."""

from __future__ import annotations

from dataclasses import dataclass, field

from autorelease.core.result import Err, Ok, Result
from autorelease.git.repository import GitError


def _no_paths() -> tuple[str, ...]:
    return ()


def _empty_calls() -> list[tuple[str, ...]]:
    return []


def _empty_failures() -> dict[str, str]:
    return {}


def _empty_tags() -> set[str]:
    return set()


@dataclass
class FakeGit:
    """Records every command; ``failures`` maps a command name to its stderr.

    Command names match the git subcommand, except ``force_push`` which is
    kept apart from ``push`` so tests can fail one without the other.
    """

    branch: str = "feature/x"
    dirty: tuple[str, ...] = field(default_factory=_no_paths)
    commit_message: str = "Add feature"
    tags: set[str] = field(default_factory=_empty_tags)
    failures: dict[str, str] = field(default_factory=_empty_failures)
    calls: list[tuple[str, ...]] = field(default_factory=_empty_calls)

    def current_branch(self) -> Result[str, GitError]:
        self.calls.append(("branch",))
        return self._maybe_fail("branch", self.branch)

    def changed_paths(self) -> Result[tuple[str, ...], GitError]:
        self.calls.append(("status",))
        return self._maybe_fail("status", self.dirty)

    def last_commit_message(self) -> Result[str, GitError]:
        self.calls.append(("log",))
        return self._maybe_fail("log", self.commit_message)

    def push(self, remote: str, branch: str) -> Result[None, GitError]:
        self.calls.append(("push", remote, branch))
        return self._maybe_fail("push", None)

    def force_push_with_lease(self, remote: str, branch: str) -> Result[None, GitError]:
        self.calls.append(("force_push", remote, branch))
        return self._maybe_fail("force_push", None)

    def checkout(self, branch: str) -> Result[None, GitError]:
        self.calls.append(("checkout", branch))
        result = self._maybe_fail("checkout", None)
        if isinstance(result, Ok):
            self.branch = branch
        return result

    def pull_ff(self, remote: str, branch: str) -> Result[None, GitError]:
        self.calls.append(("pull", remote, branch))
        return self._maybe_fail("pull", None)

    def fetch(self, remote: str) -> Result[None, GitError]:
        self.calls.append(("fetch", remote))
        return self._maybe_fail("fetch", None)

    def rebase(self, onto: str) -> Result[None, GitError]:
        self.calls.append(("rebase", onto))
        return self._maybe_fail("rebase", None)

    def merge(self, ref: str) -> Result[None, GitError]:
        self.calls.append(("merge", ref))
        return self._maybe_fail("merge", None)

    def tag_exists(self, tag: str, remote: str) -> Result[bool, GitError]:
        self.calls.append(("tag", tag, remote))
        return self._maybe_fail("tag", tag in self.tags)

    def called(self, command: str) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[0] == command]

    def _maybe_fail[T](self, command: str, value: T) -> Result[T, GitError]:
        stderr = self.failures.get(command)
        if stderr is not None:
            return Err(GitError(command=command, message=stderr))
        return Ok(value)
