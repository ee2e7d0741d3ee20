"""Git access for the release workflow.

``GitClient`` is the narrow set of version-control commands the workflow
issues. ``Repository`` implements it by shelling out to ``git``; tests use
``autorelease.git.fake.FakeGit``. Every method returns a ``Result``; none
of them raise.

Usage:
    repo = Repository(Path("."))
    match repo.current_branch():
        case Ok(branch):
            print(branch)
        case Err(e):
            print(e.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from autorelease.core.result import Err, Ok, Result
from autorelease.platform.process import ProcessError, Trace
from autorelease.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "ls-remote"})

__all__ = ["GitClient", "GitError", "Repository"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed (e.g. "push").
        message: Error text from git, or a fallback.
        returncode: Process return code.
    """

    command: str
    message: str
    returncode: int = 1


class GitClient(Protocol):
    """Version-control commands used by the workflow."""

    def current_branch(self) -> Result[str, GitError]: ...

    def changed_paths(self) -> Result[tuple[str, ...], GitError]:
        """Paths with staged, unstaged or untracked changes."""
        ...

    def last_commit_message(self) -> Result[str, GitError]: ...

    def push(self, remote: str, branch: str) -> Result[None, GitError]: ...

    def force_push_with_lease(self, remote: str, branch: str) -> Result[None, GitError]:
        """Force-push, refusing if the remote tip moved since our last fetch."""
        ...

    def checkout(self, branch: str) -> Result[None, GitError]: ...

    def pull_ff(self, remote: str, branch: str) -> Result[None, GitError]: ...

    def fetch(self, remote: str) -> Result[None, GitError]: ...

    def rebase(self, onto: str) -> Result[None, GitError]:
        """Rebase onto ``onto``; a failed rebase is aborted before returning."""
        ...

    def merge(self, ref: str) -> Result[None, GitError]:
        """Merge ``ref``; a failed merge is aborted before returning."""
        ...

    def tag_exists(self, tag: str, remote: str) -> Result[bool, GitError]: ...


class Repository:
    """``GitClient`` backed by the ``git`` executable.

    Attributes:
        path: Repository root.
    """

    def __init__(self, path: Path, *, trace: Trace | None = None) -> None:
        self.path = path
        self._trace = trace

    def current_branch(self) -> Result[str, GitError]:
        result = self._run(["branch", "--show-current"])
        if isinstance(result, Err):
            return Err(self._error("branch", result.error))
        branch = result.value.strip()
        if not branch:
            return Err(GitError(command="branch", message="detached HEAD: check out a branch first"))
        return Ok(branch)

    def changed_paths(self) -> Result[tuple[str, ...], GitError]:
        result = self._run(["status", "--porcelain"])
        if isinstance(result, Err):
            return Err(self._error("status", result.error))
        paths = tuple(line[3:] for line in result.value.splitlines() if len(line) > 3)
        return Ok(paths)

    def last_commit_message(self) -> Result[str, GitError]:
        result = self._run(["log", "-1", "--pretty=%B"])
        if isinstance(result, Err):
            return Err(self._error("log", result.error))
        return Ok(result.value.strip())

    def push(self, remote: str, branch: str) -> Result[None, GitError]:
        return self._simple(["push", remote, branch])

    def force_push_with_lease(self, remote: str, branch: str) -> Result[None, GitError]:
        return self._simple(["push", remote, branch, "--force-with-lease"])

    def checkout(self, branch: str) -> Result[None, GitError]:
        return self._simple(["checkout", branch])

    def pull_ff(self, remote: str, branch: str) -> Result[None, GitError]:
        return self._simple(["pull", "--ff-only", remote, branch])

    def fetch(self, remote: str) -> Result[None, GitError]:
        return self._simple(["fetch", remote])

    def rebase(self, onto: str) -> Result[None, GitError]:
        result = self._simple(["rebase", onto])
        if isinstance(result, Err):
            self._run(["rebase", "--abort"])
        return result

    def merge(self, ref: str) -> Result[None, GitError]:
        result = self._simple(["merge", "--no-edit", ref])
        if isinstance(result, Err):
            self._run(["merge", "--abort"])
        return result

    def tag_exists(self, tag: str, remote: str) -> Result[bool, GitError]:
        local = self._run(["tag", "-l", tag])
        if isinstance(local, Err):
            return Err(self._error("tag", local.error))
        if local.value.strip():
            return Ok(True)

        remote_tags = self._run(["ls-remote", "--tags", remote, f"refs/tags/{tag}"])
        if isinstance(remote_tags, Err):
            return Err(self._error("ls-remote", remote_tags.error))
        return Ok(bool(remote_tags.value.strip()))

    def _simple(self, args: list[str]) -> Result[None, GitError]:
        result = self._run(args)
        if isinstance(result, Err):
            return Err(self._error(args[0], result.error))
        return Ok(None)

    def _error(self, command: str, error: ProcessError) -> GitError:
        return GitError(
            command=command,
            message=error.stderr.strip() or error.stdout.strip() or f"git {command} failed",
            returncode=error.returncode,
        )

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        return run_process(
            ["git", "-C", str(self.path), *args],
            cwd=self.path,
            timeout=timeout,
            trace=self._trace,
        )
