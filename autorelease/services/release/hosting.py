"""Hosting-service boundary.

``HostingClient`` lists the request/response operations the workflow needs
from the code-hosting service. ``GhHostingClient`` (``gh.py``) implements
them with the GitHub CLI; ``FakeHostingClient`` (``fake_host.py``) replays
scripted responses for tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from autorelease.core.result import Result
from autorelease.services.release.model import CheckResult, PullRequest, PullRequestRef


@dataclass(frozen=True, slots=True)
class HostError:
    """Failed hosting-service call.

    Attributes:
        operation: Short name of the call (``pr view``, ``release create``).
        message: What went wrong, usually the CLI's stderr.
        transient: True when retrying later may succeed (network errors,
            5xx, rate limits, unreadable payloads). False for auth errors,
            unknown PRs and rejected requests.
    """

    operation: str
    message: str
    transient: bool = False


class HostingClient(Protocol):
    def ensure_ready(self) -> Result[None, HostError]:
        """Tool installed and authenticated."""
        ...

    def repo_slug(self) -> Result[str, HostError]:
        """``owner/name`` of the repository the checkout belongs to."""
        ...

    def list_prs(self, *, head: str, base: str) -> Result[list[PullRequestRef], HostError]:
        """Open PRs from ``head`` into ``base``, in the order the service returns them."""
        ...

    def create_pr(self, *, title: str, body: str, head: str, base: str) -> Result[str, HostError]:
        """Create a PR and return the raw creation output (a reference to the new PR)."""
        ...

    def view_pr(self, number: int) -> Result[PullRequest, HostError]: ...

    def pr_checks(self, number: int) -> Result[list[CheckResult], HostError]: ...

    def commit_status(self, sha: str) -> Result[list[CheckResult], HostError]:
        """Alternate check source: the combined commit status of ``sha``."""
        ...

    def merge_pr(self, number: int) -> Result[None, HostError]:
        """Squash-merge and delete the head branch."""
        ...

    def create_release_from_file(
        self, *, tag: str, title: str, notes_file: Path
    ) -> Result[None, HostError]: ...

    def create_release_inline(self, *, tag: str, title: str, notes: str) -> Result[None, HostError]: ...
