"""Scripted in-memory ``HostingClient`` for tests.

State lives in ``FakePullRequest`` records; per-call behaviour is scripted
with queues that are consumed one entry per call, so a test can say "the
first view fails, the second reports CONFLICTING, then MERGEABLE".
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from autorelease.core.result import Err, Ok, Result
from autorelease.services.release.hosting import HostError
from autorelease.services.release.model import (
    CheckResult,
    Mergeable,
    PrState,
    PullRequest,
    PullRequestRef,
    pull_request_url,
)

ViewStep = HostError | Mapping[str, object]
ChecksStep = list[CheckResult] | HostError


@dataclass
class FakePullRequest:
    number: int
    head: str
    base: str
    title: str = ""
    body: str = ""
    state: PrState = "OPEN"
    mergeable: Mergeable = "MERGEABLE"
    merge_state_status: str = "CLEAN"
    head_sha: str | None = "0" * 40


@dataclass(frozen=True, slots=True)
class FakeRelease:
    tag: str
    title: str
    notes: str
    via: str


def _prs() -> list[FakePullRequest]:
    return []


def _errors() -> list[HostError]:
    return []


def _view_steps() -> list[ViewStep]:
    return []


def _check_steps() -> list[ChecksStep]:
    return []


def _no_checks() -> ChecksStep:
    return []


def _status_unavailable() -> ChecksStep:
    return HostError("commit status", "HTTP 404: Not Found")


def _releases() -> list[FakeRelease]:
    return []


def _calls() -> list[tuple[str, ...]]:
    return []


@dataclass
class FakeHostingClient:
    slug: str = "acme/widget"
    ready_error: HostError | None = None
    slug_error: HostError | None = None
    prs: list[FakePullRequest] = field(default_factory=_prs)
    next_number: int = 1
    list_errors: list[HostError] = field(default_factory=_errors)
    create_error: HostError | None = None
    # With create_error set: whether the PR was registered anyway (creation race).
    create_registers_on_error: bool = False
    create_output: str | None = None
    view_script: list[ViewStep] = field(default_factory=_view_steps)
    checks_script: list[ChecksStep] = field(default_factory=_check_steps)
    checks_default: ChecksStep = field(default_factory=_no_checks)
    status_script: list[ChecksStep] = field(default_factory=_check_steps)
    status_default: ChecksStep = field(default_factory=_status_unavailable)
    merge_error: HostError | None = None
    merge_applied_despite_error: bool = False
    release_file_error: HostError | None = None
    release_inline_error: HostError | None = None
    releases: list[FakeRelease] = field(default_factory=_releases)
    calls: list[tuple[str, ...]] = field(default_factory=_calls)

    def add_pr(self, *, head: str, base: str, title: str = "", **attrs: object) -> FakePullRequest:
        pr = FakePullRequest(number=self.next_number, head=head, base=base, title=title)
        for name, value in attrs.items():
            setattr(pr, name, value)
        self.next_number += 1
        self.prs.append(pr)
        return pr

    def pr(self, number: int) -> FakePullRequest | None:
        return next((p for p in self.prs if p.number == number), None)

    def called(self, operation: str) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[0] == operation]

    # HostingClient

    def ensure_ready(self) -> Result[None, HostError]:
        self.calls.append(("ready",))
        if self.ready_error is not None:
            return Err(self.ready_error)
        return Ok(None)

    def repo_slug(self) -> Result[str, HostError]:
        self.calls.append(("repo view",))
        if self.slug_error is not None:
            return Err(self.slug_error)
        return Ok(self.slug)

    def list_prs(self, *, head: str, base: str) -> Result[list[PullRequestRef], HostError]:
        self.calls.append(("pr list", head, base))
        if self.list_errors:
            return Err(self.list_errors.pop(0))
        return Ok(
            [
                PullRequestRef(number=p.number, url=self._url(p.number), title=p.title)
                for p in self.prs
                if p.head == head and p.base == base and p.state == "OPEN"
            ]
        )

    def create_pr(self, *, title: str, body: str, head: str, base: str) -> Result[str, HostError]:
        self.calls.append(("pr create", head, base, title))
        if self.create_error is not None:
            if self.create_registers_on_error:
                self.add_pr(head=head, base=base, title=title, body=body)
            return Err(self.create_error)

        pr = self.add_pr(head=head, base=base, title=title, body=body)
        if self.create_output is not None:
            return Ok(self.create_output)
        return Ok(self._url(pr.number))

    def view_pr(self, number: int) -> Result[PullRequest, HostError]:
        self.calls.append(("pr view", str(number)))
        pr = self.pr(number)
        if pr is None:
            return Err(HostError("pr view", f"no pull requests found for #{number}"))
        if self.view_script:
            step = self.view_script.pop(0)
            if isinstance(step, HostError):
                return Err(step)
            for name, value in step.items():
                setattr(pr, name, value)
        return Ok(
            PullRequest(
                number=pr.number,
                state=pr.state,
                mergeable=pr.mergeable,
                merge_state_status=pr.merge_state_status,
                url=self._url(pr.number),
                title=pr.title,
                head_sha=pr.head_sha,
            )
        )

    def pr_checks(self, number: int) -> Result[list[CheckResult], HostError]:
        self.calls.append(("pr checks", str(number)))
        return self._step(self.checks_script, self.checks_default)

    def commit_status(self, sha: str) -> Result[list[CheckResult], HostError]:
        self.calls.append(("commit status", sha))
        return self._step(self.status_script, self.status_default)

    def merge_pr(self, number: int) -> Result[None, HostError]:
        self.calls.append(("pr merge", str(number)))
        pr = self.pr(number)
        if self.merge_error is not None:
            if self.merge_applied_despite_error and pr is not None:
                pr.state = "MERGED"
            return Err(self.merge_error)
        if pr is None:
            return Err(HostError("pr merge", f"no pull requests found for #{number}"))
        pr.state = "MERGED"
        return Ok(None)

    def create_release_from_file(
        self, *, tag: str, title: str, notes_file: Path
    ) -> Result[None, HostError]:
        self.calls.append(("release create", tag, "file"))
        if self.release_file_error is not None:
            return Err(self.release_file_error)
        notes = notes_file.read_text(encoding="utf-8")
        self.releases.append(FakeRelease(tag=tag, title=title, notes=notes, via="file"))
        return Ok(None)

    def create_release_inline(self, *, tag: str, title: str, notes: str) -> Result[None, HostError]:
        self.calls.append(("release create", tag, "inline"))
        if self.release_inline_error is not None:
            return Err(self.release_inline_error)
        self.releases.append(FakeRelease(tag=tag, title=title, notes=notes, via="inline"))
        return Ok(None)

    def _url(self, number: int) -> str:
        return pull_request_url(self.slug, number)

    def _step(self, script: list[ChecksStep], default: ChecksStep) -> Result[list[CheckResult], HostError]:
        step = script.pop(0) if script else default
        if isinstance(step, HostError):
            return Err(step)
        return Ok(list(step))
