"""``HostingClient`` implemented with the GitHub CLI.

Reads (list, view, checks, status) are idempotent and retried on transient
failures; writes (create, merge, release) run once and report back, leaving
any recovery policy to the workflow step that issued them.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Callable
from pathlib import Path

from autorelease.core.result import Err, Ok, Result
from autorelease.core.structured import as_obj_list, as_str_dict, get_int, get_str
from autorelease.platform.clock import Clock, SystemClock
from autorelease.platform.process import ProcessError, Trace
from autorelease.platform.process import run as run_process
from autorelease.services.release.hosting import HostError
from autorelease.services.release.model import (
    CheckBucket,
    CheckResult,
    PullRequest,
    PullRequestRef,
    normalize_bucket,
    normalize_mergeable,
    normalize_state,
)
from autorelease.services.release.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
)

_PR_VIEW_FIELDS = "number,state,mergeable,mergeStateStatus,url,title,headRefOid"

# `gh pr checks` exits 8 while checks are pending and 1 when some failed,
# but still prints the JSON listing on stdout.
_CHECKS_LISTING_EXIT_CODES = frozenset({1, 8})

_HELP_MARKERS = ("Usage:", "USAGE:", "Commands:", "Options:", "FLAGS:", "ARGUMENTS:")

_TRANSIENT_MARKERS = (
    "timed out",
    "timeout",
    "connection reset",
    "connection refused",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
    "tls handshake timeout",
    "network is unreachable",
    "remote end hung up unexpectedly",
    "secondary rate limit",
    "http 429",
    "http 500",
    "http 502",
    "http 503",
    "http 504",
)


def is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in _TRANSIENT_MARKERS)


def looks_like_help(output: str) -> bool:
    """True when gh printed usage text instead of the requested data."""
    if output.lstrip().startswith(("[", "{")):
        return False
    return any(marker in output for marker in _HELP_MARKERS)


def _host_error(operation: str, error: ProcessError) -> HostError:
    return HostError(
        operation=operation,
        message=error.detail,
        transient=is_transient_gh_error(error),
    )


def _decode(payload: str, operation: str) -> Result[object, HostError]:
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(HostError(operation, f"invalid JSON from gh: {e}", transient=True))
    return Ok(obj)


def parse_pr_list(obj: object) -> list[PullRequestRef] | None:
    raw = as_obj_list(obj)
    if raw is None:
        return None

    out: list[PullRequestRef] = []
    for item in raw:
        d = as_str_dict(item)
        if d is None:
            continue
        number = get_int(d, "number")
        if number is None:
            continue
        out.append(
            PullRequestRef(
                number=number,
                url=get_str(d, "url") or "",
                title=get_str(d, "title") or "",
            )
        )
    return out


def parse_pr_view(obj: object) -> PullRequest | None:
    d = as_str_dict(obj)
    if d is None:
        return None
    number = get_int(d, "number")
    state = normalize_state(get_str(d, "state"))
    if number is None or state is None:
        return None
    return PullRequest(
        number=number,
        state=state,
        mergeable=normalize_mergeable(get_str(d, "mergeable")),
        merge_state_status=(get_str(d, "mergeStateStatus") or "UNKNOWN").upper(),
        url=get_str(d, "url"),
        title=get_str(d, "title"),
        head_sha=get_str(d, "headRefOid"),
    )


def parse_checks(obj: object) -> list[CheckResult] | None:
    raw = as_obj_list(obj)
    if raw is None:
        return None

    out: list[CheckResult] = []
    for item in raw:
        d = as_str_dict(item)
        if d is None:
            continue
        out.append(
            CheckResult(
                name=get_str(d, "name") or "(unnamed)",
                bucket=normalize_bucket(get_str(d, "bucket")),
            )
        )
    return out


def _status_bucket(state: str | None) -> CheckBucket:
    match (state or "").lower():
        case "success":
            return "pass"
        case "failure" | "error":
            return "fail"
        case _:
            return "pending"


def parse_commit_status(obj: object) -> list[CheckResult] | None:
    """Decode ``repos/{owner}/{repo}/commits/{sha}/status`` into check results."""
    d = as_str_dict(obj)
    if d is None:
        return None
    statuses = as_obj_list(d.get("statuses"))
    if statuses is None:
        return None

    out: list[CheckResult] = []
    for item in statuses:
        s = as_str_dict(item)
        if s is None:
            continue
        out.append(
            CheckResult(
                name=get_str(s, "context") or "(status)",
                bucket=_status_bucket(get_str(s, "state")),
            )
        )
    return out


def _recover_checks_listing(error: ProcessError) -> str | None:
    if "no checks reported" in error.stderr.lower():
        return "[]"
    if error.returncode in _CHECKS_LISTING_EXIT_CODES and error.stdout.strip().startswith("["):
        return error.stdout
    return None


class GhHostingClient:
    """Talks to GitHub through ``gh``.

    Args:
        repo_root: Checkout gh runs in; without ``slug`` gh targets its remote.
        slug: Explicit ``owner/name``, passed as ``--repo``.
        trace: Receives every command line and its raw output (``--debug``).
        clock: Used for back-off between read retries.
    """

    def __init__(
        self,
        *,
        repo_root: Path,
        slug: str | None = None,
        trace: Trace | None = None,
        clock: Clock | None = None,
        retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
    ) -> None:
        self._root = repo_root
        self._slug = slug
        self._trace = trace
        self._clock: Clock = clock or SystemClock()
        self._retry_attempts = retry_attempts

    def ensure_ready(self) -> Result[None, HostError]:
        if shutil.which("gh") is None:
            return Err(HostError("which", "GitHub CLI (gh) is not installed"))
        auth = self._exec(["gh", "auth", "status"])
        if isinstance(auth, Err):
            return Err(HostError("auth status", "GitHub CLI is not authenticated"))
        return Ok(None)

    def repo_slug(self) -> Result[str, HostError]:
        if self._slug is not None:
            return Ok(self._slug)
        payload = self._read(["gh", "repo", "view", "--json", "nameWithOwner"], "repo view")
        if isinstance(payload, Err):
            return payload
        decoded = _decode(payload.value, "repo view")
        if isinstance(decoded, Err):
            return decoded
        data = as_str_dict(decoded.value)
        slug = get_str(data, "nameWithOwner") if data is not None else None
        if slug is None:
            return Err(HostError("repo view", "missing nameWithOwner in gh repo view output"))
        return Ok(slug)

    def list_prs(self, *, head: str, base: str) -> Result[list[PullRequestRef], HostError]:
        cmd = [
            "gh",
            "pr",
            "list",
            "--head",
            head,
            "--base",
            base,
            "--state",
            "open",
            "--json",
            "number,url,title",
            *self._repo_args(),
        ]
        return self._read_json(cmd, "pr list", parse_pr_list)

    def create_pr(self, *, title: str, body: str, head: str, base: str) -> Result[str, HostError]:
        cmd = [
            "gh",
            "pr",
            "create",
            "--title",
            title,
            "--body",
            body,
            "--base",
            base,
            "--head",
            head,
            *self._repo_args(),
        ]
        result = self._exec(cmd)
        if isinstance(result, Err):
            return Err(_host_error("pr create", result.error))
        return Ok(result.value.strip())

    def view_pr(self, number: int) -> Result[PullRequest, HostError]:
        cmd = ["gh", "pr", "view", str(number), "--json", _PR_VIEW_FIELDS, *self._repo_args()]
        return self._read_json(cmd, "pr view", parse_pr_view)

    def pr_checks(self, number: int) -> Result[list[CheckResult], HostError]:
        cmd = ["gh", "pr", "checks", str(number), "--json", "name,bucket", *self._repo_args()]
        return self._read_json(cmd, "pr checks", parse_checks, recover=_recover_checks_listing)

    def commit_status(self, sha: str) -> Result[list[CheckResult], HostError]:
        cmd = ["gh", "api", f"repos/{self._api_repo()}/commits/{sha}/status"]
        return self._read_json(cmd, "commit status", parse_commit_status)

    def merge_pr(self, number: int) -> Result[None, HostError]:
        cmd = ["gh", "pr", "merge", str(number), "--squash", "--delete-branch", *self._repo_args()]
        result = self._exec(cmd)
        if isinstance(result, Err):
            return Err(_host_error("pr merge", result.error))
        return Ok(None)

    def create_release_from_file(
        self, *, tag: str, title: str, notes_file: Path
    ) -> Result[None, HostError]:
        cmd = [
            "gh",
            "release",
            "create",
            tag,
            "--title",
            title,
            "--notes-file",
            str(notes_file),
            *self._repo_args(),
        ]
        return self._write(cmd, "release create")

    def create_release_inline(self, *, tag: str, title: str, notes: str) -> Result[None, HostError]:
        cmd = ["gh", "release", "create", tag, "--title", title, "--notes", notes, *self._repo_args()]
        return self._write(cmd, "release create")

    def _repo_args(self) -> list[str]:
        return ["--repo", self._slug] if self._slug else []

    def _api_repo(self) -> str:
        # gh fills {owner}/{repo} from the checkout's remote.
        return self._slug or "{owner}/{repo}"

    def _exec(self, cmd: list[str]) -> Result[str, ProcessError]:
        return run_process(cmd, cwd=self._root, timeout=GH_TIMEOUT_SECONDS, trace=self._trace)

    def _write(self, cmd: list[str], operation: str) -> Result[None, HostError]:
        result = self._exec(cmd)
        if isinstance(result, Err):
            return Err(_host_error(operation, result.error))
        return Ok(None)

    def _read(
        self,
        cmd: list[str],
        operation: str,
        *,
        recover: Callable[[ProcessError], str | None] | None = None,
    ) -> Result[str, HostError]:
        attempts = max(1, self._retry_attempts)
        error = HostError(operation, "not attempted", transient=True)
        for attempt in range(attempts):
            result = self._exec(cmd)
            if isinstance(result, Err):
                salvaged = recover(result.error) if recover is not None else None
                if salvaged is not None:
                    return Ok(salvaged)
                error = _host_error(operation, result.error)
            elif looks_like_help(result.value):
                error = HostError(operation, "gh printed usage text instead of data", transient=True)
            else:
                return result

            if attempt < attempts - 1 and error.transient:
                self._clock.sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
                continue
            break
        return Err(error)

    def _read_json[T](
        self,
        cmd: list[str],
        operation: str,
        parse: Callable[[object], T | None],
        *,
        recover: Callable[[ProcessError], str | None] | None = None,
    ) -> Result[T, HostError]:
        payload = self._read(cmd, operation, recover=recover)
        if isinstance(payload, Err):
            return payload
        decoded = _decode(payload.value, operation)
        if isinstance(decoded, Err):
            return decoded
        parsed = parse(decoded.value)
        if parsed is None:
            return Err(HostError(operation, f"unexpected payload from gh {operation}", transient=True))
        return Ok(parsed)
