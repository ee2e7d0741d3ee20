"""Find or create the release pull request for a branch.

Resolution is idempotent: an open PR for (head, base) is always reused, and
a failed or unparsable creation falls back to looking the PR up again
before giving up.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from autorelease.core.result import Err, Ok, Result
from autorelease.output.console import ConsoleProtocol, Style
from autorelease.services.release.errors import ReleaseError
from autorelease.services.release.hosting import HostingClient
from autorelease.services.release.model import PullRequestRef, pull_request_url

PrNumberParser = Callable[[str], int | None]

_INLINE_REF_RE = re.compile(r"#(\d+)")
_PULL_PATH_RE = re.compile(r"/pull/(\d+)")
_TRAILING_NUMBER_RE = re.compile(r"/(\d+)/?\s*$")


def parse_inline_reference(output: str) -> int | None:
    """``Created pull request #42``."""
    m = _INLINE_REF_RE.search(output)
    return int(m.group(1)) if m else None


def parse_pull_path(output: str) -> int | None:
    """``https://github.com/o/r/pull/42``."""
    m = _PULL_PATH_RE.search(output)
    return int(m.group(1)) if m else None


def parse_trailing_number(output: str) -> int | None:
    """Any URL ending in a numeric path segment."""
    m = _TRAILING_NUMBER_RE.search(output)
    return int(m.group(1)) if m else None


PR_NUMBER_PARSERS: tuple[PrNumberParser, ...] = (
    parse_inline_reference,
    parse_pull_path,
    parse_trailing_number,
)


def extract_pr_number(
    output: str, parsers: Sequence[PrNumberParser] = PR_NUMBER_PARSERS
) -> int | None:
    """First number any parser finds in ``output``, trying parsers in order."""
    for parser in parsers:
        number = parser(output)
        if number is not None:
            return number
    return None


@dataclass(frozen=True, slots=True)
class PullRequestDraft:
    title: str
    body: str

    @classmethod
    def for_release(cls, *, version: str, commit_message: str) -> PullRequestDraft:
        body = (
            f"Automated release PR for version {version}\n"
            "\n"
            "**Changes:**\n"
            f"{commit_message.strip() or '(no commit message)'}\n"
            "\n"
            f"**Version:** {version}\n"
            "\n"
            "This PR will be automatically merged once all CI checks pass."
        )
        return cls(title=f"Release v{version}", body=body)


@dataclass(frozen=True, slots=True)
class ResolvedPullRequest:
    number: int
    url: str
    created: bool


class PullRequestResolver:
    def __init__(
        self,
        *,
        host: HostingClient,
        console: ConsoleProtocol,
        repo_slug: str,
        draft: PullRequestDraft,
        parsers: Sequence[PrNumberParser] = PR_NUMBER_PARSERS,
    ) -> None:
        self._host = host
        self._console = console
        self._slug = repo_slug
        self._draft = draft
        self._parsers = parsers

    def find_existing(self, branch: str, base: str) -> ResolvedPullRequest | None:
        listed = self._host.list_prs(head=branch, base=base)
        if isinstance(listed, Err):
            self._console.warning(f"could not list pull requests: {listed.error.message}")
            return None
        if not listed.value:
            return None

        # The service returns newest first; any open PR for the pair is authoritative.
        pr: PullRequestRef = listed.value[0]
        self._console.print(f'Found existing PR #{pr.number}: "{pr.title}"', Style.INFO)
        return ResolvedPullRequest(
            number=pr.number,
            url=pr.url or pull_request_url(self._slug, pr.number),
            created=False,
        )

    def resolve(self, branch: str, base: str) -> Result[ResolvedPullRequest, ReleaseError]:
        self._console.print("Checking for existing PR...", Style.DIM)
        existing = self.find_existing(branch, base)
        if existing is not None:
            return Ok(existing)

        self._console.print("No existing PR found. Creating new PR...", Style.DIM)
        created = self._host.create_pr(
            title=self._draft.title,
            body=self._draft.body,
            head=branch,
            base=base,
        )
        if isinstance(created, Err):
            self._console.warning(f"PR creation failed: {created.error.message}")
            return self._fallback_lookup(
                branch,
                base,
                failure="failed to create a pull request and no existing one was found",
                detail=created.error.message,
            )

        output = created.value
        self._console.debug(f"PR creation output: {output}")
        number = extract_pr_number(output, self._parsers)
        if number is None:
            self._console.warning("could not read the PR number from the creation output")
            return self._fallback_lookup(
                branch,
                base,
                failure="could not determine the number of the created pull request",
                detail=output or None,
            )

        url = pull_request_url(self._slug, number)
        self._console.success(f"created pull request #{number}")
        return Ok(ResolvedPullRequest(number=number, url=url, created=True))

    def _fallback_lookup(
        self, branch: str, base: str, *, failure: str, detail: str | None
    ) -> Result[ResolvedPullRequest, ReleaseError]:
        found = self.find_existing(branch, base)
        if found is not None:
            return Ok(found)
        return Err(
            ReleaseError(
                kind="pr_resolution_failed",
                message=failure,
                hint=(
                    f"{detail}\n" if detail else ""
                ) + "Check `gh auth status` or create the PR manually, then re-run.",
            )
        )
