from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

ReleaseErrorKind = Literal[
    "prerequisite_failed",
    "invalid_input",
    "push_failed",
    "pr_resolution_failed",
    "checks_failed",
    "checks_timeout",
    "conflict_unresolved",
    "merge_failed",
    "release_publish_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    pr_url: str | None = None

    def with_pr_url(self, url: str | None) -> ReleaseError:
        if url is None or self.pr_url is not None:
            return self
        return replace(self, pr_url=url)
