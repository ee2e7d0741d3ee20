"""Status payload for front ends ("get status").

Every field degrades to a placeholder instead of failing, so a panel can
always render something.
"""

from __future__ import annotations

from dataclasses import dataclass

from autorelease.core.result import Ok
from autorelease.git.repository import GitClient
from autorelease.services.release.version import VersionSource

UNKNOWN_VERSION = "0.0.0"
UNKNOWN_BRANCH = "unknown"
NO_COMMIT = "No commit found"


@dataclass(frozen=True, slots=True)
class ReleaseStatus:
    current_version: str
    current_branch: str
    has_uncommitted_changes: bool
    latest_commit: str

    def to_payload(self) -> dict[str, object]:
        return {
            "currentVersion": self.current_version,
            "currentBranch": self.current_branch,
            "hasUncommittedChanges": self.has_uncommitted_changes,
            "latestCommit": self.latest_commit,
        }


def collect_status(*, git: GitClient, versions: VersionSource) -> ReleaseStatus:
    version = versions.read()
    branch = git.current_branch()
    changed = git.changed_paths()
    commit = git.last_commit_message()
    return ReleaseStatus(
        current_version=version.value if isinstance(version, Ok) else UNKNOWN_VERSION,
        current_branch=branch.value if isinstance(branch, Ok) else UNKNOWN_BRANCH,
        has_uncommitted_changes=bool(changed.value) if isinstance(changed, Ok) else False,
        latest_commit=(commit.value or NO_COMMIT) if isinstance(commit, Ok) else NO_COMMIT,
    )
