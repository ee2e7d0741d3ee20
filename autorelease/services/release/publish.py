from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from autorelease.core.result import Err, Ok, Result
from autorelease.git.repository import GitClient
from autorelease.output.console import ConsoleProtocol, Style
from autorelease.services.release.errors import ReleaseError
from autorelease.services.release.hosting import HostingClient
from autorelease.services.release.notes import (
    build_release_notes,
    inline_notes,
    remove_notes_file,
    write_notes_file,
)
from autorelease.services.release.version import tag_for


@dataclass(frozen=True, slots=True)
class PublishedRelease:
    tag: str
    created: bool
    via: str | None = None


class ReleasePublisher:
    """Cut the tagged release from the freshly merged base branch.

    Safe to re-run: an existing tag means the release already happened and
    nothing is created.
    """

    def __init__(
        self,
        *,
        git: GitClient,
        host: HostingClient,
        console: ConsoleProtocol,
        remote: str,
        base_branch: str,
        changelog: Path,
        scratch_dir: Path,
    ) -> None:
        self._git = git
        self._host = host
        self._console = console
        self._remote = remote
        self._base = base_branch
        self._changelog = changelog
        self._scratch_dir = scratch_dir

    def publish(self, version: str) -> Result[PublishedRelease, ReleaseError]:
        self._console.print(
            f"Switching to {self._base} and pulling latest changes...", Style.WARNING
        )
        synced = self._sync_base()
        if isinstance(synced, Err):
            return synced

        tag = tag_for(version)
        exists = self._git.tag_exists(tag, self._remote)
        if isinstance(exists, Err):
            self._console.warning(f"could not check for tag {tag}: {exists.error.message}")
        elif exists.value:
            self._console.print(f"Tag {tag} already exists. Skipping release creation.", Style.WARNING)
            return Ok(PublishedRelease(tag=tag, created=False))

        self._console.print("Creating GitHub release...", Style.WARNING)
        notes = build_release_notes(self._changelog, version)
        title = f"Release {tag}"

        written = write_notes_file(self._scratch_dir, notes)
        if isinstance(written, Err):
            self._console.warning(written.error.message)
            return self._publish_inline(tag, title, notes)

        notes_file = written.value
        try:
            from_file = self._host.create_release_from_file(
                tag=tag, title=title, notes_file=notes_file
            )
            if isinstance(from_file, Ok):
                self._console.success(f"release {tag} created")
                return Ok(PublishedRelease(tag=tag, created=True, via="file"))

            self._console.debug(f"file-based release creation failed: {from_file.error.message}")
            self._console.print(
                "File-based release creation failed, trying inline notes...", Style.WARNING
            )
            return self._publish_inline(tag, title, notes)
        finally:
            if not remove_notes_file(notes_file):
                self._console.warning(f"could not remove {notes_file}")

    def _sync_base(self) -> Result[None, ReleaseError]:
        checked_out = self._git.checkout(self._base)
        if isinstance(checked_out, Err):
            return Err(
                ReleaseError(
                    kind="release_publish_failed",
                    message=f"could not check out {self._base}",
                    hint=checked_out.error.message,
                )
            )
        pulled = self._git.pull_ff(self._remote, self._base)
        if isinstance(pulled, Err):
            return Err(
                ReleaseError(
                    kind="release_publish_failed",
                    message=f"could not fast-forward {self._base} from {self._remote}",
                    hint=pulled.error.message,
                )
            )
        return Ok(None)

    def _publish_inline(self, tag: str, title: str, notes: str) -> Result[PublishedRelease, ReleaseError]:
        inline = self._host.create_release_inline(tag=tag, title=title, notes=inline_notes(notes))
        if isinstance(inline, Err):
            return Err(
                ReleaseError(
                    kind="release_publish_failed",
                    message=f"failed to create release {tag}",
                    hint=inline.error.message,
                )
            )
        self._console.success(f"release {tag} created")
        return Ok(PublishedRelease(tag=tag, created=True, via="inline"))
