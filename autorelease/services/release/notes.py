"""Release notes from the changelog, and the scratch file that carries them."""

from __future__ import annotations

import re
from pathlib import Path

from autorelease.core.result import Err, Ok, Result
from autorelease.services.release.errors import ReleaseError

NOTES_FILENAME = "release-notes.txt"

_LINK_REF_RE = re.compile(r"^\[[^\]]+\]:\s")


def _is_heading(line: str) -> bool:
    return line.lstrip().startswith("#")


def _opens_section(line: str, version: str) -> bool:
    return _is_heading(line) and ("[Unreleased]" in line or f"[{version}]" in line)


def extract_changelog_section(changelog: str, version: str) -> list[str]:
    """Non-blank lines under the ``[Unreleased]`` and ``[<version>]`` headings.

    Collection starts at the first heading naming either, and stops at the
    next ``## [`` heading that names some other version, or at the first
    link-reference definition (``[1.2.0]: https://...``).
    """
    collected: list[str] = []
    inside = False
    for line in changelog.splitlines():
        if _opens_section(line, version):
            inside = True
            continue
        if not inside:
            continue
        if _LINK_REF_RE.match(line):
            break
        if line.startswith("## [") and f"[{version}]" not in line:
            break
        if line.strip():
            collected.append(line)
    return collected


def build_release_notes(changelog_path: Path, version: str) -> str:
    header = f"Release v{version}"
    try:
        changelog = changelog_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return header
    except (OSError, UnicodeDecodeError):
        return f"{header}\n\nSee {changelog_path.name} for details."

    section = extract_changelog_section(changelog, version)
    if not section:
        return f"{header}\n\nSee {changelog_path.name} for details."
    return header + "\n\n" + "\n".join(section)


def inline_notes(notes: str) -> str:
    """Prepare notes to travel as a single command-line argument."""
    return notes.replace("\r\n", "\n").replace("\r", "\n").replace("\x00", "")


def write_notes_file(scratch_dir: Path, notes: str) -> Result[Path, ReleaseError]:
    path = scratch_dir / NOTES_FILENAME
    try:
        scratch_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(notes, encoding="utf-8")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="release_publish_failed",
                message=f"failed to write release notes: {e}",
                hint=str(path),
            )
        )
    return Ok(path)


def remove_notes_file(path: Path) -> bool:
    """Delete the scratch notes file; a leftover file is reported, not fatal."""
    try:
        path.unlink(missing_ok=True)
    except OSError:
        return False
    return True
