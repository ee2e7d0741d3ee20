"""Read the version being released from the project manifest.

Supported manifests, chosen by file name: ``package.json`` (or any
``.json``: top-level ``version``), ``pyproject.toml`` (``[project]`` or
``[tool.poetry]`` ``version``), anything else as a plain text file whose
first line is the version.
"""

from __future__ import annotations

import json
import re
import tomllib
from pathlib import Path

from autorelease.core.result import Err, Ok, Result
from autorelease.core.structured import as_str_dict, get_str, get_table
from autorelease.services.release.errors import ReleaseError

_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


def is_semver(version: str) -> bool:
    return _SEMVER_RE.match(version) is not None


def tag_for(version: str) -> str:
    return f"v{version}"


def _invalid(message: str, path: Path) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="invalid_input", message=message, hint=str(path)))


def _from_json(text: str, path: Path) -> Result[str | None, ReleaseError]:
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return _invalid(f"invalid JSON in manifest: {e}", path)
    data = as_str_dict(obj)
    return Ok(get_str(data, "version") if data is not None else None)


def _from_pyproject(text: str, path: Path) -> Result[str | None, ReleaseError]:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        return _invalid(f"invalid TOML in manifest: {e}", path)
    project = get_table(data, "project")
    if project is not None and get_str(project, "version"):
        return Ok(get_str(project, "version"))
    tool = get_table(data, "tool") or {}
    poetry = get_table(tool, "poetry")
    return Ok(get_str(poetry, "version") if poetry is not None else None)


def read_version(manifest: Path) -> Result[str, ReleaseError]:
    try:
        text = manifest.read_text(encoding="utf-8")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"cannot read version manifest: {e}",
                hint=f"Expected a manifest at {manifest}",
            )
        )
    except UnicodeDecodeError as e:
        return _invalid(f"version manifest is not valid UTF-8: {e}", manifest)

    if manifest.suffix == ".json":
        found = _from_json(text, manifest)
    elif manifest.name == "pyproject.toml":
        found = _from_pyproject(text, manifest)
    else:
        lines = text.strip().splitlines()
        found = Ok(lines[0].strip() if lines else None)
    if isinstance(found, Err):
        return found

    version = found.value
    if not version:
        return _invalid("no version found in manifest", manifest)
    version = version.removeprefix("v")
    if not is_semver(version):
        return _invalid(f"manifest version is not semantic: {version!r}", manifest)
    return Ok(version)


class VersionSource:
    """Reads the version once per run from a fixed manifest path."""

    def __init__(self, manifest: Path) -> None:
        self.manifest = manifest

    def read(self) -> Result[str, ReleaseError]:
        return read_version(self.manifest)
