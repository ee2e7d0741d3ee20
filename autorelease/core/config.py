"""Typed release configuration.

A ``ReleaseConfig`` is built once per invocation and handed to the
orchestrator. Nothing in the workflow reads module-level settings, so tests
construct a config with a fake repository identity and compressed timing.

Precedence, lowest first: defaults, ``auto-release.toml`` (``[release]``
table) at the repository root, environment variables, CLI overrides.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_number, get_str, get_table

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ReleaseConfig",
    "apply_env",
    "load_config",
]

CONFIG_FILENAME = "auto-release.toml"

DEFAULT_REMOTE = "origin"
DEFAULT_BASE_BRANCH = "main"
DEFAULT_MANIFEST = "package.json"
DEFAULT_CHANGELOG = "CHANGELOG.md"
DEFAULT_SCRATCH_DIR = "tmp"

# Timing, in seconds
DEFAULT_POLL_INTERVAL = 30.0
DEFAULT_MAX_WAIT = 30 * 60.0
DEFAULT_SETTLE_DELAY = 10.0

_SLUG_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Config could not be loaded or failed validation."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Everything the release workflow needs to know about its environment.

    Attributes:
        repo_root: Local checkout the workflow operates on.
        repo_slug: ``owner/name`` on the hosting service. None means
            "ask the hosting client" at startup.
        remote: Git remote to push to and fetch from.
        base_branch: Protected branch releases are cut from.
        manifest: Version manifest, relative to ``repo_root``.
        changelog: Changelog, relative to ``repo_root``.
        scratch_dir: Directory for the transient release-notes file.
        poll_interval: Seconds between CI polls.
        max_wait: CI wait budget in seconds.
        settle_delay: Pause after a force-push before re-reading PR state.
        debug: Trace every external call and its raw output.
    """

    repo_root: Path
    repo_slug: str | None = None
    remote: str = DEFAULT_REMOTE
    base_branch: str = DEFAULT_BASE_BRANCH
    manifest: str = DEFAULT_MANIFEST
    changelog: str = DEFAULT_CHANGELOG
    scratch_dir: str = DEFAULT_SCRATCH_DIR
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_wait: float = DEFAULT_MAX_WAIT
    settle_delay: float = DEFAULT_SETTLE_DELAY
    debug: bool = False

    @property
    def manifest_path(self) -> Path:
        return self.repo_root / self.manifest

    @property
    def changelog_path(self) -> Path:
        return self.repo_root / self.changelog

    @property
    def scratch_path(self) -> Path:
        return self.repo_root / self.scratch_dir

    def release_url(self, tag: str) -> str:
        return f"https://github.com/{self.repo_slug}/releases/tag/{tag}"

    def with_slug(self, slug: str) -> ReleaseConfig:
        return replace(self, repo_slug=slug)

    def validate(self) -> Result[ReleaseConfig, ConfigError]:
        """Check invariants that the workflow relies on."""
        if self.repo_slug is not None and not _SLUG_RE.match(self.repo_slug):
            return Err(ConfigError(f"invalid repository slug: {self.repo_slug!r} (want owner/name)"))
        if not self.base_branch.strip():
            return Err(ConfigError("base branch must not be empty"))
        if not self.remote.strip():
            return Err(ConfigError("remote must not be empty"))
        for name, value in (
            ("poll_interval", self.poll_interval),
            ("max_wait", self.max_wait),
        ):
            if value <= 0:
                return Err(ConfigError(f"{name} must be positive, got {value}"))
        if self.settle_delay < 0:
            return Err(ConfigError(f"settle_delay must not be negative, got {self.settle_delay}"))
        return Ok(self)

    @classmethod
    def from_dict(cls, repo_root: Path, data: Mapping[str, object]) -> ReleaseConfig:
        """Build a config from a parsed ``[release]`` table, keeping defaults for gaps."""
        return cls(
            repo_root=repo_root,
            repo_slug=get_str(data, "repo"),
            remote=get_str(data, "remote") or DEFAULT_REMOTE,
            base_branch=get_str(data, "base_branch") or DEFAULT_BASE_BRANCH,
            manifest=get_str(data, "manifest") or DEFAULT_MANIFEST,
            changelog=get_str(data, "changelog") or DEFAULT_CHANGELOG,
            scratch_dir=get_str(data, "scratch_dir") or DEFAULT_SCRATCH_DIR,
            poll_interval=_number_or(data, "poll_interval", DEFAULT_POLL_INTERVAL),
            max_wait=_number_or(data, "max_wait", DEFAULT_MAX_WAIT),
            settle_delay=_number_or(data, "settle_delay", DEFAULT_SETTLE_DELAY),
            debug=get_bool(data, "debug") or False,
        )


_STR_KEYS = ("repo", "remote", "base_branch", "manifest", "changelog", "scratch_dir")
_NUMBER_KEYS = ("poll_interval", "max_wait", "settle_delay")


def _check_types(data: Mapping[str, object]) -> str | None:
    """First key whose value has the wrong type, described; None if all fit."""
    for key in _STR_KEYS:
        if key in data and not isinstance(data[key], str):
            return f"release.{key} must be a string"
    for key in _NUMBER_KEYS:
        value = data.get(key)
        if key in data and (isinstance(value, bool) or not isinstance(value, (int, float))):
            return f"release.{key} must be a number"
    if "debug" in data and not isinstance(data["debug"], bool):
        return "release.debug must be true or false"
    return None


def _number_or(data: Mapping[str, object], key: str, default: float) -> float:
    value = get_number(data, key)
    return default if value is None else value


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except PermissionError:
        return Err(ConfigError(f"permission denied reading: {path}", path=path))
    except OSError as e:
        return Err(ConfigError(f"error reading config: {e}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("config root must be a TOML table", path=path))
    return Ok(data)


def load_config(repo_root: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load ``auto-release.toml`` from ``repo_root`` if present.

    A missing file is not an error: defaults apply.
    """
    path = repo_root / CONFIG_FILENAME
    if not path.is_file():
        return ReleaseConfig(repo_root=repo_root).validate()

    parsed = _parse_toml(path)
    if isinstance(parsed, Err):
        return parsed

    table = get_table(parsed.value, "release")
    if table is None:
        return Err(ConfigError("missing [release] table", path=path))

    wrong_type = _check_types(table)
    if wrong_type is not None:
        return Err(ConfigError(wrong_type, path=path))

    validated = ReleaseConfig.from_dict(repo_root, table).validate()
    if isinstance(validated, Err):
        return Err(ConfigError(validated.error.message, path=path))
    return validated


def env_flag(name: str, env: Mapping[str, str] | None = None) -> bool:
    source = os.environ if env is None else env
    return source.get(name, "").strip().lower() in _TRUTHY


def apply_env(
    config: ReleaseConfig, env: Mapping[str, str] | None = None
) -> Result[ReleaseConfig, ConfigError]:
    """Overlay ``AUTO_RELEASE_REPO``, ``AUTO_RELEASE_BASE`` and the debug flags."""
    source = os.environ if env is None else env
    updated = config

    slug = source.get("AUTO_RELEASE_REPO", "").strip()
    if slug:
        updated = replace(updated, repo_slug=slug)

    base = source.get("AUTO_RELEASE_BASE", "").strip()
    if base:
        updated = replace(updated, base_branch=base)

    if env_flag("DEBUG", source) or env_flag("AUTO_RELEASE_DEBUG", source):
        updated = replace(updated, debug=True)

    return updated.validate()
