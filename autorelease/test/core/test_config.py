"""Tests for autorelease.core.config."""

from __future__ import annotations

from pathlib import Path

from autorelease.core.config import (
    CONFIG_FILENAME,
    ReleaseConfig,
    apply_env,
    env_flag,
    load_config,
)
from autorelease.core.result import Err, Ok


def _write(root: Path, body: str) -> None:
    (root / CONFIG_FILENAME).write_text(body, encoding="utf-8")


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        result = load_config(tmp_path)

        assert isinstance(result, Ok)
        config = result.value
        assert config.repo_root == tmp_path
        assert config.repo_slug is None
        assert config.base_branch == "main"
        assert config.remote == "origin"
        assert config.poll_interval == 30.0
        assert config.max_wait == 1800.0
        assert config.settle_delay == 10.0

    def test_reads_release_table(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            """
[release]
repo = "acme/widget"
base_branch = "trunk"
manifest = "pyproject.toml"
poll_interval = 5
max_wait = 60.5
debug = true
""",
        )

        result = load_config(tmp_path)

        assert isinstance(result, Ok)
        config = result.value
        assert config.repo_slug == "acme/widget"
        assert config.base_branch == "trunk"
        assert config.manifest_path == tmp_path / "pyproject.toml"
        assert config.poll_interval == 5.0
        assert config.max_wait == 60.5
        assert config.debug is True

    def test_invalid_toml(self, tmp_path: Path) -> None:
        _write(tmp_path, "[release\nrepo = ")

        result = load_config(tmp_path)

        assert isinstance(result, Err)
        assert "invalid TOML" in result.error.message
        assert result.error.path == tmp_path / CONFIG_FILENAME

    def test_missing_release_table(self, tmp_path: Path) -> None:
        _write(tmp_path, "[other]\nx = 1\n")

        result = load_config(tmp_path)

        assert isinstance(result, Err)
        assert "[release]" in result.error.message

    def test_rejects_bad_slug(self, tmp_path: Path) -> None:
        _write(tmp_path, '[release]\nrepo = "not a slug"\n')

        result = load_config(tmp_path)

        assert isinstance(result, Err)
        assert "slug" in result.error.message

    def test_rejects_wrong_types(self, tmp_path: Path) -> None:
        _write(tmp_path, '[release]\npoll_interval = "fast"\n')

        result = load_config(tmp_path)

        assert isinstance(result, Err)
        assert result.error.message == "release.poll_interval must be a number"

    def test_rejects_non_positive_timing(self, tmp_path: Path) -> None:
        _write(tmp_path, "[release]\nmax_wait = 0\n")

        result = load_config(tmp_path)

        assert isinstance(result, Err)
        assert "max_wait" in result.error.message


class TestApplyEnv:
    def test_overrides_repo_and_base(self, tmp_path: Path) -> None:
        config = ReleaseConfig(repo_root=tmp_path)

        result = apply_env(
            config, {"AUTO_RELEASE_REPO": "o/r", "AUTO_RELEASE_BASE": "develop"}
        )

        assert isinstance(result, Ok)
        assert result.value.repo_slug == "o/r"
        assert result.value.base_branch == "develop"

    def test_debug_flags(self, tmp_path: Path) -> None:
        config = ReleaseConfig(repo_root=tmp_path)

        for env in ({"DEBUG": "1"}, {"AUTO_RELEASE_DEBUG": "true"}):
            result = apply_env(config, env)
            assert isinstance(result, Ok)
            assert result.value.debug is True

        result = apply_env(config, {"DEBUG": "0"})
        assert isinstance(result, Ok)
        assert result.value.debug is False

    def test_empty_environment_keeps_config(self, tmp_path: Path) -> None:
        config = ReleaseConfig(repo_root=tmp_path, repo_slug="a/b")

        assert apply_env(config, {}) == Ok(config)


def test_env_flag_values() -> None:
    assert env_flag("X", {"X": "yes"})
    assert env_flag("X", {"X": " ON "})
    assert not env_flag("X", {"X": "nope"})
    assert not env_flag("X", {})


def test_release_url(tmp_path: Path) -> None:
    config = ReleaseConfig(repo_root=tmp_path, repo_slug="acme/widget")

    assert config.release_url("v1.0.0") == "https://github.com/acme/widget/releases/tag/v1.0.0"
