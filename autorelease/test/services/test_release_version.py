from __future__ import annotations

from pathlib import Path

import pytest

from autorelease.core.result import Err, Ok
from autorelease.services.release.version import VersionSource, is_semver, read_version, tag_for


@pytest.mark.parametrize("version", ["1.2.0", "0.0.1", "1.0.0-rc.1", "2.1.3+build.5"])
def test_semver_accepts(version: str) -> None:
    assert is_semver(version)


@pytest.mark.parametrize("version", ["1.2", "01.2.3", "v1.2.3", "latest"])
def test_semver_rejects(version: str) -> None:
    assert not is_semver(version)


def test_tag_for() -> None:
    assert tag_for("1.2.0") == "v1.2.0"


def test_package_json(tmp_path: Path) -> None:
    manifest = tmp_path / "package.json"
    manifest.write_text('{"name": "widget", "version": "1.2.0"}', encoding="utf-8")

    assert read_version(manifest) == Ok("1.2.0")


def test_pyproject_project_table(tmp_path: Path) -> None:
    manifest = tmp_path / "pyproject.toml"
    manifest.write_text('[project]\nname = "w"\nversion = "3.0.1"\n', encoding="utf-8")

    assert VersionSource(manifest).read() == Ok("3.0.1")


def test_pyproject_poetry_table(tmp_path: Path) -> None:
    manifest = tmp_path / "pyproject.toml"
    manifest.write_text('[tool.poetry]\nversion = "0.4.0"\n', encoding="utf-8")

    assert read_version(manifest) == Ok("0.4.0")


def test_plain_version_file_with_prefix(tmp_path: Path) -> None:
    manifest = tmp_path / "VERSION"
    manifest.write_text("v2.0.0\n", encoding="utf-8")

    assert read_version(manifest) == Ok("2.0.0")


def test_missing_manifest(tmp_path: Path) -> None:
    result = read_version(tmp_path / "package.json")

    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"


def test_missing_version_field(tmp_path: Path) -> None:
    manifest = tmp_path / "package.json"
    manifest.write_text('{"name": "widget"}', encoding="utf-8")

    result = read_version(manifest)

    assert isinstance(result, Err)
    assert "no version" in result.error.message


def test_non_semantic_version(tmp_path: Path) -> None:
    manifest = tmp_path / "package.json"
    manifest.write_text('{"version": "next"}', encoding="utf-8")

    result = read_version(manifest)

    assert isinstance(result, Err)
    assert "not semantic" in result.error.message


def test_manifest_not_utf8(tmp_path: Path) -> None:
    manifest = tmp_path / "VERSION"
    manifest.write_bytes(b"1.2.0 \xe9\n")

    result = read_version(manifest)

    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"
    assert "UTF-8" in result.error.message
