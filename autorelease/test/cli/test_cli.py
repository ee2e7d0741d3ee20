from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

import autorelease.cli.app as app_mod
import autorelease.cli.commands.run_cmd as run_cmd
import autorelease.cli.commands.status_cmd as status_cmd
from autorelease import __version__
from autorelease.cli.context import CLIContext, Overrides, build_context, resolve_config
from autorelease.core.config import CONFIG_FILENAME, ReleaseConfig
from autorelease.core.errors import ErrorCode
from autorelease.core.result import Err, Ok
from autorelease.git.fake import FakeGit
from autorelease.output.console import MockConsole
from autorelease.platform.clock import FakeClock
from autorelease.services.release.fake_host import FakeHostingClient
from autorelease.services.release.model import CheckResult, WorkflowOutcome

runner = CliRunner()


def _ctx(tmp_path: Path, *, branch: str = "feature/x") -> CLIContext:
    (tmp_path / "package.json").write_text('{"version": "1.2.0"}', encoding="utf-8")
    (tmp_path / "CHANGELOG.md").write_text("## [Unreleased]\n- A\n", encoding="utf-8")
    return CLIContext(
        config=ReleaseConfig(repo_root=tmp_path, repo_slug="acme/widget", max_wait=60.0),
        console=MockConsole(),
        git=FakeGit(branch=branch),
        host=FakeHostingClient(checks_default=[CheckResult("test", "pass")]),
        clock=FakeClock(),
    )


def _patch(monkeypatch: pytest.MonkeyPatch, ctx: CLIContext) -> None:
    def fake_build(*_: object, **__: object) -> CLIContext:
        return ctx

    for module in (app_mod, run_cmd, status_cmd):
        monkeypatch.setattr(module, "build_context", fake_build)


def test_version() -> None:
    result = runner.invoke(app_mod.app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_run_with_yes_releases(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = _ctx(tmp_path)
    _patch(monkeypatch, ctx)

    result = runner.invoke(app_mod.app, ["run", "--yes"])

    assert result.exit_code == 0
    assert isinstance(ctx.host, FakeHostingClient)
    assert [r.tag for r in ctx.host.releases] == ["v1.2.0"]


def test_run_declined_does_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = _ctx(tmp_path)
    _patch(monkeypatch, ctx)

    result = runner.invoke(app_mod.app, ["run"], input="n\n")

    assert result.exit_code == int(ErrorCode.USER_ERROR)
    assert isinstance(ctx.git, FakeGit)
    assert ctx.git.called("push") == []


def test_run_confirmed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = _ctx(tmp_path)
    _patch(monkeypatch, ctx)

    result = runner.invoke(app_mod.app, ["run"], input="y\n")

    assert result.exit_code == 0
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("Version: 1.2.0")


def test_bare_invocation_runs_without_prompt(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    ctx = _ctx(tmp_path)
    _patch(monkeypatch, ctx)

    result = runner.invoke(app_mod.app, [])

    assert result.exit_code == 0
    assert isinstance(ctx.host, FakeHostingClient)
    assert len(ctx.host.releases) == 1


def test_exit_code_reflects_outcome(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch(monkeypatch, _ctx(tmp_path, branch="main"))

    result = runner.invoke(app_mod.app, ["run", "--yes"])

    assert result.exit_code == int(WorkflowOutcome.PREREQUISITE_FAILED)


def test_status_json(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch(monkeypatch, _ctx(tmp_path))

    result = runner.invoke(app_mod.app, ["status", "--json"])

    assert result.exit_code == 0
    assert json.loads(result.output) == {
        "currentVersion": "1.2.0",
        "currentBranch": "feature/x",
        "hasUncommittedChanges": False,
        "latestCommit": "Add feature",
    }


def test_status_table(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch(monkeypatch, _ctx(tmp_path))

    result = runner.invoke(app_mod.app, ["status"])

    assert result.exit_code == 0
    assert "feature/x" in result.output


def test_debug_flag_sets_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTO_RELEASE_DEBUG", "0")
    _patch(monkeypatch, _ctx(tmp_path))

    result = runner.invoke(app_mod.app, ["--debug", "status", "--json"])

    assert result.exit_code == 0
    assert os.environ["AUTO_RELEASE_DEBUG"] == "1"


class TestConfigResolution:
    def test_overrides_win(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTO_RELEASE_BASE", "develop")
        monkeypatch.delenv("AUTO_RELEASE_REPO", raising=False)
        (tmp_path / CONFIG_FILENAME).write_text(
            '[release]\nrepo = "acme/widget"\nbase_branch = "trunk"\n', encoding="utf-8"
        )

        result = resolve_config(tmp_path, Overrides(repo="octo/cat", max_wait=5.0))

        assert isinstance(result, Ok)
        assert result.value.repo_slug == "octo/cat"
        assert result.value.base_branch == "develop"
        assert result.value.max_wait == 5.0

    def test_invalid_override(self, tmp_path: Path) -> None:
        result = Overrides(repo="nope").apply(ReleaseConfig(repo_root=tmp_path))

        assert isinstance(result, Err)

    def test_bad_config_exits_with_env_error(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[release\n", encoding="utf-8")

        with pytest.raises(typer.Exit) as exc:
            build_context(root=tmp_path)

        assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
