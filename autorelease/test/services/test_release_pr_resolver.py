from __future__ import annotations

import pytest

from autorelease.core.result import Err, Ok
from autorelease.output.console import MockConsole
from autorelease.services.release.fake_host import FakeHostingClient
from autorelease.services.release.hosting import HostError
from autorelease.services.release.pr_resolver import (
    PullRequestDraft,
    PullRequestResolver,
    extract_pr_number,
    parse_inline_reference,
    parse_pull_path,
    parse_trailing_number,
)


def _resolver(host: FakeHostingClient, console: MockConsole | None = None) -> PullRequestResolver:
    return PullRequestResolver(
        host=host,
        console=console or MockConsole(),
        repo_slug=host.slug,
        draft=PullRequestDraft.for_release(version="1.2.0", commit_message="Add feature"),
    )


class TestNumberParsers:
    def test_inline_reference(self) -> None:
        assert parse_inline_reference("Created pull request #42 for feature/x") == 42
        assert parse_inline_reference("https://github.com/o/r/pull/42") is None

    def test_pull_path(self) -> None:
        assert parse_pull_path("https://github.com/o/r/pull/42\n") == 42

    def test_trailing_number(self) -> None:
        assert parse_trailing_number("https://ghe.example.com/o/r/merge_requests/42") == 42
        assert parse_trailing_number("nothing here") is None

    def test_extract_uses_first_match_in_order(self) -> None:
        assert extract_pr_number("#7 at https://github.com/o/r/pull/8") == 7
        assert extract_pr_number("https://github.com/o/r/pull/8") == 8
        assert extract_pr_number("warning: something odd") is None

    def test_extract_with_custom_parsers(self) -> None:
        assert extract_pr_number("#7 /pull/8", [parse_pull_path]) == 8


def test_draft_for_release() -> None:
    draft = PullRequestDraft.for_release(version="1.2.0", commit_message="Add feature\n")

    assert draft.title == "Release v1.2.0"
    assert "Automated release PR for version 1.2.0" in draft.body
    assert "Add feature" in draft.body


class TestResolve:
    def test_creates_when_missing(self) -> None:
        host = FakeHostingClient()

        result = _resolver(host).resolve("feature/x", "main")

        assert isinstance(result, Ok)
        assert result.value.created is True
        assert result.value.number == 1
        assert result.value.url == "https://github.com/acme/widget/pull/1"
        assert host.pr(1) is not None
        assert host.pr(1).title == "Release v1.2.0"  # type: ignore[union-attr]

    def test_reuses_existing(self) -> None:
        host = FakeHostingClient()
        host.add_pr(head="feature/x", base="main", title="Earlier")

        result = _resolver(host).resolve("feature/x", "main")

        assert isinstance(result, Ok)
        assert result.value.created is False
        assert host.called("pr create") == []

    def test_second_resolve_does_not_create_again(self) -> None:
        host = FakeHostingClient()

        first = _resolver(host).resolve("feature/x", "main")
        second = _resolver(host).resolve("feature/x", "main")

        assert isinstance(first, Ok) and isinstance(second, Ok)
        assert first.value.number == second.value.number
        assert len(host.called("pr create")) == 1

    def test_ignores_prs_for_other_pairs(self) -> None:
        host = FakeHostingClient()
        host.add_pr(head="feature/y", base="main")
        host.add_pr(head="feature/x", base="develop")
        host.add_pr(head="feature/x", base="main", state="CLOSED")

        result = _resolver(host).resolve("feature/x", "main")

        assert isinstance(result, Ok)
        assert result.value.created is True

    def test_creation_race_falls_back_to_lookup(self) -> None:
        host = FakeHostingClient(
            create_error=HostError("pr create", "a pull request already exists"),
            create_registers_on_error=True,
        )

        result = _resolver(host).resolve("feature/x", "main")

        assert isinstance(result, Ok)
        assert result.value.created is False
        assert len(host.called("pr list")) == 2

    def test_unparsable_output_falls_back_to_lookup(self) -> None:
        host = FakeHostingClient(create_output="Warning: 1 uncommitted change")

        result = _resolver(host).resolve("feature/x", "main")

        assert isinstance(result, Ok)
        assert result.value.number == 1

    def test_failure_when_nothing_found(self) -> None:
        host = FakeHostingClient(create_error=HostError("pr create", "HTTP 422"))
        console = MockConsole()

        result = _resolver(host, console).resolve("feature/x", "main")

        assert isinstance(result, Err)
        assert result.error.kind == "pr_resolution_failed"
        assert result.error.hint is not None
        assert "gh auth status" in result.error.hint
        assert console.has_warning()

    @pytest.mark.parametrize("output", ["#5", "https://github.com/acme/widget/pull/5", "x/5"])
    def test_created_number_from_each_output_shape(self, output: str) -> None:
        host = FakeHostingClient(create_output=output)

        result = _resolver(host).resolve("feature/x", "main")

        assert isinstance(result, Ok)
        assert result.value.number == 5
        assert result.value.created is True

    def test_list_error_is_not_fatal(self) -> None:
        host = FakeHostingClient(list_errors=[HostError("pr list", "HTTP 502", transient=True)])

        result = _resolver(host).resolve("feature/x", "main")

        assert isinstance(result, Ok)
        assert result.value.created is True
