"""Tests for the remove CLI command."""

import os
import re
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from conftest import FakeClient, ref
from gh_issue_dependency.cli import common
from gh_issue_dependency.cli.main import app
from gh_issue_dependency.dependencies import (
    ConfirmationPrompt,
    RemovalExecutor,
    RemovalValidator,
)
from gh_issue_dependency.errors import AppError, ErrorKind
from gh_issue_dependency.github_client.models import (
    RelationshipKind,
    RepositoryPermissions,
)

BASE_ARGS = ["remove", "1", "--repo", "octo/repo", "--token", "test_token"]


def strip_ansi(text: str) -> str:
    """Strip ANSI escape codes from text."""
    ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi_escape.sub("", text)


@pytest.fixture
def runner() -> CliRunner:
    """Provide CLI test runner."""
    return CliRunner(env={"NO_COLOR": "1", "FORCE_COLOR": "0"})


@pytest.fixture(autouse=True)
def cli_executor(fake_client: FakeClient, validator: RemovalValidator):
    """Route the command to the fake client, prompting on stdin."""
    executor = RemovalExecutor(
        fake_client,
        validator,
        prompt=ConfirmationPrompt(common.console),
        console=common.console,
    )
    with patch("gh_issue_dependency.cli.remove.build_executor", return_value=executor):
        yield executor


class TestRemoveArguments:
    """Argument validation for the remove command."""

    def test_help_display(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["remove", "--help"])
        assert result.exit_code == 0
        clean_output = strip_ansi(result.stdout)
        assert "Remove dependency relationships between issues" in clean_output
        assert "--blocked-by" in clean_output
        assert "--dry-run" in clean_output

    def test_requires_a_relationship_flag(
        self, runner: CliRunner, fake_client: FakeClient
    ) -> None:
        result = runner.invoke(app, BASE_ARGS)
        assert result.exit_code == 2
        assert "Must specify either --blocked-by, --blocks, or --all" in result.output
        assert fake_client.calls == []

    def test_rejects_conflicting_flags(self, runner: CliRunner) -> None:
        result = runner.invoke(app, BASE_ARGS + ["--blocked-by", "2", "--blocks", "4"])
        assert result.exit_code == 2
        assert "Cannot specify more than one" in result.output

    def test_invalid_issue_reference(self, runner: CliRunner) -> None:
        result = runner.invoke(
            app,
            ["remove", "abc", "--repo", "octo/repo", "--token", "t", "--blocks", "4"],
        )
        assert result.exit_code == 2
        assert "Invalid issue number format: abc" in result.output

    def test_invalid_target_list(self, runner: CliRunner) -> None:
        result = runner.invoke(app, BASE_ARGS + ["--blocked-by", "2,x"])
        assert result.exit_code == 2

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_token(self, runner: CliRunner) -> None:
        with patch("gh_issue_dependency.config.token_from_gh_cli", return_value=None):
            result = runner.invoke(
                app, ["remove", "1", "--repo", "octo/repo", "--blocked-by", "2"]
            )
        assert result.exit_code == 4
        assert "GITHUB_TOKEN" in result.output


class TestRemoveExecution:
    """End-to-end behavior of the remove command against a fake API."""

    def test_force(self, runner: CliRunner, fake_client: FakeClient) -> None:
        result = runner.invoke(app, BASE_ARGS + ["--blocked-by", "2", "--force"])

        assert result.exit_code == 0
        assert "Removed 1 dependency relationship(s) from octo/repo#1" in result.stdout
        assert fake_client.deleted[0][1] == ref(2)

    def test_dry_run(self, runner: CliRunner, fake_client: FakeClient) -> None:
        result = runner.invoke(app, BASE_ARGS + ["--blocks", "4", "--dry-run"])

        assert result.exit_code == 0
        assert "Would remove:" in result.stdout
        assert "No changes made." in result.stdout
        assert fake_client.delete_count == 0

    def test_confirmation_accepted(
        self, runner: CliRunner, fake_client: FakeClient
    ) -> None:
        result = runner.invoke(app, BASE_ARGS + ["--blocked-by", "2"], input="y\n")

        assert result.exit_code == 0
        assert "Remove dependency relationship(s)?" in result.stdout
        assert fake_client.delete_count == 1

    def test_confirmation_declined(
        self, runner: CliRunner, fake_client: FakeClient
    ) -> None:
        result = runner.invoke(app, BASE_ARGS + ["--blocked-by", "2"], input="n\n")

        assert result.exit_code == 0
        assert "Operation cancelled by user" in result.stdout
        assert fake_client.delete_count == 0

    def test_batch(self, runner: CliRunner, fake_client: FakeClient) -> None:
        result = runner.invoke(app, BASE_ARGS + ["--blocked-by", "2, 3", "--force"])

        assert result.exit_code == 0
        assert "Removed 2 dependency relationship(s)" in result.stdout
        assert [t for _, t, _ in fake_client.deleted] == [ref(2), ref(3)]

    def test_cross_repository_target(
        self, runner: CliRunner, fake_client: FakeClient
    ) -> None:
        other = ref(8, owner="other", repo="lib")
        fake_client.add_relation(ref(1), other, RelationshipKind.BLOCKS)

        result = runner.invoke(app, BASE_ARGS + ["--blocks", "other/lib#8", "--force"])

        assert result.exit_code == 0
        assert fake_client.deleted[0][1] == other

    def test_all(self, runner: CliRunner, fake_client: FakeClient) -> None:
        result = runner.invoke(app, BASE_ARGS + ["--all", "--force"])

        assert result.exit_code == 0
        assert fake_client.delete_count == 3

    def test_all_without_dependencies(
        self, runner: CliRunner, fake_client: FakeClient
    ) -> None:
        result = runner.invoke(
            app, ["remove", "5", "--repo", "octo/repo", "--token", "t", "--all"]
        )

        assert result.exit_code == 2
        assert "has no dependencies to remove" in result.output

    def test_missing_relationship(
        self, runner: CliRunner, fake_client: FakeClient
    ) -> None:
        result = runner.invoke(app, BASE_ARGS + ["--blocked-by", "5", "--force"])

        assert result.exit_code == 1
        assert "octo/repo#1 is not blocked by octo/repo#5" in result.output
        assert "Suggestions:" in result.output
        assert fake_client.delete_count == 0

    def test_permission_denied(
        self, runner: CliRunner, fake_client: FakeClient
    ) -> None:
        fake_client.permissions = RepositoryPermissions(pull=True)

        result = runner.invoke(app, BASE_ARGS + ["--blocked-by", "2", "--force"])

        assert result.exit_code == 3
        assert "Permission denied" in result.output

    def test_partial_failure(self, runner: CliRunner, fake_client: FakeClient) -> None:
        fake_client.delete_errors[ref(3)].append(
            AppError(ErrorKind.API, "Internal failure", status_code=418)
        )

        result = runner.invoke(app, BASE_ARGS + ["--blocked-by", "2,3", "--force"])

        assert result.exit_code == 1
        assert "✅ Removed blocked-by relationship: octo/repo#1 ← octo/repo#2" in (
            result.output
        )
        assert "❌ Failed blocked-by relationship: octo/repo#1 ← octo/repo#3" in (
            result.output
        )
        assert "Removed 1 of 2 dependencies; 1 failed" in result.output
