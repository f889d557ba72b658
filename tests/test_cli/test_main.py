"""Test main CLI functionality."""

from typer.testing import CliRunner

from gh_issue_dependency.cli.main import app

runner = CliRunner()


def test_version_command() -> None:
    """Test version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "gh-issue-dependency v" in result.stdout


def test_verbose_flag() -> None:
    result = runner.invoke(app, ["--verbose", "version"])
    assert result.exit_code == 0


def test_help_lists_commands() -> None:
    result = runner.invoke(app, ["-h"])
    assert result.exit_code == 0
    for command in ("remove", "list", "cache", "version"):
        assert command in result.stdout
