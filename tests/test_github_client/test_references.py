"""Tests for issue reference parsing and repository resolution."""

import os
import subprocess
from unittest.mock import Mock, patch

import pytest

from conftest import ref
from gh_issue_dependency.errors import AppError, ErrorKind
from gh_issue_dependency.github_client.references import (
    current_repository,
    parse_issue_reference,
    parse_issue_refs,
    parse_issue_url,
    parse_repo_flag,
    resolve_repository,
    validate_repository,
)


class TestParseIssueReference:
    """Test the accepted issue reference forms."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("123", ("", 123)),
            (" 42 ", ("", 42)),
            ("octo/repo#7", ("octo/repo", 7)),
            ("https://github.com/octo/repo/issues/9", ("octo/repo", 9)),
            ("https://github.com/octo/repo/issues/9#issuecomment-1", ("octo/repo", 9)),
        ],
    )
    def test_valid(self, value: str, expected: tuple[str, int]) -> None:
        assert parse_issue_reference(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["0", "-3", "abc", "octo/repo#", "octo/repo#x", "#5", "a#b#1", "repo#5"],
    )
    def test_invalid(self, value: str) -> None:
        with pytest.raises(AppError) as exc_info:
            parse_issue_reference(value)
        assert exc_info.value.kind is ErrorKind.VALIDATION

    def test_empty(self) -> None:
        with pytest.raises(AppError, match="cannot be empty"):
            parse_issue_reference("")

    def test_issue_url_requires_issues_path(self) -> None:
        with pytest.raises(AppError):
            parse_issue_url("https://github.com/octo/repo/pull/3")


class TestParseIssueRefs:
    """Test comma-separated target lists."""

    def test_keeps_order_and_defaults(self) -> None:
        refs = parse_issue_refs("3, other/lib#4 ,5", "octo", "repo")
        assert refs == [ref(3), ref(4, owner="other", repo="lib"), ref(5)]

    def test_skips_blank_entries(self) -> None:
        assert parse_issue_refs("3,,", "octo", "repo") == [ref(3)]

    def test_drops_repeated_references(self) -> None:
        refs = parse_issue_refs("3,octo/repo#3,4,3", "octo", "repo")
        assert refs == [ref(3), ref(4)]

    def test_empty_list(self) -> None:
        with pytest.raises(AppError) as exc_info:
            parse_issue_refs(" , ", "octo", "repo")
        assert exc_info.value.kind is ErrorKind.VALIDATION

    def test_bad_entry_names_reference(self) -> None:
        with pytest.raises(AppError) as exc_info:
            parse_issue_refs("3,nope", "octo", "repo")
        assert exc_info.value.context["reference"] == "nope"

    def test_bare_number_needs_repository(self) -> None:
        with pytest.raises(AppError, match="default repository context"):
            parse_issue_refs("3", "", "")


class TestRepositoryParsing:
    """Test repository flag and name parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("octo/repo", ("octo", "repo")),
            ("github.com/octo/repo", ("octo", "repo")),
            ("https://github.com/octo/repo", ("octo", "repo")),
            ("https://github.com/octo/repo/", ("octo", "repo")),
        ],
    )
    def test_repo_flag(self, value: str, expected: tuple[str, str]) -> None:
        assert parse_repo_flag(value) == expected

    @pytest.mark.parametrize("value", ["octo", "octo/", "/repo", "a/b/c/d"])
    def test_repo_flag_invalid(self, value: str) -> None:
        with pytest.raises(AppError):
            parse_repo_flag(value)

    def test_validate_repository(self) -> None:
        assert validate_repository("octo/repo") == ("octo", "repo")
        with pytest.raises(AppError, match="Invalid repository format"):
            validate_repository("octo/repo/extra")


class TestResolveRepository:
    """Test repository resolution priority."""

    @patch.dict(os.environ, {"GH_REPO": "env/repo"})
    def test_flag_wins(self) -> None:
        assert resolve_repository("flag/repo", "other/repo#1") == ("flag", "repo")

    @patch.dict(os.environ, {"GH_REPO": "env/repo"})
    def test_issue_reference_before_env(self) -> None:
        assert resolve_repository(None, "ref/repo#1") == ("ref", "repo")

    @patch.dict(os.environ, {"GH_REPO": "env/repo"})
    def test_env(self) -> None:
        assert resolve_repository(None, "1") == ("env", "repo")

    @patch.dict(os.environ, {}, clear=True)
    def test_gh_cli_fallback(self) -> None:
        with patch(
            "gh_issue_dependency.github_client.references.current_repository",
            return_value=("cli", "repo"),
        ):
            assert resolve_repository(None, "1") == ("cli", "repo")


class TestCurrentRepository:
    """Test detection through the gh CLI."""

    @patch("gh_issue_dependency.github_client.references.subprocess.run")
    def test_parses_output(self, mock_run: Mock) -> None:
        mock_run.return_value = Mock(stdout='{"owner": {"login": "octo"}, "name": "repo"}')
        assert current_repository() == ("octo", "repo")

    @patch("gh_issue_dependency.github_client.references.subprocess.run")
    def test_not_a_repository(self, mock_run: Mock) -> None:
        mock_run.side_effect = subprocess.CalledProcessError(1, ["gh"], stderr="no")
        with pytest.raises(AppError) as exc_info:
            current_repository()
        assert exc_info.value.kind is ErrorKind.REPOSITORY

    @patch("gh_issue_dependency.github_client.references.subprocess.run")
    def test_gh_missing(self, mock_run: Mock) -> None:
        mock_run.side_effect = FileNotFoundError("gh")
        with pytest.raises(AppError, match="GitHub CLI"):
            current_repository()
