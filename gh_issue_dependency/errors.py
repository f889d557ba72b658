"""Structured errors with context and user-facing remediation suggestions.

Every component raises ``AppError`` (or a subclass). The ``kind`` drives the
CLI exit code, ``context`` carries machine-readable details and
``suggestions`` tell the user what to do next.
"""

from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any

import requests
from github.GithubException import (
    BadCredentialsException,
    GithubException,
    RateLimitExceededException,
    UnknownObjectException,
)

if TYPE_CHECKING:
    from .dependencies.remover import RemovalResult
    from .github_client.models import IssueRef

STATUS_URL = "https://www.githubstatus.com/"
LIST_COMMAND = "gh-issue-dependency list"


class ErrorKind(str, Enum):
    """Category of an error, used to pick the exit code."""

    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    NETWORK = "network"
    VALIDATION = "validation"
    API = "api"
    REPOSITORY = "repository"
    ISSUE = "issue"
    INTERNAL = "internal"


class ExitCode(IntEnum):
    """Process exit codes, following GitHub CLI conventions."""

    SUCCESS = 0
    GENERAL = 1
    VALIDATION = 2
    PERMISSION = 3
    AUTHENTICATION = 4


class AppError(Exception):
    """Application error with a kind, context and suggestions."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        cause: BaseException | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        self.status_code = status_code
        self.context: dict[str, str] = {}
        self.suggestions: list[str] = []
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message

    def with_context(self, key: str, value: Any) -> "AppError":
        """Add a context entry and return the error for chaining."""
        self.context[key] = str(value)
        return self

    def with_suggestion(self, suggestion: str) -> "AppError":
        """Add a suggestion (duplicates are ignored) and return the error."""
        if suggestion not in self.suggestions:
            self.suggestions.append(suggestion)
        return self


class TargetFailure:
    """A single target that failed validation or removal."""

    def __init__(self, target: "IssueRef", error: AppError):
        self.target = target
        self.error = error

    def __repr__(self) -> str:
        return f"TargetFailure({self.target}, {self.error.kind.value})"


class BatchValidationError(AppError):
    """Aggregated validation failures for a batch of targets."""

    def __init__(self, source: "IssueRef", failures: list[TargetFailure]):
        lines = [f"Batch validation failed for {len(failures)} target(s) of {source}:"]
        lines.extend(f"  - {f.target}: {f.error.message}" for f in failures)
        super().__init__(ErrorKind.VALIDATION, "\n".join(lines))
        self.source = source
        self.failures = failures
        self.with_context("source", source)
        self.with_context(
            "errors", "; ".join(f"{f.target}: {f.error.message}" for f in failures)
        )
        self.with_suggestion(
            f"Use '{LIST_COMMAND} {source.number}' to see current relationships"
        )
        self.with_suggestion("Verify issue numbers and repository access")


class RemovalFailedError(AppError):
    """One or more DELETE calls failed; carries the full removal result."""

    def __init__(self, result: "RemovalResult"):
        failures = result.failures
        kinds = {f.error.kind for f in failures}
        kind = kinds.pop() if len(kinds) == 1 else ErrorKind.API

        if len(result.outcomes) == 1:
            failure = failures[0]
            message = (
                f"Failed to remove dependency {result.source} -> "
                f"{failure.target}: {failure.error.message}"
            )
        else:
            succeeded = len(result.succeeded)
            message = (
                f"Removed {succeeded} of {len(result.outcomes)} dependencies; "
                f"{len(failures)} failed:\n"
                + "\n".join(f"  - {f.target}: {f.error.message}" for f in failures)
            )

        status_code = failures[0].error.status_code if len(failures) == 1 else None
        super().__init__(kind, message, failures[0].error, status_code)
        self.result = result
        self.failures = failures
        self.with_context("source", result.source)
        self.with_context("succeeded", len(result.succeeded))
        self.with_context("failed", len(failures))
        for failure in failures:
            for suggestion in failure.error.suggestions:
                self.with_suggestion(suggestion)
        self.with_suggestion(
            f"Use '{LIST_COMMAND} {result.source.number}' to see what remains"
        )


# Authentication errors


def auth_error(cause: BaseException | None = None) -> AppError:
    return AppError(
        ErrorKind.AUTHENTICATION,
        "Authentication required to access GitHub",
        cause,
        401,
    ).with_suggestion("Run 'gh auth login' to authenticate with GitHub")


def auth_token_error() -> AppError:
    return (
        AppError(ErrorKind.AUTHENTICATION, "Invalid or expired GitHub token")
        .with_suggestion("Run 'gh auth login' to refresh your authentication")
        .with_suggestion("Or set the GITHUB_TOKEN environment variable")
    )


# Permission errors


def permission_error(repo: str, cause: BaseException | None = None) -> AppError:
    return (
        AppError(
            ErrorKind.PERMISSION,
            f"Insufficient permissions to access {repo}",
            cause,
            403,
        )
        .with_context("repository", repo)
        .with_suggestion(
            "Ensure you have at least triage permissions for this repository"
        )
        .with_suggestion("Contact the repository owner to request access")
    )


def permission_denied_error(operation: str, repo: str) -> AppError:
    return (
        AppError(
            ErrorKind.PERMISSION,
            f"Permission denied: cannot {operation} in {repo}",
        )
        .with_context("operation", operation)
        .with_context("repository", repo)
        .with_suggestion(
            "Ensure you have write or maintain permissions for this repository"
        )
        .with_suggestion("Contact the repository owner to request appropriate access")
    )


# Network errors


def network_error(cause: BaseException | None = None) -> AppError:
    return (
        AppError(
            ErrorKind.NETWORK,
            "Network error occurred while connecting to GitHub",
            cause,
        )
        .with_suggestion("Check your internet connection and retry")
        .with_suggestion(f"Verify GitHub's service status at {STATUS_URL}")
    )


def timeout_error(operation: str, cause: BaseException | None = None) -> AppError:
    return (
        AppError(ErrorKind.NETWORK, f"Request timed out while {operation}", cause)
        .with_context("operation", operation)
        .with_suggestion("Retry the operation")
        .with_suggestion("Check your network connection")
    )


# Validation errors


def validation_error(
    field: str, value: str, cause: BaseException | None = None
) -> AppError:
    return (
        AppError(ErrorKind.VALIDATION, f"Invalid {field}: {value}", cause)
        .with_context("field", field)
        .with_context("value", value)
        .with_suggestion(f"Check the {field} and try again")
    )


def issue_number_error(value: str) -> AppError:
    return (
        AppError(
            ErrorKind.VALIDATION,
            f"Invalid issue number format: {value} "
            "(expected number or GitHub URL)",
        )
        .with_context("input", value)
        .with_suggestion("Use a numeric issue number (e.g., 123)")
        .with_suggestion(
            "Use a GitHub issue URL "
            "(e.g., https://github.com/owner/repo/issues/123)"
        )
        .with_suggestion("Use owner/repo#123 format for cross-repository references")
    )


def repository_format_error(value: str) -> AppError:
    return (
        AppError(ErrorKind.VALIDATION, f"Invalid repository format: {value}")
        .with_context("input", value)
        .with_suggestion("Use OWNER/REPO format (e.g., octocat/Hello-World)")
        .with_suggestion(
            "Use full GitHub URL (e.g., https://github.com/octocat/Hello-World)"
        )
    )


def empty_value_error(field: str) -> AppError:
    return (
        AppError(ErrorKind.VALIDATION, f"{field} cannot be empty")
        .with_context("field", field)
        .with_suggestion(f"Provide a value for the {field}")
    )


# API errors


def kind_for_status(status: int) -> ErrorKind:
    """Map an HTTP status code to an error kind."""
    if status == 401:
        return ErrorKind.AUTHENTICATION
    if status == 403:
        return ErrorKind.PERMISSION
    if status == 404:
        return ErrorKind.API
    if status == 408:
        return ErrorKind.NETWORK
    if status == 422:
        return ErrorKind.VALIDATION
    return ErrorKind.API


def api_error(status: int, cause: BaseException | None = None) -> AppError:
    """Build an error for a failed API response with the given status."""
    kind = kind_for_status(status)
    if kind is ErrorKind.AUTHENTICATION:
        return auth_error(cause)
    if status == 403:
        return AppError(
            ErrorKind.PERMISSION,
            "Access forbidden: insufficient permissions",
            cause,
            status,
        ).with_suggestion("Verify your permissions for this resource")
    if status == 404:
        return (
            AppError(ErrorKind.API, "Resource not found", cause, status)
            .with_suggestion("Verify the repository and issue numbers exist")
            .with_suggestion("Check if the repository is public or you have access")
        )
    if status == 429:
        return (
            AppError(ErrorKind.API, "API rate limit exceeded", cause, status)
            .with_suggestion("Wait a few minutes before retrying")
            .with_suggestion("Consider using authentication for higher rate limits")
        )
    if status in (500, 502, 503):
        return (
            AppError(
                ErrorKind.API,
                "GitHub API is temporarily unavailable",
                cause,
                status,
            )
            .with_suggestion("Retry the operation in a few moments")
            .with_suggestion(f"Check GitHub's service status at {STATUS_URL}")
        )
    return (
        AppError(kind, f"API request failed with status {status}", cause, status)
        .with_context("status_code", status)
        .with_suggestion("Retry the operation or check the request parameters")
    )


# Repository errors


def repository_not_found_error(repo: str) -> AppError:
    return (
        AppError(ErrorKind.REPOSITORY, f"Repository not found: {repo}", None, 404)
        .with_context("repository", repo)
        .with_suggestion("Verify the repository name is spelled correctly")
        .with_suggestion("Check if the repository exists and is accessible to you")
        .with_suggestion("Use the --repo flag to specify a different repository")
    )


def repository_access_error(repo: str, cause: BaseException | None = None) -> AppError:
    return (
        AppError(ErrorKind.REPOSITORY, f"Cannot access repository: {repo}", cause)
        .with_context("repository", repo)
        .with_suggestion("Verify you have access to this repository")
        .with_suggestion("Check if the repository is private and you're authenticated")
    )


# Issue errors


def issue_not_found_error(repo: str, number: int) -> AppError:
    return (
        AppError(ErrorKind.ISSUE, f"Issue #{number} not found in {repo}", None, 404)
        .with_context("repository", repo)
        .with_context("issue_number", number)
        .with_suggestion("Verify the issue number exists in the repository")
        .with_suggestion("Check if you have access to view the issue")
    )


def relationship_not_found_error(
    source: "IssueRef", target: "IssueRef", kind: str
) -> AppError:
    if kind == "blocks":
        description = f"{source} does not block {target}"
    else:
        description = f"{source} is not blocked by {target}"
    return (
        AppError(ErrorKind.ISSUE, f"Cannot remove dependency: {description}")
        .with_context("source", source)
        .with_context("target", target)
        .with_context("relationship_type", kind)
        .with_suggestion(
            f"Use '{LIST_COMMAND} {source.number}' to see current dependencies"
        )
        .with_suggestion("Verify the issue numbers and relationship type are correct")
    )


def no_dependencies_error(issue: "IssueRef") -> AppError:
    return (
        AppError(
            ErrorKind.VALIDATION,
            f"Issue {issue} has no dependencies to remove",
        )
        .with_context("issue", issue)
        .with_suggestion(f"Use '{LIST_COMMAND} {issue.number}' to verify")
    )


# Internal errors


def internal_error(operation: str, cause: BaseException | None = None) -> AppError:
    return (
        AppError(ErrorKind.INTERNAL, f"Internal error during {operation}", cause)
        .with_context("operation", operation)
        .with_suggestion(
            "This appears to be a bug. Please report it with the error details"
        )
    )


# Translation of library exceptions


def from_github_exception(
    exc: GithubException, repo: str | None = None, number: int | None = None
) -> AppError:
    """Translate a PyGithub exception by its type and status code."""
    if isinstance(exc, BadCredentialsException):
        return auth_token_error().with_context("status_code", exc.status)
    if isinstance(exc, RateLimitExceededException):
        return api_error(429, exc)
    if isinstance(exc, UnknownObjectException) and repo is not None:
        if number is not None:
            return issue_not_found_error(repo, number)
        return repository_not_found_error(repo)
    if exc.status == 403 and repo is not None:
        return permission_error(repo, exc)
    if exc.status == 408:
        return timeout_error("waiting for GitHub", exc)
    return api_error(exc.status, exc)


def from_request_exception(
    exc: requests.exceptions.RequestException, operation: str
) -> AppError:
    """Translate a transport-level error raised by the HTTP stack."""
    if isinstance(exc, requests.exceptions.Timeout):
        return timeout_error(operation, exc)
    return network_error(exc).with_context("operation", operation)


# Display helpers


def error_kind_of(error: BaseException) -> ErrorKind:
    """Return the kind of an error, or INTERNAL for foreign exceptions."""
    if isinstance(error, AppError):
        return error.kind
    return ErrorKind.INTERNAL


def exit_code_for(error: BaseException | None) -> ExitCode:
    """Pick the process exit code for an error (or success)."""
    if error is None:
        return ExitCode.SUCCESS
    kind = error_kind_of(error)
    if kind is ErrorKind.AUTHENTICATION:
        return ExitCode.AUTHENTICATION
    if kind is ErrorKind.PERMISSION:
        return ExitCode.PERMISSION
    if kind is ErrorKind.VALIDATION:
        return ExitCode.VALIDATION
    return ExitCode.GENERAL


def format_user_error(error: BaseException) -> str:
    """Render an error with its details and suggestions for the terminal."""
    if not isinstance(error, AppError):
        return f"Error: {error}"

    lines = [f"Error: {error.message}"]
    if error.context:
        lines.append("")
        lines.append("Details:")
        lines.extend(f"  {key}: {value}" for key, value in error.context.items())
    if error.suggestions:
        lines.append("")
        lines.append("Suggestions:")
        lines.extend(f"  • {suggestion}" for suggestion in error.suggestions)
    return "\n".join(lines)
