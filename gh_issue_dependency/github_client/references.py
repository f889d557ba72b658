"""Parsing of issue references and resolution of the repository context."""

import json
import logging
import os
import re
import subprocess

from ..errors import (
    AppError,
    ErrorKind,
    empty_value_error,
    issue_number_error,
    repository_format_error,
    repository_not_found_error,
)
from .models import IssueRef

logger = logging.getLogger(__name__)

GITHUB_URL_PREFIX = "https://github.com/"
ISSUE_URL_PATTERN = re.compile(
    r"^https://github\.com/([^/]+)/([^/]+)/issues/(\d+)(?:[/?#].*)?$"
)


def _positive_int(value: str) -> int | None:
    try:
        number = int(value)
    except ValueError:
        return None
    return number if number > 0 else None


def validate_repository(repo: str) -> tuple[str, str]:
    """Validate an ``owner/repo`` string and split it."""
    if not repo:
        raise empty_value_error("repository")
    if "/" not in repo:
        raise repository_format_error(repo)
    parts = repo.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise repository_format_error(repo)
    return parts[0], parts[1]


def parse_issue_url(url: str) -> IssueRef:
    """Parse ``https://github.com/owner/repo/issues/123`` into a reference."""
    if not url:
        raise empty_value_error("issue URL")
    match = ISSUE_URL_PATTERN.match(url)
    if match is None:
        raise issue_number_error(url)
    number = _positive_int(match.group(3))
    if number is None:
        raise issue_number_error(url)
    return IssueRef(owner=match.group(1), repo=match.group(2), number=number)


def parse_issue_reference(ref: str) -> tuple[str, int]:
    """Parse an issue reference into ``(repo, number)``.

    ``repo`` is empty for a bare issue number.

    Raises:
        AppError: VALIDATION kind if the reference is malformed
    """
    ref = ref.strip() if ref else ref
    if not ref:
        raise empty_value_error("issue reference")

    if ref.lstrip("-").isdigit():
        number = _positive_int(ref)
        if number is None:
            raise issue_number_error(ref)
        return "", number

    if ref.startswith(GITHUB_URL_PREFIX):
        issue = parse_issue_url(ref)
        return issue.full_name, issue.number

    if "#" in ref:
        parts = ref.split("#")
        if len(parts) != 2 or not parts[0]:
            raise issue_number_error(ref)
        repo, number_part = parts
        number = _positive_int(number_part)
        if number is None:
            raise issue_number_error(ref)
        if "/" not in repo:
            raise repository_format_error(repo)
        return repo, number

    raise issue_number_error(ref)


def parse_issue_ref(
    value: str, default_owner: str = "", default_repo: str = ""
) -> IssueRef:
    """Parse an issue reference, filling in the default repository if needed."""
    repo, number = parse_issue_reference(value)
    if not repo:
        if not default_owner or not default_repo:
            raise empty_value_error("default repository context").with_suggestion(
                "Use the --repo flag or owner/repo#123 format"
            )
        return IssueRef(owner=default_owner, repo=default_repo, number=number)

    owner, name = validate_repository(repo)
    return IssueRef(owner=owner, repo=name, number=number)


def parse_issue_refs(
    values: str, default_owner: str, default_repo: str
) -> list[IssueRef]:
    """Parse a comma-separated list of issue references, keeping order.

    Repeated references are dropped after their first occurrence.
    """
    refs: list[IssueRef] = []
    for value in values.split(","):
        value = value.strip()
        if not value:
            continue
        try:
            issue_ref = parse_issue_ref(value, default_owner, default_repo)
        except AppError as e:
            raise e.with_context("reference", value)
        if issue_ref in refs:
            logger.debug("Ignoring repeated reference %s", issue_ref)
            continue
        refs.append(issue_ref)
    if not refs:
        raise empty_value_error("dependency references")
    return refs


def parse_repo_flag(repo_flag: str) -> tuple[str, str]:
    """Parse ``OWNER/REPO``, ``HOST/OWNER/REPO`` or a repository URL."""
    if not repo_flag:
        raise empty_value_error("repository")

    if repo_flag.startswith(GITHUB_URL_PREFIX):
        parts = repo_flag[len(GITHUB_URL_PREFIX) :].strip("/").split("/")
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise repository_format_error(repo_flag)
        return parts[0], parts[1]

    parts = repo_flag.split("/")
    if len(parts) == 3 and all(parts):
        return parts[1], parts[2]
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1]
    raise repository_format_error(repo_flag)


def current_repository() -> tuple[str, str]:
    """Detect the repository of the working directory using the gh CLI."""
    try:
        result = subprocess.run(
            ["gh", "repo", "view", "--json", "owner,name"],
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise (
            AppError(ErrorKind.INTERNAL, "GitHub CLI (gh) is not available", e)
            .with_suggestion("Install GitHub CLI from https://cli.github.com/")
            .with_suggestion("Use the --repo flag to specify a repository explicitly")
        )
    except subprocess.CalledProcessError as e:
        logger.debug("gh repo view failed: %s", e.stderr)
        raise (
            repository_not_found_error("current directory")
            .with_suggestion("Run this command from within a GitHub repository")
            .with_suggestion("Use the --repo flag to specify a repository explicitly")
        )

    try:
        data = json.loads(result.stdout)
        return data["owner"]["login"], data["name"]
    except (ValueError, KeyError, TypeError) as e:
        raise AppError(
            ErrorKind.INTERNAL, "Could not parse repository information", e
        ).with_suggestion("Use the --repo flag to specify a repository explicitly")


def resolve_repository(repo_flag: str | None, issue_ref: str) -> tuple[str, str]:
    """Resolve the repository to work in.

    Priority order:
    1. --repo flag
    2. repository embedded in the issue reference (URL or owner/repo#123)
    3. GH_REPO environment variable
    4. current repository detected via ``gh repo view``
    """
    if repo_flag:
        return parse_repo_flag(repo_flag)

    repo, _ = parse_issue_reference(issue_ref)
    if repo:
        return validate_repository(repo)

    env_repo = os.getenv("GH_REPO")
    if env_repo:
        return parse_repo_flag(env_repo)

    return current_repository()
