"""GitHub API client for issue dependencies, built on PyGitHub."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from urllib.parse import quote

import requests
from github import Auth, Github
from github.GithubException import GithubException, UnknownObjectException
from github.Issue import Issue as PyGithubIssue
from github.Label import Label
from github.NamedUser import NamedUser

from ..config import DEFAULT_API_URL
from ..errors import (
    auth_token_error,
    from_github_exception,
    from_request_exception,
    relationship_not_found_error,
)
from .models import (
    DependencyRelation,
    GitHubLabel,
    GitHubUser,
    Issue,
    IssueRef,
    RelationshipKind,
    RepositoryPermissions,
)

logger = logging.getLogger(__name__)

PER_PAGE = 100


def extract_repo_from_url(url: str) -> str:
    """Extract ``owner/repo`` from an issue HTML URL or repository API URL."""
    for prefix in ("https://github.com/", "https://api.github.com/repos/"):
        if url.startswith(prefix):
            parts = url[len(prefix) :].split("/")
            if len(parts) >= 2 and parts[0] and parts[1]:
                return f"{parts[0]}/{parts[1]}"
    return ""


def relationship_id(source: IssueRef, target: IssueRef) -> str:
    """Path segment identifying the target of an edge on the source issue."""
    if target.full_name == source.full_name:
        return str(target.number)
    return quote(str(target), safe="")


def dependencies_path(owner: str, repo: str, number: int, kind: RelationshipKind) -> str:
    return f"/repos/{owner}/{repo}/issues/{number}/dependencies/{kind.api_name}"


class GitHubClient:
    """GitHub API client for reading and removing issue dependencies.

    Retries are left to the caller's retry policy, so PyGitHub's own retry
    is disabled. All failures surface as ``AppError``.
    """

    def __init__(
        self,
        token: str | None,
        api_url: str = DEFAULT_API_URL,
        timeout: int = 15,
    ):
        """Initialize GitHub client with authentication.

        Args:
            token: GitHub personal access token
            api_url: REST API base URL
            timeout: Per-request timeout in seconds
        """
        if not token:
            raise auth_token_error()

        self.token = token
        self.github = Github(
            auth=Auth.Token(token), base_url=api_url, timeout=timeout, retry=None
        )

    @contextmanager
    def _api_errors(
        self, operation: str, repo: str | None = None, number: int | None = None
    ) -> Iterator[None]:
        """Translate library and transport exceptions into AppErrors."""
        try:
            yield
        except GithubException as e:
            raise from_github_exception(e, repo, number).with_context(
                "operation", operation
            ) from e
        except requests.exceptions.RequestException as e:
            raise from_request_exception(e, operation) from e

    def _convert_user(self, user: NamedUser | dict[str, Any]) -> GitHubUser:
        """Convert a PyGitHub user or raw user payload to our model."""
        if isinstance(user, dict):
            return GitHubUser(login=user.get("login", ""), html_url=user.get("html_url"))
        return GitHubUser(login=user.login, html_url=user.html_url)

    def _convert_label(self, label: Label | dict[str, Any]) -> GitHubLabel:
        """Convert a PyGitHub label or raw label payload to our model."""
        if isinstance(label, dict):
            return GitHubLabel(
                name=label.get("name", ""),
                color=label.get("color") or "",
                description=label.get("description"),
            )
        return GitHubLabel(
            name=label.name, color=label.color or "", description=label.description
        )

    def _convert_issue(self, github_issue: PyGithubIssue, repository: str) -> Issue:
        """Convert a PyGitHub issue to our model."""
        return Issue(
            number=github_issue.number,
            title=github_issue.title,
            state=github_issue.state,
            assignees=tuple(self._convert_user(u) for u in github_issue.assignees),
            labels=tuple(self._convert_label(label) for label in github_issue.labels),
            html_url=github_issue.html_url,
            repository=repository,
        )

    def _convert_relation(
        self, item: dict[str, Any], kind: RelationshipKind, default_repo: str
    ) -> DependencyRelation:
        """Convert one dependency payload (bare issue or ``{"issue": ...}``)."""
        data = item.get("issue", item)

        repository = ""
        repo_data = data.get("repository")
        if isinstance(repo_data, dict):
            repository = repo_data.get("full_name", "")
        if not repository:
            repository = extract_repo_from_url(data.get("repository_url") or "")
        if not repository:
            repository = extract_repo_from_url(data.get("html_url") or "")
        if not repository:
            repository = default_repo

        issue = Issue(
            number=data["number"],
            title=data.get("title", ""),
            state=data.get("state", "open"),
            assignees=tuple(self._convert_user(u) for u in data.get("assignees") or []),
            labels=tuple(self._convert_label(lb) for lb in data.get("labels") or []),
            html_url=data.get("html_url", ""),
            repository=repository,
        )
        return DependencyRelation(issue=issue, kind=kind, repository=repository)

    def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        """Get the details of a single issue.

        Raises:
            AppError: ISSUE kind if the issue does not exist, or the
                translated API/network error
        """
        full_name = f"{owner}/{repo}"
        with self._api_errors("fetching issue details", full_name, number):
            repository = self.github.get_repo(full_name, lazy=True)
            github_issue = repository.get_issue(number)
            return self._convert_issue(github_issue, full_name)

    def list_dependencies(
        self, owner: str, repo: str, number: int, kind: RelationshipKind
    ) -> list[DependencyRelation]:
        """List the dependency edges of one kind for an issue.

        A 404 from the dependencies endpoint means no relationships.
        """
        full_name = f"{owner}/{repo}"
        with self._api_errors(f"fetching {kind.api_name} dependencies", full_name):
            try:
                _, data = self.github.requester.requestJsonAndCheck(
                    "GET",
                    dependencies_path(owner, repo, number, kind),
                    parameters={"per_page": PER_PAGE},
                )
            except UnknownObjectException:
                logger.debug("No %s dependencies for %s#%d", kind.api_name, full_name, number)
                return []

        return [
            self._convert_relation(item, kind, full_name)
            for item in data or []
            if isinstance(item, dict)
        ]

    def get_repository_permissions(self, owner: str, repo: str) -> RepositoryPermissions:
        """Get the authenticated user's permissions on a repository."""
        full_name = f"{owner}/{repo}"
        with self._api_errors("checking repository permissions", full_name):
            repository = self.github.get_repo(full_name)
            permissions = repository.permissions

        if permissions is None:
            return RepositoryPermissions()
        return RepositoryPermissions(
            admin=bool(permissions.admin),
            maintain=bool(getattr(permissions, "maintain", False)),
            push=bool(permissions.push),
            triage=bool(getattr(permissions, "triage", False)),
            pull=bool(permissions.pull),
        )

    def delete_dependency(
        self, source: IssueRef, target: IssueRef, kind: RelationshipKind
    ) -> None:
        """Delete the ``kind`` edge from ``source`` to ``target``.

        Raises:
            AppError: ISSUE kind if the edge no longer exists, or the
                translated API/network error
        """
        url = (
            dependencies_path(source.owner, source.repo, source.number, kind)
            + "/"
            + relationship_id(source, target)
        )
        with self._api_errors("removing dependency", source.full_name, source.number):
            try:
                self.github.requester.requestJsonAndCheck("DELETE", url)
            except UnknownObjectException as e:
                error = relationship_not_found_error(source, target, kind.value)
                error.status_code = e.status
                raise error from e

        logger.info("Removed %s dependency %s %s %s", kind.value, source, kind.arrow, target)
