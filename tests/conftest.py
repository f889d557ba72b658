"""Test configuration and fixtures."""

import io
from collections import defaultdict
from pathlib import Path

import pytest
from rich.console import Console

from gh_issue_dependency.dependencies import (
    ConfirmationPrompt,
    DependencyFetcher,
    RemovalExecutor,
    RemovalValidator,
    RetryPolicy,
)
from gh_issue_dependency.errors import (
    AppError,
    issue_not_found_error,
    relationship_not_found_error,
)
from gh_issue_dependency.github_client.models import (
    DependencyRelation,
    Issue,
    IssueRef,
    RelationshipKind,
    RepositoryPermissions,
)
from gh_issue_dependency.storage.cache import ResponseCache


def ref(number: int, owner: str = "octo", repo: str = "repo") -> IssueRef:
    return IssueRef(owner=owner, repo=repo, number=number)


class FakeClient:
    """In-memory stand-in for GitHubClient that records every call."""

    def __init__(self) -> None:
        self.issues: dict[IssueRef, Issue] = {}
        self.edges: dict[tuple[IssueRef, RelationshipKind], list[DependencyRelation]] = (
            defaultdict(list)
        )
        self.permissions = RepositoryPermissions(push=True, pull=True)
        self.errors: dict[str, list[AppError]] = defaultdict(list)
        self.delete_errors: dict[IssueRef, list[AppError]] = defaultdict(list)
        self.calls: list[str] = []
        self.deleted: list[tuple[IssueRef, IssueRef, RelationshipKind]] = []

    def add_issue(
        self, issue_ref: IssueRef, title: str = "", state: str = "open"
    ) -> Issue:
        issue = Issue(
            number=issue_ref.number,
            title=title or f"Issue {issue_ref.number}",
            state=state,
            html_url=f"https://github.com/{issue_ref.full_name}/issues/{issue_ref.number}",
            repository=issue_ref.full_name,
        )
        self.issues[issue_ref] = issue
        return issue

    def add_relation(
        self, source: IssueRef, target: IssueRef, kind: RelationshipKind
    ) -> None:
        issue = self.issues.get(target) or self.add_issue(target)
        self.edges[(source, kind)].append(
            DependencyRelation(issue=issue, kind=kind, repository=target.full_name)
        )

    def _raise_queued(self, operation: str) -> None:
        if self.errors[operation]:
            raise self.errors[operation].pop(0)

    def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        self.calls.append("get_issue")
        self._raise_queued("get_issue")
        issue_ref = IssueRef(owner=owner, repo=repo, number=number)
        if issue_ref not in self.issues:
            raise issue_not_found_error(issue_ref.full_name, number)
        return self.issues[issue_ref]

    def list_dependencies(
        self, owner: str, repo: str, number: int, kind: RelationshipKind
    ) -> list[DependencyRelation]:
        self.calls.append(f"list_{kind.api_name}")
        self._raise_queued(f"list_{kind.api_name}")
        issue_ref = IssueRef(owner=owner, repo=repo, number=number)
        return list(self.edges[(issue_ref, kind)])

    def get_repository_permissions(
        self, owner: str, repo: str
    ) -> RepositoryPermissions:
        self.calls.append("get_repository_permissions")
        self._raise_queued("get_repository_permissions")
        return self.permissions

    def delete_dependency(
        self, source: IssueRef, target: IssueRef, kind: RelationshipKind
    ) -> None:
        self.calls.append("delete_dependency")
        self.deleted.append((source, target, kind))
        if self.delete_errors[target]:
            raise self.delete_errors[target].pop(0)

        edges = self.edges[(source, kind)]
        for relation in edges:
            if relation.matches(target):
                edges.remove(relation)
                return
        error = relationship_not_found_error(source, target, kind.value)
        error.status_code = 404
        raise error

    @property
    def delete_count(self) -> int:
        return len(self.deleted)


@pytest.fixture
def fake_client() -> FakeClient:
    """octo/repo#1 is blocked by #2 and #3 and blocks #4; #5 is unrelated."""
    client = FakeClient()
    client.add_issue(ref(1), title="Source issue")
    for number in (2, 3, 4, 5):
        client.add_issue(ref(number))
    client.add_relation(ref(1), ref(2), RelationshipKind.BLOCKED_BY)
    client.add_relation(ref(1), ref(3), RelationshipKind.BLOCKED_BY)
    client.add_relation(ref(1), ref(4), RelationshipKind.BLOCKS)
    return client


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested by the retry policy, instead of real sleeping."""
    return []


@pytest.fixture
def retry_policy(sleeps: list[float]) -> RetryPolicy:
    return RetryPolicy(sleep=sleeps.append)


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def fetcher(
    fake_client: FakeClient, cache_dir: Path, retry_policy: RetryPolicy
) -> DependencyFetcher:
    return DependencyFetcher(
        fake_client, ResponseCache(cache_dir), retry_policy=retry_policy, timeout=5.0
    )


@pytest.fixture
def validator(fake_client: FakeClient, fetcher: DependencyFetcher) -> RemovalValidator:
    return RemovalValidator(fake_client, fetcher)


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(output: io.StringIO) -> Console:
    return Console(file=output, width=200, no_color=True)


def make_executor(
    client: FakeClient,
    validator: RemovalValidator,
    console: Console,
    responses: list[str] | None = None,
) -> RemovalExecutor:
    prompt = ConfirmationPrompt(console, responses=responses or [])
    return RemovalExecutor(client, validator, prompt=prompt, console=console)


@pytest.fixture
def executor(
    fake_client: FakeClient, validator: RemovalValidator, console: Console
) -> RemovalExecutor:
    """Executor whose prompt has no answers queued."""
    return make_executor(fake_client, validator, console)
