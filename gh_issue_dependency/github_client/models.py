"""Pydantic models for GitHub issue dependency data.

These models map to GitHub's REST API issue and issue-dependency responses.
API Reference: https://docs.github.com/en/rest/issues/issue-dependencies
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RelationshipKind(str, Enum):
    """Direction of a dependency edge as seen from the source issue."""

    BLOCKED_BY = "blocked-by"
    BLOCKS = "blocks"

    @property
    def api_name(self) -> str:
        """Path segment used by the dependencies endpoints."""
        return "blocked_by" if self is RelationshipKind.BLOCKED_BY else "blocking"

    @property
    def arrow(self) -> str:
        return "←" if self is RelationshipKind.BLOCKED_BY else "→"

    @classmethod
    def parse(cls, value: "str | RelationshipKind") -> "RelationshipKind":
        """Parse a relationship type, raising a validation error if unknown."""
        if isinstance(value, RelationshipKind):
            return value
        for kind in cls:
            if value == kind.value:
                return kind

        from ..errors import AppError, ErrorKind

        raise (
            AppError(ErrorKind.VALIDATION, f"Invalid relationship type: {value}")
            .with_context("relationship_type", value)
            .with_suggestion("Use either 'blocked-by' or 'blocks'")
        )


class IssueRef(BaseModel):
    """Reference to an issue in a specific repository.

    Two references are the same issue when owner, repo and number all match
    exactly (case-sensitive).

    Construction does not enforce ``number > 0`` or non-empty names. A
    malformed reference can be built on purpose so that validation reports
    it as a VALIDATION error; check ``is_well_formed()`` before using one.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., description="Repository owner (user or organization)")
    repo: str = Field(..., description="Repository name")
    number: int = Field(..., description="Issue number within the repository")

    @property
    def full_name(self) -> str:
        """``owner/repo`` when both parts are present, else empty."""
        if self.owner and self.repo:
            return f"{self.owner}/{self.repo}"
        return ""

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"

    def is_well_formed(self) -> bool:
        return bool(self.owner and self.repo and self.number > 0)

    @classmethod
    def parse(
        cls, value: str, default_owner: str = "", default_repo: str = ""
    ) -> "IssueRef":
        """Parse ``123``, ``owner/repo#123`` or an issue URL."""
        # Import here to avoid circular import
        from .references import parse_issue_ref

        return parse_issue_ref(value, default_owner, default_repo)


class GitHubUser(BaseModel):
    """GitHub user model representing a user account.

    API Reference: https://docs.github.com/en/rest/users/users
    """

    login: str = Field(..., description="GitHub username/login (string)")
    html_url: str | None = Field(None, description="Profile URL")


class GitHubLabel(BaseModel):
    """GitHub label model representing repository labels.

    API Reference: https://docs.github.com/en/rest/issues/labels
    """

    name: str = Field(..., description="Name of the label (string)")
    color: str = Field("", description="Hexadecimal color code without leading #")
    description: str | None = Field(None, description="Short description")


class Issue(BaseModel):
    """GitHub issue with the fields relevant to dependency management.

    API Reference: https://docs.github.com/en/rest/issues/issues
    """

    model_config = ConfigDict(frozen=True)

    number: int = Field(..., description="Issue number within the repository")
    title: str = Field("", description="Short description/title of the issue")
    state: str = Field("open", description="Current state: 'open', 'closed'")
    assignees: tuple[GitHubUser, ...] = Field(
        default_factory=tuple, description="Users assigned to the issue"
    )
    labels: tuple[GitHubLabel, ...] = Field(
        default_factory=tuple, description="Labels attached to the issue"
    )
    html_url: str = Field("", description="Browser URL of the issue")
    repository: str = Field("", description="Repository full name (owner/repo)")


class DependencyRelation(BaseModel):
    """One directed edge between the source issue and a related issue."""

    model_config = ConfigDict(frozen=True)

    issue: Issue = Field(..., description="The related issue")
    kind: RelationshipKind = Field(..., description="Edge direction")
    repository: str = Field(..., description="Repository of the related issue")

    def matches(self, target: IssueRef) -> bool:
        """True if this edge points at ``target`` (by number and repository)."""
        return (
            self.issue.number == target.number
            and self.repository == target.full_name
        )

    def to_ref(self) -> IssueRef:
        owner, _, repo = self.repository.partition("/")
        return IssueRef(owner=owner, repo=repo, number=self.issue.number)


class DependencySnapshot(BaseModel):
    """All dependency edges of an issue at one point in time.

    Snapshots are read-only; filtering returns a new snapshot.
    """

    model_config = ConfigDict(frozen=True)

    source_issue: Issue = Field(..., description="The issue whose edges these are")
    blocked_by: tuple[DependencyRelation, ...] = Field(default_factory=tuple)
    blocking: tuple[DependencyRelation, ...] = Field(default_factory=tuple)
    fetched_at: datetime = Field(..., description="When the data was fetched")
    total_count: int = Field(0, description="len(blocked_by) + len(blocking)")

    @classmethod
    def build(
        cls,
        source_issue: Issue,
        blocked_by: list[DependencyRelation] | tuple[DependencyRelation, ...],
        blocking: list[DependencyRelation] | tuple[DependencyRelation, ...],
        fetched_at: datetime,
    ) -> "DependencySnapshot":
        return cls(
            source_issue=source_issue,
            blocked_by=tuple(blocked_by),
            blocking=tuple(blocking),
            fetched_at=fetched_at,
            total_count=len(blocked_by) + len(blocking),
        )

    def relations(self, kind: RelationshipKind) -> tuple[DependencyRelation, ...]:
        if kind is RelationshipKind.BLOCKED_BY:
            return self.blocked_by
        return self.blocking

    def has_relationship(self, target: IssueRef, kind: RelationshipKind) -> bool:
        return any(relation.matches(target) for relation in self.relations(kind))

    def filter_by_state(self, state: str) -> "DependencySnapshot":
        """Return a new snapshot keeping only related issues in ``state``."""
        if state == "all":
            return self
        return DependencySnapshot.build(
            self.source_issue,
            [r for r in self.blocked_by if r.issue.state == state],
            [r for r in self.blocking if r.issue.state == state],
            self.fetched_at,
        )


class RepositoryPermissions(BaseModel):
    """Permissions the authenticated user holds on a repository."""

    admin: bool = False
    maintain: bool = False
    push: bool = False
    triage: bool = False
    pull: bool = False

    @property
    def can_write(self) -> bool:
        return self.admin or self.maintain or self.push


class CacheEntry(BaseModel):
    """A cached snapshot with its expiry time."""

    data: DependencySnapshot = Field(..., description="The cached snapshot")
    expires_at: datetime = Field(..., description="Entry is stale after this time")
