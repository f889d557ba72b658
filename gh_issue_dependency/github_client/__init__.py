"""GitHub client package for API interaction."""

from .client import GitHubClient
from .models import (
    DependencyRelation,
    DependencySnapshot,
    GitHubLabel,
    GitHubUser,
    Issue,
    IssueRef,
    RelationshipKind,
    RepositoryPermissions,
)
from .references import parse_issue_ref, parse_issue_refs, resolve_repository

__all__ = [
    "GitHubClient",
    "GitHubUser",
    "GitHubLabel",
    "Issue",
    "IssueRef",
    "DependencyRelation",
    "DependencySnapshot",
    "RelationshipKind",
    "RepositoryPermissions",
    "parse_issue_ref",
    "parse_issue_refs",
    "resolve_repository",
]
