"""Validation of dependency removal requests.

Checks run in order and stop at the first failure:

1. input well-formedness (references, relationship type, self-reference)
2. write permission on the source repository
3. source and target issues exist and are visible
4. the relationship actually exists on the source issue

Batch validation runs steps 1-2 once for the source and collects step 3-4
failures for every target before reporting them together.
"""

import logging

from ..errors import (
    AppError,
    BatchValidationError,
    ErrorKind,
    TargetFailure,
    empty_value_error,
    no_dependencies_error,
    permission_denied_error,
    relationship_not_found_error,
)
from ..github_client.client import GitHubClient
from ..github_client.models import DependencySnapshot, IssueRef, RelationshipKind
from .fetcher import DependencyFetcher
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


class RemovalValidator:
    """Stateless checks performed before any dependency is deleted."""

    def __init__(
        self,
        client: GitHubClient,
        fetcher: DependencyFetcher,
        retry_policy: RetryPolicy | None = None,
    ):
        self.client = client
        self.fetcher = fetcher
        self.retry_policy = retry_policy or fetcher.retry_policy

    def validate_single(
        self,
        source: IssueRef,
        target: IssueRef,
        kind: "str | RelationshipKind",
    ) -> DependencySnapshot:
        """Validate removing one relationship.

        Returns:
            The source issue's current dependency snapshot

        Raises:
            AppError: The first failed check
        """
        relationship = self._validate_source(source, kind)
        self._validate_target(source, target)

        self._validate_permissions(source)
        snapshot = self._fetch_source(source)
        self._validate_issue_access(target, "target")

        if not snapshot.has_relationship(target, relationship):
            raise relationship_not_found_error(source, target, relationship.value)
        return snapshot

    def validate_batch(
        self,
        source: IssueRef,
        targets: list[IssueRef],
        kind: "str | RelationshipKind",
    ) -> DependencySnapshot:
        """Validate removing several relationships of one kind.

        Every target is checked; all target failures are reported together.

        Raises:
            AppError: A failed source-level check
            BatchValidationError: One or more targets failed
        """
        relationship = self._validate_source(source, kind)
        if not targets:
            raise empty_value_error("dependency references")

        self._validate_permissions(source)
        snapshot = self._fetch_source(source)

        failures: list[TargetFailure] = []
        for target in targets:
            try:
                self._validate_target(source, target)
                self._validate_issue_access(target, "target")
                if not snapshot.has_relationship(target, relationship):
                    raise relationship_not_found_error(
                        source, target, relationship.value
                    )
            except AppError as e:
                logger.debug("Target %s failed validation: %s", target, e.message)
                failures.append(TargetFailure(target, e))

        if failures:
            raise BatchValidationError(source, failures)
        return snapshot

    def validate_remove_all(self, source: IssueRef) -> DependencySnapshot:
        """Validate clearing every relationship of an issue.

        Existence checks are skipped: every edge in the snapshot exists.

        Raises:
            AppError: VALIDATION kind if the issue has no relationships
        """
        if not source.is_well_formed():
            raise empty_value_error("source issue reference")

        self._validate_permissions(source)
        snapshot = self._fetch_source(source)
        if snapshot.total_count == 0:
            raise no_dependencies_error(source)
        return snapshot

    def _validate_source(
        self, source: IssueRef, kind: "str | RelationshipKind"
    ) -> RelationshipKind:
        if not source.is_well_formed():
            raise empty_value_error("source issue reference")
        return RelationshipKind.parse(kind)

    def _validate_target(self, source: IssueRef, target: IssueRef) -> None:
        if not target.is_well_formed():
            raise empty_value_error("target issue reference")
        if source == target:
            raise (
                AppError(
                    ErrorKind.VALIDATION,
                    "Cannot remove dependency relationship from an issue to itself",
                )
                .with_context("issue", source)
                .with_suggestion("Specify different source and target issues")
            )

    def _validate_permissions(self, source: IssueRef) -> None:
        """Require write access to the source repository.

        The relationship lives on the source issue, so cross-repository
        targets only need to be readable.
        """
        permissions = self.retry_policy.call(
            f"Checking permissions for {source.full_name}",
            lambda: self.client.get_repository_permissions(source.owner, source.repo),
        )
        if not permissions.can_write:
            raise permission_denied_error("modify dependencies", source.full_name)

    def _fetch_source(self, source: IssueRef) -> DependencySnapshot:
        try:
            return self.fetcher.fetch_ref(source)
        except AppError as e:
            raise e.with_context("side", "source")

    def _validate_issue_access(self, ref: IssueRef, side: str) -> None:
        try:
            self.retry_policy.call(
                f"Fetching issue {ref}",
                lambda: self.client.get_issue(ref.owner, ref.repo, ref.number),
            )
        except AppError as e:
            raise e.with_context("side", side).with_context("issue", ref)
