"""Fetches an issue's dependency snapshot with concurrent API reads."""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import FIRST_EXCEPTION, Future, wait
from datetime import datetime
from typing import TypeVar

from ..errors import (
    AppError,
    empty_value_error,
    internal_error,
    issue_number_error,
    timeout_error,
)
from ..github_client.client import GitHubClient
from ..github_client.models import DependencySnapshot, IssueRef, RelationshipKind
from ..storage.cache import ResponseCache, utc_now
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

FETCH_TIMEOUT = 30.0


class DependencyFetcher:
    """Reads issue details and both edge lists, consulting the cache first."""

    def __init__(
        self,
        client: GitHubClient,
        cache: ResponseCache | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout: float = FETCH_TIMEOUT,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client = client
        self.cache = cache
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self.clock = clock

    def fetch(
        self, owner: str, repo: str, issue_number: int, use_cache: bool = True
    ) -> DependencySnapshot:
        """Return the dependency snapshot for an issue.

        On a cache miss the issue detail, blocked-by list and blocking list
        are read concurrently and joined under a single deadline. Any failure
        aborts the whole fetch.

        Raises:
            AppError: VALIDATION kind for malformed input, NETWORK kind if the
                deadline passes, or the first failing read's error
        """
        if not owner or not repo:
            raise empty_value_error("repository owner or name")
        if issue_number <= 0:
            raise issue_number_error(str(issue_number))

        if use_cache and self.cache is not None:
            cached = self.cache.get(owner, repo, issue_number)
            if cached is not None:
                return cached

        ref = IssueRef(owner=owner, repo=repo, number=issue_number)
        futures: dict[str, Future] = {
            "issue": self._submit(
                "issue",
                f"Fetching issue {ref}",
                lambda: self.client.get_issue(owner, repo, issue_number),
            ),
            "blocked_by": self._submit(
                "blocked-by",
                f"Fetching blocked-by dependencies of {ref}",
                lambda: self.client.list_dependencies(
                    owner, repo, issue_number, RelationshipKind.BLOCKED_BY
                ),
            ),
            "blocking": self._submit(
                "blocking",
                f"Fetching blocking dependencies of {ref}",
                lambda: self.client.list_dependencies(
                    owner, repo, issue_number, RelationshipKind.BLOCKS
                ),
            ),
        }
        done, not_done = wait(
            futures.values(), timeout=self.timeout, return_when=FIRST_EXCEPTION
        )

        for future in futures.values():
            if future in done and future.exception() is not None:
                error = future.exception()
                if isinstance(error, AppError):
                    raise error.with_context("issue", ref)
                raise internal_error(f"fetching dependencies for {ref}", error) from error

        if not_done:
            raise timeout_error(f"fetching dependencies for {ref}").with_context(
                "timeout_seconds", self.timeout
            )

        snapshot = DependencySnapshot.build(
            source_issue=futures["issue"].result(),
            blocked_by=futures["blocked_by"].result(),
            blocking=futures["blocking"].result(),
            fetched_at=self.clock(),
        )
        logger.debug(
            "Fetched %d dependencies for %s (%d blocked by, %d blocking)",
            snapshot.total_count,
            ref,
            len(snapshot.blocked_by),
            len(snapshot.blocking),
        )

        if self.cache is not None:
            self.cache.put(owner, repo, issue_number, snapshot)
        return snapshot

    def _submit(self, name: str, operation: str, func: Callable[[], T]) -> Future:
        """Run one retried read on a daemon thread.

        A read still in flight after the deadline must not keep the process
        alive.
        """
        future: Future = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self.retry_policy.call(operation, func))
            except Exception as e:
                future.set_exception(e)

        threading.Thread(
            target=run, name=f"dependency-fetch-{name}", daemon=True
        ).start()
        return future

    def fetch_ref(self, ref: IssueRef, use_cache: bool = True) -> DependencySnapshot:
        return self.fetch(ref.owner, ref.repo, ref.number, use_cache=use_cache)

    def invalidate(self, ref: IssueRef) -> None:
        """Forget the cached snapshot of an issue after it has changed."""
        if self.cache is not None:
            self.cache.invalidate(ref.owner, ref.repo, ref.number)
