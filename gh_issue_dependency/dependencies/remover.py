"""Dependency removal: preview, confirmation and execution."""

import logging
from collections.abc import Callable, Iterable, Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from rich.console import Console

from ..errors import (
    AppError,
    ErrorKind,
    RemovalFailedError,
    TargetFailure,
    empty_value_error,
)
from ..github_client.client import GitHubClient
from ..github_client.models import DependencySnapshot, IssueRef, RelationshipKind
from .retry import RetryPolicy
from .validator import RemovalValidator

logger = logging.getLogger(__name__)

MAX_PROMPT_ATTEMPTS = 3


class RemoveOptions(BaseModel):
    """Per-invocation flags. ``dry_run`` always wins over ``force``."""

    dry_run: bool = False
    force: bool = False


class RemovalState(str, Enum):
    VALIDATING = "validating"
    DRY_RUN_PREVIEW = "dry_run_preview"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    EXECUTING = "executing"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


class PlannedRemoval(BaseModel):
    """One edge to remove from the source issue."""

    model_config = ConfigDict(frozen=True)

    target: IssueRef
    kind: RelationshipKind


class RemovalOutcome(BaseModel):
    """Result of removing one edge."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    target: IssueRef
    kind: RelationshipKind
    success: bool
    error: AppError | None = None


class RemovalResult(BaseModel):
    """Summary of a removal invocation, outcomes in target order."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: IssueRef
    state: RemovalState
    planned: list[PlannedRemoval] = Field(default_factory=list)
    outcomes: list[RemovalOutcome] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def succeeded(self) -> list[RemovalOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failures(self) -> list[TargetFailure]:
        return [
            TargetFailure(o.target, o.error)
            for o in self.outcomes
            if not o.success and o.error is not None
        ]

    @property
    def removed_count(self) -> int:
        return len(self.succeeded)

    @property
    def partially_failed(self) -> bool:
        return bool(self.succeeded) and bool(self.failures)


class ConfirmationPrompt:
    """Reads a yes/no answer, defaulting to No.

    ``y``/``yes`` confirm; ``n``/``no`` or an empty line decline. Anything
    else re-prompts, at most ``max_attempts`` times in total.
    """

    def __init__(
        self,
        console: Console | None = None,
        responses: Iterable[str] | None = None,
        max_attempts: int = MAX_PROMPT_ATTEMPTS,
    ):
        """Initialize the prompt.

        Args:
            console: Console used for the prompt and for reading input
            responses: Pre-supplied answers used instead of the terminal
            max_attempts: Number of answers read before giving up
        """
        self.console = console or Console()
        self._responses: Iterator[str] | None = (
            iter(responses) if responses is not None else None
        )
        self.max_attempts = max_attempts

    def _read(self, question: str) -> str:
        if self._responses is None:
            return self.console.input(question)
        self.console.print(question, end="")
        try:
            answer = next(self._responses)
        except StopIteration:
            raise EOFError from None
        self.console.print(answer, markup=False)
        return answer

    def ask(self, question: str = "Continue? (y/N): ") -> bool:
        for _ in range(self.max_attempts):
            try:
                answer = self._read(question).strip().lower()
            except EOFError:
                break

            if answer in ("y", "yes"):
                return True
            if answer in ("", "n", "no"):
                return False
            self.console.print("[yellow]Please answer 'y' or 'n'.[/yellow]")

        raise (
            AppError(ErrorKind.INTERNAL, "No valid response to confirmation prompt")
            .with_context("attempts", self.max_attempts)
            .with_suggestion("Answer 'y' or 'n' at the prompt")
            .with_suggestion("Use --force to skip confirmation prompts")
        )


class RemovalExecutor:
    """Runs validation, dry-run preview, confirmation and DELETE calls.

    DELETEs are issued one target at a time, each with its own retries, and
    are never issued in dry-run mode or after the user declines.
    """

    def __init__(
        self,
        client: GitHubClient,
        validator: RemovalValidator,
        retry_policy: RetryPolicy | None = None,
        prompt: ConfirmationPrompt | None = None,
        console: Console | None = None,
    ):
        self.client = client
        self.validator = validator
        self.retry_policy = retry_policy or validator.retry_policy
        self.console = console or Console()
        self.prompt = prompt or ConfirmationPrompt(self.console)
        self.state = RemovalState.VALIDATING
        self.on_state_change: Callable[[RemovalState], None] | None = None

    def _transition(self, state: RemovalState) -> None:
        logger.debug("Removal state %s -> %s", self.state.value, state.value)
        self.state = state
        if self.on_state_change is not None:
            self.on_state_change(state)

    def remove(
        self,
        source: IssueRef,
        targets: list[IssueRef],
        kind: "str | RelationshipKind",
        opts: RemoveOptions | None = None,
    ) -> RemovalResult:
        """Remove one or more relationships of a single kind.

        Raises:
            AppError: Validation failed, or the prompt got no valid answer
            RemovalFailedError: One or more DELETE calls failed
        """
        opts = opts or RemoveOptions()
        self._transition(RemovalState.VALIDATING)
        try:
            if not targets:
                raise empty_value_error("dependency references")
            targets = unique_targets(targets)
            if len(targets) == 1:
                self.validator.validate_single(source, targets[0], kind)
            else:
                self.validator.validate_batch(source, targets, kind)
        except AppError:
            self._transition(RemovalState.FAILED)
            raise

        relationship = RelationshipKind.parse(kind)
        plan = [PlannedRemoval(target=t, kind=relationship) for t in targets]
        return self._run(source, plan, opts)

    def remove_all(
        self, source: IssueRef, opts: RemoveOptions | None = None
    ) -> RemovalResult:
        """Remove every blocked-by and blocking relationship of an issue.

        Raises:
            AppError: VALIDATION kind if there is nothing to remove
            RemovalFailedError: One or more DELETE calls failed
        """
        opts = opts or RemoveOptions()
        self._transition(RemovalState.VALIDATING)
        try:
            snapshot = self.validator.validate_remove_all(source)
        except AppError:
            self._transition(RemovalState.FAILED)
            raise

        return self._run(source, plan_from_snapshot(snapshot), opts)

    def _run(
        self, source: IssueRef, plan: list[PlannedRemoval], opts: RemoveOptions
    ) -> RemovalResult:
        if opts.dry_run:
            self._transition(RemovalState.DRY_RUN_PREVIEW)
            self.preview(source, plan)
            self._transition(RemovalState.DONE)
            return RemovalResult(
                source=source, state=RemovalState.DONE, planned=plan, dry_run=True
            )

        if not opts.force:
            self._transition(RemovalState.AWAITING_CONFIRMATION)
            self.show_summary(source, plan)
            try:
                confirmed = self.prompt.ask()
            except AppError:
                self._transition(RemovalState.FAILED)
                raise
            if not confirmed:
                self._transition(RemovalState.CANCELLED)
                return RemovalResult(
                    source=source, state=RemovalState.CANCELLED, planned=plan
                )

        return self.execute(source, plan)

    def execute(self, source: IssueRef, plan: list[PlannedRemoval]) -> RemovalResult:
        """Issue the DELETE calls for a plan, without validation or prompting.

        Raises:
            RemovalFailedError: One or more targets failed; the error carries
                the full result including the successes
        """
        self._transition(RemovalState.EXECUTING)
        outcomes = []
        for item in plan:
            try:
                self._delete(source, item)
            except AppError as e:
                logger.debug("Removal of %s failed: %s", item.target, e.message)
                outcomes.append(
                    RemovalOutcome(
                        target=item.target, kind=item.kind, success=False, error=e
                    )
                )
                continue
            outcomes.append(
                RemovalOutcome(target=item.target, kind=item.kind, success=True)
            )

        self.validator.fetcher.invalidate(source)
        for outcome in outcomes:
            if outcome.success:
                self.validator.fetcher.invalidate(outcome.target)

        failed = any(not o.success for o in outcomes)
        state = RemovalState.FAILED if failed else RemovalState.DONE
        self._transition(state)
        result = RemovalResult(
            source=source, state=state, planned=plan, outcomes=outcomes
        )
        if failed:
            raise RemovalFailedError(result)
        return result

    def _delete(self, source: IssueRef, item: PlannedRemoval) -> None:
        """DELETE one edge with retries.

        A transient failure may hide a DELETE the server already applied. A
        not-found answer on a later attempt therefore means the edge is gone.
        """
        attempts = 0

        def attempt() -> None:
            nonlocal attempts
            attempts += 1
            try:
                self.client.delete_dependency(source, item.target, item.kind)
            except AppError as e:
                if attempts > 1 and e.kind is ErrorKind.ISSUE and e.status_code == 404:
                    logger.info(
                        "Dependency %s %s %s already removed",
                        source,
                        item.kind.arrow,
                        item.target,
                    )
                    return
                raise

        self.retry_policy.call(
            f"Removing {item.kind.value} dependency {source} -> {item.target}",
            attempt,
        )

    def preview(self, source: IssueRef, plan: list[PlannedRemoval]) -> None:
        """Print what would be removed."""
        self.console.print("[blue]Dry run: dependency removal preview[/blue]")
        self.console.print()
        self.console.print("Would remove:")
        for item in plan:
            self.console.print(
                f"  ❌ {item.kind.value} relationship: "
                f"{source} {item.kind.arrow} {item.target}"
            )
        self.console.print()
        self.console.print(
            "No changes made. Use --force to skip confirmation "
            "or remove --dry-run to execute."
        )

    def show_summary(self, source: IssueRef, plan: list[PlannedRemoval]) -> None:
        """Print the confirmation summary for single or batch removal."""
        kinds = sorted({item.kind.value for item in plan})
        self.console.print("Remove dependency relationship(s)?")
        self.console.print(f"  Source: {source}")
        if len(plan) == 1:
            self.console.print(f"  Target: {plan[0].target}")
        else:
            self.console.print(f"  Targets: {len(plan)} issues")
            for item in plan:
                self.console.print(f"    - {item.target} ({item.kind.value})")
        self.console.print(f"  Type: {', '.join(kinds)}")
        self.console.print()
        if len(plan) == 1:
            self.console.print(
                f'This will remove the "{plan[0].kind.value}" relationship '
                "between these issues."
            )
        else:
            self.console.print(f"This will remove {len(plan)} relationships.")


def unique_targets(targets: Iterable[IssueRef]) -> list[IssueRef]:
    """Drop repeated references, keeping the first occurrence of each."""
    return list(dict.fromkeys(targets))


def plan_from_snapshot(snapshot: DependencySnapshot) -> list[PlannedRemoval]:
    """Every edge of a snapshot, blocked-by first, as a removal plan."""
    return [
        PlannedRemoval(target=relation.to_ref(), kind=relation.kind)
        for relation in (*snapshot.blocked_by, *snapshot.blocking)
    ]
