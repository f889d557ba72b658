"""CLI command for removing issue dependency relationships."""

from ..config import Settings
from ..dependencies import RemovalResult, RemovalState, RemoveOptions
from ..errors import AppError, ErrorKind, RemovalFailedError
from ..github_client.models import RelationshipKind
from ..github_client.references import (
    parse_issue_ref,
    parse_issue_refs,
    resolve_repository,
)
from .common import build_executor, console, exit_with_error
from .options import (
    ALL_OPTION,
    BLOCKED_BY_OPTION,
    BLOCKS_OPTION,
    DRY_RUN_OPTION,
    FORCE_OPTION,
    ISSUE_ARGUMENT,
    REPO_OPTION,
    TOKEN_OPTION,
)


def _selected_kind(
    blocked_by: str | None, blocks: str | None, remove_all: bool
) -> tuple[RelationshipKind | None, str | None]:
    selected = [flag for flag in (blocked_by, blocks) if flag] + (
        ["--all"] if remove_all else []
    )
    if not selected:
        raise (
            AppError(
                ErrorKind.VALIDATION,
                "Must specify either --blocked-by, --blocks, or --all",
            )
            .with_suggestion("Use --blocked-by to remove issues blocking this one")
            .with_suggestion("Use --blocks to remove issues this one blocks")
            .with_suggestion("Use --all to remove every relationship")
        )
    if len(selected) > 1:
        raise AppError(
            ErrorKind.VALIDATION,
            "Cannot specify more than one of --blocked-by, --blocks and --all",
        ).with_suggestion("Remove relationships of one type per invocation")
    if blocked_by:
        return RelationshipKind.BLOCKED_BY, blocked_by
    if blocks:
        return RelationshipKind.BLOCKS, blocks
    return None, None


def _print_outcomes(result: RemovalResult) -> None:
    for outcome in result.outcomes:
        line = f"{result.source} {outcome.kind.arrow} {outcome.target}"
        if outcome.success:
            console.print(f"  ✅ Removed {outcome.kind.value} relationship: {line}")
        else:
            console.print(f"  ❌ Failed {outcome.kind.value} relationship: {line}")


def remove(
    issue: str = ISSUE_ARGUMENT,
    blocked_by: str | None = BLOCKED_BY_OPTION,
    blocks: str | None = BLOCKS_OPTION,
    remove_all: bool = ALL_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    force: bool = FORCE_OPTION,
    repo: str | None = REPO_OPTION,
    token: str | None = TOKEN_OPTION,
) -> None:
    """Remove dependency relationships between issues.

    Relationships are validated before anything changes: the issues must
    exist, you need write access to the issue's repository and the
    relationship must currently exist. You are asked to confirm unless
    --force is given.

    Examples:
        # Remove a single blocking relationship
        gh-issue-dependency remove 123 --blocked-by 456

        # Remove several relationships, including a cross-repository one
        gh-issue-dependency remove 123 --blocks 789,owner/other#12

        # Preview clearing every relationship of an issue
        gh-issue-dependency remove 123 --all --dry-run
    """
    try:
        kind, target_refs = _selected_kind(blocked_by, blocks, remove_all)
        owner, repo_name = resolve_repository(repo, issue)
        source = parse_issue_ref(issue, owner, repo_name)
        targets = (
            parse_issue_refs(target_refs, owner, repo_name) if target_refs else []
        )

        settings = Settings.from_env(token)
        executor = build_executor(settings)
        opts = RemoveOptions(dry_run=dry_run, force=force)

        if kind is None:
            result = executor.remove_all(source, opts)
        else:
            result = executor.remove(source, targets, kind, opts)
    except RemovalFailedError as e:
        _print_outcomes(e.result)
        exit_with_error(e)
    except AppError as e:
        exit_with_error(e)

    if result.state is RemovalState.CANCELLED:
        console.print("❌ [yellow]Operation cancelled by user[/yellow]")
        return
    if result.dry_run:
        return

    _print_outcomes(result)
    console.print(
        f"✅ [green]Removed {result.removed_count} dependency "
        f"relationship(s) from {result.source}[/green]"
    )
