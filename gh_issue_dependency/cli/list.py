"""CLI command for listing issue dependency relationships."""

import typer
from rich.markup import escape
from rich.table import Table

from ..config import Settings
from ..errors import AppError, validation_error
from ..github_client.models import DependencyRelation, DependencySnapshot
from ..github_client.references import parse_issue_ref, resolve_repository
from .common import build_fetcher, console, exit_with_error
from .options import (
    ISSUE_ARGUMENT,
    JSON_OPTION,
    NO_CACHE_OPTION,
    REPO_OPTION,
    STATE_OPTION,
    TOKEN_OPTION,
)

VALID_STATES = ("open", "closed", "all")


def _relations_table(title: str, relations: tuple[DependencyRelation, ...]) -> Table:
    table = Table(title=title)
    table.add_column("Issue", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("State", style="green")
    table.add_column("Assignees", style="magenta")
    table.add_column("Labels", style="yellow")

    for relation in relations:
        issue = relation.issue
        table.add_row(
            f"{relation.repository}#{issue.number}",
            escape(issue.title),
            issue.state,
            ", ".join(user.login for user in issue.assignees) or "-",
            escape(", ".join(label.name for label in issue.labels)) or "-",
        )
    return table


def _print_snapshot(snapshot: DependencySnapshot) -> None:
    source = snapshot.source_issue
    console.print(
        f"[bold]{source.repository}#{source.number}[/bold]: {escape(source.title)} "
        f"({source.state})"
    )

    if snapshot.total_count == 0:
        console.print("[yellow]No dependency relationships found.[/yellow]")
        return

    if snapshot.blocked_by:
        console.print(_relations_table("Blocked by", snapshot.blocked_by))
    if snapshot.blocking:
        console.print(_relations_table("Blocking", snapshot.blocking))
    console.print(
        f"Total: {snapshot.total_count} relationship(s) "
        f"({len(snapshot.blocked_by)} blocked by, {len(snapshot.blocking)} blocking)"
    )


def list_dependencies(
    issue: str = ISSUE_ARGUMENT,
    repo: str | None = REPO_OPTION,
    state: str = STATE_OPTION,
    json_output: bool = JSON_OPTION,
    no_cache: bool = NO_CACHE_OPTION,
    token: str | None = TOKEN_OPTION,
) -> None:
    """List the issues that block, or are blocked by, an issue.

    Examples:
        gh-issue-dependency list 123
        gh-issue-dependency list owner/repo#123 --state open
        gh-issue-dependency list 123 --json
    """
    try:
        if state not in VALID_STATES:
            raise validation_error("state", state).with_suggestion(
                "Use one of: open, closed, all"
            )
        owner, repo_name = resolve_repository(repo, issue)
        source = parse_issue_ref(issue, owner, repo_name)

        settings = Settings.from_env(token)
        fetcher = build_fetcher(settings)
        snapshot = fetcher.fetch_ref(source, use_cache=not no_cache)
    except AppError as e:
        exit_with_error(e)

    snapshot = snapshot.filter_by_state(state)
    if json_output:
        typer.echo(snapshot.model_dump_json(indent=2))
        return
    _print_snapshot(snapshot)
