"""Shared CLI option definitions so every command uses the same flags."""

import typer

ISSUE_ARGUMENT = typer.Argument(
    ..., help="Issue number, owner/repo#number or GitHub issue URL"
)

REPO_OPTION = typer.Option(
    None,
    "--repo",
    "-R",
    help="Select another repository using the [HOST/]OWNER/REPO format",
)

TOKEN_OPTION = typer.Option(
    None, "--token", "-t", help="GitHub API token (defaults to GITHUB_TOKEN env var)"
)

# Removal targets
BLOCKED_BY_OPTION = typer.Option(
    None,
    "--blocked-by",
    help="Issue(s) to remove from blocking this issue (comma-separated)",
)

BLOCKS_OPTION = typer.Option(
    None,
    "--blocks",
    help="Issue(s) to remove from being blocked by this issue (comma-separated)",
)

ALL_OPTION = typer.Option(
    False, "--all", help="Remove every dependency relationship of the issue"
)

# Behavior options
DRY_RUN_OPTION = typer.Option(
    False, "--dry-run", "-d", help="Preview changes without applying them"
)

FORCE_OPTION = typer.Option(
    False, "--force", "-f", help="Apply changes without confirmation"
)

# Display options
STATE_OPTION = typer.Option(
    "all", "--state", "-s", help="Related issue state: open, closed, or all"
)

JSON_OPTION = typer.Option(False, "--json", help="Output the snapshot as JSON")

NO_CACHE_OPTION = typer.Option(
    False, "--no-cache", help="Bypass the local response cache"
)
