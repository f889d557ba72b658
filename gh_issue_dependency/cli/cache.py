"""CLI commands for managing the local response cache."""

import typer

from ..config import default_cache_dir
from ..storage.cache import ResponseCache
from .common import console

app = typer.Typer(
    help="Local response cache management",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def clean(
    remove_all: bool = typer.Option(
        False, "--all", help="Remove every entry, not only expired ones"
    ),
) -> None:
    """Remove expired (or all) cached dependency snapshots."""
    cache = ResponseCache(default_cache_dir())
    removed = cache.clear() if remove_all else cache.clean_expired()
    console.print(f"🧹 Removed {removed} cache entr{'y' if removed == 1 else 'ies'}")
    console.print(f"[dim]Cache directory: {cache.base_path}[/dim]")
