"""Main CLI entry point."""

import logging

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from . import cache
from .list import list_dependencies
from .remove import remove

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="gh-issue-dependency",
    help="Manage GitHub issue dependency relationships",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


def configure_logging(verbose: bool) -> None:
    """Send package log records to stderr through rich."""
    logger = logging.getLogger("gh_issue_dependency")
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug logging on stderr"
    ),
) -> None:
    """Manage GitHub issue dependency relationships."""
    configure_logging(verbose)


app.command(name="remove", context_settings={"help_option_names": ["-h", "--help"]})(
    remove
)
app.command(name="list", context_settings={"help_option_names": ["-h", "--help"]})(
    list_dependencies
)
app.add_typer(cache.app, name="cache")


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def version() -> None:
    """Show version information."""
    from gh_issue_dependency import __version__

    console.print(f"gh-issue-dependency v{__version__}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
