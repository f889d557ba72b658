"""Helpers shared by the CLI commands."""

from datetime import timedelta
from typing import NoReturn

import typer
from rich.console import Console

from ..config import Settings
from ..dependencies import (
    ConfirmationPrompt,
    DependencyFetcher,
    RemovalExecutor,
    RemovalValidator,
    RetryPolicy,
)
from ..errors import AppError, exit_code_for, format_user_error
from ..github_client.client import GitHubClient
from ..storage.cache import ResponseCache

console = Console()
error_console = Console(stderr=True)


def exit_with_error(error: AppError) -> NoReturn:
    """Print an error with its suggestions and exit with the matching code."""
    error_console.print(
        f"❌ {format_user_error(error)}", markup=False, highlight=False, soft_wrap=True
    )
    raise typer.Exit(int(exit_code_for(error)))


def build_fetcher(settings: Settings) -> DependencyFetcher:
    client = GitHubClient(
        token=settings.github_token,
        api_url=settings.api_url,
        timeout=settings.request_timeout,
    )
    retry_policy = RetryPolicy(
        max_attempts=settings.max_attempts, base_delay=settings.retry_base_delay
    )
    cache = ResponseCache(
        settings.cache_dir, ttl=timedelta(seconds=settings.cache_ttl)
    )
    return DependencyFetcher(
        client, cache, retry_policy=retry_policy, timeout=settings.fetch_timeout
    )


def build_executor(settings: Settings) -> RemovalExecutor:
    fetcher = build_fetcher(settings)
    validator = RemovalValidator(fetcher.client, fetcher)
    return RemovalExecutor(
        fetcher.client,
        validator,
        prompt=ConfirmationPrompt(console),
        console=console,
    )
