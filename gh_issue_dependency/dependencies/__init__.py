"""Fetching, validating and removing issue dependencies."""

from .fetcher import DependencyFetcher
from .remover import (
    ConfirmationPrompt,
    PlannedRemoval,
    RemovalExecutor,
    RemovalOutcome,
    RemovalResult,
    RemovalState,
    RemoveOptions,
)
from .retry import RetryPolicy, is_retryable
from .validator import RemovalValidator

__all__ = [
    "ConfirmationPrompt",
    "DependencyFetcher",
    "PlannedRemoval",
    "RemovalExecutor",
    "RemovalOutcome",
    "RemovalResult",
    "RemovalState",
    "RemovalValidator",
    "RemoveOptions",
    "RetryPolicy",
    "is_retryable",
]
