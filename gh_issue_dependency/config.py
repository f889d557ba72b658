"""Runtime settings loaded from the environment."""

import logging
import os
import subprocess
from pathlib import Path

from pydantic import BaseModel, Field

from .errors import auth_token_error

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_CACHE_DIR = ".gh-issue-dependency-cache"


def default_cache_dir() -> Path:
    """Per-user cache directory (overridable with GH_ISSUE_DEPENDENCY_CACHE_DIR)."""
    override = os.getenv("GH_ISSUE_DEPENDENCY_CACHE_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_CACHE_DIR


def token_from_gh_cli() -> str | None:
    """Ask the gh CLI for its token; None if gh is missing or logged out."""
    try:
        result = subprocess.run(
            ["gh", "auth", "token"], capture_output=True, text=True, check=True
        )
    except (FileNotFoundError, subprocess.CalledProcessError) as e:
        logger.debug("Could not read token from gh CLI: %s", e)
        return None
    return result.stdout.strip() or None


class Settings(BaseModel):
    """Configuration for API access, caching and retries."""

    github_token: str = Field(..., description="GitHub API token")
    api_url: str = Field(DEFAULT_API_URL, description="GitHub REST API base URL")
    cache_dir: Path = Field(default_factory=default_cache_dir)
    cache_ttl: float = Field(300.0, description="Cache entry lifetime in seconds")
    fetch_timeout: float = Field(
        30.0, description="Deadline for fetching one issue's dependencies"
    )
    request_timeout: int = Field(15, description="Per-request HTTP timeout")
    max_attempts: int = Field(3, description="Attempts per API call, including the first")
    retry_base_delay: float = Field(1.0, description="Backoff base delay in seconds")

    @classmethod
    def from_env(cls, token: str | None = None) -> "Settings":
        """Build settings from flags and environment variables.

        Args:
            token: Explicit token. If None, reads GITHUB_TOKEN, GH_TOKEN, then
                falls back to ``gh auth token``.

        Raises:
            AppError: AUTHENTICATION kind if no token can be found
        """
        token = (
            token
            or os.getenv("GITHUB_TOKEN")
            or os.getenv("GH_TOKEN")
            or token_from_gh_cli()
        )
        if not token:
            raise auth_token_error()

        return cls(
            github_token=token,
            api_url=os.getenv("GITHUB_API_URL", DEFAULT_API_URL),
        )
