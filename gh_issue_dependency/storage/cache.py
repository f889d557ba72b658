"""File-based cache of dependency snapshots."""

import hashlib
import logging
import os
import tempfile
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import ValidationError

from ..github_client.models import CacheEntry, DependencySnapshot

logger = logging.getLogger(__name__)

CACHE_TTL = timedelta(minutes=5)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResponseCache:
    """Caches dependency snapshots as JSON files, one per issue.

    Entries expire lazily: an expired or unreadable entry is deleted when it
    is read. Writes go to a temporary file that is renamed into place, so a
    reader never sees a partial entry. Write failures are logged and ignored.
    """

    def __init__(
        self,
        base_path: str | Path,
        ttl: timedelta = CACHE_TTL,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the cache.

        Args:
            base_path: Directory holding cache files (created on first write)
            ttl: Lifetime of new entries
            clock: Source of the current time
        """
        self.base_path = Path(base_path)
        self.ttl = ttl
        self.clock = clock

    @staticmethod
    def cache_key(owner: str, repo: str, issue_number: int) -> str:
        """SHA-256 hex digest of ``owner/repo#number``."""
        key = f"{owner}/{repo}#{issue_number}"
        return hashlib.sha256(key.encode("utf-8")).hexdigest()

    def _get_file_path(self, owner: str, repo: str, issue_number: int) -> Path:
        return self.base_path / f"{self.cache_key(owner, repo, issue_number)}.json"

    def _remove(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug("Could not remove cache file %s: %s", path, e)

    def get(self, owner: str, repo: str, issue_number: int) -> DependencySnapshot | None:
        """Return the cached snapshot, or None on a miss."""
        path = self._get_file_path(owner, repo, issue_number)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("Cache miss for %s/%s#%d", owner, repo, issue_number)
            return None
        except OSError as e:
            logger.debug("Could not read cache file %s: %s", path, e)
            return None
        except UnicodeDecodeError:
            raw = ""

        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError:
            logger.debug("Removing corrupt cache entry %s", path)
            self._remove(path)
            return None

        if self.clock() > entry.expires_at:
            logger.debug("Cache entry for %s/%s#%d expired", owner, repo, issue_number)
            self._remove(path)
            return None

        logger.debug("Cache hit for %s/%s#%d", owner, repo, issue_number)
        return entry.data

    def put(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        snapshot: DependencySnapshot,
        ttl: timedelta | None = None,
    ) -> bool:
        """Store a snapshot. Returns False if it could not be written."""
        entry = CacheEntry(data=snapshot, expires_at=self.clock() + (ttl or self.ttl))
        path = self._get_file_path(owner, repo, issue_number)

        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.base_path, prefix=".tmp-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(entry.model_dump_json())
                os.replace(tmp_name, path)
            except BaseException:
                self._remove(Path(tmp_name))
                raise
        except OSError as e:
            logger.debug("Could not write cache entry %s: %s", path, e)
            return False

        return True

    def invalidate(self, owner: str, repo: str, issue_number: int) -> None:
        """Drop the entry for one issue, if any."""
        self._remove(self._get_file_path(owner, repo, issue_number))

    def clean_expired(self) -> int:
        """Remove expired and malformed entries. Returns the number removed."""
        if not self.base_path.exists():
            return 0

        now = self.clock()
        removed = 0
        for path in self.base_path.glob("*.json"):
            try:
                entry = CacheEntry.model_validate_json(path.read_text(encoding="utf-8"))
            except ValueError:
                self._remove(path)
                removed += 1
                continue
            except OSError:
                continue

            if now > entry.expires_at:
                self._remove(path)
                removed += 1

        return removed

    def clear(self) -> int:
        """Remove every cache entry. Returns the number removed."""
        if not self.base_path.exists():
            return 0

        removed = 0
        for path in self.base_path.glob("*.json"):
            self._remove(path)
            removed += 1
        return removed
