"""Local storage for fetched dependency data."""

from .cache import CACHE_TTL, ResponseCache

__all__ = ["CACHE_TTL", "ResponseCache"]
