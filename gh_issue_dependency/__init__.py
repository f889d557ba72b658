"""Manage blocked-by / blocks dependencies between GitHub issues."""

__version__ = "0.1.0"
