"""Presentation helpers: what the cache holds and bounded text previews."""

from __future__ import annotations

from pathlib import Path

from .cache import FileCache

TABLE_SUFFIX = ".csv"
DEFAULT_PREVIEW_BYTES = 1_000_000


def list_tables(cache: FileCache) -> list[str]:
    """Cached tabular (CSV) files."""
    return [name for name in cache.list() if Path(name).suffix.lower() == TABLE_SUFFIX]


def list_images(cache: FileCache) -> list[str]:
    """Everything that is not a table is shown as an image."""
    return [name for name in cache.list() if Path(name).suffix.lower() != TABLE_SUFFIX]


def read_text(cache: FileCache, filename: str, max_bytes: int = DEFAULT_PREVIEW_BYTES) -> str:
    """Decode at most ``max_bytes`` of a cached file as UTF-8.

    Invalid sequences (including a character cut at the limit) are
    replaced rather than raising.
    """
    return cache.read(filename, max_bytes).decode("utf-8", errors="replace")
