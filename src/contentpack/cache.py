"""
Local asset cache -- one flat directory per namespace.

Layout:
    <root>/<namespace>/
    ├── hero.png
    ├── prices.csv
    └── ...

Writes go to a temp file in the same directory and are renamed into
place, so a reader sees either the old file or the new one, never a
torn write. Distinct filenames share no state, which makes concurrent
writes from the download pool safe.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from .errors import CacheIOError

logger = logging.getLogger("contentpack.cache")

TEMP_PREFIX = ".partial-"


def validate_filename(filename: str) -> str:
    """Ensure a cache filename is a single, plain path segment.

    Args:
        filename: Candidate name from a manifest.

    Returns:
        The filename unchanged.

    Raises:
        ValueError: If the name is empty, hidden, or would escape the namespace.
    """
    if not filename or filename in (".", ".."):
        raise ValueError(f"Invalid cache filename: {filename!r}")
    if "/" in filename or "\\" in filename or "\x00" in filename:
        raise ValueError(f"Cache filename must be a single path segment: {filename!r}")
    if filename.startswith("."):
        raise ValueError(f"Cache filename must not be hidden: {filename!r}")
    return filename


class FileCache:
    """Directory-backed asset store keyed by filename.

    Args:
        namespace: Name of the cache folder.
        root: Parent directory that holds namespaces.
    """

    def __init__(self, namespace: str, root: Path) -> None:
        validate_filename(namespace)
        self.namespace = namespace
        self.base = Path(root).expanduser() / namespace
        self._ensure_dir()

    @classmethod
    def open(cls, namespace: str, root: Path) -> "FileCache":
        """Open (and create if needed) a cache namespace. Idempotent."""
        return cls(namespace, root)

    def _ensure_dir(self) -> None:
        try:
            self.base.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheIOError(f"Cannot create cache directory: {exc}", self.base) from exc

    def path_for(self, filename: str) -> Path:
        """Absolute path of a cached file (it may not exist yet)."""
        return self.base / validate_filename(filename)

    def write(self, filename: str, data: bytes) -> Path:
        """Atomically write ``data`` under ``filename``, replacing any old copy.

        Args:
            filename: Single-segment target name.
            data: Full file content.

        Returns:
            Path of the written file.

        Raises:
            CacheIOError: On any filesystem failure.
        """
        target = self.path_for(filename)
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=self.base)
        except OSError as exc:
            raise CacheIOError(f"Cannot stage {filename}: {exc}", target) from exc

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, target)
        except OSError as exc:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.debug("Temp file already gone: %s", tmp_name)
            raise CacheIOError(f"Cannot write {filename}: {exc}", target) from exc

        logger.debug("Cached %s (%d bytes)", filename, len(data))
        return target

    def list(self) -> list[str]:
        """Sorted names of cached files, skipping hidden and temp entries."""
        try:
            return sorted(
                p.name
                for p in self.base.iterdir()
                if p.is_file() and not p.name.startswith(".")
            )
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise CacheIOError(f"Cannot list cache: {exc}", self.base) from exc

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()

    def read(self, filename: str, max_bytes: int) -> bytes:
        """Read at most ``max_bytes`` of a cached file.

        Content past the limit is silently dropped.

        Raises:
            ValueError: If ``max_bytes`` is negative.
            CacheIOError: If the file cannot be read.
        """
        if max_bytes < 0:
            raise ValueError("max_bytes must be >= 0")
        path = self.path_for(filename)
        try:
            with open(path, "rb") as f:
                return f.read(max_bytes)
        except OSError as exc:
            raise CacheIOError(f"Cannot read {filename}: {exc}", path) from exc

    def remove_all(self) -> None:
        """Destroy and recreate the namespace, leaving it empty."""
        try:
            if self.base.exists():
                shutil.rmtree(self.base)
        except OSError as exc:
            raise CacheIOError(f"Cannot clear cache: {exc}", self.base) from exc
        self._ensure_dir()
        logger.info("Cache %s cleared", self.namespace)
