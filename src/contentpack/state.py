"""
Persisted scalar store -- current version and stored links.

One small JSON file per container. Only the sync engine writes it,
and only from its own sequential steps, never from the download pool.
Readers (status screens, the link list) can load it at any time
without touching the network.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .errors import CacheIOError
from .links import normalize_links
from .models import LocalCacheState

logger = logging.getLogger("contentpack.state")


class StateStore:
    """JSON-file backed ``LocalCacheState``.

    Args:
        path: State file location, e.g. ``~/.contentpack/state/<container>.json``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()
        self._state = self._load()

    def _load(self) -> LocalCacheState:
        if not self.path.exists():
            return LocalCacheState()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return LocalCacheState(**data)
        except (OSError, json.JSONDecodeError, ValidationError, TypeError) as exc:
            logger.warning("Failed to load cache state %s: %s", self.path, exc)
            return LocalCacheState()

    def _save(self, new_state: LocalCacheState) -> None:
        """Write ``new_state`` to disk, then adopt it in memory.

        On failure the in-memory state keeps its previous value.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".state-", dir=self.path.parent)
        except OSError as exc:
            raise CacheIOError(f"Cannot persist cache state: {exc}", self.path) from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(new_state.model_dump_json(indent=2))
            os.replace(tmp_name, self.path)
        except OSError as exc:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.debug("Temp file already gone: %s", tmp_name)
            raise CacheIOError(f"Cannot persist cache state: {exc}", self.path) from exc
        self._state = new_state

    def get(self) -> LocalCacheState:
        """Snapshot of the current state."""
        return self._state.model_copy(deep=True)

    @property
    def current_version(self) -> int:
        return self._state.current_version

    @property
    def stored_links(self) -> list[str]:
        """Stored links, re-validated and capped."""
        return normalize_links(self._state.stored_links)

    def set_version(self, version: int) -> None:
        self._save(self._state.model_copy(update={"current_version": version}))
        logger.info("Committed content version %d", version)

    def set_links(self, links: list[str]) -> None:
        """Replace stored links. An empty list clears them."""
        self._save(self._state.model_copy(update={"stored_links": list(links)}))

    def clear_links(self) -> None:
        self.set_links([])

    def record_sync(self, error: Optional[str] = None) -> None:
        """Stamp the time of a sync attempt and its error, if any."""
        self._save(self._state.model_copy(
            update={"last_sync": datetime.now(timezone.utc), "last_error": error}
        ))

    def reset(self) -> None:
        """Forget version and links so the next sync downloads everything."""
        self._save(LocalCacheState())
