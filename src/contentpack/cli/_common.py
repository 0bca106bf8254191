"""Shared helpers for CLI command modules: console and local handles."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from .. import CONTENTPACK_HOME
from ..cache import FileCache
from ..config import load_config, resolve_home
from ..engine import STATE_FILE
from ..models import SyncConfig
from ..state import StateStore

console = Console()

HOME_DEFAULT = CONTENTPACK_HOME


def open_local(home: str) -> tuple[Path, SyncConfig, FileCache, StateStore]:
    """Resolve home and open the cache and state store under it."""
    home_path = resolve_home(Path(home))
    config = load_config(home_path)
    cache = FileCache.open(config.cache_namespace, home_path / "cache")
    state = StateStore(home_path / STATE_FILE)
    return home_path, config, cache, state
