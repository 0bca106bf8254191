"""
Bootstrap triggers -- the string a scanner hands us.

Expected shape:
    contentpack://bootstrap?container=<registry namespace>&record=<bootstrap id>

The host may be ``bootstrap`` or the path may contain it. Anything
else is reported as status text, not as an engine failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import parse_qsl, urlsplit

from .cache import validate_filename
from .config import load_config, registry_root, resolve_home
from .engine import SyncEngine, open_engine
from .errors import ContentPackError, TriggerError
from .models import SyncConfig
from .registry import RegistryClient, create_registry

logger = logging.getLogger("contentpack.trigger")

DEFAULT_SCHEME = "contentpack"

UNRECOGNIZED = "Unrecognized payload."
NOT_BOOTSTRAP = "Not a bootstrap URL."
MISSING_PARAMS = "Missing container/record in URL."
BAD_CONTAINER = "Invalid container in URL."


@dataclass(frozen=True)
class BootstrapTrigger:
    container: str
    record: str


def parse_trigger(text: str, scheme: str = DEFAULT_SCHEME) -> BootstrapTrigger:
    """Parse a scanned string into a bootstrap trigger.

    Raises:
        TriggerError: With user-facing status text when the string is
            not a usable bootstrap URL.
    """
    try:
        parts = urlsplit((text or "").strip())
    except ValueError as exc:
        raise TriggerError(UNRECOGNIZED) from exc

    if parts.scheme.lower() != scheme.lower():
        raise TriggerError(UNRECOGNIZED)

    if parts.hostname != "bootstrap" and "bootstrap" not in parts.path.lower():
        raise TriggerError(NOT_BOOTSTRAP)

    params = dict(parse_qsl(parts.query))
    container = params.get("container", "").strip()
    record = params.get("record", "").strip()
    if not container or not record:
        raise TriggerError(MISSING_PARAMS)
    try:
        validate_filename(container)
    except ValueError as exc:
        raise TriggerError(BAD_CONTAINER) from exc
    return BootstrapTrigger(container=container, record=record)


def sync_container(
    container: str,
    record: str,
    home: Path,
    config: SyncConfig,
    registry: Optional[RegistryClient] = None,
) -> tuple[SyncEngine, bool]:
    """Sync the local cache from ``record`` in a registry container.

    Args:
        container: Registry namespace named by the trigger.
        record: Bootstrap record id.
        home: Client home directory.
        config: Loaded configuration.
        registry: Registry client override. Built from ``container`` when omitted.

    Returns:
        The engine used (for version, links and report) and whether
        new assets were committed.

    Raises:
        ContentPackError: Any sync failure, including a bad container name.
    """
    if registry is None:
        registry = create_registry(registry_root(home, config), container)
    engine = open_engine(
        registry,
        home,
        config.cache_namespace,
        max_workers=config.max_workers,
    )
    return engine, engine.sync(record)


def handle_trigger(
    text: str,
    home: Optional[Path] = None,
    config: Optional[SyncConfig] = None,
    registry: Optional[RegistryClient] = None,
) -> str:
    """Run a sync for a scanned trigger and describe the outcome.

    Returns:
        Status text for display.
    """
    home = resolve_home(home)
    config = config or load_config(home)
    try:
        trigger = parse_trigger(text, config.trigger_scheme)
    except TriggerError as exc:
        return str(exc)

    try:
        engine, changed = sync_container(trigger.container, trigger.record, home, config, registry)
    except ContentPackError as exc:
        return f"Sync failed: {exc}"
    return status_text(engine, changed)


def status_text(engine: SyncEngine, changed: bool) -> str:
    """One-line outcome of a finished sync."""
    if changed:
        return f"Updated to v{engine.current_version}. Assets cached."
    return f"Already up to date (v{engine.current_version})."
