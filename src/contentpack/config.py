"""
Client configuration -- ``<home>/config.yaml``.

Missing or broken config never blocks a sync; defaults apply and a
warning is logged.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from . import CONTENTPACK_HOME
from .models import SyncConfig

logger = logging.getLogger("contentpack.config")

CONFIG_FILE = "config.yaml"


def resolve_home(home: Optional[Path] = None) -> Path:
    """Expand the client home directory, defaulting to ``$CONTENTPACK_HOME``."""
    return Path(home or CONTENTPACK_HOME).expanduser()


def load_config(home: Path) -> SyncConfig:
    """Load configuration from ``<home>/config.yaml``."""
    config_file = Path(home) / CONFIG_FILE
    if config_file.exists():
        try:
            data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            return SyncConfig(**data)
        except (OSError, yaml.YAMLError, ValidationError, TypeError) as exc:
            logger.warning("Failed to load config %s: %s", config_file, exc)
    return SyncConfig()


def save_config(home: Path, config: SyncConfig) -> Path:
    """Persist configuration as YAML."""
    home = Path(home)
    home.mkdir(parents=True, exist_ok=True)
    config_file = home / CONFIG_FILE
    data = config.model_dump(mode="json", exclude_none=True)
    config_file.write_text(yaml.dump(data, default_flow_style=False), encoding="utf-8")
    return config_file


def registry_root(home: Path, config: SyncConfig) -> Path:
    """Directory holding registry containers."""
    if config.registry_root is not None:
        return Path(config.registry_root).expanduser()
    return Path(home) / "registry"
