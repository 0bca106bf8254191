"""
Pydantic models for content packs, local state and configuration.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError, field_validator, model_validator

from .cache import validate_filename
from .errors import MalformedPackError

MAX_LINKS = 5
SHA256_PATTERN = r"^[0-9a-f]{64}$"


class SyncPhase(str, Enum):
    """Where a sync attempt currently stands."""

    IDLE = "idle"
    RESOLVING_BOOTSTRAP = "resolving_bootstrap"
    FETCHING_PACK = "fetching_pack"
    LINKS_ONLY_UPDATE = "links_only_update"
    DOWNLOADING = "downloading"
    COMMITTED = "committed"
    ERROR = "error"


class AssetDescriptor(BaseModel):
    """One manifest entry: which blob field, where to cache it, what it hashes to."""

    key: StrictStr = Field(min_length=1)
    filename: StrictStr
    sha256: StrictStr = Field(pattern=SHA256_PATTERN)

    @field_validator("filename")
    @classmethod
    def _single_segment(cls, value: str) -> str:
        return validate_filename(value)


class PackManifest(BaseModel):
    """Authoritative asset list for one pack version."""

    version: StrictInt = Field(ge=0)
    assets: list[AssetDescriptor]

    @model_validator(mode="after")
    def _unique_entries(self) -> "PackManifest":
        keys = [a.key for a in self.assets]
        if len(set(keys)) != len(keys):
            raise ValueError("duplicate asset key in manifest")
        names = [a.filename for a in self.assets]
        if len(set(names)) != len(names):
            raise ValueError("duplicate asset filename in manifest")
        return self

    @classmethod
    def decode(cls, data: bytes) -> "PackManifest":
        """Decode a manifest blob.

        Args:
            data: UTF-8 JSON bytes.

        Returns:
            Fully populated PackManifest.

        Raises:
            MalformedPackError: On bad JSON or any missing/mistyped field.
        """
        try:
            raw = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedPackError(f"Manifest is not valid JSON: {exc}") from exc
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise MalformedPackError(
                f"Manifest failed validation: {exc.error_count()} error(s)"
            ) from exc

    def encode(self) -> bytes:
        return self.model_dump_json(indent=2).encode("utf-8")


class BootstrapPointer(BaseModel):
    """Small remote record naming the newest pack."""

    latest_pack_ref: str
    version: int


class LocalCacheState(BaseModel):
    """Scalar state persisted next to the cache."""

    current_version: int = 0
    stored_links: list[str] = Field(default_factory=list)
    last_sync: Optional[datetime] = None
    last_error: Optional[str] = None


class SyncReport(BaseModel):
    """Outcome of the most recent sync call."""

    bootstrap_id: str
    phase: SyncPhase = SyncPhase.IDLE
    remote_version: Optional[int] = None
    local_version: int = 0
    updated: bool = False
    links: list[str] = Field(default_factory=list)
    files_written: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class SyncConfig(BaseModel):
    """Client configuration, usually read from ``<home>/config.yaml``."""

    registry_root: Optional[Path] = None
    cache_namespace: str = "assets"
    max_workers: int = Field(default=4, ge=1)
    trigger_scheme: str = "contentpack"
    preview_max_bytes: int = Field(default=1_000_000, ge=0)
