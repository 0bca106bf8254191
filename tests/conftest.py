"""Shared test fixtures for contentpack."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Optional

import pytest

from contentpack.cache import FileCache
from contentpack.engine import SyncEngine
from contentpack.registry import MemoryRegistry, ReferenceValue
from contentpack.state import StateStore


def sha(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@pytest.fixture
def registry(tmp_path: Path) -> MemoryRegistry:
    """In-memory registry spooling blobs under tmp_path."""
    return MemoryRegistry(spool_dir=tmp_path / "spool")


@pytest.fixture
def cache(tmp_path: Path) -> FileCache:
    return FileCache.open("assets", tmp_path / "cache")


@pytest.fixture
def state(tmp_path: Path) -> StateStore:
    return StateStore(tmp_path / "state.json")


@pytest.fixture
def engine(registry: MemoryRegistry, cache: FileCache, state: StateStore) -> SyncEngine:
    return SyncEngine(registry, cache, state, max_workers=4)


@pytest.fixture
def publish(registry: MemoryRegistry):
    """Publish a bootstrap + pack pair into the memory registry.

    Returns a callable. ``assets`` maps filename to bytes; the blob key
    for each is ``asset_<n>``. ``corrupt`` names filenames whose
    published bytes differ from what the manifest declares.
    """

    def _publish(
        version: int,
        assets: dict[str, bytes],
        links: Optional[list[str]] = None,
        legacy_link: Optional[str] = None,
        pack_version: Optional[int] = None,
        manifest_version: Optional[int] = None,
        corrupt: tuple[str, ...] = (),
        bootstrap_id: str = "bootstrap",
        pack_id: Optional[str] = None,
    ) -> str:
        pack_id = pack_id or f"pack-{version}"
        pack_version = version if pack_version is None else pack_version
        manifest_version = pack_version if manifest_version is None else manifest_version

        descriptors = []
        fields: dict = {"version": pack_version}
        for i, (filename, data) in enumerate(assets.items()):
            key = f"asset_{i}"
            descriptors.append({"key": key, "filename": filename, "sha256": sha(data)})
            published = data + b"!tampered" if filename in corrupt else data
            fields[key] = registry.blob(published)

        manifest = {"version": manifest_version, "assets": descriptors}
        fields["manifest"] = registry.blob(json.dumps(manifest).encode("utf-8"))
        if links is not None:
            fields["customURLs"] = json.dumps(links)
        if legacy_link is not None:
            fields["customURL"] = legacy_link

        registry.put(pack_id, fields)
        registry.put(bootstrap_id, {"latestPack": ReferenceValue(pack_id), "version": version})
        return bootstrap_id

    return _publish
