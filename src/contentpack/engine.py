"""
Sync Engine -- keeps the local asset cache in step with the registry.

    sync(bootstrap_id)
      -> fetch bootstrap   (latestPack ref + version)
      -> fetch pack        (always, links must stay fresh)
      -> store links       (unconditional)
      -> version gate      (stop here if nothing newer)
      -> decode manifest   (must agree with pack and bootstrap version)
      -> fan out: fetch -> verify sha256 -> atomic cache write
      -> commit version    (last step, only if every asset passed)

A failed fan-out can leave some new files in the cache. The stored
version stays stale in that case, so the next sync downloads the
whole pack again.
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Optional

from .cache import FileCache
from .checksum import digest
from .errors import (
    AssetNotFoundError,
    CacheIOError,
    ChecksumMismatchError,
    FieldTypeError,
    InvalidBootstrapError,
    MalformedPackError,
)
from .links import extract_links
from .models import AssetDescriptor, BootstrapPointer, PackManifest, SyncPhase, SyncReport
from .registry import BlobValue, Record, RegistryClient
from .state import StateStore

logger = logging.getLogger("contentpack.engine")

BOOTSTRAP_PACK_FIELD = "latestPack"
BOOTSTRAP_VERSION_FIELD = "version"
PACK_VERSION_FIELD = "version"
PACK_MANIFEST_FIELD = "manifest"

DEFAULT_WORKERS = 4
STATE_FILE = "state.json"


class SyncEngine:
    """Orchestrates one content-pack sync at a time.

    Args:
        registry: Where bootstrap and pack records are fetched from.
        cache: Asset cache receiving verified files.
        state: Scalar store holding the committed version and links.
        max_workers: Size of the download pool.
    """

    def __init__(
        self,
        registry: RegistryClient,
        cache: FileCache,
        state: StateStore,
        max_workers: int = DEFAULT_WORKERS,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.registry = registry
        self.cache = cache
        self.state = state
        self.max_workers = max_workers
        self.phase = SyncPhase.IDLE
        self.latest_links: list[str] = []
        self.last_report: Optional[SyncReport] = None

    @property
    def current_version(self) -> int:
        return self.state.current_version

    def sync(self, bootstrap_id: str) -> bool:
        """Run a full sync against a bootstrap record.

        Args:
            bootstrap_id: Record id of the bootstrap pointer.

        Returns:
            True if new assets were downloaded and committed,
            False if the cache was already current.

        Raises:
            InvalidBootstrapError: Bootstrap lacks a pack reference or version.
            MalformedPackError: Manifest undecodable or version mismatch.
            AssetNotFoundError: Manifest key absent from the pack record.
            ChecksumMismatchError: Asset bytes fail verification.
            CacheIOError: Local filesystem failure.
            RegistryError: Transport failure from the registry client.
        """
        report = SyncReport(bootstrap_id=bootstrap_id, local_version=self.current_version)
        self.last_report = report
        try:
            updated = self._run(bootstrap_id, report)
        except Exception as exc:
            self._set_phase(SyncPhase.ERROR, report)
            report.error = str(exc)
            logger.error("Sync of %s failed: %s", bootstrap_id, exc)
            try:
                self.state.record_sync(error=str(exc))
            except CacheIOError as state_exc:
                logger.warning("Could not record failed sync: %s", state_exc)
            raise
        self.state.record_sync()
        return updated

    def _set_phase(self, phase: SyncPhase, report: SyncReport) -> None:
        self.phase = phase
        report.phase = phase
        logger.debug("Sync phase -> %s", phase.value)

    def _run(self, bootstrap_id: str, report: SyncReport) -> bool:
        self._set_phase(SyncPhase.RESOLVING_BOOTSTRAP, report)
        pointer = self.resolve_bootstrap(bootstrap_id)
        report.remote_version = pointer.version

        self._set_phase(SyncPhase.FETCHING_PACK, report)
        pack = self.registry.fetch_record(pointer.latest_pack_ref)

        links = extract_links(pack)
        self.latest_links = links
        report.links = links
        self.state.set_links(links)

        local_version = self.current_version
        if pointer.version <= local_version:
            self._set_phase(SyncPhase.LINKS_ONLY_UPDATE, report)
            logger.info(
                "Already up to date (remote v%d, local v%d); links refreshed",
                pointer.version,
                local_version,
            )
            return False

        manifest = self.decode_manifest(pack, expected_version=pointer.version)

        self._set_phase(SyncPhase.DOWNLOADING, report)
        logger.info(
            "Downloading pack %s v%d: %d asset(s)",
            pack.record_id,
            manifest.version,
            len(manifest.assets),
        )
        report.files_written = self._download_all(pack, manifest)

        self.state.set_version(manifest.version)
        report.local_version = manifest.version
        report.updated = True
        self._set_phase(SyncPhase.COMMITTED, report)
        return True

    def resolve_bootstrap(self, bootstrap_id: str) -> BootstrapPointer:
        """Fetch the bootstrap record and read its pointer fields."""
        record = self.registry.fetch_record(bootstrap_id)
        try:
            return BootstrapPointer(
                latest_pack_ref=record.reference(BOOTSTRAP_PACK_FIELD),
                version=record.integer(BOOTSTRAP_VERSION_FIELD),
            )
        except FieldTypeError as exc:
            raise InvalidBootstrapError(f"Invalid bootstrap record: {exc}") from exc

    def decode_manifest(self, pack: Record, expected_version: Optional[int] = None) -> PackManifest:
        """Decode the pack's manifest blob and cross-check its version.

        The manifest version must match the pack's own version field and,
        when given, the version announced by the bootstrap pointer.
        """
        try:
            pack_version = pack.integer(PACK_VERSION_FIELD)
            blob = pack.blob(PACK_MANIFEST_FIELD)
        except FieldTypeError as exc:
            raise MalformedPackError(f"Malformed pack: {exc}") from exc

        manifest = PackManifest.decode(blob.read_bytes())
        if manifest.version != pack_version:
            raise MalformedPackError(
                f"Malformed pack: manifest version {manifest.version} "
                f"!= pack version {pack_version}"
            )
        if expected_version is not None and manifest.version != expected_version:
            raise MalformedPackError(
                f"Malformed pack: manifest version {manifest.version} "
                f"!= bootstrap version {expected_version}"
            )
        return manifest

    def _download_all(self, pack: Record, manifest: PackManifest) -> list[str]:
        """Fetch, verify and cache every asset; first failure wins."""
        if not manifest.assets:
            return []

        pool = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(manifest.assets)),
            thread_name_prefix="contentpack-asset",
        )
        try:
            futures: list[Future] = [
                pool.submit(self._fetch_asset, pack, asset) for asset in manifest.assets
            ]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for fut in pending:
                fut.cancel()
            for fut in futures:
                if fut in done and fut.exception() is not None:
                    raise fut.exception()
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

        return [fut.result() for fut in futures]

    def _fetch_asset(self, pack: Record, asset: AssetDescriptor) -> str:
        value = pack.get(asset.key)
        if not isinstance(value, BlobValue):
            raise AssetNotFoundError(asset.key)

        data = value.read_bytes()
        actual = digest(data)
        if actual != asset.sha256:
            logger.warning(
                "Checksum mismatch for %s: expected %s, got %s",
                asset.filename,
                asset.sha256,
                actual,
            )
            raise ChecksumMismatchError(asset.filename, asset.sha256, actual)

        self.cache.write(asset.filename, data)
        logger.debug("Verified and cached %s", asset.filename)
        return asset.filename


def clear_local_content(cache: FileCache, state: StateStore) -> None:
    """Wipe cached assets and stored links.

    The committed version is reset too, so the next sync pulls the
    full pack again rather than trusting an empty cache.
    """
    cache.remove_all()
    state.reset()
    logger.info("Local content cleared")


def open_engine(
    registry: RegistryClient,
    home: Path,
    namespace: str,
    max_workers: int = DEFAULT_WORKERS,
) -> SyncEngine:
    """Wire an engine to the standard on-disk layout under ``home``.

    Layout:
        <home>/cache/<namespace>/      cached assets
        <home>/state.json             scalar state
    """
    home = Path(home).expanduser()
    cache = FileCache.open(namespace, home / "cache")
    state = StateStore(home / STATE_FILE)
    return SyncEngine(registry, cache, state, max_workers=max_workers)
