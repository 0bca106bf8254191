"""
Error taxonomy for content-pack sync.

Every failure aborts the sync attempt in progress and leaves the
stored version untouched. Nothing here is retried internally.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class ContentPackError(Exception):
    """Base class for all content-pack errors."""


class InvalidBootstrapError(ContentPackError):
    """Bootstrap record is missing its pack reference or version."""


class MalformedPackError(ContentPackError):
    """Pack manifest is undecodable or disagrees with the pack version."""


class AssetNotFoundError(ContentPackError):
    """Manifest names an asset key the pack record does not carry."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Asset not found in pack: {key}")
        self.key = key


class ChecksumMismatchError(ContentPackError):
    """Downloaded bytes do not match the declared SHA-256."""

    def __init__(
        self,
        filename: str,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> None:
        super().__init__(f"Checksum mismatch for {filename}")
        self.filename = filename
        self.expected = expected
        self.actual = actual


class CacheIOError(ContentPackError):
    """Local filesystem failure inside the asset cache or state store."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(message)
        self.path = path


class RegistryError(ContentPackError):
    """Failure talking to the remote registry."""


class RecordNotFoundError(RegistryError):
    """Requested record id does not exist in the registry."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record not found: {record_id}")
        self.record_id = record_id


class FieldTypeError(ContentPackError):
    """A record field is absent or holds a different kind of value."""

    def __init__(self, field: str, expected: str, actual: Optional[str] = None) -> None:
        got = actual or "missing"
        super().__init__(f"Field '{field}' expected {expected}, got {got}")
        self.field = field
        self.expected = expected
        self.actual = actual


class TriggerError(ContentPackError):
    """Scanned trigger string is not a usable bootstrap URL.

    The message is user-facing status text.
    """
