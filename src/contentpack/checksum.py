"""
Integrity verifier -- SHA-256 over whole assets.

Digests are lowercase hex. Verification always happens before a
byte reaches the cache.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO, Union

CHUNK_SIZE = 64 * 1024

ByteSource = Union[bytes, bytearray, memoryview, Path, BinaryIO]


def sha256_bytes(data: Union[bytes, bytearray, memoryview]) -> str:
    """Compute SHA-256 hex digest of bytes."""
    return hashlib.sha256(data).hexdigest()


def sha256_file(path: Path) -> str:
    """Compute SHA-256 hex digest of a file.

    Args:
        path: File to hash.

    Returns:
        Hex-encoded SHA-256 digest.
    """
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def digest(source: ByteSource) -> str:
    """Hash any supported byte source.

    Accepts raw bytes, a filesystem path, or an open binary stream
    (read from its current position to EOF).
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return sha256_bytes(source)
    if isinstance(source, Path):
        return sha256_file(source)
    h = hashlib.sha256()
    for chunk in iter(lambda: source.read(CHUNK_SIZE), b""):
        h.update(chunk)
    return h.hexdigest()


def matches(source: ByteSource, expected: str) -> bool:
    """Return True when the digest of ``source`` equals ``expected``.

    Comparison is case-insensitive on the expected value.
    """
    return digest(source) == expected.strip().lower()
