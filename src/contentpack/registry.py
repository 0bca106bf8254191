"""
Registry client -- where bootstrap and pack records come from.

A record is a bag of typed fields. Each field is exactly one of:
string, integer, reference to another record, or a blob that has
already been spooled to a local file. Accessors check the kind and
raise FieldTypeError instead of handing back a value of the wrong type.

Clients:
    MemoryRegistry: records held in a dict. For embedding and tests.
    LocalRegistry: records as JSON files under a directory tree.

    <root>/<container>/
    ├── records/
    │   ├── bootstrap.json
    │   └── pack-7.json
    └── blobs/
        ├── pack-7.manifest.json
        └── pack-7.hero.png
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .cache import validate_filename
from .errors import FieldTypeError, RecordNotFoundError, RegistryError

logger = logging.getLogger("contentpack.registry")


@dataclass(frozen=True)
class StringValue:
    value: str
    kind = "string"


@dataclass(frozen=True)
class IntValue:
    value: int
    kind = "int"


@dataclass(frozen=True)
class ReferenceValue:
    record_id: str
    kind = "reference"


@dataclass(frozen=True)
class BlobValue:
    """Binary field spooled to a local file."""

    path: Path
    kind = "blob"

    def read_bytes(self) -> bytes:
        """Load the blob content.

        Raises:
            RegistryError: If the spooled file is gone or unreadable.
        """
        try:
            return Path(self.path).read_bytes()
        except OSError as exc:
            raise RegistryError(f"Blob unavailable at {self.path}: {exc}") from exc


FieldValue = Union[StringValue, IntValue, ReferenceValue, BlobValue]


@dataclass
class Record:
    """A registry record with typed field access."""

    record_id: str
    fields: dict[str, FieldValue] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def get(self, name: str) -> Optional[FieldValue]:
        return self.fields.get(name)

    def _typed(self, name: str, cls: type, required: bool) -> Optional[FieldValue]:
        value = self.fields.get(name)
        if value is None:
            if required:
                raise FieldTypeError(name, cls.kind)
            return None
        if not isinstance(value, cls):
            raise FieldTypeError(name, cls.kind, value.kind)
        return value

    def string(self, name: str) -> str:
        return self._typed(name, StringValue, True).value

    def integer(self, name: str) -> int:
        return self._typed(name, IntValue, True).value

    def reference(self, name: str) -> str:
        return self._typed(name, ReferenceValue, True).record_id

    def blob(self, name: str) -> BlobValue:
        return self._typed(name, BlobValue, True)

    def optional_string(self, name: str) -> Optional[str]:
        """String field, or None when the record does not carry it."""
        value = self._typed(name, StringValue, False)
        return value.value if value is not None else None


def encode_field(value: Any, blob_dir: Optional[Path] = None) -> FieldValue:
    """Convert a plain Python value or a JSON field spec into a FieldValue.

    Accepted shapes:
        {"type": "string" | "int" | "reference" | "blob", "value": ...}
        str -> StringValue, int -> IntValue, Path -> BlobValue

    Raises:
        RegistryError: For anything else, including bools.
    """
    if isinstance(value, (StringValue, IntValue, ReferenceValue, BlobValue)):
        return value
    if isinstance(value, bool):
        raise RegistryError("Boolean fields are not supported")
    if isinstance(value, str):
        return StringValue(value)
    if isinstance(value, int):
        return IntValue(value)
    if isinstance(value, Path):
        return BlobValue(value)
    if isinstance(value, dict) and "type" in value:
        kind, raw = value["type"], value.get("value")
        if kind == "string" and isinstance(raw, str):
            return StringValue(raw)
        if kind == "int" and isinstance(raw, int) and not isinstance(raw, bool):
            return IntValue(raw)
        if kind == "reference" and isinstance(raw, str):
            return ReferenceValue(raw)
        if kind == "blob" and isinstance(raw, str):
            path = Path(raw)
            if blob_dir is not None and not path.is_absolute():
                path = blob_dir / path
            return BlobValue(path)
    raise RegistryError(f"Unsupported field value: {value!r}")


def _field_to_json(value: FieldValue, blob_dir: Path) -> dict[str, Any]:
    if isinstance(value, StringValue):
        return {"type": "string", "value": value.value}
    if isinstance(value, IntValue):
        return {"type": "int", "value": value.value}
    if isinstance(value, ReferenceValue):
        return {"type": "reference", "value": value.record_id}
    path = Path(value.path)
    try:
        rel = path.relative_to(blob_dir)
    except ValueError:
        rel = path
    return {"type": "blob", "value": str(rel)}


class RegistryClient(ABC):
    """Abstract remote record store."""

    @abstractmethod
    def fetch_record(self, record_id: str) -> Record:
        """Fetch one record by id.

        Raises:
            RecordNotFoundError: If no record has this id.
            RegistryError: On transport failure.
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable registry name."""


class MemoryRegistry(RegistryClient):
    """Dict-backed registry.

    Blobs handed over as bytes are spooled into ``spool_dir`` so that
    they look exactly like blobs from a remote registry.
    """

    def __init__(self, spool_dir: Optional[Path] = None) -> None:
        self._records: dict[str, Record] = {}
        self._spool = Path(spool_dir) if spool_dir else Path(tempfile.mkdtemp(prefix="contentpack-spool-"))
        self._spool.mkdir(parents=True, exist_ok=True)
        self.fetch_counts: Counter[str] = Counter()

    @property
    def name(self) -> str:
        return "memory"

    def blob(self, data: bytes) -> BlobValue:
        """Spool bytes to a file and return a blob field for them."""
        path = self._spool / uuid.uuid4().hex
        path.write_bytes(data)
        return BlobValue(path)

    def put(self, record_id: str, fields: dict[str, Any]) -> Record:
        record = Record(
            record_id=record_id,
            fields={k: encode_field(v) for k, v in fields.items()},
        )
        self._records[record_id] = record
        return record

    def fetch_record(self, record_id: str) -> Record:
        self.fetch_counts[record_id] += 1
        record = self._records.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record


class LocalRegistry(RegistryClient):
    """Filesystem registry, one container directory per namespace.

    Useful for USB drives, NAS shares, or a synced folder standing in
    for a hosted registry.
    """

    def __init__(self, root: Path, container: str) -> None:
        try:
            validate_filename(container)
        except ValueError as exc:
            raise RegistryError(f"Invalid registry container: {container!r}") from exc
        self.root = Path(root).expanduser()
        self.container = container
        self.records_dir = self.root / container / "records"
        self.blobs_dir = self.root / container / "blobs"

    @property
    def name(self) -> str:
        return f"local:{self.container}"

    def _record_path(self, record_id: str) -> Path:
        if not record_id or "/" in record_id or "\\" in record_id or record_id.startswith("."):
            raise RecordNotFoundError(record_id)
        return self.records_dir / f"{record_id}.json"

    def fetch_record(self, record_id: str) -> Record:
        path = self._record_path(record_id)
        if not path.is_file():
            raise RecordNotFoundError(record_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise RegistryError(f"Unreadable record {record_id}: {exc}") from exc

        raw_fields = data.get("fields") if isinstance(data, dict) else None
        if not isinstance(raw_fields, dict):
            raise RegistryError(f"Record {record_id} has no field table")

        fields = {
            name: encode_field(spec, self.blobs_dir)
            for name, spec in raw_fields.items()
        }
        logger.debug("Fetched record %s from %s", record_id, self.name)
        return Record(record_id=record_id, fields=fields)

    def put_blob(self, name: str, data: bytes) -> BlobValue:
        """Store a blob file and return a field pointing at it."""
        self.blobs_dir.mkdir(parents=True, exist_ok=True)
        path = self.blobs_dir / name
        path.write_bytes(data)
        return BlobValue(path)

    def publish_record(self, record_id: str, fields: dict[str, Any]) -> Path:
        """Write a record file atomically.

        Args:
            record_id: Record identifier (file stem).
            fields: Field name to value (plain value or FieldValue).

        Returns:
            Path of the record file.
        """
        path = self._record_path(record_id)
        self.records_dir.mkdir(parents=True, exist_ok=True)
        payload = {
            "fields": {
                k: _field_to_json(encode_field(v, self.blobs_dir), self.blobs_dir)
                for k, v in fields.items()
            }
        }
        fd, tmp_name = tempfile.mkstemp(prefix=".record-", dir=self.records_dir)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp_name, path)
        logger.info("Published record %s to %s", record_id, self.name)
        return path


def create_registry(root: Path, container: str) -> RegistryClient:
    """Build the registry client for a trigger's container."""
    return LocalRegistry(root, container)
