"""
Custom links carried by a content pack.

Two schemas exist in the wild:
    V2  "customURLs": JSON array of URL strings (current)
    V1  "customURL":  a single URL string (legacy)

Decoding tries V2 first, then V1, and records which one won so the
result can be audited. Links are refreshed on every pack fetch, even
when the assets themselves are already current.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Union
from urllib.parse import urlsplit

from .errors import FieldTypeError
from .models import MAX_LINKS
from .registry import Record

logger = logging.getLogger("contentpack.links")

LINKS_FIELD = "customURLs"
LEGACY_LINK_FIELD = "customURL"

_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True)
class JsonArrayLinks:
    """Links decoded from the V2 JSON-array field."""

    raw: list[str] = field(default_factory=list)
    schema = "v2"


@dataclass(frozen=True)
class LegacySingleLink:
    """Link from the V1 scalar field."""

    raw: list[str] = field(default_factory=list)
    schema = "v1"


@dataclass(frozen=True)
class NoLinks:
    """Pack carries neither link field."""

    raw: list[str] = field(default_factory=list)
    schema = "none"


LinkSource = Union[JsonArrayLinks, LegacySingleLink, NoLinks]


def is_valid_url(text: str) -> bool:
    """Whether ``text`` parses as an absolute URL.

    Needs a scheme and either a host or a path (``mailto:`` style),
    and no embedded whitespace.
    """
    if not isinstance(text, str) or not text or _WHITESPACE.search(text):
        return False
    try:
        parts = urlsplit(text)
    except ValueError:
        return False
    if not parts.scheme:
        return False
    return bool(parts.netloc or parts.path)


def _decode_array(text: str) -> Optional[list[str]]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, list) or not all(isinstance(s, str) for s in data):
        return None
    return data


def read_link_source(record: Record) -> LinkSource:
    """Decode the pack's link field, falling back from V2 to V1."""
    try:
        array_text = record.optional_string(LINKS_FIELD)
    except FieldTypeError:
        logger.warning("Pack %s: %s is not a string, ignoring", record.record_id, LINKS_FIELD)
        array_text = None

    if array_text is not None:
        decoded = _decode_array(array_text)
        if decoded is not None:
            return JsonArrayLinks(decoded)
        logger.warning("Pack %s: %s is not a JSON string array", record.record_id, LINKS_FIELD)

    try:
        single = record.optional_string(LEGACY_LINK_FIELD)
    except FieldTypeError:
        logger.warning("Pack %s: %s is not a string, ignoring", record.record_id, LEGACY_LINK_FIELD)
        single = None

    if single is not None:
        return LegacySingleLink([single])
    return NoLinks()


def normalize_links(raw: list[str], limit: int = MAX_LINKS) -> list[str]:
    """Drop unparseable entries and keep at most ``limit`` links, in order."""
    links = []
    for text in raw:
        candidate = text.strip() if isinstance(text, str) else text
        if not is_valid_url(candidate):
            logger.warning("Dropping unparseable link: %r", text)
            continue
        links.append(candidate)
        if len(links) >= limit:
            break
    return links


def extract_links(record: Record) -> list[str]:
    """Custom links of a pack record, validated and truncated."""
    source = read_link_source(record)
    links = normalize_links(source.raw)
    logger.debug("Pack %s: %d link(s) from schema %s", record.record_id, len(links), source.schema)
    return links
