"""Decoding helpers for raw store documents.

Store documents arrive in more than one shape for the same field: a
relationship may be a bare id or an embedded document, and id lists may be
a real array or a JSON-encoded string. These helpers normalize the value
once so engine code only sees one representation.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Union

Document = dict[str, Any]


def ref_id(value: object) -> str | None:
    """Return the referenced document id of a relationship field.

    Accepts a bare id string or an embedded document exposing ``$id`` or ``id``.
    """
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        candidate = value.get("$id") or value.get("id")
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def embedded_document(value: object) -> Document | None:
    """Return the relationship value when it is already a populated document."""
    if isinstance(value, dict) and (value.get("$id") or value.get("name")):
        return value
    return None


def parse_id_list(value: object) -> list[str]:
    """Parse an id list stored as an array or a JSON string.

    Any decode failure yields an empty list.
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def as_number(value: object, default: float = 0) -> float:
    """Return a numeric field value, treating missing or non-numeric as ``default``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def isoformat(moment: datetime) -> str:
    """Format a timestamp the way the store writes its own datetime fields."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def new_id() -> str:
    """Generate a client-side document or identity id (20 lowercase hex chars)."""
    return uuid.uuid4().hex[:20]


@dataclass(frozen=True)
class Embedded:
    """A relationship whose target document is already populated."""

    document: Document


@dataclass(frozen=True)
class Reference:
    """A relationship that only carries the target id."""

    id: str


Relation = Union[Embedded, Reference]  # noqa: UP007


def decode_relation(value: object) -> Relation | None:
    """Decode a relationship field into an embedded document or a bare reference."""
    document = embedded_document(value)
    if document is not None:
        return Embedded(document)
    target = ref_id(value)
    return Reference(target) if target else None
