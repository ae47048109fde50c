"""Deterministic cache keys for facade operations.

A key is the operation name, any scalar discriminators passed outside the
payload (an allele, a version), and a canonical JSON rendering of the
payload, joined with ``|``::

    bead:get|A*01:01|~
    bead:filter|{"allele":"A*01:01","version":2}

Canonicalisation sorts mapping keys, drops mapping entries whose value is
``None`` and recurses into nested mappings and sequences, so two payloads
that differ only in field order or in an omitted-versus-``None`` optional
field produce the same key.
"""

from __future__ import annotations

import enum
import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

EMPTY_PAYLOAD = "~"
"""Token used in place of an absent or empty payload."""

_SEPARATOR = "|"


def canonicalize(value: Any) -> Any:
    """Return *value* rebuilt with sorted mappings and ``None`` entries dropped.

    Pydantic models are dumped by wire alias first.  Sequence elements keep
    their order, and a ``None`` inside a sequence is kept since its position
    is significant.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, Mapping):
        return {
            str(key): canonicalize(value[key])
            for key in sorted(value, key=str)
            if value[key] is not None
        }
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]
    if isinstance(value, enum.Enum):
        return value.value
    return value


def serialize_payload(payload: Any) -> str:
    """Serialise *payload* to its canonical JSON form, or :data:`EMPTY_PAYLOAD`."""
    if payload is None:
        return EMPTY_PAYLOAD
    canonical = canonicalize(payload)
    if canonical == {} or canonical == []:
        return EMPTY_PAYLOAD
    return json.dumps(canonical, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def make_cache_key(operation: str, *parts: Any, payload: Any = None) -> str:
    """Build the cache key for one facade call.

    Args:
        operation: Logical operation name, e.g. ``"serotype:get"``.
        *parts: Scalar discriminators that are not part of the payload.
            ``None`` parts are rendered as ``-`` so positions stay stable.
        payload: Query parameters or request body, if any.

    Returns:
        The key string.
    """
    segments = [operation]
    segments.extend("-" if part is None else _scalar(part) for part in parts)
    segments.append(serialize_payload(payload))
    return _SEPARATOR.join(segments)


def _scalar(part: Any) -> str:
    if isinstance(part, enum.Enum):
        return str(part.value)
    return str(part)
