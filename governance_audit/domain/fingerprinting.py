"""
Deterministic fingerprinting for decision event traceability.

Every DecisionEvent carries a hash of the raw input it was computed from,
so an auditor can tie a persisted envelope back to the exact request.

CRITICAL: These functions must be deterministic.
Same inputs MUST produce same output every time.
"""

import hashlib
import json
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel


def _json_default(value: Any) -> Any:
    """Render non-JSON types in a stable textual form."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def canonical_json(content: Any) -> str:
    """
    Serialize content to canonical JSON.

    Keys are sorted and separators compact, so two structurally equal
    inputs always serialize to the same string regardless of key order.
    """
    if isinstance(content, BaseModel):
        content = content.model_dump(mode="json")
    return json.dumps(content, sort_keys=True, separators=(',', ':'), default=_json_default)


def compute_inputs_hash(content: Any) -> str:
    """
    Compute deterministic hash of an agent's raw input.

    Args:
        content: Raw input (dict, list, pydantic model, or scalar)

    Returns:
        SHA256 hash (64-character hex string)

    Example:
        >>> h1 = compute_inputs_hash({"b": 1, "a": 2})
        >>> h2 = compute_inputs_hash({"a": 2, "b": 1})
        >>> assert h1 == h2
    """
    json_str = canonical_json(content)
    return hashlib.sha256(json_str.encode('utf-8')).hexdigest()
