"""Deterministic value encoding used to compare field values.

``stable_encode`` produces the same string for semantically equal JSON-like
values regardless of mapping key insertion order. It is a comparison key,
never a storage format.
"""

from __future__ import annotations

import json
import math
from typing import Any


class _Missing:
    """Marker for a field that is absent on one side of a comparison."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

# Cannot collide with json.dumps output, which never starts with "<".
_MISSING_ENCODING = "<missing>"


def _normalize(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    if isinstance(value, bool) or value is None or isinstance(value, (int, str)):
        return value
    if isinstance(value, float):
        # JSON has a single number type: 1 and 1.0 are the same value
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return value
    return str(value)


def stable_encode(value: Any) -> str:
    """Encode ``value`` with recursively sorted keys.

    Lists keep their order, mapping keys are stringified and sorted by code
    point, and scalars pass through. Non-JSON scalars are rendered with
    ``str()`` so the function never raises. ``MISSING`` encodes to a marker
    distinct from ``null``.

    Example:
        >>> stable_encode({"b": 2, "a": 1}) == stable_encode({"a": 1, "b": 2})
        True
    """
    if value is MISSING:
        return _MISSING_ENCODING
    return json.dumps(
        _normalize(value),
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
    )


def values_equal(left: Any, right: Any) -> bool:
    """Return True when two values encode identically."""
    return stable_encode(left) == stable_encode(right)
