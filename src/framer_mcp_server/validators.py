"""
Input validation functions for Framer MCP Server.

Normalizes identifiers and JSON-array arguments before any API call is made.
Every failure raises ``PreconditionError`` so no remote work starts on bad input.
"""

import json
from typing import Any

from .errors import PreconditionError


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Collection ID")
        reason: Description of validation failure (e.g., "is required")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def require_string(value: Any, field_name: str) -> str:
    """Return ``value`` as a stripped string, or raise if it is blank.

    Args:
        value: Raw argument value (any type; non-strings are stringified).
        field_name: Human-readable name used in the error message.

    Raises:
        PreconditionError: If the value is None or blank after stripping.
    """
    text = "" if value is None else str(value).strip()
    if not text:
        raise PreconditionError(format_validation_error(field_name, "is required"))
    return text


def optional_string(value: Any) -> str | None:
    """Return a stripped string, or None for None/blank values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_json_array(value: Any, field_name: str) -> list:
    """Accept a list or a JSON string encoding a list.

    Args:
        value: A list, or a string containing a JSON array.
        field_name: Human-readable name used in error messages.

    Returns:
        The decoded list.

    Raises:
        PreconditionError: If the string is not valid JSON or the value
            is not an array.
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise PreconditionError(
                format_validation_error(field_name, f"is invalid: {e.msg}")
            ) from e
    if not isinstance(value, list):
        raise PreconditionError(
            format_validation_error(field_name, "must be a JSON array")
        )
    return value


def parse_json_object(value: Any, field_name: str) -> dict:
    """Accept a dict, a JSON string encoding an object, or None (empty dict)."""
    if value is None:
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise PreconditionError(
                format_validation_error(field_name, f"is invalid: {e.msg}")
            ) from e
    if not isinstance(value, dict):
        raise PreconditionError(
            format_validation_error(field_name, "must be a JSON object")
        )
    return value


def optional_version(value: Any, field_name: str) -> int | None:
    """Interpret a version argument where 0 or absence means "unset"."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise PreconditionError(
            format_validation_error(field_name, "must be a non-negative integer")
        )
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise PreconditionError(
            format_validation_error(field_name, "must be a non-negative integer")
        ) from None
    if number < 0:
        raise PreconditionError(
            format_validation_error(field_name, "must be a non-negative integer")
        )
    return number or None
