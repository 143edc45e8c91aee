"""Map free-text enum values on items back to enum case ids.

Items read from a collection carry enum values as case names. Writers
need the case id, so the read path can attach ``enumCaseIds`` per item.
Values that match no case are omitted: items may still reference cases
that were renamed or removed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .models import EnumCaseResolution, FieldDefinition


@dataclass(frozen=True, slots=True)
class _EnumLookup:
    field_name: str
    by_name: dict[str, str]
    by_name_lower: dict[str, str]


def _raw_value(entry: Any) -> Any:
    """Unwrap ``{"type": ..., "value": ...}`` field entries."""
    if isinstance(entry, dict) and "value" in entry:
        return entry["value"]
    return entry


class EnumCaseResolver:
    """Resolve enum field values to case ids for one collection's schema."""

    def __init__(self, field_definitions: Iterable[FieldDefinition]) -> None:
        self._lookups: dict[str, _EnumLookup] = {}
        for field in field_definitions:
            if field.type != "enum":
                continue
            self._lookups[field.id] = _EnumLookup(
                field_name=field.name,
                by_name={case.name: case.id for case in field.cases},
                by_name_lower={
                    case.name.lower(): case.id for case in field.cases
                },
            )

    @property
    def enum_field_ids(self) -> list[str]:
        return list(self._lookups)

    def resolve(
        self, field_data: dict[str, Any] | None
    ) -> dict[str, EnumCaseResolution]:
        """Resolve every enum field present on an item.

        Lookup is by exact case name first, then case-insensitively.
        Non-string values and unknown names are skipped.
        """
        if not isinstance(field_data, dict):
            return {}
        resolved: dict[str, EnumCaseResolution] = {}
        for field_id, lookup in self._lookups.items():
            value = _raw_value(field_data.get(field_id))
            if not isinstance(value, str):
                continue
            case_id = lookup.by_name.get(value) or lookup.by_name_lower.get(
                value.lower()
            )
            if not case_id:
                continue
            resolved[field_id] = EnumCaseResolution(
                fieldName=lookup.field_name,
                caseName=value,
                caseId=case_id,
            )
        return resolved

    def resolve_json(self, field_data: dict[str, Any] | None) -> dict:
        """Like ``resolve`` but returns plain dicts with wire names."""
        return {
            field_id: resolution.model_dump(by_alias=True)
            for field_id, resolution in self.resolve(field_data).items()
        }
