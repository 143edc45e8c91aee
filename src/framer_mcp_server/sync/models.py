"""Pydantic models for the collection item reconciliation engine.

Defines the data contracts shared by the sync modules:

- ``SyncMode``: diff-only or full-replace write mode.
- ``SyncPhase``: coordinator state machine phases.
- ``DesiredItem``: one caller-supplied item to make true remotely.
- ``RemoteItemSummary``: normalized read-model of a remote collection item.
- ``ChangeSet``: minimal write payload for one item.
- ``SyncMetadata``: caller bookkeeping echoed back on each record.
- ``SyncRecord``: per-item outcome of a reconciliation.
- ``SyncReport``: aggregate outcome of one reconciliation call.
- ``FieldDefinition`` / ``EnumCaseResolution``: read-path enum mapping.

All models are frozen (immutable). Wire-facing field names are camelCase
aliases; Python attributes are snake_case.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SyncMode(str, Enum):
    """How desired items are turned into write payloads."""

    DIFF_CHANGED_ONLY = "diffChangedOnly"
    REPLACE_FULL = "replaceFull"


class SyncPhase(str, Enum):
    """Phases of a single reconciliation pass."""

    DIFFING = "diffing"
    WRITING = "writing"
    VERIFYING_COUNTS = "verifying_counts"
    RESOLVING = "resolving"
    EMITTING = "emitting"


_WIRE = ConfigDict(frozen=True, populate_by_name=True)


def _optional_string(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class DesiredItem(BaseModel):
    """One item as the caller wants it to exist remotely.

    ``id`` and ``slug`` are identity hints; both may be absent, in which
    case the item is always created.
    """

    model_config = _WIRE

    id: str | None = None
    slug: str | None = None
    draft: bool | None = None
    field_data: dict[str, Any] = Field(default_factory=dict, alias="fieldData")

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> DesiredItem:
        """Build from a raw JSON object, ignoring unrelated metadata keys.

        Identity hints are trimmed and blank values dropped. ``draft`` is
        kept only when it is a real boolean.
        """
        field_data = raw.get("fieldData")
        draft = raw.get("draft")
        return cls(
            id=_optional_string(raw.get("id")),
            slug=_optional_string(raw.get("slug")),
            draft=draft if isinstance(draft, bool) else None,
            fieldData=field_data if isinstance(field_data, dict) else {},
        )


class RemoteItemSummary(BaseModel):
    """Normalized view of a remote collection item."""

    model_config = _WIRE

    id: str | None = None
    slug: str | None = None
    draft: bool = False
    field_data: dict[str, Any] = Field(default_factory=dict, alias="fieldData")

    @classmethod
    def from_raw(cls, raw: Any) -> RemoteItemSummary:
        """Normalize whatever the API returned for an item.

        Falsy ids/slugs become None and ``draft`` is true only for a literal
        ``True``.
        """
        if not isinstance(raw, dict):
            return cls()
        field_data = raw.get("fieldData")
        return cls(
            id=str(raw["id"]) if raw.get("id") else None,
            slug=str(raw["slug"]) if raw.get("slug") else None,
            draft=raw.get("draft") is True,
            fieldData=field_data if isinstance(field_data, dict) else {},
        )


class ChangeSet(BaseModel):
    """Minimal write payload for one item.

    A ChangeSet with every member unset is never produced: the builder
    returns ``None`` for no-ops instead.
    """

    model_config = _WIRE

    id: str | None = None
    slug: str | None = None
    draft: bool | None = None
    field_data: dict[str, Any] | None = Field(default=None, alias="fieldData")

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the write API with unset members omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SyncMetadata(BaseModel):
    """Caller bookkeeping carried alongside an item and echoed on its record."""

    model_config = _WIRE

    notion_page_id: str = Field(default="", alias="notionPageId")
    framer_item_id: str = Field(default="", alias="framerItemId")
    last_sync_hash: str = Field(default="", alias="lastSyncHash")
    content_hash: str = Field(default="", alias="contentHash")
    has_framer_id: bool | None = Field(default=None, alias="hasFramerId")
    is_changed: bool | None = Field(default=None, alias="isChanged")
    name: str = ""


class SyncRecord(BaseModel):
    """Outcome for one requested item, in input order.

    ``framer_item_id`` falls back to the requested id when resolution
    failed, so ``resolved`` is the only reliable resolution signal.
    """

    model_config = _WIRE

    notion_page_id: str = Field(default="", alias="notionPageId")
    framer_item_id: str = Field(default="", alias="framerItemId")
    last_sync_hash: str = Field(default="", alias="lastSyncHash")
    content_hash: str = Field(default="", alias="contentHash")
    has_framer_id: bool = Field(default=False, alias="hasFramerId")
    is_changed: bool = Field(default=True, alias="isChanged")
    name: str = ""
    resolved: bool = False


class SyncReport(BaseModel):
    """Aggregate result of one reconciliation call.

    Attributes:
        collection_id: Collection that was reconciled.
        mode: Write mode used.
        records: One record per requested item, in input order.
        written_count: Number of ChangeSets sent in the write batch.
        skipped_count: Items dropped from the batch as no-ops.
        resolution_attempts: Re-fetch attempts made after the write.
        cancelled: True when resolution was cut short by cancellation.
    """

    model_config = ConfigDict(frozen=True)

    collection_id: str
    mode: SyncMode
    records: list[SyncRecord] = []
    written_count: int = 0
    skipped_count: int = 0
    resolution_attempts: int = 0
    cancelled: bool = False

    @property
    def requested_count(self) -> int:
        return len(self.records)

    @property
    def resolved(self) -> list[SyncRecord]:
        """Records matched to a remote item."""
        return [r for r in self.records if r.resolved]

    @property
    def unresolved(self) -> list[SyncRecord]:
        """Records that could not be matched after all attempts."""
        return [r for r in self.records if not r.resolved]


class EnumCase(BaseModel):
    model_config = _WIRE

    id: str
    name: str


class FieldDefinition(BaseModel):
    """A collection field as returned by the fields API."""

    model_config = _WIRE

    id: str
    name: str = ""
    type: str = ""
    cases: list[EnumCase] = []

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> FieldDefinition:
        """Normalize a raw field dict, stringifying ids and case names."""
        raw_cases = raw.get("cases")
        cases = [
            EnumCase(id=str(c.get("id", "")), name=str(c.get("name", "")))
            for c in (raw_cases if isinstance(raw_cases, list) else [])
            if isinstance(c, dict)
        ]
        return cls(
            id=str(raw.get("id", "")),
            name=str(raw.get("name") or ""),
            type=str(raw.get("type") or ""),
            cases=cases,
        )


class EnumCaseResolution(BaseModel):
    """Resolved enum case for one field of one item."""

    model_config = _WIRE

    field_name: str = Field(alias="fieldName")
    case_name: str = Field(alias="caseName")
    case_id: str = Field(alias="caseId")
