"""Extraction of caller bookkeeping from raw item objects.

Upstream automations (typically a Notion-to-Framer pipeline) attach their
own tracking keys to each item, and may also supply call-level defaults.
Item-level keys win over call-level keys; the first non-empty alias wins.
"""

from __future__ import annotations

from typing import Any

from .models import SyncMetadata


def _first(*values: Any) -> str:
    for value in values:
        if value:
            return str(value)
    return ""


def _bool_or_none(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def extract_metadata(
    raw_item: dict[str, Any], call_metadata: dict[str, Any] | None = None
) -> SyncMetadata:
    """Collect the bookkeeping echoed on an item's SyncRecord.

    Args:
        raw_item: The caller's raw item object.
        call_metadata: Optional call-level defaults. Its ``id`` key names the
            upstream record, not a Framer item.

    Returns:
        SyncMetadata with empty strings for absent values and None for
        booleans the caller did not set explicitly.
    """
    src = raw_item
    call = call_metadata or {}
    return SyncMetadata(
        notionPageId=_first(
            src.get("notionPageId"),
            src.get("notionId"),
            call.get("notionPageId"),
            call.get("notionId"),
            call.get("id"),
        ),
        framerItemId=_first(
            src.get("framerItemId"),
            src.get("framer_item_id"),
            str(src.get("id") or "").strip(),
            call.get("framerItemId"),
            call.get("framer_item_id"),
        ),
        lastSyncHash=_first(
            src.get("lastSyncHash"),
            src.get("last_sync_hash"),
            call.get("lastSyncHash"),
            call.get("last_sync_hash"),
        ),
        contentHash=_first(
            src.get("contentHash"),
            src.get("content_hash"),
            call.get("contentHash"),
            call.get("content_hash"),
        ),
        hasFramerId=_bool_or_none(src.get("hasFramerId")),
        isChanged=_bool_or_none(src.get("isChanged")),
        name=_first(
            src.get("name"),
            src.get("title"),
            src.get("slug"),
            call.get("name"),
            call.get("title"),
            call.get("property_title"),
        ),
    )
