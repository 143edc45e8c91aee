"""MCP tool handler for reconciling collection items.

Defines ``upsert_collection_items``, which runs the ``SyncCoordinator``
against one collection and returns one sync record per requested item.
"""

from __future__ import annotations

import logging
from typing import Any

import mcp.types as types

from ...core.client import FramerClient
from ...core.session import open_session
from ...sync.coordinator import SyncCoordinator
from ...sync.models import SyncMode
from ...sync.reporter import format_sync_report, report_to_json
from ...validators import parse_json_array, parse_json_object, require_string
from .registry import ToolSpec

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


SYNC_TOOLS: list[types.Tool] = [
    types.Tool(
        name="upsert_collection_items",
        description=(
            "Add or update collection items. By default only changed fields "
            "are sent; unchanged items are skipped. Returns one sync record "
            "per requested item (framerItemId, hashes, name) in input order, "
            "including whether the item could be resolved after the write."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "collection_id": {
                    "type": "string",
                    "description": "ID of the target collection (required)",
                },
                "items": {
                    "description": (
                        "Array of items ({id?, slug?, draft?, fieldData} plus "
                        "optional notionPageId, lastSyncHash, contentHash), "
                        "or a JSON string encoding one"
                    ),
                    "type": ["array", "string"],
                    "items": {"type": "object"},
                },
                "update_changed_fields_only": {
                    "type": "boolean",
                    "default": True,
                    "description": (
                        "Diff against the current collection and send only "
                        "changed fields (default: true). False sends every "
                        "item in full."
                    ),
                },
                "metadata": {
                    "description": (
                        "Call-level defaults for sync records, e.g. "
                        '{"notionPageId": "...", "contentHash": "..."} '
                        "(object or JSON string, optional)"
                    ),
                    "type": ["object", "string"],
                },
                "project_url": {
                    "type": "string",
                    "description": "Override the configured Framer project URL for this call only (optional)",
                },
            },
            "required": ["collection_id", "items"],
        },
    ),
]


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------


async def _handle_upsert_collection_items(
    client: FramerClient,
    args: dict[str, Any],
) -> types.CallToolResult:
    """Handle the ``upsert_collection_items`` tool.

    All argument validation happens before a session is opened, so bad
    input never reaches the API.
    """
    collection_id = require_string(args.get("collection_id"), "Collection ID")
    items = parse_json_array(args.get("items"), "Items JSON")
    metadata = parse_json_object(args.get("metadata"), "Metadata JSON")
    mode = (
        SyncMode.REPLACE_FULL
        if args.get("update_changed_fields_only", True) is False
        else SyncMode.DIFF_CHANGED_ONLY
    )

    async with open_session(client, args.get("project_url")) as session:
        collection = await session.get_collection(collection_id)
        coordinator = SyncCoordinator(
            collection,
            max_attempts=client.config.resolution_attempts,
            backoff_seconds=client.config.resolution_backoff_ms / 1000,
        )
        report = await coordinator.reconcile(items, mode, metadata)

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=format_sync_report(report))],
        structuredContent=report_to_json(report),
    )


SYNC_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=SYNC_TOOLS[0],
        permissions=frozenset({"CMS_EDIT"}),
        handler=_handle_upsert_collection_items,
        domain="collection",
    ),
]
