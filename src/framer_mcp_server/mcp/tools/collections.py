"""Collection tool handlers for MCP server.

This module implements CMS collection tools: list and create collections,
read items (optionally with enum case ids), remove items, and set up fields.
Upserts live in ``sync.py`` because they run the reconciliation engine.
"""

import logging

import mcp.types as types

from ...core.client import FramerClient
from ...core.session import open_session
from ...sync.enum_cases import EnumCaseResolver
from ...validators import parse_json_array, require_string
from .errors import build_json_result
from .registry import ToolSpec

logger = logging.getLogger(__name__)

_PROJECT_URL_PROPERTY = {
    "type": "string",
    "description": "Override the configured Framer project URL for this call only (optional)",
}
_COLLECTION_ID_PROPERTY = {
    "type": "string",
    "description": "ID of the target collection (required)",
}


# Tool definitions for list_tools()
COLLECTION_TOOLS = [
    types.Tool(
        name="get_collections",
        description="Get all collections in the project. Returns id, name, and managedBy per collection.",
        inputSchema={
            "type": "object",
            "properties": {"project_url": _PROJECT_URL_PROPERTY},
            "required": [],
        },
    ),
    types.Tool(
        name="create_managed_collection",
        description="Create a managed collection in the project.",
        inputSchema={
            "type": "object",
            "properties": {
                "collection_name": {
                    "type": "string",
                    "description": "Name of the managed collection to create (required)",
                },
                "project_url": _PROJECT_URL_PROPERTY,
            },
            "required": ["collection_name"],
        },
    ),
    types.Tool(
        name="get_collection_items",
        description="Get all items for a collection. Returns id, slug, draft, fieldData per item unless return_raw_item is set. Set include_enum_case_ids to resolve enum values to case IDs.",
        inputSchema={
            "type": "object",
            "properties": {
                "collection_id": _COLLECTION_ID_PROPERTY,
                "return_raw_item": {
                    "type": "boolean",
                    "description": "Return the full raw item object instead of mapped fields (default: false)",
                    "default": False,
                },
                "include_enum_case_ids": {
                    "type": "boolean",
                    "description": "Include resolved enum case IDs per item based on field definitions (default: false)",
                    "default": False,
                },
                "project_url": _PROJECT_URL_PROPERTY,
            },
            "required": ["collection_id"],
        },
    ),
    types.Tool(
        name="remove_collection_items",
        description="Remove collection items by ID. Warning: This cannot be undone.",
        inputSchema={
            "type": "object",
            "properties": {
                "collection_id": _COLLECTION_ID_PROPERTY,
                "item_ids": {
                    "description": "Array of item IDs to remove (or a JSON string encoding one)",
                    "type": ["array", "string"],
                    "items": {"type": "string"},
                },
                "project_url": _PROJECT_URL_PROPERTY,
            },
            "required": ["collection_id", "item_ids"],
        },
    ),
    types.Tool(
        name="setup_collection_fields",
        description="Create collection fields from definitions. Field types include string, formattedText, image, number, enum (with cases). Fields whose names already exist are skipped by default.",
        inputSchema={
            "type": "object",
            "properties": {
                "collection_id": _COLLECTION_ID_PROPERTY,
                "fields": {
                    "description": 'Array of field definitions, e.g. [{"name": "title", "type": "string"}] (or a JSON string encoding one)',
                    "type": ["array", "string"],
                    "items": {"type": "object"},
                },
                "skip_existing_fields": {
                    "type": "boolean",
                    "description": "Skip fields whose names already exist, case-insensitively (default: true)",
                    "default": True,
                },
                "project_url": _PROJECT_URL_PROPERTY,
            },
            "required": ["collection_id", "fields"],
        },
    ),
]


async def _handle_get_collections(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    async with open_session(client, args.get("project_url")) as session:
        collections = await session.call("get_collections")

    result = [
        {
            "id": c.get("id"),
            "name": c.get("name"),
            "managedBy": c.get("managedBy"),
        }
        for c in collections
        if isinstance(c, dict)
    ]
    if not result:
        return build_json_result("getCollections", [], "No collections found.")
    text = "\n".join(f"{c['id']}: {c['name']}" for c in result)
    return build_json_result("getCollections", result, text)


async def _handle_create_managed_collection(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    name = require_string(args.get("collection_name"), "Collection Name")

    async with open_session(client, args.get("project_url")) as session:
        result = await session.call("create_managed_collection", name)
    return build_json_result("createManagedCollection", result)


async def _handle_get_collection_items(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    """Handle get_collection_items with optional enum case resolution."""
    collection_id = require_string(args.get("collection_id"), "Collection ID")
    return_raw = bool(args.get("return_raw_item", False))
    include_enum_ids = bool(args.get("include_enum_case_ids", False))

    async with open_session(client, args.get("project_url")) as session:
        collection = await session.get_collection(collection_id)
        resolver = EnumCaseResolver(
            await collection.get_fields() if include_enum_ids else []
        )
        raw_items = await collection.get_raw_items()

    result = []
    for item in raw_items:
        enum_case_ids = resolver.resolve_json(item.get("fieldData"))
        if return_raw:
            result.append({**item, "enumCaseIds": enum_case_ids})
        else:
            result.append(
                {
                    "id": item.get("id"),
                    "slug": item.get("slug"),
                    "draft": item.get("draft") is True,
                    "fieldData": item.get("fieldData"),
                    "enumCaseIds": enum_case_ids,
                }
            )

    return build_json_result(
        "getCollectionItems",
        result,
        f"{len(result)} item(s) in collection {collection_id}",
    )


async def _handle_remove_collection_items(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    collection_id = require_string(args.get("collection_id"), "Collection ID")
    item_ids = [str(i) for i in parse_json_array(args.get("item_ids"), "Item IDs JSON")]

    async with open_session(client, args.get("project_url")) as session:
        collection = await session.get_collection(collection_id)
        await collection.remove_items(item_ids)

    return build_json_result(
        "removeCollectionItems",
        {"collectionId": collection_id, "removedCount": len(item_ids)},
        f"Removed {len(item_ids)} item(s) from collection {collection_id}",
    )


def _field_name_key(field: object) -> str:
    if not isinstance(field, dict):
        return ""
    return str(field.get("name") or "").strip().lower()


async def _handle_setup_collection_fields(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    """Handle setup_collection_fields, skipping existing names unless disabled."""
    collection_id = require_string(args.get("collection_id"), "Collection ID")
    fields = parse_json_array(args.get("fields"), "Fields JSON")
    skip_existing = args.get("skip_existing_fields", True) is not False

    async with open_session(client, args.get("project_url")) as session:
        collection = await session.get_collection(collection_id)

        to_create = fields
        skipped: list[str] = []
        if skip_existing:
            existing = {
                _field_name_key(f) for f in await collection.get_raw_fields()
            }
            existing.discard("")
            to_create = []
            for field in fields:
                key = _field_name_key(field)
                if key and key in existing:
                    skipped.append(str(field["name"]))
                else:
                    to_create.append(field)

        created = await collection.add_fields(to_create) if to_create else []

    result = {
        "collectionId": collection_id,
        "requestedCount": len(fields),
        "createdCount": len(created),
        "skippedCount": len(skipped),
        "skippedFieldNames": skipped,
        "createdFields": [
            {"id": f.get("id"), "name": f.get("name"), "type": f.get("type")}
            for f in created
            if isinstance(f, dict)
        ],
    }
    text = f"Created {len(created)} field(s), skipped {len(skipped)} existing"
    if skipped:
        text += f": {', '.join(skipped)}"
    return build_json_result("setupCollectionFields", result, text)


# ToolSpec list for registry-based dispatch
COLLECTION_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=COLLECTION_TOOLS[0],
        permissions=frozenset({"CMS_VIEW"}),
        handler=_handle_get_collections,
        domain="collection",
    ),
    ToolSpec(
        tool=COLLECTION_TOOLS[1],
        permissions=frozenset({"CMS_ADMIN"}),
        handler=_handle_create_managed_collection,
        domain="collection",
    ),
    ToolSpec(
        tool=COLLECTION_TOOLS[2],
        permissions=frozenset({"CMS_VIEW"}),
        handler=_handle_get_collection_items,
        domain="collection",
    ),
    ToolSpec(
        tool=COLLECTION_TOOLS[3],
        permissions=frozenset({"CMS_EDIT"}),
        handler=_handle_remove_collection_items,
        domain="collection",
    ),
    ToolSpec(
        tool=COLLECTION_TOOLS[4],
        permissions=frozenset({"CMS_ADMIN"}),
        handler=_handle_setup_collection_fields,
        domain="collection",
    ),
]
