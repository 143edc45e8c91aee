"""Error response builders and shared utilities for MCP tool handlers.

This module provides structured error responses with corrective actions
to help AI agents recover from errors without human intervention, plus
shared result builders used across tool modules.
"""

import json
from typing import Any

import mcp.types as types

from ...errors import FramerApiError


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (not_found, permission_denied, validation_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("not_found", "Collection not found for ID: abc", "Use get_collections to list collection IDs.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


# ---------------------------------------------------------------------------
# Shared result builders
# ---------------------------------------------------------------------------


def to_json_text(value: Any) -> str:
    """Pretty-print an API result for text content."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def build_json_result(
    operation: str, result: Any, text: str | None = None
) -> types.CallToolResult:
    """Wrap an API result as text plus structured content.

    Structured content is always ``{"operation": ..., "success": True,
    "result": ...}`` so list results are valid MCP structured output.
    """
    structured = {"operation": operation, "success": True, "result": result}
    return types.CallToolResult(
        content=[
            types.TextContent(
                type="text", text=text if text is not None else to_json_text(result)
            )
        ],
        structuredContent=json.loads(to_json_text(structured)),
    )


# ---------------------------------------------------------------------------
# Domain-specific corrective action messages
# ---------------------------------------------------------------------------

_DOMAIN_MESSAGES: dict[str, dict[str, str]] = {
    "project": {
        "not_found": "Check FRAMER_URL or the project_url argument points to an existing project.",
        "permission": "Check that the Framer API key has access to this project.",
        "server": "Retry later or check Framer service status.",
    },
    "collection": {
        "not_found": "Use get_collections to list valid collection IDs.",
        "permission": "Check that the Framer API key can edit this project's CMS.",
        "server": "Retry later or check Framer service status.",
    },
    "deployment": {
        "not_found": "Use publish to create a deployment and pass its deployment ID.",
        "permission": "Check that the Framer API key is allowed to publish this project.",
        "server": "Retry later or check Framer service status.",
    },
}


def translate_api_error(
    error: FramerApiError,
    domain: str,
) -> types.CallToolResult:
    """Translate a Framer API error to a structured error response.

    Classification uses the error code first (404, 401/403) and falls back
    to message keywords for APIs that return code 0.

    Args:
        error: Error returned by the Framer API
        domain: Operation domain ("project", "collection", "deployment")

    Returns:
        CallToolResult with isError=True and corrective action
    """
    msgs = _DOMAIN_MESSAGES.get(domain, _DOMAIN_MESSAGES["project"])
    text = error.message.lower()

    match error.code:
        case 404:
            kind = "not_found"
        case 401 | 403:
            kind = "permission_denied"
        case _ if "not found" in text or "does not exist" in text:
            kind = "not_found"
        case _ if "permission" in text or "unauthorized" in text or "denied" in text:
            kind = "permission_denied"
        case _:
            kind = "server_error"

    action_key = {
        "not_found": "not_found",
        "permission_denied": "permission",
        "server_error": "server",
    }[kind]
    return build_error_response(kind, error.message, msgs[action_key])
