"""MCP tool handlers for Framer operations.

This package contains MCP tool implementations that wrap the core
FramerClient with scoped API sessions, the reconciliation engine, and
structured error responses.
"""

from .collections import COLLECTION_SPECS, COLLECTION_TOOLS
from .errors import build_error_response, build_json_result
from .project import PROJECT_SPECS, PROJECT_TOOLS
from .registry import KNOWN_SCOPES, ToolRegistry, ToolSpec, load_permissions_file
from .sync import SYNC_SPECS, SYNC_TOOLS

ALL_SPECS: list[ToolSpec] = PROJECT_SPECS + COLLECTION_SPECS + SYNC_SPECS

__all__ = [
    "build_error_response",
    "build_json_result",
    # Registry
    "KNOWN_SCOPES",
    "ToolSpec",
    "ToolRegistry",
    "load_permissions_file",
    # Spec lists
    "ALL_SPECS",
    "PROJECT_SPECS",
    "COLLECTION_SPECS",
    "SYNC_SPECS",
    # Tool lists
    "PROJECT_TOOLS",
    "COLLECTION_TOOLS",
    "SYNC_TOOLS",
]
