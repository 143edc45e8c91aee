"""ToolSpec and ToolRegistry for scope-based tool filtering.

This module provides a centralized registry for MCP tools that supports
filtering by access scope, enabling operators to restrict which tools are
exposed to AI agents (for example, a read-only CMS deployment).

Key concepts:
- ToolSpec: Immutable dataclass linking a Tool definition, required scopes,
  and an async handler with standardized signature (client, args) -> CallToolResult.
- ToolRegistry: Filters specs by allowed scopes at construction time,
  then provides list_tools() and call_tool() dispatch with error translation.
- load_permissions_file: Reads a simple text file of scope names.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import mcp.types as types

from ...core.client import FramerClient
from ...errors import CollectionNotFoundError, FramerApiError, TransportError

logger = logging.getLogger(__name__)

KNOWN_SCOPES = frozenset(
    {"PROJECT_VIEW", "PUBLISH", "CMS_VIEW", "CMS_EDIT", "CMS_ADMIN"}
)


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Immutable specification for a single MCP tool.

    Attributes:
        tool: The MCP Tool definition (name, description, inputSchema).
        permissions: Scopes required to use this tool.
            Empty frozenset means the tool is always available.
        handler: Async handler with signature (client, args) -> CallToolResult.
        domain: Error domain used to pick corrective actions.
    """

    tool: types.Tool
    permissions: frozenset[str]
    handler: Callable[[FramerClient, dict], Awaitable[types.CallToolResult]]
    domain: str = "project"


class ToolRegistry:
    """Registry of ToolSpecs with optional scope-based filtering.

    If allowed_permissions is None, all specs are included. Otherwise, a
    spec is included only if its scopes are empty or a subset of
    allowed_permissions.
    """

    def __init__(
        self,
        specs: list[ToolSpec],
        allowed_permissions: frozenset[str] | None = None,
    ):
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs:
            if (
                allowed_permissions is None
                or not spec.permissions
                or spec.permissions <= allowed_permissions
            ):
                self._specs[spec.tool.name] = spec

    def list_tools(self) -> list[types.Tool]:
        """Return list of types.Tool for all registered (permitted) specs."""
        return [spec.tool for spec in self._specs.values()]

    def tool_count(self) -> int:
        """Return number of registered tools."""
        return len(self._specs)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        client: FramerClient,
    ) -> types.CallToolResult:
        """Dispatch tool call to registered handler.

        Provides centralized error handling for API errors, missing
        collections, transport failures, validation errors, and unexpected
        exceptions, translating them into structured CallToolResult
        responses with corrective actions.

        Raises:
            ValueError: If tool name is not registered (unknown or filtered out).
        """
        from .errors import build_error_response, translate_api_error

        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown tool: {name}")
        args = arguments or {}
        try:
            return await spec.handler(client, args)
        except CollectionNotFoundError as e:
            return build_error_response(
                "not_found",
                str(e),
                "Use get_collections to list valid collection IDs.",
            )
        except FramerApiError as e:
            logger.warning("Framer API error in %s: %s", name, e.message)
            return translate_api_error(e, spec.domain)
        except TransportError as e:
            logger.warning("Transport error in %s: %s", name, e)
            return build_error_response(
                "server_error",
                str(e),
                "Check FRAMER_API_ENDPOINT and network connectivity, then retry.",
            )
        except ValueError as e:
            return build_error_response(
                "validation_error",
                str(e),
                "Check parameter values and retry.",
            )
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return build_error_response(
                "server_error",
                str(e),
                "Retry later or check the server log.",
            )


def load_permissions_file(path: str | Path) -> frozenset[str]:
    """Load allowed scopes from a text file.

    Format: one scope per line, ``#`` for comments, blank lines ignored.

    Example file::

        # Read-only access
        PROJECT_VIEW
        CMS_VIEW

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file names an unknown scope or is empty.
    """
    path = Path(path)
    permissions: set[str] = set()
    for line_num, line in enumerate(path.read_text().splitlines(), 1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped not in KNOWN_SCOPES:
            raise ValueError(
                f"Invalid scope '{stripped}' at line {line_num} in {path}. "
                f"Expected one of: {', '.join(sorted(KNOWN_SCOPES))}."
            )
        permissions.add(stripped)
    if not permissions:
        raise ValueError(
            f"No scopes found in {path}. File must contain at least one scope."
        )
    return frozenset(permissions)
