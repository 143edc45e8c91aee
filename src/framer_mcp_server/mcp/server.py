"""MCP Server for Framer integration using stdio transport.

This module implements the Model Context Protocol server that enables
AI agents to manage a Framer project and its CMS collections via
standardized tools.

Transport: stdio (for Claude Desktop/Code integration)
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..core.client import FramerClient
from ..core.session import open_session
from ..logger import DEFAULT_LOG_FILE, setup_logging
from .lifespan import server_lifespan
from .tools import (
    ALL_SPECS,
    ToolRegistry,
    build_error_response,
    load_permissions_file,
)
from .tools.registry import ToolSpec

logger = logging.getLogger(__name__)

# Initialize server instance
server = Server("framer-mcp-server")

# Global client instance (initialized in main)
_framer_client: FramerClient | None = None

# Global registry instance (initialized in main)
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Ping tool (always available, no scope required)
# ---------------------------------------------------------------------------


async def _handle_ping(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    """Handle ping tool -- open a session and report the project name."""
    try:
        async with open_session(client, args.get("project_url")) as session:
            info = await session.call("get_project_info")
        name = info.get("name") if isinstance(info, dict) else None
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=f"Framer MCP server connected successfully. Project: {name or session.project_url}",
                )
            ]
        )
    except Exception as e:
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=f"Framer connection failed: {e}. Check FRAMER_URL, FRAMER_API_KEY.",
                )
            ],
            isError=True,
        )


PING_SPEC = ToolSpec(
    tool=types.Tool(
        name="ping",
        description="Test Framer MCP server connectivity and return the project name",
        inputSchema={
            "type": "object",
            "properties": {
                "project_url": {
                    "type": "string",
                    "description": "Override the configured Framer project URL for this call only (optional)",
                },
            },
            "required": [],
        },
    ),
    permissions=frozenset(),
    handler=_handle_ping,
)


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_client() -> FramerClient:
    """Get the global FramerClient instance.

    Raises:
        RuntimeError: If client is not initialized
    """
    if _framer_client is None:
        raise RuntimeError(
            "FramerClient not initialized. Server lifespan not started."
        )
    return _framer_client


def set_client(client: FramerClient | None) -> None:
    global _framer_client
    _framer_client = client


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available Framer tools permitted by the active scopes."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch."""
    client = get_client()
    try:
        return await get_registry().call_tool(name, arguments, client)
    except ValueError as e:
        # Unknown or filtered-out tool name
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


def build_registry(permissions_file: str | None = None) -> ToolRegistry:
    """Build the ToolRegistry, optionally filtered by a scopes file."""
    allowed_permissions = None
    if permissions_file:
        allowed_permissions = load_permissions_file(permissions_file)
        logger.info(
            "Loaded %d scopes from %s",
            len(allowed_permissions),
            permissions_file,
        )

    all_specs = [PING_SPEC] + ALL_SPECS
    registry = ToolRegistry(all_specs, allowed_permissions)
    logger.info(
        "Registered %d tools (of %d total)",
        registry.tool_count(),
        len(all_specs),
    )
    if permissions_file:
        print(
            f"Permissions file: {permissions_file} "
            f"({registry.tool_count()} of {len(all_specs)} tools enabled)",
            file=sys.stderr,
        )
    return registry


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Sets up file logging (never stdout), validates the Framer connection
    via the lifespan manager, and serves JSON-RPC over stdio.

    Args:
        config_overrides: Optional dict with config values to override
            (url, api_key, endpoint, debug, log_file, permissions_file)
    """
    overrides = config_overrides or {}

    # Must run before stdio_server so nothing reaches stdout
    setup_logging(
        mode="mcp",
        debug=overrides.get("debug", False),
        log_file=overrides.get("log_file"),
    )
    logger.info("framer-mcp-server %s", __version__)

    set_registry(build_registry(overrides.get("permissions_file")))

    # set_client() is called here rather than inside the lifespan so that
    # running as `python -m framer_mcp_server.mcp.server` updates __main__.
    async with server_lifespan(config_overrides=config_overrides) as ctx:
        set_client(ctx["client"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="framer-mcp-server",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_client(None)
            set_registry(None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Framer MCP Server - Model Context Protocol server for Framer projects and CMS collections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (from .env or config.yml)
  framer-mcp-server

  # Override the project URL
  framer-mcp-server --url https://framer.com/projects/Site--abc123

  # Point at a different API endpoint
  framer-mcp-server --endpoint https://rpc.example.test/framer

  # Expose only read-only tools
  framer-mcp-server --permissions-file /etc/framer-mcp/read-only.permissions

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr. Do not pipe stdin/stdout manually.
        """,
    )

    parser.add_argument(
        "--url",
        help="Override Framer project URL (takes precedence over FRAMER_URL env var and config files)",
    )
    parser.add_argument(
        "--api-key",
        help="Override Framer API key (visible in process list -- prefer FRAMER_API_KEY env var)",
    )
    parser.add_argument(
        "--endpoint",
        help="Override Framer JSON-RPC endpoint (takes precedence over FRAMER_API_ENDPOINT)",
    )
    parser.add_argument(
        "--log-file",
        default=DEFAULT_LOG_FILE,
        help=f"Log file path (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--permissions-file",
        help="Path to scopes file restricting available tools. "
        "Format: one scope per line (e.g., CMS_VIEW), # for comments. "
        "If not specified, all tools are available.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"framer-mcp-server version {__version__}",
    )
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict:
    """Build the config overrides dict from parsed CLI arguments."""
    config_overrides = {}
    if args.url:
        config_overrides["url"] = args.url
    if args.api_key:
        config_overrides["api_key"] = args.api_key
    if args.endpoint:
        config_overrides["endpoint"] = args.endpoint
    if args.debug:
        config_overrides["debug"] = True
    if args.log_file:
        config_overrides["log_file"] = args.log_file
    if args.permissions_file:
        config_overrides["permissions_file"] = args.permissions_file
    return config_overrides


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args()
    config_overrides = overrides_from_args(args)

    if config_overrides:
        override_keys = [k for k in config_overrides if k != "api_key"]
        print(
            f"Config overrides from CLI: {', '.join(override_keys)}",
            file=sys.stderr,
        )

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
