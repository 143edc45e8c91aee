"""Project-level tool handlers for MCP server.

This module implements project tools: project info, change tracking,
publishing, and deployment. Each handler opens one API session for the
call and releases it on exit.
"""

import logging

import mcp.types as types

from ...core.client import FramerClient
from ...core.session import open_session
from ...validators import optional_version, require_string
from .errors import build_error_response, build_json_result
from .registry import ToolSpec

logger = logging.getLogger(__name__)

_PROJECT_URL_PROPERTY = {
    "type": "string",
    "description": "Override the configured Framer project URL for this call only (optional)",
}


def _schema(properties: dict | None = None, required: list | None = None) -> dict:
    return {
        "type": "object",
        "properties": {**(properties or {}), "project_url": _PROJECT_URL_PROPERTY},
        "required": required or [],
    }


# Tool definitions for list_tools()
PROJECT_TOOLS = [
    types.Tool(
        name="get_project_info",
        description="Get project details from Framer.",
        inputSchema=_schema(),
    ),
    types.Tool(
        name="get_changed_paths",
        description="Get added, removed, and modified paths since the last publish.",
        inputSchema=_schema(),
    ),
    types.Tool(
        name="get_change_contributors",
        description="Get contributors who changed content between two project versions. Leave versions at 0 (or omit) for the default range.",
        inputSchema=_schema(
            {
                "from_version": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Start version (optional, 0 = default)",
                },
                "to_version": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "End version (optional, 0 = default)",
                },
            }
        ),
    ),
    types.Tool(
        name="publish",
        description="Publish a new Framer preview deployment. Returns the deployment, whose ID can be passed to deploy.",
        inputSchema=_schema(),
    ),
    types.Tool(
        name="deploy",
        description="Promote a deployment to production.",
        inputSchema=_schema(
            {
                "deployment_id": {
                    "type": "string",
                    "description": "Deployment ID to promote (often from publish output)",
                }
            },
            ["deployment_id"],
        ),
    ),
    types.Tool(
        name="publish_to_production",
        description="Create a preview deployment and immediately promote it to production.",
        inputSchema=_schema(),
    ),
]


async def _handle_get_project_info(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    async with open_session(client, args.get("project_url")) as session:
        result = await session.call("get_project_info")
    return build_json_result("getProjectInfo", result)


async def _handle_get_changed_paths(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    async with open_session(client, args.get("project_url")) as session:
        result = await session.call("get_changed_paths")
    return build_json_result("getChangedPaths", result)


async def _handle_get_change_contributors(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    """Handle get_change_contributors; 0 versions mean "use default"."""
    from_version = optional_version(args.get("from_version"), "from_version")
    to_version = optional_version(args.get("to_version"), "to_version")

    async with open_session(client, args.get("project_url")) as session:
        result = await session.call(
            "get_change_contributors", from_version, to_version
        )
    return build_json_result("getChangeContributors", result)


async def _handle_publish(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    async with open_session(client, args.get("project_url")) as session:
        result = await session.call("publish")
    return build_json_result("publish", result)


async def _handle_deploy(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    deployment_id = require_string(args.get("deployment_id"), "Deployment ID")

    async with open_session(client, args.get("project_url")) as session:
        result = await session.call("deploy", deployment_id)
    return build_json_result("deploy", result)


def _deployment_id(publish_result: object) -> str:
    """Extract ``deployment.id`` from a publish result, or ""."""
    if not isinstance(publish_result, dict):
        return ""
    deployment = publish_result.get("deployment")
    if isinstance(deployment, dict) and deployment.get("id"):
        return str(deployment["id"])
    return ""


async def _handle_publish_to_production(
    client: FramerClient, args: dict
) -> types.CallToolResult:
    """Handle publish_to_production: publish, then deploy the new deployment."""
    async with open_session(client, args.get("project_url")) as session:
        publish_result = await session.call("publish")
        deployment_id = _deployment_id(publish_result)
        if not deployment_id:
            return build_error_response(
                "server_error",
                "Publish did not return a deployment ID, cannot deploy to production",
                "Run publish and deploy separately, passing the deployment ID explicitly.",
            )
        logger.info("Promoting deployment %s to production", deployment_id)
        deploy_result = await session.call("deploy", deployment_id)

    return build_json_result(
        "publishToProduction",
        {"publish": publish_result, "deploy": deploy_result},
    )


# ToolSpec list for registry-based dispatch
PROJECT_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=PROJECT_TOOLS[0],
        permissions=frozenset({"PROJECT_VIEW"}),
        handler=_handle_get_project_info,
    ),
    ToolSpec(
        tool=PROJECT_TOOLS[1],
        permissions=frozenset({"PROJECT_VIEW"}),
        handler=_handle_get_changed_paths,
    ),
    ToolSpec(
        tool=PROJECT_TOOLS[2],
        permissions=frozenset({"PROJECT_VIEW"}),
        handler=_handle_get_change_contributors,
    ),
    ToolSpec(
        tool=PROJECT_TOOLS[3],
        permissions=frozenset({"PUBLISH"}),
        handler=_handle_publish,
        domain="deployment",
    ),
    ToolSpec(
        tool=PROJECT_TOOLS[4],
        permissions=frozenset({"PUBLISH"}),
        handler=_handle_deploy,
        domain="deployment",
    ),
    ToolSpec(
        tool=PROJECT_TOOLS[5],
        permissions=frozenset({"PUBLISH"}),
        handler=_handle_publish_to_production,
        domain="deployment",
    ),
]
