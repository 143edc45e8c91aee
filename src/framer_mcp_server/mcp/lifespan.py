"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

from ..config import load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import build_config, to_fallbacks
from ..core.async_utils import init_semaphore
from ..core.client import FramerClient
from ..core.session import open_session

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env file (so values are available for env var lookups and YAML interpolation)
    - Load YAML config file if present (as fallback values)
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Create FramerClient and validate it by opening a session and
      reading project info
    - Fail fast if Framer is unreachable or rejects the key

    Args:
        config_overrides: Optional dict with config values from CLI (url, api_key, endpoint, debug)

    Yields:
        Dict with 'client' key containing the initialized FramerClient

    Raises:
        RuntimeError: If configuration is invalid or the Framer connection fails.
    """
    logger.info("MCP server starting...")
    _stderr_print("Framer MCP Server starting...")

    try:
        # .env first so ${VAR} interpolation in YAML can use its values
        load_dotenv()

        yaml_fallbacks: dict[str, Any] | None = None
        config_files = discover_config_files()
        sources = []

        if config_files:
            raw = load_hierarchical_config()
            yaml_fallbacks = to_fallbacks(build_config(raw))
            sources.append(f"config file: {config_files[0]}")

        overrides = config_overrides or {}
        config = load_config(
            url=overrides.get("url"),
            api_key=overrides.get("api_key"),
            endpoint=overrides.get("endpoint"),
            debug=overrides.get("debug", False),
            yaml_fallbacks=yaml_fallbacks,
        )

        if overrides:
            sources.append("CLI arguments")
        sources.append("environment variables")
        source_desc = ", ".join(sources)
        logger.info("Configuration loaded from: %s", source_desc)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
        logger.info("Framer project: %s", config.framer_url)
        _stderr_print(f"  Framer project: {config.framer_url}")
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print("  Ensure FRAMER_URL and FRAMER_API_KEY are set.")
        raise RuntimeError(
            f"Configuration error: {e}. Ensure FRAMER_URL and FRAMER_API_KEY are set."
        ) from e

    logger.info("Validating Framer connection...")
    _stderr_print("  Validating Framer connection...")
    try:
        init_semaphore(config.max_parallel_requests)
        client = FramerClient(config)
        async with open_session(client) as session:
            info = await session.call("get_project_info")
        name = info.get("name") if isinstance(info, dict) else None
        logger.info("Connected to Framer project %s", name or config.framer_url)
        _stderr_print(f"  Connected to Framer project {name or config.framer_url}")
        _stderr_print(
            f"  Parallel requests: {config.max_parallel_requests}"
        )
        _stderr_print("Server ready. Waiting for MCP client connection...")
    except Exception as e:
        logger.error("Failed to connect to Framer: %s", e)
        _stderr_print("ERROR: Framer connection failed.")
        _stderr_print(f"  {e}")
        _stderr_print("  Check FRAMER_URL, FRAMER_API_KEY, FRAMER_API_ENDPOINT.")
        raise RuntimeError(
            f"Framer connection failed: {e}. Check FRAMER_URL, FRAMER_API_KEY, FRAMER_API_ENDPOINT."
        ) from e

    yield {"client": client}

    logger.info("MCP server shutting down")
    _stderr_print("Framer MCP Server shutting down.")
