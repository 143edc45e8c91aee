"""Run blocking FramerClient calls from async tool handlers.

Every API request goes through ``run_sync_limited`` so one MCP session
cannot flood the Framer API. Disconnects use the unbounded ``run_sync``:
a session must be able to close even while the request limit is saturated.
"""

import asyncio
import logging
from typing import Any, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

# Set by the server lifespan; None means "no limit" (tests, scripts)
_semaphore: asyncio.Semaphore | None = None


def init_semaphore(max_parallel: int = 5) -> None:
    """Cap concurrent Framer API requests at ``max_parallel``."""
    global _semaphore
    _semaphore = asyncio.Semaphore(max_parallel)
    logger.info("Framer request limit set to %d", max_parallel)


async def run_sync(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call ``func`` on a worker thread, ignoring the request limit.

    Example:
        await run_sync(client.disconnect, session_id)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def run_sync_limited(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Call ``func`` on a worker thread once a request slot is free.

    Example:
        items = await run_sync_limited(client.get_collection_items, sid, cid)
    """
    semaphore = _semaphore
    if semaphore is None:
        return await asyncio.to_thread(func, *args, **kwargs)
    if semaphore.locked():
        logger.debug(
            "Request limit reached, %s waiting for a slot",
            getattr(func, "__name__", func),
        )
    async with semaphore:
        return await asyncio.to_thread(func, *args, **kwargs)
