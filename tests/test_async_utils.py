"""
Tests for async_utils module.

Covers run_sync, run_sync_limited, and init_semaphore.
"""

import asyncio

from framer_mcp_server.core.async_utils import (
    init_semaphore,
    run_sync,
    run_sync_limited,
)


def _sync_add(a: int, b: int) -> int:
    """Simple sync function for testing."""
    return a + b


async def test_run_sync_calls_function():
    assert await run_sync(_sync_add, 3, 4) == 7


async def test_run_sync_passes_kwargs():
    def _kw_func(*, name: str) -> str:
        return f"hello {name}"

    assert await run_sync(_kw_func, name="world") == "hello world"


async def test_init_semaphore_sets_value():
    import framer_mcp_server.core.async_utils as mod

    original = mod._semaphore
    try:
        init_semaphore(5)
        assert mod._semaphore is not None
        assert mod._semaphore._value == 5
    finally:
        mod._semaphore = original


async def test_run_sync_limited_respects_semaphore():
    import framer_mcp_server.core.async_utils as mod

    original = mod._semaphore
    try:
        init_semaphore(2)
        assert await run_sync_limited(_sync_add, 10, 20) == 30
    finally:
        mod._semaphore = original


async def test_run_sync_limited_without_semaphore():
    """run_sync_limited falls back to unbounded when semaphore is None."""
    import framer_mcp_server.core.async_utils as mod

    original = mod._semaphore
    try:
        mod._semaphore = None
        assert await run_sync_limited(_sync_add, 5, 6) == 11
    finally:
        mod._semaphore = original


async def test_run_sync_limited_concurrency_bound():
    """run_sync_limited actually limits concurrency via semaphore."""
    import threading
    import time

    import framer_mcp_server.core.async_utils as mod

    original = mod._semaphore
    try:
        init_semaphore(2)

        max_concurrent = 0
        current_concurrent = 0
        lock = threading.Lock()

        def _track_concurrency(val):
            nonlocal max_concurrent, current_concurrent
            with lock:
                current_concurrent += 1
                max_concurrent = max(max_concurrent, current_concurrent)
            time.sleep(0.05)
            with lock:
                current_concurrent -= 1
            return val

        results = await asyncio.gather(
            *(run_sync_limited(_track_concurrency, i) for i in range(6))
        )
        assert results == list(range(6))
        assert max_concurrent <= 2
    finally:
        mod._semaphore = original
