"""Core Framer client functionality shared by the MCP server and its tools."""

from .async_utils import run_sync, run_sync_limited
from .client import FramerClient
from .session import FramerSession, RemoteCollection, open_session

__all__ = [
    "FramerClient",
    "FramerSession",
    "RemoteCollection",
    "open_session",
    "run_sync",
    "run_sync_limited",
]
