"""Scoped API sessions and per-collection adapters.

The Framer API requires an explicit disconnect for every connection, so
sessions are only handed out through ``open_session()``, which releases
the connection on every exit path: normal return, error, or cancellation.

All blocking client calls run on worker threads through
``run_sync_limited`` and are therefore awaitable and cancellable.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from ..errors import CollectionNotFoundError, PreconditionError, TransportError
from ..sync.models import ChangeSet, FieldDefinition, RemoteItemSummary
from .async_utils import run_sync, run_sync_limited
from .client import FramerClient

logger = logging.getLogger(__name__)


class FramerSession:
    """An open API session bound to one project.

    Attributes:
        client: The underlying blocking client.
        session_id: Id returned by ``connect``.
        project_url: Project URL (or id) the session was opened for.
    """

    def __init__(
        self, client: FramerClient, session_id: str, project_url: str
    ) -> None:
        self.client = client
        self.session_id = session_id
        self.project_url = project_url
        self.closed = False

    async def call(self, method_name: str, *args: Any) -> Any:
        """Invoke ``client.<method_name>(session_id, *args)`` off the event loop."""
        if self.closed:
            raise RuntimeError("Framer session is closed")
        method = getattr(self.client, method_name)
        return await run_sync_limited(method, self.session_id, *args)

    async def get_collection(self, collection_id: str) -> RemoteCollection:
        """Look up a collection.

        Raises:
            CollectionNotFoundError: If the collection does not exist.
        """
        info = await self.call("get_collection", collection_id)
        if not info:
            raise CollectionNotFoundError(collection_id)
        return RemoteCollection(self, collection_id, info)

    async def close(self) -> None:
        """Disconnect. Failures are logged so they never mask the caller's error."""
        if self.closed:
            return
        self.closed = True
        try:
            await run_sync(self.client.disconnect, self.session_id)
        except TransportError as e:
            logger.warning(
                "Failed to disconnect Framer session %s: %s",
                self.session_id,
                e,
            )


class RemoteCollection:
    """Async adapter for one collection, used as the coordinator's store."""

    def __init__(
        self, session: FramerSession, collection_id: str, info: dict
    ) -> None:
        self.session = session
        self.collection_id = collection_id
        self.info = info

    @property
    def name(self) -> str:
        return str(self.info.get("name") or "")

    async def get_raw_items(self) -> list[dict]:
        items = await self.session.call(
            "get_collection_items", self.collection_id
        )
        return [item for item in items if isinstance(item, dict)]

    async def get_items(self) -> list[RemoteItemSummary]:
        return [
            RemoteItemSummary.from_raw(item)
            for item in await self.get_raw_items()
        ]

    async def add_items(
        self, change_sets: list[ChangeSet]
    ) -> list[RemoteItemSummary]:
        """Send one batched upsert and normalize whatever comes back."""
        result = await self.session.call(
            "add_collection_items",
            self.collection_id,
            [change_set.to_payload() for change_set in change_sets],
        )
        if not isinstance(result, list):
            return []
        return [RemoteItemSummary.from_raw(item) for item in result]

    async def remove_items(self, item_ids: list[str]) -> None:
        await self.session.call(
            "remove_collection_items", self.collection_id, item_ids
        )

    async def get_raw_fields(self) -> list[dict]:
        fields = await self.session.call(
            "get_collection_fields", self.collection_id
        )
        return [field for field in fields if isinstance(field, dict)]

    async def get_fields(self) -> list[FieldDefinition]:
        return [
            FieldDefinition.from_raw(field)
            for field in await self.get_raw_fields()
        ]

    async def add_fields(self, fields: list[dict]) -> list[dict]:
        created = await self.session.call(
            "add_collection_fields", self.collection_id, fields
        )
        return created if isinstance(created, list) else []


@asynccontextmanager
async def open_session(
    client: FramerClient, project_url: str | None = None
) -> AsyncIterator[FramerSession]:
    """Connect to a project for the duration of the ``async with`` block.

    Args:
        client: Configured FramerClient.
        project_url: Per-call override of the configured project URL.

    Raises:
        PreconditionError: If the resolved project URL is blank.
        TransportError: If the connection cannot be opened.
    """
    url = (project_url or client.config.framer_url or "").strip()
    if not url:
        raise PreconditionError(
            "Framer URL is empty. Set it in configuration or pass project_url."
        )

    session_id = await run_sync_limited(client.connect, url)
    logger.debug("Opened Framer session %s for %s", session_id, url)
    session = FramerSession(client, session_id, url)
    try:
        yield session
    finally:
        await session.close()
