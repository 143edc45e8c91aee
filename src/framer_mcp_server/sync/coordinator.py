"""Reconcile a remote collection against a caller-supplied item list.

The ``SyncCoordinator`` runs one reconciliation pass as a small state
machine::

    DIFFING -> WRITING -> VERIFYING_COUNTS -> (RESOLVING -> VERIFYING_COUNTS)* -> EMITTING

1. Validates the input and, in diff mode, reads a snapshot of the
   collection to reduce each item to a minimal ChangeSet.
2. Sends every non-empty ChangeSet in a single batched write.
3. Matches requested items to the write response by id/slug.
4. If fewer items resolved than were requested, re-reads the collection
   with linear backoff until everything resolves or attempts run out.
5. Emits one ``SyncRecord`` per requested item in input order.

The write API's response is treated as unreliable: it may be empty,
partial, or complete. Unresolved items are reported, never raised.
Transport errors are not retried here and abort the whole pass.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from ..errors import PreconditionError
from .changeset import build_change_set, full_change_set
from .identity import IdentityIndex
from .metadata import extract_metadata
from .models import (
    ChangeSet,
    DesiredItem,
    RemoteItemSummary,
    SyncMetadata,
    SyncMode,
    SyncPhase,
    SyncRecord,
    SyncReport,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_BACKOFF_SECONDS = 0.35


class ItemStore(Protocol):
    """Async view of one remote collection used by the coordinator."""

    collection_id: str

    async def get_items(self) -> list[RemoteItemSummary]: ...

    async def add_items(
        self, change_sets: list[ChangeSet]
    ) -> list[RemoteItemSummary]: ...


@dataclass
class _Request:
    """Per-input bookkeeping kept for every item, written or not."""

    desired: DesiredItem
    metadata: SyncMetadata
    resolved: RemoteItemSummary | None = None

    @property
    def has_identity(self) -> bool:
        return bool(self.desired.id or self.desired.slug)


class SyncCoordinator:
    """Drive one collection toward a desired item list.

    Args:
        collection: The remote collection to reconcile.
        max_attempts: Upper bound on post-write resolution attempts.
        backoff_seconds: Linear backoff step; attempt N sleeps
            ``backoff_seconds * (N - 1)`` before re-reading.
        sleep: Awaitable sleep, injectable for deterministic tests.
    """

    def __init__(
        self,
        collection: ItemStore,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.collection = collection
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        self.phase: SyncPhase | None = None

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def reconcile(
        self,
        items: Any,
        mode: SyncMode = SyncMode.DIFF_CHANGED_ONLY,
        metadata: dict[str, Any] | None = None,
    ) -> SyncReport:
        """Run a full reconciliation pass.

        Args:
            items: List of raw item objects (``id``, ``slug``, ``draft``,
                ``fieldData`` plus optional bookkeeping keys).
            mode: Diff against the remote snapshot, or send items verbatim.
            metadata: Call-level bookkeeping defaults for every item.

        Returns:
            A ``SyncReport`` whose records follow input order.

        Raises:
            PreconditionError: If ``items`` is not a list of objects. No
                remote call is made in that case.
            TransportError: If any remote read or write fails.
        """
        pending = self._parse_requests(items, metadata)
        mode = SyncMode(mode)

        self._enter(SyncPhase.DIFFING)
        batch = await self._diff(pending, mode)
        skipped = len(pending) - len(batch)

        self._enter(SyncPhase.WRITING)
        written: list[RemoteItemSummary] = []
        if batch:
            written = await self.collection.add_items(batch)
            logger.info(
                "Wrote %d item(s) to collection %s; response returned %d",
                len(batch),
                self.collection.collection_id,
                len(written),
            )

        self._enter(SyncPhase.VERIFYING_COUNTS)
        self._match(pending, IdentityIndex.build(written))

        attempts = 0
        cancelled = False
        if not self._fully_resolved(pending):
            if any(r.has_identity for r in pending if r.resolved is None):
                attempts, cancelled = await self._resolve(pending)
            else:
                logger.debug(
                    "Unresolved items carry no id or slug; skipping resolution"
                )

        self._enter(SyncPhase.EMITTING)
        records = [self._emit(r) for r in pending]
        unresolved = sum(1 for r in records if not r.resolved)
        if unresolved:
            logger.warning(
                "%d of %d item(s) unresolved in collection %s",
                unresolved,
                len(records),
                self.collection.collection_id,
            )

        return SyncReport(
            collection_id=self.collection.collection_id,
            mode=mode,
            records=records,
            written_count=len(batch),
            skipped_count=skipped,
            resolution_attempts=attempts,
            cancelled=cancelled,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _enter(self, phase: SyncPhase) -> None:
        logger.debug(
            "Collection %s: entering %s",
            self.collection.collection_id,
            phase.value,
        )
        self.phase = phase

    @staticmethod
    def _parse_requests(
        items: Any, metadata: dict[str, Any] | None
    ) -> list[_Request]:
        if not isinstance(items, list):
            raise PreconditionError("Items must be a JSON array")
        pending: list[_Request] = []
        for position, raw in enumerate(items):
            if not isinstance(raw, dict):
                raise PreconditionError(
                    f"Item at index {position} must be a JSON object"
                )
            pending.append(
                _Request(
                    desired=DesiredItem.from_raw(raw),
                    metadata=extract_metadata(raw, metadata),
                )
            )
        return pending

    async def _diff(
        self, pending: list[_Request], mode: SyncMode
    ) -> list[ChangeSet]:
        """Build the write batch; no-op items are pre-resolved to their match."""
        if mode is SyncMode.REPLACE_FULL:
            return [full_change_set(r.desired) for r in pending]

        snapshot = IdentityIndex.build(await self.collection.get_items())
        batch: list[ChangeSet] = []
        for request in pending:
            existing = snapshot.by_id.get(request.desired.id or "") or (
                snapshot.by_slug_lower.get(request.desired.slug.lower())
                if request.desired.slug
                else None
            )
            change_set = build_change_set(request.desired, existing)
            if change_set is None:
                request.resolved = existing
            else:
                batch.append(change_set)
        logger.debug(
            "Diffed %d item(s) against %d remote item(s): %d to write",
            len(pending),
            len(snapshot),
            len(batch),
        )
        return batch

    @staticmethod
    def _match(pending: list[_Request], index: IdentityIndex) -> int:
        """Resolve still-unresolved requests against ``index``.

        Returns:
            Number of requests newly resolved.
        """
        found = 0
        for request in pending:
            if request.resolved is not None:
                continue
            match = index.resolve(request.desired.id, request.desired.slug)
            if match is not None:
                request.resolved = match
                found += 1
        return found

    @staticmethod
    def _fully_resolved(pending: list[_Request]) -> bool:
        resolved = sum(1 for r in pending if r.resolved is not None)
        return resolved >= len(pending)

    async def _resolve(self, pending: list[_Request]) -> tuple[int, bool]:
        """Re-read the collection until every request resolves.

        Returns:
            ``(attempts_made, cancelled)``. Cancellation ends the loop early
            so the records computed so far are still emitted.
        """
        attempt = 0
        try:
            for attempt in range(1, self.max_attempts + 1):
                self._enter(SyncPhase.RESOLVING)
                if attempt > 1:
                    await self._sleep(self.backoff_seconds * (attempt - 1))
                snapshot = await self.collection.get_items()
                found = self._match(pending, IdentityIndex.build(snapshot))
                logger.info(
                    "Resolution attempt %d/%d for collection %s: %d newly resolved",
                    attempt,
                    self.max_attempts,
                    self.collection.collection_id,
                    found,
                )
                self._enter(SyncPhase.VERIFYING_COUNTS)
                if self._fully_resolved(pending):
                    break
        except asyncio.CancelledError:
            logger.warning(
                "Resolution cancelled on attempt %d for collection %s; "
                "emitting partial results",
                attempt,
                self.collection.collection_id,
            )
            return attempt, True
        return attempt, False

    @staticmethod
    def _emit(request: _Request) -> SyncRecord:
        meta = request.metadata
        resolved = request.resolved
        framer_item_id = (
            (resolved.id if resolved else None)
            or request.desired.id
            or meta.framer_item_id
            or ""
        )
        has_framer_id = (
            meta.has_framer_id
            if meta.has_framer_id is not None
            else bool(framer_item_id)
        )
        return SyncRecord(
            notionPageId=meta.notion_page_id,
            framerItemId=framer_item_id,
            lastSyncHash=meta.last_sync_hash,
            contentHash=meta.content_hash,
            hasFramerId=has_framer_id,
            isChanged=meta.is_changed if meta.is_changed is not None else True,
            name=meta.name
            or request.desired.slug
            or (resolved.slug if resolved else None)
            or "",
            resolved=resolved is not None,
        )
