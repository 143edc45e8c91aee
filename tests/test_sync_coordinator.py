"""Tests for the SyncCoordinator reconciliation pass.

Covers:
- Create, no-op, under-resolved and never-resolved scenarios
- Output ordering independent of write response order
- Resolution attempt bound, early stop, and linear backoff delays
- Precondition failures before any remote call
- Transport error propagation
- Cancellation during resolution emitting partial results
- Replace mode skipping the diff read
- Metadata echo and hasFramerId overrides
"""

from __future__ import annotations

import asyncio

import pytest

from framer_mcp_server.errors import PreconditionError, TransportError
from framer_mcp_server.sync.coordinator import SyncCoordinator
from framer_mcp_server.sync.models import SyncMode, SyncPhase


def _coordinator(collection, sleep, **kwargs):
    return SyncCoordinator(collection, sleep=sleep, **kwargs)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


async def test_create_into_empty_collection(fake_collection_factory, recording_sleep):
    collection = fake_collection_factory(
        [],
        write_response=[{"id": "1", "slug": "a", "fieldData": {"title": "X"}}],
    )
    report = await _coordinator(collection, recording_sleep).reconcile(
        [{"slug": "a", "fieldData": {"title": "X"}}]
    )

    assert collection.writes == [[{"slug": "a", "fieldData": {"title": "X"}}]]
    [record] = report.records
    assert record.framer_item_id == "1"
    assert record.has_framer_id is True
    assert record.name == "a"
    assert record.resolved is True
    assert report.resolution_attempts == 0


async def test_identical_item_skipped_but_emitted(fake_collection_factory, recording_sleep):
    collection = fake_collection_factory(
        [{"id": "1", "fieldData": {"title": "X"}}]
    )
    report = await _coordinator(collection, recording_sleep).reconcile(
        [{"id": "1", "fieldData": {"title": "X"}}]
    )

    assert collection.writes == []
    assert report.written_count == 0
    assert report.skipped_count == 1
    [record] = report.records
    assert record.framer_item_id == "1"
    assert record.resolved is True
    assert collection.reads == 1


async def test_empty_write_response_resolved_by_refetch(
    fake_collection_factory, recording_sleep
):
    collection = fake_collection_factory([], write_response=[])
    report = await _coordinator(collection, recording_sleep).reconcile(
        [
            {"slug": "a", "fieldData": {"title": "A"}},
            {"slug": "b", "fieldData": {"title": "B"}},
        ]
    )

    assert report.resolution_attempts == 1
    assert recording_sleep.calls == []
    assert [r.resolved for r in report.records] == [True, True]
    assert all(r.framer_item_id.startswith("gen-") for r in report.records)
    assert report.unresolved == []


async def test_never_resolved_items_reported_not_raised(
    fake_collection_factory, recording_sleep
):
    collection = fake_collection_factory(
        [], write_response=[], apply_writes=False
    )
    report = await _coordinator(collection, recording_sleep).reconcile(
        [
            {"slug": "a", "fieldData": {"title": "A"}},
            {"slug": "b", "fieldData": {"title": "B"}},
        ]
    )

    assert report.resolution_attempts == 4
    # one diff read plus four resolution reads
    assert collection.reads == 5
    for record in report.records:
        assert record.resolved is False
        assert record.has_framer_id is False
        assert record.framer_item_id == ""
    assert len(report.unresolved) == 2


async def test_partial_write_response_resolves_rest(
    fake_collection_factory, recording_sleep
):
    def first_only(batch):
        return [{"id": "w-1", "slug": batch[0]["slug"]}]

    collection = fake_collection_factory([], write_response=first_only)
    report = await _coordinator(collection, recording_sleep).reconcile(
        [
            {"slug": "a", "fieldData": {}},
            {"slug": "b", "fieldData": {}},
        ]
    )

    assert report.records[0].framer_item_id == "w-1"
    assert report.records[1].resolved is True
    assert report.resolution_attempts == 1


# ---------------------------------------------------------------------------
# Ordering and resolution bounds
# ---------------------------------------------------------------------------


async def test_output_order_matches_input(fake_collection_factory, recording_sleep):
    def reversed_echo(batch):
        return [
            {"id": f"id-{p['slug']}", "slug": p["slug"]} for p in reversed(batch)
        ]

    collection = fake_collection_factory([], write_response=reversed_echo)
    slugs = ["c", "a", "b"]
    report = await _coordinator(collection, recording_sleep).reconcile(
        [{"slug": s, "fieldData": {}} for s in slugs]
    )

    assert [r.framer_item_id for r in report.records] == ["id-c", "id-a", "id-b"]
    assert [r.name for r in report.records] == slugs


async def test_backoff_is_linear(fake_collection_factory, recording_sleep):
    collection = fake_collection_factory(
        [], write_response=[], apply_writes=False
    )
    await _coordinator(collection, recording_sleep).reconcile(
        [{"slug": "a", "fieldData": {}}]
    )

    assert recording_sleep.calls == pytest.approx([0.35, 0.7, 1.05])


async def test_custom_attempts_and_backoff(fake_collection_factory, recording_sleep):
    collection = fake_collection_factory(
        [], write_response=[], apply_writes=False
    )
    report = await _coordinator(
        collection, recording_sleep, max_attempts=2, backoff_seconds=1.0
    ).reconcile([{"slug": "a", "fieldData": {}}])

    assert report.resolution_attempts == 2
    assert recording_sleep.calls == [1.0]


async def test_stops_once_everything_resolves(fake_collection_factory, recording_sleep):
    collection = fake_collection_factory([], write_response=[], visible_after=1)
    report = await _coordinator(collection, recording_sleep).reconcile(
        [{"slug": "a", "fieldData": {}}]
    )

    assert report.resolution_attempts == 2
    assert recording_sleep.calls == pytest.approx([0.35])
    assert report.records[0].resolved is True


async def test_items_without_identity_skip_resolution(
    fake_collection_factory, recording_sleep
):
    collection = fake_collection_factory([], write_response=[])
    report = await _coordinator(collection, recording_sleep).reconcile(
        [{"fieldData": {"title": "anonymous"}}]
    )

    assert report.resolution_attempts == 0
    assert collection.reads == 1
    assert report.records[0].framer_item_id == ""
    assert report.records[0].has_framer_id is False


async def test_unresolved_item_keeps_requested_id(
    fake_collection_factory, recording_sleep
):
    collection = fake_collection_factory(
        [], write_response=[], apply_writes=False
    )
    report = await _coordinator(collection, recording_sleep).reconcile(
        [{"id": "x9", "fieldData": {"title": "T"}}]
    )

    [record] = report.records
    assert record.framer_item_id == "x9"
    assert record.resolved is False


async def test_noop_item_does_not_trigger_resolution(
    fake_collection_factory, recording_sleep
):
    collection = fake_collection_factory(
        [{"id": "1", "slug": "a", "fieldData": {"title": "A"}}],
        write_response=[{"id": "2", "slug": "b"}],
    )
    report = await _coordinator(collection, recording_sleep).reconcile(
        [
            {"slug": "a", "fieldData": {"title": "A"}},
            {"slug": "b", "fieldData": {"title": "B"}},
        ]
    )

    assert report.written_count == 1
    assert report.skipped_count == 1
    assert [r.framer_item_id for r in report.records] == ["1", "2"]
    assert report.resolution_attempts == 0


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("items", [None, {"slug": "a"}, "[]", 3])
async def test_non_list_input_rejected_before_remote_calls(
    items, fake_collection_factory, recording_sleep
):
    collection = fake_collection_factory([])
    with pytest.raises(PreconditionError):
        await _coordinator(collection, recording_sleep).reconcile(items)
    assert collection.reads == 0
    assert collection.writes == []


async def test_non_object_entry_rejected(fake_collection_factory, recording_sleep):
    collection = fake_collection_factory([])
    with pytest.raises(PreconditionError, match="index 1"):
        await _coordinator(collection, recording_sleep).reconcile(
            [{"slug": "a"}, "b"]
        )
    assert collection.reads == 0


async def test_write_failure_propagates(fake_collection_factory, recording_sleep):
    collection = fake_collection_factory([])

    async def failing_add(change_sets):
        raise TransportError("write failed")

    collection.add_items = failing_add
    with pytest.raises(TransportError, match="write failed"):
        await _coordinator(collection, recording_sleep).reconcile(
            [{"slug": "a", "fieldData": {}}]
        )


async def test_refetch_failure_propagates(fake_collection_factory, recording_sleep):
    collection = fake_collection_factory([], write_response=[])
    original_get = collection.get_items

    async def flaky_get():
        if collection.writes:
            raise TransportError("read failed")
        return await original_get()

    collection.get_items = flaky_get
    with pytest.raises(TransportError, match="read failed"):
        await _coordinator(collection, recording_sleep).reconcile(
            [{"slug": "a", "fieldData": {}}]
        )


def test_max_attempts_must_be_positive(fake_collection_factory):
    with pytest.raises(ValueError):
        SyncCoordinator(fake_collection_factory([]), max_attempts=0)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


async def test_cancellation_during_backoff_emits_partial(fake_collection_factory):
    async def cancelled_sleep(seconds):
        raise asyncio.CancelledError

    def first_only(batch):
        return [{"id": "w-1", "slug": batch[0]["slug"]}]

    collection = fake_collection_factory(
        [], write_response=first_only, apply_writes=False
    )
    coordinator = SyncCoordinator(collection, sleep=cancelled_sleep)
    report = await coordinator.reconcile(
        [{"slug": "a", "fieldData": {}}, {"slug": "b", "fieldData": {}}]
    )

    assert report.cancelled is True
    assert report.resolution_attempts == 2
    assert [r.resolved for r in report.records] == [True, False]
    assert coordinator.phase is SyncPhase.EMITTING


# ---------------------------------------------------------------------------
# Modes and metadata
# ---------------------------------------------------------------------------


async def test_replace_mode_sends_full_items_without_diff_read(
    fake_collection_factory, recording_sleep
):
    collection = fake_collection_factory(
        [{"id": "1", "fieldData": {"title": "X"}}]
    )
    report = await _coordinator(collection, recording_sleep).reconcile(
        [{"id": "1", "fieldData": {"title": "X"}}], SyncMode.REPLACE_FULL
    )

    assert collection.writes == [[{"id": "1", "fieldData": {"title": "X"}}]]
    assert collection.reads == 0
    assert report.mode is SyncMode.REPLACE_FULL
    assert report.records[0].resolved is True


async def test_mode_accepts_wire_string(fake_collection_factory, recording_sleep):
    collection = fake_collection_factory([])
    report = await _coordinator(collection, recording_sleep).reconcile(
        [], "replaceFull"
    )
    assert report.mode is SyncMode.REPLACE_FULL
    assert report.records == []
    assert collection.writes == []


async def test_metadata_echoed_on_records(fake_collection_factory, recording_sleep):
    collection = fake_collection_factory([])
    report = await _coordinator(collection, recording_sleep).reconcile(
        [
            {
                "slug": "a",
                "fieldData": {},
                "contentHash": "c1",
                "lastSyncHash": "l1",
                "title": "Post A",
                "isChanged": False,
            }
        ],
        metadata={"id": "notion-1"},
    )

    [record] = report.records
    assert record.notion_page_id == "notion-1"
    assert record.content_hash == "c1"
    assert record.last_sync_hash == "l1"
    assert record.name == "Post A"
    assert record.is_changed is False


async def test_has_framer_id_override(fake_collection_factory, recording_sleep):
    collection = fake_collection_factory([], write_response=[])
    report = await _coordinator(collection, recording_sleep).reconcile(
        [{"fieldData": {}, "hasFramerId": True}]
    )
    assert report.records[0].framer_item_id == ""
    assert report.records[0].has_framer_id is True


async def test_phase_ends_in_emitting(fake_collection_factory, recording_sleep):
    coordinator = _coordinator(fake_collection_factory([]), recording_sleep)
    assert coordinator.phase is None
    await coordinator.reconcile([{"slug": "a", "fieldData": {}}])
    assert coordinator.phase is SyncPhase.EMITTING
