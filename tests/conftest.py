"""Shared pytest fixtures for framer-mcp-server tests."""

from unittest.mock import MagicMock

import pytest

from framer_mcp_server.config import Config
from framer_mcp_server.sync.models import RemoteItemSummary


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live Framer project",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live Framer project"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        framer_url="https://framer.com/projects/Site--abc123",
        api_key="fr_test_key",
        api_endpoint="https://api.framer.test/rpc",
    )


@pytest.fixture
def mock_framer_client(mock_config):
    """Create a mock FramerClient bound to mock_config."""
    from framer_mcp_server.core.client import FramerClient

    client = MagicMock(spec=FramerClient)
    client.config = mock_config
    client.connect.return_value = "sess-1"
    return client


class FakeCollection:
    """In-memory ItemStore for driving the SyncCoordinator.

    Args:
        items: Raw remote items visible to reads before any write.
        write_response: What ``add_items`` returns. ``None`` echoes the
            written change sets back with generated ids; a list is returned
            as-is; a callable receives the batch and returns the response.
        apply_writes: Whether writes become visible to later reads.
        visible_after: Number of post-write reads before writes appear.
    """

    def __init__(
        self,
        items=None,
        *,
        write_response=None,
        apply_writes=True,
        visible_after=0,
        collection_id="col-1",
    ):
        self.collection_id = collection_id
        self.items = [dict(i) for i in (items or [])]
        self.write_response = write_response
        self.apply_writes = apply_writes
        self.visible_after = visible_after
        self.reads = 0
        self.writes: list[list[dict]] = []
        self._pending: list[dict] = []
        self._next_id = 100

    def _store(self, payload):
        item_id = payload.get("id")
        if not item_id:
            item_id = f"gen-{self._next_id}"
            self._next_id += 1
        for existing in self.items:
            if existing.get("id") == item_id:
                existing.update(
                    {k: v for k, v in payload.items() if k != "fieldData"}
                )
                existing.setdefault("fieldData", {}).update(
                    payload.get("fieldData") or {}
                )
                return existing
        stored = {"fieldData": {}, **payload, "id": item_id}
        self._pending.append(stored)
        return stored

    async def get_items(self):
        self.reads += 1
        if self._pending:
            if self.visible_after > 0:
                self.visible_after -= 1
            else:
                self.items.extend(self._pending)
                self._pending = []
        return [RemoteItemSummary.from_raw(i) for i in self.items]

    async def add_items(self, change_sets):
        batch = [c.to_payload() for c in change_sets]
        self.writes.append(batch)
        stored = [self._store(p) for p in batch] if self.apply_writes else []
        if callable(self.write_response):
            response = self.write_response(batch)
        elif self.write_response is not None:
            response = self.write_response
        else:
            response = stored
        return [RemoteItemSummary.from_raw(i) for i in response]


@pytest.fixture
def fake_collection_factory():
    """Factory fixture for FakeCollection instances."""
    return FakeCollection


class RecordingSleep:
    """Awaitable sleep stand-in that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
