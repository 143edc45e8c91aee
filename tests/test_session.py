"""Tests for scoped API sessions and the RemoteCollection adapter.

Covers:
- open_session connect/disconnect pairing on success, error, and cancellation
- Project URL override and blank URL precondition
- Disconnect failures logged, never raised
- RemoteCollection lookups, normalization, and write payloads
"""

import asyncio
import logging

import pytest

from framer_mcp_server.core.session import open_session
from framer_mcp_server.errors import (
    CollectionNotFoundError,
    PreconditionError,
    TransportError,
)
from framer_mcp_server.sync.models import ChangeSet


async def test_open_session_connects_and_disconnects(mock_framer_client):
    async with open_session(mock_framer_client) as session:
        assert session.session_id == "sess-1"
        assert session.project_url == mock_framer_client.config.framer_url

    mock_framer_client.connect.assert_called_once_with(
        mock_framer_client.config.framer_url
    )
    mock_framer_client.disconnect.assert_called_once_with("sess-1")
    assert session.closed


async def test_open_session_uses_override(mock_framer_client):
    async with open_session(mock_framer_client, "  https://other  ") as session:
        assert session.project_url == "https://other"
    mock_framer_client.connect.assert_called_once_with("https://other")


async def test_open_session_blank_url(mock_framer_client):
    mock_framer_client.config.framer_url = ""
    with pytest.raises(PreconditionError):
        async with open_session(mock_framer_client, "   "):
            pass
    mock_framer_client.connect.assert_not_called()


async def test_disconnect_on_error(mock_framer_client):
    with pytest.raises(RuntimeError, match="boom"):
        async with open_session(mock_framer_client):
            raise RuntimeError("boom")
    mock_framer_client.disconnect.assert_called_once_with("sess-1")


async def test_disconnect_on_cancellation(mock_framer_client):
    with pytest.raises(asyncio.CancelledError):
        async with open_session(mock_framer_client):
            raise asyncio.CancelledError
    mock_framer_client.disconnect.assert_called_once_with("sess-1")


async def test_disconnect_failure_logged(mock_framer_client, caplog):
    mock_framer_client.disconnect.side_effect = TransportError("gone")
    with caplog.at_level(logging.WARNING):
        async with open_session(mock_framer_client):
            pass
    assert "Failed to disconnect" in caplog.text


async def test_connect_failure_propagates(mock_framer_client):
    mock_framer_client.connect.side_effect = TransportError("refused")
    with pytest.raises(TransportError):
        async with open_session(mock_framer_client):
            pass
    mock_framer_client.disconnect.assert_not_called()


async def test_call_passes_session_id(mock_framer_client):
    mock_framer_client.get_project_info.return_value = {"name": "Site"}
    async with open_session(mock_framer_client) as session:
        assert await session.call("get_project_info") == {"name": "Site"}
    mock_framer_client.get_project_info.assert_called_once_with("sess-1")


async def test_call_after_close_fails(mock_framer_client):
    async with open_session(mock_framer_client) as session:
        pass
    with pytest.raises(RuntimeError, match="closed"):
        await session.call("get_project_info")


class TestRemoteCollection:
    async def test_missing_collection(self, mock_framer_client):
        mock_framer_client.get_collection.return_value = None
        async with open_session(mock_framer_client) as session:
            with pytest.raises(CollectionNotFoundError, match="col-x"):
                await session.get_collection("col-x")

    async def test_items_normalized(self, mock_framer_client):
        mock_framer_client.get_collection.return_value = {"id": "c", "name": "Posts"}
        mock_framer_client.get_collection_items.return_value = [
            {"id": "1", "slug": "a", "fieldData": {"t": 1}},
            "junk",
        ]
        async with open_session(mock_framer_client) as session:
            collection = await session.get_collection("c")
            items = await collection.get_items()

        assert collection.name == "Posts"
        assert collection.collection_id == "c"
        assert [(i.id, i.slug) for i in items] == [("1", "a")]

    async def test_add_items_sends_payloads(self, mock_framer_client):
        mock_framer_client.get_collection.return_value = {"id": "c"}
        mock_framer_client.add_collection_items.return_value = [{"id": "9", "slug": "a"}]
        async with open_session(mock_framer_client) as session:
            collection = await session.get_collection("c")
            written = await collection.add_items([ChangeSet(slug="a")])

        mock_framer_client.add_collection_items.assert_called_once_with(
            "sess-1", "c", [{"slug": "a"}]
        )
        assert [w.id for w in written] == ["9"]

    async def test_add_items_tolerates_non_list_response(self, mock_framer_client):
        mock_framer_client.get_collection.return_value = {"id": "c"}
        mock_framer_client.add_collection_items.return_value = None
        async with open_session(mock_framer_client) as session:
            collection = await session.get_collection("c")
            assert await collection.add_items([ChangeSet(slug="a")]) == []

    async def test_fields(self, mock_framer_client):
        mock_framer_client.get_collection.return_value = {"id": "c"}
        mock_framer_client.get_collection_fields.return_value = [
            {"id": "f", "name": "Status", "type": "enum", "cases": []}
        ]
        async with open_session(mock_framer_client) as session:
            collection = await session.get_collection("c")
            fields = await collection.get_fields()
        assert fields[0].name == "Status"
