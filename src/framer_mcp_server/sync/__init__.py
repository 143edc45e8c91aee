"""Collection item reconciliation engine.

Public API for making a Framer CMS collection match a caller-supplied
list of items.

Architecture
------------
Reconciliation is **content-addressed**: each desired item is matched to
its remote counterpart by id (then slug) and compared field by field using
a key-order-independent encoding, so unchanged fields are never re-sent.
Because the write API may confirm only part of a batch, the coordinator
re-reads the collection with linear backoff to resolve every requested
item to a remote identity.

Modules:

- ``encoder``     -- ``stable_encode``: order-independent value encoding.
- ``identity``    -- ``IdentityIndex``: id / slug lookups over a snapshot.
- ``changeset``   -- ``build_change_set``: minimal write payload or no-op.
- ``coordinator`` -- ``SyncCoordinator``: the diff / write / resolve pass.
- ``enum_cases``  -- ``EnumCaseResolver``: enum names to case ids.
- ``metadata``    -- ``extract_metadata``: caller bookkeeping per item.
- ``models``      -- data contracts.
- ``reporter``    -- human-readable and JSON report formatting.

Usage example
-------------
::

    from framer_mcp_server.core.session import open_session
    from framer_mcp_server.sync import SyncCoordinator, SyncMode

    async with open_session(client) as session:
        collection = await session.get_collection("col_123")
        coordinator = SyncCoordinator(collection)
        report = await coordinator.reconcile(
            [{"slug": "hello", "fieldData": {"title": "Hello"}}],
            mode=SyncMode.DIFF_CHANGED_ONLY,
        )
"""

from .changeset import build_change_set, full_change_set
from .coordinator import ItemStore, SyncCoordinator
from .encoder import MISSING, stable_encode
from .enum_cases import EnumCaseResolver
from .identity import IdentityIndex
from .metadata import extract_metadata
from .models import (
    ChangeSet,
    DesiredItem,
    EnumCaseResolution,
    FieldDefinition,
    RemoteItemSummary,
    SyncMetadata,
    SyncMode,
    SyncPhase,
    SyncRecord,
    SyncReport,
)
from .reporter import format_sync_report, report_to_json

__all__ = [
    "MISSING",
    "ChangeSet",
    "DesiredItem",
    "EnumCaseResolution",
    "EnumCaseResolver",
    "FieldDefinition",
    "IdentityIndex",
    "ItemStore",
    "RemoteItemSummary",
    "SyncCoordinator",
    "SyncMetadata",
    "SyncMode",
    "SyncPhase",
    "SyncRecord",
    "SyncReport",
    "build_change_set",
    "extract_metadata",
    "format_sync_report",
    "full_change_set",
    "report_to_json",
    "stable_encode",
]
