"""Reduce a desired item against its remote match to a minimal write payload."""

from __future__ import annotations

from .encoder import MISSING, stable_encode
from .models import ChangeSet, DesiredItem, RemoteItemSummary


def full_change_set(desired: DesiredItem) -> ChangeSet:
    """Return the desired item verbatim as a ChangeSet (create or replace)."""
    return ChangeSet(
        id=desired.id,
        slug=desired.slug,
        draft=desired.draft,
        fieldData=dict(desired.field_data),
    )


def changed_fields(
    desired: DesiredItem, existing: RemoteItemSummary
) -> dict:
    """Return the desired fields whose encoded value differs remotely.

    Fields absent on the remote item always count as changed; fields only
    present remotely are ignored.
    """
    return {
        field_id: value
        for field_id, value in desired.field_data.items()
        if stable_encode(value)
        != stable_encode(existing.field_data.get(field_id, MISSING))
    }


def build_change_set(
    desired: DesiredItem, existing: RemoteItemSummary | None
) -> ChangeSet | None:
    """Compute the minimal payload that makes ``existing`` match ``desired``.

    Args:
        desired: The caller's item.
        existing: The remote item it resolved to, or None.

    Returns:
        A full create payload when ``existing`` is None, ``None`` when
        nothing differs, otherwise a ChangeSet with the desired id, the
        desired slug and draft when set, and only the changed fields.
    """
    if existing is None:
        return full_change_set(desired)

    fields = changed_fields(desired, existing)
    slug_changed = desired.slug is not None and desired.slug != (
        existing.slug or ""
    )
    draft_changed = (
        desired.draft is not None and desired.draft != existing.draft
    )

    if not (slug_changed or draft_changed or fields):
        return None

    return ChangeSet(
        id=desired.id,
        slug=desired.slug,
        draft=desired.draft,
        fieldData=fields or None,
    )
