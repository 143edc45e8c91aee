"""Identity lookups over one snapshot of a remote collection.

An ``IdentityIndex`` is built fresh from every read of the collection and
thrown away at the end of the reconciliation pass. Duplicate ids or slugs
in the snapshot resolve to the last occurrence.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import RemoteItemSummary


class IdentityIndex:
    """Lookup of remote items by id, exact slug, and lowercased slug."""

    def __init__(self) -> None:
        self.by_id: dict[str, RemoteItemSummary] = {}
        self.by_slug: dict[str, RemoteItemSummary] = {}
        self.by_slug_lower: dict[str, RemoteItemSummary] = {}

    @classmethod
    def build(cls, items: Iterable[RemoteItemSummary]) -> IdentityIndex:
        index = cls()
        for item in items:
            if item.id:
                index.by_id[item.id] = item
            if item.slug:
                index.by_slug[item.slug] = item
                index.by_slug_lower[item.slug.lower()] = item
        return index

    def __len__(self) -> int:
        return len(self.by_id)

    def resolve(
        self,
        requested_id: str | None = None,
        requested_slug: str | None = None,
    ) -> RemoteItemSummary | None:
        """Find the remote item for the given hints.

        Tries the id first, then the exact slug, then the lowercased slug.
        An id match always wins over a slug match for a different item.

        Returns:
            The matching item, or None when no hint matches.
        """
        if requested_id and requested_id in self.by_id:
            return self.by_id[requested_id]
        if requested_slug:
            if requested_slug in self.by_slug:
                return self.by_slug[requested_slug]
            return self.by_slug_lower.get(requested_slug.lower())
        return None
