"""
Relationship graph ports.

The graph is read-only to this engine. Dependents are always looked up in
batches; callers keep each batch within the backend's id-count limit.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from typing import Protocol

from sitepublish.domain.entities import ContentType


class RelationshipGraphPort(Protocol):
    """Relationship graph interface."""

    def find_direct_dependents(
        self,
        owner_ids: Sequence[int],
        content_type_ids: Collection[int],
        unapproved_only: bool = False,
    ) -> set[int]:
        """
        Ids of items directly related to any of owner_ids.

        Args:
            owner_ids: Owners to expand (one batch)
            content_type_ids: Only dependents of these content types
            unapproved_only: Only dependents whose validity is neither
                             valid nor invalid (never approved / not live)
        """
        ...

    def find_resource_assets(self, content_id: int) -> set[int]:
        """Shared resources the item depends on and must travel with it."""
        ...


class ContentTypeCatalogPort(Protocol):
    """Catalog of content types."""

    def list_content_types(self) -> list[ContentType]:
        ...


class ContentChangePort(Protocol):
    """Changed-content tracking per site."""

    def get_changed_content(self, site_id: int, staged: bool = False) -> list[int]:
        """
        Content ids pending delivery to the site.

        Args:
            site_id: Site to query
            staged: Pending-staged changes instead of pending-live
        """
        ...
