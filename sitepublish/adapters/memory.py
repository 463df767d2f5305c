"""
In-memory collaborators.

Used by tests and by the dev composition root when no database is
configured. Content, relationships, targets and editions are held in plain
dicts; every mutation the dispatch component delegates is recorded so tests
can assert on it.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Collection, Iterable, Sequence

from sitepublish.domain.entities import (
    ContentItem,
    ContentType,
    Edition,
    ItemDates,
    PublishTarget,
    RelationshipEdge,
    ServerKind,
    Site,
    StateTransition,
    ValidityFlag,
    WorkflowItemView,
)
from sitepublish.domain.publish_types import edition_name_matches

logger = logging.getLogger(__name__)


class InMemoryWorkflowView:
    """Workflow facts for content items held in memory."""

    def __init__(
        self,
        items: Iterable[ContentItem] = (),
        publishable_types: Collection[int] | None = None,
    ) -> None:
        self._items: dict[int, ContentItem] = {item.id: item for item in items}
        self._history: dict[int, list[StateTransition]] = {}
        self._allowed_sites: dict[int, frozenset[int]] = {}
        self._publishable_types = (
            frozenset(publishable_types) if publishable_types is not None else None
        )
        self._triggers: dict[int, set[str]] = {}
        self.approved: list[int] = []
        self.archived: list[int] = []
        self.checked_in: list[int] = []

    def add_item(self, item: ContentItem) -> None:
        self._items[item.id] = item

    def get_item(self, content_id: int) -> ContentItem | None:
        return self._items.get(content_id)

    def add_transition(self, transition: StateTransition) -> None:
        self._history.setdefault(transition.content_id, []).append(transition)

    def restrict_folder(self, folder_id: int, site_ids: Iterable[int]) -> None:
        """Allow items in the folder to publish only to the given sites."""
        self._allowed_sites[folder_id] = frozenset(site_ids)

    def enable_trigger(self, content_id: int, trigger: str) -> None:
        self._triggers.setdefault(content_id, set()).add(trigger)

    def find_workflow_item(self, content_id: int) -> WorkflowItemView | None:
        item = self._items.get(content_id)
        if item is None:
            return None
        allowed = None
        if item.folder_id is not None:
            allowed = self._allowed_sites.get(item.folder_id)
        return WorkflowItemView(
            content_id=item.id,
            asset_class=item.asset_class,
            publishable=self._is_publishable(item),
            public_revision=item.public_revision,
            scheduled_start=item.scheduled_start,
            recycled=item.recycled,
            allowed_site_ids=allowed,
        )

    def _is_publishable(self, item: ContentItem) -> bool:
        if self._publishable_types is not None and item.content_type_id not in self._publishable_types:
            return False
        return item.validity.is_live

    def find_state_history(self, content_id: int) -> list[StateTransition]:
        return sorted(self._history.get(content_id, []), key=lambda t: t.occurred_at)

    def get_item_dates(self, content_id: int) -> ItemDates:
        item = self._items.get(content_id)
        if item is None:
            return ItemDates()
        return ItemDates(start_date=item.scheduled_start, end_date=item.scheduled_end)

    def clear_start_date(self, content_ids: list[int]) -> None:
        for content_id in content_ids:
            item = self._items.get(content_id)
            if item is not None:
                self._items[content_id] = item.model_copy(update={"scheduled_start": None})

    def clear_expiry_date(self, content_ids: list[int]) -> None:
        for content_id in content_ids:
            item = self._items.get(content_id)
            if item is not None:
                self._items[content_id] = item.model_copy(update={"scheduled_end": None})

    def is_trigger_available(self, content_id: int, trigger: str) -> bool:
        return trigger in self._triggers.get(content_id, set())

    def perform_approve_transition(self, content_id: int) -> None:
        self.approved.append(content_id)
        item = self._items.get(content_id)
        if item is not None:
            self._items[content_id] = item.model_copy(
                update={"validity": ValidityFlag.VALID, "public_revision": item.revision}
            )

    def perform_archive_transition(self, content_id: int) -> None:
        self.archived.append(content_id)
        item = self._items.get(content_id)
        if item is not None:
            self._items[content_id] = item.model_copy(update={"validity": ValidityFlag.UNPUBLISH})

    def check_in(self, content_id: int) -> None:
        self.checked_in.append(content_id)


class InMemoryRelationshipGraph:
    """Relationship edges plus the content type and validity of each item."""

    def __init__(self, edges: Iterable[RelationshipEdge] = ()) -> None:
        self._edges: list[RelationshipEdge] = list(edges)
        self._types: dict[int, int] = {}
        self._validity: dict[int, ValidityFlag] = {}
        self._resources: dict[int, set[int]] = {}
        self.calls: list[list[int]] = []

    def add_edge(self, owner_id: int, dependent_id: int, kind: str = "shared") -> None:
        self._edges.append(RelationshipEdge(owner_id=owner_id, dependent_id=dependent_id, kind=kind))

    def register(
        self,
        content_id: int,
        content_type_id: int,
        validity: ValidityFlag = ValidityFlag.PENDING,
    ) -> None:
        self._types[content_id] = content_type_id
        self._validity[content_id] = validity

    def add_resource(self, content_id: int, resource_id: int) -> None:
        self._resources.setdefault(content_id, set()).add(resource_id)

    def find_direct_dependents(
        self,
        owner_ids: Sequence[int],
        content_type_ids: Collection[int],
        unapproved_only: bool = False,
    ) -> set[int]:
        self.calls.append(list(owner_ids))
        owners = set(owner_ids)
        found: set[int] = set()
        for edge in self._edges:
            if edge.owner_id not in owners:
                continue
            if self._types.get(edge.dependent_id) not in content_type_ids:
                continue
            if unapproved_only and self._validity.get(edge.dependent_id, ValidityFlag.PENDING).is_live:
                continue
            found.add(edge.dependent_id)
        return found

    def find_resource_assets(self, content_id: int) -> set[int]:
        return set(self._resources.get(content_id, set()))


class InMemoryContentTypeCatalog:
    def __init__(self, types: Iterable[ContentType] = ()) -> None:
        self._types = list(types)
        self.list_calls = 0

    def list_content_types(self) -> list[ContentType]:
        self.list_calls += 1
        return list(self._types)


class InMemoryTargetRegistry:
    """Sites, their publishing targets and the reachability of each server."""

    def __init__(self) -> None:
        self._sites: dict[int, Site] = {}
        self._targets: list[PublishTarget] = []
        self._item_sites: dict[int, list[int]] = {}
        self._unreachable: set[tuple[int, int]] = set()
        self.connectivity_checks: list[PublishTarget] = []

    def add_site(self, site: Site) -> None:
        self._sites[site.id] = site

    def add_target(self, target: PublishTarget) -> None:
        self._targets.append(target)

    def assign_item(self, content_id: int, *site_ids: int) -> None:
        self._item_sites[content_id] = list(site_ids)

    def set_reachable(self, target: PublishTarget, reachable: bool) -> None:
        key = (target.site_id, target.server_id)
        if reachable:
            self._unreachable.discard(key)
        else:
            self._unreachable.add(key)

    def find_site(self, site_name: str) -> Site | None:
        for site in self._sites.values():
            if site.name == site_name:
                return site
        return None

    def list_sites(self) -> list[Site]:
        return sorted(self._sites.values(), key=lambda s: s.id)

    def item_sites(self, content_id: int) -> list[Site]:
        return [self._sites[i] for i in self._item_sites.get(content_id, []) if i in self._sites]

    def site_content(self, site_id: int) -> list[int]:
        return sorted(cid for cid, sites in self._item_sites.items() if site_id in sites)

    def find_target(self, site_name: str, server_name: str) -> PublishTarget | None:
        for target in self._targets:
            if target.site_name == site_name and target.server_name.lower() == server_name.lower():
                return target
        return None

    def default_target(self, site_id: int) -> PublishTarget | None:
        for target in self._targets:
            if target.site_id == site_id and target.server_kind != ServerKind.STAGING:
                return target
        return None

    def staging_target(self, site_id: int) -> PublishTarget | None:
        for target in self._targets:
            if target.site_id == site_id and target.is_staging:
                return target
        return None

    def check_connectivity(self, target: PublishTarget) -> bool:
        self.connectivity_checks.append(target)
        return (target.site_id, target.server_id) not in self._unreachable

    def clear_full_publish_required(self, target: PublishTarget) -> None:
        for i, existing in enumerate(self._targets):
            if (existing.site_id, existing.server_id) == (target.site_id, target.server_id):
                self._targets[i] = existing.model_copy(update={"is_full_publish_required": False})
                logger.info("Cleared full publish flag for %s/%s", target.site_name, target.server_name)


class InMemoryEditionRegistry:
    def __init__(self, editions: Iterable[Edition] = ()) -> None:
        self._editions: list[Edition] = list(editions)
        self._ids = itertools.count(
            max((e.id for e in self._editions), default=0) + 1
        )
        self.created: list[Edition] = []

    def add_edition(self, edition: Edition) -> None:
        self._editions.append(edition)

    def list_editions(self) -> list[Edition]:
        return list(self._editions)

    def find_edition(self, target: PublishTarget, suffix: str) -> Edition | None:
        for edition in self._editions:
            if (
                edition.site_id == target.site_id
                and edition.server_id == target.server_id
                and edition_name_matches(edition.name, suffix)
            ):
                return edition
        return None

    def find_site_edition(self, site: Site, suffix: str) -> Edition | None:
        for edition in self._editions:
            if edition.site_id == site.id and edition_name_matches(edition.name, suffix):
                return edition
        return None

    def create_on_demand_edition(self, site: Site, suffix: str) -> Edition:
        edition = Edition(
            id=next(self._ids),
            name=f"{site.name}_{suffix}",
            site_id=site.id,
            suffix=suffix,
        )
        self._editions.append(edition)
        self.created.append(edition)
        return edition


class InMemoryContentChanges:
    def __init__(self) -> None:
        self._live: dict[int, list[int]] = {}
        self._staged: dict[int, list[int]] = {}

    def mark_changed(self, site_id: int, content_id: int, staged: bool = False) -> None:
        bucket = self._staged if staged else self._live
        ids = bucket.setdefault(site_id, [])
        if content_id not in ids:
            ids.append(content_id)

    def get_changed_content(self, site_id: int, staged: bool = False) -> list[int]:
        bucket = self._staged if staged else self._live
        return list(bucket.get(site_id, []))


class StaticPublishGate:
    """Publish gate with a fixed answer."""

    def __init__(self, allowed: bool = True) -> None:
        self.allowed = allowed

    def is_publish_allowed(self) -> bool:
        return self.allowed
