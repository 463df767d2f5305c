"""
Edition content planning.

Builds the list of items a scheduled job delivers, each at the revision the
publish filter chose. A full edition starts from every item in the site;
other editions start from the site's pending changes.
"""

from __future__ import annotations

import logging

from sitepublish.components.publish_filter import (
    FilterContext,
    FilterItem,
    PublishDirection,
    PublishFilterComponent,
)
from sitepublish.core.ports.graph import ContentChangePort
from sitepublish.core.ports.targets import TargetRegistryPort
from sitepublish.domain.entities import Edition
from sitepublish.domain.jobs import PlannedItem
from sitepublish.domain.publish_types import PubType, edition_suffix

logger = logging.getLogger(__name__)


def direction_for(edition: Edition) -> PublishDirection:
    if "UNPUBLISH" in edition.suffix:
        return PublishDirection.UNPUBLISH
    return PublishDirection.PUBLISH


def is_full_edition(edition: Edition) -> bool:
    return edition.suffix == edition_suffix(PubType.FULL)


class EditionContentPlanner:
    """Callable content source for the job engine."""

    def __init__(
        self,
        changes: ContentChangePort,
        targets: TargetRegistryPort,
        publish_filter: PublishFilterComponent,
        ignore_unmodified_assets: bool = False,
    ) -> None:
        self._changes = changes
        self._targets = targets
        self._filter = publish_filter
        self._ignore_unmodified = ignore_unmodified_assets

    def __call__(self, edition: Edition) -> list[PlannedItem]:
        return self.plan(edition)

    def plan(self, edition: Edition) -> list[PlannedItem]:
        staged = "STAGING" in edition.suffix
        changed = self._changes.get_changed_content(edition.site_id, staged=staged)
        full = is_full_edition(edition)
        candidate_ids = self._targets.site_content(edition.site_id) if full else changed

        # A full publish delivers unmodified assets too
        context = FilterContext(
            direction=direction_for(edition),
            edition=edition,
            ignore_unmodified_assets=self._ignore_unmodified and not full,
            changed_content_ids=frozenset(changed),
        )
        candidates = [FilterItem(content_id=cid, site_id=edition.site_id) for cid in candidate_ids]
        result = self._filter.filter_items(candidates, context)
        logger.info(
            "Planned %d of %d %s items for edition %s",
            len(result),
            len(candidates),
            "site" if full else "changed",
            edition.name,
        )
        return [PlannedItem(content_id=item.content_id, revision=item.revision) for item in result]
