"""
Publish filter component - decides, per candidate item, whether it is
delivered, at which revision, or dropped.

Decision table (first match wins):
1. recycled -> drop
2. shared resource failing the publishable-asset gate -> drop
3. local content -> keep unchanged
4. unpublish pass, item not publishable -> keep unchanged (removal candidate)
5. publish pass, publishable, scheduled to change later, live now
   -> pin to the last revision that entered the live state
6. publish pass, publishable, nothing scheduled -> pin to public revision
7. otherwise -> drop

Invariants:
- Each candidate yields zero or one output item
- Local content is never re-pinned
- A shared resource without a public revision is never skipped as unmodified
- One failing candidate never fails the pass
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sitepublish.components.publish_filter.models import (
    DropReason,
    DroppedItem,
    FilterContext,
    FilterInput,
    FilterItem,
    FilterItemError,
    FilterOutput,
)
from sitepublish.components.publish_filter.ports import ClockPort, WorkflowViewPort
from sitepublish.domain.entities import WorkflowItemView, as_utc

logger = logging.getLogger(__name__)

DEFAULT_LIVE_STATE = "Live"


class PublishFilterComponent:
    """Per-item publish/unpublish filter rule."""

    def __init__(
        self,
        workflow: WorkflowViewPort,
        clock: ClockPort | None = None,
        live_state_name: str = DEFAULT_LIVE_STATE,
    ) -> None:
        self._workflow = workflow
        self._clock = clock
        self._live_state_name = live_state_name

    def _now(self) -> datetime:
        if self._clock:
            return self._clock.now()
        return datetime.now(UTC)

    def run(self, input_data: FilterInput) -> FilterOutput:
        """Filter every candidate independently."""
        kept: list[FilterItem] = []
        dropped: list[DroppedItem] = []
        errors: list[FilterItemError] = []

        for item in input_data.items:
            try:
                outcome = self.evaluate(item, input_data.context)
            except Exception as e:
                logger.exception("Dropping item %d: filter evaluation failed", item.content_id)
                errors.append(FilterItemError(content_id=item.content_id, message=str(e)))
                dropped.append(DroppedItem(item=item, reason=DropReason.ERROR))
                continue

            if isinstance(outcome, DropReason):
                logger.debug("Dropping item %d: %s", item.content_id, outcome.value)
                dropped.append(DroppedItem(item=item, reason=outcome))
            else:
                kept.append(outcome)

        return FilterOutput(items=kept, dropped=dropped, errors=errors)

    def filter_items(self, items: list[FilterItem], context: FilterContext) -> list[FilterItem]:
        return self.run(FilterInput(items=items, context=context)).items

    def evaluate(self, item: FilterItem, context: FilterContext) -> FilterItem | DropReason:
        """Apply the decision table to one candidate. May raise."""
        view = self._workflow.find_workflow_item(item.content_id)
        if view is None:
            return DropReason.NOT_FOUND

        if view.recycled:
            return DropReason.RECYCLED

        if view.asset_class == "shared":
            rejection = self._check_publishable_asset(item, view, context)
            if rejection is not None:
                return rejection

        if view.asset_class == "local":
            return item

        if not context.is_publish:
            if not view.publishable:
                return item
            return DropReason.NOT_QUALIFIED

        if not view.publishable:
            return DropReason.NOT_QUALIFIED

        if self._is_future(view.scheduled_start):
            if view.public_revision is not None and view.public_revision > 0:
                revision = self._last_live_revision(item.content_id, view.public_revision)
                return item.pinned_to(revision)
            return DropReason.NOT_QUALIFIED

        if view.public_revision is None:
            return item
        return item.pinned_to(view.public_revision)

    def _check_publishable_asset(
        self,
        item: FilterItem,
        view: WorkflowItemView,
        context: FilterContext,
    ) -> DropReason | None:
        if view.allowed_site_ids is not None and item.site_id not in view.allowed_site_ids:
            return DropReason.SITE_NOT_ALLOWED

        # First publish is never skipped
        if context.ignore_unmodified_assets and view.public_revision is not None:
            changed = context.changed_content_ids or frozenset()
            if item.content_id not in changed:
                return DropReason.UNMODIFIED
        return None

    def _is_future(self, instant: datetime | None) -> bool:
        if instant is None:
            return False
        return as_utc(instant) > as_utc(self._now())

    def _last_live_revision(self, content_id: int, public_revision: int) -> int:
        """Most recent revision that transitioned into the live state."""
        history = self._workflow.find_state_history(content_id)
        for transition in sorted(history, key=lambda t: as_utc(t.occurred_at), reverse=True):
            if transition.to_state.lower() == self._live_state_name.lower():
                return transition.revision

        # TODO: decide with the workflow owners whether a live item without a
        # transition into the live state should be reported as a data error.
        logger.warning(
            "Item %d has no transition into %r; keeping public revision %d",
            content_id,
            self._live_state_name,
            public_revision,
        )
        return public_revision
