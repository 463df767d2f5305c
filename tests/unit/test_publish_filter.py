"""
Publish filter component tests.

Covers every row of the decision table plus per-item failure isolation.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from sitepublish.adapters.clock import FixedClock
from sitepublish.adapters.memory import InMemoryWorkflowView
from sitepublish.components.publish_filter import (
    DropReason,
    FilterContext,
    FilterInput,
    FilterItem,
    PublishDirection,
    PublishFilterComponent,
)
from sitepublish.domain.entities import ContentItem, StateTransition, ValidityFlag

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=UTC)
SITE = 1

PUBLISH = FilterContext(direction=PublishDirection.PUBLISH)
UNPUBLISH = FilterContext(direction=PublishDirection.UNPUBLISH)


def item(content_id: int, **overrides) -> ContentItem:
    fields = {
        "id": content_id,
        "revision": 3,
        "public_revision": 2,
        "validity": ValidityFlag.VALID,
        "asset_class": "page",
    }
    fields.update(overrides)
    return ContentItem(**fields)


def candidate(content_id: int, revision: int | None = None) -> FilterItem:
    return FilterItem(content_id=content_id, site_id=SITE, revision=revision)


class ExplodingWorkflow(InMemoryWorkflowView):
    """Raises for one id to exercise failure isolation."""

    def __init__(self, bad_id: int, items: list[ContentItem]) -> None:
        super().__init__(items)
        self.bad_id = bad_id

    def find_workflow_item(self, content_id: int):
        if content_id == self.bad_id:
            raise RuntimeError("corrupt workflow row")
        return super().find_workflow_item(content_id)


class FixedHistoryWorkflow(InMemoryWorkflowView):
    """Returns the given history as is, unsorted and unvalidated."""

    def __init__(self, history: list[StateTransition]) -> None:
        super().__init__()
        self.history = history

    def find_state_history(self, content_id: int) -> list[StateTransition]:
        return self.history


@pytest.fixture
def workflow() -> InMemoryWorkflowView:
    return InMemoryWorkflowView()


@pytest.fixture
def component(workflow: InMemoryWorkflowView) -> PublishFilterComponent:
    return PublishFilterComponent(workflow, clock=FixedClock(NOW))


class TestFilterContext:
    def test_ignore_unmodified_requires_changed_set(self) -> None:
        with pytest.raises(ValueError):
            FilterContext(ignore_unmodified_assets=True)

    def test_ignore_unmodified_with_changed_set(self) -> None:
        ctx = FilterContext(ignore_unmodified_assets=True, changed_content_ids=frozenset())
        assert ctx.is_publish


class TestDrops:
    def test_unknown_item(self, component: PublishFilterComponent) -> None:
        assert component.evaluate(candidate(99), PUBLISH) is DropReason.NOT_FOUND

    def test_recycled(self, workflow, component) -> None:
        workflow.add_item(item(1, recycled=True))
        assert component.evaluate(candidate(1), PUBLISH) is DropReason.RECYCLED

    def test_shared_asset_outside_allowed_sites(self, workflow, component) -> None:
        workflow.add_item(item(1, asset_class="shared", folder_id=7))
        workflow.restrict_folder(7, [SITE + 1])
        assert component.evaluate(candidate(1), PUBLISH) is DropReason.SITE_NOT_ALLOWED

    def test_shared_asset_inside_allowed_sites(self, workflow, component) -> None:
        workflow.add_item(item(1, asset_class="shared", folder_id=7))
        workflow.restrict_folder(7, [SITE])
        assert component.evaluate(candidate(1), PUBLISH) == candidate(1, revision=2)

    def test_unmodified_shared_asset(self, workflow, component) -> None:
        workflow.add_item(item(1, asset_class="shared"))
        ctx = FilterContext(ignore_unmodified_assets=True, changed_content_ids=frozenset({5}))
        assert component.evaluate(candidate(1), ctx) is DropReason.UNMODIFIED

    def test_modified_shared_asset_is_kept(self, workflow, component) -> None:
        workflow.add_item(item(1, asset_class="shared"))
        ctx = FilterContext(ignore_unmodified_assets=True, changed_content_ids=frozenset({1}))
        assert component.evaluate(candidate(1), ctx) == candidate(1, revision=2)

    def test_publish_pass_not_publishable(self, workflow, component) -> None:
        workflow.add_item(item(1, validity=ValidityFlag.PENDING, public_revision=None))
        assert component.evaluate(candidate(1), PUBLISH) is DropReason.NOT_QUALIFIED

    def test_unpublish_pass_publishable(self, workflow, component) -> None:
        workflow.add_item(item(1))
        assert component.evaluate(candidate(1), UNPUBLISH) is DropReason.NOT_QUALIFIED


class TestKeeps:
    def test_local_content_is_never_repinned(self, workflow, component) -> None:
        workflow.add_item(item(1, asset_class="local", scheduled_start=NOW + timedelta(days=1)))
        original = candidate(1, revision=3)
        assert component.evaluate(original, PUBLISH) is original
        assert component.evaluate(original, UNPUBLISH) is original

    def test_unpublish_not_publishable_passes_through(self, workflow, component) -> None:
        workflow.add_item(item(1, validity=ValidityFlag.UNPUBLISH))
        original = candidate(1, revision=3)
        assert component.evaluate(original, UNPUBLISH) is original

    def test_pins_to_public_revision(self, workflow, component) -> None:
        workflow.add_item(item(1, revision=5, public_revision=4))
        assert component.evaluate(candidate(1, revision=5), PUBLISH).revision == 4

    def test_past_schedule_pins_to_public_revision(self, workflow, component) -> None:
        workflow.add_item(item(1, scheduled_start=NOW - timedelta(hours=1)))
        assert component.evaluate(candidate(1), PUBLISH).revision == 2

    def test_no_public_revision_keeps_item(self, workflow, component) -> None:
        workflow.add_item(item(1, public_revision=None))
        original = candidate(1, revision=3)
        assert component.evaluate(original, PUBLISH) is original


class TestScheduledLiveItems:
    def test_pins_to_last_revision_entering_live(self, workflow, component) -> None:
        workflow.add_item(item(1, revision=4, public_revision=3, scheduled_start=NOW + timedelta(days=2)))
        workflow.add_transition(
            StateTransition(content_id=1, revision=2, from_state="Pending", to_state="Live",
                            occurred_at=NOW - timedelta(days=3))
        )
        workflow.add_transition(
            StateTransition(content_id=1, revision=3, from_state="Live", to_state="Quick Edit",
                            occurred_at=NOW - timedelta(days=1))
        )
        assert component.evaluate(candidate(1), PUBLISH).revision == 2

    def test_live_state_match_is_case_insensitive(self, workflow, component) -> None:
        workflow.add_item(item(1, revision=4, public_revision=3, scheduled_start=NOW + timedelta(days=2)))
        workflow.add_transition(
            StateTransition(content_id=1, revision=1, from_state="Pending", to_state="Live",
                            occurred_at=NOW - timedelta(days=9))
        )
        workflow.add_transition(
            StateTransition(content_id=1, revision=3, from_state="Quick Edit", to_state="LIVE",
                            occurred_at=NOW - timedelta(days=1))
        )
        assert component.evaluate(candidate(1), PUBLISH).revision == 3

    def test_missing_history_falls_back_to_public_revision(self, workflow, component) -> None:
        workflow.add_item(item(1, scheduled_start=NOW + timedelta(days=2)))
        assert component.evaluate(candidate(1), PUBLISH).revision == 2

    def test_future_schedule_without_public_revision(self, workflow, component) -> None:
        workflow.add_item(item(1, public_revision=None, scheduled_start=NOW + timedelta(days=2)))
        assert component.evaluate(candidate(1), PUBLISH) is DropReason.NOT_QUALIFIED

    def test_naive_schedule_is_treated_as_utc(self, workflow, component) -> None:
        future = (NOW + timedelta(hours=1)).replace(tzinfo=None)
        workflow.add_item(item(1, public_revision=None, scheduled_start=future))
        assert component.evaluate(candidate(1), PUBLISH) is DropReason.NOT_QUALIFIED

    def test_mixed_naive_and_aware_history(self, workflow, component) -> None:
        workflow.add_item(item(1, revision=4, public_revision=3, scheduled_start=NOW + timedelta(days=2)))
        workflow.add_transition(
            StateTransition(content_id=1, revision=2, from_state="Pending", to_state="Live",
                            occurred_at=(NOW - timedelta(days=3)).replace(tzinfo=None))
        )
        workflow.add_transition(
            StateTransition(content_id=1, revision=3, from_state="Live", to_state="Quick Edit",
                            occurred_at=NOW - timedelta(days=1))
        )
        assert component.evaluate(candidate(1), PUBLISH).revision == 2

    def test_unvalidated_naive_history_is_sorted_as_utc(self) -> None:
        naive = StateTransition.model_construct(
            content_id=1, revision=2, from_state="Pending", to_state="Live",
            occurred_at=(NOW - timedelta(days=3)).replace(tzinfo=None),
        )
        aware = StateTransition(content_id=1, revision=3, from_state="Quick Edit", to_state="Live",
                                occurred_at=NOW - timedelta(days=1))
        workflow = FixedHistoryWorkflow([naive, aware])
        workflow.add_item(item(1, revision=4, public_revision=3, scheduled_start=NOW + timedelta(days=2)))
        component = PublishFilterComponent(workflow, clock=FixedClock(NOW))

        assert component.evaluate(candidate(1), PUBLISH).revision == 3


class TestTransitionTimestamps:
    def test_naive_timestamp_is_utc(self) -> None:
        transition = StateTransition(content_id=1, revision=1, from_state="Pending",
                                     to_state="Live", occurred_at=datetime(2026, 1, 1))
        assert transition.occurred_at == datetime(2026, 1, 1, tzinfo=UTC)

    def test_aware_timestamp_is_converted_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        transition = StateTransition(content_id=1, revision=1, from_state="Pending",
                                     to_state="Live",
                                     occurred_at=datetime(2026, 1, 1, 2, tzinfo=plus_two))
        assert transition.occurred_at.tzinfo is UTC
        assert transition.occurred_at == datetime(2026, 1, 1, tzinfo=UTC)


class TestRun:
    def test_failure_is_isolated_to_one_item(self) -> None:
        wf = ExplodingWorkflow(bad_id=2, items=[item(1), item(2), item(3)])
        component = PublishFilterComponent(wf, clock=FixedClock(NOW))

        output = component.run(
            FilterInput(items=[candidate(1), candidate(2), candidate(3)], context=PUBLISH)
        )

        assert [i.content_id for i in output.items] == [1, 3]
        assert [(d.item.content_id, d.reason) for d in output.dropped] == [(2, DropReason.ERROR)]
        assert output.errors[0].content_id == 2
        assert "corrupt" in output.errors[0].message

    def test_each_candidate_yields_at_most_one_output(self, workflow, component) -> None:
        workflow.add_item(item(1))
        workflow.add_item(item(2, recycled=True))
        candidates = [candidate(1), candidate(2), candidate(3)]
        output = component.run(FilterInput(items=candidates, context=PUBLISH))
        assert len(output.items) + len(output.dropped) == len(candidates)

    def test_filter_items_returns_kept(self, workflow, component) -> None:
        workflow.add_item(item(1))
        assert component.filter_items([candidate(1), candidate(2)], PUBLISH) == [
            candidate(1, revision=2)
        ]
