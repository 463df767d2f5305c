from datetime import UTC, datetime, timedelta

import pytest

from sitepublish.adapters.clock import FixedClock
from sitepublish.adapters.dev_jobs import DevJobEngine
from sitepublish.adapters.memory import (
    InMemoryEditionRegistry,
    InMemoryRelationshipGraph,
    InMemoryTargetRegistry,
    InMemoryWorkflowView,
)
from sitepublish.components.dispatch import PublishDispatchComponent
from sitepublish.components.publish_filter import (
    DropReason,
    FilterContext,
    FilterInput,
    FilterItem,
    PublishDirection,
    PublishFilterComponent,
)
from sitepublish.components.related_items import RelatedItemsComponent, build_type_buckets
from sitepublish.core.ports.workflow import TRIGGER_APPROVE
from sitepublish.domain.entities import (
    ContentItem,
    ContentType,
    Edition,
    PublishTarget,
    Site,
    ValidityFlag,
)
from sitepublish.domain.errors import ClosureNotConvergedError
from sitepublish.domain.status import (
    EndingState,
    ItemState,
    JobState,
    status_from_ending_state,
    status_from_item_state,
    status_from_job_state,
)

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=UTC)
SCHEDULES = (None, NOW - timedelta(days=1), NOW + timedelta(days=1))
DIRECTIONS = (PublishDirection.PUBLISH, PublishDirection.UNPUBLISH)


def run_filter(item: ContentItem, context: FilterContext, revision: int | None = None):
    workflow = InMemoryWorkflowView([item])
    component = PublishFilterComponent(workflow, clock=FixedClock(NOW))
    candidate = FilterItem(content_id=item.id, site_id=1, revision=revision)
    return candidate, component.run(FilterInput(items=[candidate], context=context))


def dispatcher(targets, editions=None, workflow=None, jobs=None):
    return PublishDispatchComponent(
        workflow or InMemoryWorkflowView(),
        InMemoryRelationshipGraph(),
        targets,
        editions or InMemoryEditionRegistry(),
        jobs or DevJobEngine(),
        sleep=lambda seconds: None,
    )


# --- R1: Local content keeps its revision ---
@pytest.mark.parametrize("direction", DIRECTIONS)
@pytest.mark.parametrize("validity", list(ValidityFlag))
@pytest.mark.parametrize("scheduled_start", SCHEDULES)
def test_R1_local_revision_unchanged(direction, validity, scheduled_start):
    """R1: The filter never changes the revision of local content."""
    item = ContentItem(
        id=1,
        revision=5,
        public_revision=3,
        validity=validity,
        asset_class="local",
        scheduled_start=scheduled_start,
    )
    candidate, output = run_filter(item, FilterContext(direction=direction), revision=4)
    assert output.items == [candidate]


# --- R2: First publish of a shared resource is never skipped ---
@pytest.mark.parametrize("direction", DIRECTIONS)
@pytest.mark.parametrize("validity", list(ValidityFlag))
def test_R2_first_publish_never_unmodified(direction, validity):
    """R2: Ignoring unmodified assets never drops a shared resource without a public revision."""
    item = ContentItem(id=1, revision=1, validity=validity, asset_class="shared")
    context = FilterContext(
        direction=direction, ignore_unmodified_assets=True, changed_content_ids=frozenset()
    )
    _, output = run_filter(item, context)
    assert DropReason.UNMODIFIED not in {d.reason for d in output.dropped}


# --- R3: Unpublish pass leaves non-publishable items alone ---
@pytest.mark.parametrize("validity", [ValidityFlag.UNPUBLISH, ValidityFlag.PENDING])
@pytest.mark.parametrize("asset_class", ["page", "shared", "local"])
@pytest.mark.parametrize("revision", [None, 2])
def test_R3_unpublish_passthrough(validity, asset_class, revision):
    """R3: Non-publishable items pass an unpublish filter unchanged."""
    item = ContentItem(
        id=1, revision=2, public_revision=1, validity=validity, asset_class=asset_class
    )
    candidate, output = run_filter(
        item, FilterContext(direction=PublishDirection.UNPUBLISH), revision=revision
    )
    assert output.items == [candidate]


# --- R4/R5: Closure ---
def chain_resolver(depth: int) -> RelatedItemsComponent:
    """Seed 0 with a chain of depth unapproved pages behind it."""
    graph = InMemoryRelationshipGraph()
    for node in range(depth + 1):
        graph.register(node, 1)
    for node in range(depth):
        graph.add_edge(node, node + 1)
    buckets = build_type_buckets([ContentType(id=1, name="page", publishable=True)])
    return RelatedItemsComponent(graph, buckets, batch_size=3)


def test_R4_closure_idempotent_and_excludes_seeds():
    """R4: Same seeds over the same graph give the same set, never containing a seed."""
    graph = InMemoryRelationshipGraph()
    for node in range(1, 8):
        graph.register(node, 1)
    graph.register(8, 1, ValidityFlag.VALID)
    for owner, dependent in [(1, 2), (2, 3), (3, 1), (2, 4), (5, 6), (6, 7), (4, 8)]:
        graph.add_edge(owner, dependent)
    buckets = build_type_buckets([ContentType(id=1, name="page", publishable=True)])
    resolver = RelatedItemsComponent(graph, buckets)

    first = resolver.resolve({1, 5})
    second = resolver.resolve({1, 5})

    assert first == second == {2, 3, 4, 6, 7}
    assert not first & {1, 5}


@pytest.mark.parametrize("depth", [1, 5, 10])
def test_R5_closure_exact_within_budget(depth):
    """R5: Chains up to ten levels deep resolve to the exact transitive set."""
    assert chain_resolver(depth).resolve({0}) == set(range(1, depth + 1))


def test_R5_closure_raises_beyond_budget():
    """R5: A chain needing more than ten rounds raises instead of truncating."""
    with pytest.raises(ClosureNotConvergedError):
        chain_resolver(11).resolve({0})


# --- R6: Connectivity failure is reported before any work starts ---
def test_R6_demand_badconfig_before_job():
    """R6: publish(None, PUBLISH_NOW, "42") with an unreachable target starts nothing."""
    prod = PublishTarget(site_id=1, site_name="alpha", server_id=10, server_name="prod")
    targets = InMemoryTargetRegistry()
    targets.add_site(Site(id=1, name="alpha"))
    targets.add_target(prod)
    targets.assign_item(42, 1)
    targets.set_reachable(prod, False)
    workflow = InMemoryWorkflowView(
        [ContentItem(id=42, revision=1, scheduled_start=NOW + timedelta(days=1))]
    )
    workflow.enable_trigger(42, TRIGGER_APPROVE)
    editions = InMemoryEditionRegistry()
    jobs = DevJobEngine()

    response = dispatcher(targets, editions, workflow, jobs).publish(
        None, "PUBLISH_NOW", "42", False, None
    )

    assert response.status == "BADCONFIG"
    assert response.job_id == 0
    assert jobs.pending_demand == 0
    assert editions.created == []
    assert workflow.approved == []
    assert workflow.get_item(42).scheduled_start is not None


# --- R7: Incremental against a server that cannot do it ---
def test_R7_incremental_invalid():
    """R7: INCREMENTAL on a server without incremental support is INVALID with no job."""
    targets = InMemoryTargetRegistry()
    targets.add_site(Site(id=1, name="alpha"))
    targets.add_target(
        PublishTarget(
            site_id=1,
            site_name="alpha",
            server_id=10,
            server_name="prod",
            can_incremental_publish=False,
        )
    )
    editions = InMemoryEditionRegistry(
        [Edition(id=1, name="alpha_INCREMENTAL", site_id=1, server_id=10, suffix="INCREMENTAL")]
    )
    jobs = DevJobEngine()

    response = dispatcher(targets, editions, jobs=jobs).publish(
        "alpha", "INCREMENTAL", server_name="prod"
    )

    assert response.status == "INVALID"
    assert response.delivered == "0"
    assert response.failures == "0"
    assert response.job_id == 0
    assert jobs.run_pending() == 0


# --- R8: Partial resource dispatch ---
def test_R8_partial_resource_dispatch():
    """R8: Three of five sites unreachable names exactly those three."""
    targets = InMemoryTargetRegistry()
    for site_id, name in enumerate(["north", "south", "east", "west", "central"], start=1):
        targets.add_site(Site(id=site_id, name=name))
        target = PublishTarget(
            site_id=site_id, site_name=name, server_id=site_id * 10, server_name="prod"
        )
        targets.add_target(target)
        if name in ("north", "east", "central"):
            targets.set_reachable(target, False)
    jobs = DevJobEngine()

    response = dispatcher(targets, jobs=jobs).publish(None, "PUBLISH_NOW", "7", True, None)

    assert response.status == "BADCONFIGMULTIPLESITES"
    assert '"north", "east" and "central" sites' in response.warning_message
    assert "south" not in response.warning_message
    assert "west" not in response.warning_message
    assert jobs.pending_demand == 2


# --- R9: Status tables are total ---
def test_R9_status_tables_total():
    """R9: Every external state maps to a canonical status."""
    for job_state in JobState:
        status_from_job_state(job_state)
    for ending_state in EndingState:
        status_from_ending_state(ending_state)
    for item_state in ItemState:
        status_from_item_state(item_state)
