from __future__ import annotations

from dataclasses import dataclass

from sitepublish.adapters.clock import SystemClock
from sitepublish.adapters.connectivity import TcpConnectivityCheck
from sitepublish.adapters.dev_jobs import DevJobEngine, DevJobScheduler
from sitepublish.adapters.sqlite.repos import (
    SQLiteContentChanges,
    SQLiteContentTypeCatalog,
    SQLiteEditionRegistry,
    SQLiteRelationshipGraph,
    SQLiteTargetRegistry,
    SQLiteWorkflowView,
)
from sitepublish.components.dispatch import (
    DispatchConfig,
    ProcessMonitor,
    PublishDispatchComponent,
)
from sitepublish.components.publish_filter import PublishFilterComponent
from sitepublish.components.related_items import RelatedItemsComponent, build_type_buckets
from sitepublish.core.ports import (
    ClockPort,
    ContentChangePort,
    ContentTypeCatalogPort,
    EditionRegistryPort,
    PublishGatePort,
    RelationshipGraphPort,
    TargetRegistryPort,
    WorkflowViewPort,
)
from sitepublish.core.services.content_plan import EditionContentPlanner
from sitepublish.rules.models import Rules


@dataclass
class ServiceContext:
    rules: Rules
    workflow: WorkflowViewPort
    graph: RelationshipGraphPort
    catalog: ContentTypeCatalogPort
    targets: TargetRegistryPort
    editions: EditionRegistryPort
    changes: ContentChangePort
    jobs: DevJobEngine
    scheduler: DevJobScheduler
    monitor: ProcessMonitor
    clock: ClockPort
    publish_filter: PublishFilterComponent
    related_items: RelatedItemsComponent
    dispatch: PublishDispatchComponent

    @classmethod
    def create(cls, db_path: str, rules: Rules) -> ServiceContext:
        """SQLite-backed context."""
        reachable = TcpConnectivityCheck(rules.connectivity.timeout_seconds)
        return cls.from_adapters(
            rules,
            workflow=SQLiteWorkflowView(db_path, rules.publishing.live_state_name),
            graph=SQLiteRelationshipGraph(db_path),
            catalog=SQLiteContentTypeCatalog(db_path),
            targets=SQLiteTargetRegistry(db_path, reachable),
            editions=SQLiteEditionRegistry(db_path),
            changes=SQLiteContentChanges(db_path),
        )

    @classmethod
    def from_adapters(
        cls,
        rules: Rules,
        *,
        workflow: WorkflowViewPort,
        graph: RelationshipGraphPort,
        catalog: ContentTypeCatalogPort,
        targets: TargetRegistryPort,
        editions: EditionRegistryPort,
        changes: ContentChangePort,
        gate: PublishGatePort | None = None,
        clock: ClockPort | None = None,
        jobs: DevJobEngine | None = None,
    ) -> ServiceContext:
        clock = clock or SystemClock()
        publishing = rules.publishing

        publish_filter = PublishFilterComponent(
            workflow, clock=clock, live_state_name=publishing.live_state_name
        )

        # Content type buckets are built once per context
        buckets = build_type_buckets(catalog.list_content_types())
        related_items = RelatedItemsComponent(
            graph,
            buckets,
            max_rounds=rules.closure.max_rounds,
            batch_size=rules.closure.batch_size,
        )

        if jobs is None:
            planner = EditionContentPlanner(
                changes, targets, publish_filter, publishing.ignore_unmodified_assets
            )
            jobs = DevJobEngine(edition_content=planner)
        scheduler = DevJobScheduler(jobs, rules.dev_jobs.poll_interval_seconds)

        monitor = ProcessMonitor()
        dispatch = PublishDispatchComponent(
            workflow,
            graph,
            targets,
            editions,
            jobs,
            gate=gate,
            monitor=monitor,
            changes=changes,
            related=related_items,
            config=DispatchConfig(
                publishing_enabled=publishing.enabled,
                status_sample_delay_seconds=publishing.status_sample_delay_ms / 1000,
            ),
        )

        return cls(
            rules=rules,
            workflow=workflow,
            graph=graph,
            catalog=catalog,
            targets=targets,
            editions=editions,
            changes=changes,
            jobs=jobs,
            scheduler=scheduler,
            monitor=monitor,
            clock=clock,
            publish_filter=publish_filter,
            related_items=related_items,
            dispatch=dispatch,
        )
