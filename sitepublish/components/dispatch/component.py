"""
Publish dispatch component - gates, dispatches and reports a publish request.

Pipeline (each gate short-circuits with its own GateFailure):
1. normalise the publish type (missing -> FULL, unknown -> raise)
2. global gate -> FORBIDDEN
3. validity gate (INCREMENTAL only) -> INVALID
4. staging availability gate (staging on-demand only) -> NOSTAGING_SERVERS
5. connectivity gate -> BADCONFIG, or collected site warnings
6. execute: enqueue demand work, or start a job on the resolved edition
7. respond: BADCONFIGMULTIPLESITES, or sleep once and sample job status

Invariants:
- No job is started or enqueued when a gate fails
- The demand path never reports a job id
- Configuration errors (missing target/edition, bad type) are raised, not returned
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from sitepublish.components.dispatch.messages import (
    connection_warning,
    not_allowed_warning,
)
from sitepublish.components.dispatch.models import (
    DispatchConfig,
    DispatchResult,
    Err,
    GateFailure,
    GateKind,
    ItemStatusLine,
    JobStatusReport,
    Ok,
    PublishInput,
    PublishResponse,
)
from sitepublish.components.dispatch.monitor import FullPublishTracker, ProcessMonitor
from sitepublish.components.dispatch.ports import (
    ContentChangePort,
    EditionRegistryPort,
    JobEnginePort,
    PublishGatePort,
    RelationshipGraphPort,
    TargetRegistryPort,
    WorkflowViewPort,
)
from sitepublish.components.related_items import RelatedItemsComponent
from sitepublish.core.ports.workflow import TRIGGER_APPROVE, TRIGGER_ARCHIVE
from sitepublish.domain.entities import Edition, PublishTarget, Site
from sitepublish.domain.errors import (
    EditionNotFoundError,
    PublishRequestError,
    SitePublishError,
    TargetNotFoundError,
)
from sitepublish.domain.jobs import DemandWorkUnit, JobStatusCallback
from sitepublish.domain.publish_types import (
    PRODUCTION_ON_DEMAND,
    PubType,
    edition_suffix,
    is_on_demand,
    is_staging_on_demand,
    normalize_pub_type,
)
from sitepublish.domain.status import (
    PublishStatus,
    item_status_label,
    status_from_ending_state,
    status_from_item_state,
    status_from_job_state,
)

logger = logging.getLogger(__name__)

BAD_CONFIG_MULTIPLE_SITES = "BADCONFIGMULTIPLESITES"


@dataclass
class _Connectivity:
    ok: bool
    failed_sites: list[str] = field(default_factory=list)


class PublishDispatchComponent:
    """Orchestrates a single publish request end to end."""

    def __init__(
        self,
        workflow: WorkflowViewPort,
        graph: RelationshipGraphPort,
        targets: TargetRegistryPort,
        editions: EditionRegistryPort,
        jobs: JobEnginePort,
        *,
        gate: PublishGatePort | None = None,
        monitor: ProcessMonitor | None = None,
        changes: ContentChangePort | None = None,
        related: RelatedItemsComponent | None = None,
        config: DispatchConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._workflow = workflow
        self._graph = graph
        self._targets = targets
        self._editions = editions
        self._jobs = jobs
        self._gate = gate
        self._monitor = monitor or ProcessMonitor()
        self._changes = changes
        self._related = related
        self._config = config or DispatchConfig()
        self._sleep = sleep

    @property
    def monitor(self) -> ProcessMonitor:
        return self._monitor

    def run(self, input_data: PublishInput) -> DispatchResult:
        return self.dispatch(
            input_data.site_name,
            input_data.pub_type,
            input_data.item_id,
            input_data.is_resource,
            input_data.server_name,
        )

    # --- Publish ---

    def publish(
        self,
        site_name: str | None,
        pub_type: PubType | str | None = None,
        item_id: str | None = None,
        is_resource: bool = False,
        server_name: str | None = None,
    ) -> PublishResponse:
        """Publish and flatten gate failures into a won't-publish response."""
        result = self.dispatch(site_name, pub_type, item_id, is_resource, server_name)
        if isinstance(result, Ok):
            return result.value
        return self._wont_publish_response(site_name, result.failure)

    def dispatch(
        self,
        site_name: str | None,
        pub_type: PubType | str | None = None,
        item_id: str | None = None,
        is_resource: bool = False,
        server_name: str | None = None,
    ) -> DispatchResult:
        """
        Run the gate pipeline and dispatch the request.

        Raises:
            UnsupportedPublishTypeError: Unknown publish type
            PublishRequestError: Missing or malformed item id for on-demand types
            TargetNotFoundError: Scheduled publish against an unknown target
            EditionNotFoundError: No edition for the target and type
        """
        resolved = normalize_pub_type(pub_type)
        suffix = edition_suffix(resolved)

        failure = self._check_publish_allowed()
        if failure is not None:
            return Err(failure)

        content_id = self._parse_item_id(item_id) if is_on_demand(resolved) else None

        if resolved is PubType.INCREMENTAL:
            failure = self._check_incremental_valid(site_name, server_name)
            if failure is not None:
                return Err(failure)

        if content_id is not None and is_staging_on_demand(resolved):
            failure = self._check_staging_available(content_id, is_resource)
            if failure is not None:
                return Err(failure)

        if content_id is not None:
            connectivity = self._check_demand_connectivity(content_id, resolved, is_resource)
        else:
            connectivity = self._check_target_connectivity(site_name, server_name)
        if not connectivity.ok:
            return Err(
                GateFailure(GateKind.BADCONFIG, connection_warning(connectivity.failed_sites))
            )

        warning = ""
        job_id = 0
        if content_id is not None:
            warning = self._publish_on_demand(
                content_id, resolved, suffix, is_resource, connectivity.failed_sites
            )
        else:
            job_id = self._start_job(site_name, server_name, resolved, suffix)

        if connectivity.failed_sites:
            return Ok(
                self._multiple_sites_response(
                    site_name, job_id, connectivity.failed_sites, warning
                )
            )
        return Ok(self._sampled_response(site_name, job_id, warning))

    # --- Gates ---

    def _parse_item_id(self, item_id: str | int | None) -> int:
        if item_id is None or not str(item_id).strip():
            raise PublishRequestError("An item id is required for on-demand publishing")
        try:
            return int(str(item_id).strip())
        except ValueError:
            raise PublishRequestError(f"Invalid item id: {item_id!r}") from None

    def _check_publish_allowed(self) -> GateFailure | None:
        if not self._config.publishing_enabled:
            return GateFailure(GateKind.FORBIDDEN, "Publishing is disabled")
        if self._gate is not None and not self._gate.is_publish_allowed():
            return GateFailure(GateKind.FORBIDDEN, "Publishing is not allowed")
        return None

    def _check_incremental_valid(
        self, site_name: str | None, server_name: str | None
    ) -> GateFailure | None:
        target = self._require_target(site_name, server_name)
        if not target.can_incremental_publish:
            return GateFailure(
                GateKind.INVALID,
                f"Server {target.server_name} does not support incremental publishing",
            )
        if target.is_full_publish_required:
            return GateFailure(
                GateKind.INVALID,
                f"Server {target.server_name} requires a full publish first",
            )
        return None

    def _check_staging_available(self, content_id: int, is_resource: bool) -> GateFailure | None:
        sites = self._candidate_sites(content_id, is_resource)
        if any(self._targets.staging_target(site.id) is not None for site in sites):
            return None
        return GateFailure(
            GateKind.NOSTAGING_SERVERS, f"No staging server is configured for item {content_id}"
        )

    def _check_demand_connectivity(
        self, content_id: int, pub_type: PubType, is_resource: bool
    ) -> _Connectivity:
        if not is_resource:
            sites = self._targets.item_sites(content_id)
            if not sites:
                logger.warning("Item %d does not belong to any site", content_id)
                return _Connectivity(ok=True)
            target = self._demand_target(sites[0], pub_type)
            if target is None:
                logger.warning("No demand publish target for site %s", sites[0].name)
                return _Connectivity(ok=False)
            return _Connectivity(ok=self._is_reachable(target))

        reachable = 0
        failed: list[str] = []
        for site in self._targets.list_sites():
            target = self._demand_target(site, pub_type)
            if target is None or not target.accepts_demand_publish:
                continue
            if self._is_reachable(target):
                reachable += 1
            else:
                failed.append(site.name)
        return _Connectivity(ok=reachable > 0, failed_sites=failed)

    def _check_target_connectivity(
        self, site_name: str | None, server_name: str | None
    ) -> _Connectivity:
        target = self._require_target(site_name, server_name)
        return _Connectivity(ok=self._is_reachable(target))

    def _is_reachable(self, target: PublishTarget) -> bool:
        reachable = self._targets.check_connectivity(target)
        if not reachable:
            logger.warning(
                "Cannot connect to server %s for site %s", target.server_name, target.site_name
            )
        return reachable

    # --- Execution ---

    def _publish_on_demand(
        self,
        content_id: int,
        pub_type: PubType,
        suffix: str,
        is_resource: bool,
        unreachable: list[str],
    ) -> str:
        """Enqueue one demand work unit per eligible, reachable site. Returns warning text."""
        if pub_type in PRODUCTION_ON_DEMAND:
            self._clear_scheduled_date(content_id, pub_type)
            self._transition_if_needed(content_id, pub_type)
        else:
            self._workflow.check_in(content_id)

        work = DemandWorkUnit(item_id=content_id)
        for resource_id in sorted(self._graph.find_resource_assets(content_id)):
            work.add_dependent(resource_id)

        excluded: list[str] = []
        if is_resource:
            sites: list[Site] = []
            for site in self._targets.list_sites():
                target = self._demand_target(site, pub_type)
                if target is None or not target.accepts_demand_publish:
                    excluded.append(site.name)
                elif site.name not in unreachable:
                    sites.append(site)
        else:
            sites = self._targets.item_sites(content_id)[:1]

        for site in sites:
            edition = self._on_demand_edition(site, suffix)
            self._jobs.enqueue_demand_work(edition, work)
            logger.info(
                "Queued item %d (%d dependents) on edition %s",
                content_id,
                len(work.dependents),
                edition.name,
            )
        return not_allowed_warning(excluded)

    def _clear_scheduled_date(self, content_id: int, pub_type: PubType) -> None:
        dates = self._workflow.get_item_dates(content_id)
        if pub_type is PubType.PUBLISH_NOW and dates.start_date is not None:
            self._workflow.clear_start_date([content_id])
        elif pub_type is PubType.TAKEDOWN_NOW and dates.end_date is not None:
            self._workflow.clear_expiry_date([content_id])

    def _transition_if_needed(self, content_id: int, pub_type: PubType) -> None:
        if pub_type is PubType.PUBLISH_NOW:
            if self._workflow.is_trigger_available(content_id, TRIGGER_APPROVE):
                self._workflow.perform_approve_transition(content_id)
        elif self._workflow.is_trigger_available(content_id, TRIGGER_ARCHIVE):
            self._workflow.perform_archive_transition(content_id)

    def _on_demand_edition(self, site: Site, suffix: str) -> Edition:
        edition = self._editions.find_site_edition(site, suffix)
        if edition is None:
            edition = self._editions.create_on_demand_edition(site, suffix)
            logger.info("Created on-demand edition %s", edition.name)
        return edition

    def _start_job(
        self,
        site_name: str | None,
        server_name: str | None,
        pub_type: PubType,
        suffix: str,
    ) -> int:
        target = self._require_target(site_name, server_name)
        edition = self._editions.find_edition(target, suffix)
        if edition is None:
            raise EditionNotFoundError(target.site_name, target.server_name, suffix)

        callbacks: list[JobStatusCallback] = [self._monitor.status_callback]
        if pub_type is PubType.FULL:
            callbacks.append(FullPublishTracker(target, self._targets))

        job_id = self._jobs.start_job(edition, callbacks)
        self._monitor.job_started(job_id)
        logger.info("Started %s job %d on edition %s", pub_type.value, job_id, edition.name)
        return job_id

    # --- Lookups ---

    def _require_target(self, site_name: str | None, server_name: str | None) -> PublishTarget:
        if not site_name or not server_name:
            raise TargetNotFoundError(site_name or "", server_name or "")
        target = self._targets.find_target(site_name, server_name)
        if target is None:
            raise TargetNotFoundError(site_name, server_name)
        return target

    def _candidate_sites(self, content_id: int, is_resource: bool) -> list[Site]:
        if is_resource:
            return self._targets.list_sites()
        return self._targets.item_sites(content_id)[:1]

    def _demand_target(self, site: Site, pub_type: PubType) -> PublishTarget | None:
        if is_staging_on_demand(pub_type):
            return self._targets.staging_target(site.id)
        return self._targets.default_target(site.id)

    # --- Responses ---

    def _wont_publish_response(
        self, site_name: str | None, failure: GateFailure
    ) -> PublishResponse:
        logger.info("Publish of site %s stopped: %s %s", site_name, failure.kind.name, failure.detail)
        return PublishResponse(
            job_id=0,
            status=failure.kind.name,
            site_name=site_name or "",
            warning_message=failure.kind.display_name,
        )

    def _multiple_sites_response(
        self,
        site_name: str | None,
        job_id: int,
        failed_sites: list[str],
        warning: str,
    ) -> PublishResponse:
        message = connection_warning(failed_sites)
        if warning:
            message = f"{message} {warning}"
        delivered, failures = "0", "0"
        if job_id:
            snapshot = self._jobs.get_job_status(job_id)
            if snapshot is not None:
                delivered, failures = str(snapshot.delivered), str(snapshot.failed)
        return PublishResponse(
            job_id=job_id,
            status=BAD_CONFIG_MULTIPLE_SITES,
            delivered=delivered,
            failures=failures,
            site_name=site_name or "",
            warning_message=message,
        )

    def _sampled_response(self, site_name: str | None, job_id: int, warning: str) -> PublishResponse:
        delay = self._config.status_sample_delay_seconds
        if delay > 0:
            self._sleep(delay)

        if not job_id:
            return PublishResponse(
                status=PublishStatus.PENDING.label,
                site_name=site_name or "",
                warning_message=warning,
            )

        report = self.job_status(job_id, include_items=False)
        return PublishResponse(
            job_id=job_id,
            status=report.status,
            delivered=str(report.delivered),
            failures=str(report.failed),
            site_name=site_name or "",
            warning_message=warning,
        )

    # --- Status ---

    def job_status(self, job_id: int, include_items: bool = True) -> JobStatusReport:
        """Normalised status from the live job, else from its persisted log."""
        items: list[ItemStatusLine] = []
        if include_items:
            items = [
                ItemStatusLine(
                    content_id=delivery.content_id,
                    status=item_status_label(
                        status_from_item_state(delivery.state), delivery.operation
                    ),
                    revision=delivery.revision,
                )
                for delivery in self._jobs.list_item_deliveries(job_id)
            ]

        snapshot = self._jobs.get_job_status(job_id)
        if snapshot is not None:
            status = status_from_job_state(snapshot.state)
            return JobStatusReport(
                job_id=job_id,
                status=status.label,
                finished=status.is_terminal,
                delivered=snapshot.delivered,
                failed=snapshot.failed,
                removed=snapshot.removed,
                items=items,
            )

        entry = self._jobs.find_job_log(job_id)
        if entry is not None:
            status = status_from_ending_state(entry.ending_state)
            return JobStatusReport(
                job_id=job_id,
                status=status.label,
                finished=True,
                delivered=entry.delivered,
                failed=entry.failed,
                removed=entry.removed,
                items=items,
            )

        return JobStatusReport(
            job_id=job_id, status=PublishStatus.PENDING.label, finished=False, items=items
        )

    # --- Incremental ---

    def publish_incremental(self, site_name: str, server_name: str) -> PublishResponse:
        target = self._require_target(site_name, server_name)
        pub_type = PubType.STAGING_INCREMENTAL if target.is_staging else PubType.INCREMENTAL
        return self.publish(site_name, pub_type, server_name=server_name)

    def publish_incremental_with_approval(
        self, site_name: str, server_name: str, item_ids: Iterable[int | str]
    ) -> PublishResponse:
        """Approve the listed items first when the server publishes related content."""
        target = self._require_target(site_name, server_name)
        if target.publish_related and not target.is_staging:
            for item_id in item_ids:
                self._workflow.perform_approve_transition(self._parse_item_id(item_id))
        return self.publish_incremental(site_name, server_name)

    def queued_incremental_content(self, site_name: str, server_name: str) -> list[int]:
        """Changed content waiting for the next incremental publish of the target."""
        if self._changes is None:
            raise SitePublishError("Content change tracking is not configured")
        target = self._require_target(site_name, server_name)
        return self._changes.get_changed_content(target.site_id, staged=target.is_staging)

    def queued_incremental_related_content(self, site_name: str, server_name: str) -> list[int]:
        """Unapproved items related to the queued changes."""
        if self._related is None:
            raise SitePublishError("Related item resolution is not configured")
        changed = self.queued_incremental_content(site_name, server_name)
        return sorted(self._related.resolve(set(changed)))
