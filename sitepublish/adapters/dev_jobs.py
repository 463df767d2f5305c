"""
Dev Job Engine Adapter.

In-process publishing job engine for development and testing.
Jobs are started in the Initial state and executed synchronously by
run_pending(), either directly or from the background DevJobScheduler.

Key behaviors:
- start_job returns immediately; one active job per edition
- Demand work is queued per edition and drained by run_pending()
- Every state change is reported to the job's callbacks
- Finished jobs leave the live table and are kept as job log entries
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from sitepublish.domain.entities import DeliveryOperation, Edition
from sitepublish.domain.jobs import (
    DemandWorkUnit,
    ItemDelivery,
    JobLogEntry,
    JobSnapshot,
    JobStatusCallback,
    PlannedItem,
)
from sitepublish.domain.status import EndingState, ItemState, JobState

logger = logging.getLogger(__name__)

EditionContentSource = Callable[[Edition], Sequence[PlannedItem]]


def _operation_for(edition: Edition) -> DeliveryOperation:
    return "remove" if "UNPUBLISH" in edition.suffix else "publish"


class DevDeliverer:
    """
    Dev item deliverer that delegates to a callback.

    In production, this would assemble the item and push it to the
    publishing server.
    """

    def __init__(self, deliver_callback: Callable[[Edition, int], bool] | None = None) -> None:
        """
        Initialize deliverer.

        Args:
            deliver_callback: Function to call per item.
                              Returns True on success, False on failure.
                              If None, every delivery succeeds.
        """
        self._deliver_callback = deliver_callback or self._default_deliver

    def _default_deliver(self, edition: Edition, content_id: int) -> bool:
        return True

    def deliver(self, edition: Edition, content_id: int, revision: int | None = None) -> ItemState:
        logger.info(
            "Dev deliverer: item %d revision %s for %s",
            content_id,
            "current" if revision is None else revision,
            edition.name,
        )
        try:
            if self._deliver_callback(edition, content_id):
                return ItemState.DELIVERED
            return ItemState.FAILED
        except Exception:
            logger.exception("Delivery of item %d for %s failed", content_id, edition.name)
            return ItemState.FAILED


@dataclass
class _Job:
    job_id: int
    edition: Edition
    items: list[PlannedItem]
    callbacks: list[JobStatusCallback] = field(default_factory=list)
    state: JobState = JobState.INITIAL
    delivered: int = 0
    failed: int = 0
    removed: int = 0

    def snapshot(self) -> JobSnapshot:
        return JobSnapshot(
            job_id=self.job_id,
            edition_id=self.edition.id,
            state=self.state,
            delivered=self.delivered,
            failed=self.failed,
            removed=self.removed,
        )


class DevJobEngine:
    """
    Dev job engine.

    Implements JobEnginePort for local development.
    """

    def __init__(
        self,
        deliverer: DevDeliverer | None = None,
        edition_content: EditionContentSource | None = None,
    ) -> None:
        """
        Initialize engine.

        Args:
            deliverer: Item deliverer (defaults to DevDeliverer)
            edition_content: Items, pinned to a revision where the plan
                             chose one, that a scheduled job of the
                             edition delivers (defaults to none)
        """
        self._deliverer = deliverer or DevDeliverer()
        self._edition_content = edition_content or (lambda edition: [])
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._live: dict[int, _Job] = {}
        self._demand: list[tuple[Edition, DemandWorkUnit]] = []
        self._logs: dict[int, JobLogEntry] = {}
        self._deliveries: dict[int, list[ItemDelivery]] = {}

    # --- JobEnginePort ---

    def start_job(self, edition: Edition, callbacks: Sequence[JobStatusCallback]) -> int:
        with self._lock:
            for job in self._live.values():
                if job.edition.id == edition.id:
                    logger.info(
                        "Edition %s already has active job %d", edition.name, job.job_id
                    )
                    return job.job_id
            job = self._new_job(edition, self._edition_content(edition), callbacks)
        self._notify(job)
        return job.job_id

    def get_job_status(self, job_id: int) -> JobSnapshot | None:
        with self._lock:
            job = self._live.get(job_id)
            return job.snapshot() if job else None

    def enqueue_demand_work(self, edition: Edition, work: DemandWorkUnit) -> None:
        with self._lock:
            self._demand.append((edition, work))
        logger.info("Queued demand work for item %d on %s", work.item_id, edition.name)

    def find_job_log(self, job_id: int) -> JobLogEntry | None:
        with self._lock:
            return self._logs.get(job_id)

    def list_item_deliveries(self, job_id: int) -> list[ItemDelivery]:
        with self._lock:
            return list(self._deliveries.get(job_id, []))

    # --- Execution ---

    @property
    def pending_demand(self) -> int:
        with self._lock:
            return len(self._demand)

    def run_pending(self, max_jobs: int = 10) -> int:
        """
        Execute queued demand work and jobs waiting in the Initial state.

        Returns:
            Number of jobs executed
        """
        with self._lock:
            for edition, work in self._demand:
                self._new_job(edition, work.planned_items(), [])
            self._demand.clear()
            waiting = [j for j in self._live.values() if j.state is JobState.INITIAL][:max_jobs]
            # Claimed jobs leave Initial before the lock is released
            for job in waiting:
                job.state = JobState.QUEUEING

        for job in waiting:
            self._notify(job)
            self._execute(job)
        return len(waiting)

    def _new_job(
        self,
        edition: Edition,
        items: Sequence[PlannedItem],
        callbacks: Sequence[JobStatusCallback],
    ) -> _Job:
        job = _Job(
            job_id=next(self._ids),
            edition=edition,
            items=list(items),
            callbacks=list(callbacks),
        )
        self._live[job.job_id] = job
        self._deliveries[job.job_id] = [
            ItemDelivery(
                content_id=item.content_id,
                state=ItemState.QUEUED,
                operation=_operation_for(edition),
                revision=item.revision,
            )
            for item in job.items
        ]
        logger.info("Created job %d for edition %s", job.job_id, edition.name)
        return job

    def _execute(self, job: _Job) -> None:
        operation = _operation_for(job.edition)
        self._transition(job, JobState.WORKING)

        for index, item in enumerate(job.items):
            state = self._deliverer.deliver(job.edition, item.content_id, item.revision)
            with self._lock:
                self._deliveries[job.job_id][index] = ItemDelivery(
                    content_id=item.content_id,
                    state=state,
                    operation=operation,
                    revision=item.revision,
                )
                if state is ItemState.FAILED:
                    job.failed += 1
                elif operation == "remove":
                    job.removed += 1
                else:
                    job.delivered += 1

        self._transition(job, JobState.COMMITTING)
        final = JobState.COMPLETED_W_FAILURE if job.failed else JobState.COMPLETED
        self._transition(job, final)

        with self._lock:
            self._live.pop(job.job_id, None)
            self._logs[job.job_id] = JobLogEntry(
                job_id=job.job_id,
                edition_id=job.edition.id,
                ending_state=(
                    EndingState.COMPLETED_W_FAILURE if job.failed else EndingState.COMPLETED
                ),
                delivered=job.delivered,
                failed=job.failed,
                removed=job.removed,
            )
        logger.info(
            "Job %d finished: %d delivered, %d removed, %d failed",
            job.job_id,
            job.delivered,
            job.removed,
            job.failed,
        )

    def _transition(self, job: _Job, state: JobState) -> None:
        with self._lock:
            job.state = state
        self._notify(job)

    def _notify(self, job: _Job) -> None:
        snapshot = job.snapshot()
        for callback in job.callbacks:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Status callback failed for job %d", job.job_id)


class DevJobScheduler:
    """
    Dev job scheduler with background polling.

    Runs a background thread that drains pending jobs
    at a configurable interval.
    """

    def __init__(self, engine: DevJobEngine, poll_interval_seconds: float = 5.0) -> None:
        self._engine = engine
        self._poll_interval = poll_interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running = False

    def start(self) -> None:
        """Start the background scheduler."""
        if self._running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_loop, daemon=True)
        self._thread.start()
        self._running = True
        logger.info("Dev scheduler started (poll interval: %.1fs)", self._poll_interval)

    def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
        self._running = False
        logger.info("Dev scheduler stopped")

    def trigger_now(self) -> int:
        """Run pending jobs immediately."""
        return self._engine.run_pending()

    @property
    def is_running(self) -> bool:
        return self._running

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._poll_interval):
            try:
                processed = self._engine.run_pending()
                if processed > 0:
                    logger.info("Scheduler processed %d jobs", processed)
            except Exception:
                logger.exception("Error in scheduler poll loop")
