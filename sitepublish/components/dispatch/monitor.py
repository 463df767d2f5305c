"""
Job status callbacks attached when a scheduled, incremental or full job starts.
"""

from __future__ import annotations

import logging
import threading

from sitepublish.components.dispatch.ports import TargetRegistryPort
from sitepublish.domain.entities import PublishTarget
from sitepublish.domain.jobs import JobSnapshot
from sitepublish.domain.status import PublishStatus, status_from_job_state

logger = logging.getLogger(__name__)


class ProcessMonitor:
    """Tracks which started jobs are still running."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: set[int] = set()
        self._finished: set[int] = set()

    def job_started(self, job_id: int) -> None:
        with self._lock:
            if job_id not in self._finished:
                self._active.add(job_id)
        logger.info("Publishing job %d started", job_id)

    def status_callback(self, snapshot: JobSnapshot) -> None:
        status = status_from_job_state(snapshot.state)
        if not status.is_terminal:
            return
        with self._lock:
            self._active.discard(snapshot.job_id)
            self._finished.add(snapshot.job_id)
        logger.info("Publishing job %d finished: %s", snapshot.job_id, status.label)

    def is_publishing_active(self) -> bool:
        with self._lock:
            return bool(self._active)

    def active_jobs(self) -> set[int]:
        with self._lock:
            return set(self._active)


class FullPublishTracker:
    """Clears the target's full-publish-required flag once a full publish completes."""

    def __init__(self, target: PublishTarget, targets: TargetRegistryPort) -> None:
        self._target = target
        self._targets = targets
        self._done = False

    def __call__(self, snapshot: JobSnapshot) -> None:
        if self._done:
            return
        if status_from_job_state(snapshot.state) is not PublishStatus.COMPLETED:
            return
        self._done = True
        self._targets.clear_full_publish_required(self._target)
        logger.info(
            "Full publish job %d completed for %s/%s",
            snapshot.job_id,
            self._target.site_name,
            self._target.server_name,
        )
