"""
Job engine port.

The job engine executes publishing jobs; this engine only starts them,
enqueues demand work, and samples status.

Key requirements:
- start_job returns immediately with the new job id
- enqueue_demand_work is fire-and-forget
- The engine, not the caller, enforces one active job per edition
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from sitepublish.domain.entities import Edition
from sitepublish.domain.jobs import (
    DemandWorkUnit,
    ItemDelivery,
    JobLogEntry,
    JobSnapshot,
    JobStatusCallback,
)


class JobEnginePort(Protocol):
    """Publishing job engine interface."""

    def start_job(self, edition: Edition, callbacks: Sequence[JobStatusCallback]) -> int:
        """
        Start a job for the edition.

        Args:
            edition: Edition to run
            callbacks: Invoked with a snapshot on every state change

        Returns:
            The new job id (never 0)
        """
        ...

    def get_job_status(self, job_id: int) -> JobSnapshot | None:
        """Snapshot of a live job, None once the job is no longer live."""
        ...

    def enqueue_demand_work(self, edition: Edition, work: DemandWorkUnit) -> None:
        """Hand a demand work unit to the queue; ownership passes to the queue."""
        ...

    def find_job_log(self, job_id: int) -> JobLogEntry | None:
        """Persisted summary of a finished job."""
        ...

    def list_item_deliveries(self, job_id: int) -> list[ItemDelivery]:
        ...
