"""
Publish status normalisation.

The job engine reports state in three unrelated vocabularies: the live job
state, the ending state persisted in the job log, and the per-item delivery
status. Each is mapped through its own total table into one canonical
PublishStatus, which is all callers ever see.
"""

from __future__ import annotations

from enum import Enum

from sitepublish.domain.entities import DeliveryOperation


class PublishStatus(Enum):
    """Canonical coarse status."""

    PENDING = "Pending"
    RUNNING = "Running"
    COMPLETED = "Completed"
    COMPLETED_WITH_FAILURES = "Completed with failures"
    CANCELLED = "Cancelled"
    FAILED = "Failed"

    @property
    def label(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self not in (PublishStatus.PENDING, PublishStatus.RUNNING)


class JobState(Enum):
    """Live state of a running publishing job, with its display name."""

    INITIAL = "Initial"
    PRETASKS = "Running pre-tasks"
    QUEUEING = "Queueing"
    WORKING = "Working"
    COMMITTING = "Committing"
    POSTTASKS = "Running post-tasks"
    COMPLETED = "Completed"
    COMPLETED_W_FAILURE = "Completed with failures"
    CANCELLED = "Cancelled"
    ABORTED = "Aborted"
    PUBSERVERNEWDBCONFIG = "Publishing server database configuration changed"
    FORBIDDEN = "Publishing is not allowed"
    INVALID = "Incremental publishing is not available, run a full publish first"
    NOSTAGING_SERVERS = "No staging publishing server is configured"
    BADCONFIG = "Unable to connect to the publishing server"
    BADCONFIGMULTIPLESITES = "Unable to connect to the publishing server of some sites"

    @property
    def display_name(self) -> str:
        return self.value


class EndingState(Enum):
    """Ending state recorded in the job log once a job has finished."""

    COMPLETED = "Completed"
    COMPLETED_W_FAILURE = "Completed with failures"
    CANCELED_BY_USER = "Cancelled by user"
    ABORTED = "Aborted"
    RESTARTNEEDED = "Restart needed"


class ItemState(Enum):
    """Delivery status of a single item within a job."""

    PENDING = "Pending"
    QUEUED = "Queued"
    ASSEMBLED = "Assembled"
    PREPARED_FOR_DELIVERY = "Prepared for delivery"
    DELIVERED = "Delivered"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


_JOB_STATE_TABLE: dict[JobState, PublishStatus] = {
    JobState.INITIAL: PublishStatus.PENDING,
    JobState.PRETASKS: PublishStatus.RUNNING,
    JobState.QUEUEING: PublishStatus.RUNNING,
    JobState.WORKING: PublishStatus.RUNNING,
    JobState.COMMITTING: PublishStatus.RUNNING,
    JobState.POSTTASKS: PublishStatus.RUNNING,
    JobState.COMPLETED: PublishStatus.COMPLETED,
    JobState.COMPLETED_W_FAILURE: PublishStatus.COMPLETED_WITH_FAILURES,
    JobState.CANCELLED: PublishStatus.CANCELLED,
    JobState.ABORTED: PublishStatus.FAILED,
    JobState.PUBSERVERNEWDBCONFIG: PublishStatus.FAILED,
    JobState.FORBIDDEN: PublishStatus.FAILED,
    JobState.INVALID: PublishStatus.FAILED,
    JobState.NOSTAGING_SERVERS: PublishStatus.FAILED,
    JobState.BADCONFIG: PublishStatus.FAILED,
    JobState.BADCONFIGMULTIPLESITES: PublishStatus.FAILED,
}

_ENDING_STATE_TABLE: dict[EndingState, PublishStatus] = {
    EndingState.COMPLETED: PublishStatus.COMPLETED,
    EndingState.COMPLETED_W_FAILURE: PublishStatus.COMPLETED_WITH_FAILURES,
    EndingState.CANCELED_BY_USER: PublishStatus.CANCELLED,
    EndingState.ABORTED: PublishStatus.FAILED,
    EndingState.RESTARTNEEDED: PublishStatus.FAILED,
}

_ITEM_STATE_TABLE: dict[ItemState, PublishStatus] = {
    ItemState.PENDING: PublishStatus.PENDING,
    ItemState.QUEUED: PublishStatus.PENDING,
    ItemState.ASSEMBLED: PublishStatus.RUNNING,
    ItemState.PREPARED_FOR_DELIVERY: PublishStatus.RUNNING,
    ItemState.DELIVERED: PublishStatus.COMPLETED,
    ItemState.FAILED: PublishStatus.FAILED,
    ItemState.CANCELLED: PublishStatus.CANCELLED,
}


def status_from_job_state(state: JobState) -> PublishStatus:
    return _JOB_STATE_TABLE[state]


def status_from_ending_state(state: EndingState) -> PublishStatus:
    return _ENDING_STATE_TABLE[state]


def status_from_item_state(state: ItemState) -> PublishStatus:
    return _ITEM_STATE_TABLE[state]


def item_status_label(status: PublishStatus, operation: DeliveryOperation) -> str:
    """Label for a single item: a completed item reads Published or Removed."""
    if status is PublishStatus.COMPLETED:
        return "Removed" if operation == "remove" else "Published"
    return status.label
