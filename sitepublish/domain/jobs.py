"""Job-facing value objects shared by the dispatch component and job engines."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from sitepublish.domain.entities import DeliveryOperation
from sitepublish.domain.status import EndingState, ItemState, JobState


@dataclass(frozen=True)
class JobSnapshot:
    """Point-in-time view of a live publishing job."""

    job_id: int
    edition_id: int
    state: JobState
    delivered: int = 0
    failed: int = 0
    removed: int = 0


@dataclass(frozen=True)
class JobLogEntry:
    """Persisted summary of a finished job."""

    job_id: int
    edition_id: int
    ending_state: EndingState
    delivered: int = 0
    failed: int = 0
    removed: int = 0


@dataclass(frozen=True)
class PlannedItem:
    """An item a job delivers. revision None means the current revision."""

    content_id: int
    revision: int | None = None


@dataclass(frozen=True)
class ItemDelivery:
    content_id: int
    state: ItemState
    operation: DeliveryOperation = "publish"
    revision: int | None = None


@dataclass
class DemandWorkUnit:
    """The requested item plus its resource dependents, queued against one edition."""

    item_id: int
    dependents: list[int] = field(default_factory=list)

    def add_dependent(self, content_id: int) -> None:
        if content_id != self.item_id and content_id not in self.dependents:
            self.dependents.append(content_id)

    @property
    def content_ids(self) -> list[int]:
        return [self.item_id, *self.dependents]

    def planned_items(self) -> list[PlannedItem]:
        return [PlannedItem(content_id=cid) for cid in self.content_ids]


JobStatusCallback = Callable[[JobSnapshot], None]
