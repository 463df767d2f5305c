"""Dispatch component models - frozen dataclass inputs and outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sitepublish.domain.publish_types import PubType
from sitepublish.domain.status import JobState


class GateKind(Enum):
    """Precondition gates that stop a publish before any job is started."""

    FORBIDDEN = JobState.FORBIDDEN
    INVALID = JobState.INVALID
    NOSTAGING_SERVERS = JobState.NOSTAGING_SERVERS
    BADCONFIG = JobState.BADCONFIG

    @property
    def display_name(self) -> str:
        return self.value.display_name


@dataclass(frozen=True)
class GateFailure:
    kind: GateKind
    detail: str = ""


@dataclass(frozen=True)
class PublishInput:
    """Input for a publish request."""

    site_name: str | None
    pub_type: PubType | str | None = None
    item_id: str | None = None
    is_resource: bool = False
    server_name: str | None = None


@dataclass(frozen=True)
class PublishResponse:
    """Best-effort snapshot returned to the caller right after dispatch."""

    job_id: int = 0
    status: str = ""
    delivered: str = "0"
    failures: str = "0"
    site_name: str = ""
    warning_message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobId": self.job_id,
            "status": self.status,
            "delivered": self.delivered,
            "failures": self.failures,
            "siteName": self.site_name,
            "warningMessage": self.warning_message,
        }


@dataclass(frozen=True)
class Ok:
    value: PublishResponse


@dataclass(frozen=True)
class Err:
    failure: GateFailure


DispatchResult = Ok | Err


@dataclass(frozen=True)
class ItemStatusLine:
    content_id: int
    status: str
    revision: int | None = None


@dataclass(frozen=True)
class JobStatusReport:
    """Normalised status of one job."""

    job_id: int
    status: str
    finished: bool
    delivered: int = 0
    failed: int = 0
    removed: int = 0
    items: list[ItemStatusLine] = field(default_factory=list)


@dataclass(frozen=True)
class DispatchConfig:
    publishing_enabled: bool = True
    status_sample_delay_seconds: float = 0.3
