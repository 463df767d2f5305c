"""Dispatch component - gated publish orchestration and status reporting."""

from sitepublish.components.dispatch.component import PublishDispatchComponent
from sitepublish.components.dispatch.messages import (
    connection_warning,
    join_site_names,
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

__all__ = [
    # Component
    "PublishDispatchComponent",
    "FullPublishTracker",
    "ProcessMonitor",
    # Models
    "DispatchConfig",
    "DispatchResult",
    "Err",
    "GateFailure",
    "GateKind",
    "ItemStatusLine",
    "JobStatusReport",
    "Ok",
    "PublishInput",
    "PublishResponse",
    # Messages
    "connection_warning",
    "join_site_names",
    "not_allowed_warning",
]
