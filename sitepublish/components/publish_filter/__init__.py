"""Publish filter component - per-item keep / re-pin / drop decisions."""

from sitepublish.components.publish_filter.component import PublishFilterComponent
from sitepublish.components.publish_filter.models import (
    DropReason,
    DroppedItem,
    FilterContext,
    FilterInput,
    FilterItem,
    FilterItemError,
    FilterOutput,
    PublishDirection,
)
from sitepublish.components.publish_filter.ports import ClockPort, WorkflowViewPort

__all__ = [
    # Component
    "PublishFilterComponent",
    # Models
    "DropReason",
    "DroppedItem",
    "FilterContext",
    "FilterInput",
    "FilterItem",
    "FilterItemError",
    "FilterOutput",
    "PublishDirection",
    # Ports
    "ClockPort",
    "WorkflowViewPort",
]
