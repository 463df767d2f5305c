"""Publish filter component port definitions."""

from sitepublish.core.ports.clock import ClockPort
from sitepublish.core.ports.workflow import WorkflowViewPort

__all__ = ["ClockPort", "WorkflowViewPort"]
