"""Dispatch component port definitions."""

from sitepublish.core.ports.graph import ContentChangePort, RelationshipGraphPort
from sitepublish.core.ports.jobs import JobEnginePort
from sitepublish.core.ports.targets import (
    EditionRegistryPort,
    PublishGatePort,
    TargetRegistryPort,
)
from sitepublish.core.ports.workflow import WorkflowViewPort

__all__ = [
    "ContentChangePort",
    "EditionRegistryPort",
    "JobEnginePort",
    "PublishGatePort",
    "RelationshipGraphPort",
    "TargetRegistryPort",
    "WorkflowViewPort",
]
