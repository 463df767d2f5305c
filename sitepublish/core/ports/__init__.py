# sitepublish - Ports (Protocol Interfaces)
# Abstract interfaces for collaborators; no implementations here

from sitepublish.core.ports.clock import ClockPort
from sitepublish.core.ports.graph import (
    ContentChangePort,
    ContentTypeCatalogPort,
    RelationshipGraphPort,
)
from sitepublish.core.ports.jobs import JobEnginePort
from sitepublish.core.ports.targets import (
    EditionRegistryPort,
    PublishGatePort,
    TargetRegistryPort,
)
from sitepublish.core.ports.workflow import (
    TRIGGER_APPROVE,
    TRIGGER_ARCHIVE,
    WorkflowViewPort,
)

__all__ = [
    "ClockPort",
    "ContentChangePort",
    "ContentTypeCatalogPort",
    "EditionRegistryPort",
    "JobEnginePort",
    "PublishGatePort",
    "RelationshipGraphPort",
    "TargetRegistryPort",
    "TRIGGER_APPROVE",
    "TRIGGER_ARCHIVE",
    "WorkflowViewPort",
]
