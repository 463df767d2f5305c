"""
Workflow port.

Read access to the workflow/revision facts of content items, plus the few
narrow mutations the dispatch component delegates before an on-demand
publish (clearing stale dates, approve/archive transitions, check-in).
"""

from __future__ import annotations

from typing import Protocol

from sitepublish.domain.entities import ItemDates, StateTransition, WorkflowItemView

TRIGGER_APPROVE = "approve"
TRIGGER_ARCHIVE = "archive"


class WorkflowViewPort(Protocol):
    """Workflow collaborator interface."""

    def find_workflow_item(self, content_id: int) -> WorkflowItemView | None:
        """Project the item's workflow facts. None if the item does not exist."""
        ...

    def find_state_history(self, content_id: int) -> list[StateTransition]:
        """State transitions of the item, oldest first."""
        ...

    def get_item_dates(self, content_id: int) -> ItemDates:
        """Scheduled start and expiry dates."""
        ...

    def clear_start_date(self, content_ids: list[int]) -> None:
        """Remove the scheduled start date."""
        ...

    def clear_expiry_date(self, content_ids: list[int]) -> None:
        """Remove the scheduled expiry date."""
        ...

    def is_trigger_available(self, content_id: int, trigger: str) -> bool:
        """Whether the workflow transition named by trigger can fire now."""
        ...

    def perform_approve_transition(self, content_id: int) -> None:
        """Move the item into a publishable state."""
        ...

    def perform_archive_transition(self, content_id: int) -> None:
        """Move the item into the archive (removal) state."""
        ...

    def check_in(self, content_id: int) -> None:
        """Check the item in so its current revision can be staged."""
        ...
