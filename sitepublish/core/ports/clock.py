from datetime import datetime
from typing import Protocol


class ClockPort(Protocol):
    """Protocol for time operations."""

    def now(self) -> datetime:
        """Return current UTC time."""
        ...
