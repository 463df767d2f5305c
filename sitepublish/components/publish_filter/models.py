"""Publish filter component models - frozen dataclass inputs and outputs."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from sitepublish.domain.entities import Edition


class PublishDirection(str, Enum):
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"


class DropReason(str, Enum):
    NOT_FOUND = "not_found"
    RECYCLED = "recycled"
    SITE_NOT_ALLOWED = "site_not_allowed"
    UNMODIFIED = "unmodified"
    NOT_QUALIFIED = "not_qualified"
    ERROR = "error"


@dataclass(frozen=True)
class FilterItem:
    """A candidate (item, site) pair, optionally pinned to a revision."""

    content_id: int
    site_id: int
    revision: int | None = None
    folder_id: int | None = None

    def pinned_to(self, revision: int) -> FilterItem:
        return replace(self, revision=revision)


@dataclass(frozen=True)
class FilterContext:
    """Per-pass parameters shared by every candidate."""

    direction: PublishDirection = PublishDirection.PUBLISH
    edition: Edition | None = None
    ignore_unmodified_assets: bool = False
    changed_content_ids: frozenset[int] | None = None

    def __post_init__(self) -> None:
        if self.ignore_unmodified_assets and self.changed_content_ids is None:
            raise ValueError("changed_content_ids is required when ignoring unmodified assets")

    @property
    def is_publish(self) -> bool:
        return self.direction == PublishDirection.PUBLISH


@dataclass(frozen=True)
class DroppedItem:
    item: FilterItem
    reason: DropReason


@dataclass(frozen=True)
class FilterItemError:
    """A candidate that raised while being evaluated."""

    content_id: int
    message: str


@dataclass(frozen=True)
class FilterInput:
    items: list[FilterItem]
    context: FilterContext


@dataclass(frozen=True)
class FilterOutput:
    items: list[FilterItem]
    dropped: list[DroppedItem] = field(default_factory=list)
    errors: list[FilterItemError] = field(default_factory=list)
