from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# --- Enums / Literals ---
AssetClass = Literal["local", "page", "shared"]
RelationshipKind = Literal["shared", "local-content", "linked"]
DeliveryOperation = Literal["publish", "remove"]


def as_utc(instant: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


class ValidityFlag(str, Enum):
    """Workflow validity flag of a content item's current state."""

    VALID = "y"  # public
    INVALID = "i"  # public, with edits in progress
    UNPUBLISH = "u"  # archived / pending removal
    PENDING = "n"  # never approved

    @property
    def is_live(self) -> bool:
        return self in (ValidityFlag.VALID, ValidityFlag.INVALID)


class ServerKind(str, Enum):
    PRODUCTION = "production"
    STAGING = "staging"
    DATABASE = "database"
    XML = "xml"


# --- Content ---


class ContentItem(BaseModel):
    """A content item as seen by the workflow/versioning system."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""
    revision: int = Field(ge=1)
    public_revision: int | None = None
    validity: ValidityFlag = ValidityFlag.PENDING
    asset_class: AssetClass = "page"
    content_type_id: int = 0
    folder_id: int | None = None
    scheduled_start: datetime | None = None
    scheduled_end: datetime | None = None
    recycled: bool = False

    @model_validator(mode="after")
    def _public_not_ahead(self) -> "ContentItem":
        if self.public_revision is not None and self.public_revision > self.revision:
            raise ValueError(
                f"public revision {self.public_revision} is ahead of "
                f"current revision {self.revision} for item {self.id}"
            )
        return self


class StateTransition(BaseModel):
    content_id: int
    revision: int
    from_state: str
    to_state: str
    occurred_at: datetime

    @field_validator("occurred_at")
    @classmethod
    def normalise_occurred_at(cls, v: datetime) -> datetime:
        return as_utc(v)


class WorkflowItemView(BaseModel):
    """Read-only projection of the workflow facts the filter rule needs."""

    model_config = ConfigDict(frozen=True)

    content_id: int
    asset_class: AssetClass
    publishable: bool
    public_revision: int | None = None
    scheduled_start: datetime | None = None
    recycled: bool = False
    # None means the owning folder does not restrict distribution
    allowed_site_ids: frozenset[int] | None = None


class ItemDates(BaseModel):
    start_date: datetime | None = None
    end_date: datetime | None = None


# --- Relationships ---


class RelationshipEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner_id: int
    dependent_id: int
    kind: RelationshipKind = "shared"


class ContentType(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    publishable: bool = False
    binary: bool = False


# --- Sites, targets, editions ---


class Site(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class PublishTarget(BaseModel):
    """A (site, server) pair able to receive published output."""

    model_config = ConfigDict(frozen=True)

    site_id: int
    site_name: str
    server_id: int
    server_name: str
    server_kind: ServerKind = ServerKind.PRODUCTION
    can_incremental_publish: bool = True
    is_full_publish_required: bool = False
    publish_related: bool = False
    host: str | None = None
    port: int | None = None

    @property
    def is_staging(self) -> bool:
        return self.server_kind == ServerKind.STAGING

    @property
    def accepts_demand_publish(self) -> bool:
        """Database and XML servers never take on-demand work."""
        return self.server_kind not in (ServerKind.DATABASE, ServerKind.XML)


class Edition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    site_id: int
    server_id: int | None = None
    suffix: str
