"""Related items component - bounded closure of unapproved related content."""

from sitepublish.components.related_items.component import RelatedItemsComponent
from sitepublish.components.related_items.models import (
    ContentTypeBuckets,
    ResolveRelatedInput,
    ResolveRelatedOutput,
    build_type_buckets,
)
from sitepublish.components.related_items.ports import (
    ContentTypeCatalogPort,
    RelationshipGraphPort,
)

__all__ = [
    # Component
    "RelatedItemsComponent",
    # Models
    "ContentTypeBuckets",
    "ResolveRelatedInput",
    "ResolveRelatedOutput",
    "build_type_buckets",
    # Ports
    "ContentTypeCatalogPort",
    "RelationshipGraphPort",
]
