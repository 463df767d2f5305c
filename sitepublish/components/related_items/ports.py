"""Related items component port definitions."""

from sitepublish.core.ports.graph import ContentTypeCatalogPort, RelationshipGraphPort

__all__ = ["ContentTypeCatalogPort", "RelationshipGraphPort"]
