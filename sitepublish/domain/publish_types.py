"""Publish types and their edition-name suffixes."""

from __future__ import annotations

from enum import Enum

from sitepublish.domain.errors import UnsupportedPublishTypeError


class PubType(str, Enum):
    FULL = "FULL"
    INCREMENTAL = "INCREMENTAL"
    STAGING_INCREMENTAL = "STAGING_INCREMENTAL"
    PUBLISH_NOW = "PUBLISH_NOW"
    TAKEDOWN_NOW = "TAKEDOWN_NOW"
    STAGE_NOW = "STAGE_NOW"
    REMOVE_FROM_STAGING_NOW = "REMOVE_FROM_STAGING_NOW"


EDITION_SUFFIXES: dict[PubType, str] = {
    PubType.FULL: "FULL",
    PubType.INCREMENTAL: "INCREMENTAL",
    PubType.STAGING_INCREMENTAL: "STAGING_INCREMENTAL",
    PubType.PUBLISH_NOW: "PUBLISH_NOW",
    PubType.TAKEDOWN_NOW: "UNPUBLISH_NOW",
    PubType.STAGE_NOW: "STAGING_PUBLISH_NOW",
    PubType.REMOVE_FROM_STAGING_NOW: "STAGING_UNPUBLISH_NOW",
}

PRODUCTION_ON_DEMAND = frozenset({PubType.PUBLISH_NOW, PubType.TAKEDOWN_NOW})
STAGING_ON_DEMAND = frozenset({PubType.STAGE_NOW, PubType.REMOVE_FROM_STAGING_NOW})
ON_DEMAND = PRODUCTION_ON_DEMAND | STAGING_ON_DEMAND


def normalize_pub_type(value: PubType | str | None) -> PubType:
    """Missing type means FULL; anything unknown is a programming error."""
    if value is None:
        return PubType.FULL
    if isinstance(value, PubType):
        return value
    try:
        return PubType(value.upper())
    except (AttributeError, ValueError):
        raise UnsupportedPublishTypeError(value) from None


def edition_suffix(pub_type: PubType) -> str:
    suffix = EDITION_SUFFIXES.get(pub_type)
    if suffix is None:
        raise UnsupportedPublishTypeError(pub_type)
    return suffix


def is_on_demand(pub_type: PubType) -> bool:
    return pub_type in ON_DEMAND


def is_staging_on_demand(pub_type: PubType) -> bool:
    return pub_type in STAGING_ON_DEMAND


def edition_name_matches(edition_name: str, suffix: str) -> bool:
    """
    Check whether an edition name carries the given suffix.

    A non-staging suffix such as ``PUBLISH_NOW`` must not match the staging
    edition ``<site>_STAGING_PUBLISH_NOW`` even though the name ends with it.
    """
    if not edition_name.endswith("_" + suffix):
        return False
    if "STAGING" in suffix:
        return True
    return not edition_name.endswith("_STAGING_" + suffix)
