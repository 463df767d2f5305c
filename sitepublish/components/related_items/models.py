"""Related items component models."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sitepublish.domain.entities import ContentType


@dataclass(frozen=True)
class ContentTypeBuckets:
    """
    Content type ids split by how the closure treats them.

    publishable: dependents of these types are collected
    non_binary: dependents of these types are only traversal hops
    """

    publishable: frozenset[int]
    non_binary: frozenset[int]


def build_type_buckets(content_types: Iterable[ContentType]) -> ContentTypeBuckets:
    """Bucket a catalog once; binary non-publishable types are never traversed."""
    publishable: set[int] = set()
    non_binary: set[int] = set()
    for ctype in content_types:
        if ctype.publishable:
            publishable.add(ctype.id)
        elif not ctype.binary:
            non_binary.add(ctype.id)
    return ContentTypeBuckets(publishable=frozenset(publishable), non_binary=frozenset(non_binary))


@dataclass(frozen=True)
class ResolveRelatedInput:
    """Input for resolving related items of a changed set."""

    changed_ids: frozenset[int]


@dataclass(frozen=True)
class ResolveRelatedOutput:
    """Related, not-yet-approved ids, excluding the changed ids themselves."""

    related_ids: frozenset[int]
