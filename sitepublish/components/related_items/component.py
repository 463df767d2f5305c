"""
Related items component - finds unapproved content that must accompany an
incremental publish.

A shared asset can embed another shared asset, and publishable items can be
reachable only through an intermediate local-content node, so a single join
is not enough. The closure is bounded; see core.services.closure.

Invariants:
- Result never contains a changed (seed) id
- Same seeds over the same graph snapshot give the same result
- Only dependents that are not yet valid/invalid are collected
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sitepublish.components.related_items.models import (
    ContentTypeBuckets,
    ResolveRelatedInput,
    ResolveRelatedOutput,
)
from sitepublish.components.related_items.ports import RelationshipGraphPort
from sitepublish.core.services.closure import expand_batched, graph_closure

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 10
DEFAULT_BATCH_SIZE = 1000


class RelatedItemsComponent:
    """Bounded breadth-first resolver over the relationship graph."""

    def __init__(
        self,
        graph: RelationshipGraphPort,
        buckets: ContentTypeBuckets,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self._graph = graph
        self._buckets = buckets
        self._max_rounds = max_rounds
        self._batch_size = batch_size

    def run(self, input_data: ResolveRelatedInput) -> ResolveRelatedOutput:
        return ResolveRelatedOutput(related_ids=frozenset(self.resolve(input_data.changed_ids)))

    def resolve(self, changed_ids: Iterable[int]) -> set[int]:
        """
        Transitive set of unapproved items related to changed_ids.

        Raises:
            ClosureNotConvergedError: relationship chains deeper than the
                round budget
        """
        seeds = set(changed_ids)
        if not seeds:
            return set()
        related = graph_closure(
            seeds,
            self._expand,
            batch_size=self._batch_size,
            max_rounds=self._max_rounds,
        )
        logger.info("Resolved %d related items for %d changed items", len(related), len(seeds))
        return related

    def _expand(self, batch: Sequence[int]) -> set[int]:
        """Publishable dependents of the batch, directly or through one non-publishable hop."""
        publishable = self._graph.find_direct_dependents(
            batch, self._buckets.publishable, unapproved_only=True
        )
        hops = self._graph.find_direct_dependents(batch, self._buckets.non_binary)
        if hops:
            publishable |= expand_batched(hops, self._publishable_of, self._batch_size)
        return publishable

    def _publishable_of(self, batch: Sequence[int]) -> set[int]:
        return self._graph.find_direct_dependents(
            batch, self._buckets.publishable, unapproved_only=True
        )
