"""
Bounded graph closure.

Breadth-first closure over a graph reachable only through a batched
edge-fetch callback. Independent of any storage backend.

Key behaviors:
- Seeds are never part of the result
- Each round expands only the ids discovered in the previous round
- Expansion calls never receive more than batch_size ids
- Running out of rounds while ids are still being discovered raises
  ClosureNotConvergedError instead of returning a truncated set
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence

from sitepublish.domain.errors import ClosureNotConvergedError

logger = logging.getLogger(__name__)

ExpandFn = Callable[[Sequence[int]], Iterable[int]]


def partition(ids: Iterable[int], batch_size: int) -> Iterator[list[int]]:
    """Split ids into sorted batches of at most batch_size."""
    if batch_size < 1:
        raise ValueError("batch_size must be positive")
    ordered = sorted(set(ids))
    for start in range(0, len(ordered), batch_size):
        yield ordered[start : start + batch_size]


def expand_batched(ids: Iterable[int], expand: ExpandFn, batch_size: int) -> set[int]:
    """Union of expand() over batches of ids."""
    found: set[int] = set()
    for batch in partition(ids, batch_size):
        found.update(expand(batch))
    return found


def graph_closure(
    seeds: Iterable[int],
    expand: ExpandFn,
    *,
    batch_size: int = 1000,
    max_rounds: int = 10,
) -> set[int]:
    """
    Transitive closure of seeds under expand.

    Args:
        seeds: Starting ids (excluded from the result)
        expand: Returns the direct successors of one batch of ids
        batch_size: Maximum ids handed to a single expand call
        max_rounds: Maximum number of rounds allowed to discover new ids

    Returns:
        Every id reachable from the seeds, minus the seeds

    Raises:
        ClosureNotConvergedError: if the last allowed round still discovered
            ids and those ids lead somewhere new
    """
    visited: set[int] = set(seeds)
    frontier: set[int] = set(visited)
    result: set[int] = set()

    for round_no in range(1, max_rounds + 1):
        if not frontier:
            return result
        discovered = expand_batched(frontier, expand, batch_size) - visited
        logger.debug("Closure round %d: %d new ids", round_no, len(discovered))
        result |= discovered
        visited |= discovered
        frontier = discovered

    # The budget is spent; a non-empty frontier is only acceptable if it is a
    # set of leaves.
    if frontier:
        pending = expand_batched(frontier, expand, batch_size) - visited
        if pending:
            logger.error(
                "Closure did not converge after %d rounds (%d ids pending)",
                max_rounds,
                len(pending),
            )
            raise ClosureNotConvergedError(max_rounds, len(pending))
    return result
