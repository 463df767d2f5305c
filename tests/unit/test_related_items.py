"""
Related items component tests.

Graph used by most tests (types: 1 page, 2 local content, 3 image):

    100 -> 101 (page, pending) -> 103 (page, pending)
    100 -> 102 (page, live)
    100 -> 200 (local content) -> 201 (page, pending)
    100 -> 300 (image) -> 301 (page, pending)
"""

from __future__ import annotations

import pytest

from sitepublish.adapters.memory import InMemoryRelationshipGraph
from sitepublish.components.related_items import (
    ContentTypeBuckets,
    RelatedItemsComponent,
    ResolveRelatedInput,
    build_type_buckets,
)
from sitepublish.domain.entities import ContentType, ValidityFlag
from sitepublish.domain.errors import ClosureNotConvergedError

PAGE, LOCAL, IMAGE = 1, 2, 3

CONTENT_TYPES = [
    ContentType(id=PAGE, name="page", publishable=True),
    ContentType(id=LOCAL, name="local-content"),
    ContentType(id=IMAGE, name="image", binary=True),
]


@pytest.fixture
def buckets() -> ContentTypeBuckets:
    return build_type_buckets(CONTENT_TYPES)


@pytest.fixture
def graph() -> InMemoryRelationshipGraph:
    g = InMemoryRelationshipGraph()
    g.register(100, PAGE, ValidityFlag.VALID)
    g.register(101, PAGE)
    g.register(102, PAGE, ValidityFlag.VALID)
    g.register(103, PAGE)
    g.register(200, LOCAL)
    g.register(201, PAGE)
    g.register(300, IMAGE)
    g.register(301, PAGE)
    for owner, dependent in [
        (100, 101),
        (101, 103),
        (100, 102),
        (100, 200),
        (200, 201),
        (100, 300),
        (300, 301),
    ]:
        g.add_edge(owner, dependent)
    return g


class TestBuildTypeBuckets:
    def test_publishable_and_non_binary(self, buckets: ContentTypeBuckets) -> None:
        assert buckets.publishable == frozenset({PAGE})
        assert buckets.non_binary == frozenset({LOCAL})

    def test_binary_publishable_type_is_publishable(self) -> None:
        result = build_type_buckets([ContentType(id=9, name="pdf", publishable=True, binary=True)])
        assert result.publishable == frozenset({9})
        assert result.non_binary == frozenset()


class TestRelatedItemsComponent:
    def test_collects_unapproved_dependents(
        self, graph: InMemoryRelationshipGraph, buckets: ContentTypeBuckets
    ) -> None:
        component = RelatedItemsComponent(graph, buckets)
        assert component.resolve({100}) == {101, 103, 201}

    def test_live_dependents_are_skipped(
        self, graph: InMemoryRelationshipGraph, buckets: ContentTypeBuckets
    ) -> None:
        assert 102 not in RelatedItemsComponent(graph, buckets).resolve({100})

    def test_hop_nodes_are_not_collected(
        self, graph: InMemoryRelationshipGraph, buckets: ContentTypeBuckets
    ) -> None:
        """Local content is a traversal hop, never a result."""
        assert 200 not in RelatedItemsComponent(graph, buckets).resolve({100})

    def test_binary_nodes_are_not_traversed(
        self, graph: InMemoryRelationshipGraph, buckets: ContentTypeBuckets
    ) -> None:
        result = RelatedItemsComponent(graph, buckets).resolve({100})
        assert 300 not in result
        assert 301 not in result

    def test_empty_input(
        self, graph: InMemoryRelationshipGraph, buckets: ContentTypeBuckets
    ) -> None:
        assert RelatedItemsComponent(graph, buckets).resolve(set()) == set()
        assert graph.calls == []

    def test_seeds_excluded(
        self, graph: InMemoryRelationshipGraph, buckets: ContentTypeBuckets
    ) -> None:
        result = RelatedItemsComponent(graph, buckets).resolve({100, 101})
        assert result == {103, 201}

    def test_run_wraps_resolve(
        self, graph: InMemoryRelationshipGraph, buckets: ContentTypeBuckets
    ) -> None:
        output = RelatedItemsComponent(graph, buckets).run(
            ResolveRelatedInput(changed_ids=frozenset({100}))
        )
        assert output.related_ids == frozenset({101, 103, 201})

    def test_batches_stay_within_limit(self, buckets: ContentTypeBuckets) -> None:
        g = InMemoryRelationshipGraph()
        for i in range(1, 8):
            g.register(i, PAGE)
            g.add_edge(0, i)
        RelatedItemsComponent(g, buckets, batch_size=3).resolve(set(range(0, 8)))
        assert g.calls
        assert all(len(call) <= 3 for call in g.calls)

    def test_deep_chain_raises(self, buckets: ContentTypeBuckets) -> None:
        g = InMemoryRelationshipGraph()
        for i in range(0, 13):
            g.register(i, PAGE)
            g.add_edge(i, i + 1)
        g.register(13, PAGE)
        with pytest.raises(ClosureNotConvergedError):
            RelatedItemsComponent(g, buckets, max_rounds=10).resolve({0})
