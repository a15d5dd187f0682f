"""Tests for the clustering engine -- partitioning and entity placement."""
from __future__ import annotations

import math
from itertools import combinations

import pytest
from hypothesis import given, settings, strategies as st

from erd_layout.clustering import ClusteringEngine
from erd_layout.types import ERData, Entity, LayoutOptions, Point, Relationship


def make_data(names: list[str], edges: list[tuple[str, str]]) -> ERData:
    return ERData(
        entities=[Entity(name=n) for n in names],
        relationships=[
            Relationship(from_entity=a, from_column=None, to_entity=b, to_column=None)
            for a, b in edges
        ],
    )


def min_pairwise_distance(points: list[Point]) -> float:
    return min(math.hypot(a.x - b.x, a.y - b.y) for a, b in combinations(points, 2))


# ============================================================================
# Partitioning
# ============================================================================


class TestBuildRelationshipClusters:
    def test_groups_connected_entities(self):
        engine = ClusteringEngine(make_data(["a", "b", "c", "d"], [("a", "b"), ("c", "d")]))
        assert engine.build_relationship_clusters() == [["a", "b"], ["c", "d"]]

    def test_entities_without_relationships_form_singletons(self):
        engine = ClusteringEngine(make_data(["a", "b", "c"], [("b", "c")]))
        assert engine.build_relationship_clusters() == [["b", "c"], ["a"]]

    def test_sorts_clusters_by_descending_size(self):
        data = make_data(
            ["x", "y", "a", "b", "c"],
            [("x", "y"), ("a", "b"), ("b", "c")],
        )
        clusters = ClusteringEngine(data).build_relationship_clusters()
        assert [len(c) for c in clusters] == [3, 2]
        assert clusters[0] == ["a", "b", "c"]

    def test_follows_edges_in_either_direction(self):
        engine = ClusteringEngine(make_data(["a", "b", "c"], [("b", "a"), ("c", "b")]))
        assert engine.build_relationship_clusters() == [["a", "b", "c"]]

    def test_visits_depth_first_in_declaration_order(self):
        # a -> b -> d, a -> c: b's subtree is finished before c is visited
        data = make_data(["a", "b", "c", "d"], [("a", "b"), ("a", "c"), ("b", "d")])
        assert ClusteringEngine(data).build_relationship_clusters() == [["a", "b", "d", "c"]]

    def test_ignores_dangling_relationships(self):
        engine = ClusteringEngine(make_data(["a", "b"], [("a", "ghost"), ("ghost", "b")]))
        clusters = engine.build_relationship_clusters()
        assert clusters == [["a"], ["b"]]

    def test_handles_self_references(self):
        engine = ClusteringEngine(make_data(["employee"], [("employee", "employee")]))
        assert engine.build_relationship_clusters() == [["employee"]]

    def test_handles_long_chains_without_recursion(self):
        names = [f"t{i}" for i in range(5000)]
        edges = list(zip(names, names[1:]))
        clusters = ClusteringEngine(make_data(names, edges)).build_relationship_clusters()
        assert clusters == [names]

    def test_returns_no_clusters_without_data(self):
        assert ClusteringEngine().build_relationship_clusters() == []

    @given(st.data())
    @settings(max_examples=50)
    def test_clusters_partition_the_entity_set(self, data):
        count = data.draw(st.integers(min_value=0, max_value=15))
        names = [f"e{i}" for i in range(count)]
        endpoint = st.sampled_from(names + ["missing"]) if names else st.just("missing")
        edges = data.draw(st.lists(st.tuples(endpoint, endpoint), max_size=30))

        clusters = ClusteringEngine(make_data(names, edges)).build_relationship_clusters()
        members = [name for cluster in clusters for name in cluster]

        assert sorted(members) == sorted(names)
        assert len(members) == len(set(members))


class TestClusterCache:
    def test_memoizes_the_partition(self):
        engine = ClusteringEngine(make_data(["a", "b"], [("a", "b")]))
        assert engine.relationship_clusters is engine.relationship_clusters

    def test_set_er_data_invalidates_the_partition(self):
        engine = ClusteringEngine(make_data(["a", "b"], [("a", "b")]))
        assert engine.relationship_clusters == [["a", "b"]]

        engine.set_er_data(make_data(["a", "b", "c"], [("b", "c")]))
        assert engine.relationship_clusters == [["b", "c"], ["a"]]

    def test_set_er_data_rebuilds_for_a_new_data_reference(self):
        first = make_data(["a", "b"], [])
        engine = ClusteringEngine(first)
        before = engine.relationship_clusters

        engine.set_er_data(make_data(["a", "b"], [("a", "b")]))
        assert engine.relationship_clusters is not before
        assert engine.relationship_clusters == [["a", "b"]]


# ============================================================================
# calculate_clustered_position
# ============================================================================


class TestGridFallback:
    @pytest.mark.parametrize(
        "index, expected",
        [
            (0, Point(x=50, y=50)),
            (3, Point(x=650, y=50)),
            (4, Point(x=50, y=200)),
            (9, Point(x=250, y=350)),
        ],
    )
    def test_uses_four_column_grid_without_data(self, index, expected):
        engine = ClusteringEngine()
        assert engine.calculate_clustered_position(Entity(name="t"), index) == expected


class TestClusterPlacement:
    def test_places_singletons_on_the_cluster_grid(self):
        engine = ClusteringEngine(make_data(["a", "b", "c"], []))
        assert engine.calculate_clustered_position(Entity(name="a"), 0) == Point(x=100, y=100)
        assert engine.calculate_clustered_position(Entity(name="b"), 1) == Point(x=700, y=100)
        assert engine.calculate_clustered_position(Entity(name="c"), 2) == Point(x=100, y=500)

    def test_places_pairs_on_one_row(self):
        engine = ClusteringEngine(make_data(["a", "b"], [("a", "b")]))
        assert engine.calculate_clustered_position(Entity(name="a"), 0) == Point(x=100, y=100)
        assert engine.calculate_clustered_position(Entity(name="b"), 1) == Point(x=320, y=100)

    def test_places_three_entities_in_a_triangle(self):
        engine = ClusteringEngine(make_data(["a", "b", "c"], [("a", "b"), ("b", "c")]))
        third = engine.calculate_clustered_position(Entity(name="c"), 2)
        assert third.x == 210
        assert third.y == pytest.approx(100 + 220 * math.sin(math.pi / 3))

    def test_places_four_entities_on_a_square(self):
        engine = ClusteringEngine(
            make_data(["a", "b", "c", "d"], [("a", "b"), ("a", "c"), ("a", "d")])
        )
        positions = [
            engine.calculate_clustered_position(Entity(name=n), i)
            for i, n in enumerate(["a", "b", "c", "d"])
        ]
        assert positions == [
            Point(x=100, y=100),
            Point(x=320, y=100),
            Point(x=100, y=320),
            Point(x=320, y=320),
        ]

    @pytest.mark.parametrize("size", [2, 3, 4])
    def test_small_clusters_never_share_a_position(self, size):
        names = [f"t{i}" for i in range(size)]
        engine = ClusteringEngine(make_data(names, [(names[0], n) for n in names[1:]]))
        positions = [
            engine.calculate_clustered_position(Entity(name=n), i) for i, n in enumerate(names)
        ]
        assert len({(p.x, p.y) for p in positions}) == size

    def test_accepts_entity_name(self):
        engine = ClusteringEngine(make_data(["a", "b"], [("a", "b")]))
        assert engine.calculate_clustered_position("b", 1) == Point(x=320, y=100)


# ============================================================================
# Force relaxation
# ============================================================================


class TestForceRelaxation:
    def test_star_of_five_forms_one_relaxed_cluster(self):
        names = ["hub", "s1", "s2", "s3", "s4"]
        engine = ClusteringEngine(make_data(names, [("hub", n) for n in names[1:]]))

        assert engine.relationship_clusters == [names]
        positions = [
            engine.calculate_clustered_position(Entity(name=n), i) for i, n in enumerate(names)
        ]

        small_pattern = engine.small_cluster_positions(4, 100, 100)
        assert positions[:4] != small_pattern
        assert len({(p.x, p.y) for p in positions}) == 5
        assert min_pairwise_distance(positions) >= 0.5 * 280

    def test_starts_from_wide_grid(self):
        engine = ClusteringEngine()
        positions = engine.calculate_force_directed_layout(5, 100, 100)
        # 320 spacing exceeds the 280 minimum, so nothing pushes the grid apart
        assert positions[0] == Point(x=100, y=100)
        assert positions[4] == Point(x=420, y=420)

    @pytest.mark.parametrize("size", [6, 12, 20])
    def test_keeps_entities_apart(self, size):
        positions = ClusteringEngine().calculate_force_directed_layout(size, 100, 100)
        assert len(positions) == size
        assert min_pairwise_distance(positions) >= 0.5 * 280

    def test_spreads_entities_that_start_too_close(self):
        options = LayoutOptions(initial_spacing=50)
        positions = ClusteringEngine(options=options).calculate_force_directed_layout(9, 0, 0)
        assert min_pairwise_distance(positions) > 50

    def test_is_deterministic(self):
        first = ClusteringEngine().calculate_force_directed_layout(17, 100, 500)
        second = ClusteringEngine().calculate_force_directed_layout(17, 100, 500)
        assert first == second

    def test_positions_are_finite(self):
        positions = ClusteringEngine().calculate_force_directed_layout(30, 100, 100)
        assert all(math.isfinite(p.x) and math.isfinite(p.y) for p in positions)

    def test_repeated_requests_return_identical_positions(self):
        names = [f"t{i}" for i in range(8)]
        data = make_data(names, list(zip(names, names[1:])))
        engine = ClusteringEngine(data)
        first = [engine.calculate_clustered_position(Entity(name=n), i) for i, n in enumerate(names)]
        second = [engine.calculate_clustered_position(Entity(name=n), i) for i, n in enumerate(names)]
        fresh = ClusteringEngine(data)
        third = [fresh.calculate_clustered_position(Entity(name=n), i) for i, n in enumerate(names)]
        assert first == second == third

    def test_returned_positions_are_copies(self):
        names = [f"t{i}" for i in range(5)]
        engine = ClusteringEngine(make_data(names, list(zip(names, names[1:]))))
        p = engine.calculate_clustered_position(Entity(name="t0"), 0)
        p.x += 1000
        assert engine.calculate_clustered_position(Entity(name="t0"), 0).x == p.x - 1000


# ============================================================================
# find_available_space
# ============================================================================


class TestFindAvailableSpace:
    def test_returns_first_cell_when_nothing_is_placed(self):
        engine = ClusteringEngine(make_data(["a"], []))
        assert engine.find_available_space() == Point(x=50, y=50)

    def test_skips_occupied_cells(self):
        data = ERData(entities=[
            Entity(name="a", position=Point(x=50, y=50)),
            Entity(name="b", position=Point(x=250, y=60)),
        ])
        assert ClusteringEngine(data).find_available_space() == Point(x=450, y=50)

    def test_is_used_for_entities_outside_every_cluster(self):
        data = ERData(entities=[Entity(name="a", position=Point(x=50, y=50))])
        engine = ClusteringEngine(data)
        assert engine.calculate_clustered_position(Entity(name="stranger"), 0) == Point(x=250, y=50)

    def test_returns_origin_when_grid_is_full(self):
        entities = [
            Entity(name=f"t{x}_{y}", position=Point(x=50 + x * 200, y=50 + y * 150))
            for y in range(10)
            for x in range(10)
        ]
        engine = ClusteringEngine(ERData(entities=entities))
        assert engine.find_available_space() == Point(x=50, y=50)
        assert engine.calculate_clustered_position(Entity(name="orphan"), 0) == Point(x=50, y=50)
