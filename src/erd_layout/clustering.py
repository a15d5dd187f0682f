from __future__ import annotations

import logging
import math

import networkx as nx

from .types import ERData, Entity, LayoutOptions, Point

logger = logging.getLogger(__name__)

# ============================================================================
# Clustering engine
#
# Splits the relationship graph into connected components ("clusters"),
# gives each cluster a slot on a coarse grid, then arranges the entities of
# each cluster inside their slot:
#
#   size 1     the slot anchor
#   size 2-4   fixed patterns (pair, triangle, square)
#   size > 4   deterministic force relaxation
#
# The partition is computed lazily and cached until set_er_data() is called.
# ============================================================================

SIN_60 = math.sin(math.pi / 3)


class ClusteringEngine:
    """Assigns positions to entities that do not have one yet."""

    def __init__(
        self,
        er_data: ERData | None = None,
        options: LayoutOptions | None = None,
    ) -> None:
        self.options = options or LayoutOptions()
        self._er_data = er_data
        self._graph: nx.Graph | None = None
        self._clusters: list[list[str]] | None = None
        # Relaxed layouts keyed by cluster index, valid for _clusters only
        self._relaxed: dict[int, list[Point]] = {}

    @property
    def er_data(self) -> ERData | None:
        return self._er_data

    def set_er_data(self, er_data: ERData | None) -> None:
        """Replace the working schema and drop every cached derivation of it."""
        self._er_data = er_data
        self._graph = None
        self._clusters = None
        self._relaxed = {}

    # ------------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------------

    def calculate_clustered_position(self, entity: Entity | str, index_hint: int) -> Point:
        """Position for an entity; index_hint drives the no-data grid fallback."""
        if self._er_data is None:
            return self._grid_position(index_hint)

        name = entity if isinstance(entity, str) else entity.name
        found = self.find_entity_cluster(name)
        if found is None:
            return self.find_available_space()

        cluster_index, members = found
        return self._position_in_cluster(cluster_index, members, name)

    def _grid_position(self, index: int) -> Point:
        opts = self.options
        return Point(
            x=opts.grid_origin + (index % opts.grid_columns) * opts.grid_spacing_x,
            y=opts.grid_origin + (index // opts.grid_columns) * opts.grid_spacing_y,
        )

    # ------------------------------------------------------------------------
    # Partitioning
    # ------------------------------------------------------------------------

    @property
    def graph(self) -> nx.Graph:
        """Undirected relationship graph over the current entities."""
        if self._graph is None:
            self._graph = self._build_graph()
        return self._graph

    def _build_graph(self) -> nx.Graph:
        g = nx.Graph()
        if self._er_data is None:
            return g

        for entity in self._er_data.entities:
            g.add_node(entity.name)

        # Neighbour order follows declaration order of the relationships.
        # Edges naming an unknown entity contribute nothing.
        for rel in self._er_data.relationships:
            if rel.from_entity in g and rel.to_entity in g:
                g.add_edge(rel.from_entity, rel.to_entity)

        return g

    @property
    def relationship_clusters(self) -> list[list[str]]:
        if self._clusters is None:
            self._clusters = self.build_relationship_clusters()
            self._relaxed = {}
        return self._clusters

    def build_relationship_clusters(self) -> list[list[str]]:
        """Connected components of the relationship graph, largest first."""
        clusters: list[list[str]] = []
        processed: set[str] = set()

        if self._er_data is None:
            return clusters

        for entity in self._er_data.entities:
            if entity.name in processed:
                continue
            cluster = self.find_connected_entities(entity.name, processed)
            if cluster:
                clusters.append(cluster)

        # Stable: equal-sized clusters keep discovery order
        clusters.sort(key=len, reverse=True)

        logger.debug(
            f"Built {len(clusters)} relationship clusters from {len(processed)} entities"
        )
        return clusters

    def find_connected_entities(self, start: str, processed: set[str]) -> list[str]:
        """Depth-first pre-order walk from start, marking entities as processed.

        Returns [] when start was already processed or is not a known entity.
        """
        g = self.graph
        if start in processed or start not in g:
            return []

        cluster: list[str] = []
        stack = [start]
        while stack:
            name = stack.pop()
            if name in processed:
                continue
            processed.add(name)
            cluster.append(name)
            pending = [n for n in g.neighbors(name) if n not in processed]
            stack.extend(reversed(pending))

        return cluster

    def find_entity_cluster(self, name: str) -> tuple[int, list[str]] | None:
        for index, cluster in enumerate(self.relationship_clusters):
            if name in cluster:
                return index, cluster
        return None

    # ------------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------------

    def cluster_anchor(self, cluster_index: int) -> Point:
        opts = self.options
        return Point(
            x=opts.cluster_origin
            + (cluster_index % opts.clusters_per_row) * opts.cluster_spacing_x,
            y=opts.cluster_origin
            + (cluster_index // opts.clusters_per_row) * opts.cluster_spacing_y,
        )

    def _position_in_cluster(self, cluster_index: int, members: list[str], name: str) -> Point:
        base = self.cluster_anchor(cluster_index)
        entity_index = members.index(name)
        size = len(members)

        if size == 1:
            return base

        if size <= 4:
            return self.small_cluster_positions(size, base.x, base.y)[entity_index]

        relaxed = self._relaxed.get(cluster_index)
        if relaxed is None:
            relaxed = self.calculate_force_directed_layout(size, base.x, base.y)
            self._relaxed[cluster_index] = relaxed
        p = relaxed[entity_index]
        return Point(x=p.x, y=p.y)

    def small_cluster_positions(self, size: int, base_x: float, base_y: float) -> list[Point]:
        """Fixed patterns for clusters of one to four entities."""
        s = self.options.small_cluster_spacing

        if size == 2:
            return [Point(x=base_x, y=base_y), Point(x=base_x + s, y=base_y)]
        if size == 3:
            return [
                Point(x=base_x, y=base_y),
                Point(x=base_x + s, y=base_y),
                Point(x=base_x + s / 2, y=base_y + s * SIN_60),
            ]
        if size == 4:
            return [
                Point(x=base_x, y=base_y),
                Point(x=base_x + s, y=base_y),
                Point(x=base_x, y=base_y + s),
                Point(x=base_x + s, y=base_y + s),
            ]
        return [Point(x=base_x, y=base_y)]

    def calculate_force_directed_layout(
        self, size: int, base_x: float, base_y: float
    ) -> list[Point]:
        """Relax a grid of `size` positions until neighbours are min_spacing apart.

        Positions are updated in place during each sweep, so later nodes of an
        iteration already see the moves of earlier ones. No velocity is kept
        between iterations and nothing is random.
        """
        opts = self.options
        min_spacing = opts.min_spacing
        cols = math.ceil(math.sqrt(size))

        positions = [
            Point(
                x=base_x + (i % cols) * opts.initial_spacing,
                y=base_y + (i // cols) * opts.initial_spacing,
            )
            for i in range(size)
        ]

        center_x = base_x + opts.initial_spacing * cols / 2
        center_y = base_y + opts.initial_spacing * cols / 2

        for _ in range(opts.iterations):
            for i, pos in enumerate(positions):
                force_x = 0.0
                force_y = 0.0

                for j, other in enumerate(positions):
                    if i == j:
                        continue
                    dx = pos.x - other.x
                    dy = pos.y - other.y
                    distance = math.sqrt(dx * dx + dy * dy)
                    if distance < min_spacing:
                        force = (min_spacing - distance) / max(distance, 1)
                        force_x += dx * force * opts.repulsion_strength
                        force_y += dy * force * opts.repulsion_strength

                to_center_x = center_x - pos.x
                to_center_y = center_y - pos.y
                center_distance = math.sqrt(to_center_x * to_center_x + to_center_y * to_center_y)
                if center_distance > min_spacing * 3:
                    force_x += to_center_x * opts.attraction_strength
                    force_y += to_center_y * opts.attraction_strength

                pos.x += force_x * opts.damping
                pos.y += force_y * opts.damping

        logger.debug(f"Relaxed cluster of {size} entities at ({base_x}, {base_y})")
        return positions

    def find_available_space(self) -> Point:
        """First grid cell not covered by an already positioned entity.

        Falls back to the grid origin when every cell is taken.
        """
        opts = self.options
        occupied: set[tuple[int, int]] = set()

        if self._er_data is not None:
            for entity in self._er_data.entities:
                if entity.position is not None:
                    occupied.add((
                        math.floor(entity.position.x / opts.grid_spacing_x),
                        math.floor(entity.position.y / opts.grid_spacing_y),
                    ))

        for y in range(opts.available_cells_y):
            for x in range(opts.available_cells_x):
                if (x, y) not in occupied:
                    return Point(
                        x=opts.grid_origin + x * opts.grid_spacing_x,
                        y=opts.grid_origin + y * opts.grid_spacing_y,
                    )

        return Point(x=opts.grid_origin, y=opts.grid_origin)
