from __future__ import annotations

from dataclasses import dataclass, field

# ============================================================================
# Schema graph — entities and relationships supplied by the host
# ============================================================================


@dataclass(slots=True)
class Point:
    x: float
    y: float


@dataclass(slots=True)
class Column:
    """A single column of an entity. Order within the entity is its row index."""

    name: str
    is_primary_key: bool = False
    is_foreign_key: bool = False
    # Data type, informational only
    type: str | None = None


@dataclass(slots=True)
class Entity:
    """A table-like node. Identity is by name."""

    name: str
    columns: list[Column] = field(default_factory=list)
    # Known position (top-left), if any
    position: Point | None = None


@dataclass(slots=True)
class Relationship:
    """A foreign key edge between two entities' columns."""

    from_entity: str
    from_column: str | None
    to_entity: str
    to_column: str | None
    # Constraint name, informational only
    name: str | None = None


@dataclass(slots=True)
class ERData:
    entities: list[Entity] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)

    def entity(self, name: str) -> Entity | None:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def validate(self) -> None:
        """Raise ValueError if two entities share a name."""
        seen: set[str] = set()
        for entity in self.entities:
            if entity.name in seen:
                raise ValueError(f"Duplicate entity name '{entity.name}'")
            seen.add(entity.name)


# ============================================================================
# Geometry — bounding boxes and routing results
# ============================================================================


@dataclass(slots=True)
class Bounds:
    """Rectangle occupied by a rendered entity, in diagram space."""

    left: float
    top: float
    right: float
    bottom: float
    center_x: float
    center_y: float

    @classmethod
    def from_rect(cls, x: float, y: float, width: float, height: float) -> Bounds:
        return cls(
            left=x,
            top=y,
            right=x + width,
            bottom=y + height,
            center_x=x + width / 2,
            center_y=y + height / 2,
        )

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass(slots=True)
class ConnectionPoints:
    """Anchor pair for one relationship connector."""

    from_point: Point
    to_point: Point


@dataclass(slots=True)
class RoutedPath:
    points: list[Point]
    # False only when every strategy collided and the direct route was kept
    collision_free: bool
    # Name of the strategy that produced the points
    strategy: str


# ============================================================================
# Positioned diagram — output of the layout pipeline
# ============================================================================


@dataclass(slots=True)
class PositionedEntity:
    name: str
    x: float
    y: float
    width: float
    height: float
    bounds: Bounds
    # True when the position was computed rather than supplied
    computed: bool = False


@dataclass(slots=True)
class PositionedRelationship:
    relationship: Relationship
    from_point: Point
    to_point: Point
    points: list[Point]
    # SVG-style "M x y L x y ..." descriptor
    path: str
    collision_free: bool = True


@dataclass(slots=True)
class PositionedDiagram:
    width: float
    height: float
    entities: list[PositionedEntity] = field(default_factory=list)
    relationships: list[PositionedRelationship] = field(default_factory=list)

    @property
    def positions(self) -> dict[str, Point]:
        return {e.name: Point(x=e.x, y=e.y) for e in self.entities}


# ============================================================================
# Layout options — user-facing configuration
# ============================================================================


@dataclass(slots=True)
class LayoutOptions:
    # Grid fallback used when no schema data is available
    grid_columns: int = 4
    grid_origin: float = 50
    grid_spacing_x: float = 200
    grid_spacing_y: float = 150

    # Cluster anchors: clusters_per_row clusters per row
    clusters_per_row: int = 2
    cluster_origin: float = 100
    cluster_spacing_x: float = 600
    cluster_spacing_y: float = 400
    # Distance between entities in clusters of 2-4
    small_cluster_spacing: float = 220

    # Force relaxation for clusters larger than 4
    min_spacing: float = 280
    initial_spacing: float = 320
    iterations: int = 100
    repulsion_strength: float = 0.3
    attraction_strength: float = 0.005
    damping: float = 0.8

    # Free-cell search when an entity has no cluster
    available_cells_x: int = 10
    available_cells_y: int = 10

    # Entity box metrics
    header_height: float = 30
    row_height: float = 20
    bottom_padding: float = 8
    min_entity_width: float = 180

    # Distance of anchors outside the entity border (0 = on the border)
    anchor_margin: float = 5

    # Smart routing
    route_padding: float = 20
    route_offset: float = 50
