from __future__ import annotations

import logging
from collections.abc import Mapping

from .bounds import entity_bounds
from .clustering import ClusteringEngine
from .connection_points import ConnectionPointResolver
from .geometry import points_to_path_string
from .routing import SmartRouter
from .types import (
    Bounds,
    ERData,
    LayoutOptions,
    Point,
    PositionedDiagram,
    PositionedEntity,
    PositionedRelationship,
)

logger = logging.getLogger(__name__)

# ============================================================================
# ER diagram layout pipeline
#
#   1. Position every entity: saved position, own position, or clustered
#   2. Size each entity box from its name and columns
#   3. Anchor each relationship on the facing borders of its two boxes
#   4. Route each connector around all entity boxes
# ============================================================================

# Padding kept around the content when computing the diagram extent
DIAGRAM_PADDING = 40


def layout_er_data(
    er_data: ERData,
    positions: Mapping[str, Point] | None = None,
    options: LayoutOptions | None = None,
) -> PositionedDiagram:
    """Lay out a schema: positions for every entity and a path per relationship.

    `positions` holds previously saved positions by entity name; entities
    found there (or carrying their own position) are not moved.
    """
    if options is None:
        options = LayoutOptions()
    positions = positions or {}

    er_data.validate()

    if len(er_data.entities) == 0:
        return PositionedDiagram(width=0, height=0)

    # 1. Positions
    engine = ClusteringEngine(er_data, options)
    positioned_entities: list[PositionedEntity] = []
    bounds_by_name: dict[str, Bounds] = {}

    for index, entity in enumerate(er_data.entities):
        known = positions.get(entity.name) or entity.position
        if known is not None:
            pos = Point(x=known.x, y=known.y)
        else:
            pos = engine.calculate_clustered_position(entity, index)

        # 2. Box size
        bounds = entity_bounds(entity, pos, options)
        bounds_by_name[entity.name] = bounds
        positioned_entities.append(
            PositionedEntity(
                name=entity.name,
                x=pos.x,
                y=pos.y,
                width=bounds.width,
                height=bounds.height,
                bounds=bounds,
                computed=known is None,
            )
        )

    # 3 + 4. Anchors and routes
    resolver = ConnectionPointResolver(er_data, options)
    router = SmartRouter(bounds_by_name.values(), options)
    relationships: list[PositionedRelationship] = []

    for rel in er_data.relationships:
        from_bounds = bounds_by_name.get(rel.from_entity)
        to_bounds = bounds_by_name.get(rel.to_entity)
        if from_bounds is None or to_bounds is None:
            logger.debug(
                f"Skipping relationship {rel.from_entity} -> {rel.to_entity}: unknown entity"
            )
            continue

        anchors = resolver.find_optimal_connection_points(from_bounds, to_bounds, rel)
        routed = router.route(anchors.from_point, anchors.to_point)

        relationships.append(
            PositionedRelationship(
                relationship=rel,
                from_point=anchors.from_point,
                to_point=anchors.to_point,
                points=routed.points,
                path=points_to_path_string(routed.points),
                collision_free=routed.collision_free,
            )
        )

    # Diagram extent
    max_x = max(
        [b.right for b in bounds_by_name.values()]
        + [p.x for r in relationships for p in r.points]
    )
    max_y = max(
        [b.bottom for b in bounds_by_name.values()]
        + [p.y for r in relationships for p in r.points]
    )

    colliding = sum(1 for r in relationships if not r.collision_free)
    logger.debug(
        f"Laid out {len(positioned_entities)} entities and {len(relationships)} "
        f"relationships ({colliding} colliding routes)"
    )

    return PositionedDiagram(
        width=max_x + DIAGRAM_PADDING,
        height=max_y + DIAGRAM_PADDING,
        entities=positioned_entities,
        relationships=relationships,
    )
