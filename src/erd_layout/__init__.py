"""erd-layout — automatic layout and connector routing for ER diagrams."""

from __future__ import annotations

from .types import (
    Point,
    Column,
    Entity,
    Relationship,
    ERData,
    Bounds,
    ConnectionPoints,
    RoutedPath,
    PositionedEntity,
    PositionedRelationship,
    PositionedDiagram,
    LayoutOptions,
)
from .geometry import (
    segments_intersect,
    point_in_rectangle,
    segment_intersects_rectangle,
    path_intersects_any_rectangle,
    points_to_path_string,
    parse_path_string,
    simplify_path,
)
from .bounds import entity_bounds, all_entity_bounds
from .clustering import ClusteringEngine
from .connection_points import ConnectionPointResolver
from .routing import SmartRouter
from .layout import layout_er_data

__version__ = "0.1.0"

__all__ = [
    "layout_er_data",
    "ClusteringEngine",
    "ConnectionPointResolver",
    "SmartRouter",
    "Point",
    "Column",
    "Entity",
    "Relationship",
    "ERData",
    "Bounds",
    "ConnectionPoints",
    "RoutedPath",
    "PositionedEntity",
    "PositionedRelationship",
    "PositionedDiagram",
    "LayoutOptions",
    "segments_intersect",
    "point_in_rectangle",
    "segment_intersects_rectangle",
    "path_intersects_any_rectangle",
    "points_to_path_string",
    "parse_path_string",
    "simplify_path",
    "entity_bounds",
    "all_entity_bounds",
]
