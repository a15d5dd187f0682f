from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Literal

from .geometry import path_intersects_any_rectangle, points_to_path_string
from .types import Bounds, LayoutOptions, Point, RoutedPath

logger = logging.getLogger(__name__)

# ============================================================================
# Smart routing for relationship connectors
#
# Greedy search over a fixed list of orthogonal route shapes:
#
#   1. direct        L-shape bending at the horizontal midpoint
#   2. horizontal    detour past the first box blocking the outgoing row
#   3. vertical      detour past the first box blocking the outgoing column
#   4. offset+N      zig-zag through the midpoint shifted by +N
#   5. offset-N      zig-zag through the midpoint shifted by -N
#
# The first candidate that touches no entity box wins. When all collide the
# direct L-shape is returned anyway, flagged as not collision-free.
# ============================================================================

RouteStrategy = Callable[[Point, Point], list[Point]]

FALLBACK_STRATEGY = "fallback"


class SmartRouter:
    def __init__(
        self,
        entity_bounds: Iterable[Bounds] | None = None,
        options: LayoutOptions | None = None,
    ) -> None:
        self.options = options or LayoutOptions()
        self.entity_bounds: list[Bounds] = list(entity_bounds or [])

    def set_entity_bounds(self, bounds: Iterable[Bounds]) -> None:
        self.entity_bounds = list(bounds)

    # ------------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------------

    def create_polyline_path(self, from_point: Point, to_point: Point) -> str:
        return points_to_path_string(self.find_smart_path(from_point, to_point))

    def find_smart_path(self, from_point: Point, to_point: Point) -> list[Point]:
        return self.route(from_point, to_point).points

    def route(self, from_point: Point, to_point: Point) -> RoutedPath:
        """Route a connector and report which strategy produced it."""
        for name, strategy in self.strategies():
            path = strategy(from_point, to_point)
            if not self.path_intersects_entities(path):
                return RoutedPath(points=path, collision_free=True, strategy=name)

        logger.debug(
            f"No collision-free route from ({from_point.x}, {from_point.y}) "
            f"to ({to_point.x}, {to_point.y}); using direct path"
        )
        return RoutedPath(
            points=self.create_l_shaped_path(from_point, to_point),
            collision_free=False,
            strategy=FALLBACK_STRATEGY,
        )

    def strategies(self) -> list[tuple[str, RouteStrategy]]:
        """Candidate generators in the order they are tried."""
        offset = self.options.route_offset
        return [
            ("direct", self.create_l_shaped_path),
            ("horizontal", lambda a, b: self.route_around_entities(a, b, "horizontal")),
            ("vertical", lambda a, b: self.route_around_entities(a, b, "vertical")),
            (f"offset+{offset:g}", lambda a, b: self.route_with_offset(a, b, offset)),
            (f"offset-{offset:g}", lambda a, b: self.route_with_offset(a, b, -offset)),
        ]

    def path_intersects_entities(self, points: list[Point]) -> bool:
        return path_intersects_any_rectangle(points, self.entity_bounds)

    # ------------------------------------------------------------------------
    # Route shapes
    # ------------------------------------------------------------------------

    def create_l_shaped_path(self, from_point: Point, to_point: Point) -> list[Point]:
        mid_x = (from_point.x + to_point.x) / 2
        return [
            Point(x=from_point.x, y=from_point.y),
            Point(x=mid_x, y=from_point.y),
            Point(x=mid_x, y=to_point.y),
            Point(x=to_point.x, y=to_point.y),
        ]

    def route_around_entities(
        self,
        from_point: Point,
        to_point: Point,
        direction: Literal["horizontal", "vertical"],
    ) -> list[Point]:
        padding = self.options.route_padding

        if direction == "horizontal":
            clear_x = self.find_clear_horizontal_path(
                from_point.x, to_point.x, from_point.y, padding
            )
            return [
                Point(x=from_point.x, y=from_point.y),
                Point(x=clear_x, y=from_point.y),
                Point(x=clear_x, y=to_point.y),
                Point(x=to_point.x, y=to_point.y),
            ]

        clear_y = self.find_clear_vertical_path(
            from_point.y, to_point.y, from_point.x, padding
        )
        return [
            Point(x=from_point.x, y=from_point.y),
            Point(x=from_point.x, y=clear_y),
            Point(x=to_point.x, y=clear_y),
            Point(x=to_point.x, y=to_point.y),
        ]

    def route_with_offset(self, from_point: Point, to_point: Point, offset: float) -> list[Point]:
        mid_x = (from_point.x + to_point.x) / 2 + offset
        mid_y = (from_point.y + to_point.y) / 2 + offset
        return [
            Point(x=from_point.x, y=from_point.y),
            Point(x=mid_x, y=from_point.y),
            Point(x=mid_x, y=mid_y),
            Point(x=to_point.x, y=mid_y),
            Point(x=to_point.x, y=to_point.y),
        ]

    # ------------------------------------------------------------------------
    # Clearance search
    # ------------------------------------------------------------------------

    def find_clear_horizontal_path(
        self, start_x: float, end_x: float, y: float, padding: float
    ) -> float:
        """X just past the first box blocking the row y between start_x and end_x."""
        min_x = min(start_x, end_x)
        max_x = max(start_x, end_x)

        for bounds in self.entity_bounds:
            if (
                bounds.top - padding <= y <= bounds.bottom + padding
                and bounds.left <= max_x + padding
                and bounds.right >= min_x - padding
            ):
                if start_x < end_x:
                    return bounds.right + padding
                return bounds.left - padding

        return (start_x + end_x) / 2

    def find_clear_vertical_path(
        self, start_y: float, end_y: float, x: float, padding: float
    ) -> float:
        """Y just past the first box blocking the column x between start_y and end_y."""
        min_y = min(start_y, end_y)
        max_y = max(start_y, end_y)

        for bounds in self.entity_bounds:
            if (
                bounds.left - padding <= x <= bounds.right + padding
                and bounds.top <= max_y + padding
                and bounds.bottom >= min_y - padding
            ):
                if start_y < end_y:
                    return bounds.bottom + padding
                return bounds.top - padding

        return (start_y + end_y) / 2
