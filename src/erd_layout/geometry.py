from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from .types import Bounds, Point

# ============================================================================
# Geometry primitives — intersection tests and path helpers
#
# Everything here is pure. The router uses path_intersects_any_rectangle()
# as its only collision oracle.
# ============================================================================

# Below this denominator two segments are treated as parallel
PARALLEL_EPSILON = 1e-4

_PATH_TOKEN = re.compile(r"[ML]|[^\sML]+")


def segments_intersect(p1: Point, p2: Point, p3: Point, p4: Point) -> bool:
    """Whether segment p1-p2 crosses segment p3-p4.

    Parallel and collinear segments never intersect.
    """
    denom = (p4.y - p3.y) * (p2.x - p1.x) - (p4.x - p3.x) * (p2.y - p1.y)
    if abs(denom) < PARALLEL_EPSILON:
        return False

    ua = ((p4.x - p3.x) * (p1.y - p3.y) - (p4.y - p3.y) * (p1.x - p3.x)) / denom
    ub = ((p2.x - p1.x) * (p1.y - p3.y) - (p2.y - p1.y) * (p1.x - p3.x)) / denom

    return 0 <= ua <= 1 and 0 <= ub <= 1


def point_in_rectangle(point: Point, rect: Bounds) -> bool:
    """Inclusive containment test on all four sides."""
    return rect.left <= point.x <= rect.right and rect.top <= point.y <= rect.bottom


def segment_intersects_rectangle(start: Point, end: Point, rect: Bounds) -> bool:
    top_left = Point(x=rect.left, y=rect.top)
    top_right = Point(x=rect.right, y=rect.top)
    bottom_right = Point(x=rect.right, y=rect.bottom)
    bottom_left = Point(x=rect.left, y=rect.bottom)

    if (
        segments_intersect(start, end, top_left, top_right)
        or segments_intersect(start, end, top_right, bottom_right)
        or segments_intersect(start, end, bottom_right, bottom_left)
        or segments_intersect(start, end, bottom_left, top_left)
    ):
        return True

    return point_in_rectangle(start, rect) or point_in_rectangle(end, rect)


def path_intersects_any_rectangle(points: Sequence[Point], rects: Iterable[Bounds]) -> bool:
    """Whether any segment of the polyline touches any of the rectangles."""
    rects = list(rects)
    for i in range(len(points) - 1):
        start = points[i]
        end = points[i + 1]
        for rect in rects:
            if segment_intersects_rectangle(start, end, rect):
                return True
    return False


# ============================================================================
# Path descriptors
# ============================================================================


def _format_number(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def points_to_path_string(points: Sequence[Point]) -> str:
    """Render points as "M x0 y0 L x1 y1 L ...", one bend per interior point."""
    if not points:
        return ""
    return "M " + " L ".join(f"{_format_number(p.x)} {_format_number(p.y)}" for p in points)


def parse_path_string(path: str) -> list[Point]:
    """Parse a descriptor produced by points_to_path_string() back into points."""
    tokens = _PATH_TOKEN.findall(path)
    if not tokens:
        return []

    points: list[Point] = []
    i = 0
    while i < len(tokens):
        command = tokens[i]
        expected = "M" if i == 0 else "L"
        if command != expected:
            raise ValueError(f"Expected '{expected}' at token {i} in path '{path}', got '{command}'")
        if i + 2 >= len(tokens):
            raise ValueError(f"Truncated coordinate pair at token {i} in path '{path}'")
        try:
            x = float(tokens[i + 1])
            y = float(tokens[i + 2])
        except ValueError as err:
            raise ValueError(f"Invalid coordinate at token {i} in path '{path}'") from err
        points.append(Point(x=x, y=y))
        i += 3

    return points


def simplify_path(points: Sequence[Point]) -> list[Point]:
    """Drop interior points that lie on a straight line with their neighbours.

    Duplicate points count as collinear, so a direct route between two anchors
    at the same height collapses to its two endpoints.
    """
    if len(points) < 3:
        return list(points)
    out: list[Point] = [points[0]]
    for i in range(1, len(points) - 1):
        a = out[-1]
        b = points[i]
        c = points[i + 1]
        same_x = a.x == b.x and b.x == c.x
        same_y = a.y == b.y and b.y == c.y
        if same_x or same_y or (a.x == b.x and a.y == b.y):
            continue
        out.append(b)
    out.append(points[-1])
    return out
