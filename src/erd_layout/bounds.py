from __future__ import annotations

from collections.abc import Mapping, Sequence

from .styles import (
    ENTITY_BOX_PAD_X,
    FONT_SIZES,
    FONT_WEIGHTS,
    KEY_MARKER_GAP,
    estimate_mono_text_width,
    estimate_text_width,
)
from .types import Bounds, Column, Entity, LayoutOptions, Point

# ============================================================================
# Entity box metrics
#
# Each entity box has:
#   1. Header (entity name)
#   2. One row per column, in column order
#   3. A small bottom padding
#
# Width grows with the longest label; height with the column count.
# ============================================================================


def column_label(column: Column) -> str:
    """Text of a column row: the name followed by its PK/FK markers."""
    keys = []
    if column.is_primary_key:
        keys.append("PK")
    if column.is_foreign_key:
        keys.append("FK")
    if not keys:
        return column.name
    return column.name + KEY_MARKER_GAP + ",".join(keys)


def entity_size(entity: Entity, options: LayoutOptions | None = None) -> tuple[float, float]:
    """Width and height of the rendered box for an entity."""
    if options is None:
        options = LayoutOptions()

    header_w = estimate_text_width(
        entity.name, FONT_SIZES["entity_name"], FONT_WEIGHTS["entity_name"]
    )
    max_column_w = 0.0
    for column in entity.columns:
        w = estimate_mono_text_width(column_label(column), FONT_SIZES["column"])
        if w > max_column_w:
            max_column_w = w

    width = max(
        options.min_entity_width,
        header_w + ENTITY_BOX_PAD_X * 2,
        max_column_w + ENTITY_BOX_PAD_X * 2,
    )
    height = (
        options.header_height
        + len(entity.columns) * options.row_height
        + options.bottom_padding
    )
    return width, height


def entity_bounds(
    entity: Entity,
    position: Point | None = None,
    options: LayoutOptions | None = None,
) -> Bounds:
    """Bounding box of an entity placed at position (defaults to its own)."""
    pos = position or entity.position or Point(x=50, y=50)
    width, height = entity_size(entity, options)
    return Bounds.from_rect(pos.x, pos.y, width, height)


def all_entity_bounds(
    entities: Sequence[Entity],
    positions: Mapping[str, Point] | None = None,
    options: LayoutOptions | None = None,
) -> list[Bounds]:
    positions = positions or {}
    return [entity_bounds(e, positions.get(e.name), options) for e in entities]
