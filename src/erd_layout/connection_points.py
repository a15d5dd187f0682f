from __future__ import annotations

from .types import Bounds, ConnectionPoints, ERData, LayoutOptions, Point, Relationship

# ============================================================================
# Connection points
#
# Picks where a relationship connector attaches to each entity box: on the
# left or right border, whichever faces the other entity, at the height of
# the referenced column row (or the box's vertical centre).
# ============================================================================


class ConnectionPointResolver:
    def __init__(
        self,
        er_data: ERData | None = None,
        options: LayoutOptions | None = None,
    ) -> None:
        self.options = options or LayoutOptions()
        self._er_data = er_data

    def set_er_data(self, er_data: ERData | None) -> None:
        self._er_data = er_data

    def find_optimal_connection_points(
        self,
        from_bounds: Bounds,
        to_bounds: Bounds,
        relationship: Relationship | None = None,
    ) -> ConnectionPoints:
        """Anchor pair for a connector between two entity boxes."""
        from_y = from_bounds.center_y
        to_y = to_bounds.center_y

        if relationship is not None and relationship.from_column and relationship.to_column:
            column_y = self.column_anchor_y(
                from_bounds, relationship.from_entity, relationship.from_column
            )
            if column_y is not None:
                from_y = column_y
            column_y = self.column_anchor_y(
                to_bounds, relationship.to_entity, relationship.to_column
            )
            if column_y is not None:
                to_y = column_y

        return ConnectionPoints(
            from_point=Point(x=self.border_x(from_bounds, to_bounds), y=from_y),
            to_point=Point(x=self.border_x(to_bounds, from_bounds), y=to_y),
        )

    def column_anchor_y(self, bounds: Bounds, entity_name: str, column_name: str) -> float | None:
        """Vertical middle of the column's row, or None if it cannot be found."""
        if self._er_data is None:
            return None
        entity = self._er_data.entity(entity_name)
        if entity is None:
            return None

        for index, column in enumerate(entity.columns):
            if column.name == column_name:
                row_height = self.options.row_height
                return (
                    bounds.top
                    + self.options.header_height
                    + (index + 1) * row_height
                    - row_height / 2
                )
        return None

    def border_x(self, bounds: Bounds, other: Bounds) -> float:
        """Right border if the other box's centre lies to the right, else left."""
        margin = self.options.anchor_margin
        if other.center_x - bounds.center_x > 0:
            return bounds.right + margin
        return bounds.left - margin
