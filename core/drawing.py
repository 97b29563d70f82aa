"""
Interactive shape capture: click-by-click polygons with closing-point
snapping, drag rectangles, and point-drag edits of existing rings.
"""

import logging
from typing import Optional, Sequence

from core.errors import InputError
from core.geometry import as_points, close_ring, distance, is_closed
from core.models import Point

logger = logging.getLogger(__name__)

# Clicking within this many pixels of the first point closes the polygon
SNAP_RADIUS_PX = 10.0

# Minimum vertices for a polygon label
MIN_POLYGON_POINTS = 3

# Closing point is mirrored when it lies within this distance of the old first point
CLOSING_POINT_TOLERANCE_PX = 1.0


class PolygonDraft:
    """
    Polygon being drawn point by point.

    Points are collected in open form. Once at least three points exist, a
    click close to the first point snaps onto it and closes the draft
    instead of adding a vertex.
    """

    def __init__(self, snap_radius: float = SNAP_RADIUS_PX):
        self.snap_radius = snap_radius
        self.points: list[Point] = []
        self.closed = False

    def __len__(self) -> int:
        return len(self.points)

    @property
    def can_close(self) -> bool:
        return not self.closed and len(self.points) >= MIN_POLYGON_POINTS

    def snaps_to_start(self, point: Point) -> bool:
        """True if a click at point would close the polygon."""
        return self.can_close and distance(point, self.points[0]) <= self.snap_radius

    def add_point(self, point) -> bool:
        """
        Add a clicked point.

        Returns:
            True if the click snapped to the first point and closed the draft
        """
        if self.closed:
            raise InputError("Polygon is already closed")

        point = as_points([point])[0]
        if self.snaps_to_start(point):
            self.closed = True
            logger.debug(f"Polygon closed by snapping after {len(self.points)} points")
            return True

        self.points.append(point)
        return False

    def undo_point(self) -> Optional[Point]:
        """Remove the last point of an open draft."""
        if self.closed or not self.points:
            return None
        return self.points.pop()

    def finish(self) -> list[Point]:
        """
        Finish the draft and return the closed ring.

        Raises:
            InputError: if fewer than three points were drawn
        """
        if len(self.points) < MIN_POLYGON_POINTS:
            raise InputError(
                f"Polygon needs at least {MIN_POLYGON_POINTS} points, got {len(self.points)}"
            )
        self.closed = True
        return close_ring(self.points)

    def reset(self):
        self.points = []
        self.closed = False


def rectangle_from_drag(start, end, min_size: float = 1.0) -> list[Point]:
    """
    Convert a drag gesture into an open 4-point rectangle.

    The rectangle is normalized so it starts at the top-left corner whatever
    the drag direction was.

    Raises:
        InputError: if either side is shorter than min_size
    """
    start, end = as_points([start, end])
    x1, x2 = sorted((start.x, end.x))
    y1, y2 = sorted((start.y, end.y))

    if x2 - x1 < min_size or y2 - y1 < min_size:
        raise InputError(
            f"Rectangle {x2 - x1:.1f}x{y2 - y1:.1f}px is smaller than {min_size}px"
        )

    return [Point(x1, y1), Point(x2, y1), Point(x2, y2), Point(x1, y2)]


def move_point(points: Sequence[Point], index: int, new_position) -> list[Point]:
    """
    Replace one vertex of a ring.

    When the first point of a closed ring moves, the closing copy follows it.

    Returns:
        New list of points (input is not modified)
    """
    points = list(points)
    if not 0 <= index < len(points):
        raise InputError(f"Point index {index} out of range for {len(points)} points")

    new_position = as_points([new_position])[0]
    old_first = points[0]
    points[index] = new_position

    if index == 0 and len(points) > 1:
        last = points[-1]
        if (abs(last.x - old_first.x) < CLOSING_POINT_TOLERANCE_PX
                and abs(last.y - old_first.y) < CLOSING_POINT_TOLERANCE_PX):
            points[-1] = new_position

    return points


def normalize_ring(points: Sequence) -> list[Point]:
    """
    Validate a user-supplied polygon and return it in closed form.

    Raises:
        InputError: if the ring has fewer than three distinct vertices
    """
    points = as_points(points)
    open_count = len(points) - 1 if is_closed(points) else len(points)
    if open_count < MIN_POLYGON_POINTS:
        raise InputError(
            f"Polygon needs at least {MIN_POLYGON_POINTS} points, got {open_count}"
        )
    return close_ring(points)
