"""
Point and polygon geometry: bounding boxes, shoelace area, vertex centroid,
Douglas-Peucker simplification and ring helpers.

All functions are pure. Polygons are lists of Point; a "closed" ring repeats
its first point at the end.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from core.errors import InputError
from core.models import Point

# Douglas-Peucker tolerance as a fraction of the larger bounding-box side
SIMPLIFY_RATIO = 0.02


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box in pixel coordinates."""
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def to_dict(self) -> dict:
        return {"minX": self.min_x, "maxX": self.max_x, "minY": self.min_y, "maxY": self.max_y}


def as_points(points: Sequence) -> list[Point]:
    """
    Coerce a sequence of (x, y) pairs or {"x", "y"} dicts to Points.

    Raises:
        InputError: if an item is not a 2D point
    """
    result = []
    for i, p in enumerate(points):
        if isinstance(p, Point):
            result.append(p)
            continue
        try:
            result.append(Point.from_dict(p))
        except (KeyError, TypeError, ValueError) as e:
            raise InputError(f"Invalid point at index {i}: {p!r}") from e
    return result


def bounding_box(points: Sequence[Point]) -> Optional[BoundingBox]:
    """
    Get the bounding box of a point list.

    Returns:
        BoundingBox or None if points is empty
    """
    if not points:
        return None
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return BoundingBox(min(xs), max(xs), min(ys), max(ys))


def polygon_area(points: Sequence[Point]) -> float:
    """
    Calculate the area of a polygon using the shoelace formula.

    Works on open and closed rings alike (the duplicated closing point adds
    a zero term).

    Args:
        points: List of points

    Returns:
        Area in square pixels, 0.0 for fewer than 3 points
    """
    n = len(points)
    if n < 3:
        return 0.0

    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += points[i][0] * points[j][1]
        area -= points[j][0] * points[i][1]

    return abs(area) / 2.0


def centroid(points: Sequence[Point]) -> Optional[Point]:
    """Vertex average of the points (not the area-weighted centroid)."""
    if not points:
        return None
    n = len(points)
    return Point(sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)


def distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def perpendicular_distance(point: Point, line_start: Point, line_end: Point) -> float:
    """
    Distance from a point to the line through line_start and line_end.

    Falls back to the Euclidean distance to line_start when both line
    points coincide.
    """
    dx = line_end[0] - line_start[0]
    dy = line_end[1] - line_start[1]
    length = math.hypot(dx, dy)
    if length == 0:
        return distance(point, line_start)

    cross = dx * (line_start[1] - point[1]) - dy * (line_start[0] - point[0])
    return abs(cross) / length


def simplify_polygon(points: Sequence[Point], epsilon: float) -> list[Point]:
    """
    Simplify an open point chain with the Douglas-Peucker algorithm.

    The first and last points are always kept. A point survives only if it
    lies more than epsilon away from the chord of the span it splits.

    Args:
        points: Open chain of points
        epsilon: Distance tolerance in pixels (>= 0)

    Returns:
        Simplified list of points
    """
    if epsilon < 0:
        raise InputError(f"epsilon must be non-negative, got {epsilon}")

    points = list(points)
    if len(points) <= 2:
        return points

    first, last = points[0], points[-1]
    max_dist = 0.0
    index = 0
    for i in range(1, len(points) - 1):
        d = perpendicular_distance(points[i], first, last)
        if d > max_dist:
            max_dist = d
            index = i

    if max_dist > epsilon:
        left = simplify_polygon(points[:index + 1], epsilon)
        right = simplify_polygon(points[index:], epsilon)
        # Joint point appears at the end of left and the start of right
        return left[:-1] + right

    return [first, last]


def simplify_epsilon(bbox: BoundingBox, ratio: float = SIMPLIFY_RATIO) -> float:
    """Scale-invariant simplification tolerance for a feature of this size."""
    return ratio * max(bbox.width, bbox.height)


def is_closed(points: Sequence[Point], tolerance: float = 0.0) -> bool:
    """True if the ring repeats its first point at the end."""
    if len(points) < 2:
        return False
    return distance(points[0], points[-1]) <= tolerance


def close_ring(points: Sequence[Point]) -> list[Point]:
    """Append a copy of the first point unless the ring is already closed."""
    points = list(points)
    if not points or is_closed(points):
        return points
    return points + [points[0]]


def open_ring(points: Sequence[Point]) -> list[Point]:
    """Strip the duplicated closing point, if any."""
    points = list(points)
    if len(points) > 1 and is_closed(points):
        return points[:-1]
    return points


def rectangle(bbox: BoundingBox) -> list[Point]:
    """Open 4-point ring for a bounding box, clockwise from top-left."""
    return [
        Point(bbox.min_x, bbox.min_y),
        Point(bbox.max_x, bbox.min_y),
        Point(bbox.max_x, bbox.max_y),
        Point(bbox.min_x, bbox.max_y),
    ]


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Ray-casting containment test (boundary points may go either way)."""
    ring = open_ring(polygon)
    n = len(ring)
    if n < 3:
        return False

    x, y = point[0], point[1]
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside
