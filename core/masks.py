"""
Region mask utilities - bounding box, area, boundary and contour extraction
for boolean pixel masks.
"""

import numpy as np
import cv2
from typing import Optional, Sequence

from core.geometry import BoundingBox
from core.models import Point


def mask_to_bbox(mask: np.ndarray) -> Optional[BoundingBox]:
    """
    Get the bounding box of the set pixels of a mask.

    Args:
        mask: Binary mask of shape (H, W)

    Returns:
        BoundingBox with inclusive pixel coordinates, or None for an empty mask
    """
    rows = np.any(mask, axis=1)
    cols = np.any(mask, axis=0)

    if not rows.any():
        return None

    y1, y2 = np.where(rows)[0][[0, -1]]
    x1, x2 = np.where(cols)[0][[0, -1]]

    return BoundingBox(float(x1), float(x2), float(y1), float(y2))


def mask_area(mask: np.ndarray) -> int:
    """Get the area (number of pixels) of a mask."""
    return int(np.count_nonzero(mask))


def mask_boundary(mask: np.ndarray) -> np.ndarray:
    """
    Pixels of the mask with at least one 4-neighbor outside the mask.

    Pixels on the image border count as touching the outside.
    """
    mask = mask.astype(bool)
    padded = np.pad(mask, 1, mode="constant", constant_values=False)
    interior = (
        padded[:-2, 1:-1] & padded[2:, 1:-1] &
        padded[1:-1, :-2] & padded[1:-1, 2:]
    )
    return mask & ~interior


def boundary_points(mask: np.ndarray) -> list[Point]:
    """Boundary pixels of a mask as Points, in row-major order."""
    ys, xs = np.nonzero(mask_boundary(mask))
    return [Point(float(x), float(y)) for x, y in zip(xs, ys)]


def mask_to_contours(mask: np.ndarray) -> list[np.ndarray]:
    """
    Extract outer contours from a binary mask.

    Args:
        mask: Binary mask (H, W) with values 0 or 1/255 or bool

    Returns:
        List of contours, each as Nx1x2 array of points
    """
    mask = mask.astype(np.uint8)
    if mask.max() == 1:
        mask = mask * 255

    contours, _ = cv2.findContours(
        mask,
        cv2.RETR_EXTERNAL,  # Only external contours
        cv2.CHAIN_APPROX_NONE  # Keep every boundary pixel for our own simplification
    )
    return list(contours)


def largest_contour(contours: list[np.ndarray]) -> Optional[np.ndarray]:
    """Get the largest contour by area, or None if empty."""
    if not contours:
        return None
    return max(contours, key=cv2.contourArea)


def contour_to_points(contour: np.ndarray) -> list[Point]:
    """Convert an OpenCV contour to a list of Points."""
    points = contour.reshape(-1, 2)
    return [Point(float(p[0]), float(p[1])) for p in points]


def polygon_to_mask(polygon: Sequence[Point], height: int, width: int) -> np.ndarray:
    """Rasterize a polygon to a boolean mask of shape (height, width)."""
    mask = np.zeros((height, width), dtype=np.uint8)
    if len(polygon) < 3:
        return mask.astype(bool)
    pts = np.round(np.array([[p[0], p[1]] for p in polygon])).astype(np.int32)
    cv2.fillPoly(mask, [pts.reshape(-1, 1, 2)], 1)
    return mask.astype(bool)
