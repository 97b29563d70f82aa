"""
Magic wand segmentation - grow a region from a seed pixel and turn its
boundary into a simplified polygon.

The region grows over pixels whose color is close to the seed color and
whose edge strength stays below a threshold, so drawn outlines on a site
plan stop the fill even where the colors on both sides match.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Optional

import numpy as np

from core.errors import DetectionFailure, InputError, ResourceExceededError
from core.geometry import (
    BoundingBox, as_points, centroid, close_ring, rectangle, simplify_epsilon, simplify_polygon,
)
from core.images import Raster
from core.masks import (
    boundary_points, contour_to_points, largest_contour, mask_area, mask_to_bbox, mask_to_contours,
)
from core.models import Point

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 30  # Max L1 RGB distance to the seed color
DEFAULT_EDGE_THRESHOLD = 50  # Max gradient magnitude inside the region

MAX_REGION_PIXELS = 500_000
MIN_REGION_PIXELS = 100
MAX_RING_POINTS = 50

# Edge strength assigned to pixels on the image border
BORDER_EDGE_STRENGTH = 255.0

METHODS = ("angular", "contour")


@dataclass
class SegmentResult:
    """Outcome of a magic wand selection."""
    polygon: list[Point]  # Open ring
    pixel_count: int
    bbox: BoundingBox
    fallback_used: bool = False  # True if the bounding-box rectangle replaced the traced ring
    capped: bool = False  # True if the fill stopped at MAX_REGION_PIXELS
    method: str = "angular"

    @property
    def closed_polygon(self) -> list[Point]:
        return close_ring(self.polygon)

    def to_dict(self) -> dict:
        return {
            "points": [p.to_dict() for p in self.closed_polygon],
            "pixelCount": self.pixel_count,
            "bbox": self.bbox.to_dict(),
            "fallbackUsed": self.fallback_used,
            "capped": self.capped,
            "method": self.method,
        }


def edge_strength_map(rgb: np.ndarray) -> np.ndarray:
    """
    Gradient magnitude of every pixel.

    gx sums the absolute per-channel differences between the left and right
    neighbors, gy between the pixels above and below; strength is
    sqrt(gx^2 + gy^2). Border pixels get BORDER_EDGE_STRENGTH.

    Args:
        rgb: Image array (H, W, 3)

    Returns:
        Float array (H, W)
    """
    img = rgb[:, :, :3].astype(np.int32)
    h, w = img.shape[:2]
    edges = np.full((h, w), BORDER_EDGE_STRENGTH, dtype=np.float64)
    if h < 3 or w < 3:
        return edges

    gx = np.abs(img[1:-1, 2:] - img[1:-1, :-2]).sum(axis=2)
    gy = np.abs(img[2:, 1:-1] - img[:-2, 1:-1]).sum(axis=2)
    edges[1:-1, 1:-1] = np.sqrt(gx.astype(np.float64) ** 2 + gy.astype(np.float64) ** 2)
    return edges


def flood_fill(
    raster: Raster,
    seed_x: int,
    seed_y: int,
    tolerance: float = DEFAULT_TOLERANCE,
    edge_threshold: float = DEFAULT_EDGE_THRESHOLD,
    max_pixels: int = MAX_REGION_PIXELS,
) -> tuple[np.ndarray, bool]:
    """
    Breadth-first, 4-connected region growing from a seed pixel.

    A pixel joins the region if its edge strength is at most edge_threshold
    and its L1 RGB distance to the seed color is at most tolerance.
    max_pixels caps the number of accepted pixels; rejected neighbours are
    not counted.

    Returns:
        (mask, capped): boolean region mask (H, W) and whether the fill
        stopped at max_pixels
    """
    h, w = raster.height, raster.width
    rgb = raster.rgb.astype(np.int32)

    seed_color = rgb[seed_y, seed_x]
    color_ok = np.abs(rgb - seed_color).sum(axis=2) <= tolerance
    acceptable = (color_ok & (edge_strength_map(rgb) <= edge_threshold)).ravel().tolist()

    region = np.zeros(h * w, dtype=bool)
    visited = bytearray(h * w)

    start = seed_y * w + seed_x
    visited[start] = 1
    queue = deque([start])
    count = 0
    capped = False

    while queue:
        idx = queue.popleft()
        if not acceptable[idx]:
            continue

        region[idx] = True
        count += 1
        if count >= max_pixels:
            capped = True
            break

        x = idx % w
        if x + 1 < w and not visited[idx + 1]:
            visited[idx + 1] = 1
            queue.append(idx + 1)
        if x > 0 and not visited[idx - 1]:
            visited[idx - 1] = 1
            queue.append(idx - 1)
        if idx + w < h * w and not visited[idx + w]:
            visited[idx + w] = 1
            queue.append(idx + w)
        if idx - w >= 0 and not visited[idx - w]:
            visited[idx - w] = 1
            queue.append(idx - w)

    if capped:
        logger.warning(f"Flood fill stopped at the {max_pixels} pixel cap")

    return region.reshape(h, w), capped


def angular_ring(mask: np.ndarray, bbox: BoundingBox) -> Optional[list[Point]]:
    """
    Order the region's boundary pixels by angle around their centroid and
    simplify the result.

    Only star-shaped regions (as seen from the centroid) come out as simple
    rings; concave shapes may self-intersect.

    Returns:
        Open ring, or None if too few points remain
    """
    boundary = boundary_points(mask)
    if len(boundary) < 4:
        return None

    center = centroid(boundary)
    ordered = sorted(boundary, key=lambda p: math.atan2(p.y - center.y, p.x - center.x))

    step = max(1, math.ceil(len(ordered) / MAX_RING_POINTS))
    ring = ordered[::step]

    simplified = simplify_polygon(ring, simplify_epsilon(bbox))
    if len(simplified) < 4:
        return None
    return simplified


def contour_ring(mask: np.ndarray, bbox: BoundingBox) -> Optional[list[Point]]:
    """
    Trace the region's outer contour and simplify it.

    Follows concave outlines that the angular ordering would scramble.

    Returns:
        Open ring, or None if too few points remain
    """
    contour = largest_contour(mask_to_contours(mask))
    if contour is None or len(contour) < 4:
        return None

    simplified = simplify_polygon(contour_to_points(contour), simplify_epsilon(bbox))
    if len(simplified) < 4:
        return None
    return simplified


def segment_region(
    raster: Raster,
    seed,
    tolerance: float = DEFAULT_TOLERANCE,
    edge_threshold: float = DEFAULT_EDGE_THRESHOLD,
    max_pixels: int = MAX_REGION_PIXELS,
    min_pixels: int = MIN_REGION_PIXELS,
    method: str = "angular",
) -> SegmentResult:
    """
    Detect the region around a seed point and return its outline.

    Args:
        raster: Decoded RGBA image
        seed: Seed point in image pixel coordinates
        tolerance: Max L1 RGB distance to the seed color
        edge_threshold: Max gradient magnitude inside the region
        max_pixels: Fill cap
        min_pixels: Smallest region accepted
        method: "angular" (boundary sorted around the centroid) or
                "contour" (traced outer contour)

    Returns:
        SegmentResult; if the outline degenerates, its polygon is the
        region's bounding-box rectangle and fallback_used is set

    Raises:
        InputError: if the seed lies outside the image or method is unknown
        DetectionFailure: if the region is smaller than min_pixels
        ResourceExceededError: if the cap was hit before min_pixels were found
    """
    if method not in METHODS:
        raise InputError(f"Unknown segmentation method {method!r}, expected one of {METHODS}")

    seed = as_points([seed])[0]
    sx, sy = int(math.floor(seed.x)), int(math.floor(seed.y))
    if not (0 <= sx < raster.width and 0 <= sy < raster.height):
        raise InputError(
            f"Seed ({seed.x:.1f}, {seed.y:.1f}) is outside the {raster.width}x{raster.height} image"
        )

    mask, capped = flood_fill(raster, sx, sy, tolerance, edge_threshold, max_pixels)
    pixel_count = mask_area(mask)

    if pixel_count < min_pixels:
        if capped:
            raise ResourceExceededError(
                f"Fill cap of {max_pixels} pixels reached before a {min_pixels} pixel region formed"
            )
        logger.info(f"Region at ({sx}, {sy}) has only {pixel_count} pixels")
        raise DetectionFailure()

    bbox = mask_to_bbox(mask)
    if method == "contour":
        polygon = contour_ring(mask, bbox)
    else:
        polygon = angular_ring(mask, bbox)

    fallback_used = polygon is None
    if fallback_used:
        logger.debug(f"Outline degenerated, using bounding box of {pixel_count} pixel region")
        polygon = rectangle(bbox)

    return SegmentResult(
        polygon=polygon,
        pixel_count=pixel_count,
        bbox=bbox,
        fallback_used=fallback_used,
        capped=capped,
        method=method,
    )
