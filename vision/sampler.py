"""
Color sampling - estimate the fill color of a label from image pixels.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from core.geometry import bounding_box
from core.images import Raster
from core.masks import polygon_to_mask
from core.models import Point

logger = logging.getLogger(__name__)

# Only every Nth pixel of the sampled box is read
SAMPLE_STRIDE = 4

# Pixels must be more opaque than this to count
ALPHA_THRESHOLD = 128


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Format channel values as #RRGGBB, rounding halves up."""
    channels = [int(np.floor(c + 0.5)) for c in (r, g, b)]
    return "#" + "".join(f"{max(0, min(255, c)):02X}" for c in channels)


def sample_color(
    raster: Raster,
    polygon: Sequence[Point],
    stride: int = SAMPLE_STRIDE,
    mask_interior: bool = False,
) -> Optional[str]:
    """
    Average color of the pixels under a polygon.

    By default the polygon's bounding box is sampled, not its interior; for
    axis-aligned grid cells both are the same. Pass mask_interior=True to
    read only pixels inside the polygon.

    Args:
        raster: Decoded RGBA image
        polygon: Open or closed ring in image pixel coordinates
        stride: Read every stride-th pixel of the box in row-major order
        mask_interior: Sample only pixels inside the polygon

    Returns:
        "#RRGGBB", or None if the box is empty or fully transparent
    """
    bbox = bounding_box(polygon)
    if bbox is None:
        return None

    bounds = raster.clamp_box(bbox)
    if bounds is None:
        logger.debug(f"Color sample box {bbox} lies outside the image")
        return None
    x1, y1, x2, y2 = bounds

    box = raster.pixels[y1:y2, x1:x2].reshape(-1, 4)
    if mask_interior:
        shifted = [Point(p[0] - x1, p[1] - y1) for p in polygon]
        inside = polygon_to_mask(shifted, y2 - y1, x2 - x1).reshape(-1)
        box = box[inside]

    sampled = box[::stride]
    opaque = sampled[sampled[:, 3] > ALPHA_THRESHOLD]
    if len(opaque) == 0:
        logger.debug("No opaque pixels in color sample")
        return None

    r, g, b = opaque[:, :3].astype(np.float64).mean(axis=0)
    return rgb_to_hex(r, g, b)
