"""
Tests for label color sampling.
"""

import numpy as np

from core.images import Raster
from core.models import Point
from vision.sampler import sample_color, rgb_to_hex


def make_raster(width, height, rgba):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :] = rgba
    return Raster(pixels)


def box(x1, y1, x2, y2):
    return [Point(x1, y1), Point(x2, y1), Point(x2, y2), Point(x1, y2)]


class TestRgbToHex:
    """Tests for hex formatting."""

    def test_uppercase(self):
        assert rgb_to_hex(255, 171, 0) == "#FFAB00"

    def test_rounds_half_up(self):
        assert rgb_to_hex(127.5, 0.4, 254.5) == "#8000FF"


class TestSampleColor:
    """Tests for sample_color."""

    def test_uniform_region(self):
        raster = make_raster(20, 20, (74, 144, 217, 255))
        assert sample_color(raster, box(2, 2, 18, 18)) == "#4A90D9"

    def test_fully_transparent(self):
        raster = make_raster(20, 20, (255, 0, 0, 0))
        assert sample_color(raster, box(0, 0, 20, 20)) is None

    def test_alpha_threshold_is_exclusive(self):
        """Pixels with alpha exactly 128 are ignored."""
        pixels = np.zeros((8, 8, 4), dtype=np.uint8)
        pixels[:, :4] = (255, 0, 0, 255)
        pixels[:, 4:] = (0, 0, 255, 128)
        raster = Raster(pixels)

        assert sample_color(raster, box(0, 0, 8, 8)) == "#FF0000"

    def test_outside_image(self):
        raster = make_raster(10, 10, (0, 0, 0, 255))
        assert sample_color(raster, box(20, 20, 30, 30)) is None

    def test_empty_polygon(self):
        raster = make_raster(10, 10, (0, 0, 0, 255))
        assert sample_color(raster, []) is None

    def test_box_clamped_to_image(self):
        raster = make_raster(10, 10, (10, 20, 30, 255))
        assert sample_color(raster, box(-5, -5, 5, 5)) == "#0A141E"

    def test_mask_interior(self):
        """Interior masking ignores box pixels outside a triangle."""
        pixels = np.zeros((40, 40, 4), dtype=np.uint8)
        pixels[:, :] = (0, 0, 255, 255)
        # Green band above the diagonal lies outside the lower-left triangle
        for y in range(40):
            pixels[y, y + 3:] = (0, 255, 0, 255)
        raster = Raster(pixels)
        triangle = [Point(0, 0), Point(0, 39), Point(39, 39)]

        masked = sample_color(raster, triangle, stride=1, mask_interior=True)
        unmasked = sample_color(raster, triangle, stride=1)

        assert masked == "#0000FF"
        assert unmasked != "#0000FF"
