"""
Tests for magic wand segmentation.
"""

import numpy as np
import pytest

from core.errors import InputError, DetectionFailure, ResourceExceededError
from core.geometry import BoundingBox, distance, is_closed, polygon_area, rectangle
from core.images import Raster
from core.models import Point
from vision.segment import (
    edge_strength_map, flood_fill, segment_region, BORDER_EDGE_STRENGTH,
)


@pytest.fixture
def framed_raster():
    """60x60 white plot inside a 5px black frame."""
    pixels = np.zeros((60, 60, 4), dtype=np.uint8)
    pixels[:, :] = (0, 0, 0, 255)
    pixels[5:55, 5:55] = (255, 255, 255, 255)
    return Raster(pixels)


@pytest.fixture
def strip_raster():
    """Black 300x30 image crossed by a 3px white band (rows 14-16)."""
    pixels = np.zeros((30, 300, 4), dtype=np.uint8)
    pixels[:, :, 3] = 255
    pixels[14:17, :, :3] = 255
    return Raster(pixels)


@pytest.fixture
def speck_raster():
    """White image with a 5x5 red speck in the middle."""
    pixels = np.full((60, 60, 4), 255, dtype=np.uint8)
    pixels[28:33, 28:33] = (255, 0, 0, 255)
    return Raster(pixels)


class TestEdgeStrength:
    """Tests for edge_strength_map."""

    def test_flat_interior_and_border(self):
        rgb = np.full((5, 5, 3), 100, dtype=np.uint8)

        edges = edge_strength_map(rgb)

        assert edges[2, 2] == 0
        assert edges[0, 2] == BORDER_EDGE_STRENGTH
        assert edges[2, 4] == BORDER_EDGE_STRENGTH

    def test_vertical_step(self):
        rgb = np.zeros((5, 5, 3), dtype=np.uint8)
        rgb[:, 3:] = 10  # Step of 10 per channel

        edges = edge_strength_map(rgb)

        assert edges[2, 2] == pytest.approx(30.0)  # |10-0| * 3 channels
        assert edges[2, 1] == 0


class TestFloodFill:
    """Tests for the region growing fill."""

    def test_stops_at_frame(self, framed_raster):
        mask, capped = flood_fill(framed_raster, 30, 30)

        assert not capped
        # The ring of pixels next to the frame sits on a strong edge
        assert mask.sum() == 48 * 48
        assert mask[6, 6] and mask[53, 53]
        assert not mask[5, 30]

    def test_cap(self, framed_raster):
        mask, capped = flood_fill(framed_raster, 30, 30, max_pixels=100)

        assert capped
        assert mask.sum() == 100


class TestSegmentRegion:
    """Tests for segment_region."""

    def test_framed_plot(self, framed_raster):
        result = segment_region(framed_raster, Point(30, 30))

        assert result.pixel_count == 48 * 48
        assert not result.capped
        assert result.method == "angular"
        assert (result.bbox.min_x, result.bbox.max_x) == (6.0, 53.0)
        assert (result.bbox.min_y, result.bbox.max_y) == (6.0, 53.0)

        assert len(result.polygon) >= 4
        for p in result.polygon:
            assert 6.0 <= p.x <= 53.0
            assert 6.0 <= p.y <= 53.0

        assert is_closed(result.closed_polygon)
        assert not is_closed(result.polygon)

    def test_framed_plot_matches_frame(self, framed_raster):
        """The outline approximates the 48x48 plot, corners included."""
        result = segment_region(framed_raster, (30, 30))

        assert not result.fallback_used
        assert polygon_area(result.polygon) == pytest.approx(47 * 47, rel=0.05)
        for corner in [Point(6, 6), Point(53, 6), Point(53, 53), Point(6, 53)]:
            assert min(distance(corner, p) for p in result.polygon) <= 5.0

    def test_thin_strip_falls_back_to_rectangle(self, strip_raster):
        """A one-pixel-high region has no usable outline."""
        result = segment_region(strip_raster, (150, 15))

        # Rows 14 and 16 sit on the band's edges, so only row 15 fills
        assert result.pixel_count == 298
        assert result.bbox == BoundingBox(1.0, 298.0, 15.0, 15.0)
        assert result.fallback_used
        assert result.polygon == rectangle(result.bbox)
        assert len(result.polygon) == 4
        assert result.to_dict()["fallbackUsed"] is True

    def test_thin_strip_contour_fallback(self, strip_raster):
        result = segment_region(strip_raster, (150, 15), method="contour")

        assert result.fallback_used
        assert result.polygon == rectangle(BoundingBox(1.0, 298.0, 15.0, 15.0))

    def test_contour_method(self, framed_raster):
        result = segment_region(framed_raster, (30, 30), method="contour")

        assert result.method == "contour"
        xs = [p.x for p in result.polygon]
        ys = [p.y for p in result.polygon]
        assert min(xs) == 6.0 and max(xs) == 53.0
        assert min(ys) == 6.0 and max(ys) == 53.0

    def test_to_dict(self, framed_raster):
        data = segment_region(framed_raster, (30, 30)).to_dict()

        assert data["pixelCount"] == 48 * 48
        assert data["points"][0] == data["points"][-1]
        assert data["bbox"]["minX"] == 6.0

    def test_small_region_fails(self, speck_raster):
        with pytest.raises(DetectionFailure):
            segment_region(speck_raster, (30, 30))

    def test_cap_before_minimum(self, framed_raster):
        with pytest.raises(ResourceExceededError):
            segment_region(framed_raster, (30, 30), max_pixels=50, min_pixels=100)

    def test_seed_outside_image(self, framed_raster):
        with pytest.raises(InputError):
            segment_region(framed_raster, (60, 10))
        with pytest.raises(InputError):
            segment_region(framed_raster, (-1, 10))

    def test_unknown_method(self, framed_raster):
        with pytest.raises(InputError):
            segment_region(framed_raster, (30, 30), method="watershed")

    def test_tolerance_widens_region(self):
        """A faint gradient is absorbed once tolerance covers it."""
        pixels = np.full((40, 40, 4), 255, dtype=np.uint8)
        pixels[:, 20:, :3] = 245  # Right half slightly darker
        raster = Raster(pixels)

        narrow = segment_region(raster, (10, 20), tolerance=5)
        wide = segment_region(raster, (10, 20), tolerance=40)

        assert wide.pixel_count > narrow.pixel_count
