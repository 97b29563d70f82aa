"""
Tests for the batch grid planner.
"""

import numpy as np
import pytest

from core.batch import (
    boundary_fractions, normalize_selection, house_number, plan_grid,
    generate_batch_labels, batch_label_id,
)
from core.errors import InputError
from core.images import Raster
from core.models import BatchConfig, NumberingOrder, Point, LABEL_TYPES
from vision.ocr import OcrEngine, OcrResult


class FixedAreaEngine(OcrEngine):
    def recognize(self, image, language="eng"):
        return OcrResult(text="240 m2")


class BrokenEngine(OcrEngine):
    def recognize(self, image, language="eng"):
        raise RuntimeError("engine crashed")


def numbers(config, start=(0, 0), end=(300, 100)):
    return [cell.house_number for cell in plan_grid(config, start, end)]


@pytest.fixture
def two_tone_raster():
    """100x40 raster, red on the left half and blue on the right half."""
    pixels = np.zeros((40, 100, 4), dtype=np.uint8)
    pixels[:, :50] = (255, 0, 0, 255)
    pixels[:, 50:] = (0, 0, 255, 255)
    return Raster(pixels)


class TestNumberingOrders:
    """Tests for house numbering across a 2x3 grid."""

    @pytest.mark.parametrize("order,expected", [
        ("ltr", [1, 2, 3, 4, 5, 6]),
        ("rtl", [3, 2, 1, 6, 5, 4]),
        ("boustrophedon", [1, 2, 3, 6, 5, 4]),
        ("evens-odds", [2, 4, 6, 1, 3, 5]),
        ("odds-evens", [1, 3, 5, 2, 4, 6]),
        ("col-ltr", [1, 3, 5, 2, 4, 6]),
        ("col-rtl", [5, 3, 1, 6, 4, 2]),
    ])
    def test_orders(self, order, expected):
        config = BatchConfig(rows=2, cols=3, numbering_order=order)
        assert numbers(config) == expected

    def test_start_and_increment(self):
        config = BatchConfig(rows=1, cols=4, start_house_number=10, house_number_increment=2)
        assert numbers(config) == [10, 12, 14, 16]

    def test_parity_from_even_start(self):
        config = BatchConfig(rows=2, cols=2, start_house_number=10, numbering_order="odds-evens")
        assert numbers(config) == [11, 13, 10, 12]

    def test_custom_sequence_cycles(self):
        config = BatchConfig(rows=2, cols=3, custom_sequence=[3, 5, 6], use_custom_sequence=True)
        assert numbers(config) == [3, 5, 6, 3, 5, 6]

    def test_custom_sequence_ignored_when_disabled(self):
        config = BatchConfig(rows=1, cols=3, custom_sequence=[9, 8, 7])
        assert numbers(config) == [1, 2, 3]

    def test_parity_with_three_rows_is_row_major(self):
        config = BatchConfig(rows=3, cols=2, numbering_order=NumberingOrder.EVENS_ODDS)
        assert numbers(config) == [1, 2, 3, 4, 5, 6]

    def test_house_number_single_cell(self):
        config = BatchConfig(rows=2, cols=3, numbering_order="boustrophedon")
        assert house_number(1, 0, config) == 6

    def test_unknown_order(self):
        with pytest.raises(ValueError):
            BatchConfig(rows=1, cols=1, numbering_order="spiral")


class TestGridGeometry:
    """Tests for cell rectangles."""

    def test_even_split(self):
        assert boundary_fractions(4) == [0.0, 0.25, 0.5, 0.75, 1.0]

    def test_dividers(self):
        config = BatchConfig(rows=1, cols=2, column_dividers=[0.25])

        cells = plan_grid(config, (0, 0), (100, 40))

        assert cells[0].points == [Point(0, 0), Point(25, 0), Point(25, 40), Point(0, 40)]
        assert cells[1].points[0] == Point(25, 0)
        assert cells[1].points[2] == Point(100, 40)

    def test_bad_dividers(self):
        with pytest.raises(InputError):
            boundary_fractions(3, [0.5])
        with pytest.raises(InputError):
            boundary_fractions(3, [0.6, 0.4])
        with pytest.raises(InputError):
            boundary_fractions(2, [1.2])

    def test_cells_tile_selection(self):
        """Adjacent cells share edges and together cover the selection."""
        config = BatchConfig(rows=2, cols=3)
        cells = plan_grid(config, (10, 20), (310, 220))

        assert len(cells) == 6
        assert cells[0].points[0] == Point(10, 20)
        assert cells[-1].points[2] == Point(310, 220)
        assert cells[0].points[1] == cells[1].points[0]

    def test_reversed_selection(self):
        start, end = normalize_selection((100, 80), (20, 10))
        assert start == Point(20, 10)
        assert end == Point(100, 80)

    def test_selection_too_small(self):
        with pytest.raises(InputError):
            plan_grid(BatchConfig(rows=1, cols=1), (0, 0), (10, 100))

    def test_invalid_grid(self):
        with pytest.raises(InputError):
            plan_grid(BatchConfig(rows=0, cols=3), (0, 0), (100, 100))
        with pytest.raises(InputError):
            plan_grid(BatchConfig(rows=1, cols=3, use_custom_sequence=True), (0, 0), (100, 100))

    def test_cell_to_dict(self):
        cell = plan_grid(BatchConfig(rows=1, cols=1), (0, 0), (50, 50))[0]
        data = cell.to_dict()
        assert data["houseNumber"] == 1
        assert data["points"][2] == {"x": 50.0, "y": 50.0}


class TestGenerateBatchLabels:
    """Tests for label creation."""

    def test_labels(self):
        config = BatchConfig(rows=2, cols=3, start_block_number="A 1", numbering_order="boustrophedon")

        labels = generate_batch_labels(config, (0, 0), (300, 100))

        assert len(labels) == 6
        assert [label.house_number for label in labels] == ["1", "2", "3", "6", "5", "4"]
        assert len({label.id for label in labels}) == 6
        for label in labels:
            assert len(label.points) == 5
            assert label.points[0] == label.points[-1]
            assert label.type == "residential"
            assert label.block_number == "A 1"
            assert label.color == LABEL_TYPES["residential"]
            assert label.area is None
            assert "_A1_" in label.id

    def test_label_id(self):
        config = BatchConfig(rows=1, cols=1, type="park", start_block_number="")
        assert batch_label_id(config, 5, 1700000000000, 0, 2) == "park_none_5_1700000000000_0_2"

    def test_custom_type(self):
        config = BatchConfig(rows=1, cols=1, type="villa")

        label = generate_batch_labels(config, (0, 0), (50, 50))[0]

        assert label.type == "other"
        assert label.custom_type == "villa"

    def test_auto_color(self, two_tone_raster):
        config = BatchConfig(rows=1, cols=2, auto_detect_color=True)

        labels = generate_batch_labels(config, (0, 0), (100, 40), raster=two_tone_raster)

        assert [label.color for label in labels] == ["#FF0000", "#0000FF"]

    def test_auto_color_parallel(self, two_tone_raster):
        """Results do not depend on the number of workers."""
        config = BatchConfig(rows=2, cols=2, auto_detect_color=True)

        sequential = generate_batch_labels(config, (0, 0), (100, 40), raster=two_tone_raster)
        parallel = generate_batch_labels(config, (0, 0), (100, 40), raster=two_tone_raster, max_workers=4)

        assert [l.color for l in parallel] == [l.color for l in sequential]
        assert [l.color for l in parallel] == ["#FF0000", "#0000FF", "#FF0000", "#0000FF"]

    def test_auto_color_without_raster(self):
        config = BatchConfig(rows=1, cols=2, auto_detect_color=True, color="#123456")

        labels = generate_batch_labels(config, (0, 0), (100, 40))

        assert [label.color for label in labels] == ["#123456", "#123456"]

    def test_auto_area(self, two_tone_raster):
        config = BatchConfig(rows=1, cols=2, auto_detect_area=True)

        labels = generate_batch_labels(
            config, (0, 0), (100, 40), raster=two_tone_raster, ocr_engine=FixedAreaEngine(), max_workers=2
        )

        assert [label.area for label in labels] == [240.0, 240.0]
        assert labels[0].color == config.color  # Color detection was not requested

    def test_auto_area_engine_failure(self, two_tone_raster):
        """A failing OCR engine leaves areas unset but still creates labels."""
        config = BatchConfig(rows=1, cols=2, auto_detect_area=True)

        labels = generate_batch_labels(
            config, (0, 0), (100, 40), raster=two_tone_raster, ocr_engine=BrokenEngine()
        )

        assert len(labels) == 2
        assert all(label.area is None for label in labels)


class TestBatchConfig:
    """Tests for the camelCase configuration surface."""

    def test_from_dict(self):
        config = BatchConfig.from_dict({
            "rows": 2,
            "cols": 4,
            "startBlockNumber": "B",
            "startHouseNumber": 21,
            "numberingOrder": "col-rtl",
            "columnDividers": [0.2, 0.5, 0.7],
            "autoDetectColor": True,
        })

        assert config.rows == 2
        assert config.start_house_number == 21
        assert config.numbering_order is NumberingOrder.COL_RTL
        assert config.column_dividers == [0.2, 0.5, 0.7]
        assert config.auto_detect_color
        assert not config.auto_detect_area
