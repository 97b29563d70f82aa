"""
Batch grid planner - split a selected rectangle into rows and columns and
create one numbered label per cell.

Cell geometry and house numbers depend only on (row, col); color and area
detection per cell is best-effort and may run in a thread pool.
"""

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from core.errors import InputError
from core.geometry import as_points, close_ring
from core.models import BatchConfig, Label, NumberingOrder, Point, resolve_label_type, utc_now_iso
from vision.area import extract_area
from vision.ocr import DEFAULT_LANGUAGE
from vision.sampler import sample_color

logger = logging.getLogger(__name__)

# Selections smaller than this on either axis are rejected
MIN_SELECTION_PX = 20


@dataclass
class GridCell:
    """One cell of a batch grid."""
    row: int
    col: int
    points: list[Point]  # Open 4-point rectangle
    house_number: int

    def to_dict(self) -> dict:
        return {
            "row": self.row,
            "col": self.col,
            "points": [p.to_dict() for p in self.points],
            "houseNumber": self.house_number,
        }


# ==================== Cell geometry ====================

def boundary_fractions(count: int, dividers: Optional[Sequence[float]] = None) -> list[float]:
    """
    Fractions [0, d1, ..., d(count-1), 1] of the cell boundaries on one axis.

    Without dividers the axis is split evenly.

    Raises:
        InputError: if dividers has the wrong length, leaves (0, 1) or is not
                    strictly increasing
    """
    if count < 1:
        raise InputError(f"Grid needs at least one cell per axis, got {count}")

    if dividers is None:
        return [0.0] + [i / count for i in range(1, count)] + [1.0]

    dividers = [float(d) for d in dividers]
    if len(dividers) != count - 1:
        raise InputError(f"Expected {count - 1} dividers for {count} cells, got {len(dividers)}")

    fractions = [0.0] + dividers + [1.0]
    for a, b in zip(fractions, fractions[1:]):
        if not a < b:
            raise InputError(f"Dividers must be strictly increasing within (0, 1): {dividers}")
    return fractions


def cell_rect(
    start: Point,
    end: Point,
    row: int,
    col: int,
    row_fractions: Sequence[float],
    col_fractions: Sequence[float],
) -> list[Point]:
    """Open rectangle of cell (row, col) inside the selection."""
    width = end.x - start.x
    height = end.y - start.y

    left = start.x + col_fractions[col] * width
    right = start.x + col_fractions[col + 1] * width
    top = start.y + row_fractions[row] * height
    bottom = start.y + row_fractions[row + 1] * height

    return [Point(left, top), Point(right, top), Point(right, bottom), Point(left, bottom)]


def normalize_selection(start, end, min_size: float = MIN_SELECTION_PX) -> tuple[Point, Point]:
    """
    Order a selection so start is top-left.

    Raises:
        InputError: if the selection is smaller than min_size on either axis
    """
    start, end = as_points([start, end])
    x1, x2 = sorted((start.x, end.x))
    y1, y2 = sorted((start.y, end.y))
    if x2 - x1 < min_size or y2 - y1 < min_size:
        raise InputError(
            f"Selection {x2 - x1:.0f}x{y2 - y1:.0f}px is smaller than {min_size}px"
        )
    return Point(x1, y1), Point(x2, y2)


# ==================== House numbering ====================

def _ltr_index(row: int, col: int, rows: int, cols: int) -> int:
    return row * cols + col


def _rtl_index(row: int, col: int, rows: int, cols: int) -> int:
    return row * cols + (cols - 1 - col)


def _boustrophedon_index(row: int, col: int, rows: int, cols: int) -> int:
    if row % 2 == 0:
        return _ltr_index(row, col, rows, cols)
    return _rtl_index(row, col, rows, cols)


def _col_ltr_index(row: int, col: int, rows: int, cols: int) -> int:
    return col * rows + row


def _col_rtl_index(row: int, col: int, rows: int, cols: int) -> int:
    return (cols - 1 - col) * rows + row


def _number_from_index(index: int, config: BatchConfig) -> int:
    if config.use_custom_sequence and config.custom_sequence:
        return int(config.custom_sequence[index % len(config.custom_sequence)])
    return config.start_house_number + index * config.house_number_increment


def _parity_number(row: int, col: int, config: BatchConfig, evens_first: bool) -> int:
    """
    Row 0 takes one parity, row 1 the other, each stepping by twice the
    increment from the first number of that parity >= start.
    """
    start = config.start_house_number
    want_even = evens_first if row == 0 else not evens_first
    first = start if (start % 2 == 0) == want_even else start + 1
    return first + col * 2 * config.house_number_increment


def _index_evaluator(index_fn: Callable[[int, int, int, int], int]):
    def evaluate(row: int, col: int, config: BatchConfig) -> int:
        return _number_from_index(index_fn(row, col, config.rows, config.cols), config)
    return evaluate


def _parity_evaluator(evens_first: bool):
    def evaluate(row: int, col: int, config: BatchConfig) -> int:
        # Grids without exactly 2 rows, and custom sequences, use row-major order
        if config.rows != 2 or (config.use_custom_sequence and config.custom_sequence):
            return _number_from_index(_ltr_index(row, col, config.rows, config.cols), config)
        return _parity_number(row, col, config, evens_first)
    return evaluate


NUMBERING_EVALUATORS = {
    NumberingOrder.LTR: _index_evaluator(_ltr_index),
    NumberingOrder.RTL: _index_evaluator(_rtl_index),
    NumberingOrder.BOUSTROPHEDON: _index_evaluator(_boustrophedon_index),
    NumberingOrder.EVENS_ODDS: _parity_evaluator(evens_first=True),
    NumberingOrder.ODDS_EVENS: _parity_evaluator(evens_first=False),
    NumberingOrder.COL_LTR: _index_evaluator(_col_ltr_index),
    NumberingOrder.COL_RTL: _index_evaluator(_col_rtl_index),
}


def house_number(row: int, col: int, config: BatchConfig) -> int:
    """House number of cell (row, col) under the configured numbering order."""
    return NUMBERING_EVALUATORS[NumberingOrder(config.numbering_order)](row, col, config)


# ==================== Planning ====================

def validate_config(config: BatchConfig) -> None:
    if config.rows < 1 or config.cols < 1:
        raise InputError(f"Grid must be at least 1x1, got {config.rows}x{config.cols}")
    if config.use_custom_sequence and not config.custom_sequence:
        raise InputError("Custom sequence enabled but empty")


def plan_grid(config: BatchConfig, start, end) -> list[GridCell]:
    """
    Compute cell rectangles and house numbers, row-major.

    Args:
        config: Batch configuration
        start: One corner of the selection
        end: The opposite corner

    Returns:
        rows * cols GridCells
    """
    validate_config(config)
    start, end = normalize_selection(start, end)

    row_fractions = boundary_fractions(config.rows, config.row_dividers)
    col_fractions = boundary_fractions(config.cols, config.column_dividers)

    cells = []
    for row in range(config.rows):
        for col in range(config.cols):
            cells.append(GridCell(
                row=row,
                col=col,
                points=cell_rect(start, end, row, col, row_fractions, col_fractions),
                house_number=house_number(row, col, config),
            ))
    return cells


def batch_label_id(config: BatchConfig, house: int, timestamp_ms: int, row: int, col: int) -> str:
    """Id of a batch label; (row, col) keeps ids unique within one batch."""
    block = re.sub(r'\s+', '', config.start_block_number) or "none"
    return f"{config.type}_{block}_{house}_{timestamp_ms}_{row}_{col}"


def _detect_attributes(
    cell: GridCell, config: BatchConfig, raster, ocr_engine, language: str = DEFAULT_LANGUAGE
) -> tuple[Optional[str], Optional[float]]:
    """Color and area for one cell; any failure leaves that attribute unset."""
    color = None
    area = None

    if config.auto_detect_color:
        try:
            color = sample_color(raster, cell.points)
        except Exception as e:
            logger.warning(f"Color detection failed for cell ({cell.row}, {cell.col}): {e}")

    if config.auto_detect_area and ocr_engine is not None:
        try:
            area = extract_area(
                raster, cell.points, ocr_engine, expected_house_number=cell.house_number, language=language
            )
        except Exception as e:
            logger.warning(f"Area detection failed for cell ({cell.row}, {cell.col}): {e}")

    return color, area


def generate_batch_labels(
    config: BatchConfig,
    start,
    end,
    raster=None,
    ocr_engine=None,
    max_workers: int = 1,
    language: str = DEFAULT_LANGUAGE,
) -> list[Label]:
    """
    Create one label per grid cell.

    Args:
        config: Batch configuration
        start, end: Opposite corners of the selection
        raster: Image raster, required for color/area detection
        ocr_engine: OCR collaborator, required for area detection
        max_workers: Cells analysed in parallel (1 = sequential)
        language: Tesseract language for area detection

    Returns:
        Labels in row-major order
    """
    cells = plan_grid(config, start, end)

    detect = raster is not None and (config.auto_detect_color or config.auto_detect_area)
    if (config.auto_detect_color or config.auto_detect_area) and raster is None:
        logger.warning("Auto-detection requested without an image raster, skipping")

    attributes: dict[tuple[int, int], tuple[Optional[str], Optional[float]]] = {}
    if detect:
        if max_workers > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                futures = {
                    (cell.row, cell.col): pool.submit(_detect_attributes, cell, config, raster, ocr_engine, language)
                    for cell in cells
                }
                for key, future in futures.items():
                    attributes[key] = future.result()
        else:
            for cell in cells:
                attributes[(cell.row, cell.col)] = _detect_attributes(cell, config, raster, ocr_engine, language)

    label_type = resolve_label_type(config.type)
    timestamp_ms = int(time.time() * 1000)
    now = utc_now_iso()

    labels = []
    for cell in cells:
        color, area = attributes.get((cell.row, cell.col), (None, None))
        labels.append(Label(
            id=batch_label_id(config, cell.house_number, timestamp_ms, cell.row, cell.col),
            type=label_type,
            points=close_ring(cell.points),
            block_number=config.start_block_number or None,
            house_number=str(cell.house_number),
            color=color or config.color,
            area=area,
            custom_type=config.type if label_type != config.type else None,
            created_at=now,
            updated_at=now,
        ))

    found_colors = sum(1 for c, _ in attributes.values() if c)
    found_areas = sum(1 for _, a in attributes.values() if a is not None)
    logger.info(
        f"Planned {len(labels)} labels ({config.rows}x{config.cols}, {config.numbering_order.value}); "
        f"detected {found_colors} colors, {found_areas} areas"
    )
    return labels
