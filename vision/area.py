"""
Area extraction - read a plot's numeric area (e.g. "240.5 m²") from OCR text.

Site-plan cells usually carry both a house number and an area. Candidates
are gathered in tiers of decreasing reliability:

1. a number followed by an area unit
2. a number with a decimal point
3. a number whose decimal point OCR read as a comma, space or hyphen
4. a bare integer, excluding the expected house number

The first tier that yields a candidate decides the result.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from core.images import Raster
from core.models import Point
from vision.ocr import OcrEngine, OcrWord, DEFAULT_LANGUAGE, preprocess_region

logger = logging.getLogger(__name__)

# Number followed by an area unit: m², m2, sqm, sq m, sq.m, م², م2, متر مربع
UNIT_RE = re.compile(
    r'(\d+(?:\.\d+)?)\s*(?:m²|m2|sq\.?\s?m|م²|م2|متر\s*مربع)',
    re.IGNORECASE,
)
DECIMAL_RE = re.compile(r'\d+\.\d+')
# Decimal point read as a comma, hyphen or single space; exactly one digit after it
SEPARATOR_RE = re.compile(r'(\d+)(?:[,\-] ?| )(\d)(?!\d)')
INTEGER_RE = re.compile(r'\b\d{2,5}\b')

UNIT_RANGE = (50.0, 10000.0)
DECIMAL_RANGE = (50.0, 10000.0)
SEPARATOR_RANGE = (50.0, 1000.0)
INTEGER_RANGE = (100.0, 10000.0)

# Integers this close to the expected house number are not areas
HOUSE_NUMBER_MARGIN = 2

# Implied-decimal correction: "1600" read for "160.0"
IMPLIED_DECIMAL_RAW_RANGE = (1000, 100000)
IMPLIED_DECIMAL_RANGE = (100.0, 1000.0)


@dataclass
class RegionSample:
    """A candidate area value found in OCR text."""
    value: float
    has_decimal: bool
    has_unit: bool
    text: str
    tier: int


def _in_range(value: float, bounds: tuple[float, float]) -> bool:
    return bounds[0] <= value <= bounds[1]


def _house_number(value: Union[int, str, None]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def implied_decimal(raw: int) -> float:
    """
    Undo a dropped decimal point before a trailing zero.

    Tuned to plots of 100-1000 sqm: 1600 becomes 160.0, 2400 becomes
    240.0; values outside that pattern are returned unchanged.
    """
    if raw % 10 == 0 and _in_range(raw, IMPLIED_DECIMAL_RAW_RANGE):
        corrected = raw / 10
        if _in_range(corrected, IMPLIED_DECIMAL_RANGE):
            return corrected
    return float(raw)


def scan_text(text: str, words: Optional[Sequence[OcrWord]] = None) -> str:
    """Full text plus any word the full text does not already contain."""
    text = text or ""
    for word in words or []:
        if word.text and word.text not in text:
            text = f"{text} {word.text}"
    return text


def collect_candidates(
    text: str,
    expected_house_number: Union[int, str, None] = None,
    use_implied_decimal: bool = True,
) -> list[RegionSample]:
    """
    Gather area candidates from all tiers, in text order within each tier.
    """
    candidates = []

    for m in UNIT_RE.finditer(text):
        value = float(m.group(1))
        if _in_range(value, UNIT_RANGE):
            candidates.append(RegionSample(value, '.' in m.group(1), True, m.group(0), 1))

    for m in DECIMAL_RE.finditer(text):
        value = float(m.group(0))
        if _in_range(value, DECIMAL_RANGE):
            candidates.append(RegionSample(value, True, False, m.group(0), 2))

    for m in SEPARATOR_RE.finditer(text):
        value = float(f"{m.group(1)}.{m.group(2)}")
        if _in_range(value, SEPARATOR_RANGE):
            candidates.append(RegionSample(value, True, False, m.group(0), 3))

    house_number = _house_number(expected_house_number)
    for m in INTEGER_RE.finditer(text):
        raw = int(m.group(0))
        if house_number is not None and abs(raw - house_number) <= HOUSE_NUMBER_MARGIN:
            continue
        value = implied_decimal(raw) if use_implied_decimal else float(raw)
        if _in_range(value, INTEGER_RANGE):
            candidates.append(RegionSample(value, value != raw, False, m.group(0), 4))

    return candidates


def parse_area(
    text: str,
    words: Optional[Sequence[OcrWord]] = None,
    expected_house_number: Union[int, str, None] = None,
    use_implied_decimal: bool = True,
) -> Optional[float]:
    """
    Pick the area value from recognized text.

    Args:
        text: Full OCR text
        words: Recognized words (appended to the text when missing from it)
        expected_house_number: House number printed in the same cell
        use_implied_decimal: Apply the trailing-zero decimal correction

    Returns:
        Area value, or None if nothing qualifies (leave the area unset)
    """
    candidates = collect_candidates(
        scan_text(text, words), expected_house_number, use_implied_decimal
    )
    if not candidates:
        return None

    best_tier = min(c.tier for c in candidates)
    tier_candidates = [c for c in candidates if c.tier == best_tier]
    if best_tier < 4:
        return tier_candidates[0].value

    # Areas are larger than house numbers on these plans
    return max(c.value for c in tier_candidates)


def extract_area(
    raster: Raster,
    polygon: Sequence[Point],
    engine: OcrEngine,
    expected_house_number: Union[int, str, None] = None,
    language: str = DEFAULT_LANGUAGE,
) -> Optional[float]:
    """
    Read the area printed inside a polygon.

    OCR failures are logged and reported as None.
    """
    image = preprocess_region(raster, polygon)
    if image is None:
        return None

    try:
        result = engine.recognize(image, language)
    except Exception as e:
        logger.warning(f"OCR failed, leaving area unset: {e}")
        return None

    area = parse_area(result.text, result.words, expected_house_number)
    logger.debug(f"OCR text {result.text!r} -> area {area}")
    return area
