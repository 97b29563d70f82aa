"""
Vision API endpoints - magic wand, color sampling, OCR area reading
"""

import logging
from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from typing import Optional

from backend.api.documents import get_store, get_repository
from backend.api.schemas import CamelModel, PointModel, LabelResponse
from backend.config import (
    TESSERACT_CMD, OCR_LANG, OCR_CONFIG, OCR_TIMEOUT, WAND_TOLERANCE, WAND_EDGE_THRESHOLD,
)
from vision.area import extract_area
from vision.ocr import OcrEngine, TesseractEngine
from vision.sampler import sample_color
from vision.segment import segment_region

logger = logging.getLogger(__name__)

router = APIRouter()

_ocr_engine: Optional[OcrEngine] = None


def get_ocr_engine() -> OcrEngine:
    """Get or create the OCR engine."""
    global _ocr_engine
    if _ocr_engine is None:
        _ocr_engine = TesseractEngine(
            tesseract_cmd=TESSERACT_CMD, config=OCR_CONFIG, timeout=OCR_TIMEOUT
        )
    return _ocr_engine


def set_ocr_engine(engine: Optional[OcrEngine]) -> None:
    """Replace the OCR engine (None resets to Tesseract on next use)."""
    global _ocr_engine
    _ocr_engine = engine


class MagicWandRequest(CamelModel):
    image: str
    seed: PointModel
    tolerance: float = WAND_TOLERANCE
    edge_threshold: float = WAND_EDGE_THRESHOLD
    method: str = "angular"  # "angular" | "contour"
    create_label: bool = False
    type: str = "other"
    name: Optional[str] = None


class MagicWandResponse(CamelModel):
    points: list[PointModel]  # Closed ring
    pixel_count: int
    fallback_used: bool
    capped: bool
    method: str
    label: Optional[LabelResponse] = None


class RegionRequest(CamelModel):
    image: str
    points: list[PointModel]
    mask_interior: bool = False
    expected_house_number: Optional[str] = None


@router.post("/magic-wand", response_model=MagicWandResponse)
async def magic_wand(request: MagicWandRequest):
    """Detect the region around a seed point; optionally add it as a label."""
    store = get_store()
    image = store.get_image(request.image)
    raster = await run_in_threadpool(get_repository().get, image.name)

    result = await run_in_threadpool(
        segment_region,
        raster,
        request.seed.to_point(),
        tolerance=request.tolerance,
        edge_threshold=request.edge_threshold,
        method=request.method,
    )

    label = None
    if request.create_label:
        label = store.create_label(image.name, result.polygon, type=request.type, name=request.name)

    return MagicWandResponse(
        points=[PointModel(x=p.x, y=p.y) for p in result.closed_polygon],
        pixel_count=result.pixel_count,
        fallback_used=result.fallback_used,
        capped=result.capped,
        method=result.method,
        label=LabelResponse.from_label(label) if label else None,
    )


@router.post("/color")
async def detect_color(request: RegionRequest):
    """Average color under a polygon, or null."""
    raster = await run_in_threadpool(get_repository().get, get_store().get_image(request.image).name)
    color = await run_in_threadpool(
        sample_color, raster, [p.to_point() for p in request.points], mask_interior=request.mask_interior
    )
    return {"color": color}


@router.post("/area")
async def detect_area(request: RegionRequest):
    """Area value printed inside a polygon, or null."""
    raster = await run_in_threadpool(get_repository().get, get_store().get_image(request.image).name)
    area = await run_in_threadpool(
        extract_area,
        raster,
        [p.to_point() for p in request.points],
        get_ocr_engine(),
        expected_house_number=request.expected_house_number,
        language=OCR_LANG,
    )
    return {"area": area}
