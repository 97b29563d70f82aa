"""
Batch API endpoints - grid labels over a selected rectangle
"""

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from typing import Optional

from backend.api.documents import get_store, get_repository
from backend.api.schemas import CamelModel, PointModel, LabelResponse
from backend.api.vision import get_ocr_engine
from backend.config import BATCH_WORKERS, OCR_LANG
from core.batch import plan_grid, generate_batch_labels
from core.models import BatchConfig, NumberingOrder, LABEL_TYPES

router = APIRouter()


class BatchConfigModel(CamelModel):
    rows: int
    cols: int
    start_block_number: str = ""
    start_house_number: int = 1
    house_number_increment: int = 1
    custom_sequence: Optional[list[int]] = None
    use_custom_sequence: bool = False
    column_dividers: Optional[list[float]] = None
    row_dividers: Optional[list[float]] = None
    type: str = "residential"
    color: str = LABEL_TYPES["residential"]
    numbering_order: NumberingOrder = NumberingOrder.LTR
    auto_detect_color: bool = False
    auto_detect_area: bool = False

    def to_config(self) -> BatchConfig:
        return BatchConfig(**self.model_dump())


class BatchPreviewRequest(CamelModel):
    start: PointModel
    end: PointModel
    config: BatchConfigModel


class BatchCreateRequest(BatchPreviewRequest):
    image: str


@router.post("/preview")
async def preview_batch(request: BatchPreviewRequest):
    """Cell rectangles and house numbers, without touching the document."""
    cells = plan_grid(request.config.to_config(), request.start.to_point(), request.end.to_point())
    return {"cells": [cell.to_dict() for cell in cells]}


@router.post("", response_model=list[LabelResponse])
async def create_batch(request: BatchCreateRequest):
    """Create one label per grid cell; all labels are added or none."""
    store = get_store()
    image = store.get_image(request.image)
    config = request.config.to_config()

    raster = None
    ocr_engine = None
    if config.auto_detect_color or config.auto_detect_area:
        raster = await run_in_threadpool(get_repository().get, image.name)
    if config.auto_detect_area:
        ocr_engine = get_ocr_engine()

    labels = await run_in_threadpool(
        generate_batch_labels,
        config,
        request.start.to_point(),
        request.end.to_point(),
        raster=raster,
        ocr_engine=ocr_engine,
        max_workers=BATCH_WORKERS,
        language=OCR_LANG,
    )
    store.add_labels(image.name, labels)
    return [LabelResponse.from_label(label) for label in labels]
