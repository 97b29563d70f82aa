"""
Documents API endpoints
"""

import os
import logging
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional

from backend.config import IMAGE_DIR
from core.images import ImageRepository
from core.store import LabelStore
from core.validate import validate_document

logger = logging.getLogger(__name__)

router = APIRouter()

# Store the current document state
_current_store: Optional[LabelStore] = None
_repository = ImageRepository(IMAGE_DIR)


class OpenDocumentRequest(BaseModel):
    path: str


class SaveDocumentRequest(BaseModel):
    path: Optional[str] = None


class DocumentResponse(BaseModel):
    path: Optional[str] = None
    image_count: int
    label_count: int

    @classmethod
    def from_store(cls, store: LabelStore):
        images = store.list_images()
        return cls(
            path=store.path,
            image_count=len(images),
            label_count=sum(len(image.labels) for image in images),
        )


def get_store() -> LabelStore:
    """Get the current label store."""
    if _current_store is None:
        raise HTTPException(status_code=400, detail="No document loaded")
    return _current_store


def get_repository() -> ImageRepository:
    """Get the image repository."""
    return _repository


def open_document(path: str) -> LabelStore:
    """Open (or start) the document at path and register its image files."""
    global _current_store

    store = LabelStore.open_or_create(path)
    _repository.clear()
    for image in store.list_images():
        if image.image_uri and os.path.isfile(image.image_uri):
            _repository.register_path(image.name, image.image_uri)

    _current_store = store
    logger.info(f"Opened label document {store.path}")
    return store


@router.post("/open", response_model=DocumentResponse)
async def open_document_endpoint(request: OpenDocumentRequest):
    """Open a label document, creating an empty one if the file does not exist."""
    try:
        store = open_document(request.path)
        return DocumentResponse.from_store(store)
    except (OSError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/save", response_model=DocumentResponse)
async def save_document(request: SaveDocumentRequest):
    """Write the current document to disk."""
    store = get_store()
    try:
        store.save(request.path)
        return DocumentResponse.from_store(store)
    except (OSError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/current", response_model=Optional[DocumentResponse])
async def get_current_document():
    """Get the currently loaded document."""
    if _current_store is None:
        return None
    return DocumentResponse.from_store(_current_store)


@router.get("/export")
async def export_document():
    """The full label document in its persisted JSON shape."""
    return get_store().document.to_dict()


@router.get("/validate")
async def validate_current_document():
    """Run validation over all labels of the current document."""
    report = validate_document(get_store())
    return {
        "valid": report.is_valid,
        "totalImages": report.total_images,
        "totalLabels": report.total_labels,
        "errors": [w.to_dict() for w in report.errors],
        "warnings": [w.to_dict() for w in report.warnings],
        "info": [w.to_dict() for w in report.info],
    }


@router.post("/close")
async def close_document():
    """Close the current document without saving."""
    global _current_store

    _current_store = None
    _repository.clear()
    return {"status": "closed"}
