"""
Images API endpoints
"""

import os
from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from typing import Optional

from backend.api.documents import get_store, get_repository

router = APIRouter()


class ImageResponse(BaseModel):
    name: str
    width: int
    height: int
    label_count: int
    image_uri: Optional[str] = None

    @classmethod
    def from_image(cls, image):
        return cls(
            name=image.name,
            width=image.width,
            height=image.height,
            label_count=len(image.labels),
            image_uri=image.image_uri,
        )


class AddImageRequest(BaseModel):
    path: str
    name: Optional[str] = None  # Defaults to the file name


@router.get("", response_model=list[ImageResponse])
async def list_images():
    """List all images in the current document."""
    store = get_store()
    return [ImageResponse.from_image(image) for image in store.list_images()]


@router.get("/{name}", response_model=ImageResponse)
async def get_image(name: str):
    """Get image metadata by name."""
    store = get_store()
    return ImageResponse.from_image(store.get_image(name))


@router.post("", response_model=ImageResponse)
async def add_image(request: AddImageRequest):
    """Add an image file to the document; its size is read from the file."""
    store = get_store()
    repository = get_repository()

    if not os.path.isfile(request.path):
        raise HTTPException(status_code=404, detail=f"Image file not found: {request.path}")

    name = request.name or os.path.basename(request.path)
    repository.register_path(name, request.path)
    raster = await run_in_threadpool(repository.get, name)

    image = store.add_image(name, raster.width, raster.height, image_uri=request.path)
    return ImageResponse.from_image(image)


@router.delete("/{name}")
async def delete_image(name: str):
    """Delete an image and all its labels (the last image cannot be deleted)."""
    store = get_store()
    store.delete_image(name)
    get_repository().remove(name)
    return {"status": "deleted", "name": name}
