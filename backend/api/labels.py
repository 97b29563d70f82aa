"""
Labels API endpoints
"""

from fastapi import APIRouter, HTTPException
from typing import Optional

from backend.api.documents import get_store
from backend.api.schemas import CamelModel, PointModel, LabelResponse

router = APIRouter()


class CreateLabelRequest(CamelModel):
    image: str
    points: list[PointModel]  # Open or closed ring
    type: str = "other"
    name: Optional[str] = None
    block_number: Optional[str] = None
    house_number: Optional[str] = None
    color: Optional[str] = None  # If not provided, the type's color
    area: Optional[float] = None
    custom_type: Optional[str] = None


class UpdateLabelRequest(CamelModel):
    image: str
    type: Optional[str] = None
    points: Optional[list[PointModel]] = None
    block_number: Optional[str] = None
    house_number: Optional[str] = None
    color: Optional[str] = None
    area: Optional[float] = None
    custom_type: Optional[str] = None
    label: Optional[str] = None
    status: Optional[str] = None


class MovePointRequest(CamelModel):
    image: str
    x: float
    y: float


@router.get("", response_model=list[LabelResponse])
async def list_labels(image: str):
    """List labels on an image."""
    store = get_store()
    return [LabelResponse.from_label(label) for label in store.list_labels(image)]


@router.get("/{label_id}", response_model=LabelResponse)
async def get_label(label_id: str, image: str):
    """Get label by ID."""
    store = get_store()
    return LabelResponse.from_label(store.get_label(image, label_id))


@router.post("", response_model=LabelResponse)
async def create_label(request: CreateLabelRequest):
    """Create a label from a drawn polygon."""
    store = get_store()
    label = store.create_label(
        request.image,
        [p.to_point() for p in request.points],
        type=request.type,
        name=request.name,
        block_number=request.block_number,
        house_number=request.house_number,
        color=request.color,
        area=request.area,
        custom_type=request.custom_type,
    )
    return LabelResponse.from_label(label)


@router.put("/{label_id}", response_model=LabelResponse)
async def update_label(label_id: str, request: UpdateLabelRequest):
    """Update a label."""
    store = get_store()

    update_fields = request.model_dump(exclude_unset=True, exclude={"image"})
    if "points" in update_fields:
        update_fields["points"] = [p.to_point() for p in request.points]

    if not update_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    label = store.update_label(request.image, label_id, **update_fields)
    return LabelResponse.from_label(label)


@router.put("/{label_id}/points/{index}", response_model=LabelResponse)
async def move_point(label_id: str, index: int, request: MovePointRequest):
    """Drag one vertex of a label."""
    store = get_store()
    label = store.move_label_point(request.image, label_id, index, (request.x, request.y))
    return LabelResponse.from_label(label)


@router.delete("/{label_id}")
async def delete_label(label_id: str, image: str):
    """Delete a label."""
    store = get_store()
    store.delete_label(image, label_id)
    return {"status": "deleted", "id": label_id}
