"""
Shared request/response models
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional

from core.models import Label, Point


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case input, serializes as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PointModel(BaseModel):
    x: float
    y: float

    def to_point(self) -> Point:
        return Point(self.x, self.y)


class LabelResponse(CamelModel):
    id: str
    type: str
    points: list[PointModel]
    block_number: Optional[str] = None
    house_number: Optional[str] = None
    color: Optional[str] = None
    area: Optional[float] = None
    label: Optional[str] = None
    custom_type: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_label(cls, label: Label):
        return cls(
            id=label.id,
            type=label.type,
            points=[PointModel(x=p.x, y=p.y) for p in label.points],
            block_number=label.block_number,
            house_number=label.house_number,
            color=label.color,
            area=label.area,
            label=label.label,
            custom_type=label.custom_type,
            status=label.status,
            created_at=label.created_at,
            updated_at=label.updated_at,
        )
