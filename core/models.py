"""
Core data models for sitelabel.

Dataclasses representing the label document: points, labels, images and the
batch grid configuration. Every model serializes to the camelCase JSON shape
of the persisted label document.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Any, NamedTuple
import json


class Point(NamedTuple):
    """A point in image pixel space."""
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": float(self.x), "y": float(self.y)}

    @classmethod
    def from_dict(cls, data: Any) -> 'Point':
        """Accept {"x": .., "y": ..} dicts as well as (x, y) pairs."""
        if isinstance(data, dict):
            return cls(float(data["x"]), float(data["y"]))
        x, y = data
        return cls(float(x), float(y))


# Label types of a site plan with their default fill colors
LABEL_TYPES = {
    "residential": "#4A90D9",
    "commercial": "#F5A623",
    "park": "#7ED321",
    "mosque": "#9B59B6",
    "school": "#E74C3C",
    "road": "#95A5A6",
    "other": "#BDC3C7",
}

DEFAULT_LABEL_TYPE = "other"


def resolve_label_type(type_name: Optional[str]) -> str:
    """Map legacy types (e.g. "polygon") onto the known set."""
    if type_name in LABEL_TYPES:
        return type_name
    return DEFAULT_LABEL_TYPE


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T10:00:00.000Z"""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _drop_none(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class Label:
    """A polygon label on an image."""
    id: str
    type: str
    points: list[Point]  # Closed ring: points[0] == points[-1]
    block_number: Optional[str] = None
    house_number: Optional[str] = None
    color: Optional[str] = None  # "#RRGGBB"
    area: Optional[float] = None  # Area read from the plan (e.g. sqm), not pixel area
    label: Optional[str] = None  # Legacy display name
    custom_type: Optional[str] = None  # Free text when type == "other"
    original_type: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> dict:
        """Serialize to the label document shape."""
        return _drop_none({
            "id": self.id,
            "type": self.type,
            "points": [p.to_dict() for p in self.points],
            "blockNumber": self.block_number,
            "houseNumber": self.house_number,
            "color": self.color,
            "area": self.area,
            "label": self.label,
            "customType": self.custom_type,
            "originalType": self.original_type,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })

    @classmethod
    def from_dict(cls, data: dict) -> 'Label':
        area = data.get("area")
        house_number = data.get("houseNumber")
        return cls(
            id=str(data["id"]),
            type=data.get("type") or DEFAULT_LABEL_TYPE,
            points=[Point.from_dict(p) for p in data.get("points", [])],
            block_number=data.get("blockNumber"),
            house_number=str(house_number) if house_number is not None else None,
            color=data.get("color"),
            area=float(area) if area is not None else None,
            label=data.get("label"),
            custom_type=data.get("customType"),
            original_type=data.get("originalType"),
            status=data.get("status"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


@dataclass
class ImageData:
    """An image and the labels drawn on it."""
    name: str
    width: int
    height: int
    labels: list[Label] = field(default_factory=list)
    image_uri: Optional[str] = None

    def find_label(self, label_id: str) -> Optional[Label]:
        for label in self.labels:
            if label.id == label_id:
                return label
        return None

    def to_dict(self) -> dict:
        return _drop_none({
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "labels": [label.to_dict() for label in self.labels],
            "imageUri": self.image_uri,
        })

    @classmethod
    def from_dict(cls, data: dict) -> 'ImageData':
        return cls(
            name=data["name"],
            width=int(data["width"]),
            height=int(data["height"]),
            labels=[Label.from_dict(item) for item in data.get("labels", [])],
            image_uri=data.get("imageUri"),
        )


@dataclass
class LabelDocument:
    """The persisted label document: {images: {name: ImageData}}."""
    images: dict[str, ImageData] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"images": {key: image.to_dict() for key, image in self.images.items()}}

    @classmethod
    def from_dict(cls, data: dict) -> 'LabelDocument':
        if not isinstance(data, dict) or "images" not in data:
            raise ValueError("Label document must contain an 'images' mapping")
        return cls(images={
            key: ImageData.from_dict(image) for key, image in data["images"].items()
        })

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> 'LabelDocument':
        return cls.from_dict(json.loads(text))


class NumberingOrder(str, Enum):
    """House numbering order across a batch grid."""
    LTR = "ltr"                      # 1 2 3 / 4 5 6
    RTL = "rtl"                      # 3 2 1 / 6 5 4
    BOUSTROPHEDON = "boustrophedon"  # 1 2 3 / 6 5 4
    EVENS_ODDS = "evens-odds"        # 2 4 6 / 1 3 5
    ODDS_EVENS = "odds-evens"        # 1 3 5 / 2 4 6
    COL_LTR = "col-ltr"              # 1 3 5 / 2 4 6 (column by column)
    COL_RTL = "col-rtl"              # 5 3 1 / 6 4 2


@dataclass
class BatchConfig:
    """Configuration for creating a grid of labels in a selected rectangle."""
    rows: int
    cols: int
    start_block_number: str = ""
    start_house_number: int = 1
    house_number_increment: int = 1
    custom_sequence: Optional[list[int]] = None
    use_custom_sequence: bool = False
    column_dividers: Optional[list[float]] = None  # Fractions in (0, 1), len == cols - 1
    row_dividers: Optional[list[float]] = None  # Fractions in (0, 1), len == rows - 1
    type: str = "residential"
    color: str = LABEL_TYPES["residential"]
    numbering_order: NumberingOrder = NumberingOrder.LTR
    auto_detect_color: bool = False
    auto_detect_area: bool = False

    def __post_init__(self):
        self.numbering_order = NumberingOrder(self.numbering_order)

    @classmethod
    def from_dict(cls, data: dict) -> 'BatchConfig':
        """Build from the camelCase batch configuration surface."""
        return cls(
            rows=int(data["rows"]),
            cols=int(data["cols"]),
            start_block_number=str(data.get("startBlockNumber", "")),
            start_house_number=int(data.get("startHouseNumber", 1)),
            house_number_increment=int(data.get("houseNumberIncrement", 1)),
            custom_sequence=data.get("customSequence"),
            use_custom_sequence=bool(data.get("useCustomSequence", False)),
            column_dividers=data.get("columnDividers"),
            row_dividers=data.get("rowDividers"),
            type=data.get("type", "residential"),
            color=data.get("color", LABEL_TYPES["residential"]),
            numbering_order=data.get("numberingOrder", NumberingOrder.LTR.value),
            auto_detect_color=bool(data.get("autoDetectColor", False)),
            auto_detect_area=bool(data.get("autoDetectArea", False)),
        )
