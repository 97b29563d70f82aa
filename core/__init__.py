"""
Core module - Data model, geometry, label storage and batch planning
"""

from core.models import Point, Label, ImageData, LabelDocument, BatchConfig, NumberingOrder
from core.errors import (
    AnnotationError, InputError, ResourceExceededError, DetectionFailure,
    ExternalServiceError, ImageNotFoundError, LabelNotFoundError,
)
from core.geometry import (
    BoundingBox, bounding_box, polygon_area, centroid, perpendicular_distance, simplify_polygon,
)
from core.store import LabelStore
from core.images import Raster, ImageRepository

__all__ = [
    "Point", "Label", "ImageData", "LabelDocument", "BatchConfig", "NumberingOrder",
    "AnnotationError", "InputError", "ResourceExceededError", "DetectionFailure",
    "ExternalServiceError", "ImageNotFoundError", "LabelNotFoundError",
    "BoundingBox", "bounding_box", "polygon_area", "centroid", "perpendicular_distance",
    "simplify_polygon",
    "LabelStore",
    "Raster", "ImageRepository",
]
