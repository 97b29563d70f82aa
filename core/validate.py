"""
QA Validation Engine for labels.

Validates labels for common issues:
- Polygon has at least 3 vertices and is a closed ring
- All points lie inside the image
- Minimum pixel area
- Color and area attribute validity
- Label ids unique per image
"""

from dataclasses import dataclass

from core.geometry import open_ring, polygon_area, is_closed
from core.models import Label, ImageData
from core.store import HEX_COLOR_RE


@dataclass
class ValidationWarning:
    """A validation warning."""
    image_name: str
    label_id: str
    severity: str  # 'error', 'warning', 'info'
    code: str
    message: str

    def to_dict(self) -> dict:
        return {
            "imageName": self.image_name,
            "labelId": self.label_id,
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
        }


def validate_label(
    label: Label,
    image_name: str,
    image_width: int,
    image_height: int,
    min_area_px: float = 4.0,
    max_polygon_points: int = 10000,
) -> list[ValidationWarning]:
    """
    Validate a single label.

    Args:
        label: The label to validate
        image_name: Name of the image owning the label
        image_width: Width of the image
        image_height: Height of the image
        min_area_px: Minimum polygon area in square pixels
        max_polygon_points: Maximum number of polygon points

    Returns:
        List of validation warnings
    """
    warnings = []

    def warn(severity: str, code: str, message: str):
        warnings.append(ValidationWarning(image_name, label.id, severity, code, message))

    ring = open_ring(label.points)
    num_points = len(ring)

    if num_points < 3:
        warn('error', 'POLYGON_TOO_FEW_POINTS',
             f'Polygon has only {num_points} points (minimum 3 required)')
        return warnings

    if num_points > max_polygon_points:
        warn('warning', 'POLYGON_TOO_MANY_POINTS',
             f'Polygon has {num_points} points (max recommended: {max_polygon_points})')

    if not is_closed(label.points):
        warn('info', 'POLYGON_NOT_CLOSED', 'Polygon does not repeat its first point')

    for i, p in enumerate(ring):
        if not (0 <= p.x <= image_width and 0 <= p.y <= image_height):
            warn('warning', 'POINT_OUT_OF_BOUNDS',
                 f'Point {i} ({p.x:.1f}, {p.y:.1f}) is outside the {image_width}x{image_height} image')
            break  # Only report first out-of-bounds point

    area = polygon_area(ring)
    if area < min_area_px:
        warn('warning', 'POLYGON_TOO_SMALL', f'Polygon area ({area:.1f}px²) is very small')

    if label.color is not None and not HEX_COLOR_RE.match(label.color):
        warn('warning', 'INVALID_COLOR', f'Color {label.color!r} is not #RRGGBB')

    if label.area is not None and label.area <= 0:
        warn('warning', 'AREA_NOT_POSITIVE', f'Area {label.area} should be positive or unset')

    return warnings


def validate_image(image: ImageData) -> list[ValidationWarning]:
    """Validate all labels of an image, including id uniqueness."""
    all_warnings = []
    seen = set()
    for label in image.labels:
        if label.id in seen:
            all_warnings.append(ValidationWarning(
                image_name=image.name,
                label_id=label.id,
                severity='error',
                code='DUPLICATE_ID',
                message=f'Label id {label.id!r} is used more than once'
            ))
        seen.add(label.id)
        all_warnings.extend(validate_label(label, image.name, image.width, image.height))
    return all_warnings


@dataclass
class DocumentValidationReport:
    """Validation report for an entire label document."""
    total_labels: int
    total_images: int
    errors: list[ValidationWarning]
    warnings: list[ValidationWarning]
    info: list[ValidationWarning]

    @property
    def is_valid(self) -> bool:
        """Document is valid if there are no errors."""
        return len(self.errors) == 0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def summary(self) -> str:
        """Get a summary string."""
        return (
            f"Validation Report:\n"
            f"  Images: {self.total_images}\n"
            f"  Labels: {self.total_labels}\n"
            f"  Errors: {self.error_count}\n"
            f"  Warnings: {self.warning_count}\n"
            f"  Valid: {'Yes' if self.is_valid else 'No'}"
        )


def validate_document(store) -> DocumentValidationReport:
    """
    Validate all labels in a document.

    Args:
        store: The LabelStore instance

    Returns:
        DocumentValidationReport with all issues found
    """
    images = store.list_images()

    all_warnings = []
    total_labels = 0
    for image in images:
        total_labels += len(image.labels)
        all_warnings.extend(validate_image(image))

    return DocumentValidationReport(
        total_labels=total_labels,
        total_images=len(images),
        errors=[w for w in all_warnings if w.severity == 'error'],
        warnings=[w for w in all_warnings if w.severity == 'warning'],
        info=[w for w in all_warnings if w.severity == 'info'],
    )
