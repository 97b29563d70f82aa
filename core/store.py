"""
LabelStore - CRUD operations on a label document (images and their labels)
with JSON persistence.
"""

import os
import re
import json
import logging
import time
import uuid
from typing import Optional, Sequence

from core.drawing import move_point, normalize_ring
from core.errors import InputError, ImageNotFoundError, LabelNotFoundError
from core.models import (
    LabelDocument, ImageData, Label, LABEL_TYPES, resolve_label_type, utc_now_iso,
)

logger = logging.getLogger(__name__)

HEX_COLOR_RE = re.compile(r'^#[0-9A-Fa-f]{6}$')


def natural_sort_key(s: str):
    """
    Key function for natural sorting of strings.
    E.g., sorts "img2.jpg" before "img10.jpg"
    """
    return [
        int(text) if text.isdigit() else text.lower()
        for text in re.split(r'(\d+)', s)
    ]


def generate_label_id(name: str) -> str:
    """
    Id for an interactively created label.

    Combines the name with a millisecond timestamp and a random suffix so
    labels created within the same millisecond stay distinct.
    """
    slug = re.sub(r'\s+', '_', name.strip()) or "label"
    return f"{slug}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


class LabelStore:
    """
    Handles all operations on a label document.
    """

    def __init__(self, document: Optional[LabelDocument] = None, path: Optional[str] = None):
        """
        Initialize store.

        Args:
            document: Document to operate on (a new empty one if omitted)
            path: Default JSON file used by save()
        """
        self.document = document if document is not None else LabelDocument()
        self.path = path

    # ==================== Persistence ====================

    @classmethod
    def load(cls, path: str) -> 'LabelStore':
        """
        Load a label document from a JSON file.

        Args:
            path: Path to the JSON document

        Returns:
            LabelStore bound to the file
        """
        path = os.path.abspath(path)
        if not os.path.exists(path):
            raise FileNotFoundError(f"No label document found at {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        document = LabelDocument.from_dict(data)
        logger.info(f"Loaded {len(document.images)} image(s) from {path}")
        return cls(document, path)

    @classmethod
    def open_or_create(cls, path: str) -> 'LabelStore':
        """Load the document at path, or start an empty one bound to it."""
        if os.path.exists(path):
            return cls.load(path)
        return cls(LabelDocument(), os.path.abspath(path))

    def save(self, path: Optional[str] = None) -> str:
        """
        Write the document as JSON.

        Returns:
            Path written to
        """
        path = path or self.path
        if path is None:
            raise ValueError("No path given and store is not bound to a file")

        path = os.path.abspath(path)
        os.makedirs(os.path.dirname(path), exist_ok=True)

        # Write to a sibling temp file first so a failed write keeps the old document
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(self.document.to_json())
        os.replace(tmp_path, path)

        self.path = path
        return path

    # ==================== Image Operations ====================

    def list_images(self) -> list[ImageData]:
        """List images in natural name order."""
        keys = sorted(self.document.images, key=natural_sort_key)
        return [self.document.images[k] for k in keys]

    def get_image(self, name: str) -> ImageData:
        image = self.document.images.get(name)
        if image is None:
            raise ImageNotFoundError(f"Image '{name}' not found")
        return image

    def add_image(
        self,
        name: str,
        width: int,
        height: int,
        image_uri: Optional[str] = None,
    ) -> ImageData:
        """
        Add an image (or replace the metadata of an existing one).

        Existing labels are kept when the image is re-added.
        """
        if width <= 0 or height <= 0:
            raise InputError(f"Invalid image size {width}x{height}")

        existing = self.document.images.get(name)
        image = ImageData(
            name=name,
            width=int(width),
            height=int(height),
            labels=existing.labels if existing else [],
            image_uri=image_uri,
        )
        self.document.images[name] = image
        return image

    def delete_image(self, name: str) -> None:
        """
        Delete an image and all its labels.

        Raises:
            InputError: when deleting the last image of the document
        """
        self.get_image(name)
        if len(self.document.images) <= 1:
            raise InputError("Cannot delete the last image")
        del self.document.images[name]

    # ==================== Label Operations ====================

    def list_labels(self, image_name: str) -> list[Label]:
        return list(self.get_image(image_name).labels)

    def get_label(self, image_name: str, label_id: str) -> Label:
        label = self.get_image(image_name).find_label(label_id)
        if label is None:
            raise LabelNotFoundError(f"Label '{label_id}' not found on image '{image_name}'")
        return label

    def create_label(
        self,
        image_name: str,
        points: Sequence,
        type: str = "other",
        name: Optional[str] = None,
        **attrs,
    ) -> Label:
        """
        Create a label from a drawn or detected polygon.

        Args:
            image_name: Image to add the label to
            points: Open or closed ring of at least 3 points
            type: Label type
            name: Optional display name (also used as the id prefix)
            **attrs: block_number, house_number, color, area, custom_type, status

        Returns:
            Created Label
        """
        image = self.get_image(image_name)
        ring = normalize_ring(points)

        label_type = resolve_label_type(type)
        now = utc_now_iso()
        label = Label(
            id=generate_label_id(name or label_type),
            type=label_type,
            points=ring,
            label=name,
            original_type=type if type != label_type else None,
            created_at=now,
            updated_at=now,
        )
        self._apply_fields(label, attrs)
        if label.color is None:
            label.color = LABEL_TYPES[label_type]

        image.labels.append(label)
        return label

    def add_labels(self, image_name: str, labels: Sequence[Label]) -> list[Label]:
        """
        Add several labels at once.

        Either every label is added or, if any is invalid or its id clashes,
        none is.
        """
        image = self.get_image(image_name)
        taken = {label.id for label in image.labels}
        rings = []

        for label in labels:
            if label.id in taken:
                raise InputError(f"Duplicate label id '{label.id}'")
            taken.add(label.id)
            rings.append(normalize_ring(label.points))

        for label, ring in zip(labels, rings):
            label.points = ring
        image.labels.extend(labels)
        logger.debug(f"Added {len(labels)} labels to {image_name}")
        return list(labels)

    def update_label(self, image_name: str, label_id: str, **fields) -> Label:
        """
        Update a label.

        Args:
            **fields: Fields to update (type, points, block_number, house_number,
                      color, area, custom_type, status, label)

        Returns:
            Updated Label
        """
        label = self.get_label(image_name, label_id)

        if "points" in fields:
            fields["points"] = normalize_ring(fields["points"])
        if "type" in fields:
            fields["type"] = resolve_label_type(fields["type"])

        if self._apply_fields(label, fields):
            label.updated_at = utc_now_iso()
        return label

    def move_label_point(self, image_name: str, label_id: str, index: int, position) -> Label:
        """Drag one vertex of a label to a new position."""
        label = self.get_label(image_name, label_id)
        label.points = move_point(label.points, index, position)
        label.updated_at = utc_now_iso()
        return label

    def delete_label(self, image_name: str, label_id: str) -> None:
        image = self.get_image(image_name)
        label = self.get_label(image_name, label_id)
        image.labels.remove(label)

    def _apply_fields(self, label: Label, fields: dict) -> bool:
        allowed_fields = {
            'type', 'points', 'block_number', 'house_number', 'color',
            'area', 'custom_type', 'status', 'label',
        }

        changed = False
        for key, value in fields.items():
            if key not in allowed_fields:
                continue

            if key == 'color' and value is not None and not HEX_COLOR_RE.match(value):
                raise InputError(f"Invalid color '{value}', expected #RRGGBB")
            if key == 'area' and value is not None:
                value = float(value)
            if key == 'house_number' and value is not None:
                value = str(value)

            setattr(label, key, value)
            changed = True
        return changed
