"""
Image rasters and the image repository.

A Raster wraps an RGBA8 pixel buffer. The ImageRepository decodes images
with Pillow and keeps them keyed by image name so pixel-reading components
receive their bitmaps explicitly.
"""

import io
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image

from core.errors import ExternalServiceError, ImageNotFoundError
from core.geometry import BoundingBox

logger = logging.getLogger(__name__)

# Supported image extensions
IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.tiff', '.tif', '.webp'}


@dataclass
class Raster:
    """Decoded RGBA8 image of shape (H, W, 4)."""
    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Raster must be (H, W, 4), got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            self.pixels = self.pixels.astype(np.uint8)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def rgb(self) -> np.ndarray:
        return self.pixels[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3]

    @classmethod
    def from_array(cls, array: np.ndarray) -> 'Raster':
        """
        Build a raster from a grayscale, RGB or RGBA array.

        Missing alpha is filled as fully opaque.
        """
        if array.dtype != np.uint8:
            array = np.clip(array, 0, 255).astype(np.uint8)
        if array.ndim == 2:
            array = np.stack([array] * 3, axis=-1)
        if array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array, alpha], axis=2)
        return cls(np.ascontiguousarray(array))

    @classmethod
    def from_pil(cls, image: Image.Image) -> 'Raster':
        return cls(np.array(image.convert("RGBA")))

    def clamp_box(self, bbox: BoundingBox) -> Optional[tuple[int, int, int, int]]:
        """
        Clamp a bounding box to the image.

        Returns:
            (x1, y1, x2, y2) integer pixel bounds with exclusive x2/y2,
            or None if nothing of the box lies inside the image
        """
        x1 = max(0, int(np.floor(bbox.min_x)))
        y1 = max(0, int(np.floor(bbox.min_y)))
        x2 = min(self.width, int(np.ceil(bbox.max_x)))
        y2 = min(self.height, int(np.ceil(bbox.max_y)))
        if x2 - x1 <= 0 or y2 - y1 <= 0:
            return None
        return x1, y1, x2, y2

    def crop(self, bbox: BoundingBox) -> Optional['Raster']:
        """Crop to a bounding box (clamped to the image)."""
        bounds = self.clamp_box(bbox)
        if bounds is None:
            return None
        x1, y1, x2, y2 = bounds
        return Raster(self.pixels[y1:y2, x1:x2].copy())

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)


def decode_image(source: Union[str, os.PathLike, bytes]) -> Raster:
    """
    Decode an image file or byte string into a Raster.

    Raises:
        ExternalServiceError: if the image cannot be read or decoded
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            with Image.open(io.BytesIO(source)) as img:
                return Raster.from_pil(img)
        with Image.open(source) as img:
            return Raster.from_pil(img)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ExternalServiceError(f"Failed to load image: {e}") from e


class ImageRepository:
    """
    Keyed cache of decoded image rasters.

    Rasters are either put explicitly (e.g. uploaded bytes) or decoded on
    first access from a registered path.
    """

    def __init__(self, image_dir: Optional[str] = None):
        self.image_dir = image_dir
        self._rasters: dict[str, Raster] = {}
        self._paths: dict[str, str] = {}
        self._lock = threading.Lock()

    def __contains__(self, key: str) -> bool:
        return key in self._rasters or key in self._paths

    def put(self, key: str, raster: Raster) -> None:
        """Store a decoded raster under key."""
        with self._lock:
            self._rasters[key] = raster

    def register_path(self, key: str, path: str) -> None:
        """Register a file to decode lazily on first get()."""
        with self._lock:
            self._paths[key] = str(path)
            self._rasters.pop(key, None)

    def put_bytes(self, key: str, data: bytes) -> Raster:
        """Decode uploaded bytes and store the result."""
        raster = decode_image(data)
        self.put(key, raster)
        return raster

    def get(self, key: str) -> Raster:
        """
        Get the raster for an image.

        Raises:
            ImageNotFoundError: if no raster or path is known for key
            ExternalServiceError: if the registered file cannot be decoded
        """
        with self._lock:
            raster = self._rasters.get(key)
            path = self._paths.get(key)

        if raster is not None:
            return raster

        if path is None and self.image_dir:
            candidate = Path(self.image_dir) / key
            if candidate.suffix.lower() in IMAGE_EXTENSIONS and candidate.exists():
                path = str(candidate)

        if path is None:
            raise ImageNotFoundError(f"No raster available for image '{key}'")

        logger.debug(f"Decoding image {key} from {path}")
        raster = decode_image(path)
        self.put(key, raster)
        return raster

    def remove(self, key: str) -> None:
        with self._lock:
            self._rasters.pop(key, None)
            self._paths.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._rasters.clear()
            self._paths.clear()
