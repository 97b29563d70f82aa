"""
OCR collaborator - recognize text in a region of a site plan.

The engine is a black box: it receives a bitmap and returns the recognized
text plus word boxes. TesseractEngine is the default implementation.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

import cv2
import numpy as np
import pytesseract
from PIL import Image

from core.errors import ExternalServiceError
from core.geometry import bounding_box
from core.images import Raster
from core.models import Point

logger = logging.getLogger(__name__)

# Text is magnified before recognition
UPSCALE_FACTOR = 2

DEFAULT_LANGUAGE = "eng"

# PSM 11 = sparse text, good for drawings
DEFAULT_TESSERACT_CONFIG = "--oem 3 --psm 11"


@dataclass
class OcrWord:
    """A recognized word with its box (left, top, width, height) in OCR image pixels."""
    text: str
    bbox: tuple[int, int, int, int]
    confidence: float


@dataclass
class OcrResult:
    """Full recognized text and individual words."""
    text: str
    words: list[OcrWord] = field(default_factory=list)


class OcrEngine(ABC):
    """Interface of an OCR collaborator."""

    @abstractmethod
    def recognize(self, image: Image.Image, language: str = DEFAULT_LANGUAGE) -> OcrResult:
        """
        Recognize text in an image.

        Raises:
            ExternalServiceError: if recognition fails
        """


class TesseractEngine(OcrEngine):
    """
    OCR via the Tesseract command line through pytesseract.
    """

    def __init__(
        self,
        tesseract_cmd: Optional[str] = None,
        config: str = DEFAULT_TESSERACT_CONFIG,
        timeout: float = 0,
    ):
        """
        Args:
            tesseract_cmd: Path to the tesseract binary (PATH lookup if None)
            config: Extra tesseract command line options
            timeout: Seconds before a recognition call is aborted (0 = no limit)
        """
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.config = config
        self.timeout = timeout

    def recognize(self, image: Image.Image, language: str = DEFAULT_LANGUAGE) -> OcrResult:
        try:
            data = pytesseract.image_to_data(
                image,
                lang=language,
                config=self.config,
                timeout=self.timeout,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError, OSError) as e:
            raise ExternalServiceError(f"OCR failed: {e}") from e

        return _result_from_tesseract(data)


def _result_from_tesseract(data: dict) -> OcrResult:
    """Build an OcrResult from pytesseract's image_to_data dict."""
    words = []
    lines: dict[tuple, list[str]] = {}

    for i, raw in enumerate(data.get("text", [])):
        text = (raw or "").strip()
        if not text:
            continue
        try:
            conf = float(data["conf"][i])
        except (KeyError, TypeError, ValueError):
            conf = -1.0

        words.append(OcrWord(
            text=text,
            bbox=(
                int(data["left"][i]), int(data["top"][i]),
                int(data["width"][i]), int(data["height"][i]),
            ),
            confidence=conf,
        ))
        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        lines.setdefault(key, []).append(text)

    full_text = "\n".join(" ".join(tokens) for tokens in lines.values())
    return OcrResult(text=full_text, words=words)


def preprocess_region(
    raster: Raster,
    polygon: Sequence[Point],
    scale: int = UPSCALE_FACTOR,
) -> Optional[Image.Image]:
    """
    Crop a region for OCR and magnify it.

    Transparent pixels are flattened onto white, then the crop is upscaled
    with bicubic interpolation.

    Returns:
        RGB PIL image, or None if the region lies outside the image
    """
    bbox = bounding_box(polygon)
    if bbox is None:
        return None

    crop = raster.crop(bbox)
    if crop is None:
        return None

    rgb = crop.rgb.astype(np.float32)
    alpha = crop.alpha.astype(np.float32)[:, :, None] / 255.0
    flattened = (rgb * alpha + 255.0 * (1.0 - alpha)).round().astype(np.uint8)

    upscaled = cv2.resize(
        flattened,
        (crop.width * scale, crop.height * scale),
        interpolation=cv2.INTER_CUBIC,
    )
    return Image.fromarray(upscaled)
