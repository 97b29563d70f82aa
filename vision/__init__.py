"""
Vision module - magic wand segmentation, color sampling, and OCR area reading
"""

from vision.segment import SegmentResult, segment_region
from vision.sampler import sample_color
from vision.ocr import OcrEngine, OcrResult, OcrWord, TesseractEngine
from vision.area import parse_area, extract_area

__all__ = [
    "SegmentResult", "segment_region",
    "sample_color",
    "OcrEngine", "OcrResult", "OcrWord", "TesseractEngine",
    "parse_area", "extract_area",
]
