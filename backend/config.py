"""
Backend configuration
"""

import os
from pathlib import Path

# Base paths
ROOT_DIR = Path(__file__).parent.parent  # sitelabel/
DATA_DIR = Path(os.getenv("DATA_DIR", str(ROOT_DIR / "data")))

# API settings
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# CORS origins (frontend URL)
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS", "http://localhost:8081,http://127.0.0.1:8081"
).split(",")

# Label document opened at startup (if it exists) and image lookup directory
DOCUMENT_PATH = os.getenv("DOCUMENT_PATH", str(DATA_DIR / "labels.json"))
IMAGE_DIR = os.getenv("IMAGE_DIR", str(DATA_DIR / "images"))

# OCR settings
TESSERACT_CMD = os.getenv("TESSERACT_CMD") or None
OCR_LANG = os.getenv("OCR_LANG", "eng")
OCR_CONFIG = os.getenv("OCR_CONFIG", "--oem 3 --psm 11")
OCR_TIMEOUT = float(os.getenv("OCR_TIMEOUT", "10"))

# Magic wand defaults
WAND_TOLERANCE = float(os.getenv("WAND_TOLERANCE", "30"))
WAND_EDGE_THRESHOLD = float(os.getenv("WAND_EDGE_THRESHOLD", "50"))

# Cells analysed in parallel during batch creation
BATCH_WORKERS = int(os.getenv("BATCH_WORKERS", "4"))
