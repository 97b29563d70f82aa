"""
FastAPI application entry point
"""

import sys
import logging
import traceback
from pathlib import Path

# Add parent directory to path so we can import core and vision modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from backend.config import CORS_ORIGINS, API_HOST, API_PORT, DOCUMENT_PATH
from backend.api import documents, images, labels, vision, batch
from core.errors import (
    InputError, DetectionFailure, ResourceExceededError, ExternalServiceError,
    ImageNotFoundError, LabelNotFoundError,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Sitelabel API starting...")
    if Path(DOCUMENT_PATH).exists():
        documents.open_document(DOCUMENT_PATH)
    yield
    # Shutdown
    logger.info("Sitelabel API shutting down...")


app = FastAPI(
    title="Sitelabel API",
    description="Site-plan labeling API with magic wand segmentation, OCR and batch grids",
    version="1.0.0",
    lifespan=lifespan,
)


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError):
    return _error_response(400, exc)


@app.exception_handler(ImageNotFoundError)
@app.exception_handler(LabelNotFoundError)
async def not_found_handler(request: Request, exc: Exception):
    return _error_response(404, exc)


@app.exception_handler(DetectionFailure)
@app.exception_handler(ResourceExceededError)
async def detection_error_handler(request: Request, exc: Exception):
    return _error_response(422, exc)


@app.exception_handler(ExternalServiceError)
async def external_error_handler(request: Request, exc: ExternalServiceError):
    logger.warning(f"External service failure on {request.method} {request.url.path}: {exc}")
    return _error_response(502, exc)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log all unhandled exceptions with full traceback."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}:")
    logger.error(traceback.format_exc())
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(documents.router, prefix="/api/documents", tags=["Documents"])
app.include_router(images.router, prefix="/api/images", tags=["Images"])
app.include_router(labels.router, prefix="/api/labels", tags=["Labels"])
app.include_router(vision.router, prefix="/api/vision", tags=["Vision"])
app.include_router(batch.router, prefix="/api/batch", tags=["Batch"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "sitelabel-api"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=API_HOST, port=API_PORT)
