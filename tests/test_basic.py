"""
Basic tests to verify the project structure is working.
"""

import pytest


def test_import_core():
    """Test that core module can be imported."""
    import core
    assert core is not None
    assert core.LabelStore is not None


def test_import_vision():
    """Test that vision module can be imported."""
    import vision
    assert vision.segment_region is not None
    assert vision.sample_color is not None


def test_import_batch():
    """Test that the batch planner can be imported."""
    from core.batch import plan_grid, generate_batch_labels
    assert plan_grid is not None
    assert generate_batch_labels is not None


def test_import_backend():
    """Test that the API app can be imported."""
    from backend.main import app
    assert app.title == "Sitelabel API"


def test_error_hierarchy():
    """Test that domain errors share a base class and map to builtins."""
    from core.errors import (
        AnnotationError, InputError, DetectionFailure, ImageNotFoundError, LabelNotFoundError,
    )

    assert issubclass(InputError, ValueError)
    assert issubclass(ImageNotFoundError, KeyError)
    assert issubclass(LabelNotFoundError, AnnotationError)
    assert "adjusting tolerance" in str(DetectionFailure())
    assert str(ImageNotFoundError("Image 'a.png' not found")) == "Image 'a.png' not found"

    with pytest.raises(AnnotationError):
        raise InputError("bad")
