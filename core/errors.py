"""
Exception hierarchy for the annotation engine.
"""


class AnnotationError(Exception):
    """Base exception for annotation engine failures."""

    pass


class InputError(AnnotationError, ValueError):
    """Malformed input: empty point list, selection too small, bad dividers."""

    pass


class ResourceExceededError(AnnotationError):
    """Flood fill hit its pixel cap without forming a valid region."""

    pass


class DetectionFailure(AnnotationError):
    """Region detection found nothing usable around the seed point."""

    def __init__(self, message: str = "Could not detect boundary, try adjusting tolerance"):
        super().__init__(message)


class ExternalServiceError(AnnotationError):
    """Image decoding or OCR call failed."""

    pass


class ImageNotFoundError(AnnotationError, KeyError):
    """Image is not present in the document or repository."""

    def __str__(self):
        return str(self.args[0]) if self.args else "Image not found"


class LabelNotFoundError(AnnotationError, KeyError):
    """Label is not present on the image."""

    def __str__(self):
        return str(self.args[0]) if self.args else "Label not found"
