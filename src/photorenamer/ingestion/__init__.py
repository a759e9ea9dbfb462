"""File discovery, descriptors, and pre-rename checks."""

from .detectors import SUPPORTED_IMAGE_TYPES, TypeDetector, ValidationResult
from .discovery import DirectoryScanner
from .models import SourceFile

__all__ = [
    "DirectoryScanner",
    "SUPPORTED_IMAGE_TYPES",
    "SourceFile",
    "TypeDetector",
    "ValidationResult",
]
