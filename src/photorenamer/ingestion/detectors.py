"""File type detection and pre-rename validation."""

from __future__ import annotations

import re
from typing import List, Mapping, Tuple

from pydantic import BaseModel, Field

from .models import SourceFile

SUPPORTED_IMAGE_TYPES: Mapping[str, Tuple[str, ...]] = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "image/webp": (".webp",),
    "image/gif": (".gif",),
    "image/heic": (".heic",),
    "image/heif": (".heif",),
    "image/tiff": (".tif", ".tiff"),
    "image/bmp": (".bmp",),
    "image/avif": (".avif",),
}

UNKNOWN_TYPE = ("application/octet-stream", "unknown")
HEADER_BYTES = 16
RECOMMENDED_MAX_BYTES = 25 * 1024 * 1024

_FTYP_BRANDS: Mapping[bytes, str] = {
    b"heic": "image/heic",
    b"heix": "image/heic",
    b"hevc": "image/heic",
    b"heim": "image/heic",
    b"heis": "image/heic",
    b"mif1": "image/heif",
    b"msf1": "image/heif",
    b"avif": "image/avif",
    b"avis": "image/avif",
}
_RESERVED_NAMES = re.compile(r"^(con|prn|aux|nul|com[1-9]|lpt[1-9])(\.|$)", re.IGNORECASE)
_INVALID_NAME_CHARS = re.compile(r'[<>:"|?*\x00-\x1f]')
_SPECIAL_NAME_CHARS = re.compile(r"[!@#$%^&*()+=\[\]{}';,~`]")


class ValidationResult(BaseModel):
    """Outcome of the pre-rename check for one file."""

    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    mime_type: str = UNKNOWN_TYPE[0]


def mime_from_extension(filename: str) -> str | None:
    """Return the image MIME type implied by the extension, if supported."""
    dot = filename.rfind(".")
    if dot == -1:
        return None
    suffix = filename[dot:].lower()
    for mime, extensions in SUPPORTED_IMAGE_TYPES.items():
        if suffix in extensions:
            return mime
    return None


class TypeDetector:
    """Identify image types from their leading bytes and gate unsupported files."""

    def detect(self, header: bytes) -> Tuple[str, str]:
        """Return ``(mime_type, category)`` for the given leading bytes."""
        if header.startswith(b"\xff\xd8\xff"):
            return "image/jpeg", "image"
        if header.startswith(b"\x89PNG\r\n\x1a\n"):
            return "image/png", "image"
        if header[:6] in (b"GIF87a", b"GIF89a"):
            return "image/gif", "image"
        if header[:4] == b"RIFF" and header[8:12] == b"WEBP":
            return "image/webp", "image"
        if header[:4] in (b"II*\x00", b"MM\x00*"):
            return "image/tiff", "image"
        if header[:2] == b"BM":
            return "image/bmp", "image"
        if header[4:8] == b"ftyp":
            brand = _FTYP_BRANDS.get(header[8:12])
            if brand is not None:
                return brand, "image"
        return UNKNOWN_TYPE

    def detect_file(self, source: SourceFile) -> Tuple[str, str]:
        """Read the header of ``source`` and detect its type.

        Raises:
            OSError: If the file cannot be read.
        """
        with source.open() as handle:
            return self.detect(handle.read(HEADER_BYTES))

    def validate(
        self,
        source: SourceFile,
        *,
        min_size: int = 0,
        max_size: int | None = None,
        strict: bool = True,
    ) -> ValidationResult:
        """Check name, size, and signature before a file enters a batch.

        Args:
            source: File to check.
            min_size: Smallest accepted size in bytes.
            max_size: Largest accepted size in bytes, or None for no limit.
            strict: Treat a signature that disagrees with the extension as an error.

        Returns:
            ValidationResult: ``valid`` is False when any error was found.
        """
        errors: List[str] = []
        warnings: List[str] = []

        name_errors, name_warnings = self._check_name(source.name)
        errors.extend(name_errors)
        warnings.extend(name_warnings)

        if source.size == 0:
            errors.append("File is empty (0 bytes)")
        elif source.size < min_size:
            errors.append(f"File is too small (minimum {min_size} bytes)")
        elif max_size is not None and source.size > max_size:
            errors.append(f"File is too large (maximum {max_size} bytes)")
        elif source.size > RECOMMENDED_MAX_BYTES:
            warnings.append(f"File is large ({source.size} bytes). Processing may be slow.")

        detected = UNKNOWN_TYPE[0]
        if not errors:
            try:
                detected, _ = self.detect_file(source)
            except OSError as exc:
                errors.append(f"Could not read file header: {exc}")
            else:
                self._check_signature(source.name, detected, strict, errors, warnings)

        return ValidationResult(
            valid=not errors, errors=errors, warnings=warnings, mime_type=detected
        )

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _check_name(self, name: str) -> Tuple[List[str], List[str]]:
        errors: List[str] = []
        warnings: List[str] = []
        if not name.strip():
            return ["Filename cannot be empty"], warnings
        if len(name) > 255:
            errors.append("Filename is too long (max 255 characters)")
        if "\x00" in name:
            errors.append("Filename contains null bytes")
        if ".." in name or "/" in name or "\\" in name:
            errors.append("Filename contains path traversal characters")
        if _INVALID_NAME_CHARS.search(name):
            errors.append("Filename contains invalid characters")
        if _RESERVED_NAMES.match(name):
            warnings.append("Filename uses a reserved system name")
        if _SPECIAL_NAME_CHARS.search(name):
            warnings.append("Filename contains special characters that may cause issues")
        if "." not in name.lstrip("."):
            warnings.append("File has no extension")
        return errors, warnings

    def _check_signature(
        self,
        name: str,
        detected: str,
        strict: bool,
        errors: List[str],
        warnings: List[str],
    ) -> None:
        declared = mime_from_extension(name)
        if detected == UNKNOWN_TYPE[0]:
            if declared is None:
                errors.append(f"Unsupported file type: {name}")
            elif strict:
                errors.append(
                    "File signature does not match declared type. "
                    "File may be corrupted or mislabeled."
                )
            else:
                warnings.append("Cannot verify file signature for this type")
            return

        if declared is not None and declared != detected:
            message = f"Extension of {name} does not match detected type {detected}"
            if strict:
                errors.append(message)
            else:
                warnings.append(message)
        elif declared is None:
            warnings.append(f"Extension of {name} does not match detected type {detected}")
