"""ZIP packaging of renamed files."""

from .assembler import (
    ArchiveAssembler,
    build_manifest,
    choose_strategy,
    create_archive,
    estimate_archive_size,
    format_byte_size,
    should_compress,
    suggest_archive_filename,
    validate_archive_inputs,
)
from .errors import ArchiveError
from .models import (
    MANIFEST_FILENAME,
    ArchiveOptions,
    ArchiveResult,
    ArchiveState,
)

__all__ = [
    "ArchiveAssembler",
    "ArchiveError",
    "ArchiveOptions",
    "ArchiveResult",
    "ArchiveState",
    "MANIFEST_FILENAME",
    "build_manifest",
    "choose_strategy",
    "create_archive",
    "estimate_archive_size",
    "format_byte_size",
    "should_compress",
    "suggest_archive_filename",
    "validate_archive_inputs",
]
