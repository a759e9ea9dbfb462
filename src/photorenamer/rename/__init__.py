"""Template-driven rename engine."""

from .models import (
    CONFLICT_WARNING,
    PreviewEntry,
    RenameIssue,
    RenameOptions,
    RenameResult,
)
from .orchestrator import (
    BatchRenamer,
    batch_rename,
    collect_issues,
    fill_missing_dates,
    preview_rename,
)
from .resolver import format_shutter_speed, generate_filename
from .sanitize import sanitize_filename, sanitize_token, split_filename

__all__ = [
    "BatchRenamer",
    "CONFLICT_WARNING",
    "PreviewEntry",
    "RenameIssue",
    "RenameOptions",
    "RenameResult",
    "batch_rename",
    "collect_issues",
    "fill_missing_dates",
    "format_shutter_speed",
    "generate_filename",
    "preview_rename",
    "sanitize_filename",
    "sanitize_token",
    "split_filename",
]
