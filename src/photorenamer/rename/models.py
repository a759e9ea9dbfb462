"""Rename engine data models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

CONFLICT_WARNING = "Filename conflict resolved with numeric suffix"
UNRESOLVED_PREFIX = "Unresolved tokens:"

IssueKind = Literal["missing_data", "unresolved_token", "filename_conflict", "internal_error"]


class RenameOptions(BaseModel):
    """Per-batch options for filename generation.

    Attributes:
        counter: Absolute sequence number substituted for counter tokens.
        counter_padding: Zero-padding width for ``{counter}``.
        start_counter: First counter value assigned by a batch rename.
        custom_text: Text substituted for ``{custom}``.
        fallback_date: Date used when a file has no capture date (now if None).
        preserve_extension: Whether to append the original extension.
    """

    model_config = ConfigDict(frozen=True)

    counter: int = 1
    counter_padding: int = Field(default=3, ge=0)
    start_counter: int = 1
    custom_text: str = ""
    fallback_date: Optional[datetime] = None
    preserve_extension: bool = True


class RenameResult(BaseModel):
    """Computed filename for one file.

    Attributes:
        filename: Final filename (including extension when preserved).
        success: False only when an unexpected internal error occurred.
        warnings: Non-fatal notes such as missing metadata or conflicts.
        error: Description of the internal error when ``success`` is False.
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    success: bool = True
    warnings: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class RenameIssue(BaseModel):
    """Structured view of a per-file rename problem."""

    kind: IssueKind
    message: str
    filename: str


class PreviewEntry(BaseModel):
    """Original and computed name pair for previews and manifests."""

    original: str
    renamed: str
    warnings: List[str] = Field(default_factory=list)


def classify_warning(message: str) -> IssueKind:
    """Map a warning string onto its issue kind."""
    if message == CONFLICT_WARNING:
        return "filename_conflict"
    if message.startswith(UNRESOLVED_PREFIX):
        return "unresolved_token"
    return "missing_data"


__all__ = [
    "CONFLICT_WARNING",
    "UNRESOLVED_PREFIX",
    "PreviewEntry",
    "RenameIssue",
    "RenameOptions",
    "RenameResult",
    "classify_warning",
]
