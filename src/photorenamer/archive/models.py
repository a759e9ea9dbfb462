"""Archive data models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

MANIFEST_FILENAME = "metadata.txt"
DEFAULT_ARCHIVE_BASENAME = "renamed-photos"

ArchiveStrategy = Literal["buffered", "streaming"]

# Entries with these extensions are stored without recompression.
INCOMPRESSIBLE_EXTENSIONS = frozenset(
    {
        "jpg", "jpeg", "png", "gif", "webp", "heic", "heif", "avif",
        "mp4", "mov", "avi", "mkv", "webm",
        "mp3", "aac", "flac", "m4a", "ogg",
        "zip", "rar", "7z", "gz", "bz2",
        "pdf", "docx", "xlsx", "pptx",
    }
)  # fmt: skip


class ArchiveState(str, Enum):
    """Lifecycle of an archive under construction."""

    COLLECTING = "collecting"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    FAILED = "failed"


class ArchiveOptions(BaseModel):
    """Options controlling archive assembly.

    Attributes:
        compression_level: Deflate level (0-9) for compressible entries.
        include_manifest: Whether to add a rename log to the archive.
        folder_prefix: Folder that wraps every entry inside the archive.
        strategy: ``auto`` picks buffered or streaming from the thresholds.
        streaming_file_threshold: Batches with more files stream.
        streaming_size_threshold: Batches with more total bytes stream.
        chunk_size: Read size used by the streaming strategy.
    """

    model_config = ConfigDict(frozen=True)

    compression_level: int = Field(default=6, ge=0, le=9)
    include_manifest: bool = False
    folder_prefix: str = ""
    strategy: Literal["auto", "buffered", "streaming"] = "auto"
    streaming_file_threshold: int = Field(default=10, ge=0)
    streaming_size_threshold: int = Field(default=10 * 1024 * 1024, ge=0)
    chunk_size: int = Field(default=1024 * 1024, gt=0)


class ArchiveResult(BaseModel):
    """Outcome of a completed archive build.

    Attributes:
        archive_bytes: Archive content when built in memory.
        size_bytes: Size of the finished archive.
        suggested_filename: Download name derived from folder and creation time.
        file_count: Number of renamed files written (manifest excluded).
        strategy: Assembly strategy that produced the archive.
        path: Destination path when the archive was written to disk.
    """

    archive_bytes: Optional[bytes] = Field(default=None, repr=False)
    size_bytes: int
    suggested_filename: str
    file_count: int
    strategy: ArchiveStrategy
    path: Optional[Path] = None


__all__ = [
    "ArchiveOptions",
    "ArchiveResult",
    "ArchiveState",
    "ArchiveStrategy",
    "DEFAULT_ARCHIVE_BASENAME",
    "INCOMPRESSIBLE_EXTENSIONS",
    "MANIFEST_FILENAME",
]
