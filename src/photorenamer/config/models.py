"""Configuration models describing photorenamer settings."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RenamerBaseModel(BaseModel):
    """Shared configuration for settings models; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")


class RenameSettings(RenamerBaseModel):
    """Defaults for filename generation.

    Attributes:
        template: Template or preset name applied when ``--template`` is omitted.
        counter_padding: Zero-padding width for ``{counter}``.
        start_counter: First counter value in a batch.
        custom_text: Text substituted for ``{custom}``.
        preserve_extension: Whether renamed files keep their extension.
        fallback_date: Date used for files without a capture date; ``now`` or
            the file's modification time.
    """

    template: str = "{YYYY}{MM}{DD}_{counter}"
    counter_padding: int = Field(default=3, ge=0, le=12)
    start_counter: int = 1
    custom_text: str = ""
    preserve_extension: bool = True
    fallback_date: Literal["now", "modified"] = "now"


class ArchiveSettings(RenamerBaseModel):
    """Defaults for archive packaging.

    Attributes:
        compression_level: Deflate level for compressible entries.
        include_manifest: Whether to add ``metadata.txt`` to archives.
        folder_name: Folder wrapping every entry; also names the archive.
        streaming_file_threshold: Batches with more files are streamed.
        streaming_size_threshold_mb: Batches larger than this are streamed.
    """

    compression_level: int = Field(default=6, ge=0, le=9)
    include_manifest: bool = False
    folder_name: str = ""
    streaming_file_threshold: int = Field(default=10, ge=0)
    streaming_size_threshold_mb: int = Field(default=10, ge=0)


class ProcessingOptions(RenamerBaseModel):
    """Options governing discovery and pre-checks.

    Attributes:
        recurse_directories: Whether to recurse into subdirectories.
        process_hidden_files: Whether hidden files should be included.
        follow_symlinks: Whether to traverse symbolic links.
        max_file_size_mb: Files above this size are skipped.
        min_file_size_bytes: Files below this size fail the pre-check.
        strict_type_check: Reject files whose signature disagrees with the extension.
        metadata_workers: Threads used for metadata extraction.
    """

    recurse_directories: bool = False
    process_hidden_files: bool = False
    follow_symlinks: bool = False
    max_file_size_mb: int = Field(default=100, ge=1)
    min_file_size_bytes: int = Field(default=1, ge=0)
    strict_type_check: bool = True
    metadata_workers: int = Field(default=4, ge=1)


class LoggingSettings(RenamerBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(RenamerBaseModel):
    """CLI presentation defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class RenamerConfig(RenamerBaseModel):
    """Top-level configuration for photorenamer."""

    rename: RenameSettings = Field(default_factory=RenameSettings)
    archive: ArchiveSettings = Field(default_factory=ArchiveSettings)
    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "ArchiveSettings",
    "CLIOptions",
    "LoggingSettings",
    "ProcessingOptions",
    "RenameSettings",
    "RenamerBaseModel",
    "RenamerConfig",
]
