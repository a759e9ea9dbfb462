"""Batch photo renaming from filename templates, with ZIP packaging."""

from importlib import metadata as _metadata

from photorenamer.archive import ArchiveError, ArchiveOptions, ArchiveResult, create_archive
from photorenamer.ingestion import SourceFile
from photorenamer.metadata import MetadataExtractor, MetadataRecord
from photorenamer.rename import RenameOptions, RenameResult, batch_rename, generate_filename
from photorenamer.templates import TEMPLATE_TOKENS, InvalidTemplateError, parse_template

__all__ = [
    "ArchiveError",
    "ArchiveOptions",
    "ArchiveResult",
    "InvalidTemplateError",
    "MetadataExtractor",
    "MetadataRecord",
    "RenameOptions",
    "RenameResult",
    "SourceFile",
    "TEMPLATE_TOKENS",
    "__version__",
    "batch_rename",
    "create_archive",
    "generate_filename",
    "parse_template",
]


def __getattr__(name: str):
    if name == "__version__":
        try:
            return _metadata.version("photorenamer")
        except _metadata.PackageNotFoundError:
            return "0.0.0"
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
