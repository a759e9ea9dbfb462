"""ZIP archive assembly for renamed files."""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from photorenamer.ingestion.models import SourceFile
from photorenamer.rename.models import RenameResult
from photorenamer.rename.sanitize import sanitize_filename

from .errors import ArchiveError
from .models import (
    DEFAULT_ARCHIVE_BASENAME,
    INCOMPRESSIBLE_EXTENSIONS,
    MANIFEST_FILENAME,
    ArchiveOptions,
    ArchiveResult,
    ArchiveState,
    ArchiveStrategy,
)

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
Destination = Union[Path, BinaryIO, None]

_EARLIEST_ZIP_TIME = datetime(1980, 1, 1)
_FILE_ATTRIBUTES = 0o644 << 16
# Python 3.13 made the per-entry level public; older releases only have the private slot.
_LEVEL_ATTRIBUTE = (
    "compress_level" if hasattr(zipfile.ZipInfo, "compress_level") else "_compresslevel"
)


class ArchiveAssembler:
    """Write entries into a ZIP stream: collecting -> finalizing -> complete.

    Entries can be added from memory (:meth:`add_bytes`) or copied in chunks
    from a binary stream (:meth:`add_stream`); both produce identical bytes
    for identical content. No entry may be added once :meth:`finalize` has
    started.
    """

    def __init__(self, output: BinaryIO, *, compression_level: int = 6) -> None:
        self._output = output
        self._compression_level = compression_level
        self._zip = zipfile.ZipFile(output, mode="w", compression=zipfile.ZIP_DEFLATED)
        self._names: set[str] = set()
        self._state = ArchiveState.COLLECTING

    @property
    def state(self) -> ArchiveState:
        return self._state

    @property
    def entry_names(self) -> List[str]:
        return [info.filename for info in self._zip.infolist()]

    def __enter__(self) -> "ArchiveAssembler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort()
        elif self._state is ArchiveState.COLLECTING:
            self.finalize()

    def add_bytes(
        self,
        arcname: str,
        data: bytes,
        *,
        compress: bool = True,
        modified: datetime | None = None,
    ) -> None:
        """Add an entry whose content is already in memory."""
        info = self._entry_info(arcname, len(data), compress, modified)
        try:
            with self._zip.open(info, mode="w") as dest:
                dest.write(data)
        except (zlib.error, zipfile.LargeZipFile, ValueError) as exc:
            raise ArchiveError(
                "archive_encoder_failure", f"Failed to encode {arcname}: {exc}", filename=arcname
            ) from exc

    def add_stream(
        self,
        arcname: str,
        stream: BinaryIO,
        *,
        size: int,
        compress: bool = True,
        modified: datetime | None = None,
        chunk_size: int = 1024 * 1024,
        source_name: str | None = None,
    ) -> None:
        """Copy an entry from ``stream`` in ``chunk_size`` reads.

        Raises:
            ArchiveError: ``archive_read_failure`` when the stream cannot be read.
        """
        info = self._entry_info(arcname, size, compress, modified)
        try:
            with self._zip.open(info, mode="w") as dest:
                while True:
                    try:
                        chunk = stream.read(chunk_size)
                    except OSError as exc:
                        raise ArchiveError(
                            "archive_read_failure",
                            f"Failed to read {source_name or arcname}: {exc}",
                            filename=source_name or arcname,
                        ) from exc
                    if not chunk:
                        break
                    dest.write(chunk)
        except (zlib.error, zipfile.LargeZipFile, ValueError) as exc:
            raise ArchiveError(
                "archive_encoder_failure", f"Failed to encode {arcname}: {exc}", filename=arcname
            ) from exc

    def finalize(self) -> None:
        """Write the central directory and close the archive."""
        self._require_collecting()
        self._state = ArchiveState.FINALIZING
        try:
            self._zip.close()
        except (OSError, ValueError) as exc:
            self._state = ArchiveState.FAILED
            raise ArchiveError(
                "archive_encoder_failure", f"Failed to finalize archive: {exc}"
            ) from exc
        self._state = ArchiveState.COMPLETE

    def abort(self) -> None:
        """Release the writer after a failure; the output must be discarded."""
        if self._state in (ArchiveState.COMPLETE, ArchiveState.FAILED):
            return
        self._state = ArchiveState.FAILED
        try:
            self._zip.close()
        except (OSError, ValueError) as exc:
            LOGGER.debug("Ignoring error while closing aborted archive: %s", exc)

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _require_collecting(self) -> None:
        if self._state is not ArchiveState.COLLECTING:
            raise ArchiveError(
                "invalid_state", f"Archive is {self._state.value}; no further changes allowed."
            )

    def _entry_info(
        self, arcname: str, size: int, compress: bool, modified: datetime | None
    ) -> zipfile.ZipInfo:
        self._require_collecting()
        if arcname in self._names:
            raise ArchiveError(
                "duplicate_entry", f"Duplicate archive entry: {arcname}", filename=arcname
            )
        self._names.add(arcname)

        info = zipfile.ZipInfo(arcname, date_time=_zip_timestamp(modified or datetime.now()))
        info.file_size = size
        info.external_attr = _FILE_ATTRIBUTES
        if compress and self._compression_level > 0:
            info.compress_type = zipfile.ZIP_DEFLATED
            # ZipFile.open() reads the per-entry deflate level from here.
            setattr(info, _LEVEL_ATTRIBUTE, self._compression_level)
        else:
            info.compress_type = zipfile.ZIP_STORED
        return info


def create_archive(
    files: Sequence[SourceFile],
    rename_results: Mapping[str, RenameResult],
    options: ArchiveOptions | None = None,
    *,
    destination: Destination = None,
    created_at: datetime | None = None,
    on_progress: ProgressCallback | None = None,
) -> ArchiveResult:
    """Package renamed files into a single ZIP archive.

    Files without an entry in ``rename_results`` are skipped. Entries keep the
    order of ``files``; the optional manifest is written last.

    Args:
        files: Source files in processed order.
        rename_results: Batch results keyed by ``SourceFile.file_id``.
        options: Archive options; defaults apply when omitted.
        destination: Path or binary stream to write to; in memory when None.
        created_at: Archive creation time (now when omitted).
        on_progress: Optional callback receiving (current, total, filename).

    Returns:
        ArchiveResult: Archive bytes (in-memory builds), size, and metadata.

    Raises:
        ArchiveError: When a source file cannot be read or encoding fails. No
            partial archive is returned; a partially written destination file
            is removed.
    """
    options = options or ArchiveOptions()
    created_at = created_at or datetime.now()
    entries = [
        (source, rename_results[source.file_id])
        for source in files
        if source.file_id in rename_results
    ]
    strategy = choose_strategy([source for source, _ in entries], options)

    owned_path: Optional[Path] = None
    if destination is None:
        output: BinaryIO = io.BytesIO()
    elif isinstance(destination, Path):
        destination.parent.mkdir(parents=True, exist_ok=True)
        owned_path = destination
        output = destination.open("wb")
    else:
        output = destination

    LOGGER.info("Building %s archive with %d entries", strategy, len(entries))
    try:
        assembler = ArchiveAssembler(output, compression_level=options.compression_level)
        with assembler:
            if strategy == "buffered":
                _write_buffered(assembler, entries, options, created_at, on_progress)
            else:
                _write_streaming(assembler, entries, options, created_at, on_progress)
            if options.include_manifest:
                assembler.add_bytes(
                    _entry_path(options.folder_prefix, MANIFEST_FILENAME),
                    build_manifest(entries, created_at).encode("utf-8"),
                    modified=created_at,
                )
    except ArchiveError:
        _discard(output, owned_path)
        raise
    except OSError as exc:
        _discard(output, owned_path)
        raise ArchiveError("archive_encoder_failure", f"Failed to write archive: {exc}") from exc

    archive_bytes: Optional[bytes] = None
    if isinstance(output, io.BytesIO):
        archive_bytes = output.getvalue()
        size = len(archive_bytes)
    else:
        size = output.tell()
    if owned_path is not None:
        output.close()

    return ArchiveResult(
        archive_bytes=archive_bytes,
        size_bytes=size,
        suggested_filename=suggest_archive_filename(options.folder_prefix, created_at),
        file_count=len(entries),
        strategy=strategy,
        path=owned_path,
    )


def choose_strategy(files: Sequence[SourceFile], options: ArchiveOptions) -> ArchiveStrategy:
    """Pick buffered assembly for small batches and streaming otherwise."""
    if options.strategy != "auto":
        return options.strategy
    total_size = sum(source.size for source in files)
    if (
        len(files) > options.streaming_file_threshold
        or total_size > options.streaming_size_threshold
    ):
        return "streaming"
    return "buffered"


def should_compress(filename: str) -> bool:
    """Return False for already-compressed media and container formats."""
    dot = filename.rfind(".")
    extension = filename[dot + 1 :].lower() if dot != -1 else ""
    return extension not in INCOMPRESSIBLE_EXTENSIONS


def build_manifest(
    entries: Sequence[Tuple[SourceFile, RenameResult]], generated_at: datetime
) -> str:
    """Render the plain-text rename log included with the archive."""
    lines = [
        "Photo Renaming Metadata",
        "======================",
        "",
        f"Generated: {generated_at:%Y-%m-%d %H:%M:%S}",
        f"Total Files: {len(entries)}",
        "",
        "File Renaming Log:",
        "-------------------",
        "",
    ]
    for index, (source, result) in enumerate(entries, start=1):
        lines.append(f"{index}. {source.name} → {result.filename}")
        for warning in result.warnings:
            lines.append(f"  Warning: {warning}")
        lines.append("")
    return "\n".join(lines)


def suggest_archive_filename(folder_name: str | None, created_at: datetime) -> str:
    """Return ``<folder>_<YYYY-MM-DD>_<HH-MM-SS>.zip``."""
    base = sanitize_filename(folder_name or "").strip("_") or DEFAULT_ARCHIVE_BASENAME
    return f"{base}_{created_at:%Y-%m-%d}_{created_at:%H-%M-%S}.zip"


def validate_archive_inputs(
    files: Sequence[SourceFile], rename_results: Mapping[str, RenameResult]
) -> List[str]:
    """Return problems that would make an archive inconsistent with its inputs."""
    errors: List[str] = []
    if not files:
        errors.append("No files to archive")
    if not rename_results:
        errors.append("No rename mapping provided")
    if len(files) != len(rename_results):
        errors.append("File count mismatch with rename mapping")

    seen: set[str] = set()
    duplicates = 0
    for result in rename_results.values():
        if result.filename in seen:
            duplicates += 1
        seen.add(result.filename)
    if duplicates:
        errors.append(f"{duplicates} duplicate filename(s) detected")
    return errors


def estimate_archive_size(files: Sequence[SourceFile]) -> int:
    """Rough archive size: stored entries keep their size, others halve."""
    estimated = 0.0
    for source in files:
        if should_compress(source.name):
            estimated += source.size * 0.5 * 1.02
        else:
            estimated += source.size * 1.02
    estimated += len(files) * 200
    return int(round(estimated))


def format_byte_size(size: int) -> str:
    """Format a byte count as ``12.34 MB``."""
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f} {units[unit]}"


def _write_buffered(
    assembler: ArchiveAssembler,
    entries: Sequence[Tuple[SourceFile, RenameResult]],
    options: ArchiveOptions,
    created_at: datetime,
    on_progress: ProgressCallback | None,
) -> None:
    payloads: List[bytes] = []
    for source, _ in entries:
        try:
            payloads.append(source.read_bytes())
        except OSError as exc:
            raise ArchiveError(
                "archive_read_failure", f"Failed to read {source.name}: {exc}", filename=source.name
            ) from exc

    total = len(entries)
    for index, ((source, result), data) in enumerate(zip(entries, payloads), start=1):
        assembler.add_bytes(
            _entry_path(options.folder_prefix, result.filename),
            data,
            compress=should_compress(source.name),
            modified=source.last_modified or created_at,
        )
        if on_progress is not None:
            on_progress(index, total, result.filename)


def _write_streaming(
    assembler: ArchiveAssembler,
    entries: Sequence[Tuple[SourceFile, RenameResult]],
    options: ArchiveOptions,
    created_at: datetime,
    on_progress: ProgressCallback | None,
) -> None:
    total = len(entries)
    for index, (source, result) in enumerate(entries, start=1):
        try:
            stream = source.open()
        except OSError as exc:
            raise ArchiveError(
                "archive_read_failure", f"Failed to read {source.name}: {exc}", filename=source.name
            ) from exc
        with stream:
            assembler.add_stream(
                _entry_path(options.folder_prefix, result.filename),
                stream,
                size=source.size,
                compress=should_compress(source.name),
                modified=source.last_modified or created_at,
                chunk_size=options.chunk_size,
                source_name=source.name,
            )
        if on_progress is not None:
            on_progress(index, total, result.filename)


def _entry_path(folder_prefix: str, filename: str) -> str:
    prefix = folder_prefix.strip("/")
    return f"{prefix}/{filename}" if prefix else filename


def _zip_timestamp(moment: datetime) -> Tuple[int, int, int, int, int, int]:
    if moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    if moment < _EARLIEST_ZIP_TIME:
        moment = _EARLIEST_ZIP_TIME
    return (moment.year, moment.month, moment.day, moment.hour, moment.minute, moment.second)


def _discard(output: BinaryIO, owned_path: Optional[Path]) -> None:
    if owned_path is None:
        return
    output.close()
    try:
        owned_path.unlink()
    except FileNotFoundError:
        pass


__all__ = [
    "ArchiveAssembler",
    "build_manifest",
    "choose_strategy",
    "create_archive",
    "estimate_archive_size",
    "format_byte_size",
    "should_compress",
    "suggest_archive_filename",
    "validate_archive_inputs",
]
