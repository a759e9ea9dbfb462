"""Batch orchestration for template renames."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from photorenamer.ingestion.models import SourceFile
from photorenamer.metadata.models import MetadataRecord
from photorenamer.templates.parser import require_valid_template

from .models import (
    CONFLICT_WARNING,
    PreviewEntry,
    RenameIssue,
    RenameOptions,
    RenameResult,
    classify_warning,
)
from .resolver import generate_filename
from .sanitize import split_filename

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
MetadataMap = Mapping[str, Optional[MetadataRecord]]


class BatchRenamer:
    """Apply a template across an ordered batch with unique output names."""

    def rename(
        self,
        files: Sequence[SourceFile],
        template: str,
        metadata: MetadataMap | None = None,
        options: RenameOptions | None = None,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> Dict[str, RenameResult]:
        """Compute a rename result for every file, keyed by ``file_id``.

        Counters are ``start_counter + index`` so they depend only on the
        position in ``files``, never on when metadata became available.

        Args:
            files: Files in the order counters should be assigned.
            template: Template applied to each file.
            metadata: Records keyed by ``file_id`` or by file name.
            options: Batch options; ``counter`` is overridden per file.
            on_progress: Optional callback receiving (current, total, filename).

        Returns:
            Dict[str, RenameResult]: One entry per input, in input order.

        Raises:
            InvalidTemplateError: If the template is empty.
        """
        require_valid_template(template)
        options = options or RenameOptions()
        metadata = metadata or {}

        results: Dict[str, RenameResult] = {}
        used: set[str] = set()
        total = len(files)

        for index, source in enumerate(files):
            if source.file_id in results:
                raise ValueError(f"Duplicate file id in batch: {source.file_id}")

            record = self._lookup(metadata, source)
            per_file = options.model_copy(update={"counter": options.start_counter + index})
            result = generate_filename(template, record, source.name, per_file)

            if result.filename in used:
                result = self._resolve_conflict(result, used)
                LOGGER.debug("Resolved name conflict for %s -> %s", source.name, result.filename)

            used.add(result.filename)
            results[source.file_id] = result

            if on_progress is not None:
                on_progress(index + 1, total, result.filename)

        return results

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _lookup(self, metadata: MetadataMap, source: SourceFile) -> Optional[MetadataRecord]:
        if source.file_id in metadata:
            return metadata[source.file_id]
        return metadata.get(source.name)

    def _resolve_conflict(self, result: RenameResult, used: set[str]) -> RenameResult:
        name, ext = split_filename(result.filename)
        counter = 1
        while True:
            candidate = f"{name}_{counter}.{ext}" if ext else f"{name}_{counter}"
            if candidate not in used:
                break
            counter += 1

        return result.model_copy(
            update={"filename": candidate, "warnings": [*result.warnings, CONFLICT_WARNING]}
        )


def batch_rename(
    files: Sequence[SourceFile],
    template: str,
    metadata: MetadataMap | None = None,
    options: RenameOptions | None = None,
    *,
    on_progress: ProgressCallback | None = None,
) -> Dict[str, RenameResult]:
    """Module-level shortcut for :meth:`BatchRenamer.rename`."""
    return BatchRenamer().rename(files, template, metadata, options, on_progress=on_progress)


def preview_rename(
    files: Sequence[SourceFile],
    template: str,
    metadata: MetadataMap | None = None,
    options: RenameOptions | None = None,
) -> List[PreviewEntry]:
    """Return original/renamed pairs in input order without touching any file."""
    results = batch_rename(files, template, metadata, options)
    return [
        PreviewEntry(
            original=source.name,
            renamed=results[source.file_id].filename,
            warnings=list(results[source.file_id].warnings),
        )
        for source in files
    ]


def collect_issues(
    files: Iterable[SourceFile], results: Mapping[str, RenameResult]
) -> List[RenameIssue]:
    """Flatten per-file warnings and errors into structured issues."""
    issues: List[RenameIssue] = []
    for source in files:
        result = results.get(source.file_id)
        if result is None:
            continue
        for warning in result.warnings:
            issues.append(
                RenameIssue(kind=classify_warning(warning), message=warning, filename=source.name)
            )
        if not result.success:
            issues.append(
                RenameIssue(
                    kind="internal_error",
                    message=result.error or "Unknown rename failure",
                    filename=source.name,
                )
            )
    return issues


def fill_missing_dates(
    files: Iterable[SourceFile], metadata: MetadataMap
) -> Dict[str, Optional[MetadataRecord]]:
    """Use each file's modification time where no capture date was extracted.

    Returns a new mapping keyed by ``file_id``; records that already carry a
    ``date_taken`` are passed through unchanged.
    """
    filled: Dict[str, Optional[MetadataRecord]] = {}
    for source in files:
        record = metadata.get(source.file_id)
        if source.last_modified is None or (record is not None and record.date_taken):
            filled[source.file_id] = record
            continue
        modified = source.last_modified
        if modified.tzinfo is not None:
            modified = modified.astimezone().replace(tzinfo=None)
        if record is None:
            filled[source.file_id] = MetadataRecord(date_taken=modified)
        else:
            filled[source.file_id] = record.model_copy(update={"date_taken": modified})
    return filled


__all__ = [
    "BatchRenamer",
    "batch_rename",
    "collect_issues",
    "fill_missing_dates",
    "preview_rename",
]
