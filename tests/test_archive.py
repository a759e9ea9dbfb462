"""Tests for ZIP archive assembly."""

import io
import os
import zipfile
import zlib
from datetime import datetime
from pathlib import Path

import pytest

from photorenamer.archive import (
    MANIFEST_FILENAME,
    ArchiveAssembler,
    ArchiveError,
    ArchiveOptions,
    ArchiveState,
    build_manifest,
    choose_strategy,
    create_archive,
    estimate_archive_size,
    format_byte_size,
    suggest_archive_filename,
    validate_archive_inputs,
)
from photorenamer.ingestion import SourceFile
from photorenamer.rename import RenameResult, batch_rename

CREATED = datetime(2025, 10, 11, 14, 25, 30)
MODIFIED = datetime(2024, 1, 2, 3, 4, 6)


def _batch() -> tuple[list[SourceFile], dict[str, RenameResult]]:
    files = [
        SourceFile.from_bytes("IMG_1.JPG", os.urandom(4096), last_modified=MODIFIED),
        SourceFile.from_bytes("notes.txt", b"hello world\n" * 400, last_modified=MODIFIED),
        SourceFile.from_bytes("IMG_2.png", b"\x89PNG" + b"\x00" * 100),
    ]
    return files, batch_rename(files, "trip_{counter}")


def _open(result_bytes: bytes | None) -> zipfile.ZipFile:
    assert result_bytes is not None
    return zipfile.ZipFile(io.BytesIO(result_bytes))


def test_create_archive_round_trips_content() -> None:
    files, results = _batch()

    archive = create_archive(files, results, created_at=CREATED)

    assert archive.file_count == 3
    assert archive.strategy == "buffered"
    assert archive.size_bytes == len(archive.archive_bytes or b"")
    with _open(archive.archive_bytes) as zf:
        assert zf.namelist() == ["trip_001.jpg", "trip_002.txt", "trip_003.png"]
        for source in files:
            assert zf.read(results[source.file_id].filename) == source.read_bytes()
        assert zf.testzip() is None


def test_already_compressed_formats_are_stored() -> None:
    files, results = _batch()

    archive = create_archive(files, results, ArchiveOptions(compression_level=9))

    with _open(archive.archive_bytes) as zf:
        assert zf.getinfo("trip_001.jpg").compress_type == zipfile.ZIP_STORED
        assert zf.getinfo("trip_003.png").compress_type == zipfile.ZIP_STORED
        text = zf.getinfo("trip_002.txt")
        assert text.compress_type == zipfile.ZIP_DEFLATED
        assert text.compress_size < text.file_size


def test_level_zero_stores_everything() -> None:
    files, results = _batch()

    archive = create_archive(files, results, ArchiveOptions(compression_level=0))

    with _open(archive.archive_bytes) as zf:
        assert {info.compress_type for info in zf.infolist()} == {zipfile.ZIP_STORED}


def test_entry_times_prefer_last_modified() -> None:
    files, results = _batch()

    archive = create_archive(files, results, created_at=CREATED)

    with _open(archive.archive_bytes) as zf:
        assert zf.getinfo("trip_001.jpg").date_time == (2024, 1, 2, 3, 4, 6)
        assert zf.getinfo("trip_003.png").date_time == (2025, 10, 11, 14, 25, 30)


def test_folder_prefix_and_manifest() -> None:
    files, results = _batch()
    options = ArchiveOptions(folder_prefix="Trip", include_manifest=True)

    archive = create_archive(files, results, options, created_at=CREATED)

    assert archive.file_count == 3
    assert archive.suggested_filename == "Trip_2025-10-11_14-25-30.zip"
    with _open(archive.archive_bytes) as zf:
        names = zf.namelist()
        assert names[-1] == f"Trip/{MANIFEST_FILENAME}"
        assert all(name.startswith("Trip/") for name in names)
        manifest = zf.read(f"Trip/{MANIFEST_FILENAME}").decode("utf-8")
    assert "Total Files: 3" in manifest
    assert "1. IMG_1.JPG → trip_001.jpg" in manifest
    assert "3. IMG_2.png → trip_003.png" in manifest


def test_manifest_lists_warnings() -> None:
    source = SourceFile.from_bytes("a.jpg", b"x")
    result = RenameResult(filename="_001.jpg", warnings=["Camera model not available in EXIF data"])

    manifest = build_manifest([(source, result)], CREATED)

    assert manifest.splitlines()[:5] == [
        "Photo Renaming Metadata",
        "======================",
        "",
        "Generated: 2025-10-11 14:25:30",
        "Total Files: 1",
    ]
    assert "  Warning: Camera model not available in EXIF data" in manifest


def test_files_without_results_are_skipped() -> None:
    files, results = _batch()
    extra = SourceFile.from_bytes("orphan.jpg", b"zzz")

    archive = create_archive([*files, extra], results)

    assert archive.file_count == 3
    with _open(archive.archive_bytes) as zf:
        assert len(zf.namelist()) == 3


def test_buffered_and_streaming_outputs_match() -> None:
    files, results = _batch()

    buffered = create_archive(
        files,
        results,
        ArchiveOptions(strategy="buffered", include_manifest=True),
        created_at=CREATED,
    )
    streamed = create_archive(
        files,
        results,
        ArchiveOptions(strategy="streaming", include_manifest=True),
        created_at=CREATED,
    )

    assert buffered.strategy == "buffered"
    assert streamed.strategy == "streaming"
    assert buffered.archive_bytes == streamed.archive_bytes


def test_choose_strategy_thresholds() -> None:
    small = [SourceFile.from_bytes(f"{i}.jpg", b"x") for i in range(3)]
    many = [SourceFile.from_bytes(f"{i}.jpg", b"x") for i in range(11)]
    large = [SourceFile.from_bytes("big.jpg", b"x" * 11)]

    assert choose_strategy(small, ArchiveOptions()) == "buffered"
    assert choose_strategy(many, ArchiveOptions()) == "streaming"
    assert choose_strategy(large, ArchiveOptions(streaming_size_threshold=10)) == "streaming"
    assert choose_strategy(many, ArchiveOptions(strategy="buffered")) == "buffered"


def test_streaming_to_path_writes_file(tmp_path: Path) -> None:
    files, results = _batch()
    destination = tmp_path / "out" / "photos.zip"

    archive = create_archive(
        files, results, ArchiveOptions(strategy="streaming"), destination=destination
    )

    assert archive.path == destination
    assert archive.archive_bytes is None
    assert destination.stat().st_size == archive.size_bytes
    with zipfile.ZipFile(destination) as zf:
        assert len(zf.namelist()) == 3


def test_read_failure_raises_and_removes_partial_file(tmp_path: Path) -> None:
    present = tmp_path / "a.jpg"
    present.write_bytes(b"abc")
    vanished = tmp_path / "b.jpg"
    vanished.write_bytes(b"def")
    files = [SourceFile.from_path(present), SourceFile.from_path(vanished)]
    results = batch_rename(files, "{counter}")
    vanished.unlink()
    destination = tmp_path / "out.zip"

    with pytest.raises(ArchiveError) as excinfo:
        create_archive(
            files, results, ArchiveOptions(strategy="streaming"), destination=destination
        )

    assert excinfo.value.kind == "archive_read_failure"
    assert excinfo.value.filename == "b.jpg"
    assert not destination.exists()

    with pytest.raises(ArchiveError) as buffered:
        create_archive(files, results, ArchiveOptions(strategy="buffered"))
    assert buffered.value.to_payload()["kind"] == "archive_read_failure"


def test_assembler_state_machine() -> None:
    buffer = io.BytesIO()
    assembler = ArchiveAssembler(buffer)

    assert assembler.state is ArchiveState.COLLECTING
    assembler.add_bytes("a.txt", b"a")
    with pytest.raises(ArchiveError) as duplicate:
        assembler.add_bytes("a.txt", b"again")
    assert duplicate.value.kind == "duplicate_entry"

    assembler.finalize()
    assert assembler.state is ArchiveState.COMPLETE
    with pytest.raises(ArchiveError) as late:
        assembler.add_bytes("b.txt", b"b")
    assert late.value.kind == "invalid_state"
    with pytest.raises(ArchiveError):
        assembler.finalize()


@pytest.mark.parametrize("level", [1, 9])
def test_assembler_deflates_at_configured_level(level: int) -> None:
    data = "".join(f"frame {i} exposure {i * i % 997}\n" for i in range(3000)).encode()
    compressor = zlib.compressobj(level, zlib.DEFLATED, -15)
    expected = compressor.compress(data) + compressor.flush()

    buffer = io.BytesIO()
    with ArchiveAssembler(buffer, compression_level=level) as assembler:
        assembler.add_bytes("log.txt", data)

    with _open(buffer.getvalue()) as zf:
        info = zf.getinfo("log.txt")
        assert info.compress_type == zipfile.ZIP_DEFLATED
        assert info.compress_size == len(expected)
        assert zf.read("log.txt") == data


def test_assembler_aborts_on_error() -> None:
    assembler = ArchiveAssembler(io.BytesIO())

    with pytest.raises(RuntimeError):
        with assembler:
            assembler.add_bytes("a.txt", b"a")
            raise RuntimeError("boom")

    assert assembler.state is ArchiveState.FAILED


def test_validate_archive_inputs() -> None:
    files, results = _batch()

    assert validate_archive_inputs(files, results) == []
    assert validate_archive_inputs([], {}) == [
        "No files to archive",
        "No rename mapping provided",
    ]

    clashing = {key: RenameResult(filename="same.jpg") for key in results}
    assert validate_archive_inputs(files[:2], clashing) == [
        "File count mismatch with rename mapping",
        "2 duplicate filename(s) detected",
    ]


def test_size_helpers() -> None:
    files = [
        SourceFile.from_bytes("a.jpg", b"x" * 1000),
        SourceFile.from_bytes("b.txt", b"y" * 1000),
    ]

    assert estimate_archive_size(files) == 1020 + 510 + 400
    assert format_byte_size(512) == "512.00 B"
    assert format_byte_size(1536) == "1.50 KB"
    assert format_byte_size(5 * 1024 * 1024) == "5.00 MB"


def test_suggest_archive_filename_defaults() -> None:
    assert suggest_archive_filename("", CREATED) == "renamed-photos_2025-10-11_14-25-30.zip"
    assert suggest_archive_filename("My Trip", CREATED) == "My_Trip_2025-10-11_14-25-30.zip"
