"""Tests for discovery, file descriptors, and signature pre-checks."""

import io
from pathlib import Path

import pytest
from PIL import Image

from photorenamer.ingestion import DirectoryScanner, SourceFile, TypeDetector


def _png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4)).save(buffer, format="PNG")
    return buffer.getvalue()


def _jpeg_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4)).save(buffer, format="JPEG")
    return buffer.getvalue()


def test_directory_scanner_filters_and_orders(tmp_path: Path) -> None:
    (tmp_path / "b.jpg").write_bytes(b"b")
    (tmp_path / "a.jpg").write_bytes(b"a")
    (tmp_path / ".hidden.jpg").write_bytes(b"h")
    (tmp_path / "big.jpg").write_bytes(b"x" * 2048)
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "c.jpg").write_bytes(b"c")

    flat = DirectoryScanner(
        recursive=False, include_hidden=False, follow_symlinks=False, max_size_bytes=1024
    )
    assert [item.name for item in flat.scan(tmp_path)] == ["a.jpg", "b.jpg"]

    deep = DirectoryScanner(
        recursive=True, include_hidden=True, follow_symlinks=False, max_size_bytes=None
    )
    names = [item.name for item in deep.scan(tmp_path)]
    assert names == [".hidden.jpg", "a.jpg", "b.jpg", "big.jpg", "c.jpg"]


def test_source_file_from_path(tmp_path: Path) -> None:
    path = tmp_path / "Photo.JPEG"
    path.write_bytes(b"12345")

    source = SourceFile.from_path(path)

    assert source.size == 5
    assert source.extension == "jpeg"
    assert source.last_modified is not None
    assert source.read_bytes() == b"12345"
    with source.open() as handle:
        assert handle.read(2) == b"12"


def test_source_file_requires_backing() -> None:
    with pytest.raises(ValueError):
        SourceFile(name="ghost.jpg")

    first = SourceFile.from_bytes("a.jpg", b"x")
    second = SourceFile.from_bytes("a.jpg", b"x")
    assert first.file_id != second.file_id


def test_type_detector_recognizes_signatures() -> None:
    detector = TypeDetector()

    assert detector.detect(_jpeg_bytes()[:16]) == ("image/jpeg", "image")
    assert detector.detect(_png_bytes()[:16]) == ("image/png", "image")
    assert detector.detect(b"GIF89a\x00\x00") == ("image/gif", "image")
    assert detector.detect(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == ("image/webp", "image")
    assert detector.detect(b"\x00\x00\x00\x18ftypheic\x00\x00") == ("image/heic", "image")
    assert detector.detect(b"hello world")[1] == "unknown"


def test_validate_accepts_matching_image() -> None:
    result = TypeDetector().validate(SourceFile.from_bytes("shot.jpg", _jpeg_bytes()))

    assert result.valid
    assert result.mime_type == "image/jpeg"
    assert result.errors == []


def test_validate_rejects_mislabeled_file_in_strict_mode() -> None:
    source = SourceFile.from_bytes("shot.jpg", _png_bytes())
    detector = TypeDetector()

    strict = detector.validate(source)
    lenient = detector.validate(source, strict=False)

    assert not strict.valid
    assert lenient.valid
    assert lenient.warnings


def test_validate_rejects_non_images_and_bad_sizes() -> None:
    detector = TypeDetector()

    text = detector.validate(SourceFile.from_bytes("notes.txt", b"plain text"))
    assert not text.valid
    assert "Unsupported file type: notes.txt" in text.errors

    empty = detector.validate(SourceFile.from_bytes("empty.jpg", b""))
    assert empty.errors == ["File is empty (0 bytes)"]

    large = detector.validate(SourceFile.from_bytes("big.jpg", _jpeg_bytes()), max_size=10)
    assert not large.valid
    assert large.errors[0].startswith("File is too large")
