"""CLI integration tests for `photorenamer rename`."""

from __future__ import annotations

import json
import os
import zipfile
from pathlib import Path

from click.testing import CliRunner
from PIL import ExifTags, Image

from photorenamer.cli import cli


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    """Return environment variables pointing HOME to a temp directory."""
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    return env


def _make_photo(path: Path, when: str, model: str = "X100V") -> None:
    exif = Image.Exif()
    exif[ExifTags.Base.DateTime] = when
    exif[ExifTags.Base.Model] = model
    Image.new("RGB", (40, 30), color="green").save(path, format="JPEG", exif=exif)


def _photo_dir(tmp_path: Path) -> Path:
    root = tmp_path / "photos"
    root.mkdir()
    _make_photo(root / "b.jpg", "2024:03:15 10:00:00")
    _make_photo(root / "a.jpg", "2024:03:15 09:00:00")
    (root / "notes.txt").write_text("not a photo", encoding="utf-8")
    return root


def test_rename_writes_archive(tmp_path: Path) -> None:
    root = _photo_dir(tmp_path)
    output = tmp_path / "out"

    result = CliRunner().invoke(
        cli,
        [
            "rename",
            str(root),
            "--template",
            "{date}_{model}_{counter}",
            "--output",
            str(output),
            "--folder",
            "Trip",
            "--manifest",
            "--json",
        ],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["counts"]["renamed"] == 2
    assert payload["counts"]["rejected"] == 1
    assert [entry["renamed"] for entry in payload["files"]] == [
        "20240315_X100V_001.jpg",
        "20240315_X100V_002.jpg",
    ]
    assert payload["rejected"][0]["file"] == "notes.txt"

    archive_path = Path(payload["archive"]["path"])
    assert archive_path.parent == output.resolve()
    assert archive_path.name.startswith("Trip_")
    with zipfile.ZipFile(archive_path) as zf:
        assert zf.namelist() == [
            "Trip/20240315_X100V_001.jpg",
            "Trip/20240315_X100V_002.jpg",
            "Trip/metadata.txt",
        ]
        assert zf.read("Trip/20240315_X100V_001.jpg") == (root / "a.jpg").read_bytes()
    assert sorted(p.name for p in root.iterdir()) == ["a.jpg", "b.jpg", "notes.txt"]


def test_rename_dry_run_does_not_write(tmp_path: Path) -> None:
    root = _photo_dir(tmp_path)
    output = tmp_path / "out"

    result = CliRunner().invoke(
        cli,
        [
            "rename",
            str(root),
            "--preset",
            "Custom + Counter",
            "--custom",
            "Beach",
            "--start",
            "10",
            "--output",
            str(output),
            "--dry-run",
            "--json",
        ],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["context"]["template"] == "{custom}_{counter:4}"
    assert [entry["renamed"] for entry in payload["files"]] == ["Beach_0010.jpg", "Beach_0011.jpg"]
    assert payload["archive"]["suggested_filename"].startswith("renamed-photos_")
    assert not output.exists()


def test_rename_reports_missing_metadata_warnings(tmp_path: Path) -> None:
    root = _photo_dir(tmp_path)

    result = CliRunner().invoke(
        cli,
        ["rename", str(root), "--template", "{lens}_{counter}", "--dry-run", "--json"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["files"][0]["renamed"] == "_001.jpg"
    assert payload["files"][0]["warnings"] == ["Lens model not available in EXIF data"]
    assert {issue["kind"] for issue in payload["issues"]} == {"missing_data"}


def test_rename_strips_unknown_tokens_with_warnings(tmp_path: Path) -> None:
    root = _photo_dir(tmp_path)
    env = _env_with_home(tmp_path)
    args = ["rename", str(root), "--template", "{nope}_{counter}", "--dry-run"]

    plain = CliRunner().invoke(cli, args, env=env)
    assert plain.exit_code == 0, plain.output
    assert "Template warning: Invalid token: {nope}" in plain.output

    structured = CliRunner().invoke(cli, [*args, "--json"], env=env)
    assert structured.exit_code == 0, structured.output
    payload = json.loads(structured.output)
    assert payload["context"]["template_warnings"] == ["Invalid token: {nope}"]
    assert [entry["renamed"] for entry in payload["files"]] == ["_001.jpg", "_002.jpg"]
    for entry in payload["files"]:
        assert entry["warnings"] == ["Unresolved tokens: {nope}"]
    assert {issue["kind"] for issue in payload["issues"]} == {"unresolved_token"}


def test_rename_rejects_blank_template(tmp_path: Path) -> None:
    root = _photo_dir(tmp_path)
    env = _env_with_home(tmp_path)

    plain = CliRunner().invoke(cli, ["rename", str(root), "--template", "   "], env=env)
    assert plain.exit_code == 1
    assert "Template cannot be empty" in plain.output

    structured = CliRunner().invoke(
        cli, ["rename", str(root), "--template", "   ", "--json"], env=env
    )
    assert structured.exit_code == 1
    assert json.loads(structured.output)["error"]["code"] == "invalid_template"


def test_rename_rejects_conflicting_flags(tmp_path: Path) -> None:
    root = _photo_dir(tmp_path)
    env = _env_with_home(tmp_path)

    both = CliRunner().invoke(
        cli,
        ["rename", str(root), "--template", "{date}", "--preset", "Camera + Date"],
        env=env,
    )
    assert both.exit_code == 1

    modes = CliRunner().invoke(cli, ["rename", str(root), "--quiet", "--summary"], env=env)
    assert modes.exit_code == 1
    assert "cannot both be enabled" in modes.output


def test_rename_quiet_suppresses_output(tmp_path: Path) -> None:
    root = _photo_dir(tmp_path)

    result = CliRunner().invoke(
        cli,
        ["rename", str(root), "--output", str(tmp_path / "out"), "--quiet"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    assert result.output.strip() == ""
    assert len(list((tmp_path / "out").glob("*.zip"))) == 1


def test_rename_empty_directory(tmp_path: Path) -> None:
    root = tmp_path / "empty"
    root.mkdir()

    result = CliRunner().invoke(
        cli, ["rename", str(root), "--output", str(tmp_path / "out")], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 0
    assert "nothing to archive" in result.output
    assert not (tmp_path / "out").exists()
