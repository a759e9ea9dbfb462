"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from photorenamer.cli import cli
from photorenamer.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".photorenamer" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["config", "view"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "rename:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "archive.compression_level", "--value", "8"], env=env
    )

    assert result.exit_code == 0
    assert "Updated archive.compression_level" in result.output
    config = ConfigManager(config_path=_config_path(tmp_path), env={}).load()
    assert config.archive.compression_level == 8

    repeat = runner.invoke(
        cli, ["config", "set", "archive.compression_level", "--value", "8"], env=env
    )
    assert repeat.exit_code == 0
    assert "No changes applied" in repeat.output


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["config", "set", "archive.compression_level", "--value", "42"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code != 0
    assert "Invalid configuration values" in result.output


def test_config_edit_applies_changes(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    manager = ConfigManager(config_path=_config_path(tmp_path), env={})
    manager.ensure_exists()

    def _mock_edit(text: str, **_: Any) -> str:
        return text.replace("include_manifest: false", "include_manifest: true")

    monkeypatch.setattr("photorenamer.cli.click.edit", _mock_edit)

    result = runner.invoke(cli, ["config", "edit"], env=env)

    assert result.exit_code == 0
    assert "updated" in result.output.lower()
    assert manager.load().archive.include_manifest is True


def test_config_edit_rejects_invalid_yaml(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    monkeypatch.setattr("photorenamer.cli.click.edit", lambda text, **_: "rename: [oops")

    result = runner.invoke(cli, ["config", "edit"], env=env)

    assert result.exit_code != 0
    assert "Invalid YAML" in result.output
