"""Command line interface for photorenamer."""

from __future__ import annotations

import difflib
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List, Tuple

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from photorenamer.archive import (
    ArchiveError,
    ArchiveOptions,
    create_archive,
    estimate_archive_size,
    format_byte_size,
    suggest_archive_filename,
    validate_archive_inputs,
)
from photorenamer.config import ConfigError, ConfigManager, RenamerConfig
from photorenamer.ingestion import DirectoryScanner, SourceFile, TypeDetector
from photorenamer.metadata import GPSData, MetadataRecord, batch_extract
from photorenamer.rename import (
    RenameOptions,
    batch_rename,
    collect_issues,
    fill_missing_dates,
    generate_filename,
)
from photorenamer.templates import (
    TEMPLATE_PRESETS,
    TEMPLATE_TOKENS,
    TOKEN_CATEGORIES,
    InvalidTemplateError,
    require_valid_template,
    resolve_preset,
    validate_template,
)

console = Console()
LOGGER = logging.getLogger(__name__)

_SAMPLE_METADATA = MetadataRecord(
    date_taken=datetime(2024, 6, 15, 14, 30, 45),
    make="Canon",
    model="EOS R5",
    lens_model="RF24-70mm F2.8 L IS USM",
    iso=400,
    f_number=2.8,
    exposure_time=1 / 250,
    focal_length=50,
    width=8192,
    height=5464,
    gps=GPSData(lat=40.712776, lng=-74.005974),
)
_SAMPLE_FILENAME = "IMG_1234.JPG"


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Print output unless quiet or summary-only mode filters it.

    Args:
        message: Renderable or string to emit.
        mode: One of ``detail``, ``summary``, ``warning``, or ``error``.
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return
    if summary_only and mode not in {"summary", "warning", "error"}:
        return
    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return the one-line summary printed at the end of a command."""
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _configure_logging(level: str, *, verbose: bool) -> None:
    """Attach a rich handler to the package logger at the configured level."""
    resolved = logging.DEBUG if verbose else logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.WARNING

    package_logger = logging.getLogger("photorenamer")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)

    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setLevel(resolved)
    package_logger.addHandler(handler)
    package_logger.setLevel(resolved)


def _resolve_output_modes(
    ctx: click.Context,
    config: RenamerConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> Tuple[bool, bool]:
    """Combine explicit flags with configured CLI defaults.

    Raises:
        click.ClickException: If the requested modes are incompatible.
    """
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _precheck(
    files: List[SourceFile], config: RenamerConfig
) -> Tuple[List[SourceFile], List[dict[str, Any]]]:
    """Split scanned files into accepted images and rejected entries."""
    detector = TypeDetector()
    max_size = config.processing.max_file_size_mb * 1024 * 1024
    accepted: List[SourceFile] = []
    rejected: List[dict[str, Any]] = []
    for source in files:
        verdict = detector.validate(
            source,
            min_size=config.processing.min_file_size_bytes,
            max_size=max_size,
            strict=config.processing.strict_type_check,
        )
        if verdict.valid:
            accepted.append(source)
            for warning in verdict.warnings:
                LOGGER.info("%s: %s", source.name, warning)
        else:
            LOGGER.info("Rejected %s: %s", source.name, "; ".join(verdict.errors))
            rejected.append({"file": source.name, "errors": list(verdict.errors)})
    return accepted, rejected


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="photorenamer")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Rename photos from filename templates and package them as a ZIP archive."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("-t", "--template", type=str, help="Filename template, e.g. '{date}_{counter}'.")
@click.option(
    "-p",
    "--preset",
    type=click.Choice(sorted(TEMPLATE_PRESETS)),
    help="Use a named template preset instead of --template.",
)
@click.option("--custom", type=str, help="Text substituted for the {custom} token.")
@click.option("--start", type=int, help="First counter value.")
@click.option("--padding", type=click.IntRange(0, 12), help="Zero-padding width for {counter}.")
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=str),
    help="Directory that receives the archive (defaults to the current directory).",
)
@click.option("--folder", type=str, help="Folder name inside the archive.")
@click.option(
    "--manifest/--no-manifest",
    default=None,
    help="Include a metadata.txt rename log in the archive.",
)
@click.option("--compression", type=click.IntRange(0, 9), help="Deflate level (0-9).")
@click.option("-r", "--recursive", is_flag=True, help="Include all subdirectories.")
@click.option("--dry-run", is_flag=True, help="Preview names without writing an archive.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the batch.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def rename(
    ctx: click.Context,
    path: str,
    template: str | None,
    preset: str | None,
    custom: str | None,
    start: int | None,
    padding: int | None,
    output: str | None,
    folder: str | None,
    manifest: bool | None,
    compression: int | None,
    recursive: bool,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Rename the images under PATH and write them to a ZIP archive.

    Files are discovered, checked by signature, and their EXIF metadata is
    read before the template is applied. Originals are never modified.

    Raises:
        click.ClickException: If configuration, the template, or archiving fails.
    """

    json_enabled = json_output
    try:
        if template and preset:
            raise click.ClickException("--template and --preset cannot be combined.")

        overrides: dict[str, Any] = {}
        for key, value in (
            ("rename.template", TEMPLATE_PRESETS[preset] if preset else template),
            ("rename.custom_text", custom),
            ("rename.start_counter", start),
            ("rename.counter_padding", padding),
            ("archive.folder_name", folder),
            ("archive.include_manifest", manifest),
            ("archive.compression_level", compression),
            ("processing.recurse_directories", True if recursive else None),
        ):
            if value is not None:
                overrides[key] = value

        manager = ConfigManager()
        config = manager.load(cli_overrides=overrides)
        verbose = bool((ctx.find_root().obj or {}).get("verbose"))
        _configure_logging(config.logging.level, verbose=verbose)

        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )

        active_template = require_valid_template(resolve_preset(config.rename.template))
        validation = validate_template(active_template)
        # Unknown tokens are stripped per file and reported on each result.
        template_warnings = [*validation.errors, *validation.warnings]

        source_root = Path(path).expanduser().resolve()
        scanner = DirectoryScanner(
            recursive=config.processing.recurse_directories,
            include_hidden=config.processing.process_hidden_files,
            follow_symlinks=config.processing.follow_symlinks,
            max_size_bytes=config.processing.max_file_size_mb * 1024 * 1024,
        )
        scanned = list(scanner.scan(source_root))
        files, rejected = _precheck(scanned, config)

        metadata = batch_extract(files, max_workers=config.processing.metadata_workers)
        fallback_date: datetime | None = None
        if config.rename.fallback_date == "modified":
            metadata = fill_missing_dates(files, metadata)
        else:
            fallback_date = datetime.now()

        options = RenameOptions(
            counter_padding=config.rename.counter_padding,
            start_counter=config.rename.start_counter,
            custom_text=config.rename.custom_text,
            fallback_date=fallback_date,
            preserve_extension=config.rename.preserve_extension,
        )
        results = batch_rename(files, active_template, metadata, options)
        issues = collect_issues(files, results)

        file_entries: list[dict[str, Any]] = []
        table_rows: list[tuple[str, str, str]] = []
        for source in files:
            result = results[source.file_id]
            relative = source.path.relative_to(source_root) if source.path else Path(source.name)
            file_entries.append(
                {
                    "original": relative.as_posix(),
                    "renamed": result.filename,
                    "success": result.success,
                    "warnings": list(result.warnings),
                    "error": result.error,
                }
            )
            table_rows.append((relative.as_posix(), result.filename, "\n".join(result.warnings)))

        counts = {
            "scanned": len(scanned),
            "renamed": len(files),
            "rejected": len(rejected),
            "warnings": sum(1 for issue in issues if issue.kind != "internal_error"),
            "conflicts": sum(1 for issue in issues if issue.kind == "filename_conflict"),
            "errors": sum(1 for issue in issues if issue.kind == "internal_error"),
        }
        json_payload: dict[str, Any] = {
            "context": {
                "source_root": source_root.as_posix(),
                "template": active_template,
                "template_warnings": template_warnings,
                "dry_run": dry_run,
            },
            "counts": counts,
            "files": file_entries,
            "issues": [issue.model_dump(mode="json") for issue in issues],
            "rejected": rejected,
            "archive": None,
        }

        if not json_output:
            table = Table(title=f"Rename preview for {source_root}")
            table.add_column("Original", overflow="fold")
            table.add_column("Renamed", overflow="fold")
            table.add_column("Warnings", overflow="fold")
            for row in table_rows:
                table.add_row(*row)
            _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)
            for warning in template_warnings:
                _emit_message(
                    f"[yellow]Template warning: {warning}[/yellow]",
                    mode="warning",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
            if rejected:
                _emit_message(
                    f"[yellow]{len(rejected)} file(s) skipped by the pre-check.[/yellow]",
                    mode="warning",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )

        if not files:
            if json_output:
                console.print_json(data=json_payload)
            else:
                _emit_message(
                    "[yellow]No supported images found; nothing to archive.[/yellow]",
                    mode="warning",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
            return

        if dry_run:
            if json_output:
                json_payload["archive"] = {
                    "suggested_filename": suggest_archive_filename(
                        config.archive.folder_name, datetime.now()
                    ),
                    "estimated_size_bytes": estimate_archive_size(files),
                }
                console.print_json(data=json_payload)
                return
            _emit_message(
                f"[cyan]Estimated archive size: "
                f"{format_byte_size(estimate_archive_size(files))}.[/cyan]",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            _emit_message(
                _format_summary_line("Rename", source_root, {"dry_run": True, **counts}),
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            return

        problems = validate_archive_inputs(files, results)
        if problems:
            raise click.ClickException("; ".join(problems))

        created_at = datetime.now()
        archive_options = ArchiveOptions(
            compression_level=config.archive.compression_level,
            include_manifest=config.archive.include_manifest,
            folder_prefix=config.archive.folder_name,
            streaming_file_threshold=config.archive.streaming_file_threshold,
            streaming_size_threshold=config.archive.streaming_size_threshold_mb * 1024 * 1024,
        )
        output_dir = Path(output).expanduser().resolve() if output else Path.cwd()
        destination = output_dir / suggest_archive_filename(
            config.archive.folder_name, created_at
        )
        archive = create_archive(
            files,
            results,
            archive_options,
            destination=destination,
            created_at=created_at,
            on_progress=lambda current, total, name: LOGGER.debug(
                "Archived %d/%d: %s", current, total, name
            ),
        )
        json_payload["archive"] = {
            "path": destination.as_posix(),
            "size_bytes": archive.size_bytes,
            "file_count": archive.file_count,
            "strategy": archive.strategy,
        }

        if json_output:
            console.print_json(data=json_payload)
            return

        _emit_message(
            f"[green]Wrote {archive.file_count} file(s) to {destination} "
            f"({format_byte_size(archive.size_bytes)}).[/green]",
            mode="detail",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
        _emit_message(
            _format_summary_line("Rename", source_root, counts),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except InvalidTemplateError as exc:
        _handle_cli_error(
            f"Invalid template: {exc}",
            code="invalid_template",
            json_output=json_enabled,
            original=exc,
        )
    except ArchiveError as exc:
        _handle_cli_error(
            exc.message,
            code=exc.kind,
            json_output=json_enabled,
            details=exc.to_payload(),
            original=exc,
        )
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while renaming files: {exc}",
            code="internal_error",
            json_output=json_enabled,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit the catalogue as JSON.")
def tokens(json_output: bool) -> None:
    """List the template tokens grouped by category."""
    if json_output:
        console.print_json(
            data={
                category: {f"{{{name}}}": TEMPLATE_TOKENS[f"{{{name}}}"] for name in names}
                for category, names in TOKEN_CATEGORIES.items()
            }
        )
        return

    table = Table(title="Template tokens")
    table.add_column("Category")
    table.add_column("Token")
    table.add_column("Description", overflow="fold")
    for category, names in TOKEN_CATEGORIES.items():
        for name in names:
            table.add_row(category, f"{{{name}}}", TEMPLATE_TOKENS[f"{{{name}}}"])
    console.print(table)


@cli.command()
def presets() -> None:
    """List the built-in template presets with a sample filename."""
    table = Table(title="Template presets")
    table.add_column("Name")
    table.add_column("Template")
    table.add_column("Example", overflow="fold")
    for name, preset_template in TEMPLATE_PRESETS.items():
        example = generate_filename(
            preset_template,
            _SAMPLE_METADATA,
            _SAMPLE_FILENAME,
            RenameOptions(custom_text="vacation"),
        )
        table.add_row(name, preset_template, example.filename)
    console.print(table)


@cli.command()
@click.argument("template")
@click.option("--json", "json_output", is_flag=True, help="Emit the validation result as JSON.")
def validate(template: str, json_output: bool) -> None:
    """Check TEMPLATE and show the filename it produces for a sample photo.

    Raises:
        SystemExit: With status 1 when the template is invalid.
    """
    resolved = resolve_preset(template)
    validation = validate_template(resolved)
    example = None
    if validation.is_valid:
        example = generate_filename(
            resolved, _SAMPLE_METADATA, _SAMPLE_FILENAME, RenameOptions(custom_text="custom")
        ).filename

    if json_output:
        console.print_json(
            data={
                "template": resolved,
                "valid": validation.is_valid,
                "errors": list(validation.errors),
                "warnings": list(validation.warnings),
                "example": example,
            }
        )
    else:
        for error in validation.errors:
            console.print(f"[red]{error}[/red]")
        for warning in validation.warnings:
            console.print(f"[yellow]{warning}[/yellow]")
        if example is not None:
            console.print(f"[green]Valid template.[/green] Example: {example}")

    if not validation.is_valid:
        raise SystemExit(1)


@cli.group()
def config() -> None:
    """Manage photorenamer configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a value for a dotted KEY such as ``archive.compression_level``.

    Raises:
        click.ClickException: If the value cannot be parsed or is invalid.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        before = manager.load_file_overrides()
        old_text = manager.read_text()
        manager.set_value(key, yaml.safe_load(value))
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if manager.load_file_overrides() == before:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    diff = difflib.unified_diff(
        old_text.splitlines(),
        manager.read_text().splitlines(),
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an editor and validate the result.

    Raises:
        click.ClickException: If the edited content is invalid.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        manager.replace(parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
