"""Resolve template tokens against per-file metadata.

Tokens are substituted in fixed passes (date, camera/settings, image, GPS,
counter, original name, custom text) on the working string, so text produced
by an earlier pass is seen by the later ones. Anything still bracketed after
the last pass is stripped and reported as unresolved. Missing metadata never
fails a file; it empties the token and adds one warning per token kind.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence

from photorenamer.metadata.models import GPSData, MetadataRecord
from photorenamer.templates.parser import TOKEN_PATTERN

from .models import UNRESOLVED_PREFIX, RenameOptions, RenameResult
from .sanitize import sanitize_filename, sanitize_token, split_filename

LOGGER = logging.getLogger(__name__)

_PADDED_COUNTER = re.compile(r"\{counter:(\d+)\}")

Formatter = Callable[[Any], Optional[str]]


@dataclass(frozen=True)
class FieldRule:
    """How one metadata-backed token is resolved.

    Attributes:
        token: Token name without braces.
        accessor: Reads the raw value from a metadata record.
        formatter: Renders the raw value; returning None marks it missing.
        warning: Warning recorded when the value is missing; None resolves
            silently to ``default``.
        default: Substitution used when the value is missing.
    """

    token: str
    accessor: Callable[[MetadataRecord], Any]
    formatter: Formatter
    warning: Optional[str]
    default: str = ""


def format_number(value: Any) -> str:
    """Render a number the way it reads in EXIF (``50``, ``2.8``)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_shutter_speed(value: Any) -> Optional[str]:
    """Render an exposure time as ``2s`` or ``1/250s``; None when unusable."""
    try:
        speed = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(speed) or speed <= 0:
        return None
    if speed >= 1:
        return f"{format_number(speed)}s"
    denominator = math.floor(1 / speed + 0.5)
    return f"1/{denominator}s"


def _text(value: Any) -> Optional[str]:
    return sanitize_token(str(value))


def _gps_coordinates(gps: GPSData) -> str:
    return f"{gps.lat:.6f}_{gps.lng:.6f}"


def _dimensions(record: MetadataRecord) -> Optional[str]:
    if record.width is None or record.height is None:
        return None
    return f"{record.width}x{record.height}"


CAMERA_RULES: Sequence[FieldRule] = (
    FieldRule("make", lambda r: r.make, _text, "Camera make not available in EXIF data"),
    FieldRule("model", lambda r: r.model, _text, "Camera model not available in EXIF data"),
    FieldRule("lens", lambda r: r.lens_model, _text, "Lens model not available in EXIF data"),
    FieldRule(
        "iso", lambda r: r.iso, lambda v: f"ISO{format_number(v)}", "ISO not available in EXIF data"
    ),
    FieldRule(
        "aperture",
        lambda r: r.f_number,
        lambda v: f"f{format_number(v)}",
        "Aperture not available in EXIF data",
    ),
    FieldRule(
        "shutter",
        lambda r: r.exposure_time,
        format_shutter_speed,
        "Shutter speed not available in EXIF data",
    ),
    FieldRule(
        "focal",
        lambda r: r.focal_length,
        lambda v: f"{format_number(v)}mm",
        "Focal length not available in EXIF data",
    ),
)

IMAGE_RULES: Sequence[FieldRule] = (
    FieldRule("width", lambda r: r.width, format_number, "Image width not available"),
    FieldRule("height", lambda r: r.height, format_number, "Image height not available"),
    FieldRule("dimensions", _dimensions, str, "Image dimensions not available"),
    FieldRule("orientation", lambda r: r.orientation or None, format_number, None, default="1"),
)

GPS_RULES: Sequence[FieldRule] = (
    FieldRule(
        "lat",
        lambda r: r.gps.lat if r.gps else None,
        lambda v: f"{v:.6f}",
        "GPS latitude not available",
    ),
    FieldRule(
        "lng",
        lambda r: r.gps.lng if r.gps else None,
        lambda v: f"{v:.6f}",
        "GPS longitude not available",
    ),
    FieldRule("gps", lambda r: r.gps, _gps_coordinates, "GPS coordinates not available"),
)


def generate_filename(
    template: str,
    metadata: MetadataRecord | None,
    original_filename: str,
    options: RenameOptions | None = None,
) -> RenameResult:
    """Apply ``template`` to one file.

    Args:
        template: Template string containing ``{token}`` placeholders.
        metadata: Metadata for the file, or None when none was extracted.
        original_filename: Current file name, used for ``{original}``/``{ext}``.
        options: Batch options; defaults apply when omitted.

    Returns:
        RenameResult: Computed filename and any warnings. ``success`` is only
        False when resolution itself failed unexpectedly.
    """
    options = options or RenameOptions()
    warnings: List[str] = []
    try:
        filename = _resolve(template, metadata, original_filename, options, warnings)
    except Exception as exc:
        LOGGER.exception("Failed to apply template %r to %s", template, original_filename)
        return RenameResult(
            filename=original_filename,
            success=False,
            warnings=warnings,
            error=f"Template application failed: {exc}",
        )
    return RenameResult(filename=filename, success=True, warnings=warnings)


def _resolve(
    template: str,
    metadata: MetadataRecord | None,
    original_filename: str,
    options: RenameOptions,
    warnings: List[str],
) -> str:
    original_name, original_ext = split_filename(original_filename)

    date = (metadata.date_taken if metadata else None) or options.fallback_date or datetime.now()
    filename = replace_date_tokens(template, date)

    for rules in (CAMERA_RULES, IMAGE_RULES, GPS_RULES):
        filename = apply_field_rules(filename, metadata, rules, warnings)

    filename = replace_counter_tokens(filename, options.counter, options.counter_padding)

    filename = filename.replace("{original}", original_name)
    filename = filename.replace("{ext}", original_ext)
    filename = filename.replace("{custom}", options.custom_text)

    unresolved = TOKEN_PATTERN.findall(filename)
    if unresolved:
        listed = ", ".join(f"{{{name}}}" for name in unresolved)
        warnings.append(f"{UNRESOLVED_PREFIX} {listed}")
        filename = TOKEN_PATTERN.sub("", filename)

    filename = sanitize_filename(filename)

    if options.preserve_extension and original_ext:
        filename = f"{filename}.{original_ext.lower()}"
    return filename


def replace_date_tokens(template: str, date: datetime) -> str:
    """Substitute every date/time token using ``date``."""
    year = f"{date.year:04d}"
    month = f"{date.month:02d}"
    day = f"{date.day:02d}"
    hours = f"{date.hour:02d}"
    minutes = f"{date.minute:02d}"
    seconds = f"{date.second:02d}"

    replacements = (
        ("{YYYY}", year),
        ("{YY}", year[-2:]),
        ("{MM}", month),
        ("{DD}", day),
        ("{HH}", hours),
        ("{mm}", minutes),
        ("{ss}", seconds),
        ("{date}", f"{year}{month}{day}"),
        ("{datetime}", f"{year}{month}{day}_{hours}{minutes}{seconds}"),
        ("{timestamp}", str(math.floor(date.timestamp()))),
    )
    result = template
    for token, value in replacements:
        result = result.replace(token, value)
    return result


def apply_field_rules(
    template: str,
    metadata: MetadataRecord | None,
    rules: Sequence[FieldRule],
    warnings: List[str],
) -> str:
    """Resolve metadata-backed tokens, recording one warning per missing token."""
    result = template
    for rule in rules:
        placeholder = f"{{{rule.token}}}"
        if placeholder not in result:
            continue
        rendered = _render(rule, metadata)
        if rendered is None:
            if rule.warning is not None:
                warnings.append(rule.warning)
            rendered = rule.default
        result = result.replace(placeholder, rendered)
    return result


def _render(rule: FieldRule, metadata: MetadataRecord | None) -> Optional[str]:
    if metadata is None:
        return None
    value = rule.accessor(metadata)
    if value is None or value == "":
        return None
    return rule.formatter(value)


def replace_counter_tokens(template: str, counter: int, default_padding: int) -> str:
    """Substitute ``{counter:N}`` (explicit width) and then ``{counter}``."""
    value = str(counter)
    result = _PADDED_COUNTER.sub(lambda match: value.rjust(int(match.group(1)), "0"), template)
    return result.replace("{counter}", value.rjust(default_padding, "0"))


__all__ = [
    "CAMERA_RULES",
    "FieldRule",
    "GPS_RULES",
    "IMAGE_RULES",
    "apply_field_rules",
    "format_number",
    "format_shutter_speed",
    "generate_filename",
    "replace_counter_tokens",
    "replace_date_tokens",
]
