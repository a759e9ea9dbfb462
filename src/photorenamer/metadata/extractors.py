"""EXIF metadata extraction backed by Pillow."""

from __future__ import annotations

import io
import logging
import math
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, Iterable, Mapping, Optional, Union

from PIL import ExifTags, Image, UnidentifiedImageError

from photorenamer.ingestion.models import SourceFile

from .models import GPSData, MetadataRecord

LOGGER = logging.getLogger(__name__)

MetadataSource = Union[Path, str, bytes, BinaryIO, SourceFile]
ProgressCallback = Callable[[int, int, str], None]

_EXIF_DATE = re.compile(r"^(\d{4})[:\-](\d{2})[:\-](\d{2})[ T](\d{2}):(\d{2}):(\d{2})")

_Base = ExifTags.Base


class MetadataExtractor:
    """Extract a :class:`MetadataRecord` from image bytes.

    Unsupported or corrupt input never raises; :meth:`extract` returns
    ``None`` instead so callers can treat absent metadata uniformly.
    """

    def extract(self, source: MetadataSource) -> Optional[MetadataRecord]:
        """Return metadata for the image, or None when it cannot be decoded.

        Args:
            source: Path, raw bytes, binary stream, or :class:`SourceFile`.

        Returns:
            Optional[MetadataRecord]: Parsed record or None.
        """
        try:
            with self._open(source) as img:
                exif = img.getexif()
                return self._build_record(exif, img.size)
        except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as exc:
            LOGGER.debug("Metadata extraction failed for %s: %s", _describe(source), exc)
            return None
        except Exception as exc:  # pragma: no cover - malformed tag payloads
            LOGGER.warning("Unexpected metadata error for %s: %s", _describe(source), exc)
            return None

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _open(self, source: MetadataSource) -> Image.Image:
        if isinstance(source, SourceFile):
            if source.content is not None:
                return Image.open(io.BytesIO(source.content))
            assert source.path is not None
            return Image.open(source.path)
        if isinstance(source, (bytes, bytearray)):
            return Image.open(io.BytesIO(bytes(source)))
        if isinstance(source, str):
            return Image.open(Path(source))
        return Image.open(source)

    def _build_record(self, exif: Image.Exif, size: tuple[int, int]) -> MetadataRecord:
        exif_ifd: Mapping[int, Any] = exif.get_ifd(ExifTags.IFD.Exif) if exif else {}
        gps_ifd: Mapping[int, Any] = exif.get_ifd(ExifTags.IFD.GPSInfo) if exif else {}

        width = _as_int(exif_ifd.get(_Base.ExifImageWidth)) or size[0] or None
        height = _as_int(exif_ifd.get(_Base.ExifImageHeight)) or size[1] or None

        return MetadataRecord(
            date_taken=self._date_taken(exif, exif_ifd),
            make=_as_text(exif.get(_Base.Make)),
            model=_as_text(exif.get(_Base.Model)),
            lens_model=_as_text(exif_ifd.get(_Base.LensModel)),
            software=_as_text(exif.get(_Base.Software)),
            exposure_time=self._exposure_time(exif_ifd),
            f_number=self._f_number(exif_ifd),
            iso=_as_int(exif_ifd.get(_Base.ISOSpeedRatings)),
            focal_length=_as_number(exif_ifd.get(_Base.FocalLength))
            or _as_number(exif_ifd.get(_Base.FocalLengthIn35mmFilm)),
            width=width,
            height=height,
            orientation=_as_int(exif.get(_Base.Orientation)) or 1,
            gps=self._gps(gps_ifd),
            artist=_as_text(exif.get(_Base.Artist)),
            copyright=_as_text(exif.get(_Base.Copyright)),
        )

    def _date_taken(self, exif: Image.Exif, exif_ifd: Mapping[int, Any]) -> Optional[datetime]:
        candidates = (
            exif_ifd.get(_Base.DateTimeOriginal),
            exif.get(_Base.DateTime),
            exif_ifd.get(_Base.DateTimeDigitized),
        )
        for candidate in candidates:
            parsed = parse_exif_date(candidate)
            if parsed is not None:
                return parsed
        return None

    def _exposure_time(self, exif_ifd: Mapping[int, Any]) -> Optional[float]:
        exposure = _as_number(exif_ifd.get(_Base.ExposureTime))
        if exposure:
            return exposure
        apex = _as_number(exif_ifd.get(_Base.ShutterSpeedValue))
        if apex is None:
            return None
        return 2 ** (-apex)

    def _f_number(self, exif_ifd: Mapping[int, Any]) -> Optional[float]:
        f_number = _as_number(exif_ifd.get(_Base.FNumber))
        if f_number:
            return f_number
        apex = _as_number(exif_ifd.get(_Base.ApertureValue))
        if apex is None:
            return None
        return round(math.sqrt(2) ** apex, 1)

    def _gps(self, gps_ifd: Mapping[int, Any]) -> Optional[GPSData]:
        if not gps_ifd:
            return None
        lat = _dms_to_decimal(gps_ifd.get(ExifTags.GPS.GPSLatitude))
        lng = _dms_to_decimal(gps_ifd.get(ExifTags.GPS.GPSLongitude))
        if lat is None or lng is None:
            return None
        if _as_text(gps_ifd.get(ExifTags.GPS.GPSLatitudeRef)) == "S":
            lat = -lat
        if _as_text(gps_ifd.get(ExifTags.GPS.GPSLongitudeRef)) == "W":
            lng = -lng

        altitude = _as_number(gps_ifd.get(ExifTags.GPS.GPSAltitude))
        altitude_ref = gps_ifd.get(ExifTags.GPS.GPSAltitudeRef)
        if altitude is not None and altitude_ref in (1, b"\x01"):
            altitude = -altitude
        return GPSData(lat=lat, lng=lng, altitude=altitude)


def batch_extract(
    files: Iterable[SourceFile],
    extractor: MetadataExtractor | None = None,
    *,
    max_workers: int = 1,
    on_progress: ProgressCallback | None = None,
) -> Dict[str, Optional[MetadataRecord]]:
    """Extract metadata for many files, keyed by ``file_id``.

    Work may complete out of order when ``max_workers`` is above one; the
    returned mapping follows the input order regardless.

    Args:
        files: Source files to inspect.
        extractor: Extractor instance (a default one is created when None).
        max_workers: Thread pool size used for extraction.
        on_progress: Optional callback receiving (completed, total, name).

    Returns:
        Dict[str, Optional[MetadataRecord]]: Records keyed by file id.
    """
    extractor = extractor or MetadataExtractor()
    ordered = list(files)
    total = len(ordered)
    collected: Dict[str, Optional[MetadataRecord]] = {}

    if max_workers <= 1:
        for index, source in enumerate(ordered, start=1):
            collected[source.file_id] = extractor.extract(source)
            if on_progress is not None:
                on_progress(index, total, source.name)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_file = {
                executor.submit(extractor.extract, source): source for source in ordered
            }
            for completed, future in enumerate(as_completed(future_to_file), start=1):
                source = future_to_file[future]
                collected[source.file_id] = future.result()
                if on_progress is not None:
                    on_progress(completed, total, source.name)

    return {source.file_id: collected[source.file_id] for source in ordered}


def parse_exif_date(value: Any) -> Optional[datetime]:
    """Parse an EXIF ``YYYY:MM:DD HH:MM:SS`` value, returning None when invalid."""
    if isinstance(value, datetime):
        return value
    text = _as_text(value)
    if not text:
        return None
    match = _EXIF_DATE.match(text)
    if match is None:
        return None
    try:
        return datetime(*(int(part) for part in match.groups()))
    except ValueError:
        return None


def _describe(source: MetadataSource) -> str:
    if isinstance(source, SourceFile):
        return source.name
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    return str(getattr(source, "name", source))


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).replace("\x00", "").strip()
    return text or None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return int(number) if number.is_integer() else number


def _as_int(value: Any) -> Optional[int]:
    number = _as_number(value)
    return int(number) if number is not None else None


def _dms_to_decimal(value: Any) -> Optional[float]:
    if not isinstance(value, (tuple, list)) or len(value) != 3:
        return _as_number(value)
    parts = [_as_number(part) for part in value]
    if any(part is None for part in parts):
        return None
    degrees, minutes, seconds = parts
    return degrees + minutes / 60 + seconds / 3600


__all__ = ["MetadataExtractor", "batch_extract", "parse_exif_date"]
