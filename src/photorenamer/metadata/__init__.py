"""Metadata provider and records."""

from .extractors import MetadataExtractor, batch_extract, parse_exif_date
from .models import GPSData, MetadataRecord

__all__ = [
    "GPSData",
    "MetadataExtractor",
    "MetadataRecord",
    "batch_extract",
    "parse_exif_date",
]
