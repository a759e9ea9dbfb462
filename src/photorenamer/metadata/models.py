"""Metadata data models consumed by the rename engine."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

Numeric = Union[int, float]


class GPSData(BaseModel):
    """Decimal GPS coordinates.

    Attributes:
        lat: Latitude in decimal degrees (south is negative).
        lng: Longitude in decimal degrees (west is negative).
        altitude: Altitude in meters, when recorded.
    """

    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float
    altitude: Optional[float] = None


class MetadataRecord(BaseModel):
    """Read-only camera, image, and GPS metadata for one file.

    Attributes:
        date_taken: Capture timestamp, when any date tag is present.
        make: Camera manufacturer.
        model: Camera model.
        lens_model: Lens model.
        software: Software that wrote the file.
        exposure_time: Exposure time in seconds.
        f_number: Aperture f-number.
        iso: ISO sensitivity.
        focal_length: Focal length in millimeters.
        width: Pixel width.
        height: Pixel height.
        orientation: EXIF orientation (1 when absent).
        gps: GPS coordinates, when present.
        artist: Artist tag.
        copyright: Copyright tag.
    """

    model_config = ConfigDict(frozen=True)

    date_taken: Optional[datetime] = None
    make: Optional[str] = None
    model: Optional[str] = None
    lens_model: Optional[str] = None
    software: Optional[str] = None
    exposure_time: Optional[Numeric] = None
    f_number: Optional[Numeric] = None
    iso: Optional[int] = None
    focal_length: Optional[Numeric] = None
    width: Optional[int] = None
    height: Optional[int] = None
    orientation: int = 1
    gps: Optional[GPSData] = None
    artist: Optional[str] = None
    copyright: Optional[str] = None

    def has_useful_data(self) -> bool:
        """Return whether any field a template can reference is populated."""
        return any(
            value is not None
            for value in (
                self.make,
                self.model,
                self.date_taken,
                self.focal_length,
                self.iso,
                self.f_number,
                self.width,
                self.height,
                self.gps,
            )
        )


__all__ = ["GPSData", "MetadataRecord"]
