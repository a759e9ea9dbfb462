"""Template token catalogue and built-in presets."""

from __future__ import annotations

from typing import Dict, Mapping

TEMPLATE_TOKENS: Mapping[str, str] = {
    # Date tokens
    "{YYYY}": "Year (4 digits)",
    "{YY}": "Year (2 digits)",
    "{MM}": "Month (01-12)",
    "{DD}": "Day (01-31)",
    "{HH}": "Hour (00-23)",
    "{mm}": "Minute (00-59)",
    "{ss}": "Second (00-59)",
    # Date formats
    "{date}": "Full date (YYYYMMDD)",
    "{datetime}": "Date and time (YYYYMMDD_HHMMSS)",
    "{timestamp}": "Unix timestamp",
    # Camera info
    "{make}": "Camera manufacturer",
    "{model}": "Camera model",
    "{lens}": "Lens model",
    # Camera settings
    "{iso}": "ISO value",
    "{aperture}": "Aperture (f-number)",
    "{shutter}": "Shutter speed",
    "{focal}": "Focal length",
    # Image properties
    "{width}": "Image width",
    "{height}": "Image height",
    "{dimensions}": "Width x Height",
    "{orientation}": "Orientation",
    # GPS
    "{lat}": "GPS Latitude",
    "{lng}": "GPS Longitude",
    "{gps}": "GPS coordinates",
    # Counters
    "{counter}": "Sequential counter (001, 002...)",
    "{counter:5}": "Counter with custom padding",
    # Original filename
    "{original}": "Original filename (without extension)",
    "{ext}": "File extension",
    # Custom
    "{custom}": "Custom text input",
}

TOKEN_CATEGORIES: Mapping[str, tuple[str, ...]] = {
    "date": ("YYYY", "YY", "MM", "DD", "HH", "mm", "ss", "date", "datetime", "timestamp"),
    "camera": ("make", "model", "lens"),
    "settings": ("iso", "aperture", "shutter", "focal"),
    "image": ("width", "height", "dimensions", "orientation"),
    "gps": ("lat", "lng", "gps"),
    "utility": ("counter", "original", "ext", "custom"),
}

TEMPLATE_PRESETS: Mapping[str, str] = {
    "Date + Counter": "{YYYY}{MM}{DD}_{counter}",
    "DateTime + Original": "{datetime}_{original}",
    "Camera + Date": "{model}_{date}",
    "Date + Camera + Counter": "{YYYY}{MM}{DD}_{model}_{counter}",
    "Custom + Counter": "{custom}_{counter:4}",
    "Date + Time + Settings": "{date}_{HH}{mm}{ss}_{iso}_{aperture}_{shutter}",
    "Location + DateTime": "{gps}_{datetime}",
    "Year-Month-Day Counter": "{YYYY}-{MM}-{DD}_{counter}",
}

KNOWN_TOKEN_NAMES = frozenset(name for names in TOKEN_CATEGORIES.values() for name in names)


def token_category(name: str) -> str | None:
    """Return the catalogue category for a bare token name.

    Args:
        name: Token name without braces (e.g. ``YYYY`` or ``counter:4``).

    Returns:
        str | None: Category identifier, or None for unknown tokens.
    """
    base = name.split(":", 1)[0]
    for category, names in TOKEN_CATEGORIES.items():
        if base in names:
            return category
    return None


def resolve_preset(name_or_template: str) -> str:
    """Return the preset template for a preset name, or the input unchanged."""
    return TEMPLATE_PRESETS.get(name_or_template, name_or_template)


def describe_tokens() -> Dict[str, str]:
    """Return a mutable copy of the token catalogue for display purposes."""
    return dict(TEMPLATE_TOKENS)


__all__ = [
    "KNOWN_TOKEN_NAMES",
    "TEMPLATE_PRESETS",
    "TEMPLATE_TOKENS",
    "TOKEN_CATEGORIES",
    "describe_tokens",
    "resolve_preset",
    "token_category",
]
