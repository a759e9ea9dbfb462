"""Filename sanitization helpers."""

from __future__ import annotations

import re
from typing import Tuple

_TOKEN_DISALLOWED = re.compile(r"[^\w\s-]", re.ASCII)
_ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")


def sanitize_token(value: str) -> str:
    """Clean a metadata string (make/model/lens) for use inside a filename.

    Only ASCII word characters, whitespace, and hyphens survive; whitespace
    runs become a single underscore.
    """
    cleaned = _TOKEN_DISALLOWED.sub("", value).strip()
    return _WHITESPACE.sub("_", cleaned)


def sanitize_filename(value: str | None) -> str:
    """Strip characters illegal in filenames and normalize separators.

    Applying this twice yields the same result as applying it once.
    """
    if value is None:
        return ""
    cleaned = _ILLEGAL_FILENAME_CHARS.sub("", str(value))
    cleaned = _WHITESPACE.sub("_", cleaned)
    return _REPEATED_UNDERSCORES.sub("_", cleaned)


def split_filename(filename: str) -> Tuple[str, str]:
    """Split ``filename`` at its last dot into ``(name, ext)``.

    A name without a dot, or whose only dot is the leading one, has no
    extension.
    """
    dot = filename.rfind(".")
    if dot <= 0:
        return filename, ""
    return filename[:dot], filename[dot + 1 :]


__all__ = ["sanitize_filename", "sanitize_token", "split_filename"]
