"""Ingestion data models."""

from __future__ import annotations

import io
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SourceFile(BaseModel):
    """Descriptor for one input file, backed by a path or in-memory bytes.

    Attributes:
        file_id: Stable identifier used to key batch results.
        name: File name including extension.
        size: Size in bytes.
        last_modified: Last modification time, when known.
        path: Location on disk for path-backed files.
        content: Raw bytes for in-memory files.
    """

    model_config = ConfigDict(frozen=True)

    file_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    size: int = 0
    last_modified: Optional[datetime] = None
    path: Optional[Path] = None
    content: Optional[bytes] = Field(default=None, repr=False)

    @model_validator(mode="after")
    def _require_backing(self) -> "SourceFile":
        if self.path is None and self.content is None:
            raise ValueError("SourceFile requires either a path or in-memory content.")
        return self

    @classmethod
    def from_path(cls, path: Path, *, file_id: str | None = None) -> "SourceFile":
        """Build a descriptor from a file on disk.

        Raises:
            OSError: If the file cannot be stat'ed.
        """
        stat = path.stat()
        values = {
            "name": path.name,
            "size": stat.st_size,
            "last_modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            "path": path,
        }
        if file_id is not None:
            values["file_id"] = file_id
        return cls(**values)

    @classmethod
    def from_bytes(
        cls,
        name: str,
        content: bytes,
        *,
        last_modified: datetime | None = None,
        file_id: str | None = None,
    ) -> "SourceFile":
        """Build an in-memory descriptor."""
        values = {
            "name": name,
            "size": len(content),
            "last_modified": last_modified,
            "content": content,
        }
        if file_id is not None:
            values["file_id"] = file_id
        return cls(**values)

    @property
    def extension(self) -> str:
        """Lower-cased extension without the dot, or an empty string."""
        dot = self.name.rfind(".")
        if dot == -1:
            return ""
        return self.name[dot + 1 :].lower()

    def read_bytes(self) -> bytes:
        """Return the full file content.

        Raises:
            OSError: If a path-backed file cannot be read.
        """
        if self.content is not None:
            return self.content
        assert self.path is not None
        return self.path.read_bytes()

    def open(self) -> BinaryIO:
        """Return a binary stream over the content for chunked reads."""
        if self.content is not None:
            return io.BytesIO(self.content)
        assert self.path is not None
        return self.path.open("rb")


__all__ = ["SourceFile"]
