"""Archive creation errors."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

ArchiveErrorKind = Literal[
    "archive_read_failure",
    "archive_encoder_failure",
    "duplicate_entry",
    "invalid_state",
]


class ArchiveError(Exception):
    """Raised when an archive cannot be produced.

    Attributes:
        kind: Machine-readable failure category.
        message: Human-readable description.
        filename: Source file involved in the failure, when applicable.
    """

    def __init__(
        self,
        kind: ArchiveErrorKind,
        message: str,
        *,
        filename: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.filename = filename

    def to_payload(self) -> Dict[str, Any]:
        """Return a JSON-ready description of the error."""
        payload: Dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.filename is not None:
            payload["filename"] = self.filename
        return payload
