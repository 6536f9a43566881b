"""Error types raised by the tracking core."""

from __future__ import annotations

from typing import Any


class TrackerError(Exception):
    """Base class for all tracking failures.

    Each subclass carries a short ``kind`` string so the presentation layer
    can report failures as a structured result without type-switching.
    """

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Convert to a structured result (kind + message)."""
        return {"kind": self.kind, "message": self.message}


class ValidationError(TrackerError):
    """Input rejected before any mutation took place."""

    kind = "validation"


class NotFoundError(TrackerError):
    """A referenced entry does not exist."""

    kind = "not_found"


class StorageError(TrackerError):
    """Persistence I/O failure; the in-flight transaction was rolled back."""

    kind = "storage"
