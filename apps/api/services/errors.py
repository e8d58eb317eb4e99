"""Error taxonomy for the planner persistence and connectivity layer."""

from __future__ import annotations

from typing import Optional


class PlannerError(Exception):
    """Base class for planner failures surfaced to callers."""


class StoreInitError(PlannerError):
    """Raised when the embedded database cannot be opened or migrated."""


class NotInitialized(PlannerError):
    """Raised when the store is used before initialize() completed."""


class ConstraintViolation(PlannerError):
    """Raised when a referential or integrity rule rejects a write."""


class FileAreaError(PlannerError):
    """Raised on file area I/O failures; carries the failing path."""

    def __init__(self, path: str, message: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message or f"File area operation failed for {path}")


class NoOfflineHandler(PlannerError):
    """Raised when offline mode is active and the caller gave no offline handler."""


class NetworkError(PlannerError):
    """Raised by the request layer when the remote API cannot be reached."""


class RemoteApiError(NetworkError):
    """Raised when the remote API answers with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(f"API request failed: {status_code} - {message}")


class InvalidImportFormat(PlannerError):
    """Raised when an import document lacks the profiles/videos arrays."""


class ModeUnavailable(PlannerError):
    """Raised when online mode is requested on a platform without network access."""


class UnsupportedMedia(PlannerError):
    """Raised when a picked file has an unsupported format or exceeds size limits."""
