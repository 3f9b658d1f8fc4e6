"""Error taxonomy for the map controller.

All of these are handled inside the controller; none reach the host
application as an unhandled exception.
"""

from enum import StrEnum


class ListingMapError(Exception):
    """Base class for listing map errors."""


class NotReadyError(ListingMapError):
    """Raised when the map widget has not finished initialising."""


class FetchError(ListingMapError):
    """Raised when clusters could not be fetched from the backend."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(FetchError):
    """Raised when the backend answered with something that is not a cluster list."""


class LoadOutcome(StrEnum):
    """What happened to the result of one cluster fetch."""

    APPLIED = "applied"
    STALE = "stale"  # superseded by a newer fetch; discarded silently
    FAILED = "failed"
