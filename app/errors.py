"""
Error types shared by the tracking subsystems.

Every error raised on a request path derives from TrackingError so the
HTTP layer can turn it into a 400 response with a readable reason.
"""

from enum import Enum
from typing import List, Optional


class TrackingError(Exception):
    """Base class for all tracking service errors."""


class InvalidPayload(TrackingError):
    """Client input failed validation."""


class StoreErrorKind(Enum):
    """Failure categories reported by the store layer."""

    CONNECTION_LOST = "connection_lost"
    TIMEOUT = "timeout"
    PROTOCOL_ERROR = "protocol_error"


class StoreError(TrackingError):
    """A Redis operation failed."""

    def __init__(self, kind: StoreErrorKind, detail: str):
        super().__init__(detail)
        self.kind = kind
        self.detail = detail

    def __str__(self) -> str:
        return f"Store error ({self.kind.value}): {self.detail}"


class PartialWriteError(StoreError):
    """One or more writes of a track failed.

    Writes that already landed are not rolled back; ``outcomes`` tells
    which keys were written and which were not.
    """

    def __init__(self, first_failure: StoreError, outcomes: Optional[List] = None):
        super().__init__(first_failure.kind, first_failure.detail)
        self.first_failure = first_failure
        self.outcomes = outcomes or []

    def __str__(self) -> str:
        return str(self.first_failure)


class RelayError(TrackingError):
    """A third-party endpoint call failed."""

    def __init__(self, url: str, detail: str):
        super().__init__(f"Fetch failed {url} {detail}")
        self.url = url
        self.detail = detail


class ConfigurationError(TrackingError):
    """Required configuration or collaborators are missing."""
