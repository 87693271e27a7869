"""Error taxonomy for loading, parsing and fingerprinting cost records.

Every failure here is recoverable: callers degrade to the last known good
record instead of crashing or clearing the display.
"""

from __future__ import annotations


class CostSyncError(Exception):
    """Base class for all CostSync errors."""


class LoadError(CostSyncError):
    """A record could not be obtained from any source."""


class NetworkError(LoadError):
    """Transport failure or non-success HTTP status from the remote endpoint."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(LoadError):
    """The fetched body or local file is not a valid cost record."""


class UnsupportedEnvironment(LoadError):
    """No local file selection capability is available."""


class UserCancelled(LoadError):
    """The file selection prompt returned no file."""


class SignatureError(CostSyncError):
    """A record could not be serialized into a change signature."""
