# workclock/core/errors.py
"""
Error taxonomy for the WorkClock service.

None of these are fatal. Each one is caught at the layer that can fall back
to a safe default, and logged there so the failure stays observable:

- InvalidTimeZoneError           -> person degraded to "off" in the projection
- MalformedPreferencesError      -> default preferences substituted at load time
- MalformedDirectoryPayloadError -> offending board item / user skipped
- PersistenceError               -> soft failure notice, in-memory state kept
"""


class WorkClockError(Exception):
    """Base class for all service-specific errors."""


class InvalidTimeZoneError(WorkClockError, ValueError):
    """Raised when an IANA zone name cannot be resolved."""

    def __init__(self, timezone: str) -> None:
        super().__init__(f"Invalid timezone identifier: {timezone!r}")
        self.timezone = timezone


class MalformedPreferencesError(WorkClockError, ValueError):
    """Raised when persisted preferences are not a JSON object."""


class MalformedDirectoryPayloadError(WorkClockError, ValueError):
    """Raised when a single directory item cannot be parsed."""


class PersistenceError(WorkClockError, RuntimeError):
    """Raised when the preferences store rejects a read or write."""


class DirectoryClientError(WorkClockError, RuntimeError):
    """
    Raised when the directory API cannot be reached or answers with an error.
    """
