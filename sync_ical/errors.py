"""
Error taxonomy for calendar reconciliation.

Every SyncError carries the operator-facing message that ends up verbatim in
the RunResult error field, the sync log row and the channel connection's
last_sync_error column.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for all failures of a single connection's reconciliation."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(SyncError):
    """The connection cannot be synced as configured. Not retried."""


class NoFeedConfigured(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("No iCal URL configured")


class MissingCapability(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("Calendar read capability not enabled")


class NoUnitForProperty(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("No unit found for property")


class NetworkError(SyncError):
    """Transport failure while fetching a feed."""


class FeedHTTPError(NetworkError):
    """The feed server answered with a non-2xx status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Failed to fetch iCal: {status_code}")
        self.status_code = status_code


class ParseError(SyncError):
    """The fetched document is not a parsable iCalendar document."""


class PersistenceError(SyncError):
    """A store write failed; aborts only the current connection's run."""


class CalendarError(Exception):
    """Base class for rejected calendar queries and manual calendar edits."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidWindow(CalendarError):
    def __init__(self) -> None:
        super().__init__("start must be before end")


class UnitNotFound(CalendarError):
    def __init__(self, unit_id: object) -> None:
        super().__init__(f"Unit {unit_id} not found")


class ReservationOverlap(CalendarError):
    def __init__(self) -> None:
        super().__init__("Dates conflict with existing reservation")
