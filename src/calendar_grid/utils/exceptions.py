"""Custom exceptions for Calendar Grid application."""


class CalendarGridError(Exception):
    """Base exception for calendar grid errors."""


class ConfigurationError(CalendarGridError):
    """Raised when configuration is invalid."""


class FetchUnavailableError(CalendarGridError):
    """Raised when no event transport is available for a fetch."""


class FetchFailedError(CalendarGridError):
    """Raised when the event transport rejects a fetch."""


class EventParseError(CalendarGridError):
    """Raised when an event payload cannot be parsed."""
