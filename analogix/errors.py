class AnalogixError(Exception):
    """Base class for all errors raised by the planner core."""


class ParseError(AnalogixError):
    """
    Raised when an imported calendar file cannot be read as iCalendar.

    Fatal to the import that triggered it; no partial result is produced.
    """


class RemoteUnavailable(AnalogixError):
    """
    Raised by the remote tier on network, auth or database failure.

    Stores absorb it: reads fall back to the local cache and writes
    continue locally.
    """


class DeserializationError(AnalogixError):
    """Raised when a cached entry or remote row does not match its schema."""
