"""Exceptions raised along the check-in path."""

class CheckInError(Exception):
    """Base class for check-in failures."""
    pass

class MalformedTokenError(CheckInError):
    """Scanned text is not a serialized payload."""
    pass

class InvalidPayloadError(CheckInError):
    """Payload parsed but is missing fields or has wrongly typed ones."""
    pass

class LocationUnavailableError(CheckInError):
    """The student's position could not be obtained."""
    pass
