from __future__ import annotations


class SchedulingError(Exception):
    """Base class for errors the HTTP layer knows how to render."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    # missing field, unparsable date/time, absent contact, bad transition
    status_code = 400


class NotFound(SchedulingError):
    status_code = 404


class StoreTransientError(SchedulingError):
    """Timeout or connection loss talking to the store. Callers may retry."""

    status_code = 500
