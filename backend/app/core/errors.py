from __future__ import annotations


class TimeLoggerError(Exception):
    """Base class for errors the application surfaces to the caller."""


class ValidationError(TimeLoggerError):
    """Client input rejected before any store call is made."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(TimeLoggerError):
    """A mutation targeted a row that does not exist (or no longer exists)."""


class RemoteCallError(TimeLoggerError):
    """The data store or identity provider call failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProfileCreationError(TimeLoggerError):
    """The profile row could not be created on first access."""
