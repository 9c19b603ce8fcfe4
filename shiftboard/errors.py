from __future__ import annotations


class DomainError(Exception):
    """Base exception for shift workflow failures."""

    status_code = 400

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(DomainError):
    """Input the client can fix: missing field, malformed time, start >= end."""

    status_code = 400


class ConflictError(DomainError):
    """A state transition that is not allowed from the record's current status."""

    status_code = 409


class RequestInProgressError(ConflictError):
    """The duplicate-submission guard is holding the same key; retry shortly."""

    status_code = 429


class NotFoundError(DomainError):
    status_code = 404


class StorageError(DomainError):
    """The backing store failed; nothing was committed."""

    status_code = 500
