from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations and data-store failures.

    `retryable` tells the retry wrapper whether repeating the same call can
    succeed. `operation` is filled in with the retry label once the wrapper
    gives up.
    """

    retryable = False

    def __init__(self, message: str = "", *, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a row addressed by id (or filter) does not exist."""


class AlreadySignedInError(DomainError):
    """Raised when a user already has an open session today."""

    def __init__(self, message: str = "Already signed in today", **kwargs):
        super().__init__(message, **kwargs)


class RemoteError(DomainError):
    """Raised when the data store reports a failure."""


class TransientRemoteError(RemoteError):
    """Connection-level failure: the same call may succeed on retry."""

    retryable = True


class ConstraintViolationError(RemoteError):
    """The data store rejected the write (unique key, foreign key, ...)."""
