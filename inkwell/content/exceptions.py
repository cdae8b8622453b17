"""Exceptions raised by the content store.

Every failure is scoped to a single operation and raised to the immediate
caller; nothing here retries. A failed rollback never replaces the error that
caused it: it rides along as ``rollback_error`` so callers can tell a clean
rollback from a dirty one.
"""

from __future__ import annotations

from typing import Optional


class ContentStoreError(Exception):
    """Base exception for content store operations."""

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        rollback_error: Optional[BaseException] = None,
    ):
        """Initialize content store error.

        Args:
            message: Technical error message
            cause: Underlying error that triggered this one, if any
            rollback_error: Error raised while rolling back after ``cause``
        """
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.rollback_error = rollback_error

    @property
    def has_dirty_rollback(self) -> bool:
        """Whether the cleanup rollback itself failed."""
        return self.rollback_error is not None

    def __str__(self) -> str:
        if self.rollback_error is not None:
            return f"{self.message} (rollback also failed: {self.rollback_error})"
        return self.message


class TransactionError(ContentStoreError):
    """Raised when the write gateway cannot complete a unit of work."""


class StorageUnavailableError(TransactionError):
    """Raised when a transaction could not be started.

    No statement of the operation has run.
    """


class StatementError(TransactionError):
    """Raised when a write statement or the commit failed.

    The whole unit has been rolled back.
    """


class NotFoundError(ContentStoreError):
    """Raised when a requested row does not exist."""


class PrereadError(ContentStoreError):
    """Raised when the current state of an entity could not be read before an update."""
