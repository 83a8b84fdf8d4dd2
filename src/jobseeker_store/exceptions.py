"""
Exceptions raised by the job seeker store.
"""

from typing import Literal

StorageFailure = Literal["constraint", "connectivity", "timeout", "database"]


class JobSeekerStoreError(Exception):
    """Base exception for the package."""

    pass


class ConfigurationError(JobSeekerStoreError):
    """Raised when the store cannot be built from its configuration."""

    def __init__(self, key: str, detail: str) -> None:
        self.key = key
        super().__init__(f"Invalid configuration: {key} - {detail}")


class StorageError(JobSeekerStoreError):
    """
    A persistence operation failed.

    Covers constraint violations, connectivity failures and timeouts. The
    underlying driver or SQLAlchemy exception is chained as ``__cause__``.
    """

    def __init__(self, operation: str, reason: StorageFailure, detail: str = "") -> None:
        self.operation = operation
        self.reason = reason
        message = f"Storage operation '{operation}' failed ({reason})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
