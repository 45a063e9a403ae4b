"""
Error kinds raised by the data-access layer.

Callers (the CLI, an HTTP layer) translate these into user-visible
outcomes; the layer itself never recovers from them.
"""

from typing import List, Optional


class JoblyError(Exception):
    """Base class for all data-access errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(JoblyError):
    """Raised for malformed or empty input (no update fields, min > max)."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors) if errors else [message]


class ConflictError(JoblyError):
    """Raised when a create or update collides with an existing natural key."""

    status_code = 409


class NotFoundError(JoblyError):
    """Raised when no row matches the given key."""

    status_code = 404
