"""Error kinds raised at the repository boundary.

Every error carries a stable ``kind`` and the HTTP ``status_code`` the routes
answer with, so callers never match on message text.
"""
from __future__ import annotations


class JoblyError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(JoblyError):
    """Malformed or empty caller input."""
    kind = "validation"
    status_code = 400


class DuplicateError(JoblyError):
    kind = "duplicate"
    status_code = 400


class NotFoundError(JoblyError):
    kind = "not_found"
    status_code = 404


class StorageError(JoblyError):
    """Opaque failure from the storage engine (constraint, connectivity, missing table)."""
    kind = "storage"
    status_code = 500

    def __init__(self, message: str, is_unique_violation: bool = False):
        super().__init__(message)
        self.is_unique_violation = is_unique_violation
