"""
EduAsset - Backend Errors
Exception taxonomy raised by the storage adapters and repositories
"""
from typing import Optional


class BackendError(Exception):
    """Base error for any failed call against a storage backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PermissionDeniedError(BackendError):
    """The backend rejected our credentials for this resource."""


class NotConfiguredError(BackendError):
    """No backend is configured for the current request."""


class RecordNotFoundError(BackendError):
    """The requested row or document does not exist."""
