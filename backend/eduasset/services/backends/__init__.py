"""
EduAsset - Storage Adapters
"""
from eduasset.services.backends.errors import (
    BackendError,
    NotConfiguredError,
    PermissionDeniedError,
    RecordNotFoundError,
)
from eduasset.services.backends.firestore import BatchOp, FirestoreAdapter
from eduasset.services.backends.sheets import SheetsAdapter

__all__ = [
    "BackendError",
    "NotConfiguredError",
    "PermissionDeniedError",
    "RecordNotFoundError",
    "BatchOp",
    "FirestoreAdapter",
    "SheetsAdapter",
]
