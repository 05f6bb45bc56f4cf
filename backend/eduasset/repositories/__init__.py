"""
EduAsset - Repositories
"""
from eduasset.repositories.base import Workspace
from eduasset.repositories.firestore import build_firestore_workspace
from eduasset.repositories.sheets import SheetsWorkspace
from eduasset.repositories.unconfigured import build_unconfigured_workspace

__all__ = [
    "Workspace",
    "SheetsWorkspace",
    "build_firestore_workspace",
    "build_unconfigured_workspace",
]
