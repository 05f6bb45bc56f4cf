"""
EduAsset - Pydantic Schemas
"""
from eduasset.schemas.results import ActionResult, ErrorCode, SyncResult
from eduasset.schemas.device import DeviceUpdate, DistributionEntry, InstanceCreate, InstanceUpdate

__all__ = [
    "ActionResult",
    "ErrorCode",
    "SyncResult",
    "DeviceUpdate",
    "DistributionEntry",
    "InstanceCreate",
    "InstanceUpdate",
]
