"""
EduAsset - Plain Records
Backend-agnostic records shared by both storage backends
"""
from eduasset.models.device import (
    Device,
    DeviceCreate,
    DeviceInstance,
    DeviceStatus,
    TEXT_ONLY,
    location_summary,
)
from eduasset.models.location import Location, MapConfiguration
from eduasset.models.records import Account, Loan, Software

__all__ = [
    "Device",
    "DeviceCreate",
    "DeviceInstance",
    "DeviceStatus",
    "TEXT_ONLY",
    "location_summary",
    "Location",
    "MapConfiguration",
    "Account",
    "Loan",
    "Software",
]
