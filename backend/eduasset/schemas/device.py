"""
EduAsset - Device Request Schemas
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from eduasset.models.device import DeviceCreate


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class DeviceUpdate(CamelModel):
    """
    Partial device patch.

    Fields left out (or sent as null) keep their current value; an empty
    string is a real value. Including install_location, even as "",
    triggers the instance fan-out.
    """
    category: Optional[str] = None
    model: Optional[str] = None
    ip: Optional[str] = None
    status: Optional[str] = None
    purchase_date: Optional[str] = None
    group_id: Optional[str] = None
    name: Optional[str] = None
    acquisition_division: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    unit_price: Optional[str] = None
    total_amount: Optional[str] = None
    service_life_change: Optional[str] = None
    install_location: Optional[str] = None
    os_version: Optional[str] = None
    windows_password: Optional[str] = None
    user_name: Optional[str] = None
    pc_name: Optional[str] = None

    def to_patch(self) -> Dict[str, Any]:
        """Snake_case patch of the fields the caller actually set."""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class DistributionEntry(CamelModel):
    """One slice of a device's quantity assigned to a location."""
    location_id: Optional[str] = None
    location_name: str = ""
    quantity: int = Field(default=1, ge=0)


class DistributionUpdate(CamelModel):
    """Device patch plus an explicit placement list (replaces all instances)."""
    updates: DeviceUpdate = Field(default_factory=DeviceUpdate)
    distributions: List[DistributionEntry] = Field(default_factory=list)


class BulkRegister(CamelModel):
    devices: List[DeviceCreate]


class BulkImport(CamelModel):
    """Header-keyed rows from a spreadsheet/file import collaborator."""
    rows: List[Dict[str, Any]]


class DeviceIdList(CamelModel):
    device_ids: List[str] = Field(..., min_length=1)


class StatusChange(CamelModel):
    device_ids: List[str] = Field(..., min_length=1)
    status: str


class InstanceCreate(CamelModel):
    device_id: str
    location_id: Optional[str] = None
    location_name: str = ""
    quantity: int = Field(default=1, gt=0)
    notes: str = ""


class InstanceUpdate(CamelModel):
    device_id: Optional[str] = None
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    quantity: Optional[int] = Field(default=None, gt=0)
    notes: Optional[str] = None

    def to_patch(self) -> Dict[str, Any]:
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}
