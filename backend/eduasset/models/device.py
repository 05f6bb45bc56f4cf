"""
EduAsset - Device Models
Devices and their per-location placements (DeviceInstance)
"""
import enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


# Sentinel locationId for free-text locations with no structured zone
TEXT_ONLY = "TEXT_ONLY"


class DeviceStatus(str, enum.Enum):
    """Device status labels as stored in the workspace."""
    AVAILABLE = "사용 가능"
    ON_LOAN = "대여중"
    MAINTENANCE = "수리/점검"
    LOST = "분실"
    BROKEN = "고장/폐기"


# Statuses that block a new loan
NON_LENDABLE_STATUSES = {
    DeviceStatus.BROKEN.value,
    DeviceStatus.LOST.value,
    DeviceStatus.ON_LOAN.value,
}

DEFAULT_CATEGORY = "기타"
DEFAULT_ACQUISITION_DIVISION = "전체"

# Fixed positional layout of the Devices sheet (A..R)
DEVICE_COLUMNS: List[str] = [
    "id",
    "category",
    "model",
    "ip",
    "status",
    "purchase_date",
    "group_id",
    "name",
    "acquisition_division",
    "quantity",
    "unit_price",
    "total_amount",
    "service_life_change",
    "install_location",
    "os_version",
    "windows_password",
    "user_name",
    "pc_name",
]

DEVICE_HEADER = [
    "ID", "Category", "Model", "IP", "Status", "PurchaseDate", "GroupID", "Name",
    "AcquisitionDivision", "Quantity", "UnitPrice", "TotalAmount", "ServiceLifeChange",
    "InstallLocation", "OSVersion", "WindowsPassword", "UserName", "PCName",
]

INSTANCE_COLUMNS: List[str] = ["id", "device_id", "location_id", "location_name", "quantity", "notes"]
INSTANCE_HEADER = ["ID", "DeviceID", "LocationID", "LocationName", "Quantity", "Notes"]


def parse_quantity(value: Any, default: int = 1) -> int:
    """Parse a loosely typed quantity cell ("3", 3, "", None)."""
    if value is None or value == "":
        return default
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


def _cell(row: Sequence[Any], index: int) -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index])
    return ""


class Record(BaseModel):
    """Base for backend-agnostic plain records (camelCase on the wire)."""
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    def to_document(self) -> Dict[str, Any]:
        """Fields for a document-store write (id is the document key)."""
        data = self.model_dump(by_alias=True)
        data.pop("id", None)
        return data


class Device(Record):
    """A registered asset (one row in Devices)."""
    id: str
    category: str = DEFAULT_CATEGORY
    model: str = ""
    ip: str = ""
    status: str = DeviceStatus.AVAILABLE.value
    purchase_date: str = ""
    group_id: str = ""
    name: str = ""
    acquisition_division: str = DEFAULT_ACQUISITION_DIVISION
    quantity: int = 1
    unit_price: str = "0"
    total_amount: str = "0"
    service_life_change: str = ""
    install_location: str = ""
    os_version: str = ""
    windows_password: str = ""
    user_name: str = ""
    pc_name: str = ""

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value):
        return parse_quantity(value)

    @field_validator(
        "category", "model", "ip", "status", "purchase_date", "group_id", "name",
        "acquisition_division", "unit_price", "total_amount", "service_life_change",
        "install_location", "os_version", "windows_password", "user_name", "pc_name",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value):
        return "" if value is None else str(value)

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "Device":
        data = {field: _cell(row, i) for i, field in enumerate(DEVICE_COLUMNS)}
        return cls(**data)

    def to_row(self) -> List[Any]:
        return [getattr(self, field) for field in DEVICE_COLUMNS]


class DeviceInstance(Record):
    """N units of a device placed at one location."""
    id: str = ""
    device_id: str
    location_id: str = TEXT_ONLY
    location_name: str = ""
    quantity: int = 1
    notes: str = ""

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value):
        return parse_quantity(value)

    @field_validator("id", "device_id", "location_id", "location_name", "notes", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return "" if value is None else str(value)

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "DeviceInstance":
        data = {field: _cell(row, i) for i, field in enumerate(INSTANCE_COLUMNS)}
        return cls(**data)

    def to_row(self) -> List[Any]:
        return [getattr(self, field) for field in INSTANCE_COLUMNS]


def location_summary(instances: Sequence[DeviceInstance]) -> str:
    """Display string for a device's placements, e.g. "Room A(2), Lab(1)"."""
    parts = []
    for inst in instances:
        if inst.quantity > 0:
            parts.append(f"{inst.location_name}({inst.quantity})")
        else:
            parts.append(inst.location_name)
    return ", ".join(parts)


def device_patch_to_fields(patch: Dict[str, Any]) -> Dict[str, Any]:
    """Translate a snake_case device patch into camelCase document fields."""
    fields = {}
    for key, value in patch.items():
        if key not in DEVICE_COLUMNS or key == "id":
            continue
        fields[to_camel(key)] = parse_quantity(value) if key == "quantity" else value
    return fields


class DeviceCreate(BaseModel):
    """Loose input for single/bulk registration (missing fields get defaults)."""
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="ignore")

    id: Optional[str] = None
    category: Optional[str] = None
    model: Optional[str] = None
    ip: Optional[str] = None
    status: Optional[str] = None
    purchase_date: Optional[str] = None
    group_id: Optional[str] = None
    name: Optional[str] = None
    acquisition_division: Optional[str] = None
    quantity: Optional[Any] = None
    unit_price: Optional[Any] = None
    total_amount: Optional[Any] = None
    service_life_change: Optional[str] = None
    install_location: Optional[str] = None
    os_version: Optional[str] = None
    windows_password: Optional[str] = None
    user_name: Optional[str] = None
    pc_name: Optional[str] = None
