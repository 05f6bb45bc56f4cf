"""
EduAsset - Inventory Request Schemas
"""
from typing import Any, Dict, Optional

from pydantic import Field

from eduasset.schemas.device import CamelModel


class LoanCreate(CamelModel):
    device_id: str
    user_id: str
    user_name: str
    due_date: str = Field(..., description="YYYY-MM-DD")
    notes: str = ""


class LoanReturn(CamelModel):
    condition: str = Field(default="Good", description="Good | Broken")


class SystemConfigUpdate(CamelModel):
    values: Dict[str, str]


class BackupPayload(CamelModel):
    """Backup file produced by export_all."""
    export_date: Optional[str] = None
    source_type: Optional[str] = None
    version: str = "1.0"
    data: Dict[str, Any]
