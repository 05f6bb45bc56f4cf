"""
EduAsset - Zone & Map Pydantic Schemas
"""
from typing import List, Optional

from pydantic import Field

from eduasset.models.location import Location
from eduasset.schemas.device import CamelModel


class ZoneRename(CamelModel):
    """Rename of one zone's display name."""
    zone_id: str
    old_name: str = ""
    new_name: str = Field(..., min_length=1)


class ZoneRenameBatch(CamelModel):
    changes: List[ZoneRename]


class ZoneSync(CamelModel):
    zones: List[Location]


class ZoneIdList(CamelModel):
    zone_ids: List[str]


class MapSave(CamelModel):
    """Floor plan payload: base64 image (optional) and its zones."""
    map_image: Optional[str] = None
    zones: List[Location] = Field(default_factory=list)


class DetectedZones(CamelModel):
    """Zones proposed by the structure-detection collaborator."""
    zones: List[Location]
    threshold: Optional[float] = Field(default=None, gt=0)
