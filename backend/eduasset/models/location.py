"""
EduAsset - Location Models
Zones positioned on floor-plan maps (percentage coordinates)
"""
from typing import List, Optional

from pydantic import Field

from eduasset.models.device import Record


# Names store layout (Locations sheet): id, automated name, operator alias
LOCATION_HEADER = ["Zone ID", "Auto Name", "Custom Name"]


class Location(Record):
    """
    A zone or pin on a floor plan.

    pin_x/pin_y are percentages (0-100) of the image. When width/height are
    set the zone renders as a rectangle whose top-left corner is the pin.
    """
    id: str
    name: str = ""
    pin_x: float = 0.0
    pin_y: float = 0.0
    width: Optional[float] = None
    height: Optional[float] = None
    color: Optional[str] = None
    type: str = "Classroom"
    map_id: Optional[str] = None

    @property
    def center(self) -> tuple:
        """Bounding-box center in percentage units."""
        return (
            self.pin_x + (self.width or 0.0) / 2,
            self.pin_y + (self.height or 0.0) / 2,
        )


class MapConfiguration(Record):
    """One floor plan: chunk-reassembled image plus its ordered zones."""
    map_id: str = "default"
    map_image: Optional[str] = None
    zones: List[Location] = Field(default_factory=list)
    updated_at: Optional[str] = None
