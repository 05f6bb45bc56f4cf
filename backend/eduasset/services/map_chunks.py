"""
EduAsset - Map Image Chunking
Splits a base64 floor-plan image into fixed-size keyed segments and back
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAP_ID = "default"

# Spreadsheet Config keys shared by every map
MAP_LIST_KEY = "Map_List"
LAST_UPDATED_KEY = "LastUpdated"
LEGACY_IMAGE_KEY = "MapImage"


def split_image(image: Optional[str], chunk_size: int) -> List[str]:
    """Split into ceil(len/chunk_size) segments; an empty image has no chunks."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if not image:
        return []
    return [image[i:i + chunk_size] for i in range(0, len(image), chunk_size)]


def chunk_index(key: str, prefix: str) -> Optional[int]:
    """Numeric index embedded in a chunk key, None when the suffix is not a number."""
    if not key.startswith(prefix):
        return None
    suffix = key[len(prefix):]
    if not suffix.isdigit():
        return None
    return int(suffix)


def join_chunks(entries: Mapping[str, str], prefix: str, count: Optional[int] = None) -> str:
    """
    Reassemble an image from keyed chunks.

    With a known count the chunks 0..count-1 are read by index. Otherwise
    every key carrying the prefix is ordered by its parsed integer suffix
    (so _2 comes before _10).
    """
    if count is not None:
        missing = [i for i in range(count) if f"{prefix}{i}" not in entries]
        if missing:
            logger.warning(f"Map image {prefix}* is missing chunks {missing}")
        return "".join(entries.get(f"{prefix}{i}") or "" for i in range(count))

    indexed = []
    for key, value in entries.items():
        index = chunk_index(key, prefix)
        if index is not None:
            indexed.append((index, value or ""))
    indexed.sort(key=lambda item: item[0])
    return "".join(value for _, value in indexed)


@dataclass(frozen=True)
class MapKeys:
    """Spreadsheet Config keys of one map."""
    map_id: str = DEFAULT_MAP_ID

    @property
    def is_default(self) -> bool:
        return self.map_id == DEFAULT_MAP_ID

    @property
    def zones_key(self) -> str:
        return "MapZones" if self.is_default else f"Map_Zones_{self.map_id}"

    @property
    def image_prefix(self) -> str:
        return "MapImage_" if self.is_default else f"Map_Image_{self.map_id}_"

    @property
    def meta_key(self) -> str:
        return f"Map_Meta_{self.map_id}"

    def chunk_key(self, index: int) -> str:
        return f"{self.image_prefix}{index}"

    def owns(self, key: str) -> bool:
        """True for every key this map writes (zones, meta, chunks, legacy image)."""
        if key in (self.zones_key, self.meta_key):
            return True
        if self.is_default and key == LEGACY_IMAGE_KEY:
            return True
        return chunk_index(key, self.image_prefix) is not None

    def encode(self, image: Optional[str], chunk_size: int) -> Dict[str, str]:
        return {self.chunk_key(i): chunk for i, chunk in enumerate(split_image(image, chunk_size))}


def document_chunk_id(map_id: str, index: int) -> str:
    """Document id of one image chunk in the MapConfig collection."""
    return f"{map_id}_chunk_{index}"
