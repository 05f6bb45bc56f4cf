"""
EduAsset - Maps & Zones Router
Floor plans, their zones and the zone names store
"""
import logging
from typing import List

from fastapi import APIRouter, Depends

from eduasset.schemas.map import DetectedZones, MapSave, ZoneIdList, ZoneRename, ZoneRenameBatch, ZoneSync
from eduasset.schemas.results import ActionResult, SyncResult
from eduasset.services.asset_sync import AssetSyncEngine
from eduasset.services.backend_selector import get_engine
from eduasset.routers.common import respond

logger = logging.getLogger(__name__)
router = APIRouter(tags=["maps"])


# ============================================================
# Zones
# ============================================================

@router.get("/zones", response_model=ActionResult)
async def list_zones(engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.list_zones())


@router.put("/zones", response_model=ActionResult)
async def sync_zones(payload: ZoneSync, engine: AssetSyncEngine = Depends(get_engine)):
    """Upsert zones into the names store. Zones missing from the payload are kept."""
    return respond(await engine.sync_zones(payload.zones))


@router.post("/zones/delete", response_model=SyncResult)
async def delete_zones(payload: ZoneIdList, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.delete_zones(payload.zone_ids))


@router.post("/zones/rename", response_model=SyncResult)
async def rename_zone(payload: ZoneRename, engine: AssetSyncEngine = Depends(get_engine)):
    """Rename a zone and propagate the name to instances and device summaries."""
    return respond(await engine.rename_zone(payload.zone_id, payload.old_name, payload.new_name))


@router.post("/zones/rename-batch", response_model=List[SyncResult])
async def rename_zones(payload: ZoneRenameBatch, engine: AssetSyncEngine = Depends(get_engine)):
    # Each rename reports on its own; one failure does not stop the rest
    return await engine.rename_zones(payload.changes)


# ============================================================
# Maps
# ============================================================

@router.get("/maps", response_model=ActionResult)
async def list_maps(engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.list_maps())


@router.get("/maps/{map_id}", response_model=ActionResult)
async def fetch_map_configuration(map_id: str, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.fetch_map_configuration(map_id))


@router.put("/maps/{map_id}", response_model=ActionResult)
async def save_map_configuration(map_id: str, payload: MapSave, engine: AssetSyncEngine = Depends(get_engine)):
    """
    Store a floor plan.
    Omit mapImage to keep the stored image and only replace the zones.
    """
    return respond(await engine.save_map_configuration(map_id, payload.map_image, payload.zones))


@router.delete("/maps/{map_id}", response_model=ActionResult)
async def delete_map(map_id: str, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.delete_map(map_id))


@router.post("/maps/{map_id}/detected-zones", response_model=ActionResult)
async def merge_detected_zones(map_id: str, payload: DetectedZones, engine: AssetSyncEngine = Depends(get_engine)):
    """Add zones found by structure detection, skipping ones that overlap existing zones."""
    return respond(await engine.merge_detected_zones(map_id, payload.zones, payload.threshold))
