"""
EduAsset - Devices Router
Device registration, updates (with instance fan-out) and deletion
"""
import logging

from fastapi import APIRouter, Depends

from eduasset.models.device import DeviceCreate
from eduasset.schemas.device import (
    BulkImport,
    BulkRegister,
    DeviceIdList,
    DeviceUpdate,
    DistributionUpdate,
    StatusChange,
)
from eduasset.schemas.results import ActionResult, SyncResult
from eduasset.services.asset_sync import AssetSyncEngine
from eduasset.services.backend_selector import get_engine
from eduasset.routers.common import respond

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/devices", tags=["devices"])


@router.get("", response_model=ActionResult)
async def fetch_asset_data(engine: AssetSyncEngine = Depends(get_engine)):
    """Devices, their instances, software and accounts in one read."""
    return respond(await engine.fetch_asset_data())


@router.post("", response_model=ActionResult)
async def register_device(device: DeviceCreate, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.register_device(device))


@router.post("/bulk", response_model=ActionResult)
async def register_bulk_devices(payload: BulkRegister, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.register_bulk_devices(payload.devices))


@router.post("/import", response_model=ActionResult)
async def import_devices(payload: BulkImport, engine: AssetSyncEngine = Depends(get_engine)):
    """Register rows keyed by spreadsheet headers (Korean or English)."""
    return respond(await engine.import_devices(payload.rows))


@router.post("/status", response_model=ActionResult)
async def set_devices_status(payload: StatusChange, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.set_devices_status(payload.device_ids, payload.status))


@router.post("/delete", response_model=SyncResult)
async def delete_devices(payload: DeviceIdList, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.delete_devices(payload.device_ids))


@router.delete("", response_model=SyncResult)
async def delete_all_devices(engine: AssetSyncEngine = Depends(get_engine)):
    logger.warning("Deleting every device of the workspace")
    return respond(await engine.delete_all_devices())


@router.patch("/{device_id}", response_model=SyncResult)
async def update_device(
    device_id: str,
    updates: DeviceUpdate,
    engine: AssetSyncEngine = Depends(get_engine),
):
    """
    Partial update. Fields left out keep their value.
    Sending installLocation (even "") rebuilds the device's instances.
    """
    return respond(await engine.update_device(device_id, updates.to_patch()))


@router.put("/{device_id}/distribution", response_model=SyncResult)
async def update_device_with_distribution(
    device_id: str,
    payload: DistributionUpdate,
    engine: AssetSyncEngine = Depends(get_engine),
):
    return respond(await engine.update_device_with_distribution(
        device_id, payload.updates.to_patch(), payload.distributions
    ))


@router.get("/{device_id}/instances", response_model=ActionResult)
async def get_device_instances(device_id: str, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.get_device_instances(device_id))


@router.delete("/{device_id}", response_model=SyncResult)
async def delete_device(device_id: str, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.delete_device(device_id))
