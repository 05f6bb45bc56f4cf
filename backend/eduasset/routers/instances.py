"""
EduAsset - Device Instances Router
"""
from fastapi import APIRouter, Depends

from eduasset.schemas.device import InstanceCreate, InstanceUpdate
from eduasset.schemas.results import SyncResult
from eduasset.services.asset_sync import AssetSyncEngine
from eduasset.services.backend_selector import get_engine
from eduasset.routers.common import respond

router = APIRouter(prefix="/instances", tags=["instances"])


@router.post("", response_model=SyncResult)
async def create_instance(payload: InstanceCreate, engine: AssetSyncEngine = Depends(get_engine)):
    """Place units of a device at a location (result carries a warning on over-allocation)."""
    return respond(await engine.create_instance(
        device_id=payload.device_id,
        location_name=payload.location_name,
        quantity=payload.quantity,
        location_id=payload.location_id,
        notes=payload.notes,
    ))


@router.patch("/{instance_id}", response_model=SyncResult)
async def update_instance(
    instance_id: str,
    updates: InstanceUpdate,
    engine: AssetSyncEngine = Depends(get_engine),
):
    return respond(await engine.update_instance(instance_id, updates.to_patch()))


@router.delete("/{instance_id}", response_model=SyncResult)
async def delete_instance(instance_id: str, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.delete_instance(instance_id))
