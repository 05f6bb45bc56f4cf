"""
EduAsset - Software Router
"""
from fastapi import APIRouter, Depends

from eduasset.models.records import Software
from eduasset.schemas.results import ActionResult
from eduasset.services.asset_sync import AssetSyncEngine
from eduasset.services.backend_selector import get_engine
from eduasset.routers.common import respond

router = APIRouter(prefix="/software", tags=["software"])


@router.get("", response_model=ActionResult)
async def list_software(engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.list_software())


@router.put("", response_model=ActionResult)
async def save_software(item: Software, engine: AssetSyncEngine = Depends(get_engine)):
    """Create or replace a license entry (an id is assigned when missing)."""
    return respond(await engine.save_software(item))


@router.delete("/{software_id}", response_model=ActionResult)
async def delete_software(software_id: str, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.delete_software(software_id))
