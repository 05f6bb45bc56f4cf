"""
EduAsset - Accounts Router
"""
from fastapi import APIRouter, Depends

from eduasset.models.records import Account
from eduasset.schemas.results import ActionResult
from eduasset.services.asset_sync import AssetSyncEngine
from eduasset.services.backend_selector import get_engine
from eduasset.routers.common import respond

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("", response_model=ActionResult)
async def list_accounts(engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.list_accounts())


@router.put("", response_model=ActionResult)
async def save_account(item: Account, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.save_account(item))


@router.delete("/{account_id}", response_model=ActionResult)
async def delete_account(account_id: str, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.delete_account(account_id))
