"""
EduAsset - Loans Router
Device check-out and return
"""
from fastapi import APIRouter, Depends

from eduasset.schemas.records import LoanCreate, LoanReturn
from eduasset.schemas.results import ActionResult
from eduasset.services.asset_sync import AssetSyncEngine
from eduasset.services.backend_selector import get_engine
from eduasset.routers.common import respond

router = APIRouter(prefix="/loans", tags=["loans"])


@router.get("", response_model=ActionResult)
async def list_loans(engine: AssetSyncEngine = Depends(get_engine)):
    """Loans with Active entries past their due date reported as Overdue."""
    return respond(await engine.list_loans())


@router.post("", response_model=ActionResult)
async def create_loan(payload: LoanCreate, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.create_loan(
        device_id=payload.device_id,
        user_id=payload.user_id,
        user_name=payload.user_name,
        due_date=payload.due_date,
        notes=payload.notes,
    ))


@router.post("/{loan_id}/return", response_model=ActionResult)
async def return_loan(loan_id: str, payload: LoanReturn, engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.return_loan(loan_id, payload.condition))
