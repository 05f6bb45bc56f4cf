"""
EduAsset - System Router
Backend selection, system settings, backup and workspace setup
"""
import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from eduasset.config import Settings, get_settings
from eduasset.repositories.base import Workspace
from eduasset.schemas.records import BackupPayload, SystemConfigUpdate
from eduasset.schemas.results import ActionResult
from eduasset.services.asset_sync import AssetSyncEngine
from eduasset.services.backend_selector import (
    AppConfig,
    ClientRegistry,
    encode_config,
    get_engine,
    get_registry,
    get_workspace,
)
from eduasset.routers.common import respond

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/system", tags=["system"])


class ServerTypeResponse(BaseModel):
    """Which backend serves the current request."""
    configured: bool
    db_type: str
    tenant_id: str = ""


class ConfigBlobResponse(BaseModel):
    configured: bool
    db_type: str
    tenant_id: str = ""
    token: str


@router.get("/server-type", response_model=ServerTypeResponse)
async def get_server_type(workspace: Workspace = Depends(get_workspace)):
    return ServerTypeResponse(
        configured=workspace.configured,
        db_type=workspace.kind,
        tenant_id=workspace.tenant_id or "",
    )


@router.post("/config-blob", response_model=ConfigBlobResponse)
async def set_config_blob(
    config: AppConfig,
    response: Response,
    settings: Settings = Depends(get_settings),
    registry: ClientRegistry = Depends(get_registry),
):
    """
    Sign the backend configuration and store it in the config cookie.

    The signed token is returned as well for clients that send it in the
    X-Workspace-Config header instead.
    """
    workspace = registry.workspace_for(config)
    token = encode_config(config, settings)
    response.set_cookie(
        key=settings.config_cookie_name,
        value=token,
        max_age=int(timedelta(days=settings.config_expire_days).total_seconds()),
        httponly=True,
        samesite="lax",
    )
    logger.info(f"Backend config set: {config.db_type} ({workspace})")
    return ConfigBlobResponse(
        configured=workspace.configured,
        db_type=config.db_type,
        tenant_id=workspace.tenant_id or "",
        token=token,
    )


@router.delete("/config-blob")
async def clear_config_blob(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(settings.config_cookie_name)
    return {"message": "Backend configuration cleared"}


# ============================================================
# System settings
# ============================================================

@router.get("/config", response_model=ActionResult)
async def fetch_system_config(engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.fetch_system_config())


@router.put("/config", response_model=ActionResult)
async def save_system_config(payload: SystemConfigUpdate, engine: AssetSyncEngine = Depends(get_engine)):
    """Merge key/value settings (keys not sent are kept)."""
    return respond(await engine.save_system_config(payload.values))


# ============================================================
# Backup & setup
# ============================================================

@router.get("/backup", response_model=ActionResult)
async def export_all(engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.export_all())


@router.post("/backup", response_model=ActionResult)
async def import_all(payload: BackupPayload, engine: AssetSyncEngine = Depends(get_engine)):
    """Restore a backup. Existing records of each table are replaced."""
    logger.warning(f"Restoring backup exported {payload.export_date} from {payload.source_type}")
    return respond(await engine.import_all(payload))


@router.post("/initialize", response_model=ActionResult)
async def initialize_workspace(engine: AssetSyncEngine = Depends(get_engine)):
    return respond(await engine.initialize_workspace())
