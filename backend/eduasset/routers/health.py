"""
EduAsset - Health Check Router
"""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from eduasset.config import get_settings
from eduasset.repositories.base import Workspace
from eduasset.services.backend_selector import ClientRegistry, get_registry, get_workspace
from eduasset.services.backends import BackendError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])
settings = get_settings()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    app_name: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check response."""
    status: str
    services: dict


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="healthy", app_name=settings.app_name)


@router.get("/health/detailed", response_model=DetailedHealthResponse)
async def detailed_health_check(
    workspace: Workspace = Depends(get_workspace),
    registry: ClientRegistry = Depends(get_registry),
):
    """
    Detailed health check.
    Reads the system settings of the request's workspace to verify the
    storage backend is reachable.
    """
    services = {
        "api": {"status": "healthy"},
        "registry": {"status": "healthy", "workspaces": len(registry)},
    }

    if not workspace.configured:
        services["storage"] = {"status": "not_configured"}
    else:
        try:
            await workspace.system_config.load()
            services["storage"] = {"status": "healthy", "type": workspace.kind, "tenant": workspace.tenant_id}
        except BackendError as e:
            logger.warning(f"Storage health check failed for {workspace}: {e.message}")
            services["storage"] = {"status": "unhealthy", "type": workspace.kind, "error": e.message}

    overall = "healthy"
    if any(s.get("status") == "unhealthy" for s in services.values()):
        overall = "degraded"
    return DetailedHealthResponse(status=overall, services=services)
