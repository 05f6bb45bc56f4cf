"""
EduAsset - API Routers
"""
from eduasset.routers.accounts import router as accounts_router
from eduasset.routers.devices import router as devices_router
from eduasset.routers.health import router as health_router
from eduasset.routers.instances import router as instances_router
from eduasset.routers.loans import router as loans_router
from eduasset.routers.maps import router as maps_router
from eduasset.routers.software import router as software_router
from eduasset.routers.system import router as system_router

__all__ = [
    "accounts_router",
    "devices_router",
    "health_router",
    "instances_router",
    "loans_router",
    "maps_router",
    "software_router",
    "system_router",
]
