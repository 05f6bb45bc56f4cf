"""
EduAsset - Main Application Entry Point
School asset management backend over Google Sheets or Firestore
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eduasset.config import get_settings
from eduasset.routers import (
    accounts_router,
    devices_router,
    health_router,
    instances_router,
    loans_router,
    maps_router,
    software_router,
    system_router,
)
from eduasset.services.backend_selector import ClientRegistry

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_name}...")

    # Tests may install a registry wired to fake transports before startup
    if getattr(app.state, "registry", None) is None:
        app.state.registry = ClientRegistry(settings)
    if settings.google_spreadsheet_id:
        logger.info(f"Default spreadsheet: {settings.google_spreadsheet_id}")
    else:
        logger.info("No default spreadsheet; requests without a config blob run unconfigured")

    yield

    logger.info(f"Shutting down {settings.app_name} ({len(app.state.registry)} workspaces cached)")


app = FastAPI(
    title=settings.app_name,
    description="Asset, floor plan and loan management for school IT equipment",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware for frontend communication
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health_router, prefix="/api")
app.include_router(devices_router, prefix="/api")
app.include_router(instances_router, prefix="/api")
app.include_router(maps_router, prefix="/api")
app.include_router(software_router, prefix="/api")
app.include_router(accounts_router, prefix="/api")
app.include_router(loans_router, prefix="/api")
app.include_router(system_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "docs": "/docs",
    }
