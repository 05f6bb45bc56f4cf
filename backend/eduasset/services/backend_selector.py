"""
EduAsset - Backend Selector
Resolves the workspace (and so the storage backend) serving a request

The backend choice travels with each request as a signed config blob
(cookie or header). Adapters are cached per tenant in a ClientRegistry
created at application startup.
"""
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Literal, Optional

import httpx
from fastapi import Depends, Request
from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from eduasset.config import Settings, get_settings
from eduasset.repositories import (
    SheetsWorkspace,
    Workspace,
    build_firestore_workspace,
    build_unconfigured_workspace,
)
from eduasset.services.asset_sync import AssetSyncEngine
from eduasset.services.backends.firestore import FirestoreAdapter
from eduasset.services.backends.sheets import SheetsAdapter, load_service_account

logger = logging.getLogger(__name__)

UNCONFIGURED = build_unconfigured_workspace()


# ============================================================
# Config blob
# ============================================================

class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="ignore")


class SheetConfig(_ConfigModel):
    spreadsheet_id: str
    service_account: Optional[Dict[str, Any]] = None


class FirebaseConfig(_ConfigModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="allow")

    api_key: str
    project_id: str
    auth_domain: Optional[str] = None
    storage_bucket: Optional[str] = None
    messaging_sender_id: Optional[str] = None
    app_id: Optional[str] = None


class AppConfig(_ConfigModel):
    """Which backend a tenant uses and how to reach it."""
    db_type: Literal["sheets", "firebase"]
    sheet: Optional[SheetConfig] = None
    firebase: Optional[FirebaseConfig] = None

    @property
    def tenant_key(self) -> Optional[str]:
        if self.db_type == "sheets" and self.sheet and self.sheet.spreadsheet_id:
            return f"sheets:{self.sheet.spreadsheet_id}"
        if self.db_type == "firebase" and self.firebase and self.firebase.project_id:
            return f"firebase:{self.firebase.project_id}"
        return None


def encode_config(
    config: AppConfig,
    settings: Optional[Settings] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign a config blob for the cookie/header."""
    settings = settings or get_settings()
    to_encode = config.model_dump(by_alias=True, exclude_none=True)
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.config_expire_days))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.config_secret, algorithm=settings.config_algorithm)


def decode_config(token: str, settings: Optional[Settings] = None) -> Optional[AppConfig]:
    """Verify and parse a config blob. Invalid, expired or malformed blobs read as None."""
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.config_secret, algorithms=[settings.config_algorithm])
    except JWTError as e:
        logger.debug(f"Rejected config blob: {e}")
        return None
    try:
        return AppConfig.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Config blob has an unexpected shape: {e.error_count()} errors")
        return None


# ============================================================
# Client registry
# ============================================================

class ClientRegistry:
    """
    Process-wide cache of workspaces keyed by tenant.

    Entries are created on first use and never evicted. The lock guards
    creation when handlers run in worker threads.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        credentials=None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._credentials = credentials
        self._workspaces: Dict[str, Workspace] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._workspaces)

    def workspace_for(self, config: AppConfig) -> Workspace:
        key = config.tenant_key
        if key is None:
            return UNCONFIGURED

        with self._lock:
            workspace = self._workspaces.get(key)
            if workspace is None:
                workspace = self._build(config)
                if not workspace.configured:
                    return workspace
                self._workspaces[key] = workspace
                logger.info(f"Registered workspace {key}")
            return workspace

    def _build(self, config: AppConfig) -> Workspace:
        if config.db_type == "firebase":
            adapter = FirestoreAdapter(
                project_id=config.firebase.project_id,
                api_key=config.firebase.api_key,
                base_url=self.settings.firestore_api_url,
                timeout=self.settings.http_timeout,
                batch_limit=self.settings.firestore_batch_limit,
                transport=self._transport,
            )
            return build_firestore_workspace(adapter, self.settings.firestore_chunk_size)

        credentials = self._credentials or load_service_account(
            info=config.sheet.service_account,
            client_email=self.settings.google_service_account_email,
            private_key=self.settings.google_private_key,
        )
        if credentials is None:
            logger.warning(f"No service account for spreadsheet {config.sheet.spreadsheet_id}")
            return UNCONFIGURED
        adapter = SheetsAdapter(
            config.sheet.spreadsheet_id,
            credentials,
            base_url=self.settings.sheets_api_url,
            timeout=self.settings.http_timeout,
            transport=self._transport,
        )
        return SheetsWorkspace(adapter, self.settings.sheet_chunk_size)


def resolve_workspace(
    registry: ClientRegistry,
    config: Optional[AppConfig],
    override_id: Optional[str] = None,
) -> Workspace:
    """
    Resolution order: explicit override spreadsheet id, then the request's
    config blob, then the deployment default spreadsheet, then unconfigured.
    """
    if override_id:
        return registry.workspace_for(AppConfig(db_type="sheets", sheet=SheetConfig(spreadsheet_id=override_id)))
    if config is not None:
        return registry.workspace_for(config)
    if registry.settings.google_spreadsheet_id:
        return registry.workspace_for(
            AppConfig(db_type="sheets", sheet=SheetConfig(spreadsheet_id=registry.settings.google_spreadsheet_id))
        )
    return UNCONFIGURED


# ============================================================
# FastAPI dependencies
# ============================================================

def get_registry(request: Request) -> ClientRegistry:
    return request.app.state.registry


def get_request_config(request: Request, settings: Settings = Depends(get_settings)) -> Optional[AppConfig]:
    token = request.headers.get(settings.config_header_name) or request.cookies.get(settings.config_cookie_name)
    if not token:
        return None
    return decode_config(token, settings)


def get_workspace(
    request: Request,
    registry: ClientRegistry = Depends(get_registry),
    config: Optional[AppConfig] = Depends(get_request_config),
) -> Workspace:
    return resolve_workspace(registry, config, request.query_params.get("sheetId"))


def get_engine(
    workspace: Workspace = Depends(get_workspace),
    settings: Settings = Depends(get_settings),
) -> AssetSyncEngine:
    return AssetSyncEngine(workspace, settings)
