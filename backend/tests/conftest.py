"""
Shared fixtures: settings, emulated backends, workspaces and engines.
"""
import httpx
import pytest

from eduasset.config import Settings, get_settings
from eduasset.repositories import SheetsWorkspace, build_firestore_workspace
from eduasset.services.asset_sync import AssetSyncEngine
from eduasset.services.backend_selector import ClientRegistry
from eduasset.services.backends import FirestoreAdapter, SheetsAdapter
from tests.emulators import (
    FIRESTORE_URL,
    SHEETS_URL,
    FakeCredentials,
    FirestoreEmulator,
    SheetsEmulator,
)


@pytest.fixture
def settings():
    return Settings(
        config_secret="test-secret",
        google_spreadsheet_id=None,
        google_service_account_email=None,
        google_private_key=None,
        sheets_api_url=SHEETS_URL,
        firestore_api_url=FIRESTORE_URL,
        firestore_batch_limit=400,
        sheet_chunk_size=10,
        firestore_chunk_size=10,
    )


@pytest.fixture
def sheets_backend():
    return SheetsEmulator("sheet-1")


@pytest.fixture
def firestore_backend():
    return FirestoreEmulator("school-1", "test-key")


@pytest.fixture
def sheets_adapter(sheets_backend, settings):
    return SheetsAdapter(
        sheets_backend.spreadsheet_id,
        FakeCredentials(),
        base_url=settings.sheets_api_url,
        transport=httpx.MockTransport(sheets_backend.handler),
    )


@pytest.fixture
def firestore_adapter(firestore_backend, settings):
    return FirestoreAdapter(
        project_id=firestore_backend.project_id,
        api_key=firestore_backend.api_key,
        base_url=settings.firestore_api_url,
        batch_limit=settings.firestore_batch_limit,
        transport=httpx.MockTransport(firestore_backend.handler),
    )


@pytest.fixture
def sheets_workspace(sheets_adapter, settings):
    return SheetsWorkspace(sheets_adapter, settings.sheet_chunk_size)


@pytest.fixture
def firestore_workspace(firestore_adapter, settings):
    return build_firestore_workspace(firestore_adapter, settings.firestore_chunk_size)


@pytest.fixture(params=["sheets", "firebase"])
def workspace(request):
    """Runs the test once per backend."""
    if request.param == "sheets":
        return request.getfixturevalue("sheets_workspace")
    return request.getfixturevalue("firestore_workspace")


@pytest.fixture
def engine(workspace, settings):
    return AssetSyncEngine(workspace, settings)


@pytest.fixture
def registry(settings, sheets_backend, firestore_backend):
    """Registry whose adapters reach both emulators through one transport."""
    def route(request: httpx.Request) -> httpx.Response:
        if request.url.host == httpx.URL(SHEETS_URL).host:
            return sheets_backend.handler(request)
        return firestore_backend.handler(request)

    return ClientRegistry(settings, transport=httpx.MockTransport(route), credentials=FakeCredentials())


@pytest.fixture
def app(settings, registry):
    from eduasset.main import app as fastapi_app

    fastapi_app.state.registry = registry
    fastapi_app.dependency_overrides[get_settings] = lambda: settings
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.registry = None


@pytest.fixture
def backend(workspace, request):
    """The emulator behind the parametrized workspace."""
    if workspace.kind == "sheets":
        return request.getfixturevalue("sheets_backend")
    return request.getfixturevalue("firestore_backend")
