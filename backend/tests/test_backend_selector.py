"""Config blob handling and per-request workspace resolution."""
from datetime import timedelta

import pytest

from eduasset.schemas.results import ErrorCode
from eduasset.services.asset_sync import AssetSyncEngine
from eduasset.services.backend_selector import (
    UNCONFIGURED,
    AppConfig,
    FirebaseConfig,
    SheetConfig,
    decode_config,
    encode_config,
    resolve_workspace,
)
from eduasset.models.device import DeviceCreate

SHEETS_CONFIG = AppConfig(db_type="sheets", sheet=SheetConfig(spreadsheet_id="sheet-1"))
FIREBASE_CONFIG = AppConfig(
    db_type="firebase",
    firebase=FirebaseConfig(api_key="test-key", project_id="school-1", app_id="1:123:web:abc"),
)


class TestConfigBlob:

    def test_round_trip(self, settings):
        token = encode_config(FIREBASE_CONFIG, settings)
        decoded = decode_config(token, settings)
        assert decoded.db_type == "firebase"
        assert decoded.firebase.project_id == "school-1"
        assert decoded.firebase.app_id == "1:123:web:abc"
        assert decoded.tenant_key == "firebase:school-1"

    def test_wrong_signature_reads_as_absent(self, settings):
        token = encode_config(SHEETS_CONFIG, settings)
        other = settings.model_copy(update={"config_secret": "another-secret"})
        assert decode_config(token, other) is None

    def test_expired_blob_reads_as_absent(self, settings):
        token = encode_config(SHEETS_CONFIG, settings, expires_delta=timedelta(seconds=-10))
        assert decode_config(token, settings) is None

    def test_garbage_reads_as_absent(self, settings):
        assert decode_config("not-a-token", settings) is None

    def test_tenant_key_needs_matching_section(self):
        assert AppConfig(db_type="sheets").tenant_key is None
        assert AppConfig(db_type="firebase", sheet=SheetConfig(spreadsheet_id="x")).tenant_key is None


class TestResolution:

    def test_config_selects_backend(self, registry):
        assert resolve_workspace(registry, SHEETS_CONFIG).kind == "sheets"
        assert resolve_workspace(registry, FIREBASE_CONFIG).kind == "firebase"

    def test_workspaces_are_cached_per_tenant(self, registry):
        first = resolve_workspace(registry, FIREBASE_CONFIG)
        assert resolve_workspace(registry, FIREBASE_CONFIG) is first
        assert len(registry) == 1

    def test_override_wins_over_config(self, registry):
        workspace = resolve_workspace(registry, FIREBASE_CONFIG, override_id="sheet-2")
        assert workspace.kind == "sheets"
        assert workspace.tenant_id == "sheet-2"

    def test_default_spreadsheet_is_the_fallback(self, registry):
        assert resolve_workspace(registry, None) is UNCONFIGURED
        registry.settings = registry.settings.model_copy(update={"google_spreadsheet_id": "sheet-1"})
        assert resolve_workspace(registry, None).tenant_id == "sheet-1"

    def test_sheets_without_credentials_is_unconfigured(self, settings):
        from eduasset.services.backend_selector import ClientRegistry

        registry = ClientRegistry(settings)
        assert resolve_workspace(registry, SHEETS_CONFIG) is UNCONFIGURED
        assert len(registry) == 0


class TestUnconfigured:

    @pytest.fixture
    def engine(self, settings):
        return AssetSyncEngine(UNCONFIGURED, settings)

    async def test_reads_return_empty_results(self, engine):
        data = await engine.fetch_asset_data()
        assert data.success
        assert data.data["devices"] == []
        assert (await engine.list_zones()).data == []
        assert (await engine.list_maps()).data == ["default"]
        assert (await engine.fetch_map_configuration()).data["zones"] == []
        assert (await engine.list_loans()).data == []

    async def test_writes_report_not_configured(self, engine):
        result = await engine.register_device(DeviceCreate(name="PC"))
        assert not result.success
        assert result.error_code == ErrorCode.NOT_CONFIGURED

        sync = await engine.update_device("D1", {"install_location": "Room A"})
        assert sync.primary.error_code == ErrorCode.NOT_CONFIGURED

    async def test_sheets_permission_error_is_reported(self, sheets_workspace, sheets_backend, settings):
        sheets_backend.denied = True
        result = await AssetSyncEngine(sheets_workspace, settings).fetch_asset_data()
        assert not result.success
        assert result.error_code == ErrorCode.PERMISSION_DENIED
