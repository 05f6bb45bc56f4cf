"""Full export/import and header mapping for device imports."""
from eduasset.models.device import DeviceCreate
from eduasset.models.location import Location
from eduasset.models.records import Account, Software
from eduasset.schemas.records import BackupPayload
from eduasset.services import backup
from eduasset.services.import_mapping import map_import_row, map_import_rows, normalize_header


async def populate(engine):
    await engine.register_device(DeviceCreate(id="D1", name="Laptop", quantity=2))
    await engine.update_device("D1", {"install_location": "Room A"})
    await engine.save_software(Software(id="S1", name="Office", license_key="XXXX"))
    await engine.save_account(Account(service_name="NEIS", username="admin"))
    await engine.sync_zones([Location(id="Z1", name="Room A", pin_x=5, pin_y=5)])
    await engine.save_map_configuration("default", "map-image-data", [Location(id="Z1", name="Room A", pin_x=5, pin_y=5)])
    await engine.save_system_config({"schoolName": "Hanbit Middle School"})


async def test_export_contains_every_table(engine, workspace):
    await populate(engine)
    payload = await backup.export_all(workspace)

    assert payload.version == "1.0"
    assert payload.source_type in ("google-sheets", "firebase")
    data = payload.data
    assert [d["id"] for d in data["devices"]] == ["D1"]
    assert data["deviceInstances"][0]["locationName"] == "Room A"
    assert data["software"][0]["licenseKey"] == "XXXX"
    assert data["accounts"][0]["serviceName"] == "NEIS"
    assert data["locations"][0]["id"] == "Z1"
    assert data["systemConfig"]["schoolName"] == "Hanbit Middle School"
    assert data["mapImage"] == "map-image-data"


async def test_import_into_the_other_backend(engine, workspace, request):
    await populate(engine)
    exported = await backup.export_all(workspace)

    other = "firestore_workspace" if workspace.kind == "sheets" else "sheets_workspace"
    target = request.getfixturevalue(other)
    counts = await backup.import_all(target, BackupPayload.model_validate(exported.model_dump(by_alias=True)))

    assert counts["devices"] == 1
    assert counts["locations"] == 1
    assert [d.id for d in await target.devices.list()] == ["D1"]
    assert (await target.instances.list())[0].location_name == "Room A"
    assert [s.license_key for s in await target.software.list()] == ["XXXX"]
    assert (await target.system_config.load())["schoolName"] == "Hanbit Middle School"
    assert (await target.maps.load("default")).map_image == "map-image-data"
    assert [loc.name for loc in await target.locations.list()] == ["Room A"]



async def test_import_accepts_legacy_credentials_key(sheets_workspace):
    payload = BackupPayload(data={
        "credentials": [{"id": "A1", "serviceName": "Google Classroom"}],
        "devices": [{"id": "D1"}, {"quantity": 3}],
    })
    counts = await backup.import_all(sheets_workspace, payload)
    assert counts["accounts"] == 1
    assert counts["devices"] == 1
    assert [a.service_name for a in await sheets_workspace.accounts.list()] == ["Google Classroom"]


def test_normalize_header():
    assert normalize_header(" Install Location ") == "installlocation"
    assert normalize_header("기기명(별칭)") == "기기명별칭"


def test_map_import_row_accepts_mixed_headers():
    row = {"ID": "D9", "installLocation": "Lab", "상태": "고장/폐기", "Unit Price": "1,000", "memo": "x", "IP": None}
    assert map_import_row(row) == {
        "id": "D9",
        "install_location": "Lab",
        "status": "고장/폐기",
        "unit_price": "1,000",
    }


def test_map_import_rows_drops_empty_rows():
    rows = [{"Name": "PC"}, {"Name": "  "}, {}]
    assert map_import_rows(rows) == [{"name": "PC"}]
