"""HTTP surface smoke tests through FastAPI's TestClient."""
import pytest
from fastapi.testclient import TestClient

FIREBASE_BODY = {"dbType": "firebase", "firebase": {"apiKey": "test-key", "projectId": "school-1"}}


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def configured(client):
    response = client.post("/api/system/config-blob", json=FIREBASE_BODY)
    assert response.status_code == 200
    return client


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_detailed_health_reports_storage(configured):
    body = configured.get("/api/health/detailed").json()
    assert body["status"] == "healthy"
    assert body["services"]["storage"]["type"] == "firebase"


def test_config_blob_sets_cookie(client, settings):
    response = client.post("/api/system/config-blob", json=FIREBASE_BODY)
    body = response.json()
    assert body["configured"] is True
    assert body["db_type"] == "firebase"
    assert settings.config_cookie_name in response.cookies

    server = client.get("/api/system/server-type").json()
    assert server == {"configured": True, "db_type": "firebase", "tenant_id": "school-1"}


def test_config_blob_header(client, settings):
    token = client.post("/api/system/config-blob", json=FIREBASE_BODY).json()["token"]
    client.cookies.clear()
    server = client.get("/api/system/server-type", headers={settings.config_header_name: token}).json()
    assert server["db_type"] == "firebase"


def test_sheet_override_query_param(configured):
    server = configured.get("/api/system/server-type", params={"sheetId": "sheet-1"}).json()
    assert server["db_type"] == "sheets"
    assert server["tenant_id"] == "sheet-1"


def test_clearing_config_degrades_to_empty_reads(configured):
    configured.delete("/api/system/config-blob")
    configured.cookies.clear()

    response = configured.get("/api/devices")
    assert response.status_code == 200
    assert response.json()["data"]["devices"] == []

    write = configured.post("/api/devices", json={"name": "PC"})
    assert write.status_code == 200
    assert write.json()["error_code"] == "NOT_CONFIGURED"


def test_device_flow(configured):
    created = configured.post("/api/devices", json={"id": "D1", "name": "Projector", "quantity": 3})
    assert created.status_code == 200
    assert created.json()["id"] == "D1"

    updated = configured.patch("/api/devices/D1", json={"installLocation": "Room A", "quantity": 2})
    assert updated.status_code == 200
    assert updated.json()["success"] is True

    instances = configured.get("/api/devices/D1/instances").json()["data"]
    assert [(i["locationName"], i["quantity"]) for i in instances] == [("Room A", 2)]

    devices = configured.get("/api/devices").json()["data"]["devices"]
    assert devices[0]["installLocation"] == "Room A(2)"

    deleted = configured.delete("/api/devices/D1")
    assert deleted.status_code == 200
    assert configured.get("/api/devices/D1/instances").json()["data"] == []


def test_missing_device_is_404(configured):
    response = configured.patch("/api/devices/ghost", json={"name": "x"})
    assert response.status_code == 404


def test_bulk_and_status(configured):
    bulk = configured.post("/api/devices/bulk", json={"devices": [{"id": "A"}, {"id": "B"}]})
    assert bulk.json()["count"] == 2
    status = configured.post("/api/devices/status", json={"deviceIds": ["A", "B"], "status": "분실"})
    assert status.json()["count"] == 2


def test_zone_and_map_routes(configured):
    zones = [{"id": "Z1", "name": "Room A", "pinX": 10, "pinY": 10, "width": 5, "height": 5}]
    assert configured.put("/api/maps/default", json={"mapImage": "img", "zones": zones}).status_code == 200
    assert configured.put("/api/zones", json={"zones": zones}).json()["count"] == 1

    renamed = configured.post("/api/zones/rename-batch", json={
        "changes": [{"zoneId": "Z1", "oldName": "Room A", "newName": "Library"}],
    })
    assert renamed.status_code == 200
    assert renamed.json()[0]["success"] is True

    stored = configured.get("/api/maps/default").json()["data"]
    assert stored["mapImage"] == "img"
    assert stored["zones"][0]["name"] == "Library"
    assert configured.get("/api/maps").json()["data"] == ["default"]
    assert configured.delete("/api/maps/default").status_code == 400


def test_loan_routes(configured):
    configured.post("/api/devices", json={"id": "D1"})
    loan = configured.post("/api/loans", json={
        "deviceId": "D1", "userId": "s-1", "userName": "Lee", "dueDate": "2030-01-01",
    })
    assert loan.status_code == 200
    loan_id = loan.json()["id"]

    assert configured.post("/api/loans", json={
        "deviceId": "D1", "userId": "s-2", "userName": "Park", "dueDate": "2030-01-01",
    }).status_code == 400

    returned = configured.post(f"/api/loans/{loan_id}/return", json={"condition": "Good"})
    assert returned.status_code == 200
    assert configured.post("/api/loans/loan-ghost/return", json={}).status_code == 404


def test_software_and_system_config(configured):
    saved = configured.put("/api/software", json={"name": "Office", "licenseKey": "K-1"})
    assert saved.status_code == 200
    software_id = saved.json()["id"]
    assert configured.get("/api/software").json()["data"][0]["licenseKey"] == "K-1"
    assert configured.delete(f"/api/software/{software_id}").json()["count"] == 1

    configured.put("/api/system/config", json={"values": {"schoolName": "Hanbit"}})
    assert configured.get("/api/system/config").json()["data"] == {"schoolName": "Hanbit"}

    backup = configured.get("/api/system/backup").json()["data"]
    assert backup["data"]["systemConfig"] == {"schoolName": "Hanbit"}
    restored = configured.post("/api/system/backup", json=backup)
    assert restored.status_code == 200
