"""
Synchronization engine: fan-out, distribution, zone rename and deletion.

Every test runs once against each emulated backend.
"""
from eduasset.models.device import TEXT_ONLY, DeviceCreate
from eduasset.models.location import Location
from eduasset.schemas.device import DistributionEntry
from eduasset.schemas.map import ZoneRename
from eduasset.schemas.results import ErrorCode
from eduasset.services.asset_sync import DISTRIBUTION_NOTE, FANOUT_NOTE, resolve_location


async def instances_of(engine, device_id):
    result = await engine.get_device_instances(device_id)
    assert result.success
    return result.data


async def add_device(engine, device_id, quantity=1, **fields):
    result = await engine.register_device(DeviceCreate(id=device_id, quantity=quantity, **fields))
    assert result.success, result.error
    return result


# ============================================================
# Registration
# ============================================================

async def test_register_device_applies_defaults(engine, workspace):
    result = await engine.register_device(DeviceCreate(name="교무실 PC"))
    assert result.success
    device = await workspace.devices.get(result.id)
    assert device.name == "교무실 PC"
    assert device.category == "기타"
    assert device.status == "사용 가능"
    assert device.acquisition_division == "전체"
    assert device.quantity == 1


async def test_bulk_registration_above_batch_cap(engine, workspace, backend):
    devices = [DeviceCreate(id=f"dev-{i:04d}", name=f"Tablet {i}") for i in range(1001)]
    result = await engine.register_bulk_devices(devices)

    assert result.success
    assert result.count == 1001
    stored = await workspace.devices.list()
    assert len(stored) == 1001
    assert len({d.id for d in stored}) == 1001
    if workspace.kind == "firebase":
        assert all(size <= 400 for size in backend.commit_sizes)
    else:
        assert backend.count("POST", ":append") == 3


async def test_import_devices_maps_korean_headers(engine, workspace):
    rows = [
        {"품명": "노트북", "모델명": "LG Gram", "수량": "4", "비고": "ignored"},
        {"설치장소": ""},
    ]
    result = await engine.import_devices(rows)
    assert result.success
    assert result.count == 1
    device = (await workspace.devices.list())[0]
    assert device.category == "노트북"
    assert device.model == "LG Gram"
    assert device.quantity == 4


async def test_import_without_usable_rows_is_invalid(engine):
    result = await engine.import_devices([{"unknown": "x"}])
    assert not result.success
    assert result.error_code == ErrorCode.INVALID


# ============================================================
# Install-location fan-out
# ============================================================

async def test_fanout_places_then_clears(engine, workspace):
    await add_device(engine, "D1", quantity=3)

    result = await engine.update_device("D1", {"install_location": "Room A", "quantity": 2})
    assert result.success
    assert result.secondary_step("instance_fanout").success

    instances = await instances_of(engine, "D1")
    assert len(instances) == 1
    assert instances[0]["deviceId"] == "D1"
    assert instances[0]["locationName"] == "Room A"
    assert instances[0]["locationId"] == TEXT_ONLY
    assert instances[0]["quantity"] == 2
    assert instances[0]["notes"] == FANOUT_NOTE
    assert (await workspace.devices.get("D1")).quantity == 2

    result = await engine.update_device("D1", {"install_location": ""})
    assert result.success
    assert await instances_of(engine, "D1") == []


async def test_fanout_is_idempotent(engine):
    await add_device(engine, "D1", quantity=2)
    for _ in range(3):
        result = await engine.update_device("D1", {"install_location": "Library"})
        assert result.success
    instances = await instances_of(engine, "D1")
    assert len(instances) == 1
    assert instances[0]["quantity"] == 2


async def test_fanout_resolves_known_zone(engine):
    await engine.sync_zones([Location(id="Z7", name="Science Lab", pin_x=10, pin_y=10)])
    await add_device(engine, "D1")
    await engine.update_device("D1", {"install_location": "  Science Lab  "})
    instances = await instances_of(engine, "D1")
    assert instances[0]["locationId"] == "Z7"
    assert instances[0]["locationName"] == "Science Lab"


async def test_fanout_leaves_other_devices_alone(engine):
    await add_device(engine, "D1")
    await add_device(engine, "D2")
    await engine.update_device("D2", {"install_location": "Gym"})
    await engine.update_device("D1", {"install_location": "Room A"})
    await engine.update_device("D1", {"install_location": ""})
    assert len(await instances_of(engine, "D2")) == 1


async def test_patch_without_location_skips_fanout(engine, workspace):
    await add_device(engine, "D1")
    await engine.update_device("D1", {"install_location": "Room A"})

    result = await engine.update_device("D1", {"ip": "10.0.0.5"})
    assert result.success
    assert result.secondary == []
    device = await workspace.devices.get("D1")
    assert device.ip == "10.0.0.5"
    assert device.install_location == "Room A"
    assert len(await instances_of(engine, "D1")) == 1


async def test_update_missing_device_is_not_found(engine):
    result = await engine.update_device("ghost", {"install_location": "Room A"})
    assert not result.success
    assert result.primary.error_code == ErrorCode.NOT_FOUND
    assert result.secondary == []


async def test_fanout_failure_keeps_primary_success(engine, workspace, backend):
    await add_device(engine, "D1")
    backend.fail_writes_to.add("DeviceInstances")

    result = await engine.update_device("D1", {"install_location": "Room A", "name": "Projector"})

    assert result.success
    assert result.primary.success
    fanout = result.secondary_step("instance_fanout")
    assert not fanout.success
    assert fanout.error_code == ErrorCode.BACKEND_ERROR
    assert (await workspace.devices.get("D1")).name == "Projector"


# ============================================================
# Explicit distribution
# ============================================================

async def test_distribution_replaces_instances(engine, workspace):
    await add_device(engine, "D1", quantity=5)
    await engine.update_device("D1", {"install_location": "Old Room"})

    result = await engine.update_device_with_distribution("D1", {"name": "Chromebook"}, [
        DistributionEntry(location_name="Room A", quantity=3),
        DistributionEntry(location_name="Room B", quantity=2),
        DistributionEntry(location_name="Room C", quantity=0),
    ])

    assert result.success
    assert result.primary.warning is None
    instances = await instances_of(engine, "D1")
    assert sorted((i["locationName"], i["quantity"]) for i in instances) == [("Room A", 3), ("Room B", 2)]
    assert all(i["notes"] == DISTRIBUTION_NOTE for i in instances)
    device = await workspace.devices.get("D1")
    assert device.name == "Chromebook"
    assert device.install_location == "Room A(3), Room B(2)"


async def test_distribution_sum_mismatch_is_a_warning(engine):
    await add_device(engine, "D1", quantity=5)
    result = await engine.update_device_with_distribution("D1", {}, [
        DistributionEntry(location_name="Room A", quantity=2),
    ])
    assert result.success
    assert "does not match" in result.primary.warning


async def test_distribution_for_missing_device(engine):
    result = await engine.update_device_with_distribution("ghost", {}, [])
    assert result.primary.error_code == ErrorCode.NOT_FOUND


# ============================================================
# Status & deletion
# ============================================================

async def test_set_devices_status(engine, workspace):
    await add_device(engine, "D1")
    await add_device(engine, "D2")
    await add_device(engine, "D3")
    result = await engine.set_devices_status(["D1", "D3"], "수리/점검")
    assert result.success
    assert result.count == 2
    statuses = {d.id: d.status for d in await workspace.devices.list()}
    assert statuses == {"D1": "수리/점검", "D2": "사용 가능", "D3": "수리/점검"}


async def test_delete_devices_removes_their_instances(engine, workspace):
    await add_device(engine, "D1")
    await add_device(engine, "D2")
    await engine.update_device("D1", {"install_location": "Room A"})
    await engine.update_device("D2", {"install_location": "Room B"})

    result = await engine.delete_device("D1")

    assert result.success
    assert result.secondary_step("instance_cleanup").success
    assert [d.id for d in await workspace.devices.list()] == ["D2"]
    assert [i.device_id for i in await workspace.instances.list()] == ["D2"]


async def test_delete_counts_only_existing_devices(engine, workspace):
    await add_device(engine, "D1")

    missing = await engine.delete_device("ghost")
    assert missing.success
    assert missing.primary.count == 0

    mixed = await engine.delete_devices(["D1", "ghost"])
    assert mixed.primary.count == 1
    assert await workspace.devices.list() == []


async def test_delete_all_devices(engine, workspace):
    await add_device(engine, "D1")
    await engine.update_device("D1", {"install_location": "Room A"})
    result = await engine.delete_all_devices()
    assert result.success
    assert await workspace.devices.list() == []
    assert await workspace.instances.list() == []


# ============================================================
# Instances
# ============================================================

async def test_instance_lifecycle_refreshes_summary(engine, workspace):
    await add_device(engine, "D1", quantity=3)

    created = await engine.create_instance("D1", "Room A", quantity=2)
    assert created.success
    assert created.primary.warning is None
    assert (await workspace.devices.get("D1")).install_location == "Room A(2)"

    updated = await engine.update_instance(created.primary.id, {"quantity": 3})
    assert updated.success
    assert (await workspace.devices.get("D1")).install_location == "Room A(3)"

    deleted = await engine.delete_instance(created.primary.id)
    assert deleted.success
    assert deleted.primary.count == 1
    assert (await workspace.devices.get("D1")).install_location == ""


async def test_over_allocation_is_reported(engine):
    await add_device(engine, "D1", quantity=1)
    result = await engine.create_instance("D1", "Room A", quantity=4)
    assert result.success
    assert "exceeds" in result.primary.warning


async def test_instance_for_unknown_device_is_rejected(engine, workspace):
    result = await engine.create_instance("ghost", "Room A", quantity=2)

    assert not result.success
    assert result.primary.error_code == ErrorCode.NOT_FOUND
    assert await workspace.instances.list_for_device("ghost") == []


async def test_instance_cannot_move_to_unknown_device(engine, workspace):
    await add_device(engine, "D1", quantity=2)
    created = await engine.create_instance("D1", "Room A", quantity=2)

    result = await engine.update_instance(created.primary.id, {"device_id": "ghost"})

    assert not result.success
    assert result.primary.error_code == ErrorCode.NOT_FOUND
    assert (await workspace.instances.get(created.primary.id)).device_id == "D1"


async def test_update_missing_instance_is_not_found(engine):
    result = await engine.update_instance("inst-ghost", {"quantity": 2})
    assert result.primary.error_code == ErrorCode.NOT_FOUND


async def test_moving_instance_refreshes_both_devices(engine, workspace):
    await add_device(engine, "D1", quantity=2)
    await add_device(engine, "D2", quantity=2)
    created = await engine.create_instance("D1", "Room A", quantity=2)
    assert (await workspace.devices.get("D1")).install_location == "Room A(2)"

    result = await engine.update_instance(created.primary.id, {"device_id": "D2"})

    assert result.success
    assert result.secondary_step("previous_location_summary").success
    assert (await workspace.devices.get("D1")).install_location == ""
    assert (await workspace.devices.get("D2")).install_location == "Room A(2)"
    assert await workspace.instances.list_for_device("D1") == []


async def test_delete_missing_instance_is_a_no_op(engine):
    result = await engine.delete_instance("inst-ghost")
    assert result.success
    assert result.primary.count == 0


# ============================================================
# Zones
# ============================================================

async def test_zone_rename_propagates_to_instances(engine, workspace):
    await engine.sync_zones([Location(id="Z1", name="Old", pin_x=5, pin_y=5, width=10, height=10)])
    await add_device(engine, "D1", quantity=2)
    await engine.create_instance("D1", "Old", location_id="Z1")
    await engine.create_instance("D1", "Old", location_id="Z1")

    result = await engine.rename_zone("Z1", "Old", "New")

    assert result.success
    assert result.secondary_step("instance_names").success
    instances = await workspace.instances.list_for_device("D1")
    assert len(instances) == 2
    assert all(i.location_name == "New" for i in instances)
    names = {loc.id: loc.name for loc in await workspace.locations.list()}
    assert names["Z1"] == "New"
    assert (await workspace.devices.get("D1")).install_location == "New(1), New(1)"


async def test_zone_rename_updates_stored_map(engine, workspace):
    zones = [Location(id="Z1", name="Old", pin_x=1, pin_y=1), Location(id="Z2", name="Hall", pin_x=50, pin_y=50)]
    await engine.save_map_configuration("default", "img", zones)
    await engine.sync_zones(zones)

    result = await engine.rename_zone("Z1", "Old", "New")

    assert result.secondary_step("map_blob").success
    stored = await workspace.maps.load("default")
    assert [z.name for z in stored.zones] == ["New", "Hall"]


async def test_rename_batch_reports_each_change(engine):
    await engine.sync_zones([Location(id="Z1", name="A"), Location(id="Z2", name="B")])
    results = await engine.rename_zones([
        ZoneRename(zone_id="Z1", old_name="A", new_name="A2"),
        ZoneRename(zone_id="Z2", old_name="B", new_name="B2"),
    ])
    assert [r.success for r in results] == [True, True]
    names = {z["id"]: z["name"] for z in (await engine.list_zones()).data}
    assert names == {"Z1": "A2", "Z2": "B2"}


async def test_sync_keeps_custom_names(engine):
    await engine.sync_zones([Location(id="Z1", name="Room 101")])
    await engine.rename_zone("Z1", "Room 101", "Music Room")
    await engine.sync_zones([Location(id="Z1", name="Room 101"), Location(id="Z2", name="Room 102")])

    names = {z["id"]: z["name"] for z in (await engine.list_zones()).data}
    assert names == {"Z1": "Music Room", "Z2": "Room 102"}


async def test_delete_zones_drops_instances(engine, workspace):
    await engine.sync_zones([Location(id="Z1", name="A"), Location(id="Z2", name="B")])
    await add_device(engine, "D1", quantity=2)
    await engine.create_instance("D1", "A", location_id="Z1")
    await engine.create_instance("D1", "B", location_id="Z2")

    result = await engine.delete_zones(["Z1"])

    assert result.success
    assert [loc.id for loc in await workspace.locations.list()] == ["Z2"]
    assert [i.location_id for i in await workspace.instances.list()] == ["Z2"]


async def test_delete_zones_counts_only_existing(engine):
    await engine.sync_zones([Location(id="Z1", name="A")])
    result = await engine.delete_zones(["Z1", "ghost"])
    assert result.primary.count == 1


# ============================================================
# Location resolution
# ============================================================

def test_resolve_location_prefers_id_then_name():
    locations = [Location(id="Z1", name="Room A"), Location(id="Z2", name="Room B")]
    assert resolve_location(locations, "Z2", "") == ("Z2", "Room B")
    assert resolve_location(locations, None, " Room A ") == ("Z1", "Room A")
    assert resolve_location(locations, "Z9", "Hallway") == (TEXT_ONLY, "Hallway")
    assert resolve_location(locations, TEXT_ONLY, "Room B") == ("Z2", "Room B")
