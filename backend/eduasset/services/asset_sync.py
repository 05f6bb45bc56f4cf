"""
EduAsset - Asset Sync Engine
Keeps devices, device instances and zones consistent on either backend

The engine only talks to the repositories of a Workspace and never looks
at which backend is behind them. It is also the public error boundary:
every method returns an ActionResult (or a SyncResult for operations with
follow-up consistency steps) instead of raising.

Neither backend offers cross-table transactions, so the instance table is
treated as derived data: a device update commits first, then its instance
fan-out runs as a separate best-effort step whose failure is reported in
SyncResult.secondary without touching SyncResult.primary.
"""
import asyncio
import logging
import uuid
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from eduasset.config import Settings, get_settings
from eduasset.models.device import (
    DEFAULT_ACQUISITION_DIVISION,
    DEFAULT_CATEGORY,
    NON_LENDABLE_STATUSES,
    TEXT_ONLY,
    Device,
    DeviceCreate,
    DeviceInstance,
    DeviceStatus,
    location_summary,
    parse_quantity,
)
from eduasset.models.location import Location, MapConfiguration
from eduasset.models.records import Account, Loan, Software
from eduasset.repositories.base import RecordRepository, Workspace
from eduasset.schemas.device import DistributionEntry
from eduasset.schemas.map import ZoneRename
from eduasset.schemas.records import BackupPayload
from eduasset.schemas.results import ActionResult, ErrorCode, SyncResult
from eduasset.services import backup
from eduasset.services.backends.errors import RecordNotFoundError
from eduasset.services.import_mapping import map_import_rows
from eduasset.services.map_chunks import DEFAULT_MAP_ID
from eduasset.services.zone_merge import merge_detected_zones as merge_zones

logger = logging.getLogger(__name__)

FANOUT_NOTE = "Moved via List Edit"
DISTRIBUTION_NOTE = "Distributed from Modal"


def _dump(records: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    return [r.model_dump(by_alias=True) for r in records]


def resolve_location(
    locations: Sequence[Location],
    location_id: Optional[str] = None,
    location_name: str = "",
) -> Tuple[str, str]:
    """
    (location_id, location_name) for a placement.

    Prefers an id match, then an exact (trimmed) name match, else the
    TEXT_ONLY sentinel with the free-text name.
    """
    name = (location_name or "").strip()
    if location_id and location_id != TEXT_ONLY:
        for loc in locations:
            if loc.id == location_id:
                return loc.id, name or loc.name
    if name:
        for loc in locations:
            if (loc.name or "").strip() == name:
                return loc.id, name
    return TEXT_ONLY, name


def new_device(data: DeviceCreate) -> Device:
    """Device from loose input, with registration defaults applied."""
    fields = {k: v for k, v in data.model_dump().items() if v not in (None, "")}
    fields.setdefault("id", str(uuid.uuid4()))
    fields.setdefault("category", DEFAULT_CATEGORY)
    fields.setdefault("status", DeviceStatus.AVAILABLE.value)
    fields.setdefault("acquisition_division", DEFAULT_ACQUISITION_DIVISION)
    fields.setdefault("quantity", 1)
    fields.setdefault("unit_price", "0")
    fields.setdefault("total_amount", "0")
    return Device(**fields)


class AssetSyncEngine:
    """Synchronization engine bound to one tenant's workspace."""

    def __init__(self, workspace: Workspace, settings: Optional[Settings] = None):
        self.workspace = workspace
        self.settings = settings or get_settings()

    # ============================================================
    # Helpers
    # ============================================================

    async def _run(self, step: str, action: Callable[[], Awaitable[ActionResult]]) -> ActionResult:
        try:
            return await action()
        except Exception as e:
            logger.error(f"{step} failed on {self.workspace}: {e}")
            return ActionResult.from_exception(e, step)

    async def _secondary(self, step: str, action: Callable[[], Awaitable[Any]], quiet: bool = False) -> ActionResult:
        """Run a best-effort follow-up step; failures become a failed step result."""
        try:
            data = await action()
            return ActionResult.ok(step, data=data)
        except Exception as e:
            if quiet:
                logger.debug(f"{step} skipped: {e}")
            else:
                logger.warning(f"{step} failed on {self.workspace}: {e}")
            return ActionResult.from_exception(e, step)

    async def _refresh_location_summary(self, device_id: str) -> str:
        """Rewrite the device's installLocation display string from its instances."""
        instances = await self.workspace.instances.list_for_device(device_id)
        summary = location_summary(instances)
        device = await self.workspace.devices.get(device_id)
        if device is not None and device.install_location != summary:
            await self.workspace.devices.update(device_id, {"install_location": summary})
        return summary

    async def _allocation_warning(self, device_id: str) -> Optional[str]:
        device = await self.workspace.devices.get(device_id)
        if device is None:
            return None
        allocated = sum(i.quantity for i in await self.workspace.instances.list_for_device(device_id))
        if allocated > device.quantity:
            return f"Placed quantity {allocated} exceeds the device quantity {device.quantity}"
        return None

    # ============================================================
    # Read model
    # ============================================================

    async def fetch_asset_data(self) -> ActionResult:
        """Devices, instances, software and accounts, with installLocation derived from instances."""
        async def action():
            devices, instances, software, accounts = await asyncio.gather(
                self.workspace.devices.list(),
                self.workspace.instances.list(),
                self.workspace.software.list(),
                self.workspace.accounts.list(),
            )
            by_device: Dict[str, List[DeviceInstance]] = {}
            for inst in instances:
                by_device.setdefault(inst.device_id, []).append(inst)
            devices = [
                d.model_copy(update={"install_location": location_summary(by_device[d.id])})
                if d.id in by_device else d
                for d in devices
            ]
            return ActionResult.ok("fetch_asset_data", data={
                "devices": _dump(devices),
                "deviceInstances": _dump(instances),
                "software": _dump(software),
                "accounts": _dump(accounts),
            })
        return await self._run("fetch_asset_data", action)

    async def get_device_instances(self, device_id: str) -> ActionResult:
        async def action():
            instances = await self.workspace.instances.list_for_device(device_id)
            return ActionResult.ok("get_device_instances", count=len(instances), data=_dump(instances))
        return await self._run("get_device_instances", action)

    # ============================================================
    # Device registration
    # ============================================================

    async def register_bulk_devices(self, devices: Sequence[DeviceCreate]) -> ActionResult:
        """Register devices in backend-capped chunks; missing ids and defaults are filled in."""
        async def action():
            records = [new_device(d) for d in devices]
            count = await self.workspace.devices.create_many(records)
            logger.info(f"Registered {count} devices on {self.workspace}")
            return ActionResult.ok("register_devices", count=count, data=[r.id for r in records])
        return await self._run("register_devices", action)

    async def register_device(self, device: DeviceCreate) -> ActionResult:
        result = await self.register_bulk_devices([device])
        if result.success:
            result.id = result.data[0]
        return result

    async def import_devices(self, rows: Sequence[Dict[str, Any]]) -> ActionResult:
        """Register header-keyed rows from an import collaborator."""
        mapped = map_import_rows(rows)
        if not mapped:
            return ActionResult.fail("No importable rows found", ErrorCode.INVALID, "import_devices")
        return await self.register_bulk_devices([DeviceCreate(**m) for m in mapped])

    # ============================================================
    # Device updates
    # ============================================================

    async def update_device(self, device_id: str, patch: Dict[str, Any]) -> SyncResult:
        """
        Patch a device. When the patch carries install_location (even blank)
        the device's instances are rebuilt: all deleted, then exactly one
        created at the resolved location unless the new value is blank.
        """
        try:
            device = await self.workspace.devices.update(device_id, patch)
        except Exception as e:
            logger.error(f"Device update failed for {device_id}: {e}")
            return SyncResult(primary=ActionResult.from_exception(e, "device_update"))

        result = SyncResult(primary=ActionResult.ok("device_update", id=device_id))
        if "install_location" in patch:
            result.secondary.append(
                await self._secondary("instance_fanout", lambda: self._fan_out(device, patch))
            )
        return result

    async def _fan_out(self, device: Device, patch: Dict[str, Any]) -> List[Dict[str, Any]]:
        target = (patch.get("install_location") or "").strip()
        if not target:
            await self.workspace.instances.replace_for_device(device.id, [])
            return []

        location_id, location_name = resolve_location(await self.workspace.locations.list(), location_name=target)
        if "quantity" in patch:
            quantity = parse_quantity(patch["quantity"], default=device.quantity or 1)
        else:
            quantity = device.quantity or 1

        instance = DeviceInstance(
            device_id=device.id,
            location_id=location_id,
            location_name=location_name,
            quantity=quantity,
            notes=FANOUT_NOTE,
        )
        created = await self.workspace.instances.replace_for_device(device.id, [instance])
        logger.debug(f"Device {device.id} placed at {location_name} ({location_id}) x{quantity}")
        return _dump(created)

    async def update_device_with_distribution(
        self,
        device_id: str,
        patch: Dict[str, Any],
        distributions: Sequence[DistributionEntry],
    ) -> SyncResult:
        """
        Patch a device and split it across explicit locations.

        Instances are replaced by one per distribution entry. A quantity sum
        that differs from the device quantity is accepted with a warning.
        """
        patch = {k: v for k, v in patch.items() if k != "install_location"}
        try:
            device = await self.workspace.devices.get(device_id)
            if device is None:
                raise RecordNotFoundError(f"Device {device_id} not found")

            locations = await self.workspace.locations.list()
            instances = []
            for entry in distributions:
                if entry.quantity <= 0:
                    continue
                location_id, location_name = resolve_location(locations, entry.location_id, entry.location_name)
                instances.append(DeviceInstance(
                    device_id=device_id,
                    location_id=location_id,
                    location_name=location_name,
                    quantity=entry.quantity,
                    notes=DISTRIBUTION_NOTE,
                ))

            patch["install_location"] = location_summary(instances)
            created = await self.workspace.instances.replace_for_device(device_id, instances, patch)
        except Exception as e:
            logger.error(f"Distribution update failed for {device_id}: {e}")
            return SyncResult(primary=ActionResult.from_exception(e, "distribution"))

        expected = parse_quantity(patch.get("quantity"), default=device.quantity)
        distributed = sum(i.quantity for i in created)
        warning = None
        if distributed != expected:
            warning = f"Distributed quantity {distributed} does not match the device quantity {expected}"
            logger.info(f"Device {device_id}: {warning}")

        return SyncResult(primary=ActionResult.ok(
            "distribution", id=device_id, count=len(created), warning=warning, data=_dump(created)
        ))

    async def set_devices_status(self, device_ids: Sequence[str], status: str) -> ActionResult:
        async def action():
            count = await self.workspace.devices.set_status(device_ids, status)
            return ActionResult.ok("set_status", count=count)
        return await self._run("set_status", action)

    # ============================================================
    # Device deletion
    # ============================================================

    async def delete_devices(self, device_ids: Sequence[str]) -> SyncResult:
        """Delete devices; their instances are removed first, best-effort."""
        cleanup = await self._secondary(
            "instance_cleanup", lambda: self.workspace.instances.delete_for_devices(device_ids)
        )
        try:
            removed = await self.workspace.devices.delete(device_ids)
        except Exception as e:
            logger.error(f"Device delete failed: {e}")
            return SyncResult(primary=ActionResult.from_exception(e, "device_delete"), secondary=[cleanup])
        return SyncResult(primary=ActionResult.ok("device_delete", count=removed), secondary=[cleanup])

    async def delete_device(self, device_id: str) -> SyncResult:
        result = await self.delete_devices([device_id])
        result.primary.id = device_id
        return result

    async def delete_all_devices(self) -> SyncResult:
        try:
            await self.workspace.devices.delete_all()
        except Exception as e:
            logger.error(f"Delete all devices failed: {e}")
            return SyncResult(primary=ActionResult.from_exception(e, "device_delete_all"))
        cleanup = await self._secondary("instance_cleanup", lambda: self.workspace.instances.replace_all([]))
        return SyncResult(primary=ActionResult.ok("device_delete_all"), secondary=[cleanup])

    # ============================================================
    # Device instances
    # ============================================================

    async def _instance_followups(self, device_id: str, result: SyncResult) -> SyncResult:
        result.primary.warning = await self._allocation_warning(device_id)
        result.secondary.append(
            await self._secondary("location_summary", lambda: self._refresh_location_summary(device_id))
        )
        return result

    async def _require_device(self, device_id: str) -> Device:
        device = await self.workspace.devices.get(device_id)
        if device is None:
            raise RecordNotFoundError(f"Device {device_id} not found")
        return device

    async def create_instance(
        self,
        device_id: str,
        location_name: str,
        quantity: int = 1,
        location_id: Optional[str] = None,
        notes: str = "",
    ) -> SyncResult:
        try:
            await self._require_device(device_id)
            resolved_id, resolved_name = resolve_location(
                await self.workspace.locations.list(), location_id, location_name
            )
            created = await self.workspace.instances.create(DeviceInstance(
                device_id=device_id,
                location_id=resolved_id,
                location_name=resolved_name,
                quantity=quantity,
                notes=notes,
            ))
        except Exception as e:
            logger.error(f"Instance create failed for {device_id}: {e}")
            return SyncResult(primary=ActionResult.from_exception(e, "instance_create"))

        result = SyncResult(primary=ActionResult.ok("instance_create", id=created.id, data=created.model_dump(by_alias=True)))
        return await self._instance_followups(device_id, result)

    async def update_instance(self, instance_id: str, patch: Dict[str, Any]) -> SyncResult:
        try:
            previous = await self.workspace.instances.get(instance_id)
            if previous is None:
                raise RecordNotFoundError(f"Instance {instance_id} not found")
            if patch.get("device_id") and patch["device_id"] != previous.device_id:
                await self._require_device(patch["device_id"])
            updated = await self.workspace.instances.update(instance_id, patch)
        except Exception as e:
            logger.error(f"Instance update failed for {instance_id}: {e}")
            return SyncResult(primary=ActionResult.from_exception(e, "instance_update"))

        result = SyncResult(primary=ActionResult.ok("instance_update", id=instance_id, data=updated.model_dump(by_alias=True)))
        if previous.device_id != updated.device_id:
            logger.info(f"Instance {instance_id} moved from {previous.device_id} to {updated.device_id}")
            result.secondary.append(await self._secondary(
                "previous_location_summary", lambda: self._refresh_location_summary(previous.device_id)
            ))
        return await self._instance_followups(updated.device_id, result)

    async def delete_instance(self, instance_id: str) -> SyncResult:
        """Delete an instance; a missing id is a successful no-op."""
        try:
            deleted = await self.workspace.instances.delete(instance_id)
        except Exception as e:
            logger.error(f"Instance delete failed for {instance_id}: {e}")
            return SyncResult(primary=ActionResult.from_exception(e, "instance_delete"))

        result = SyncResult(primary=ActionResult.ok("instance_delete", id=instance_id, count=1 if deleted else 0))
        if deleted is not None:
            result.secondary.append(
                await self._secondary("location_summary", lambda: self._refresh_location_summary(deleted.device_id))
            )
        return result

    # ============================================================
    # Zones
    # ============================================================

    async def list_zones(self) -> ActionResult:
        async def action():
            locations = await self.workspace.locations.list()
            return ActionResult.ok("list_zones", count=len(locations), data=_dump(locations))
        return await self._run("list_zones", action)

    async def sync_zones(self, zones: Sequence[Location]) -> ActionResult:
        async def action():
            count = await self.workspace.locations.sync(zones)
            return ActionResult.ok("sync_zones", count=count)
        return await self._run("sync_zones", action)

    async def delete_zones(self, zone_ids: Sequence[str]) -> SyncResult:
        """Remove zones from the names store and drop every instance placed there."""
        if not zone_ids:
            return SyncResult(primary=ActionResult.ok("zone_delete", count=0))
        try:
            removed = await self.workspace.locations.delete(zone_ids)
        except Exception as e:
            logger.error(f"Zone delete failed: {e}")
            return SyncResult(primary=ActionResult.from_exception(e, "zone_delete"))

        cleanup = await self._secondary(
            "instance_cleanup", lambda: self.workspace.instances.delete_for_locations(zone_ids)
        )
        return SyncResult(primary=ActionResult.ok("zone_delete", count=removed), secondary=[cleanup])

    async def rename_zone(self, zone_id: str, old_name: str, new_name: str) -> SyncResult:
        """
        Rename a zone and propagate the name.

        Steps after the names store update, each independent:
        instance_names (locationName on every instance of the zone),
        location_summary (installLocation of the affected devices) and
        map_blob (the zone list stored with each map). The last one is
        a display cache rebuilt from the names store on read, so its
        failures are only logged at debug level.
        """
        try:
            await self.workspace.locations.rename(zone_id, old_name, new_name)
        except Exception as e:
            logger.error(f"Zone rename failed for {zone_id}: {e}")
            return SyncResult(primary=ActionResult.from_exception(e, "zone_rename"))

        result = SyncResult(primary=ActionResult.ok("zone_rename", id=zone_id))
        affected: List[str] = []

        async def rename_instances():
            affected.extend(sorted(await self.workspace.instances.rename_location(zone_id, new_name)))
            return affected

        async def refresh_devices():
            for device_id in affected:
                await self._refresh_location_summary(device_id)
            return len(affected)

        result.secondary.append(await self._secondary("instance_names", rename_instances))
        result.secondary.append(await self._secondary("location_summary", refresh_devices))
        result.secondary.append(await self._secondary(
            "map_blob", lambda: self.workspace.maps.rename_zone(zone_id, new_name), quiet=True
        ))
        logger.info(f"Zone {zone_id} renamed '{old_name}' -> '{new_name}' ({len(affected)} devices)")
        return result

    async def rename_zones(self, changes: Sequence[ZoneRename]) -> List[SyncResult]:
        results = []
        for change in changes:
            results.append(await self.rename_zone(change.zone_id, change.old_name, change.new_name))
        return results

    async def merge_detected_zones(
        self,
        map_id: str,
        detected: Sequence[Location],
        threshold: Optional[float] = None,
    ) -> ActionResult:
        """Add detected zones to a map, skipping spatial duplicates."""
        async def action():
            current = await self.workspace.maps.load(map_id)
            merged, added, skipped = merge_zones(
                current.zones,
                detected,
                threshold if threshold is not None else self.settings.zone_merge_threshold,
            )
            if added:
                await self.workspace.maps.save(map_id, current.map_image, merged)
            return ActionResult.ok("merge_zones", count=len(added), data={
                "added": _dump(added),
                "skipped": _dump(skipped),
            })
        return await self._run("merge_zones", action)

    # ============================================================
    # Maps
    # ============================================================

    async def fetch_map_configuration(self, map_id: str = DEFAULT_MAP_ID) -> ActionResult:
        """Map image and zones; zone names come from the names store."""
        async def action():
            config, locations = await asyncio.gather(
                self.workspace.maps.load(map_id),
                self.workspace.locations.list(),
            )
            names = {loc.id: loc.name for loc in locations if loc.name}
            zones = [z.model_copy(update={"name": names.get(z.id, z.name)}) for z in config.zones]
            merged = config.model_copy(update={"zones": zones})
            return ActionResult.ok("fetch_map", id=map_id, data=merged.model_dump(by_alias=True))
        return await self._run("fetch_map", action)

    async def save_map_configuration(
        self,
        map_id: str,
        map_image: Optional[str],
        zones: Sequence[Location],
    ) -> ActionResult:
        """Store a map; map_image None keeps the currently stored image."""
        async def action():
            image = map_image
            if image is None:
                image = (await self.workspace.maps.load(map_id)).map_image
            saved: MapConfiguration = await self.workspace.maps.save(map_id, image, zones)
            return ActionResult.ok("save_map", id=map_id, count=len(saved.zones), data={"updatedAt": saved.updated_at})
        return await self._run("save_map", action)

    async def list_maps(self) -> ActionResult:
        async def action():
            return ActionResult.ok("list_maps", data=await self.workspace.maps.list_maps())
        return await self._run("list_maps", action)

    async def delete_map(self, map_id: str) -> ActionResult:
        async def action():
            if map_id == DEFAULT_MAP_ID:
                raise ValueError("The default map cannot be deleted")
            await self.workspace.maps.delete(map_id)
            return ActionResult.ok("delete_map", id=map_id)
        return await self._run("delete_map", action)

    # ============================================================
    # Software & accounts
    # ============================================================

    async def _list_records(self, repo: RecordRepository, step: str) -> ActionResult:
        async def action():
            records = await repo.list()
            return ActionResult.ok(step, count=len(records), data=_dump(records))
        return await self._run(step, action)

    async def _save_record(self, repo: RecordRepository, record: BaseModel, step: str) -> ActionResult:
        async def action():
            if not record.id:
                record.id = str(uuid.uuid4())
            await repo.save(record)
            return ActionResult.ok(step, id=record.id)
        return await self._run(step, action)

    async def _delete_record(self, repo: RecordRepository, record_id: str, step: str) -> ActionResult:
        async def action():
            existed = await repo.delete(record_id)
            return ActionResult.ok(step, id=record_id, count=1 if existed else 0)
        return await self._run(step, action)

    async def list_software(self) -> ActionResult:
        return await self._list_records(self.workspace.software, "list_software")

    async def save_software(self, item: Software) -> ActionResult:
        return await self._save_record(self.workspace.software, item, "save_software")

    async def delete_software(self, software_id: str) -> ActionResult:
        return await self._delete_record(self.workspace.software, software_id, "delete_software")

    async def list_accounts(self) -> ActionResult:
        return await self._list_records(self.workspace.accounts, "list_accounts")

    async def save_account(self, item: Account) -> ActionResult:
        return await self._save_record(self.workspace.accounts, item, "save_account")

    async def delete_account(self, account_id: str) -> ActionResult:
        return await self._delete_record(self.workspace.accounts, account_id, "delete_account")

    # ============================================================
    # Loans
    # ============================================================

    async def list_loans(self, today: Optional[date] = None) -> ActionResult:
        async def action():
            loans = [loan.with_effective_status(today) for loan in await self.workspace.loans.list()]
            return ActionResult.ok("list_loans", count=len(loans), data=_dump(loans))
        return await self._run("list_loans", action)

    async def create_loan(
        self,
        device_id: str,
        user_id: str,
        user_name: str,
        due_date: str,
        notes: str = "",
    ) -> ActionResult:
        async def action():
            device = await self.workspace.devices.get(device_id)
            if device is None:
                raise RecordNotFoundError(f"Device {device_id} not found")
            if device.status in NON_LENDABLE_STATUSES:
                raise ValueError(f"Device is not available for loan (current status: {device.status})")

            loan = Loan(
                id=f"loan-{uuid.uuid4().hex[:12]}",
                device_id=device_id,
                device_name=device.name,
                user_id=user_id,
                user_name=user_name,
                loan_date=date.today().isoformat(),
                due_date=due_date,
                status="Active",
                notes=notes,
            )
            await self.workspace.loans.open(loan, {
                "status": DeviceStatus.ON_LOAN.value,
                "user_name": user_name,
            })
            logger.info(f"Loan {loan.id}: device {device_id} to {user_name} until {due_date}")
            return ActionResult.ok("create_loan", id=loan.id)
        return await self._run("create_loan", action)

    async def return_loan(self, loan_id: str, condition: str = "Good") -> ActionResult:
        async def action():
            loan = await self.workspace.loans.get(loan_id)
            if loan is None:
                raise RecordNotFoundError(f"Loan {loan_id} not found")

            returned = loan.model_copy(update={
                "return_date": date.today().isoformat(),
                "status": "Returned",
            })
            status = DeviceStatus.MAINTENANCE if condition == "Broken" else DeviceStatus.AVAILABLE
            await self.workspace.loans.close(returned, {"status": status.value, "user_name": ""})
            return ActionResult.ok("return_loan", id=loan_id)
        return await self._run("return_loan", action)

    # ============================================================
    # System config, backup, initialization
    # ============================================================

    async def fetch_system_config(self) -> ActionResult:
        async def action():
            return ActionResult.ok("fetch_config", data=await self.workspace.system_config.load())
        return await self._run("fetch_config", action)

    async def save_system_config(self, values: Dict[str, str]) -> ActionResult:
        async def action():
            await self.workspace.system_config.save(values)
            return ActionResult.ok("save_config", count=len(values))
        return await self._run("save_config", action)

    async def export_all(self) -> ActionResult:
        async def action():
            payload = await backup.export_all(self.workspace)
            return ActionResult.ok("export", data=payload.model_dump(by_alias=True))
        return await self._run("export", action)

    async def import_all(self, payload: BackupPayload) -> ActionResult:
        async def action():
            counts = await backup.import_all(self.workspace, payload)
            return ActionResult.ok("import", count=sum(counts.values()), data=counts)
        return await self._run("import", action)

    async def initialize_workspace(self) -> ActionResult:
        async def action():
            created = await self.workspace.initialize()
            return ActionResult.ok("initialize", count=len(created), data=created)
        return await self._run("initialize", action)
