"""
EduAsset - Spreadsheet Repositories
Entity access on a Google Sheets workbook

Every tab is a header row plus fixed-column data rows. Lookups by id are
linear scans over the whole data block (SheetTable.find), and multi-row
changes are done by rewriting the data block (clear, then write back).
Writes spanning several tabs are sequential and not atomic.
"""
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Type

from eduasset.config import get_settings
from eduasset.models.device import (
    DEVICE_COLUMNS,
    DEVICE_HEADER,
    INSTANCE_COLUMNS,
    INSTANCE_HEADER,
    Device,
    DeviceInstance,
)
from eduasset.models.location import LOCATION_HEADER, Location, MapConfiguration
from eduasset.models.records import (
    ACCOUNT_HEADER,
    LOAN_HEADER,
    SOFTWARE_HEADER,
    Account,
    Loan,
    RowRecord,
    Software,
)
from eduasset.repositories.base import (
    DeviceRepository,
    InstanceRepository,
    LoanRepository,
    LocationRepository,
    MapRepository,
    RecordRepository,
    SystemConfigRepository,
    Workspace,
)
from eduasset.services.backends.errors import RecordNotFoundError
from eduasset.services.backends.sheets import Rows, SheetsAdapter
from eduasset.services.map_chunks import (
    DEFAULT_MAP_ID,
    LAST_UPDATED_KEY,
    LEGACY_IMAGE_KEY,
    MAP_LIST_KEY,
    MapKeys,
    join_chunks,
)

logger = logging.getLogger(__name__)

CONFIG_TITLE = "Config"
CONFIG_RANGE = "Config!A1:B2000"
KEY_VALUE_HEADER = ["Key", "Value"]


def _column_letter(number: int) -> str:
    """1 -> A, 18 -> R (single-letter columns only)."""
    return chr(ord("A") + number - 1)


def _cell(row: Sequence[Any], index: int) -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index])
    return ""


def _pad(row: Sequence[Any], width: int) -> List[Any]:
    padded = list(row)[:width]
    return padded + [""] * (width - len(padded))


def _patched_row(row: Sequence[Any], columns: List[str], patch: Dict[str, Any]) -> List[Any]:
    """Copy of row with patched cells; cells not in patch are written back untouched."""
    updated = _pad(row, len(columns))
    for key, value in patch.items():
        if key in columns and key != "id":
            updated[columns.index(key)] = "" if value is None else value
    return updated


def new_instance_id() -> str:
    return f"inst-{uuid.uuid4().hex[:12]}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_zone_list(raw: Optional[str]) -> List[Location]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Stored zone list is not valid JSON, ignoring it")
        return []
    return [Location.model_validate(z) for z in data if isinstance(z, dict) and z.get("id")]


def dump_zone_list(zones: Iterable[Location]) -> str:
    return json.dumps(
        [z.model_dump(by_alias=True, exclude_none=True) for z in zones],
        ensure_ascii=False,
    )


def parse_map_list(raw: Optional[str]) -> List[str]:
    map_ids = [m.strip() for m in (raw or DEFAULT_MAP_ID).split(",") if m.strip()]
    if DEFAULT_MAP_ID not in map_ids:
        map_ids.insert(0, DEFAULT_MAP_ID)
    return map_ids


# ============================================================
# Table primitive
# ============================================================

class SheetTable:
    """One tab: header row, then fixed-column data rows from row 2."""

    def __init__(self, adapter: SheetsAdapter, title: str, header: Sequence[str]):
        self.adapter = adapter
        self.title = title
        self.header = list(header)
        self.width = len(self.header)
        self.last_column = _column_letter(self.width)

    @property
    def data_range(self) -> str:
        return f"{self.title}!A2:{self.last_column}"

    async def rows(self) -> Optional[Rows]:
        """Data rows; None when the tab does not exist."""
        return await self.adapter.get(self.data_range)

    async def ensure(self) -> bool:
        return await self.adapter.ensure_table(self.title, self.header)

    async def find(self, record_id: str, column: int = 0) -> Tuple[Optional[int], Optional[List[Any]]]:
        """Linear scan for a row by id. Returns (sheet row number, row)."""
        for index, row in enumerate(await self.rows() or []):
            if _cell(row, column) == str(record_id):
                return index + 2, list(row)
        return None, None

    async def write_row(self, row_number: int, row: Sequence[Any]) -> None:
        await self.adapter.update(f"{self.title}!A{row_number}", [list(row)])

    async def append(self, rows: Sequence[Sequence[Any]]) -> None:
        """Append rows (tab and header created on first use), in capped chunks."""
        if not rows:
            return
        await self.ensure()
        step = get_settings().sheets_append_chunk_rows
        for start in range(0, len(rows), step):
            await self.adapter.append(f"{self.title}!A1", rows[start:start + step])

    async def rewrite(self, rows: Sequence[Sequence[Any]]) -> None:
        """Replace every data row."""
        await self.adapter.clear(self.data_range)
        if rows:
            await self.adapter.update(f"{self.title}!A2", [list(r) for r in rows])

    async def remove_where(self, column: int, values: Iterable[str]) -> int:
        """Drop rows whose cell in column is one of values; returns rows removed."""
        rows = await self.rows()
        if not rows:
            return 0
        wanted = {str(v) for v in values}
        keep = [r for r in rows if _cell(r, column) not in wanted]
        removed = len(rows) - len(keep)
        if removed:
            await self.rewrite(keep)
        return removed


# ============================================================
# Devices & instances
# ============================================================

class SheetsDeviceRepository(DeviceRepository):

    def __init__(self, table: SheetTable):
        self.table = table

    async def list(self) -> List[Device]:
        return [Device.from_row(r) for r in await self.table.rows() or [] if _cell(r, 0)]

    async def get(self, device_id: str) -> Optional[Device]:
        _, row = await self.table.find(device_id)
        return Device.from_row(row) if row else None

    async def update(self, device_id: str, patch: Dict[str, Any]) -> Device:
        row_number, row = await self.table.find(device_id)
        if row_number is None:
            raise RecordNotFoundError(f"Device {device_id} not found")
        updated = _patched_row(row, DEVICE_COLUMNS, patch)
        await self.table.write_row(row_number, updated)
        return Device.from_row(updated)

    async def create_many(self, devices: Sequence[Device]) -> int:
        await self.table.append([d.to_row() for d in devices])
        return len(devices)

    async def delete(self, device_ids: Sequence[str]) -> int:
        return await self.table.remove_where(0, device_ids)

    async def delete_all(self) -> None:
        if await self.table.rows() is not None:
            await self.table.adapter.clear(self.table.data_range)

    async def set_status(self, device_ids: Sequence[str], status: str) -> int:
        wanted = set(device_ids)
        column = _column_letter(DEVICE_COLUMNS.index("status") + 1)
        updates = [
            (f"{self.table.title}!{column}{index + 2}", [[status]])
            for index, row in enumerate(await self.table.rows() or [])
            if _cell(row, 0) in wanted
        ]
        await self.table.adapter.batch_update(updates)
        return len(updates)

    async def replace_all(self, devices: Sequence[Device]) -> None:
        await self.table.ensure()
        await self.table.rewrite([d.to_row() for d in devices])


class SheetsInstanceRepository(InstanceRepository):

    def __init__(self, table: SheetTable, devices: SheetsDeviceRepository):
        self.table = table
        self.devices = devices

    async def list(self) -> List[DeviceInstance]:
        return [DeviceInstance.from_row(r) for r in await self.table.rows() or [] if _cell(r, 0)]

    async def list_for_device(self, device_id: str) -> List[DeviceInstance]:
        return [i for i in await self.list() if i.device_id == device_id]

    async def get(self, instance_id: str) -> Optional[DeviceInstance]:
        _, row = await self.table.find(instance_id)
        return DeviceInstance.from_row(row) if row else None

    async def create(self, instance: DeviceInstance) -> DeviceInstance:
        created = instance.model_copy(update={"id": instance.id or new_instance_id()})
        await self.table.append([created.to_row()])
        return created

    async def update(self, instance_id: str, patch: Dict[str, Any]) -> DeviceInstance:
        row_number, row = await self.table.find(instance_id)
        if row_number is None:
            raise RecordNotFoundError(f"Instance {instance_id} not found")
        updated = _patched_row(row, INSTANCE_COLUMNS, patch)
        await self.table.write_row(row_number, updated)
        return DeviceInstance.from_row(updated)

    async def delete(self, instance_id: str) -> Optional[DeviceInstance]:
        rows = await self.table.rows()
        if not rows:
            return None
        match = next((r for r in rows if _cell(r, 0) == instance_id), None)
        if match is None:
            return None
        await self.table.rewrite([r for r in rows if r is not match])
        return DeviceInstance.from_row(match)

    async def replace_for_device(
        self,
        device_id: str,
        instances: Sequence[DeviceInstance],
        device_patch: Optional[Dict[str, Any]] = None,
    ) -> List[DeviceInstance]:
        if device_patch:
            await self.devices.update(device_id, device_patch)

        removed = await self.table.remove_where(1, [device_id])
        created = [
            inst.model_copy(update={"id": inst.id or new_instance_id(), "device_id": device_id})
            for inst in instances
        ]
        await self.table.append([c.to_row() for c in created])
        logger.debug(f"Device {device_id}: replaced {removed} instances with {len(created)}")
        return created

    async def delete_for_devices(self, device_ids: Sequence[str]) -> int:
        return await self.table.remove_where(1, device_ids)

    async def delete_for_locations(self, location_ids: Sequence[str]) -> int:
        return await self.table.remove_where(2, location_ids)

    async def rename_location(self, location_id: str, new_name: str) -> Set[str]:
        column = _column_letter(INSTANCE_COLUMNS.index("location_name") + 1)
        updates = []
        affected: Set[str] = set()
        for index, row in enumerate(await self.table.rows() or []):
            if _cell(row, 2) == location_id:
                updates.append((f"{self.table.title}!{column}{index + 2}", [[new_name]]))
                affected.add(_cell(row, 1))
        await self.table.adapter.batch_update(updates)
        return affected

    async def replace_all(self, instances: Sequence[DeviceInstance]) -> None:
        await self.table.ensure()
        await self.table.rewrite([
            i.model_copy(update={"id": i.id or new_instance_id()}).to_row() for i in instances
        ])


# ============================================================
# Zones & maps
# ============================================================

class SheetsMapRepository(MapRepository):
    """Maps live as key/value rows of the Config tab."""

    def __init__(self, adapter: SheetsAdapter, chunk_size: Optional[int] = None):
        self.adapter = adapter
        self.chunk_size = chunk_size or get_settings().sheet_chunk_size

    async def _read(self) -> Optional[Dict[str, str]]:
        rows = await self.adapter.get(CONFIG_RANGE)
        if rows is None:
            return None
        entries: Dict[str, str] = {}
        for index, row in enumerate(rows):
            if index == 0 and _cell(row, 0) == KEY_VALUE_HEADER[0]:
                continue
            if _cell(row, 0):
                entries[_cell(row, 0)] = _cell(row, 1)
        return entries

    async def _write(self, entries: Dict[str, str]) -> None:
        await self.adapter.ensure_table(CONFIG_TITLE, KEY_VALUE_HEADER)
        await self.adapter.clear(CONFIG_RANGE)
        await self.adapter.update(
            f"{CONFIG_TITLE}!A1",
            [KEY_VALUE_HEADER] + [[key, value] for key, value in entries.items()],
        )

    async def load(self, map_id: str) -> MapConfiguration:
        entries = await self._read()
        if not entries:
            return MapConfiguration(map_id=map_id)

        keys = MapKeys(map_id)
        count = None
        if entries.get(keys.meta_key):
            try:
                count = int(json.loads(entries[keys.meta_key])["chunkCount"])
            except (ValueError, KeyError, TypeError):
                logger.warning(f"Unreadable map metadata for {map_id}, falling back to key scan")

        image = join_chunks(entries, keys.image_prefix, count)
        if not image and keys.is_default:
            image = entries.get(LEGACY_IMAGE_KEY, "")

        return MapConfiguration(
            map_id=map_id,
            map_image=image or None,
            zones=parse_zone_list(entries.get(keys.zones_key)),
            updated_at=entries.get(LAST_UPDATED_KEY) or None,
        )

    async def save(self, map_id: str, image: Optional[str], zones: Sequence[Location]) -> MapConfiguration:
        keys = MapKeys(map_id)
        entries = {k: v for k, v in (await self._read() or {}).items() if not keys.owns(k)}

        now = _now()
        chunks = keys.encode(image, self.chunk_size)
        map_ids = parse_map_list(entries.get(MAP_LIST_KEY))
        if map_id not in map_ids:
            map_ids.append(map_id)

        entries[keys.zones_key] = dump_zone_list(zones)
        entries[LAST_UPDATED_KEY] = now
        entries[MAP_LIST_KEY] = ",".join(map_ids)
        entries[keys.meta_key] = json.dumps({"chunkCount": len(chunks), "updatedAt": now})
        entries.update(chunks)
        await self._write(entries)

        logger.info(f"Saved map {map_id}: {len(zones)} zones, {len(chunks)} image chunks")
        return MapConfiguration(map_id=map_id, map_image=image or None, zones=list(zones), updated_at=now)

    async def list_maps(self) -> List[str]:
        entries = await self._read() or {}
        return parse_map_list(entries.get(MAP_LIST_KEY))

    async def delete(self, map_id: str) -> None:
        if map_id == DEFAULT_MAP_ID:
            raise ValueError("The default map cannot be deleted")
        entries = await self._read()
        if entries is None:
            return
        keys = MapKeys(map_id)
        entries = {k: v for k, v in entries.items() if not keys.owns(k)}
        entries[MAP_LIST_KEY] = ",".join(m for m in parse_map_list(entries.get(MAP_LIST_KEY)) if m != map_id)
        await self._write(entries)

    async def rename_zone(self, zone_id: str, new_name: str) -> int:
        rows = await self.adapter.get(CONFIG_RANGE)
        if not rows:
            return 0
        zone_keys = {MapKeys(m).zones_key for m in await self.list_maps()}

        updates = []
        for index, row in enumerate(rows):
            key, raw = _cell(row, 0), _cell(row, 1)
            if key not in zone_keys or not raw:
                continue
            zones = json.loads(raw)
            changed = False
            for zone in zones:
                if isinstance(zone, dict) and zone.get("id") == zone_id:
                    zone["name"] = new_name
                    changed = True
            if changed:
                updates.append((f"{CONFIG_TITLE}!A{index + 1}", [[key, json.dumps(zones, ensure_ascii=False)]]))

        await self.adapter.batch_update(updates)
        return len(updates)


class SheetsLocationRepository(LocationRepository):
    """
    Locations tab: Zone ID | Auto Name | Custom Name.

    Display name is the custom name when set. Shapes come from the default
    map's zone list.
    """

    def __init__(self, table: SheetTable, maps: SheetsMapRepository):
        self.table = table
        self.maps = maps

    async def list(self) -> List[Location]:
        shapes = {z.id: z for z in (await self.maps.load(DEFAULT_MAP_ID)).zones}
        rows = await self.table.rows()
        if rows is None:
            return list(shapes.values())

        locations = []
        seen = set()
        for row in rows:
            zone_id = _cell(row, 0)
            if not zone_id or zone_id in seen:
                continue
            seen.add(zone_id)
            name = _cell(row, 2) or _cell(row, 1)
            shape = shapes.get(zone_id)
            locations.append(shape.model_copy(update={"name": name}) if shape else Location(id=zone_id, name=name))
        locations.extend(z for z in shapes.values() if z.id not in seen)
        return locations

    async def rename(self, zone_id: str, old_name: str, new_name: str) -> None:
        row_number, row = await self.table.find(zone_id)
        if row_number is None:
            await self.table.append([[zone_id, old_name, new_name]])
            return
        updated = _pad(row, 3)
        updated[2] = new_name
        await self.table.write_row(row_number, updated)

    async def sync(self, zones: Sequence[Location]) -> int:
        rows = await self.table.rows()
        if rows is None:
            await self.table.ensure()
            rows = []

        entries: Dict[str, List[Any]] = {}
        for row in rows:
            if _cell(row, 0):
                entries[_cell(row, 0)] = _pad(row, 3)

        for zone in zones:
            previous = entries[zone.id][2] if zone.id in entries else ""
            custom = previous if previous and previous != zone.name else zone.name
            entries[zone.id] = [zone.id, zone.name, custom]

        await self.table.rewrite(list(entries.values()))
        return len(zones)

    async def delete(self, zone_ids: Sequence[str]) -> int:
        return await self.table.remove_where(0, zone_ids)


# ============================================================
# Software, accounts, loans, system config
# ============================================================

class SheetsRecordRepository(RecordRepository):

    def __init__(self, table: SheetTable, model: Type[RowRecord]):
        self.table = table
        self.model = model

    async def list(self) -> List[RowRecord]:
        return [self.model.from_row(r) for r in await self.table.rows() or [] if _cell(r, 0)]

    async def save(self, record: RowRecord) -> RowRecord:
        row_number, _ = await self.table.find(record.id)
        if row_number is None:
            await self.table.append([record.to_row()])
        else:
            await self.table.write_row(row_number, record.to_row())
        return record

    async def delete(self, record_id: str) -> bool:
        return await self.table.remove_where(0, [record_id]) > 0

    async def replace_all(self, records: Sequence[RowRecord]) -> None:
        await self.table.ensure()
        await self.table.rewrite([r.to_row() for r in records])


class SheetsLoanRepository(SheetsRecordRepository, LoanRepository):

    def __init__(self, table: SheetTable, devices: SheetsDeviceRepository):
        super().__init__(table, Loan)
        self.devices = devices

    async def get(self, loan_id: str) -> Optional[Loan]:
        _, row = await self.table.find(loan_id)
        return Loan.from_row(row) if row else None

    async def open(self, loan: Loan, device_patch: Dict[str, Any]) -> Loan:
        await self.devices.update(loan.device_id, device_patch)
        await self.table.append([loan.to_row()])
        return loan

    async def close(self, loan: Loan, device_patch: Dict[str, Any]) -> Loan:
        row_number, _ = await self.table.find(loan.id)
        if row_number is None:
            raise RecordNotFoundError(f"Loan {loan.id} not found")
        await self.table.write_row(row_number, loan.to_row())
        try:
            await self.devices.update(loan.device_id, device_patch)
        except RecordNotFoundError:
            logger.warning(f"Loan {loan.id} returned for a device that no longer exists")
        return loan


class SheetsSystemConfigRepository(SystemConfigRepository):

    def __init__(self, table: SheetTable):
        self.table = table

    async def load(self) -> Dict[str, str]:
        return {_cell(r, 0): _cell(r, 1) for r in await self.table.rows() or [] if _cell(r, 0)}

    async def save(self, values: Dict[str, str]) -> None:
        merged = await self.load()
        merged.update(values)
        await self.table.ensure()
        await self.table.rewrite([[key, value] for key, value in merged.items()])


# ============================================================
# Workspace
# ============================================================

class SheetsWorkspace(Workspace):

    def __init__(self, adapter: SheetsAdapter, chunk_size: Optional[int] = None):
        self.adapter = adapter
        self.tables = {
            "Devices": SheetTable(adapter, "Devices", DEVICE_HEADER),
            "DeviceInstances": SheetTable(adapter, "DeviceInstances", INSTANCE_HEADER),
            "Locations": SheetTable(adapter, "Locations", LOCATION_HEADER),
            "Software": SheetTable(adapter, "Software", SOFTWARE_HEADER),
            "Accounts": SheetTable(adapter, "Accounts", ACCOUNT_HEADER),
            "Loans": SheetTable(adapter, "Loans", LOAN_HEADER),
            "SystemConfig": SheetTable(adapter, "SystemConfig", KEY_VALUE_HEADER),
            CONFIG_TITLE: SheetTable(adapter, CONFIG_TITLE, KEY_VALUE_HEADER),
        }
        devices = SheetsDeviceRepository(self.tables["Devices"])
        maps = SheetsMapRepository(adapter, chunk_size)
        super().__init__(
            kind="sheets",
            tenant_id=adapter.spreadsheet_id,
            devices=devices,
            instances=SheetsInstanceRepository(self.tables["DeviceInstances"], devices),
            locations=SheetsLocationRepository(self.tables["Locations"], maps),
            maps=maps,
            software=SheetsRecordRepository(self.tables["Software"], Software),
            accounts=SheetsRecordRepository(self.tables["Accounts"], Account),
            loans=SheetsLoanRepository(self.tables["Loans"], devices),
            system_config=SheetsSystemConfigRepository(self.tables["SystemConfig"]),
        )

    async def initialize(self) -> List[str]:
        created = []
        for title, table in self.tables.items():
            if await table.ensure():
                created.append(title)
        if created:
            logger.info(f"Created sheet tabs: {', '.join(created)}")
        return created
