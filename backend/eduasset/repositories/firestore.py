"""
EduAsset - Document Store Repositories
Entity access on Cloud Firestore collections

Related records are found with indexed equality queries and multi-document
changes go through chunked batch commits.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Set, Type

from pydantic.alias_generators import to_camel

from eduasset.config import get_settings
from eduasset.models.device import Device, DeviceInstance, Record, device_patch_to_fields
from eduasset.models.location import Location, MapConfiguration
from eduasset.models.records import Account, Loan, Software
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
from eduasset.services.backends.firestore import BatchOp, FirestoreAdapter, new_document_id
from eduasset.services.map_chunks import DEFAULT_MAP_ID, document_chunk_id, split_image

logger = logging.getLogger(__name__)

DEVICES = "Devices"
INSTANCES = "DeviceInstances"
LOCATIONS = "Locations"
MAP_CONFIG = "MapConfig"
SOFTWARE = "Software"
ACCOUNTS = "Accounts"
LOANS = "Loans"
SYSTEM_CONFIG = "SystemConfig"

# Above this many ids one collection read is cheaper than per-document gets
EXISTENCE_LOOKUP_LIMIT = 20


def _camel_fields(patch: Dict[str, Any]) -> Dict[str, Any]:
    return {to_camel(key): value for key, value in patch.items() if key != "id"}


async def _delete_collection(adapter: FirestoreAdapter, collection: str) -> int:
    docs = await adapter.get_collection(collection)
    await adapter.batch_commit([BatchOp("delete", collection, d["id"]) for d in docs])
    return len(docs)


async def _existing_ids(adapter: FirestoreAdapter, collection: str, doc_ids: Sequence[str]) -> List[str]:
    """The subset of doc_ids that have a document, in request order."""
    wanted = list(dict.fromkeys(doc_ids))
    if len(wanted) <= EXISTENCE_LOOKUP_LIMIT:
        docs = await asyncio.gather(*(adapter.get_one(collection, i) for i in wanted))
        return [i for i, doc in zip(wanted, docs) if doc is not None]
    present = {doc["id"] for doc in await adapter.get_collection(collection)}
    return [i for i in wanted if i in present]


async def _delete_existing(adapter: FirestoreAdapter, collection: str, doc_ids: Sequence[str]) -> int:
    existing = await _existing_ids(adapter, collection, doc_ids)
    await adapter.batch_commit([BatchOp("delete", collection, i) for i in existing])
    return len(existing)


async def _replace_collection(adapter: FirestoreAdapter, collection: str, records: Sequence[Record]) -> None:
    await _delete_collection(adapter, collection)
    await adapter.batch_commit([
        BatchOp("set", collection, r.id or new_document_id(), r.to_document()) for r in records
    ])


# ============================================================
# Devices & instances
# ============================================================

class FirestoreDeviceRepository(DeviceRepository):

    def __init__(self, adapter: FirestoreAdapter):
        self.adapter = adapter

    async def list(self) -> List[Device]:
        return [Device(**doc) for doc in await self.adapter.get_collection(DEVICES)]

    async def get(self, device_id: str) -> Optional[Device]:
        doc = await self.adapter.get_one(DEVICES, device_id)
        return Device(**doc) if doc else None

    async def update(self, device_id: str, patch: Dict[str, Any]) -> Device:
        fields = device_patch_to_fields(patch)
        if fields:
            await self.adapter.update(DEVICES, device_id, fields)
        device = await self.get(device_id)
        if device is None:
            raise RecordNotFoundError(f"Device {device_id} not found")
        return device

    async def create_many(self, devices: Sequence[Device]) -> int:
        await self.adapter.batch_commit([BatchOp("set", DEVICES, d.id, d.to_document()) for d in devices])
        return len(devices)

    async def delete(self, device_ids: Sequence[str]) -> int:
        return await _delete_existing(self.adapter, DEVICES, device_ids)

    async def delete_all(self) -> None:
        removed = await _delete_collection(self.adapter, DEVICES)
        logger.info(f"Deleted all {removed} devices")

    async def set_status(self, device_ids: Sequence[str], status: str) -> int:
        await self.adapter.batch_commit([
            BatchOp("update", DEVICES, i, {"status": status}) for i in device_ids
        ])
        return len(device_ids)

    async def replace_all(self, devices: Sequence[Device]) -> None:
        await _replace_collection(self.adapter, DEVICES, devices)


class FirestoreInstanceRepository(InstanceRepository):

    def __init__(self, adapter: FirestoreAdapter):
        self.adapter = adapter

    async def list(self) -> List[DeviceInstance]:
        return [DeviceInstance(**doc) for doc in await self.adapter.get_collection(INSTANCES)]

    async def list_for_device(self, device_id: str) -> List[DeviceInstance]:
        docs = await self.adapter.query_by_field(INSTANCES, "deviceId", device_id)
        return [DeviceInstance(**doc) for doc in docs]

    async def get(self, instance_id: str) -> Optional[DeviceInstance]:
        doc = await self.adapter.get_one(INSTANCES, instance_id)
        return DeviceInstance(**doc) if doc else None

    async def create(self, instance: DeviceInstance) -> DeviceInstance:
        created = instance.model_copy(update={"id": instance.id or new_document_id()})
        await self.adapter.set(INSTANCES, created.id, created.to_document())
        return created

    async def update(self, instance_id: str, patch: Dict[str, Any]) -> DeviceInstance:
        await self.adapter.update(INSTANCES, instance_id, _camel_fields(patch))
        updated = await self.get(instance_id)
        if updated is None:
            raise RecordNotFoundError(f"Instance {instance_id} not found")
        return updated

    async def delete(self, instance_id: str) -> Optional[DeviceInstance]:
        existing = await self.get(instance_id)
        if existing is not None:
            await self.adapter.delete(INSTANCES, instance_id)
        return existing

    async def replace_for_device(
        self,
        device_id: str,
        instances: Sequence[DeviceInstance],
        device_patch: Optional[Dict[str, Any]] = None,
    ) -> List[DeviceInstance]:
        existing = await self.adapter.query_by_field(INSTANCES, "deviceId", device_id)
        created = [
            inst.model_copy(update={"id": inst.id or new_document_id(), "device_id": device_id})
            for inst in instances
        ]

        ops: List[BatchOp] = []
        if device_patch:
            ops.append(BatchOp("update", DEVICES, device_id, device_patch_to_fields(device_patch)))
        ops.extend(BatchOp("delete", INSTANCES, doc["id"]) for doc in existing)
        ops.extend(BatchOp("set", INSTANCES, inst.id, inst.to_document()) for inst in created)

        if not self.adapter.fits_one_batch(len(ops)):
            logger.warning(
                f"Device {device_id}: {len(ops)} writes exceed one batch, committing in chunks"
            )
        await self.adapter.batch_commit(ops)
        return created

    async def _delete_where(self, field_path: str, values: Sequence[str]) -> int:
        results = await asyncio.gather(*[
            self.adapter.query_by_field(INSTANCES, field_path, v) for v in set(values)
        ])
        ops = [BatchOp("delete", INSTANCES, doc["id"]) for docs in results for doc in docs]
        await self.adapter.batch_commit(ops)
        return len(ops)

    async def delete_for_devices(self, device_ids: Sequence[str]) -> int:
        return await self._delete_where("deviceId", device_ids)

    async def delete_for_locations(self, location_ids: Sequence[str]) -> int:
        return await self._delete_where("locationId", location_ids)

    async def rename_location(self, location_id: str, new_name: str) -> Set[str]:
        docs = await self.adapter.query_by_field(INSTANCES, "locationId", location_id)
        await self.adapter.batch_commit([
            BatchOp("update", INSTANCES, doc["id"], {"locationName": new_name}) for doc in docs
        ])
        return {doc.get("deviceId", "") for doc in docs}

    async def replace_all(self, instances: Sequence[DeviceInstance]) -> None:
        await _replace_collection(self.adapter, INSTANCES, instances)


# ============================================================
# Zones & maps
# ============================================================

class FirestoreLocationRepository(LocationRepository):
    """Locations documents carry the zone shape, its display name and autoName."""

    def __init__(self, adapter: FirestoreAdapter):
        self.adapter = adapter

    async def list(self) -> List[Location]:
        return [Location(**doc) for doc in await self.adapter.get_collection(LOCATIONS)]

    async def rename(self, zone_id: str, old_name: str, new_name: str) -> None:
        await self.adapter.set_merge(LOCATIONS, zone_id, {"name": new_name})

    async def sync(self, zones: Sequence[Location]) -> int:
        existing = {doc["id"]: doc for doc in await self.adapter.get_collection(LOCATIONS)}
        ops = []
        for zone in zones:
            previous = existing.get(zone.id, {}).get("name") or ""
            custom = previous if previous and previous != zone.name else zone.name
            fields = zone.to_document()
            fields.update({"name": custom, "autoName": zone.name})
            ops.append(BatchOp("set", LOCATIONS, zone.id, fields))
        await self.adapter.batch_commit(ops)
        return len(ops)

    async def delete(self, zone_ids: Sequence[str]) -> int:
        return await _delete_existing(self.adapter, LOCATIONS, zone_ids)


class FirestoreMapRepository(MapRepository):
    """
    MapConfig/<mapId> holds zones, chunkCount and updatedAt;
    MapConfig/<mapId>_chunk_<i> holds image segment i.
    """

    def __init__(self, adapter: FirestoreAdapter, chunk_size: Optional[int] = None):
        self.adapter = adapter
        self.chunk_size = chunk_size or get_settings().firestore_chunk_size

    async def load(self, map_id: str) -> MapConfiguration:
        meta = await self.adapter.get_one(MAP_CONFIG, map_id)
        if meta is None:
            return MapConfiguration(map_id=map_id)

        count = int(meta.get("chunkCount") or 0)
        chunks = await asyncio.gather(*[
            self.adapter.get_one(MAP_CONFIG, document_chunk_id(map_id, i)) for i in range(count)
        ])
        image = "".join((chunk or {}).get("data", "") for chunk in chunks)

        return MapConfiguration(
            map_id=map_id,
            map_image=image or None,
            zones=[Location.model_validate(z) for z in meta.get("zones") or [] if z.get("id")],
            updated_at=meta.get("updatedAt"),
        )

    async def save(self, map_id: str, image: Optional[str], zones: Sequence[Location]) -> MapConfiguration:
        previous = await self.adapter.get_one(MAP_CONFIG, map_id)
        old_count = int((previous or {}).get("chunkCount") or 0)
        chunks = split_image(image, self.chunk_size)

        # Chunks are near the per-request size ceiling, one write each
        for index, chunk in enumerate(chunks):
            await self.adapter.set(MAP_CONFIG, document_chunk_id(map_id, index), {
                "kind": "chunk", "mapId": map_id, "index": index, "data": chunk,
            })
        await self.adapter.batch_commit([
            BatchOp("delete", MAP_CONFIG, document_chunk_id(map_id, i))
            for i in range(len(chunks), old_count)
        ])

        now = datetime.now(timezone.utc).isoformat()
        await self.adapter.set(MAP_CONFIG, map_id, {
            "kind": "map",
            "mapId": map_id,
            "zones": [z.model_dump(by_alias=True, exclude_none=True) for z in zones],
            "chunkCount": len(chunks),
            "updatedAt": now,
        })
        logger.info(f"Saved map {map_id}: {len(zones)} zones, {len(chunks)} image chunks")
        return MapConfiguration(map_id=map_id, map_image=image or None, zones=list(zones), updated_at=now)

    async def list_maps(self) -> List[str]:
        docs = await self.adapter.query_by_field(MAP_CONFIG, "kind", "map")
        map_ids = [doc["id"] for doc in docs if doc["id"] != DEFAULT_MAP_ID]
        return [DEFAULT_MAP_ID] + sorted(map_ids)

    async def delete(self, map_id: str) -> None:
        if map_id == DEFAULT_MAP_ID:
            raise ValueError("The default map cannot be deleted")
        meta = await self.adapter.get_one(MAP_CONFIG, map_id)
        if meta is None:
            return
        count = int(meta.get("chunkCount") or 0)
        ops = [BatchOp("delete", MAP_CONFIG, document_chunk_id(map_id, i)) for i in range(count)]
        ops.append(BatchOp("delete", MAP_CONFIG, map_id))
        await self.adapter.batch_commit(ops)

    async def rename_zone(self, zone_id: str, new_name: str) -> int:
        touched = 0
        for doc in await self.adapter.query_by_field(MAP_CONFIG, "kind", "map"):
            zones = doc.get("zones") or []
            changed = False
            for zone in zones:
                if zone.get("id") == zone_id:
                    zone["name"] = new_name
                    changed = True
            if changed:
                await self.adapter.set_merge(MAP_CONFIG, doc["id"], {"zones": zones})
                touched += 1
        return touched


# ============================================================
# Software, accounts, loans, system config
# ============================================================

class FirestoreRecordRepository(RecordRepository):

    def __init__(self, adapter: FirestoreAdapter, collection: str, model: Type[Record]):
        self.adapter = adapter
        self.collection = collection
        self.model = model

    async def list(self) -> List[Record]:
        return [self.model(**doc) for doc in await self.adapter.get_collection(self.collection)]

    async def save(self, record: Record) -> Record:
        await self.adapter.set(self.collection, record.id, record.to_document())
        return record

    async def delete(self, record_id: str) -> bool:
        existed = await self.adapter.get_one(self.collection, record_id) is not None
        await self.adapter.delete(self.collection, record_id)
        return existed

    async def replace_all(self, records: Sequence[Record]) -> None:
        await _replace_collection(self.adapter, self.collection, records)


class FirestoreLoanRepository(FirestoreRecordRepository, LoanRepository):

    def __init__(self, adapter: FirestoreAdapter):
        super().__init__(adapter, LOANS, Loan)

    async def get(self, loan_id: str) -> Optional[Loan]:
        doc = await self.adapter.get_one(LOANS, loan_id)
        return Loan(**doc) if doc else None

    async def open(self, loan: Loan, device_patch: Dict[str, Any]) -> Loan:
        await self.adapter.batch_commit([
            BatchOp("set", LOANS, loan.id, loan.to_document()),
            BatchOp("update", DEVICES, loan.device_id, device_patch_to_fields(device_patch)),
        ])
        return loan

    async def close(self, loan: Loan, device_patch: Dict[str, Any]) -> Loan:
        ops = [BatchOp("update", LOANS, loan.id, loan.to_document())]
        if await self.adapter.get_one(DEVICES, loan.device_id) is not None:
            ops.append(BatchOp("update", DEVICES, loan.device_id, device_patch_to_fields(device_patch)))
        else:
            logger.warning(f"Loan {loan.id} returned for a device that no longer exists")
        await self.adapter.batch_commit(ops)
        return loan


class FirestoreSystemConfigRepository(SystemConfigRepository):
    """One document per key: SystemConfig/<key> = {value}."""

    def __init__(self, adapter: FirestoreAdapter):
        self.adapter = adapter

    async def load(self) -> Dict[str, str]:
        docs = await self.adapter.get_collection(SYSTEM_CONFIG)
        return {doc["id"]: doc.get("value", "") for doc in docs}

    async def save(self, values: Dict[str, str]) -> None:
        await self.adapter.batch_commit([
            BatchOp("set", SYSTEM_CONFIG, key, {"value": value}) for key, value in values.items()
        ])


def build_firestore_workspace(adapter: FirestoreAdapter, chunk_size: Optional[int] = None) -> Workspace:
    return Workspace(
        kind="firebase",
        tenant_id=adapter.project_id,
        devices=FirestoreDeviceRepository(adapter),
        instances=FirestoreInstanceRepository(adapter),
        locations=FirestoreLocationRepository(adapter),
        maps=FirestoreMapRepository(adapter, chunk_size),
        software=FirestoreRecordRepository(adapter, SOFTWARE, Software),
        accounts=FirestoreRecordRepository(adapter, ACCOUNTS, Account),
        loans=FirestoreLoanRepository(adapter),
        system_config=FirestoreSystemConfigRepository(adapter),
    )
