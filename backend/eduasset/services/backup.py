"""
EduAsset - Backup Service
Full export and restore of a workspace, independent of its backend
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Type

from pydantic import BaseModel, ValidationError

from eduasset.models.device import Device, DeviceInstance
from eduasset.models.location import Location
from eduasset.models.records import Account, Loan, Software
from eduasset.repositories.base import Workspace
from eduasset.schemas.records import BackupPayload
from eduasset.services.map_chunks import DEFAULT_MAP_ID

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"
SOURCE_TYPES = {"sheets": "google-sheets", "firebase": "firebase"}


def _dump(records: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    return [r.model_dump(by_alias=True) for r in records]


def _load(model: Type[BaseModel], items: Iterable[Any], label: str) -> List[Any]:
    records, rejected = [], 0
    for item in items or []:
        try:
            records.append(model.model_validate(item))
        except ValidationError:
            rejected += 1
    if rejected:
        logger.warning(f"Backup import skipped {rejected} malformed {label} records")
    return records


async def export_all(workspace: Workspace) -> BackupPayload:
    """Snapshot every table/collection of the workspace."""
    devices, instances, software, accounts, loans, locations, system_config, default_map = await asyncio.gather(
        workspace.devices.list(),
        workspace.instances.list(),
        workspace.software.list(),
        workspace.accounts.list(),
        workspace.loans.list(),
        workspace.locations.list(),
        workspace.system_config.load(),
        workspace.maps.load(DEFAULT_MAP_ID),
    )

    logger.info(f"Exported {len(devices)} devices, {len(instances)} instances from {workspace}")
    return BackupPayload(
        export_date=datetime.now(timezone.utc).isoformat(),
        source_type=SOURCE_TYPES.get(workspace.kind, workspace.kind),
        version=BACKUP_VERSION,
        data={
            "devices": _dump(devices),
            "deviceInstances": _dump(instances),
            "software": _dump(software),
            "accounts": _dump(accounts),
            "loans": _dump(loans),
            "locations": _dump(locations),
            "systemConfig": system_config,
            "mapImage": default_map.map_image,
        },
    )


async def import_all(workspace: Workspace, backup: BackupPayload) -> Dict[str, int]:
    """
    Replace the workspace contents with a backup.

    Tables are rewritten one after another; a failure part-way leaves the
    earlier tables restored and the later ones untouched.
    """
    data = backup.data
    devices = _load(Device, data.get("devices"), "device")
    instances = _load(DeviceInstance, data.get("deviceInstances"), "instance")
    software = _load(Software, data.get("software"), "software")
    accounts = _load(Account, data.get("accounts") or data.get("credentials"), "account")
    loans = _load(Loan, data.get("loans"), "loan")
    locations = _load(Location, data.get("locations"), "location")
    system_config = {
        str(k): str(v) for k, v in (data.get("systemConfig") or {}).items()
        if k and not str(k).startswith("MapImage")
    }

    await workspace.devices.replace_all(devices)
    await workspace.instances.replace_all(instances)
    await workspace.software.replace_all(software)
    await workspace.accounts.replace_all(accounts)
    await workspace.loans.replace_all(loans)
    if locations:
        await workspace.locations.sync(locations)
    if system_config:
        await workspace.system_config.save(system_config)
    if data.get("mapImage") or locations:
        await workspace.maps.save(DEFAULT_MAP_ID, data.get("mapImage"), locations)

    counts = {
        "devices": len(devices),
        "deviceInstances": len(instances),
        "software": len(software),
        "accounts": len(accounts),
        "loans": len(loans),
        "locations": len(locations),
        "systemConfig": len(system_config),
    }
    logger.info(f"Imported backup ({backup.source_type}, {backup.export_date}) into {workspace}: {counts}")
    return counts
