"""
EduAsset - Unconfigured Workspace
Stand-in repositories used when a request carries no backend configuration

Reads return empty results so read-only pages render an empty state;
writes raise NotConfiguredError.
"""
from typing import Any, Dict, List, Optional

from eduasset.models.device import Device, DeviceInstance
from eduasset.models.location import Location, MapConfiguration
from eduasset.models.records import Loan
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
from eduasset.services.backends.errors import NotConfiguredError
from eduasset.services.map_chunks import DEFAULT_MAP_ID


def _refuse(*args, **kwargs):
    raise NotConfiguredError("No backend configured")


async def _refuse_async(*args, **kwargs):
    _refuse()


class UnconfiguredDevices(DeviceRepository):

    async def list(self) -> List[Device]:
        return []

    async def get(self, device_id: str) -> Optional[Device]:
        return None

    update = _refuse_async
    create_many = _refuse_async
    delete = _refuse_async
    delete_all = _refuse_async
    set_status = _refuse_async
    replace_all = _refuse_async


class UnconfiguredInstances(InstanceRepository):

    async def list(self) -> List[DeviceInstance]:
        return []

    async def list_for_device(self, device_id: str) -> List[DeviceInstance]:
        return []

    async def get(self, instance_id: str) -> Optional[DeviceInstance]:
        return None

    create = _refuse_async
    update = _refuse_async
    delete = _refuse_async
    replace_for_device = _refuse_async
    rename_location = _refuse_async
    delete_for_devices = _refuse_async
    delete_for_locations = _refuse_async
    replace_all = _refuse_async


class UnconfiguredLocations(LocationRepository):

    async def list(self) -> List[Location]:
        return []

    rename = _refuse_async
    sync = _refuse_async
    delete = _refuse_async


class UnconfiguredMaps(MapRepository):

    async def load(self, map_id: str) -> MapConfiguration:
        return MapConfiguration(map_id=map_id)

    async def list_maps(self) -> List[str]:
        return [DEFAULT_MAP_ID]

    save = _refuse_async
    delete = _refuse_async
    rename_zone = _refuse_async


class UnconfiguredRecords(RecordRepository):

    async def list(self) -> List[Any]:
        return []

    save = _refuse_async
    delete = _refuse_async
    replace_all = _refuse_async


class UnconfiguredLoans(UnconfiguredRecords, LoanRepository):

    async def get(self, loan_id: str) -> Optional[Loan]:
        return None

    open = _refuse_async
    close = _refuse_async


class UnconfiguredSystemConfig(SystemConfigRepository):

    async def load(self) -> Dict[str, str]:
        return {}

    save = _refuse_async


def build_unconfigured_workspace() -> Workspace:
    return Workspace(
        kind="none",
        tenant_id=None,
        devices=UnconfiguredDevices(),
        instances=UnconfiguredInstances(),
        locations=UnconfiguredLocations(),
        maps=UnconfiguredMaps(),
        software=UnconfiguredRecords(),
        accounts=UnconfiguredRecords(),
        loans=UnconfiguredLoans(),
        system_config=UnconfiguredSystemConfig(),
    )
