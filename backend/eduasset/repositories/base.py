"""
EduAsset - Repository Interfaces
Backend-agnostic entity access used by the synchronization engine

Concrete implementations live in repositories.sheets (row-addressed,
linear scans, sequential writes), repositories.firestore (indexed
queries, chunked atomic batches) and repositories.unconfigured
(empty reads, refused writes).
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Sequence, Set, TypeVar

from eduasset.models.device import Device, DeviceInstance
from eduasset.models.location import Location, MapConfiguration
from eduasset.models.records import Loan

T = TypeVar("T")


class DeviceRepository(ABC):

    @abstractmethod
    async def list(self) -> List[Device]:
        ...

    @abstractmethod
    async def get(self, device_id: str) -> Optional[Device]:
        ...

    @abstractmethod
    async def update(self, device_id: str, patch: Dict[str, Any]) -> Device:
        """Apply a snake_case patch; absent keys keep their value. RecordNotFoundError if missing."""

    @abstractmethod
    async def create_many(self, devices: Sequence[Device]) -> int:
        ...

    @abstractmethod
    async def delete(self, device_ids: Sequence[str]) -> int:
        ...

    @abstractmethod
    async def delete_all(self) -> None:
        ...

    @abstractmethod
    async def set_status(self, device_ids: Sequence[str], status: str) -> int:
        ...

    @abstractmethod
    async def replace_all(self, devices: Sequence[Device]) -> None:
        ...


class InstanceRepository(ABC):

    @abstractmethod
    async def list(self) -> List[DeviceInstance]:
        ...

    @abstractmethod
    async def list_for_device(self, device_id: str) -> List[DeviceInstance]:
        ...

    @abstractmethod
    async def get(self, instance_id: str) -> Optional[DeviceInstance]:
        ...

    @abstractmethod
    async def create(self, instance: DeviceInstance) -> DeviceInstance:
        ...

    @abstractmethod
    async def update(self, instance_id: str, patch: Dict[str, Any]) -> DeviceInstance:
        ...

    @abstractmethod
    async def delete(self, instance_id: str) -> Optional[DeviceInstance]:
        """Delete one instance; returns what was deleted, None when it did not exist."""

    @abstractmethod
    async def replace_for_device(
        self,
        device_id: str,
        instances: Sequence[DeviceInstance],
        device_patch: Optional[Dict[str, Any]] = None,
    ) -> List[DeviceInstance]:
        """
        Delete every instance of the device and create the given ones.

        device_patch, when given, is applied to the device in the same
        write sequence (one atomic batch where the backend has them and
        the writes fit under the cap).
        """

    @abstractmethod
    async def delete_for_devices(self, device_ids: Sequence[str]) -> int:
        ...

    @abstractmethod
    async def delete_for_locations(self, location_ids: Sequence[str]) -> int:
        ...

    @abstractmethod
    async def rename_location(self, location_id: str, new_name: str) -> Set[str]:
        """Set locationName on every instance of the location; returns affected device ids."""

    @abstractmethod
    async def replace_all(self, instances: Sequence[DeviceInstance]) -> None:
        ...


class LocationRepository(ABC):
    """Names store: display names (operator aliases win over automated names)."""

    @abstractmethod
    async def list(self) -> List[Location]:
        ...

    @abstractmethod
    async def rename(self, zone_id: str, old_name: str, new_name: str) -> None:
        ...

    @abstractmethod
    async def sync(self, zones: Sequence[Location]) -> int:
        ...

    @abstractmethod
    async def delete(self, zone_ids: Sequence[str]) -> int:
        ...


class MapRepository(ABC):
    """Floor plans: chunked image plus serialized zone list per map id."""

    @abstractmethod
    async def load(self, map_id: str) -> MapConfiguration:
        ...

    @abstractmethod
    async def save(self, map_id: str, image: Optional[str], zones: Sequence[Location]) -> MapConfiguration:
        ...

    @abstractmethod
    async def list_maps(self) -> List[str]:
        ...

    @abstractmethod
    async def delete(self, map_id: str) -> None:
        ...

    @abstractmethod
    async def rename_zone(self, zone_id: str, new_name: str) -> int:
        """Rewrite the zone's name inside every stored zone list; returns maps touched."""


class RecordRepository(ABC, Generic[T]):
    """Upsert-by-id store for flat records (software, accounts)."""

    @abstractmethod
    async def list(self) -> List[T]:
        ...

    @abstractmethod
    async def save(self, record: T) -> T:
        ...

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        ...

    @abstractmethod
    async def replace_all(self, records: Sequence[T]) -> None:
        ...


class LoanRepository(RecordRepository[Loan]):

    @abstractmethod
    async def get(self, loan_id: str) -> Optional[Loan]:
        ...

    @abstractmethod
    async def open(self, loan: Loan, device_patch: Dict[str, Any]) -> Loan:
        """Record a new loan and patch its device."""

    @abstractmethod
    async def close(self, loan: Loan, device_patch: Dict[str, Any]) -> Loan:
        """Persist a returned loan and patch its device (if it still exists)."""


class SystemConfigRepository(ABC):

    @abstractmethod
    async def load(self) -> Dict[str, str]:
        ...

    @abstractmethod
    async def save(self, values: Dict[str, str]) -> None:
        """Merge values into the stored key/value set."""


class Workspace:
    """
    Repositories of one tenant, all bound to the same backend.

    kind is "sheets", "firebase" or "none"; tenant_id is the spreadsheet id
    or the document-store project id.
    """

    def __init__(
        self,
        kind: str,
        tenant_id: Optional[str],
        devices: DeviceRepository,
        instances: InstanceRepository,
        locations: LocationRepository,
        maps: MapRepository,
        software: RecordRepository,
        accounts: RecordRepository,
        loans: LoanRepository,
        system_config: SystemConfigRepository,
    ):
        self.kind = kind
        self.tenant_id = tenant_id
        self.devices = devices
        self.instances = instances
        self.locations = locations
        self.maps = maps
        self.software = software
        self.accounts = accounts
        self.loans = loans
        self.system_config = system_config

    @property
    def configured(self) -> bool:
        return self.kind != "none"

    async def initialize(self) -> List[str]:
        """Create missing tables; returns the names created."""
        return []

    def __repr__(self) -> str:
        return f"<Workspace {self.kind}:{self.tenant_id}>"
