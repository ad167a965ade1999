# fog_mobility/domain/entities/device.py
from dataclasses import dataclass
from enum import Enum


class DeviceRole(Enum):
    USER = "user"
    FCN = "fcn"  # fog compute node
    FON = "fon"  # fog orchestration node
    CLOUD = "cloud"

    @property
    def orchestrates(self) -> bool:
        return self in (DeviceRole.FON, DeviceRole.CLOUD)


@dataclass(frozen=True)
class FogNode:
    id: int
    name: str
    role: DeviceRole
    level: int  # 0 = cloud, users deepest
