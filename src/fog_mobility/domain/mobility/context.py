# fog_mobility/domain/mobility/context.py
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from fog_mobility.domain.entities.geography import GeoArea, Location
from fog_mobility.errors import InvariantViolation

log = logging.getLogger(__name__)

OPERA_HOUSE = "OPERA_HOUSE"
HOSPITAL = "HOSPITAL1"


@dataclass(frozen=True)
class LatencyModel:
    """Link latency in seconds: a base term plus a per-km propagation term."""

    base_wifi_s: float = 0.030
    wifi_per_km_s: float = 1e-5
    base_server_s: float = 0.031
    server_per_km_s: float = 1e-5

    def wifi(self, distance_km: float) -> float:
        return self.base_wifi_s + self.wifi_per_km_s * distance_km

    def server(self, distance_km: float) -> float:
        return self.base_server_s + self.server_per_km_s * distance_km


@dataclass(frozen=True)
class MobilityContext:
    """Everything the mobility layer needs from configuration. Built once, passed explicitly."""

    area: GeoArea
    points_of_interest: Mapping[str, Location] = field(default_factory=dict)
    default_seed: int = 33
    max_simulation_time: float = 7200.0
    latency: LatencyModel = field(default_factory=LatencyModel)

    def __post_init__(self):
        object.__setattr__(
            self, "points_of_interest", MappingProxyType(dict(self.points_of_interest))
        )

    def point_of_interest(self, name: str, *, required: bool = False) -> Location | None:
        loc = self.points_of_interest.get(name)
        if loc is not None:
            return loc
        if required:
            raise InvariantViolation(f"required point of interest {name!r} is not configured")
        log.warning("point of interest missing", extra={"extra": {"poi": name}})
        return None
