# fog_mobility/app/protocols.py
from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from fog_mobility.domain.entities.geography import Location
from fog_mobility.domain.entities.motion import WayPointPath

if TYPE_CHECKING:
    from fog_mobility.domain.entities.attractor import Attractor
    from fog_mobility.domain.mechanics.mechanics_road_pathing import RouteResponse


@runtime_checkable
class Clock(Protocol):
    @property
    def now(self) -> float: ...


# ------------- Policies & mechanics --------------------


@runtime_checkable
class PauseTimePolicy(Protocol):
    """Dwell time once a device reaches its attractor. Uniform in [min, max] by default."""

    seed: int

    def determine_pause_time(self, min_pause: float, max_pause: float) -> float: ...


@runtime_checkable
class PathingStrategy(Protocol):
    """
    Responsibilities:
      • Turn (attractor, speed, current location) into a time-stamped waypoint path.
      • Own a seeded generator; `reseed` replaces it, discarding prior state.
    Units: speed in m/s, arrival times absolute sim seconds.
    """

    kind: str
    seed: int

    def make_path(
        self, attractor: Attractor, speed: float, current: Location, now: float
    ) -> WayPointPath: ...
    def reseed(self, seed: int) -> None: ...


# ------------- External collaborators ------------------


@runtime_checkable
class RoutingOracle(Protocol):
    """Real-road routing engine. Raises or returns errors in the response on failure."""

    def route(
        self,
        origin_lat: float,
        origin_lon: float,
        dest_lat: float,
        dest_lon: float,
        profile: str,
        *,
        max_paths: int = 1,
        max_weight_factor: float = 1.0,
    ) -> RouteResponse: ...


@runtime_checkable
class TopologyOracle(Protocol):
    def nearest_parent(self, device_id: int, roster: Sequence[int]) -> int | None: ...
    def direct_latency(self, a: int, b: int) -> float: ...
    def point_of_interest(self, name: str) -> Location | None: ...


@runtime_checkable
class MobilityStrategy(Protocol):
    """
    Per-device movement plus topology maintenance.
    Delay-returning operations answer `None` for "no movement" / "not handled".
    """

    def initialize(self, devices: Sequence[int], parent_of: dict[int, int | None]) -> None: ...
    def start_device_mobility(self, device_id: int) -> float | None: ...
    def make_path(self, device_id: int) -> float | None: ...
    def handle_movement_update(
        self, device_id: int, topology_oracle: TopologyOracle
    ) -> float | None: ...
    def update_device_parent(
        self, device_id: int, new_parent: int, latency: float | None = None
    ) -> int | None: ...
    def add_landmark(self, attractor: Attractor) -> None: ...
    def landmarks(self) -> list[Attractor]: ...
    def update_routing_table(self, device_id: int, new_parent: int) -> None: ...
    def set_new_orchestrator_node(self, device_id: int, new_parent: int) -> None: ...
    def parent_references(self) -> dict[int, int | None]: ...
