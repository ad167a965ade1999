# fog_mobility/services/location_registry.py
import logging
from collections.abc import Mapping, Sequence

from fog_mobility.app.protocols import TopologyOracle
from fog_mobility.domain.entities.geography import Location
from fog_mobility.domain.mobility.context import MobilityContext
from fog_mobility.domain.mobility.state import DeviceMobilityState
from fog_mobility.errors import InvariantViolation

log = logging.getLogger(__name__)


class LocationRegistry(TopologyOracle):
    """
    Where every device is. Fixed resources are registered once; mobile users are read
    live from their mobility state. Proximity parent = nearest device one level up.
    """

    def __init__(
        self,
        context: MobilityContext,
        states: Mapping[int, DeviceMobilityState],
        *,
        user_level: int,
    ):
        self.context = context
        self.states = states
        self.user_level = user_level
        self._locations: dict[int, Location] = {}
        self._levels: dict[int, int] = {}

    def register_resource(self, device_id: int, location: Location, level: int) -> None:
        self._locations[device_id] = location
        self._levels[device_id] = level

    def is_user(self, device_id: int) -> bool:
        return device_id in self.states

    def level_of(self, device_id: int) -> int | None:
        if self.is_user(device_id):
            return self.user_level
        return self._levels.get(device_id)

    def location_of(self, device_id: int) -> Location | None:
        st = self.states.get(device_id)
        if st is not None:
            return st.location
        return self._locations.get(device_id)

    def distance_km(self, a: int, b: int) -> float:
        la, lb = self.location_of(a), self.location_of(b)
        if la is None or lb is None:
            raise InvariantViolation(f"no location for device {a if la is None else b}")
        return la.distance_km(lb)

    def nearest_parent(self, device_id: int, roster: Sequence[int]) -> int | None:
        here = self.location_of(device_id)
        if here is None:
            raise InvariantViolation(f"no location for device {device_id}")
        level = self.level_of(device_id)
        if level is None:
            log.warning("device level unknown", extra={"extra": {"device_id": device_id}})
            return None
        if level - 1 < 0:
            return None
        best, best_km = None, float("inf")
        for cand in roster:
            if cand == device_id or self.level_of(cand) != level - 1:
                continue
            loc = self.location_of(cand)
            if loc is None:
                continue
            d = here.distance_km(loc)
            if d < best_km:
                best, best_km = cand, d
        return best

    def direct_latency(self, a: int, b: int) -> float:
        d = self.distance_km(a, b)
        if self.is_user(a) or self.is_user(b):
            return self.context.latency.wifi(d)
        return self.context.latency.server(d)

    def point_of_interest(self, name: str) -> Location | None:
        return self.context.point_of_interest(name)
