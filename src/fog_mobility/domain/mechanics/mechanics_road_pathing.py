# fog_mobility/domain/mechanics/mechanics_road_pathing.py
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from fog_mobility.app.protocols import RoutingOracle
from fog_mobility.domain.entities.geography import Location
from fog_mobility.domain.entities.motion import WayPoint, WayPointPath
from fog_mobility.domain.mechanics.mechanics_pathing import (
    SeededPathingStrategy,
    require_positive_speed,
)
from fog_mobility.errors import ExternalServiceFailure

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutePath:
    points: tuple[tuple[float, float], ...]  # (lat, lon), origin first
    distance_m: float


@dataclass
class RouteResponse:
    paths: list[RoutePath] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors) or not self.paths

    @property
    def best(self) -> RoutePath:
        return self.paths[0]


class RoadPathingStrategy(SeededPathingStrategy):
    """
    Follows the polyline of an external road router. Any router error or exception falls
    back to a straight line, split so no leg is longer than LONG_LEG_M.
    """

    kind = "road"

    MIN_WAYPOINT_SPACING_M = 5.0
    LONG_LEG_M = 1200.0

    def __init__(
        self,
        oracle: RoutingOracle,
        seed: int = 0,
        *,
        profile: str = "car",
        allow_alternatives: bool = False,
        alternative_probability: float = 0.0,
        max_weight_factor: float = 2.0,
        max_paths: int = 5,
    ):
        super().__init__(seed)
        self.oracle = oracle
        self.profile = profile
        self.allow_alternatives = allow_alternatives
        self.alternative_probability = alternative_probability
        self.max_weight_factor = max_weight_factor
        self.max_paths = max_paths

    def make_path(self, attractor, speed, current, now):
        require_positive_speed(speed)
        dest = attractor.point
        try:
            rsp = self._query(current, dest)
            if rsp.has_errors:
                raise ExternalServiceFailure("; ".join(rsp.errors) or "router returned no path")
            route = self._choose(rsp.paths)
            return self.path_from_points(route, speed, current, now)
        except Exception as exc:
            log.warning(
                "road routing failed, using straight-line fallback",
                extra={
                    "extra": {
                        "origin": current.as_tuple(),
                        "dest": dest.as_tuple(),
                        "profile": self.profile,
                        "error": str(exc),
                    }
                },
            )
            return self.fallback_path(current, dest, speed, now)

    def _query(self, origin: Location, dest: Location):
        if self.allow_alternatives:
            return self.oracle.route(
                origin.latitude,
                origin.longitude,
                dest.latitude,
                dest.longitude,
                self.profile,
                max_paths=self.max_paths,
                max_weight_factor=self.max_weight_factor,
            )
        return self.oracle.route(
            origin.latitude, origin.longitude, dest.latitude, dest.longitude, self.profile
        )

    def _choose(self, paths: Sequence[RoutePath]) -> RoutePath:
        if (
            self.allow_alternatives
            and len(paths) > 1
            and self.rng.random() <= self.alternative_probability
        ):
            return paths[int(self.rng.integers(1, len(paths)))]
        return paths[0]

    def path_from_points(
        self, route: RoutePath, speed: float, current: Location, now: float
    ) -> WayPointPath:
        path = WayPointPath()
        pts = [Location(lat, lon) for lat, lon in route.points]
        if not pts:
            return path
        tail = pts[1:] if len(pts) > 1 else pts
        prev = current
        t = now
        covered_km = 0.0
        since_emit_m = 0.0
        for i, loc in enumerate(tail):
            seg_km = prev.distance_km(loc)
            covered_km += seg_km
            since_emit_m += seg_km * 1000.0
            t += seg_km * 1000.0 / speed
            if i == len(tail) - 1 or since_emit_m >= self.MIN_WAYPOINT_SPACING_M:
                path.add(WayPoint(loc, t))
                since_emit_m = 0.0
            prev = loc
        if not math.isclose(covered_km * 1000.0, route.distance_m, rel_tol=0.05, abs_tol=1.0):
            log.debug(
                "router distance differs from polyline length",
                extra={"extra": {"router_m": route.distance_m, "polyline_m": covered_km * 1000}},
            )
        return path

    def fallback_path(
        self, current: Location, dest: Location, speed: float, now: float
    ) -> WayPointPath:
        path = WayPointPath()
        dist_km = current.distance_km(dest)
        total_s = dist_km * 1000.0 / speed
        if dist_km * 1000.0 > self.LONG_LEG_M:
            n = int(dist_km * 1000.0 // self.LONG_LEG_M)
            step_s = total_s / (n + 1)
            for i in range(1, n + 1):
                mid = current.moved_towards(dest, dist_km * i / (n + 1))
                path.add(WayPoint(mid, now + step_s * i))
        path.add(WayPoint(dest, now + total_s))
        return path
