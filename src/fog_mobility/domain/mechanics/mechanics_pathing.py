# fog_mobility/domain/mechanics/mechanics_pathing.py
import math

from fog_mobility.app.protocols import PathingStrategy
from fog_mobility.domain.entities.attractor import Attractor
from fog_mobility.domain.entities.geography import Location
from fog_mobility.domain.entities.motion import WayPoint, WayPointPath
from fog_mobility.errors import InvariantViolation
from fog_mobility.sim.rng import seeded_generator


class SeededPathingStrategy(PathingStrategy):
    kind = "abstract"

    def __init__(self, seed: int = 0):
        self.reseed(seed)

    def reseed(self, seed: int) -> None:
        # new handle, never in-place
        self.seed = int(seed)
        self.rng = seeded_generator(self.seed)

    def make_path(
        self, attractor: Attractor, speed: float, current: Location, now: float
    ) -> WayPointPath:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(seed={self.seed})"


def require_positive_speed(speed: float) -> None:
    if not speed > 0:
        raise InvariantViolation(f"speed must be > 0 m/s to build a path, got {speed}")


class BeelinePathingStrategy(SeededPathingStrategy):
    """One hop of 5-10 s straight at the attractor; stops short unless speed*time covers it."""

    kind = "beeline"

    def make_path(self, attractor, speed, current, now):
        require_positive_speed(speed)
        travel_s = float(self.rng.random()) * 5.0 + 5.0
        reach_km = speed * travel_s / 1000.0
        loc = current.moved_towards(attractor.point, reach_km)
        return WayPointPath.of([WayPoint(loc, now + travel_s)])


class JitterPathingStrategy(SeededPathingStrategy):
    """
    Pedestrian-like path: ~150 m segments with a lateral wobble that tapers at both ends
    and a per-segment speed variation. The last waypoint is always the destination.
    """

    kind = "jitter"

    WAYPOINT_SPACING_M = 150.0
    MAX_DEVIATION_M = 5.0
    MAX_SPEED_VARIATION = 0.2
    MIN_DEVIATION_KM = 0.0001

    def _segment_speed(self, speed: float) -> float:
        return speed * (1.0 + (float(self.rng.random()) * 2.0 - 1.0) * self.MAX_SPEED_VARIATION)

    def make_path(self, attractor, speed, current, now):
        require_positive_speed(speed)
        dest = attractor.point
        direct_km = current.distance_km(dest)
        direct_m = direct_km * 1000.0
        path = WayPointPath()

        if direct_m < self.WAYPOINT_SPACING_M:
            path.add(WayPoint(dest, now + direct_m / speed))
            return path

        n = math.ceil(direct_m / self.WAYPOINT_SPACING_M)
        here = current
        t = now
        for i in range(1, n):
            progress = i / n
            on_line = current.moved_towards(dest, progress * direct_km)
            side = 90.0 if self.rng.random() < 0.5 else -90.0
            perp = (here.bearing_degrees(dest) + side) % 360.0
            edge = min(progress, 1.0 - progress) * 4.0
            dev_m = float(self.rng.random()) * self.MAX_DEVIATION_M * edge
            dev_km = min(dev_m, self.MAX_DEVIATION_M) / 1000.0
            point = on_line
            if dev_km > self.MIN_DEVIATION_KM:
                point = on_line.destination_point(perp, dev_km)
            t += here.distance_km(point) * 1000.0 / self._segment_speed(speed)
            path.add(WayPoint(point, t))
            here = point

        t += here.distance_km(dest) * 1000.0 / self._segment_speed(speed)
        path.add(WayPoint(dest, t))
        return path


class InertPathingStrategy(SeededPathingStrategy):
    """Never moves."""

    kind = "inert"

    def make_path(self, attractor, speed, current, now):
        return WayPointPath()
