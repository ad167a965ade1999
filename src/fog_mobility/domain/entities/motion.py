# fog_mobility/domain/entities/motion.py
from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from fog_mobility.domain.entities.geography import Location


@dataclass(frozen=True)
class WayPoint:
    location: Location
    arrival_time: float  # absolute sim seconds


@dataclass
class WayPointPath:
    """FIFO of upcoming waypoints; consumed ones are kept in `completed`."""

    waypoints: deque[WayPoint] = field(default_factory=deque)
    completed: list[WayPoint] = field(default_factory=list)

    @classmethod
    def of(cls, points: Iterable[WayPoint]) -> WayPointPath:
        return cls(deque(points))

    def add(self, wp: WayPoint) -> None:
        self.waypoints.append(wp)

    def head(self) -> WayPoint | None:
        return self.waypoints[0] if self.waypoints else None

    def last(self) -> WayPoint | None:
        return self.waypoints[-1] if self.waypoints else None

    def pop(self) -> WayPoint:
        wp = self.waypoints.popleft()
        self.completed.append(wp)
        return wp

    def is_empty(self) -> bool:
        return not self.waypoints

    def is_time_ordered(self) -> bool:
        times = [w.arrival_time for w in self.waypoints]
        return all(a <= b for a, b in zip(times, times[1:]))

    def __len__(self) -> int:
        return len(self.waypoints)

    def __iter__(self) -> Iterator[WayPoint]:
        return iter(self.waypoints)
