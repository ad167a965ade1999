# fog_mobility/domain/entities/attractor.py
from dataclasses import dataclass

from fog_mobility.app.protocols import PauseTimePolicy
from fog_mobility.domain.entities.geography import Location


@dataclass
class Attractor:
    """Where a device is heading and how long it lingers once there."""

    point: Location
    name: str
    pause_min: float
    pause_max: float
    pause_policy: PauseTimePolicy

    def __post_init__(self):
        if self.pause_min < 0 or self.pause_max < self.pause_min:
            raise ValueError(f"bad dwell bounds [{self.pause_min}, {self.pause_max}]")

    def determine_pause_time(self) -> float:
        return self.pause_policy.determine_pause_time(self.pause_min, self.pause_max)
