# sim/clock.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta


@dataclass(frozen=True)
class SimClock:
    """Maps simulated seconds onto wall time. Only logs read wall time; the model never does."""

    epoch: datetime  # wall-time zero of t=0

    @classmethod
    def utc_epoch(cls, y: int, m: int, d: int, hh=0, mm=0, ss=0) -> SimClock:
        return cls(datetime(y, m, d, hh, mm, ss, tzinfo=UTC))

    def to_wall(self, t: float) -> datetime:
        return self.epoch + timedelta(seconds=t)

    def stamp(self, t: float | None) -> str | None:
        """ISO-8601 wall stamp for log records; None passes through."""
        return None if t is None else self.to_wall(t).isoformat()
