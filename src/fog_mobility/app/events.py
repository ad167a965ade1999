# app/events.py
from dataclasses import dataclass, field
from typing import Any

from fog_mobility.sim.event import BaseEvent


@dataclass(order=True)
class MovementUpdate(BaseEvent):
    device_id: int
    task_id: int  # versioning to make stale events harmless


@dataclass(order=True)
class MakePath(BaseEvent):
    device_id: int
    task_id: int


@dataclass(order=True)
class AccidentBroadcast(BaseEvent):
    payload: Any = field(default=None, compare=False)
