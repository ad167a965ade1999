# fog_mobility/io/business_events.py

from dataclasses import dataclass


# Base type for analytics records (not scheduled in the kernel!)
@dataclass
class BizEvent:
    run_id: str
    t: float  # simulation time
    name: str  # stable event name


@dataclass
class DeviceMovedBiz(BizEvent):
    device_id: int
    lat: float
    lon: float
    remaining_waypoints: int


@dataclass
class DeviceReparentedBiz(BizEvent):
    device_id: int
    old_parent: int | None
    new_parent: int
    latency_s: float


@dataclass
class OrchestratorChangedBiz(BizEvent):
    device_id: int
    old_orchestrator: int | None
    new_orchestrator: int


@dataclass
class StaleCallbackDroppedBiz(BizEvent):
    device_id: int
    event: str
    task_id: int
    current_task_id: int
