# fog_mobility/app/controllers/mobility.py
import logging
from collections import Counter
from collections.abc import Mapping

from fog_mobility.app.events import AccidentBroadcast, MakePath, MovementUpdate
from fog_mobility.app.protocols import Clock, MobilityStrategy, TopologyOracle
from fog_mobility.domain.mobility.behaviors import MobilityEventKind
from fog_mobility.domain.mobility.state import DeviceMobilityState
from fog_mobility.io.business_events import StaleCallbackDroppedBiz
from fog_mobility.io.recorder import Recorder
from fog_mobility.sim.event import BaseEvent
from fog_mobility.sim.rng import derived_seed, seeded_generator

log = logging.getLogger(__name__)


class MobilityController:
    """
    Kernel-facing side of mobility: turns strategy delays into scheduled events.

    Events carry the device's `task_id` from when they were scheduled. Anything whose
    task id no longer matches belongs to a replaced path and is dropped untouched.
    """

    def __init__(
        self,
        strategy: MobilityStrategy,
        states: Mapping[int, DeviceMobilityState],
        oracle: TopologyOracle,
        clock: Clock,
        *,
        recorder: Recorder | None = None,
        run_id: str = "local",
    ):
        self.strategy = strategy
        self.states = states
        self.oracle = oracle
        self.clock = clock
        self.recorder = recorder
        self.run_id = run_id
        self.dropped = 0

    def _stale(self, ev: MovementUpdate | MakePath) -> bool:
        st = self.states.get(ev.device_id)
        if st is None or ev.task_id == st.task_id:
            return False
        self.dropped += 1
        log.debug(
            "stale mobility callback dropped",
            extra={
                "extra": {
                    "event": type(ev).__name__,
                    "device_id": ev.device_id,
                    "task_id": ev.task_id,
                    "current_task_id": st.task_id,
                    "t": ev.t,
                }
            },
        )
        if self.recorder:
            self.recorder.emit(
                StaleCallbackDroppedBiz(
                    run_id=self.run_id,
                    t=ev.t,
                    name="stale_callback_dropped",
                    device_id=ev.device_id,
                    event=type(ev).__name__,
                    task_id=ev.task_id,
                    current_task_id=st.task_id,
                )
            )
        return True

    def _after_path(self, device_id: int, now: float, delay: float | None) -> list[BaseEvent]:
        if delay is None:
            return []
        task_id = self.states[device_id].task_id
        return [MovementUpdate(t=now + delay, device_id=device_id, task_id=task_id)]

    # ------------------------------------------------------------ entry points

    def start_device_mobility(self, device_id: int, now: float) -> list[BaseEvent]:
        return self._after_path(device_id, now, self.strategy.start_device_mobility(device_id))

    def set_pathing_seeds(self, seed: int) -> None:
        for st in self.states.values():
            st.pathing.reseed(seed)
            st.rng = seeded_generator(derived_seed(seed, "attractor"))

    # ------------------------------------------------------------ handlers

    def on_movement_update(self, ev: MovementUpdate):
        if self._stale(ev):
            return []
        delay = self.strategy.handle_movement_update(ev.device_id, self.oracle)
        if delay is None:
            return []
        st = self.states[ev.device_id]
        if not st.path.is_empty():
            return [MovementUpdate(t=ev.t + delay, device_id=ev.device_id, task_id=st.task_id)]
        # arrived: pause, then plan the next leg
        return [MakePath(t=ev.t + delay, device_id=ev.device_id, task_id=st.task_id)]

    def on_make_path(self, ev: MakePath):
        if self._stale(ev):
            return []
        return self._after_path(ev.device_id, ev.t, self.strategy.make_path(ev.device_id))

    def on_accident(self, ev: AccidentBroadcast):
        out: list[BaseEvent] = []
        responded: Counter[str] = Counter()
        for device_id in sorted(self.states):
            st = self.states[device_id]
            delay = st.handle_event(MobilityEventKind.ACCIDENT, ev.payload)
            if delay is None:
                continue
            responded[st.kind] += 1
            out.append(MovementUpdate(t=ev.t + delay, device_id=device_id, task_id=st.task_id))
        log.info(
            "accident broadcast",
            extra={"extra": {"t": ev.t, "responded": dict(responded), "devices": len(self.states)}},
        )
        return out
