# fog_mobility/domain/mobility/strategy.py
from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, Sequence

from fog_mobility.app.protocols import Clock, MobilityStrategy, TopologyOracle
from fog_mobility.domain.entities.attractor import Attractor
from fog_mobility.domain.mobility.state import DeviceMobilityState
from fog_mobility.domain.topology import Topology
from fog_mobility.errors import InvariantViolation
from fog_mobility.io.business_events import (
    DeviceMovedBiz,
    DeviceReparentedBiz,
    OrchestratorChangedBiz,
)
from fog_mobility.io.recorder import Recorder

log = logging.getLogger(__name__)

ARRIVAL_EPSILON = 1e-5


class FullMobilityStrategy(MobilityStrategy):
    """
    Advances devices waypoint by waypoint and keeps the topology consistent as they move:
    proximity reparenting, child latencies, orchestrator reassignment and routing tables.

    Every public operation finishes all of its mutations before returning.
    """

    def __init__(
        self,
        states: Mapping[int, DeviceMobilityState],
        topology: Topology,
        clock: Clock,
        *,
        recorder: Recorder | None = None,
        run_id: str = "local",
    ):
        self.states = states
        self.topology = topology
        self.clock = clock
        self.recorder = recorder
        self.run_id = run_id
        self.roster: list[int] = []
        self._landmarks: list[Attractor] = []

    # ------------------------------------------------------------ setup

    def initialize(
        self,
        devices: Sequence[int],
        parent_of: Mapping[int, int | None],
        *,
        uplink_latency: Mapping[int, float] | None = None,
        routing: Mapping[int, Mapping[int, int]] | None = None,
    ) -> None:
        self.roster = list(devices)
        self.topology.load(
            copy.deepcopy(dict(parent_of)), uplink_latency=uplink_latency, routing=routing
        )

    def _state(self, device_id: int) -> DeviceMobilityState:
        st = self.states.get(device_id)
        if st is None:
            raise InvariantViolation(f"no mobility state for device {device_id}")
        return st

    def _biz(self, ev) -> None:
        if self.recorder:
            self.recorder.emit(ev)

    # ------------------------------------------------------------ movement

    def start_device_mobility(self, device_id: int) -> float | None:
        return self.make_path(device_id)

    def make_path(self, device_id: int) -> float | None:
        st = self._state(device_id)
        st.start_moving()
        st.update_attraction_point(st.attractor)
        st.make_path()
        head = st.path.head()
        if head is None:
            log.info(
                "empty path, device stays put",
                extra={"extra": {"device_id": device_id, "kind": st.kind, "t": self.clock.now}},
            )
            return None
        delay = head.arrival_time - self.clock.now
        if delay < 0:
            raise InvariantViolation(f"device {device_id}: new path starts {delay}s in the past")
        return delay

    def handle_movement_update(self, device_id: int, topology_oracle: TopologyOracle) -> float:
        st = self._state(device_id)
        head = st.path.head()
        if head is None:
            raise InvariantViolation(f"movement update for device {device_id} with no waypoint")
        now = self.clock.now
        if abs(head.arrival_time - now) > ARRIVAL_EPSILON:
            raise InvariantViolation(
                f"device {device_id}: waypoint due at {head.arrival_time}, clock at {now}"
            )

        st.move_to(head.location, now)
        self._biz(
            DeviceMovedBiz(
                run_id=self.run_id,
                t=now,
                name="device_moved",
                device_id=device_id,
                lat=head.location.latitude,
                lon=head.location.longitude,
                remaining_waypoints=len(st.path) - 1,
            )
        )

        proposed = topology_oracle.nearest_parent(device_id, self.roster)
        if proposed is not None and proposed != self.topology.parent(device_id):
            latency = topology_oracle.direct_latency(device_id, proposed)
            self.update_device_parent(device_id, proposed, latency)

        st.path.pop()
        nxt = st.path.head()
        if nxt is not None:
            delay = nxt.arrival_time - now
            if delay < 0:
                raise InvariantViolation(f"device {device_id}: waypoints out of order")
            return delay

        st.reached_destination()
        return st.determine_pause_time()

    # ------------------------------------------------------------ topology primitives

    def update_device_parent(
        self, device_id: int, new_parent: int, latency: float | None = None
    ) -> int | None:
        """Reparent plus orchestrator and routing follow-up. Returns the old parent."""
        if latency is None:
            latency = self.topology.uplink_latency(device_id) or 0.0
        old = self.topology.reparent(device_id, new_parent, latency)
        log.debug(
            "device reparented",
            extra={
                "extra": {
                    "device_id": device_id,
                    "old_parent": old,
                    "new_parent": new_parent,
                    "latency_s": latency,
                    "t": self.clock.now,
                }
            },
        )
        self._biz(
            DeviceReparentedBiz(
                run_id=self.run_id,
                t=self.clock.now,
                name="device_reparented",
                device_id=device_id,
                old_parent=old,
                new_parent=new_parent,
                latency_s=latency,
            )
        )
        self.set_new_orchestrator_node(device_id, new_parent)
        self.update_routing_table(device_id, new_parent)
        return old

    def set_new_orchestrator_node(self, device_id: int, new_parent: int) -> None:
        orch = self.topology.nearest_orchestrator(new_parent)
        if orch is None:
            log.warning(
                "no orchestrating ancestor above new parent",
                extra={"extra": {"device_id": device_id, "new_parent": new_parent}},
            )
            return
        current = self.topology.orchestrator(device_id)
        if orch == current:
            return
        self.topology.assign_orchestrator(device_id, orch)
        self._biz(
            OrchestratorChangedBiz(
                run_id=self.run_id,
                t=self.clock.now,
                name="orchestrator_changed",
                device_id=device_id,
                old_orchestrator=current,
                new_orchestrator=orch,
            )
        )

    def update_routing_table(self, device_id: int, new_parent: int) -> None:
        """
        Every other device routes to `device_id` directly when it is the new parent,
        otherwise the way it already reaches the new parent. The moved device itself
        sends everything outside its own subtree through the new parent.
        """
        topo = self.topology
        for other in self.roster:
            if other == device_id:
                continue
            if other == new_parent:
                topo.set_route(other, device_id, device_id)
                continue
            hop = topo.next_hop(other, new_parent)
            topo.set_route(other, device_id, device_id if hop is None or hop == other else hop)

        below = topo.descendants(device_id)
        for dst in self.roster:
            if dst != device_id and dst not in below:
                topo.set_route(device_id, dst, new_parent)

    def add_landmark(self, attractor: Attractor) -> None:
        self._landmarks.append(attractor)

    def landmarks(self) -> list[Attractor]:
        return list(self._landmarks)

    def parent_references(self) -> dict[int, int | None]:
        return self.topology.parent_of()


class NoMobilityStrategy(MobilityStrategy):
    """Same call sites, no mobility. Every call is logged as an error and answers None."""

    def _refuse(self, op: str, **extra):
        log.error("mobility is disabled", extra={"extra": {"op": op, **extra}})
        return None

    def initialize(self, devices, parent_of, **_):
        return self._refuse("initialize")

    def start_device_mobility(self, device_id):
        return self._refuse("start_device_mobility", device_id=device_id)

    def make_path(self, device_id):
        return self._refuse("make_path", device_id=device_id)

    def handle_movement_update(self, device_id, topology_oracle):
        return self._refuse("handle_movement_update", device_id=device_id)

    def update_device_parent(self, device_id, new_parent, latency=None):
        return self._refuse("update_device_parent", device_id=device_id)

    def add_landmark(self, attractor):
        return self._refuse("add_landmark")

    def landmarks(self):
        return self._refuse("landmarks")

    def update_routing_table(self, device_id, new_parent):
        return self._refuse("update_routing_table", device_id=device_id)

    def set_new_orchestrator_node(self, device_id, new_parent):
        return self._refuse("set_new_orchestrator_node", device_id=device_id)

    def parent_references(self):
        return self._refuse("parent_references")
