# tests/app/test_mobility_controller.py
import pytest

from fog_mobility.app.controllers.mobility import MobilityController
from fog_mobility.app.events import AccidentBroadcast, MakePath, MovementUpdate
from fog_mobility.app.wiring import wire
from fog_mobility.domain.entities.device import DeviceRole, FogNode
from fog_mobility.domain.entities.geography import GeoArea, Location
from fog_mobility.domain.mechanics.mechanics_pathing import (
    BeelinePathingStrategy,
    JitterPathingStrategy,
)
from fog_mobility.domain.mobility.behaviors import AmbulanceStatus
from fog_mobility.domain.mobility.context import MobilityContext
from fog_mobility.domain.mobility.state import DeviceMobilityState
from fog_mobility.domain.mobility.strategy import FullMobilityStrategy
from fog_mobility.domain.topology import Topology
from fog_mobility.io.business_events import StaleCallbackDroppedBiz
from fog_mobility.io.recorder import MemorySink, Recorder
from fog_mobility.sim.kernel import Kernel

AREA = GeoArea(
    name="MELBOURNE",
    boundary=(
        Location(-37.8234, 144.95441),
        Location(-37.81559, 144.97882),
        Location(-37.80406, 144.97107),
        Location(-37.81192, 144.94713),
    ),
    min_lat=-37.8234,
    max_lat=-37.80406,
    min_lon=144.94713,
    max_lon=144.97882,
)
CTX = MobilityContext(
    area=AREA,
    points_of_interest={
        "OPERA_HOUSE": Location(-37.81501, 144.97388),
        "HOSPITAL1": Location(-37.81192, 144.95807),
    },
)
HOME = Location(-37.8150, 144.9600)


class StayPut:
    def nearest_parent(self, device_id, roster):
        return None

    def direct_latency(self, a, b):
        return 0.0

    def point_of_interest(self, name):
        return None


def setup():
    kernel = Kernel()
    states = {
        10: DeviceMobilityState.generic_user(
            10, HOME, BeelinePathingStrategy(seed=1), 1.4, context=CTX, clock=kernel
        ),
        11: DeviceMobilityState.ambulance(
            11, HOME, JitterPathingStrategy(seed=2), 12.0, context=CTX, clock=kernel
        ),
    }
    nodes = [
        FogNode(0, "cloud", DeviceRole.CLOUD, 0),
        FogNode(10, "walker", DeviceRole.USER, 1),
        FogNode(11, "ambulance", DeviceRole.USER, 1),
    ]
    sink = MemorySink()
    recorder = Recorder(sink)
    strat = FullMobilityStrategy(states, Topology(nodes), kernel, recorder=recorder)
    strat.initialize([0, 10, 11], {0: None, 10: 0, 11: 0})
    ctl = MobilityController(strat, states, StayPut(), kernel, recorder=recorder)
    wire(kernel, mobility=ctl)
    return kernel, ctl, states, sink


def test_start_schedules_first_movement_update():
    _, ctl, states, _ = setup()
    (ev,) = ctl.start_device_mobility(10, 0.0)
    assert isinstance(ev, MovementUpdate)
    assert ev.task_id == states[10].task_id
    assert ev.t == pytest.approx(states[10].path.head().arrival_time)


def test_waiting_ambulance_schedules_nothing_on_start():
    _, ctl, _, _ = setup()
    assert ctl.start_device_mobility(11, 0.0) == []


def test_walk_pause_walk_cycle_runs_on_the_kernel():
    kernel, ctl, states, _ = setup()
    kernel.schedule_all(ctl.start_device_mobility(10, 0.0))
    kernel.run(until=500.0)
    st = states[10]
    assert len(st.journal) >= 2
    assert list(st.journal) == sorted(st.journal)
    assert ctl.dropped == 0


def test_arrival_schedules_make_path_after_the_pause():
    kernel, ctl, _, _ = setup()
    made = []
    kernel.on(MakePath, made.append)
    (first,) = ctl.start_device_mobility(10, 0.0)
    kernel.schedule(first)
    kernel.run(until=first.t + 60.5)
    assert 10.0 <= made[0].t - first.t <= 60.0


def test_stale_movement_update_is_dropped():
    _, ctl, states, sink = setup()
    (old,) = ctl.start_device_mobility(10, 0.0)
    ctl.start_device_mobility(10, 0.0)  # replaces the path
    assert states[10].task_id != old.task_id
    assert ctl.on_movement_update(old) == []
    assert ctl.on_make_path(MakePath(t=old.t, device_id=10, task_id=old.task_id)) == []
    assert ctl.dropped == 2
    assert [e.event for e in sink.of_type(StaleCallbackDroppedBiz)] == [
        "MovementUpdate",
        "MakePath",
    ]


def test_accident_dispatches_only_responders():
    kernel, ctl, states, _ = setup()
    out = ctl.on_accident(AccidentBroadcast(t=0.0))
    assert [e.device_id for e in out] == [11]
    assert states[11].status is AmbulanceStatus.TRAVELLING_TO_PATIENT
    assert out[0].task_id == states[11].task_id


def test_scheduled_accident_sends_the_ambulance_out():
    kernel, ctl, states, _ = setup()
    kernel.schedule_all(ctl.start_device_mobility(10, 0.0))
    kernel.schedule(AccidentBroadcast(t=1.0))
    kernel.run(until=3000.0)
    assert states[11].status is not AmbulanceStatus.WAITING_FOR_EMERGENCY
    assert len(states[11].journal) > 0


def test_set_pathing_seeds_reseeds_every_device():
    _, ctl, states, _ = setup()
    ctl.set_pathing_seeds(99)
    assert {st.pathing.seed for st in states.values()} == {99}
    assert states[10].rng.random() == states[11].rng.random()
