# tests/app/test_build_and_run.py
import pytest

from fog_mobility.app.build import build
from fog_mobility.domain.mechanics.mechanics_road_pathing import (
    RoadPathingStrategy,
    RoutePath,
    RouteResponse,
)
from fog_mobility.domain.mobility.behaviors import (
    AmbulanceStatus,
    ImmobileStatus,
    OperaUserStatus,
)
from fog_mobility.domain.mobility.strategy import FullMobilityStrategy, NoMobilityStrategy
from fog_mobility.errors import ConfigurationError
from fog_mobility.io.business_events import DeviceMovedBiz, DeviceReparentedBiz


def scenario(**mobility):
    return {
        "name": "melbourne-evening",
        "sim": {"seed": 33, "duration": 7200},
        "mobility": {"pathing": {"kind": "jitter"}, **mobility},
        "devices": [
            {"id": 0, "name": "cloud", "role": "cloud", "level": 0, "lat": -37.81, "lon": 144.96},
            {
                "id": 1,
                "name": "fon",
                "role": "fon",
                "level": 1,
                "lat": -37.812,
                "lon": 144.963,
                "parent": 0,
                "uplink_latency": 0.02,
            },
            {
                "id": 2,
                "name": "fcn-west",
                "role": "fcn",
                "level": 2,
                "lat": -37.814,
                "lon": 144.955,
                "parent": 1,
                "uplink_latency": 0.01,
            },
            {
                "id": 3,
                "name": "fcn-east",
                "role": "fcn",
                "level": 2,
                "lat": -37.8155,
                "lon": 144.972,
                "parent": 1,
                "uplink_latency": 0.01,
            },
            {
                "id": 10,
                "name": "walker",
                "role": "user",
                "level": 3,
                "lat": -37.815,
                "lon": 144.96,
                "parent": 2,
            },
            {
                "id": 11,
                "name": "ambulance",
                "role": "user",
                "behaviour": "ambulance",
                "speed": 12.0,
                "level": 3,
                "lat": -37.81192,
                "lon": 144.95807,
                "parent": 2,
            },
            {
                "id": 12,
                "name": "concert-goer",
                "role": "user",
                "behaviour": "opera",
                "concert_start": 3600,
                "level": 3,
                "lat": -37.815,
                "lon": 144.96,
                "parent": 2,
            },
            {
                "id": 13,
                "name": "kiosk",
                "role": "user",
                "behaviour": "immobile",
                "level": 3,
                "lat": -37.816,
                "lon": 144.97,
                "parent": 3,
            },
        ],
    }


def test_build_wires_states_and_topology():
    app = build(scenario(), use_logging=False, record_to_memory=True)
    assert isinstance(app.strategy, FullMobilityStrategy)
    assert set(app.states) == {10, 11, 12, 13}
    assert app.topology.parent(10) == 2
    assert app.topology.orchestrator(10) == 1
    assert app.topology.child_latency(1) == {2: 0.01, 3: 0.01}
    # walker and concert-goer start walking, ambulance and kiosk wait
    assert app.kernel.pending == 2


def test_evening_with_accident():
    app = build(scenario(accident_at=1800.0), use_logging=False, record_to_memory=True)
    app.run(until=3600.0)

    opera = app.states[12]
    assert opera.status is OperaUserStatus.IMMOBILE
    assert opera.behavior.relocated
    assert app.topology.parent(12) == 3

    ambulance = app.states[11]
    assert ambulance.status is not AmbulanceStatus.WAITING_FOR_EMERGENCY
    assert min(ambulance.journal) >= 1800.0

    kiosk = app.states[13]
    assert kiosk.status is ImmobileStatus.STATIONARY
    assert kiosk.journal == {}

    sink = app.recorder.sinks[0]
    assert any(e.device_id == 12 for e in sink.of_type(DeviceReparentedBiz))
    assert {e.device_id for e in sink.of_type(DeviceMovedBiz)} == {10, 11, 12}
    assert app.topology.check_tree() is None


def test_without_accident_ambulance_never_leaves():
    app = build(scenario(), use_logging=False, record_to_memory=True)
    app.run(until=2000.0)
    assert app.states[11].status is AmbulanceStatus.WAITING_FOR_EMERGENCY
    assert app.states[11].journal == {}
    assert app.states[12].status is OperaUserStatus.AT_OPERA


def test_same_seed_same_run():
    def journal(**kw):
        app = build(scenario(), use_logging=False, record_to_memory=True, **kw)
        app.run(until=1200.0)
        return [(t, loc.as_tuple()) for t, loc in app.states[10].journal.items()]

    assert journal() == journal()
    assert journal(pathing_seed=5) == journal(pathing_seed=5)
    assert journal(pathing_seed=5) != journal(pathing_seed=6)


def test_mobility_disabled_builds_topology_only():
    app = build(scenario(enabled=False), use_logging=False, record_to_memory=True)
    assert isinstance(app.strategy, NoMobilityStrategy)
    assert app.kernel.pending == 0
    assert app.topology.parent(13) == 3
    assert app.run() == 0


def test_road_pathing_requires_an_oracle():
    with pytest.raises(ConfigurationError):
        build(scenario(pathing={"kind": "road"}), use_logging=False, record_to_memory=True)


class StraightLineRouter:
    def route(self, olat, olon, dlat, dlon, profile, *, max_paths=1, max_weight_factor=1.0):
        return RouteResponse(paths=[RoutePath(((olat, olon), (dlat, dlon)), distance_m=0.0)])


def test_road_pathing_with_oracle():
    app = build(
        scenario(pathing={"kind": "road", "profile": "foot"}),
        use_logging=False,
        record_to_memory=True,
        routing_oracle=StraightLineRouter(),
    )
    assert isinstance(app.states[10].pathing, RoadPathingStrategy)
    assert app.states[10].pathing.profile == "foot"
    app.run(until=1200.0)
    assert app.states[12].status is OperaUserStatus.AT_OPERA
