# tests/services/test_location_registry.py
import pytest

from fog_mobility.domain.entities.geography import GeoArea, Location
from fog_mobility.domain.mobility.context import LatencyModel, MobilityContext
from fog_mobility.domain.mobility.state import DeviceMobilityState
from fog_mobility.errors import InvariantViolation
from fog_mobility.services.location_registry import LocationRegistry

AREA = GeoArea(
    name="SQUARE",
    boundary=(Location(0, 0), Location(0, 1), Location(1, 1), Location(1, 0)),
    min_lat=0,
    max_lat=1,
    min_lon=0,
    max_lon=1,
)
CTX = MobilityContext(
    area=AREA,
    points_of_interest={"DEPOT": Location(0.5, 0.5)},
    latency=LatencyModel(base_wifi_s=0.03, wifi_per_km_s=0.001, base_server_s=0.01),
)


class FakeClock:
    now = 0.0


def registry():
    users = {9: DeviceMobilityState.immobile(9, Location(0.5, 0.2), context=CTX, clock=FakeClock())}
    reg = LocationRegistry(CTX, users, user_level=2)
    reg.register_resource(0, Location(0.5, 0.5), 0)
    reg.register_resource(1, Location(0.5, 0.1), 1)
    reg.register_resource(2, Location(0.5, 0.9), 1)
    reg.register_resource(3, Location(0.5, 0.21), 0)  # closer, wrong level
    return reg, users


def test_nearest_parent_is_closest_one_level_up():
    reg, _ = registry()
    assert reg.nearest_parent(9, [0, 1, 2, 3, 9]) == 1
    assert reg.nearest_parent(1, [0, 1, 2, 3, 9]) == 3
    assert reg.nearest_parent(0, [0, 1, 2, 3, 9]) is None


def test_nearest_parent_follows_the_user():
    reg, users = registry()
    users[9].move_to(Location(0.5, 0.85), 10.0)
    assert reg.nearest_parent(9, [0, 1, 2, 9]) == 2


def test_latency_uses_wifi_for_users_and_server_otherwise():
    reg, _ = registry()
    d = reg.distance_km(9, 1)
    assert reg.direct_latency(9, 1) == pytest.approx(0.03 + 0.001 * d)
    assert reg.direct_latency(0, 1) == pytest.approx(0.01 + 1e-5 * reg.distance_km(0, 1))


def test_unknown_device_location_is_fatal():
    reg, _ = registry()
    with pytest.raises(InvariantViolation):
        reg.distance_km(9, 42)


def test_points_of_interest_come_from_the_context():
    reg, _ = registry()
    assert reg.point_of_interest("DEPOT") == Location(0.5, 0.5)
    assert reg.point_of_interest("NOWHERE") is None
