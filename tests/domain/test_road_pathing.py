# tests/domain/test_road_pathing.py
import pytest

from fog_mobility.domain.entities.attractor import Attractor
from fog_mobility.domain.entities.geography import Location
from fog_mobility.domain.mechanics.mechanics_road_pathing import (
    RoadPathingStrategy,
    RoutePath,
    RouteResponse,
)
from fog_mobility.policy.pause import UniformPauseTimePolicy

START = Location(-37.8200, 144.9550)


def attractor(point: Location) -> Attractor:
    return Attractor(point, "target", 0.0, 0.0, UniformPauseTimePolicy(0))


class FixedOracle:
    def __init__(self, *paths: RoutePath, errors=()):
        self.paths, self.errors = list(paths), list(errors)
        self.calls = []

    def route(self, olat, olon, dlat, dlon, profile, *, max_paths=1, max_weight_factor=1.0):
        self.calls.append((profile, max_paths, max_weight_factor))
        return RouteResponse(paths=self.paths, errors=self.errors)


class BrokenOracle:
    def route(self, *args, **kwargs):
        raise ConnectionError("router down")


def polyline(*metres_east: float) -> RoutePath:
    pts = [START.destination_point(90.0, m / 1000.0) for m in metres_east]
    return RoutePath(tuple(p.as_tuple() for p in pts), distance_m=max(metres_east))


def test_polyline_keeps_points_five_metres_apart_and_always_the_last():
    route = polyline(0, 2, 4, 7, 30, 31, 32)
    s = RoadPathingStrategy(FixedOracle(route), seed=1)
    dest = Location(*route.points[-1])
    path = s.make_path(attractor(dest), 2.0, START, now=100.0)

    emitted_m = [round(START.distance_km(w.location) * 1000) for w in path]
    assert emitted_m == [7, 30, 32]
    assert path.last().location == dest
    # time accumulates along every polyline segment, emitted or not
    assert path.last().arrival_time == pytest.approx(100.0 + 32 / 2.0, rel=1e-3)
    assert path.is_time_ordered()


def test_router_error_falls_back_to_single_straight_leg():
    dest = START.destination_point(0.0, 0.8)
    s = RoadPathingStrategy(FixedOracle(errors=["no route"]), seed=1)
    path = s.make_path(attractor(dest), 4.0, START, now=0.0)
    assert len(path) == 1
    assert path.head().location == dest
    assert path.head().arrival_time == pytest.approx(800.0 / 4.0, rel=1e-6)


def test_router_exception_falls_back_to_evenly_split_legs():
    dest = START.destination_point(0.0, 3.0)  # 3000 m -> 2 intermediate points
    s = RoadPathingStrategy(BrokenOracle(), seed=1)
    path = s.make_path(attractor(dest), 10.0, START, now=50.0)
    pts = list(path)
    assert len(pts) == 3
    assert pts[-1].location == dest
    assert [w.arrival_time for w in pts] == pytest.approx([150.0, 250.0, 350.0], rel=1e-6)
    for i, w in enumerate(pts[:-1], start=1):
        assert START.distance_km(w.location) == pytest.approx(3.0 * i / 3, rel=1e-3)


def test_alternative_route_taken_when_probability_is_one():
    best = polyline(0, 10, 20)
    alt = polyline(0, 50, 100)
    oracle = FixedOracle(best, alt)
    s = RoadPathingStrategy(
        oracle, seed=1, allow_alternatives=True, alternative_probability=1.0, max_paths=3
    )
    path = s.make_path(attractor(Location(*alt.points[-1])), 5.0, START, now=0.0)
    assert path.last().location == Location(*alt.points[-1])
    assert oracle.calls == [("car", 3, 2.0)]


def test_best_route_without_alternatives():
    best = polyline(0, 10, 20)
    alt = polyline(0, 50, 100)
    s = RoadPathingStrategy(FixedOracle(best, alt), seed=1)
    path = s.make_path(attractor(Location(*best.points[-1])), 5.0, START, now=0.0)
    assert path.last().location == Location(*best.points[-1])
