# tests/domain/test_pathing.py
import math

import pytest

from fog_mobility.domain.entities.attractor import Attractor
from fog_mobility.domain.entities.geography import Location
from fog_mobility.domain.mechanics.mechanics_pathing import (
    BeelinePathingStrategy,
    InertPathingStrategy,
    JitterPathingStrategy,
)
from fog_mobility.errors import InvariantViolation
from fog_mobility.policy.pause import UniformPauseTimePolicy

START = Location(-37.8200, 144.9550)
FAR = Location(-37.8100, 144.9700)  # ~1.7 km
NEAR = START.destination_point(90.0, 0.1)  # 100 m east


def attractor(point: Location) -> Attractor:
    return Attractor(point, "target", 10.0, 60.0, UniformPauseTimePolicy(1))


def as_tuples(path):
    return [(w.location.as_tuple(), w.arrival_time) for w in path]


def test_beeline_single_hop_partway():
    s = BeelinePathingStrategy(seed=11)
    path = s.make_path(attractor(FAR), 1.5, START, now=100.0)
    assert len(path) == 1
    wp = path.head()
    travel = wp.arrival_time - 100.0
    assert 5.0 <= travel < 10.0
    assert START.distance_km(wp.location) * 1000 == pytest.approx(1.5 * travel, rel=1e-3)


def test_beeline_reaches_target_when_speed_covers_it():
    s = BeelinePathingStrategy(seed=11)
    path = s.make_path(attractor(NEAR), 50.0, START, now=0.0)
    assert path.head().location == NEAR


def test_jitter_short_distance_is_single_waypoint_at_destination():
    s = JitterPathingStrategy(seed=5)
    path = s.make_path(attractor(NEAR), 1.4, START, now=10.0)
    assert len(path) == 1
    wp = path.head()
    assert wp.location == NEAR
    assert wp.arrival_time == pytest.approx(10.0 + START.distance_km(NEAR) * 1000 / 1.4)


def test_jitter_long_distance_segments_and_ends_at_destination():
    s = JitterPathingStrategy(seed=5)
    speed = 1.4
    path = s.make_path(attractor(FAR), speed, START, now=0.0)
    direct_m = START.distance_km(FAR) * 1000
    n = math.ceil(direct_m / 150.0)
    assert len(path) == n
    assert path.last().location == FAR
    assert path.is_time_ordered()

    pts = list(path)
    for i, wp in enumerate(pts[:-1], start=1):
        on_line = START.moved_towards(FAR, START.distance_km(FAR) * i / n)
        assert wp.location.distance_km(on_line) * 1000 <= 5.0 + 1e-6

    prev_loc, prev_t = START, 0.0
    for wp in pts:
        seg_m = prev_loc.distance_km(wp.location) * 1000
        dt = wp.arrival_time - prev_t
        assert seg_m / (speed * 1.2) - 1e-9 <= dt <= seg_m / (speed * 0.8) + 1e-9
        prev_loc, prev_t = wp.location, wp.arrival_time


def test_jitter_rejects_non_positive_speed():
    with pytest.raises(InvariantViolation):
        JitterPathingStrategy(seed=1).make_path(attractor(FAR), 0.0, START, now=0.0)


@pytest.mark.parametrize("speed", [0.0, -1.4])
def test_beeline_rejects_non_positive_speed(speed):
    s = BeelinePathingStrategy(seed=1)
    with pytest.raises(InvariantViolation):
        s.make_path(attractor(FAR), speed, START, now=0.0)


def test_inert_is_always_empty():
    path = InertPathingStrategy(seed=1).make_path(attractor(FAR), 1.4, START, now=0.0)
    assert path.is_empty()
    assert path.head() is None


@pytest.mark.parametrize("cls", [BeelinePathingStrategy, JitterPathingStrategy])
def test_same_seed_same_paths(cls):
    a, b = cls(seed=77), cls(seed=77)
    for _ in range(3):
        pa = a.make_path(attractor(FAR), 1.4, START, now=0.0)
        pb = b.make_path(attractor(FAR), 1.4, START, now=0.0)
        assert as_tuples(pa) == as_tuples(pb)


def test_reseed_discards_generator_state():
    s = JitterPathingStrategy(seed=3)
    first = as_tuples(s.make_path(attractor(FAR), 1.4, START, now=0.0))
    second = as_tuples(s.make_path(attractor(FAR), 1.4, START, now=0.0))
    assert first != second
    s.reseed(3)
    assert s.seed == 3
    assert as_tuples(s.make_path(attractor(FAR), 1.4, START, now=0.0)) == first


def test_pause_policy_uniform_and_replayable():
    p1, p2 = UniformPauseTimePolicy(9), UniformPauseTimePolicy(9)
    a = [p1.determine_pause_time(10.0, 60.0) for _ in range(20)]
    b = [p2.determine_pause_time(10.0, 60.0) for _ in range(20)]
    assert a == b
    assert all(10.0 <= x <= 60.0 for x in a)
    assert p1.determine_pause_time(7.0, 7.0) == 7.0
    with pytest.raises(ValueError):
        p1.determine_pause_time(5.0, 1.0)
