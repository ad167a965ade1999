# fog_mobility/domain/mechanics/mechanics_geospace.py
import math

import numpy as np

from fog_mobility.domain.entities.geography import (
    METERS_PER_DEGREE,
    GeoArea,
    Location,
    is_inside_polygon,
)
from fog_mobility.errors import InvariantViolation
from fog_mobility.sim.rng import as_generator

MAX_ATTEMPTS = 100_000

__all__ = [
    "is_inside_polygon",
    "random_point_in_polygon",
    "random_point_within_radius",
]


def random_point_in_polygon(
    area: GeoArea, rng: np.random.Generator | int, *, max_attempts: int = MAX_ATTEMPTS
) -> Location:
    """Uniform draw in the bounding box, rejected until it falls inside `area.boundary`."""
    g = as_generator(rng)
    for _ in range(max_attempts):
        lat = g.uniform(area.min_lat, area.max_lat)
        lon = g.uniform(area.min_lon, area.max_lon)
        cand = Location(float(lat), float(lon))
        if is_inside_polygon(cand, area.boundary):
            return cand
    raise InvariantViolation(f"no point inside {area.name} after {max_attempts} draws")


def random_point_within_radius(
    center: Location,
    radius_m: float,
    rng: np.random.Generator | int,
    area: GeoArea,
    *,
    min_radius_m: float = 0.0,
    max_attempts: int = MAX_ATTEMPTS,
) -> Location:
    """
    Uniform-by-area draw in the disc (or annulus when min_radius_m > 0) around `center`,
    rejected until inside the area boundary.
    """
    if radius_m <= 0 or min_radius_m < 0 or min_radius_m > radius_m:
        raise ValueError(f"bad radius range [{min_radius_m}, {radius_m}] m")
    g = as_generator(rng)
    r_hi = radius_m / METERS_PER_DEGREE
    r_lo = min_radius_m / METERS_PER_DEGREE
    cos_lat = math.cos(math.radians(center.latitude))
    for _ in range(max_attempts):
        d = math.sqrt(g.random() * (r_hi * r_hi - r_lo * r_lo) + r_lo * r_lo)
        angle = 2 * math.pi * g.random()
        cand = Location(
            center.latitude + d * math.cos(angle),
            center.longitude + d * math.sin(angle) / cos_lat,
        )
        if is_inside_polygon(cand, area.boundary):
            return cand
    raise InvariantViolation(
        f"no point within {radius_m} m of {center.as_tuple()} inside {area.name}"
    )
