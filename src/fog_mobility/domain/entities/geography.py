# fog_mobility/domain/entities/geography.py
from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

EARTH_RADIUS_KM = 6371.0
METERS_PER_DEGREE = 111_000.0


@dataclass(frozen=True)
class Location:
    """Geographic point in decimal degrees. `block` is a legacy tag carried along untouched."""

    latitude: float
    longitude: float
    block: int = field(default=-1, compare=False)

    def distance_km(self, other: Location) -> float:
        # haversine
        lat1, lat2 = math.radians(self.latitude), math.radians(other.latitude)
        dlat = lat2 - lat1
        dlon = math.radians(other.longitude - self.longitude)
        a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        return EARTH_RADIUS_KM * c

    def moved_towards(self, target: Location, distance_km: float) -> Location:
        """Linear interpolation in lat/lon space; clamps to `target` once distance covers it."""
        total = self.distance_km(target)
        if total <= 0.0:
            return target
        ratio = distance_km / total
        if ratio >= 1.0:
            return target
        return Location(
            self.latitude + ratio * (target.latitude - self.latitude),
            self.longitude + ratio * (target.longitude - self.longitude),
            self.block,
        )

    def bearing_degrees(self, target: Location) -> float:
        lat1, lat2 = math.radians(self.latitude), math.radians(target.latitude)
        dlon = math.radians(target.longitude - self.longitude)
        y = math.sin(dlon) * math.cos(lat2)
        x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
        return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0

    def destination_point(self, bearing_deg: float, distance_km: float) -> Location:
        """Point reached travelling `distance_km` along a great circle with initial bearing."""
        delta = distance_km / EARTH_RADIUS_KM
        theta = math.radians(bearing_deg)
        lat1, lon1 = math.radians(self.latitude), math.radians(self.longitude)
        lat2 = math.asin(
            math.sin(lat1) * math.cos(delta) + math.cos(lat1) * math.sin(delta) * math.cos(theta)
        )
        lon2 = lon1 + math.atan2(
            math.sin(theta) * math.sin(delta) * math.cos(lat1),
            math.cos(delta) - math.sin(lat1) * math.sin(lat2),
        )
        lon2 = (math.degrees(lon2) + 540.0) % 360.0 - 180.0
        return Location(math.degrees(lat2), lon2, self.block)

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


def is_inside_polygon(point: Location, polygon: Sequence[Location]) -> bool:
    """Ray casting towards increasing longitude; odd number of crossings means inside."""
    inside = False
    lat, lon = point.latitude, point.longitude
    n = len(polygon)
    j = n - 1
    for i in range(n):
        pi, pj = polygon[i], polygon[j]
        if (pi.latitude > lat) != (pj.latitude > lat):
            cross_lon = pi.longitude + (lat - pi.latitude) * (pj.longitude - pi.longitude) / (
                pj.latitude - pi.latitude
            )
            if lon < cross_lon:
                inside = not inside
        j = i
    return inside


@dataclass(frozen=True)
class GeoArea:
    """Named simulation region: a boundary polygon plus its lat/lon bounding box."""

    name: str
    boundary: tuple[Location, ...]
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def in_bounds(self, loc: Location) -> bool:
        return (
            self.min_lat <= loc.latitude <= self.max_lat
            and self.min_lon <= loc.longitude <= self.max_lon
        )

    def contains(self, loc: Location) -> bool:
        return is_inside_polygon(loc, self.boundary)

    @property
    def centroid(self) -> Location:
        n = len(self.boundary)
        return Location(
            sum(p.latitude for p in self.boundary) / n,
            sum(p.longitude for p in self.boundary) / n,
        )
