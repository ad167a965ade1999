# src/fog_mobility/io/config.py
"""Scenario loading and the geographic area presets it falls back on."""

import json
import logging
from collections.abc import Mapping
from pathlib import Path

from pydantic import ValidationError

from fog_mobility.config.models import LocationModel, ScenarioModel
from fog_mobility.domain.entities.geography import GeoArea, Location
from fog_mobility.domain.mobility.context import LatencyModel, MobilityContext
from fog_mobility.errors import ConfigurationError

log = logging.getLogger(__name__)

DEFAULT_AREA = "MELBOURNE"
KNOWN_AREAS = frozenset({"MELBOURNE", "DUBLIN"})

# (boundary, min_lat, max_lat, min_lon, max_lon); boundary vertices in ring order
AREA_PRESETS: dict[str, tuple[tuple[tuple[float, float], ...], float, float, float, float]] = {
    "MELBOURNE": (
        (
            (-37.8234, 144.95441),
            (-37.81559, 144.97882),
            (-37.80406, 144.97107),
            (-37.81192, 144.94713),
        ),
        -37.8234,
        -37.80406,
        144.94713,
        144.97882,
    ),
}

DEFAULT_POINTS_OF_INTEREST: dict[str, dict[str, Location]] = {
    "MELBOURNE": {
        "HOSPITAL1": Location(-37.81192, 144.95807),
        "OPERA_HOUSE": Location(-37.81501, 144.97388),
    },
}


def infer_area(lat: float, lon: float) -> str | None:
    if 53.0 <= lat <= 54.0 and -7.0 <= lon <= -6.0:
        return "DUBLIN"
    if -38.0 <= lat <= -37.0 and 144.0 <= lon <= 145.0:
        return "MELBOURNE"
    return None


def resolve_area_name(loc: LocationModel) -> str:
    """Explicit name, else inferred from the coordinates given, else the default."""
    if loc.area:
        name = loc.area.upper()
        if name in KNOWN_AREAS:
            return name
        log.warning(
            "unknown geographic area, using default",
            extra={"extra": {"area": loc.area, "default": DEFAULT_AREA}},
        )
        return DEFAULT_AREA
    anchor = loc.boundary[0] if loc.boundary else None
    if anchor is None and loc.min_lat is not None and loc.min_lon is not None:
        anchor = (loc.min_lat, loc.min_lon)
    if anchor is not None:
        inferred = infer_area(*anchor)
        if inferred:
            return inferred
        return "CUSTOM"
    return DEFAULT_AREA


def build_area(loc: LocationModel) -> GeoArea:
    name = resolve_area_name(loc)
    if not loc.boundary and name not in AREA_PRESETS:
        log.warning(
            "no boundary configured and no preset for area, using default",
            extra={"extra": {"area": name, "default": DEFAULT_AREA}},
        )
        name = DEFAULT_AREA
    if loc.boundary:
        ring = [tuple(p) for p in loc.boundary]
        lats, lons = [p[0] for p in ring], [p[1] for p in ring]
        bounds = (min(lats), max(lats), min(lons), max(lons))
    else:
        ring = list(AREA_PRESETS[name][0])
        bounds = AREA_PRESETS[name][1:]
    # explicit bounds win over derived ones
    explicit = (loc.min_lat, loc.max_lat, loc.min_lon, loc.max_lon)
    min_lat, max_lat, min_lon, max_lon = (
        e if e is not None else d for e, d in zip(explicit, bounds)
    )
    area = GeoArea(
        name=name,
        boundary=tuple(Location(lat, lon) for lat, lon in ring),
        min_lat=min_lat,
        max_lat=max_lat,
        min_lon=min_lon,
        max_lon=max_lon,
    )
    _check_area(area)
    return area


def _check_area(area: GeoArea) -> None:
    if area.min_lat >= area.max_lat or area.min_lon >= area.max_lon:
        log.warning(
            "area bounds are empty or inverted",
            extra={
                "extra": {
                    "area": area.name,
                    "lat": (area.min_lat, area.max_lat),
                    "lon": (area.min_lon, area.max_lon),
                }
            },
        )
    outside = [p.as_tuple() for p in area.boundary if not area.in_bounds(p)]
    if outside:
        log.warning(
            "boundary vertices outside the bounding box",
            extra={"extra": {"area": area.name, "points": outside}},
        )


def build_points_of_interest(loc: LocationModel, area: GeoArea) -> dict[str, Location]:
    pois = dict(DEFAULT_POINTS_OF_INTEREST.get(area.name, {}))
    pois.update({k.upper(): Location(p.lat, p.lon) for k, p in loc.points_of_interest.items()})
    for name, p in pois.items():
        if not area.in_bounds(p):
            log.warning(
                "point of interest outside the area bounds",
                extra={"extra": {"poi": name, "at": p.as_tuple(), "area": area.name}},
            )
    return pois


def build_context(model: ScenarioModel) -> MobilityContext:
    area = build_area(model.location)
    lat = model.latency
    return MobilityContext(
        area=area,
        points_of_interest=build_points_of_interest(model.location, area),
        default_seed=model.sim.seed,
        max_simulation_time=model.sim.duration,
        latency=LatencyModel(
            base_wifi_s=lat.base_wifi_s,
            wifi_per_km_s=lat.wifi_per_km_s,
            base_server_s=lat.base_server_s,
            server_per_km_s=lat.server_per_km_s,
        ),
    )


def load_scenario(src: str | Path | Mapping) -> ScenarioModel:
    """Validate a scenario from a mapping or a JSON file."""
    if isinstance(src, Mapping):
        raw = src
    else:
        path = Path(src)
        try:
            raw = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"cannot read scenario {path}: {exc}") from exc
    try:
        return ScenarioModel.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
