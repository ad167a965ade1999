# runtime/registries.py
from collections.abc import Callable
from typing import Any

from fog_mobility.app.protocols import PathingStrategy
from fog_mobility.config.models import (
    DeviceModel,
    PathingBeelineModel,
    PathingInertModel,
    PathingJitterModel,
    PathingRoadModel,
    PathingUnion,
)
from fog_mobility.domain.entities.geography import Location
from fog_mobility.domain.mechanics.mechanics_pathing import (
    BeelinePathingStrategy,
    InertPathingStrategy,
    JitterPathingStrategy,
)
from fog_mobility.domain.mechanics.mechanics_road_pathing import RoadPathingStrategy
from fog_mobility.domain.mobility.state import DeviceMobilityState
from fog_mobility.errors import ConfigurationError

PathingFactory = Callable[[PathingUnion, dict], PathingStrategy]
StateFactory = Callable[[DeviceModel, dict], DeviceMobilityState]

_pathing_registry: dict[str, PathingFactory] = {}
_state_registry: dict[str, StateFactory] = {}


# ------------------- Pathing strategies ---------------------------


def register_pathing(kind: str):
    def deco(fn: PathingFactory):
        _pathing_registry[kind] = fn
        return fn

    return deco


def make_pathing(cfg: PathingUnion, *, seed: int, deps: dict[str, Any] | None = None):
    """deps may carry 'routing_oracle' for road pathing."""
    try:
        factory = _pathing_registry[cfg.kind]
    except KeyError:
        raise ConfigurationError(f"Unknown pathing kind {cfg.kind!r}")
    return factory(cfg, {"seed": seed, **(deps or {})})


@register_pathing("beeline")
def _make_beeline(cfg: PathingBeelineModel, deps):
    return BeelinePathingStrategy(deps["seed"])


@register_pathing("jitter")
def _make_jitter(cfg: PathingJitterModel, deps):
    return JitterPathingStrategy(deps["seed"])


@register_pathing("inert")
def _make_inert(cfg: PathingInertModel, deps):
    return InertPathingStrategy(deps["seed"])


@register_pathing("road")
def _make_road(cfg: PathingRoadModel, deps):
    oracle = deps.get("routing_oracle")
    if oracle is None:
        raise ConfigurationError("road pathing needs a routing oracle")
    return RoadPathingStrategy(
        oracle,
        deps["seed"],
        profile=cfg.profile,
        allow_alternatives=cfg.allow_alternatives,
        alternative_probability=cfg.alternative_probability,
        max_weight_factor=cfg.max_weight_factor,
        max_paths=cfg.max_paths,
    )


# ------------------- Device mobility states ---------------------------


def register_state(behaviour: str):
    def deco(fn: StateFactory):
        _state_registry[behaviour] = fn
        return fn

    return deco


def make_state(dev: DeviceModel, *, deps: dict[str, Any]) -> DeviceMobilityState:
    """deps: 'pathing', 'context', 'clock', 'seed'."""
    try:
        factory = _state_registry[dev.behaviour]
    except KeyError:
        raise ConfigurationError(f"Unknown behaviour {dev.behaviour!r} for device {dev.id}")
    return factory(dev, deps)


def _common(deps):
    return dict(context=deps["context"], clock=deps["clock"])


@register_state("generic")
def _make_generic(dev: DeviceModel, deps):
    loc = Location(dev.lat, dev.lon)
    return DeviceMobilityState.generic_user(
        dev.id, loc, deps["pathing"], dev.speed, **_common(deps)
    )


@register_state("immobile")
def _make_immobile(dev: DeviceModel, deps):
    loc = Location(dev.lat, dev.lon)
    return DeviceMobilityState.immobile(dev.id, loc, seed=deps["seed"], **_common(deps))


@register_state("ambulance")
def _make_ambulance(dev: DeviceModel, deps):
    loc = Location(dev.lat, dev.lon)
    return DeviceMobilityState.ambulance(
        dev.id, loc, deps["pathing"], dev.speed, **_common(deps)
    )


@register_state("opera")
def _make_opera(dev: DeviceModel, deps):
    loc = Location(dev.lat, dev.lon)
    return DeviceMobilityState.opera_user(
        dev.id, loc, deps["pathing"], dev.speed, dev.concert_start, **_common(deps)
    )
