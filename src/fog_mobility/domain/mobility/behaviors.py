# fog_mobility/domain/mobility/behaviors.py
"""
Per-device-kind mobility behaviour. Each variant carries its own status enum and an
explicit transition table; the shared envelope lives in `state.py`.

Triggers that a variant does not list are either ignored (`IGNORED`) or logged as an
invalid transition. Accident events are stricter, see `DeviceMobilityState.handle_event`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

from fog_mobility.app.protocols import PauseTimePolicy
from fog_mobility.domain.entities.attractor import Attractor
from fog_mobility.domain.mechanics.mechanics_geospace import (
    random_point_in_polygon,
    random_point_within_radius,
)
from fog_mobility.domain.mechanics.mechanics_pathing import require_positive_speed
from fog_mobility.domain.mobility.context import HOSPITAL, OPERA_HOUSE
from fog_mobility.errors import InvariantViolation

if TYPE_CHECKING:
    from fog_mobility.domain.mobility.state import DeviceMobilityState

log = logging.getLogger(__name__)


class Trigger(Enum):
    START_MOVING = "start_moving"
    REACHED_DESTINATION = "reached_destination"
    ACCIDENT = "accident"


class MobilityEventKind(Enum):
    ACCIDENT = "accident"


# ---------------------------------------------------------------- generic pedestrian


class GenericUserStatus(Enum):
    PAUSED = "paused"
    WALKING = "walking"


@dataclass
class GenericUserBehavior:
    kind: ClassVar[str] = "generic"
    TRANSITIONS: ClassVar[dict] = {
        (GenericUserStatus.PAUSED, Trigger.START_MOVING): GenericUserStatus.WALKING,
        (GenericUserStatus.WALKING, Trigger.REACHED_DESTINATION): GenericUserStatus.PAUSED,
    }
    IGNORED: ClassVar[frozenset] = frozenset()
    ACCEPTS: ClassVar[frozenset] = frozenset()

    status: GenericUserStatus = GenericUserStatus.PAUSED

    PAUSE_MIN: ClassVar[float] = 10.0
    PAUSE_MAX: ClassVar[float] = 60.0

    def can_plan(self) -> bool:
        return True

    def next_attractor(self, st: DeviceMobilityState, pauses: PauseTimePolicy) -> Attractor:
        point = random_point_in_polygon(st.context.area, st.rng)
        return Attractor(point, "Generic User", self.PAUSE_MIN, self.PAUSE_MAX, pauses)


# ---------------------------------------------------------------- immobile


class ImmobileStatus(Enum):
    STATIONARY = "stationary"


@dataclass
class ImmobileBehavior:
    kind: ClassVar[str] = "immobile"
    TRANSITIONS: ClassVar[dict] = {}
    IGNORED: ClassVar[frozenset] = frozenset(
        {
            (ImmobileStatus.STATIONARY, Trigger.START_MOVING),
            (ImmobileStatus.STATIONARY, Trigger.REACHED_DESTINATION),
        }
    )
    ACCEPTS: ClassVar[frozenset] = frozenset()

    status: ImmobileStatus = ImmobileStatus.STATIONARY

    def can_plan(self) -> bool:
        return False

    def next_attractor(self, st: DeviceMobilityState, pauses: PauseTimePolicy) -> Attractor | None:
        return st.attractor


# ---------------------------------------------------------------- ambulance


class AmbulanceStatus(Enum):
    WAITING_FOR_EMERGENCY = "waiting_for_emergency"
    TRAVELLING_TO_PATIENT = "travelling_to_patient"
    PAUSED_AT_PATIENT = "paused_at_patient"
    TRAVELLING_TO_HOSPITAL = "travelling_to_hospital"
    PAUSED_AT_HOSPITAL = "paused_at_hospital"


@dataclass
class AmbulanceBehavior:
    kind: ClassVar[str] = "ambulance"
    TRANSITIONS: ClassVar[dict] = {
        (AmbulanceStatus.WAITING_FOR_EMERGENCY, Trigger.ACCIDENT): (
            AmbulanceStatus.TRAVELLING_TO_PATIENT
        ),
        (AmbulanceStatus.TRAVELLING_TO_PATIENT, Trigger.REACHED_DESTINATION): (
            AmbulanceStatus.PAUSED_AT_PATIENT
        ),
        (AmbulanceStatus.PAUSED_AT_PATIENT, Trigger.START_MOVING): (
            AmbulanceStatus.TRAVELLING_TO_HOSPITAL
        ),
        (AmbulanceStatus.TRAVELLING_TO_HOSPITAL, Trigger.REACHED_DESTINATION): (
            AmbulanceStatus.PAUSED_AT_HOSPITAL
        ),
        (AmbulanceStatus.PAUSED_AT_HOSPITAL, Trigger.START_MOVING): (
            AmbulanceStatus.TRAVELLING_TO_PATIENT
        ),
    }
    # idle until dispatched
    IGNORED: ClassVar[frozenset] = frozenset(
        {(AmbulanceStatus.WAITING_FOR_EMERGENCY, Trigger.START_MOVING)}
    )
    ACCEPTS: ClassVar[frozenset] = frozenset({MobilityEventKind.ACCIDENT})

    status: AmbulanceStatus = AmbulanceStatus.WAITING_FOR_EMERGENCY
    patient_index: int = 0

    PATIENT_RADIUS_M: ClassVar[float] = 50.0
    PATIENT_PAUSE: ClassVar[tuple[float, float]] = (30.0, 60.0)
    HOSPITAL_PAUSE: ClassVar[tuple[float, float]] = (30.0, 300.0)

    def can_plan(self) -> bool:
        return self.status is not AmbulanceStatus.WAITING_FOR_EMERGENCY

    def next_attractor(self, st: DeviceMobilityState, pauses: PauseTimePolicy) -> Attractor | None:
        if self.status is AmbulanceStatus.WAITING_FOR_EMERGENCY:
            return st.attractor
        if self.status is AmbulanceStatus.TRAVELLING_TO_PATIENT:
            scene = st.context.point_of_interest(OPERA_HOUSE, required=True)
            point = random_point_within_radius(
                scene, self.PATIENT_RADIUS_M, st.rng, st.context.area
            )
            self.patient_index += 1
            lo, hi = self.PATIENT_PAUSE
            return Attractor(point, f"Random Patient {self.patient_index}", lo, hi, pauses)
        if self.status is AmbulanceStatus.TRAVELLING_TO_HOSPITAL:
            hospital = st.context.point_of_interest(HOSPITAL, required=True)
            lo, hi = self.HOSPITAL_PAUSE
            return Attractor(hospital, "Hospital", lo, hi, pauses)
        raise InvariantViolation(
            f"ambulance {st.device_id}: no attractor for status {self.status.name}"
        )


# ---------------------------------------------------------------- concert-goer


class OperaUserStatus(Enum):
    TRAVELING_TO_OPERA = "traveling_to_opera"
    AT_OPERA = "at_opera"
    IMMOBILE = "immobile"


@dataclass
class OperaUserBehavior:
    kind: ClassVar[str] = "opera"
    TRANSITIONS: ClassVar[dict] = {
        (OperaUserStatus.TRAVELING_TO_OPERA, Trigger.REACHED_DESTINATION): (
            OperaUserStatus.AT_OPERA
        ),
        (OperaUserStatus.AT_OPERA, Trigger.ACCIDENT): OperaUserStatus.IMMOBILE,
    }
    IGNORED: ClassVar[frozenset] = frozenset(
        {
            (OperaUserStatus.TRAVELING_TO_OPERA, Trigger.START_MOVING),
            (OperaUserStatus.AT_OPERA, Trigger.START_MOVING),
            (OperaUserStatus.AT_OPERA, Trigger.REACHED_DESTINATION),
            (OperaUserStatus.IMMOBILE, Trigger.START_MOVING),
            (OperaUserStatus.IMMOBILE, Trigger.REACHED_DESTINATION),
        }
    )
    ACCEPTS: ClassVar[frozenset] = frozenset({MobilityEventKind.ACCIDENT})

    concert_start: float
    status: OperaUserStatus = OperaUserStatus.TRAVELING_TO_OPERA
    relocated: bool = False

    ARRIVAL_MARGIN: ClassVar[float] = 15.0
    # jitter pathing can run 20% slow on any segment
    SPEED_BUFFER: ClassVar[float] = 1.0 / (1.0 - 0.2)
    MAX_SPEEDUP: ClassVar[float] = 3.0
    EVACUATION_RADIUS_M: ClassVar[tuple[float, float]] = (100.0, 300.0)

    def can_plan(self) -> bool:
        if self.status is OperaUserStatus.AT_OPERA:
            return False
        return not (self.status is OperaUserStatus.IMMOBILE and self.relocated)

    def next_attractor(self, st: DeviceMobilityState, pauses: PauseTimePolicy) -> Attractor | None:
        stay = st.context.max_simulation_time
        venue = st.context.point_of_interest(OPERA_HOUSE, required=True)
        if self.status is OperaUserStatus.TRAVELING_TO_OPERA:
            return Attractor(venue, "Opera House", stay, stay, pauses)
        if self.status is OperaUserStatus.IMMOBILE and not self.relocated:
            lo, hi = self.EVACUATION_RADIUS_M
            point = random_point_within_radius(
                venue, hi, st.rng, st.context.area, min_radius_m=lo
            )
            return Attractor(point, "Evacuation Point", stay, stay, pauses)
        return st.attractor

    def adjusted_speed(self, distance_m: float, speed: float, now: float) -> float:
        """
        Speed needed to reach the venue `ARRIVAL_MARGIN` before the concert.
        Unchanged when `speed` already makes it; fatal when it would take 3x or more.
        """
        require_positive_speed(speed)
        if now + distance_m / speed <= self.concert_start - self.ARRIVAL_MARGIN:
            return speed
        available = self.concert_start - now - self.ARRIVAL_MARGIN
        if available <= 0:
            raise InvariantViolation(
                f"opera user cannot arrive in time: {available:.1f}s left before concert"
            )
        required = distance_m / available * self.SPEED_BUFFER
        if required >= speed * self.MAX_SPEEDUP:
            raise InvariantViolation(
                f"opera user cannot arrive in time: needs {required:.2f} m/s, base {speed:.2f}"
            )
        return max(required, speed)


Behavior = GenericUserBehavior | ImmobileBehavior | AmbulanceBehavior | OperaUserBehavior


def apply_trigger(behavior: Behavior, trigger: Trigger, device_id: int) -> bool:
    """Move `behavior` along its transition table. Returns True if the status changed."""
    key = (behavior.status, trigger)
    nxt = behavior.TRANSITIONS.get(key)
    if nxt is not None:
        log.debug(
            "status transition",
            extra={
                "extra": {
                    "device_id": device_id,
                    "kind": behavior.kind,
                    "from": behavior.status.name,
                    "to": nxt.name,
                    "trigger": trigger.value,
                }
            },
        )
        behavior.status = nxt
        return True
    if key in behavior.IGNORED:
        return False
    if trigger is Trigger.ACCIDENT:
        raise InvariantViolation(
            f"device {device_id} ({behavior.kind}) cannot take an accident while "
            f"{behavior.status.name}"
        )
    log.error(
        "invalid status transition",
        extra={
            "extra": {
                "device_id": device_id,
                "kind": behavior.kind,
                "status": behavior.status.name,
                "trigger": trigger.value,
            }
        },
    )
    return False
