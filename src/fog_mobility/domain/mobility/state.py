# fog_mobility/domain/mobility/state.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from fog_mobility.app.protocols import Clock, PathingStrategy, PauseTimePolicy
from fog_mobility.domain.entities.attractor import Attractor
from fog_mobility.domain.entities.geography import Location
from fog_mobility.domain.entities.motion import WayPointPath
from fog_mobility.domain.mechanics.mechanics_pathing import InertPathingStrategy
from fog_mobility.domain.mobility.behaviors import (
    AmbulanceBehavior,
    Behavior,
    GenericUserBehavior,
    ImmobileBehavior,
    MobilityEventKind,
    OperaUserBehavior,
    OperaUserStatus,
    Trigger,
    apply_trigger,
)
from fog_mobility.domain.mobility.context import OPERA_HOUSE, MobilityContext
from fog_mobility.errors import InvariantViolation
from fog_mobility.policy.pause import UniformPauseTimePolicy
from fog_mobility.sim.rng import derived_seed, seeded_generator

log = logging.getLogger(__name__)

DEFAULT_PAUSE_S = 0.1


@dataclass
class DeviceMobilityState:
    """
    Common envelope for every mobile device: geometry, path, strategy and speed.
    Kind-specific status and transitions live in `behavior`.

    `task_id` is bumped whenever `path` is replaced so callbacks scheduled against an
    older path can be recognised and dropped.
    """

    device_id: int
    location: Location
    pathing: PathingStrategy
    speed: float
    behavior: Behavior
    context: MobilityContext
    clock: Clock
    path: WayPointPath = field(default_factory=WayPointPath)
    attractor: Attractor | None = None
    journal: dict[float, Location] = field(default_factory=dict)
    task_id: int = 0
    rng: np.random.Generator | None = None

    def __post_init__(self):
        if self.rng is None:
            self.rng = seeded_generator(derived_seed(self.pathing.seed, "attractor"))

    # ------------------------------------------------------------- constructors

    @classmethod
    def generic_user(cls, device_id, location, pathing, speed, *, context, clock):
        return cls(device_id, location, pathing, speed, GenericUserBehavior(), context, clock)

    @classmethod
    def immobile(cls, device_id, location, *, context, clock, seed: int | None = None):
        pathing = InertPathingStrategy(context.default_seed if seed is None else seed)
        return cls(device_id, location, pathing, 0.0, ImmobileBehavior(), context, clock)

    @classmethod
    def ambulance(cls, device_id, location, pathing, speed, *, context, clock):
        return cls(device_id, location, pathing, speed, AmbulanceBehavior(), context, clock)

    @classmethod
    def opera_user(
        cls, device_id, location, pathing, speed, concert_start: float, *, context, clock
    ):
        behavior = OperaUserBehavior(concert_start=concert_start)
        venue = context.point_of_interest(OPERA_HOUSE, required=True)
        distance_m = location.distance_km(venue) * 1000.0
        adjusted = behavior.adjusted_speed(distance_m, speed, clock.now)
        if adjusted != speed:
            log.debug(
                "speed adjusted for timed arrival",
                extra={"extra": {"device_id": device_id, "base": speed, "adjusted": adjusted}},
            )
        return cls(device_id, location, pathing, adjusted, behavior, context, clock)

    # ------------------------------------------------------------- views

    @property
    def kind(self) -> str:
        return self.behavior.kind

    @property
    def status(self):
        return self.behavior.status

    # ------------------------------------------------------------- lifecycle

    def start_moving(self) -> None:
        apply_trigger(self.behavior, Trigger.START_MOVING, self.device_id)

    def reached_destination(self) -> None:
        apply_trigger(self.behavior, Trigger.REACHED_DESTINATION, self.device_id)

    def update_attraction_point(self, previous: Attractor | None) -> None:
        pauses: PauseTimePolicy
        if previous is None:
            pauses = UniformPauseTimePolicy(derived_seed(self.pathing.seed, "pause"))
        else:
            pauses = previous.pause_policy
        self.attractor = self.behavior.next_attractor(self, pauses)

    def make_path(self) -> None:
        """Replace the path from the current attractor. Blocked kinds get an empty path."""
        planned = self.behavior.can_plan() and self.attractor is not None
        if planned:
            now = self.clock.now
            self.path = self.pathing.make_path(self.attractor, self.speed, self.location, now)
        else:
            self.path = WayPointPath()
        self.task_id += 1
        if planned and isinstance(self.behavior, OperaUserBehavior):
            if self.behavior.status is OperaUserStatus.IMMOBILE:
                self.behavior.relocated = True

    def move_to(self, loc: Location, t: float) -> None:
        self.location = loc
        self.journal[t] = loc

    def determine_pause_time(self) -> float:
        if self.attractor is None:
            return DEFAULT_PAUSE_S
        return self.attractor.determine_pause_time()

    # ------------------------------------------------------------- external events

    def handle_event(self, kind: MobilityEventKind, payload=None) -> float | None:
        """
        Delay until the first waypoint of the path the event produced, or None when this
        device does not react to `kind`. Wrong-status delivery is an InvariantViolation.
        """
        if kind not in self.behavior.ACCEPTS:
            return None
        if isinstance(self.pathing, InertPathingStrategy):
            log.debug(
                "inert pathing, ignoring event",
                extra={"extra": {"device_id": self.device_id, "event": kind.value}},
            )
            return None
        apply_trigger(self.behavior, Trigger.ACCIDENT, self.device_id)
        self.update_attraction_point(None)
        self.make_path()
        head = self.path.head()
        if head is None:
            log.error(
                "event produced an empty path",
                extra={"extra": {"device_id": self.device_id, "kind": self.kind}},
            )
            return None
        delay = head.arrival_time - self.clock.now
        if delay < 0:
            raise InvariantViolation(
                f"device {self.device_id}: negative delay {delay} after {kind.value}"
            )
        return delay
