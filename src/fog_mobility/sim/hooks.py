# sim/hooks.py
from typing import Protocol

from fog_mobility.sim.event import BaseEvent


class KernelHooks(Protocol):
    """Observation points of the event loop. Hooks see events, they never alter them."""

    def run_start(self, *, until: float | None, max_events: int | None, qsize: int) -> None: ...
    def run_end(self, *, processed: int, last_t: float, qsize: int, wall_ms: float) -> None: ...
    def schedule(self, ev: BaseEvent, *, now: float, qsize: int) -> None: ...
    def dispatch_start(self, ev: BaseEvent, *, seq: int, qsize: int, handlers: int) -> None: ...
    def dispatch_end(self, ev: BaseEvent, *, out_events: int, ms: float) -> None: ...
    def error(self, ev: BaseEvent, *, reason: str, **kw) -> None: ...


class NoopHooks(KernelHooks):
    def run_start(self, *, until, max_events, qsize):
        return None

    def run_end(self, *, processed, last_t, qsize, wall_ms):
        return None

    def schedule(self, ev, *, now, qsize):
        return None

    def dispatch_start(self, ev, *, seq, qsize, handlers):
        return None

    def dispatch_end(self, ev, *, out_events, ms):
        return None

    def error(self, ev, *, reason, **kw):
        return None
