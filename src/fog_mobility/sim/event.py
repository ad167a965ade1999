# sim/event.py
from dataclasses import dataclass, field


@dataclass(order=True)
class BaseEvent:
    """Anything the kernel can dispatch. Ordering is by simulated time only."""

    t: float = field(compare=True)
