# fog_mobility/policy/pause.py
from fog_mobility.app.protocols import PauseTimePolicy
from fog_mobility.sim.rng import seeded_generator


class UniformPauseTimePolicy(PauseTimePolicy):
    """Dwell uniformly in [min, max]. Share one instance per device so the stream continues."""

    def __init__(self, seed: int):
        self.seed = int(seed)
        self._rng = seeded_generator(self.seed)

    def reseed(self, seed: int) -> None:
        self.seed = int(seed)
        self._rng = seeded_generator(self.seed)

    def determine_pause_time(self, min_pause: float, max_pause: float) -> float:
        if max_pause < min_pause:
            raise ValueError(f"max_pause {max_pause} < min_pause {min_pause}")
        if max_pause == min_pause:
            return float(min_pause)
        return float(self._rng.uniform(min_pause, max_pause))

