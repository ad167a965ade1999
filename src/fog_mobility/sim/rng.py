# sim/rng.py
from __future__ import annotations

from dataclasses import dataclass
from zlib import crc32

import numpy as np


def _u32(x: int) -> int:
    return int(x & 0xFFFFFFFF)


def _crc32_u32(s: str) -> int:
    return _u32(crc32(s.encode("utf-8")))


def seeded_generator(seed: int) -> np.random.Generator:
    """Fresh PCG64 generator for an explicit seed. Same seed, same stream."""
    return np.random.Generator(np.random.PCG64(np.random.SeedSequence(_u32(int(seed)))))


def as_generator(rng_or_seed: np.random.Generator | int) -> np.random.Generator:
    if isinstance(rng_or_seed, np.random.Generator):
        return rng_or_seed
    return seeded_generator(int(rng_or_seed))


def derived_seed(seed: int, purpose: str) -> int:
    """Seed for one purpose of a component that was handed a single seed.

    Generators built from the same base seed with different purposes do not share draws.
    """
    state = np.random.SeedSequence([_u32(int(seed)), _crc32_u32(purpose)]).generate_state(1)
    return int(state[0])


@dataclass(frozen=True)
class RNGKey:
    """Hierarchical key: stream name + optional ints/strings for substreams."""

    stream: str
    parts: tuple[int, ...]  # already normalized to u32

    @classmethod
    def from_parts(cls, stream: str, *parts: object) -> RNGKey:
        norm: list[int] = [_crc32_u32(stream)]
        for p in parts:
            if isinstance(p, (int, np.integer)):
                norm.append(_u32(int(p)))
            elif isinstance(p, str):
                norm.append(_crc32_u32(p))
            else:
                # Stable, portable stringification then crc
                norm.append(_crc32_u32(repr(p)))
        return cls(stream=stream, parts=tuple(norm))


class RNGRegistry:
    """
    Deterministic registry of integer seeds for components that own their generator.
    Derivation path: [master_seed, scenario, worker, *key.parts]
    """

    def __init__(self, master_seed: int, *, scenario: str | int = 0, worker: int = 0):
        self.master_seed = _u32(master_seed)
        self.scenario_tag = _crc32_u32(str(scenario))
        self.worker = _u32(worker)

    def _seed_sequence(self, key: RNGKey) -> np.random.SeedSequence:
        return np.random.SeedSequence(
            entropy=[self.master_seed, self.scenario_tag, self.worker, *key.parts]
        )

    def seed_for(self, name: str, *parts: object) -> int:
        """
        Integer seed for a named, optionally sub-keyed, consumer.
        Example: seed = reg.seed_for("pathing", device_id)
        """
        state = self._seed_sequence(RNGKey.from_parts(name, *parts)).generate_state(1)
        return int(state[0])
