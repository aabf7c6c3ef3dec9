# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""
Deterministic pseudo-random source keyed by string seeds.

Covers:
- A stable 32-bit string hash (same digits as a JavaScript `hash << 5` loop
  over UTF-16 code units, so clients can reproduce seeds)
- A linear congruential stream returning floats in [0, 1)
- SeedStream sub-streams: every independent draw (weather, event, critical
  sale...) forks its own labelled stream instead of sharing one sequence

Nothing here is cryptographic. Seeds only have to be stable and well spread.
"""

import math
from typing import Callable, Mapping, Set, TypeVar

K = TypeVar("K")

_MODULUS = 2 ** 32
_MULTIPLIER = 1664525
_INCREMENT = 1013904223


def hash_string(value: str) -> str:
    """Hash a string to the decimal digits of a non-negative 32-bit integer."""
    h = 0
    data = value.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code) & 0xFFFFFFFF
    if h >= 2 ** 31:
        h -= _MODULUS
    return str(abs(h))


def _initial_state(seed: str) -> int:
    seed = str(seed)
    if seed.isdigit():
        return int(seed) % _MODULUS
    return int(hash_string(seed))


class SeedStream:
    """
    A reproducible random stream with labelled sub-streams.

    Draws advance the stream's own state. fork() derives a child from the seed
    and the label only, so forking never consumes parent state and the order
    in which forks are taken does not matter.
    """

    def __init__(self, seed: str):
        self.seed = str(seed)
        self._state = _initial_state(self.seed)
        self._labels: Set[str] = set()

    def fork(self, label: str) -> "SeedStream":
        """Derive an independent sub-stream. Each label may be forked once."""
        if label in self._labels:
            raise ValueError(f"Sub-stream '{label}' already forked from seed {self.seed}")
        self._labels.add(label)
        return SeedStream(hash_string(f"{self.seed}:{label}"))

    def next_float(self) -> float:
        self._state = (self._state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self._state / _MODULUS

    def uniform(self, low: float, high: float) -> float:
        return low + self.next_float() * (high - low)

    def randint(self, low: int, high: int) -> int:
        """Random integer in [low, high], both ends inclusive."""
        return math.floor(self.next_float() * (high - low + 1)) + low

    def chance(self, probability: float) -> bool:
        return self.next_float() < probability

    def normal(self, mean: float, std_dev: float) -> float:
        """Box-Muller transform over two consecutive draws."""
        u1 = self.next_float()
        u2 = self.next_float()
        # The LCG can return exactly 0.0
        u1 = max(u1, 1e-12)
        z = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return mean + z * std_dev

    def weighted_choice(self, weights: Mapping[K, float], fallback: K) -> K:
        """
        Pick a key by walking cumulative weights in declaration order.

        Falls back to `fallback` when rounding leaves the draw above the last
        cumulative bucket.
        """
        draw = self.next_float()
        cumulative = 0.0
        for key, weight in weights.items():
            cumulative += weight
            if draw <= cumulative:
                return key
        return fallback


class SeedGenerator:
    """Seed derivation and one-shot random helpers."""

    def generate_seed(self, user_id: str, run_count: int) -> str:
        """Seed for a user's Nth run."""
        return hash_string(f"{user_id}-{run_count}")

    def create_seeded_random(self, seed: str) -> Callable[[], float]:
        """Return a generator function; each call advances its state."""
        return SeedStream(seed).next_float

    def stream(self, seed: str) -> SeedStream:
        return SeedStream(seed)

    # One-shot helpers: each builds a fresh stream, so equal seeds give equal values

    def random_int(self, seed: str, low: int, high: int) -> int:
        return SeedStream(seed).randint(low, high)

    def random_float(self, seed: str, low: float, high: float) -> float:
        return SeedStream(seed).uniform(low, high)

    def random_bool(self, seed: str, probability: float) -> bool:
        return SeedStream(seed).chance(probability)
