"""Domain-separated deterministic RNG using xxhash.

The outcome of tick T for a group depends ONLY on
WorldSeed + GroupID + Tick + the snapshot taken at the start of T.
Thread scheduling order must not matter.

Formula: RNG_Value = Hash(WorldSeed, Domain, Key, Tick, Counter)
"""

from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from typing import Sequence, TypeVar

import xxhash

from horde.core.enums import Domain

T = TypeVar("T")

_MAX_UINT64 = (1 << 64) - 1


def key_to_int(key: str | int) -> int:
    """Map a string id onto a signed 64-bit integer for hashing."""
    if isinstance(key, int):
        return key
    return xxhash.xxh64(key.encode("utf-8")).intdigest() - (1 << 63)


class RandomSource(ABC):
    """A source of floats in [0.0, 1.0) with derived helpers.

    Decision code only ever calls ``next()`` through these helpers, so a
    fixed-sequence source can drive every branch in tests.
    """

    @abstractmethod
    def next(self) -> float:
        """Return the next float in [0.0, 1.0)."""

    def chance(self, probability: float) -> bool:
        """Return True with the given probability."""
        return self.next() < probability

    def randint(self, low: int, high: int) -> int:
        """Return an integer in [low, high] inclusive."""
        value = low + int(self.next() * (high - low + 1))
        return min(value, high)

    def choice(self, items: Sequence[T]) -> T:
        return items[self.randint(0, len(items) - 1)]

    def shuffled(self, items: Sequence[T]) -> list[T]:
        """Return a Fisher-Yates shuffled copy of *items*."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.randint(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    def weighted_index(self, weights: Sequence[float]) -> int | None:
        """Cumulative weighted draw. Returns None when no weight is positive."""
        total = sum(w for w in weights if w > 0)
        if total <= 0:
            return None
        target = self.next() * total
        cumulative = 0.0
        last = None
        for i, w in enumerate(weights):
            if w <= 0:
                continue
            cumulative += w
            last = i
            if target < cumulative:
                return i
        return last


class RngStream(RandomSource):
    """Sequential view over a DeterministicRNG for one (domain, key, tick)."""

    __slots__ = ("_rng", "_domain", "_key", "_tick", "_counter")

    def __init__(self, rng: DeterministicRNG, domain: Domain, key: int, tick: int) -> None:
        self._rng = rng
        self._domain = domain
        self._key = key
        self._tick = tick
        self._counter = 0

    def next(self) -> float:
        value = self._rng.next_float(self._domain, self._key, self._tick, self._counter)
        self._counter += 1
        return value


class DeterministicRNG:
    """Stateless domain-separated pseudo-random number generator.

    Each call is a pure function of (seed, domain, key, tick, counter),
    so it is safe to share across worker threads.
    """

    __slots__ = ("_seed",)

    def __init__(self, seed: int) -> None:
        self._seed = seed

    @property
    def seed(self) -> int:
        return self._seed

    def _hash(self, domain: Domain, key: int, tick: int, counter: int) -> int:
        payload = struct.pack("<qiqqi", self._seed, domain.value, key, tick, counter)
        return xxhash.xxh64(payload).intdigest()

    def next_float(self, domain: Domain, key: int, tick: int, counter: int = 0) -> float:
        """Return a deterministic float in [0.0, 1.0)."""
        return self._hash(domain, key, tick, counter) / (_MAX_UINT64 + 1)

    def next_int(self, domain: Domain, key: int, tick: int, low: int, high: int, counter: int = 0) -> int:
        """Return a deterministic integer in [low, high] inclusive."""
        f = self.next_float(domain, key, tick, counter)
        return low + int(f * (high - low + 1))

    def next_bool(self, domain: Domain, key: int, tick: int, probability: float = 0.5, counter: int = 0) -> bool:
        """Return True with the given probability."""
        return self.next_float(domain, key, tick, counter) < probability

    def stream(self, domain: Domain, key: str | int, tick: int) -> RngStream:
        """Return a RandomSource seeded by (domain, key, tick)."""
        return RngStream(self, domain, key_to_int(key), tick)
