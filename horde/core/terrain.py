"""Terrain classification on top of the external terrain oracle."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Mapping, Protocol

WATER_THRESHOLD = 0.2


class TerrainOracle(Protocol):
    """Pure, seed-deterministic terrain lookup."""

    def get_terrain_data(self, x: int, y: int) -> Mapping[str, Any]:
        ...


@dataclass(frozen=True, slots=True)
class TerrainSample:
    biome: str = "plains"
    biome_water: bool = False
    river_value: float = 0.0
    lake_value: float = 0.0
    height: float = 0.5
    moisture: float = 0.5

    @classmethod
    def from_oracle(cls, data: Mapping[str, Any]) -> TerrainSample:
        biome = data.get("biome") or {}
        if isinstance(biome, str):
            name, water = biome, biome in ("ocean", "lake", "river", "water")
        else:
            name, water = biome.get("name", "plains"), bool(biome.get("water"))
        return cls(
            biome=name,
            biome_water=water,
            river_value=float(data.get("riverValue") or 0.0),
            lake_value=float(data.get("lakeValue") or 0.0),
            height=float(data.get("height") or 0.0),
            moisture=float(data.get("moisture") or 0.0),
        )


def is_water(sample: TerrainSample, threshold: float = WATER_THRESHOLD) -> bool:
    return sample.biome_water or sample.river_value > threshold or sample.lake_value > threshold


class TerrainView:
    """Tick-scoped memo over a terrain oracle.

    Shared by all worker threads of a tick; the oracle is pure so a
    racing duplicate lookup only costs time.
    """

    __slots__ = ("_oracle", "_threshold", "_cache", "_lock")

    def __init__(self, oracle: TerrainOracle, threshold: float = WATER_THRESHOLD) -> None:
        self._oracle = oracle
        self._threshold = threshold
        self._cache: dict[tuple[int, int], TerrainSample] = {}
        self._lock = threading.Lock()

    def sample(self, x: int, y: int) -> TerrainSample:
        key = (x, y)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        sample = TerrainSample.from_oracle(self._oracle.get_terrain_data(x, y))
        with self._lock:
            self._cache[key] = sample
        return sample

    def is_water(self, x: int, y: int) -> bool:
        return is_water(self.sample(x, y), self._threshold)

    def biome(self, x: int, y: int) -> str:
        return self.sample(x, y).biome
