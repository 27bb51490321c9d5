"""Deterministic hash-noise terrain oracle for demo and headless worlds.

Value noise: each lattice corner gets a stable float from
DeterministicRNG(world_seed, WORLD_GEN, corner, layer); samples are
smooth-stepped bilinear blends of the four surrounding corners.
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Any

from horde.core.enums import Domain
from horde.systems.rng import DeterministicRNG

# Noise layers (passed as the RNG "tick" to separate them)
_HEIGHT, _MOISTURE, _RIVER, _LAKE = range(4)

OCEAN_LEVEL = 0.18


def _smooth(t: float) -> float:
    return t * t * (3 - 2 * t)


class NoiseTerrainOracle:
    """Answers ``get_terrain_data(x, y)`` like the game's terrain generator."""

    __slots__ = ("_rng", "_scale", "_lattice")

    def __init__(self, seed: int, scale: float = 12.0) -> None:
        self._rng = DeterministicRNG(seed)
        self._scale = scale
        self._lattice = lru_cache(maxsize=65536)(self._corner)

    def _corner(self, layer: int, cx: int, cy: int) -> float:
        key = (cx & 0xFFFFFFFF) << 32 | (cy & 0xFFFFFFFF)
        return self._rng.next_float(Domain.WORLD_GEN, key - (1 << 63), layer)

    def _noise(self, layer: int, x: float, y: float, scale: float) -> float:
        fx, fy = x / scale, y / scale
        x0, y0 = math.floor(fx), math.floor(fy)
        tx, ty = _smooth(fx - x0), _smooth(fy - y0)
        a = self._lattice(layer, x0, y0)
        b = self._lattice(layer, x0 + 1, y0)
        c = self._lattice(layer, x0, y0 + 1)
        d = self._lattice(layer, x0 + 1, y0 + 1)
        top = a + (b - a) * tx
        bottom = c + (d - c) * tx
        return top + (bottom - top) * ty

    def get_terrain_data(self, x: int, y: int) -> dict[str, Any]:
        s = self._scale
        height = 0.7 * self._noise(_HEIGHT, x, y, s * 2) + 0.3 * self._noise(_HEIGHT, x, y, s / 2)
        moisture = self._noise(_MOISTURE, x, y, s * 1.5)
        ridge = 1.0 - abs(2 * self._noise(_RIVER, x, y, s) - 1)
        river = max(0.0, (ridge - 0.93) / 0.07) if height > OCEAN_LEVEL else 0.0
        lake = max(0.0, (self._noise(_LAKE, x, y, s * 1.3) - 0.86) / 0.14)
        name, water = self._biome(height, moisture, river, lake)
        return {
            "biome": {"name": name, "water": water},
            "height": round(height, 4),
            "moisture": round(moisture, 4),
            "riverValue": round(river, 4),
            "lakeValue": round(lake, 4),
        }

    @staticmethod
    def _biome(height: float, moisture: float, river: float, lake: float) -> tuple[str, bool]:
        if height < OCEAN_LEVEL:
            return "ocean", True
        if lake > 0.2:
            return "lake", True
        if river > 0.2:
            return "river", True
        if height < OCEAN_LEVEL + 0.04:
            return "beach", False
        if height > 0.85:
            return ("tundra" if moisture > 0.6 else "mountains"), False
        if height > 0.7:
            return "hills", False
        if moisture > 0.75 and height < 0.4:
            return "swamp", False
        if moisture > 0.58:
            return "forest", False
        if moisture < 0.22:
            return "desert", False
        return "plains", False
