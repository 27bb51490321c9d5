"""Engine systems: RNG, terrain noise, demo world generation."""

from horde.systems.rng import DeterministicRNG, RandomSource
from horde.systems.terrain_oracle import NoiseTerrainOracle

__all__ = ["DeterministicRNG", "NoiseTerrainOracle", "RandomSource"]
