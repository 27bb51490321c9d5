"""Monster personality archetypes.

Each monster group carries one archetype.  The archetype maps to a
static weight table consumed by targeting, movement, interrupts, combat
and construction.  Archetypes are compared by enum identity, never by
their persisted string.

Key types:
  Personality      — closed set of archetype ids
  PersonalityDef   — immutable weight table for one archetype
  PERSONALITY_DEFS — registry keyed by Personality
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Any, Mapping

from pydantic.dataclasses import dataclass as pydantic_dataclass


@unique
class Personality(str, Enum):
    AGGRESSIVE = "AGGRESSIVE"
    TERRITORIAL = "TERRITORIAL"
    FERAL = "FERAL"
    CAUTIOUS = "CAUTIOUS"
    NOMADIC = "NOMADIC"
    SNEAKY = "SNEAKY"
    BUILDER = "BUILDER"
    GREEDY = "GREEDY"
    BALANCED = "BALANCED"

    @classmethod
    def parse(cls, raw: Any) -> Personality:
        """Read a persisted personality (``"feral"``, ``{"id": "FERAL"}``) or default to BALANCED."""
        if isinstance(raw, Personality):
            return raw
        if isinstance(raw, Mapping):
            raw = raw.get("id") or raw.get("name")
        if isinstance(raw, str):
            try:
                return cls(raw.strip().upper())
            except ValueError:
                pass
        return cls.BALANCED

    @property
    def definition(self) -> PersonalityDef:
        return PERSONALITY_DEFS[self]


# ---------------------------------------------------------------------------
# Definition
# ---------------------------------------------------------------------------

@pydantic_dataclass(frozen=True)
class PersonalityDef:
    """Immutable weight table for one archetype."""

    personality: Personality
    name: str
    description: str
    # Category multipliers (1.0 = neutral)
    explore: float = 1.0
    attack: float = 1.0
    gather: float = 1.0
    build: float = 1.0
    # Movement
    move_speed: float = 1.0
    home_preference: float = 1.0      # Multiplier on the home-structure chance
    # Targeting: max tolerated (target defense / own power) ratio is 1 / threshold
    power_ratio_threshold: float = 1.0
    detection_mult: float = 1.0       # Interrupt pursuit radius multiplier
    can_attack_monsters: bool = False
    # Interrupt thresholds (lower = more eager to interrupt)
    battle_threshold: float = 0.5
    players_threshold: float = 0.5
    structure_threshold: float = 0.6
    monsters_threshold: float = 0.8
    gather_threshold: float = 0.6
    pursue_threshold: float = 0.7
    # Scales the chance to adopt an unattended monster structure
    adopt_mult: float = 1.0

    def interrupt_chance(self, threshold: float) -> float:
        """Probability that a check gated by *threshold* fires."""
        return max(0.0, min(1.0, 1.0 - threshold))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

PERSONALITY_DEFS: dict[Personality, PersonalityDef] = {}


def _reg(d: PersonalityDef) -> None:
    PERSONALITY_DEFS[d.personality] = d


_reg(PersonalityDef(
    Personality.AGGRESSIVE, "Aggressive",
    "Hunts players and raids structures, rarely settles.",
    explore=0.9, attack=1.8, gather=0.6, build=0.7,
    move_speed=1.1, power_ratio_threshold=0.5, detection_mult=1.5,
    battle_threshold=0.2, players_threshold=0.2, structure_threshold=0.3,
    monsters_threshold=0.6, pursue_threshold=0.4,
))
_reg(PersonalityDef(
    Personality.TERRITORIAL, "Territorial",
    "Defends and improves its home structure.",
    explore=0.5, attack=1.2, gather=0.8, build=1.4,
    move_speed=0.9, home_preference=2.0, detection_mult=0.8,
    battle_threshold=0.3, structure_threshold=0.5, pursue_threshold=0.8,
    adopt_mult=1.3,
))
_reg(PersonalityDef(
    Personality.FERAL, "Feral",
    "Unpredictable; attacks anything, including other monsters.",
    explore=1.2, attack=1.6, gather=0.4, build=0.2,
    move_speed=1.2, power_ratio_threshold=0.4, detection_mult=1.2,
    can_attack_monsters=True,
    battle_threshold=0.1, players_threshold=0.2, structure_threshold=0.4,
    monsters_threshold=0.4, gather_threshold=0.8, pursue_threshold=0.5,
))
_reg(PersonalityDef(
    Personality.CAUTIOUS, "Cautious",
    "Avoids fights it cannot win, prefers gathering.",
    explore=0.7, attack=0.5, gather=1.3, build=1.1,
    move_speed=0.8, power_ratio_threshold=1.5, detection_mult=1.3,
    battle_threshold=0.7, players_threshold=0.8, structure_threshold=0.85,
    gather_threshold=0.4, pursue_threshold=0.8,
))
_reg(PersonalityDef(
    Personality.NOMADIC, "Nomadic",
    "Roams far along a preferred heading.",
    explore=1.8, attack=0.8, gather=0.9, build=0.3,
    move_speed=1.3, home_preference=0.3, detection_mult=1.2,
    pursue_threshold=0.6,
))
_reg(PersonalityDef(
    Personality.SNEAKY, "Sneaky",
    "Picks off weak targets and avoids strong ones.",
    explore=1.2, attack=1.1, gather=1.0, build=0.6,
    move_speed=1.1, power_ratio_threshold=1.2, detection_mult=1.4,
    players_threshold=0.4, structure_threshold=0.7,
))
_reg(PersonalityDef(
    Personality.BUILDER, "Builder",
    "Founds and upgrades structures near resources.",
    explore=0.6, attack=0.6, gather=1.3, build=2.0,
    move_speed=0.9, home_preference=1.5,
    battle_threshold=0.6, players_threshold=0.7,
    adopt_mult=1.5,
))
_reg(PersonalityDef(
    Personality.GREEDY, "Greedy",
    "Chases resources and loot above everything else.",
    explore=0.9, attack=0.9, gather=1.8, build=0.9,
    gather_threshold=0.3,
))
_reg(PersonalityDef(
    Personality.BALANCED, "Balanced",
    "No strong preference.",
))
