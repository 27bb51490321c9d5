"""Structure and inner-building definitions plus cost/power rules.

Definitions are immutable pydantic dataclasses registered by type id,
mirroring the shared definition tables the rest of the game reads.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic.dataclasses import dataclass as pydantic_dataclass

from horde.core.inventory import ResourceRequirement

if TYPE_CHECKING:
    from horde.core.models import Structure

MAX_BUILDING_LEVEL = 3

# Feature unlocked when a structure reaches the given level
FEATURE_UNLOCKS: dict[int, str] = {
    2: "improved_defense",
    3: "monster_recruitment",
}

DEFAULT_BUILD_COST: tuple[tuple[str, int], ...] = (("Wooden Sticks", 8), ("Stone Pieces", 6))


# ---------------------------------------------------------------------------
# Structure definitions
# ---------------------------------------------------------------------------

@pydantic_dataclass(frozen=True)
class StructureDef:
    """Static blueprint for one structure type."""

    type: str
    name: str
    build_time: int = 0                 # minutes of world time
    capacity: int = 10
    durability: int = 100
    defense_power: int = 0
    monster: bool = False
    required_resources: tuple[tuple[str, int], ...] = ()

    def requirements(self) -> list[ResourceRequirement]:
        cost = self.required_resources or DEFAULT_BUILD_COST
        return [ResourceRequirement.of(name, qty) for name, qty in cost]


STRUCTURE_DEFS: dict[str, StructureDef] = {}


def _reg(d: StructureDef) -> None:
    STRUCTURE_DEFS[d.type] = d


# -- Player structures --
_reg(StructureDef("spawn", "Spawn Point", durability=500, defense_power=60, capacity=50))
_reg(StructureDef(
    "outpost", "Outpost", build_time=5, durability=200, defense_power=30, capacity=20,
    required_resources=(("Wooden Sticks", 10), ("Stone Pieces", 5)),
))
_reg(StructureDef(
    "watchtower", "Watchtower", build_time=6, durability=150, defense_power=25,
    required_resources=(("Wooden Sticks", 8), ("Stone Pieces", 8)),
))
_reg(StructureDef(
    "fortress", "Fortress", build_time=20, durability=600, defense_power=80, capacity=100,
    required_resources=(("Stone Pieces", 30), ("Iron Ore", 10)),
))

# -- Monster structures --
_reg(StructureDef(
    "monster_lair", "Monster Lair", build_time=3, durability=150, defense_power=20,
    capacity=15, monster=True,
    required_resources=(("Wooden Sticks", 8), ("Stone Pieces", 6)),
))
_reg(StructureDef(
    "monster_hive", "Monster Hive", build_time=4, durability=180, defense_power=25,
    capacity=20, monster=True,
    required_resources=(("Wooden Sticks", 10), ("Stone Pieces", 8)),
))
_reg(StructureDef(
    "monster_fortress", "Monster Fortress", build_time=8, durability=300, defense_power=45,
    capacity=30, monster=True,
    required_resources=(("Wooden Sticks", 15), ("Stone Pieces", 15), ("Iron Ore", 3)),
))

MONSTER_STRUCTURE_TYPES: tuple[str, ...] = ("monster_lair", "monster_hive", "monster_fortress")


# ---------------------------------------------------------------------------
# Inner buildings
# ---------------------------------------------------------------------------

@pydantic_dataclass(frozen=True)
class BuildingDef:
    """Static blueprint for a building inside a structure."""

    type: str
    name: str
    base_requirements: tuple[tuple[str, int], ...] = ()


BUILDING_DEFS: dict[str, BuildingDef] = {}


def _reg_building(d: BuildingDef) -> None:
    BUILDING_DEFS[d.type] = d


_reg_building(BuildingDef("monster_den", "Monster Den", (("Wooden Sticks", 6), ("Stone Pieces", 4))))
_reg_building(BuildingDef("war_pit", "War Pit", (("Stone Pieces", 6), ("Wooden Sticks", 4), ("Iron Ore", 1))))
_reg_building(BuildingDef("storage_cache", "Storage Cache"))


# ---------------------------------------------------------------------------
# Costs
# ---------------------------------------------------------------------------

def upgrade_requirements(current_level: int) -> list[ResourceRequirement]:
    """Cost of raising a structure from *current_level* to the next level."""
    reqs = [
        ResourceRequirement.of("Wooden Sticks", 5 * current_level),
        ResourceRequirement.of("Stone Pieces", 3 * current_level),
    ]
    if current_level >= 2:
        reqs.append(ResourceRequirement.of("Iron Ore", current_level))
    if current_level >= 3:
        reqs.append(ResourceRequirement.of("Crystal Shard", 1))
    return reqs


def building_requirements(building: BuildingDef, current_level: int) -> list[ResourceRequirement]:
    """Cost of adding (level 0) or upgrading an inner building."""
    level_mult = current_level + 1
    if building.base_requirements:
        factor = level_mult * 0.7 if current_level > 0 else 1
        return [
            ResourceRequirement.of(name, int(qty * factor))
            for name, qty in building.base_requirements
        ]
    return [
        ResourceRequirement.of("Wooden Sticks", 5 * level_mult),
        ResourceRequirement.of("Stone Pieces", 3 * level_mult),
    ]


# ---------------------------------------------------------------------------
# Power
# ---------------------------------------------------------------------------

def estimate_structure_power(structure: Structure, default: float = 20.0) -> float:
    """Defensive strength from static definitions, scaled by health and level."""
    sdef = STRUCTURE_DEFS.get(structure.type)
    if structure.defense_power:
        base = float(structure.defense_power)
    elif sdef is not None and sdef.defense_power:
        base = float(sdef.defense_power)
    elif sdef is not None:
        base = sdef.durability / 10
    else:
        base = default
    return base * structure.health_fraction * (1 + 0.25 * (max(structure.level, 1) - 1))
