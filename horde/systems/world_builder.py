"""Deterministic demo world: player spawns, monster lairs, monster groups and resources.

Everything is placed on dry land according to the terrain oracle and is a
pure function of the world seed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from horde.ai.pathfinding import ring
from horde.core.enums import Domain, GroupStatus
from horde.core.models import Position
from horde.core.mutations import WorldPaths
from horde.core.personality import Personality
from horde.core.structures import STRUCTURE_DEFS
from horde.core.terrain import TerrainView
from horde.systems.rng import DeterministicRNG

if TYPE_CHECKING:
    from horde.config import StrategyConfig
    from horde.core.terrain import TerrainOracle

logger = logging.getLogger(__name__)

MONSTER_RACES = ("goblin", "orc", "troll", "kobold", "spider")
PLAYER_RACES = ("human", "elf", "dwarf")

_GROUP_NAMES = {
    "goblin": "Goblin Raiders",
    "orc": "Orc Warband",
    "troll": "Troll Pack",
    "kobold": "Kobold Scavengers",
    "spider": "Spider Brood",
}


class WorldBuilder:
    """Builds the nested store document for a demo world."""

    __slots__ = ("_config", "_rng", "_terrain", "_paths", "_doc", "_serial")

    def __init__(self, config: StrategyConfig, oracle: TerrainOracle) -> None:
        self._config = config
        self._rng = DeterministicRNG(config.world_seed)
        self._terrain = TerrainView(oracle, config.water_threshold)
        self._paths = WorldPaths(config.world_id, config.chunk_size)
        self._doc: dict[str, Any] = {}
        self._serial = 0

    def build(
        self,
        radius: int = 30,
        spawns: int = 2,
        lairs: int = 3,
        monster_groups: int = 10,
        resource_tiles: int = 14,
    ) -> dict[str, Any]:
        cfg = self._config
        self._doc = {}
        self._set(f"{self._paths.root}/info", {"seed": cfg.world_seed, "speed": 1.0, "chunkSize": cfg.chunk_size})

        spawn_positions = [self._place_structure("spawn", i, radius, owner=None) for i in range(spawns)]
        for i, pos in enumerate(spawn_positions):
            self._add_player_group(pos, i)

        lair_positions = [
            self._place_structure(("monster_lair", "monster_hive")[i % 2], 100 + i, radius, owner="monster")
            for i in range(lairs)
        ]
        for i in range(resource_tiles):
            pos = self._land_near(self._random_point(200 + i, radius))
            self._set(f"{self._paths.tile(pos.x, pos.y)}/resources", {
                "WOODEN_STICKS": self._int(200 + i, 1, 4, 12),
                "STONE_PIECES": self._int(200 + i, 2, 2, 8),
            })

        personalities = list(Personality)
        for i in range(monster_groups):
            origin = lair_positions[i % len(lair_positions)] if lair_positions else Position(0, 0)
            pos = self._land_near(origin + Position(self._int(300 + i, 0, -3, 3), self._int(300 + i, 1, -3, 3)))
            self._add_monster_group(pos, i, personalities[i % len(personalities)], origin)

        logger.info(
            "Demo world built: %d spawns, %d lairs, %d monster groups, %d resource tiles",
            spawns, lairs, monster_groups, resource_tiles,
        )
        return self._doc

    # -- placement --

    def _int(self, key: int, counter: int, low: int, high: int) -> int:
        return self._rng.next_int(Domain.WORLD_GEN, key, 0, low, high, counter)

    def _random_point(self, key: int, radius: int) -> Position:
        return Position(self._int(key, 0, -radius, radius), self._int(key, 1, -radius, radius))

    def _land_near(self, pos: Position, max_radius: int = 10) -> Position:
        for r in range(max_radius + 1):
            for p in ring(pos, r):
                if not self._terrain.is_water(p.x, p.y):
                    return p
        logger.warning("No dry land within %d of %s, placing on water", max_radius, pos)
        return pos

    def _place_structure(self, structure_type: str, key: int, radius: int, owner: str | None) -> Position:
        pos = self._land_near(self._random_point(key, radius))
        sdef = STRUCTURE_DEFS[structure_type]
        record: dict[str, Any] = {
            "id": f"{structure_type}_{key}",
            "type": structure_type,
            "name": sdef.name,
            "status": "complete",
            "level": 1,
            "capacity": sdef.capacity,
            "health": sdef.durability,
            "maxHealth": sdef.durability,
            "items": {},
        }
        if owner is not None:
            record.update(owner=owner, ownerName="Monsters", monster=True)
        self._set(self._paths.structure(pos.x, pos.y), record)
        self._tag_biome(pos)
        return pos

    def _add_player_group(self, pos: Position, index: int) -> None:
        race = PLAYER_RACES[index % len(PLAYER_RACES)]
        gid = self._next_id("player_group")
        size = self._int(400 + index, 0, 2, 4)
        units = {f"{gid}_u{n}": {"type": "player" if n == 0 else "warrior", "race": race, "power": 2}
                 for n in range(size)}
        self._set(self._paths.group(pos.x, pos.y, gid), {
            "id": gid,
            "name": f"{race.title()} Company",
            "race": race,
            "owner": f"player_{index}",
            "type": "player",
            "units": units,
            "unitCount": size,
            "status": GroupStatus.IDLE.value,
        })

    def _add_monster_group(self, pos: Position, index: int, personality: Personality, home: Position) -> None:
        race = MONSTER_RACES[index % len(MONSTER_RACES)]
        gid = self._next_id("monster_group")
        size = self._int(500 + index, 0, 2, 7)
        units = {f"{gid}_u{n}": {"type": race, "race": race, "power": 1 + self._int(500 + index, 10 + n, 0, 2)}
                 for n in range(size)}
        record: dict[str, Any] = {
            "id": gid,
            "name": _GROUP_NAMES[race],
            "race": race,
            "owner": "monster",
            "type": "monster",
            "units": units,
            "unitCount": size,
            "status": GroupStatus.IDLE.value,
            "personality": {"id": personality.value},
            "items": {"WOODEN_STICKS": self._int(500 + index, 1, 0, 12), "STONE_PIECES": self._int(500 + index, 2, 0, 8)},
            "motion": ["land"] if race != "spider" else ["land", "water"],
            "explorationPhase": index % 3 == 0,
            "explorationTicks": 5 if index % 3 == 0 else 0,
        }
        home_tile = self._doc_get(self._paths.structure(home.x, home.y))
        if home_tile:
            record["mobilizedFromStructure"] = home_tile["id"]
        self._set(self._paths.group(pos.x, pos.y, gid), record)
        self._tag_biome(pos)

    def _tag_biome(self, pos: Position) -> None:
        self._set(f"{self._paths.tile(pos.x, pos.y)}/biome", {"name": self._terrain.biome(pos.x, pos.y)})

    def _next_id(self, prefix: str) -> str:
        self._serial += 1
        return f"{prefix}_{self._serial}"

    # -- document helpers --

    def _set(self, path: str, value: Any) -> None:
        node = self._doc
        parts = path.split("/")
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value

    def _doc_get(self, path: str) -> Any:
        node: Any = self._doc
        for part in path.split("/"):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node


def build_demo_world(config: StrategyConfig, oracle: TerrainOracle, **kwargs: Any) -> dict[str, Any]:
    """Return the store document of a freshly generated demo world."""
    return WorldBuilder(config, oracle).build(**kwargs)
