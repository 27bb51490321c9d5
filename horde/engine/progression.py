"""World progression between strategy decisions.

Advances the long-running states that decisions start: movement along a
path, gathering countdowns, structure construction, demobilisation and
battles.  Works on the raw records of a TickSnapshot and returns a single
MutationBatch, like any decision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from horde.core.enums import Domain, GroupStatus, StructureStatus
from horde.core.inventory import merge_items, normalize_items
from horde.core.models import Group, MalformedRecordError, Position, status_transition
from horde.core.mutations import MutationBatch, WorldPaths

if TYPE_CHECKING:
    from horde.config import StrategyConfig
    from horde.core.snapshot import TickSnapshot
    from horde.systems.rng import DeterministicRNG, RandomSource

logger = logging.getLogger(__name__)

# Extra item found per biome on top of sticks and stone
BIOME_ITEMS: dict[str, str] = {
    "mountains": "IRON_ORE",
    "hills": "IRON_ORE",
    "tundra": "CRYSTAL_SHARD",
    "forest": "HERBS",
    "swamp": "HERBS",
    "desert": "SAND",
    "beach": "SAND",
}


@dataclass(slots=True)
class ProgressReport:
    groups_arrived: int = 0
    gathering_completed: int = 0
    structures_completed: int = 0
    demobilizations_completed: int = 0
    battles_resolved: int = 0


def _strip_nulls(record: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in record.items() if v is not None}


class WorldProgression:
    """Advances timed group and structure states by one tick."""

    __slots__ = ("_config", "_rng")

    def __init__(self, config: StrategyConfig, rng: DeterministicRNG) -> None:
        self._config = config
        self._rng = rng

    def advance(self, snapshot: TickSnapshot) -> tuple[MutationBatch, ProgressReport]:
        batch = MutationBatch()
        report = ProgressReport()
        paths = WorldPaths(snapshot.world_id, snapshot.chunk_size)

        for chunk_key in sorted(snapshot.chunks):
            chunk = snapshot.chunks[chunk_key] or {}
            for tile_key in sorted(chunk):
                if tile_key in snapshot.malformed:
                    continue
                tile = chunk[tile_key] or {}
                pos = Position.parse(tile_key)
                for battle_id, battle in sorted((tile.get("battles") or {}).items()):
                    if self._advance_battle(snapshot, batch, paths, pos, tile, battle_id, battle):
                        report.battles_resolved += 1
                structure = tile.get("structure")
                if structure and structure.get("status") == StructureStatus.BUILDING.value:
                    if self._advance_construction(snapshot, batch, paths, pos, structure):
                        report.structures_completed += 1
                for group_id, record in sorted((tile.get("groups") or {}).items()):
                    if not isinstance(record, Mapping) or record.get("inBattle"):
                        continue
                    match record.get("status"):
                        case GroupStatus.MOVING.value:
                            if self._advance_move(snapshot, batch, paths, pos, group_id, record):
                                report.groups_arrived += 1
                        case GroupStatus.GATHERING.value:
                            if self._advance_gathering(snapshot, batch, paths, pos, group_id, record):
                                report.gathering_completed += 1
                        case GroupStatus.DEMOBILISING.value:
                            if self._advance_demobilise(snapshot, batch, paths, pos, group_id, record, structure):
                                report.demobilizations_completed += 1
        return batch, report

    def _stream(self, key: str, tick: int) -> RandomSource:
        return self._rng.stream(Domain.PROGRESSION, key, tick)

    @staticmethod
    def _announce(batch: MutationBatch, paths: WorldPaths, kind: str, key: str,
                  now: int, text: str, pos: Position) -> None:
        batch.set(paths.chat(f"{kind}_{now}_{key}"), {
            "text": text, "type": "event", "timestamp": now, "location": pos.as_dict(),
        })

    # -- movement --

    def _advance_move(self, snapshot: TickSnapshot, batch: MutationBatch, paths: WorldPaths,
                      pos: Position, group_id: str, record: Mapping[str, Any]) -> bool:
        """Step one tile along the path. Returns True on arrival."""
        now = snapshot.now
        next_move = record.get("nextMoveTime")
        if next_move is not None and next_move > now:
            return False

        here = paths.group(pos.x, pos.y, group_id)
        path = record.get("movementPath") or []
        index = int(record.get("pathIndex") or 0) + 1
        if index >= len(path):
            batch.update(here, status_transition(GroupStatus.IDLE))
            return True

        step = Position(int(path[index]["x"]), int(path[index]["y"]))
        speed = max(float(record.get("moveSpeed") or 1.0), 0.1)
        arrived = index == len(path) - 1
        moved = dict(record)
        moved.update(pathIndex=index, nextMoveTime=now + int(self._config.move_interval_ms / speed),
                     x=step.x, y=step.y)
        if arrived:
            moved.update(status_transition(GroupStatus.IDLE))
        if step != pos:
            batch.delete(here)
            batch.set(paths.group(step.x, step.y, group_id), _strip_nulls(moved))
        else:
            batch.set(here, _strip_nulls(moved))
        return arrived

    # -- gathering --

    def _advance_gathering(self, snapshot: TickSnapshot, batch: MutationBatch, paths: WorldPaths,
                           pos: Position, group_id: str, record: Mapping[str, Any]) -> bool:
        here = paths.group(pos.x, pos.y, group_id)
        remaining = int(record.get("gatheringTicksRemaining") or 0) - 1
        if remaining > 0:
            batch.set(f"{here}/gatheringTicksRemaining", remaining)
            return False

        biome = record.get("gatheringBiome") or "plains"
        rng = self._stream(group_id, snapshot.tick)
        found = {"WOODEN_STICKS": rng.randint(1, 5), "STONE_PIECES": rng.randint(1, 3)}
        extra = BIOME_ITEMS.get(biome)
        if extra is not None:
            found[extra] = found.get(extra, 0) + rng.randint(1, 2)
        items = merge_items(normalize_items(record.get("items")), found)
        batch.set(f"{here}/items", items)
        batch.update(here, status_transition(GroupStatus.IDLE))
        total = sum(found.values())
        self._announce(batch, paths, "gathered", group_id, snapshot.now,
                       f"{record.get('name', group_id)} gathered {total} items in the {biome}.", pos)
        logger.debug("Group %s finished gathering %d items", group_id, total)
        return True

    # -- construction --

    def _advance_construction(self, snapshot: TickSnapshot, batch: MutationBatch, paths: WorldPaths,
                              pos: Position, structure: Mapping[str, Any]) -> bool:
        base = paths.structure(pos.x, pos.y)
        progress = int(structure.get("buildProgress") or 0) + 1
        total = max(int(structure.get("buildTime") or 1), 1)
        if progress < total:
            batch.set(f"{base}/buildProgress", progress)
            return False

        batch.update(base, {"status": StructureStatus.COMPLETE.value, "buildProgress": None,
                            "completedAt": snapshot.now, "lastActivity": snapshot.now})
        structure_id = structure.get("id")
        # Release the builder wherever it stands
        for group in snapshot.monster_groups():
            if group.status is GroupStatus.BUILDING and group.building_structure_id == structure_id:
                batch.update(paths.group(group.position.x, group.position.y, group.id),
                             status_transition(GroupStatus.IDLE))
        self._announce(batch, paths, "structure_complete", str(structure_id), snapshot.now,
                       f"{structure.get('name', 'A structure')} has been completed.", pos)
        return True

    # -- demobilisation --

    def _advance_demobilise(self, snapshot: TickSnapshot, batch: MutationBatch, paths: WorldPaths,
                            pos: Position, group_id: str, record: Mapping[str, Any],
                            structure: Mapping[str, Any] | None) -> bool:
        here = paths.group(pos.x, pos.y, group_id)
        if not structure:
            logger.warning("No structure for demobilising group %s, returning to idle", group_id)
            batch.update(here, status_transition(GroupStatus.IDLE))
            return False
        units = record.get("units") or {}
        garrison = int(structure.get("garrison") or 0) + (len(units) or int(record.get("unitCount") or 1))
        batch.set(f"{paths.structure(pos.x, pos.y)}/garrison", garrison)
        batch.delete(here)
        self._announce(batch, paths, "demobilised", group_id, snapshot.now,
                       f"{record.get('name', group_id)} has settled into {structure.get('name', 'its home')}.", pos)
        return True

    # -- battles --

    def _advance_battle(self, snapshot: TickSnapshot, batch: MutationBatch, paths: WorldPaths,
                        pos: Position, tile: Mapping[str, Any], battle_id: str,
                        battle: Mapping[str, Any]) -> bool:
        """Count one round; after the last round the stronger side wins."""
        base = paths.battle(pos.x, pos.y, battle_id)
        rounds = int(battle.get("tickCount") or 0) + 1
        if rounds < self._config.battle_rounds:
            batch.set(f"{base}/tickCount", rounds)
            return False

        groups = tile.get("groups") or {}
        sides = (battle.get("side1") or {}, battle.get("side2") or {})
        powers = [self._side_power(pos, groups, side) for side in sides]
        if powers[0] > powers[1]:
            winner = 1
        elif powers[1] > powers[0]:
            winner = 2
        else:
            winner = 0

        batch.delete(base)
        for number, side in enumerate(sides, start=1):
            for group_id in side.get("groups") or {}:
                if group_id not in groups:
                    continue
                group_path = paths.group(pos.x, pos.y, group_id)
                if winner and number != winner:
                    batch.delete(group_path)
                else:
                    batch.update(group_path, status_transition(GroupStatus.IDLE, {"inBattle": False}))

        structure = tile.get("structure")
        if structure and structure.get("battleId") == battle_id:
            spath = paths.structure(pos.x, pos.y)
            if winner == 1 and structure.get("type") != "spawn":
                batch.delete(spath)
            else:
                batch.update(spath, {"inBattle": False, "battleId": None})
                if winner == 1:
                    health = int(structure.get("health") or 100)
                    batch.set(f"{spath}/health", max(1, health - self._config.structure_damage))

        names = (sides[0].get("name") or "Attackers", sides[1].get("name") or "Defenders")
        match winner:
            case 1:
                outcome = f"{names[0]} have defeated {names[1]}!"
            case 2:
                outcome = f"{names[1]} have successfully defended against {names[0]}!"
            case _:
                outcome = f"The battle between {names[0]} and {names[1]} has ended in a stalemate."
        self._announce(batch, paths, "battle_end", battle_id, snapshot.now,
                       f"Battle at ({pos.x}, {pos.y}) has ended. {outcome}", pos)
        logger.info("Battle %s resolved at %s (winner: side %d)", battle_id, pos, winner)
        return True

    @staticmethod
    def _side_power(pos: Position, groups: Mapping[str, Any], side: Mapping[str, Any]) -> float:
        power = 0.0
        for group_id in side.get("groups") or {}:
            record = groups.get(group_id)
            if record is None:
                continue
            try:
                power += Group.from_record(group_id, record, pos).power
            except MalformedRecordError:
                logger.warning("Ignoring malformed battle participant %s", group_id)
        info = side.get("structureInfo") or {}
        return power + float(info.get("defensePower") or 0)
