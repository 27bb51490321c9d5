"""Core data models: Position, Group, Structure, Battle, TileData.

Persisted records use the store's camelCase field names; the
``from_record`` parsers are the only place those names are read.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from horde.core.enums import BattleRole, BattleTargetKind, GroupStatus, StructureStatus
from horde.core.inventory import Inventory, count_total, normalize_items
from horde.core.personality import Personality


class MalformedRecordError(ValueError):
    """A persisted record could not be parsed."""


@dataclass(frozen=True, slots=True)
class Position:
    """Immutable 2D integer tile coordinate."""

    x: int = 0
    y: int = 0

    def __add__(self, other: Position) -> Position:
        return Position(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Position) -> Position:
        return Position(self.x - other.x, self.y - other.y)

    def distance(self, other: Position) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def chebyshev(self, other: Position) -> int:
        return max(abs(self.x - other.x), abs(self.y - other.y))

    def chunk_key(self, chunk_size: int) -> str:
        return f"{self.x // chunk_size},{self.y // chunk_size}"

    @property
    def tile_key(self) -> str:
        return f"{self.x},{self.y}"

    @classmethod
    def parse(cls, tile_key: str) -> Position:
        try:
            x, y = tile_key.split(",")
            return cls(int(x), int(y))
        except ValueError as exc:
            raise MalformedRecordError(f"Bad tile key {tile_key!r}") from exc

    @classmethod
    def rounded(cls, x: float, y: float) -> Position:
        return cls(int(round(x)), int(round(y)))

    def as_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}

    def __repr__(self) -> str:
        return f"({self.x}, {self.y})"


# The 8 compass offsets, clockwise from north
COMPASS: tuple[Position, ...] = (
    Position(0, -1), Position(1, -1), Position(1, 0), Position(1, 1),
    Position(0, 1), Position(-1, 1), Position(-1, 0), Position(-1, -1),
)


# ---------------------------------------------------------------------------
# Status field ownership
# ---------------------------------------------------------------------------

# Sub-fields owned by each status.  A transition writes the new status's
# fields and nulls every other status's fields so no stale state survives.
STATUS_FIELDS: dict[GroupStatus, tuple[str, ...]] = {
    GroupStatus.IDLE: (),
    GroupStatus.MOVING: (
        "movementPath", "pathIndex", "moveStarted", "moveSpeed",
        "targetX", "targetY", "nextMoveTime", "moveReason", "targetType",
    ),
    GroupStatus.GATHERING: ("gatheringBiome", "gatheringStarted", "gatheringTicksRemaining"),
    GroupStatus.BUILDING: ("buildingStructureId",),
    GroupStatus.FIGHTING: ("inBattle", "battleId", "battleSide", "battleRole"),
    GroupStatus.DEMOBILISING: ("demobiliseStart", "targetStructureId"),
}


def status_transition(status: GroupStatus, fields: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Field writes that move a group into *status*."""
    writes: dict[str, Any] = {}
    for other, owned in STATUS_FIELDS.items():
        if other is status:
            continue
        for name in owned:
            writes[name] = None
    writes.update(fields or {})
    writes["status"] = status.value
    return writes


# ---------------------------------------------------------------------------
# Group
# ---------------------------------------------------------------------------

def _normalize_units(raw: Any) -> dict[str, dict]:
    if not raw:
        return {}
    if isinstance(raw, Mapping):
        return {str(k): dict(v) if isinstance(v, Mapping) else {"value": v} for k, v in raw.items()}
    if isinstance(raw, (list, tuple)):
        units: dict[str, dict] = {}
        for i, unit in enumerate(raw):
            unit = dict(unit) if isinstance(unit, Mapping) else {"value": unit}
            units[str(unit.get("id", i))] = unit
        return units
    raise MalformedRecordError(f"Unsupported units container: {type(raw).__name__}")


def _parse_path(raw: Any) -> tuple[Position, ...]:
    if not raw:
        return ()
    points = raw.values() if isinstance(raw, Mapping) else raw
    return tuple(Position(int(p["x"]), int(p["y"])) for p in points)


def _unit_power(unit: Mapping[str, Any]) -> float:
    for key in ("power", "strength"):
        value = unit.get(key)
        if isinstance(value, (int, float)):
            return float(value)
    return 1.0


@dataclass(slots=True)
class Group:
    """A faction-controlled collection of units on one tile."""

    id: str
    position: Position
    name: str = ""
    race: str = ""
    owner: str | None = None
    type: str = "monster"
    home: str | None = None
    units: dict[str, dict] = field(default_factory=dict)
    unit_count: int = 1
    items: Inventory = field(default_factory=dict)
    status: GroupStatus = GroupStatus.IDLE
    motion: frozenset[str] = frozenset()
    personality: Personality = Personality.BALANCED

    # Combat
    in_battle: bool = False
    battle_id: str | None = None
    battle_side: int | None = None
    battle_role: BattleRole | None = None

    # Movement
    movement_path: tuple[Position, ...] = ()
    path_index: int = 0
    move_started: int | None = None
    move_speed: float = 1.0
    target: Position | None = None
    target_type: str | None = None
    next_move_time: int | None = None

    # Memory
    exploration_phase: bool = False
    exploration_ticks: int = 0
    mobilized_from_structure: str | None = None
    preferred_structure_id: str | None = None
    preferred_direction: Position | None = None
    target_structure: dict | None = None

    # Other status sub-fields
    gathering_biome: str | None = None
    building_structure_id: str | None = None
    demobilise_start: int | None = None

    @property
    def is_monster(self) -> bool:
        return self.type == "monster"

    @property
    def is_available(self) -> bool:
        """Idle and not locked into a battle."""
        return self.status is GroupStatus.IDLE and not self.in_battle

    @property
    def power(self) -> float:
        if not self.units:
            return float(self.unit_count)
        return sum(_unit_power(u) for u in self.units.values())

    @property
    def resource_total(self) -> int:
        return count_total(self.items)

    def battle_entry(self) -> dict[str, Any]:
        """Snapshot embedded in a battle side."""
        return {"type": self.type, "race": self.race, "units": dict(self.units)}

    @classmethod
    def from_record(cls, group_id: str, data: Mapping[str, Any], position: Position) -> Group:
        if not isinstance(data, Mapping):
            raise MalformedRecordError(f"Group {group_id} is not an object")
        units = _normalize_units(data.get("units"))
        unit_count = len(units) if units else int(data.get("unitCount", 1))
        try:
            status = GroupStatus(data.get("status") or "idle")
        except ValueError as exc:
            raise MalformedRecordError(f"Group {group_id} has unknown status {data.get('status')!r}") from exc
        role = data.get("battleRole")
        target = None
        if data.get("targetX") is not None and data.get("targetY") is not None:
            target = Position(int(data["targetX"]), int(data["targetY"]))
        direction = data.get("preferredDirection")
        return cls(
            id=group_id,
            position=position,
            name=data.get("name", group_id),
            race=data.get("race", ""),
            owner=data.get("owner"),
            type=data.get("type", "player" if data.get("owner") not in (None, "monster") else "monster"),
            home=data.get("home") or data.get("homeStructureId"),
            units=units,
            unit_count=unit_count,
            items=normalize_items(data.get("items")),
            status=status,
            motion=frozenset(data.get("motion") or ()),
            personality=Personality.parse(data.get("personality")),
            in_battle=bool(data.get("inBattle")),
            battle_id=data.get("battleId"),
            battle_side=data.get("battleSide"),
            battle_role=BattleRole(role) if role else None,
            movement_path=_parse_path(data.get("movementPath")),
            path_index=int(data.get("pathIndex") or 0),
            move_started=data.get("moveStarted"),
            move_speed=float(data.get("moveSpeed") or 1.0),
            target=target,
            target_type=data.get("targetType"),
            next_move_time=data.get("nextMoveTime"),
            exploration_phase=bool(data.get("explorationPhase")),
            exploration_ticks=int(data.get("explorationTicks") or 0),
            mobilized_from_structure=data.get("mobilizedFromStructure"),
            preferred_structure_id=data.get("preferredStructureId"),
            preferred_direction=Position(int(direction["x"]), int(direction["y"])) if direction else None,
            target_structure=data.get("targetStructure"),
            gathering_biome=data.get("gatheringBiome"),
            building_structure_id=data.get("buildingStructureId"),
            demobilise_start=data.get("demobiliseStart"),
        )


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class Structure:
    """A building occupying one tile."""

    id: str
    type: str
    position: Position
    name: str = ""
    owner: str | None = None
    owner_name: str | None = None
    monster: bool = False
    level: int = 1
    status: StructureStatus = StructureStatus.COMPLETE
    build_progress: float = 0.0
    capacity: int = 10
    items: Inventory = field(default_factory=dict)
    features: tuple[str, ...] = ()
    builder: str | None = None
    in_battle: bool = False
    battle_id: str | None = None
    health: float | None = None
    max_health: float | None = None
    defense_power: float | None = None
    monster_friendly: bool = False
    last_activity: int | None = None
    buildings: dict[str, dict] = field(default_factory=dict)

    @property
    def is_monster_owned(self) -> bool:
        return self.monster or self.owner == "monster" or "monster" in self.type

    @property
    def is_spawn(self) -> bool:
        return self.type == "spawn"

    @property
    def health_fraction(self) -> float:
        if not self.max_health or self.health is None:
            return 1.0
        return max(0.0, min(1.0, self.health / self.max_health))

    @classmethod
    def from_record(cls, data: Mapping[str, Any], position: Position) -> Structure:
        if not isinstance(data, Mapping) or "type" not in data:
            raise MalformedRecordError(f"Structure at {position} lacks a type")
        try:
            status = StructureStatus(data.get("status") or "complete")
        except ValueError:
            status = StructureStatus.COMPLETE
        return cls(
            id=str(data.get("id") or f"structure_{position.x}_{position.y}"),
            type=data["type"],
            position=position,
            name=data.get("name", data["type"]),
            owner=data.get("owner"),
            owner_name=data.get("ownerName"),
            monster=bool(data.get("monster")),
            level=int(data.get("level") or 1),
            status=status,
            build_progress=float(data.get("buildProgress") or 0.0),
            capacity=int(data.get("capacity") or 10),
            items=normalize_items(data.get("items")),
            features=tuple(data.get("features") or ()),
            builder=data.get("builder"),
            in_battle=bool(data.get("inBattle")),
            battle_id=data.get("battleId"),
            health=data.get("health"),
            max_health=data.get("maxHealth"),
            defense_power=data.get("defensePower"),
            monster_friendly=bool(data.get("monsterFriendly")),
            last_activity=data.get("lastActivity"),
            buildings=dict(data.get("buildings") or {}),
        )


# ---------------------------------------------------------------------------
# Battle
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class BattleSide:
    name: str
    groups: dict[str, dict] = field(default_factory=dict)
    structure_info: dict | None = None

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"name": self.name, "groups": self.groups}
        if self.structure_info is not None:
            record["structureInfo"] = self.structure_info
        return record


@dataclass(slots=True)
class Battle:
    """An ephemeral combat session on one tile."""

    id: str
    position: Position
    target_kinds: tuple[BattleTargetKind, ...]
    side1: BattleSide
    side2: BattleSide
    created_at: int
    tick_count: int = 0
    structure_id: str | None = None
    structure_power: float | None = None
    monster_vs_monster: bool = False

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "locationX": self.position.x,
            "locationY": self.position.y,
            "targetTypes": [k.value for k in self.target_kinds],
            "side1": self.side1.to_record(),
            "side2": self.side2.to_record(),
            "tickCount": self.tick_count,
            "createdAt": self.created_at,
        }
        if self.structure_id is not None:
            record["structureId"] = self.structure_id
            record["structurePower"] = self.structure_power
        if self.monster_vs_monster:
            record["monsterVsMonster"] = True
        return record


# ---------------------------------------------------------------------------
# Tile
# ---------------------------------------------------------------------------

def _biome_name(raw: Any) -> str | None:
    if isinstance(raw, Mapping):
        return raw.get("name")
    return raw if isinstance(raw, str) else None


@dataclass(slots=True)
class TileData:
    """Parsed contents of one loaded tile."""

    position: Position
    biome: str | None = None
    groups: dict[str, Group] = field(default_factory=dict)
    structure: Structure | None = None
    battles: dict[str, dict] = field(default_factory=dict)
    resources: Inventory = field(default_factory=dict)

    @property
    def has_resources(self) -> bool:
        return bool(self.resources)

    @property
    def building_in_progress(self) -> bool:
        """Another group is already mid-build on this tile."""
        return any(g.status is GroupStatus.BUILDING for g in self.groups.values())

    @classmethod
    def from_record(cls, tile_key: str, data: Mapping[str, Any] | None) -> TileData:
        position = Position.parse(tile_key)
        if not data:
            return cls(position=position)
        if not isinstance(data, Mapping):
            raise MalformedRecordError(f"Tile {tile_key} is not an object")
        groups = {
            gid: Group.from_record(gid, g, position)
            for gid, g in (data.get("groups") or {}).items()
            if g is not None
        }
        structure = data.get("structure")
        return cls(
            position=position,
            biome=_biome_name(data.get("biome")),
            groups=groups,
            structure=Structure.from_record(structure, position) if structure else None,
            battles={bid: dict(b) for bid, b in (data.get("battles") or {}).items() if b},
            resources=normalize_items(data.get("resources")),
        )
