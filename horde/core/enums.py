"""Enumerations used throughout the engine."""

from __future__ import annotations

from enum import Enum, IntEnum, unique


@unique
class GroupStatus(str, Enum):
    """Mutually exclusive lifecycle status of a group."""

    IDLE = "idle"
    MOVING = "moving"
    GATHERING = "gathering"
    BUILDING = "building"
    FIGHTING = "fighting"
    DEMOBILISING = "demobilising"


@unique
class StructureStatus(str, Enum):
    BUILDING = "building"
    COMPLETE = "complete"


@unique
class BattleRole(str, Enum):
    ATTACKER = "attacker"
    DEFENDER = "defender"
    REINFORCEMENT = "reinforcement"


@unique
class BattleTargetKind(str, Enum):
    """Target-kind tag recorded on a battle."""

    GROUP = "group"
    STRUCTURE = "structure"
    MONSTER_GROUP = "monster_group"


@unique
class TargetType(str, Enum):
    """Semantic type of a movement target."""

    RAID = "raid_target"
    PLAYER_SPAWN = "player_spawn"
    PLAYER_STRUCTURE = "player_structure"
    RESOURCE_HOTSPOT = "resource_hotspot"
    MONSTER_STRUCTURE = "monster_structure"
    MONSTER_GROUP = "monster_group"
    MONSTER_HOME = "monster_home"
    ADJACENT_STRUCTURE = "adjacent_structure"
    ADJACENT_PLAYERS = "adjacent_players"
    DEPOSIT = "deposit"
    WANDER = "purposeful_wander"
    LANDMARK = "landmark"


@unique
class Action(str, Enum):
    """Action emitted by a decision function."""

    MOVE = "move"
    GATHER = "gather"
    BUILD = "build"
    UPGRADE = "upgrade"
    BUILDING = "building"
    DEMOBILIZE = "demobilize"
    ADOPT = "adopt"
    MERGE = "merge"
    ATTACK = "attack"
    JOIN_BATTLE = "join_battle"


@unique
class Reason(str, Enum):
    """Fixed vocabulary carried by every ``action=None`` decision."""

    NOT_ENOUGH_UNITS = "not_enough_units"
    UNSUITABLE_LOCATION = "unsuitable_location"
    INSUFFICIENT_RESOURCES = "insufficient_resources"
    INVALID_STRUCTURE_TYPE = "invalid_structure_type"
    RESOURCE_CONSUMPTION_FAILED = "resource_consumption_failed"
    MAX_LEVEL_REACHED = "max_level_reached"
    NO_SUITABLE_TARGET = "no_suitable_target"
    BLOCKED_BY_TERRAIN = "blocked_by_terrain"
    BLOCKED_BY_WATER = "blocked_by_water"
    SURROUNDED_BY_WATER = "surrounded_by_water"
    NOT_MONSTER_STRUCTURE = "not_monster_structure"
    STRUCTURE_NOT_BUILDING = "structure_not_building"
    HAS_ACTIVE_BUILDER = "has_active_builder"
    NOT_MONSTER_FRIENDLY = "not_monster_friendly"
    RANDOM_REJECTION = "random_rejection"
    NO_ITEMS_TO_DEPOSIT = "no_items_to_deposit"
    UNKNOWN_BUILDING_TYPE = "unknown_building_type"
    TILE_DATA_NOT_FOUND = "tile_data_not_found"
    NO_BATTLE = "no_battle"
    CONFLICT = "conflict"


@unique
class InterruptReason(str, Enum):
    ACTIVE_BATTLE = "active_battle"
    ATTACKABLE_PLAYERS = "attackable_players"
    ATTACKABLE_STRUCTURE = "attackable_structure"
    ATTACKABLE_MONSTERS = "attackable_monsters"
    GATHER_RESOURCES = "gather_resources"
    NEARBY_TARGET = "nearby_target"


@unique
class Domain(IntEnum):
    """RNG domains for deterministic randomness isolation."""

    SCHEDULING = 0
    DECISION = 1
    IDS = 2
    WORLD_GEN = 3
    PROGRESSION = 4
