"""Construction decisions: found, upgrade, inner buildings, demobilize, adopt.

Every function returns a :class:`Decision`; ``action=None`` carries the
reason the group could not act.  Resource deduction is all-or-nothing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from horde.ai import messages
from horde.ai.context import Decision, structure_claim
from horde.core.enums import Action, GroupStatus, Reason, StructureStatus
from horde.core.inventory import consume_resources, has_sufficient, merge_items
from horde.core.models import Position, status_transition
from horde.core.mutations import MutationBatch
from horde.core.personality import Personality
from horde.core.structures import (
    BUILDING_DEFS,
    FEATURE_UNLOCKS,
    MAX_BUILDING_LEVEL,
    MONSTER_STRUCTURE_TYPES,
    STRUCTURE_DEFS,
    building_requirements,
    upgrade_requirements,
)

if TYPE_CHECKING:
    from horde.ai.context import DecisionContext
    from horde.core.models import Structure
    from horde.core.world_scan import WorldScan

logger = logging.getLogger(__name__)

# Personality multipliers applied to each archetypal structure's pick weight
STRUCTURE_TYPE_BIAS: dict[Personality, dict[str, float]] = {
    Personality.BUILDER: {"monster_lair": 1.5, "monster_hive": 1.5, "monster_fortress": 1.5},
    Personality.TERRITORIAL: {"monster_fortress": 1.8},
    Personality.GREEDY: {"monster_lair": 1.3},
    Personality.AGGRESSIVE: {"monster_hive": 1.4},
}

_AGGRESSIVE_RING_MAX = 15


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------

def count_nearby_monster_structures(scan: WorldScan, location: Position, radius: float) -> int:
    return sum(1 for e in scan.monster_structures if e.position.distance(location) <= radius)


def is_location_suitable(ctx: DecisionContext, location: Position) -> bool:
    """Loaded, dry, unclaimed, not crowded, and clear of player spawns."""
    cfg = ctx.config
    tile = ctx.snapshot.tiles.get(location.tile_key)
    if tile is None:
        return False
    if tile.structure is not None or tile.building_in_progress:
        return False
    if ctx.snapshot.terrain.is_water(location.x, location.y):
        return False
    scan = ctx.snapshot.scan
    if count_nearby_monster_structures(scan, location, cfg.nearby_distance) >= cfg.max_monster_structures_nearby:
        return False
    return all(
        e.position.distance(location) >= cfg.min_distance_from_spawn
        for e in scan.player_spawns
    )


def _jitter(ctx: DecisionContext, origin: Position, spread: int = 2) -> Position:
    return Position(
        origin.x + ctx.rng.randint(-spread, spread),
        origin.y + ctx.rng.randint(-spread, spread),
    )


def choose_build_location(ctx: DecisionContext) -> Position:
    cfg = ctx.config
    here = ctx.location
    scan = ctx.snapshot.scan
    match ctx.group.personality:
        case Personality.TERRITORIAL:
            return here
        case Personality.BUILDER:
            hotspots = [e for e in scan.resource_hotspots if e.position.distance(here) <= cfg.nearby_distance]
            if hotspots:
                return ctx.rng.choice(hotspots).position
        case Personality.AGGRESSIVE:
            spawns = [
                e for e in scan.player_spawns
                if cfg.min_distance_from_spawn <= e.position.distance(here) <= _AGGRESSIVE_RING_MAX
            ]
            if spawns:
                spawn = ctx.rng.choice(spawns).position
                span = here.distance(spawn)
                radius = ctx.rng.randint(cfg.min_distance_from_spawn, min(_AGGRESSIVE_RING_MAX, int(span)))
                return Position.rounded(
                    spawn.x + (here.x - spawn.x) * radius / span,
                    spawn.y + (here.y - spawn.y) * radius / span,
                )
    return _jitter(ctx, here)


# ---------------------------------------------------------------------------
# Structure type
# ---------------------------------------------------------------------------

def choose_structure_type(ctx: DecisionContext) -> str:
    """Personality-weighted pick among affordable archetypal structures."""
    bias = STRUCTURE_TYPE_BIAS.get(ctx.group.personality, {})
    weights = []
    for stype in MONSTER_STRUCTURE_TYPES:
        affordable = has_sufficient(ctx.group.items, STRUCTURE_DEFS[stype].requirements())
        weights.append(bias.get(stype, 1.0) if affordable else 0.0)
    index = ctx.rng.weighted_index(weights)
    return MONSTER_STRUCTURE_TYPES[index if index is not None else 0]


# ---------------------------------------------------------------------------
# Found
# ---------------------------------------------------------------------------

def found_structure(ctx: DecisionContext, structure_type: str | None = None) -> Decision:
    group = ctx.group
    cfg = ctx.config
    if group.unit_count < cfg.min_units_for_building:
        return Decision.none(Reason.NOT_ENOUGH_UNITS)

    location = choose_build_location(ctx)
    if not is_location_suitable(ctx, location):
        return Decision.none(Reason.UNSUITABLE_LOCATION, location=location.as_dict())

    structure_type = structure_type or choose_structure_type(ctx)
    sdef = STRUCTURE_DEFS.get(structure_type)
    if sdef is None or not sdef.monster:
        return Decision.none(Reason.INVALID_STRUCTURE_TYPE, structure_type=structure_type)

    requirements = sdef.requirements()
    if not has_sufficient(group.items, requirements):
        return Decision.none(Reason.INSUFFICIENT_RESOURCES, structure_type=structure_type)
    remaining = consume_resources(group.items, requirements)
    if remaining is None:
        return Decision.none(Reason.RESOURCE_CONSUMPTION_FAILED)

    structure_id = f"monster_structure_{ctx.now}_{ctx.rng.randint(0, 9999)}"
    name = f"{group.name} {sdef.name}".strip()
    batch = MutationBatch()
    batch.set(ctx.paths.structure(location.x, location.y), {
        "id": structure_id,
        "name": name,
        "type": structure_type,
        "status": StructureStatus.BUILDING.value,
        "buildProgress": 0,
        "buildTime": sdef.build_time,
        "owner": group.id,
        "ownerName": group.name,
        "builder": group.id,
        "monster": True,
        "level": 1,
        "items": {},
        "capacity": sdef.capacity,
        "createdAt": ctx.now,
        "lastActivity": ctx.now,
    })
    batch.set(f"{ctx.group_path}/items", remaining)
    batch.update(ctx.group_path, status_transition(GroupStatus.BUILDING, {"buildingStructureId": structure_id}))
    batch.set(f"{ctx.group_path}/preferredStructureId", structure_id)
    messages.post(
        ctx, batch, "build",
        f"{messages.display_name(group)} has begun constructing a {sdef.name} at ({location.x}, {location.y}).",
        location,
    )
    logger.debug("Group %s founding %s at %s", group.id, structure_type, location)
    return Decision.act(
        Action.BUILD, batch,
        claims=(structure_claim(location),),
        structure_id=structure_id,
        structure_type=structure_type,
        location=location.as_dict(),
        completes_at=ctx.now + sdef.build_time * 60_000,
    )


# ---------------------------------------------------------------------------
# Upgrade
# ---------------------------------------------------------------------------

def upgrade_structure(ctx: DecisionContext, structure: Structure) -> Decision:
    if not structure.is_monster_owned:
        return Decision.none(Reason.NOT_MONSTER_STRUCTURE)
    current_level = structure.level or 1
    if current_level >= ctx.config.max_structure_level:
        return Decision.none(Reason.MAX_LEVEL_REACHED)

    group = ctx.group
    requirements = upgrade_requirements(current_level)
    if not has_sufficient(group.items, requirements):
        return Decision.none(Reason.INSUFFICIENT_RESOURCES)
    remaining = consume_resources(group.items, requirements)
    if remaining is None:
        return Decision.none(Reason.RESOURCE_CONSUMPTION_FAILED)

    new_level = current_level + 1
    pos = structure.position
    base = ctx.paths.structure(pos.x, pos.y)
    batch = MutationBatch()
    batch.update(base, {"level": new_level, "upgradeTime": ctx.now, "lastActivity": ctx.now})
    feature = FEATURE_UNLOCKS.get(new_level)
    if feature and feature not in structure.features:
        batch.set(f"{base}/features", [*structure.features, feature])
    batch.set(f"{ctx.group_path}/items", remaining)
    messages.post(
        ctx, batch, "upgrade",
        f"{messages.display_name(group, 'Monsters')} have upgraded their "
        f"{structure.name or 'structure'} to level {new_level}!",
        pos,
    )
    return Decision.act(
        Action.UPGRADE, batch,
        claims=(structure_claim(pos),),
        structure_id=structure.id, new_level=new_level, feature=feature,
    )


# ---------------------------------------------------------------------------
# Inner buildings
# ---------------------------------------------------------------------------

def choose_building_type(ctx: DecisionContext, structure: Structure) -> str | None:
    options = [
        btype for btype in sorted(BUILDING_DEFS)
        if int((structure.buildings.get(btype) or {}).get("level", 0)) < MAX_BUILDING_LEVEL
    ]
    return ctx.rng.choice(options) if options else None


def add_or_upgrade_building(ctx: DecisionContext, structure: Structure, building_type: str) -> Decision:
    if not structure.is_monster_owned:
        return Decision.none(Reason.NOT_MONSTER_STRUCTURE)
    bdef = BUILDING_DEFS.get(building_type)
    if bdef is None:
        return Decision.none(Reason.UNKNOWN_BUILDING_TYPE)

    existing = structure.buildings.get(building_type)
    current_level = int(existing.get("level") or 1) if existing else 0
    if current_level >= MAX_BUILDING_LEVEL:
        return Decision.none(Reason.MAX_LEVEL_REACHED)

    group = ctx.group
    requirements = building_requirements(bdef, current_level)
    if not has_sufficient(group.items, requirements):
        return Decision.none(Reason.INSUFFICIENT_RESOURCES)
    remaining = consume_resources(group.items, requirements)
    if remaining is None:
        return Decision.none(Reason.RESOURCE_CONSUMPTION_FAILED)

    is_upgrade = current_level > 0
    new_level = current_level + 1
    pos = structure.position
    record = dict(existing or {})
    record.update({"type": building_type, "name": bdef.name, "level": new_level})
    record["upgradedAt" if is_upgrade else "builtAt"] = ctx.now

    batch = MutationBatch()
    base = ctx.paths.structure(pos.x, pos.y)
    batch.set(f"{base}/buildings/{building_type}", record)
    batch.set(f"{base}/lastActivity", ctx.now)
    batch.set(f"{ctx.group_path}/items", remaining)
    verb = "upgraded" if is_upgrade else "built"
    messages.post(
        ctx, batch, "building",
        f"{messages.display_name(group, 'Monsters')} {verb} a {bdef.name} "
        f"in {structure.name or 'their structure'}.",
        pos,
    )
    return Decision.act(
        Action.BUILDING, batch,
        claims=(structure_claim(pos),),
        structure_id=structure.id, building_type=building_type,
        new_level=new_level, is_upgrade=is_upgrade,
    )


# ---------------------------------------------------------------------------
# Demobilize
# ---------------------------------------------------------------------------

def demobilize(ctx: DecisionContext, structure: Structure) -> Decision:
    """Deposit the group's items into *structure* and start demobilising."""
    if not structure.is_monster_owned:
        return Decision.none(Reason.NOT_MONSTER_STRUCTURE)
    group = ctx.group
    if not group.items:
        return Decision.none(Reason.NO_ITEMS_TO_DEPOSIT)

    pos = structure.position
    base = ctx.paths.structure(pos.x, pos.y)
    batch = MutationBatch()
    batch.set(f"{base}/items", merge_items(structure.items, group.items))
    batch.set(f"{base}/lastActivity", ctx.now)
    batch.set(f"{ctx.group_path}/items", {})
    batch.update(ctx.group_path, status_transition(GroupStatus.DEMOBILISING, {
        "demobiliseStart": ctx.now,
        "targetStructureId": structure.id,
    }))
    messages.post(
        ctx, batch, "demobilize",
        f"{messages.display_name(group)} is demobilizing at "
        f"{structure.name or 'their structure'} at ({pos.x}, {pos.y}).",
        pos,
    )
    return Decision.act(
        Action.DEMOBILIZE, batch,
        claims=(structure_claim(pos),),
        structure_id=structure.id, deposited_items=dict(group.items),
    )


# ---------------------------------------------------------------------------
# Adopt
# ---------------------------------------------------------------------------

def _still_building(ctx: DecisionContext, structure: Structure) -> bool:
    """Whether the recorded builder is anywhere in the world working on *structure*."""
    return any(
        g.id == structure.builder
        and g.status is GroupStatus.BUILDING
        and g.building_structure_id == structure.id
        for g in ctx.snapshot.monster_groups()
    )


def adopt_structure(ctx: DecisionContext, structure: Structure | None) -> Decision:
    """Take over construction of an unattended structure."""
    if structure is None:
        return Decision.none(Reason.TILE_DATA_NOT_FOUND)
    if structure.status is not StructureStatus.BUILDING:
        return Decision.none(Reason.STRUCTURE_NOT_BUILDING)
    tile = ctx.snapshot.tile_at(structure.position)
    if tile is None:
        return Decision.none(Reason.TILE_DATA_NOT_FOUND)

    group = ctx.group
    if any(g.id != group.id and g.status is GroupStatus.BUILDING for g in tile.groups.values()):
        return Decision.none(Reason.HAS_ACTIVE_BUILDER)
    if structure.builder and structure.builder != group.id and _still_building(ctx, structure):
        return Decision.none(Reason.HAS_ACTIVE_BUILDER)

    cfg = ctx.config
    player_owned = not structure.is_monster_owned
    if player_owned:
        abandoned = (
            structure.last_activity is not None
            and ctx.now - structure.last_activity > cfg.abandoned_after_ms
        )
        if not (structure.monster_friendly or abandoned):
            return Decision.none(Reason.NOT_MONSTER_FRIENDLY)
        chance = cfg.adopt_player_chance
    else:
        chance = min(1.0, cfg.adopt_monster_chance * ctx.personality.adopt_mult)
    if not ctx.rng.chance(chance):
        return Decision.none(Reason.RANDOM_REJECTION)

    pos = structure.position
    base = ctx.paths.structure(pos.x, pos.y)
    batch = MutationBatch()
    fields = {"builder": group.id, "builderName": group.name, "lastActivity": ctx.now}
    if player_owned:
        fields.update({"owner": group.id, "ownerName": group.name, "monster": True})
    batch.update(base, fields)
    batch.update(ctx.group_path, status_transition(GroupStatus.BUILDING, {"buildingStructureId": structure.id}))
    batch.set(f"{ctx.group_path}/preferredStructureId", structure.id)
    if player_owned:
        text = (f"{messages.display_name(group)} has taken over construction of the abandoned "
                f"{structure.name or 'structure'} at ({pos.x}, {pos.y})!")
    else:
        text = (f"{messages.display_name(group)} has decided to continue building the "
                f"{structure.name or 'structure'} at ({pos.x}, {pos.y}).")
    messages.post(ctx, batch, "adopt", text, pos)
    return Decision.act(
        Action.ADOPT, batch,
        claims=(structure_claim(pos),),
        structure_id=structure.id, structure_type=structure.type, location=pos.as_dict(),
    )
