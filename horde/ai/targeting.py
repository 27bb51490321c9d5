"""Target selection for idle monster groups.

Stages are tried in priority order and the first one that yields a
target wins:

  1. explicit raid order carried by the group
  2. exploration redirect toward one of the closest player spawns
  3. adjacency opportunism (attackable neighbour tile, one-tile hop)
  4. home preference (the group's preferred structure)
  5. weighted category draw over the world scan

Returning ``None`` tells the caller to fall back to purposeful wandering.
Selection only reads the context, so identical inputs and an identically
seeded random source always yield the same target.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from horde.ai.combat import player_groups_on_tile
from horde.ai.pathfinding import find_compatible_tile
from horde.core.enums import TargetType
from horde.core.models import COMPASS, Position
from horde.core.personality import Personality
from horde.core.structures import estimate_structure_power

if TYPE_CHECKING:
    from horde.ai.context import DecisionContext
    from horde.config import StrategyConfig
    from horde.core.world_scan import ScanEntry

logger = logging.getLogger(__name__)

_AGGRESSIVE_TYPES = frozenset({Personality.AGGRESSIVE, Personality.FERAL})


@dataclass(frozen=True, slots=True)
class Target:
    """A resolved movement goal."""

    position: Position
    type: TargetType
    distance: float
    structure_id: str | None = None
    single_step: bool = False
    exploration: bool = False
    max_distance: float | None = None
    alternates: tuple[Target, ...] = ()


@dataclass(frozen=True, slots=True)
class TargetCategory:
    """One row of the category priority table."""

    type: TargetType
    base_weight: float
    max_distance: float


def build_categories(config: StrategyConfig) -> tuple[TargetCategory, ...]:
    scan = config.max_scan_distance
    return (
        TargetCategory(TargetType.MONSTER_STRUCTURE, 1.0, scan),
        TargetCategory(TargetType.RESOURCE_HOTSPOT, 1.2, scan * 0.75),
        TargetCategory(TargetType.PLAYER_SPAWN, 0.8, scan * 1.5),
        TargetCategory(TargetType.PLAYER_STRUCTURE, 0.6, scan * 1.25),
        TargetCategory(TargetType.MONSTER_GROUP, 0.7, scan * 0.5),
    )


class TargetSelector:
    """Chooses one target per idle group."""

    __slots__ = ("_config", "_categories")

    def __init__(self, config: StrategyConfig) -> None:
        self._config = config
        self._categories = build_categories(config)

    @property
    def categories(self) -> tuple[TargetCategory, ...]:
        return self._categories

    def _category(self, type_: TargetType) -> TargetCategory:
        return next(c for c in self._categories if c.type is type_)

    def select(self, ctx: DecisionContext) -> Target | None:
        stages = (
            self._explicit_order,
            self._exploration_redirect,
            self._adjacent_opportunity,
            self._home_preference,
            self._weighted_category,
        )
        for stage in stages:
            target = stage(ctx)
            if target is None:
                continue
            resolved = self.resolve(ctx, target)
            if resolved is None:
                logger.debug("Group %s: %s target at %s unreachable, wandering",
                             ctx.group.id, target.type.value, target.position)
            return resolved
        return None

    # -- stages --

    @staticmethod
    def _explicit_order(ctx: DecisionContext) -> Target | None:
        order = ctx.group.target_structure
        if not order:
            return None
        loc = order.get("location") or order
        if loc.get("x") is None or loc.get("y") is None:
            return None
        pos = Position(int(loc["x"]), int(loc["y"]))
        distance = ctx.location.distance(pos)
        if distance < 1:
            return None
        return Target(pos, TargetType.RAID, distance, structure_id=order.get("id"))

    def _exploration_redirect(self, ctx: DecisionContext) -> Target | None:
        group = ctx.group
        if not (group.exploration_phase and group.exploration_ticks > 0):
            return None
        if not group.mobilized_from_structure:
            return None
        scan = ctx.snapshot.scan
        if scan.find_structure(group.mobilized_from_structure) is None:
            return None
        limit = self._category(TargetType.PLAYER_SPAWN).max_distance
        spawns = sorted(
            (e for e in scan.player_spawns
             if e.position != ctx.location and ctx.location.distance(e.position) <= limit),
            key=lambda e: (ctx.location.distance(e.position), e.position.y, e.position.x),
        )
        if not spawns:
            return None
        entry = ctx.rng.choice(spawns[: self._config.exploration_spawn_candidates])
        return Target(
            entry.position, TargetType.PLAYER_SPAWN, ctx.location.distance(entry.position),
            structure_id=entry.structure_id, exploration=True, max_distance=limit,
        )

    def _adjacent_opportunity(self, ctx: DecisionContext) -> Target | None:
        chance = min(1.0, max(0.0, ctx.personality.attack))
        if not ctx.rng.chance(chance):
            return None
        for offset in ctx.rng.shuffled(COMPASS):
            pos = ctx.location + offset
            tile = ctx.snapshot.tiles.get(pos.tile_key)
            if tile is None or not ctx.can_enter(pos):
                continue
            s = tile.structure
            if s is not None and not s.is_monster_owned:
                return Target(pos, TargetType.ADJACENT_STRUCTURE, ctx.location.distance(pos),
                              structure_id=s.id, single_step=True)
            if player_groups_on_tile(tile):
                return Target(pos, TargetType.ADJACENT_PLAYERS, ctx.location.distance(pos),
                              single_step=True)
        return None

    def _home_preference(self, ctx: DecisionContext) -> Target | None:
        group = ctx.group
        if group.exploration_phase or not group.preferred_structure_id:
            return None
        chance = min(1.0, self._config.home_preference_base * ctx.personality.home_preference)
        if not ctx.rng.chance(chance):
            return None
        entry = ctx.snapshot.scan.find_structure(group.preferred_structure_id)
        if entry is None:
            return None
        distance = ctx.location.distance(entry.position)
        if distance < 1 or distance > self._config.max_scan_distance:
            return None
        return Target(entry.position, TargetType.MONSTER_HOME, distance,
                      structure_id=entry.structure_id,
                      max_distance=float(self._config.max_scan_distance))

    def _weighted_category(self, ctx: DecisionContext) -> Target | None:
        cfg = self._config
        group = ctx.group
        pdef = ctx.personality
        scan = ctx.snapshot.scan
        exploring = group.exploration_phase and group.exploration_ticks > 0
        weak = group.unit_count < cfg.weak_group_units
        large = group.unit_count >= cfg.large_group_units
        small = group.unit_count < cfg.small_group_units
        bypass_gate = (
            weak and group.personality in _AGGRESSIVE_TYPES
            and ctx.rng.chance(cfg.weak_bypass_chance)
        )
        max_defense = group.power / pdef.power_ratio_threshold

        entries: dict[TargetType, tuple[ScanEntry, ...]] = {
            TargetType.MONSTER_STRUCTURE: scan.monster_structures,
            TargetType.RESOURCE_HOTSPOT: scan.resource_hotspots,
            TargetType.PLAYER_SPAWN: scan.player_spawns,
            TargetType.PLAYER_STRUCTURE: scan.player_structures,
            TargetType.MONSTER_GROUP: scan.monster_groups,
        }

        candidates: list[tuple[float, Target]] = []
        for category in self._categories:
            weight = category.base_weight
            match category.type:
                case TargetType.PLAYER_SPAWN:
                    weight *= pdef.attack
                    if large:
                        weight *= 1.5
                    elif small:
                        weight *= 0.6
                    if exploring:
                        weight *= 4
                case TargetType.PLAYER_STRUCTURE:
                    weight *= pdef.attack
                    if large:
                        weight *= 1.3
                case TargetType.RESOURCE_HOTSPOT:
                    weight *= pdef.gather
                    if large:
                        weight *= 0.7
                    elif small:
                        weight *= 1.5
                case TargetType.MONSTER_STRUCTURE:
                    weight *= pdef.build
                    if exploring:
                        weight *= 0.1
                case TargetType.MONSTER_GROUP:
                    if not weak:
                        continue
            if weight <= 0:
                continue

            dangerous = category.type in (TargetType.PLAYER_SPAWN, TargetType.PLAYER_STRUCTURE)
            for entry in entries[category.type]:
                if entry.group_id is not None and entry.group_id == group.id:
                    continue
                distance = ctx.location.distance(entry.position)
                if distance < 1 or distance > category.max_distance:
                    continue
                if dangerous and not bypass_gate and entry.structure is not None:
                    defense = estimate_structure_power(entry.structure, cfg.default_structure_power)
                    if defense > max_defense:
                        continue
                score = weight * (1 - distance / category.max_distance)
                if score <= 0:
                    continue
                candidates.append((score, Target(
                    entry.position, category.type, distance,
                    structure_id=entry.structure_id,
                    exploration=exploring,
                    max_distance=category.max_distance,
                )))

        if not candidates:
            return None
        # Draw over a stable order so scan layout never shifts the outcome
        candidates.sort(key=lambda c: (-c[0], c[1].position.y, c[1].position.x, c[1].type.value))
        index = ctx.rng.weighted_index([score for score, _ in candidates])
        if index is None:
            return None
        chosen = candidates[index][1]
        runners_up = sorted(
            (c for i, c in enumerate(candidates) if i != index),
            key=lambda c: -c[0],
        )[:2]
        return replace(chosen, alternates=tuple(t for _, t in runners_up))

    # -- terrain --

    def resolve(self, ctx: DecisionContext, target: Target) -> Target | None:
        """Move *target* onto terrain the group can enter, or drop it."""
        for option in (target, *target.alternates):
            relocated = self._relocate(ctx, option)
            if relocated is not None:
                if option is target:
                    alternates = tuple(
                        a for a in (self._relocate(ctx, alt) for alt in target.alternates) if a is not None
                    )
                    return replace(relocated, alternates=alternates)
                return relocated
        return None

    def _relocate(self, ctx: DecisionContext, target: Target) -> Target | None:
        if ctx.can_enter(target.position):
            return replace(target, alternates=())
        pos = find_compatible_tile(
            target.position, ctx.mobility, ctx.snapshot.terrain, self._config.compatible_tile_radius,
        )
        if pos is None or pos == ctx.location:
            return None
        distance = ctx.location.distance(pos)
        if target.max_distance is not None and distance > target.max_distance:
            return None
        return replace(target, position=pos, distance=distance, alternates=())
