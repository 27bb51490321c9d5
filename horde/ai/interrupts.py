"""Interrupt evaluation for groups that are already moving.

Checks run in order and the first that fires wins.  Each check is gated by
a personality threshold; a lower threshold makes the group more eager to
abandon its current path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from horde.ai.combat import attackable_monster_groups_on_tile, player_groups_on_tile, tile_power
from horde.ai.targeting import Target
from horde.core.enums import Action, GroupStatus, InterruptReason, TargetType
from horde.core.personality import Personality
from horde.core.structures import estimate_structure_power

if TYPE_CHECKING:
    from horde.ai.context import DecisionContext
    from horde.config import StrategyConfig

logger = logging.getLogger(__name__)

_AGGRESSIVE_TYPES = frozenset({Personality.AGGRESSIVE, Personality.FERAL})

# Higher wins when comparing a nearby opportunity with the current target
TARGET_PRIORITY: dict[str, int] = {
    TargetType.PLAYER_SPAWN.value: 3,
    TargetType.RAID.value: 3,
    TargetType.PLAYER_STRUCTURE.value: 2,
    TargetType.ADJACENT_STRUCTURE.value: 2,
    TargetType.ADJACENT_PLAYERS.value: 2,
    TargetType.RESOURCE_HOTSPOT.value: 1,
}


@dataclass(frozen=True, slots=True)
class InterruptDecision:
    should_interrupt: bool
    reason: InterruptReason | None = None
    immediate_action: Action | None = None
    battle_ids: tuple[str, ...] = ()
    target_group_ids: tuple[str, ...] = ()
    structure_id: str | None = None
    target: Target | None = None


NO_INTERRUPT = InterruptDecision(False)


class InterruptEvaluator:
    """Decides whether a moving group should abandon its path this tick."""

    __slots__ = ("_config",)

    def __init__(self, config: StrategyConfig) -> None:
        self._config = config

    def evaluate(self, ctx: DecisionContext) -> InterruptDecision:
        group = ctx.group
        if group.status is not GroupStatus.MOVING or group.in_battle:
            return NO_INTERRUPT
        if group.move_started is None or ctx.now - group.move_started < self._config.interrupt_grace_ms:
            return NO_INTERRUPT

        pdef = ctx.personality
        rng = ctx.rng
        aggressive = group.personality in _AGGRESSIVE_TYPES
        tile = ctx.tile

        if tile is not None:
            # (1) active battle
            if tile.battles and rng.chance(pdef.interrupt_chance(pdef.battle_threshold)):
                return InterruptDecision(
                    True, InterruptReason.ACTIVE_BATTLE, Action.JOIN_BATTLE,
                    battle_ids=tuple(sorted(tile.battles)),
                )

            # (2) player groups, weighted by power ratio
            players = player_groups_on_tile(tile)
            if players:
                ratio = group.power / max(tile_power(players), 1.0)
                base = pdef.interrupt_chance(pdef.players_threshold)
                if ratio >= 1.0:
                    chance = base
                elif aggressive:
                    chance = base * 0.6
                else:
                    chance = base * ratio * 0.3
                if rng.chance(chance):
                    return InterruptDecision(
                        True, InterruptReason.ATTACKABLE_PLAYERS, Action.ATTACK,
                        target_group_ids=tuple(sorted(g.id for g in players)),
                    )

            # (3) non-monster structure
            s = tile.structure
            if s is not None and not s.is_monster_owned and not s.in_battle:
                power = estimate_structure_power(s, self._config.default_structure_power)
                base = pdef.interrupt_chance(pdef.structure_threshold)
                if group.power >= power * 0.8:
                    chance = base
                else:
                    chance = base * (0.5 if aggressive else 0.1)
                if rng.chance(chance):
                    return InterruptDecision(
                        True, InterruptReason.ATTACKABLE_STRUCTURE, Action.ATTACK,
                        structure_id=s.id,
                    )

            # (4) rival monsters, only where the archetype allows it
            if pdef.can_attack_monsters:
                rivals = attackable_monster_groups_on_tile(tile, group)
                if rivals and rng.chance(pdef.interrupt_chance(pdef.monsters_threshold)):
                    return InterruptDecision(
                        True, InterruptReason.ATTACKABLE_MONSTERS, Action.ATTACK,
                        target_group_ids=tuple(sorted(g.id for g in rivals)),
                    )

            # (5) gather when resource-poor
            if (
                group.resource_total < self._config.gather_resource_threshold
                and tile.has_resources
                and rng.chance(pdef.interrupt_chance(pdef.gather_threshold))
            ):
                return InterruptDecision(True, InterruptReason.GATHER_RESOURCES, Action.GATHER)

        # (6) nearby higher-priority target
        target = self.nearby_target(ctx)
        if target is not None and rng.chance(pdef.interrupt_chance(pdef.pursue_threshold)):
            return InterruptDecision(True, InterruptReason.NEARBY_TARGET, Action.MOVE, target=target)

        return NO_INTERRUPT

    def nearby_target(self, ctx: DecisionContext) -> Target | None:
        """Best opportunity within detection range, by (priority desc, distance asc)."""
        group = ctx.group
        pdef = ctx.personality
        scan = ctx.snapshot.scan
        radius = self._config.detection_radius * pdef.detection_mult
        current = TARGET_PRIORITY.get(group.target_type or "", 0)
        max_defense = group.power / pdef.power_ratio_threshold

        options: list[tuple[int, float, Target]] = []

        def consider(entries, target_type: TargetType, gated: bool) -> None:
            priority = TARGET_PRIORITY[target_type.value]
            if priority <= current:
                return
            for entry in entries:
                if entry.position == group.target or entry.position == ctx.location:
                    continue
                distance = ctx.location.distance(entry.position)
                if distance > radius or not ctx.can_enter(entry.position):
                    continue
                if gated and entry.structure is not None:
                    if estimate_structure_power(entry.structure, self._config.default_structure_power) > max_defense:
                        continue
                options.append((priority, distance, Target(
                    entry.position, target_type, distance, structure_id=entry.structure_id,
                )))

        consider(scan.player_spawns, TargetType.PLAYER_SPAWN, gated=True)
        consider(scan.player_structures, TargetType.PLAYER_STRUCTURE, gated=True)
        if group.resource_total < self._config.gather_resource_threshold:
            consider(scan.resource_hotspots, TargetType.RESOURCE_HOTSPOT, gated=False)

        if not options:
            return None
        options.sort(key=lambda o: (-o[0], o[1], o[2].position.y, o[2].position.x))
        return options[0][2]
