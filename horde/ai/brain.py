"""StrategyBrain — per-group decision pipeline.

Hybrid flow:
  1. Moving groups only consult the InterruptEvaluator; when an interrupt
     fires its immediate action runs in place of the current path.
  2. Idle groups try combat, then construction, then economy in priority
     order; a failed attempt falls through to the next option.  When
     nothing applies, the TargetSelector and MovementExecutor run.

Stateless apart from configuration, so it is safe to call from any
worker thread.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from horde.ai.combat import (
    attack_monsters,
    attack_players,
    attack_structure,
    attackable_monster_groups_on_tile,
    join_battle,
    merge_groups,
    mergeable_groups_on_tile,
    player_groups_on_tile,
)
from horde.ai.context import DecisionContext
from horde.ai.construction import (
    add_or_upgrade_building,
    adopt_structure,
    choose_building_type,
    demobilize,
    found_structure,
    upgrade_structure,
)
from horde.ai.gathering import start_gathering
from horde.ai.interrupts import InterruptEvaluator
from horde.ai.movement import MovementExecutor
from horde.ai.targeting import Target, TargetSelector
from horde.core.enums import Action, GroupStatus, InterruptReason, StructureStatus, TargetType
from horde.core.mutations import WorldPaths
from horde.core.personality import Personality

if TYPE_CHECKING:
    from horde.ai.context import Decision
    from horde.config import StrategyConfig
    from horde.core.models import Group, Structure
    from horde.core.snapshot import TickSnapshot
    from horde.systems.rng import RandomSource

logger = logging.getLogger(__name__)


def _clamp(p: float) -> float:
    return max(0.0, min(1.0, p))


class StrategyBrain:
    """Chooses at most one action per group per tick."""

    __slots__ = ("_config", "_selector", "_executor", "_interrupts")

    def __init__(
        self,
        config: StrategyConfig,
        selector: TargetSelector | None = None,
        executor: MovementExecutor | None = None,
        interrupts: InterruptEvaluator | None = None,
    ) -> None:
        self._config = config
        self._selector = selector or TargetSelector(config)
        self._executor = executor or MovementExecutor(config)
        self._interrupts = interrupts or InterruptEvaluator(config)

    def decide(self, group: Group, snapshot: TickSnapshot, rng: RandomSource) -> Decision | None:
        """Return *group*'s decision for this tick, or None when it is not eligible to act."""
        paths = WorldPaths(snapshot.world_id, snapshot.chunk_size)
        return self.decide_in(DecisionContext(group, snapshot, rng, self._config, paths))

    def decide_in(self, ctx: DecisionContext) -> Decision | None:
        group = ctx.group
        if group.in_battle:
            return None
        match group.status:
            case GroupStatus.MOVING:
                decision = self._on_the_move(ctx)
            case GroupStatus.IDLE:
                decision = self._idle(ctx)
            case _:
                return None
        if decision is not None and group.exploration_phase:
            self._tick_exploration(ctx, decision)
        return decision

    # -- moving --

    def _on_the_move(self, ctx: DecisionContext) -> Decision | None:
        interrupt = self._interrupts.evaluate(ctx)
        if not interrupt.should_interrupt:
            return None
        tile = ctx.tile
        decision: Decision | None = None
        match interrupt.immediate_action:
            case Action.JOIN_BATTLE if tile is not None:
                decision = join_battle(ctx, {bid: tile.battles[bid] for bid in interrupt.battle_ids})
            case Action.ATTACK if tile is not None:
                if interrupt.structure_id is not None:
                    decision = attack_structure(ctx, tile.structure)
                else:
                    targets = [tile.groups[gid] for gid in interrupt.target_group_ids]
                    if interrupt.reason is InterruptReason.ATTACKABLE_MONSTERS:
                        decision = attack_monsters(ctx, targets)
                    else:
                        decision = attack_players(ctx, targets)
            case Action.GATHER:
                decision = start_gathering(ctx)
            case Action.MOVE:
                decision = self._executor.execute(ctx, interrupt.target)
        if decision is None:
            return None
        logger.debug("Group %s interrupted (%s)", ctx.group.id, interrupt.reason.value)
        return replace(decision, details={**decision.details, "interrupt": interrupt.reason.value})

    # -- idle --

    def _idle(self, ctx: DecisionContext) -> Decision:
        cfg = self._config
        group = ctx.group
        pdef = ctx.personality
        rng = ctx.rng
        tile = ctx.tile
        structure = tile.structure if tile is not None else None

        if tile is not None:
            # Combat
            if tile.battles and (group.personality is not Personality.CAUTIOUS or rng.chance(0.4)):
                return join_battle(ctx, tile.battles)

            mergeable = mergeable_groups_on_tile(tile, group)
            if mergeable and rng.chance(cfg.merge_chance):
                return merge_groups(ctx, mergeable)

            players = player_groups_on_tile(tile)
            if players and rng.chance(_clamp(cfg.player_attack_chance * pdef.attack)):
                return attack_players(ctx, players)

            if (
                structure is not None and not structure.is_monster_owned and not structure.in_battle
                and rng.chance(_clamp(cfg.structure_attack_chance * pdef.attack))
            ):
                decision = attack_structure(ctx, structure)
                if decision.acted:
                    return decision

            if pdef.can_attack_monsters:
                rivals = attackable_monster_groups_on_tile(tile, group)
                if rivals and rng.chance(pdef.interrupt_chance(pdef.monsters_threshold)):
                    return attack_monsters(ctx, rivals)

            # Construction at an existing structure
            if structure is not None and structure.status is StructureStatus.BUILDING and structure.builder != group.id:
                decision = adopt_structure(ctx, structure)
                if decision.acted:
                    return decision

            if structure is not None and structure.is_monster_owned and structure.status is StructureStatus.COMPLETE:
                decision = self._improve_structure(ctx, structure)
                if decision is not None:
                    return decision

        # Found a new structure
        if (
            structure is None
            and group.unit_count >= cfg.min_units_for_building
            and group.resource_total >= cfg.build_resource_threshold
            and rng.chance(_clamp(cfg.build_chance * pdef.build))
        ):
            decision = found_structure(ctx)
            if decision.acted:
                return decision

        # Economy
        if group.resource_total > cfg.deposit_resource_threshold and rng.chance(cfg.deposit_chance):
            decision = self._deposit_move(ctx)
            if decision is not None and decision.acted:
                return decision

        if group.resource_total < cfg.gather_resource_threshold and rng.chance(_clamp(cfg.gather_chance * pdef.gather)):
            return start_gathering(ctx)

        # Strategic movement
        return self._executor.execute(ctx, self._selector.select(ctx))

    def _improve_structure(self, ctx: DecisionContext, structure: Structure) -> Decision | None:
        cfg = self._config
        group = ctx.group
        pdef = ctx.personality
        rng = ctx.rng

        if group.resource_total > cfg.upgrade_resource_threshold and rng.chance(_clamp(cfg.upgrade_chance * pdef.build)):
            decision = upgrade_structure(ctx, structure)
            if decision.acted:
                return decision

        if structure.level >= 2 and rng.chance(_clamp(cfg.building_chance * pdef.build)):
            building_type = choose_building_type(ctx, structure)
            if building_type is not None:
                decision = add_or_upgrade_building(ctx, structure, building_type)
                if decision.acted:
                    return decision

        if group.items and rng.chance(cfg.demobilize_chance):
            decision = demobilize(ctx, structure)
            if decision.acted:
                return decision
        return None

    def _deposit_move(self, ctx: DecisionContext) -> Decision | None:
        """Haul loot toward the nearest monster structure."""
        entries = [
            e for e in ctx.snapshot.scan.monster_structures
            if e.position != ctx.location
            and ctx.location.distance(e.position) <= self._config.max_scan_distance
        ]
        if not entries:
            return None
        nearest = min(entries, key=lambda e: (ctx.location.distance(e.position), e.position.y, e.position.x))
        target = self._selector.resolve(ctx, Target(
            nearest.position, TargetType.DEPOSIT, ctx.location.distance(nearest.position),
            structure_id=nearest.structure_id,
        ))
        if target is None:
            return None
        return self._executor.execute(ctx, target)

    # -- memory --

    @staticmethod
    def _tick_exploration(ctx: DecisionContext, decision: Decision) -> None:
        remaining = max(0, ctx.group.exploration_ticks - 1)
        decision.mutations.set(f"{ctx.group_path}/explorationTicks", remaining)
        if remaining == 0:
            decision.mutations.set(f"{ctx.group_path}/explorationPhase", False)
