"""Movement execution: turns a target into a concrete movement order."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from horde.ai import messages
from horde.ai.context import Decision
from horde.ai.pathfinding import compute_path, step_toward
from horde.ai.wander import PurposefulWander
from horde.core.enums import Action, GroupStatus, Reason, TargetType
from horde.core.mobility import Mobility
from horde.core.models import COMPASS, Position, status_transition
from horde.core.mutations import MutationBatch

if TYPE_CHECKING:
    from horde.ai.context import DecisionContext
    from horde.ai.targeting import Target
    from horde.config import StrategyConfig

logger = logging.getLogger(__name__)

# Target types whose moves are always announced
SIGNIFICANT_TARGETS = frozenset({
    TargetType.PLAYER_SPAWN,
    TargetType.MONSTER_STRUCTURE,
    TargetType.MONSTER_HOME,
    TargetType.RAID,
    TargetType.ADJACENT_STRUCTURE,
    TargetType.ADJACENT_PLAYERS,
})

# Announced only some of the time
EXPLORATORY_TARGETS = frozenset({TargetType.WANDER, TargetType.LANDMARK})


@dataclass(frozen=True, slots=True)
class MovementOrder:
    """Every mutable movement field of a group, written as one unit."""

    path: tuple[Position, ...]
    target: Position
    target_type: TargetType
    speed: float
    started: int
    next_move_time: int
    reason: str | None = None

    def fields(self) -> dict:
        return status_transition(GroupStatus.MOVING, {
            "movementPath": [p.as_dict() for p in self.path],
            "pathIndex": 0,
            "moveStarted": self.started,
            "moveSpeed": self.speed,
            "targetX": self.target.x,
            "targetY": self.target.y,
            "targetType": self.target_type.value,
            "nextMoveTime": self.next_move_time,
            "moveReason": self.reason,
        })


class MovementExecutor:
    """Issues hops, bounded paths, and purposeful-wander moves."""

    __slots__ = ("_config", "_wander")

    def __init__(self, config: StrategyConfig, wander: PurposefulWander | None = None) -> None:
        self._config = config
        self._wander = wander or PurposefulWander(config)

    def execute(self, ctx: DecisionContext, target: Target | None) -> Decision:
        if target is None:
            return self.wander(ctx)
        if target.single_step or target.distance <= 1.5:
            return self._hop(ctx, target)

        blocked_by_water = False
        for option in (target, *target.alternates):
            decision, water = self._follow_path(ctx, option)
            if decision is not None:
                return decision
            blocked_by_water = blocked_by_water or water

        logger.debug("Group %s: path to %s blocked", ctx.group.id, target.position)
        if not self._config.purposeful_wander:
            return Decision.none(Reason.BLOCKED_BY_WATER if blocked_by_water else Reason.BLOCKED_BY_TERRAIN)
        return self.wander(ctx)

    # -- hop --

    def _hop(self, ctx: DecisionContext, target: Target) -> Decision:
        primary = step_toward(ctx.location, target.position)
        others = [c for c in COMPASS if c != primary]
        options = ([primary] if primary is not None else []) + ctx.rng.shuffled(others)
        for offset in options:
            cell = ctx.location + offset
            if ctx.can_enter(cell):
                order = MovementOrder(
                    path=(ctx.location, cell),
                    target=target.position,
                    target_type=target.type,
                    speed=self._config.hop_speed,
                    started=ctx.now,
                    next_move_time=ctx.now + self._config.hop_interval_ms,
                    reason=target.type.value,
                )
                return self._issue(ctx, order)
        return Decision.none(Reason.BLOCKED_BY_TERRAIN)

    # -- path --

    def _follow_path(self, ctx: DecisionContext, target: Target) -> tuple[Decision | None, bool]:
        steps = ctx.rng.randint(self._config.path_step_min, self._config.path_step_max)
        result = compute_path(ctx.location, target.position, steps, ctx.mobility, ctx.snapshot.terrain)
        if result.steps == 0:
            water = result.blocked_at is not None and ctx.snapshot.terrain.is_water(
                result.blocked_at.x, result.blocked_at.y,
            )
            return None, water
        order = MovementOrder(
            path=result.points,
            target=target.position,
            target_type=target.type,
            speed=self._speed(ctx, target),
            started=ctx.now,
            next_move_time=ctx.now + self._config.move_interval_ms,
        )
        return self._issue(ctx, order), False

    def _speed(self, ctx: DecisionContext, target: Target) -> float:
        speed = ctx.personality.move_speed
        if target.exploration or ctx.group.exploration_phase:
            speed *= self._config.exploration_speed_boost
        return round(speed, 3)

    # -- wander --

    def wander(self, ctx: DecisionContext) -> Decision:
        plan = self._wander.plan(ctx)
        blocked_cells: list[Position] = []
        for candidate in plan.candidates:
            steps = ctx.rng.randint(self._config.path_step_min, self._config.path_step_max)
            result = compute_path(ctx.location, candidate.position, steps, ctx.mobility, ctx.snapshot.terrain)
            if result.steps == 0:
                if result.blocked_at is not None:
                    blocked_cells.append(result.blocked_at)
                continue
            order = MovementOrder(
                path=result.points,
                target=candidate.position,
                target_type=candidate.type,
                speed=self._speed(ctx, candidate),
                started=ctx.now,
                next_move_time=ctx.now + self._config.move_interval_ms,
                reason=plan.landmark.kind if plan.landmark and candidate.type is TargetType.LANDMARK else None,
            )
            heading = step_toward(ctx.location, candidate.position) or plan.direction
            return self._issue(ctx, order, preferred_direction=heading)
        return Decision.none(self._stuck_reason(ctx, blocked_cells))

    @staticmethod
    def _stuck_reason(ctx: DecisionContext, blocked_cells: list[Position]) -> Reason:
        terrain = ctx.snapshot.terrain
        neighbours = [ctx.location + offset for offset in COMPASS]
        if ctx.mobility is Mobility.LAND and all(terrain.is_water(p.x, p.y) for p in neighbours):
            return Reason.SURROUNDED_BY_WATER
        if blocked_cells and all(terrain.is_water(p.x, p.y) for p in blocked_cells):
            return Reason.BLOCKED_BY_WATER
        return Reason.BLOCKED_BY_TERRAIN

    # -- write --

    def _issue(
        self,
        ctx: DecisionContext,
        order: MovementOrder,
        preferred_direction: Position | None = None,
    ) -> Decision:
        batch = MutationBatch()
        batch.update(ctx.group_path, order.fields())
        if preferred_direction is not None:
            batch.set(f"{ctx.group_path}/preferredDirection", preferred_direction.as_dict())

        announce = order.target_type in SIGNIFICANT_TARGETS or (
            order.target_type in EXPLORATORY_TARGETS
            and ctx.rng.chance(self._config.exploratory_message_chance)
        )
        if announce:
            messages.post(ctx, batch, "move",
                          messages.move_text(ctx.group, order.target_type, order.target), order.target)

        logger.debug("Group %s moving toward %s (%s, %d steps)",
                     ctx.group.id, order.target, order.target_type.value, len(order.path) - 1)
        return Decision.act(
            Action.MOVE, batch,
            target_type=order.target_type.value,
            target=order.target.as_dict(),
            steps=len(order.path) - 1,
        )
