"""Purposeful wandering: the fallback when no strategic target qualifies.

A heading is picked by a personality heuristic and may be overridden by a
nearby landmark (resource tile, biome transition, shoreline).  The plan
lists candidate targets in preference order; the movement executor walks
them until one yields a usable path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from horde.ai.pathfinding import step_toward
from horde.ai.targeting import Target
from horde.core.enums import TargetType
from horde.core.models import COMPASS, Position
from horde.core.personality import Personality

if TYPE_CHECKING:
    from horde.ai.context import DecisionContext
    from horde.config import StrategyConfig

LANDMARK_INTEREST: dict[str, float] = {
    "resource": 3.0,
    "biome_transition": 2.0,
    "shoreline": 1.5,
}

_ORTHOGONAL = (Position(1, 0), Position(0, 1), Position(-1, 0), Position(0, -1))


@dataclass(frozen=True, slots=True)
class Landmark:
    position: Position
    kind: str
    score: float


@dataclass(frozen=True, slots=True)
class WanderPlan:
    direction: Position
    candidates: tuple[Target, ...]
    landmark: Landmark | None = None


def _normalize_direction(direction: Position | None) -> Position | None:
    if direction is None:
        return None
    return step_toward(Position(0, 0), direction)


def _rotate(direction: Position, steps: int) -> Position:
    return COMPASS[(COMPASS.index(direction) + steps) % len(COMPASS)]


class PurposefulWander:
    """Plans landmark-seeking exploration moves."""

    __slots__ = ("_config",)

    def __init__(self, config: StrategyConfig) -> None:
        self._config = config

    def plan(self, ctx: DecisionContext) -> WanderPlan:
        rng = ctx.rng
        if not self._config.purposeful_wander:
            direction = rng.choice(COMPASS)
            return WanderPlan(direction, self._heading_targets(ctx, direction, rng.randint(2, 4)))

        direction = self.choose_direction(ctx)
        distance = rng.randint(2, 4)
        candidates: list[Target] = []
        landmark = None
        chance = min(1.0, self._config.wander_landmark_chance * ctx.personality.explore)
        if rng.chance(chance):
            landmark = self.find_landmark(ctx, direction)
            if landmark is not None:
                candidates.append(Target(
                    landmark.position, TargetType.LANDMARK,
                    ctx.location.distance(landmark.position),
                ))
        candidates.extend(self._heading_targets(ctx, direction, distance))
        return WanderPlan(direction, tuple(candidates), landmark)

    # -- heading --

    def choose_direction(self, ctx: DecisionContext) -> Position:
        group = ctx.group
        rng = ctx.rng
        preferred = _normalize_direction(group.preferred_direction)

        match group.personality:
            case Personality.NOMADIC:
                if preferred is not None and rng.chance(0.7):
                    return preferred
                return rng.choice(COMPASS)
            case Personality.TERRITORIAL:
                origin = self._origin(ctx)
                if origin is None or origin == ctx.location:
                    return preferred or rng.choice(COMPASS)
                inward = step_toward(ctx.location, origin)
                if ctx.location.distance(origin) > self._config.compatible_tile_radius:
                    return inward
                # Circle the origin: move tangentially to the radial heading
                return _rotate(inward, 2)
            case Personality.AGGRESSIVE:
                center = Position(self._config.world_center_x, self._config.world_center_y)
                if ctx.location != center and rng.chance(0.6):
                    return step_toward(ctx.location, center)
                return rng.choice(COMPASS)
            case Personality.FERAL:
                if preferred is None or rng.chance(0.6):
                    return rng.choice(COMPASS)
                return preferred
            case _:
                if preferred is None:
                    return rng.choice(COMPASS)
                return _rotate(preferred, rng.randint(-1, 1))

    @staticmethod
    def _origin(ctx: DecisionContext) -> Position | None:
        group = ctx.group
        for structure_id in (group.mobilized_from_structure, group.preferred_structure_id, group.home):
            if not structure_id:
                continue
            entry = ctx.snapshot.scan.find_structure(structure_id)
            if entry is not None:
                return entry.position
        return None

    def _heading_targets(self, ctx: DecisionContext, direction: Position, distance: int) -> list[Target]:
        """Targets along *direction*, then its neighbours fanning outward."""
        targets = []
        for steps in (0, 1, -1, 2, -2, 3, -3, 4):
            heading = _rotate(direction, steps)
            pos = Position(ctx.location.x + heading.x * distance, ctx.location.y + heading.y * distance)
            targets.append(Target(pos, TargetType.WANDER, ctx.location.distance(pos)))
        return targets

    # -- landmarks --

    def find_landmark(self, ctx: DecisionContext, direction: Position) -> Landmark | None:
        radius = self._config.wander_search_radius
        if ctx.group.exploration_phase:
            radius = int(radius * 1.5)
        terrain = ctx.snapshot.terrain
        origin = ctx.location
        best: Landmark | None = None

        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                if dx == 0 and dy == 0:
                    continue
                pos = Position(origin.x + dx, origin.y + dy)
                distance = origin.distance(pos)
                if distance > radius or not ctx.can_enter(pos):
                    continue
                kind = self._landmark_kind(ctx, pos)
                if kind is None:
                    continue
                score = LANDMARK_INTEREST[kind] - distance * self._config.wander_distance_penalty
                if dx * direction.x + dy * direction.y > 0:
                    score += 0.5
                if best is None or score > best.score:
                    best = Landmark(pos, kind, score)
        return best

    @staticmethod
    def _landmark_kind(ctx: DecisionContext, pos: Position) -> str | None:
        tile = ctx.snapshot.tiles.get(pos.tile_key)
        if tile is not None and tile.has_resources:
            return "resource"
        terrain = ctx.snapshot.terrain
        biome = terrain.biome(pos.x, pos.y)
        water = terrain.is_water(pos.x, pos.y)
        transition = False
        for offset in _ORTHOGONAL:
            n = pos + offset
            if terrain.is_water(n.x, n.y) != water:
                return "shoreline"
            if terrain.biome(n.x, n.y) != biome:
                transition = True
        return "biome_transition" if transition else None
