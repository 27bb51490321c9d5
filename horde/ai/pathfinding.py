"""Terrain-constrained line pathing.

Provides a bounded Bresenham walk that stops at the first cell the group
cannot enter, and an expanding-ring search for the nearest enterable tile.

Usage:
    result = compute_path(start, goal, 3, Mobility.LAND, snapshot.terrain)
    if result.blocked:
        ...  # result.blocked_at is the offending cell
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

from horde.core.mobility import Mobility
from horde.core.models import Position


class WaterLookup(Protocol):
    def is_water(self, x: int, y: int) -> bool:
        ...


@dataclass(frozen=True, slots=True)
class PathResult:
    """Accumulated waypoints, starting with the origin."""

    points: tuple[Position, ...]
    blocked: bool = False
    blocked_at: Position | None = None

    @property
    def end(self) -> Position:
        return self.points[-1]

    @property
    def steps(self) -> int:
        return len(self.points) - 1


def compute_path(
    start: Position,
    end: Position,
    max_steps: int,
    mobility: Mobility,
    terrain: WaterLookup,
) -> PathResult:
    """Walk from *start* toward *end* for at most ``min(max_steps, |dx|+|dy|)`` cells.

    Stops with ``blocked=True`` at the first cell incompatible with
    *mobility*; the returned points never include that cell.
    """
    if start == end:
        return PathResult((start,))

    dx = abs(end.x - start.x)
    dy = abs(end.y - start.y)
    sx = 1 if start.x < end.x else -1
    sy = 1 if start.y < end.y else -1
    err = dx - dy

    x, y = start.x, start.y
    points = [start]
    budget = min(max_steps, dx + dy)

    while budget > 0 and (x != end.x or y != end.y):
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy
        if not mobility.allows(terrain.is_water(x, y)):
            return PathResult(tuple(points), blocked=True, blocked_at=Position(x, y))
        points.append(Position(x, y))
        budget -= 1

    return PathResult(tuple(points))


def ring(center: Position, radius: int) -> list[Position]:
    """Cells at exactly Chebyshev *radius* from *center*."""
    if radius == 0:
        return [center]
    cells = []
    for dx in range(-radius, radius + 1):
        for dy in range(-radius, radius + 1):
            if max(abs(dx), abs(dy)) == radius:
                cells.append(Position(center.x + dx, center.y + dy))
    return cells


def find_compatible_tile(
    target: Position,
    mobility: Mobility,
    terrain: WaterLookup,
    max_radius: int = 5,
) -> Position | None:
    """Nearest tile to *target* the group can enter, searching outward ring by ring."""
    for radius in range(0, max_radius + 1):
        candidates = [
            p for p in ring(target, radius)
            if mobility.allows(terrain.is_water(p.x, p.y))
        ]
        if candidates:
            return min(candidates, key=lambda p: (p.distance(target), p.y, p.x))
    return None


# Compass offsets ordered by angle (atan2(dy, dx)) in 45 degree steps
_ANGLE_OFFSETS: tuple[Position, ...] = (
    Position(1, 0), Position(1, 1), Position(0, 1), Position(-1, 1),
    Position(-1, 0), Position(-1, -1), Position(0, -1), Position(1, -1),
)


def step_toward(origin: Position, target: Position) -> Position | None:
    """Round the direction origin->target to the nearest of 8 compass offsets."""
    dx = target.x - origin.x
    dy = target.y - origin.y
    if dx == 0 and dy == 0:
        return None
    index = round(math.atan2(dy, dx) / (math.pi / 4)) % 8
    return _ANGLE_OFFSETS[index]
