"""Tests for terrain-aware line walking, ring search and compass headings."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.ai.pathfinding import compute_path, find_compatible_tile, ring, step_toward
from horde.core.mobility import Mobility
from horde.core.models import Position
from horde.core.terrain import TerrainView
from tests.helpers.world import DictTerrainOracle


def _terrain(water=()) -> TerrainView:
    return TerrainView(DictTerrainOracle(water=water))


# ---------------------------------------------------------------------------
# compute_path
# ---------------------------------------------------------------------------

class TestComputePath:
    def test_start_equals_end(self):
        result = compute_path(Position(2, 2), Position(2, 2), 5, Mobility.LAND, _terrain())
        assert result.points == (Position(2, 2),)
        assert result.steps == 0
        assert not result.blocked

    def test_straight_line_capped_by_max_steps(self):
        result = compute_path(Position(0, 0), Position(10, 0), 3, Mobility.LAND, _terrain())
        assert result.points == (Position(0, 0), Position(1, 0), Position(2, 0), Position(3, 0))
        assert result.steps == 3

    def test_stops_at_destination(self):
        result = compute_path(Position(0, 0), Position(2, 0), 10, Mobility.LAND, _terrain())
        assert result.points[-1] == Position(2, 0)
        assert result.steps == 2

    def test_diagonal_walk(self):
        result = compute_path(Position(0, 0), Position(3, 3), 10, Mobility.LAND, _terrain())
        assert result.points[-1] == Position(3, 3)
        assert result.steps == 3

    def test_water_blocks_land_group(self):
        result = compute_path(Position(0, 0), Position(4, 0), 5, Mobility.LAND, _terrain(water={(2, 0)}))
        assert result.blocked
        assert result.blocked_at == Position(2, 0)
        assert result.points == (Position(0, 0), Position(1, 0))

    def test_blocked_cell_never_included(self):
        result = compute_path(Position(0, 0), Position(4, 0), 5, Mobility.LAND, _terrain(water={(1, 0)}))
        assert result.points == (Position(0, 0),)
        assert result.steps == 0

    def test_amphibious_crosses_water(self):
        result = compute_path(Position(0, 0), Position(4, 0), 5, Mobility.AMPHIBIOUS, _terrain(water={(2, 0)}))
        assert not result.blocked
        assert result.points[-1] == Position(4, 0)

    def test_water_only_group_blocked_by_land(self):
        water = {(0, 0), (1, 0)}
        result = compute_path(Position(0, 0), Position(3, 0), 5, Mobility.WATER, _terrain(water=water))
        assert result.blocked_at == Position(2, 0)
        assert result.points == (Position(0, 0), Position(1, 0))


# ---------------------------------------------------------------------------
# ring / find_compatible_tile
# ---------------------------------------------------------------------------

class TestRingSearch:
    def test_ring_sizes(self):
        assert ring(Position(0, 0), 0) == [Position(0, 0)]
        assert len(ring(Position(0, 0), 1)) == 8
        assert len(ring(Position(0, 0), 2)) == 16

    def test_compatible_target_kept(self):
        assert find_compatible_tile(Position(5, 5), Mobility.LAND, _terrain()) == Position(5, 5)

    def test_water_target_relocated_to_nearest_land(self):
        pos = find_compatible_tile(Position(5, 5), Mobility.LAND, _terrain(water={(5, 5)}))
        assert pos is not None
        assert pos.chebyshev(Position(5, 5)) == 1
        assert pos.distance(Position(5, 5)) == 1.0

    def test_no_compatible_tile_within_radius(self):
        water = {(x, y) for x in range(-3, 4) for y in range(-3, 4)}
        assert find_compatible_tile(Position(0, 0), Mobility.LAND, _terrain(water=water), max_radius=2) is None


# ---------------------------------------------------------------------------
# step_toward
# ---------------------------------------------------------------------------

class TestStepToward:
    def test_cardinal_headings(self):
        origin = Position(0, 0)
        assert step_toward(origin, Position(5, 0)) == Position(1, 0)
        assert step_toward(origin, Position(-5, 0)) == Position(-1, 0)
        assert step_toward(origin, Position(0, -5)) == Position(0, -1)
        assert step_toward(origin, Position(0, 5)) == Position(0, 1)

    def test_diagonal_heading(self):
        assert step_toward(Position(0, 0), Position(4, 4)) == Position(1, 1)

    def test_same_cell_has_no_heading(self):
        assert step_toward(Position(1, 1), Position(1, 1)) is None
