"""Tests for motion classification and water detection."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.core.mobility import Mobility, can_traverse_land, can_traverse_water, mobility_of
from horde.core.models import Group, Position
from horde.core.terrain import TerrainSample, TerrainView, is_water
from tests.helpers.world import DictTerrainOracle


class TestMobility:
    def test_missing_motion_is_land(self):
        assert mobility_of(None) is Mobility.LAND
        assert mobility_of([]) is Mobility.LAND

    def test_classification(self):
        assert mobility_of(["land"]) is Mobility.LAND
        assert mobility_of(["water"]) is Mobility.WATER
        assert mobility_of(["land", "water"]) is Mobility.AMPHIBIOUS
        assert mobility_of(["flight"]) is Mobility.AMPHIBIOUS
        assert mobility_of(["AIR"]) is Mobility.AMPHIBIOUS

    def test_allows(self):
        assert Mobility.LAND.allows(False)
        assert not Mobility.LAND.allows(True)
        assert Mobility.WATER.allows(True)
        assert not Mobility.WATER.allows(False)
        assert Mobility.AMPHIBIOUS.allows(True) and Mobility.AMPHIBIOUS.allows(False)

    def test_group_helpers(self):
        spider = Group(id="s", position=Position(0, 0), motion=frozenset({"land", "water"}))
        fish = Group(id="f", position=Position(0, 0), motion=frozenset({"water"}))
        assert can_traverse_water(spider) and can_traverse_land(spider)
        assert can_traverse_water(fish) and not can_traverse_land(fish)


class TestWater:
    def test_biome_flag(self):
        assert is_water(TerrainSample.from_oracle({"biome": {"name": "ocean", "water": True}}))
        assert not is_water(TerrainSample.from_oracle({"biome": {"name": "plains", "water": False}}))

    def test_string_biome(self):
        assert is_water(TerrainSample.from_oracle({"biome": "lake"}))

    def test_river_and_lake_thresholds(self):
        dry = {"biome": {"name": "plains"}}
        assert is_water(TerrainSample.from_oracle({**dry, "riverValue": 0.3}))
        assert is_water(TerrainSample.from_oracle({**dry, "lakeValue": 0.21}))
        assert not is_water(TerrainSample.from_oracle({**dry, "riverValue": 0.2}))
        assert not is_water(TerrainSample.from_oracle({**dry, "riverValue": 0.3}), threshold=0.5)

    def test_view_caches_lookups(self):
        oracle = DictTerrainOracle(water={(1, 1)})
        view = TerrainView(oracle)
        assert view.is_water(1, 1)
        assert view.is_water(1, 1)
        assert not view.is_water(0, 0)
        assert oracle.lookups == 2
        assert view.biome(0, 0) == "plains"
