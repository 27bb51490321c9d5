"""Tests for the demo world builder and the noise terrain oracle."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.config import StrategyConfig
from horde.core.snapshot import TickSnapshot
from horde.core.terrain import TerrainView
from horde.systems.terrain_oracle import NoiseTerrainOracle
from horde.systems.world_builder import build_demo_world
from tests.helpers.world import DictTerrainOracle

WATER_STRIPE = {(x, y) for x in range(-5, 0) for y in range(-45, 46)}


def _tiles(doc: dict, world: str = "default") -> dict[tuple[int, int], dict]:
    out: dict[tuple[int, int], dict] = {}
    for chunk in doc["worlds"][world]["chunks"].values():
        for key, record in chunk.items():
            x, y = (int(v) for v in key.split(","))
            out[(x, y)] = record
    return out


def _occupied(doc: dict) -> list[tuple[int, int]]:
    return [pos for pos, t in _tiles(doc).items() if t.get("groups") or t.get("structure")]


class TestWorldBuilder:
    def test_counts(self):
        doc = build_demo_world(StrategyConfig(), DictTerrainOracle())
        tiles = _tiles(doc).values()
        structures = [t["structure"] for t in tiles if "structure" in t]
        groups = [g for t in tiles for g in (t.get("groups") or {}).values()]
        assert sorted(s["type"] for s in structures) == [
            "monster_hive", "monster_lair", "monster_lair", "spawn", "spawn",
        ]
        assert sum(1 for g in groups if g["type"] == "monster") == 10
        assert sum(1 for g in groups if g["type"] == "player") == 2
        assert doc["worlds"]["default"]["info"]["seed"] == 42

    def test_custom_sizes(self):
        doc = build_demo_world(StrategyConfig(), DictTerrainOracle(), spawns=1, lairs=0,
                               monster_groups=2, resource_tiles=0)
        groups = [g for t in _tiles(doc).values() for g in (t.get("groups") or {}).values()]
        monsters = [g for g in groups if g["type"] == "monster"]
        assert len(monsters) == 2
        assert all("mobilizedFromStructure" not in g for g in monsters)

    def test_deterministic(self):
        cfg = StrategyConfig(world_seed=5)
        assert build_demo_world(cfg, DictTerrainOracle()) == build_demo_world(cfg, DictTerrainOracle())

    def test_seed_changes_layout(self):
        a = build_demo_world(StrategyConfig(world_seed=1), DictTerrainOracle())
        b = build_demo_world(StrategyConfig(world_seed=2), DictTerrainOracle())
        assert _occupied(a) != _occupied(b)

    def test_everything_on_land(self):
        doc = build_demo_world(StrategyConfig(), DictTerrainOracle(water=WATER_STRIPE))
        for pos in _occupied(doc):
            assert pos not in WATER_STRIPE

    def test_snapshot_reads_built_world(self):
        cfg = StrategyConfig()
        oracle = DictTerrainOracle()
        doc = build_demo_world(cfg, oracle)
        snapshot = TickSnapshot.build(doc["worlds"]["default"]["chunks"], oracle, tick=0, now=0)
        monsters = list(snapshot.monster_groups())
        assert len(monsters) == 10
        assert all(g.unit_count >= 2 for g in monsters)


class TestNoiseTerrainOracle:
    def test_stable_per_seed(self):
        a, b = NoiseTerrainOracle(9), NoiseTerrainOracle(9)
        for x, y in [(0, 0), (13, -7), (-100, 250)]:
            assert a.get_terrain_data(x, y) == b.get_terrain_data(x, y)

    def test_sample_shape(self):
        data = NoiseTerrainOracle(9).get_terrain_data(3, 4)
        assert set(data) == {"biome", "height", "moisture", "riverValue", "lakeValue"}
        assert isinstance(data["biome"]["water"], bool)
        assert 0.0 <= data["riverValue"] <= 1.0
        assert 0.0 <= data["lakeValue"] <= 1.0

    def test_water_biomes_flagged(self):
        oracle = NoiseTerrainOracle(4)
        view = TerrainView(oracle)
        for x in range(-30, 30, 3):
            for y in range(-30, 30, 3):
                name = oracle.get_terrain_data(x, y)["biome"]["name"]
                if name in ("ocean", "lake", "river"):
                    assert view.is_water(x, y)
