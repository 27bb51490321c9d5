"""Tests for StrategyTick — scheduling, fault isolation, commits, determinism."""

import sys
import os
import json

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.ai.brain import StrategyBrain
from horde.config import StrategyConfig
from horde.core.enums import Action
from horde.engine.store import CommitError, WorldStore
from horde.engine.tick import StrategyTick, TickResults
from horde.systems.terrain_oracle import NoiseTerrainOracle
from horde.systems.world_builder import build_demo_world
from horde.utils.event_log import EventLog
from horde.utils.replay import ReplayRecorder
from tests.helpers.world import (
    DictTerrainOracle,
    group_path,
    make_chunks,
    monster_group,
    player_group,
    tile,
)


def _store(tiles) -> WorldStore:
    return WorldStore({"worlds": {"default": {"chunks": make_chunks(tiles)}}})


def _engine(tiles, store=None, **overrides) -> StrategyTick:
    cfg = StrategyConfig(num_workers=1, strategy_chance=overrides.pop("strategy_chance", 1.0), **overrides)
    return StrategyTick(cfg, store or _store(tiles), DictTerrainOracle(), start_time=1_000_000)


class FaultyBrain(StrategyBrain):
    def decide(self, group, snapshot, rng):
        if group.id == "bad":
            raise RuntimeError("boom")
        return super().decide(group, snapshot, rng)


class BrokenStore(WorldStore):
    def commit(self, batch):
        if len(batch):
            raise CommitError("read-only")
        return 0


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------

class TestScheduling:
    def test_moving_always_idle_never_at_zero_chance(self):
        tiles = {(0, 0): tile(groups={
            "idle": monster_group(name="Idle"),
            "mover": monster_group(name="Mover", status="moving", moveStarted=0),
            "fighter": monster_group(name="Fighter", inBattle=True, status="fighting"),
            "busy": monster_group(name="Busy", status="gathering"),
            "p1": player_group(),
        })}
        engine = _engine(tiles, strategy_chance=0.0)
        selected = engine.select_groups(engine.create_snapshot())
        assert [g.id for g in selected] == ["mover"]

    def test_all_idle_at_full_chance(self):
        tiles = {(0, 0): tile(groups={
            "a": monster_group(name="A"),
            "b": monster_group(name="B"),
            "p1": player_group(),
        })}
        engine = _engine(tiles)
        assert [g.id for g in engine.select_groups(engine.create_snapshot())] == ["a", "b"]


# ---------------------------------------------------------------------------
# run_once
# ---------------------------------------------------------------------------

class TestRunOnce:
    def test_advances_time_and_counts(self):
        tiles = {
            (0, 0): tile(groups={"g1": monster_group(name="G1", units=4)}),
            (10, 0): tile(groups={"g2": monster_group(name="G2", units=4)}),
        }
        engine = _engine(tiles)
        results = engine.run_once()
        assert isinstance(results, TickResults)
        assert results.tick == 0
        assert results.total_processed == 2
        assert results.actions + results.no_action == 2
        assert results.errors == 0 and results.committed
        assert engine.tick == 1
        assert engine.now == 1_000_000 + 60_000
        assert engine.last_results is results

    def test_faulty_group_skips_turn(self):
        tiles = {
            (0, 0): tile(groups={"bad": monster_group(name="Bad")}),
            (10, 0): tile(groups={"good": monster_group(name="Good")}),
        }
        cfg = StrategyConfig(num_workers=1, strategy_chance=1.0)
        engine = StrategyTick(cfg, _store(tiles), DictTerrainOracle(), brain=FaultyBrain(cfg), start_time=1_000_000)
        results = engine.run_once()
        assert results.errors == 1
        assert results.actions + results.no_action == 1
        assert results.committed
        assert engine.store.get(f"{group_path(0, 0, 'bad')}/status") == "idle"

    def test_failed_commit_is_counted(self):
        tiles = {(0, 0): tile(groups={"g1": monster_group()})}
        store = BrokenStore({"worlds": {"default": {"chunks": make_chunks(tiles)}}})
        engine = _engine(tiles, store=store)
        results = engine.run_once()
        assert not results.committed
        assert results.errors >= 1
        assert engine.tick == 1

    def test_count_helper(self):
        results = TickResults()
        results.count(Action.MOVE, interrupted=True)
        results.count(Action.ATTACK)
        results.count(None)
        assert results.moves_initiated == 1
        assert results.battles_started == 1
        assert results.interrupts == 1
        assert results.no_action == 1
        assert results.actions == 2
        assert results.as_dict()["moves_initiated"] == 1


# ---------------------------------------------------------------------------
# Progression and events
# ---------------------------------------------------------------------------

class TestProgressionAndEvents:
    def test_gathering_completes_and_logs(self):
        gatherer = monster_group(status="gathering", gatheringTicksRemaining=1, gatheringBiome="desert")
        tiles = {(0, 0): tile(groups={"g1": gatherer})}
        cfg = StrategyConfig(num_workers=1, strategy_chance=0.0)
        log = EventLog()
        engine = StrategyTick(cfg, _store(tiles), DictTerrainOracle(), event_log=log, start_time=1_000_000)
        results = engine.run_once()
        assert results.gathering_completed == 1
        items = engine.store.get(f"{group_path(0, 0, 'g1')}/items")
        assert items["SAND"] >= 1
        assert [e.category for e in log.latest()] == ["gathered"]

    def test_progression_can_be_disabled(self):
        gatherer = monster_group(status="gathering", gatheringTicksRemaining=1)
        tiles = {(0, 0): tile(groups={"g1": gatherer})}
        engine = _engine(tiles, strategy_chance=0.0, progression_enabled=False)
        engine.run_once()
        assert engine.store.get(f"{group_path(0, 0, 'g1')}/gatheringTicksRemaining") == 1


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

class TestDeterminism:
    def _run(self, workers: int, ticks: int = 4) -> dict:
        cfg = StrategyConfig(world_seed=11, num_workers=workers)
        oracle = NoiseTerrainOracle(cfg.world_seed)
        store = WorldStore(build_demo_world(cfg, oracle))
        engine = StrategyTick(cfg, store, oracle)
        engine.run(ticks)
        engine.shutdown()
        return store.to_dict()

    def test_thread_count_does_not_change_outcome(self):
        assert self._run(1) == self._run(4)

    def test_same_seed_same_world(self):
        assert self._run(2) == self._run(2)

    def test_replay_written(self, tmp_path):
        cfg = StrategyConfig(world_seed=3, num_workers=1)
        oracle = NoiseTerrainOracle(cfg.world_seed)
        recorder = ReplayRecorder(tmp_path / "replay.json", cfg.world_seed)
        engine = StrategyTick(cfg, WorldStore(build_demo_world(cfg, oracle)), oracle, recorder=recorder)
        engine.run(2)
        data = json.loads((tmp_path / "replay.json").read_text())
        assert data["seed"] == 3
        assert data["total_ticks"] == 2
        assert data["ticks"][0]["groups"]
