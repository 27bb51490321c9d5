"""Tests for the REST layer — route functions driven against a local EngineManager.

The route functions are called directly with the manager, the same way
FastAPI would after resolving the dependency.
"""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.api.app import create_app
from horde.api.dependencies import get_engine_manager, set_engine_manager
from horde.api.engine_manager import EngineManager
from horde.api.routes.config import get_config
from horde.api.routes.control import ControlAction, control, set_speed
from horde.api.routes.metadata import get_enums, get_personalities, get_structures
from horde.api.routes.state import get_events, get_state
from horde.config import StrategyConfig
from horde.core.personality import Personality
from tests.helpers.world import DictTerrainOracle, make_chunks, monster_group, player_group, structure, tile


def _world() -> dict:
    tiles = {
        (0, 0): tile(groups={"g1": monster_group(name="G1", units=4)}),
        (3, 3): tile(groups={"g2": monster_group(name="G2", status="gathering", gatheringTicksRemaining=1)}),
        (30, 30): tile(groups={"p1": player_group()}, structure=structure("spawn", sid="spawn_1")),
    }
    return {"worlds": {"default": {"chunks": make_chunks(tiles)}}}


@pytest.fixture
def manager():
    cfg = StrategyConfig(num_workers=1, strategy_chance=1.0)
    mgr = EngineManager(cfg, oracle=DictTerrainOracle(), world=_world())
    yield mgr
    mgr.stop()


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

class TestState:
    def test_initial_state(self, manager):
        state = get_state(monsters_only=False, manager=manager)
        assert state.tick == 0
        assert not state.running
        assert [g.id for g in state.groups] == ["g1", "g2", "p1"]
        assert [s.id for s in state.structures] == ["spawn_1"]
        assert state.last_tick is None

    def test_monsters_only(self, manager):
        state = get_state(monsters_only=True, manager=manager)
        assert [g.id for g in state.groups] == ["g1", "g2"]
        g1 = state.groups[0]
        assert (g1.x, g1.y) == (0, 0)
        assert g1.unit_count == 4
        assert g1.personality == "BALANCED"

    def test_events_after_step(self, manager):
        control(ControlAction.step, manager=manager)
        events = get_events(since_tick=0, limit=100, manager=manager)
        assert "gathered" in [e.category for e in events.events]
        assert events.total == len(manager.event_log)
        state = get_state(monsters_only=True, manager=manager)
        assert state.last_tick is not None
        assert state.last_tick.gathering_completed == 1

    def test_events_limit(self, manager):
        control(ControlAction.step, manager=manager)
        assert len(get_events(since_tick=None, limit=1, manager=manager).events) <= 1


# ---------------------------------------------------------------------------
# Control
# ---------------------------------------------------------------------------

class TestControl:
    def test_step_runs_one_tick(self, manager):
        response = control(ControlAction.step, manager=manager)
        assert response.status == "ok"
        assert response.tick == 1
        assert manager.last_results is not None

    def test_pause_requires_running(self, manager):
        assert control(ControlAction.pause, manager=manager).status == "error"
        assert control(ControlAction.resume, manager=manager).status == "error"

    def test_reset_rebuilds_world(self, manager):
        control(ControlAction.step, manager=manager)
        response = control(ControlAction.reset, manager=manager)
        assert response.tick == 0
        assert len(manager.event_log) == 0
        state = get_state(monsters_only=True, manager=manager)
        assert [g.status for g in state.groups] == ["idle", "gathering"]

    def test_speed(self, manager):
        response = set_speed(tps=4.0, manager=manager)
        assert response.status == "ok"
        assert manager.tick_rate == pytest.approx(0.25)

    def test_speed_clamped(self, manager):
        manager.tick_rate = 100.0
        assert manager.tick_rate == 5.0
        manager.tick_rate = 0.0
        assert manager.tick_rate == 0.01


# ---------------------------------------------------------------------------
# Config and metadata
# ---------------------------------------------------------------------------

class TestConfigAndMetadata:
    def test_config(self, manager):
        cfg = get_config(manager=manager)
        assert cfg.world_id == "default"
        assert cfg.strategy_chance == 1.0
        assert cfg.chunk_size == 20
        assert cfg.tick_rate == manager.tick_rate

    def test_personalities(self):
        data = get_personalities()["personalities"]
        assert sorted(d["personality"] for d in data) == sorted(p.value for p in Personality)

    def test_structures(self):
        data = get_structures()
        types = {d["type"] for d in data["structures"]}
        assert {"monster_lair", "spawn"} <= types
        assert data["buildings"]

    def test_enums(self):
        data = get_enums()
        assert "move" in data["actions"]
        assert "purposeful_wander" in data["target_types"]


class TestApp:
    def test_routes_registered(self):
        app = create_app(StrategyConfig(), autostart=False)
        paths = {route.path for route in app.routes}
        assert "/api/v1/state" in paths
        assert "/api/v1/control/{action}" in paths
        assert "/api/v1/metadata/personalities" in paths

    def test_dependency_requires_manager(self):
        set_engine_manager(None)
        with pytest.raises(RuntimeError):
            get_engine_manager()
