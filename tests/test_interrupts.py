"""Tests for the InterruptEvaluator — ordered checks for moving groups."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.ai.interrupts import InterruptEvaluator
from horde.config import StrategyConfig
from horde.core.enums import Action, InterruptReason, TargetType
from horde.core.models import Position
from tests.helpers.world import (
    NOW,
    FixedRandom,
    make_ctx,
    monster_group,
    player_group,
    structure,
    tile,
)


def _mover(started_ago: int = 60_000, target_type: str = "monster_structure", **fields) -> dict:
    return monster_group(
        units=4,
        status="moving",
        moveStarted=NOW - started_ago,
        movementPath=[{"x": 0, "y": 0}, {"x": 1, "y": 0}],
        targetX=10, targetY=10, targetType=target_type,
        **fields,
    )


def _evaluate(tiles, rng=None):
    ctx = make_ctx(tiles, "g1", rng=rng or FixedRandom(0.0))
    return InterruptEvaluator(StrategyConfig()).evaluate(ctx)


class TestGuards:
    def test_idle_group_never_interrupts(self):
        tiles = {(0, 0): tile(groups={"g1": monster_group()}, battles={"b1": {"id": "b1"}})}
        assert not _evaluate(tiles).should_interrupt

    def test_grace_period(self):
        tiles = {(0, 0): tile(groups={"g1": _mover(started_ago=10_000)}, battles={"b1": {"id": "b1"}})}
        assert not _evaluate(tiles).should_interrupt


class TestTileChecks:
    def test_active_battle_first(self):
        tiles = {(0, 0): tile(
            groups={"g1": _mover(), "p1": player_group()},
            battles={"b2": {"id": "b2"}, "b1": {"id": "b1"}},
        )}
        result = _evaluate(tiles)
        assert result.reason is InterruptReason.ACTIVE_BATTLE
        assert result.immediate_action is Action.JOIN_BATTLE
        assert result.battle_ids == ("b1", "b2")

    def test_weaker_players_attacked(self):
        tiles = {(0, 0): tile(groups={"g1": _mover(), "p1": player_group(units=2)})}
        result = _evaluate(tiles)
        assert result.reason is InterruptReason.ATTACKABLE_PLAYERS
        assert result.immediate_action is Action.ATTACK
        assert result.target_group_ids == ("p1",)

    def test_cautious_group_avoids_strong_players(self):
        tiles = {(0, 0): tile(groups={
            "g1": _mover(personality="CAUTIOUS"),
            "p1": player_group(units=10),
        })}
        assert not _evaluate(tiles, FixedRandom(0.1)).should_interrupt

    def test_structure_attack(self):
        tiles = {(0, 0): tile(
            groups={"g1": _mover()},
            structure=structure("outpost", sid="out_1", owner="player_1", defensePower=2),
        )}
        result = _evaluate(tiles)
        assert result.reason is InterruptReason.ATTACKABLE_STRUCTURE
        assert result.structure_id == "out_1"

    def test_only_feral_attacks_monsters(self):
        rival = monster_group(name="Goblins", units=2)
        balanced = {(0, 0): tile(groups={"g1": _mover(), "g2": rival})}
        assert not _evaluate(balanced).should_interrupt

        feral = {(0, 0): tile(groups={"g1": _mover(personality="FERAL"), "g2": rival})}
        result = _evaluate(feral)
        assert result.reason is InterruptReason.ATTACKABLE_MONSTERS
        assert result.target_group_ids == ("g2",)

    def test_gather_when_poor(self):
        tiles = {(0, 0): tile(groups={"g1": _mover()}, resources={"HERBS": 3})}
        result = _evaluate(tiles)
        assert result.reason is InterruptReason.GATHER_RESOURCES
        assert result.immediate_action is Action.GATHER

    def test_rich_group_keeps_moving(self):
        tiles = {(0, 0): tile(groups={"g1": _mover(items={"SAND": 9})}, resources={"HERBS": 3})}
        assert not _evaluate(tiles).should_interrupt


class TestNearbyTarget:
    def test_pursues_higher_priority_target(self):
        tiles = {
            (0, 0): tile(groups={"g1": _mover()}),
            (3, 0): tile(structure=structure("spawn", sid="spawn_a", defensePower=1)),
        }
        result = _evaluate(tiles)
        assert result.reason is InterruptReason.NEARBY_TARGET
        assert result.immediate_action is Action.MOVE
        assert result.target.type is TargetType.PLAYER_SPAWN
        assert result.target.position == Position(3, 0)

    def test_ignores_equal_priority(self):
        tiles = {
            (0, 0): tile(groups={"g1": _mover(target_type="player_spawn")}),
            (3, 0): tile(structure=structure("spawn", sid="spawn_a", defensePower=1)),
        }
        assert not _evaluate(tiles).should_interrupt

    def test_out_of_detection_range(self):
        tiles = {
            (0, 0): tile(groups={"g1": _mover()}),
            (9, 0): tile(structure=structure("spawn", sid="spawn_a", defensePower=1)),
        }
        assert not _evaluate(tiles).should_interrupt
