"""Tests for the ConflictResolver — claims and per-tick density re-checks.

Covers:
- Two groups merging the same partner (lower id wins)
- A group attacked earlier in the tick cannot act
- One structure decision per tile per tick
- Density cap across structures founded in the same tick
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.ai.context import Decision
from horde.config import StrategyConfig
from horde.core.enums import Action, Reason
from horde.core.models import Group, Position
from horde.core.mutations import MutationBatch
from horde.engine.conflict_resolver import ConflictResolver
from tests.helpers.world import make_snapshot, structure, tile


def _group(gid: str, x: int = 0, y: int = 0) -> Group:
    return Group(id=gid, position=Position(x, y))


def _decision(action: Action, *claims: str, path: str = "", **details) -> Decision:
    batch = MutationBatch()
    if path:
        batch.set(path, action.value)
    return Decision.act(action, batch, claims=claims, **details)


def _resolve(decisions, tiles=None):
    return ConflictResolver(StrategyConfig()).resolve(decisions, make_snapshot(tiles or {}))


class TestClaims:
    def test_lower_id_wins_shared_target(self):
        result = _resolve([
            (_group("b"), _decision(Action.MERGE, "group:c", path="x/b")),
            (_group("a"), _decision(Action.MERGE, "group:c", path="x/a")),
        ])
        assert [g.id for g, _ in result.accepted] == ["a"]
        assert [g.id for g, _ in result.rejected] == ["b"]
        rejected = result.rejected[0][1]
        assert rejected.action is None
        assert rejected.reason is Reason.CONFLICT
        assert rejected.details["rejected_action"] == "merge"
        assert result.batch.as_dict() == {"x/a": "merge"}

    def test_claimed_group_cannot_act(self):
        result = _resolve([
            (_group("a"), _decision(Action.ATTACK, "group:b")),
            (_group("b"), _decision(Action.MOVE)),
        ])
        assert [g.id for g, _ in result.accepted] == ["a"]
        assert [g.id for g, _ in result.rejected] == ["b"]

    def test_group_cannot_claim_earlier_actor(self):
        result = _resolve([
            (_group("a"), _decision(Action.MOVE)),
            (_group("b"), _decision(Action.MERGE, "group:a")),
        ])
        assert [g.id for g, _ in result.rejected] == ["b"]

    def test_one_structure_decision_per_tile(self):
        result = _resolve([
            (_group("a"), _decision(Action.UPGRADE, "structure:3,3")),
            (_group("b"), _decision(Action.ADOPT, "structure:3,3")),
            (_group("c"), _decision(Action.UPGRADE, "structure:4,4")),
        ])
        assert [g.id for g, _ in result.accepted] == ["a", "c"]

    def test_no_op_decisions_pass_through(self):
        result = _resolve([(_group("a"), Decision.none(Reason.BLOCKED_BY_WATER))])
        assert len(result.accepted) == 1
        assert not result.batch


class TestDensity:
    def _build(self, gid: str, x: int, y: int) -> tuple[Group, Decision]:
        return _group(gid), _decision(
            Action.BUILD, f"structure:{x},{y}", path=f"s/{gid}", location={"x": x, "y": y},
        )

    def test_same_tick_foundings_count(self):
        tiles = {(20, 0): tile(structure=structure("monster_lair", sid="old"))}
        result = _resolve([self._build("a", 22, 0), self._build("b", 24, 0), self._build("c", 26, 0)], tiles)
        # One existing plus two accepted reaches the cap of three
        assert [g.id for g, _ in result.accepted] == ["a", "b"]
        assert [g.id for g, _ in result.rejected] == ["c"]

    def test_distant_foundings_unaffected(self):
        result = _resolve([self._build("a", 0, 0), self._build("b", 50, 0), self._build("c", 100, 0)])
        assert len(result.accepted) == 3
