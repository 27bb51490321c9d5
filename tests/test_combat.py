"""Tests for combat initiation: merging, attacking players/structures/monsters, joining."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.ai.combat import (
    attack_monsters,
    attack_players,
    attack_structure,
    join_battle,
    merge_groups,
    mergeable_groups_on_tile,
    player_groups_on_tile,
)
from horde.core.enums import Action, Reason
from horde.core.models import Position
from tests.helpers.world import (
    NOW,
    FixedRandom,
    group_path,
    make_ctx,
    monster_group,
    player_group,
    structure,
    structure_path,
    tile,
)

TILE = "worlds/default/chunks/0,0/0,0"


def _battle_paths(writes) -> list[str]:
    return [p for p in writes.as_dict() if "/battles/" in p]


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------

class TestMerge:
    def _tiles(self):
        return {(0, 0): tile(groups={
            "A": monster_group(name="A", units=2, items={"SAND": 1}),
            "B": monster_group(name="B", units=1, items={"SAND": 2, "HERBS": 1}),
            "C": monster_group(name="C", units=3),
        })}

    def test_merge_three_groups(self):
        ctx = make_ctx(self._tiles(), "A")
        others = mergeable_groups_on_tile(ctx.tile, ctx.group)
        assert sorted(g.id for g in others) == ["B", "C"]

        decision = merge_groups(ctx, others)
        assert decision.action is Action.MERGE
        assert decision.details["total_units"] == 6
        assert decision.details["merged_groups"] == ["B", "C"]

        writes = decision.mutations
        assert len(writes.get(f"{group_path(0, 0, 'A')}/units")) == 6
        assert writes.get(f"{group_path(0, 0, 'A')}/items") == {"SAND": 3, "HERBS": 1}
        assert group_path(0, 0, "B") in writes and writes.get(group_path(0, 0, "B")) is None
        assert group_path(0, 0, "C") in writes and writes.get(group_path(0, 0, "C")) is None

    def test_merge_claims_absorbed_groups(self):
        ctx = make_ctx(self._tiles(), "A")
        decision = merge_groups(ctx, mergeable_groups_on_tile(ctx.tile, ctx.group))
        assert decision.claims == frozenset({"group:B", "group:C"})

    def test_other_races_not_mergeable(self):
        tiles = {(0, 0): tile(groups={
            "A": monster_group(name="A"),
            "B": monster_group(name="B", race="goblin"),
        })}
        ctx = make_ctx(tiles, "A")
        assert mergeable_groups_on_tile(ctx.tile, ctx.group) == []

    def test_nothing_to_merge(self):
        ctx = make_ctx({(0, 0): tile(groups={"A": monster_group(name="A")})}, "A")
        decision = merge_groups(ctx, [])
        assert decision.action is None
        assert decision.reason is Reason.NO_SUITABLE_TARGET


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------

class TestAttackPlayers:
    def _tiles(self):
        return {(0, 0): tile(groups={
            "g1": monster_group(units=5),
            "p1": player_group(name="P1", units=4),
            "p2": player_group(name="P2", units=1),
            "p3": player_group(name="P3", units=3),
            "p4": player_group(name="P4", units=2),
        })}

    def test_caps_at_three_smallest_first(self):
        ctx = make_ctx(self._tiles(), "g1")
        decision = attack_players(ctx, player_groups_on_tile(ctx.tile))
        assert decision.action is Action.ATTACK
        assert decision.details["targets"] == ["p2", "p4", "p3"]
        assert decision.details["battle_id"] == f"battle_{NOW}_0"

    def test_all_involved_groups_marked_in_battle(self):
        ctx = make_ctx(self._tiles(), "g1")
        writes = attack_players(ctx, player_groups_on_tile(ctx.tile)).mutations
        involved = [gid for gid in ("g1", "p1", "p2", "p3", "p4")
                    if writes.get(f"{group_path(0, 0, gid)}/inBattle") is True]
        assert sorted(involved) == ["g1", "p2", "p3", "p4"]
        assert writes.get(f"{group_path(0, 0, 'g1')}/battleRole") == "attacker"
        assert writes.get(f"{group_path(0, 0, 'p2')}/battleSide") == 2
        assert writes.get(f"{group_path(0, 0, 'p2')}/status") == "fighting"

    def test_battle_record_sides(self):
        ctx = make_ctx(self._tiles(), "g1")
        writes = attack_players(ctx, player_groups_on_tile(ctx.tile)).mutations
        paths = _battle_paths(writes)
        assert len(paths) == 1
        record = writes.get(paths[0])
        assert list(record["side1"]["groups"]) == ["g1"]
        assert sorted(record["side2"]["groups"]) == ["p2", "p3", "p4"]
        assert record["targetTypes"] == ["group"]
        assert record["locationX"] == 0 and record["tickCount"] == 0

    def test_busy_players_not_targets(self):
        tiles = {(0, 0): tile(groups={
            "g1": monster_group(),
            "p1": player_group(inBattle=True),
            "p2": player_group(name="Moving", status="moving"),
        })}
        ctx = make_ctx(tiles, "g1")
        assert player_groups_on_tile(ctx.tile) == []
        assert attack_players(ctx, []).reason is Reason.NO_SUITABLE_TARGET


# ---------------------------------------------------------------------------
# Structures
# ---------------------------------------------------------------------------

class TestAttackStructure:
    def test_besiege_player_structure(self):
        tiles = {(0, 0): tile(
            groups={"g1": monster_group(units=6)},
            structure=structure("outpost", sid="out_1", owner="player_1"),
        )}
        ctx = make_ctx(tiles, "g1")
        decision = attack_structure(ctx, ctx.tile.structure)
        assert decision.action is Action.ATTACK
        assert decision.details["target_structure"] == "out_1"
        writes = decision.mutations
        assert writes.get(f"{structure_path(0, 0)}/inBattle") is True
        record = writes.get(_battle_paths(writes)[0])
        assert record["structureId"] == "out_1"
        assert record["side2"]["structureInfo"]["defensePower"] == 30.0
        assert record["side2"]["groups"] == {}

    def test_monster_structure_not_attacked(self):
        tiles = {(0, 0): tile(groups={"g1": monster_group()}, structure=structure("monster_lair"))}
        ctx = make_ctx(tiles, "g1")
        assert attack_structure(ctx, ctx.tile.structure).action is None

    def test_structure_already_under_siege(self):
        tiles = {(0, 0): tile(
            groups={"g1": monster_group()},
            structure=structure("outpost", owner="player_1", inBattle=True),
        )}
        ctx = make_ctx(tiles, "g1")
        assert attack_structure(ctx, ctx.tile.structure).reason is Reason.NO_SUITABLE_TARGET


# ---------------------------------------------------------------------------
# Monsters / joining
# ---------------------------------------------------------------------------

class TestMonsterFights:
    def test_attack_monsters_caps_targets(self):
        tiles = {(0, 0): tile(groups={
            "g1": monster_group(name="Ferals", personality="FERAL"),
            "r1": monster_group(name="R1", race="goblin"),
            "r2": monster_group(name="R2", race="goblin"),
            "r3": monster_group(name="R3", race="goblin"),
        })}
        ctx = make_ctx(tiles, "g1")
        others = [g for g in ctx.tile.groups.values() if g.id != "g1"]
        decision = attack_monsters(ctx, others)
        assert decision.action is Action.ATTACK
        assert len(decision.details["targets"]) == 2
        assert decision.details["target_kind"] == "monster_group"
        record = decision.mutations.get(_battle_paths(decision.mutations)[0])
        assert record["monsterVsMonster"] is True

    def test_join_battle_as_attacker(self):
        tiles = {(0, 0): tile(
            groups={"g1": monster_group()},
            battles={"b2": {"id": "b2"}, "b1": {"id": "b1"}},
        )}
        ctx = make_ctx(tiles, "g1", rng=FixedRandom(0.0, 0.0))
        decision = join_battle(ctx, ctx.tile.battles)
        assert decision.action is Action.JOIN_BATTLE
        assert decision.details == {"battle_id": "b1", "side": 1}
        writes = decision.mutations
        assert f"{TILE}/battles/b1/side1/groups/g1" in writes
        assert writes.get(f"{group_path(0, 0, 'g1')}/battleRole") == "reinforcement"
        assert writes.get(f"{group_path(0, 0, 'g1')}/inBattle") is True

    def test_join_battle_as_defender(self):
        tiles = {(0, 0): tile(groups={"g1": monster_group()}, battles={"b1": {"id": "b1"}})}
        ctx = make_ctx(tiles, "g1", rng=FixedRandom(0.0, 0.9))
        decision = join_battle(ctx, ctx.tile.battles)
        assert decision.details["side"] == 2

    def test_no_battle(self):
        ctx = make_ctx({(0, 0): tile(groups={"g1": monster_group()})}, "g1")
        assert join_battle(ctx, {}).reason is Reason.NO_BATTLE

    def test_position_helper(self):
        ctx = make_ctx({(2, 3): tile(groups={"g1": monster_group()})}, "g1")
        assert ctx.location == Position(2, 3)
