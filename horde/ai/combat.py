"""Combat initiation: merging, attacking, and joining battles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Mapping

from horde.ai import messages
from horde.ai.context import Decision, group_claim, structure_claim
from horde.core.enums import Action, BattleRole, BattleTargetKind, GroupStatus, Reason
from horde.core.inventory import merge_items
from horde.core.models import Battle, BattleSide, status_transition
from horde.core.mutations import MutationBatch
from horde.core.structures import estimate_structure_power

if TYPE_CHECKING:
    from horde.ai.context import DecisionContext
    from horde.core.models import Group, Structure, TileData

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tile queries
# ---------------------------------------------------------------------------

def player_groups_on_tile(tile: TileData) -> list[Group]:
    """Idle player-owned groups that can be attacked."""
    return [
        g for g in tile.groups.values()
        if not g.is_monster and g.owner and g.is_available
    ]


def mergeable_groups_on_tile(tile: TileData, group: Group) -> list[Group]:
    """Idle monster groups of the same race sharing the tile."""
    return [
        g for g in tile.groups.values()
        if g.id != group.id and g.is_monster and g.is_available
        and (not group.race or not g.race or g.race == group.race)
    ]


def attackable_monster_groups_on_tile(tile: TileData, group: Group) -> list[Group]:
    return [
        g for g in tile.groups.values()
        if g.id != group.id and g.is_monster and g.is_available
    ]


def tile_power(groups: Iterable[Group]) -> float:
    return sum(g.power for g in groups)


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------

def merge_groups(ctx: DecisionContext, others: list[Group]) -> Decision:
    """Absorb *others* into the acting group."""
    if not others:
        return Decision.none(Reason.NO_SUITABLE_TARGET)
    group = ctx.group
    absorbed = sorted(others, key=lambda g: g.id)

    units = dict(group.units)
    for other in absorbed:
        for unit_id, unit in other.units.items():
            key = unit_id if unit_id not in units else f"{other.id}_{unit_id}"
            units[key] = unit
    items = merge_items(group.items, *(o.items for o in absorbed))
    total_units = group.unit_count + sum(o.unit_count for o in absorbed)

    batch = MutationBatch()
    batch.set(f"{ctx.group_path}/units", units)
    batch.set(f"{ctx.group_path}/items", items)
    if total_units != len(units):
        batch.set(f"{ctx.group_path}/unitCount", total_units)
    for other in absorbed:
        batch.delete(ctx.group_path_of(other))

    messages.post(
        ctx, batch, "merge",
        f"{messages.display_name(group)} has grown in strength, absorbing "
        f"{len(absorbed)} other monster groups!",
        ctx.location,
    )
    merged_ids = [o.id for o in absorbed]
    logger.debug("Group %s merged %s (%d units)", group.id, merged_ids, total_units)
    return Decision.act(
        Action.MERGE, batch,
        claims=tuple(group_claim(gid) for gid in merged_ids),
        merged_groups=merged_ids, total_units=total_units,
    )


# ---------------------------------------------------------------------------
# Battles
# ---------------------------------------------------------------------------

def _battle_id(ctx: DecisionContext) -> str:
    return f"battle_{ctx.now}_{ctx.rng.randint(0, 999)}"


def _participant(battle_id: str, side: int, role: BattleRole) -> dict:
    return status_transition(GroupStatus.FIGHTING, {
        "inBattle": True,
        "battleId": battle_id,
        "battleSide": side,
        "battleRole": role.value,
    })


def _start_battle(
    ctx: DecisionContext,
    targets: list[Group],
    kind: BattleTargetKind,
    defenders_name: str,
    message_kind: str,
    text: str,
) -> Decision:
    group = ctx.group
    battle_id = _battle_id(ctx)
    battle = Battle(
        id=battle_id,
        position=ctx.location,
        target_kinds=(kind,),
        side1=BattleSide(group.name or "Monsters", {group.id: group.battle_entry()}),
        side2=BattleSide(defenders_name, {t.id: t.battle_entry() for t in targets}),
        created_at=ctx.now,
        monster_vs_monster=kind is BattleTargetKind.MONSTER_GROUP,
    )
    batch = MutationBatch()
    batch.set(ctx.paths.battle(ctx.location.x, ctx.location.y, battle_id), battle.to_record())
    batch.update(ctx.group_path, _participant(battle_id, 1, BattleRole.ATTACKER))
    for target in targets:
        batch.update(ctx.group_path_of(target), _participant(battle_id, 2, BattleRole.DEFENDER))
    messages.post(ctx, batch, message_kind, text, ctx.location)

    target_ids = [t.id for t in targets]
    logger.debug("Group %s started %s against %s", group.id, battle_id, target_ids)
    return Decision.act(
        Action.ATTACK, batch,
        claims=tuple(group_claim(t) for t in target_ids),
        battle_id=battle_id, targets=target_ids, target_kind=kind.value,
    )


def attack_players(ctx: DecisionContext, targets: list[Group]) -> Decision:
    """Attack up to ``max_player_targets`` player groups, smallest first."""
    if not targets:
        return Decision.none(Reason.NO_SUITABLE_TARGET)
    selected = sorted(targets, key=lambda g: (g.unit_count, g.id))[: ctx.config.max_player_targets]
    defenders = selected[0].name if len(selected) == 1 and selected[0].name else "Defending Forces"
    text = f"{messages.display_name(ctx.group, 'Monsters')} have attacked {defenders} at ({ctx.location.x}, {ctx.location.y})!"
    return _start_battle(ctx, selected, BattleTargetKind.GROUP, defenders, "attack", text)


def attack_monsters(ctx: DecisionContext, targets: list[Group]) -> Decision:
    """Attack up to ``max_monster_targets`` rival monster groups chosen at random."""
    if not targets:
        return Decision.none(Reason.NO_SUITABLE_TARGET)
    ordered = sorted(targets, key=lambda g: g.id)
    selected = ctx.rng.shuffled(ordered)[: ctx.config.max_monster_targets]
    defenders = selected[0].name if len(selected) == 1 and selected[0].name else "Rival Monsters"
    text = f"{messages.display_name(ctx.group, 'Feral monsters')} have attacked {defenders} at ({ctx.location.x}, {ctx.location.y})!"
    return _start_battle(ctx, selected, BattleTargetKind.MONSTER_GROUP, defenders, "attack_monster", text)


def attack_structure(ctx: DecisionContext, structure: Structure | None) -> Decision:
    """Besiege a non-monster structure on the current tile."""
    if structure is None or structure.in_battle:
        return Decision.none(Reason.NO_SUITABLE_TARGET)
    if structure.is_monster_owned:
        return Decision.none(Reason.NO_SUITABLE_TARGET)

    group = ctx.group
    pos = structure.position
    battle_id = _battle_id(ctx)
    power = estimate_structure_power(structure, ctx.config.default_structure_power)
    name = structure.name or structure.type
    battle = Battle(
        id=battle_id,
        position=pos,
        target_kinds=(BattleTargetKind.STRUCTURE,),
        side1=BattleSide(group.name or "Monsters", {group.id: group.battle_entry()}),
        side2=BattleSide(name, {}, structure_info={
            "id": structure.id,
            "name": name,
            "type": structure.type,
            "owner": structure.owner,
            "defensePower": power,
        }),
        created_at=ctx.now,
        structure_id=structure.id,
        structure_power=power,
    )
    batch = MutationBatch()
    batch.set(ctx.paths.battle(pos.x, pos.y, battle_id), battle.to_record())
    batch.update(ctx.paths.structure(pos.x, pos.y), {"inBattle": True, "battleId": battle_id})
    batch.update(ctx.group_path, _participant(battle_id, 1, BattleRole.ATTACKER))
    messages.post(
        ctx, batch, "attack_structure",
        f"{messages.display_name(group, 'Monsters')} are attacking {name} at ({pos.x}, {pos.y})!",
        pos,
    )
    logger.debug("Group %s besieges %s (power %.1f)", group.id, structure.id, power)
    return Decision.act(
        Action.ATTACK, batch,
        claims=(structure_claim(pos),),
        battle_id=battle_id, target_structure=structure.id,
        target_kind=BattleTargetKind.STRUCTURE.value,
    )


def join_battle(ctx: DecisionContext, battles: Mapping[str, dict]) -> Decision:
    """Reinforce one of the battles on the current tile."""
    if not battles:
        return Decision.none(Reason.NO_BATTLE)
    group = ctx.group
    battle_id = ctx.rng.choice(sorted(battles))
    side = 1 if ctx.rng.chance(ctx.config.join_attackers_chance) else 2

    batch = MutationBatch()
    battle_path = ctx.paths.battle(ctx.location.x, ctx.location.y, battle_id)
    batch.set(f"{battle_path}/side{side}/groups/{group.id}", group.battle_entry())
    batch.update(ctx.group_path, _participant(battle_id, side, BattleRole.REINFORCEMENT))
    messages.post(
        ctx, batch, "join_battle",
        f"{messages.display_name(group)} has joined the battle at ({ctx.location.x}, {ctx.location.y})!",
        ctx.location,
    )
    return Decision.act(Action.JOIN_BATTLE, batch, battle_id=battle_id, side=side)
