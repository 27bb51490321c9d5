"""World chat event messages emitted by monster decisions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from horde.core.enums import TargetType

if TYPE_CHECKING:
    from horde.ai.context import DecisionContext
    from horde.core.models import Group, Position
    from horde.core.mutations import MutationBatch


def group_size_label(group: Group) -> str:
    if group.unit_count <= 3:
        return "small"
    if group.unit_count <= 8:
        return "medium-sized"
    return "large"


def display_name(group: Group, fallback: str = "Monster group") -> str:
    return group.name or fallback


def move_text(group: Group, target_type: TargetType, target: Position) -> str:
    name = display_name(group)
    at = f"({target.x}, {target.y})"
    match target_type:
        case TargetType.PLAYER_SPAWN:
            return f"A {group_size_label(group)} {name} is marching toward the settlement at {at}!"
        case TargetType.MONSTER_STRUCTURE:
            return f"{name} is moving toward their lair at {at}."
        case TargetType.MONSTER_HOME:
            return f"{name} is returning home to {at}."
        case TargetType.RESOURCE_HOTSPOT:
            return f"{name} is searching for resources near {at}."
        case TargetType.RAID:
            return f"A {group_size_label(group)} {name} has been sent to raid {at}!"
        case TargetType.DEPOSIT:
            return f"{name} is hauling loot back to {at}."
        case TargetType.ADJACENT_STRUCTURE:
            return f"{name} is moving to attack the structure at {at}!"
        case TargetType.ADJACENT_PLAYERS:
            return f"{name} is moving to attack players at {at}!"
        case TargetType.WANDER | TargetType.LANDMARK:
            return f"{name} is exploring toward {at}."
        case _:
            return f"{name} is on the move."


def post(ctx: DecisionContext, batch: MutationBatch, kind: str, text: str, location: Position) -> str:
    """Write one event message into *batch*. Returns its id."""
    message_id = f"monster_{kind}_{ctx.now}_{ctx.group.id}"
    batch.set(ctx.paths.chat(message_id), {
        "text": text,
        "type": "event",
        "timestamp": ctx.now,
        "location": location.as_dict(),
    })
    return message_id
