"""Resource gathering on the current tile."""

from __future__ import annotations

from typing import TYPE_CHECKING

from horde.ai import messages
from horde.ai.context import Decision
from horde.core.enums import Action, GroupStatus
from horde.core.models import status_transition
from horde.core.mutations import MutationBatch

if TYPE_CHECKING:
    from horde.ai.context import DecisionContext


def start_gathering(ctx: DecisionContext) -> Decision:
    tile = ctx.tile
    biome = (tile.biome if tile is not None else None) or "plains"
    batch = MutationBatch()
    batch.update(ctx.group_path, status_transition(GroupStatus.GATHERING, {
        "gatheringStarted": ctx.now,
        "gatheringBiome": biome,
        "gatheringTicksRemaining": ctx.config.gathering_ticks,
    }))
    messages.post(
        ctx, batch, "gather",
        f"{messages.display_name(ctx.group)} is gathering resources in the {biome}.",
        ctx.location,
    )
    return Decision.act(Action.GATHER, batch, biome=biome)
