"""Deterministic conflict resolution for decisions made against one snapshot."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from horde.ai.construction import count_nearby_monster_structures
from horde.ai.context import Decision, group_claim
from horde.core.enums import Action, Reason
from horde.core.models import Position
from horde.core.mutations import MutationBatch

if TYPE_CHECKING:
    from horde.config import StrategyConfig
    from horde.core.models import Group
    from horde.core.snapshot import TickSnapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Resolution:
    """Outcome of one resolver pass."""

    accepted: list[tuple[Group, Decision]] = field(default_factory=list)
    rejected: list[tuple[Group, Decision]] = field(default_factory=list)
    batch: MutationBatch = field(default_factory=MutationBatch)


class ConflictResolver:
    """Orders decisions by group id and re-validates their claims.

    Resolution policies:
    - Every decision implicitly claims its own group.  A group that was
      already merged, attacked or moved by an earlier decision cannot act,
      and cannot be claimed twice.
    - A structure tile can be founded, adopted, upgraded or attacked by at
      most one group per tick.
    - New structures re-check the density cap against structures founded
      earlier in the same tick.
    Rejected decisions become no-ops with reason ``conflict``.
    """

    __slots__ = ("_config",)

    def __init__(self, config: StrategyConfig) -> None:
        self._config = config

    def resolve(self, decisions: list[tuple[Group, Decision]], snapshot: TickSnapshot) -> Resolution:
        result = Resolution()
        claimed: set[str] = set()
        founded: list[Position] = []

        for group, decision in sorted(decisions, key=lambda pair: pair[0].id):
            claims = {group_claim(group.id), *decision.claims}
            if claims & claimed:
                self._reject(result, group, decision, "claim already taken")
                continue
            if decision.action is Action.BUILD and not self._density_ok(decision, snapshot, founded):
                self._reject(result, group, decision, "density cap reached this tick")
                continue

            claimed |= claims
            if decision.action is Action.BUILD:
                founded.append(Position(**decision.details["location"]))
            result.accepted.append((group, decision))
            result.batch.extend(decision.mutations)

        return result

    def _density_ok(self, decision: Decision, snapshot: TickSnapshot, founded: list[Position]) -> bool:
        cfg = self._config
        location = Position(**decision.details["location"])
        nearby = count_nearby_monster_structures(snapshot.scan, location, cfg.nearby_distance)
        nearby += sum(1 for p in founded if p.distance(location) <= cfg.nearby_distance)
        return nearby < cfg.max_monster_structures_nearby

    @staticmethod
    def _reject(result: Resolution, group: Group, decision: Decision, why: str) -> None:
        logger.debug("Rejected %s for group %s: %s",
                     decision.action.value if decision.action else "no-op", group.id, why)
        result.rejected.append((group, Decision.none(
            Reason.CONFLICT, rejected_action=decision.action.value if decision.action else None,
        )))
