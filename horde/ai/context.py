"""Decision results and the per-group decision context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

from horde.core.enums import Action, Reason
from horde.core.mobility import Mobility, mobility_of
from horde.core.mutations import MutationBatch, WorldPaths

if TYPE_CHECKING:
    from horde.config import StrategyConfig
    from horde.core.models import Group, Position, TileData
    from horde.core.personality import PersonalityDef
    from horde.core.snapshot import TickSnapshot
    from horde.systems.rng import RandomSource


@dataclass(frozen=True, slots=True)
class Decision:
    """Outcome of one decision function.

    ``action`` is None when the group cannot act; ``reason`` then says why.
    ``claims`` name the contested resources (groups, tiles) the conflict
    resolver serialises within a tick.
    """

    action: Action | None
    reason: Reason | None = None
    details: Mapping[str, Any] = field(default_factory=dict)
    mutations: MutationBatch = field(default_factory=MutationBatch)
    claims: frozenset[str] = frozenset()

    @classmethod
    def act(
        cls,
        action: Action,
        mutations: MutationBatch,
        claims: tuple[str, ...] | frozenset[str] = (),
        **details: Any,
    ) -> Decision:
        return cls(action=action, details=details, mutations=mutations, claims=frozenset(claims))

    @classmethod
    def none(cls, reason: Reason, **details: Any) -> Decision:
        return cls(action=None, reason=reason, details=details)

    @property
    def acted(self) -> bool:
        return self.action is not None

    def as_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"action": self.action.value if self.action else None}
        if self.reason is not None:
            result["reason"] = self.reason.value
        result.update(self.details)
        return result


def group_claim(group_id: str) -> str:
    return f"group:{group_id}"


def structure_claim(pos: Position) -> str:
    return f"structure:{pos.tile_key}"


@dataclass(slots=True)
class DecisionContext:
    """Everything one group's decision may read."""

    group: Group
    snapshot: TickSnapshot
    rng: RandomSource
    config: StrategyConfig
    paths: WorldPaths

    @property
    def now(self) -> int:
        return self.snapshot.now

    @property
    def location(self) -> Position:
        return self.group.position

    @property
    def tile(self) -> TileData | None:
        return self.snapshot.tile_at(self.group.position)

    @property
    def personality(self) -> PersonalityDef:
        return self.group.personality.definition

    @property
    def mobility(self) -> Mobility:
        return mobility_of(self.group.motion)

    @property
    def group_path(self) -> str:
        pos = self.group.position
        return self.paths.group(pos.x, pos.y, self.group.id)

    def group_path_of(self, group: Group) -> str:
        return self.paths.group(group.position.x, group.position.y, group.id)

    def can_enter(self, pos: Position) -> bool:
        return self.mobility.allows(self.snapshot.terrain.is_water(pos.x, pos.y))
