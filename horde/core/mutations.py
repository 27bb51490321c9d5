"""Deferred world writes.

Decision functions never touch the store.  Each one returns a
:class:`MutationBatch` of ``path -> value`` writes; the tick driver merges
the batches of every accepted decision and commits them in one atomic
multi-path update.  A ``None`` value deletes the path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Mutation:
    """One write to a slash-separated store path."""

    path: str
    value: Any

    @property
    def is_delete(self) -> bool:
        return self.value is None


class MutationBatch:
    """Ordered set of writes keyed by path; the last write to a path wins."""

    __slots__ = ("_writes",)

    def __init__(self) -> None:
        self._writes: dict[str, Any] = {}

    def set(self, path: str, value: Any) -> MutationBatch:
        self._writes[path] = value
        return self

    def delete(self, path: str) -> MutationBatch:
        self._writes[path] = None
        return self

    def update(self, base: str, fields: Mapping[str, Any]) -> MutationBatch:
        """Write every field of *fields* under *base* as one unit."""
        for name, value in fields.items():
            self._writes[f"{base}/{name}"] = value
        return self

    def extend(self, other: MutationBatch) -> MutationBatch:
        """Merge *other* into this batch, warning on overlapping paths."""
        for path, value in other._writes.items():
            if path in self._writes and self._writes[path] != value:
                logger.warning("Mutation collision on %s, keeping latest write", path)
            self._writes[path] = value
        return self

    def get(self, path: str, default: Any = None) -> Any:
        return self._writes.get(path, default)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._writes)

    def __contains__(self, path: str) -> bool:
        return path in self._writes

    def __iter__(self) -> Iterator[Mutation]:
        for path, value in self._writes.items():
            yield Mutation(path, value)

    def __len__(self) -> int:
        return len(self._writes)

    def __bool__(self) -> bool:
        return bool(self._writes)

    def __repr__(self) -> str:
        return f"MutationBatch({len(self._writes)} writes)"


class WorldPaths:
    """Builds store paths for one world."""

    __slots__ = ("world_id", "chunk_size")

    def __init__(self, world_id: str, chunk_size: int = 20) -> None:
        self.world_id = world_id
        self.chunk_size = chunk_size

    @property
    def root(self) -> str:
        return f"worlds/{self.world_id}"

    def tile(self, x: int, y: int) -> str:
        chunk = f"{x // self.chunk_size},{y // self.chunk_size}"
        return f"{self.root}/chunks/{chunk}/{x},{y}"

    def group(self, x: int, y: int, group_id: str) -> str:
        return f"{self.tile(x, y)}/groups/{group_id}"

    def structure(self, x: int, y: int) -> str:
        return f"{self.tile(x, y)}/structure"

    def battle(self, x: int, y: int, battle_id: str) -> str:
        return f"{self.tile(x, y)}/battles/{battle_id}"

    def chat(self, message_id: str) -> str:
        return f"{self.root}/chat/{message_id}"
