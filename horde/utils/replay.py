"""Replay serialization: per-tick decisions and group positions as JSON."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from horde.ai.context import Decision
    from horde.core.models import Group
    from horde.core.snapshot import TickSnapshot

logger = logging.getLogger(__name__)


class ReplayRecorder:
    """Accumulates tick records and flushes them to a JSON replay file."""

    __slots__ = ("_path", "_ticks", "_seed")

    def __init__(self, path: str | Path, seed: int) -> None:
        self._path = Path(path)
        self._seed = seed
        self._ticks: list[dict[str, Any]] = []

    @property
    def ticks(self) -> list[dict[str, Any]]:
        return self._ticks

    def record_tick(
        self,
        snapshot: TickSnapshot,
        decisions: list[tuple[Group, Decision]],
    ) -> None:
        groups = [
            {
                "id": g.id,
                "pos": [g.position.x, g.position.y],
                "status": g.status.value,
                "units": g.unit_count,
                "personality": g.personality.value,
            }
            for g in snapshot.monster_groups()
        ]
        actions = [{"group": g.id, **d.as_dict()} for g, d in decisions]
        self._ticks.append({"tick": snapshot.tick, "now": snapshot.now, "decisions": actions, "groups": groups})

    def flush(self) -> None:
        """Write accumulated data to disk."""
        replay = {
            "version": "1.0",
            "seed": self._seed,
            "total_ticks": len(self._ticks),
            "ticks": self._ticks,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(replay, indent=2, default=str), encoding="utf-8")
        logger.info("Replay saved to %s (%d ticks)", self._path, len(self._ticks))
