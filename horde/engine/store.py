"""In-memory hierarchical world store with atomic multi-path commits."""

from __future__ import annotations

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any, Iterable, Mapping

from horde.core.mutations import MutationBatch

logger = logging.getLogger(__name__)


class CommitError(RuntimeError):
    """A batch could not be applied; the store is unchanged."""


def _split(path: str) -> list[str]:
    parts = [p for p in path.strip("/").split("/") if p]
    if not parts:
        raise CommitError(f"Empty path {path!r}")
    return parts


class WorldStore:
    """Nested JSON-like document addressed by slash-separated paths.

    Mirrors the realtime database the engine runs against: readers get deep
    copies, and :meth:`commit` applies a whole batch or nothing.  Writing
    ``None`` deletes a path; parents left empty are pruned.
    """

    __slots__ = ("_root", "_lock", "_commits")

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._root: dict[str, Any] = copy.deepcopy(dict(data or {}))
        self._lock = threading.RLock()
        self._commits = 0

    @property
    def commits(self) -> int:
        return self._commits

    # -- reads --

    def get(self, path: str, default: Any = None) -> Any:
        with self._lock:
            node: Any = self._root
            for part in _split(path):
                if not isinstance(node, dict) or part not in node:
                    return default
                node = node[part]
            return copy.deepcopy(node)

    def chunks(self, world_id: str) -> dict[str, Any]:
        return self.get(f"worlds/{world_id}/chunks", {}) or {}

    def chat(self, world_id: str) -> dict[str, Any]:
        return self.get(f"worlds/{world_id}/chat", {}) or {}

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._root)

    # -- writes --

    def commit(self, batch: MutationBatch | Mapping[str, Any]) -> int:
        """Apply every write in *batch* atomically. Returns the number of writes."""
        writes: Iterable[tuple[str, Any]]
        if isinstance(batch, MutationBatch):
            writes = [(m.path, m.value) for m in batch]
        else:
            writes = list(batch.items())
        if not writes:
            return 0

        with self._lock:
            staged = copy.deepcopy(self._root)
            for path, value in writes:
                self._apply(staged, path, value)
            self._root = staged
            self._commits += 1
        logger.debug("Committed %d writes", len(writes))
        return len(writes)

    @staticmethod
    def _apply(root: dict[str, Any], path: str, value: Any) -> None:
        parts = _split(path)
        if value is None:
            trail: list[tuple[dict[str, Any], str]] = []
            node: Any = root
            for part in parts[:-1]:
                if not isinstance(node, dict) or part not in node:
                    return
                trail.append((node, part))
                node = node[part]
            if not isinstance(node, dict):
                raise CommitError(f"Cannot delete {path}: parent is not an object")
            node.pop(parts[-1], None)
            # Prune parents left empty
            while trail and not node:
                parent, key = trail.pop()
                del parent[key]
                node = parent
            return

        node = root
        for part in parts[:-1]:
            child = node.get(part)
            if child is None:
                child = node[part] = {}
            elif not isinstance(child, dict):
                raise CommitError(f"Cannot write {path}: {part!r} is not an object")
            node = child
        node[parts[-1]] = copy.deepcopy(value)

    # -- persistence --

    @classmethod
    def load_json(cls, path: str | Path) -> WorldStore:
        with open(path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path} does not contain a JSON object")
        logger.info("Loaded world store from %s", path)
        return cls(data)

    def dump_json(self, path: str | Path) -> None:
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, sort_keys=True)
        logger.info("World store written to %s", path)
