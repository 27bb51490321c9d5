"""Thread-safe event log fed by the world's chat messages."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class SimEvent:
    """One event for the API feed."""

    tick: int
    category: str
    message: str
    group_ids: tuple[str, ...] = ()
    timestamp: int | None = None
    location: tuple[int, int] | None = None

    @classmethod
    def from_chat(cls, tick: int, message_id: str, record: Mapping[str, Any]) -> SimEvent:
        """Build an event from a chat record ``{text, type, timestamp, location}``.

        Message ids look like ``monster_<kind>_<time>_<group>`` or
        ``<kind>_<time>_<key>``; the kind becomes the category.
        """
        parts = message_id.split("_")
        category = parts[1] if parts[0] == "monster" and len(parts) > 1 else parts[0]
        group_ids: tuple[str, ...] = ()
        if parts[0] == "monster" and len(parts) > 3:
            group_ids = ("_".join(parts[3:]),)
        loc = record.get("location") or {}
        location = (int(loc["x"]), int(loc["y"])) if "x" in loc and "y" in loc else None
        return cls(
            tick=tick,
            category=category,
            message=str(record.get("text", "")),
            group_ids=group_ids,
            timestamp=record.get("timestamp"),
            location=location,
        )


class EventLog:
    """Bounded event log. Writers append; readers get copies.

    Thread-safe via a simple lock; writes happen once per tick.
    """

    __slots__ = ("_buffer", "_lock")

    def __init__(self, capacity: int = 5000) -> None:
        self._buffer: deque[SimEvent] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, event: SimEvent) -> None:
        with self._lock:
            self._buffer.append(event)

    def append_many(self, events: list[SimEvent]) -> None:
        with self._lock:
            self._buffer.extend(events)

    def since_tick(self, tick: int) -> list[SimEvent]:
        """Return all events with tick >= *tick*."""
        with self._lock:
            return [e for e in self._buffer if e.tick >= tick]

    def latest(self, count: int = 50) -> list[SimEvent]:
        with self._lock:
            items = list(self._buffer)
        return items[-count:]

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)
