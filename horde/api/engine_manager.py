"""EngineManager: runs the StrategyTick on a background thread.

The API reads an atomically-swapped TickSnapshot; only the engine thread
commits to the WorldStore.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Any

from horde.core.snapshot import TickSnapshot
from horde.engine.store import WorldStore
from horde.engine.tick import StrategyTick, TickResults
from horde.systems.rng import DeterministicRNG
from horde.systems.terrain_oracle import NoiseTerrainOracle
from horde.systems.world_builder import build_demo_world
from horde.utils.event_log import EventLog

if TYPE_CHECKING:
    from horde.config import StrategyConfig
    from horde.core.terrain import TerrainOracle

logger = logging.getLogger(__name__)


class EngineManager:
    """Manages the strategy engine lifecycle on a background thread.

    Provides thread-safe access to:
      - latest snapshot (atomic reference swap)
      - event log (lock-guarded buffer)
      - control commands (start / pause / resume / step / reset)
    """

    def __init__(
        self,
        config: StrategyConfig,
        oracle: TerrainOracle | None = None,
        world: dict[str, Any] | None = None,
    ) -> None:
        self._config = config
        self.config = config
        self._tick_rate: float = 0.5  # seconds between ticks
        self._oracle = oracle or NoiseTerrainOracle(config.world_seed)
        self._initial_world = world

        self._store: WorldStore | None = None
        self._engine: StrategyTick | None = None

        self._snapshot_lock = threading.Lock()
        self._latest_snapshot: TickSnapshot | None = None
        self._event_log = EventLog()

        self._thread: threading.Thread | None = None
        self._running = threading.Event()
        self._paused = threading.Event()
        self._step_requested = threading.Event()
        self._stop_requested = threading.Event()

        self._build()

    # -- public properties --

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    @property
    def tick_rate(self) -> float:
        return self._tick_rate

    @tick_rate.setter
    def tick_rate(self, value: float) -> None:
        self._tick_rate = max(0.01, min(value, 5.0))

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def last_results(self) -> TickResults | None:
        return self._engine.last_results if self._engine else None

    # -- snapshot access --

    def get_snapshot(self) -> TickSnapshot | None:
        with self._snapshot_lock:
            return self._latest_snapshot

    # -- lifecycle --

    def start(self) -> None:
        if self._running.is_set():
            return
        self._stop_requested.clear()
        self._paused.clear()
        self._running.set()
        self._thread = threading.Thread(target=self._run_loop, name="engine-loop", daemon=True)
        self._thread.start()
        logger.info("EngineManager started (tick_rate=%.3fs)", self._tick_rate)

    def pause(self) -> None:
        self._paused.set()
        logger.info("EngineManager paused at tick %d", self._current_tick())

    def resume(self) -> None:
        self._paused.clear()
        logger.info("EngineManager resumed at tick %d", self._current_tick())

    def step(self) -> None:
        """Execute exactly one tick (must be paused)."""
        if not self._paused.is_set():
            self.pause()
        self._step_requested.set()

    def stop(self) -> None:
        self._stop_requested.set()
        self._paused.clear()
        self._running.clear()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        if self._engine:
            self._engine.shutdown()
        logger.info("EngineManager stopped.")

    def reset(self) -> None:
        """Stop, rebuild the world, and publish the initial snapshot."""
        self.stop()
        self._event_log.clear()
        self._build()
        logger.info("EngineManager reset.")

    def run_tick(self) -> TickResults:
        """Run one tick on the caller's thread (engine must not be running)."""
        assert self._engine is not None
        results = self._engine.run_once()
        self._publish_snapshot()
        return results

    # -- internals --

    def _build(self) -> None:
        cfg = self._config
        world = self._initial_world if self._initial_world is not None else build_demo_world(cfg, self._oracle)
        self._store = WorldStore(world)
        self._engine = StrategyTick(
            cfg, self._store, self._oracle,
            rng=DeterministicRNG(cfg.world_seed),
            event_log=self._event_log,
        )
        self._publish_snapshot()

    def _current_tick(self) -> int:
        return self._engine.tick if self._engine else 0

    def _run_loop(self) -> None:
        """Background thread main loop."""
        logger.info("Engine thread started.")
        assert self._engine is not None

        while not self._stop_requested.is_set():
            if self._paused.is_set() and not self._step_requested.is_set():
                time.sleep(0.01)
                continue

            single_step = self._step_requested.is_set()
            if single_step:
                self._step_requested.clear()

            if self._engine.tick >= self._config.max_ticks:
                logger.info("Max ticks reached at tick %d.", self._engine.tick)
                break

            try:
                self._engine.run_once()
            except Exception:
                logger.exception("Tick %d failed, stopping engine", self._engine.tick)
                break
            self._publish_snapshot()

            if not single_step:
                time.sleep(self._tick_rate)

        self._running.clear()
        logger.info("Engine thread exited.")

    def _publish_snapshot(self) -> None:
        assert self._engine is not None
        snap = self._engine.create_snapshot()
        with self._snapshot_lock:
            self._latest_snapshot = snap
