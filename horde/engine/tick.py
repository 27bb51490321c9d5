"""StrategyTick: one pass of the monster strategy engine.

Phase cycle:
  1. Snapshot: copy the loaded chunks, scan points of interest
  2. Scheduling: pick eligible monster groups
  3. Decide: run the brain for each group in the worker pool
  4. Resolve & commit: re-validate claims, apply one atomic batch
  5. Progression: advance movement, gathering, construction and battles
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from horde.ai.brain import StrategyBrain
from horde.core.enums import Action, Domain, GroupStatus
from horde.core.snapshot import TickSnapshot
from horde.engine.conflict_resolver import ConflictResolver
from horde.engine.progression import WorldProgression
from horde.engine.store import CommitError
from horde.engine.worker_pool import WorkerPool
from horde.systems.rng import DeterministicRNG, key_to_int
from horde.utils.event_log import SimEvent

if TYPE_CHECKING:
    from horde.config import StrategyConfig
    from horde.core.models import Group
    from horde.core.mutations import MutationBatch
    from horde.core.terrain import TerrainOracle
    from horde.engine.store import WorldStore
    from horde.utils.event_log import EventLog
    from horde.utils.replay import ReplayRecorder

logger = logging.getLogger(__name__)

_ACTION_COUNTERS: dict[Action, str] = {
    Action.MOVE: "moves_initiated",
    Action.GATHER: "gathering_started",
    Action.BUILD: "structures_build_started",
    Action.UPGRADE: "structures_upgraded",
    Action.BUILDING: "buildings_added",
    Action.DEMOBILIZE: "demobilizations_started",
    Action.ATTACK: "battles_started",
    Action.JOIN_BATTLE: "battles_joined",
    Action.MERGE: "groups_merged",
    Action.ADOPT: "structures_adopted",
}


@dataclass(slots=True)
class TickResults:
    """Counters for one tick."""

    tick: int = 0
    total_processed: int = 0
    moves_initiated: int = 0
    gathering_started: int = 0
    structures_build_started: int = 0
    structures_upgraded: int = 0
    buildings_added: int = 0
    demobilizations_started: int = 0
    battles_started: int = 0
    battles_joined: int = 0
    groups_merged: int = 0
    structures_adopted: int = 0
    interrupts: int = 0
    no_action: int = 0
    conflicts: int = 0
    errors: int = 0
    committed: bool = True

    # Progression
    groups_arrived: int = 0
    gathering_completed: int = 0
    structures_completed: int = 0
    demobilizations_completed: int = 0
    battles_resolved: int = 0

    def count(self, action: Action | None, interrupted: bool = False) -> None:
        if action is None:
            self.no_action += 1
        else:
            counter = _ACTION_COUNTERS[action]
            setattr(self, counter, getattr(self, counter) + 1)
        if interrupted:
            self.interrupts += 1

    @property
    def actions(self) -> int:
        return sum(getattr(self, name) for name in _ACTION_COUNTERS.values())

    def as_dict(self) -> dict:
        return asdict(self)


class StrategyTick:
    """Drives the strategy engine against a WorldStore, one tick at a time.

    Mutation of the store happens only on the caller's thread, through
    atomic commits.  Workers see the tick's snapshot and nothing else.
    """

    __slots__ = (
        "_config",
        "_store",
        "_oracle",
        "_rng",
        "_brain",
        "_worker_pool",
        "_resolver",
        "_progression",
        "_recorder",
        "_event_log",
        "_tick",
        "_now",
        "_last_results",
    )

    def __init__(
        self,
        config: StrategyConfig,
        store: WorldStore,
        oracle: TerrainOracle,
        *,
        rng: DeterministicRNG | None = None,
        brain: StrategyBrain | None = None,
        worker_pool: WorkerPool | None = None,
        recorder: ReplayRecorder | None = None,
        event_log: EventLog | None = None,
        start_time: int = 0,
    ) -> None:
        self._config = config
        self._store = store
        self._oracle = oracle
        self._rng = rng or DeterministicRNG(config.world_seed)
        self._brain = brain or StrategyBrain(config)
        self._worker_pool = worker_pool or WorkerPool(config, self._brain, self._rng)
        self._resolver = ConflictResolver(config)
        self._progression = WorldProgression(config, self._rng)
        self._recorder = recorder
        self._event_log = event_log
        self._tick = 0
        self._now = start_time
        self._last_results: TickResults | None = None

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def now(self) -> int:
        """World time in milliseconds."""
        return self._now

    @property
    def store(self) -> WorldStore:
        return self._store

    @property
    def last_results(self) -> TickResults | None:
        return self._last_results

    def create_snapshot(self) -> TickSnapshot:
        cfg = self._config
        return TickSnapshot.build(
            self._store.chunks(cfg.world_id),
            self._oracle,
            tick=self._tick,
            now=self._now,
            world_id=cfg.world_id,
            chunk_size=cfg.chunk_size,
            water_threshold=cfg.water_threshold,
        )

    def select_groups(self, snapshot: TickSnapshot) -> list[Group]:
        """Moving groups always; idle groups with probability ``strategy_chance``."""
        selected: list[Group] = []
        for group in snapshot.monster_groups():
            if group.in_battle:
                continue
            if group.status is GroupStatus.MOVING:
                selected.append(group)
            elif group.status is GroupStatus.IDLE and self._rng.next_bool(
                Domain.SCHEDULING, key_to_int(group.id), snapshot.tick, self._config.strategy_chance,
            ):
                selected.append(group)
        return selected

    def run_once(self) -> TickResults:
        """Execute a single tick and advance world time."""
        t0 = time.perf_counter()
        results = TickResults(tick=self._tick)

        # --- Phase 1 & 2: Snapshot and scheduling ---
        snapshot = self.create_snapshot()
        groups = self.select_groups(snapshot)
        results.total_processed = len(groups)

        # --- Phase 3: Decide ---
        decisions = self._worker_pool.dispatch(groups, snapshot)
        results.errors += self._worker_pool.errors

        # --- Phase 4: Resolve & commit ---
        resolution = self._resolver.resolve(decisions, snapshot)
        for _group, decision in resolution.accepted:
            results.count(decision.action, "interrupt" in decision.details)
        results.conflicts = len(resolution.rejected)
        if not self._commit(resolution.batch, results):
            results.committed = False

        # --- Phase 5: Progression ---
        progress_batch: MutationBatch | None = None
        if self._config.progression_enabled:
            progress_batch, report = self._progression.advance(self.create_snapshot())
            if self._commit(progress_batch, results):
                results.groups_arrived = report.groups_arrived
                results.gathering_completed = report.gathering_completed
                results.structures_completed = report.structures_completed
                results.demobilizations_completed = report.demobilizations_completed
                results.battles_resolved = report.battles_resolved
            else:
                progress_batch = None

        if self._event_log is not None:
            events = self._events_from(resolution.batch if results.committed else None)
            events += self._events_from(progress_batch)
            self._event_log.append_many(events)
        if self._recorder is not None:
            self._recorder.record_tick(snapshot, resolution.accepted + resolution.rejected)

        elapsed = time.perf_counter() - t0
        logger.info(
            "Tick %d: processed=%d actions=%d interrupts=%d conflicts=%d errors=%d (%.3fs)",
            self._tick, results.total_processed, results.actions,
            results.interrupts, results.conflicts, results.errors, elapsed,
        )

        self._tick += 1
        self._now += self._config.tick_interval_ms
        self._last_results = results
        return results

    def run(self, ticks: int | None = None) -> list[TickResults]:
        """Run *ticks* ticks (default ``max_ticks``)."""
        total = self._config.max_ticks if ticks is None else ticks
        logger.info("=== Strategy run started (seed=%d, ticks=%d) ===", self._rng.seed, total)
        history = [self.run_once() for _ in range(total)]
        logger.info("=== Strategy run finished at tick %d ===", self._tick)
        if self._recorder:
            self._recorder.flush()
        return history

    def shutdown(self) -> None:
        self._worker_pool.shutdown()

    # -- internals --

    def _commit(self, batch: MutationBatch, results: TickResults) -> bool:
        try:
            self._store.commit(batch)
        except CommitError:
            results.errors += 1
            logger.exception("Tick %d: commit failed, discarding %d writes", self._tick, len(batch))
            return False
        return True

    def _events_from(self, batch: MutationBatch | None) -> list[SimEvent]:
        if batch is None:
            return []
        prefix = f"worlds/{self._config.world_id}/chat/"
        return [
            SimEvent.from_chat(self._tick, m.path[len(prefix):], m.value)
            for m in batch
            if m.path.startswith(prefix) and isinstance(m.value, dict)
        ]
