"""Parallel worker pool for group decision-making."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError, as_completed
from typing import TYPE_CHECKING

from horde.core.enums import Domain

if TYPE_CHECKING:
    from horde.ai.brain import StrategyBrain
    from horde.ai.context import Decision
    from horde.config import StrategyConfig
    from horde.core.models import Group
    from horde.core.snapshot import TickSnapshot
    from horde.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)


class WorkerPool:
    """Manages a ThreadPoolExecutor that runs group decisions in parallel.

    Every worker reads the same immutable TickSnapshot and returns a
    Decision; nothing is written until the tick commits.  Each group gets
    its own random stream derived from (seed, group id, tick), so results
    do not depend on thread scheduling.
    """

    __slots__ = ("_config", "_brain", "_rng", "_executor", "_errors")

    def __init__(self, config: StrategyConfig, brain: StrategyBrain, rng: DeterministicRNG) -> None:
        self._config = config
        self._brain = brain
        self._rng = rng
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, config.num_workers),
            thread_name_prefix="strategy-worker",
        )
        self._errors = 0

    @property
    def errors(self) -> int:
        """Failures during the most recent dispatch."""
        return self._errors

    def dispatch(self, groups: list[Group], snapshot: TickSnapshot) -> list[tuple[Group, Decision]]:
        """Decide for all *groups*; returns (group, decision) pairs ordered by group id.

        Groups that are not eligible or whose decision raised are left out.
        Uses inline execution when num_workers <= 1 to avoid threading overhead.
        """
        self._errors = 0
        if not groups:
            return []

        results: dict[str, tuple[Group, Decision]] = {}

        # Fast path: single-worker mode, run inline
        if self._config.num_workers <= 1:
            for group in groups:
                try:
                    decision = self._think(group, snapshot)
                except Exception:
                    self._errors += 1
                    logger.exception("Decision failed for group %s, skipping turn", group.id)
                    continue
                if decision is not None:
                    results[group.id] = (group, decision)
            return [results[gid] for gid in sorted(results)]

        futures: dict[Future[Decision | None], Group] = {}
        for group in groups:
            futures[self._executor.submit(self._think, group, snapshot)] = group

        timeout = self._config.worker_timeout_seconds
        try:
            for future in as_completed(futures, timeout=timeout):
                group = futures[future]
                try:
                    decision = future.result()
                except Exception:
                    self._errors += 1
                    logger.exception("Worker failed for group %s, skipping turn", group.id)
                    continue
                if decision is not None:
                    results[group.id] = (group, decision)
        except TimeoutError:
            pending = [g.id for f, g in futures.items() if not f.done()]
            self._errors += len(pending)
            logger.error("Tick %d: %d decisions timed out: %s", snapshot.tick, len(pending), pending)
            for future in futures:
                future.cancel()

        return [results[gid] for gid in sorted(results)]

    def _think(self, group: Group, snapshot: TickSnapshot) -> Decision | None:
        """Run the brain for a single group (executed in a worker thread)."""
        rng = self._rng.stream(Domain.DECISION, group.id, snapshot.tick)
        return self._brain.decide(group, snapshot, rng)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
