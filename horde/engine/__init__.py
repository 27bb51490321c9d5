"""Engine layer: store, worker pool, conflict resolution, tick driver."""

from horde.engine.conflict_resolver import ConflictResolver
from horde.engine.store import CommitError, WorldStore
from horde.engine.tick import StrategyTick, TickResults
from horde.engine.worker_pool import WorkerPool

__all__ = ["CommitError", "ConflictResolver", "StrategyTick", "TickResults", "WorkerPool", "WorldStore"]
