"""Decision layer: targeting, movement, interrupts, combat and construction."""

from horde.ai.brain import StrategyBrain
from horde.ai.context import Decision, DecisionContext

__all__ = ["Decision", "DecisionContext", "StrategyBrain"]
