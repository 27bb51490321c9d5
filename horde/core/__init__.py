"""Core data models, definitions and the tick snapshot."""

from horde.core.enums import Action, Domain, GroupStatus, Reason, StructureStatus, TargetType
from horde.core.models import Group, Position, Structure, TileData
from horde.core.mutations import MutationBatch, WorldPaths
from horde.core.personality import Personality
from horde.core.snapshot import TickSnapshot

__all__ = [
    "Action",
    "Domain",
    "Group",
    "GroupStatus",
    "MutationBatch",
    "Personality",
    "Position",
    "Reason",
    "Structure",
    "StructureStatus",
    "TargetType",
    "TickSnapshot",
    "TileData",
    "WorldPaths",
]
