"""Metadata endpoints: the static definition tables behind the engine.

PersonalityDef, StructureDef and BuildingDef are pydantic dataclasses in
horde.core; they are serialized directly through TypeAdapters.
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import TypeAdapter

from horde.core.enums import Action, Reason, TargetType
from horde.core.personality import PERSONALITY_DEFS, PersonalityDef
from horde.core.structures import BUILDING_DEFS, STRUCTURE_DEFS, BuildingDef, StructureDef

router = APIRouter(prefix="/metadata", tags=["Metadata"])

_personality_ta = TypeAdapter(PersonalityDef)
_structure_ta = TypeAdapter(StructureDef)
_building_ta = TypeAdapter(BuildingDef)


@router.get("/personalities")
def get_personalities() -> dict:
    """All personality archetypes with their weights and interrupt thresholds."""
    return {"personalities": [_personality_ta.dump_python(d, mode="json") for d in PERSONALITY_DEFS.values()]}


@router.get("/structures")
def get_structures() -> dict:
    """Structure and inner-building definitions."""
    return {
        "structures": [_structure_ta.dump_python(d, mode="json") for d in STRUCTURE_DEFS.values()],
        "buildings": [_building_ta.dump_python(d, mode="json") for d in BUILDING_DEFS.values()],
    }


@router.get("/enums")
def get_enums() -> dict:
    """Action, reason and target-type vocabularies."""
    return {
        "actions": [a.value for a in Action],
        "reasons": [r.value for r in Reason],
        "target_types": [t.value for t in TargetType],
    }
