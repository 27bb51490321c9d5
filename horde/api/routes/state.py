"""GET /api/v1/state and /events: live world data polled by clients."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from horde.api.dependencies import get_engine_manager
from horde.api.engine_manager import EngineManager
from horde.api.schemas import (
    BattleSchema,
    EventSchema,
    EventsResponse,
    GroupSchema,
    StructureSchema,
    TickStatsSchema,
    WorldStateResponse,
)
from horde.core.models import Group, Structure
from horde.core.snapshot import TickSnapshot
from horde.utils.event_log import SimEvent

router = APIRouter()


def _serialize_group(g: Group) -> GroupSchema:
    return GroupSchema(
        id=g.id,
        name=g.name,
        race=g.race,
        type=g.type,
        x=g.position.x,
        y=g.position.y,
        status=g.status.value,
        unit_count=g.unit_count,
        personality=g.personality.value,
        power=round(g.power, 2),
        resources=g.resource_total,
        in_battle=g.in_battle,
        battle_id=g.battle_id,
        target_x=g.target.x if g.target else None,
        target_y=g.target.y if g.target else None,
        target_type=g.target_type,
        exploring=g.exploration_phase,
    )


def _serialize_structure(s: Structure) -> StructureSchema:
    return StructureSchema(
        id=s.id,
        type=s.type,
        name=s.name,
        x=s.position.x,
        y=s.position.y,
        status=s.status.value,
        level=s.level,
        owner=s.owner,
        monster=s.is_monster_owned,
        in_battle=s.in_battle,
        health=s.health,
        buildings=sorted(s.buildings),
    )


def _serialize_battles(snapshot: TickSnapshot) -> list[BattleSchema]:
    battles: list[BattleSchema] = []
    for tile in snapshot.tiles.values():
        for bid, b in tile.battles.items():
            side1 = b.get("side1") or {}
            side2 = b.get("side2") or {}
            battles.append(BattleSchema(
                id=bid,
                x=tile.position.x,
                y=tile.position.y,
                side1=side1.get("name", "Attackers"),
                side2=side2.get("name", "Defenders"),
                side1_groups=sorted(side1.get("groups") or {}),
                side2_groups=sorted(side2.get("groups") or {}),
                tick_count=int(b.get("tickCount") or 0),
                monster_vs_monster=bool(b.get("monsterVsMonster")),
            ))
    battles.sort(key=lambda b: b.id)
    return battles


def _serialize_event(e: SimEvent) -> EventSchema:
    return EventSchema(
        tick=e.tick,
        category=e.category,
        message=e.message,
        group_ids=list(e.group_ids),
        timestamp=e.timestamp,
        x=e.location[0] if e.location else None,
        y=e.location[1] if e.location else None,
    )


@router.get("/state", response_model=WorldStateResponse)
def get_state(
    monsters_only: bool = Query(False, description="Hide player groups"),
    manager: EngineManager = Depends(get_engine_manager),
) -> WorldStateResponse:
    snapshot = manager.get_snapshot()
    if snapshot is None:
        raise HTTPException(status_code=503, detail="World not ready.")

    groups = [g for t in snapshot.tiles.values() for g in t.groups.values()
              if g.is_monster or not monsters_only]
    groups.sort(key=lambda g: g.id)
    structures = [t.structure for t in snapshot.tiles.values() if t.structure is not None]
    structures.sort(key=lambda s: s.id)
    results = manager.last_results

    return WorldStateResponse(
        tick=snapshot.tick,
        now=snapshot.now,
        running=manager.running,
        paused=manager.paused,
        groups=[_serialize_group(g) for g in groups],
        structures=[_serialize_structure(s) for s in structures],
        battles=_serialize_battles(snapshot),
        last_tick=TickStatsSchema(**results.as_dict()) if results else None,
    )


@router.get("/events", response_model=EventsResponse)
def get_events(
    since_tick: int | None = Query(None, ge=0, description="Only events at or after this tick"),
    limit: int = Query(100, ge=1, le=1000),
    manager: EngineManager = Depends(get_engine_manager),
) -> EventsResponse:
    log = manager.event_log
    events = log.since_tick(since_tick) if since_tick is not None else log.latest(limit)
    events = events[-limit:]
    return EventsResponse(events=[_serialize_event(e) for e in events], total=len(log))
