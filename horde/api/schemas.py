"""Pydantic response models for the REST API."""

from __future__ import annotations

from pydantic import BaseModel


# --- World ---

class GroupSchema(BaseModel):
    id: str
    name: str
    race: str = ""
    type: str = "monster"
    x: int
    y: int
    status: str
    unit_count: int
    personality: str
    power: float
    resources: int = 0
    in_battle: bool = False
    battle_id: str | None = None
    target_x: int | None = None
    target_y: int | None = None
    target_type: str | None = None
    exploring: bool = False


class StructureSchema(BaseModel):
    id: str
    type: str
    name: str
    x: int
    y: int
    status: str
    level: int = 1
    owner: str | None = None
    monster: bool = False
    in_battle: bool = False
    health: float | None = None
    buildings: list[str] = []


class BattleSchema(BaseModel):
    id: str
    x: int
    y: int
    side1: str
    side2: str
    side1_groups: list[str] = []
    side2_groups: list[str] = []
    tick_count: int = 0
    monster_vs_monster: bool = False


class TickStatsSchema(BaseModel):
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
    groups_arrived: int = 0
    gathering_completed: int = 0
    structures_completed: int = 0
    demobilizations_completed: int = 0
    battles_resolved: int = 0


class WorldStateResponse(BaseModel):
    tick: int
    now: int
    running: bool
    paused: bool
    groups: list[GroupSchema]
    structures: list[StructureSchema]
    battles: list[BattleSchema]
    last_tick: TickStatsSchema | None = None


# --- Events ---

class EventSchema(BaseModel):
    tick: int
    category: str
    message: str
    group_ids: list[str] = []
    timestamp: int | None = None
    x: int | None = None
    y: int | None = None


class EventsResponse(BaseModel):
    events: list[EventSchema]
    total: int


# --- Control ---

class ControlResponse(BaseModel):
    status: str
    message: str
    tick: int


# --- Config ---

class StrategyConfigResponse(BaseModel):
    world_id: str
    world_seed: int
    chunk_size: int
    tick_interval_ms: int
    max_ticks: int
    num_workers: int
    strategy_chance: float
    max_scan_distance: int
    purposeful_wander: bool
    water_threshold: float
    interrupt_grace_ms: int
    min_units_for_building: int
    max_monster_structures_nearby: int
    max_structure_level: int
    tick_rate: float
