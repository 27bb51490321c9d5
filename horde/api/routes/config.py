"""GET /api/v1/config: expose the strategy configuration."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from horde.api.dependencies import get_engine_manager
from horde.api.engine_manager import EngineManager
from horde.api.schemas import StrategyConfigResponse

router = APIRouter()


@router.get("/config", response_model=StrategyConfigResponse)
def get_config(
    manager: EngineManager = Depends(get_engine_manager),
) -> StrategyConfigResponse:
    cfg = manager.config
    return StrategyConfigResponse(
        world_id=cfg.world_id,
        world_seed=cfg.world_seed,
        chunk_size=cfg.chunk_size,
        tick_interval_ms=cfg.tick_interval_ms,
        max_ticks=cfg.max_ticks,
        num_workers=cfg.num_workers,
        strategy_chance=cfg.strategy_chance,
        max_scan_distance=cfg.max_scan_distance,
        purposeful_wander=cfg.purposeful_wander,
        water_threshold=cfg.water_threshold,
        interrupt_grace_ms=cfg.interrupt_grace_ms,
        min_units_for_building=cfg.min_units_for_building,
        max_monster_structures_nearby=cfg.max_monster_structures_nearby,
        max_structure_level=cfg.max_structure_level,
        tick_rate=manager.tick_rate,
    )
