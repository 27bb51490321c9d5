"""Strategy engine configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StrategyConfig:
    """Immutable configuration for the monster strategy engine."""

    # World
    world_id: str = "default"
    world_seed: int = 42
    chunk_size: int = 20

    # Timing (milliseconds of world time)
    tick_interval_ms: int = 60_000
    max_ticks: int = 200
    worker_timeout_seconds: float = 2.0

    # Workers
    num_workers: int = 4

    # Scheduling
    strategy_chance: float = 0.4           # Fraction of idle groups evaluated per tick

    # Terrain
    water_threshold: float = 0.2           # river/lake value above which a tile is water
    compatible_tile_radius: int = 5        # Ring search radius for relocated targets

    # Targeting
    max_scan_distance: int = 20
    home_preference_base: float = 0.3
    weak_group_units: int = 3              # Below this a group looks for merge partners
    large_group_units: int = 10
    small_group_units: int = 5
    weak_bypass_chance: float = 0.3        # Power-gate bypass for weak aggressive/feral groups
    exploration_spawn_candidates: int = 3

    # Purposeful wander
    purposeful_wander: bool = True
    wander_search_radius: int = 8
    wander_landmark_chance: float = 0.5
    wander_distance_penalty: float = 0.25
    world_center_x: int = 0
    world_center_y: int = 0

    # Movement
    path_step_min: int = 1
    path_step_max: int = 3
    move_interval_ms: int = 60_000
    hop_interval_ms: int = 45_000
    hop_speed: float = 1.5
    exploration_speed_boost: float = 1.25
    exploratory_message_chance: float = 0.3

    # Interrupts
    interrupt_grace_ms: int = 30_000
    detection_radius: int = 5

    # Combat
    max_player_targets: int = 3
    max_monster_targets: int = 2
    join_attackers_chance: float = 0.3
    default_structure_power: int = 20
    player_attack_chance: float = 0.8
    structure_attack_chance: float = 0.7
    merge_chance: float = 0.6

    # Construction
    min_units_for_building: int = 3
    max_monster_structures_nearby: int = 3
    nearby_distance: int = 10
    min_distance_from_spawn: int = 5
    max_structure_level: int = 5
    build_resource_threshold: int = 15
    build_chance: float = 0.4
    upgrade_resource_threshold: int = 20
    upgrade_chance: float = 0.3
    building_chance: float = 0.2
    demobilize_chance: float = 0.6
    adopt_monster_chance: float = 0.8
    adopt_player_chance: float = 0.2
    abandoned_after_ms: int = 86_400_000   # 24h

    # Economy
    deposit_resource_threshold: int = 10
    deposit_chance: float = 0.8
    gather_resource_threshold: int = 5
    gather_chance: float = 0.7
    gathering_ticks: int = 2

    # Progression
    progression_enabled: bool = True       # Advance movement, gathering, construction and battles
    battle_rounds: int = 3
    structure_damage: int = 50

    # Logging
    log_level: str = "INFO"
    replay_file: str = "replay.json"
