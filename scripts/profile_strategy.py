#!/usr/bin/env python3
"""Strategy engine profiler.

Usage:
    python scripts/profile_strategy.py --ticks 200 --seed 42
    python scripts/profile_strategy.py --ticks 500 --groups 60 --cprofile strategy.prof
    python scripts/profile_strategy.py --ticks 200 --workers 4 --memory

Reports:
    - Per-tick timing statistics (min, max, mean, p50, p95, p99)
    - Snapshot build time versus full tick time
    - Groups processed, actions and conflicts per tick
    - Optional: cProfile dump for flame graph generation
    - Optional: tracemalloc memory snapshot
"""

from __future__ import annotations

import argparse
import cProfile
import io
import os
import pstats
import statistics
import sys
import time
import tracemalloc

# Ensure project root is on path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.config import StrategyConfig
from horde.engine.store import WorldStore
from horde.engine.tick import StrategyTick
from horde.systems.terrain_oracle import NoiseTerrainOracle
from horde.systems.world_builder import build_demo_world


def _run_strategy(cfg: StrategyConfig, num_ticks: int, groups: int, radius: int) -> dict:
    """Run the engine and collect per-tick timing data."""
    oracle = NoiseTerrainOracle(cfg.world_seed)
    world = build_demo_world(cfg, oracle, radius=radius, monster_groups=groups,
                             lairs=max(1, groups // 4), resource_tiles=groups)
    engine = StrategyTick(cfg, WorldStore(world), oracle)

    tick_times: list[float] = []
    snapshot_times: list[float] = []
    processed: list[int] = []
    actions: list[int] = []
    conflicts: list[int] = []

    for _ in range(num_ticks):
        t_start = time.perf_counter()
        snapshot = engine.create_snapshot()
        t_snap = time.perf_counter() - t_start
        monsters = sum(1 for _ in snapshot.monster_groups())

        t_start = time.perf_counter()
        results = engine.run_once()
        tick_times.append(time.perf_counter() - t_start)
        snapshot_times.append(t_snap)
        processed.append(results.total_processed)
        actions.append(results.actions)
        conflicts.append(results.conflicts)

        if monsters == 0:
            break

    engine.shutdown()
    return {
        "tick_times": tick_times,
        "snapshot_times": snapshot_times,
        "processed": processed,
        "actions": actions,
        "conflicts": conflicts,
        "final_tick": engine.tick,
    }


def _percentile(data: list[float], p: float) -> float:
    """Simple percentile calculation."""
    if not data:
        return 0.0
    sorted_data = sorted(data)
    k = (len(sorted_data) - 1) * (p / 100.0)
    f = int(k)
    c = f + 1
    if c >= len(sorted_data):
        return sorted_data[f]
    return sorted_data[f] + (k - f) * (sorted_data[c] - sorted_data[f])


def _print_report(data: dict, wall_time: float) -> None:
    """Print a formatted performance report."""
    tick_times = data["tick_times"]
    num_ticks = len(tick_times)

    if num_ticks == 0:
        print("No ticks executed.")
        return

    print("\n" + "=" * 70)
    print("  STRATEGY ENGINE PERFORMANCE REPORT")
    print("=" * 70)

    # --- Overview ---
    print(f"\n  Ticks executed:    {num_ticks}")
    print(f"  Wall clock time:   {wall_time:.3f}s")
    print(f"  Throughput:        {num_ticks / wall_time:.1f} ticks/sec")
    print(f"  Avg tick time:     {statistics.mean(tick_times) * 1000:.2f}ms")
    print(f"  Avg snapshot time: {statistics.mean(data['snapshot_times']) * 1000:.2f}ms")

    # --- Decision volume ---
    print(f"\n  Groups processed (avg):  {statistics.mean(data['processed']):.1f}")
    print(f"  Actions (total):         {sum(data['actions'])}")
    print(f"  Conflicts (total):       {sum(data['conflicts'])}")

    # --- Tick time distribution ---
    print(f"\n  {'Metric':<16} {'Time (ms)':>10}")
    print(f"  {'-' * 16} {'-' * 10}")
    print(f"  {'Min':<16} {min(tick_times) * 1000:>10.3f}")
    print(f"  {'P50 (median)':<16} {_percentile(tick_times, 50) * 1000:>10.3f}")
    print(f"  {'P95':<16} {_percentile(tick_times, 95) * 1000:>10.3f}")
    print(f"  {'P99':<16} {_percentile(tick_times, 99) * 1000:>10.3f}")
    print(f"  {'Max':<16} {max(tick_times) * 1000:>10.3f}")
    if num_ticks > 1:
        print(f"  {'StdDev':<16} {statistics.stdev(tick_times) * 1000:>10.3f}")

    # --- Slowest ticks ---
    print("\n  Top 5 slowest ticks:")
    indexed = sorted(enumerate(tick_times), key=lambda x: x[1], reverse=True)[:5]
    for tick_idx, t in indexed:
        print(f"    Tick {tick_idx:>5}: {t * 1000:.3f}ms  ({data['processed'][tick_idx]} groups)")

    print("\n" + "=" * 70)


def main() -> None:
    parser = argparse.ArgumentParser(description="Profile the strategy engine")
    parser.add_argument("--ticks", type=int, default=200, help="Number of ticks to run")
    parser.add_argument("--seed", type=int, default=42, help="World seed")
    parser.add_argument("--groups", type=int, default=30, help="Initial monster group count")
    parser.add_argument("--radius", type=int, default=40, help="Placement radius around the origin")
    parser.add_argument("--workers", type=int, default=1, help="Worker threads (1 for consistent timing)")
    parser.add_argument("--cprofile", type=str, default=None, help="Save cProfile output to file")
    parser.add_argument("--memory", action="store_true", help="Enable tracemalloc memory profiling")
    args = parser.parse_args()

    cfg = StrategyConfig(world_seed=args.seed, num_workers=args.workers, max_ticks=args.ticks)

    print(f"Profiling: {args.ticks} ticks, seed={args.seed}, "
          f"groups={args.groups}, radius={args.radius}, workers={args.workers}")

    # --- Optional: memory tracking ---
    if args.memory:
        tracemalloc.start()

    # --- Optional: cProfile ---
    profiler = None
    if args.cprofile:
        profiler = cProfile.Profile()
        profiler.enable()

    wall_start = time.perf_counter()
    data = _run_strategy(cfg, args.ticks, args.groups, args.radius)
    wall_time = time.perf_counter() - wall_start

    if profiler:
        profiler.disable()

    _print_report(data, wall_time)

    # --- cProfile output ---
    if profiler and args.cprofile:
        profiler.dump_stats(args.cprofile)
        print(f"\n  cProfile data saved to: {args.cprofile}")
        print(f"  View with: python -m pstats {args.cprofile}")

        print("\n  Top 20 functions by cumulative time:")
        stream = io.StringIO()
        ps = pstats.Stats(profiler, stream=stream)
        ps.sort_stats("cumulative")
        ps.print_stats(20)
        print(stream.getvalue())

    # --- Memory output ---
    if args.memory:
        snapshot = tracemalloc.take_snapshot()
        print("\n  Top 15 memory allocations by size:")
        print(f"  {'File:Line':<60} {'Size':>10}")
        print(f"  {'-' * 60} {'-' * 10}")
        for stat in snapshot.statistics("lineno")[:15]:
            print(f"  {str(stat.traceback):<60} {stat.size / 1024:>8.1f} KB")

        current, peak = tracemalloc.get_traced_memory()
        print(f"\n  Current memory: {current / 1024:.1f} KB")
        print(f"  Peak memory:    {peak / 1024:.1f} KB")
        tracemalloc.stop()


if __name__ == "__main__":
    main()
