"""Entry point: ``python -m horde``.

Supports two modes:
  - ``python -m horde``            → FastAPI server driving a demo world
  - ``python -m horde cli``        → Headless run writing a replay file
"""

from __future__ import annotations

import argparse
import logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Horde monster strategy engine")
    sub = parser.add_subparsers(dest="command")

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the FastAPI server (default)")
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--seed", type=int, default=42)
    srv.add_argument("--workers", type=int, default=4)
    srv.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    # --- Headless CLI mode ---
    cli = sub.add_parser("cli", help="Run a headless strategy simulation")
    cli.add_argument("--seed", type=int, default=42)
    cli.add_argument("--ticks", type=int, default=200)
    cli.add_argument("--workers", type=int, default=4)
    cli.add_argument("--groups", type=int, default=10, help="Monster groups in the demo world")
    cli.add_argument("--world", type=str, default=None, help="Load the world store from this JSON file")
    cli.add_argument("--save", type=str, default=None, help="Write the final world store to this JSON file")
    cli.add_argument("--replay", type=str, default="replay.json")
    cli.add_argument("--no-wander", action="store_true", help="Disable purposeful wandering")
    cli.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    return parser


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from horde.api.app import create_app
    from horde.config import StrategyConfig

    config = StrategyConfig(
        world_seed=args.seed,
        num_workers=args.workers,
        log_level=args.log_level,
    )
    app = create_app(config)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def _run_cli(args: argparse.Namespace) -> None:
    from horde.config import StrategyConfig
    from horde.engine.store import WorldStore
    from horde.engine.tick import StrategyTick
    from horde.systems.terrain_oracle import NoiseTerrainOracle
    from horde.systems.world_builder import build_demo_world
    from horde.utils.event_log import EventLog
    from horde.utils.logging import setup_logging
    from horde.utils.replay import ReplayRecorder

    config = StrategyConfig(
        world_seed=args.seed,
        max_ticks=args.ticks,
        num_workers=args.workers,
        purposeful_wander=not args.no_wander,
        replay_file=args.replay,
        log_level=args.log_level,
    )
    setup_logging(config.log_level)

    oracle = NoiseTerrainOracle(config.world_seed)
    if args.world:
        store = WorldStore.load_json(args.world)
    else:
        store = WorldStore(build_demo_world(config, oracle, monster_groups=args.groups))

    event_log = EventLog()
    recorder = ReplayRecorder(config.replay_file, config.world_seed)
    engine = StrategyTick(config, store, oracle, recorder=recorder, event_log=event_log)

    try:
        history = engine.run()
    finally:
        engine.shutdown()

    totals: dict[str, int] = {}
    for results in history:
        for name, value in results.as_dict().items():
            if name != "tick" and isinstance(value, int) and not isinstance(value, bool):
                totals[name] = totals.get(name, 0) + value
    for name in sorted(totals):
        logger.info("  %-28s %d", name, totals[name])

    if args.save:
        store.dump_json(args.save)
    logger.info("Done. %d events, replay written to %s", len(event_log), config.replay_file)


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None or args.command == "serve":
        if args.command is None:
            args = parser.parse_args(["serve"])
        _run_server(args)
    elif args.command == "cli":
        _run_cli(args)


if __name__ == "__main__":
    main()
