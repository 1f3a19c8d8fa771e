"""Command line tools: headless simulation and storage inspection."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snake-survival",
        description="Snake Survival simulation and saved-data tools.",
    )
    sub = parser.add_subparsers(dest="command", help="Available commands.")

    # --- simulate ---
    sim_p = sub.add_parser(
        "simulate", help="Run a headless game with random legal turns.",
    )
    sim_p.add_argument(
        "--config", type=str, default=None,
        help="Path to a JSON game config file.",
    )
    sim_p.add_argument("--ticks", type=int, default=1_000)
    sim_p.add_argument("--seed", type=int, default=None)
    sim_p.add_argument(
        "--turn-prob", type=float, default=0.2,
        help="Chance of requesting a random turn before each tick.",
    )
    sim_p.add_argument(
        "--trap-every", type=int, default=50,
        help="Attempt a trap spawn every N ticks (0 disables).",
    )
    sim_p.add_argument(
        "--reshape-every", type=int, default=7,
        help="Advance the reshape countdown every N ticks (0 disables).",
    )

    # --- stats ---
    stats_p = sub.add_parser("stats", help="Print aggregate statistics.")
    stats_p.add_argument("--storage-dir", type=str, required=True)

    # --- history ---
    hist_p = sub.add_parser("history", help="List finished sessions.")
    hist_p.add_argument("--storage-dir", type=str, required=True)
    hist_p.add_argument("--limit", type=int, default=10)

    # --- export ---
    export_p = sub.add_parser("export", help="Dump stored data as JSON.")
    export_p.add_argument("--storage-dir", type=str, required=True)
    export_p.add_argument("output", help="Path for the exported JSON file.")

    return parser


def _run_simulate(args: argparse.Namespace) -> int:
    from snake_survival.config import GameConfig
    from snake_survival.engine import GameEngine
    from snake_survival.snake import Direction

    config = GameConfig.load(args.config) if args.config else GameConfig()
    events: Counter[str] = Counter()

    def count_event(event_type, position, data=None) -> None:
        events[event_type.value] += 1

    engine = GameEngine(config, seed=args.seed, event_sink=count_event)
    turn_rng = np.random.default_rng(args.seed)
    directions = list(Direction)
    engine.start()

    for i in range(1, args.ticks + 1):
        if turn_rng.random() < args.turn_prob:
            engine.set_direction(directions[int(turn_rng.integers(len(directions)))])
        outcome = engine.step()
        if outcome.end_reason is not None:
            logger.info(
                "Game over after %d ticks: %s", engine.tick, outcome.end_reason.value,
            )
            break
        if outcome.triggered_trap_id is not None:
            engine.remove_trap(outcome.triggered_trap_id)
        if args.trap_every and i % args.trap_every == 0:
            engine.spawn_trap()
        if args.reshape_every and i % args.reshape_every == 0:
            engine.countdown_second()

    summary = {
        "ticks": engine.tick,
        "score": engine.score,
        "length": len(engine.snake),
        "tick_interval_ms": engine.tick_interval_ms,
        "phase": engine.phase.value,
        "events": dict(events),
    }
    print(json.dumps(summary, indent=2))  # noqa: T201
    return 0


def _open_storage(storage_dir: str):
    from snake_survival.storage import FileStore, GameStorage

    return GameStorage(FileStore(storage_dir))


def _run_stats(args: argparse.Namespace) -> int:
    stats = _open_storage(args.storage_dir).get_statistics()
    print(stats.model_dump_json(indent=2))  # noqa: T201
    return 0


def _run_history(args: argparse.Namespace) -> int:
    history = _open_storage(args.storage_dir).get_history()[: args.limit]
    if not history:
        print("No finished sessions.")  # noqa: T201
        return 0
    for s in history:
        print(  # noqa: T201
            f"{s.id}  score={s.score:<4d} length={s.snake_length:<4d} "
            f"traps={s.traps_encountered:<3d} {s.duration:7.1f}s  {s.end_reason.value}"
        )
    return 0


def _run_export(args: argparse.Namespace) -> int:
    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(_open_storage(args.storage_dir).export_data())
    print(f"Exported game data to {out}")  # noqa: T201
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``snake-survival`` CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    handlers = {
        "simulate": _run_simulate,
        "stats": _run_stats,
        "history": _run_history,
        "export": _run_export,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
