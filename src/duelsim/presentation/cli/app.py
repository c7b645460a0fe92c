"""Command-line entry point for running duels, odds and batches."""
from __future__ import annotations

import argparse
import logging
import secrets
import sys
from pathlib import Path
from typing import Callable, Dict, Sequence

from duelsim.core.config import EngineConfig, load_engine_config
from duelsim.core.rng import RNG, InputLog, ReplayDivergenceError
from duelsim.data.errors import DataError
from duelsim.data.json_loader import dump_json, load_json
from duelsim.data.repositories import FightersRepository, InstantRulesRepository, LocationsRepository
from duelsim.services import (
    BatchService,
    BattleEngineError,
    BattleService,
    WinProbabilityService,
    round_robin,
)
from duelsim.services.errors import describe_error

from . import render

logger = logging.getLogger(__name__)

_MAX_RANDOM_SEED = 2**31 - 1
_LOG_LEVELS = ("debug", "info", "warning", "error")


class _Repositories:
    """Concrete repositories sharing one definitions directory."""

    def __init__(self, data_dir: str | None) -> None:
        self.fighters = FightersRepository(data_dir)
        self.locations = LocationsRepository(data_dir)
        self.rules = InstantRulesRepository(data_dir)


def main(argv: Sequence[str] | None = None) -> int:
    """Parse ``argv`` and dispatch to a command. Returns the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )
    if not args.command:
        parser.print_help()
        return 1

    handler = _COMMANDS[args.command]
    try:
        return handler(args)
    except (BattleEngineError, DataError, ReplayDivergenceError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        if args.json:
            render.render_json(describe_error(exc))
        else:
            print(f"error: {exc}", file=sys.stderr)
        return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="duelsim",
        description="Two-fighter battle simulation and matchup odds.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s simulate azula zuko fire-nation-capital --seed 7
  %(prog)s --json odds aang azula eastern-air-temple
  %(prog)s batch --locations neutral-arena --seed 1
  %(prog)s fighters
        """,
    )
    parser.add_argument("--log-level", choices=_LOG_LEVELS, default="warning", help="Logging verbosity")
    parser.add_argument("--data-dir", help="Directory holding the JSON definitions")
    parser.add_argument("--config", help="Engine config JSON file")
    parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    simulate_parser = subparsers.add_parser("simulate", help="Simulate one battle")
    _add_matchup_arguments(simulate_parser)
    simulate_parser.add_argument("--seed", "-s", type=int, help="RNG seed (random when omitted)")
    simulate_parser.add_argument("--max-turns", type=int, help="Override the turn cap")
    simulate_parser.add_argument("--events", action="store_true", help="Print every event")
    simulate_parser.add_argument("--save-log", help="Write the recorded input log to this path")

    replay_parser = subparsers.add_parser("replay", help="Replay a battle from a saved input log")
    _add_matchup_arguments(replay_parser)
    replay_parser.add_argument("log_path", help="Input log written by simulate --save-log")
    replay_parser.add_argument("--events", action="store_true", help="Print every event")

    odds_parser = subparsers.add_parser("odds", help="Estimate matchup odds")
    _add_matchup_arguments(odds_parser)
    odds_parser.add_argument("--seed", "-s", type=int, help="RNG seed (random when omitted)")

    batch_parser = subparsers.add_parser("batch", help="Run a round robin of battles")
    batch_parser.add_argument("--fighters", nargs="+", help="Fighter ids (default: all)")
    batch_parser.add_argument("--locations", nargs="+", help="Location ids (default: all)")
    batch_parser.add_argument("--seed", "-s", type=int, default=0, help="Seed for per-battle seeds")

    subparsers.add_parser("fighters", help="List fighter definitions")
    return parser


def _add_matchup_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("fighter1", help="First fighter id (acts on odd turns)")
    parser.add_argument("fighter2", help="Second fighter id")
    parser.add_argument("location", help="Location id")


# -----------------------
# Commands
# -----------------------
def cmd_simulate(args: argparse.Namespace) -> int:
    repos = _Repositories(args.data_dir)
    config = _load_config(args)
    if args.max_turns is not None:
        config.max_turns = args.max_turns
    seed = args.seed if args.seed is not None else secrets.randbelow(_MAX_RANDOM_SEED)
    service = BattleService(repos.fighters, repos.locations, repos.rules, config)
    result = service.simulate_battle(args.fighter1, args.fighter2, args.location, seed=seed)
    if args.save_log and result.input_log is not None:
        dump_json(result.input_log, Path(args.save_log))
    if args.json:
        render.render_json(result.to_dict())
    else:
        render.render_battle_result(result, show_events=args.events)
    return 0


def cmd_replay(args: argparse.Namespace) -> int:
    repos = _Repositories(args.data_dir)
    raw = load_json(Path(args.log_path))
    try:
        input_log = InputLog.from_dict(raw if isinstance(raw, dict) else {})
    except (KeyError, TypeError, ValueError) as exc:
        raise DataError(f"Malformed input log {args.log_path}: {exc}") from exc
    service = BattleService(repos.fighters, repos.locations, repos.rules, _load_config(args))
    result = service.replay_battle(args.fighter1, args.fighter2, args.location, input_log)
    if args.json:
        render.render_json(result.to_dict())
    else:
        render.render_battle_result(result, show_events=args.events)
    return 0


def cmd_odds(args: argparse.Namespace) -> int:
    repos = _Repositories(args.data_dir)
    seed = args.seed if args.seed is not None else secrets.randbelow(_MAX_RANDOM_SEED)
    service = WinProbabilityService(repos.fighters, repos.locations, RNG(seed), _load_config(args))
    odds = service.calculate(args.fighter1, args.fighter2, args.location)
    if args.json:
        render.render_json(odds.to_dict())
    else:
        render.render_odds(odds)
    return 0


def cmd_batch(args: argparse.Namespace) -> int:
    repos = _Repositories(args.data_dir)
    config = _load_config(args)
    fighter_ids = args.fighters or repos.fighters.ids()
    location_ids = args.locations or repos.locations.ids()
    battle_service = BattleService(repos.fighters, repos.locations, repos.rules, config)
    summary = BatchService(battle_service, config).run_batch(round_robin(fighter_ids, location_ids), seed=args.seed)
    if args.json:
        render.render_json(summary.to_dict())
    else:
        render.render_batch_summary(summary)
    return 0 if summary.errors == 0 else 2


def cmd_fighters(args: argparse.Namespace) -> int:
    fighters = _Repositories(args.data_dir).fighters.all()
    if args.json:
        render.render_json(
            [
                {"id": fighter.id, "name": fighter.name, "power_tier": fighter.power_tier, "element": fighter.element}
                for fighter in fighters
            ]
        )
    else:
        render.render_fighters(fighters)
    return 0


def _load_config(args: argparse.Namespace) -> EngineConfig:
    try:
        return load_engine_config(args.config)
    except ValueError as exc:
        raise DataError(f"Invalid engine config {args.config}: {exc}") from exc


_COMMANDS: Dict[str, Callable[[argparse.Namespace], int]] = {
    "simulate": cmd_simulate,
    "replay": cmd_replay,
    "odds": cmd_odds,
    "batch": cmd_batch,
    "fighters": cmd_fighters,
}
