"""
Hanabot CLI - Command-line interface for the engine.

Usage:
    hanabot replay <events_file>            Replay a game log and print the knowledge report
    hanabot replay <events_file> --advise   Also print the clues we could give

The events file is JSON lines: a GameSetup object first, then one turn
event per line.
"""

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from .config import HANABOT_LOG_LEVEL, EngineConfig
from .engine_core.state import ProtocolViolation


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Hanabot - H-group conventions engine",
        prog="hanabot",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Replay command
    replay_parser = subparsers.add_parser("replay", help="Replay a game log")
    replay_parser.add_argument("events_file", help="Path to a JSON lines event log")
    replay_parser.add_argument("--level", type=int, help="Convention level (overrides the log's setup)")
    replay_parser.add_argument("--advise", action="store_true", help="Print clue suggestions")
    replay_parser.add_argument("--verbose", "-v", action="store_true", help="Log interpretation steps")

    args = parser.parse_args()

    if args.command == "replay":
        cmd_replay(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_replay(args):
    """Replay a game log."""
    from .advisor import advisor_report, find_clues
    from .game import Game
    from .schemas import GameSetup

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else HANABOT_LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        with open(args.events_file, "r", encoding="utf-8") as f:
            lines = [line for line in f if line.strip()]
    except FileNotFoundError:
        print(f"Error: File not found: {args.events_file}")
        sys.exit(1)

    if not lines:
        print("Error: Event log is empty")
        sys.exit(1)

    try:
        setup = GameSetup.model_validate(json.loads(lines[0]))
        config = EngineConfig(level=args.level or setup.level)
        game = Game.replay(setup, lines[1:], config=config)
    except ValidationError as e:
        print(f"Error: Malformed event: {e}")
        sys.exit(1)
    except (ProtocolViolation, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(game.report().model_dump_json(indent=2))

    if args.advise:
        print(advisor_report(game, find_clues(game)).model_dump_json(indent=2))


if __name__ == "__main__":
    main()
