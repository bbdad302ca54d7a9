#!/usr/bin/env python3
"""
CLI tool for running a kitchen countdown in the terminal.
Usage: python tools/timer_cli.py --minutes 5 --title "Boil eggs"
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import get_settings
from app.core.data_loader import get_data_loader
from app.core.effects import CompletionEffects, NotificationCenter, TerminalBellCue
from app.core.saved_timers import SavedTimerStore
from app.core.ticker import AsyncioTickSource
from app.core.timer import CountdownTimer, DurationValidationError, validate_duration

logger = logging.getLogger(__name__)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Run a cooking countdown timer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/timer_cli.py -m 5 --title "Boil eggs"
  python tools/timer_cli.py -m 0 -s 30
  python tools/timer_cli.py --saved "Pasta boiling time" --timers-file timers.json
  python tools/timer_cli.py --recipe r0003
  python tools/timer_cli.py --list-saved --timers-file timers.json
        """
    )

    parser.add_argument(
        "-m", "--minutes",
        type=int,
        default=0,
        help="Minutes to count down (default: 0)"
    )

    parser.add_argument(
        "-s", "--seconds",
        type=int,
        default=0,
        help="Seconds to count down, 0-59 (default: 0)"
    )

    parser.add_argument(
        "-t", "--title",
        type=str,
        default="Timer",
        help="Timer title (default: Timer)"
    )

    parser.add_argument(
        "--saved",
        type=str,
        help="Run the saved timer with this name"
    )

    parser.add_argument(
        "--recipe",
        type=str,
        help="Run a timer for this recipe's cooking time"
    )

    parser.add_argument(
        "--timers-file",
        type=str,
        default=None,
        help="Path to the saved timers JSON file"
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default="data",
        help="Path to data directory (default: data)"
    )

    parser.add_argument(
        "--list-saved",
        action="store_true",
        help="List saved timers"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output saved timers as JSON"
    )

    parser.add_argument(
        "--no-bell",
        action="store_true",
        help="Do not ring the terminal bell on completion"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show timer log messages"
    )

    return parser.parse_args()


async def run_countdown(minutes: int, seconds: int, title: str, bell: bool = True) -> bool:
    """Count down in the foreground; returns True when the timer completed."""
    done = asyncio.Event()
    effects = CompletionEffects(
        audio=TerminalBellCue() if bell else None,
        notifier=NotificationCenter(grant_on_request=False)
    )

    with CountdownTimer(
        initial_minutes=minutes,
        initial_seconds=seconds,
        title=title,
        on_complete=done.set,
        tick_source=AsyncioTickSource(interval=get_settings().tick_interval),
        effects=effects,
        request_permission_on_start=False
    ) as timer:
        if not timer.start():
            print("Nothing to count down.")
            return False

        while not done.is_set():
            print(f"\r  {timer.title}  {timer.display} ", end="", flush=True)
            try:
                await asyncio.wait_for(done.wait(), timeout=0.25)
            except asyncio.TimeoutError:
                pass

        print(f"\r  {timer.title}  {timer.display} ")
        for message in effects.messages.recent():
            print(f"  {message.text}")
        return True


def main():
    """Main CLI entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    settings = get_settings()
    store = SavedTimerStore(args.timers_file or settings.saved_timers_file)

    if args.list_saved:
        timers = store.list_timers()
        if args.json:
            print(json.dumps({"timers": [t.to_dict() for t in timers]}, indent=2))
        else:
            print("Saved timers:")
            for timer in timers:
                print(f"  - {timer.name}: {timer.minutes:02d}:{timer.seconds:02d}")
        return

    minutes, seconds, title = args.minutes, args.seconds, args.title

    if args.saved:
        saved = store.find_by_name(args.saved)
        if saved is None:
            print(f"Error: no saved timer named '{args.saved}'", file=sys.stderr)
            sys.exit(1)
        minutes, seconds, title = saved.minutes, saved.seconds, saved.name

    elif args.recipe:
        try:
            loader = get_data_loader(args.data_dir)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        recipe = loader.get_recipe_by_id(args.recipe)
        if recipe is None or recipe.timer_minutes <= 0:
            print(f"Error: recipe '{args.recipe}' not found or has no cooking time", file=sys.stderr)
            sys.exit(1)
        minutes, seconds, title = recipe.timer_minutes, 0, recipe.title

    try:
        validate_duration(minutes, seconds)
    except DurationValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        completed = asyncio.run(run_countdown(minutes, seconds, title, bell=not args.no_bell))
    except KeyboardInterrupt:
        print("\nTimer cancelled.")
        sys.exit(130)

    sys.exit(0 if completed else 1)


if __name__ == "__main__":
    main()
