#!/usr/bin/env python3
"""
CLI for tracking a directory.

Usage:
    python -m dirwatch watch /path/to/folder
    python -m dirwatch watch /path/to/folder --ignore "*.tmp" --json
    python -m dirwatch watch /path/to/folder --once
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from dotenv import load_dotenv

from .config import TrackerConfig
from .exceptions import DirWatchError
from .models import Delta
from .tracker import DirectoryTracker


logger = logging.getLogger("dirwatch.cli")


def format_delta(delta: Delta, as_json: bool = False) -> str:
    """Render a delta for output, one line per entry or a JSON object."""
    if as_json:
        return json.dumps(delta.to_dict())

    lines = [f"- {name}" for name in delta.removed_names]
    lines.extend(f"+ {name}" for name in delta.added_names)
    return "\n".join(lines)


def _print_delta(delta: Delta, as_json: bool, out: TextIO) -> None:
    text = format_delta(delta, as_json)
    if text:
        print(text, file=out, flush=True)


async def run_watch(args, out: Optional[TextIO] = None) -> int:
    """Track a directory and print its deltas until interrupted."""
    if out is None:
        out = sys.stdout
    root = Path(args.directory).resolve()

    if not root.exists():
        logger.error(f"Directory does not exist: {root}")
        return 1
    if not root.is_dir():
        logger.error(f"Not a directory: {root}")
        return 1

    config = TrackerConfig.from_env()
    if args.ignore:
        config.ignore_patterns.extend(args.ignore)
    if args.no_hidden:
        config.include_hidden = False

    tracker = DirectoryTracker(root, config)

    if args.once:
        try:
            delta = await tracker.next_delta()
        except DirWatchError as e:
            logger.error(f"Failed to scan {root}: {e}")
            return 1
        _print_delta(delta, args.json, out)
        return 0

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, tracker.close)
        except NotImplementedError:
            # Windows event loops: KeyboardInterrupt still stops asyncio.run
            pass

    logger.info(f"Watching {root}")
    logger.info("Press Ctrl+C to stop")

    try:
        async for delta in tracker.deltas():
            _print_delta(delta, args.json, out)
    except DirWatchError as e:
        logger.error(f"Failed to watch {root}: {e}")
        return 1

    if tracker.failure is not None:
        logger.error(f"Stopped watching {root}: {tracker.failure}")
        return 1

    logger.info("Watcher stopped")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dirwatch",
        description="Report files added to and removed from a directory",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    watch = subparsers.add_parser("watch", help="Track a directory")
    watch.add_argument("directory", help="Directory to track")
    watch.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Glob pattern of names to skip (repeatable)",
    )
    watch.add_argument(
        "--no-hidden",
        action="store_true",
        help="Skip names starting with a dot",
    )
    watch.add_argument("--json", action="store_true", help="Print deltas as JSON lines")
    watch.add_argument(
        "--once",
        action="store_true",
        help="Print the current contents and exit",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command == "watch":
        try:
            return asyncio.run(run_watch(args))
        except KeyboardInterrupt:
            logger.info("Watcher stopped")
            return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
