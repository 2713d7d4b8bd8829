#!/usr/bin/env python3
"""CLI entry point: rebuild calendar/events.json from all configured feeds."""
import argparse
import logging
import sys
import os
from dataclasses import replace
from datetime import datetime

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dateutil import parser as date_parser
from dotenv import load_dotenv
load_dotenv()

from ingestion.config import load_config
from ingestion.runner import run_ingestion

logger = logging.getLogger("build_events")


def parse_now(value: str) -> datetime:
    try:
        return date_parser.isoparse(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value!r}")


def non_negative_int(value: str) -> int:
    try:
        days = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if days < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {days}")
    return days


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Merge ICS feeds into calendar/events.json")
    parser.add_argument("--config", "-c", help="Path to sources.yaml (default: config/sources.yaml)")
    parser.add_argument("--output", "-o", help="Output JSON path")
    parser.add_argument("--source", "-s", help="Run only this source (by name)")
    parser.add_argument("--now", type=parse_now, help="Reference time for the window (ISO-8601)")
    parser.add_argument("--past-days", type=non_negative_int, help="Keep events this many days back")
    parser.add_argument("--future-days", type=non_negative_int, help="Keep events this many days ahead")
    parser.add_argument("--strict", action="store_true",
                        help="Exit non-zero if any source fails")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = load_config(args.config)
        overrides = {
            "output_path": args.output,
            "past_days": args.past_days,
            "future_days": args.future_days,
        }
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if overrides:
            config = replace(config, settings=replace(config.settings, **overrides))
        stats = run_ingestion(config, now=args.now, source_filter=args.source)
    except Exception:
        logger.exception("Build failed")
        return 1

    print(f"\nBuild complete: {stats['success']} sources OK, "
          f"{stats['failed']} failed, {stats['events_written']} events written "
          f"to {stats['output_path']}")

    if args.strict and stats["failed"] > 0:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
