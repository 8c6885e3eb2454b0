#!/usr/bin/env python3
"""
Run the recurring-billing sweep.

Examples:
    python process_due_subscriptions.py
    python process_due_subscriptions.py --as-of 2024-01-20T00:00:00Z
    python process_due_subscriptions.py --loop --interval 300
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import datetime

from finance_tracker.core.clock import ensure_utc
from finance_tracker.core.container import get_container
from finance_tracker.core.logging import setup_logging
from finance_tracker.infrastructure.database.session import dispose_engine, init_db
from finance_tracker.workers import BillingSweeper


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bill due subscriptions and advance their schedules.")
    parser.add_argument("--as-of", type=_parse_timestamp, default=None, help="reference time, ISO-8601 (default: now)")
    parser.add_argument("--loop", action="store_true", help="keep sweeping on an interval")
    parser.add_argument("--interval", type=float, default=None, help="seconds between sweeps with --loop")
    parser.add_argument("--init-db", action="store_true", help="create tables before sweeping")
    return parser.parse_args(argv)


def _parse_timestamp(value: str) -> datetime:
    try:
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid timestamp: {value}") from None


async def run(args: argparse.Namespace) -> int:
    container = get_container()
    setup_logging(container.settings.logging.level, container.settings.logging.format)
    if args.init_db:
        await init_db()

    sweeper = BillingSweeper(container, interval=args.interval)
    try:
        if args.loop:
            await sweeper.run_forever()
            return 0
        report = await sweeper.run_once(args.as_of)
        print(f"{report.processed_count} subscriptions processed.")
        return 0
    finally:
        await dispose_engine()


def main(argv: list[str] | None = None) -> None:
    raise SystemExit(asyncio.run(run(parse_args(argv))))


if __name__ == "__main__":
    main()
