#!/usr/bin/env python3
# cli.py — command-line entry point for lodestone

import argparse
import asyncio
import logging

from lodestone.core import LoadTester
from lodestone.logging_config import setup_logging
from lodestone.models import Options
from lodestone.rendering import render_statistics


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="lodestone",
        description="Lodestone: fire GET requests at a URL from concurrent clients and report latency",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "url",
        nargs="?",
        default="",
        help="URL to request",
    )

    # Load
    parser.add_argument(
        "-n",
        "--requests",
        type=non_negative_int,
        default=1,
        help="Number of requests to make",
    )
    parser.add_argument(
        "-c",
        "--clients",
        type=positive_int,
        default=1,
        help="Number of concurrent clients",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar while requests are in flight",
    )

    # Logging & Debugging
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug-level logging",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional file to write logs to (e.g., lodestone.log)",
    )

    return parser.parse_args(argv)


async def run(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    log_level = "DEBUG" if args.debug else "WARNING"
    setup_logging(level=log_level, log_file=args.log_file)

    options = Options(url=args.url, requests=args.requests, clients=args.clients)

    print(f"Making {options.requests} requests to {options.url}")

    tester = LoadTester(options, use_progress_bar=args.progress)
    stats = await tester.run()

    report = render_statistics(stats)
    if report:
        print(report)

def main(argv: list[str] | None = None) -> int:
    try:
        asyncio.run(run(argv))
    except KeyboardInterrupt:
        logging.info("KeyboardInterrupt received. Aborting run.")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
