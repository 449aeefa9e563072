#!/usr/bin/env python3
"""
Command-line entry point for the Powerhouse dashboard backend.

Usage:
    powerhouse serve                       # Run the API (and scheduler) with uvicorn
    powerhouse serve --port 9000           # Custom port
    powerhouse run-margin-leak             # Run the margin-leak job once, print JSON
    powerhouse run-margin-leak --start 2025-10-01 --end 2025-10-31
    powerhouse run-margin-leak --source live
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from powerhouse.services.alerts import AlertStore
from powerhouse.services.data_sources import DataSourceError, get_data_source
from powerhouse.services.scheduler import run_margin_leak_job
from powerhouse.utils.config import HOST, LOG_LEVEL, PORT

logger = logging.getLogger("powerhouse.cli")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "powerhouse.main:app",
        host=args.host,
        port=args.port,
        log_level=LOG_LEVEL.lower(),
    )
    return 0


def _cmd_run_margin_leak(args: argparse.Namespace) -> int:
    try:
        source = get_data_source(args.source)
        report = run_margin_leak_job(
            source, AlertStore(), start=args.start, end=args.end
        )
    except (DataSourceError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(report.model_dump_json(by_alias=True, indent=2))
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="powerhouse",
        description="Rexagen Powerhouse sales-ops dashboard backend.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=HOST, help=f"Bind address (default: {HOST})")
    serve.add_argument("--port", type=int, default=PORT, help=f"Port (default: {PORT})")
    serve.set_defaults(func=_cmd_serve)

    leak = sub.add_parser(
        "run-margin-leak", help="Run the margin-leak job once and print the report"
    )
    leak.add_argument("--start", default=None, help="First quote date (ISO, inclusive)")
    leak.add_argument("--end", default=None, help="Last quote date (ISO, inclusive)")
    leak.add_argument(
        "--source",
        choices=("fixture", "live"),
        default=None,
        help="Data source (default: DATA_SOURCE setting)",
    )
    leak.set_defaults(func=_cmd_run_margin_leak)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
