# leaseiq/entrypoints/cli.py
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from ..adapters.scrapers.registry import SOURCE_REGISTRY
from ..config import settings, validate_settings
from ..db import engine, init_models
from ..domain.types import JobStatus, ListingSource
from ..service_layer.orchestrator import ScrapeOrchestrator
from .log_config import configure_logging

log = logging.getLogger(__name__)


def _parse_sources(raw: str) -> list[ListingSource]:
    out: list[ListingSource] = []
    for part in raw.split(","):
        name = part.strip()
        if not name:
            continue
        try:
            src = ListingSource(name)
        except ValueError:
            raise argparse.ArgumentTypeError(f"unknown source: {name}") from None
        if not SOURCE_REGISTRY[src].enabled:
            raise argparse.ArgumentTypeError(f"source is disabled: {name}")
        out.append(src)
    if not out:
        raise argparse.ArgumentTypeError("no sources given")
    return out


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="leaseiq", description="Rental listing ingestion")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("run-full", help="scrape every enabled source")

    partial = sub.add_parser("run-partial", help="scrape the given sources")
    partial.add_argument("sources", type=_parse_sources, help="comma-separated, e.g. streeteasy,zillow")

    sub.add_parser("rotate", help="scrape the source group for the current UTC hour")

    stale = sub.add_parser("mark-stale", help="deactivate listings not updated recently")
    stale.add_argument("--days", type=int, default=None)

    sub.add_parser("scheduler", help="run the cron scheduler in the foreground")
    return p


async def _run_scheduler() -> None:
    from ..jobs.scheduler import build_scheduler

    scheduler = build_scheduler()
    scheduler.start()
    log.info("Scheduler started")
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        scheduler.shutdown(wait=False)
        log.info("Scheduler stopped")


async def _main(args: argparse.Namespace) -> int:
    try:
        await init_models()
        if args.command == "scheduler":
            await _run_scheduler()
            return 0

        orch = ScrapeOrchestrator()
        if args.command == "mark-stale":
            n = await orch.mark_stale_listings(args.days)
            print(json.dumps({"marked_inactive": n}))
            return 0

        if args.command == "run-full":
            res = await orch.run_full_scrape()
        elif args.command == "run-partial":
            res = await orch.run_partial_scrape(args.sources)
        else:
            res = await orch.run_rotating_scrape()

        print(json.dumps(res.summary()))
        return 0 if res.status == JobStatus.completed else 1
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    if args.command != "mark-stale":
        problems = validate_settings(settings)
        if problems:
            for msg in problems:
                log.error("config: %s", msg)
            return 2

    try:
        return asyncio.run(_main(args))
    except KeyboardInterrupt:
        return 130
    except Exception:
        log.exception("unhandled failure")
        return 1


if __name__ == "__main__":
    sys.exit(main())
