# leaseiq/jobs/scheduler.py
from __future__ import annotations

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..config import settings
from ..service_layer.orchestrator import ScrapeOrchestrator

log = logging.getLogger(__name__)

_RUN_LOCK = asyncio.Lock()


async def _run_rotating(orch: ScrapeOrchestrator) -> None:
    # One run at a time per process; a slow run makes the next tick skip.
    if _RUN_LOCK.locked():
        log.warning("previous scrape still running; skipping this tick")
        return
    async with _RUN_LOCK:
        try:
            res = await orch.run_rotating_scrape()
            log.info("rotating scrape finished: %s", res.summary())
        except Exception:
            log.exception("rotating scrape crashed")


async def _run_stale_sweep(orch: ScrapeOrchestrator) -> None:
    try:
        n = await orch.mark_stale_listings()
        log.info("stale sweep: %d listings marked inactive", n)
    except Exception:
        log.exception("stale sweep crashed")


def build_scheduler(orch: ScrapeOrchestrator | None = None) -> AsyncIOScheduler:
    orch = orch or ScrapeOrchestrator()
    sched = AsyncIOScheduler(timezone="UTC")

    # rotating group every N hours, on the hour
    sched.add_job(
        _run_rotating,
        CronTrigger(hour=f"*/{settings.ROTATION_INTERVAL_HOURS}", minute=0, timezone="UTC"),
        args=[orch],
        id="rotating_scrape",
        max_instances=1,
        coalesce=True,
    )

    # daily staleness sweep
    sched.add_job(
        _run_stale_sweep,
        CronTrigger(hour=settings.SCHED_STALE_SWEEP_HOUR_UTC, minute=30, timezone="UTC"),
        args=[orch],
        id="stale_sweep",
        max_instances=1,
        coalesce=True,
    )

    return sched
