# scripts/run_scheduler.py
from __future__ import annotations

import asyncio
import logging

from leaseiq.db import engine, init_models
from leaseiq.entrypoints.log_config import configure_logging
from leaseiq.jobs.scheduler import build_scheduler


async def main() -> None:
    configure_logging()
    await init_models()

    scheduler = build_scheduler()
    scheduler.start()
    logging.getLogger(__name__).info("Scheduler started")

    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        scheduler.shutdown(wait=False)
        await engine.dispose()
        logging.getLogger(__name__).info("Scheduler stopped")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
