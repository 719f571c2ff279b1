# leaseiq/service_layer/jobruns.py
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.types import JobStatus, ScrapeJobResult
from ..models import ScrapingJob

log = logging.getLogger(__name__)

TERMINAL = (JobStatus.completed, JobStatus.failed)


class TerminalStatusAlreadyWritten(RuntimeError):
    pass


async def get_job(session: AsyncSession, job_id: str) -> ScrapingJob | None:
    stmt = select(ScrapingJob).where(ScrapingJob.job_id == job_id)
    return (await session.execute(stmt)).scalars().first()


async def start_job(session: AsyncSession, job_id: str, sources: list[str], started_at: datetime) -> ScrapingJob:
    job = ScrapingJob(
        job_id=job_id,
        status=JobStatus.pending,
        sources=list(sources),
        start_time=started_at,
        created_at=started_at,
    )
    session.add(job)
    await session.flush()

    job.status = JobStatus.running
    await session.flush()
    return job


async def finish_job(session: AsyncSession, result: ScrapeJobResult, error: str | None = None) -> ScrapingJob:
    """Write the single terminal record for a job."""
    job = await get_job(session, result.job_id)
    if job is None:
        raise LookupError(f"job {result.job_id} was never started")
    if job.status in TERMINAL:
        raise TerminalStatusAlreadyWritten(f"job {result.job_id} already {job.status.value}")

    job.status = result.status
    job.end_time = result.end_time
    job.total_listings_scraped = result.total_listings_scraped
    job.new_listings_added = result.new_listings_added
    job.duplicates_detected = result.duplicates_detected
    job.errors_encountered = result.errors_encountered
    job.source_results = [r.as_dict() for r in result.source_results]
    job.timed_out = result.timed_out
    job.error = error
    await session.flush()
    return job
