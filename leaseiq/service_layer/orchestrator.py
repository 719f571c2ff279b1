# leaseiq/service_layer/orchestrator.py
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Iterable

from ..adapters.clients.firecrawl import FirecrawlClient
from ..adapters.clients.google_geocoding import GoogleGeocodingClient
from ..adapters.scrapers.base import ExtractionClient, ListingScraper
from ..adapters.scrapers.extraction import ExtractionScraper
from ..adapters.scrapers.registry import enabled_sources, get_spec
from ..config import settings
from ..db import AsyncSessionLocal
from ..domain.address import in_service_area
from ..domain.normalize import normalize_listing
from ..domain.parsing import parse_listing
from ..domain.types import (
    JobStatus,
    ListingSource,
    RawListing,
    ScrapeConfig,
    ScrapeJobResult,
    SourceResult,
)
from ..errors import ErrorContext, RateLimiterNotConfigured, handle_error
from ..jobs.rotation import RotatingScheduler
from .deduplication import DeduplicationEngine
from .geocoding import GeocodeCache, GeocodingService
from .jobruns import finish_job, get_job, start_job
from .locks import KeyedLocks
from .metrics import metrics_summary, record_metrics
from .rate_limiter import FIRECRAWL, RateLimiter, build_rate_limiter
from .storage import ListingStore
from .unit_of_work import SessionFactory

log = logging.getLogger(__name__)

ScraperFactory = Callable[[ListingSource], ListingScraper]


def dedup_lock_keys(listing) -> list[tuple]:
    """
    Lock keys covering every dedup tier a listing can hit: its own source id,
    its exact address and its fuzzy bucket.
    """
    a = listing.address
    return [
        ("source", listing.source.value, listing.source_id),
        ("address", a.full_address),
        ("bucket", a.city, a.state, listing.bedrooms, listing.bathrooms),
    ]


async def _gather_or_cancel(coros: Iterable[Any]) -> None:
    """
    Run `coros` concurrently. On the first failure, or on cancellation, the
    rest are cancelled and awaited before the error propagates.
    """
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class _Run:
    """Mutable state for one job, shared by its workers."""

    def __init__(self, job_id: str, soft_deadline: float) -> None:
        self.job_id = job_id
        self.soft_deadline = soft_deadline
        self.deadline_hit = False


class ScrapeOrchestrator:
    """
    Drives one ingestion run per call: creates the job record, fans out over
    sources and listings with bounded concurrency under a shared rate limiter
    and a wall-clock deadline, then writes the terminal job record and one
    metrics entry.
    """

    def __init__(
        self,
        *,
        extraction_client: ExtractionClient | None = None,
        geocoder: GeocodingService | None = None,
        limiter: RateLimiter | None = None,
        session_factory: SessionFactory | None = None,
        scraper_factory: ScraperFactory | None = None,
        rotation: RotatingScheduler | None = None,
        deadline_s: float | None = None,
        source_concurrency: int | None = None,
        listing_concurrency: int | None = None,
        max_listings_per_source: int | None = None,
        service_area: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session_factory = session_factory or AsyncSessionLocal
        self.limiter = limiter or build_rate_limiter()
        self.extraction_client = extraction_client or FirecrawlClient()
        self.geocoder = geocoder or GeocodingService(GoogleGeocodingClient(), self.limiter, GeocodeCache())
        self.scraper_factory = scraper_factory or (
            lambda src: ExtractionScraper.for_source(src, self.extraction_client)
        )
        self.rotation = rotation or RotatingScheduler(interval_hours=settings.ROTATION_INTERVAL_HOURS)
        self.store = ListingStore(self.session_factory)
        self.dedup = DeduplicationEngine(self.store)
        self.locks = KeyedLocks()

        self.deadline_s = float(deadline_s if deadline_s is not None else settings.SCRAPE_DEADLINE_S)
        self.source_concurrency = int(source_concurrency or settings.SCRAPE_SOURCE_CONCURRENCY)
        self.listing_concurrency = int(listing_concurrency or settings.SCRAPE_LISTING_CONCURRENCY)
        self.max_listings_per_source = int(max_listings_per_source or settings.MAX_LISTINGS_PER_SOURCE)
        self.service_area = settings.SERVICE_AREA if service_area is None else service_area
        self._clock = clock

    # -----------------------------
    # Entry points
    # -----------------------------
    async def run_full_scrape(self, config: ScrapeConfig | None = None) -> ScrapeJobResult:
        return await self.run_partial_scrape(enabled_sources(), config)

    async def run_rotating_scrape(self, now: datetime | None = None) -> ScrapeJobResult:
        sources = self.rotation.current_sources(now)
        log.info("rotation group %d: %s", self.rotation.group_index(now), [s.value for s in sources])
        return await self.run_partial_scrape(sources)

    async def run_partial_scrape(
        self, sources: Iterable[ListingSource | str], config: ScrapeConfig | None = None
    ) -> ScrapeJobResult:
        selected = self._select_sources(sources)
        job_id = str(uuid.uuid4())
        started_at = datetime.utcnow()

        # Failing here is fatal: without a job row there is nothing to finalize.
        async with self.session_factory() as session:
            await start_job(session, job_id, [s.value for s in selected], started_at)
            await session.commit()
        log.info("job %s started: %d sources", job_id, len(selected))

        results = {s: SourceResult(source=s) for s in selected}
        grace = min(5.0, self.deadline_s * 0.1)
        run = _Run(job_id, soft_deadline=self._clock() + self.deadline_s - grace)

        status = JobStatus.completed
        error: str | None = None
        try:
            await asyncio.wait_for(self._run_sources(run, selected, results, config), timeout=self.deadline_s)
        except asyncio.TimeoutError:
            run.deadline_hit = True
            log.warning("job %s hit the %.1fs deadline; in-flight work cancelled", job_id, self.deadline_s)
        except Exception as e:
            status = JobStatus.failed
            error = f"{type(e).__name__}: {e}"
            log.exception("job %s failed", job_id)

        result = ScrapeJobResult(
            job_id=job_id,
            status=status,
            start_time=started_at,
            end_time=datetime.utcnow(),
            total_listings_scraped=sum(r.listings_scraped for r in results.values()),
            new_listings_added=sum(r.new_listings for r in results.values()),
            duplicates_detected=sum(r.duplicates for r in results.values()),
            errors_encountered=sum(r.errors for r in results.values()),
            source_results=list(results.values()),
            timed_out=run.deadline_hit,
        )

        async with self.session_factory() as session:
            await finish_job(session, result, error=error)
            await record_metrics(session, result)
            await session.commit()

        log.info("job %s %s: %s", job_id, status.value, result.summary())
        return result

    async def get_job_status(self, job_id: str) -> dict[str, Any] | None:
        async with self.session_factory() as session:
            job = await get_job(session, job_id)
            if job is None:
                return None
            return {
                "job_id": job.job_id,
                "status": job.status.value,
                "sources": list(job.sources or []),
                "start_time": job.start_time,
                "end_time": job.end_time,
                "total_listings_scraped": job.total_listings_scraped,
                "new_listings_added": job.new_listings_added,
                "duplicates_detected": job.duplicates_detected,
                "errors_encountered": job.errors_encountered,
                "source_results": list(job.source_results or []),
                "timed_out": job.timed_out,
                "error": job.error,
            }

    async def get_metrics(self, start: datetime | None = None, end: datetime | None = None) -> dict[str, Any]:
        async with self.session_factory() as session:
            return await metrics_summary(session, start, end)

    async def mark_stale_listings(self, days_old: int | None = None) -> int:
        return await self.store.mark_stale_listings_inactive(
            days_old if days_old is not None else settings.STALE_LISTING_DAYS
        )

    # -----------------------------
    # Workers
    # -----------------------------
    def _select_sources(self, sources: Iterable[ListingSource | str]) -> list[ListingSource]:
        out: list[ListingSource] = []
        for s in sources:
            spec = get_spec(s)
            if not spec.enabled:
                log.warning("source %s is disabled; skipping", spec.source.value)
                continue
            if spec.source not in out:
                out.append(spec.source)
        return out

    def _past_deadline(self, run: _Run) -> bool:
        if self._clock() >= run.soft_deadline:
            run.deadline_hit = True
            return True
        return False

    async def _run_sources(
        self,
        run: _Run,
        sources: list[ListingSource],
        results: dict[ListingSource, SourceResult],
        config: ScrapeConfig | None,
    ) -> None:
        sem = asyncio.Semaphore(self.source_concurrency)

        async def worker(src: ListingSource) -> None:
            async with sem:
                if self._past_deadline(run):
                    log.info("job %s: deadline reached, not starting %s", run.job_id, src.value)
                    return
                await self._run_source(run, src, results[src], config)

        await _gather_or_cancel(worker(s) for s in sources)

    async def _run_source(
        self, run: _Run, source: ListingSource, result: SourceResult, config: ScrapeConfig | None
    ) -> None:
        t0 = self._clock()
        cfg = config or ScrapeConfig()
        if not cfg.max_listings:
            cfg = replace(cfg, max_listings=self.max_listings_per_source)
        try:
            try:
                await self.limiter.acquire(FIRECRAWL)
                raws = await self.scraper_factory(source).scrape(cfg, raise_errors=True)
            except (asyncio.CancelledError, RateLimiterNotConfigured):
                raise
            except Exception as e:
                handle_error(e, ErrorContext(operation="scrape_source", source=source.value))
                result.errors += 1
                return

            result.listings_scraped = len(raws)
            sem = asyncio.Semaphore(self.listing_concurrency)

            async def one(raw: RawListing) -> None:
                async with sem:
                    if self._past_deadline(run):
                        return
                    await self._process_listing(raw, result)

            await _gather_or_cancel(one(r) for r in raws)
            log.info(
                "[%s] done: scraped=%d new=%d dup=%d dropped=%d errors=%d",
                source.value,
                result.listings_scraped,
                result.new_listings,
                result.duplicates,
                result.dropped,
                result.errors,
            )
        finally:
            result.duration_ms = int((self._clock() - t0) * 1000)

    async def _process_listing(self, raw: RawListing, result: SourceResult) -> None:
        try:
            parsed = parse_listing(raw)
            if parsed is None:
                result.dropped += 1
                return
            listing = normalize_listing(parsed)
            coords = await self.geocoder.geocode(listing.address.full_address)

            if not in_service_area(self.service_area, listing.address, coords):
                log.debug("[%s] %s outside service area", raw.source.value, listing.address.full_address)
                result.dropped += 1
                return

            async with self.locks.hold(*dedup_lock_keys(listing)):
                existing_id = await self.dedup.find_duplicate(listing)
                if existing_id is not None and await self.dedup.merge_listing(existing_id, listing, coords):
                    result.duplicates += 1
                    return
                await self.store.insert_listing(listing, coords)
                result.new_listings += 1
        except (asyncio.CancelledError, RateLimiterNotConfigured):
            raise
        except Exception as e:
            handle_error(
                e,
                ErrorContext(operation="process_listing", source=raw.source.value, listing_id=raw.source_id),
            )
            result.errors += 1
