# leaseiq/service_layer/metrics.py
from __future__ import annotations

import statistics
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.types import ScrapeJobResult
from ..models import ScrapeMetric


async def record_metrics(session: AsyncSession, result: ScrapeJobResult) -> ScrapeMetric:
    m = ScrapeMetric(
        job_id=result.job_id,
        timestamp=result.end_time,
        total_listings_scraped=result.total_listings_scraped,
        new_listings_added=result.new_listings_added,
        duplicates_detected=result.duplicates_detected,
        errors_encountered=result.errors_encountered,
        duration_ms=result.duration_ms,
        source_breakdown=[r.as_dict() for r in result.source_results],
    )
    session.add(m)
    await session.flush()
    return m


async def metrics_summary(
    session: AsyncSession,
    start: datetime | None = None,
    end: datetime | None = None,
) -> dict:
    """
    Totals over a window plus a per-source breakdown. A source run counts as a
    success when it finished with zero errors.
    """
    stmt = select(ScrapeMetric)
    if start is not None:
        stmt = stmt.where(ScrapeMetric.timestamp >= start)
    if end is not None:
        stmt = stmt.where(ScrapeMetric.timestamp <= end)
    rows = (await session.execute(stmt.order_by(ScrapeMetric.timestamp))).scalars().all()

    if not rows:
        return {
            "total_jobs": 0,
            "total_listings_scraped": 0,
            "total_new_listings": 0,
            "total_duplicates": 0,
            "total_errors": 0,
            "average_duration_ms": None,
            "source_stats": {},
        }

    per_source: dict[str, dict[str, list]] = {}
    for r in rows:
        for sr in r.source_breakdown or []:
            s = per_source.setdefault(sr.get("source", "unknown"), {"scraped": [], "ok": [], "duration": []})
            s["scraped"].append(int(sr.get("listings_scraped") or 0))
            s["ok"].append(int(sr.get("errors") or 0) == 0)
            s["duration"].append(int(sr.get("duration_ms") or 0))

    source_stats = {}
    for name, s in sorted(per_source.items()):
        n = len(s["ok"])
        source_stats[name] = {
            "runs": n,
            "listings_scraped": sum(s["scraped"]),
            "success_rate": (sum(1 for ok in s["ok"] if ok) / n) if n else 0.0,
            "average_duration_ms": float(statistics.mean(s["duration"])) if s["duration"] else None,
        }

    return {
        "total_jobs": len(rows),
        "total_listings_scraped": sum(r.total_listings_scraped for r in rows),
        "total_new_listings": sum(r.new_listings_added for r in rows),
        "total_duplicates": sum(r.duplicates_detected for r in rows),
        "total_errors": sum(r.errors_encountered for r in rows),
        "average_duration_ms": float(statistics.mean(r.duration_ms for r in rows)),
        "source_stats": source_stats,
    }
