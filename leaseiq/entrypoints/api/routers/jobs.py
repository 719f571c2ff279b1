# leaseiq/entrypoints/api/routers/jobs.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ..deps import get_orchestrator, require_api_key
from ....adapters.scrapers.registry import enabled_sources
from ....domain.types import ScrapeConfig
from ....schemas import JobResult, JobStatusOut, ScrapeRequest, StaleSweepResult
from ....service_layer.orchestrator import ScrapeOrchestrator

router = APIRouter(tags=["jobs"])


@router.post("/jobs/scrape", response_model=JobResult, dependencies=[Depends(require_api_key)])
async def jobs_scrape(
    body: ScrapeRequest | None = None,
    orch: ScrapeOrchestrator = Depends(get_orchestrator),
) -> JobResult:
    body = body or ScrapeRequest()
    config = ScrapeConfig(
        location=body.location,
        min_price=body.min_price,
        max_price=body.max_price,
        bedrooms=body.bedrooms,
        max_listings=body.max_listings,
    )
    try:
        sources = body.sources or enabled_sources()
        res = await orch.run_partial_scrape(sources, config)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e.args[0]) if e.args else "unknown source")
    return JobResult(**res.summary())


@router.post("/jobs/rotate", response_model=JobResult, dependencies=[Depends(require_api_key)])
async def jobs_rotate(orch: ScrapeOrchestrator = Depends(get_orchestrator)) -> JobResult:
    res = await orch.run_rotating_scrape()
    return JobResult(**res.summary())


@router.post("/jobs/mark-stale", response_model=StaleSweepResult, dependencies=[Depends(require_api_key)])
async def jobs_mark_stale(
    days: int | None = Query(None, ge=1),
    orch: ScrapeOrchestrator = Depends(get_orchestrator),
) -> StaleSweepResult:
    return StaleSweepResult(marked_inactive=await orch.mark_stale_listings(days))


@router.get("/jobs/{job_id}", response_model=JobStatusOut, dependencies=[Depends(require_api_key)])
async def job_status(job_id: str, orch: ScrapeOrchestrator = Depends(get_orchestrator)) -> JobStatusOut:
    st = await orch.get_job_status(job_id)
    if st is None:
        raise HTTPException(status_code=404, detail="job not found")
    return JobStatusOut(**st)
