# leaseiq/entrypoints/api/routers/metrics.py
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from ..deps import get_orchestrator, require_api_key
from ....schemas import MetricsSummary
from ....service_layer.orchestrator import ScrapeOrchestrator

router = APIRouter(tags=["metrics"])


@router.get("/metrics/summary", response_model=MetricsSummary, dependencies=[Depends(require_api_key)])
async def metrics_summary(
    start: datetime | None = Query(None),
    end: datetime | None = Query(None),
    orch: ScrapeOrchestrator = Depends(get_orchestrator),
) -> MetricsSummary:
    return MetricsSummary(**await orch.get_metrics(start, end))
