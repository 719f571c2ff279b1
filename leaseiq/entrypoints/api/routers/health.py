# leaseiq/entrypoints/api/routers/health.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..deps import require_api_key
from ....config import settings, validate_settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/debug/config", dependencies=[Depends(require_api_key)])
def debug_config() -> dict[str, Any]:
    return {
        "ENV": settings.ENV,
        "LEASEIQ_DB_URL": settings.LEASEIQ_DB_URL,
        "FIRECRAWL_API_URL": settings.FIRECRAWL_API_URL,
        "FIRECRAWL_API_KEY_SET": bool(settings.FIRECRAWL_API_KEY),
        "GOOGLE_GEOCODING_API_KEY_SET": bool(settings.GOOGLE_GEOCODING_API_KEY),
        "RATE_LIMIT_FIRECRAWL": settings.RATE_LIMIT_FIRECRAWL,
        "RATE_LIMIT_GEOCODING": settings.RATE_LIMIT_GEOCODING,
        "SCRAPE_DEADLINE_S": settings.SCRAPE_DEADLINE_S,
        "SERVICE_AREA": settings.SERVICE_AREA,
        "problems": validate_settings(settings),
    }
