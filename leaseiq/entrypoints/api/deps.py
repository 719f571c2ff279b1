# leaseiq/entrypoints/api/deps.py
from __future__ import annotations

from fastapi import Header, HTTPException, Request

from ...config import settings
from ...service_layer.orchestrator import ScrapeOrchestrator


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    if settings.API_KEY:
        if not x_api_key or x_api_key != settings.API_KEY:
            raise HTTPException(status_code=401, detail="Invalid API key")


def get_orchestrator(request: Request) -> ScrapeOrchestrator:
    # Built once in create_app so the limiter and geocode cache are shared across requests.
    return request.app.state.orchestrator
