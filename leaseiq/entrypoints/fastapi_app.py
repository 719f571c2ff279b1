# leaseiq/entrypoints/fastapi_app.py
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..db import init_models
from ..service_layer.orchestrator import ScrapeOrchestrator
from .api.routers import health, jobs, metrics
from .log_config import configure_logging


def create_app(orchestrator: ScrapeOrchestrator | None = None, *, create_tables: bool = True) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Single place where DB tables are created in dev.
        if create_tables:
            await init_models()
        yield

    app = FastAPI(title="LeaseIQ - Listing Ingestion", lifespan=lifespan)
    app.state.orchestrator = orchestrator or ScrapeOrchestrator()

    # Routers
    app.include_router(health.router)
    app.include_router(jobs.router)
    app.include_router(metrics.router)

    return app


def app_factory() -> FastAPI:
    configure_logging()
    return create_app()
