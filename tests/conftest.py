import asyncio
from datetime import datetime
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from leaseiq.domain.normalize import normalize_listing
from leaseiq.domain.types import ListingSource, ParsedListing
from leaseiq.models import Base
from leaseiq.service_layer.deduplication import DeduplicationEngine
from leaseiq.service_layer.geocoding import GeocodeCache, GeocodingService
from leaseiq.service_layer.orchestrator import ScrapeOrchestrator
from leaseiq.service_layer.rate_limiter import FIRECRAWL, GEOCODING, RateLimiter
from leaseiq.service_layer.storage import ListingStore


@pytest.fixture
async def engine():
    """
    Fresh in-memory DB per test. StaticPool makes all connections share the same
    in-memory database for the lifetime of this engine fixture.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def async_session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=True)


@pytest.fixture
def store(async_session_maker):
    return ListingStore(async_session_maker)


@pytest.fixture
def dedup(store):
    return DeduplicationEngine(store)


class FakeClock:
    """Monotonic clock that only moves when someone sleeps on it."""

    def __init__(self, start: float = 0.0) -> None:
        self.t = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.t

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.t += seconds
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()


class FakeExtraction:
    """
    Extraction client keyed by URL substring. A value may be a list of listing
    dicts or an exception instance to raise.
    """

    def __init__(self, by_host: dict[str, Any], delay_s: float = 0.0) -> None:
        self.by_host = by_host
        self.delay_s = delay_s
        self.calls: list[str] = []

    async def extract_listings(self, url: str, schema: dict[str, Any]) -> list[dict[str, Any]]:
        self.calls.append(url)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        for host, value in self.by_host.items():
            if host in url:
                if isinstance(value, Exception):
                    raise value
                return [dict(v) for v in value]
        return []


class FakeLookup:
    """Geocoding client. `answers` maps address -> (lat, lng) | None | Exception."""

    configured = True

    def __init__(self, answers: dict[str, Any] | None = None, default: Any = (40.75, -73.99)) -> None:
        self.answers = answers or {}
        self.default = default
        self.calls: list[str] = []

    async def lookup(self, address: str):
        self.calls.append(address)
        v = self.answers.get(address, self.default)
        if isinstance(v, list):
            v = v.pop(0)
        if isinstance(v, Exception):
            raise v
        return v


def open_limiter(**kw) -> RateLimiter:
    lim = RateLimiter(**kw)
    lim.configure(FIRECRAWL, 1000, 60.0)
    lim.configure(GEOCODING, 1000, 1.0)
    return lim


@pytest.fixture
def make_orchestrator(async_session_maker):
    def _make(extraction: FakeExtraction, lookup: FakeLookup | None = None, **kw) -> ScrapeOrchestrator:
        limiter = kw.pop("limiter", None) or open_limiter()
        geocoder = GeocodingService(lookup or FakeLookup(), limiter, GeocodeCache(), sleep=lambda s: asyncio.sleep(0))
        kw.setdefault("deadline_s", 30.0)
        kw.setdefault("service_area", "")
        return ScrapeOrchestrator(
            extraction_client=extraction,
            geocoder=geocoder,
            limiter=limiter,
            session_factory=async_session_maker,
            **kw,
        )

    return _make


@pytest.fixture
def listing_factory():
    def _make(
        address: str = "123 Main St, New York, NY 10001",
        price: float | None = 2500,
        source: ListingSource = ListingSource.streeteasy,
        source_id: str = "se-1",
        scraped_at: datetime | None = None,
        **fields: Any,
    ):
        parsed = ParsedListing(
            source=source,
            source_url=f"https://example.test/{source.value}/{source_id}",
            source_id=source_id,
            address=address,
            price=price,
            scraped_at=scraped_at or datetime(2024, 1, 1, 12, 0, 0),
            bedrooms=fields.pop("bedrooms", 2),
            bathrooms=fields.pop("bathrooms", 1),
            **fields,
        )
        return normalize_listing(parsed)

    return _make
