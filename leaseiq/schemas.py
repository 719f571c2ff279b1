from datetime import datetime
from pydantic import BaseModel, Field


class ScrapeRequest(BaseModel):
    sources: list[str] | None = Field(None, description="Empty means every enabled source")
    location: str | None = None
    min_price: int | None = Field(None, ge=0)
    max_price: int | None = Field(None, ge=0)
    bedrooms: int | None = Field(None, ge=0)
    max_listings: int | None = Field(None, ge=1)


class SourceResultOut(BaseModel):
    source: str
    listings_scraped: int = Field(..., ge=0)
    errors: int = Field(..., ge=0)
    duration_ms: int = Field(..., ge=0)
    new_listings: int = 0
    duplicates: int = 0
    dropped: int = 0


class JobResult(BaseModel):
    job_id: str
    status: str
    total_listings_scraped: int = Field(..., ge=0)
    new_listings_added: int = Field(..., ge=0)
    duplicates_detected: int = Field(..., ge=0)
    errors_encountered: int = Field(..., ge=0)
    timed_out: bool = False


class JobStatusOut(JobResult):
    sources: list[str]
    start_time: datetime | None = None
    end_time: datetime | None = None
    source_results: list[SourceResultOut] = []
    error: str | None = None


class SourceStats(BaseModel):
    runs: int
    listings_scraped: int
    success_rate: float
    average_duration_ms: float | None = None


class MetricsSummary(BaseModel):
    total_jobs: int
    total_listings_scraped: int
    total_new_listings: int
    total_duplicates: int
    total_errors: int
    average_duration_ms: float | None = None
    source_stats: dict[str, SourceStats]


class StaleSweepResult(BaseModel):
    marked_inactive: int
