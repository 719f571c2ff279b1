# leaseiq/models.py
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .domain.types import JobStatus, ListingSource, PriceUnit


class Base(DeclarativeBase):
    pass


def _uuid() -> str:
    return str(uuid.uuid4())


# -----------------------------
# Listings
# -----------------------------
class Listing(Base):
    """
    Canonical, deduplicated listing. Created once by the ingestion pipeline and
    afterwards only touched by merges or the staleness sweep.
    """
    __tablename__ = "listings"
    __table_args__ = (
        Index("ix_listings_active_updated", "is_active", "updated_at"),
        Index("ix_listings_search", "price_amount", "bedrooms", "bathrooms", "created_at"),
        Index("ix_listings_geo", "latitude", "longitude"),
        Index("ix_listings_fuzzy_bucket", "city", "state", "bedrooms", "bathrooms"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)

    street: Mapped[str] = mapped_column(String(255), default="")
    city: Mapped[str] = mapped_column(String(120), default="")
    state: Mapped[str] = mapped_column(String(40), default="")
    zip_code: Mapped[str] = mapped_column(String(10), default="")
    full_address: Mapped[str] = mapped_column(String(512), index=True)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    price_amount: Mapped[float] = mapped_column(Float, default=0.0)
    price_currency: Mapped[str] = mapped_column(String(3), default="USD")
    price_period: Mapped[PriceUnit] = mapped_column(Enum(PriceUnit), default=PriceUnit.monthly)

    bedrooms: Mapped[float | None] = mapped_column(Float, nullable=True)
    bathrooms: Mapped[float | None] = mapped_column(Float, nullable=True)
    square_feet: Mapped[int | None] = mapped_column(Integer, nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, default=list)
    floor_plan_images: Mapped[list[str]] = mapped_column(JSON, default=list)
    amenities: Mapped[list[str]] = mapped_column(JSON, default=list)

    # {"allowed": bool, "restrictions": str|None, "deposit": int|None}
    pet_policy: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    # {"required": bool, "amount": int|None, "percentage": int|None}
    broker_fee: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    building_type: Mapped[str | None] = mapped_column(String(80), nullable=True)
    year_built: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_units: Mapped[int | None] = mapped_column(Integer, nullable=True)
    parking: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lease_length: Mapped[str | None] = mapped_column(String(80), nullable=True)
    security_deposit: Mapped[float | None] = mapped_column(Float, nullable=True)
    application_fee: Mapped[float | None] = mapped_column(Float, nullable=True)
    available_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    utilities: Mapped[dict] = mapped_column(JSON, default=dict)
    laundry: Mapped[str | None] = mapped_column(String(120), nullable=True)
    heating: Mapped[str | None] = mapped_column(String(120), nullable=True)
    cooling: Mapped[str | None] = mapped_column(String(120), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    scraped_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    sources: Mapped[list["ListingSourceRef"]] = relationship(
        back_populates="listing",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ListingSourceRef.id",
    )


class ListingSourceRef(Base):
    """Provenance: one row per (source, source_id) ever matched to a listing."""
    __tablename__ = "listing_sources"
    __table_args__ = (
        UniqueConstraint("source", "source_id", name="uq_listing_source_ref"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    listing_id: Mapped[str] = mapped_column(ForeignKey("listings.id", ondelete="CASCADE"), index=True)

    source: Mapped[ListingSource] = mapped_column(Enum(ListingSource))
    source_url: Mapped[str] = mapped_column(String(1024))
    source_id: Mapped[str] = mapped_column(String(255))

    first_seen_at: Mapped[datetime] = mapped_column(DateTime)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime)

    listing: Mapped[Listing] = relationship(back_populates="sources")


# -----------------------------
# Job bookkeeping
# -----------------------------
class ScrapingJob(Base):
    """
    One row per orchestrator run. Created at start, terminal status written once.
    """
    __tablename__ = "scraping_jobs"
    __table_args__ = (
        Index("ix_scraping_jobs_status_created", "status", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[str] = mapped_column(String(36), unique=True, index=True)

    status: Mapped[JobStatus] = mapped_column(Enum(JobStatus), default=JobStatus.pending, index=True)
    sources: Mapped[list[str]] = mapped_column(JSON, default=list)

    start_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    total_listings_scraped: Mapped[int] = mapped_column(Integer, default=0)
    new_listings_added: Mapped[int] = mapped_column(Integer, default=0)
    duplicates_detected: Mapped[int] = mapped_column(Integer, default=0)
    errors_encountered: Mapped[int] = mapped_column(Integer, default=0)
    source_results: Mapped[list[dict]] = mapped_column(JSON, default=list)

    timed_out: Mapped[bool] = mapped_column(Boolean, default=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)


class ScrapeMetric(Base):
    """Time series of job outcomes for trend analysis."""
    __tablename__ = "scrape_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_id: Mapped[str] = mapped_column(String(36), index=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    total_listings_scraped: Mapped[int] = mapped_column(Integer, default=0)
    new_listings_added: Mapped[int] = mapped_column(Integer, default=0)
    duplicates_detected: Mapped[int] = mapped_column(Integer, default=0)
    errors_encountered: Mapped[int] = mapped_column(Integer, default=0)
    duration_ms: Mapped[int] = mapped_column(Integer, default=0)
    source_breakdown: Mapped[list[dict]] = mapped_column(JSON, default=list)
