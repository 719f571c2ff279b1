# leaseiq/domain/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ListingSource(str, Enum):
    streeteasy = "streeteasy"
    zillow = "zillow"
    apartments_com = "apartments_com"
    trulia = "trulia"
    realtor = "realtor"
    zumper = "zumper"
    renthop = "renthop"
    rent_com = "rent_com"
    hotpads = "hotpads"
    apartment_guide = "apartment_guide"
    rentals_com = "rentals_com"
    apartment_list = "apartment_list"
    padmapper = "padmapper"
    craigslist = "craigslist"
    facebook = "facebook"


class JobStatus(str, Enum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"


class PriceUnit(str, Enum):
    monthly = "monthly"
    weekly = "weekly"
    daily = "daily"


@dataclass(frozen=True)
class ScrapeConfig:
    url: str | None = None
    location: str | None = None
    min_price: int | None = None
    max_price: int | None = None
    bedrooms: int | None = None
    page: int | None = None
    max_listings: int | None = None


@dataclass(frozen=True)
class RawListing:
    source: ListingSource
    source_url: str
    source_id: str
    raw_payload: dict[str, Any]
    scraped_at: datetime


@dataclass(frozen=True)
class Utilities:
    electric: bool = False
    gas: bool = False
    water: bool = False
    internet: bool = False
    trash: bool = False

    def as_dict(self) -> dict[str, bool]:
        return {
            "electric": self.electric,
            "gas": self.gas,
            "water": self.water,
            "internet": self.internet,
            "trash": self.trash,
        }


@dataclass
class ParsedListing:
    source: ListingSource
    source_url: str
    source_id: str
    address: str | None
    price: float | None
    scraped_at: datetime
    bedrooms: float | None = None
    bathrooms: float | None = None
    square_feet: int | None = None
    description: str | None = None
    images: list[str] = field(default_factory=list)
    floor_plan_images: list[str] = field(default_factory=list)
    amenities: list[str] = field(default_factory=list)
    pet_policy: str | None = None
    broker_fee: str | None = None
    building_type: str | None = None
    year_built: int | None = None
    total_units: int | None = None
    parking: str | None = None
    lease_length: str | None = None
    security_deposit: float | None = None
    application_fee: float | None = None
    available_date: str | None = None
    utilities: Utilities | None = None
    laundry: str | None = None
    heating: str | None = None
    cooling: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None


@dataclass(frozen=True)
class Address:
    street: str
    city: str
    state: str
    zip_code: str
    full_address: str


@dataclass(frozen=True)
class Price:
    amount: float
    currency: str = "USD"
    period: PriceUnit = PriceUnit.monthly


@dataclass(frozen=True)
class PetPolicy:
    allowed: bool
    restrictions: str | None = None
    deposit: int | None = None


@dataclass(frozen=True)
class BrokerFee:
    required: bool
    amount: int | None = None
    percentage: int | None = None


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass
class NormalizedListing:
    source: ListingSource
    source_url: str
    source_id: str
    address: Address
    price: Price
    scraped_at: datetime
    bedrooms: float | None = None
    bathrooms: float | None = None
    square_feet: int | None = None
    description: str | None = None
    images: list[str] = field(default_factory=list)
    floor_plan_images: list[str] = field(default_factory=list)
    amenities: list[str] = field(default_factory=list)
    pet_policy: PetPolicy | None = None
    broker_fee: BrokerFee | None = None
    building_type: str | None = None
    year_built: int | None = None
    total_units: int | None = None
    parking: str | None = None
    lease_length: str | None = None
    security_deposit: float | None = None
    application_fee: float | None = None
    available_date: datetime | None = None
    utilities: Utilities = field(default_factory=Utilities)
    laundry: str | None = None
    heating: str | None = None
    cooling: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None


@dataclass
class SourceResult:
    """
    Per-source counters for one run. Mutated in place while the source is
    being processed so a deadline cut still reports what was done.
    """
    source: ListingSource
    listings_scraped: int = 0
    errors: int = 0
    duration_ms: int = 0
    new_listings: int = 0
    duplicates: int = 0
    dropped: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "listings_scraped": self.listings_scraped,
            "errors": self.errors,
            "duration_ms": self.duration_ms,
            "new_listings": self.new_listings,
            "duplicates": self.duplicates,
            "dropped": self.dropped,
        }


@dataclass(frozen=True)
class ScrapeJobResult:
    job_id: str
    status: JobStatus
    start_time: datetime
    end_time: datetime
    total_listings_scraped: int
    new_listings_added: int
    duplicates_detected: int
    errors_encountered: int
    source_results: list[SourceResult]
    timed_out: bool = False

    @property
    def duration_ms(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() * 1000)

    def summary(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "status": self.status.value,
            "total_listings_scraped": self.total_listings_scraped,
            "new_listings_added": self.new_listings_added,
            "duplicates_detected": self.duplicates_detected,
            "errors_encountered": self.errors_encountered,
            "timed_out": self.timed_out,
        }
