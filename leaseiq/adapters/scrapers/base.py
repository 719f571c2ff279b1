# leaseiq/adapters/scrapers/base.py
from __future__ import annotations

from typing import Any, Protocol

from ...domain.types import ListingSource, RawListing, ScrapeConfig


class ExtractionClient(Protocol):
    async def extract_listings(self, url: str, schema: dict[str, Any]) -> list[dict[str, Any]]:
        raise NotImplementedError


class ListingScraper(Protocol):
    @property
    def source(self) -> ListingSource: ...

    async def scrape(self, config: ScrapeConfig, *, raise_errors: bool = False) -> list[RawListing]:
        raise NotImplementedError


LISTING_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "listings": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "listingId": {"type": "string"},
                    "listingUrl": {"type": "string"},
                    "address": {"type": "string"},
                    "price": {"type": "number"},
                    "bedrooms": {"type": "number"},
                    "bathrooms": {"type": "number"},
                    "squareFeet": {"type": "number"},
                    "description": {"type": "string"},
                    "images": {"type": "array", "items": {"type": "string"}},
                    "floorPlanImages": {"type": "array", "items": {"type": "string"}},
                    "amenities": {"type": "array", "items": {"type": "string"}},
                    "petPolicy": {"type": "string"},
                    "brokerFee": {"type": "string"},
                    "buildingType": {"type": "string"},
                    "yearBuilt": {"type": "number"},
                    "totalUnits": {"type": "number"},
                    "parking": {"type": "string"},
                    "leaseLength": {"type": "string"},
                    "securityDeposit": {"type": "number"},
                    "applicationFee": {"type": "number"},
                    "availableDate": {"type": "string"},
                    "utilities": {
                        "type": "object",
                        "properties": {
                            "electric": {"type": "boolean"},
                            "gas": {"type": "boolean"},
                            "water": {"type": "boolean"},
                            "internet": {"type": "boolean"},
                            "trash": {"type": "boolean"},
                        },
                    },
                    "laundry": {"type": "string"},
                    "heating": {"type": "string"},
                    "cooling": {"type": "string"},
                    "contactPhone": {"type": "string"},
                    "contactEmail": {"type": "string"},
                },
            },
        }
    },
}
