# leaseiq/adapters/scrapers/extraction.py
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any

from ...domain.types import ListingSource, RawListing, ScrapeConfig
from ...errors import ErrorContext, handle_error
from .base import ExtractionClient
from .registry import SourceSpec, get_spec

log = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")


def fallback_source_id(item: dict[str, Any]) -> str:
    address = item.get("address") or ""
    price = item.get("price")
    price_s = "" if price is None else str(price)
    return _WS_RE.sub("-", f"{address}-{price_s}").lower()


class ExtractionScraper:
    """
    Generic scraper for any registered source: build the search URL, ask the
    extraction service for listings, filter them into RawListings.
    """

    def __init__(self, spec: SourceSpec, client: ExtractionClient) -> None:
        self.spec = spec
        self.client = client

    @classmethod
    def for_source(cls, source: ListingSource | str, client: ExtractionClient) -> "ExtractionScraper":
        return cls(get_spec(source), client)

    @property
    def source(self) -> ListingSource:
        return self.spec.source

    async def scrape(self, config: ScrapeConfig, *, raise_errors: bool = False) -> list[RawListing]:
        """
        A failed extraction call is logged and yields no listings. The
        orchestrator passes raise_errors=True so it can count the failure.
        """
        url = self.spec.build_search_url(config)
        try:
            items = await self.client.extract_listings(url, self.spec.schema)
        except Exception as e:
            handle_error(e, ErrorContext(operation="scrape", source=self.source.value, metadata={"url": url}))
            if raise_errors:
                raise
            return []

        now = datetime.utcnow()
        out: list[RawListing] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            listing_id = item.get("listingId")
            if not listing_id and not item.get("address"):
                continue
            out.append(
                RawListing(
                    source=self.source,
                    source_url=str(item.get("listingUrl") or url),
                    source_id=str(listing_id) if listing_id else fallback_source_id(item),
                    raw_payload=item,
                    scraped_at=now,
                )
            )
            if config.max_listings and len(out) >= config.max_listings:
                break

        log.info("[%s] scraped %d listings from %s", self.source.value, len(out), url)
        return out
