# leaseiq/adapters/clients/firecrawl.py
from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import settings
from ...errors import ExtractionError
from .http_resilience import resilient_request

log = logging.getLogger(__name__)


class FirecrawlClient:
    """
    Thin client for the Firecrawl v1 scrape endpoint with JSON extraction.

    Contract used by the scrapers: give me the list of loosely typed listing
    objects found at this URL.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.FIRECRAWL_API_KEY
        self.base_url = (base_url or settings.FIRECRAWL_API_URL).rstrip("/")
        self.client = client

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise RuntimeError("FIRECRAWL_API_KEY is missing. Put it in your .env")
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    async def extract_listings(self, url: str, schema: dict[str, Any]) -> list[dict[str, Any]]:
        body = {
            "url": url,
            "formats": ["json"],
            "jsonOptions": {"schema": schema},
        }
        resp = await resilient_request(
            "POST",
            f"{self.base_url}/scrape",
            headers=self._headers(),
            json=body,
            client=self.client,
        )
        data = resp.json()
        if isinstance(data, dict) and data.get("success") is False:
            raise ExtractionError(f"extraction failed for {url}: {data.get('error') or 'unknown error'}")
        return _listings_from_payload(data)


def _listings_from_payload(data: Any) -> list[dict[str, Any]]:
    """Accepts data.json.listings, data.extract.listings or top-level listings."""
    if not isinstance(data, dict):
        raise ExtractionError(f"unexpected extraction payload type: {type(data).__name__}")

    inner = data.get("data")
    candidates: list[Any] = []
    if isinstance(inner, dict):
        candidates.extend([inner.get("json"), inner.get("extract"), inner])
    candidates.append(data)

    for c in candidates:
        if isinstance(c, dict) and isinstance(c.get("listings"), list):
            return [x for x in c["listings"] if isinstance(x, dict)]
    log.info("extraction payload had no listings array")
    return []
