# leaseiq/adapters/clients/google_geocoding.py
from __future__ import annotations

from typing import Any

import httpx

from ...config import settings
from ...errors import GeocodingError


class GoogleGeocodingClient:
    """
    One geocode lookup per call; retries and rate limiting live in the service
    layer so every attempt is counted against the budget.
    """

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.GOOGLE_GEOCODING_API_KEY
        self.url = url or settings.GEOCODING_API_URL
        self.client = client
        self.timeout = httpx.Timeout(float(timeout_s if timeout_s is not None else settings.HTTP_TIMEOUT_S))

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def lookup(self, address: str) -> tuple[float, float] | None:
        """Returns (lat, lng) of the best match, or None for ZERO_RESULTS."""
        params = {"address": address, "key": self.api_key}
        if self.client is not None:
            resp = await self.client.get(self.url, params=params, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as c:
                resp = await c.get(self.url, params=params)
        resp.raise_for_status()
        return _first_location(resp.json())


def _first_location(data: dict[str, Any]) -> tuple[float, float] | None:
    status = data.get("status")
    if status == "ZERO_RESULTS":
        return None
    if status and status != "OK":
        raise GeocodingError(f"geocoding status={status} {data.get('error_message') or ''}".strip())

    results = data.get("results") or []
    if not results:
        return None
    loc = ((results[0] or {}).get("geometry") or {}).get("location") or {}
    lat, lng = loc.get("lat"), loc.get("lng")
    if lat is None or lng is None:
        return None
    return float(lat), float(lng)
