# leaseiq/service_layer/geocoding.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Protocol

from ..config import settings
from ..domain.types import Coordinates
from ..errors import ErrorContext, RateLimiterNotConfigured, retry_with_backoff
from .rate_limiter import GEOCODING, RateLimiter

log = logging.getLogger(__name__)

_MISSING = object()


class GeocodeLookup(Protocol):
    @property
    def configured(self) -> bool: ...

    async def lookup(self, address: str) -> tuple[float, float] | None:
        raise NotImplementedError


class GeocodeCache:
    """Address -> coordinates, including known misses (stored as None)."""

    def __init__(self) -> None:
        self._data: dict[str, Coordinates | None] = {}

    def get(self, address: str) -> Any:
        return self._data.get(address, _MISSING)

    def put(self, address: str, coords: Coordinates | None) -> None:
        self._data[address] = coords

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, address: str) -> bool:
        return address in self._data

    def __len__(self) -> int:
        return len(self._data)


def valid_coordinates(lat: float, lng: float) -> bool:
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def _geocode_retryable(exc: BaseException) -> bool:
    # Every lookup failure gets another attempt; a missing limiter never will.
    return not isinstance(exc, RateLimiterNotConfigured)


class GeocodingService:
    def __init__(
        self,
        client: GeocodeLookup,
        limiter: RateLimiter,
        cache: GeocodeCache | None = None,
        *,
        max_retries: int | None = None,
        base_delay_s: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.limiter = limiter
        self.cache = cache if cache is not None else GeocodeCache()
        self.max_retries = int(max_retries if max_retries is not None else settings.GEOCODE_MAX_RETRIES)
        self.base_delay_s = float(base_delay_s if base_delay_s is not None else settings.GEOCODE_RETRY_BASE_S)
        self._sleep = sleep
        self._warned_unconfigured = False

    def clear_cache(self) -> None:
        self.cache.clear()

    async def geocode(self, address: str | None) -> Coordinates | None:
        if not address or not address.strip():
            return None

        hit = self.cache.get(address)
        if hit is not _MISSING:
            return hit

        if not self.client.configured:
            if not self._warned_unconfigured:
                log.warning("geocoding API key missing; listings will be stored without coordinates")
                self._warned_unconfigured = True
            return None

        coords = await self._lookup_with_retry(address)
        self.cache.put(address, coords)
        return coords

    async def _lookup_with_retry(self, address: str) -> Coordinates | None:
        async def attempt() -> tuple[float, float] | None:
            await self.limiter.acquire(GEOCODING)
            return await self.client.lookup(address)

        try:
            found = await retry_with_backoff(
                attempt,
                ErrorContext(operation="geocode", metadata={"address": address}),
                max_retries=self.max_retries,
                base_delay=self.base_delay_s,
                retryable=_geocode_retryable,
                sleep=self._sleep,
            )
        except RateLimiterNotConfigured:
            raise
        except Exception:
            # already logged; the address is stored without coordinates
            return None

        if found is None:
            return None
        lat, lng = found
        if not valid_coordinates(lat, lng):
            log.warning("geocode out of range for %r: (%s, %s)", address, lat, lng)
            return None
        return Coordinates(latitude=lat, longitude=lng)
