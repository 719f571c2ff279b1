# leaseiq/adapters/clients/http_resilience.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from ...config import settings

log = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


async def resilient_request(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    json: Any | None = None,
    data: Any | None = None,
    client: httpx.AsyncClient | None = None,
    timeout_s: float | None = None,
    max_retries: int | None = None,
    backoff_base_s: float | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> httpx.Response:
    """
    One outbound call with retries on timeouts, network errors, 429 and 5xx.

    Backoff is min(5s, base * 2**attempt). Pass `client` to reuse a pooled
    client (and to mock transports in tests); otherwise a client is opened per
    attempt.
    """
    timeout = httpx.Timeout(float(timeout_s if timeout_s is not None else settings.HTTP_TIMEOUT_S))
    retries = int(max_retries if max_retries is not None else settings.HTTP_MAX_RETRIES)
    backoff = float(backoff_base_s if backoff_base_s is not None else settings.HTTP_BACKOFF_BASE_S)

    last_exc: Exception | None = None
    for attempt in range(retries + 1):
        try:
            if client is not None:
                resp = await client.request(
                    method, url, headers=headers, params=params, json=json, data=data, timeout=timeout
                )
            else:
                async with httpx.AsyncClient(timeout=timeout) as c:
                    resp = await c.request(method, url, headers=headers, params=params, json=json, data=data)

            if resp.status_code in RETRYABLE_STATUS:
                raise httpx.HTTPStatusError("retryable_status", request=resp.request, response=resp)

            resp.raise_for_status()
            return resp
        except (httpx.TimeoutException, httpx.NetworkError, httpx.HTTPStatusError) as e:
            last_exc = e
            if isinstance(e, httpx.HTTPStatusError) and e.response.status_code not in RETRYABLE_STATUS:
                raise
            if attempt >= retries:
                break
            delay = min(5.0, backoff * (2**attempt))
            log.warning("%s %s attempt %d failed (%s); retrying in %.2fs", method, url, attempt + 1, e, delay)
            await sleep(delay)

    assert last_exc is not None
    raise last_exc
