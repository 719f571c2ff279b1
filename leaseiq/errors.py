# leaseiq/errors.py
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

log = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorCategory(str, Enum):
    network = "network"
    parsing = "parsing"
    validation = "validation"
    storage = "storage"
    rate_limit = "rate_limit"
    geocoding = "geocoding"
    unknown = "unknown"


class GeocodingError(Exception):
    pass


class ExtractionError(Exception):
    """The extraction service answered, but not with something usable."""


class RateLimiterNotConfigured(RuntimeError):
    def __init__(self, resource: str) -> None:
        super().__init__(f"Rate limiter not configured for resource: {resource}")
        self.resource = resource


@dataclass
class ErrorContext:
    operation: str
    source: str | None = None
    listing_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


def categorize_error(exc: BaseException) -> ErrorCategory:
    if isinstance(exc, httpx.HTTPStatusError):
        if exc.response.status_code == 429:
            return ErrorCategory.rate_limit
        return ErrorCategory.network
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, asyncio.TimeoutError, ConnectionError)):
        return ErrorCategory.network
    if isinstance(exc, GeocodingError):
        return ErrorCategory.geocoding
    if isinstance(exc, RateLimiterNotConfigured):
        return ErrorCategory.rate_limit
    if isinstance(exc, IntegrityError):
        return ErrorCategory.validation
    if isinstance(exc, SQLAlchemyError):
        return ErrorCategory.storage
    if isinstance(exc, (json.JSONDecodeError, ExtractionError, ValueError, TypeError, KeyError)):
        return ErrorCategory.parsing
    return ErrorCategory.unknown


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, RateLimiterNotConfigured):
        return False
    return categorize_error(exc) in (ErrorCategory.network, ErrorCategory.rate_limit)


def handle_error(exc: BaseException, ctx: ErrorContext) -> ErrorCategory:
    """Log with context and return the category. Never raises."""
    cat = categorize_error(exc)
    log.error(
        "[%s] %s failed source=%s listing=%s: %s %s",
        cat.value,
        ctx.operation,
        ctx.source,
        ctx.listing_id,
        type(exc).__name__,
        exc,
        extra={"error_category": cat.value, "metadata": ctx.metadata},
    )
    return cat


async def retry_with_backoff(
    op: Callable[[], Awaitable[T]],
    ctx: ErrorContext,
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    retryable: Callable[[BaseException], bool] = is_retryable,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Await `op` up to `max_retries` times, sleeping `base_delay * 2**attempt`
    between attempts. The last error (or the first one `retryable` rejects) is
    logged through `handle_error` and re-raised.
    """
    last_exc: BaseException | None = None
    for attempt in range(max_retries):
        try:
            return await op()
        except Exception as e:
            last_exc = e
            if not retryable(e) or attempt >= max_retries - 1:
                handle_error(e, ctx)
                raise
            delay = base_delay * (2**attempt)
            log.warning("%s retry %d/%d in %.2fs: %s", ctx.operation, attempt + 1, max_retries, delay, e)
            await sleep(delay)

    assert last_exc is not None
    raise last_exc
