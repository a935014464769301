"""Pooled httpx client for outbound provider calls (Twilio).

    from storefront.http_client import get_async_client, request_with_retry

    client = await get_async_client()
    response = await request_with_retry(client, "GET", url, auth=(key, secret))

The client is created on first use and closed by the application lifespan
through close_clients().
"""

import asyncio
import os
import random
import threading
from typing import Optional

import httpx

from storefront.logging_config import get_logger

logger = get_logger(__name__)


MAX_CONNECTIONS = int(os.environ.get("HTTP_MAX_CONNECTIONS", "50"))
MAX_KEEPALIVE = int(os.environ.get("HTTP_MAX_KEEPALIVE", "10"))

# Seconds
CONNECT_TIMEOUT = float(os.environ.get("HTTP_CONNECT_TIMEOUT", "10.0"))
IO_TIMEOUT = float(os.environ.get("HTTP_IO_TIMEOUT", "30.0"))
POOL_TIMEOUT = float(os.environ.get("HTTP_POOL_TIMEOUT", "10.0"))


_client: Optional[httpx.AsyncClient] = None
# asyncio.Lock binds to a running loop, so it is built lazily under a thread lock
_client_lock: Optional[asyncio.Lock] = None
_client_lock_guard = threading.Lock()


def _lock() -> asyncio.Lock:
    global _client_lock
    with _client_lock_guard:
        if _client_lock is None:
            _client_lock = asyncio.Lock()
        return _client_lock


def _build_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=CONNECT_TIMEOUT,
            read=IO_TIMEOUT,
            write=IO_TIMEOUT,
            pool=POOL_TIMEOUT,
        ),
        limits=httpx.Limits(
            max_connections=MAX_CONNECTIONS,
            max_keepalive_connections=MAX_KEEPALIVE,
            keepalive_expiry=30.0,
        ),
        http2=True,
        follow_redirects=True,
    )


async def get_async_client() -> httpx.AsyncClient:
    """Return the shared client, creating it if needed."""
    global _client
    if _client is not None and not _client.is_closed:
        return _client

    async with _lock():
        if _client is None or _client.is_closed:
            _client = _build_client()
            logger.debug(f"Created shared HTTP client (max_connections={MAX_CONNECTIONS})")
        return _client


async def close_clients() -> None:
    """Close the shared client on shutdown."""
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
        logger.info("Closed shared HTTP client")
    _client = None


# =============================================================================
# Retries
# =============================================================================

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_RETRY_BACKOFF = 2.0
DEFAULT_RETRY_MAX_DELAY = 30.0


def _wait_for(response: httpx.Response, delay: float, max_delay: float) -> float:
    """Seconds to wait before retrying: Retry-After if given, else delay plus jitter."""
    retry_after = response.headers.get("Retry-After")
    if retry_after:
        try:
            return min(float(retry_after), max_delay)
        except ValueError:
            return min(delay, max_delay)
    return min(delay * (1 + random.uniform(0.1, 0.25)), max_delay)


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    retry_on: frozenset[int] = RETRYABLE_STATUS_CODES,
    retry_delay: float = DEFAULT_RETRY_DELAY,
    retry_backoff: float = DEFAULT_RETRY_BACKOFF,
    retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY,
    **kwargs,
) -> httpx.Response:
    """Send a request, retrying rate limits, server errors and network failures.

    Args:
        client: Client to send with
        method: HTTP method
        url: Request URL
        max_retries: Retries after the first attempt
        retry_on: Status codes worth retrying
        retry_delay: First backoff delay in seconds
        retry_backoff: Backoff multiplier
        retry_max_delay: Upper bound for any single wait
        **kwargs: Passed to client.request()

    Raises:
        httpx.HTTPStatusError: Non-retryable status, or retries exhausted
        httpx.RequestError: Network failure on the last attempt
    """
    delay = retry_delay
    attempts = max_retries + 1

    for attempt in range(1, attempts + 1):
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            if attempt == attempts:
                raise
            logger.warning(
                f"{method} {url} failed with {type(e).__name__}, "
                f"retrying in {delay:.1f}s ({attempt}/{attempts})"
            )
            await asyncio.sleep(delay)
            delay = min(delay * retry_backoff, retry_max_delay)
            continue

        if response.status_code < 400:
            return response
        if response.status_code not in retry_on or attempt == attempts:
            response.raise_for_status()

        wait = _wait_for(response, delay, retry_max_delay)
        logger.warning(
            f"{method} {url} returned {response.status_code}, "
            f"retrying in {wait:.1f}s ({attempt}/{attempts})"
        )
        await asyncio.sleep(wait)
        delay = min(delay * retry_backoff, retry_max_delay)

    raise httpx.RequestError(f"{method} {url} failed after {attempts} attempts")
