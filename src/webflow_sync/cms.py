"""Webflow CMS Client Module

Reads collection items from the Webflow v1 REST API and pages through whole
collections.

Key features:
  - Offset pagination with a fixed page size (Webflow's maximum is 100)
  - Every page request goes through a shared RateLimiter
  - Per-page retry with exponential backoff at the same offset (tenacity)
"""

import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    wait_exponential,
)

from .config import DEFAULT_BASE_URL, DEFAULT_MAX_ATTEMPTS, DEFAULT_PAGE_SIZE
from .errors import CmsApiError, FetchRetriesExhausted
from .ratelimit import RateLimiter

logger = logging.getLogger(__name__)

WEBFLOW_API_VERSION = "1.0.0"
REQUEST_TIMEOUT_S = 30.0

Item = Dict[str, Any]


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently a failed page fetch is retried.

    ``max_attempts=None`` retries forever.
    """
    max_attempts: Optional[int] = DEFAULT_MAX_ATTEMPTS
    initial_wait: float = 0.5
    max_wait: float = 30.0


class WebflowClient:
    """Thin async wrapper over the collection items endpoint."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "accept-version": WEBFLOW_API_VERSION,
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def get_items(self, collection_id: str, limit: int, offset: int) -> List[Item]:
        """Fetch one page of collection items.

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses
            CmsApiError: If the response body has no ``items`` list
        """
        response = await self._client.get(
            f"/collections/{collection_id}/items",
            params={"limit": limit, "offset": offset},
        )
        response.raise_for_status()

        payload = response.json()
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            logger.error(
                "Webflow response for collection %s (offset=%d) has no items list",
                collection_id,
                offset,
            )
            raise CmsApiError(
                f"Unexpected response for collection {collection_id}: missing 'items'"
            )
        return items

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "WebflowClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def _retrying(policy: RetryPolicy, collection_id: str, offset: int) -> AsyncRetrying:
    def log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "Webflow API error for collection %s at offset %d (attempt %d): %s",
            collection_id,
            offset,
            retry_state.attempt_number,
            retry_state.outcome.exception(),
        )

    stop = stop_after_attempt(policy.max_attempts) if policy.max_attempts else stop_never
    return AsyncRetrying(
        stop=stop,
        wait=wait_exponential(multiplier=policy.initial_wait, max=policy.max_wait),
        retry=retry_if_exception_type(Exception),
        before_sleep=log_retry,
    )


async def fetch_page(
    client: WebflowClient,
    collection_id: str,
    offset: int,
    *,
    limiter: RateLimiter,
    page_size: int = DEFAULT_PAGE_SIZE,
    retry: RetryPolicy = RetryPolicy(),
) -> List[Item]:
    """Fetch one page through the limiter, retrying at the same offset.

    Raises:
        FetchRetriesExhausted: When every allowed attempt failed
    """
    try:
        async for attempt in _retrying(retry, collection_id, offset):
            with attempt:
                return await limiter.schedule(
                    lambda: client.get_items(collection_id, page_size, offset)
                )
    except RetryError as e:
        last_error = e.last_attempt.exception()
        logger.error(
            "Giving up on collection %s at offset %d after %d attempts: %s",
            collection_id,
            offset,
            e.last_attempt.attempt_number,
            last_error,
        )
        raise FetchRetriesExhausted(
            collection_id, offset, e.last_attempt.attempt_number
        ) from last_error


async def iter_collection_pages(
    client: WebflowClient,
    collection_id: str,
    *,
    limiter: RateLimiter,
    page_size: int = DEFAULT_PAGE_SIZE,
    retry: RetryPolicy = RetryPolicy(),
) -> AsyncIterator[List[Item]]:
    """Yield a collection's items one page at a time.

    Stops after the first page holding fewer than ``page_size`` items, so a
    collection whose size is a multiple of the page size ends with an
    empty page.

    Raises:
        ValueError: If ``page_size`` is below 1
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    offset = 0
    while True:
        items = await fetch_page(
            client,
            collection_id,
            offset,
            limiter=limiter,
            page_size=page_size,
            retry=retry,
        )
        logger.debug(
            "Fetched %d items from collection %s at offset %d",
            len(items),
            collection_id,
            offset,
        )
        yield items

        if len(items) < page_size:
            break
        offset += page_size
        logger.info("Fetching more items from collection %s at offset %d", collection_id, offset)


async def fetch_all_items(
    client: WebflowClient,
    collection_id: str,
    *,
    limiter: RateLimiter,
    page_size: int = DEFAULT_PAGE_SIZE,
    retry: RetryPolicy = RetryPolicy(),
) -> List[Item]:
    """Page through a whole collection and return every item in arrival order."""
    items: List[Item] = []
    async for page in iter_collection_pages(
        client,
        collection_id,
        limiter=limiter,
        page_size=page_size,
        retry=retry,
    ):
        items.extend(page)
    return items
