"""Category Resolution Module

Builds the category id -> name map used to turn an item's category
references into readable names.

``CategoryResolver`` always pages through the whole categories collection;
bulk runs use it so every run starts from a fresh snapshot.
``CachedCategoryResolver`` serves webhook deliveries from a TTL cache and
only refetches once the cached map has expired. Cache population is not
locked: concurrent misses each fetch, and the last one to finish wins.
"""

import logging
import time

from .cache import TTLCache
from .cms import RetryPolicy, WebflowClient, fetch_all_items
from .config import DEFAULT_PAGE_SIZE
from .ratelimit import RateLimiter
from .transformers import CategoryMap, build_category_map

logger = logging.getLogger(__name__)

CACHE_KEY = "categories"


class CategoryResolver:
    """Fetches every category item and folds it into a CategoryMap."""

    def __init__(
        self,
        client: WebflowClient,
        categories_collection_id: str,
        *,
        limiter: RateLimiter,
        page_size: int = DEFAULT_PAGE_SIZE,
        retry: RetryPolicy = RetryPolicy(),
    ):
        self.client = client
        self.collection_id = categories_collection_id
        self.limiter = limiter
        self.page_size = page_size
        self.retry = retry

    async def resolve_categories(self) -> CategoryMap:
        logger.info("Fetching categories from Webflow...")
        t0 = time.time()

        items = await fetch_all_items(
            self.client,
            self.collection_id,
            limiter=self.limiter,
            page_size=self.page_size,
            retry=self.retry,
        )
        category_map = build_category_map(items)

        logger.info(
            "✓ Fetched %d categories (%d items) in %.2fs",
            len(category_map),
            len(items),
            time.time() - t0,
        )
        return category_map


class CachedCategoryResolver:
    """Cache-first wrapper around a CategoryResolver."""

    def __init__(self, resolver: CategoryResolver, cache: TTLCache):
        self.resolver = resolver
        self.cache = cache

    async def resolve_categories(self) -> CategoryMap:
        cached = self.cache.get(CACHE_KEY)
        if cached is not None:
            logger.info("Using cached categories")
            return dict(cached)

        logger.info("No cached categories, fetching from Webflow")
        # Only a complete map is ever stored; a failed fetch leaves the cache empty
        category_map = await self.resolver.resolve_categories()
        self.cache.set(CACHE_KEY, dict(category_map))
        return category_map

    def invalidate(self) -> None:
        self.cache.delete(CACHE_KEY)
