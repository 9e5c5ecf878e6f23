"""
Bulk Sync Pipeline

Full re-index of a Webflow collection into Algolia.

Steps:
1. Resolve categories (always fetched fresh, never cached)
2. Page through the collection; transform each page and start its batch
   write right away, one batch per page, without waiting for earlier writes
3. Wait for every batch write and report the outcome

Batch write failures are logged and counted, never retried; the run keeps
going and reports them in the returned SyncSummary.
"""

import asyncio
import logging
import time
from contextlib import aclosing
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .categories import CategoryResolver
from .cms import RetryPolicy, WebflowClient, iter_collection_pages
from .config import DEFAULT_PAGE_SIZE, Settings
from .index import IndexWriter, create_search_client
from .models import SearchDocument, SyncSummary
from .ratelimit import RateLimiter
from .transformers import BULK_IMAGE_FIELD, CategoryMap, to_search_document

logger = logging.getLogger(__name__)


def transform_page(
    items: List[Dict[str, Any]],
    category_map: CategoryMap,
    summary: SyncSummary,
) -> List[SearchDocument]:
    """Transform one page of items, skipping items that fail validation."""
    documents: List[SearchDocument] = []
    for item in items:
        try:
            documents.append(
                to_search_document(item, category_map, image_field=BULK_IMAGE_FIELD)
            )
        except ValidationError as e:
            logger.warning(
                "Skipping item _id=%r: invalid field types (%d errors)",
                item.get("_id"),
                e.error_count(),
            )
            summary.skipped += 1
    return documents


async def run_bulk_sync(
    client: WebflowClient,
    writer: IndexWriter,
    *,
    collection_id: str,
    categories_collection_id: str,
    limiter: RateLimiter,
    page_size: int = DEFAULT_PAGE_SIZE,
    retry: RetryPolicy = RetryPolicy(),
    dry_run: bool = False,
    limit: Optional[int] = None,
) -> SyncSummary:
    """
    Re-index every item of ``collection_id``.

    Args:
        client: Webflow client used for categories and items
        writer: Index writer receiving one batch per page
        collection_id: Collection whose items are indexed
        categories_collection_id: Collection holding category items
        limiter: Shared limiter for every Webflow call
        page_size: Items per Webflow page and per Algolia batch
        retry: Per-page retry policy
        dry_run: Fetch and transform but skip index writes
        limit: Stop after this many documents (None = all)

    Returns:
        SyncSummary with page/item/batch counters

    Raises:
        FetchRetriesExhausted: If a page could not be fetched. Batch writes
            already started are awaited before the error propagates.
    """
    job_start = time.time()
    summary = SyncSummary()

    # ========== STEP 1: CATEGORIES ==========
    logger.info("STEP 1/3: Resolving categories from collection %s", categories_collection_id)
    resolver = CategoryResolver(
        client,
        categories_collection_id,
        limiter=limiter,
        page_size=page_size,
        retry=retry,
    )
    category_map = await resolver.resolve_categories()
    summary.categories = len(category_map)

    # ========== STEP 2: FETCH, TRANSFORM, SUBMIT ==========
    t1 = time.time()
    logger.info("STEP 2/3: Fetching items from collection %s", collection_id)

    tasks: List[asyncio.Task] = []
    try:
        async with aclosing(
            iter_collection_pages(
                client,
                collection_id,
                limiter=limiter,
                page_size=page_size,
                retry=retry,
            )
        ) as pages:
            async for page in pages:
                summary.pages += 1
                summary.items += len(page)

                documents = transform_page(page, category_map, summary)
                if limit is not None:
                    documents = documents[: max(0, limit - summary.submitted)]

                if documents:
                    summary.submitted += len(documents)
                    if dry_run:
                        logger.info("DRY RUN: skipping write of %d documents", len(documents))
                    else:
                        logger.info(
                            "Submitting batch %d (%d documents)",
                            len(tasks) + 1,
                            len(documents),
                        )
                        tasks.append(asyncio.create_task(writer.upsert_batch(documents)))

                if limit is not None and summary.submitted >= limit:
                    logger.info("Reached limit of %d documents", limit)
                    break
    except Exception:
        if tasks:
            logger.warning(
                "Fetch failed; waiting for %d in-flight batch writes before aborting",
                len(tasks),
            )
            await asyncio.gather(*tasks, return_exceptions=True)
        raise

    logger.info(
        "✓ Fetched %d items in %d pages in %.2fs (submitted=%d, skipped=%d)",
        summary.items,
        summary.pages,
        time.time() - t1,
        summary.submitted,
        summary.skipped,
    )

    # ========== STEP 3: WAIT FOR WRITES ==========
    t2 = time.time()
    logger.info("STEP 3/3: Waiting for %d batch writes", len(tasks))
    results = await asyncio.gather(*tasks)
    summary.batches_ok = sum(1 for ok in results if ok)
    summary.batches_failed = len(results) - summary.batches_ok

    if summary.batches_failed:
        logger.error(
            "%d of %d batch writes failed",
            summary.batches_failed,
            len(results),
        )
    else:
        logger.info("✓ %d batch writes completed in %.2fs", len(results), time.time() - t2)

    summary.duration_seconds = time.time() - job_start
    return summary


async def run_pipeline(
    settings: Settings,
    *,
    dry_run: bool = False,
    limit: Optional[int] = None,
) -> SyncSummary:
    """Build the clients from settings, run one bulk sync and close them."""
    limiter = RateLimiter(settings.bulk_min_interval_ms)
    retry = RetryPolicy(max_attempts=settings.max_attempts)
    writer = IndexWriter(create_search_client(settings), settings.index_name)

    try:
        async with WebflowClient(
            settings.webflow_token,
            base_url=settings.webflow_base_url,
        ) as client:
            return await run_bulk_sync(
                client,
                writer,
                collection_id=settings.collection_id,
                categories_collection_id=settings.categories_collection_id,
                limiter=limiter,
                page_size=settings.page_size,
                retry=retry,
                dry_run=dry_run,
                limit=limit,
            )
    finally:
        await writer.close()
