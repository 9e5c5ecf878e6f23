"""Webflow webhook receiver.

Webflow posts one event per item change. Each delivery is classified and
applied on its own:

  - delete events remove the record from Algolia,
  - create/update events for the indexed collection are transformed with
    the cached category map and saved,
  - events for any other collection are acknowledged and ignored.

Every request gets exactly one response: 200 "OK" on success or when the
event is ignored, 500 when the index call or anything else fails.
"""

import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .cache import TTLCache
from .categories import CachedCategoryResolver, CategoryResolver
from .cms import RetryPolicy, WebflowClient
from .config import Settings
from .index import IndexWriter, create_search_client
from .ratelimit import RateLimiter
from .transformers import WEBHOOK_IMAGE_FIELD, to_search_document

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/webhook-endpoint"


class EventKind(str, Enum):
    DELETE = "delete"
    UPSERT = "upsert"
    IGNORE = "ignore"


def classify_event(payload: Mapping[str, Any], target_collection_id: str) -> EventKind:
    """Decide what a webhook payload asks for.

    Raises:
        TypeError: If the payload is not a JSON object
    """
    if not isinstance(payload, Mapping):
        raise TypeError(f"Webhook payload must be a JSON object, got {type(payload).__name__}")
    if payload.get("deleted"):
        return EventKind.DELETE
    if payload.get("_cid") == target_collection_id:
        return EventKind.UPSERT
    return EventKind.IGNORE


def _ok() -> PlainTextResponse:
    return PlainTextResponse("OK", status_code=200)


def create_app(
    *,
    resolver: CachedCategoryResolver,
    writer: IndexWriter,
    collection_id: str,
    lifespan: Optional[Any] = None,
) -> FastAPI:
    """Build the webhook app around already-constructed collaborators."""
    app = FastAPI(title="Webflow to Algolia webhook", version="1.0.0", lifespan=lifespan)
    app.state.resolver = resolver
    app.state.writer = writer

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.post(WEBHOOK_PATH, response_class=PlainTextResponse)
    async def webhook_endpoint(request: Request) -> PlainTextResponse:
        try:
            logger.info("Event received")
            data = await request.json()
            kind = classify_event(data, collection_id)

            if kind is EventKind.DELETE:
                item_id = data.get("itemId")
                logger.info("Delete event: deleting object %s from Algolia", item_id)
                try:
                    await writer.delete_one(item_id)
                except Exception:
                    logger.exception("Error deleting object %s from Algolia", item_id)
                    return PlainTextResponse("Error", status_code=500)
                return _ok()

            if kind is EventKind.UPSERT:
                logger.info("Create or update event for item %s", data.get("_id"))
                category_map = await resolver.resolve_categories()
                document = to_search_document(
                    data, category_map, image_field=WEBHOOK_IMAGE_FIELD
                )
                logger.info(
                    "Saving object to Algolia: %s",
                    document.model_dump_json(by_alias=True),
                )
                try:
                    await writer.upsert_one(document)
                except Exception:
                    logger.exception("Error saving object %s to Algolia", document.object_id)
                    return PlainTextResponse("Error", status_code=500)
                return _ok()

            logger.info(
                "Do nothing, collection %s is not the indexed collection",
                data.get("_cid"),
            )
            return _ok()
        except Exception:
            logger.exception("Error in %s", WEBHOOK_PATH)
            return PlainTextResponse("Internal server error", status_code=500)

    return app


def build_app(settings: Settings) -> FastAPI:
    """Composition root: wire clients, limiter and cache from settings."""
    client = WebflowClient(settings.webflow_token, base_url=settings.webflow_base_url)
    writer = IndexWriter(create_search_client(settings), settings.index_name)
    resolver = CachedCategoryResolver(
        CategoryResolver(
            client,
            settings.categories_collection_id,
            limiter=RateLimiter(settings.webhook_min_interval_ms),
            page_size=settings.page_size,
            retry=RetryPolicy(max_attempts=settings.max_attempts),
        ),
        TTLCache(ttl=settings.cache_ttl),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Webhook receiver ready (collection=%s)", settings.collection_id)
        yield
        await client.aclose()
        await writer.close()

    return create_app(
        resolver=resolver,
        writer=writer,
        collection_id=settings.collection_id,
        lifespan=lifespan,
    )


def app_from_env() -> FastAPI:
    """uvicorn factory: ``uvicorn webflow_sync.webhook:app_from_env --factory``."""
    return build_app(Settings.from_env())
