"""Algolia Index Writer Module

Writes search documents to a single Algolia index.

Error contract:
  - upsert_batch never raises: failures are logged and reported as False,
    so one bad batch does not stop a bulk run.
  - upsert_one / delete_one propagate client errors so the webhook can
    answer with a 500.
"""

import logging
from typing import Any, List

from algoliasearch.search.client import SearchClient

from .config import DEFAULT_INDEX_NAME, Settings
from .models import SearchDocument

logger = logging.getLogger(__name__)


def create_search_client(settings: Settings) -> SearchClient:
    """Build the async Algolia search client from settings."""
    return SearchClient(settings.algolia_app_id, settings.algolia_api_key)


class IndexWriter:
    """Upserts and deletes SearchDocuments in one index."""

    def __init__(self, client: Any, index_name: str = DEFAULT_INDEX_NAME):
        self.client = client
        self.index_name = index_name

    async def upsert_batch(self, documents: List[SearchDocument]) -> bool:
        """Save a batch of documents.

        Algolia assigns an objectID to any record without one; ours always
        carry the Webflow item id.

        Returns:
            True if the batch was accepted, False if saving failed
        """
        records = [doc.to_record() for doc in documents]
        try:
            responses = await self.client.save_objects(
                index_name=self.index_name,
                objects=records,
            )
        except Exception:
            logger.exception(
                "Error saving %d objects to Algolia index %s",
                len(records),
                self.index_name,
            )
            return False

        object_ids = [
            object_id
            for response in responses or []
            for object_id in (getattr(response, "object_ids", None) or [])
        ]
        for doc, object_id in zip(documents, object_ids):
            logger.info(
                "%s in %s has been saved to Algolia as %s",
                doc.name,
                doc.categories,
                object_id,
            )
        return True

    async def upsert_one(self, document: SearchDocument) -> str:
        """Save a single document and return its objectID."""
        response = await self.client.save_object(
            index_name=self.index_name,
            body=document.to_record(),
        )
        object_id = getattr(response, "object_id", None) or document.object_id
        logger.info("Saved object %s to Algolia", object_id)
        return object_id

    async def delete_one(self, object_id: str) -> str:
        """Delete a single record by objectID."""
        await self.client.delete_object(
            index_name=self.index_name,
            object_id=object_id,
        )
        logger.info("Deleted object %s from Algolia", object_id)
        return object_id

    async def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()
