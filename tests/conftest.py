"""Shared fakes for Webflow and Algolia clients."""

import asyncio
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

from webflow_sync.cms import RetryPolicy
from webflow_sync.ratelimit import RateLimiter


BASE_ENV = {
    "WEBFLOW_API_TOKEN": "token",
    "COLLECTION_ID": "posts",
    "CATEGORIES_COLLECTION_ID": "cats",
    "ALGOLIA_APP_ID": "app",
    "ALGOLIA_API_KEY": "key",
}


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWebflowClient:
    """
    Serves collection items from memory and records every page request.

    failures: {(collection_id, offset): n} makes the next n requests for
    that page raise a connection error.
    """

    def __init__(
        self,
        collections: Dict[str, List[dict]],
        failures: Optional[Dict[Tuple[str, int], int]] = None,
    ):
        self.collections = collections
        self.failures = dict(failures or {})
        self.calls: List[Tuple[str, int, int]] = []

    async def get_items(self, collection_id: str, limit: int, offset: int) -> List[dict]:
        self.calls.append((collection_id, limit, offset))
        # yield to the loop like a real request would
        await asyncio.sleep(0)
        key = (collection_id, offset)
        if self.failures.get(key, 0) > 0:
            self.failures[key] -= 1
            raise httpx.ConnectError("simulated network blip")
        return list(self.collections[collection_id][offset:offset + limit])

    def calls_for(self, collection_id: str) -> List[Tuple[str, int, int]]:
        return [c for c in self.calls if c[0] == collection_id]

    async def aclose(self) -> None:
        pass


class BatchResponse:
    def __init__(self, object_ids):
        self.object_ids = object_ids


class SaveObjectResponse:
    def __init__(self, object_id):
        self.object_id = object_id


class RecordingSearchClient:
    """
    Fake Algolia client that records save/delete calls.

    fail_batches: 0-based indexes of save_objects calls that should raise.
    """

    def __init__(self, fail_batches=(), fail_save=False, fail_delete=False):
        self.fail_batches = set(fail_batches)
        self.fail_save = fail_save
        self.fail_delete = fail_delete
        self.batches: List[List[dict]] = []
        self.saved: List[dict] = []
        self.deleted: List[str] = []
        self.closed = False

    async def save_objects(self, index_name, objects):
        call_idx = len(self.batches)
        self.batches.append(list(objects))
        if call_idx in self.fail_batches:
            raise RuntimeError("Simulated Algolia batch error")
        return [BatchResponse([o.get("objectID") for o in objects])]

    async def save_object(self, index_name, body):
        self.saved.append(body)
        if self.fail_save:
            raise RuntimeError("Simulated Algolia save error")
        return SaveObjectResponse(body.get("objectID"))

    async def delete_object(self, index_name, object_id):
        self.deleted.append(object_id)
        if self.fail_delete:
            raise RuntimeError("Simulated Algolia delete error")

    async def close(self):
        self.closed = True


def make_items(n: int, prefix: str = "item", categories=None) -> List[dict]:
    return [
        {
            "_id": f"{prefix}-{i}",
            "name": f"Post {i}",
            "slug": f"post-{i}",
            "post-summary": f"Summary {i}",
            "categories": list(categories) if categories is not None else None,
        }
        for i in range(n)
    ]


@pytest.fixture
def no_wait_retry():
    return RetryPolicy(max_attempts=3, initial_wait=0, max_wait=0)


@pytest.fixture
def limiter():
    return RateLimiter(0)
