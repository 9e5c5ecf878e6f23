"""Data Models Module

Defines Pydantic models for the two shapes that flow through the sync:
CMS items as delivered by Webflow (bulk pages or webhook payloads) and the
flat search documents written to Algolia.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImageRef(BaseModel):
    """Webflow image field; only the URL is used."""
    model_config = ConfigDict(extra="allow")

    url: Optional[str] = None


class CmsItem(BaseModel):
    """A Webflow collection item.

    Webflow field slugs (``_id``, ``post-summary``, ``main-image``...) are
    mapped onto Python attribute names through aliases. Fields we do not
    index are kept as extras and ignored.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = Field(default=None, alias="_id")
    collection_id: Optional[str] = Field(default=None, alias="_cid")
    name: Optional[str] = None
    slug: Optional[str] = None
    summary: Optional[str] = Field(default=None, alias="post-summary")
    categories: Optional[List[Optional[str]]] = None
    thumbnail_image: Optional[ImageRef] = Field(default=None, alias="thumbnail-image")
    main_image: Optional[ImageRef] = Field(default=None, alias="main-image")

    @field_validator("categories", mode="before")
    @classmethod
    def blank_unusable_ids(cls, v: Any) -> Any:
        """Replace non-string or empty category ids with None, keeping positions."""
        if isinstance(v, list):
            return [c if isinstance(c, str) and c else None for c in v]
        return v


class SearchDocument(BaseModel):
    """Algolia-ready record.

    ``categories`` keeps one slot per source category id, in source order;
    ids missing from the category map stay in place as ``None``.
    """
    model_config = ConfigDict(populate_by_name=True)

    object_id: Optional[str] = Field(default=None, alias="objectID")
    name: Optional[str] = None
    slug: Optional[str] = None
    summary: Optional[str] = None
    categories: List[Optional[str]] = []
    image: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        """Serialize with Algolia field names (``objectID``)."""
        return self.model_dump(by_alias=True)


class SyncSummary(BaseModel):
    """Counters for one bulk sync run."""
    pages: int = 0
    items: int = 0
    skipped: int = 0
    submitted: int = 0
    batches_ok: int = 0
    batches_failed: int = 0
    categories: int = 0
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.batches_failed == 0
