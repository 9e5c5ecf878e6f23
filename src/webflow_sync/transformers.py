"""Document Transformation Module

Maps Webflow collection items into the flat search documents stored in
Algolia, and folds category items into the id -> name map used to resolve
category references.

Both functions are pure: no I/O and no logging.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .models import CmsItem, SearchDocument

CategoryMap = Dict[str, str]

# Bulk exports and webhook payloads carry different image fields
BULK_IMAGE_FIELD = "thumbnail-image"
WEBHOOK_IMAGE_FIELD = "main-image"


def build_category_map(categories: Iterable[Mapping[str, Any]]) -> CategoryMap:
    """Fold category items into ``{_id: name}``.

    Ids that appear more than once keep the name of the last occurrence.
    """
    category_map: CategoryMap = {}
    for category in categories:
        category_map[category.get("_id")] = category.get("name")
    return category_map


def resolve_category_names(
    category_ids: Optional[List[Optional[str]]],
    category_map: Mapping[str, str],
) -> List[Optional[str]]:
    """Translate category ids into names.

    Returns [] when the item has no categories. Unknown or missing ids map to None
    so the output always has one entry per input id.
    """
    if not category_ids:
        return []
    return [category_map.get(category_id) for category_id in category_ids]


def _image_url(item: CmsItem, image_field: str) -> Optional[str]:
    image = item.main_image if image_field == WEBHOOK_IMAGE_FIELD else item.thumbnail_image
    if image is None:
        return None
    return image.url


def to_search_document(
    item: Union[CmsItem, Mapping[str, Any]],
    category_map: Mapping[str, str],
    image_field: str = BULK_IMAGE_FIELD,
) -> SearchDocument:
    """Convert one Webflow item into a SearchDocument.

    Args:
        item: CmsItem or the raw item dict as returned by Webflow
        category_map: Category id -> name lookup
        image_field: Which image field supplies ``image``
            ("thumbnail-image" for bulk pages, "main-image" for webhooks)

    Returns:
        SearchDocument whose objectID mirrors the item's ``_id``

    Raises:
        pydantic.ValidationError: If a raw dict has fields of the wrong type
    """
    if not isinstance(item, CmsItem):
        item = CmsItem.model_validate(item)

    return SearchDocument(
        object_id=item.id,
        name=item.name,
        slug=item.slug,
        summary=item.summary,
        categories=resolve_category_names(item.categories, category_map),
        image=_image_url(item, image_field),
    )
