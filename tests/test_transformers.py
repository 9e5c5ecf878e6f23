import pytest
from pydantic import ValidationError

from webflow_sync.models import CmsItem
from webflow_sync.transformers import (
    build_category_map,
    resolve_category_names,
    to_search_document,
)


CATEGORY_MAP = {"a": "Alpha", "b": "Beta", "c": "Gamma"}


def sample_item(**overrides):
    item = {
        "_id": "item-1",
        "_cid": "posts",
        "name": "Hello world",
        "slug": "hello-world",
        "post-summary": "A short summary.",
        "categories": ["a", "b"],
        "thumbnail-image": {"fileId": "f1", "url": "https://cdn.example.com/thumb.png"},
        "main-image": {"fileId": "f2", "url": "https://cdn.example.com/main.png"},
        "_archived": False,
    }
    item.update(overrides)
    return item


# --- build_category_map -------------------------------------------------------


def test_build_category_map_keys_by_id():
    categories = [
        {"_id": "a", "name": "Alpha", "slug": "alpha"},
        {"_id": "b", "name": "Beta", "slug": "beta"},
    ]

    assert build_category_map(categories) == {"a": "Alpha", "b": "Beta"}


def test_build_category_map_last_occurrence_wins():
    categories = [
        {"_id": "a", "name": "Old name"},
        {"_id": "b", "name": "Beta"},
        {"_id": "a", "name": "New name"},
    ]

    assert build_category_map(categories) == {"a": "New name", "b": "Beta"}


def test_build_category_map_empty():
    assert build_category_map([]) == {}


# --- resolve_category_names ---------------------------------------------------


def test_resolve_category_names_preserves_order_and_length():
    names = resolve_category_names(["c", "a", "b"], CATEGORY_MAP)
    assert names == ["Gamma", "Alpha", "Beta"]


def test_resolve_category_names_keeps_unknown_ids_as_none():
    """Unknown ids stay in place as None rather than being dropped."""
    names = resolve_category_names(["a", "missing", "b"], CATEGORY_MAP)

    assert len(names) == 3
    assert names == ["Alpha", None, "Beta"]


@pytest.mark.parametrize("value", [None, []])
def test_resolve_category_names_no_categories(value):
    assert resolve_category_names(value, CATEGORY_MAP) == []


# --- to_search_document -------------------------------------------------------


def test_to_search_document_maps_fields():
    doc = to_search_document(sample_item(), CATEGORY_MAP)

    assert doc.to_record() == {
        "objectID": "item-1",
        "name": "Hello world",
        "slug": "hello-world",
        "summary": "A short summary.",
        "categories": ["Alpha", "Beta"],
        "image": "https://cdn.example.com/thumb.png",
    }


def test_to_search_document_webhook_uses_main_image():
    doc = to_search_document(sample_item(), CATEGORY_MAP, image_field="main-image")
    assert doc.image == "https://cdn.example.com/main.png"


def test_to_search_document_without_categories_field():
    item = sample_item()
    del item["categories"]

    doc = to_search_document(item, CATEGORY_MAP)
    assert doc.categories == []


def test_to_search_document_without_image_is_none():
    item = sample_item()
    del item["thumbnail-image"]

    doc = to_search_document(item, CATEGORY_MAP)
    assert doc.image is None


def test_to_search_document_null_image_is_none():
    doc = to_search_document(sample_item(**{"main-image": None}), CATEGORY_MAP, image_field="main-image")
    assert doc.image is None


def test_to_search_document_missing_fields_pass_through_as_none():
    doc = to_search_document({"_id": "only-id"}, CATEGORY_MAP)

    assert doc.object_id == "only-id"
    assert doc.name is None
    assert doc.slug is None
    assert doc.summary is None
    assert doc.categories == []
    assert doc.image is None


def test_to_search_document_accepts_cms_item():
    item = CmsItem.model_validate(sample_item(categories=["b", "zzz"]))

    doc = to_search_document(item, CATEGORY_MAP)
    assert doc.categories == ["Beta", None]


def test_to_search_document_is_deterministic():
    item = sample_item()
    assert to_search_document(item, CATEGORY_MAP) == to_search_document(item, CATEGORY_MAP)


def test_to_search_document_rejects_wrong_field_types():
    with pytest.raises(ValidationError):
        to_search_document(sample_item(categories="a,b"), CATEGORY_MAP)


def test_to_search_document_null_and_non_string_ids_become_none_in_place():
    doc = to_search_document(sample_item(categories=["a", None, 7, "", "c"]), CATEGORY_MAP)

    assert doc.categories == ["Alpha", None, None, None, "Gamma"]
