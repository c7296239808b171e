import pytest

from ecostore_admin.models.draft_store import DraftStore
from ecostore_admin.models.product import ProductRecord
from ecostore_admin.services.file_stager import FileStager


def backend_product(**overrides):
    doc = {
        "_id": "p-42",
        "title": "Kraft Gift Box",
        "description": "Reusable box with seed paper tag",
        "originalPrice": 499,
        "discountPercent": 15,
        "stock": 7,
        "category": "Gift Sets",
        "tags": ["gift", "kraft", "eco"],
        "isTopPick": True,
        "isTrending": False,
        "images": ["img/a.jpg", "img/b.jpg", "img/c.jpg"],
    }
    doc.update(overrides)
    return ProductRecord.from_dict(doc)


@pytest.fixture
def store(tmp_path):
    return DraftStore(FileStager(tmp_path / "previews", max_bytes=1_000_000))


@pytest.fixture
def loaded(store):
    store.load(backend_product())
    return store


def test_load_seeds_fields_and_images(loaded):
    d = loaded.draft
    assert d.title == "Kraft Gift Box"
    assert d.original_price == 499.0
    assert d.discount_percent == 15.0
    assert d.category == "Gift Sets"
    assert d.tags == "gift, kraft, eco"
    assert d.is_top_pick is True
    assert loaded.images.current == ["img/a.jpg", "img/b.jpg", "img/c.jpg"]
    assert loaded.images.pending_delete == []
    assert not loaded.has_unsaved_changes()


def test_record_accepts_wrapped_document():
    rec = ProductRecord.from_dict({"product": {"_id": "x1", "title": "Pencil", "images": "one.jpg"}})
    assert rec.id == "x1"
    assert rec.images == ["one.jpg"]


@pytest.mark.parametrize("body", [None, ["x"], "text", 3])
def test_record_rejects_non_object_body(body):
    with pytest.raises(ValueError):
        ProductRecord.from_dict(body)


def test_tags_round_trip_to_list(loaded):
    loaded.update("tags", " gift,, eco ,gift, wrapping ")
    assert loaded.build_payload(include_images=False)["tags"] == ["gift", "eco", "wrapping"]


def test_update_clears_inline_error_for_that_field_only(store):
    store.validate_all()
    assert {"title", "description", "original_price", "stock", "category"} <= set(store.errors)

    assert store.update("title", "Jute Journal") is None
    assert "title" not in store.errors
    # other fields keep their errors until they change
    assert "description" in store.errors

    assert store.update("stock", "-2") is not None
    assert "stock" in store.errors


def test_errors_shown_only_for_touched_fields(store):
    store.update("title", "")
    assert set(store.visible_errors) == {"title"}
    store.validate_all()
    assert "category" in store.visible_errors


def test_unknown_field_rejected(store):
    with pytest.raises(KeyError):
        store.update("colour", "green")


def test_flag_fields_are_normalized(store):
    store.update("is_trending", "true")
    store.update("is_top_pick", "0")
    assert store.draft.is_trending is True
    assert store.draft.is_top_pick is False


def test_mark_and_restore_round_trip(loaded):
    before_current = list(loaded.images.current)
    before_pending = list(loaded.images.pending_delete)

    loaded.mark_for_deletion("img/b.jpg")
    assert "img/b.jpg" not in loaded.images.current
    assert loaded.images.pending_delete == ["img/b.jpg"]

    loaded.restore("img/b.jpg")
    assert loaded.images.current == before_current
    assert loaded.images.pending_delete == before_pending


def test_reference_never_in_both_collections(loaded):
    for ref in ["img/a.jpg", "img/c.jpg"]:
        loaded.mark_for_deletion(ref)
        assert not set(loaded.images.current) & set(loaded.images.pending_delete)
    loaded.restore("img/a.jpg")
    assert not set(loaded.images.current) & set(loaded.images.pending_delete)
    assert sorted(loaded.images.current + loaded.images.pending_delete) == ["img/a.jpg", "img/b.jpg", "img/c.jpg"]


def test_unknown_refs_are_errors(loaded):
    with pytest.raises(ValueError):
        loaded.mark_for_deletion("img/zzz.jpg")
    with pytest.raises(ValueError):
        loaded.restore("img/a.jpg")


def test_unsaved_changes_tracking(loaded, staged_file):
    loaded.update("stock", 7)
    assert not loaded.has_unsaved_changes()

    loaded.update("stock", "8")
    assert loaded.has_unsaved_changes()
    loaded.update("stock", 7)
    assert not loaded.has_unsaved_changes()

    loaded.mark_for_deletion("img/a.jpg")
    assert loaded.has_unsaved_changes()
    loaded.restore("img/a.jpg")
    assert not loaded.has_unsaved_changes()

    loaded.stage_files([staged_file()])
    assert loaded.has_unsaved_changes()
    loaded.remove_staged_file(0)
    assert not loaded.has_unsaved_changes()


def test_payload_for_edit_carries_current_images(loaded):
    loaded.mark_for_deletion("img/a.jpg")
    payload = loaded.build_payload(include_images=True)
    assert payload["images"] == ["img/b.jpg", "img/c.jpg"]
    assert payload["originalPrice"] == 499.0
    assert payload["discountPercent"] == 15
    assert payload["stock"] == 7
    assert payload["isTopPick"] is True
    assert "images" not in loaded.build_payload(include_images=False)


def test_restores_in_any_order_rebuild_loaded_ordering(loaded):
    loaded.mark_for_deletion("img/a.jpg")
    loaded.mark_for_deletion("img/b.jpg")
    loaded.restore("img/a.jpg")
    loaded.restore("img/b.jpg")
    assert loaded.images.current == ["img/a.jpg", "img/b.jpg", "img/c.jpg"]

    loaded.mark_for_deletion("img/c.jpg")
    loaded.mark_for_deletion("img/a.jpg")
    loaded.restore("img/c.jpg")
    assert loaded.images.current == ["img/b.jpg", "img/c.jpg"]
    loaded.restore("img/a.jpg")
    assert loaded.images.current == ["img/a.jpg", "img/b.jpg", "img/c.jpg"]


@pytest.mark.parametrize("field,value", [
    ("stock", "7"),
    ("stock", " 7 "),
    ("original_price", "499"),
    ("original_price", "499.0"),
    ("discount_percent", "15"),
    ("tags", "gift, kraft, eco"),
    ("tags", ["gift", "kraft", "eco"]),
    ("is_top_pick", "true"),
    ("category", "Gift Sets"),
])
def test_form_strings_equal_to_loaded_values_are_not_changes(loaded, field, value):
    loaded.update(field, value)
    assert not loaded.has_unsaved_changes()


def test_typed_change_after_mark_saved(store):
    store.update("stock", "3")
    assert store.has_unsaved_changes()
    store.mark_saved()
    store.update("stock", 3)
    assert not store.has_unsaved_changes()
    store.update("stock", "")
    assert store.has_unsaved_changes()
