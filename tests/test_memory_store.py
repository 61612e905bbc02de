from __future__ import annotations

from core.enums import INT_MIN, GalleryObjectType


def test_save_assigns_ids_and_records_fields(root_album, add_image, store):
    image = add_image(root_album, "a.jpg")

    record = store.load(image.id)

    assert image.id != INT_MIN
    assert record.gallery_object_type is GalleryObjectType.Image
    assert record.parent_id == root_album.id
    assert record.original.file_name == "a.jpg"
    assert record.thumbnail.width > 0
    assert all(m.record_id != INT_MIN for m in record.metadata)


def test_loaded_records_are_independent_copies(root_album, store):
    first = store.load(root_album.id)
    first.directory_name = "changed"

    assert store.load(root_album.id).directory_name != "changed"


def test_child_ids_follow_sequence(root_album, factory, store):
    names = ["one", "two", "three"]
    albums = [factory.create_album(root_album, n) for n in names]
    for album in albums:
        album.save()

    assert store.load_child_ids(root_album.id) == [a.id for a in albums]
    assert store.load_child_ids(albums[0].id) == []


def test_missing_records_load_as_none(store, factory):
    assert store.load(12345) is None
    assert factory.load_gallery_object(12345).is_null
    assert factory.load_album(12345).is_null


def test_album_and_media_lookups_reject_the_other_kind(root_album, add_image, factory):
    image = add_image(root_album)

    assert factory.load_album(image.id).is_null
    assert factory.load_media_object(root_album.id).is_null
    assert factory.load_media_object(image.id).id == image.id
