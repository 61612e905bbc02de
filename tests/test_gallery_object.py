from __future__ import annotations

import os

import pytest

from core.album import Album
from core.enums import GalleryObjectType, MetadataItemName, RotateFlip
from core.errors import InvalidGalleryObjectError, WritePermissionError
from core.media_object import ImageObject
from core.null_objects import NULL_DISPLAY_OBJECT_CREATOR
from infrastructure.display_object_creators import ImageThumbnailCreator


def test_shell_object_inflates_with_a_single_store_read(root_album, add_image, factory, store):
    saved = add_image(root_album, "beach.jpg")
    shell = ImageObject(
        factory,
        id=saved.id,
        gallery_id=saved.gallery_id,
        parent_id=root_album.id,
        sequence=saved.sequence,
        is_new=False,
    )
    store.load_count = 0

    assert not shell.is_inflated
    _ = shell.title
    _ = shell.date_added
    _ = shell.metadata_items
    _ = shell.is_private

    assert shell.is_inflated
    assert store.load_count == 1
    assert shell.metadata_items.get_visible_items()
    assert shell.original.file_name == "beach.jpg"


def test_loaded_objects_are_read_only_unless_requested(root_album, add_image, factory):
    saved = add_image(root_album)

    read_only = factory.load_media_object(saved.id)
    writable = factory.load_media_object(saved.id, is_writable=True)

    assert not read_only.is_writable
    with pytest.raises(WritePermissionError):
        read_only.title = "New title"
    with pytest.raises(WritePermissionError):
        read_only.save()
    with pytest.raises(WritePermissionError):
        read_only.delete()

    writable.title = "New title"
    assert writable.has_changes


def test_is_writable_can_be_assigned_only_once(root_album, add_image, factory):
    saved = add_image(root_album)
    loaded = factory.load_media_object(saved.id, is_writable=True)

    with pytest.raises(WritePermissionError):
        loaded.is_writable = False
    assert loaded.is_writable


def test_setting_an_unchanged_value_keeps_object_clean(root_album, add_image, factory):
    saved = add_image(root_album)
    loaded = factory.load_media_object(saved.id, is_writable=True)

    loaded.is_private = loaded.is_private
    assert not loaded.has_changes

    loaded.is_private = True
    assert loaded.has_changes

    loaded.save()
    assert not loaded.has_changes
    assert factory.load_media_object(saved.id).is_private


def test_save_fires_listeners_in_order(root_album, factory, make_jpeg):
    path = make_jpeg(f"{root_album.full_physical_path}/listen.jpg")
    media_object = factory.create_media_object_from_file(path, root_album)
    events: list[str] = []
    media_object.saving.append(lambda o: events.append("saving"))
    media_object.saved.append(lambda o: events.append("saved"))
    media_object.created.append(lambda o: events.append(f"created {o.id}"))

    media_object.save()
    media_object.title = "Edited"
    media_object.save()

    assert events == ["saving", "saved", f"created {media_object.id}", "saving", "saved"]


def test_save_records_audit_fields(root_album, factory, make_jpeg):
    path = make_jpeg(f"{root_album.full_physical_path}/audit.jpg")
    media_object = factory.create_media_object_from_file(path, root_album, user_name="alice")

    media_object.save("alice")
    media_object.caption = "Edited"
    media_object.save("bob")

    assert not media_object.is_new
    assert media_object.created_by == "alice"
    assert media_object.last_modified_by == "bob"
    assert media_object.date_last_modified >= media_object.date_added


def test_ordering_uses_sequence_then_id():
    first = Album(None, id=9, sequence=1, is_new=False)
    second = Album(None, id=2, sequence=2, is_new=False)
    third = Album(None, id=5, sequence=2, is_new=False)

    assert first < second
    assert second < third
    assert third.compare_to(second) == 1
    assert first.compare_to(first) == 0
    assert sorted([third, first, second]) == [first, second, third]


def test_parent_resolves_live_then_from_store(root_album, add_image, factory):
    saved = add_image(root_album)

    assert saved.parent is root_album
    assert saved.parent_id == root_album.id

    loaded = factory.load_media_object(saved.id)
    assert loaded.parent.id == root_album.id
    assert loaded.parent.gallery_object_type is GalleryObjectType.Album
    assert root_album.parent.is_null


def test_walk_parents_lists_ancestors_nearest_first(root_album, factory):
    outer = factory.create_album(root_album, "Outer")
    outer.save()
    inner = factory.create_album(outer, "Inner")
    inner.save()

    assert list(inner.walk_parents()) == [outer, root_album]
    assert inner.has_ancestor(root_album)
    assert not root_album.has_ancestor(inner)


def test_albums_have_no_original_file_to_delete(root_album):
    with pytest.raises(InvalidGalleryObjectError):
        root_album.delete_original_file()


@pytest.mark.parametrize(
    ("orientation", "user_rotation", "expected"),
    [
        (None, RotateFlip.NotSpecified, RotateFlip.Rotate0FlipNone),
        (1, RotateFlip.Rotate90FlipNone, RotateFlip.Rotate90FlipNone),
        (2, RotateFlip.NotSpecified, RotateFlip.Rotate0FlipNone),
        (8, RotateFlip.NotSpecified, RotateFlip.Rotate270FlipNone),
        (3, RotateFlip.NotSpecified, RotateFlip.Rotate180FlipNone),
        (6, RotateFlip.NotSpecified, RotateFlip.Rotate90FlipNone),
        (6, RotateFlip.Rotate90FlipNone, RotateFlip.Rotate180FlipNone),
        (8, RotateFlip.Rotate90FlipX, RotateFlip.Rotate0FlipX),
        (3, RotateFlip.Rotate270FlipY, RotateFlip.Rotate90FlipY),
    ],
)
def test_needed_rotation_combines_file_orientation_and_user_rotation(
    root_album, factory, make_jpeg, orientation, user_rotation, expected
):
    path = make_jpeg(f"{root_album.full_physical_path}/rotate.jpg", orientation=orientation)
    media_object = factory.create_media_object_from_file(path, root_album)
    media_object.rotate_flip = user_rotation

    assert media_object.calculate_needed_rotation() is expected


def _observable_state(gallery_object):
    return (
        gallery_object.parent_id,
        gallery_object.sequence,
        gallery_object.is_private,
        gallery_object.title,
        gallery_object.has_changes,
        gallery_object.original.file_name_physical_path,
        [(i.metadata_item_name, i.value, i.is_deleted) for i in gallery_object.metadata_items],
    )


@pytest.mark.parametrize(
    "mutate",
    [
        pytest.param(lambda obj, album: obj.set_parent_to_null(), id="set_parent_to_null"),
        pytest.param(lambda obj, album: setattr(obj, "title", "Changed"), id="title"),
        pytest.param(lambda obj, album: setattr(obj, "is_private", True), id="is_private"),
        pytest.param(lambda obj, album: setattr(obj, "sequence", 99), id="sequence"),
        pytest.param(lambda obj, album: obj.extract_metadata(), id="extract_metadata"),
        pytest.param(lambda obj, album: obj.save(), id="save"),
        pytest.param(lambda obj, album: obj.delete(), id="delete"),
        pytest.param(lambda obj, album: obj.delete_from_gallery(), id="delete_from_gallery"),
        pytest.param(lambda obj, album: obj.move_to(album), id="move_to"),
        pytest.param(lambda obj, album: obj.metadata_items.clear(), id="items_clear"),
        pytest.param(
            lambda obj, album: obj.metadata_items.remove(MetadataItemName.Title),
            id="items_remove",
        ),
        pytest.param(
            lambda obj, album: obj.metadata_items.add(
                obj.metadata_items.get(MetadataItemName.Title).copy()
            ),
            id="items_add",
        ),
        pytest.param(lambda obj, album: obj.metadata_items.add_range([]), id="items_add_range"),
        pytest.param(
            lambda obj, album: setattr(
                obj.metadata_items.get(MetadataItemName.Title), "value", "Changed"
            ),
            id="item_value",
        ),
    ],
)
def test_read_only_object_rejects_every_mutator(root_album, add_image, factory, store, mutate):
    saved = add_image(root_album, "shared.jpg")
    elsewhere = factory.create_album(root_album, "Elsewhere")
    elsewhere.save()
    read_only = factory.load_media_object(saved.id)
    before = _observable_state(read_only)

    with pytest.raises(WritePermissionError):
        mutate(read_only, elsewhere)

    assert _observable_state(read_only) == before
    assert os.path.exists(read_only.original.file_name_physical_path)
    assert store.load(saved.id).parent_id == root_album.id


def test_inflated_shell_gets_rendition_creators(root_album, add_image, factory):
    saved = add_image(root_album, "shell.jpg")
    thumbnail_path = saved.thumbnail.file_name_physical_path
    shell = ImageObject(
        factory,
        id=saved.id,
        gallery_id=saved.gallery_id,
        parent_id=root_album.id,
        sequence=saved.sequence,
        is_new=False,
    )

    shell.inflate()

    assert isinstance(shell.thumbnail.creator, ImageThumbnailCreator)
    assert shell.thumbnail.creator is not NULL_DISPLAY_OBJECT_CREATOR

    os.remove(thumbnail_path)
    shell.is_writable = True
    shell.regenerate_thumbnail_on_save = True
    shell.save()

    assert os.path.exists(shell.thumbnail.file_name_physical_path)
