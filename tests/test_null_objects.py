from __future__ import annotations

from core.album import Album
from core.display_object import Size
from core.enums import (
    INT_MIN,
    GalleryObjectType,
    MetadataItemName,
    MimeTypeCategory,
    Orientation,
    RotateFlip,
)
from core.metadata import MetadataItemCollection
from core.null_objects import (
    NULL_DISPLAY_OBJECT,
    NULL_DISPLAY_OBJECT_CREATOR,
    NULL_METADATA_ITEM,
    NULL_MIME_TYPE,
    NullGalleryObject,
    NullMetadataReadWriter,
    NullMimeType,
)


def test_null_gallery_object_is_inert():
    null = NullGalleryObject()

    assert null.is_null
    assert null.gallery_object_type is GalleryObjectType.None_
    assert null.id == INT_MIN
    assert not null.is_writable

    null.is_writable = True
    null.title = "ignored"
    null.is_private = True

    assert not null.is_writable
    assert null.title == ""
    assert not null.is_private
    assert len(null.metadata_items) == 0
    assert null.get_child_gallery_objects() == []


def test_null_parent_is_a_fresh_null_object():
    null = NullGalleryObject()

    first = null.parent
    second = null.parent

    assert first.is_null and second.is_null
    assert first is not second


def test_null_parent_chain_never_ends():
    current = NullGalleryObject()

    for _ in range(500):
        current = current.parent
        assert current.is_null
        assert current.parent_id == INT_MIN


def test_null_gallery_object_has_no_metadata_definitions():
    null = NullGalleryObject()

    assert len(null.metadata_definitions) == 0
    assert list(null.metadata_definitions) == []


def test_null_gallery_object_save_only_notifies():
    null = NullGalleryObject()
    events: list[str] = []
    null.saving.append(lambda _: events.append("saving"))
    null.saved.append(lambda _: events.append("saved"))
    null.created.append(lambda _: events.append("created"))

    null.save()
    null.delete()

    assert events == ["saving", "saved"]


def test_null_gallery_object_rotation_is_not_initialized():
    null = NullGalleryObject()

    assert null.get_orientation() is Orientation.NotInitialized
    assert null.calculate_needed_rotation() is RotateFlip.NotSpecified


def test_real_object_sorts_after_null_and_foreign_values():
    album = Album(None, id=3, sequence=1, is_new=False)

    assert album.compare_to(NullGalleryObject()) == 1
    assert album.compare_to("not a gallery object") == 1


def test_null_display_object_ignores_writes():
    NULL_DISPLAY_OBJECT.width = 640
    NULL_DISPLAY_OBJECT.file_name = "x.jpg"
    NULL_DISPLAY_OBJECT.assign_file("/tmp/x.jpg", 10)

    assert NULL_DISPLAY_OBJECT.width == INT_MIN
    assert NULL_DISPLAY_OBJECT.file_name == ""
    assert NULL_DISPLAY_OBJECT.file_name_physical_path == ""
    assert NULL_DISPLAY_OBJECT.get_size() == Size.EMPTY
    assert NULL_DISPLAY_OBJECT.mime_type is NULL_MIME_TYPE
    assert NULL_DISPLAY_OBJECT.parent.is_null
    assert NULL_DISPLAY_OBJECT.copy_to(NullGalleryObject()) is NULL_DISPLAY_OBJECT


def test_null_metadata_item_is_returned_for_missing_items():
    items = MetadataItemCollection()

    item = items.get(MetadataItemName.Title)
    item.value = "changed"
    item.is_deleted = True

    assert item is NULL_METADATA_ITEM
    assert item.value == ""
    assert not item.is_deleted
    assert not item.has_changes


def test_null_mime_type_and_collaborators():
    assert NULL_MIME_TYPE.full_type == ""
    assert NULL_MIME_TYPE.category is MimeTypeCategory.NotSet
    assert NULL_MIME_TYPE.get_media_template(["default"]).is_no_rendering
    assert NullMetadataReadWriter().read("/no/such/file.jpg") == {}

    NULL_DISPLAY_OBJECT_CREATOR.generate_and_save_file(NULL_DISPLAY_OBJECT)


def test_null_mime_type_copies_are_fresh_null_mime_types():
    copy = NULL_MIME_TYPE.copy()

    assert isinstance(copy, NullMimeType)
    assert copy is not NULL_MIME_TYPE
    assert copy.full_type == ""
