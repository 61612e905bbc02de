from __future__ import annotations

import gc
import os

import pytest

from core.album import Album
from core.display_object import DisplayObject, Size, calculate_width_and_height
from core.enums import (
    INT_MIN,
    DisplayObjectType,
    FlipAxis,
    GalleryObjectType,
    MimeTypeCategory,
    RotateFlip,
)


@pytest.mark.parametrize(
    ("size", "max_length", "auto_enlarge", "expected"),
    [
        (Size(1600, 1200), 115, False, Size(115, 86)),
        (Size(1200, 1600), 115, False, Size(86, 115)),
        (Size(50, 40), 115, False, Size(50, 40)),
        (Size(50, 40), 115, True, Size(115, 92)),
        (Size(115, 20), 115, False, Size(115, 20)),
        (Size(5000, 1), 100, False, Size(100, 1)),
        (Size.EMPTY, 115, False, Size.EMPTY),
    ],
)
def test_calculate_width_and_height(size, max_length, auto_enlarge, expected):
    assert calculate_width_and_height(size, max_length, auto_enlarge) == expected


def test_unmeasured_display_object_reports_empty_size():
    display_object = DisplayObject(None, DisplayObjectType.Thumbnail)

    assert display_object.get_size() is Size.EMPTY
    assert display_object.parent.is_null
    assert display_object.media_object_id == INT_MIN


def test_external_display_object_has_no_size():
    display_object = DisplayObject.create_external(None, "<embed />", MimeTypeCategory.Audio)
    display_object.width = 320
    display_object.height = 240

    assert display_object.is_external
    assert display_object.get_size() is Size.EMPTY
    assert display_object.mime_type.category is MimeTypeCategory.Audio


def test_display_object_does_not_keep_its_owner_alive():
    owner = Album(None)
    thumbnail = owner.thumbnail

    del owner
    gc.collect()

    assert thumbnail.parent.is_null


def test_assign_file_and_copy(root_album, add_image):
    image = add_image(root_album, "a.jpg")
    copy = image.thumbnail.copy_to(root_album)

    assert copy.parent is root_album
    assert copy.file_name_physical_path == image.thumbnail.file_name_physical_path
    assert copy.get_size() == image.thumbnail.get_size()
    assert copy.creator is not image.thumbnail.creator

    copy.assign_file("/elsewhere/b.jpg", 0)
    assert copy.file_name == "b.jpg"
    assert copy.file_size_kb == 1


@pytest.mark.parametrize(
    "attribute", ["regenerate_thumbnail_on_save", "regenerate_optimized_on_save"]
)
def test_regenerate_flags_recreate_missing_renditions(root_album, add_image, attribute):
    image = add_image(root_album, "a.jpg", size=(1600, 1200))
    thumbnail = image.thumbnail.file_name_physical_path
    optimized = image.optimized.file_name_physical_path
    os.remove(thumbnail)
    os.remove(optimized)

    setattr(image, attribute, True)
    image.save()

    recreated = thumbnail if attribute == "regenerate_thumbnail_on_save" else optimized
    assert os.path.exists(recreated)
    assert not getattr(image, attribute)


@pytest.mark.parametrize(
    ("rotate_flip", "degrees", "flip"),
    [
        (RotateFlip.NotSpecified, 0, FlipAxis.NONE),
        (RotateFlip.Rotate0FlipNone, 0, FlipAxis.NONE),
        (RotateFlip.Rotate90FlipX, 90, FlipAxis.X),
        (RotateFlip.Rotate180FlipY, 180, FlipAxis.Y),
        (RotateFlip.Rotate270FlipNone, 270, FlipAxis.NONE),
    ],
)
def test_rotate_flip_parts(rotate_flip, degrees, flip):
    assert rotate_flip.degrees == degrees
    assert rotate_flip.flip is flip
    if rotate_flip is not RotateFlip.NotSpecified:
        assert RotateFlip.compose(degrees, flip) is rotate_flip


def test_rotate_flip_compose_wraps_full_turns():
    assert RotateFlip.compose(450, FlipAxis.NONE) is RotateFlip.Rotate90FlipNone
    assert RotateFlip.compose(-90, FlipAxis.Y) is RotateFlip.Rotate270FlipY


@pytest.mark.parametrize(
    ("filter_type", "object_type", "expected"),
    [
        (GalleryObjectType.All, GalleryObjectType.Album, True),
        (GalleryObjectType.MediaObject, GalleryObjectType.Video, True),
        (GalleryObjectType.MediaObject, GalleryObjectType.Album, False),
        (GalleryObjectType.Image, GalleryObjectType.Image, True),
        (GalleryObjectType.Image, GalleryObjectType.Audio, False),
    ],
)
def test_gallery_object_type_filter(filter_type, object_type, expected):
    assert filter_type.matches(object_type) is expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("image", MimeTypeCategory.Image),
        (" VIDEO ", MimeTypeCategory.Video),
        ("", MimeTypeCategory.NotSet),
        ("text", MimeTypeCategory.Other),
    ],
)
def test_mime_type_category_parse(text, expected):
    assert MimeTypeCategory.parse(text) is expected
