from __future__ import annotations

import pytest

from core.enums import MimeTypeCategory
from core.errors import InvalidMimeTypeError
from core.mime_type import NULL_MIME_TYPE, MimeType, MimeTypeRegistry
from infrastructure.settings import GallerySettings


@pytest.fixture
def registry():
    return MimeTypeRegistry()


@pytest.mark.parametrize(
    ("name", "full_type", "category"),
    [
        ("holiday.JPG", "image/jpeg", MimeTypeCategory.Image),
        (".JPG", "image/jpeg", MimeTypeCategory.Image),
        ("jpg", "image/jpeg", MimeTypeCategory.Image),
        ("clip.mp4", "video/mp4", MimeTypeCategory.Video),
        ("song.mp3", "audio/mpeg", MimeTypeCategory.Audio),
        ("manual.pdf", "application/pdf", MimeTypeCategory.Other),
        ("notes.xyz", "application/octet-stream", MimeTypeCategory.Other),
    ],
)
def test_load_classifies_by_extension(registry, name, full_type, category):
    mime = registry.load(name)

    assert mime.full_type == full_type
    assert mime.category is category


@pytest.mark.parametrize("name", ["", "   ", None, "no_extension/", "README"])
def test_load_returns_null_mime_type_for_blank_input(registry, name):
    assert registry.load(name) is NULL_MIME_TYPE


def test_loaded_mime_types_are_copies(registry):
    first = registry.load(".jpg")
    first.browser_mime_type = "image/pjpeg"

    assert registry.load(".jpg").browser_mime_type == "image/jpeg"


def test_browser_mime_type_falls_back_to_full_type(registry):
    assert registry.load(".mp2").browser_mime_type == "application/x-mplayer2"
    assert registry.load(".mp3").browser_mime_type == "audio/mpeg"


def test_allowed_extensions(registry):
    assert registry.is_allowed("photo.jpg")
    assert registry.load(".jpg").allow_add_to_gallery
    assert not registry.is_allowed("raw.cr2")
    assert not registry.is_allowed("notes.xyz")


def test_invalid_rows_are_skipped():
    registry = MimeTypeRegistry(rows=[(".good", "image/good", ""), (".bad", "nonsense", "")])

    assert registry.extensions() == [".good"]
    assert registry.load(".bad").category is MimeTypeCategory.Other


def test_invalid_full_type_is_rejected():
    with pytest.raises(InvalidMimeTypeError):
        MimeType("x", "bad")
    with pytest.raises(InvalidMimeTypeError):
        MimeType("x", "image/")


def test_registry_from_settings_replaces_builtin_table():
    settings = GallerySettings(
        mime_types=[[".raw", "image/x-raw", ""]], allowed_extensions=[".raw"]
    )

    registry = MimeTypeRegistry.from_settings(settings)

    assert registry.extensions() == [".raw"]
    assert registry.is_allowed("shot.RAW")


def test_media_template_prefers_most_specific_browser(registry):
    ogg = registry.load("a.oga")

    internet_explorer = ogg.get_media_template(["default", "ie"])
    firefox = ogg.get_media_template(["default", "firefox"])

    assert "Internet Explorer cannot play Ogg" in internet_explorer.html_template
    assert firefox.browser_id == "default"
    assert "<audio" in firefox.html_template


def test_specific_default_template_hides_wildcard(registry):
    wmv = registry.load("movie.wmv")

    templates = list(wmv.media_templates)

    assert [t.mime_type for t in templates] == ["video/x-ms-wmv"]
    assert "<object" in wmv.get_media_template(["default"]).html_template


def test_category_only_mime_type():
    mime = MimeType.for_category(MimeTypeCategory.Video)

    assert mime.category is MimeTypeCategory.Video
    assert mime.full_type == "video/external"
