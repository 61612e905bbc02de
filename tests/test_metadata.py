from __future__ import annotations

import pytest

from core.enums import MetadataItemName, PropertyEditorMode
from core.errors import WritePermissionError
from core.media_object import ImageObject
from core.metadata import MetadataDefinition, MetadataDefinitionCollection, MetaValue


def test_default_definitions_cover_every_item():
    definitions = MetadataDefinitionCollection.default()

    assert all(
        name in definitions
        for name in MetadataItemName
        if name is not MetadataItemName.NotSpecified
    )
    assert next(iter(definitions)).metadata_item is MetadataItemName.Title
    assert definitions.find(MetadataItemName.Title).should_persist_to_file
    assert not definitions.find(MetadataItemName.FileName).should_persist_to_file
    assert definitions.find(MetadataItemName.Orientation).should_persist_to_file


def test_definitions_from_settings_rows():
    definitions = MetadataDefinitionCollection.from_dicts(
        [
            {
                "MetadataItem": int(MetadataItemName.Caption),
                "DisplayName": "CAPTION",
                "IsVisibleForAlbum": True,
                "IsVisibleForGalleryObject": True,
                "UserEditMode": 3,
                "PersistToFile": True,
                "DefaultValue": "{Comment}",
                "Sequence": 1,
            },
            {"Name": "FileName", "UserEditMode": 1, "PersistToFile": True, "Sequence": 0},
            {"MetadataItem": 1, "UserEditMode": 99},
        ]
    )

    caption = definitions.find(MetadataItemName.Caption)
    file_name = definitions.find(MetadataItemName.FileName)
    assert caption.display_name == "CAPTION"
    assert caption.user_edit_mode is PropertyEditorMode.TinyMCEHtmlEditor
    assert caption.is_editable
    assert not file_name.is_editable
    assert file_name.persist_to_file is False
    assert next(iter(definitions)).metadata_item is MetadataItemName.FileName


def test_create_meta_item_fills_template_tokens(root_album, factory):
    image = ImageObject(factory, gallery_id=1)
    image.is_writable = True
    values = {
        MetadataItemName.Width: MetaValue("64 pixels", "64"),
        MetadataItemName.Height: MetaValue("48 pixels", "48"),
    }

    both = image.create_meta_item(
        MetadataDefinition(MetadataItemName.Dimensions, "Size", default_value="{Width} x {Height}"),
        values,
    )
    single = image.create_meta_item(
        MetadataDefinition(MetadataItemName.Width, "Width", default_value="{Width}"), values
    )
    missing = image.create_meta_item(
        MetadataDefinition(MetadataItemName.Author, "Author", default_value="By {Author}"), values
    )

    assert (both.value, both.raw_value) == ("64 pixels x 48 pixels", None)
    assert (single.value, single.raw_value) == ("64 pixels", "64")
    assert (missing.value, missing.raw_value) == ("By ", None)
    assert both.has_changes


def test_extracted_image_metadata(root_album, add_image):
    image = add_image(root_album, "meta.jpg")
    items = image.metadata_items

    assert items.get(MetadataItemName.FileName).value == "meta.jpg"
    assert items.get(MetadataItemName.Width).raw_value == "64"
    assert items.get(MetadataItemName.DateAdded).value
    assert items.contains(MetadataItemName.Title)
    assert items.contains(MetadataItemName.Caption)
    assert not items.contains(MetadataItemName.FileNameWithoutExtension)
    assert items.get(MetadataItemName.FileName).is_visible


def test_disabled_extraction_keeps_only_object_metadata(root_album, factory, make_jpeg, settings):
    settings.enable_metadata_extraction = False
    path = make_jpeg(f"{root_album.full_physical_path}/plain.jpg")

    image = factory.create_media_object_from_file(path, root_album)

    assert not image.metadata_items.contains(MetadataItemName.Width)
    assert not image.metadata_items.contains(MetadataItemName.FileName)
    assert image.metadata_items.get(MetadataItemName.DateAdded).value
    assert image.metadata_items.contains(MetadataItemName.Title)


def test_reextraction_keeps_user_edited_album_title(root_album, factory):
    album = factory.create_album(root_album, "Summer Trip")
    album.title = "Best Summer"

    album.extract_metadata()

    assert album.title == "Best Summer"
    assert album.directory_name == "Summer Trip"


def test_reextraction_keeps_user_edited_values_when_file_has_none(root_album, add_image):
    image = add_image(root_album, "edited.jpg")
    image.caption = "My caption"

    image.extract_metadata()

    assert image.caption == "My caption"


def test_metadata_edit_marks_owner_changed(root_album, add_image, factory):
    saved = add_image(root_album)
    writable = factory.load_media_object(saved.id, is_writable=True)
    read_only = factory.load_media_object(saved.id)

    writable.metadata_items.get(MetadataItemName.Caption).value = "Changed"
    assert writable.has_changes

    with pytest.raises(WritePermissionError):
        read_only.metadata_items.get(MetadataItemName.Caption).value = "Changed"


def test_deleted_items_are_dropped_on_save(root_album, add_image, store):
    image = add_image(root_album)
    image.metadata_items.get(MetadataItemName.FileName).is_deleted = True

    image.save()

    assert not image.metadata_items.contains(MetadataItemName.FileName)
    assert MetadataItemName.FileName not in {m.name for m in store.load(image.id).metadata}


def test_copied_items_belong_to_the_copy(root_album, add_image):
    image = add_image(root_album)
    items = image.metadata_items.copy()

    assert all(i.has_changes for i in items)
    assert [i.metadata_item_name for i in items] == [
        i.metadata_item_name for i in image.metadata_items
    ]


def test_repeated_extraction_gives_the_same_items(root_album, add_image):
    image = add_image(root_album, "twice.jpg")
    image.extract_metadata()
    first = [(i.metadata_item_name, i.value) for i in image.metadata_items]

    image.extract_metadata()
    second = [(i.metadata_item_name, i.value) for i in image.metadata_items]

    names = [name for name, _ in second]
    assert len(names) == len(set(names))
    assert second == first
