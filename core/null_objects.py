"""Null objects returned in place of missing entities.

Lookups that find nothing hand back one of these instead of None. They are
inert: reads return empty values, writes are ignored and saving or deleting
touches neither the store nor the file system.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from core.display_object import DisplayObject, Size
from core.enums import INT_MIN, DisplayObjectType, GalleryObjectType, MetadataItemName, Orientation
from core.gallery_object import GalleryObject
from core.metadata import (
    MetadataDefinition,
    MetadataDefinitionCollection,
    MetadataItem,
    MetadataItemCollection,
    MetaValue,
)
from core.mime_type import NULL_MIME_TYPE, NullMimeType

if TYPE_CHECKING:
    from core.album import Album

__all__ = [
    "NULL_DISPLAY_OBJECT",
    "NULL_DISPLAY_OBJECT_CREATOR",
    "NULL_METADATA_ITEM",
    "NULL_MIME_TYPE",
    "NullDisplayObject",
    "NullDisplayObjectCreator",
    "NullGalleryObject",
    "NullMetadataItem",
    "NullMetadataReadWriter",
    "NullMimeType",
]


class NullDisplayObjectCreator:
    """Creator that produces no file."""

    def generate_and_save_file(self, display_object: DisplayObject) -> None:
        pass


NULL_DISPLAY_OBJECT_CREATOR = NullDisplayObjectCreator()


class NullMetadataReadWriter:
    """Reader for files without readable metadata."""

    def read(self, file_path: str) -> dict[MetadataItemName, MetaValue]:
        return {}

    def write(self, file_path: str, items: Iterable[MetadataItem]) -> None:
        pass


class NullGalleryObject(GalleryObject):
    """Gallery object standing in for "no such album or media object".

    Its parent is another null object, so walking up from any object always
    ends at a null object rather than None.
    """

    gallery_object_type = GalleryObjectType.None_

    def __init__(self) -> None:
        super().__init__(None, is_new=False)
        self._is_inflated = True
        self.thumbnail = NULL_DISPLAY_OBJECT
        self.optimized = NULL_DISPLAY_OBJECT
        self.original = NULL_DISPLAY_OBJECT

    @property
    def is_null(self) -> bool:
        return True

    @property
    def parent(self) -> GalleryObject:
        return NullGalleryObject()

    @property
    def is_writable(self) -> bool:
        return False

    @is_writable.setter
    def is_writable(self, value: bool) -> None:
        pass

    @property
    def metadata_items(self) -> MetadataItemCollection:
        return MetadataItemCollection()

    @property
    def metadata_definitions(self) -> MetadataDefinitionCollection:
        return MetadataDefinitionCollection()

    def mark_changed(self) -> None:
        pass

    def _set_field(self, attr: str, value: object) -> None:
        pass

    def _set_meta_value(self, name: MetadataItemName, value: str) -> None:
        pass

    def inflate(self) -> None:
        pass

    def set_parent_to_null(self) -> None:
        pass

    def add_gallery_object(self, gallery_object: GalleryObject) -> None:
        pass

    def remove_gallery_object(self, gallery_object: GalleryObject) -> None:
        pass

    def metadata_definition_applies(self, definition: MetadataDefinition) -> bool:
        return False

    def create_meta_item(
        self,
        definition: MetadataDefinition,
        values: dict[MetadataItemName, MetaValue] | None = None,
    ) -> MetadataItem:
        return NULL_METADATA_ITEM

    def extract_metadata(self, definition: MetadataDefinition | None = None) -> None:
        pass

    def get_orientation(self) -> Orientation:
        return Orientation.NotInitialized

    def save(self, user_name: str = "") -> None:
        """Notify listeners only."""
        for listener in list(self.saving):
            listener(self)
        for listener in list(self.saved):
            listener(self)

    def delete(self) -> None:
        pass

    def delete_from_gallery(self) -> None:
        pass

    def delete_original_file(self) -> None:
        pass

    def copy_to(self, destination_album: Album, user_name: str) -> GalleryObject:
        return NullGalleryObject()

    def move_to(self, destination_album: Album) -> None:
        pass

    def __repr__(self) -> str:
        return "NullGalleryObject()"


class NullDisplayObject(DisplayObject):
    """Display object for a rendition that does not exist. Ignores writes."""

    def __init__(self) -> None:
        super().__init__(None, DisplayObjectType.Unknown, mime_type=NULL_MIME_TYPE)
        self._sealed = True

    def __setattr__(self, name: str, value: object) -> None:
        if self.__dict__.get("_sealed"):
            return
        super().__setattr__(name, value)

    @property
    def media_object_id(self) -> int:
        return INT_MIN

    @media_object_id.setter
    def media_object_id(self, value: int) -> None:
        pass

    def get_size(self) -> Size:
        return Size.EMPTY

    def generate_and_save_file(self) -> None:
        pass

    def assign_file(self, path: str, file_size_kb: int) -> None:
        pass

    def copy_to(self, parent: GalleryObject) -> DisplayObject:
        return self

    def __repr__(self) -> str:
        return "NullDisplayObject()"


NULL_DISPLAY_OBJECT = NullDisplayObject()


class NullMetadataItem(MetadataItem):
    """Metadata item standing in for "no such item". Ignores writes."""

    def __init__(self) -> None:
        super().__init__(
            MetadataItemName.NotSpecified,
            NullGalleryObject(),
            None,
            "",
            False,
            MetadataDefinition(MetadataItemName.NotSpecified, ""),
        )

    def _changing(self) -> None:
        pass

    @property
    def metadata_item_name(self) -> MetadataItemName:
        return MetadataItemName.NotSpecified

    @metadata_item_name.setter
    def metadata_item_name(self, value: MetadataItemName) -> None:
        pass

    @property
    def description(self) -> str:
        return ""

    @description.setter
    def description(self, value: str) -> None:
        pass

    @property
    def value(self) -> str:
        return ""

    @value.setter
    def value(self, value: str) -> None:
        pass

    @property
    def raw_value(self) -> str | None:
        return None

    @raw_value.setter
    def raw_value(self, value: str | None) -> None:
        pass

    @property
    def is_deleted(self) -> bool:
        return False

    @is_deleted.setter
    def is_deleted(self, value: bool) -> None:
        pass

    @property
    def has_changes(self) -> bool:
        return False

    @has_changes.setter
    def has_changes(self, value: bool) -> None:
        pass

    @property
    def is_visible(self) -> bool:
        return False

    @is_visible.setter
    def is_visible(self, value: bool) -> None:
        pass

    def copy(self) -> MetadataItem:
        return self

    def __repr__(self) -> str:
        return "NullMetadataItem()"


NULL_METADATA_ITEM = NullMetadataItem()
