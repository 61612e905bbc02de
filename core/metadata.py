"""Metadata definitions and the metadata items attached to gallery objects.

A `MetadataDefinition` is gallery configuration: how a metadata field is
displayed, edited and persisted, plus a template (``default_value``) whose
``{MetadataItemName}`` tokens are filled from the file's metadata. A
`MetadataItem` is the value derived from a definition for one gallery object.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
import sys
from typing import TYPE_CHECKING, Any

from loguru import logger

from core.enums import INT_MIN, GalleryObjectType, MetadataItemName, PropertyEditorMode

if TYPE_CHECKING:
    from core.gallery_object import GalleryObject

PERSISTABLE_ITEMS: frozenset[MetadataItemName] = frozenset(
    {
        MetadataItemName.Author,
        MetadataItemName.Copyright,
        MetadataItemName.CameraModel,
        MetadataItemName.EquipmentManufacturer,
        MetadataItemName.Subject,
        MetadataItemName.Title,
        MetadataItemName.Caption,
        MetadataItemName.DatePictureTaken,
        MetadataItemName.Tags,
        MetadataItemName.Rating,
        MetadataItemName.Orientation,
        MetadataItemName.IptcByline,
        MetadataItemName.IptcBylineTitle,
        MetadataItemName.IptcCaption,
        MetadataItemName.IptcCity,
        MetadataItemName.IptcCopyrightNotice,
        MetadataItemName.IptcCountryPrimaryLocationName,
        MetadataItemName.IptcCredit,
        MetadataItemName.IptcDateCreated,
        MetadataItemName.IptcHeadline,
        MetadataItemName.IptcKeywords,
        MetadataItemName.IptcObjectName,
        MetadataItemName.IptcOriginalTransmissionReference,
        MetadataItemName.IptcProvinceState,
        MetadataItemName.IptcRecordVersion,
        MetadataItemName.IptcSource,
        MetadataItemName.IptcSpecialInstructions,
        MetadataItemName.IptcSublocation,
        MetadataItemName.IptcWriterEditor,
    }
)

DATE_ITEMS: frozenset[MetadataItemName] = frozenset(
    {
        MetadataItemName.DateAdded,
        MetadataItemName.DateFileCreated,
        MetadataItemName.DateFileCreatedUtc,
        MetadataItemName.DateFileLastModified,
        MetadataItemName.DateFileLastModifiedUtc,
        MetadataItemName.DatePictureTaken,
    }
)

_NE = PropertyEditorMode.NotEditable
_PT = PropertyEditorMode.PlainTextEditor
_HTML = PropertyEditorMode.TinyMCEHtmlEditor
_N = MetadataItemName

# name, display name, visible for album, visible for media, edit mode, persist to file, template
# fmt: off
_DEFAULT_DISPLAY_SETTINGS: tuple[tuple[MetadataItemName, str, bool, bool, PropertyEditorMode, bool | None, str], ...] = (
    (_N.Title, "Title", True, True, _PT, True, "{Title}"),
    (_N.Caption, "Caption", True, True, _HTML, True, "{Comment}"),
    (_N.Tags, "Tags", True, True, _PT, True, "{Tags}"),
    (_N.People, "People", True, True, _PT, False, "{People}"),
    (_N.HtmlSource, "Source HTML", False, True, _PT, False, "{HtmlSource}"),
    (_N.FileName, "File name", False, True, _NE, False, "{FileName}"),
    (_N.FileNameWithoutExtension, "File name", False, False, _NE, False, "{FileNameWithoutExtension}"),
    (_N.DateAdded, "Date Added", True, True, _NE, False, "{DateAdded}"),
    (_N.DatePictureTaken, "Date photo taken", False, True, _NE, None, "{DatePictureTaken}"),
    (_N.Rating, "Rating", False, True, _PT, True, "{Rating}"),
    (_N.Orientation, "Orientation", False, True, _NE, None, "{Orientation}"),
    (_N.ExposureProgram, "Exposure program", False, True, _NE, False, "{ExposureProgram}"),
    (_N.Description, "Description", False, True, _NE, False, "{Description}"),
    (_N.Comment, "Comment", False, False, _NE, False, "{Comment}"),
    (_N.Subject, "Subject", False, True, _NE, None, "{Subject}"),
    (_N.Author, "Author", False, True, _NE, None, "{Author}"),
    (_N.CameraModel, "Camera model", False, True, _NE, None, "{CameraModel}"),
    (_N.Copyright, "Copyright", False, True, _NE, None, "{Copyright}"),
    (_N.EquipmentManufacturer, "Camera maker", False, True, _NE, None, "{EquipmentManufacturer}"),
    (_N.ExposureTime, "Exposure time", False, True, _NE, False, "{ExposureTime}"),
    (_N.FlashMode, "Flash mode", False, True, _NE, False, "{FlashMode}"),
    (_N.FNumber, "F-stop", False, True, _NE, False, "{FNumber}"),
    (_N.FocalLength, "Focal length", False, True, _NE, False, "{FocalLength}"),
    (_N.IsoSpeed, "ISO speed", False, True, _NE, False, "{IsoSpeed}"),
    (_N.Dimensions, "Dimensions (pixels)", False, False, _NE, False, "{Dimensions}"),
    (_N.Duration, "Duration", False, True, _NE, False, "{Duration}"),
    (_N.HorizontalResolution, "Horizontal resolution", False, False, _NE, False, "{HorizontalResolution}"),
    (_N.VerticalResolution, "Vertical resolution", False, False, _NE, False, "{VerticalResolution}"),
    (_N.Width, "Width", False, True, _NE, False, "{Width}"),
    (_N.Height, "Height", False, True, _NE, False, "{Height}"),
    (_N.FileSizeKb, "File size", False, True, _NE, False, "{FileSizeKb}"),
    (_N.DateFileCreated, "File created", False, False, _NE, False, "{DateFileCreated}"),
    (_N.DateFileCreatedUtc, "File created (UTC)", False, False, _NE, False, "{DateFileCreatedUtc}"),
    (_N.DateFileLastModified, "File last modified", False, False, _NE, False, "{DateFileLastModified}"),
    (_N.DateFileLastModifiedUtc, "File last modified (UTC)", False, False, _NE, False, "{DateFileLastModifiedUtc}"),
    (_N.GpsLocation, "GPS location", False, False, _NE, False, "{GpsLocation}"),
    (_N.GpsLatitude, "GPS latitude", False, False, _NE, False, "{GpsLatitude}"),
    (_N.GpsLongitude, "GPS longitude", False, False, _NE, False, "{GpsLongitude}"),
    (_N.GpsAltitude, "GPS altitude", False, False, _NE, False, "{GpsAltitude}"),
    (_N.RatingCount, "Number of ratings", False, False, _NE, False, "0"),
)
# fmt: on


@dataclass(frozen=True)
class MetaValue:
    """A metadata value as presented to users, plus its unformatted form."""

    formatted_value: str
    raw_value: str | None = None


@dataclass
class MetadataDefinition:
    """Display, edit and persistence rules for one metadata field."""

    metadata_item: MetadataItemName
    display_name: str
    is_visible_for_album: bool = False
    is_visible_for_gallery_object: bool = False
    user_edit_mode: PropertyEditorMode = PropertyEditorMode.PlainTextEditor
    persist_to_file: bool | None = None
    sequence: int = sys.maxsize
    default_value: str = ""

    @property
    def is_editable(self) -> bool:
        return self.user_edit_mode in (
            PropertyEditorMode.PlainTextEditor,
            PropertyEditorMode.TinyMCEHtmlEditor,
        )

    @property
    def is_persistable(self) -> bool:
        """Whether the value can be written back to the media file."""
        return self.metadata_item in PERSISTABLE_ITEMS

    @property
    def should_persist_to_file(self) -> bool:
        if self.persist_to_file is None:
            return self.is_persistable
        return self.persist_to_file and self.is_persistable

    @property
    def data_type(self) -> type:
        return datetime if self.metadata_item in DATE_ITEMS else str

    def copy(self) -> MetadataDefinition:
        return replace(self)

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> MetadataDefinition:
        """Build from the JSON shape used in the gallery settings file.

        Keys follow the settings file: ``MetadataItem`` (int or name),
        ``DisplayName``, ``IsVisibleForAlbum``, ``IsVisibleForGalleryObject``,
        ``UserEditMode``, ``PersistToFile``, ``Sequence``, ``DefaultValue``.
        """
        raw_item = row.get("MetadataItem", row.get("Name"))
        if isinstance(raw_item, int):
            item = MetadataItemName(raw_item)
        else:
            item = MetadataItemName.from_name(str(raw_item))
        return cls(
            metadata_item=item,
            display_name=str(row.get("DisplayName") or item.name),
            is_visible_for_album=bool(row.get("IsVisibleForAlbum", False)),
            is_visible_for_gallery_object=bool(row.get("IsVisibleForGalleryObject", False)),
            user_edit_mode=PropertyEditorMode(int(row.get("UserEditMode", 1))),
            persist_to_file=row.get("PersistToFile"),
            sequence=int(row.get("Sequence", sys.maxsize)),
            default_value=str(row.get("DefaultValue") or ""),
        )


class MetadataDefinitionCollection:
    """Metadata definitions keyed by `MetadataItemName`."""

    def __init__(self, definitions: Iterable[MetadataDefinition] | None = None) -> None:
        self._items: dict[MetadataItemName, MetadataDefinition] = {}
        for definition in definitions or []:
            self.add(definition)

    def __iter__(self) -> Iterator[MetadataDefinition]:
        return iter(sorted(self._items.values(), key=lambda d: d.sequence))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def add(self, definition: MetadataDefinition) -> None:
        self._items[definition.metadata_item] = definition

    def find(self, name: MetadataItemName) -> MetadataDefinition:
        """Return the definition for `name`; an invisible default if unknown."""
        definition = self._items.get(name)
        if definition is None:
            return _missing_definition(name)
        return definition

    def validate(self) -> None:
        """Add a default definition for every missing metadata item.

        Also forces ``persist_to_file`` off for items that cannot be written to
        a media file.
        """
        for name in MetadataItemName:
            if name is MetadataItemName.NotSpecified:
                continue
            if name not in self._items:
                self._items[name] = _missing_definition(name)
        for definition in self._items.values():
            if definition.is_persistable:
                continue
            if definition.persist_to_file:
                logger.debug(
                    "Metadata item {} cannot be persisted to file; disabling",
                    definition.metadata_item.name,
                )
            definition.persist_to_file = False

    def copy(self) -> MetadataDefinitionCollection:
        return MetadataDefinitionCollection(d.copy() for d in self._items.values())

    @classmethod
    def from_dicts(cls, rows: Iterable[Mapping[str, Any]]) -> MetadataDefinitionCollection:
        collection = cls()
        for row in rows:
            try:
                collection.add(MetadataDefinition.from_dict(row))
            except (ValueError, TypeError) as ex:
                logger.warning("Ignoring invalid metadata definition {}: {}", row, ex)
        collection.validate()
        return collection

    @classmethod
    def default(cls) -> MetadataDefinitionCollection:
        """The built-in display settings, validated."""
        collection = cls(
            MetadataDefinition(name, display, album, media, mode, persist, seq, template)
            for seq, (name, display, album, media, mode, persist, template) in enumerate(
                _DEFAULT_DISPLAY_SETTINGS
            )
        )
        collection.validate()
        return collection


def _missing_definition(name: MetadataItemName) -> MetadataDefinition:
    return MetadataDefinition(
        metadata_item=name,
        display_name=name.name,
        is_visible_for_album=False,
        is_visible_for_gallery_object=False,
        user_edit_mode=PropertyEditorMode.PlainTextEditor,
        persist_to_file=False,
        sequence=sys.maxsize,
        default_value="",
    )


class MetadataItem:
    """A metadata value belonging to one gallery object.

    Setting `description`, `value`, `raw_value`, `is_deleted` or
    `metadata_item_name` marks the item and its gallery object as changed; the
    gallery object rejects the change when it is read-only.
    """

    def __init__(
        self,
        metadata_item_name: MetadataItemName,
        gallery_object: GalleryObject,
        raw_value: str | None,
        value: str,
        has_changes: bool,
        definition: MetadataDefinition,
        media_object_metadata_id: int = INT_MIN,
    ) -> None:
        self.media_object_metadata_id = media_object_metadata_id
        self.gallery_object = gallery_object
        self.definition = definition
        self._metadata_item_name = metadata_item_name
        self._description = definition.display_name
        self._raw_value = raw_value
        self._value = value
        self._is_deleted = False
        self._persist_to_file: bool | None = None
        self.is_visible = False
        self.has_changes = has_changes

    def _changing(self) -> None:
        self.gallery_object.mark_changed()
        self.has_changes = True

    @property
    def metadata_item_name(self) -> MetadataItemName:
        return self._metadata_item_name

    @metadata_item_name.setter
    def metadata_item_name(self, value: MetadataItemName) -> None:
        if value != self._metadata_item_name:
            self._changing()
            self._metadata_item_name = value

    @property
    def description(self) -> str:
        return self._description

    @description.setter
    def description(self, value: str) -> None:
        if value != self._description:
            self._changing()
            self._description = value

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, value: str) -> None:
        if value != self._value:
            self._changing()
            self._value = value

    @property
    def raw_value(self) -> str | None:
        return self._raw_value

    @raw_value.setter
    def raw_value(self, value: str | None) -> None:
        if value != self._raw_value:
            self._changing()
            self._raw_value = value

    @property
    def is_deleted(self) -> bool:
        return self._is_deleted

    @is_deleted.setter
    def is_deleted(self, value: bool) -> None:
        if value != self._is_deleted:
            self._changing()
            self._is_deleted = value

    @property
    def is_editable(self) -> bool:
        return self.definition.is_editable

    @property
    def persist_to_file(self) -> bool:
        if self._persist_to_file is None:
            return self.definition.should_persist_to_file
        return self._persist_to_file

    @persist_to_file.setter
    def persist_to_file(self, value: bool) -> None:
        self._persist_to_file = value

    def copy(self) -> MetadataItem:
        """Unsaved clone bound to the same gallery object."""
        clone = MetadataItem(
            self._metadata_item_name,
            self.gallery_object,
            self._raw_value,
            self._value,
            True,
            self.definition,
        )
        clone._description = self._description
        clone.is_visible = self.is_visible
        return clone

    def __repr__(self) -> str:
        return f"MetadataItem({self._metadata_item_name.name}={self._value!r})"


class MetadataItemCollection:
    """Ordered collection of metadata items, at most one per name.

    When `owner` is given, `add`, `add_range`, `clear` and `remove` raise
    `WritePermissionError` while the owner is read-only.
    """

    def __init__(
        self, items: Iterable[MetadataItem] | None = None, owner: GalleryObject | None = None
    ) -> None:
        self._items: list[MetadataItem] = []
        self.owner = owner
        for item in items or []:
            self._put(item)

    def __iter__(self) -> Iterator[MetadataItem]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def _verify_writable(self) -> None:
        if self.owner is not None:
            self.owner._verify_writable()  # pylint: disable=protected-access

    def _put(self, item: MetadataItem) -> None:
        for index, existing in enumerate(self._items):
            if existing.metadata_item_name == item.metadata_item_name:
                self._items[index] = item
                return
        self._items.append(item)

    def add(self, item: MetadataItem) -> None:
        """Add `item`, replacing any existing item with the same name."""
        self._verify_writable()
        self._put(item)

    def add_range(self, items: Iterable[MetadataItem]) -> None:
        self._verify_writable()
        for item in items:
            self._put(item)

    def clear(self) -> None:
        self._verify_writable()
        self._items.clear()

    def remove(self, name: MetadataItemName) -> None:
        self._verify_writable()
        self._items = [i for i in self._items if i.metadata_item_name != name]

    def contains(self, name: MetadataItemName) -> bool:
        return self.try_get(name) is not None

    def try_get(self, name: MetadataItemName) -> MetadataItem | None:
        for item in self._items:
            if item.metadata_item_name == name:
                return item
        return None

    def get(self, name: MetadataItemName) -> MetadataItem:
        """Return the item called `name`, or the null metadata item."""
        item = self.try_get(name)
        if item is None:
            # pylint: disable-next=import-outside-toplevel
            from core.null_objects import NULL_METADATA_ITEM

            return NULL_METADATA_ITEM
        return item

    def get_visible_items(self) -> MetadataItemCollection:
        return MetadataItemCollection(i for i in self._items if i.is_visible and not i.is_deleted)

    def get_items_to_save(self) -> MetadataItemCollection:
        return MetadataItemCollection(i for i in self._items if i.has_changes)

    def copy(self, owner: GalleryObject | None = None) -> MetadataItemCollection:
        return MetadataItemCollection((i.copy() for i in self._items), owner)

    def apply_display_options(self, definitions: MetadataDefinitionCollection) -> None:
        """Sort by definition sequence and set visibility for the owning object type."""
        self._items.sort(
            key=lambda i: (definitions.find(i.metadata_item_name).sequence, i.description)
        )
        for item in self._items:
            definition = definitions.find(item.metadata_item_name)
            if item.gallery_object.gallery_object_type is GalleryObjectType.Album:
                item.is_visible = definition.is_visible_for_album
            else:
                item.is_visible = definition.is_visible_for_gallery_object
