"""Base class for albums and media objects.

A gallery object may be created as a lightweight shell holding only its
identity (id, gallery, parent, sequence). The remaining fields are loaded from
the store on first access through `inflate()`.

Objects handed out from a shared cache are read-only. Every mutator calls
`_verify_writable()` before touching state, so a read-only object either
raises `WritePermissionError` or is left unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime
import re
from typing import TYPE_CHECKING
import weakref

from loguru import logger

from core.display_object import DisplayObject
from core.enums import (
    INT_MIN,
    DisplayObjectType,
    GalleryObjectType,
    MetadataItemName,
    Orientation,
    RotateFlip,
)
from core.errors import GalleryError, InvalidGalleryObjectError, WritePermissionError
from core.metadata import (
    MetadataDefinition,
    MetadataDefinitionCollection,
    MetadataItem,
    MetadataItemCollection,
    MetaValue,
)

if TYPE_CHECKING:
    from core.album import Album
    from core.factory import GalleryFactory
    from core.services.interfaces import GalleryObjectRecord

GalleryObjectListener = Callable[["GalleryObject"], None]

# Items created for every object even when their definition is hidden.
REQUIRED_METADATA_ITEMS = (MetadataItemName.Title, MetadataItemName.Caption)

# Items derived from the object rather than its file; extracted even when file
# metadata extraction is disabled.
NON_FILE_METADATA_ITEMS = (MetadataItemName.HtmlSource, MetadataItemName.DateAdded)

_META_TOKEN = re.compile(
    r"\{("
    + "|".join(sorted((n.name for n in MetadataItemName), key=len, reverse=True))
    + r")\}"
)

_ROTATED_ORIENTATIONS = (Orientation.Rotated90, Orientation.Rotated180, Orientation.Rotated270)

# Degrees to add to the user's rotation to compensate for the file's orientation.
_ORIENTATION_CORRECTION = {
    Orientation.Rotated90: -90,
    Orientation.Rotated180: 180,
    Orientation.Rotated270: 90,
}


class GalleryObject:
    """An album or media object in the gallery tree."""

    gallery_object_type = GalleryObjectType.Unknown

    def __init__(
        self,
        factory: GalleryFactory | None,
        id: int = INT_MIN,  # pylint: disable=redefined-builtin
        gallery_id: int = INT_MIN,
        parent_id: int = INT_MIN,
        sequence: int = INT_MIN,
        is_new: bool = True,
    ) -> None:
        self._factory = factory
        self._id = id
        self._gallery_id = gallery_id
        self._parent_id = parent_id
        self._parent_ref: weakref.ref[GalleryObject] | None = None
        self._sequence = sequence
        self._is_new = is_new
        self._is_inflated = is_new
        self._is_writable = False
        self._is_writable_assigned = False
        self._has_changes = False
        self._date_added = datetime.min
        self._date_last_modified = datetime.min
        self._created_by = ""
        self._last_modified_by = ""
        self._is_private = False
        self._rotate_flip = RotateFlip.NotSpecified
        self._metadata_items = MetadataItemCollection(owner=self)
        self.is_metadata_loaded = False
        self.regenerate_thumbnail_on_save = False
        self.regenerate_optimized_on_save = False
        self.thumbnail = DisplayObject(self, DisplayObjectType.Thumbnail)
        self.optimized = DisplayObject(self, DisplayObjectType.Optimized)
        self.original = DisplayObject(self, DisplayObjectType.Original)
        self.saving: list[GalleryObjectListener] = []
        self.saved: list[GalleryObjectListener] = []
        self.created: list[GalleryObjectListener] = []
        self.deleted: list[GalleryObjectListener] = []

    # ------------------------------------------------------------------
    # Identity and state flags
    # ------------------------------------------------------------------
    @property
    def is_null(self) -> bool:
        return False

    @property
    def id(self) -> int:
        return self._id

    @property
    def gallery_id(self) -> int:
        return self._gallery_id

    @gallery_id.setter
    def gallery_id(self, value: int) -> None:
        self._set_field("_gallery_id", value)

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def is_inflated(self) -> bool:
        return self._is_inflated

    @property
    def has_changes(self) -> bool:
        return self._has_changes

    @property
    def is_writable(self) -> bool:
        return self._is_writable

    @is_writable.setter
    def is_writable(self, value: bool) -> None:
        if self._is_writable_assigned:
            raise WritePermissionError(
                f"is_writable was already assigned for gallery object {self._id}", self._id
            )
        self._is_writable_assigned = True
        self._is_writable = bool(value)

    def _verify_writable(self) -> None:
        if not self._is_writable:
            raise WritePermissionError(
                f"Gallery object {self._id} ({self.gallery_object_type.name}) is read-only",
                self._id,
            )

    def mark_changed(self) -> None:
        """Flag unsaved changes; raises on read-only objects."""
        self._verify_writable()
        self._has_changes = True

    def _set_field(self, attr: str, value: object) -> None:
        self._ensure_inflated()
        if getattr(self, attr) == value:
            return
        self.mark_changed()
        setattr(self, attr, value)

    # ------------------------------------------------------------------
    # Inflation
    # ------------------------------------------------------------------
    def inflate(self) -> None:
        """Load every field from the store; does nothing once inflated."""
        if self._is_inflated:
            return
        factory = self._require_factory()
        record = factory.store.load(self._id)
        if record is None:
            logger.warning(
                "Cannot inflate {} {}: not found in store", self.gallery_object_type.name, self._id
            )
            return
        self._apply_record(record)
        factory.assign_creators(self)
        self._mark_inflated()

    def _mark_inflated(self) -> None:
        self._is_inflated = True

    def _ensure_inflated(self) -> None:
        if not self._is_inflated and not self._is_new:
            self.inflate()

    def _apply_record(self, record: GalleryObjectRecord) -> None:
        factory = self._require_factory()
        self._gallery_id = record.gallery_id
        self._parent_id = record.parent_id
        self._sequence = record.sequence
        self._date_added = record.date_added
        self._date_last_modified = record.date_last_modified
        self._created_by = record.created_by
        self._last_modified_by = record.last_modified_by
        self._is_private = record.is_private
        self._rotate_flip = record.rotate_flip
        definitions = factory.metadata_definitions
        items = MetadataItemCollection(
            (
                MetadataItem(
                    meta.name,
                    self,
                    meta.raw_value,
                    meta.value,
                    False,
                    definitions.find(meta.name),
                    meta.record_id,
                )
                for meta in record.metadata
            ),
            owner=self,
        )
        items.apply_display_options(definitions)
        self._metadata_items = items
        self.is_metadata_loaded = True

    def _require_factory(self) -> GalleryFactory:
        if self._factory is None:
            raise GalleryError(f"Gallery object {self._id} is not attached to a gallery")
        return self._factory

    # ------------------------------------------------------------------
    # Inflated fields
    # ------------------------------------------------------------------
    @property
    def sequence(self) -> int:
        return self._sequence

    @sequence.setter
    def sequence(self, value: int) -> None:
        self._set_field("_sequence", value)

    @property
    def date_added(self) -> datetime:
        self._ensure_inflated()
        return self._date_added

    @date_added.setter
    def date_added(self, value: datetime) -> None:
        self._set_field("_date_added", value)

    @property
    def date_last_modified(self) -> datetime:
        self._ensure_inflated()
        return self._date_last_modified

    @date_last_modified.setter
    def date_last_modified(self, value: datetime) -> None:
        self._set_field("_date_last_modified", value)

    @property
    def created_by(self) -> str:
        self._ensure_inflated()
        return self._created_by

    @created_by.setter
    def created_by(self, value: str) -> None:
        self._set_field("_created_by", value)

    @property
    def last_modified_by(self) -> str:
        self._ensure_inflated()
        return self._last_modified_by

    @last_modified_by.setter
    def last_modified_by(self, value: str) -> None:
        self._set_field("_last_modified_by", value)

    @property
    def is_private(self) -> bool:
        self._ensure_inflated()
        return self._is_private

    @is_private.setter
    def is_private(self, value: bool) -> None:
        self._set_field("_is_private", value)

    @property
    def rotate_flip(self) -> RotateFlip:
        self._ensure_inflated()
        return self._rotate_flip

    @rotate_flip.setter
    def rotate_flip(self, value: RotateFlip) -> None:
        self._set_field("_rotate_flip", value)

    @property
    def title(self) -> str:
        return self._get_meta_value(MetadataItemName.Title)

    @title.setter
    def title(self, value: str) -> None:
        self._set_meta_value(MetadataItemName.Title, value)

    @property
    def caption(self) -> str:
        return self._get_meta_value(MetadataItemName.Caption)

    @caption.setter
    def caption(self, value: str) -> None:
        self._set_meta_value(MetadataItemName.Caption, value)

    @property
    def metadata_items(self) -> MetadataItemCollection:
        self._ensure_inflated()
        return self._metadata_items

    @property
    def metadata_definitions(self) -> MetadataDefinitionCollection:
        return self._require_factory().metadata_definitions

    def _get_meta_value(self, name: MetadataItemName) -> str:
        item = self.metadata_items.try_get(name)
        if item is None or item.is_deleted:
            return ""
        return item.value

    def _set_meta_value(self, name: MetadataItemName, value: str) -> None:
        self._ensure_inflated()
        self._verify_writable()
        item = self._metadata_items.try_get(name)
        if item is None:
            item = MetadataItem(name, self, None, value, True, self.metadata_definitions.find(name))
            self._metadata_items.add(item)
            self._has_changes = True
            return
        item.value = value
        item.is_deleted = False

    # ------------------------------------------------------------------
    # Tree
    # ------------------------------------------------------------------
    @property
    def parent_id(self) -> int:
        parent = self._parent_ref() if self._parent_ref is not None else None
        if parent is not None:
            return parent.id
        return self._parent_id

    @property
    def parent(self) -> GalleryObject:
        """Containing album, or a new null gallery object for a root or orphan."""
        parent = self._parent_ref() if self._parent_ref is not None else None
        if parent is not None:
            return parent
        if self._parent_id != INT_MIN and self._factory is not None:
            return self._factory.load_gallery_object(self._parent_id)
        from core.null_objects import NullGalleryObject  # pylint: disable=import-outside-toplevel

        return NullGalleryObject()

    def walk_parents(self) -> Iterator[GalleryObject]:
        """Yield each ancestor, nearest first."""
        seen: set[int] = set()
        current = self.parent
        while not current.is_null:
            key = current.id if current.id != INT_MIN else id(current)
            if key in seen:
                raise InvalidGalleryObjectError(f"Cycle detected above gallery object {self._id}")
            seen.add(key)
            yield current
            current = current.parent

    def has_ancestor(self, other: GalleryObject) -> bool:
        return any(
            a is other or (a.id != INT_MIN and a.id == other.id) for a in self.walk_parents()
        )

    def _check_can_move_under(self, album: GalleryObject) -> None:
        if album.gallery_object_type is not GalleryObjectType.Album:
            raise InvalidGalleryObjectError(
                "Gallery objects can only be placed in albums, "
                f"not in {album.gallery_object_type.name}"
            )
        if album is self or (album.id != INT_MIN and album.id == self._id):
            raise InvalidGalleryObjectError(f"Gallery object {self._id} cannot contain itself")
        album._verify_writable()  # pylint: disable=protected-access
        if album.has_ancestor(self):
            raise InvalidGalleryObjectError(
                f"Moving {self._id} under album {album.id} would create a cycle"
            )

    def _set_parent(self, album: Album) -> None:
        self._check_can_move_under(album)
        self._ensure_inflated()
        self._verify_writable()
        self._parent_ref = weakref.ref(album)
        if self._parent_id != album.id:
            self._parent_id = album.id
            self._has_changes = True
        self._refresh_physical_paths()

    def _refresh_physical_paths(self) -> None:
        """Recompute file paths derived from the parent album directory."""

    def set_parent_to_null(self) -> None:
        """Detach from the parent album without touching the store."""
        self._verify_writable()
        self._parent_ref = None
        self._parent_id = INT_MIN

    def add_gallery_object(self, gallery_object: GalleryObject) -> None:
        raise InvalidGalleryObjectError(
            f"{self.gallery_object_type.name} objects cannot contain other gallery objects"
        )

    def remove_gallery_object(self, gallery_object: GalleryObject) -> None:
        raise InvalidGalleryObjectError(
            f"{self.gallery_object_type.name} objects cannot contain other gallery objects"
        )

    def _detach_child(self, gallery_object: GalleryObject) -> None:
        """Drop `gallery_object` from any in-memory child list."""

    def get_child_gallery_objects(
        self,
        gallery_object_type: GalleryObjectType = GalleryObjectType.All,
        sort_by_sequence: bool = False,
        exclude_private: bool = False,
    ) -> list[GalleryObject]:
        return []

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------
    def compare_to(self, other: object) -> int:
        """Order by sequence, then id; anything that is not a real object sorts first."""
        if not isinstance(other, GalleryObject) or other.is_null:
            return 1
        mine = (self.sequence, self.id)
        theirs = (other.sequence, other.id)
        return (mine > theirs) - (mine < theirs)

    def __lt__(self, other: object) -> bool:
        return self.compare_to(other) < 0

    def __gt__(self, other: object) -> bool:
        return self.compare_to(other) > 0

    def __le__(self, other: object) -> bool:
        return self.compare_to(other) <= 0

    def __ge__(self, other: object) -> bool:
        return self.compare_to(other) >= 0

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    def metadata_definition_applies(self, definition: MetadataDefinition) -> bool:
        if definition.metadata_item in REQUIRED_METADATA_ITEMS:
            return True
        return definition.is_visible_for_gallery_object

    def _metadata_source_path(self) -> str:
        return self.original.file_name_physical_path

    def _read_meta_values(self) -> dict[MetadataItemName, MetaValue]:
        """Values available to metadata templates for this object."""
        factory = self._require_factory()
        values: dict[MetadataItemName, MetaValue] = {}
        path = self._metadata_source_path()
        if path:
            values.update(factory.metadata_reader_for(self).read(path))
        if self._date_added != datetime.min:
            values[MetadataItemName.DateAdded] = MetaValue(
                self._date_added.strftime(factory.settings.datetime_format),
                self._date_added.isoformat(),
            )
        return values

    def create_meta_item(
        self,
        definition: MetadataDefinition,
        values: dict[MetadataItemName, MetaValue] | None = None,
    ) -> MetadataItem:
        """Build a metadata item from the definition's template.

        Each ``{MetadataItemName}`` token in ``definition.default_value`` is
        replaced by the matching formatted value, or removed when the value is
        unavailable. The raw value is kept only for single-token templates.
        """
        factory = self._require_factory()
        template = definition.default_value
        tokens = _META_TOKEN.findall(template)
        extract = (
            factory.settings.enable_metadata_extraction
            or definition.metadata_item in NON_FILE_METADATA_ITEMS
        )
        if tokens and extract and values is None:
            values = self._read_meta_values()

        formatted = template
        raw_value: str | None = None
        for token in tokens:
            meta_value = values.get(MetadataItemName[token]) if (extract and values) else None
            if meta_value is not None:
                formatted = formatted.replace("{" + token + "}", meta_value.formatted_value)
                raw_value = meta_value.raw_value
            else:
                formatted = formatted.replace("{" + token + "}", "")
                raw_value = None

        return MetadataItem(
            definition.metadata_item,
            self,
            raw_value if len(tokens) == 1 else None,
            formatted,
            True,
            definition,
        )

    def extract_metadata(self, definition: MetadataDefinition | None = None) -> None:
        """Populate metadata items from the file and the metadata definitions.

        With no argument every definition is processed; otherwise only
        `definition`. Re-running updates existing items in place.
        """
        self._ensure_inflated()
        self._verify_writable()
        values = self._read_meta_values()
        if definition is not None:
            self._extract_one(definition, values)
            return
        for each in self.metadata_definitions:
            self._extract_one(each, values)
        self._metadata_items.apply_display_options(self.metadata_definitions)
        self.is_metadata_loaded = True

    def _extract_one(
        self, definition: MetadataDefinition, values: dict[MetadataItemName, MetaValue]
    ) -> None:
        if not self.metadata_definition_applies(definition):
            self._remove_metadata_item(definition.metadata_item)
            return
        item = self.create_meta_item(definition, values)
        if definition.is_editable or item.value.strip():
            self._update_internal_meta_item(item)
        elif definition.metadata_item not in REQUIRED_METADATA_ITEMS:
            self._remove_metadata_item(definition.metadata_item)

    def _update_internal_meta_item(self, item: MetadataItem) -> None:
        existing = self._metadata_items.try_get(item.metadata_item_name)
        if existing is None:
            self._metadata_items.add(item)
            self._has_changes = True
            return
        existing.description = item.description
        if self._ok_to_update_meta_value(item):
            existing.value = item.value
            existing.raw_value = item.raw_value
            existing.is_deleted = False

    def _ok_to_update_meta_value(self, item: MetadataItem) -> bool:
        has_value = bool(item.value.strip())
        is_album_title_or_caption = (
            self.gallery_object_type is GalleryObjectType.Album
            and item.metadata_item_name in REQUIRED_METADATA_ITEMS
        )
        return has_value and not is_album_title_or_caption

    def _remove_metadata_item(self, name: MetadataItemName) -> None:
        item = self._metadata_items.try_get(name)
        if item is not None:
            item.is_deleted = True

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------
    def get_orientation(self) -> Orientation:
        """Orientation recorded in the file metadata; None_ unless rotated."""
        item = self.metadata_items.try_get(MetadataItemName.Orientation)
        if item is None or item.is_deleted:
            return Orientation.None_
        try:
            orientation = Orientation(int(str(item.raw_value).strip()))
        except (ValueError, TypeError) as ex:
            logger.debug("Unreadable orientation {!r} on {}: {}", item.raw_value, self._id, ex)
            return Orientation.None_
        return orientation if orientation in _ROTATED_ORIENTATIONS else Orientation.None_

    def calculate_needed_rotation(self) -> RotateFlip:
        """Rotation to apply so the asset displays upright with the user's rotation."""
        orientation = self.get_orientation()
        if orientation is Orientation.NotInitialized:
            return RotateFlip.NotSpecified
        user_rotation = self.rotate_flip
        if user_rotation is RotateFlip.NotSpecified:
            user_rotation = RotateFlip.Rotate0FlipNone
        correction = _ORIENTATION_CORRECTION.get(orientation)
        if correction is None:
            return user_rotation
        return RotateFlip.compose(user_rotation.degrees + correction, user_rotation.flip)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def save(self, user_name: str = "") -> None:
        """Persist the object, firing `saving` before and `saved` after."""
        self._ensure_inflated()
        self._verify_writable()
        is_new = self._is_new
        self._validate_save()
        self._update_audit_fields(user_name)

        for listener in list(self.saving):
            listener(self)

        if (
            is_new
            or self._has_changes
            or self.regenerate_thumbnail_on_save
            or self.regenerate_optimized_on_save
        ):
            self._persist()

        self._has_changes = False
        self._is_new = False
        self.regenerate_thumbnail_on_save = False
        self.regenerate_optimized_on_save = False
        self._mark_inflated()
        logger.info("Saved {} {} ({})", self.gallery_object_type.name, self._id, self.title)

        for listener in list(self.saved):
            listener(self)
        if is_new:
            for listener in list(self.created):
                listener(self)
        self._after_save()

    def _validate_save(self) -> None:
        pass

    def _update_audit_fields(self, user_name: str) -> None:
        now = datetime.now()
        if self._is_new:
            if self._date_added == datetime.min:
                self._date_added = now
            if user_name and not self._created_by:
                self._created_by = user_name
        if self._has_changes or self._is_new:
            self._date_last_modified = now
            if user_name:
                self._last_modified_by = user_name

    def _persist(self) -> None:
        factory = self._require_factory()
        if self._sequence == INT_MIN:
            parent = self.parent
            siblings = [s.sequence for s in parent.get_child_gallery_objects() if s is not self]
            self._sequence = max((s for s in siblings if s != INT_MIN), default=0) + 1
        self._id = factory.store.save(self)
        self._write_metadata_to_file()
        for item in self._metadata_items:
            item.has_changes = False
        for item in [i for i in self._metadata_items if i.is_deleted]:
            self._metadata_items.remove(item.metadata_item_name)

    def _write_metadata_to_file(self) -> None:
        """Write changed file-backed metadata items into the original file."""

    def _after_save(self) -> None:
        parent = self.parent
        if parent.gallery_object_type is GalleryObjectType.Album and parent.is_writable:
            parent.assign_thumbnail_if_missing()

    def assign_thumbnail_if_missing(self) -> None:
        """Albums pick a thumbnail from their children; other objects have none to pick."""

    def _copy_metadata_to(self, target: GalleryObject) -> None:
        """Replace the metadata of `target` with unsaved copies of this object's items."""
        items = self.metadata_items.copy(owner=target)
        for item in items:
            item.gallery_object = target
        target._metadata_items = items  # pylint: disable=protected-access
        target._has_changes = True  # pylint: disable=protected-access
        target.is_metadata_loaded = self.is_metadata_loaded

    def delete(self) -> None:
        """Remove from the gallery and delete its files from disk."""
        self._delete(delete_from_file_system=True)

    def delete_from_gallery(self) -> None:
        """Remove from the gallery, keeping the original file on disk."""
        self._delete(delete_from_file_system=False)

    def _delete(self, delete_from_file_system: bool) -> None:
        self._ensure_inflated()
        self._verify_writable()
        parent = self.parent
        self._delete_files_and_record(delete_from_file_system)
        parent._detach_child(self)  # pylint: disable=protected-access
        logger.info(
            "Deleted {} {} (files removed: {})",
            self.gallery_object_type.name,
            self._id,
            delete_from_file_system,
        )
        for listener in list(self.deleted):
            listener(self)
        parent._on_child_deleted(self)  # pylint: disable=protected-access

    def _delete_files_and_record(self, delete_from_file_system: bool) -> None:
        raise NotImplementedError

    def _on_child_deleted(self, gallery_object: GalleryObject) -> None:
        pass

    def delete_original_file(self) -> None:
        """Replace the original file with the optimized rendition."""
        raise InvalidGalleryObjectError(
            f"{self.gallery_object_type.name} objects have no original file to delete"
        )

    def copy_to(self, destination_album: Album, user_name: str) -> GalleryObject:
        raise NotImplementedError

    def move_to(self, destination_album: Album) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id}, sequence={self._sequence})"
