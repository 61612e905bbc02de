"""Albums: gallery objects that contain other gallery objects."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING
import weakref

from loguru import logger

from core.enums import INT_MIN, GalleryObjectType, MetadataItemName
from core.errors import InvalidGalleryObjectError
from core.gallery_object import REQUIRED_METADATA_ITEMS, GalleryObject
from core.services.sort_service import SortService

if TYPE_CHECKING:
    from core.factory import GalleryFactory
    from core.metadata import MetadataDefinition
    from core.services.interfaces import GalleryObjectRecord


class Album(GalleryObject):
    """A directory of media objects and child albums.

    Children are loaded from the store on first access and are writable when
    the album is writable.
    """

    gallery_object_type = GalleryObjectType.Album

    def __init__(
        self,
        factory: GalleryFactory | None,
        id: int = INT_MIN,  # pylint: disable=redefined-builtin
        gallery_id: int = INT_MIN,
        parent_id: int = INT_MIN,
        sequence: int = INT_MIN,
        is_new: bool = True,
        directory_name: str = "",
    ) -> None:
        super().__init__(factory, id, gallery_id, parent_id, sequence, is_new)
        self._directory_name = directory_name
        self._thumbnail_media_object_id = 0
        self._sort_by_meta_name = MetadataItemName.NotSpecified
        self._sort_ascending = True
        self._children: list[GalleryObject] | None = [] if is_new else None

    def _apply_record(self, record: GalleryObjectRecord) -> None:
        super()._apply_record(record)
        self._directory_name = record.directory_name
        self._thumbnail_media_object_id = record.thumbnail_media_object_id
        self._sort_by_meta_name = record.sort_by_meta_name
        self._sort_ascending = record.sort_ascending

    # ------------------------------------------------------------------
    # Album fields
    # ------------------------------------------------------------------
    @property
    def directory_name(self) -> str:
        self._ensure_inflated()
        return self._directory_name

    @directory_name.setter
    def directory_name(self, value: str) -> None:
        self._set_field("_directory_name", value)

    @property
    def thumbnail_media_object_id(self) -> int:
        self._ensure_inflated()
        return self._thumbnail_media_object_id

    @thumbnail_media_object_id.setter
    def thumbnail_media_object_id(self, value: int) -> None:
        self._set_field("_thumbnail_media_object_id", value)

    @property
    def sort_by_meta_name(self) -> MetadataItemName:
        self._ensure_inflated()
        return self._sort_by_meta_name

    @sort_by_meta_name.setter
    def sort_by_meta_name(self, value: MetadataItemName) -> None:
        self._set_field("_sort_by_meta_name", value)

    @property
    def sort_ascending(self) -> bool:
        self._ensure_inflated()
        return self._sort_ascending

    @sort_ascending.setter
    def sort_ascending(self, value: bool) -> None:
        self._set_field("_sort_ascending", value)

    @property
    def is_root_album(self) -> bool:
        return self._parent_id == INT_MIN and self._parent_ref is None

    @property
    def full_physical_path(self) -> str:
        """Directory holding this album's files."""
        if self.is_root_album:
            return self._require_factory().settings.media_root
        parent = self.parent
        if not isinstance(parent, Album):
            return self.directory_name
        return os.path.join(parent.full_physical_path, self.directory_name)

    def _metadata_source_path(self) -> str:
        return self.full_physical_path

    def metadata_definition_applies(self, definition: MetadataDefinition) -> bool:
        if definition.metadata_item in REQUIRED_METADATA_ITEMS:
            return True
        return definition.is_visible_for_album

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------
    def _load_children(self) -> list[GalleryObject]:
        if self._children is None:
            factory = self._require_factory()
            children: list[GalleryObject] = []
            for child_id in factory.store.load_child_ids(self._id):
                child = factory.load_gallery_object(child_id, is_writable=self._is_writable)
                if child.is_null:
                    logger.warning("Album {} lists missing child {}", self._id, child_id)
                    continue
                child._parent_ref = weakref.ref(self)  # pylint: disable=protected-access
                children.append(child)
            self._children = children
        return self._children

    def add_gallery_object(self, gallery_object: GalleryObject) -> None:
        """Make `gallery_object` a child of this album.

        The object is removed from its previous album's child list. A new
        object without a sequence is placed after the existing children.
        """
        self._verify_writable()
        old_parent = (
            gallery_object._parent_ref()  # pylint: disable=protected-access
            if gallery_object._parent_ref is not None  # pylint: disable=protected-access
            else None
        )
        gallery_object._set_parent(self)  # pylint: disable=protected-access
        if old_parent is not None and old_parent is not self:
            old_parent._detach_child(gallery_object)  # pylint: disable=protected-access

        children = self._load_children()
        if not any(c is gallery_object for c in children):
            children.append(gallery_object)
        if gallery_object.sequence == INT_MIN:
            gallery_object.sequence = self._next_sequence(gallery_object)

    def _next_sequence(self, exclude: GalleryObject) -> int:
        sequences = [
            c.sequence for c in self._load_children() if c is not exclude and c.sequence != INT_MIN
        ]
        return max(sequences, default=0) + 1

    def remove_gallery_object(self, gallery_object: GalleryObject) -> None:
        """Detach `gallery_object` from this album without deleting it."""
        self._verify_writable()
        gallery_object.set_parent_to_null()
        self._detach_child(gallery_object)

    def _detach_child(self, gallery_object: GalleryObject) -> None:
        if self._children is None:
            return
        self._children = [
            c
            for c in self._children
            if c is not gallery_object
            and not (c.id != INT_MIN and c.id == gallery_object.id)
        ]

    def get_child_gallery_objects(
        self,
        gallery_object_type: GalleryObjectType = GalleryObjectType.All,
        sort_by_sequence: bool = False,
        exclude_private: bool = False,
    ) -> list[GalleryObject]:
        """Return the children that match `gallery_object_type`.

        Args:
            gallery_object_type: Filter; `All` returns every child and
                `MediaObject` returns every non-album child.
            sort_by_sequence: Order by `(sequence, id)`. Otherwise the album's
                metadata sort applies when one is configured.
            exclude_private: Drop children flagged private.
        """
        children = [
            c
            for c in self._load_children()
            if gallery_object_type.matches(c.gallery_object_type)
            and not (exclude_private and c.is_private)
        ]
        service = SortService()
        if sort_by_sequence or self.sort_by_meta_name is MetadataItemName.NotSpecified:
            return service.sort_by_sequence(children)
        return service.sort(children, [(self.sort_by_meta_name, self.sort_ascending)])

    def sort(self, sort_by_meta_name: MetadataItemName, ascending: bool = True) -> None:
        """Set the metadata field used to order the children."""
        self.sort_by_meta_name = sort_by_meta_name
        self.sort_ascending = ascending

    # ------------------------------------------------------------------
    # Thumbnail
    # ------------------------------------------------------------------
    def assign_thumbnail_if_missing(self) -> None:
        """Use the first media child as the album thumbnail when none is set."""
        if self._thumbnail_media_object_id != 0 or not self._is_writable:
            return
        candidates = self.get_child_gallery_objects(
            GalleryObjectType.MediaObject, sort_by_sequence=True
        )
        if not candidates:
            return
        first = candidates[0]
        self.thumbnail_media_object_id = first.id
        self.thumbnail = first.thumbnail.copy_to(self)
        logger.debug("Album {} uses media object {} as thumbnail", self._id, first.id)
        if not self._is_new:
            self.save()

    def _on_child_deleted(self, gallery_object: GalleryObject) -> None:
        if not self._is_writable or self._thumbnail_media_object_id != gallery_object.id:
            return
        self.thumbnail_media_object_id = 0
        self.assign_thumbnail_if_missing()
        if self._has_changes and not self._is_new:
            self.save()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _persist(self) -> None:
        if self._is_new:
            self._require_factory().file_system.ensure_directory(self.full_physical_path)
        super()._persist()

    def _delete_files_and_record(self, delete_from_file_system: bool) -> None:
        # Children are deleted through their own paths so their files and
        # listeners are handled the same way as a direct delete.
        for child in list(self._load_children()):
            if delete_from_file_system:
                child.delete()
            else:
                child.delete_from_gallery()
        if self.is_root_album:
            self._thumbnail_media_object_id = 0
            return
        factory = self._require_factory()
        if delete_from_file_system:
            factory.file_system.delete_directory(self.full_physical_path)
        factory.store.delete(self)

    def _refresh_physical_paths(self) -> None:
        for child in self._children or []:
            child._refresh_physical_paths()  # pylint: disable=protected-access

    def copy_to(self, destination_album: Album, user_name: str) -> Album:
        """Copy this album, its metadata and all of its children into `destination_album`."""
        if destination_album is self or destination_album.has_ancestor(self):
            raise InvalidGalleryObjectError(
                f"Album {self._id} cannot be copied into itself or one of its children"
            )
        factory = self._require_factory()
        album_copy = factory.create_album(destination_album, self.title, user_name)
        self._copy_metadata_to(album_copy)
        album_copy.is_private = destination_album.is_private or self.is_private
        album_copy.sort_by_meta_name = self.sort_by_meta_name
        album_copy.sort_ascending = self.sort_ascending
        album_copy.save(user_name)

        for child in self.get_child_gallery_objects(sort_by_sequence=True):
            child_copy = child.copy_to(album_copy, user_name)
            if child.id == self.thumbnail_media_object_id:
                album_copy.thumbnail_media_object_id = child_copy.id
                album_copy.thumbnail = child_copy.thumbnail.copy_to(album_copy)
        if album_copy.has_changes:
            album_copy.save(user_name)
        logger.info("Copied album {} to {} as {}", self._id, destination_album.id, album_copy.id)
        return album_copy

    def move_to(self, destination_album: Album) -> None:
        """Move this album, with its directory, under `destination_album`."""
        self._ensure_inflated()
        self._verify_writable()
        if self.is_root_album:
            raise InvalidGalleryObjectError("The root album cannot be moved")
        self._check_can_move_under(destination_album)
        factory = self._require_factory()
        old_path = self.full_physical_path
        new_path = os.path.join(destination_album.full_physical_path, self._directory_name)
        if os.path.normcase(old_path) != os.path.normcase(new_path):
            actual = factory.file_system.move_file(old_path, new_path)
            self.directory_name = os.path.basename(actual)

        self._sequence = INT_MIN
        destination_album.add_gallery_object(self)
        self.gallery_id = destination_album.gallery_id
        self.is_private = destination_album.is_private
        self.save()
        self._relocate_children()
        logger.info("Moved album {} to {}", self._id, destination_album.id)

    def _relocate_children(self) -> None:
        """Point every descendant at the moved directory and store the new paths."""
        for child in self._load_children():
            if isinstance(child, Album):
                child._relocate_children()  # pylint: disable=protected-access
                continue
            child._refresh_physical_paths()  # pylint: disable=protected-access
            if child.is_writable:
                child.mark_changed()
                child.save()
