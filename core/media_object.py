"""Media objects: images, video, audio, generic files and external content."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from loguru import logger

from core.display_object import DisplayObject
from core.enums import (
    INT_MIN,
    DisplayObjectType,
    GalleryObjectType,
    MetadataItemName,
    MimeTypeCategory,
    RotateFlip,
)
from core.errors import UnsupportedImageError
from core.gallery_object import GalleryObject
from core.metadata import MetaValue
from core.mime_type import MimeType
from core.null_objects import NULL_DISPLAY_OBJECT

if TYPE_CHECKING:
    from core.album import Album
    from core.services.interfaces import DisplayObjectRecord, GalleryObjectRecord

# Items that change when the pixels of the original are rotated.
DIMENSION_METADATA_ITEMS = (
    MetadataItemName.Width,
    MetadataItemName.Height,
    MetadataItemName.Dimensions,
    MetadataItemName.HorizontalResolution,
    MetadataItemName.VerticalResolution,
    MetadataItemName.Orientation,
)

# Items that describe the original file itself.
FILE_METADATA_ITEMS = (
    MetadataItemName.FileName,
    MetadataItemName.FileNameWithoutExtension,
    MetadataItemName.FileSizeKb,
    MetadataItemName.Width,
    MetadataItemName.Height,
    MetadataItemName.Dimensions,
)


def _apply_display_record(display_object: DisplayObject, record: DisplayObjectRecord) -> None:
    display_object.file_name = record.file_name
    display_object.file_name_physical_path = record.file_name_physical_path
    display_object.width = record.width
    display_object.height = record.height
    display_object.file_size_kb = record.file_size_kb
    display_object.external_html_source = record.external_html_source
    display_object.external_type = record.external_type


class MediaObject(GalleryObject):
    """A single media file and its renditions."""

    gallery_object_type = GalleryObjectType.MediaObject

    @property
    def mime_type(self) -> MimeType:
        return self.original.mime_type

    def _apply_record(self, record: GalleryObjectRecord) -> None:
        super()._apply_record(record)
        registry = self._require_factory().mime_types
        for display_object, display_record in (
            (self.original, record.original),
            (self.optimized, record.optimized),
            (self.thumbnail, record.thumbnail),
        ):
            _apply_display_record(display_object, display_record)
            display_object.mime_type = registry.load(display_record.file_name)

    def _refresh_physical_paths(self) -> None:
        parent = self.parent
        if parent.gallery_object_type is not GalleryObjectType.Album:
            return
        directory = parent.full_physical_path
        for display_object in (self.original, self.optimized, self.thumbnail):
            if display_object is NULL_DISPLAY_OBJECT or display_object.is_external:
                continue
            if display_object.file_name:
                display_object.file_name_physical_path = os.path.join(
                    directory, display_object.file_name
                )

    def _has_distinct_optimized_file(self) -> bool:
        path = self.optimized.file_name_physical_path
        return bool(path) and path != self.original.file_name_physical_path

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------
    def _persist(self) -> None:
        rotated = self._rotate_flip is not RotateFlip.NotSpecified
        self._generate_display_objects()
        if not self._is_new:
            self._sync_file_name()
        if rotated:
            self._refresh_metadata(DIMENSION_METADATA_ITEMS)
            self._rotate_flip = RotateFlip.NotSpecified
        super()._persist()

    def _generate_display_objects(self) -> None:
        factory = self._require_factory()
        self.original.generate_and_save_file()
        try:
            self.thumbnail.generate_and_save_file()
            self.optimized.generate_and_save_file()
        except UnsupportedImageError as ex:
            logger.warning(
                "Cannot render {} ({}); using generic thumbnail",
                self.original.file_name_physical_path,
                ex,
            )
            self.thumbnail.creator = factory.generic_thumbnail_creator()
            self.thumbnail.generate_and_save_file()
            self.optimized = NULL_DISPLAY_OBJECT

    def _sync_file_name(self) -> None:
        """Rename the original file when the FileName metadata item was edited."""
        item = self._metadata_items.try_get(MetadataItemName.FileName)
        if item is None or not item.has_changes or item.is_deleted:
            return
        new_name = os.path.basename(item.value.strip())
        if not new_name or new_name == self.original.file_name:
            return
        factory = self._require_factory()
        old_path = self.original.file_name_physical_path
        mirrors_original = self.optimized.file_name_physical_path == old_path
        new_path = factory.file_system.move_file(
            old_path, os.path.join(os.path.dirname(old_path), new_name)
        )
        self.original.assign_file(new_path, self.original.file_size_kb)
        if mirrors_original and self.optimized is not NULL_DISPLAY_OBJECT:
            self.optimized.assign_file(new_path, self.original.file_size_kb)
        item.value = os.path.basename(new_path)
        logger.info("Renamed {} to {}", old_path, new_path)

    def _write_metadata_to_file(self) -> None:
        if self._is_new:
            return
        items = [
            i
            for i in self._metadata_items
            if i.has_changes and i.persist_to_file and not i.is_deleted
        ]
        path = self.original.file_name_physical_path
        if items and path:
            self._require_factory().metadata_reader_for(self).write(path, items)

    def _refresh_metadata(self, names: tuple[MetadataItemName, ...]) -> None:
        values = self._read_meta_values()
        for name in names:
            self._extract_one(self.metadata_definitions.find(name), values)

    # ------------------------------------------------------------------
    # Delete, copy and move
    # ------------------------------------------------------------------
    def _delete_files_and_record(self, delete_from_file_system: bool) -> None:
        factory = self._require_factory()
        file_system = factory.file_system
        if self.thumbnail.file_name_physical_path:
            file_system.delete_file(self.thumbnail.file_name_physical_path)
        if self._has_distinct_optimized_file():
            file_system.delete_file(self.optimized.file_name_physical_path)
        if delete_from_file_system and self.original.file_name_physical_path:
            file_system.delete_file(self.original.file_name_physical_path)
        if not self._is_new:
            factory.store.delete(self)

    def delete_original_file(self) -> None:
        """Replace the original file with the optimized rendition.

        Does nothing when there is no separate optimized file. The caller saves
        the object afterwards.
        """
        self._ensure_inflated()
        self._verify_writable()
        if not self._has_distinct_optimized_file():
            logger.debug("Media object {} has no optimized file; keeping original", self._id)
            return
        factory = self._require_factory()
        original_path = self.original.file_name_physical_path
        optimized_path = self.optimized.file_name_physical_path
        factory.file_system.delete_file(original_path)
        stem = os.path.splitext(os.path.basename(original_path))[0]
        target = os.path.join(
            os.path.dirname(original_path), stem + os.path.splitext(optimized_path)[1]
        )
        new_path = factory.file_system.move_file(optimized_path, target)

        self.original.assign_file(new_path, self.optimized.file_size_kb)
        self.original.width = self.optimized.width
        self.original.height = self.optimized.height
        self.original.mime_type = factory.mime_types.load(new_path)
        self.optimized.assign_file(new_path, self.optimized.file_size_kb)
        self.mark_changed()
        self._refresh_metadata(FILE_METADATA_ITEMS)
        logger.info("Replaced original of {} with {}", self._id, new_path)

    def copy_to(self, destination_album: Album, user_name: str) -> MediaObject:
        """Copy the files and metadata of this object into `destination_album`."""
        factory = self._require_factory()
        file_system = factory.file_system
        directory = destination_album.full_physical_path
        new_path = file_system.copy_file(
            self.original.file_name_physical_path,
            os.path.join(directory, self.original.file_name),
        )
        media_copy = factory.create_media_object_from_file(
            new_path, destination_album, user_name, extract_metadata=False
        )
        media_copy.original.width = self.original.width
        media_copy.original.height = self.original.height
        media_copy.original.file_size_kb = self.original.file_size_kb

        if self._has_distinct_optimized_file():
            optimized_path = file_system.copy_file(
                self.optimized.file_name_physical_path,
                os.path.join(directory, self.optimized.file_name),
            )
        else:
            optimized_path = new_path
        if self.optimized is not NULL_DISPLAY_OBJECT:
            optimized = self.optimized.copy_to(media_copy)
            optimized.assign_file(optimized_path, self.optimized.file_size_kb)
            optimized.creator = media_copy.optimized.creator
            media_copy.optimized = optimized

        if self.thumbnail.file_name_physical_path:
            thumbnail_path = file_system.copy_file(
                self.thumbnail.file_name_physical_path,
                os.path.join(directory, self.thumbnail.file_name),
            )
            thumbnail = self.thumbnail.copy_to(media_copy)
            thumbnail.assign_file(thumbnail_path, self.thumbnail.file_size_kb)
            thumbnail.creator = media_copy.thumbnail.creator
            media_copy.thumbnail = thumbnail

        self._copy_metadata_to(media_copy)
        media_copy.is_private = destination_album.is_private
        media_copy.save(user_name)
        logger.info(
            "Copied media object {} to album {} as {}",
            self._id,
            destination_album.id,
            media_copy.id,
        )
        return media_copy

    def move_to(self, destination_album: Album) -> None:
        """Move the files of this object into `destination_album`."""
        self._ensure_inflated()
        self._verify_writable()
        self._check_can_move_under(destination_album)
        file_system = self._require_factory().file_system
        directory = destination_album.full_physical_path
        old_original = self.original.file_name_physical_path
        mirrors_original = self.optimized.file_name_physical_path == old_original

        new_original = file_system.move_file(
            old_original, os.path.join(directory, self.original.file_name)
        )
        self.original.assign_file(new_original, self.original.file_size_kb)
        if mirrors_original and self.optimized is not NULL_DISPLAY_OBJECT:
            self.optimized.assign_file(new_original, self.optimized.file_size_kb)
        elif self.optimized.file_name_physical_path:
            self.optimized.assign_file(
                file_system.move_file(
                    self.optimized.file_name_physical_path,
                    os.path.join(directory, self.optimized.file_name),
                ),
                self.optimized.file_size_kb,
            )
        if self.thumbnail.file_name_physical_path:
            self.thumbnail.assign_file(
                file_system.move_file(
                    self.thumbnail.file_name_physical_path,
                    os.path.join(directory, self.thumbnail.file_name),
                ),
                self.thumbnail.file_size_kb,
            )

        self._sequence = INT_MIN
        destination_album.add_gallery_object(self)
        self.gallery_id = destination_album.gallery_id
        self.is_private = destination_album.is_private
        self.mark_changed()
        self.save()
        logger.info("Moved media object {} to album {}", self._id, destination_album.id)


class ImageObject(MediaObject):
    gallery_object_type = GalleryObjectType.Image


class VideoObject(MediaObject):
    gallery_object_type = GalleryObjectType.Video


class AudioObject(MediaObject):
    gallery_object_type = GalleryObjectType.Audio


class GenericMediaObject(MediaObject):
    """Any file the gallery stores but cannot render."""

    gallery_object_type = GalleryObjectType.Generic


class ExternalMediaObject(MediaObject):
    """Content hosted elsewhere and shown through embed HTML.

    The original and optimized renditions carry the HTML; only the thumbnail
    has a file.
    """

    gallery_object_type = GalleryObjectType.External

    def set_external_source(self, html_source: str, category: MimeTypeCategory) -> None:
        self._verify_writable()
        self.original = DisplayObject.create_external(self, html_source, category)
        self.optimized = DisplayObject.create_external(self, html_source, category)
        self.mark_changed()

    @property
    def external_html_source(self) -> str:
        return self.original.external_html_source

    def _apply_record(self, record: GalleryObjectRecord) -> None:
        super()._apply_record(record)
        category = record.original.external_type
        for display_object in (self.original, self.optimized):
            display_object.display_type = DisplayObjectType.External
            display_object.mime_type = MimeType.for_category(category)

    def _metadata_source_path(self) -> str:
        return ""

    def _read_meta_values(self) -> dict[MetadataItemName, MetaValue]:
        values = super()._read_meta_values()
        html = self.original.external_html_source
        if html:
            values[MetadataItemName.HtmlSource] = MetaValue(html, html)
        return values

    def _write_metadata_to_file(self) -> None:
        pass

    def _sync_file_name(self) -> None:
        pass

    def _generate_display_objects(self) -> None:
        self.thumbnail.generate_and_save_file()

    def _delete_files_and_record(self, delete_from_file_system: bool) -> None:
        factory = self._require_factory()
        if self.thumbnail.file_name_physical_path:
            factory.file_system.delete_file(self.thumbnail.file_name_physical_path)
        if not self._is_new:
            factory.store.delete(self)

    def delete_original_file(self) -> None:
        logger.debug("External media object {} has no original file", self._id)

    def copy_to(self, destination_album: Album, user_name: str) -> ExternalMediaObject:
        factory = self._require_factory()
        media_copy = factory.create_external_media_object(
            self.external_html_source, self.original.external_type, destination_album
        )
        self._copy_metadata_to(media_copy)
        media_copy.is_private = destination_album.is_private
        media_copy.save(user_name)
        return media_copy

    def move_to(self, destination_album: Album) -> None:
        self._ensure_inflated()
        self._verify_writable()
        self._check_can_move_under(destination_album)
        directory = destination_album.full_physical_path
        if self.thumbnail.file_name_physical_path:
            self.thumbnail.assign_file(
                self._require_factory().file_system.move_file(
                    self.thumbnail.file_name_physical_path,
                    os.path.join(directory, self.thumbnail.file_name),
                ),
                self.thumbnail.file_size_kb,
            )
        self._sequence = INT_MIN
        destination_album.add_gallery_object(self)
        self.gallery_id = destination_album.gallery_id
        self.is_private = destination_album.is_private
        self.mark_changed()
        self.save()
