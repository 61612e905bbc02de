"""Rendition creators: produce the files behind display objects.

Each creator is handed a display object and inspects its owning gallery object
to decide whether the file must be (re)generated. Calling a creator again when
nothing changed does no work.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from loguru import logger

from core.display_object import DisplayObject
from core.enums import GalleryObjectType, MetadataItemName, RotateFlip
from core.errors import UnsupportedImageError
from core.factory import RenditionCreators
from infrastructure.file_system import unique_path

if TYPE_CHECKING:
    from core.gallery_object import GalleryObject
    from core.mime_type import MimeTypeRegistry
    from core.services.interfaces import FileSystem
    from infrastructure.image_service import ImageService
    from infrastructure.settings import GallerySettings


def _rendition_directory(gallery_object: GalleryObject) -> str:
    original_path = gallery_object.original.file_name_physical_path
    if original_path:
        return os.path.dirname(original_path)
    parent = gallery_object.parent
    if parent.gallery_object_type is GalleryObjectType.Album:
        return parent.full_physical_path
    return ""


def _rendition_path(display_object: DisplayObject, prefix: str) -> str:
    """Existing path of the rendition, or a new unique ``<prefix><stem>.jpg``."""
    gallery_object = display_object.parent
    current = display_object.file_name_physical_path
    if current and current != gallery_object.original.file_name_physical_path:
        return current
    original_name = gallery_object.original.file_name
    stem = os.path.splitext(original_name)[0] if original_name else "external"
    return unique_path(os.path.join(_rendition_directory(gallery_object), f"{prefix}{stem}.jpg"))


def _rotation_pending(gallery_object: GalleryObject) -> bool:
    return gallery_object.rotate_flip is not RotateFlip.NotSpecified


class _Creator:
    def __init__(
        self,
        settings: GallerySettings,
        image_service: ImageService,
        file_system: FileSystem,
        mime_types: MimeTypeRegistry,
    ) -> None:
        self.settings = settings
        self.image_service = image_service
        self.file_system = file_system
        self.mime_types = mime_types

    def _assign(self, display_object: DisplayObject, path: str, width: int, height: int) -> None:
        display_object.assign_file(path, self.file_system.file_size_kb(path))
        display_object.width = width
        display_object.height = height
        display_object.mime_type = self.mime_types.load(path)


class ImageOriginalCreator(_Creator):
    """Measures the original and applies a pending user rotation to it."""

    def generate_and_save_file(self, display_object: DisplayObject) -> None:
        gallery_object = display_object.parent
        path = display_object.file_name_physical_path
        if not path:
            return
        if display_object.get_size().is_empty:
            try:
                size = self.image_service.get_size(path)
                display_object.width, display_object.height = size.width, size.height
            except UnsupportedImageError as ex:
                logger.debug("Cannot measure original {}: {}", path, ex)
        if gallery_object.is_new or not _rotation_pending(gallery_object):
            return

        rotation = gallery_object.calculate_needed_rotation()
        if rotation.is_identity:
            orientation = gallery_object.metadata_items.try_get(MetadataItemName.Orientation)
            if orientation is not None:
                orientation.is_deleted = True
            return
        size = self.image_service.apply_rotate_flip(
            path, rotation, self.settings.original_jpeg_quality
        )
        display_object.width, display_object.height = size.width, size.height
        display_object.file_size_kb = self.file_system.file_size_kb(path)


class ImageThumbnailCreator(_Creator):
    """Small JPEG preview of an image."""

    def generate_and_save_file(self, display_object: DisplayObject) -> None:
        gallery_object = display_object.parent
        source = gallery_object.original.file_name_physical_path
        if not source:
            return
        needs_file = (
            not self.file_system.exists(display_object.file_name_physical_path)
            or gallery_object.regenerate_thumbnail_on_save
            or _rotation_pending(gallery_object)
        )
        if not needs_file:
            return
        destination = _rendition_path(display_object, self.settings.thumbnail_file_prefix)
        size = self.image_service.save_rendition(
            source,
            destination,
            self.settings.max_thumbnail_length,
            self.settings.thumbnail_jpeg_quality,
        )
        self._assign(display_object, destination, size.width, size.height)
        logger.info("Created thumbnail {} ({}x{})", destination, size.width, size.height)


class ImageOptimizedCreator(_Creator):
    """Web-sized JPEG of an image; mirrors the original when it is already small."""

    def generate_and_save_file(self, display_object: DisplayObject) -> None:
        gallery_object = display_object.parent
        original = gallery_object.original
        source = original.file_name_physical_path
        if not source:
            return
        needs_file = (
            not self.file_system.exists(display_object.file_name_physical_path)
            or gallery_object.regenerate_optimized_on_save
            or _rotation_pending(gallery_object)
        )
        if not needs_file:
            return

        if not self._needs_optimized_copy(original):
            current = display_object.file_name_physical_path
            if current and current != source:
                self.file_system.delete_file(current)
            display_object.assign_file(source, original.file_size_kb)
            display_object.width, display_object.height = original.width, original.height
            display_object.mime_type = original.mime_type.copy()
            return

        destination = _rendition_path(display_object, self.settings.optimized_file_prefix)
        size = self.image_service.save_rendition(
            source,
            destination,
            self.settings.max_optimized_length,
            self.settings.optimized_jpeg_quality,
        )
        self._assign(display_object, destination, size.width, size.height)
        logger.info("Created optimized image {} ({}x{})", destination, size.width, size.height)

    def _needs_optimized_copy(self, original: DisplayObject) -> bool:
        source = original.file_name_physical_path
        size_kb = original.file_size_kb
        if size_kb <= 0:
            size_kb = self.file_system.file_size_kb(source)
        size = original.get_size()
        if size.is_empty:
            size = self.image_service.get_size(source)
        return (
            size_kb > self.settings.optimized_trigger_size_kb
            or max(size.width, size.height) > self.settings.max_optimized_length
            or not self.image_service.is_jpeg(source)
        )


class GenericThumbnailCreator(_Creator):
    """Placeholder thumbnail for media Pillow cannot render."""

    def generate_and_save_file(self, display_object: DisplayObject) -> None:
        gallery_object = display_object.parent
        needs_file = (
            not self.file_system.exists(display_object.file_name_physical_path)
            or gallery_object.regenerate_thumbnail_on_save
        )
        if not needs_file or not _rendition_directory(gallery_object):
            return
        destination = _rendition_path(display_object, self.settings.thumbnail_file_prefix)
        label = os.path.splitext(gallery_object.original.file_name)[1].lstrip(".")
        if not label:
            label = gallery_object.original.mime_type.category.name
        size = self.image_service.render_placeholder(
            destination,
            self.settings.max_thumbnail_length,
            label,
            self.settings.thumbnail_jpeg_quality,
        )
        self._assign(display_object, destination, size.width, size.height)
        logger.info("Created placeholder thumbnail {}", destination)


class MirrorOriginalCreator(_Creator):
    """Points a rendition at the original file; used for media shown as-is."""

    def generate_and_save_file(self, display_object: DisplayObject) -> None:
        original = display_object.parent.original
        if not original.file_name_physical_path:
            return
        display_object.assign_file(original.file_name_physical_path, original.file_size_kb)
        display_object.width, display_object.height = original.width, original.height
        display_object.mime_type = original.mime_type.copy()


def build_rendition_creators(
    settings: GallerySettings,
    image_service: ImageService,
    file_system: FileSystem,
    mime_types: MimeTypeRegistry,
) -> RenditionCreators:
    """Creators for `GalleryFactory`, all sharing the same collaborators."""
    args = (settings, image_service, file_system, mime_types)
    return RenditionCreators(
        image_original=ImageOriginalCreator(*args),
        image_thumbnail=ImageThumbnailCreator(*args),
        image_optimized=ImageOptimizedCreator(*args),
        generic_thumbnail=GenericThumbnailCreator(*args),
        mirror_original=MirrorOriginalCreator(*args),
    )
