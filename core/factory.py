"""Creates and loads gallery objects and wires them to their collaborators.

Every gallery object keeps a reference to the factory that built it and uses it
to reach the store, the file system, the metadata readers, the mime type
registry and the rendition creators.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
import os
import re
from typing import TYPE_CHECKING

from loguru import logger

from core.album import Album
from core.display_object import DisplayObject
from core.enums import DisplayObjectType, GalleryObjectType, MimeTypeCategory
from core.gallery_object import GalleryObject
from core.media_object import (
    AudioObject,
    ExternalMediaObject,
    GenericMediaObject,
    ImageObject,
    MediaObject,
    VideoObject,
)
from core.metadata import MetadataDefinitionCollection
from core.mime_type import MimeTypeRegistry
from core.null_objects import NULL_DISPLAY_OBJECT_CREATOR, NullGalleryObject, NullMetadataReadWriter

if TYPE_CHECKING:
    from core.services.interfaces import (
        DisplayObjectCreator,
        FileSystem,
        GalleryStore,
        MetadataReadWriter,
    )
    from infrastructure.settings import GallerySettings

_GALLERY_OBJECT_CLASSES: dict[GalleryObjectType, type[GalleryObject]] = {
    GalleryObjectType.Album: Album,
    GalleryObjectType.Image: ImageObject,
    GalleryObjectType.Video: VideoObject,
    GalleryObjectType.Audio: AudioObject,
    GalleryObjectType.Generic: GenericMediaObject,
    GalleryObjectType.External: ExternalMediaObject,
}

_MEDIA_CLASSES: dict[MimeTypeCategory, type[MediaObject]] = {
    MimeTypeCategory.Image: ImageObject,
    MimeTypeCategory.Video: VideoObject,
    MimeTypeCategory.Audio: AudioObject,
}

_INVALID_DIRECTORY_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


@dataclass
class RenditionCreators:
    """Strategies used to generate rendition files.

    Attributes:
        image_original: Applies pending rotations to image originals.
        image_thumbnail: Renders image thumbnails.
        image_optimized: Renders web-sized image copies.
        generic_thumbnail: Renders a placeholder thumbnail for other media.
        mirror_original: Points a rendition at the original file.
    """

    image_original: DisplayObjectCreator = NULL_DISPLAY_OBJECT_CREATOR
    image_thumbnail: DisplayObjectCreator = NULL_DISPLAY_OBJECT_CREATOR
    image_optimized: DisplayObjectCreator = NULL_DISPLAY_OBJECT_CREATOR
    generic_thumbnail: DisplayObjectCreator = NULL_DISPLAY_OBJECT_CREATOR
    mirror_original: DisplayObjectCreator = NULL_DISPLAY_OBJECT_CREATOR


def sanitize_directory_name(title: str) -> str:
    """Turn an album title into a directory name."""
    name = _INVALID_DIRECTORY_CHARS.sub("", title).strip().strip(".")
    return name or "Album"


class GalleryFactory:
    """Builds albums and media objects bound to one gallery."""

    def __init__(
        self,
        settings: GallerySettings,
        store: GalleryStore,
        file_system: FileSystem,
        mime_types: MimeTypeRegistry | None = None,
        metadata_definitions: MetadataDefinitionCollection | None = None,
        readers: Mapping[GalleryObjectType, MetadataReadWriter] | None = None,
        creators: RenditionCreators | None = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.file_system = file_system
        self.mime_types = mime_types or MimeTypeRegistry.from_settings(settings)
        if metadata_definitions is None:
            if settings.metadata_display_settings:
                metadata_definitions = MetadataDefinitionCollection.from_dicts(
                    settings.metadata_display_settings
                )
            else:
                metadata_definitions = MetadataDefinitionCollection.default()
        self.metadata_definitions = metadata_definitions
        self.readers = dict(readers or {})
        self.creators = creators or RenditionCreators()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load_gallery_object(
        self, gallery_object_id: int, is_writable: bool = False
    ) -> GalleryObject:
        """Load an album or media object; a null object when it does not exist."""
        record = self.store.load(gallery_object_id)
        if record is None:
            logger.debug("Gallery object {} not found", gallery_object_id)
            return NullGalleryObject()
        cls = _GALLERY_OBJECT_CLASSES.get(record.gallery_object_type, GenericMediaObject)
        gallery_object = cls(
            self,
            record.id,
            record.gallery_id,
            record.parent_id,
            record.sequence,
            is_new=False,
        )
        gallery_object._apply_record(record)  # pylint: disable=protected-access
        gallery_object._mark_inflated()  # pylint: disable=protected-access
        self.assign_creators(gallery_object)
        if is_writable:
            gallery_object.is_writable = True
        return gallery_object

    def load_album(self, album_id: int, is_writable: bool = False) -> GalleryObject:
        """Load an album; a null object when missing or not an album."""
        gallery_object = self.load_gallery_object(album_id, is_writable)
        if gallery_object.gallery_object_type is not GalleryObjectType.Album:
            return NullGalleryObject()
        return gallery_object

    def load_media_object(self, media_object_id: int, is_writable: bool = False) -> GalleryObject:
        """Load a media object; a null object when missing or an album."""
        gallery_object = self.load_gallery_object(media_object_id, is_writable)
        if gallery_object.gallery_object_type in (
            GalleryObjectType.Album,
            GalleryObjectType.None_,
        ):
            return NullGalleryObject()
        return gallery_object

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def create_album(self, parent: Album | None, title: str = "", user_name: str = "") -> Album:
        """Create an unsaved, writable album; a root album when `parent` is None."""
        album = Album(self, gallery_id=self.settings.gallery_id)
        album.is_writable = True
        album.created_by = user_name
        album.date_added = datetime.now()
        if parent is not None:
            album.directory_name = self._unique_directory_name(parent, title)
            parent.add_gallery_object(album)
        album.extract_metadata()
        if title:
            album.title = title
        return album

    def _unique_directory_name(self, parent: Album, title: str) -> str:
        base = sanitize_directory_name(title)
        taken = {
            c.directory_name.lower()
            for c in parent.get_child_gallery_objects(GalleryObjectType.Album)
            if isinstance(c, Album)
        }
        parent_path = parent.full_physical_path
        name = base
        counter = 1
        while name.lower() in taken or self.file_system.exists(os.path.join(parent_path, name)):
            name = f"{base} ({counter})"
            counter += 1
        return name

    def create_media_object_from_file(
        self,
        file_path: str,
        album: Album,
        user_name: str = "",
        extract_metadata: bool = True,
    ) -> MediaObject:
        """Create an unsaved, writable media object for the file at `file_path`.

        The variant is chosen from the file's mime category.
        """
        mime_type = self.mime_types.load(file_path)
        cls = _MEDIA_CLASSES.get(mime_type.category, GenericMediaObject)
        media_object = cls(self, gallery_id=album.gallery_id)
        media_object.is_writable = True
        media_object.created_by = user_name
        media_object.date_added = datetime.now()
        album.add_gallery_object(media_object)

        media_object.original = self.create_display_object(
            media_object,
            DisplayObjectType.Original,
            file_path,
            self.file_system.file_size_kb(file_path),
        )
        media_object.optimized = self.create_display_object(
            media_object, DisplayObjectType.Optimized
        )
        media_object.thumbnail = self.create_display_object(
            media_object, DisplayObjectType.Thumbnail
        )
        self.assign_creators(media_object)
        if extract_metadata:
            media_object.extract_metadata()
        logger.debug("Created {} for {}", cls.__name__, file_path)
        return media_object

    def create_external_media_object(
        self, html_source: str, category: MimeTypeCategory, album: Album
    ) -> ExternalMediaObject:
        """Create an unsaved, writable media object for embedded content."""
        media_object = ExternalMediaObject(self, gallery_id=album.gallery_id)
        media_object.is_writable = True
        media_object.date_added = datetime.now()
        album.add_gallery_object(media_object)
        media_object.set_external_source(html_source, category)
        media_object.thumbnail = self.create_display_object(
            media_object, DisplayObjectType.Thumbnail
        )
        self.assign_creators(media_object)
        media_object.extract_metadata()
        return media_object

    def create_display_object(
        self,
        parent: GalleryObject,
        display_type: DisplayObjectType,
        file_path: str = "",
        file_size_kb: int | None = None,
    ) -> DisplayObject:
        display_object = DisplayObject.create_instance(
            parent,
            display_type,
            file_path,
            mime_type=self.mime_types.load(file_path) if file_path else None,
        )
        if file_size_kb is not None:
            display_object.file_size_kb = max(1, file_size_kb)
        return display_object

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------
    def metadata_reader_for(self, gallery_object: GalleryObject) -> MetadataReadWriter:
        """Reader for the object's type, falling back to the generic media reader."""
        reader = self.readers.get(gallery_object.gallery_object_type)
        if reader is None and gallery_object.gallery_object_type is not GalleryObjectType.Album:
            reader = self.readers.get(GalleryObjectType.MediaObject)
        return reader if reader is not None else NullMetadataReadWriter()

    def creators_for(
        self, gallery_object: GalleryObject
    ) -> tuple[DisplayObjectCreator, DisplayObjectCreator, DisplayObjectCreator]:
        """Original, optimized and thumbnail creators for `gallery_object`."""
        creators = self.creators
        null = NULL_DISPLAY_OBJECT_CREATOR
        object_type = gallery_object.gallery_object_type
        if object_type is GalleryObjectType.Image:
            return creators.image_original, creators.image_optimized, creators.image_thumbnail
        if object_type is GalleryObjectType.External:
            return null, null, creators.generic_thumbnail
        if object_type in (GalleryObjectType.Album, GalleryObjectType.None_):
            return null, null, null
        return null, creators.mirror_original, creators.generic_thumbnail

    def assign_creators(self, gallery_object: GalleryObject) -> None:
        original, optimized, thumbnail = self.creators_for(gallery_object)
        gallery_object.original.creator = original
        gallery_object.optimized.creator = optimized
        gallery_object.thumbnail.creator = thumbnail

    def generic_thumbnail_creator(self) -> DisplayObjectCreator:
        return self.creators.generic_thumbnail
