"""Renditions of a media object: thumbnail, optimized, original or external."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import TYPE_CHECKING, ClassVar
import weakref

from core.enums import INT_MIN, DisplayObjectType, MimeTypeCategory
from core.mime_type import NULL_MIME_TYPE, MimeType

if TYPE_CHECKING:
    from core.gallery_object import GalleryObject
    from core.services.interfaces import DisplayObjectCreator


@dataclass(frozen=True)
class Size:
    """Pixel dimensions; `Size.EMPTY` means "not measured"."""

    width: int
    height: int

    EMPTY: ClassVar[Size]

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


Size.EMPTY = Size(INT_MIN, INT_MIN)


def calculate_width_and_height(size: Size, max_length: int, auto_enlarge: bool) -> Size:
    """Scale `size` so its longest side equals `max_length`, keeping the aspect ratio.

    When `auto_enlarge` is False an image already smaller than `max_length` on
    both sides keeps its size.
    """
    if size.is_empty:
        return Size.EMPTY
    width, height = size.width, size.height
    if not auto_enlarge and max_length > width and max_length > height:
        return Size(width, height)
    if width >= height:
        return Size(max_length, max(1, round(height * max_length / width)))
    return Size(max(1, round(width * max_length / height)), max_length)


class DisplayObject:
    """One rendition of a media object.

    The owning gallery object is held through a weak reference; the rendition
    never keeps its owner alive.
    """

    def __init__(
        self,
        parent: GalleryObject | None,
        display_type: DisplayObjectType,
        file_name: str = "",
        width: int = INT_MIN,
        height: int = INT_MIN,
        file_size_kb: int = INT_MIN,
        mime_type: MimeType | None = None,
        file_name_physical_path: str = "",
        external_html_source: str = "",
        external_type: MimeTypeCategory = MimeTypeCategory.NotSet,
        creator: DisplayObjectCreator | None = None,
    ) -> None:
        self._parent_ref = weakref.ref(parent) if parent is not None else None
        self._media_object_id = INT_MIN
        self.display_type = display_type
        self.file_name = file_name
        self.file_name_physical_path = file_name_physical_path
        self.temp_file_path = ""
        self.width = width
        self.height = height
        self.file_size_kb = file_size_kb
        self.mime_type = mime_type if mime_type is not None else NULL_MIME_TYPE
        self.external_html_source = external_html_source
        self.external_type = external_type
        self._creator = creator

    @property
    def parent(self) -> GalleryObject:  # pylint: disable=import-outside-toplevel
        parent = self._parent_ref() if self._parent_ref is not None else None
        if parent is None:
            from core.null_objects import NullGalleryObject

            return NullGalleryObject()
        return parent

    @property
    def media_object_id(self) -> int:
        parent = self._parent_ref() if self._parent_ref is not None else None
        if parent is not None:
            return parent.id
        return self._media_object_id

    @media_object_id.setter
    def media_object_id(self, value: int) -> None:
        self._media_object_id = value

    @property
    def creator(self) -> DisplayObjectCreator:  # pylint: disable=import-outside-toplevel
        if self._creator is None:
            from core.null_objects import NULL_DISPLAY_OBJECT_CREATOR

            return NULL_DISPLAY_OBJECT_CREATOR
        return self._creator

    @creator.setter
    def creator(self, value: DisplayObjectCreator | None) -> None:
        self._creator = value

    @property
    def is_external(self) -> bool:
        return self.display_type is DisplayObjectType.External

    def generate_and_save_file(self) -> None:
        """Create or refresh the rendition file on disk; safe to call repeatedly."""
        self.creator.generate_and_save_file(self)

    def get_size(self) -> Size:
        if self.is_external:
            return Size.EMPTY
        size = Size(self.width, self.height)
        return Size.EMPTY if size.is_empty else size

    def assign_file(self, path: str, file_size_kb: int) -> None:
        """Point this rendition at `path`."""
        self.file_name = os.path.basename(path)
        self.file_name_physical_path = path
        self.file_size_kb = max(1, file_size_kb) if file_size_kb != INT_MIN else INT_MIN

    def copy_to(self, parent: GalleryObject) -> DisplayObject:
        """Copy of this rendition owned by `parent`; the creator is not carried over."""
        clone = DisplayObject(
            parent,
            self.display_type,
            self.file_name,
            self.width,
            self.height,
            self.file_size_kb,
            self.mime_type.copy(),
            self.file_name_physical_path,
            self.external_html_source,
            self.external_type,
        )
        clone.temp_file_path = self.temp_file_path
        return clone

    @classmethod
    def create_instance(
        cls,
        parent: GalleryObject | None,
        display_type: DisplayObjectType,
        file_path: str = "",
        size: Size = Size.EMPTY,
        file_size_kb: int = INT_MIN,
        mime_type: MimeType | None = None,
        creator: DisplayObjectCreator | None = None,
    ) -> DisplayObject:
        """Rendition backed by the file at `file_path` (may not exist yet)."""
        return cls(
            parent,
            display_type,
            file_name=os.path.basename(file_path),
            width=size.width,
            height=size.height,
            file_size_kb=file_size_kb,
            mime_type=mime_type,
            file_name_physical_path=file_path,
            creator=creator,
        )

    @classmethod
    def create_external(
        cls,
        parent: GalleryObject | None,
        html_source: str,
        category: MimeTypeCategory,
        display_type: DisplayObjectType = DisplayObjectType.External,
    ) -> DisplayObject:
        """Rendition for embedded content that has no backing file."""
        return cls(
            parent,
            display_type,
            mime_type=MimeType.for_category(category),
            external_html_source=html_source,
            external_type=category,
        )

    def __repr__(self) -> str:
        return (
            f"DisplayObject({self.display_type.name}, {self.file_name!r}, "
            f"{self.width}x{self.height})"
        )
