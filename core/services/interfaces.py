"""Collaborator contracts and the plain records exchanged with them.

The domain model never talks to a database, the disk or a metadata library
directly; it calls the protocols below. The record dataclasses describe what a
store hands back when a gallery object is inflated.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from core.enums import (
    INT_MIN,
    DisplayObjectType,
    GalleryObjectType,
    MetadataItemName,
    MimeTypeCategory,
    RotateFlip,
)

if TYPE_CHECKING:
    from core.display_object import DisplayObject
    from core.gallery_object import GalleryObject
    from core.metadata import MetadataItem, MetaValue


@dataclass
class DisplayObjectRecord:
    """Stored state of one rendition.

    Attributes:
        display_type: Thumbnail, optimized, original or external.
        file_name: File name inside the album directory; empty when external.
        file_name_physical_path: Full path of the file.
        width: Width in pixels, or INT_MIN when unknown.
        height: Height in pixels, or INT_MIN when unknown.
        file_size_kb: Size in kilobytes, or INT_MIN when unknown.
        external_html_source: Embed code for external content.
        external_type: Category of external content.
    """

    display_type: DisplayObjectType
    file_name: str = ""
    file_name_physical_path: str = ""
    width: int = INT_MIN
    height: int = INT_MIN
    file_size_kb: int = INT_MIN
    external_html_source: str = ""
    external_type: MimeTypeCategory = MimeTypeCategory.NotSet


@dataclass
class MetadataRecord:
    """Stored metadata value.

    Attributes:
        name: Which metadata field this is.
        value: Formatted value.
        raw_value: Unformatted value, if any.
        record_id: Store identifier of the row.
    """

    name: MetadataItemName
    value: str
    raw_value: str | None = None
    record_id: int = INT_MIN


@dataclass
class GalleryObjectRecord:
    """Everything a store knows about one album or media object.

    Attributes:
        id: Store identifier.
        gallery_id: Gallery the object belongs to.
        parent_id: Identifier of the containing album; INT_MIN for a root album.
        gallery_object_type: Album or media variant.
        sequence: Position within the parent album.
        date_added: Creation timestamp.
        date_last_modified: Last modification timestamp.
        created_by: User name that created the object.
        last_modified_by: User name that last changed the object.
        is_private: Whether the object is hidden from anonymous users.
        rotate_flip: Pending rotation requested by a user.
        directory_name: Album directory name (albums only).
        thumbnail_media_object_id: Media object used as album thumbnail.
        sort_by_meta_name: Metadata field used to sort album children.
        sort_ascending: Direction of the album child sort.
        thumbnail: Stored thumbnail rendition.
        optimized: Stored optimized rendition.
        original: Stored original rendition.
        metadata: Stored metadata values.
    """

    id: int
    gallery_id: int
    parent_id: int
    gallery_object_type: GalleryObjectType
    sequence: int = 0
    date_added: datetime = datetime.min
    date_last_modified: datetime = datetime.min
    created_by: str = ""
    last_modified_by: str = ""
    is_private: bool = False
    rotate_flip: RotateFlip = RotateFlip.NotSpecified
    directory_name: str = ""
    thumbnail_media_object_id: int = 0
    sort_by_meta_name: MetadataItemName = MetadataItemName.NotSpecified
    sort_ascending: bool = True
    thumbnail: DisplayObjectRecord = field(
        default_factory=lambda: DisplayObjectRecord(DisplayObjectType.Thumbnail)
    )
    optimized: DisplayObjectRecord = field(
        default_factory=lambda: DisplayObjectRecord(DisplayObjectType.Optimized)
    )
    original: DisplayObjectRecord = field(
        default_factory=lambda: DisplayObjectRecord(DisplayObjectType.Original)
    )
    metadata: list[MetadataRecord] = field(default_factory=list)


class GalleryStore(Protocol):
    """Persistence provider for gallery objects."""

    def load(self, gallery_object_id: int) -> GalleryObjectRecord | None:
        """Return the stored record, or None when no such object exists."""
        raise NotImplementedError

    def load_child_ids(self, album_id: int) -> list[int]:
        """Return identifiers of the direct children of `album_id`."""
        raise NotImplementedError

    def save(self, gallery_object: GalleryObject) -> int:
        """Insert or update `gallery_object` and return its identifier."""
        raise NotImplementedError

    def delete(self, gallery_object: GalleryObject) -> None:
        """Remove `gallery_object` from the store."""
        raise NotImplementedError


class MetadataReadWriter(Protocol):
    """Reads embedded metadata from a media file and writes it back."""

    def read(self, file_path: str) -> dict[MetadataItemName, MetaValue]:
        """Return metadata values found in `file_path`, in file order."""
        raise NotImplementedError

    def write(self, file_path: str, items: Iterable[MetadataItem]) -> None:
        """Persist `items` into `file_path`."""
        raise NotImplementedError


class FileSystem(Protocol):
    """File operations used by renditions and deletes.

    Implementations raise `GalleryIOError` when an operation fails.
    """

    def exists(self, path: str) -> bool:
        raise NotImplementedError

    def file_size_kb(self, path: str) -> int:
        """Size of `path` in kilobytes, at least 1 for an existing file."""
        raise NotImplementedError

    def ensure_directory(self, path: str) -> None:
        raise NotImplementedError

    def write_bytes(self, path: str, data: bytes) -> None:
        """Create or overwrite `path` with `data`."""
        raise NotImplementedError

    def copy_file(self, source: str, destination: str) -> str:
        """Copy to a unique name near `destination`; return the path used."""
        raise NotImplementedError

    def move_file(self, source: str, destination: str) -> str:
        """Move to a unique name near `destination`; return the path used."""
        raise NotImplementedError

    def delete_file(self, path: str) -> None:
        """Delete `path` if it exists."""
        raise NotImplementedError

    def delete_directory(self, path: str) -> None:
        """Delete `path` and its contents if it exists."""
        raise NotImplementedError


class DisplayObjectCreator(Protocol):
    """Strategy that produces a rendition file."""

    def generate_and_save_file(self, display_object: DisplayObject) -> None:
        raise NotImplementedError


@dataclass
class HtmlValidationResult:
    """Outcome of validating user-entered HTML.

    Attributes:
        is_valid: True when nothing disallowed was found.
        invalid_tags: Tag names that are not allowed.
        invalid_attributes: Attribute names that are not allowed.
        contains_script: Whether script tags or ``javascript:`` were found.
    """

    is_valid: bool
    invalid_tags: list[str] = field(default_factory=list)
    invalid_attributes: list[str] = field(default_factory=list)
    contains_script: bool = False


class HtmlValidator(Protocol):
    """Validator used by the web layer for user-entered HTML."""

    def validate(self, html: str) -> HtmlValidationResult:
        raise NotImplementedError
