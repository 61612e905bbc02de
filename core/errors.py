"""Exception types raised by the gallery domain model.

Lookups never raise for missing entities; they return null objects instead.
"""

from __future__ import annotations


class GalleryError(Exception):
    """Base class for gallery errors."""


class WritePermissionError(GalleryError):
    """A read-only gallery object was mutated or saved."""

    def __init__(self, message: str, gallery_object_id: int | None = None) -> None:
        super().__init__(message)
        self.gallery_object_id = gallery_object_id


class GalleryIOError(GalleryError, OSError):
    """The file system could not be read or written at `path`."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.args[0]} ({self.path})"
        return str(self.args[0])


class InvalidMimeTypeError(GalleryError, ValueError):
    """A full mime type was not of the form ``major/subtype``."""


class InvalidGalleryObjectError(GalleryError):
    """A tree operation would leave the gallery in an invalid shape."""


class UnsupportedImageError(GalleryError):
    """The image service could not decode a file it was asked to render."""
