"""Local file system used for gallery files and album directories.

Deleted files go to the recycle bin through send2trash unless the gallery is
configured to delete permanently. Every `OSError` surfaces as
`GalleryIOError` with the offending path.
"""

from __future__ import annotations

from collections.abc import Callable
import math
import os
from pathlib import Path
import shutil

from loguru import logger
from send2trash import send2trash

from core.errors import GalleryIOError


def unique_path(path: str) -> str:
    """Return `path`, or ``stem (n).ext`` when `path` already exists."""
    if not os.path.exists(path):
        return path
    stem, ext = os.path.splitext(path)
    counter = 1
    while True:
        candidate = f"{stem} ({counter}){ext}"
        if not os.path.exists(candidate):
            return candidate
        counter += 1


class LocalFileSystem:
    """File operations on the local disk."""

    def __init__(self, use_recycle_bin: bool = True) -> None:
        self.use_recycle_bin = use_recycle_bin

    def exists(self, path: str) -> bool:
        return bool(path) and os.path.exists(path)

    def file_size_kb(self, path: str) -> int:
        """Size of `path` in kilobytes, rounded up and at least 1."""
        try:
            size = os.path.getsize(path)
        except OSError as ex:
            raise GalleryIOError(f"Cannot read size: {ex}", path) from ex
        return max(1, math.ceil(size / 1024))

    def ensure_directory(self, path: str) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as ex:
            logger.error("Create directory failed for {}: {}", path, ex)
            raise GalleryIOError(f"Cannot create directory: {ex}", path) from ex

    def write_bytes(self, path: str, data: bytes) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            Path(path).write_bytes(data)
        except OSError as ex:
            logger.error("Write failed for {}: {}", path, ex)
            raise GalleryIOError(f"Cannot write file: {ex}", path) from ex

    def copy_file(self, source: str, destination: str) -> str:
        target = unique_path(destination)
        try:
            Path(target).parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
        except OSError as ex:
            logger.error("Copy {} -> {} failed: {}", source, target, ex)
            raise GalleryIOError(f"Cannot copy file: {ex}", source) from ex
        logger.debug("Copied {} -> {}", source, target)
        return target

    def move_file(self, source: str, destination: str) -> str:
        """Move a file or directory; returns the path actually used."""
        if os.path.normcase(os.path.abspath(source)) == os.path.normcase(
            os.path.abspath(destination)
        ):
            return source
        target = unique_path(destination)
        try:
            Path(target).parent.mkdir(parents=True, exist_ok=True)
            shutil.move(source, target)
        except OSError as ex:
            logger.error("Move {} -> {} failed: {}", source, target, ex)
            raise GalleryIOError(f"Cannot move: {ex}", source) from ex
        logger.debug("Moved {} -> {}", source, target)
        return target

    def delete_file(self, path: str) -> None:
        if not self.exists(path):
            return
        self._delete(path, os.remove)

    def delete_directory(self, path: str) -> None:
        if not self.exists(path):
            return
        self._delete(path, shutil.rmtree)

    def _delete(self, path: str, remove: Callable[[str], object]) -> None:
        normalized_path = os.path.normpath(path)
        try:
            if self.use_recycle_bin:
                send2trash(normalized_path)
            else:
                remove(normalized_path)
        except OSError as ex:
            logger.error("Delete failed for {}: {}", normalized_path, ex)
            raise GalleryIOError(f"Cannot delete: {ex}", normalized_path) from ex
        logger.debug("Deleted {} (recycle bin: {})", normalized_path, self.use_recycle_bin)
