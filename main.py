"""Catalogue a directory of media files into a gallery album.

Usage: ``python main.py <album-dir> [--settings settings.json] [--regenerate]``
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path

from loguru import logger

from core.errors import GalleryError
from core.factory import GalleryFactory
from infrastructure.display_object_creators import build_rendition_creators
from infrastructure.file_system import LocalFileSystem
from infrastructure.image_service import ImageService
from infrastructure.logging import init_logging
from infrastructure.memory_store import InMemoryGalleryStore
from infrastructure.metadata_readers import build_metadata_readers
from infrastructure.settings import GallerySettings

BASE_DIR = Path(__file__).parent


def build_factory(settings: GallerySettings) -> GalleryFactory:
    """Wire a factory over local files and an in-memory store."""
    file_system = LocalFileSystem(settings.use_recycle_bin)
    image_service = ImageService()
    factory = GalleryFactory(
        settings,
        InMemoryGalleryStore(),
        file_system,
        readers=build_metadata_readers(image_service, settings.datetime_format),
    )
    factory.creators = build_rendition_creators(
        settings, image_service, file_system, factory.mime_types
    )
    return factory


def _is_rendition(file_name: str, settings: GallerySettings) -> bool:
    return file_name.startswith(
        (settings.thumbnail_file_prefix, settings.optimized_file_prefix)
    )


def catalogue(album_dir: str, settings: GallerySettings, regenerate: bool = False) -> int:
    """Add every allowed file in `album_dir` to a new root album; return the count added."""
    settings.media_root = os.path.abspath(album_dir)
    factory = build_factory(settings)
    album = factory.create_album(None, os.path.basename(settings.media_root))
    album.save()

    added = 0
    skipped = 0
    for entry in sorted(os.scandir(settings.media_root), key=lambda e: e.name.lower()):
        if not entry.is_file() or _is_rendition(entry.name, settings):
            continue
        if not factory.mime_types.is_allowed(entry.name):
            logger.debug("Skipping {}: extension not allowed", entry.name)
            skipped += 1
            continue
        try:
            media_object = factory.create_media_object_from_file(entry.path, album)
            media_object.regenerate_thumbnail_on_save = regenerate
            media_object.regenerate_optimized_on_save = regenerate
            media_object.save()
            added += 1
        except GalleryError as ex:
            logger.error("Failed to add {}: {}", entry.path, ex)
            skipped += 1

    logger.info(
        "Catalogued {}: {} added, {} skipped, thumbnail media object {}",
        settings.media_root,
        added,
        skipped,
        album.thumbnail_media_object_id,
    )
    return added


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Catalogue a directory into a gallery album.")
    parser.add_argument("album_dir", help="Directory holding the media files")
    parser.add_argument("--settings", default=str(BASE_DIR / "settings.json"))
    parser.add_argument(
        "--regenerate",
        action="store_true",
        help="Recreate existing thumbnails and optimized images",
    )
    args = parser.parse_args(argv)

    settings_path = Path(args.settings)
    settings = GallerySettings.load(settings_path) if settings_path.exists() else GallerySettings()
    init_logging(settings.log_dir or None, settings.log_level)

    if not os.path.isdir(args.album_dir):
        logger.error("Not a directory: {}", args.album_dir)
        return 2
    added = catalogue(args.album_dir, settings, args.regenerate)
    print(f"Added {added} media objects from {os.path.abspath(args.album_dir)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
