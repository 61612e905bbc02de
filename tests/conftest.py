"""Shared fixtures: a gallery on a temporary directory backed by the in-memory store."""

from __future__ import annotations

from pathlib import Path

from PIL import Image
import pytest

from core.factory import GalleryFactory
from infrastructure.display_object_creators import build_rendition_creators
from infrastructure.file_system import LocalFileSystem
from infrastructure.image_service import EXIF_ORIENTATION, ImageService
from infrastructure.memory_store import InMemoryGalleryStore
from infrastructure.metadata_readers import build_metadata_readers
from infrastructure.settings import GallerySettings


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    root = tmp_path / "gallery"
    root.mkdir()
    return root


@pytest.fixture
def settings(media_root: Path) -> GallerySettings:
    return GallerySettings(media_root=str(media_root), use_recycle_bin=False)


@pytest.fixture
def store() -> InMemoryGalleryStore:
    return InMemoryGalleryStore()


@pytest.fixture
def file_system() -> LocalFileSystem:
    return LocalFileSystem(use_recycle_bin=False)


@pytest.fixture
def image_service() -> ImageService:
    return ImageService()


@pytest.fixture
def factory(settings, store, file_system, image_service) -> GalleryFactory:
    factory = GalleryFactory(
        settings,
        store,
        file_system,
        readers=build_metadata_readers(image_service, settings.datetime_format),
    )
    factory.creators = build_rendition_creators(
        settings, image_service, file_system, factory.mime_types
    )
    return factory


@pytest.fixture
def root_album(factory):
    album = factory.create_album(None, "Gallery")
    album.save()
    return album


@pytest.fixture
def make_jpeg():
    """Write a solid-colour JPEG, optionally tagged with an EXIF orientation."""

    def _make(
        path: str | Path,
        size: tuple[int, int] = (64, 48),
        color: tuple[int, int, int] = (200, 30, 30),
        orientation: int | None = None,
        image_format: str = "JPEG",
    ) -> str:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        im = Image.new("RGB", size, color)
        params = {}
        if image_format == "JPEG":
            params["quality"] = 90
        if orientation is not None:
            exif = Image.Exif()
            exif[EXIF_ORIENTATION] = orientation
            params["exif"] = exif.tobytes()
        im.save(path, image_format, **params)
        return str(path)

    return _make


@pytest.fixture
def add_image(factory, make_jpeg):
    """Create and save an image media object inside `album`."""

    def _add(album, name: str = "photo.jpg", **kwargs):
        path = make_jpeg(Path(album.full_physical_path) / name, **kwargs)
        media_object = factory.create_media_object_from_file(path, album)
        media_object.save()
        return media_object

    return _add
