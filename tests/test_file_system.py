from __future__ import annotations

import pytest

from core.errors import GalleryIOError
from infrastructure import file_system as file_system_module
from infrastructure.file_system import LocalFileSystem, unique_path


def test_unique_path_appends_counter(tmp_path):
    (tmp_path / "photo.jpg").write_bytes(b"1")
    (tmp_path / "photo (1).jpg").write_bytes(b"2")

    assert unique_path(str(tmp_path / "free.jpg")) == str(tmp_path / "free.jpg")
    assert unique_path(str(tmp_path / "photo.jpg")) == str(tmp_path / "photo (2).jpg")


def test_copy_to_existing_name_keeps_both(tmp_path, file_system):
    source = tmp_path / "a.jpg"
    source.write_bytes(b"source")
    (tmp_path / "out").mkdir()
    (tmp_path / "out" / "a.jpg").write_bytes(b"existing")

    target = file_system.copy_file(str(source), str(tmp_path / "out" / "a.jpg"))

    assert target == str(tmp_path / "out" / "a (1).jpg")
    assert (tmp_path / "out" / "a.jpg").read_bytes() == b"existing"
    assert source.exists()


def test_move_creates_parent_directories(tmp_path, file_system):
    source = tmp_path / "a.jpg"
    source.write_bytes(b"x")

    target = file_system.move_file(str(source), str(tmp_path / "nested" / "deeper" / "a.jpg"))

    assert target == str(tmp_path / "nested" / "deeper" / "a.jpg")
    assert not source.exists()


def test_move_to_same_path_is_a_no_op(tmp_path, file_system):
    source = tmp_path / "a.jpg"
    source.write_bytes(b"x")

    assert file_system.move_file(str(source), str(source)) == str(source)
    assert source.exists()


def test_move_missing_source_raises(tmp_path, file_system):
    with pytest.raises(GalleryIOError) as info:
        file_system.move_file(str(tmp_path / "missing.jpg"), str(tmp_path / "b.jpg"))

    assert info.value.path == str(tmp_path / "missing.jpg")


def test_delete_missing_paths_is_fine(tmp_path, file_system):
    file_system.delete_file(str(tmp_path / "missing.jpg"))
    file_system.delete_file("")
    file_system.delete_directory(str(tmp_path / "missing"))


def test_delete_directory_removes_tree(tmp_path, file_system):
    album = tmp_path / "album"
    (album / "child").mkdir(parents=True)
    (album / "child" / "a.jpg").write_bytes(b"x")

    file_system.delete_directory(str(album))

    assert not album.exists()


def test_file_size_is_rounded_up(tmp_path, file_system):
    path = tmp_path / "a.bin"
    path.write_bytes(b"x" * 1025)
    empty = tmp_path / "empty.bin"
    empty.write_bytes(b"")

    assert file_system.file_size_kb(str(path)) == 2
    assert file_system.file_size_kb(str(empty)) == 1
    with pytest.raises(GalleryIOError):
        file_system.file_size_kb(str(tmp_path / "missing.bin"))


def test_recycle_bin_is_used_when_enabled(tmp_path, monkeypatch):
    trashed: list[str] = []
    monkeypatch.setattr(file_system_module, "send2trash", trashed.append)
    path = tmp_path / "a.jpg"
    path.write_bytes(b"x")

    LocalFileSystem(use_recycle_bin=True).delete_file(str(path))

    assert trashed == [str(path)]
    assert path.exists()


def test_recycle_bin_failure_surfaces_as_gallery_error(tmp_path, monkeypatch):
    def fail(path):
        raise OSError("trash unavailable")

    monkeypatch.setattr(file_system_module, "send2trash", fail)
    path = tmp_path / "a.jpg"
    path.write_bytes(b"x")

    with pytest.raises(GalleryIOError):
        LocalFileSystem(use_recycle_bin=True).delete_file(str(path))
