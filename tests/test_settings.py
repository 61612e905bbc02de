from __future__ import annotations

import json
import os

from loguru import logger
import pytest

from infrastructure.logging import find_latest_log_file, init_logging
from infrastructure.settings import GallerySettings, JsonSettings


def _write_settings(tmp_path, data):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_json_settings_dotted_get(tmp_path):
    path = _write_settings(tmp_path, {"gallery": {"thumbnail": {"length": 90}}})

    settings = JsonSettings(path)

    assert settings.get("gallery.thumbnail.length") == 90
    assert settings.get("gallery.missing", "fallback") == "fallback"
    assert settings.get("gallery.thumbnail.length.deeper") is None
    assert settings.path == path


def test_json_settings_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        JsonSettings(tmp_path / "nope.json")


def test_gallery_settings_defaults_when_sections_are_missing(tmp_path):
    settings = GallerySettings.load(_write_settings(tmp_path, {}))

    assert settings == GallerySettings()
    assert settings.max_thumbnail_length == 115
    assert settings.thumbnail_file_prefix == "zThumb_"
    assert ".jpg" in settings.allowed_extensions


def test_gallery_settings_coerces_and_ignores_invalid_values(tmp_path):
    path = _write_settings(
        tmp_path,
        {
            "gallery": {
                "max_thumbnail_length": "200",
                "max_optimized_length": "abc",
                "optimized_file_prefix": "web_",
                "media_root": "~/pictures",
            },
            "logging": {"log_dir": "~/logs", "level": "debug"},
        },
    )

    settings = GallerySettings.load(path)

    assert settings.max_thumbnail_length == 200
    assert settings.max_optimized_length == 1280
    assert settings.optimized_file_prefix == "web_"
    assert settings.media_root == os.path.expanduser("~/pictures")
    assert settings.log_dir == os.path.expanduser("~/logs")
    assert settings.log_level == "DEBUG"


def test_init_logging_writes_to_log_directory(tmp_path):
    log_dir = tmp_path / "logs"

    init_logging(str(log_dir), "DEBUG")
    logger.info("hello from the gallery")
    logger.complete()
    logger.remove()

    log_files = list(log_dir.glob("gallery_*.log"))
    assert len(log_files) == 1
    assert "hello from the gallery" in log_files[0].read_text(encoding="utf-8")


def test_find_latest_log_file(tmp_path):
    older = tmp_path / "gallery_20240101.log"
    newer = tmp_path / "gallery_20240102.log"
    older.write_text("old", encoding="utf-8")
    newer.write_text("new", encoding="utf-8")
    (tmp_path / "other.log").write_text("ignored", encoding="utf-8")
    os.utime(older, (1_000_000, 1_000_000))
    os.utime(newer, (2_000_000, 2_000_000))

    assert find_latest_log_file(str(tmp_path)) == newer
    assert find_latest_log_file(str(tmp_path / "missing")) is None
