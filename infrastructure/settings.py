"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from pathlib import Path
from typing import Any

from loguru import logger

from core.mime_type import DEFAULT_ALLOWED_EXTENSIONS


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node


@dataclass
class GallerySettings:
    """Gallery configuration used by the domain model and its collaborators.

    Attributes:
        gallery_id: Identifier of the gallery the objects belong to.
        media_root: Directory of the root album.
        max_thumbnail_length: Longest side of a thumbnail, in pixels.
        thumbnail_file_prefix: Prefix of thumbnail file names.
        thumbnail_jpeg_quality: JPEG quality of thumbnails.
        max_optimized_length: Longest side of an optimized image, in pixels.
        optimized_file_prefix: Prefix of optimized file names.
        optimized_jpeg_quality: JPEG quality of optimized images.
        optimized_trigger_size_kb: Originals larger than this get an optimized copy.
        original_jpeg_quality: JPEG quality used when rotating originals.
        enable_metadata_extraction: Read metadata embedded in media files.
        use_recycle_bin: Send deleted files to the recycle bin.
        datetime_format: strftime format of date metadata values.
        metadata_display_settings: Metadata definition rows; empty for the built-in set.
        mime_types: ``[extension, full_type, browser_type]`` rows replacing the built-in table.
        allowed_extensions: Extensions that may be added to the gallery.
        log_dir: Directory of the rotating log files.
        log_level: Minimum level written to the log.
    """

    gallery_id: int = 1
    media_root: str = ""
    max_thumbnail_length: int = 115
    thumbnail_file_prefix: str = "zThumb_"
    thumbnail_jpeg_quality: int = 70
    max_optimized_length: int = 1280
    optimized_file_prefix: str = "zOpt_"
    optimized_jpeg_quality: int = 70
    optimized_trigger_size_kb: int = 50
    original_jpeg_quality: int = 95
    enable_metadata_extraction: bool = True
    use_recycle_bin: bool = True
    datetime_format: str = "%Y-%m-%d %H:%M:%S"
    metadata_display_settings: list[dict[str, Any]] = field(default_factory=list)
    mime_types: list[list[str]] = field(default_factory=list)
    allowed_extensions: list[str] = field(
        default_factory=lambda: sorted(DEFAULT_ALLOWED_EXTENSIONS)
    )
    log_dir: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_json(cls, settings: JsonSettings) -> GallerySettings:
        """Build from the ``gallery`` and ``logging`` sections; missing keys keep defaults."""
        defaults = cls()
        values: dict[str, Any] = {}
        for name in (
            "gallery_id",
            "media_root",
            "max_thumbnail_length",
            "thumbnail_file_prefix",
            "thumbnail_jpeg_quality",
            "max_optimized_length",
            "optimized_file_prefix",
            "optimized_jpeg_quality",
            "optimized_trigger_size_kb",
            "original_jpeg_quality",
            "enable_metadata_extraction",
            "use_recycle_bin",
            "datetime_format",
            "metadata_display_settings",
            "mime_types",
            "allowed_extensions",
        ):
            raw = settings.get(f"gallery.{name}")
            if raw is None:
                continue
            expected = type(getattr(defaults, name))
            try:
                values[name] = expected(raw)
            except (ValueError, TypeError) as ex:
                logger.warning("Ignoring invalid setting gallery.{}={!r}: {}", name, raw, ex)

        if "media_root" in values:
            values["media_root"] = os.path.expandvars(os.path.expanduser(values["media_root"]))
        log_dir = settings.get("logging.log_dir")
        if isinstance(log_dir, str):
            values["log_dir"] = os.path.expandvars(os.path.expanduser(log_dir))
        log_level = settings.get("logging.level")
        if isinstance(log_level, str):
            values["log_level"] = log_level.upper()
        return cls(**values)

    @classmethod
    def load(cls, settings_path: str | Path) -> GallerySettings:
        return cls.from_json(JsonSettings(settings_path))
