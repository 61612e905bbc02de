"""Metadata readers for media files and album directories.

Readers return `MetaValue`s keyed by `MetadataItemName`; the formatted value is
what users see and the raw value is what sorting and rotation use. Reading is
best effort: a field that cannot be parsed is left out and logged at debug
level.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from fractions import Fraction
import os
from typing import Any

from loguru import logger

from core.enums import GalleryObjectType, MetadataItemName, Orientation
from core.errors import UnsupportedImageError
from core.metadata import MetadataItem, MetaValue
from core.null_objects import NullMetadataReadWriter
from core.services.interfaces import MetadataReadWriter
from infrastructure.image_service import EXIF_ORIENTATION, GPS_IFD, ImageService

_N = MetadataItemName

EXIF_DATE_TIME_ORIGINAL = 36867
EXIF_DATE_TIME = 306
XP_TITLE = 40091
XP_COMMENT = 40092
XP_AUTHOR = 40093
XP_KEYWORDS = 40094
XP_SUBJECT = 40095
ARTIST = 315
COPYRIGHT = 33432

_TEXT_TAGS: dict[MetadataItemName, int] = {
    _N.CameraModel: 272,
    _N.EquipmentManufacturer: 271,
    _N.Author: ARTIST,
    _N.Copyright: COPYRIGHT,
    _N.Description: 270,
}
_XP_TAGS: dict[MetadataItemName, int] = {
    _N.Title: XP_TITLE,
    _N.Comment: XP_COMMENT,
    _N.Tags: XP_KEYWORDS,
    _N.Subject: XP_SUBJECT,
}

_EXPOSURE_PROGRAMS = {
    0: "Not defined",
    1: "Manual",
    2: "Normal program",
    3: "Aperture priority",
    4: "Shutter priority",
    5: "Creative program",
    6: "Action program",
    7: "Portrait mode",
    8: "Landscape mode",
}
_METERING_MODES = {
    0: "Unknown",
    1: "Average",
    2: "Center weighted average",
    3: "Spot",
    4: "Multi-spot",
    5: "Pattern",
    6: "Partial",
    255: "Other",
}
_ORIENTATION_LABELS = {
    Orientation.Normal: "Normal",
    Orientation.Mirrored: "Mirrored",
    Orientation.Rotated180: "Rotated 180",
    Orientation.Flipped: "Flipped",
    Orientation.FlippedAndRotated90: "Flipped and rotated 90",
    Orientation.Rotated270: "Rotated 270",
    Orientation.FlippedAndRotated270: "Flipped and rotated 270",
    Orientation.Rotated90: "Rotated 90",
}


def parse_exif_datetime(value: Any) -> datetime | None:
    """Parse an EXIF date ("YYYY:MM:DD HH:MM:SS"); None when unparseable."""
    if not value:
        return None
    val_str = str(value).strip().rstrip("\x00")
    try:
        if len(val_str) >= 19 and val_str[4] == ":" and val_str[7] == ":":
            return datetime.strptime(val_str[:19], "%Y:%m:%d %H:%M:%S")
        return datetime.fromisoformat(val_str.replace("/", "-"))
    except (ValueError, TypeError) as ex:
        logger.debug("Unparseable EXIF date {!r}: {}", value, ex)
        return None


def _decode_text(value: Any, encoding: str = "utf-8") -> str:
    """Text of an EXIF value; XP* tags use ``encoding="utf-16-le"``."""
    if isinstance(value, tuple) and value and all(isinstance(v, int) for v in value):
        value = bytes(value)
    if isinstance(value, bytes):
        return value.decode(encoding, errors="replace").rstrip("\x00").strip()
    return str(value).rstrip("\x00").strip()


def _as_float(value: Any) -> float | None:
    try:
        if isinstance(value, tuple) and len(value) == 2:
            return float(Fraction(int(value[0]), int(value[1])))
        return float(value)
    except (ValueError, TypeError, ZeroDivisionError):
        return None


def _as_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (ValueError, TypeError) as ex:
        logger.debug("Ignoring non-integer EXIF value {!r}: {}", value, ex)
        return None


def _dms_to_degrees(dms: Any, ref: Any) -> float | None:
    try:
        degrees, minutes, seconds = (_as_float(v) for v in dms)
    except (ValueError, TypeError):
        return None
    if degrees is None or minutes is None or seconds is None:
        return None
    result = degrees + minutes / 60 + seconds / 3600
    if _decode_text(ref).upper() in ("S", "W"):
        result = -result
    return result


class MediaMetadataReader:
    """File-level metadata common to every media file."""

    def __init__(self, datetime_format: str = "%Y-%m-%d %H:%M:%S") -> None:
        self.datetime_format = datetime_format

    def _date_value(self, value: datetime) -> MetaValue:
        return MetaValue(value.strftime(self.datetime_format), value.isoformat())

    def read(self, file_path: str) -> dict[MetadataItemName, MetaValue]:
        values: dict[MetadataItemName, MetaValue] = {}
        file_name = os.path.basename(file_path)
        values[_N.FileName] = MetaValue(file_name, file_name)
        stem = os.path.splitext(file_name)[0]
        values[_N.FileNameWithoutExtension] = MetaValue(stem, stem)
        try:
            stat = os.stat(file_path)
        except OSError as ex:
            logger.debug("stat failed for {}: {}", file_path, ex)
            return values

        size_kb = max(1, -(-stat.st_size // 1024))
        values[_N.FileSizeKb] = MetaValue(f"{size_kb:,} KB", str(size_kb))
        created = datetime.fromtimestamp(stat.st_ctime)
        modified = datetime.fromtimestamp(stat.st_mtime)
        values[_N.DateFileCreated] = self._date_value(created)
        values[_N.DateFileCreatedUtc] = self._date_value(
            datetime.fromtimestamp(stat.st_ctime, tz=timezone.utc)
        )
        values[_N.DateFileLastModified] = self._date_value(modified)
        values[_N.DateFileLastModifiedUtc] = self._date_value(
            datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        )
        return values

    def write(self, file_path: str, items: Iterable[MetadataItem]) -> None:
        logger.debug("Metadata write not supported for {}", file_path)


class ImageMetadataReader(MediaMetadataReader):
    """EXIF metadata of images, read and written through Pillow."""

    def __init__(
        self, image_service: ImageService, datetime_format: str = "%Y-%m-%d %H:%M:%S"
    ) -> None:
        super().__init__(datetime_format)
        self.image_service = image_service

    def read(self, file_path: str) -> dict[MetadataItemName, MetaValue]:
        values = super().read(file_path)
        tags = self.image_service.read_exif(file_path)
        self._read_text(tags, values)
        self._read_dates(tags, values)
        self._read_camera(tags, values)
        self._read_gps(tags, values)
        self._read_dimensions(file_path, tags, values)
        return values

    def _read_text(self, tags: dict[int, Any], values: dict[MetadataItemName, MetaValue]) -> None:
        for name, tag in _TEXT_TAGS.items():
            text = _decode_text(tags.get(tag, ""))
            if text:
                values[name] = MetaValue(text, text)
        for name, tag in _XP_TAGS.items():
            text = _decode_text(tags.get(tag, ""), "utf-16-le")
            if text:
                values[name] = MetaValue(text, text)
        if _N.Author not in values:
            author = _decode_text(tags.get(XP_AUTHOR, ""), "utf-16-le")
            if author:
                values[_N.Author] = MetaValue(author, author)
        rating = tags.get(18246)
        if rating is not None:
            values[_N.Rating] = MetaValue(str(rating), str(rating))

    def _read_dates(self, tags: dict[int, Any], values: dict[MetadataItemName, MetaValue]) -> None:
        taken = parse_exif_datetime(tags.get(EXIF_DATE_TIME_ORIGINAL) or tags.get(EXIF_DATE_TIME))
        if taken is not None:
            values[_N.DatePictureTaken] = self._date_value(taken)

    def _read_camera(self, tags: dict[int, Any], values: dict[MetadataItemName, MetaValue]) -> None:
        orientation = tags.get(EXIF_ORIENTATION)
        if orientation is not None:
            try:
                parsed = Orientation(int(orientation))
                values[_N.Orientation] = MetaValue(
                    _ORIENTATION_LABELS.get(parsed, parsed.name), str(int(parsed))
                )
            except (ValueError, TypeError) as ex:
                logger.debug("Invalid orientation {!r}: {}", orientation, ex)

        exposure = _as_float(tags.get(33434))
        if exposure:
            text = f"1/{round(1 / exposure)} sec." if exposure < 1 else f"{exposure:g} sec."
            values[_N.ExposureTime] = MetaValue(text, str(exposure))
        f_number = _as_float(tags.get(33437))
        if f_number:
            values[_N.FNumber] = MetaValue(f"f/{f_number:.1f}", str(f_number))
        focal = _as_float(tags.get(37386))
        if focal:
            values[_N.FocalLength] = MetaValue(f"{focal:g} mm", str(focal))
        iso = tags.get(34855)
        if isinstance(iso, tuple):
            iso = iso[0] if iso else None
        if iso:
            values[_N.IsoSpeed] = MetaValue(f"ISO-{iso}", str(iso))
        program = tags.get(34850)
        if program is not None:
            values[_N.ExposureProgram] = MetaValue(
                _EXPOSURE_PROGRAMS.get(_as_int(program), str(program)), str(program)
            )
        metering = tags.get(37383)
        if metering is not None:
            values[_N.MeteringMode] = MetaValue(
                _METERING_MODES.get(_as_int(metering), str(metering)), str(metering)
            )
        flash = _as_int(tags.get(37385))
        if flash is not None:
            fired = bool(flash & 1)
            values[_N.FlashMode] = MetaValue("Flash fired" if fired else "No flash", str(flash))

    def _read_gps(self, tags: dict[int, Any], values: dict[MetadataItemName, MetaValue]) -> None:
        def gps(tag: int) -> Any:
            return tags.get((GPS_IFD << 16) | tag)

        latitude = _dms_to_degrees(gps(2), gps(1)) if gps(2) else None
        longitude = _dms_to_degrees(gps(4), gps(3)) if gps(4) else None
        if latitude is not None:
            values[_N.GpsLatitude] = MetaValue(f"{latitude:.6f}", str(latitude))
        if longitude is not None:
            values[_N.GpsLongitude] = MetaValue(f"{longitude:.6f}", str(longitude))
        if latitude is not None and longitude is not None:
            location = f"{latitude:.6f} {longitude:.6f}"
            values[_N.GpsLocation] = MetaValue(location, location)
        altitude = _as_float(gps(6))
        if altitude is not None:
            values[_N.GpsAltitude] = MetaValue(f"{altitude:.0f} m", str(altitude))

    def _read_dimensions(
        self, file_path: str, tags: dict[int, Any], values: dict[MetadataItemName, MetaValue]
    ) -> None:
        try:
            size = self.image_service.get_size(file_path)
        except UnsupportedImageError as ex:
            logger.debug("Cannot measure {}: {}", file_path, ex)
            return
        values[_N.Width] = MetaValue(f"{size.width} pixels", str(size.width))
        values[_N.Height] = MetaValue(f"{size.height} pixels", str(size.height))
        dimensions = f"{size.width} x {size.height}"
        values[_N.Dimensions] = MetaValue(dimensions, dimensions)
        for name, tag in ((_N.HorizontalResolution, 282), (_N.VerticalResolution, 283)):
            resolution = _as_float(tags.get(tag))
            if resolution:
                values[name] = MetaValue(f"{resolution:g} dpi", str(resolution))

    def write(self, file_path: str, items: Iterable[MetadataItem]) -> None:
        """Write Orientation, Title, Caption, Author and Copyright into the file's EXIF."""
        exif: dict[int, Any] = {}
        for item in items:
            name = item.metadata_item_name
            if name is _N.Orientation:
                try:
                    exif[EXIF_ORIENTATION] = int(str(item.raw_value or item.value))
                except (ValueError, TypeError) as ex:
                    logger.debug("Not writing orientation {!r}: {}", item.raw_value, ex)
            elif name is _N.Title:
                exif[XP_TITLE] = item.value.encode("utf-16-le") + b"\x00\x00"
            elif name is _N.Caption:
                exif[XP_COMMENT] = item.value.encode("utf-16-le") + b"\x00\x00"
            elif name is _N.Author:
                exif[ARTIST] = item.value
            elif name is _N.Copyright:
                exif[COPYRIGHT] = item.value
        if exif:
            self.image_service.write_exif(file_path, exif)
            logger.info("Wrote {} metadata items to {}", len(exif), file_path)


class AlbumMetadataReader:
    """Albums take their default title from the directory name."""

    def read(self, file_path: str) -> dict[MetadataItemName, MetaValue]:
        name = os.path.basename(os.path.normpath(file_path)) if file_path else ""
        if not name:
            return {}
        return {_N.Title: MetaValue(name, name)}

    def write(self, file_path: str, items: Iterable[MetadataItem]) -> None:
        pass


def build_metadata_readers(
    image_service: ImageService, datetime_format: str
) -> dict[GalleryObjectType, MetadataReadWriter]:
    """Readers keyed by gallery object type, for `GalleryFactory`."""
    media = MediaMetadataReader(datetime_format)
    return {
        GalleryObjectType.Album: AlbumMetadataReader(),
        GalleryObjectType.Image: ImageMetadataReader(image_service, datetime_format),
        GalleryObjectType.MediaObject: media,
        GalleryObjectType.External: NullMetadataReadWriter(),
    }
