"""Image decoding, resizing, rotation and EXIF access using Pillow.

HEIC/HEIF files are decoded through the pillow-heif opener registered at import
time. Files Pillow cannot decode raise `UnsupportedImageError`; failures writing
the output raise `GalleryIOError`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from PIL import Image, ImageDraw, ImageOps, UnidentifiedImageError
from loguru import logger
from pillow_heif import register_heif_opener

from core.display_object import Size, calculate_width_and_height
from core.enums import FlipAxis, RotateFlip
from core.errors import GalleryIOError, UnsupportedImageError

register_heif_opener()

EXIF_ORIENTATION = 274
EXIF_IFD = 0x8769
GPS_IFD = 0x8825

_ROTATE_CLOCKWISE = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}
_FLIP = {
    FlipAxis.X: Image.Transpose.FLIP_LEFT_RIGHT,
    FlipAxis.Y: Image.Transpose.FLIP_TOP_BOTTOM,
}
_JPEG_FORMATS = {"JPEG", "MPO"}


def transform(im: Image.Image, rotate_flip: RotateFlip) -> Image.Image:
    """Rotate clockwise, then flip, as described by `rotate_flip`."""
    if rotate_flip.is_identity:
        return im
    method = _ROTATE_CLOCKWISE.get(rotate_flip.degrees)
    if method is not None:
        im = im.transpose(method)
    flip = _FLIP.get(rotate_flip.flip)
    if flip is not None:
        im = im.transpose(flip)
    return im


def _to_rgb(im: Image.Image) -> Image.Image:
    if im.mode in ("RGBA", "LA", "P"):
        im = im.convert("RGBA")
        background = Image.new("RGB", im.size, (255, 255, 255))
        background.paste(im, mask=im.getchannel("A"))
        return background
    if im.mode != "RGB":
        return im.convert("RGB")
    return im


class ImageService:
    """Pillow-backed image operations used by rendition creators and readers."""

    def get_size(self, path: str) -> Size:
        """Stored pixel size of the image, ignoring EXIF orientation."""
        try:
            with Image.open(path) as im:
                return Size(im.width, im.height)
        except (UnidentifiedImageError, OSError, ValueError) as ex:
            raise UnsupportedImageError(f"Cannot read image {path}: {ex}") from ex

    def get_format(self, path: str) -> str:
        try:
            with Image.open(path) as im:
                return im.format or ""
        except (UnidentifiedImageError, OSError, ValueError) as ex:
            raise UnsupportedImageError(f"Cannot read image {path}: {ex}") from ex

    def is_jpeg(self, path: str) -> bool:
        return self.get_format(path) in _JPEG_FORMATS

    def read_exif(self, path: str) -> dict[int, Any]:
        """EXIF tags of the image, including the Exif and GPS sub-IFDs.

        GPS tags are returned under their own ids offset by ``GPS_IFD << 16``.
        Unreadable files yield an empty dict.
        """
        try:
            with Image.open(path) as im:
                exif = im.getexif()
                tags: dict[int, Any] = dict(exif.items())
                tags.update(exif.get_ifd(EXIF_IFD).items())
                for tag, value in exif.get_ifd(GPS_IFD).items():
                    tags[(GPS_IFD << 16) | tag] = value
                dpi = im.info.get("dpi")
                if dpi:
                    tags.setdefault(282, dpi[0])
                    tags.setdefault(283, dpi[1])
                return tags
        except (UnidentifiedImageError, OSError, ValueError) as ex:
            logger.debug("EXIF read failed for {}: {}", path, ex)
            return {}

    def save_rendition(
        self,
        source: str,
        destination: str,
        max_length: int,
        quality: int,
        rotate_flip: RotateFlip = RotateFlip.NotSpecified,
    ) -> Size:
        """Write a JPEG copy of `source` no larger than `max_length` on its longest side.

        EXIF orientation is applied, then `rotate_flip`.
        """
        try:
            with Image.open(source) as im:
                im = ImageOps.exif_transpose(im)
                im = transform(im, rotate_flip)
                im = _to_rgb(im)
                target = calculate_width_and_height(Size(im.width, im.height), max_length, False)
                if (target.width, target.height) != im.size:
                    im = im.resize((target.width, target.height), Image.Resampling.LANCZOS)
        except (UnidentifiedImageError, OSError, ValueError) as ex:
            raise UnsupportedImageError(f"Cannot decode {source}: {ex}") from ex

        try:
            Path(destination).parent.mkdir(parents=True, exist_ok=True)
            im.save(destination, "JPEG", quality=quality)
        except OSError as ex:
            logger.error("Save rendition failed for {}: {}", destination, ex)
            raise GalleryIOError(f"Cannot write rendition: {ex}", destination) from ex
        logger.debug("Wrote {} ({}x{})", destination, im.width, im.height)
        return Size(im.width, im.height)

    def apply_rotate_flip(self, path: str, rotate_flip: RotateFlip, quality: int) -> Size:
        """Rotate the pixels of `path` in place and reset its EXIF orientation."""
        try:
            with Image.open(path) as im:
                im.load()
                image_format = im.format or "JPEG"
                exif = im.getexif()
                rotated = transform(im.copy(), rotate_flip)
        except (UnidentifiedImageError, OSError, ValueError) as ex:
            raise UnsupportedImageError(f"Cannot decode {path}: {ex}") from ex

        exif[EXIF_ORIENTATION] = 1
        params: dict[str, Any] = {"exif": exif.tobytes()}
        if image_format in _JPEG_FORMATS:
            image_format = "JPEG"
            params["quality"] = quality
            rotated = _to_rgb(rotated)
        try:
            rotated.save(path, image_format, **params)
        except OSError as ex:
            logger.error("Rotate failed for {}: {}", path, ex)
            raise GalleryIOError(f"Cannot write rotated image: {ex}", path) from ex
        logger.info("Rotated {} by {}", path, rotate_flip.name)
        return Size(rotated.width, rotated.height)

    def write_exif(self, path: str, values: dict[int, Any]) -> None:
        """Store `values` as top-level EXIF tags of the JPEG at `path`."""
        if not values:
            return
        try:
            with Image.open(path) as im:
                im.load()
                image_format = im.format
                exif = im.getexif()
                image = im.copy()
        except (UnidentifiedImageError, OSError, ValueError) as ex:
            raise UnsupportedImageError(f"Cannot decode {path}: {ex}") from ex
        if image_format not in _JPEG_FORMATS:
            logger.debug("Skipping metadata write for {} ({})", path, image_format)
            return

        for tag, value in values.items():
            exif[tag] = value
        try:
            _to_rgb(image).save(path, "JPEG", quality=95, exif=exif.tobytes())
        except OSError as ex:
            logger.error("Write EXIF failed for {}: {}", path, ex)
            raise GalleryIOError(f"Cannot write metadata: {ex}", path) from ex
        logger.debug("Wrote {} EXIF tags to {}", len(values), path)

    def render_placeholder(
        self, destination: str, max_length: int, label: str, quality: int
    ) -> Size:
        """Write a grey JPEG showing `label`, used as a thumbnail for non-image media."""
        width = max_length
        height = max(1, round(max_length * 3 / 4))
        im = Image.new("RGB", (width, height), (220, 220, 220))
        draw = ImageDraw.Draw(im)
        text = label.upper()[:8] or "FILE"
        left, top, right, bottom = draw.textbbox((0, 0), text)
        draw.text(
            ((width - (right - left)) / 2, (height - (bottom - top)) / 2),
            text,
            fill=(90, 90, 90),
        )
        try:
            os.makedirs(os.path.dirname(destination) or ".", exist_ok=True)
            im.save(destination, "JPEG", quality=quality)
        except OSError as ex:
            logger.error("Save placeholder failed for {}: {}", destination, ex)
            raise GalleryIOError(f"Cannot write placeholder: {ex}", destination) from ex
        return Size(width, height)
