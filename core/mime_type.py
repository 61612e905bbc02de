"""Mime type classification and per-browser media templates.

A `MimeTypeRegistry` maps file extensions to `MimeType` instances. Lookups
never return None: unknown extensions classify as `Other` and blank input
yields the null mime type.
"""

from __future__ import annotations

from collections.abc import Container, Iterable, Iterator
from dataclasses import dataclass
from pathlib import PurePath

from loguru import logger

from core.enums import MimeTypeCategory
from core.errors import InvalidMimeTypeError

DEFAULT_BROWSER_ID = "default"
UNKNOWN_FULL_TYPE = "application/octet-stream"

# (extension, full mime type, browser mime type)
DEFAULT_MIME_TYPES: tuple[tuple[str, str, str], ...] = (
    (".3gp", "video/mp4", ""),
    (".aif", "audio/aiff", ""),
    (".aiff", "audio/aiff", ""),
    (".avi", "video/x-msvideo", ""),
    (".bmp", "image/bmp", ""),
    (".cr2", "image/x-raw", ""),
    (".csv", "text/csv", ""),
    (".doc", "application/msword", ""),
    (".dng", "image/x-adobe-dng", ""),
    (".flv", "video/x-flv", ""),
    (".gif", "image/gif", ""),
    (".heic", "image/heic", ""),
    (".heif", "image/heif", ""),
    (".htm", "text/html", ""),
    (".html", "text/html", ""),
    (".ico", "image/x-icon", ""),
    (".jpeg", "image/jpeg", ""),
    (".jpg", "image/jpeg", ""),
    (".m4a", "audio/m4a", ""),
    (".m4v", "video/m4v", ""),
    (".mov", "video/mp4", ""),
    (".mp2", "audio/mpeg", "application/x-mplayer2"),
    (".mp3", "audio/mpeg", ""),
    (".mp4", "video/mp4", ""),
    (".mpeg", "video/mpeg", ""),
    (".mpg", "video/mpeg", ""),
    (".nef", "image/x-nikon-nef", ""),
    (".oga", "audio/ogg", ""),
    (".ogg", "video/ogg", ""),
    (".ogv", "video/ogg", ""),
    (".pdf", "application/pdf", ""),
    (".png", "image/png", ""),
    (".psd", "image/psd", ""),
    (".tif", "image/tiff", ""),
    (".tiff", "image/tiff", ""),
    (".txt", "text/plain", ""),
    (".wav", "audio/wav", ""),
    (".webm", "video/webm", ""),
    (".webp", "image/webp", ""),
    (".wma", "audio/x-ms-wma", ""),
    (".wmv", "video/x-ms-wmv", ""),
    (".zip", "application/octet-stream", ""),
)

DEFAULT_ALLOWED_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".bmp",
        ".gif",
        ".heic",
        ".heif",
        ".jpeg",
        ".jpg",
        ".m4a",
        ".mov",
        ".mp3",
        ".mp4",
        ".ogg",
        ".pdf",
        ".png",
        ".tif",
        ".tiff",
        ".wav",
        ".webm",
        ".webp",
    }
)


@dataclass
class MediaTemplate:
    """HTML and script used to render a media type in a given browser."""

    mime_type: str
    browser_id: str
    html_template: str = ""
    script_template: str = ""

    def copy(self) -> MediaTemplate:
        return MediaTemplate(
            self.mime_type, self.browser_id, self.html_template, self.script_template
        )

    @property
    def is_no_rendering(self) -> bool:
        return self is NO_RENDERING_TEMPLATE


NO_RENDERING_TEMPLATE = MediaTemplate(mime_type="", browser_id=DEFAULT_BROWSER_ID)

_IMAGE_HTML = (
    "<img src='{MediaObjectUrl}' class='gsp_mo_img' alt='{TitleNoHtml}' "
    "title='{TitleNoHtml}' style='width:{Width}px;height:{Height}px;' />"
)
_VIDEO_HTML = (
    "<video src='{MediaObjectUrl}' controls autobuffer {AutoPlay}>"
    "<p>Cannot play: Your browser does not support the <code>video</code> element "
    "or the codec of this file. Try another browser or download the file.</p></video>"
)
_AUDIO_HTML = (
    "<audio src='{MediaObjectUrl}' controls autobuffer preload {AutoPlay}>"
    "<p>Cannot play: Your browser does not support the <code>audio</code> element "
    "or the codec of this file. Try another browser or download the file.</p></audio>"
)
_OBJECT_HTML = (
    "<object type='{MimeType}' data='{MediaObjectUrl}' "
    "style='width:{Width}px;height:{Height}px;'>"
    "<param name='autostart' value='{AutoStartMediaObjectInt}' /></object>"
)

DEFAULT_MEDIA_TEMPLATES: tuple[MediaTemplate, ...] = (
    MediaTemplate("image/*", DEFAULT_BROWSER_ID, _IMAGE_HTML),
    MediaTemplate("video/*", DEFAULT_BROWSER_ID, _VIDEO_HTML),
    MediaTemplate("video/x-ms-wmv", DEFAULT_BROWSER_ID, _OBJECT_HTML),
    MediaTemplate("audio/*", DEFAULT_BROWSER_ID, _AUDIO_HTML),
    MediaTemplate("audio/*", "ie", _OBJECT_HTML),
    MediaTemplate(
        "audio/ogg", "ie", "<p>Cannot play: Internet Explorer cannot play Ogg files.</p>"
    ),
    MediaTemplate("application/*", DEFAULT_BROWSER_ID, _OBJECT_HTML),
    MediaTemplate("text/*", DEFAULT_BROWSER_ID, _OBJECT_HTML),
)


class MediaTemplateCollection:
    """Ordered set of media templates with browser-aware selection."""

    def __init__(self, templates: Iterable[MediaTemplate] | None = None) -> None:
        self._items: list[MediaTemplate] = list(templates or [])

    def __iter__(self) -> Iterator[MediaTemplate]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def add(self, template: MediaTemplate) -> None:
        self._items.append(template)

    def copy(self) -> MediaTemplateCollection:
        return MediaTemplateCollection(t.copy() for t in self._items)

    def find(self, browser_ids: list[str] | tuple[str, ...]) -> MediaTemplate:
        """Return the most specific template for a user agent.

        Args:
            browser_ids: Browser identifiers from most general to most specific,
                e.g. ``["default", "firefox", "firefox3"]``. When the list starts
                with "default" the most specific id is tried first.

        Returns:
            A matching template, the default template when no id matches, or
            `NO_RENDERING_TEMPLATE` when the collection is empty.
        """
        if len(self._items) == 0:
            return NO_RENDERING_TEMPLATE
        if len(self._items) == 1:
            return self._items[0]

        ids = list(browser_ids or [])
        if ids and ids[0].lower() == DEFAULT_BROWSER_ID:
            ids = list(reversed(ids))

        for browser_id in ids:
            for template in self._items:
                if template.browser_id.lower() == browser_id.lower():
                    return template

        for template in self._items:
            if template.browser_id.lower() == DEFAULT_BROWSER_ID:
                return template
        return NO_RENDERING_TEMPLATE

    def for_mime_type(self, full_type: str) -> MediaTemplateCollection:
        """Templates for `full_type`, plus the ``major/*`` ones unless a default exists."""
        full = full_type.lower()
        specific = [t for t in self._items if t.mime_type.lower() == full]
        result = MediaTemplateCollection(t.copy() for t in specific)
        if not any(t.browser_id.lower() == DEFAULT_BROWSER_ID for t in specific):
            wildcard = f"{full.split('/', 1)[0]}/*"
            for t in self._items:
                if t.mime_type.lower() == wildcard:
                    result.add(t.copy())
        return result


class MimeType:
    """A file type known to the gallery.

    Instances held by the registry are shared reference data; callers that need
    to change one should work on `copy()`.
    """

    def __init__(
        self,
        extension: str,
        full_type: str,
        browser_mime_type: str = "",
        allow_add_to_gallery: bool = False,
        media_templates: MediaTemplateCollection | None = None,
    ) -> None:
        major, sep, sub = full_type.partition("/")
        if not sep or not major.strip() or not sub.strip():
            raise InvalidMimeTypeError(
                f"Mime type must be of the form major/subtype; got {full_type!r}"
            )
        self.extension = _normalize_extension(extension)
        self.major_type = major.strip().lower()
        self.subtype = sub.strip()
        self.category = MimeTypeCategory.parse(self.major_type)
        self._browser_mime_type = browser_mime_type.strip()
        self.allow_add_to_gallery = allow_add_to_gallery
        self.media_templates = media_templates or MediaTemplateCollection()

    @property
    def full_type(self) -> str:
        return f"{self.major_type}/{self.subtype}"

    @property
    def browser_mime_type(self) -> str:
        return self._browser_mime_type or self.full_type

    @browser_mime_type.setter
    def browser_mime_type(self, value: str) -> None:
        self._browser_mime_type = value.strip()

    def get_media_template(self, browser_ids: list[str] | tuple[str, ...]) -> MediaTemplate:
        return self.media_templates.find(browser_ids)

    def copy(self) -> MimeType:
        return MimeType(
            self.extension,
            self.full_type,
            self._browser_mime_type,
            self.allow_add_to_gallery,
            self.media_templates.copy(),
        )

    @classmethod
    def for_category(cls, category: MimeTypeCategory) -> MimeType:
        """Category-only instance used by external (embedded) content."""
        major = category.name.lower() if category is not MimeTypeCategory.NotSet else "other"
        instance = cls("", f"{major}/external")
        instance.category = category
        return instance

    def __repr__(self) -> str:
        return f"MimeType({self.extension!r}, {self.full_type!r}, {self.category.name})"


class NullMimeType(MimeType):
    """Mime type standing in for "no such mime type"."""

    def __init__(self) -> None:  # pylint: disable=super-init-not-called
        self.extension = ""
        self.major_type = ""
        self.subtype = ""
        self.category = MimeTypeCategory.NotSet
        self._browser_mime_type = ""
        self.allow_add_to_gallery = False

    @property
    def media_templates(self) -> MediaTemplateCollection:
        return MediaTemplateCollection()

    @media_templates.setter
    def media_templates(self, value: MediaTemplateCollection) -> None:
        pass

    @property
    def full_type(self) -> str:
        return ""

    @property
    def browser_mime_type(self) -> str:
        return ""

    @browser_mime_type.setter
    def browser_mime_type(self, value: str) -> None:
        pass

    def get_media_template(self, browser_ids: list[str] | tuple[str, ...]) -> MediaTemplate:
        return NO_RENDERING_TEMPLATE

    def copy(self) -> MimeType:
        return NullMimeType()

    def __setattr__(self, name: str, value: object) -> None:
        if name in self.__dict__:
            return
        super().__setattr__(name, value)

    def __repr__(self) -> str:
        return "NullMimeType()"


NULL_MIME_TYPE = NullMimeType()


class MimeTypeRegistry:
    """Registry of mime types keyed by lower-case file extension."""

    def __init__(
        self,
        rows: Iterable[tuple[str, str, str]] = DEFAULT_MIME_TYPES,
        templates: Iterable[MediaTemplate] = DEFAULT_MEDIA_TEMPLATES,
        allowed_extensions: Iterable[str] = DEFAULT_ALLOWED_EXTENSIONS,
    ) -> None:
        self._templates = MediaTemplateCollection(templates)
        allowed = {_normalize_extension(e) for e in allowed_extensions}
        self._by_extension: dict[str, MimeType] = {}
        for extension, full_type, browser_type in rows:
            try:
                mime = MimeType(extension, full_type, browser_type)
            except InvalidMimeTypeError as ex:
                logger.warning("Skipping mime type row {}: {}", extension, ex)
                continue
            mime.allow_add_to_gallery = mime.extension in allowed
            mime.media_templates = self._templates.for_mime_type(mime.full_type)
            self._by_extension[mime.extension] = mime

    @classmethod
    def from_settings(cls, gallery_settings: object) -> MimeTypeRegistry:
        """Build from `GallerySettings`, falling back to the built-in tables."""
        rows = getattr(gallery_settings, "mime_types", None) or DEFAULT_MIME_TYPES
        allowed = (
            getattr(gallery_settings, "allowed_extensions", None) or DEFAULT_ALLOWED_EXTENSIONS
        )
        return cls(rows=rows, allowed_extensions=allowed)

    def load(self, file_name_or_extension: str | None) -> MimeType:
        """Return the mime type for a file name or extension; never None."""
        if not file_name_or_extension or not file_name_or_extension.strip():
            return NULL_MIME_TYPE
        extension = _extension_of(file_name_or_extension, self._by_extension)
        if not extension:
            return NULL_MIME_TYPE
        registered = self._by_extension.get(extension)
        if registered is not None:
            return registered.copy()
        logger.debug("No mime type registered for {}; classifying as Other", extension)
        return MimeType(extension, UNKNOWN_FULL_TYPE)

    def is_allowed(self, file_name_or_extension: str) -> bool:
        registered = self._by_extension.get(
            _extension_of(file_name_or_extension, self._by_extension)
        )
        return bool(registered and registered.allow_add_to_gallery)

    def extensions(self) -> list[str]:
        return sorted(self._by_extension)


def _normalize_extension(extension: str) -> str:
    ext = (extension or "").strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def _extension_of(file_name_or_extension: str, known: Container[str] = ()) -> str:
    text = file_name_or_extension.strip()
    suffix = PurePath(text).suffix
    if suffix:
        return suffix.lower()
    # A bare word such as "jpg" counts only when registered; "README" has no extension
    if "/" not in text and "\\" not in text and "." not in text:
        candidate = _normalize_extension(text)
        return candidate if candidate in known else ""
    if text.startswith(".") and text.count(".") == 1:
        return text.lower()
    return ""
