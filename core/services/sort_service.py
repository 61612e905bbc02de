"""Sorting service for gallery objects.

The service performs multi-key sorting across gallery objects, handling None
values and per-key ascending/descending ordering without mutating the objects.
A key is either an attribute name (``"date_added"``) or a `MetadataItemName`,
in which case the metadata item's value is compared.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Any, Union

from loguru import logger

from core.enums import MetadataItemName

if TYPE_CHECKING:
    from core.gallery_object import GalleryObject

SortKey = Union[str, MetadataItemName]


def _key_value(item: GalleryObject, key: SortKey) -> Any:
    if isinstance(key, MetadataItemName):
        meta = item.metadata_items.try_get(key)
        if meta is None or meta.is_deleted:
            return None
        raw = _coerce(meta.raw_value)
        if isinstance(raw, (float, datetime)):
            return raw
        return _coerce(meta.value)
    return getattr(item, key, None)


def _coerce(value: str | None) -> Any:
    """Compare numbers and ISO dates by value, everything else as lowered text."""
    if value is None:
        return None
    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return text.lower()


def _rank(value: Any) -> tuple[int, Any]:
    # None sorts last; numbers, dates and text never compare with each other.
    if value is None:
        return (3, "")
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, datetime):
        return (1, value)
    return (2, str(value))


class SortService:
    """Provides sorting utilities for gallery object lists."""

    def sort(
        self, items: Iterable[GalleryObject], sort_keys: list[tuple[SortKey, bool]]
    ) -> list[GalleryObject]:
        """Return `items` ordered by the provided keys.

        Args:
            items: Gallery objects to sort.
            sort_keys: List of tuples (attribute name or metadata item, ascending).

        Returns:
            A new list; ties keep their `(sequence, id)` order.
        """
        result = self.sort_by_sequence(items)
        if not sort_keys:
            return result

        # Stable sorts applied from the least to the most significant key.
        for key, ascending in reversed(sort_keys):
            present = [i for i in result if _key_value(i, key) is not None]
            missing = [i for i in result if _key_value(i, key) is None]
            present.sort(key=lambda i, k=key: _rank(_key_value(i, k)), reverse=not ascending)
            result = present + missing
        logger.debug("Sorted {} gallery objects by {}", len(result), sort_keys)
        return result

    def sort_by_sequence(self, items: Iterable[GalleryObject]) -> list[GalleryObject]:
        return sorted(items, key=lambda i: (i.sequence, i.id))
