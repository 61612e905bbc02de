"""Dictionary-backed gallery store.

Keeps records in memory for the lifetime of the process. Used by the command
line tool and the tests; `load_count` makes store reads observable.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from loguru import logger

from core.enums import INT_MIN, GalleryObjectType
from core.services.interfaces import DisplayObjectRecord, GalleryObjectRecord, MetadataRecord

if TYPE_CHECKING:
    from core.display_object import DisplayObject
    from core.gallery_object import GalleryObject


def _display_record(display_object: DisplayObject) -> DisplayObjectRecord:
    return DisplayObjectRecord(
        display_type=display_object.display_type,
        file_name=display_object.file_name,
        file_name_physical_path=display_object.file_name_physical_path,
        width=display_object.width,
        height=display_object.height,
        file_size_kb=display_object.file_size_kb,
        external_html_source=display_object.external_html_source,
        external_type=display_object.external_type,
    )


class InMemoryGalleryStore:
    """Gallery store holding records in a dict keyed by id."""

    def __init__(self) -> None:
        self._records: dict[int, GalleryObjectRecord] = {}
        self._next_id = 1
        self._next_metadata_id = 1
        self.load_count = 0
        self.save_count = 0
        self.delete_count = 0

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, gallery_object_id: object) -> bool:
        return gallery_object_id in self._records

    def load(self, gallery_object_id: int) -> GalleryObjectRecord | None:
        self.load_count += 1
        record = self._records.get(gallery_object_id)
        return copy.deepcopy(record) if record is not None else None

    def load_child_ids(self, album_id: int) -> list[int]:
        children = [r for r in self._records.values() if r.parent_id == album_id]
        children.sort(key=lambda r: (r.sequence, r.id))
        return [r.id for r in children]

    def save(self, gallery_object: GalleryObject) -> int:
        gallery_object_id = gallery_object.id
        if gallery_object_id == INT_MIN:
            gallery_object_id = self._next_id
            self._next_id += 1

        metadata: list[MetadataRecord] = []
        for item in gallery_object.metadata_items:
            if item.is_deleted:
                continue
            if item.media_object_metadata_id == INT_MIN:
                item.media_object_metadata_id = self._next_metadata_id
                self._next_metadata_id += 1
            metadata.append(
                MetadataRecord(
                    item.metadata_item_name,
                    item.value,
                    item.raw_value,
                    item.media_object_metadata_id,
                )
            )

        record = GalleryObjectRecord(
            id=gallery_object_id,
            gallery_id=gallery_object.gallery_id,
            parent_id=gallery_object.parent_id,
            gallery_object_type=gallery_object.gallery_object_type,
            sequence=gallery_object.sequence,
            date_added=gallery_object.date_added,
            date_last_modified=gallery_object.date_last_modified,
            created_by=gallery_object.created_by,
            last_modified_by=gallery_object.last_modified_by,
            is_private=gallery_object.is_private,
            rotate_flip=gallery_object.rotate_flip,
            thumbnail=_display_record(gallery_object.thumbnail),
            optimized=_display_record(gallery_object.optimized),
            original=_display_record(gallery_object.original),
            metadata=metadata,
        )
        if gallery_object.gallery_object_type is GalleryObjectType.Album:
            record.directory_name = gallery_object.directory_name
            record.thumbnail_media_object_id = gallery_object.thumbnail_media_object_id
            record.sort_by_meta_name = gallery_object.sort_by_meta_name
            record.sort_ascending = gallery_object.sort_ascending

        self._records[gallery_object_id] = record
        self.save_count += 1
        logger.debug(
            "Stored {} {} (parent {})",
            record.gallery_object_type.name,
            gallery_object_id,
            record.parent_id,
        )
        return gallery_object_id

    def delete(self, gallery_object: GalleryObject) -> None:
        if self._records.pop(gallery_object.id, None) is not None:
            self.delete_count += 1
            logger.debug("Removed gallery object {} from store", gallery_object.id)
