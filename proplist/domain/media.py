"""Media asset entity: an image, video or document-like file of a property."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from proplist.core.clock import Clock
from proplist.core.exceptions import InvalidValueError
from proplist.domain.enums import MEDIA_TYPE_ALIASES, MediaType
from proplist.domain.value_objects import UniqueEntityID, optional_text, require_non_negative_integer

__all__ = ["resolve_media_type", "MediaAsset"]

logger = logging.getLogger(__name__)


def resolve_media_type(value: MediaType | str) -> MediaType:
    """Return the canonical :class:`MediaType` for *value* (``floorplan`` → ``document``)."""
    key = str(value).strip().lower()
    if key in MEDIA_TYPE_ALIASES:
        return MEDIA_TYPE_ALIASES[key]
    try:
        return MediaType(key)
    except ValueError as exc:
        raise InvalidValueError(
            f"Unsupported media type {value!r}",
            cause=exc,
            details={"field": "media_type", "value": value},
        ) from exc


class MediaAsset:
    """A media file with a zero-based position within its property.

    ``is_cover`` mirrors what the storage layer persisted; the ordering policy
    decides which asset *should* be the cover.
    """

    def __init__(
        self,
        *,
        id: UniqueEntityID | str,  # noqa: A002
        property_id: UniqueEntityID | str,
        media_type: MediaType | str,
        position: int,
        org_id: UniqueEntityID | str | None = None,
        storage_key: str | None = None,
        url: str | None = None,
        is_cover: bool = False,
        metadata: Mapping[str, Any] | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        clock: Clock,
    ) -> None:
        self._clock = clock
        self._id = id if isinstance(id, UniqueEntityID) else UniqueEntityID(id)
        self._property_id = (
            property_id
            if isinstance(property_id, UniqueEntityID)
            else UniqueEntityID(property_id)
        )
        self._org_id = (
            None
            if org_id is None
            else org_id if isinstance(org_id, UniqueEntityID) else UniqueEntityID(org_id)
        )
        self._media_type = resolve_media_type(media_type)
        self._position = require_non_negative_integer(position, "position")
        self._is_cover = bool(is_cover)
        self.storage_key = optional_text(storage_key)
        self.url = optional_text(url)
        self.metadata: dict[str, Any] | None = dict(metadata) if metadata is not None else None
        self._created_at = created_at or self._clock.now()
        self._updated_at = updated_at or self._created_at

    @property
    def id(self) -> UniqueEntityID:
        return self._id

    @property
    def property_id(self) -> UniqueEntityID:
        return self._property_id

    @property
    def org_id(self) -> UniqueEntityID | None:
        return self._org_id

    @property
    def media_type(self) -> MediaType:
        return self._media_type

    @property
    def position(self) -> int:
        return self._position

    @property
    def is_cover(self) -> bool:
        return self._is_cover

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def move_to(self, position: int) -> None:
        self._position = require_non_negative_integer(position, "position")
        self._touch()

    def mark_cover(self, is_cover: bool = True) -> None:
        self._is_cover = bool(is_cover)
        self._touch()

    def __repr__(self) -> str:
        return (
            f"MediaAsset(id={self._id.value!r}, type={self._media_type.value!r}, "
            f"position={self._position})"
        )

    def _touch(self) -> None:
        self._updated_at = self._clock.now()
