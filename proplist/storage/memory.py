"""In-process adapters for every port, used by the test suite and for dry runs.

All four adapters share one :class:`MemoryStore` so a property duplicate can
copy asset rows and a document attach can check the owning property, exactly
as the SQLite adapters do through their shared connection.  Behaviour
(ordering, soft-delete visibility, error variants) mirrors
:mod:`proplist.storage.sqlite_properties` and friends.

Typical usage::

    store = MemoryStore()
    clock = FixedClock()
    deps = UseCaseDeps(
        properties=InMemoryPropertyRepo(store, clock),
        documents=InMemoryDocumentRepo(store, clock),
        media=InMemoryMediaStorage(store, clock),
        auth=InMemoryAuthService(profile),
        clock=clock,
    )
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from proplist.application.dto import (
    PROPERTY_PATCH_FIELDS,
    AuthProfile,
    DocumentAttachment,
    DocumentDTO,
    ListFilters,
    MediaDTO,
    MediaUpload,
    Page,
    PropertyDTO,
)
from proplist.application.ports import AuthService, DocumentRepo, MediaStorage, PropertyRepo
from proplist.core.clock import Clock
from proplist.core.exceptions import (
    AuthError,
    ConflictError,
    InputValidationError,
    NotFoundError,
)
from proplist.core.ids import new_id, storage_key
from proplist.core.result import Err, Ok, Result
from proplist.domain.enums import (
    DocumentType,
    ListStatusFilter,
    PropertyStatus,
    SortKey,
    VerificationStatus,
)
from proplist.storage.sqlite_media import check_reorder

__all__ = [
    "MemoryStore",
    "InMemoryPropertyRepo",
    "InMemoryDocumentRepo",
    "InMemoryMediaStorage",
    "InMemoryAuthService",
]

logger = logging.getLogger(__name__)


@dataclass
class MemoryStore:
    """Rows of every table plus uploaded blobs, keyed by id / storage key."""

    properties: dict[str, PropertyDTO] = field(default_factory=dict)
    documents: dict[str, DocumentDTO] = field(default_factory=dict)
    media: dict[str, MediaDTO] = field(default_factory=dict)
    blobs: dict[str, bytes] = field(default_factory=dict)

    def live_property(self, property_id: str) -> PropertyDTO | None:
        dto = self.properties.get(property_id)
        if dto is None or dto.deleted_at is not None:
            return None
        return dto

    def media_of(self, property_id: str) -> list[MediaDTO]:
        return sorted(
            (m for m in self.media.values() if m.property_id == property_id),
            key=lambda m: (m.position, m.created_at, m.id),
        )

    def documents_of(self, property_id: str) -> list[DocumentDTO]:
        return sorted(
            (d for d in self.documents.values() if d.property_id == property_id),
            key=lambda d: (d.created_at, d.id),
        )


# ---------------------------------------------------------------------------
# Filtering helpers
# ---------------------------------------------------------------------------


def _contains(haystack: str | None, needle: str) -> bool:
    return haystack is not None and needle.lower() in haystack.lower()


def _at_least(value: float | None, bound: float | None) -> bool:
    return bound is None or (value is not None and value >= bound)


def _at_most(value: float | None, bound: float | None) -> bool:
    return bound is None or (value is not None and value <= bound)


def _matches(dto: PropertyDTO, filters: ListFilters) -> bool:
    if filters.status is ListStatusFilter.ARCHIVED:
        if dto.deleted_at is None:
            return False
    else:
        if dto.deleted_at is not None:
            return False
        if filters.status not in (None, ListStatusFilter.ALL) and dto.status != filters.status.value:
            return False
    if filters.q and not any(
        _contains(text, filters.q) for text in (dto.title, dto.internal_id, dto.city)
    ):
        return False
    if filters.property_type is not None and dto.property_type is not filters.property_type:
        return False
    if filters.city and not _contains(dto.city, filters.city):
        return False
    if filters.state and not _contains(dto.state, filters.state):
        return False
    return all(
        (
            _at_least(dto.price_amount, filters.price_min),
            _at_most(dto.price_amount, filters.price_max),
            _at_least(dto.bedrooms, filters.bedrooms_min),
            _at_least(dto.bathrooms, filters.bathrooms_min),
            _at_least(dto.parking_spots, filters.parking_spots_min),
            _at_least(dto.levels, filters.levels_min),
            _at_least(dto.construction_m2, filters.area_min),
            _at_most(dto.construction_m2, filters.area_max),
        )
    )


def _sorted(items: list[PropertyDTO], sort_by: SortKey) -> list[PropertyDTO]:
    # Two stable passes: id ascending breaks ties of the primary key.
    items = sorted(items, key=lambda d: d.id)
    if sort_by is SortKey.PRICE_ASC:
        return sorted(items, key=lambda d: d.price_amount)
    if sort_by is SortKey.PRICE_DESC:
        return sorted(items, key=lambda d: d.price_amount, reverse=True)
    if sort_by is SortKey.COMPLETENESS_DESC:
        return sorted(items, key=lambda d: d.completeness_score, reverse=True)
    return sorted(items, key=lambda d: d.updated_at or d.created_at, reverse=True)


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class InMemoryPropertyRepo(PropertyRepo):
    def __init__(self, store: MemoryStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def list(self, filters: ListFilters) -> Result[Page[PropertyDTO]]:  # noqa: A003
        matches = _sorted(
            [d for d in self._store.properties.values() if _matches(d, filters)], filters.sort_by
        )
        start = (filters.page - 1) * filters.page_size
        return Ok(
            Page[PropertyDTO](
                items=matches[start : start + filters.page_size],
                total=len(matches),
                page=filters.page,
                page_size=filters.page_size,
            )
        )

    async def get_by_id(self, property_id: str) -> Result[PropertyDTO]:
        dto = self._store.live_property(property_id)
        if dto is None:
            return Err(NotFoundError("property", property_id))
        return Ok(dto)

    async def create(self, dto: PropertyDTO) -> Result[str]:
        if dto.id in self._store.properties:
            return Err(ConflictError(f"Property already exists: {dto.id!r}"))
        self._store.properties[dto.id] = dto
        return Ok(dto.id)

    async def update(self, property_id: str, patch: Mapping[str, Any]) -> Result[None]:
        unknown = sorted(set(patch) - PROPERTY_PATCH_FIELDS)
        if unknown:
            return Err(
                InputValidationError(
                    "Unknown property columns in patch", issues=[f"{k}: not patchable" for k in unknown]
                )
            )
        current = self._store.live_property(property_id)
        if current is None:
            return Err(NotFoundError("property", property_id))
        if not patch:
            return Ok(None)
        changes = dict(patch)
        changes.setdefault("updated_at", self._clock.now())
        try:
            merged = PropertyDTO.model_validate({**current.model_dump(), **changes})
        except ValidationError as exc:
            return Err(
                InputValidationError(
                    "Invalid property patch",
                    issues=[f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()],
                )
            )
        self._store.properties[property_id] = merged
        return Ok(None)

    async def publish(self, property_id: str, at: datetime) -> Result[None]:
        return self._transition(property_id, status=PropertyStatus.PUBLISHED, published_at=at)

    async def pause(self, property_id: str) -> Result[None]:
        return self._transition(property_id, status=PropertyStatus.DRAFT)

    async def mark_sold(self, property_id: str, at: datetime) -> Result[None]:
        return self._transition(property_id, status=PropertyStatus.SOLD, sold_at=at)

    async def soft_delete(self, property_id: str) -> Result[None]:
        return self._transition(property_id, deleted_at=self._clock.now())

    async def duplicate(
        self,
        source_id: str,
        clone: PropertyDTO,
        *,
        copy_media: bool = False,
        copy_docs: bool = False,
    ) -> Result[str]:
        if self._store.live_property(source_id) is None:
            return Err(NotFoundError("property", source_id))
        if clone.id in self._store.properties:
            return Err(ConflictError(f"Property already exists: {clone.id!r}"))
        self._store.properties[clone.id] = clone
        now = self._clock.now()
        children: list[tuple[dict[str, Any], list[MediaDTO] | list[DocumentDTO]]] = []
        if copy_media:
            children.append((self._store.media, self._store.media_of(source_id)))
        if copy_docs:
            children.append((self._store.documents, self._store.documents_of(source_id)))
        for table, rows in children:
            for row in rows:
                copy = row.model_copy(
                    update={
                        "id": new_id(),
                        "property_id": clone.id,
                        "org_id": clone.org_id,
                        "created_at": now,
                        "updated_at": now,
                    }
                )
                table[copy.id] = copy
        return Ok(clone.id)

    def _transition(self, property_id: str, **changes: Any) -> Result[None]:
        current = self._store.live_property(property_id)
        if current is None:
            return Err(NotFoundError("property", property_id))
        self._store.properties[property_id] = current.model_copy(
            update={**changes, "updated_at": self._clock.now()}
        )
        return Ok(None)


class InMemoryDocumentRepo(DocumentRepo):
    def __init__(self, store: MemoryStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def attach(
        self, property_id: str, attachment: DocumentAttachment, *, org_id: str | None = None
    ) -> Result[DocumentDTO]:
        if self._store.live_property(property_id) is None:
            return Err(NotFoundError("property", property_id))
        now = self._clock.now()
        dto = DocumentDTO(
            id=new_id(),
            property_id=property_id,
            org_id=org_id,
            doc_type=attachment.doc_type,
            verification=VerificationStatus.PENDING,
            source=attachment.source,
            storage_key=attachment.storage_key,
            url=attachment.url,
            hash_sha256=attachment.hash_sha256,
            metadata=attachment.metadata,
            created_at=now,
            updated_at=now,
        )
        self._store.documents[dto.id] = dto
        return Ok(dto)

    async def list_by_property(self, property_id: str) -> Result[list[DocumentDTO]]:
        return Ok(self._store.documents_of(property_id))

    async def delete(self, document_id: str) -> Result[None]:
        if self._store.documents.pop(document_id, None) is None:
            return Err(NotFoundError("document", document_id))
        return Ok(None)

    async def verify_rpp(
        self, document_id: str, status: VerificationStatus
    ) -> Result[DocumentDTO]:
        current = self._store.documents.get(document_id)
        if current is None:
            return Err(NotFoundError("document", document_id))
        if current.doc_type is not DocumentType.RPP_CERTIFICATE:
            return Err(
                ConflictError(
                    "Only RPP certificates can be RPP-verified",
                    details={"document_id": document_id, "doc_type": current.doc_type.value},
                )
            )
        updated = current.model_copy(
            update={"verification": VerificationStatus(status), "updated_at": self._clock.now()}
        )
        self._store.documents[document_id] = updated
        return Ok(updated)

    async def get_all_storage_keys(self, property_id: str) -> Result[list[str]]:
        return Ok([d.storage_key for d in self._store.documents_of(property_id) if d.storage_key])


class InMemoryMediaStorage(MediaStorage):
    """Keeps blobs in :attr:`MemoryStore.blobs`; urls use the ``memory://`` scheme."""

    def __init__(self, store: MemoryStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def upload(
        self, property_id: str, upload: MediaUpload, *, org_id: str | None = None
    ) -> Result[MediaDTO]:
        if self._store.live_property(property_id) is None:
            return Err(NotFoundError("property", property_id))
        existing = self._store.media_of(property_id)
        position = existing[-1].position + 1 if existing else 0
        media_id = new_id()
        key = storage_key(property_id, "media", media_id, upload.file_name)
        self._store.blobs[key] = upload.data
        now = self._clock.now()
        dto = MediaDTO(
            id=media_id,
            property_id=property_id,
            org_id=org_id,
            media_type=upload.media_type,
            position=position,
            is_cover=position == 0,
            storage_key=key,
            url=f"memory://{key}",
            metadata={
                "file_name": upload.file_name,
                "content_type": upload.content_type,
                "size": len(upload.data),
            },
            created_at=now,
            updated_at=now,
        )
        self._store.media[media_id] = dto
        return Ok(dto)

    async def remove(self, media_id: str) -> Result[None]:
        removed = self._store.media.pop(media_id, None)
        if removed is None:
            return Err(NotFoundError("media", media_id))
        key = removed.storage_key
        if key and not any(m.storage_key == key for m in self._store.media.values()):
            self._store.blobs.pop(key, None)
        return Ok(None)

    async def set_cover(self, property_id: str, media_id: str) -> Result[None]:
        ids = [m.id for m in self._store.media_of(property_id)]
        if media_id not in ids:
            return Err(NotFoundError("media", media_id))
        ids.remove(media_id)
        self._apply_order([media_id, *ids])
        return Ok(None)

    async def reorder(self, property_id: str, ordered_ids: Sequence[str]) -> Result[None]:
        current = [m.id for m in self._store.media_of(property_id)]
        issues = check_reorder(current, ordered_ids)
        if issues:
            return Err(InputValidationError("Invalid media order", issues=issues))
        self._apply_order(list(ordered_ids))
        return Ok(None)

    async def list_media(self, property_id: str) -> Result[list[MediaDTO]]:
        return Ok(self._store.media_of(property_id))

    async def get_all_storage_keys(self, property_id: str) -> Result[list[str]]:
        return Ok([m.storage_key for m in self._store.media_of(property_id) if m.storage_key])

    def _apply_order(self, ordered_ids: list[str]) -> None:
        now = self._clock.now()
        for index, media_id in enumerate(ordered_ids):
            self._store.media[media_id] = self._store.media[media_id].model_copy(
                update={"position": index, "is_cover": index == 0, "updated_at": now}
            )


class InMemoryAuthService(AuthService):
    """Returns a fixed caller; ``None`` simulates a signed-out session."""

    def __init__(self, profile: AuthProfile | None) -> None:
        self.profile = profile

    async def get_current(self) -> Result[AuthProfile]:
        if self.profile is None:
            return Err(AuthError("No authenticated user"))
        return Ok(self.profile)
