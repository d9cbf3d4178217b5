"""Abstract ports the use cases are written against.

Every port method is a coroutine returning a :data:`~proplist.core.result.Result`.
Adapters never raise for expected failures (missing row, duplicate id,
driver error); they return an ``Err`` carrying an
:class:`~proplist.core.exceptions.ApplicationError` subclass.  Domain error
codes never cross this boundary in either direction.

Soft-deleted properties are invisible to every :class:`PropertyRepo` method
except :meth:`PropertyRepo.list` with ``status=archived``; touching one by id
returns ``Err(NotFoundError)``.

Implementations:

* :mod:`proplist.storage.sqlite_properties` and friends (aiosqlite).
* :mod:`proplist.storage.memory` (in-process, used by tests).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from proplist.application.dto import (
    AuthProfile,
    DocumentAttachment,
    DocumentDTO,
    ListFilters,
    MediaDTO,
    MediaUpload,
    Page,
    PropertyDTO,
)
from proplist.core.result import Result
from proplist.domain.enums import VerificationStatus

__all__ = ["PropertyRepo", "DocumentRepo", "MediaStorage", "AuthService"]

logger = logging.getLogger(__name__)


class PropertyRepo(ABC):
    """Persistence port of the property aggregate."""

    @abstractmethod
    async def list(self, filters: ListFilters) -> Result[Page[PropertyDTO]]:  # noqa: A003
        """Filter, sort and paginate properties; ``total`` counts all matches."""

    @abstractmethod
    async def get_by_id(self, property_id: str) -> Result[PropertyDTO]:
        ...

    @abstractmethod
    async def create(self, dto: PropertyDTO) -> Result[str]:
        """Insert *dto* and return its id; a taken id is a ``ConflictError``."""

    @abstractmethod
    async def update(self, property_id: str, patch: Mapping[str, Any]) -> Result[None]:
        """Overwrite the columns named in *patch* (keys of :data:`PROPERTY_PATCH_FIELDS`).

        Unknown keys are an ``InputValidationError``; last write wins.
        """

    @abstractmethod
    async def publish(self, property_id: str, at: datetime) -> Result[None]:
        """Set ``status=published`` and ``published_at=at``."""

    @abstractmethod
    async def pause(self, property_id: str) -> Result[None]:
        """Set ``status=draft``; ``published_at`` is kept."""

    @abstractmethod
    async def mark_sold(self, property_id: str, at: datetime) -> Result[None]:
        ...

    @abstractmethod
    async def soft_delete(self, property_id: str) -> Result[None]:
        """Stamp ``deleted_at`` with the adapter clock."""

    @abstractmethod
    async def duplicate(
        self,
        source_id: str,
        clone: PropertyDTO,
        *,
        copy_media: bool = False,
        copy_docs: bool = False,
    ) -> Result[str]:
        """Insert *clone* (built by the entity) and optionally copy the source's assets.

        Copied media and documents get fresh ids and reference the same
        stored blobs; the clone never shares rows with the source.
        """


class DocumentRepo(ABC):
    """Persistence port of property documents."""

    @abstractmethod
    async def attach(
        self, property_id: str, attachment: DocumentAttachment, *, org_id: str | None = None
    ) -> Result[DocumentDTO]:
        ...

    @abstractmethod
    async def list_by_property(self, property_id: str) -> Result[list[DocumentDTO]]:
        ...

    @abstractmethod
    async def delete(self, document_id: str) -> Result[None]:
        ...

    @abstractmethod
    async def verify_rpp(
        self, document_id: str, status: VerificationStatus
    ) -> Result[DocumentDTO]:
        """Set the verification status of an RPP certificate.

        A document of any other type is a ``ConflictError``.
        """

    @abstractmethod
    async def get_all_storage_keys(self, property_id: str) -> Result[list[str]]:
        """Storage keys of every document of the property (for blob cleanup)."""


class MediaStorage(ABC):
    """Blob storage plus position metadata of property media."""

    @abstractmethod
    async def upload(
        self, property_id: str, upload: MediaUpload, *, org_id: str | None = None
    ) -> Result[MediaDTO]:
        """Store the blob and append an asset after the current last position."""

    @abstractmethod
    async def remove(self, media_id: str) -> Result[None]:
        ...

    @abstractmethod
    async def set_cover(self, property_id: str, media_id: str) -> Result[None]:
        """Flag *media_id* as the only cover of the property."""

    @abstractmethod
    async def reorder(self, property_id: str, ordered_ids: Sequence[str]) -> Result[None]:
        """Assign positions ``0..n-1`` following *ordered_ids*; index 0 becomes the cover.

        *ordered_ids* must be exactly the property's asset ids, each once
        (``InputValidationError`` otherwise).
        """

    @abstractmethod
    async def list_media(self, property_id: str) -> Result[list[MediaDTO]]:
        """Assets of the property ordered by position."""

    @abstractmethod
    async def get_all_storage_keys(self, property_id: str) -> Result[list[str]]:
        ...


class AuthService(ABC):
    """Resolves the caller of the current use case."""

    @abstractmethod
    async def get_current(self) -> Result[AuthProfile]:
        """Return the caller's profile or ``Err(AuthError)`` when unauthenticated."""
