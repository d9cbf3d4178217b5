"""SQLite implementation of :class:`~proplist.application.ports.DocumentRepo`."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import aiosqlite

from proplist.application.dto import DocumentAttachment, DocumentDTO
from proplist.application.ports import DocumentRepo
from proplist.core.clock import Clock
from proplist.core.exceptions import ConflictError, NotFoundError
from proplist.core.ids import new_id
from proplist.core.result import Err, Ok, Result
from proplist.domain.enums import DocumentType, VerificationStatus
from proplist.storage.database import from_iso, from_json, storage_guard, to_iso, to_json

__all__ = ["SqliteDocumentRepo"]

logger = logging.getLogger(__name__)

_ENTITY = "document"


def _row_to_dto(row: aiosqlite.Row | Mapping[str, Any]) -> DocumentDTO:
    data = dict(row)
    data["metadata"] = from_json(data["metadata"])
    data["created_at"] = from_iso(data["created_at"])
    data["updated_at"] = from_iso(data["updated_at"])
    return DocumentDTO.model_validate(data)


class SqliteDocumentRepo(DocumentRepo):
    """Data-access object for the ``documents`` table.

    Args:
        conn: Open, configured connection shared with the other adapters.
        clock: Time source for ``created_at`` / ``updated_at``.
    """

    def __init__(self, conn: aiosqlite.Connection, clock: Clock) -> None:
        self._conn = conn
        self._clock = clock

    @storage_guard(_ENTITY)
    async def attach(
        self, property_id: str, attachment: DocumentAttachment, *, org_id: str | None = None
    ) -> Result[DocumentDTO]:
        cursor = await self._conn.execute(
            "SELECT 1 FROM properties WHERE id = ? AND deleted_at IS NULL", (property_id,)
        )
        if await cursor.fetchone() is None:
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
        await self._conn.execute(
            """
            INSERT INTO documents
                (id, property_id, org_id, doc_type, verification, source, storage_key,
                 url, hash_sha256, metadata, created_at, updated_at)
            VALUES
                (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                dto.id,
                dto.property_id,
                dto.org_id,
                dto.doc_type.value,
                dto.verification.value,
                dto.source,
                dto.storage_key,
                dto.url,
                dto.hash_sha256,
                to_json(dto.metadata),
                to_iso(now),
                to_iso(now),
            ),
        )
        await self._conn.commit()
        logger.debug("Attached document %s (%s) to %s", dto.id, dto.doc_type, property_id)
        return Ok(dto)

    @storage_guard(_ENTITY)
    async def list_by_property(self, property_id: str) -> Result[list[DocumentDTO]]:
        cursor = await self._conn.execute(
            "SELECT * FROM documents WHERE property_id = ? ORDER BY created_at, id",
            (property_id,),
        )
        return Ok([_row_to_dto(row) for row in await cursor.fetchall()])

    @storage_guard(_ENTITY)
    async def delete(self, document_id: str) -> Result[None]:
        cursor = await self._conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        await self._conn.commit()
        if cursor.rowcount == 0:
            return Err(NotFoundError(_ENTITY, document_id))
        logger.debug("Deleted document %s", document_id)
        return Ok(None)

    @storage_guard(_ENTITY)
    async def verify_rpp(
        self, document_id: str, status: VerificationStatus
    ) -> Result[DocumentDTO]:
        cursor = await self._conn.execute("SELECT * FROM documents WHERE id = ?", (document_id,))
        row = await cursor.fetchone()
        if row is None:
            return Err(NotFoundError(_ENTITY, document_id))
        current = _row_to_dto(row)
        if current.doc_type is not DocumentType.RPP_CERTIFICATE:
            return Err(
                ConflictError(
                    "Only RPP certificates can be RPP-verified",
                    details={"document_id": document_id, "doc_type": current.doc_type.value},
                )
            )

        verification = VerificationStatus(status)
        now = self._clock.now()
        await self._conn.execute(
            "UPDATE documents SET verification = ?, updated_at = ? WHERE id = ?",
            (verification.value, to_iso(now), document_id),
        )
        await self._conn.commit()
        logger.debug("Document %s verification -> %s", document_id, verification)
        return Ok(current.model_copy(update={"verification": verification, "updated_at": now}))

    @storage_guard(_ENTITY)
    async def get_all_storage_keys(self, property_id: str) -> Result[list[str]]:
        cursor = await self._conn.execute(
            "SELECT storage_key FROM documents WHERE property_id = ? AND storage_key IS NOT NULL",
            (property_id,),
        )
        return Ok([row[0] for row in await cursor.fetchall()])
