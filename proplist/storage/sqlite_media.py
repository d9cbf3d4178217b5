"""SQLite + local filesystem implementation of :class:`~proplist.application.ports.MediaStorage`.

Blobs are written under ``media_root`` at their storage key
(``<property_id>/media/<asset_id><suffix>``); metadata and positions live in
the ``media_assets`` table.  Duplicated properties may reference the same
blob, so a file is only unlinked once no row points at it any more.

File writes run in a worker thread (``asyncio.to_thread``) so the event
loop never blocks on disk I/O.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import aiosqlite

from proplist.application.dto import MediaDTO, MediaUpload
from proplist.application.ports import MediaStorage
from proplist.core.clock import Clock
from proplist.core.exceptions import InputValidationError, NotFoundError, StorageError
from proplist.core.ids import new_id, storage_key
from proplist.core.result import Err, Ok, Result
from proplist.storage.database import from_iso, from_json, storage_guard, to_iso, to_json

__all__ = ["SqliteMediaStorage", "check_reorder"]

logger = logging.getLogger(__name__)

_ENTITY = "media"


def _row_to_dto(row: aiosqlite.Row | Mapping[str, Any]) -> MediaDTO:
    data = dict(row)
    data["is_cover"] = bool(data["is_cover"])
    data["metadata"] = from_json(data["metadata"])
    data["created_at"] = from_iso(data["created_at"])
    data["updated_at"] = from_iso(data["updated_at"])
    return MediaDTO.model_validate(data)


def check_reorder(current_ids: Sequence[str], ordered_ids: Sequence[str]) -> list[str]:
    """Return the problems that make *ordered_ids* an invalid permutation of *current_ids*."""
    issues: list[str] = []
    if len(set(ordered_ids)) != len(ordered_ids):
        issues.append("ordered_ids: duplicate ids")
    unknown = sorted(set(ordered_ids) - set(current_ids))
    if unknown:
        issues.append(f"ordered_ids: unknown ids {unknown}")
    missing = sorted(set(current_ids) - set(ordered_ids))
    if missing:
        issues.append(f"ordered_ids: missing ids {missing}")
    if not issues and len(ordered_ids) != len(current_ids):
        issues.append("ordered_ids: length mismatch")
    return issues


def _write_blob(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


class SqliteMediaStorage(MediaStorage):
    """Media adapter backed by SQLite rows and files under *media_root*.

    Args:
        conn: Open, configured connection shared with the other adapters.
        clock: Time source for ``created_at`` / ``updated_at``.
        media_root: Directory that receives uploaded blobs.
    """

    def __init__(self, conn: aiosqlite.Connection, clock: Clock, media_root: Path) -> None:
        self._conn = conn
        self._clock = clock
        self._root = Path(media_root)

    @storage_guard(_ENTITY)
    async def upload(
        self, property_id: str, upload: MediaUpload, *, org_id: str | None = None
    ) -> Result[MediaDTO]:
        cursor = await self._conn.execute(
            "SELECT 1 FROM properties WHERE id = ? AND deleted_at IS NULL", (property_id,)
        )
        if await cursor.fetchone() is None:
            return Err(NotFoundError("property", property_id))

        cursor = await self._conn.execute(
            "SELECT COALESCE(MAX(position) + 1, 0) FROM media_assets WHERE property_id = ?",
            (property_id,),
        )
        position = (await cursor.fetchone())[0]

        media_id = new_id()
        key = storage_key(property_id, "media", media_id, upload.file_name)
        path = self._root / key
        try:
            await asyncio.to_thread(_write_blob, path, upload.data)
        except OSError as exc:
            raise StorageError(f"Cannot write blob {key}: {exc}") from exc

        now = self._clock.now()
        dto = MediaDTO(
            id=media_id,
            property_id=property_id,
            org_id=org_id,
            media_type=upload.media_type,
            position=position,
            is_cover=position == 0,
            storage_key=key,
            url=path.resolve().as_uri(),
            metadata={
                "file_name": upload.file_name,
                "content_type": upload.content_type,
                "size": len(upload.data),
            },
            created_at=now,
            updated_at=now,
        )
        await self._conn.execute(
            """
            INSERT INTO media_assets
                (id, property_id, org_id, media_type, position, is_cover, storage_key,
                 url, metadata, created_at, updated_at)
            VALUES
                (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                dto.id,
                dto.property_id,
                dto.org_id,
                dto.media_type.value,
                dto.position,
                int(dto.is_cover),
                dto.storage_key,
                dto.url,
                to_json(dto.metadata),
                to_iso(now),
                to_iso(now),
            ),
        )
        await self._conn.commit()
        logger.debug("Stored media %s (%d bytes) at %s", media_id, len(upload.data), key)
        return Ok(dto)

    @storage_guard(_ENTITY)
    async def remove(self, media_id: str) -> Result[None]:
        cursor = await self._conn.execute(
            "SELECT storage_key FROM media_assets WHERE id = ?", (media_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return Err(NotFoundError(_ENTITY, media_id))
        key = row[0]
        await self._conn.execute("DELETE FROM media_assets WHERE id = ?", (media_id,))
        await self._conn.commit()

        if key:
            cursor = await self._conn.execute(
                "SELECT 1 FROM media_assets WHERE storage_key = ? LIMIT 1", (key,)
            )
            if await cursor.fetchone() is None:
                try:
                    await asyncio.to_thread((self._root / key).unlink, missing_ok=True)
                except OSError as exc:
                    raise StorageError(f"Cannot delete blob {key}: {exc}") from exc
        logger.debug("Removed media %s", media_id)
        return Ok(None)

    @storage_guard(_ENTITY)
    async def set_cover(self, property_id: str, media_id: str) -> Result[None]:
        """Move *media_id* to position 0 and flag it; the others keep their order."""
        ids = await self._ordered_ids(property_id)
        if media_id not in ids:
            return Err(NotFoundError(_ENTITY, media_id))
        ids.remove(media_id)
        await self._apply_order(property_id, [media_id, *ids])
        return Ok(None)

    @storage_guard(_ENTITY)
    async def reorder(self, property_id: str, ordered_ids: Sequence[str]) -> Result[None]:
        issues = check_reorder(await self._ordered_ids(property_id), ordered_ids)
        if issues:
            return Err(InputValidationError("Invalid media order", issues=issues))
        await self._apply_order(property_id, list(ordered_ids))
        return Ok(None)

    @storage_guard(_ENTITY)
    async def list_media(self, property_id: str) -> Result[list[MediaDTO]]:
        cursor = await self._conn.execute(
            "SELECT * FROM media_assets WHERE property_id = ? ORDER BY position, created_at, id",
            (property_id,),
        )
        return Ok([_row_to_dto(row) for row in await cursor.fetchall()])

    @storage_guard(_ENTITY)
    async def get_all_storage_keys(self, property_id: str) -> Result[list[str]]:
        cursor = await self._conn.execute(
            "SELECT storage_key FROM media_assets WHERE property_id = ? AND storage_key IS NOT NULL",
            (property_id,),
        )
        return Ok([row[0] for row in await cursor.fetchall()])

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _ordered_ids(self, property_id: str) -> list[str]:
        cursor = await self._conn.execute(
            "SELECT id FROM media_assets WHERE property_id = ? ORDER BY position, created_at, id",
            (property_id,),
        )
        return [row[0] for row in await cursor.fetchall()]

    async def _apply_order(self, property_id: str, ordered_ids: list[str]) -> None:
        now = to_iso(self._clock.now())
        await self._conn.executemany(
            "UPDATE media_assets SET position = ?, is_cover = ?, updated_at = ? "
            "WHERE id = ? AND property_id = ?",
            [
                (index, int(index == 0), now, media_id, property_id)
                for index, media_id in enumerate(ordered_ids)
            ],
        )
        await self._conn.commit()
        logger.debug("Applied order of %d assets to %s", len(ordered_ids), property_id)
