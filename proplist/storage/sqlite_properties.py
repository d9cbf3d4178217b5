"""SQLite implementation of :class:`~proplist.application.ports.PropertyRepo`.

Every method returns a :data:`~proplist.core.result.Result`.  Soft-deleted
rows (``deleted_at IS NOT NULL``) behave as missing for everything except
:meth:`SqlitePropertyRepo.list` with ``status=archived``.

Typical usage::

    from proplist.storage.database import open_db
    from proplist.storage.sqlite_properties import SqlitePropertyRepo

    conn = await open_db()
    repo = SqlitePropertyRepo(conn, SystemClock())
    page = (await repo.list(ListFilters(status="published"))).value
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

import aiosqlite
from pydantic import ValidationError

from proplist.application.dto import (
    PROPERTY_PATCH_FIELDS,
    LocationDTO,
    ListFilters,
    Page,
    PropertyDTO,
)
from proplist.application.ports import PropertyRepo
from proplist.core.clock import Clock
from proplist.core.exceptions import ConflictError, InputValidationError, NotFoundError
from proplist.core.ids import new_id
from proplist.core.result import Err, Ok, Result
from proplist.domain.enums import ListStatusFilter, PropertyStatus, SortKey
from proplist.storage.database import from_iso, from_json, storage_guard, to_iso, to_json

__all__ = ["SqlitePropertyRepo", "dto_to_row", "row_to_dto"]

logger = logging.getLogger(__name__)

_ENTITY = "property"

_ORDER_BY: dict[SortKey, str] = {
    SortKey.RECENT: "COALESCE(updated_at, created_at) DESC",
    SortKey.PRICE_ASC: "price_amount ASC",
    SortKey.PRICE_DESC: "price_amount DESC",
    SortKey.COMPLETENESS_DESC: "completeness_score DESC",
}

_JSON_COLUMNS = frozenset({"amenities", "tags", "normalized_address"})
_BOOL_COLUMNS = frozenset({"furnished", "pet_friendly", "display_address"})
_TIME_COLUMNS = frozenset({"published_at", "sold_at", "deleted_at", "created_at", "updated_at"})

#: ``(column, operator, ListFilters attribute)`` for the numeric lower/upper bounds.
_RANGE_FILTERS: tuple[tuple[str, str, str], ...] = (
    ("price_amount", ">=", "price_min"),
    ("price_amount", "<=", "price_max"),
    ("bedrooms", ">=", "bedrooms_min"),
    ("bathrooms", ">=", "bathrooms_min"),
    ("parking_spots", ">=", "parking_spots_min"),
    ("levels", ">=", "levels_min"),
    ("construction_m2", ">=", "area_min"),
    ("construction_m2", "<=", "area_max"),
)


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


def _encode(name: str, value: Any) -> Any:
    if name in _JSON_COLUMNS:
        return to_json(value)
    if name in _TIME_COLUMNS:
        return to_iso(value)
    if name in _BOOL_COLUMNS:
        return None if value is None else int(bool(value))
    return value.value if isinstance(value, Enum) else value


def _encode_field(name: str, value: Any) -> dict[str, Any]:
    """Columns written for DTO field *name* (``location`` spans two)."""
    if name == "location":
        if value is None:
            return {"location_lat": None, "location_lng": None}
        loc = value if isinstance(value, LocationDTO) else LocationDTO.model_validate(value)
        return {"location_lat": loc.lat, "location_lng": loc.lng}
    return {name: _encode(name, value)}


def dto_to_row(dto: PropertyDTO) -> dict[str, Any]:
    row: dict[str, Any] = {}
    for name in PropertyDTO.model_fields:
        row.update(_encode_field(name, getattr(dto, name)))
    return row


def row_to_dto(row: aiosqlite.Row | Mapping[str, Any]) -> PropertyDTO:
    data = dict(row)
    lat, lng = data.pop("location_lat"), data.pop("location_lng")
    data["location"] = {"lat": lat, "lng": lng} if lat is not None and lng is not None else None
    for name in _JSON_COLUMNS:
        data[name] = from_json(data[name])
    data["amenities"] = data["amenities"] or []
    data["tags"] = data["tags"] or []
    for name in _TIME_COLUMNS:
        data[name] = from_iso(data[name])
    for name in _BOOL_COLUMNS:
        if data[name] is not None:
            data[name] = bool(data[name])
    return PropertyDTO.model_validate(data)


def _like(text: str) -> str:
    escaped = text.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SqlitePropertyRepo(PropertyRepo):
    """Data-access object for the ``properties`` table.

    It owns no connection lifecycle: the caller supplies an open
    :class:`aiosqlite.Connection` (see
    :func:`~proplist.storage.database.open_db`) and closes it when done.

    Args:
        conn: Open, configured connection.
        clock: Time source for ``deleted_at`` and ``updated_at`` stamps.
    """

    def __init__(self, conn: aiosqlite.Connection, clock: Clock) -> None:
        self._conn = conn
        self._clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @storage_guard(_ENTITY)
    async def list(self, filters: ListFilters) -> Result[Page[PropertyDTO]]:  # noqa: A003
        where, params = self._where(filters)
        cursor = await self._conn.execute(
            f"SELECT COUNT(*) FROM properties WHERE {where}", params
        )
        total = (await cursor.fetchone())[0]

        order = _ORDER_BY[filters.sort_by]
        offset = (filters.page - 1) * filters.page_size
        cursor = await self._conn.execute(
            f"SELECT * FROM properties WHERE {where} ORDER BY {order}, id ASC LIMIT ? OFFSET ?",
            (*params, filters.page_size, offset),
        )
        rows = await cursor.fetchall()
        logger.debug(
            "Listed %d/%d properties (page=%d size=%d sort=%s)",
            len(rows),
            total,
            filters.page,
            filters.page_size,
            filters.sort_by,
        )
        return Ok(
            Page[PropertyDTO](
                items=[row_to_dto(r) for r in rows],
                total=total,
                page=filters.page,
                page_size=filters.page_size,
            )
        )

    @storage_guard(_ENTITY)
    async def get_by_id(self, property_id: str) -> Result[PropertyDTO]:
        row = await self._fetch_live(property_id)
        if row is None:
            return Err(NotFoundError(_ENTITY, property_id))
        return Ok(row_to_dto(row))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @storage_guard(_ENTITY)
    async def create(self, dto: PropertyDTO) -> Result[str]:
        if await self._exists(dto.id):
            return Err(ConflictError(f"Property already exists: {dto.id!r}"))
        await self._insert(dto)
        await self._conn.commit()
        logger.debug("Inserted property %s (status=%s)", dto.id, dto.status)
        return Ok(dto.id)

    @storage_guard(_ENTITY)
    async def update(self, property_id: str, patch: Mapping[str, Any]) -> Result[None]:
        unknown = sorted(set(patch) - PROPERTY_PATCH_FIELDS)
        if unknown:
            return Err(
                InputValidationError(
                    "Unknown property columns in patch", issues=[f"{k}: not patchable" for k in unknown]
                )
            )
        row = await self._fetch_live(property_id)
        if row is None:
            return Err(NotFoundError(_ENTITY, property_id))
        if not patch:
            return Ok(None)

        # Validate the merged snapshot so a bad patch never reaches the table.
        try:
            merged = PropertyDTO.model_validate({**row_to_dto(row).model_dump(), **dict(patch)})
        except ValidationError as exc:
            return Err(
                InputValidationError(
                    "Invalid property patch",
                    issues=[f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()],
                )
            )
        columns: dict[str, Any] = {}
        for name in patch:
            columns.update(_encode_field(name, getattr(merged, name)))
        if "updated_at" not in columns:
            columns["updated_at"] = to_iso(self._clock.now())
        await self._set(property_id, columns)
        logger.debug("Updated property %s columns %s", property_id, sorted(columns))
        return Ok(None)

    async def publish(self, property_id: str, at: datetime) -> Result[None]:
        return await self._transition(
            property_id,
            {"status": PropertyStatus.PUBLISHED.value, "published_at": to_iso(at)},
        )

    async def pause(self, property_id: str) -> Result[None]:
        return await self._transition(property_id, {"status": PropertyStatus.DRAFT.value})

    async def mark_sold(self, property_id: str, at: datetime) -> Result[None]:
        return await self._transition(
            property_id, {"status": PropertyStatus.SOLD.value, "sold_at": to_iso(at)}
        )

    async def soft_delete(self, property_id: str) -> Result[None]:
        return await self._transition(property_id, {"deleted_at": to_iso(self._clock.now())})

    @storage_guard(_ENTITY)
    async def duplicate(
        self,
        source_id: str,
        clone: PropertyDTO,
        *,
        copy_media: bool = False,
        copy_docs: bool = False,
    ) -> Result[str]:
        if await self._fetch_live(source_id) is None:
            return Err(NotFoundError(_ENTITY, source_id))
        if await self._exists(clone.id):
            return Err(ConflictError(f"Property already exists: {clone.id!r}"))

        await self._insert(clone)
        now = to_iso(self._clock.now())
        if copy_media:
            await self._copy_children(
                "media_assets",
                ("media_type", "position", "is_cover", "storage_key", "url", "metadata"),
                source_id,
                clone,
                now,
            )
        if copy_docs:
            await self._copy_children(
                "documents",
                ("doc_type", "verification", "source", "storage_key", "url", "hash_sha256", "metadata"),
                source_id,
                clone,
                now,
            )
        await self._conn.commit()
        logger.debug(
            "Duplicated property %s -> %s (media=%s docs=%s)",
            source_id,
            clone.id,
            copy_media,
            copy_docs,
        )
        return Ok(clone.id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _where(self, filters: ListFilters) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []

        if filters.status is ListStatusFilter.ARCHIVED:
            clauses.append("deleted_at IS NOT NULL")
        else:
            clauses.append("deleted_at IS NULL")
            if filters.status not in (None, ListStatusFilter.ALL):
                clauses.append("status = ?")
                params.append(filters.status.value)

        if filters.q:
            pattern = _like(filters.q)
            clauses.append(
                "(lower(title) LIKE ? ESCAPE '\\' OR lower(COALESCE(internal_id, '')) LIKE ? "
                "ESCAPE '\\' OR lower(city) LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern] * 3)
        if filters.property_type is not None:
            clauses.append("property_type = ?")
            params.append(filters.property_type.value)
        for column in ("city", "state"):
            value = getattr(filters, column)
            if value:
                clauses.append(f"lower({column}) LIKE ? ESCAPE '\\'")
                params.append(_like(value))
        for column, op, attr in _RANGE_FILTERS:
            bound = getattr(filters, attr)
            if bound is not None:
                clauses.append(f"{column} {op} ?")
                params.append(bound)
        return " AND ".join(clauses), params

    async def _exists(self, property_id: str) -> bool:
        cursor = await self._conn.execute(
            "SELECT 1 FROM properties WHERE id = ? LIMIT 1", (property_id,)
        )
        return await cursor.fetchone() is not None

    async def _fetch_live(self, property_id: str) -> aiosqlite.Row | None:
        cursor = await self._conn.execute(
            "SELECT * FROM properties WHERE id = ? AND deleted_at IS NULL", (property_id,)
        )
        return await cursor.fetchone()

    async def _insert(self, dto: PropertyDTO) -> None:
        row = dto_to_row(dto)
        names = ", ".join(row)
        placeholders = ", ".join("?" * len(row))
        await self._conn.execute(
            f"INSERT INTO properties ({names}) VALUES ({placeholders})", tuple(row.values())
        )

    async def _set(self, property_id: str, columns: Mapping[str, Any]) -> int:
        assignments = ", ".join(f"{name} = ?" for name in columns)
        cursor = await self._conn.execute(
            f"UPDATE properties SET {assignments} WHERE id = ? AND deleted_at IS NULL",
            (*columns.values(), property_id),
        )
        await self._conn.commit()
        return cursor.rowcount

    @storage_guard(_ENTITY)
    async def _transition(self, property_id: str, columns: dict[str, Any]) -> Result[None]:
        columns = {**columns, "updated_at": to_iso(self._clock.now())}
        if await self._set(property_id, columns) == 0:
            return Err(NotFoundError(_ENTITY, property_id))
        logger.debug("Property %s set %s", property_id, sorted(columns))
        return Ok(None)

    async def _copy_children(
        self,
        table: str,
        columns: tuple[str, ...],
        source_id: str,
        clone: PropertyDTO,
        now: str | None,
    ) -> None:
        cursor = await self._conn.execute(
            f"SELECT {', '.join(columns)} FROM {table} WHERE property_id = ?", (source_id,)
        )
        rows = await cursor.fetchall()
        if not rows:
            return
        names = ("id", "property_id", "org_id", *columns, "created_at", "updated_at")
        await self._conn.executemany(
            f"INSERT INTO {table} ({', '.join(names)}) VALUES ({', '.join('?' * len(names))})",
            [(new_id(), clone.id, clone.org_id, *tuple(row), now, now) for row in rows],
        )
