"""SQLite database initialisation and shared column codecs for Proplist.

This module is responsible for:

* Opening (or creating) the SQLite file.
* Configuring low-level PRAGMA settings (WAL journal mode, foreign keys).
* Bootstrapping the schema via ``CREATE TABLE IF NOT EXISTS``, which is safe
  to call on every startup.
* Converting driver failures into ``Err(UnknownError)`` results for the
  adapters (:func:`storage_guard`).

Consumers call :func:`open_db` once at process start and hand the returned
connection to the adapters (the :mod:`proplist.application.container` does
this).  The connection must be closed explicitly.

Typical usage::

    from proplist.storage.database import open_db

    async def main() -> None:
        conn = await open_db("data/proplist.db")
        # ... pass conn to SqlitePropertyRepo and friends ...
        await conn.close()
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import Any, ParamSpec, TypeVar

import aiosqlite

from proplist.core import events
from proplist.core.exceptions import StorageError, UnknownError
from proplist.core.result import Err, Result

__all__ = [
    "DEFAULT_DB_PATH",
    "MEMORY_DB",
    "open_db",
    "create_schema",
    "storage_guard",
    "to_iso",
    "from_iso",
    "to_json",
    "from_json",
]

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

#: Fallback database path when no explicit path is passed to :func:`open_db`.
DEFAULT_DB_PATH: Path = Path("data/proplist.db")

#: Path understood by SQLite as a private in-memory database.
MEMORY_DB = ":memory:"

# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

#: ``properties`` holds one flattened :class:`~proplist.application.dto.PropertyDTO`
#: per row.
#:
#: Column notes
#: ------------
#: amenities / tags    JSON arrays of strings.
#: normalized_address  JSON object (or NULL); its ``status`` key is duplicated
#:                     in ``normalized_status`` for filtering.
#: location_lat/lng    Both NULL or both set.
#: *_at                ISO-8601 UTC strings written by the application.
#: deleted_at          Soft-delete marker; non-NULL rows are invisible to
#:                     every read except the ``archived`` list filter.
_DDL_PROPERTIES = """\
CREATE TABLE IF NOT EXISTS properties (
    id                 TEXT     NOT NULL PRIMARY KEY,
    org_id             TEXT     NOT NULL,
    lister_user_id     TEXT     NOT NULL,
    status             TEXT     NOT NULL DEFAULT 'draft',
    operation_type     TEXT     NOT NULL DEFAULT 'sale',
    property_type      TEXT     NOT NULL,
    title              TEXT     NOT NULL,
    description        TEXT,
    price_amount       REAL     NOT NULL,
    price_currency     TEXT     NOT NULL DEFAULT 'MXN',
    bedrooms           INTEGER,
    bathrooms          REAL,
    parking_spots      INTEGER,
    construction_m2    REAL,
    land_m2            REAL,
    levels             INTEGER,
    year_built         INTEGER,
    floor              INTEGER,
    hoa_fee_amount     REAL,
    hoa_fee_currency   TEXT,
    condition          TEXT,
    furnished          INTEGER,
    pet_friendly       INTEGER,
    orientation        TEXT,
    address_line       TEXT,
    neighborhood       TEXT,
    city               TEXT     NOT NULL,
    state              TEXT     NOT NULL,
    postal_code        TEXT,
    country            TEXT     NOT NULL,
    display_address    INTEGER  NOT NULL DEFAULT 0,
    location_lat       REAL,
    location_lng       REAL,
    amenities          TEXT     NOT NULL DEFAULT '[]',
    amenities_extra    TEXT,
    tags               TEXT     NOT NULL DEFAULT '[]',
    internal_id        TEXT,
    rpp_verified       TEXT     NOT NULL DEFAULT 'pending',
    normalized_address TEXT,
    normalized_status  TEXT,
    completeness_score INTEGER  NOT NULL DEFAULT 0,
    trust_score        INTEGER  NOT NULL DEFAULT 0,
    published_at       TEXT,
    sold_at            TEXT,
    deleted_at         TEXT,
    created_at         TEXT     NOT NULL,
    updated_at         TEXT     NOT NULL
)"""

_DDL_DOCUMENTS = """\
CREATE TABLE IF NOT EXISTS documents (
    id            TEXT  NOT NULL PRIMARY KEY,
    property_id   TEXT  NOT NULL REFERENCES properties(id) ON DELETE CASCADE,
    org_id        TEXT,
    doc_type      TEXT  NOT NULL,
    verification  TEXT  NOT NULL DEFAULT 'pending',
    source        TEXT,
    storage_key   TEXT,
    url           TEXT,
    hash_sha256   TEXT,
    metadata      TEXT,
    created_at    TEXT  NOT NULL,
    updated_at    TEXT  NOT NULL
)"""

#: ``position`` is zero-based and kept contiguous by the media use cases; it
#: is deliberately not UNIQUE so a reorder can rewrite rows one by one.
_DDL_MEDIA_ASSETS = """\
CREATE TABLE IF NOT EXISTS media_assets (
    id            TEXT     NOT NULL PRIMARY KEY,
    property_id   TEXT     NOT NULL REFERENCES properties(id) ON DELETE CASCADE,
    org_id        TEXT,
    media_type    TEXT     NOT NULL,
    position      INTEGER  NOT NULL,
    is_cover      INTEGER  NOT NULL DEFAULT 0,
    storage_key   TEXT,
    url           TEXT,
    metadata      TEXT,
    created_at    TEXT     NOT NULL,
    updated_at    TEXT     NOT NULL
)"""

#: Caller profiles read by :class:`~proplist.storage.sqlite_auth.SqliteAuthService`.
_DDL_PROFILES = """\
CREATE TABLE IF NOT EXISTS profiles (
    user_id     TEXT  NOT NULL PRIMARY KEY,
    org_id      TEXT,
    kyc_status  TEXT  NOT NULL DEFAULT 'pending',
    full_name   TEXT,
    email       TEXT,
    phone       TEXT,
    role_hint   TEXT,
    created_at  TEXT  NOT NULL
)"""

_DDL_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_properties_status ON properties (status, deleted_at)",
    "CREATE INDEX IF NOT EXISTS idx_documents_property ON documents (property_id)",
    "CREATE INDEX IF NOT EXISTS idx_media_property ON media_assets (property_id, position)",
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def open_db(path: Path | str | None = None) -> aiosqlite.Connection:
    """Open (or create) the SQLite database and configure it.

    Steps performed on every call:

    1. Create parent directories for the DB file if they do not exist.
    2. Open the ``aiosqlite`` connection.
    3. Set ``row_factory = aiosqlite.Row`` so columns can be accessed by name.
    4. Enable WAL journal mode and foreign-key enforcement.
    5. Call :func:`create_schema` to bootstrap tables (idempotent).

    Args:
        path: Filesystem path for the SQLite file, or ``":memory:"``.
            Defaults to :data:`DEFAULT_DB_PATH`.

    Returns:
        An open, configured :class:`aiosqlite.Connection`.  The caller is
        responsible for closing it.

    Raises:
        aiosqlite.OperationalError: If the database file cannot be opened or
            created.
    """
    target: Path | str = MEMORY_DB if str(path) == MEMORY_DB else Path(path or DEFAULT_DB_PATH)
    if isinstance(target, Path):
        target.parent.mkdir(parents=True, exist_ok=True)

    logger.debug("Opening SQLite database at %s", target)

    conn: aiosqlite.Connection = await aiosqlite.connect(target)
    conn.row_factory = aiosqlite.Row

    await _configure_pragmas(conn)
    await create_schema(conn)

    logger.info(
        "SQLite database ready at %s",
        target,
        extra={"event": events.SCHEMA_READY},
    )
    return conn


async def create_schema(conn: aiosqlite.Connection) -> None:
    """Create all required tables and indexes if they do not already exist.

    Idempotent; existing data is untouched.
    """
    for ddl in (_DDL_PROPERTIES, _DDL_DOCUMENTS, _DDL_MEDIA_ASSETS, _DDL_PROFILES, *_DDL_INDEXES):
        await conn.execute(ddl)
    await conn.commit()
    logger.debug("Schema bootstrap complete (properties, documents, media_assets, profiles)")


def storage_guard(
    entity: str,
) -> Callable[[Callable[P, Awaitable[Result[T]]]], Callable[P, Awaitable[Result[T]]]]:
    """Turn driver or blob failures raised by an adapter method into ``Err(UnknownError)``.

    Handles :class:`aiosqlite.Error` and :class:`~proplist.core.exceptions.StorageError`.

    The pending transaction is rolled back first so the shared connection
    stays usable.  The decorated method must belong to an object exposing the
    connection as ``self._conn``.
    """

    def decorator(
        func: Callable[P, Awaitable[Result[T]]],
    ) -> Callable[P, Awaitable[Result[T]]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
            try:
                return await func(*args, **kwargs)
            except (aiosqlite.Error, StorageError) as exc:
                conn: aiosqlite.Connection = args[0]._conn  # type: ignore[attr-defined]
                await conn.rollback()
                logger.error(
                    "SQLite failure in %s.%s: %s",
                    entity,
                    func.__name__,
                    exc,
                    extra={"event": events.STORAGE_ERROR},
                )
                return Err(UnknownError(f"Storage failure ({entity})", details={"error": str(exc)}))

        return wrapper

    return decorator


# ---------------------------------------------------------------------------
# Column codecs
# ---------------------------------------------------------------------------


def to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def to_json(value: Any) -> str | None:
    return json.dumps(value, sort_keys=True, default=str) if value is not None else None


def from_json(value: str | None) -> Any:
    return json.loads(value) if value else None


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


async def _configure_pragmas(conn: aiosqlite.Connection) -> None:
    """Apply PRAGMA settings that must be set immediately after opening.

    * ``journal_mode=WAL``: concurrent readers while the single writer is
      active.
    * ``foreign_keys=ON``: documents and media rows reference their property.
    """
    result = await conn.execute("PRAGMA journal_mode=WAL")
    row = await result.fetchone()
    mode = row[0] if row else "unknown"
    if mode != "wal":
        logger.debug("SQLite reported journal mode %r (expected for ':memory:')", mode)
    else:
        logger.debug("SQLite journal_mode set to WAL")

    await conn.execute("PRAGMA foreign_keys=ON")
    logger.debug("SQLite foreign_keys enforcement enabled")
