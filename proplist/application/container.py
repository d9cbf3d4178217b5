"""Composition root: wire the SQLite adapters into ready-to-call use cases.

Each :func:`open_container` call:

1. Loads :class:`~proplist.core.settings.Settings` (or uses the supplied
   instance).
2. Opens the SQLite connection via :func:`~proplist.storage.database.open_db`
   and ensures the media root exists.
3. Builds one adapter per port on that shared connection.
4. Instantiates every use case with the same :class:`UseCaseDeps`.
5. Closes the connection on exit, including on exceptions.

There is no module-level singleton; the caller owns the lifecycle.

Typical usage::

    from proplist.application.container import open_container

    async with open_container() as app:
        result = await app.list_properties.execute({"status": "published"})
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import aiosqlite

from proplist.application.use_cases import (
    AttachDocument,
    CreateProperty,
    DeleteDocument,
    DeleteProperty,
    DuplicateProperty,
    GetAuthProfile,
    GetProperty,
    GetPropertyReadiness,
    GetPublicProperty,
    ListProperties,
    ListPropertyDocuments,
    ListPublishedProperties,
    MarkSold,
    PauseProperty,
    PublishProperty,
    PublishRules,
    RemoveMedia,
    ReorderMedia,
    SchedulePublish,
    SetCoverMedia,
    UpdateProperty,
    UploadMedia,
    UseCaseDeps,
    VerifyRpp,
)
from proplist.core.clock import Clock, SystemClock
from proplist.core.exceptions import ConfigError
from proplist.core.settings import Settings
from proplist.storage.database import open_db
from proplist.storage.sqlite_auth import SqliteAuthService
from proplist.storage.sqlite_documents import SqliteDocumentRepo
from proplist.storage.sqlite_media import SqliteMediaStorage
from proplist.storage.sqlite_properties import SqlitePropertyRepo

__all__ = ["Container", "build_container", "open_container"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    """Every use case, sharing one set of dependencies."""

    deps: UseCaseDeps
    conn: aiosqlite.Connection | None

    get_auth_profile: GetAuthProfile
    create_property: CreateProperty
    update_property: UpdateProperty
    get_property: GetProperty
    list_properties: ListProperties
    duplicate_property: DuplicateProperty
    delete_property: DeleteProperty
    publish_property: PublishProperty
    pause_property: PauseProperty
    schedule_publish: SchedulePublish
    mark_sold: MarkSold
    upload_media: UploadMedia
    remove_media: RemoveMedia
    set_cover_media: SetCoverMedia
    reorder_media: ReorderMedia
    attach_document: AttachDocument
    list_property_documents: ListPropertyDocuments
    delete_document: DeleteDocument
    verify_rpp: VerifyRpp
    get_property_readiness: GetPropertyReadiness
    list_published_properties: ListPublishedProperties
    get_public_property: GetPublicProperty


def build_container(deps: UseCaseDeps, conn: aiosqlite.Connection | None = None) -> Container:
    """Instantiate every use case over *deps* (any adapter set, e.g. in-memory)."""
    return Container(
        deps=deps,
        conn=conn,
        get_auth_profile=GetAuthProfile(deps),
        create_property=CreateProperty(deps),
        update_property=UpdateProperty(deps),
        get_property=GetProperty(deps),
        list_properties=ListProperties(deps),
        duplicate_property=DuplicateProperty(deps),
        delete_property=DeleteProperty(deps),
        publish_property=PublishProperty(deps),
        pause_property=PauseProperty(deps),
        schedule_publish=SchedulePublish(deps),
        mark_sold=MarkSold(deps),
        upload_media=UploadMedia(deps),
        remove_media=RemoveMedia(deps),
        set_cover_media=SetCoverMedia(deps),
        reorder_media=ReorderMedia(deps),
        attach_document=AttachDocument(deps),
        list_property_documents=ListPropertyDocuments(deps),
        delete_document=DeleteDocument(deps),
        verify_rpp=VerifyRpp(deps),
        get_property_readiness=GetPropertyReadiness(deps),
        list_published_properties=ListPublishedProperties(deps),
        get_public_property=GetPublicProperty(deps),
    )


@asynccontextmanager
async def open_container(
    settings: Settings | None = None,
    *,
    clock: Clock | None = None,
) -> AsyncIterator[Container]:
    """Open the database, wire the SQLite adapters and yield a :class:`Container`.

    Args:
        settings: Configuration; a fresh :class:`Settings` is loaded when ``None``.
        clock: Time source; defaults to :class:`SystemClock`.

    Yields:
        A ready :class:`Container`.  The connection is closed on exit.

    Raises:
        ConfigError: If the media root cannot be created.
    """
    settings = settings or Settings()
    clock = clock or SystemClock()

    conn = await open_db(settings.database_path_resolved)
    try:
        media_root = settings.media_root_resolved
        try:
            media_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigError(f"Cannot create media root {media_root}: {exc}") from exc
        deps = UseCaseDeps(
            properties=SqlitePropertyRepo(conn, clock),
            documents=SqliteDocumentRepo(conn, clock),
            media=SqliteMediaStorage(conn, clock, media_root),
            auth=SqliteAuthService(
                conn,
                settings.current_user_id,
                attempts=settings.profile_lookup_attempts,
                backoff=settings.profile_lookup_backoff,
            ),
            clock=clock,
            rules=PublishRules.from_settings(settings),
        )
        logger.debug(
            "Container ready (db=%s media_root=%s min_score=%d)",
            settings.database_path_resolved,
            media_root,
            deps.rules.min_score,
        )
        yield build_container(deps, conn)
    finally:
        await conn.close()
        logger.debug("Database connection closed")
