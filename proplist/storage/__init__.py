"""Adapters implementing the application ports: aiosqlite-backed and in-memory."""

from proplist.storage.database import DEFAULT_DB_PATH, MEMORY_DB, create_schema, open_db
from proplist.storage.memory import (
    InMemoryAuthService,
    InMemoryDocumentRepo,
    InMemoryMediaStorage,
    InMemoryPropertyRepo,
    MemoryStore,
)
from proplist.storage.sqlite_auth import SqliteAuthService, save_profile
from proplist.storage.sqlite_documents import SqliteDocumentRepo
from proplist.storage.sqlite_media import SqliteMediaStorage
from proplist.storage.sqlite_properties import SqlitePropertyRepo

__all__ = [
    "DEFAULT_DB_PATH",
    "MEMORY_DB",
    "open_db",
    "create_schema",
    "SqlitePropertyRepo",
    "SqliteDocumentRepo",
    "SqliteMediaStorage",
    "SqliteAuthService",
    "save_profile",
    "MemoryStore",
    "InMemoryPropertyRepo",
    "InMemoryDocumentRepo",
    "InMemoryMediaStorage",
    "InMemoryAuthService",
]
