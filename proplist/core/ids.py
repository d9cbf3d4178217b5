"""Entity id strategy for Proplist.

Every aggregate and child entity is keyed by a UUID rendered in its canonical
8-4-4-4-12 hex form.  Ids are generated by the application layer (never by the
database) so a use case knows the id before the row exists.

Storage keys for uploaded blobs are derived from the owning property id so
that all files of a property share a prefix:

+-----------+---------------------------------------+
| Kind      | Example                               |
+===========+=======================================+
| Entity id | ``"0f8fad5b-d9cb-469f-a165-70867728950e"`` |
+-----------+---------------------------------------+
| Media key | ``"<property_id>/media/<asset_id>.jpg"``  |
+-----------+---------------------------------------+
| Doc key   | ``"<property_id>/docs/<doc_id>.pdf"``     |
+-----------+---------------------------------------+

Typical usage::

    from proplist.core.ids import new_id, storage_key

    pid = new_id()
    key = storage_key(pid, "media", new_id(), "front.jpg")
"""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import PurePosixPath

__all__ = ["UUID_RE", "new_id", "is_uuid", "storage_key"]

logger = logging.getLogger(__name__)

#: Case-insensitive 8-4-4-4-12 hex pattern; version and variant bits are not checked.
UUID_RE: re.Pattern[str] = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def new_id() -> str:
    """Return a fresh random UUID string."""
    return str(uuid.uuid4())


def is_uuid(value: object) -> bool:
    """Return ``True`` if *value* is a UUID-shaped string."""
    return isinstance(value, str) and UUID_RE.match(value) is not None


def storage_key(property_id: str, kind: str, object_id: str, filename: str | None = None) -> str:
    """Build the object-storage key for a blob owned by *property_id*.

    Args:
        property_id: Owning property.
        kind: ``"media"`` or ``"docs"``.
        object_id: Id of the media asset or document.
        filename: Original filename; only its suffix is kept.

    Returns:
        A relative POSIX key such as ``"<pid>/media/<id>.jpg"``.
    """
    suffix = PurePosixPath(filename).suffix.lower() if filename else ""
    return f"{property_id}/{kind}/{object_id}{suffix}"
