"""Structured log event name constants for Proplist.

Every state change performed by a use case emits a log record with an
``event`` field (passed via ``extra={"event": events.X}``).  In
``LOG_FORMAT=json`` mode the value surfaces as ``extra.event``; in text mode
the message text is self-describing and the event is not interpolated.

Usage example::

    import logging
    from proplist.core import events

    logger = logging.getLogger(__name__)

    logger.info("Property published", extra={"event": events.PROPERTY_PUBLISHED})
"""

from __future__ import annotations

__all__ = [
    # Use-case boundary
    "USE_CASE_REJECTED",
    # Property lifecycle
    "PROPERTY_CREATED",
    "PROPERTY_UPDATED",
    "PROPERTY_PUBLISHED",
    "PROPERTY_PAUSED",
    "PROPERTY_SCHEDULED",
    "PROPERTY_SOLD",
    "PROPERTY_DELETED",
    "PROPERTY_DUPLICATED",
    # Media
    "MEDIA_UPLOADED",
    "MEDIA_REMOVED",
    "MEDIA_COVER_SET",
    "MEDIA_REORDERED",
    # Documents
    "DOCUMENT_ATTACHED",
    "DOCUMENT_DELETED",
    "RPP_VERIFIED",
    # Infrastructure
    "SCHEMA_READY",
    "STORAGE_ERROR",
    "PROFILE_LOOKUP_RETRY",
]

# ---------------------------------------------------------------------------
# Use-case boundary
# ---------------------------------------------------------------------------

#: A domain rule refused the operation; the error was returned as ``Err``.
USE_CASE_REJECTED: str = "USE_CASE_REJECTED"

# ---------------------------------------------------------------------------
# Property lifecycle
# ---------------------------------------------------------------------------

PROPERTY_CREATED: str = "PROPERTY_CREATED"
PROPERTY_UPDATED: str = "PROPERTY_UPDATED"
PROPERTY_PUBLISHED: str = "PROPERTY_PUBLISHED"
PROPERTY_PAUSED: str = "PROPERTY_PAUSED"

#: ``published_at`` was set ahead of time; status unchanged.
PROPERTY_SCHEDULED: str = "PROPERTY_SCHEDULED"

PROPERTY_SOLD: str = "PROPERTY_SOLD"

#: Soft delete; the row keeps its data and ``deleted_at`` is stamped.
PROPERTY_DELETED: str = "PROPERTY_DELETED"

PROPERTY_DUPLICATED: str = "PROPERTY_DUPLICATED"

# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------

MEDIA_UPLOADED: str = "MEDIA_UPLOADED"
MEDIA_REMOVED: str = "MEDIA_REMOVED"
MEDIA_COVER_SET: str = "MEDIA_COVER_SET"
MEDIA_REORDERED: str = "MEDIA_REORDERED"

# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

DOCUMENT_ATTACHED: str = "DOCUMENT_ATTACHED"
DOCUMENT_DELETED: str = "DOCUMENT_DELETED"

#: An RPP document changed status and the property summary was re-derived.
RPP_VERIFIED: str = "RPP_VERIFIED"

# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

SCHEMA_READY: str = "SCHEMA_READY"

#: A driver error was converted into an ``UnknownError`` result.
STORAGE_ERROR: str = "STORAGE_ERROR"

#: The auth adapter did not see the caller's profile row yet and will retry.
PROFILE_LOOKUP_RETRY: str = "PROFILE_LOOKUP_RETRY"
