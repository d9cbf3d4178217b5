"""Proplist exception taxonomy.

Every custom exception inherits from :class:`ProplistError`.  Exceptions are
organised by architectural layer so callers can catch at the right granularity:

    Layer hierarchy
    ---------------
    ProplistError
    ├── ConfigError
    ├── StorageError
    ├── DomainError
    │   ├── InvalidValueError
    │   ├── InvariantViolationError
    │   ├── KycRequiredError
    │   ├── PublishBlockedError
    │   ├── RppRejectedError
    │   └── StatusTransitionError
    └── ApplicationError
        ├── AuthError
        ├── NotFoundError
        ├── ConflictError
        ├── InputValidationError
        └── UnknownError

Domain errors are *raised* by entities and policies when a call should never
have been made given the current state.  Application errors are *returned*
(inside an :class:`~proplist.core.result.Err`) by repositories and use cases
for expected, recoverable failures.  The two trees never share codes.

Usage:

    from proplist.core.exceptions import StatusTransitionError

    raise StatusTransitionError("draft", "sold")
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

__all__ = [
    "ProplistError",
    # Config
    "ConfigError",
    # Storage
    "StorageError",
    # Domain
    "DomainErrorCode",
    "DomainError",
    "InvalidValueError",
    "InvariantViolationError",
    "KycRequiredError",
    "PublishBlockedError",
    "RppRejectedError",
    "StatusTransitionError",
    # Application
    "AppErrorCode",
    "ApplicationError",
    "AuthError",
    "NotFoundError",
    "ConflictError",
    "InputValidationError",
    "UnknownError",
]

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class ProplistError(Exception):
    """Root exception for all Proplist errors.

    Catch this to handle any application-level error uniformly.  Prefer
    catching layer-specific subclasses wherever possible for precise error
    handling.
    """


# ---------------------------------------------------------------------------
# Config layer
# ---------------------------------------------------------------------------


class ConfigError(ProplistError):
    """Raised when the application configuration is invalid or incomplete.

    Examples:
        - The SQLite database path cannot be created.
        - A variable contains an out-of-range value (e.g. negative page size).
    """


# ---------------------------------------------------------------------------
# Storage layer
# ---------------------------------------------------------------------------


class StorageError(ProplistError):
    """Raised when a database or object-storage operation fails outright.

    Adapters catch this (and driver errors) at their public boundary and
    return an :class:`UnknownError` result instead of propagating it.
    """


# ---------------------------------------------------------------------------
# Domain layer
# ---------------------------------------------------------------------------


class DomainErrorCode(StrEnum):
    """Machine-readable codes carried by every :class:`DomainError`."""

    INVALID_VALUE = "INVALID_VALUE"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    KYC_REQUIRED = "KYC_REQUIRED"
    PUBLISH_BLOCKED = "PUBLISH_BLOCKED"
    RPP_REJECTED = "RPP_REJECTED"
    STATUS_TRANSITION = "STATUS_TRANSITION"


class DomainError(ProplistError):
    """Base class for business-rule and invariant violations.

    Args:
        code: Machine-readable error code.
        message: Human-readable error description.
        cause: Optional underlying exception or value.
        details: Optional structured context (field names, offending values).
    """

    code: DomainErrorCode

    def __init__(
        self,
        code: DomainErrorCode,
        message: str,
        *,
        cause: object | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.cause = cause
        self.details: dict[str, Any] = dict(details or {})
        super().__init__(message)


class InvalidValueError(DomainError):
    """Raised when a field receives a malformed value (bad number, bad UUID)."""

    def __init__(
        self,
        message: str,
        *,
        cause: object | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(DomainErrorCode.INVALID_VALUE, message, cause=cause, details=details)


class InvariantViolationError(DomainError):
    """Raised when an entity would end up in a self-contradicting state.

    Examples:
        - Empty title.
        - ``status == published`` without ``published_at``.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: object | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            DomainErrorCode.INVARIANT_VIOLATION, message, cause=cause, details=details
        )


class KycRequiredError(DomainError):
    """Raised when publishing is attempted by a lister without verified KYC."""

    def __init__(
        self,
        message: str = "KYC verification is required to publish",
        *,
        cause: object | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(DomainErrorCode.KYC_REQUIRED, message, cause=cause, details=details)


class PublishBlockedError(DomainError):
    """Raised when the completeness score is below the publish threshold.

    ``details`` always carries ``min`` and ``score``.
    """

    def __init__(
        self,
        min_score: int,
        score: int,
        message: str | None = None,
        *,
        cause: object | None = None,
    ) -> None:
        self.min_score = min_score
        self.score = score
        super().__init__(
            DomainErrorCode.PUBLISH_BLOCKED,
            message or f"Completeness must be >= {min_score} (got {score})",
            cause=cause,
            details={"min": min_score, "score": score},
        )


class RppRejectedError(DomainError):
    """Raised when the public-registry (RPP) verification was rejected."""

    def __init__(
        self,
        message: str = "RPP verification was rejected",
        *,
        cause: object | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(DomainErrorCode.RPP_REJECTED, message, cause=cause, details=details)


class StatusTransitionError(DomainError):
    """Raised when a status change is not in the transition table.

    Args:
        from_status: Current status value.
        to_status: Requested status value.
    """

    def __init__(
        self,
        from_status: str,
        to_status: str,
        message: str = "Invalid status transition",
        *,
        cause: object | None = None,
    ) -> None:
        self.from_status = str(from_status)
        self.to_status = str(to_status)
        super().__init__(
            DomainErrorCode.STATUS_TRANSITION,
            f"{message}: {self.from_status} -> {self.to_status}",
            cause=cause,
            details={"from": self.from_status, "to": self.to_status},
        )


# ---------------------------------------------------------------------------
# Application / persistence boundary
# ---------------------------------------------------------------------------


class AppErrorCode(StrEnum):
    """Codes of the persistence-boundary taxonomy (never domain codes)."""

    AUTH = "auth"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class ApplicationError(ProplistError):
    """Base class for expected failures returned (not raised) across ports.

    Args:
        message: Human-readable error description.
        details: Optional structured context.
    """

    code: AppErrorCode = AppErrorCode.UNKNOWN

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.details: dict[str, Any] = dict(details or {})
        super().__init__(message)


class AuthError(ApplicationError):
    """No authenticated user, or the user's profile could not be resolved."""

    code = AppErrorCode.AUTH


class NotFoundError(ApplicationError):
    """The requested record does not exist (or is soft-deleted).

    Args:
        entity: Kind of record (``"property"``, ``"document"``, ``"media"``).
        entity_id: Identifier that was looked up.
    """

    code = AppErrorCode.NOT_FOUND

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity.capitalize()} not found: {entity_id!r}",
            details={"entity": entity, "id": entity_id},
        )


class ConflictError(ApplicationError):
    """The request clashes with the stored state (duplicate id, verified doc)."""

    code = AppErrorCode.CONFLICT


class InputValidationError(ApplicationError):
    """Raw input failed schema validation.

    Args:
        message: Summary of the failure.
        issues: One ``"<field>: <problem>"`` string per failed field.
    """

    code = AppErrorCode.VALIDATION

    def __init__(self, message: str, issues: list[str] | None = None) -> None:
        self.issues = list(issues or [])
        super().__init__(message, details={"issues": self.issues})


class UnknownError(ApplicationError):
    """An adapter failed for a reason it cannot classify (driver error, I/O)."""

    code = AppErrorCode.UNKNOWN
