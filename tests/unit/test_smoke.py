"""Smoke tests: verify the test harness itself is wired up correctly.

These tests assert nothing about business logic.  Their sole purpose is to
confirm:

1. pytest discovers and runs tests in this suite.
2. pytest-asyncio's ``asyncio_mode = "auto"`` setting works.
3. Core proplist modules import without errors.
4. ``configure_logging()`` executes without raising.
5. The exception taxonomy is importable and the hierarchy is intact.

If any of these fail it means the project foundation is broken and no
subsequent tests can be trusted.
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from proplist.core import (
    ApplicationError,
    AppErrorCode,
    AuthError,
    ConfigError,
    ConflictError,
    DomainError,
    DomainErrorCode,
    InputValidationError,
    InvalidValueError,
    InvariantViolationError,
    JsonFormatter,
    KycRequiredError,
    NotFoundError,
    ProplistError,
    PublishBlockedError,
    RppRejectedError,
    StatusTransitionError,
    StorageError,
    UnknownError,
    configure_logging,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Import & startup smoke
# ---------------------------------------------------------------------------


def test_core_imports_succeed() -> None:
    """All public names exported from ``proplist.core`` are importable."""
    assert configure_logging is not None
    assert JsonFormatter is not None
    assert ProplistError is not None


def test_package_layers_import() -> None:
    """Domain, application and storage layers import without side effects."""
    import proplist.application.container  # noqa: F401, PLC0415
    import proplist.domain  # noqa: F401, PLC0415
    import proplist.storage  # noqa: F401, PLC0415


def test_configure_logging_text() -> None:
    configure_logging(level="INFO", fmt="text", force=True)


def test_configure_logging_json() -> None:
    """``configure_logging`` runs without raising in JSON mode."""
    configure_logging(level="DEBUG", fmt="json", force=True)
    # Restore text mode so subsequent test output remains readable.
    configure_logging(level="DEBUG", fmt="text", force=True)


def test_configure_logging_invalid_level() -> None:
    with pytest.raises(ValueError, match="Unknown LOG_LEVEL"):
        configure_logging(level="VERBOSE", force=True)


def test_configure_logging_invalid_format() -> None:
    with pytest.raises(ValueError, match="Unknown LOG_FORMAT"):
        configure_logging(fmt="xml", force=True)


# ---------------------------------------------------------------------------
# Exception taxonomy
# ---------------------------------------------------------------------------


def test_exception_hierarchy_base() -> None:
    """All custom exceptions are subclasses of ``ProplistError``."""
    for exc_class in (
        ConfigError,
        StorageError,
        DomainError,
        InvalidValueError,
        InvariantViolationError,
        KycRequiredError,
        PublishBlockedError,
        RppRejectedError,
        StatusTransitionError,
        ApplicationError,
        AuthError,
        NotFoundError,
        ConflictError,
        InputValidationError,
        UnknownError,
    ):
        assert issubclass(exc_class, ProplistError), (
            f"{exc_class.__name__} is not a subclass of ProplistError"
        )


def test_domain_and_application_trees_are_disjoint() -> None:
    for exc_class in (AuthError, NotFoundError, ConflictError, InputValidationError, UnknownError):
        assert issubclass(exc_class, ApplicationError)
        assert not issubclass(exc_class, DomainError)
    for exc_class in (
        InvalidValueError,
        InvariantViolationError,
        KycRequiredError,
        PublishBlockedError,
        RppRejectedError,
        StatusTransitionError,
    ):
        assert issubclass(exc_class, DomainError)
        assert not issubclass(exc_class, ApplicationError)


def test_domain_error_codes() -> None:
    assert KycRequiredError().code is DomainErrorCode.KYC_REQUIRED
    assert RppRejectedError().code is DomainErrorCode.RPP_REJECTED
    assert InvalidValueError("bad").code is DomainErrorCode.INVALID_VALUE
    assert InvariantViolationError("bad").code is DomainErrorCode.INVARIANT_VIOLATION


def test_publish_blocked_carries_min_and_score() -> None:
    exc = PublishBlockedError(80, 67)
    assert exc.code is DomainErrorCode.PUBLISH_BLOCKED
    assert exc.details == {"min": 80, "score": 67}
    assert "80" in str(exc)


def test_status_transition_carries_from_and_to() -> None:
    exc = StatusTransitionError("draft", "sold")
    assert exc.from_status == "draft"
    assert exc.to_status == "sold"
    assert exc.details == {"from": "draft", "to": "sold"}
    assert "draft -> sold" in str(exc)


def test_application_error_codes() -> None:
    assert AuthError("x").code is AppErrorCode.AUTH
    assert NotFoundError("property", "abc").code is AppErrorCode.NOT_FOUND
    assert ConflictError("x").code is AppErrorCode.CONFLICT
    assert InputValidationError("x", ["a: b"]).code is AppErrorCode.VALIDATION
    assert UnknownError("x").code is AppErrorCode.UNKNOWN


def test_not_found_carries_entity_and_id() -> None:
    exc = NotFoundError("document", "abc")
    assert exc.entity == "document"
    assert exc.entity_id == "abc"
    assert exc.details == {"entity": "document", "id": "abc"}
    assert "Document not found" in str(exc)


def test_input_validation_carries_issues() -> None:
    exc = InputValidationError("Invalid input", ["title: required"])
    assert exc.issues == ["title: required"]
    assert exc.details == {"issues": ["title: required"]}


# ---------------------------------------------------------------------------
# Async harness
# ---------------------------------------------------------------------------


async def test_async_test_runs() -> None:
    """Simplest possible async test; confirms pytest-asyncio is operational."""
    await asyncio.sleep(0)
    assert True


async def test_async_exception_is_catchable() -> None:
    async def _failing_coro() -> None:
        raise KycRequiredError()

    with pytest.raises(KycRequiredError, match="KYC"):
        await _failing_coro()
