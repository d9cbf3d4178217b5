"""Shared pytest fixtures and configuration for the Proplist test suite.

This file is loaded automatically by pytest before any test module.
It provides project-wide fixtures: logging setup, environment isolation, a
pinned clock and a fully wired in-memory dependency set.
"""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime

import pytest
from pydantic_settings import SettingsConfigDict

from proplist.application.container import Container, build_container
from proplist.application.dto import AuthProfile
from proplist.application.use_cases import PublishRules, UseCaseDeps
from proplist.core import configure_logging
from proplist.core.clock import FixedClock
from proplist.core.settings import Settings
from proplist.domain.enums import VerificationStatus
from proplist.storage.memory import (
    InMemoryAuthService,
    InMemoryDocumentRepo,
    InMemoryMediaStorage,
    InMemoryPropertyRepo,
    MemoryStore,
)

#: Fixed ids so failures print stable values.
USER_ID = "11111111-1111-4111-8111-111111111111"
ORG_ID = "22222222-2222-4222-8222-222222222222"

#: Instant every test clock starts at.
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _configure_test_logging() -> None:
    """Force DEBUG logging in text format for every test.

    Using ``force=True`` ensures the configuration is applied even when
    pytest's own ``log_cli`` handler is already present.
    """
    configure_logging(level="DEBUG", fmt="text", force=True)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every Proplist-related env var for the duration of a test.

    Also disables pydantic-settings `.env` file loading so that values in a
    local `.env` file do not leak into Settings isolation tests.
    """
    prefixes = (
        "DATABASE_",
        "MEDIA_",
        "HOME_CURRENCY",
        "MIN_PUBLISH_",
        "BLOCK_IF_",
        "DEFAULT_PAGE",
        "MAX_PAGE",
        "CURRENT_USER",
        "PROFILE_LOOKUP",
        "LOG_LEVEL",
        "LOG_FORMAT",
    )
    for key in list(os.environ):
        if any(key.startswith(prefix) for prefix in prefixes):
            monkeypatch.delenv(key, raising=False)

    monkeypatch.setattr(
        Settings,
        "model_config",
        SettingsConfigDict(
            env_file=None,
            env_file_encoding="utf-8",
            extra="ignore",
        ),
    )


# ---------------------------------------------------------------------------
# Domain wiring
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(T0)


@pytest.fixture()
def profile() -> AuthProfile:
    """A KYC-verified caller belonging to an org."""
    return AuthProfile(user_id=USER_ID, org_id=ORG_ID, kyc_status=VerificationStatus.VERIFIED)


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def auth(profile: AuthProfile) -> InMemoryAuthService:
    return InMemoryAuthService(profile)


@pytest.fixture()
def deps(store: MemoryStore, clock: FixedClock, auth: InMemoryAuthService) -> UseCaseDeps:
    return UseCaseDeps(
        properties=InMemoryPropertyRepo(store, clock),
        documents=InMemoryDocumentRepo(store, clock),
        media=InMemoryMediaStorage(store, clock),
        auth=auth,
        clock=clock,
        rules=PublishRules(),
    )


@pytest.fixture()
def app(deps: UseCaseDeps) -> Container:
    """Every use case wired over the in-memory adapters."""
    return build_container(deps)


# ---------------------------------------------------------------------------
# Misc helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def logger() -> logging.Logger:
    """Return a ``logging.Logger`` scoped to test code."""
    return logging.getLogger("tests")
