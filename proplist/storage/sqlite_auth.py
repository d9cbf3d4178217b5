"""Local :class:`~proplist.application.ports.AuthService` backed by the ``profiles`` table.

The caller is identified by a configured user id (``CURRENT_USER_ID``).  A
profile row written by a concurrent sign-up may not be visible on the first
read, so the lookup is retried a bounded number of times with a fixed pause
via :mod:`tenacity` before the caller is reported as unknown.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import aiosqlite
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from proplist.application.dto import AuthProfile
from proplist.application.ports import AuthService
from proplist.core import events
from proplist.core.exceptions import AuthError
from proplist.core.result import Err, Ok, Result
from proplist.domain.enums import VerificationStatus
from proplist.storage.database import storage_guard, to_iso

__all__ = ["SqliteAuthService", "save_profile"]

logger = logging.getLogger(__name__)


class _ProfileNotVisible(Exception):
    """Internal: the profile row is missing on this attempt.

    Never escapes :meth:`SqliteAuthService.get_current`.
    """


def _row_to_profile(row: aiosqlite.Row) -> AuthProfile:
    data = dict(row)
    data.pop("created_at", None)
    data["kyc_status"] = VerificationStatus(data["kyc_status"])
    return AuthProfile.model_validate(data)


class SqliteAuthService(AuthService):
    """Resolve the configured caller from the ``profiles`` table.

    Args:
        conn: Open, configured connection.
        user_id: Profile id of the caller; empty means "not signed in".
        attempts: Lookups made before giving up.  Must be >= 1.
        backoff: Seconds to sleep between lookups.
    """

    def __init__(
        self,
        conn: aiosqlite.Connection,
        user_id: str | None,
        *,
        attempts: int = 3,
        backoff: float = 0.2,
    ) -> None:
        self._conn = conn
        self._user_id = user_id or None
        self._attempts = max(1, attempts)
        self._backoff = backoff

    @storage_guard("profile")
    async def get_current(self) -> Result[AuthProfile]:
        if self._user_id is None:
            return Err(AuthError("No authenticated user"))

        def _before_sleep(rs: RetryCallState) -> None:
            logger.warning(
                "Profile %s not visible yet (attempt %d/%d). Retrying in %.1f s",
                self._user_id,
                rs.attempt_number,
                self._attempts,
                self._backoff,
                extra={"event": events.PROFILE_LOOKUP_RETRY},
            )

        row: aiosqlite.Row | None = None
        try:
            async for attempt in AsyncRetrying(
                wait=wait_fixed(self._backoff),
                stop=stop_after_attempt(self._attempts),
                retry=retry_if_exception_type(_ProfileNotVisible),
                reraise=True,
                before_sleep=_before_sleep,
            ):
                with attempt:
                    row = await self._fetch(self._user_id)
        except _ProfileNotVisible:
            return Err(AuthError(f"Profile not found for user {self._user_id}"))

        assert row is not None, "tenacity exited without a row or exception"
        return Ok(_row_to_profile(row))

    async def _fetch(self, user_id: str) -> aiosqlite.Row:
        cursor = await self._conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,))
        row = await cursor.fetchone()
        if row is None:
            raise _ProfileNotVisible(user_id)
        return row


async def save_profile(
    conn: aiosqlite.Connection, profile: AuthProfile, *, created_at: str | None = None
) -> None:
    """Insert or replace *profile*; used by the CLI and by tests to seed callers."""
    await conn.execute(
        """
        INSERT INTO profiles
            (user_id, org_id, kyc_status, full_name, email, phone, role_hint, created_at)
        VALUES
            (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(user_id) DO UPDATE SET
            org_id = excluded.org_id,
            kyc_status = excluded.kyc_status,
            full_name = excluded.full_name,
            email = excluded.email,
            phone = excluded.phone,
            role_hint = excluded.role_hint
        """,
        (
            profile.user_id,
            profile.org_id,
            profile.kyc_status.value,
            profile.full_name,
            profile.email,
            profile.phone,
            profile.role_hint,
            created_at or to_iso(datetime.now(UTC)),
        ),
    )
    await conn.commit()
    logger.debug("Saved profile %s (kyc=%s)", profile.user_id, profile.kyc_status)
