"""Caller profile lookup."""

from __future__ import annotations

import logging

from proplist.application.dto import AuthProfile
from proplist.application.use_cases.base import UseCase, use_case_boundary
from proplist.core.result import Result

__all__ = ["GetAuthProfile"]

logger = logging.getLogger(__name__)


class GetAuthProfile(UseCase):
    """Return the caller's id, org and KYC status."""

    @use_case_boundary
    async def execute(self) -> Result[AuthProfile]:
        return await self._deps.auth.get_current()
