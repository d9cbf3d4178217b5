"""Publish-readiness checklist of one property."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from proplist.application.mappers import property_to_domain
from proplist.application.schemas import PropertyIdInput, parse_input
from proplist.application.use_cases.base import (
    UseCase,
    load_assets,
    load_caller_and_property,
    use_case_boundary,
)
from proplist.core.result import Err, Ok, Result
from proplist.domain.policies.documents import rpp_status_from_docs
from proplist.domain.readiness import Readiness, ReadinessService

__all__ = ["GetPropertyReadiness"]

logger = logging.getLogger(__name__)


class GetPropertyReadiness(UseCase):
    """Score, bucket and issue codes computed live from the current assets.

    Read-only: the stored completeness score is not rewritten.
    """

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[Readiness]:
        parsed = parse_input(PropertyIdInput, raw)
        if isinstance(parsed, Err):
            return parsed
        property_id = parsed.value.id
        loaded = await load_caller_and_property(self._deps, property_id)
        if isinstance(loaded, Err):
            return loaded
        assets = await load_assets(self._deps, property_id)
        if isinstance(assets, Err):
            return assets
        profile, dto = loaded.value
        media, docs = assets.value

        rules = self._deps.rules
        readiness = ReadinessService().readiness_for_property(
            property_to_domain(dto, self._deps.clock),
            kyc_verified=profile.kyc_verified,
            media_count=len(media),
            document_count=len(docs),
            rpp_status=rpp_status_from_docs(docs),
            min_score=rules.min_score,
            block_if_rpp_rejected=rules.block_if_rpp_rejected,
        )
        logger.debug(
            "Readiness of %s: score=%d issues=%s",
            property_id,
            readiness.score,
            [issue.value for issue in readiness.issues],
        )
        return Ok(readiness)
