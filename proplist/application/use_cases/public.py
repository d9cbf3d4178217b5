"""Anonymous read side: search and detail of published listings.

No caller is resolved.  Only published, non-deleted properties are visible,
and addresses go through the privacy policy before leaving the core.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from proplist.application.dto import Page, PublicPropertyDetail, PublicPropertySummary
from proplist.application.mappers import to_public_detail, to_public_summary
from proplist.application.schemas import PropertyIdInput, PublicListInput, parse_input
from proplist.application.use_cases.base import UseCase, use_case_boundary
from proplist.core.exceptions import NotFoundError
from proplist.core.result import Err, Ok, Result
from proplist.domain.enums import PropertyStatus

__all__ = ["ListPublishedProperties", "GetPublicProperty"]

logger = logging.getLogger(__name__)


class ListPublishedProperties(UseCase):
    @use_case_boundary
    async def execute(
        self, raw: Mapping[str, Any] | None = None
    ) -> Result[Page[PublicPropertySummary]]:
        parsed = parse_input(PublicListInput, raw)
        if isinstance(parsed, Err):
            return parsed
        listed = await self._deps.properties.list(parsed.value.to_filters())
        if isinstance(listed, Err):
            return listed
        page = listed.value

        media_results = await asyncio.gather(
            *(self._deps.media.list_media(dto.id) for dto in page.items)
        )
        summaries = []
        for dto, media in zip(page.items, media_results, strict=True):
            if isinstance(media, Err):
                return media
            summaries.append(to_public_summary(dto, media.value))
        return Ok(
            Page[PublicPropertySummary](
                items=summaries, total=page.total, page=page.page, page_size=page.page_size
            )
        )


class GetPublicProperty(UseCase):
    """Detail of one published listing; anything else is ``NotFoundError``."""

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[PublicPropertyDetail]:
        parsed = parse_input(PropertyIdInput, raw)
        if isinstance(parsed, Err):
            return parsed
        property_id = parsed.value.id
        found = await self._deps.properties.get_by_id(property_id)
        if isinstance(found, Err):
            return found
        if found.value.status is not PropertyStatus.PUBLISHED:
            return Err(NotFoundError("property", property_id))
        media = await self._deps.media.list_media(property_id)
        if isinstance(media, Err):
            return media
        return Ok(to_public_detail(found.value, media.value))
