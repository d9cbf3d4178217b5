"""Status lifecycle use cases: publish, pause, schedule, mark sold.

The entity decides; the repository only records the outcome.  Each use case
rebuilds the :class:`~proplist.domain.property.Property` from its snapshot,
calls the matching entity method (which enforces the transition table and
the publish gate) and then issues the narrow repository write.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from proplist.application.dto import PropertyDTO
from proplist.application.mappers import property_from_domain, property_to_domain
from proplist.application.schemas import (
    MarkSoldInput,
    PropertyIdInput,
    SchedulePublishInput,
    parse_input,
)
from proplist.application.use_cases.base import (
    UseCase,
    load_caller_and_property,
    use_case_boundary,
)
from proplist.core import events
from proplist.core.result import Err, Ok, Result
from proplist.domain.enums import PropertyStatus

__all__ = ["PublishProperty", "PauseProperty", "SchedulePublish", "MarkSold"]

logger = logging.getLogger(__name__)


class PublishProperty(UseCase):
    """Publish a listing if the caller is KYC-verified and the gate opens.

    The gate reads the stored completeness score.  Re-publishing a listing
    that is already published succeeds without writing and keeps its
    ``published_at``.

    Returns ``Err`` with ``KycRequiredError``, ``PublishBlockedError``,
    ``RppRejectedError`` or ``StatusTransitionError`` when refused.
    """

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[PropertyDTO]:
        parsed = parse_input(PropertyIdInput, raw)
        if isinstance(parsed, Err):
            return parsed
        property_id = parsed.value.id
        loaded = await load_caller_and_property(self._deps, property_id)
        if isinstance(loaded, Err):
            return loaded
        profile, dto = loaded.value

        prop = property_to_domain(dto, self._deps.clock)
        was_published = prop.status is PropertyStatus.PUBLISHED
        prop.publish(
            kyc_verified=profile.kyc_verified,
            require_score_gte=self._deps.rules.min_score,
            block_if_rpp_rejected=self._deps.rules.block_if_rpp_rejected,
        )
        if was_published:
            return Ok(dto)

        snapshot = property_from_domain(prop)
        published = await self._deps.properties.publish(property_id, snapshot.published_at)
        if isinstance(published, Err):
            return published
        logger.info(
            "Property %s published at %s",
            property_id,
            snapshot.published_at.isoformat(),
            extra={"event": events.PROPERTY_PUBLISHED, "property_id": property_id},
        )
        return Ok(snapshot)


class PauseProperty(UseCase):
    """Take a published listing back to draft; any other status is left alone."""

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[PropertyDTO]:
        parsed = parse_input(PropertyIdInput, raw)
        if isinstance(parsed, Err):
            return parsed
        property_id = parsed.value.id
        loaded = await load_caller_and_property(self._deps, property_id)
        if isinstance(loaded, Err):
            return loaded
        _, dto = loaded.value

        prop = property_to_domain(dto, self._deps.clock)
        prop.pause()
        if prop.status is dto.status:
            return Ok(dto)

        paused = await self._deps.properties.pause(property_id)
        if isinstance(paused, Err):
            return paused
        logger.info(
            "Property %s paused",
            property_id,
            extra={"event": events.PROPERTY_PAUSED, "property_id": property_id},
        )
        return Ok(property_from_domain(prop))


class SchedulePublish(UseCase):
    """Record a future publication date without publishing.

    Only ``published_at`` changes; the status stays as it is until
    :class:`PublishProperty` runs, which then keeps the scheduled date.
    """

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[PropertyDTO]:
        parsed = parse_input(SchedulePublishInput, raw)
        if isinstance(parsed, Err):
            return parsed
        cmd = parsed.value
        loaded = await load_caller_and_property(self._deps, cmd.id)
        if isinstance(loaded, Err):
            return loaded
        _, dto = loaded.value

        prop = property_to_domain(dto, self._deps.clock)
        prop.schedule_publication(cmd.at)
        snapshot = property_from_domain(prop)
        updated = await self._deps.properties.update(
            cmd.id,
            {"published_at": snapshot.published_at, "updated_at": snapshot.updated_at},
        )
        if isinstance(updated, Err):
            return updated
        logger.info(
            "Property %s scheduled for %s",
            cmd.id,
            cmd.at.isoformat(),
            extra={"event": events.PROPERTY_SCHEDULED, "property_id": cmd.id},
        )
        return Ok(snapshot)


class MarkSold(UseCase):
    """Close a published listing as sold (``at`` defaults to now)."""

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[PropertyDTO]:
        parsed = parse_input(MarkSoldInput, raw)
        if isinstance(parsed, Err):
            return parsed
        cmd = parsed.value
        loaded = await load_caller_and_property(self._deps, cmd.id)
        if isinstance(loaded, Err):
            return loaded
        _, dto = loaded.value

        sold_at = cmd.at or self._deps.clock.now()
        prop = property_to_domain(dto, self._deps.clock)
        prop.mark_sold(sold_at)

        sold = await self._deps.properties.mark_sold(cmd.id, sold_at)
        if isinstance(sold, Err):
            return sold
        logger.info(
            "Property %s sold at %s",
            cmd.id,
            sold_at.isoformat(),
            extra={"event": events.PROPERTY_SOLD, "property_id": cmd.id},
        )
        return Ok(property_from_domain(prop))
