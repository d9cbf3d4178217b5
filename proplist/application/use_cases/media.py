"""Media use cases: upload, remove, choose the cover, reorder.

After any change to the asset set, positions are re-normalised with
:func:`~proplist.domain.policies.media_ordering.ensure_cover_at_zero` so
they stay contiguous from zero with the cover first, and the property's
completeness score is refreshed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from proplist.application.dto import MediaDTO, MediaUpload
from proplist.application.mappers import media_to_domain
from proplist.application.schemas import (
    MediaRefInput,
    ReorderMediaInput,
    UploadMediaInput,
    parse_input,
)
from proplist.application.use_cases.base import (
    UseCase,
    UseCaseDeps,
    load_caller_and_property,
    refresh_derived_state,
    use_case_boundary,
)
from proplist.core import events
from proplist.core.exceptions import InvalidValueError, NotFoundError
from proplist.core.result import Err, Ok, Result
from proplist.domain.enums import MediaType
from proplist.domain.policies.media_ordering import MediaSlot, ensure_cover_at_zero

__all__ = ["UploadMedia", "RemoveMedia", "SetCoverMedia", "ReorderMedia"]

logger = logging.getLogger(__name__)


def _is_normalized(items: Sequence[MediaDTO], ordered: Sequence[MediaDTO]) -> bool:
    current = sorted(items, key=lambda m: m.position)
    return (
        [m.id for m in current] == [m.id for m in ordered]
        and all(m.position == i for i, m in enumerate(current))
        and all(m.is_cover == (i == 0) for i, m in enumerate(current))
    )


async def _normalize_order(deps: UseCaseDeps, property_id: str) -> Result[list[MediaDTO]]:
    listed = await deps.media.list_media(property_id)
    if isinstance(listed, Err):
        return listed
    items = listed.value
    ordered = ensure_cover_at_zero(items)
    if _is_normalized(items, ordered):
        return listed
    reordered = await deps.media.reorder(property_id, [m.id for m in ordered])
    if isinstance(reordered, Err):
        return reordered
    return await deps.media.list_media(property_id)


def _cover_first(items: Sequence[MediaDTO], ordered_ids: Sequence[str]) -> list[str]:
    """Keep the requested order but pull the cover candidate to the front.

    An order that is not a permutation of *items* is returned untouched so
    the storage port reports exactly what is wrong with it.
    """
    by_id = {m.id: m for m in items}
    if len(ordered_ids) != len(by_id) or set(ordered_ids) != set(by_id):
        return list(ordered_ids)
    slots = [
        MediaSlot(id=media_id, media_type=by_id[media_id].media_type, position=index)
        for index, media_id in enumerate(ordered_ids)
    ]
    return [slot.id for slot in ensure_cover_at_zero(slots)]


def _find(items: Sequence[MediaDTO], media_id: str) -> MediaDTO | None:
    return next((m for m in items if m.id == media_id), None)


class UploadMedia(UseCase):
    """Store a file as a new asset of the property.

    ``floorplan`` uploads are kept as document-like media.
    """

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[MediaDTO]:
        parsed = parse_input(UploadMediaInput, raw)
        if isinstance(parsed, Err):
            return parsed
        cmd = parsed.value
        loaded = await load_caller_and_property(self._deps, cmd.property_id)
        if isinstance(loaded, Err):
            return loaded
        _, prop = loaded.value

        uploaded = await self._deps.media.upload(
            cmd.property_id,
            MediaUpload(
                file_name=cmd.file_name,
                content_type=cmd.content_type,
                data=cmd.data,
                media_type=cmd.media_type,
            ),
            org_id=prop.org_id,
        )
        if isinstance(uploaded, Err):
            return uploaded
        normalized = await _normalize_order(self._deps, cmd.property_id)
        if isinstance(normalized, Err):
            return normalized
        refreshed = await refresh_derived_state(self._deps, cmd.property_id)
        if isinstance(refreshed, Err):
            return refreshed

        asset = _find(normalized.value, uploaded.value.id) or uploaded.value
        logger.info(
            "Media %s uploaded to %s at position %d",
            asset.id,
            cmd.property_id,
            asset.position,
            extra={"event": events.MEDIA_UPLOADED, "property_id": cmd.property_id},
        )
        return Ok(asset)


class RemoveMedia(UseCase):
    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[None]:
        parsed = parse_input(MediaRefInput, raw)
        if isinstance(parsed, Err):
            return parsed
        cmd = parsed.value
        loaded = await load_caller_and_property(self._deps, cmd.property_id)
        if isinstance(loaded, Err):
            return loaded
        listed = await self._deps.media.list_media(cmd.property_id)
        if isinstance(listed, Err):
            return listed
        if _find(listed.value, cmd.media_id) is None:
            return Err(NotFoundError("media", cmd.media_id))

        removed = await self._deps.media.remove(cmd.media_id)
        if isinstance(removed, Err):
            return removed
        normalized = await _normalize_order(self._deps, cmd.property_id)
        if isinstance(normalized, Err):
            return normalized
        refreshed = await refresh_derived_state(self._deps, cmd.property_id)
        if isinstance(refreshed, Err):
            return refreshed
        logger.info(
            "Media %s removed from %s",
            cmd.media_id,
            cmd.property_id,
            extra={"event": events.MEDIA_REMOVED, "property_id": cmd.property_id},
        )
        return Ok(None)


class SetCoverMedia(UseCase):
    """Make an image the cover; it moves to position 0.

    Returns ``Err(InvalidValueError)`` for videos and document-like media,
    which the ordering policy would never pick as cover.
    """

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[list[MediaDTO]]:
        parsed = parse_input(MediaRefInput, raw)
        if isinstance(parsed, Err):
            return parsed
        cmd = parsed.value
        loaded = await load_caller_and_property(self._deps, cmd.property_id)
        if isinstance(loaded, Err):
            return loaded
        listed = await self._deps.media.list_media(cmd.property_id)
        if isinstance(listed, Err):
            return listed
        found = _find(listed.value, cmd.media_id)
        if found is None:
            return Err(NotFoundError("media", cmd.media_id))

        asset = media_to_domain(found, self._deps.clock)
        if asset.media_type is not MediaType.IMAGE:
            raise InvalidValueError(
                "Only images can be the cover",
                details={"field": "media_id", "media_type": asset.media_type},
            )
        covered = await self._deps.media.set_cover(cmd.property_id, cmd.media_id)
        if isinstance(covered, Err):
            return covered
        logger.info(
            "Media %s set as cover of %s",
            cmd.media_id,
            cmd.property_id,
            extra={"event": events.MEDIA_COVER_SET, "property_id": cmd.property_id},
        )
        return await self._deps.media.list_media(cmd.property_id)


class ReorderMedia(UseCase):
    """Apply an explicit order.

    The first image of the requested order becomes the cover and moves to
    position 0; every other asset keeps its requested relative order.  Only
    a listing without images can have a video or document-like cover.
    """

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[list[MediaDTO]]:
        parsed = parse_input(ReorderMediaInput, raw)
        if isinstance(parsed, Err):
            return parsed
        cmd = parsed.value
        loaded = await load_caller_and_property(self._deps, cmd.property_id)
        if isinstance(loaded, Err):
            return loaded
        listed = await self._deps.media.list_media(cmd.property_id)
        if isinstance(listed, Err):
            return listed

        order = _cover_first(listed.value, cmd.ordered_ids)
        if order[:1] != cmd.ordered_ids[:1]:
            logger.debug("Cover %s moved ahead of requested order on %s", order[0], cmd.property_id)
        reordered = await self._deps.media.reorder(cmd.property_id, order)
        if isinstance(reordered, Err):
            return reordered
        logger.info(
            "Media of %s reordered (%d assets)",
            cmd.property_id,
            len(cmd.ordered_ids),
            extra={"event": events.MEDIA_REORDERED, "property_id": cmd.property_id},
        )
        return await self._deps.media.list_media(cmd.property_id)
