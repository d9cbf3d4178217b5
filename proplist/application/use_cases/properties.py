"""Back-office property use cases: create, read, edit, list, duplicate, delete.

Every ``execute`` takes a raw mapping, validates it with the matching schema
from :mod:`proplist.application.schemas`, resolves the caller through the
:class:`~proplist.application.ports.AuthService` port and returns a
:data:`~proplist.core.result.Result`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from proplist.application.dto import Page, PropertyDTO
from proplist.application.mappers import property_from_domain, property_to_domain
from proplist.application.schemas import (
    CreatePropertyInput,
    DuplicatePropertyInput,
    ListPropertiesInput,
    PropertyIdInput,
    UpdatePropertyInput,
    parse_input,
)
from proplist.application.use_cases.base import (
    UseCase,
    changed_columns,
    load_assets,
    load_caller_and_property,
    score_with_assets,
    use_case_boundary,
)
from proplist.core import events
from proplist.core.ids import new_id
from proplist.core.result import Err, Ok, Result
from proplist.domain.enums import VerificationStatus
from proplist.domain.factory import PropertyFactory
from proplist.domain.property import FEATURE_FIELDS, UNSET, Property
from proplist.domain.value_objects import Address, GeoPoint, Money

__all__ = [
    "CreateProperty",
    "UpdateProperty",
    "GetProperty",
    "ListProperties",
    "DuplicateProperty",
    "DeleteProperty",
]

logger = logging.getLogger(__name__)

_EXTRA_FIELDS = ("condition", "furnished", "pet_friendly", "orientation")


class CreateProperty(UseCase):
    """Create a draft listing owned by the caller.

    The org is the caller's org, or the caller themselves when they have
    none.  An omitted price currency defaults to the configured home
    currency.
    """

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[PropertyDTO]:
        parsed = parse_input(CreatePropertyInput, raw)
        if isinstance(parsed, Err):
            return parsed
        auth = await self._deps.auth.get_current()
        if isinstance(auth, Err):
            return auth
        cmd, profile = parsed.value, auth.value

        prop = PropertyFactory(self._deps.clock).create_draft(
            id=new_id(),
            org_id=profile.scoped_org_id,
            lister_user_id=profile.user_id,
            title=cmd.title,
            property_type=cmd.property_type,
            price=Money(cmd.price.amount, cmd.price.currency or self._deps.rules.home_currency),
            address=Address(**cmd.address.model_dump()),
            operation_type=cmd.operation_type,
            description=cmd.description,
        )
        prop.set_features(**{name: getattr(cmd, name) for name in FEATURE_FIELDS})
        if cmd.location is not None:
            prop.relocate(prop.address, GeoPoint(cmd.location.lat, cmd.location.lng))
        prop.set_amenities(cmd.amenities, cmd.amenities_extra)
        prop.set_tags(cmd.tags)
        prop.set_internal_id(cmd.internal_id)
        prop.compute_completeness(media_count=0)

        dto = property_from_domain(prop)
        created = await self._deps.properties.create(dto)
        if isinstance(created, Err):
            return created
        logger.info(
            "Property %s created (score=%d)",
            dto.id,
            dto.completeness_score,
            extra={"event": events.PROPERTY_CREATED, "property_id": dto.id},
        )
        return Ok(dto)


class UpdateProperty(UseCase):
    """Apply a partial edit through the entity, then persist only what changed.

    The completeness score is recomputed from the current media and
    documents in the same write.
    """

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[PropertyDTO]:
        parsed = parse_input(UpdatePropertyInput, raw)
        if isinstance(parsed, Err):
            return parsed
        cmd = parsed.value
        loaded = await load_caller_and_property(self._deps, cmd.id)
        if isinstance(loaded, Err):
            return loaded
        assets = await load_assets(self._deps, cmd.id)
        if isinstance(assets, Err):
            return assets
        _, before = loaded.value
        media, docs = assets.value

        prop = property_to_domain(before, self._deps.clock)
        _apply_patch(prop, cmd)
        score_with_assets(prop, media, docs)
        after = property_from_domain(prop)

        patch = changed_columns(before, after)
        updated = await self._deps.properties.update(cmd.id, patch)
        if isinstance(updated, Err):
            return updated
        logger.info(
            "Property %s updated (%s)",
            cmd.id,
            ", ".join(sorted(set(patch) - {"updated_at"})) or "no changes",
            extra={"event": events.PROPERTY_UPDATED, "property_id": cmd.id},
        )
        return Ok(after)


def _apply_patch(prop: Property, cmd: UpdatePropertyInput) -> None:
    touched = cmd.touched
    if "title" in touched:
        prop.rename(cmd.title)
    if "property_type" in touched:
        prop.retype(cmd.property_type)
    if "price" in touched:
        prop.reprice(Money(cmd.price.amount, cmd.price.currency or prop.price.currency))
    if "description" in touched:
        prop.describe(cmd.description)

    features = {name: getattr(cmd, name) for name in FEATURE_FIELDS if name in touched}
    if features:
        prop.set_features(**features)

    extras: dict[str, Any] = {name: getattr(cmd, name) for name in _EXTRA_FIELDS if name in touched}
    if "hoa_fee" in touched:
        extras["hoa_fee"] = (
            Money(cmd.hoa_fee.amount, cmd.hoa_fee.currency or prop.price.currency)
            if cmd.hoa_fee is not None
            else None
        )
    if extras:
        prop.set_extras(**extras)

    if "address" in touched or "location" in touched:
        address = Address(**cmd.address.model_dump()) if "address" in touched else prop.address
        location: Any = UNSET
        if "location" in touched:
            location = GeoPoint(cmd.location.lat, cmd.location.lng) if cmd.location else None
        prop.relocate(address, location)

    if "amenities" in touched or "amenities_extra" in touched:
        prop.set_amenities(
            cmd.amenities if "amenities" in touched else prop.amenities,
            cmd.amenities_extra if "amenities_extra" in touched else UNSET,
        )
    if "tags" in touched:
        prop.set_tags(cmd.tags)
    if "internal_id" in touched:
        prop.set_internal_id(cmd.internal_id)


class GetProperty(UseCase):
    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[PropertyDTO]:
        parsed = parse_input(PropertyIdInput, raw)
        if isinstance(parsed, Err):
            return parsed
        loaded = await load_caller_and_property(self._deps, parsed.value.id)
        if isinstance(loaded, Err):
            return loaded
        return Ok(loaded.value[1])


class ListProperties(UseCase):
    """Filtered, sorted and paginated back-office listing."""

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any] | None = None) -> Result[Page[PropertyDTO]]:
        parsed = parse_input(ListPropertiesInput, raw)
        if isinstance(parsed, Err):
            return parsed
        auth = await self._deps.auth.get_current()
        if isinstance(auth, Err):
            return auth
        return await self._deps.properties.list(parsed.value.to_filters())


class DuplicateProperty(UseCase):
    """Clone a listing into a new draft owned by the caller.

    Media and documents are copied only on request.  Without copied
    documents the clone's RPP summary restarts at ``pending``, and its score
    is recomputed from the assets it actually received.
    """

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[PropertyDTO]:
        parsed = parse_input(DuplicatePropertyInput, raw)
        if isinstance(parsed, Err):
            return parsed
        cmd = parsed.value
        loaded = await load_caller_and_property(self._deps, cmd.id)
        if isinstance(loaded, Err):
            return loaded
        assets = await load_assets(self._deps, cmd.id)
        if isinstance(assets, Err):
            return assets
        profile, source_dto = loaded.value
        media, docs = assets.value

        source = property_to_domain(source_dto, self._deps.clock)
        clone = source.duplicate(
            new_id(), lister_user_id=profile.user_id, org_id=profile.scoped_org_id
        )
        if not cmd.copy_docs:
            clone.set_rpp_status(VerificationStatus.PENDING)
        score_with_assets(
            clone, media if cmd.copy_media else [], docs if cmd.copy_docs else []
        )
        clone_dto = property_from_domain(clone)

        created = await self._deps.properties.duplicate(
            cmd.id, clone_dto, copy_media=cmd.copy_media, copy_docs=cmd.copy_docs
        )
        if isinstance(created, Err):
            return created
        logger.info(
            "Property %s duplicated as %s (media=%s, docs=%s)",
            cmd.id,
            created.value,
            cmd.copy_media,
            cmd.copy_docs,
            extra={"event": events.PROPERTY_DUPLICATED, "property_id": created.value},
        )
        return Ok(clone_dto)


class DeleteProperty(UseCase):
    """Soft-delete a listing; its row, media and documents are kept."""

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[None]:
        parsed = parse_input(PropertyIdInput, raw)
        if isinstance(parsed, Err):
            return parsed
        property_id = parsed.value.id
        loaded = await load_caller_and_property(self._deps, property_id)
        if isinstance(loaded, Err):
            return loaded

        deleted = await self._deps.properties.soft_delete(property_id)
        if isinstance(deleted, Err):
            return deleted
        logger.info(
            "Property %s deleted",
            property_id,
            extra={"event": events.PROPERTY_DELETED, "property_id": property_id},
        )
        return Ok(None)
