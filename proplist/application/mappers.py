"""Translation between persisted DTOs and domain entities.

``*_to_domain`` rebuilds an entity from its snapshot (re-running every
constructor check); ``*_from_domain`` flattens it back.  The pair is
lossless: ``property_from_domain(property_to_domain(dto, clock)) == dto`` for
every DTO that was itself produced by ``property_from_domain``.

The public projections (:func:`to_public_summary`, :func:`to_public_detail`)
apply the address privacy policy and never expose lister, org or internal
fields.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from proplist.application.dto import (
    DocumentDTO,
    LocationDTO,
    MediaDTO,
    PropertyDTO,
    PublicPropertyDetail,
    PublicPropertySummary,
)
from proplist.core.clock import Clock
from proplist.domain.document import Document
from proplist.domain.enums import MediaType
from proplist.domain.media import MediaAsset
from proplist.domain.policies.address_privacy import to_public_address
from proplist.domain.policies.media_ordering import select_cover
from proplist.domain.property import Property
from proplist.domain.value_objects import Address, GeoPoint, Money

__all__ = [
    "property_to_domain",
    "property_from_domain",
    "document_to_domain",
    "document_from_domain",
    "media_to_domain",
    "media_from_domain",
    "cover_url",
    "to_public_summary",
    "to_public_detail",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Property
# ---------------------------------------------------------------------------


def property_to_domain(dto: PropertyDTO, clock: Clock) -> Property:
    """Rebuild a :class:`Property` from its flattened snapshot.

    Raises:
        DomainError: The snapshot violates an entity invariant.
    """
    hoa_fee = (
        Money(dto.hoa_fee_amount, dto.hoa_fee_currency or dto.price_currency)
        if dto.hoa_fee_amount is not None
        else None
    )
    return Property(
        id=dto.id,
        org_id=dto.org_id,
        lister_user_id=dto.lister_user_id,
        status=dto.status,
        operation_type=dto.operation_type,
        property_type=dto.property_type,
        title=dto.title,
        description=dto.description,
        price=Money(dto.price_amount, dto.price_currency),
        address=Address(
            city=dto.city,
            state=dto.state,
            country=dto.country,
            address_line=dto.address_line,
            neighborhood=dto.neighborhood,
            postal_code=dto.postal_code,
            display_address=dto.display_address,
        ),
        clock=clock,
        bedrooms=dto.bedrooms,
        bathrooms=dto.bathrooms,
        parking_spots=dto.parking_spots,
        construction_m2=dto.construction_m2,
        land_m2=dto.land_m2,
        levels=dto.levels,
        year_built=dto.year_built,
        floor=dto.floor,
        location=GeoPoint(dto.location.lat, dto.location.lng) if dto.location else None,
        amenities=dto.amenities,
        amenities_extra=dto.amenities_extra,
        tags=dto.tags,
        internal_id=dto.internal_id,
        normalized_address=dto.normalized_address,
        normalized_status=dto.normalized_status,
        hoa_fee=hoa_fee,
        condition=dto.condition,
        furnished=dto.furnished,
        pet_friendly=dto.pet_friendly,
        orientation=dto.orientation,
        rpp_verified=dto.rpp_verified,
        trust_score=dto.trust_score,
        completeness_score=dto.completeness_score,
        published_at=dto.published_at,
        sold_at=dto.sold_at,
        deleted_at=dto.deleted_at,
        created_at=dto.created_at,
        updated_at=dto.updated_at,
    )


def property_from_domain(prop: Property) -> PropertyDTO:
    address = prop.address
    return PropertyDTO(
        id=prop.id.value,
        org_id=prop.org_id.value,
        lister_user_id=prop.lister_user_id.value,
        status=prop.status,
        operation_type=prop.operation_type,
        property_type=prop.property_type,
        title=prop.title,
        description=prop.description,
        price_amount=prop.price.amount,
        price_currency=prop.price.currency,
        hoa_fee_amount=prop.hoa_fee.amount if prop.hoa_fee else None,
        hoa_fee_currency=prop.hoa_fee.currency if prop.hoa_fee else None,
        condition=prop.condition,
        furnished=prop.furnished,
        pet_friendly=prop.pet_friendly,
        orientation=prop.orientation,
        address_line=address.address_line,
        neighborhood=address.neighborhood,
        city=address.city,
        state=address.state,
        postal_code=address.postal_code,
        country=address.country,
        display_address=address.display_address,
        location=(
            LocationDTO(lat=prop.location.lat, lng=prop.location.lng) if prop.location else None
        ),
        amenities=prop.amenities,
        amenities_extra=prop.amenities_extra,
        tags=prop.tags,
        internal_id=prop.internal_id,
        rpp_verified=prop.rpp_verified,
        normalized_address=prop.normalized_address,
        normalized_status=prop.normalized_status,
        completeness_score=prop.completeness_score,
        trust_score=prop.trust_score,
        published_at=prop.published_at,
        sold_at=prop.sold_at,
        deleted_at=prop.deleted_at,
        created_at=prop.created_at,
        updated_at=prop.updated_at,
        **prop.features,
    )


# ---------------------------------------------------------------------------
# Documents and media
# ---------------------------------------------------------------------------


def document_to_domain(dto: DocumentDTO, clock: Clock) -> Document:
    return Document(
        id=dto.id,
        related_id=dto.property_id,
        org_id=dto.org_id,
        doc_type=dto.doc_type,
        verification=dto.verification,
        source=dto.source,
        storage_key=dto.storage_key,
        url=dto.url,
        hash_sha256=dto.hash_sha256,
        metadata=dto.metadata,
        created_at=dto.created_at,
        updated_at=dto.updated_at,
        clock=clock,
    )


def document_from_domain(doc: Document) -> DocumentDTO:
    return DocumentDTO(
        id=doc.id.value,
        property_id=doc.related_id.value,
        org_id=doc.org_id.value if doc.org_id else None,
        doc_type=doc.doc_type,
        verification=doc.verification,
        source=doc.source,
        storage_key=doc.storage_key,
        url=doc.url,
        hash_sha256=doc.hash_sha256,
        metadata=doc.metadata,
        created_at=doc.created_at,
        updated_at=doc.updated_at,
    )


def media_to_domain(dto: MediaDTO, clock: Clock) -> MediaAsset:
    return MediaAsset(
        id=dto.id,
        property_id=dto.property_id,
        org_id=dto.org_id,
        media_type=dto.media_type,
        position=dto.position,
        is_cover=dto.is_cover,
        storage_key=dto.storage_key,
        url=dto.url,
        metadata=dto.metadata,
        created_at=dto.created_at,
        updated_at=dto.updated_at,
        clock=clock,
    )


def media_from_domain(asset: MediaAsset) -> MediaDTO:
    return MediaDTO(
        id=asset.id.value,
        property_id=asset.property_id.value,
        org_id=asset.org_id.value if asset.org_id else None,
        media_type=asset.media_type,
        position=asset.position,
        is_cover=asset.is_cover,
        storage_key=asset.storage_key,
        url=asset.url,
        metadata=asset.metadata,
        created_at=asset.created_at,
        updated_at=asset.updated_at,
    )


# ---------------------------------------------------------------------------
# Public projections
# ---------------------------------------------------------------------------


def cover_url(media: Sequence[MediaDTO]) -> str | None:
    """URL of the cover picked by the ordering policy, if it is an image."""
    index = select_cover(media)
    if index < 0 or media[index].media_type is not MediaType.IMAGE:
        return None
    return media[index].url or media[index].storage_key


def to_public_summary(dto: PropertyDTO, media: Sequence[MediaDTO] = ()) -> PublicPropertySummary:
    public_address = to_public_address(_address_of(dto))
    return PublicPropertySummary(
        id=dto.id,
        title=dto.title,
        description=dto.description,
        price_amount=dto.price_amount,
        price_currency=dto.price_currency,
        property_type=dto.property_type,
        neighborhood=public_address.neighborhood,
        city=public_address.city,
        state=public_address.state,
        bedrooms=dto.bedrooms,
        bathrooms=dto.bathrooms,
        construction_m2=dto.construction_m2,
        land_m2=dto.land_m2,
        parking_spots=dto.parking_spots,
        levels=dto.levels,
        published_at=dto.published_at,
        cover_image_url=cover_url(media),
    )


def to_public_detail(dto: PropertyDTO, media: Sequence[MediaDTO] = ()) -> PublicPropertyDetail:
    """Full public view.

    The exact geo point is withheld unless the street address is public too.
    """
    summary = to_public_summary(dto, media)
    public_address = to_public_address(_address_of(dto))
    ordered = sorted(media, key=lambda m: m.position)
    return PublicPropertyDetail(
        **summary.model_dump(),
        country=public_address.country,
        address_line=public_address.address_line,
        postal_code=public_address.postal_code,
        location=dto.location if dto.display_address else None,
        amenities=list(dto.amenities),
        amenities_extra=dto.amenities_extra,
        year_built=dto.year_built,
        floor=dto.floor,
        condition=dto.condition,
        furnished=dto.furnished,
        pet_friendly=dto.pet_friendly,
        orientation=dto.orientation,
        media=ordered,
    )


def _address_of(dto: PropertyDTO) -> Address:
    return Address(
        city=dto.city,
        state=dto.state,
        country=dto.country,
        address_line=dto.address_line,
        neighborhood=dto.neighborhood,
        postal_code=dto.postal_code,
        display_address=dto.display_address,
    )
