"""Flattened persistence DTOs exchanged across the ports.

DTOs are plain pydantic models with no behaviour.  They are the snapshot
format repositories read and write; entities are rebuilt from them by
:mod:`proplist.application.mappers` for every operation.

Flattening rules for :class:`PropertyDTO`:

* ``price`` → ``price_amount`` + ``price_currency`` (same for ``hoa_fee``).
* ``address`` → ``address_line``, ``neighborhood``, ``city``, ``state``,
  ``postal_code``, ``country``, ``display_address``.
* ``location`` → ``{"lat": ..., "lng": ...}`` or ``None``.

The models are **frozen**; derive changed copies with ``model_copy(update=...)``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, model_validator

from proplist.domain.enums import (
    Condition,
    Currency,
    DocumentType,
    ListStatusFilter,
    MediaType,
    NormalizedStatus,
    OperationType,
    Orientation,
    PropertyStatus,
    PropertyType,
    SortKey,
    VerificationStatus,
)

__all__ = [
    "LocationDTO",
    "PropertyDTO",
    "PROPERTY_PATCH_FIELDS",
    "DocumentDTO",
    "MediaDTO",
    "MediaUpload",
    "DocumentAttachment",
    "ListFilters",
    "Page",
    "AuthProfile",
    "PublicPropertySummary",
    "PublicPropertyDetail",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LocationDTO(BaseModel):
    model_config = {"frozen": True}

    lat: float
    lng: float


class PropertyDTO(BaseModel):
    """Persisted snapshot of a :class:`~proplist.domain.property.Property`."""

    model_config = {"frozen": True}

    # Identity
    id: str
    org_id: str
    lister_user_id: str

    # Status and kind
    status: PropertyStatus = PropertyStatus.DRAFT
    operation_type: OperationType = OperationType.SALE
    property_type: PropertyType

    # Main data
    title: str
    description: str | None = None
    price_amount: float
    price_currency: Currency = Currency.MXN

    # Features
    bedrooms: int | None = None
    bathrooms: float | None = None
    parking_spots: int | None = None
    construction_m2: float | None = None
    land_m2: float | None = None
    levels: int | None = None
    year_built: int | None = None
    floor: int | None = None

    # Extras
    hoa_fee_amount: float | None = None
    hoa_fee_currency: Currency | None = None
    condition: Condition | None = None
    furnished: bool | None = None
    pet_friendly: bool | None = None
    orientation: Orientation | None = None

    # Address
    address_line: str | None = None
    neighborhood: str | None = None
    city: str
    state: str
    postal_code: str | None = None
    country: str
    display_address: bool = False
    location: LocationDTO | None = None

    # Labels
    amenities: list[str] = Field(default_factory=list)
    amenities_extra: str | None = None
    tags: list[str] = Field(default_factory=list)
    internal_id: str | None = None

    # Derived state
    rpp_verified: VerificationStatus = VerificationStatus.PENDING
    normalized_address: dict[str, Any] | None = None
    normalized_status: NormalizedStatus | None = None
    completeness_score: int = Field(default=0, ge=0, le=100)
    trust_score: int = 0

    # Timestamps
    published_at: datetime | None = None
    sold_at: datetime | None = None
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


#: Columns a repository ``update`` patch may touch.
PROPERTY_PATCH_FIELDS: frozenset[str] = frozenset(PropertyDTO.model_fields) - {
    "id",
    "org_id",
    "lister_user_id",
    "created_at",
}


class DocumentDTO(BaseModel):
    model_config = {"frozen": True}

    id: str
    property_id: str
    org_id: str | None = None
    doc_type: DocumentType
    verification: VerificationStatus = VerificationStatus.PENDING
    source: str | None = None
    storage_key: str | None = None
    url: str | None = None
    hash_sha256: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime


class MediaDTO(BaseModel):
    model_config = {"frozen": True}

    id: str
    property_id: str
    org_id: str | None = None
    media_type: MediaType
    position: int = Field(ge=0)
    is_cover: bool = False
    storage_key: str | None = None
    url: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime


class MediaUpload(BaseModel):
    """A file handed to :meth:`MediaStorage.upload`."""

    model_config = {"frozen": True}

    file_name: str = Field(..., min_length=1)
    content_type: str = Field(..., min_length=1)
    data: bytes
    media_type: MediaType


class DocumentAttachment(BaseModel):
    """A file reference handed to :meth:`DocumentRepo.attach`."""

    model_config = {"frozen": True}

    doc_type: DocumentType
    url: str | None = None
    storage_key: str | None = None
    source: str | None = None
    hash_sha256: str | None = None
    metadata: dict[str, Any] | None = None


class ListFilters(BaseModel):
    """Validated list query understood by :meth:`PropertyRepo.list`.

    ``status=None`` and ``status=all`` mean "no status filter";
    ``archived`` selects soft-deleted rows and every other value excludes
    them.  The ``*_min`` feature bounds and the area range (on
    ``construction_m2``) are used by the public search.
    """

    model_config = {"frozen": True, "str_strip_whitespace": True}

    q: str | None = None
    status: ListStatusFilter | None = None
    property_type: PropertyType | None = None
    city: str | None = None
    state: str | None = None
    price_min: float | None = Field(default=None, ge=0)
    price_max: float | None = Field(default=None, ge=0)
    bedrooms_min: int | None = Field(default=None, ge=0)
    bathrooms_min: float | None = Field(default=None, ge=0)
    parking_spots_min: int | None = Field(default=None, ge=0)
    levels_min: int | None = Field(default=None, ge=0)
    area_min: float | None = Field(default=None, ge=0)
    area_max: float | None = Field(default=None, ge=0)
    sort_by: SortKey = SortKey.RECENT
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)

    @model_validator(mode="after")
    def _check_ranges(self) -> ListFilters:
        if (
            self.price_min is not None
            and self.price_max is not None
            and self.price_min > self.price_max
        ):
            raise ValueError("price_min must be <= price_max")
        if self.area_min is not None and self.area_max is not None and self.area_min > self.area_max:
            raise ValueError("area_min must be <= area_max")
        return self


class Page(BaseModel, Generic[T]):
    model_config = {"frozen": True}

    items: list[T]
    total: int
    page: int
    page_size: int


class AuthProfile(BaseModel):
    """What the domain needs from the authenticated caller."""

    model_config = {"frozen": True}

    user_id: str
    org_id: str | None = None
    kyc_status: VerificationStatus = VerificationStatus.PENDING
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    role_hint: str | None = None

    @property
    def kyc_verified(self) -> bool:
        return self.kyc_status == VerificationStatus.VERIFIED

    @property
    def scoped_org_id(self) -> str:
        """Owning org for new records; users without an org own their own."""
        return self.org_id or self.user_id


class PublicPropertySummary(BaseModel):
    """Card-sized public view of a published listing."""

    model_config = {"frozen": True}

    id: str
    title: str
    description: str | None = None
    price_amount: float
    price_currency: Currency
    property_type: PropertyType
    neighborhood: str | None = None
    city: str
    state: str
    bedrooms: int | None = None
    bathrooms: float | None = None
    construction_m2: float | None = None
    land_m2: float | None = None
    parking_spots: int | None = None
    levels: int | None = None
    published_at: datetime | None = None
    cover_image_url: str | None = None


class PublicPropertyDetail(PublicPropertySummary):
    """Full public view; the street address only appears when the lister opted in."""

    country: str
    address_line: str | None = None
    postal_code: str | None = None
    location: LocationDTO | None = None
    amenities: list[str] = Field(default_factory=list)
    amenities_extra: str | None = None
    year_built: int | None = None
    floor: int | None = None
    condition: Condition | None = None
    furnished: bool | None = None
    pet_friendly: bool | None = None
    orientation: Orientation | None = None
    media: list[MediaDTO] = Field(default_factory=list)
