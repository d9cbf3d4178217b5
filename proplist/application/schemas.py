"""Input schemas for every use case.

Use cases accept raw mappings (decoded JSON, CLI arguments, test dicts) and
parse them here before touching any port.  Shape problems are returned as an
``Err(InputValidationError)`` carrying one human-readable issue per field;
business rules are left to the domain.

Typical usage::

    from proplist.application.schemas import CreatePropertyInput, parse_input

    parsed = parse_input(CreatePropertyInput, raw)
    if isinstance(parsed, Err):
        return parsed
    cmd = parsed.value
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from proplist.application.dto import ListFilters
from proplist.core.exceptions import InputValidationError
from proplist.core.ids import is_uuid
from proplist.core.result import Err, Ok, Result
from proplist.domain.enums import (
    Condition,
    Currency,
    DocumentType,
    MediaType,
    OperationType,
    Orientation,
    PropertyType,
    SortKey,
    VerificationStatus,
)
from proplist.domain.media import resolve_media_type
from proplist.domain.policies.documents import normalize_document_type

__all__ = [
    "parse_input",
    "PriceInput",
    "AddressInput",
    "LocationInput",
    "CreatePropertyInput",
    "UpdatePropertyInput",
    "PropertyIdInput",
    "SchedulePublishInput",
    "MarkSoldInput",
    "DuplicatePropertyInput",
    "UploadMediaInput",
    "MediaRefInput",
    "ReorderMediaInput",
    "AttachDocumentInput",
    "DocumentRefInput",
    "VerifyRppInput",
    "ListPropertiesInput",
    "PublicListInput",
]

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

#: Oldest construction year accepted for ``year_built``.
MIN_YEAR_BUILT = 1800

#: Public search caps its page size lower than the back-office list.
PUBLIC_MAX_PAGE_SIZE = 60
PUBLIC_DEFAULT_PAGE_SIZE = 12


def parse_input(model: type[M], raw: Mapping[str, Any] | BaseModel | None) -> Result[M]:
    """Validate *raw* against *model*.

    Returns:
        ``Ok(instance)`` or ``Err(InputValidationError)`` whose ``issues``
        list holds one ``"<field path>: <message>"`` string per problem.
    """
    if isinstance(raw, model):
        return Ok(raw)
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    try:
        return Ok(model.model_validate(raw or {}))
    except ValidationError as exc:
        issues = [_format_issue(err) for err in exc.errors()]
        logger.debug("Rejected %s input: %s", model.__name__, issues)
        return Err(InputValidationError(f"Invalid {model.__name__}", issues=issues))


def _format_issue(err: Mapping[str, Any]) -> str:
    path = ".".join(str(part) for part in err.get("loc", ())) or "input"
    return f"{path}: {err.get('msg', 'invalid value')}"


def _check_uuid(value: str, field_name: str = "id") -> str:
    if not is_uuid(value):
        raise ValueError(f"{field_name} must be a UUID")
    return value


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


class _Input(BaseModel):
    model_config = {"frozen": True, "extra": "forbid", "str_strip_whitespace": True}


class PriceInput(_Input):
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    currency: Currency | None = None

    @field_validator("currency", mode="before")
    @classmethod
    def _upper_currency(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v


class AddressInput(_Input):
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    country: str = Field(default="MX", min_length=1)
    address_line: str | None = None
    neighborhood: str | None = None
    postal_code: str | None = None
    display_address: bool = False


class LocationInput(_Input):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class _FeatureFields(_Input):
    """Physical features shared by create and update."""

    bedrooms: int | None = Field(default=None, ge=0)
    bathrooms: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    parking_spots: int | None = Field(default=None, ge=0)
    construction_m2: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    land_m2: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    levels: int | None = Field(default=None, ge=0)
    year_built: int | None = None
    floor: int | None = Field(default=None, ge=0)

    @field_validator("year_built")
    @classmethod
    def _validate_year_built(cls, v: int | None) -> int | None:
        if v is None:
            return v
        current = datetime.now(UTC).year
        if not MIN_YEAR_BUILT <= v <= current:
            raise ValueError(f"year_built must be between {MIN_YEAR_BUILT} and {current}")
        return v


# ---------------------------------------------------------------------------
# Property commands
# ---------------------------------------------------------------------------


class CreatePropertyInput(_FeatureFields):
    title: str = Field(..., min_length=1)
    property_type: PropertyType
    price: PriceInput
    address: AddressInput
    operation_type: OperationType = OperationType.SALE
    description: str | None = None
    location: LocationInput | None = None
    amenities: list[str] = Field(default_factory=list)
    amenities_extra: str | None = None
    tags: list[str] = Field(default_factory=list)
    internal_id: str | None = None


class UpdatePropertyInput(_FeatureFields):
    """Partial update; only the keys present in the raw input are applied.

    An explicit ``None`` clears an optional field.  ``title``, ``price``,
    ``property_type`` and ``address`` cannot be cleared.
    """

    id: str
    title: str | None = Field(default=None, min_length=1)
    property_type: PropertyType | None = None
    price: PriceInput | None = None
    address: AddressInput | None = None
    description: str | None = None
    location: LocationInput | None = None
    amenities: list[str] | None = None
    amenities_extra: str | None = None
    tags: list[str] | None = None
    internal_id: str | None = None
    hoa_fee: PriceInput | None = None
    condition: Condition | None = None
    furnished: bool | None = None
    pet_friendly: bool | None = None
    orientation: Orientation | None = None

    @field_validator("id")
    @classmethod
    def _validate_id(cls, v: str) -> str:
        return _check_uuid(v)

    @model_validator(mode="after")
    def _required_not_cleared(self) -> UpdatePropertyInput:
        for name in ("title", "property_type", "price", "address"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self

    @property
    def touched(self) -> frozenset[str]:
        """Patch keys present in the raw input (``id`` excluded)."""
        return frozenset(self.model_fields_set - {"id"})


class PropertyIdInput(_Input):
    id: str

    @field_validator("id")
    @classmethod
    def _validate_id(cls, v: str) -> str:
        return _check_uuid(v)


class SchedulePublishInput(PropertyIdInput):
    at: datetime


class MarkSoldInput(PropertyIdInput):
    at: datetime | None = None


class DuplicatePropertyInput(PropertyIdInput):
    copy_media: bool = False
    copy_docs: bool = False


# ---------------------------------------------------------------------------
# Media commands
# ---------------------------------------------------------------------------


class UploadMediaInput(_Input):
    property_id: str
    file_name: str = Field(..., min_length=1)
    content_type: str = Field(..., min_length=1)
    data: bytes
    media_type: MediaType

    @field_validator("property_id")
    @classmethod
    def _validate_property_id(cls, v: str) -> str:
        return _check_uuid(v, "property_id")

    @field_validator("media_type", mode="before")
    @classmethod
    def _resolve_media_type(cls, v: Any) -> Any:
        # "floorplan" is accepted and stored as a document-like asset
        if isinstance(v, str) and v.strip().lower() in {"image", "video", "floorplan"}:
            return resolve_media_type(v)
        raise ValueError("media_type must be one of: image, video, floorplan")


class MediaRefInput(_Input):
    property_id: str
    media_id: str

    @field_validator("property_id", "media_id")
    @classmethod
    def _validate_ids(cls, v: str) -> str:
        return _check_uuid(v)


class ReorderMediaInput(_Input):
    property_id: str
    ordered_ids: list[str] = Field(..., min_length=1)

    @field_validator("property_id")
    @classmethod
    def _validate_property_id(cls, v: str) -> str:
        return _check_uuid(v, "property_id")

    @field_validator("ordered_ids")
    @classmethod
    def _validate_ordered_ids(cls, v: list[str]) -> list[str]:
        for item in v:
            _check_uuid(item, "ordered_ids item")
        if len(set(v)) != len(v):
            raise ValueError("ordered_ids must not contain duplicates")
        return v


# ---------------------------------------------------------------------------
# Document commands
# ---------------------------------------------------------------------------


class AttachDocumentInput(_Input):
    property_id: str
    doc_type: DocumentType
    url: str | None = None
    storage_key: str | None = None
    source: str | None = None
    hash_sha256: str | None = Field(default=None, pattern=r"^[0-9a-fA-F]{64}$")
    metadata: dict[str, Any] | None = None

    @field_validator("property_id")
    @classmethod
    def _validate_property_id(cls, v: str) -> str:
        return _check_uuid(v, "property_id")

    @field_validator("doc_type", mode="before")
    @classmethod
    def _normalize_doc_type(cls, v: Any) -> Any:
        doc_type = normalize_document_type(v) if isinstance(v, str) else None
        if doc_type is None:
            raise ValueError(f"unsupported document type {v!r}")
        return doc_type

    @model_validator(mode="after")
    def _require_locator(self) -> AttachDocumentInput:
        if not (self.url or self.storage_key):
            raise ValueError("either url or storage_key is required")
        return self


class DocumentRefInput(_Input):
    property_id: str
    document_id: str

    @field_validator("property_id", "document_id")
    @classmethod
    def _validate_ids(cls, v: str) -> str:
        return _check_uuid(v)


class VerifyRppInput(DocumentRefInput):
    status: VerificationStatus


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class ListPropertiesInput(ListFilters):
    """Back-office list query; identical to :class:`ListFilters`."""

    model_config = {"frozen": True, "extra": "forbid", "str_strip_whitespace": True}

    def to_filters(self) -> ListFilters:
        return ListFilters.model_validate(self.model_dump())


class PublicListInput(_Input):
    """Public search over published listings."""

    q: str | None = None
    city: str | None = None
    state: str | None = None
    property_type: PropertyType | None = None
    price_min: float | None = Field(default=None, ge=0)
    price_max: float | None = Field(default=None, ge=0)
    bedrooms_min: int | None = Field(default=None, ge=0)
    bathrooms_min: float | None = Field(default=None, ge=0)
    parking_spots_min: int | None = Field(default=None, ge=0)
    levels_min: int | None = Field(default=None, ge=0)
    area_min: float | None = Field(default=None, ge=0)
    area_max: float | None = Field(default=None, ge=0)
    sort: SortKey = SortKey.RECENT
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=PUBLIC_DEFAULT_PAGE_SIZE, ge=1, le=PUBLIC_MAX_PAGE_SIZE)

    @field_validator("sort")
    @classmethod
    def _public_sorts_only(cls, v: SortKey) -> SortKey:
        if v is SortKey.COMPLETENESS_DESC:
            raise ValueError("sort must be one of: recent, price_asc, price_desc")
        return v

    @model_validator(mode="after")
    def _check_ranges(self) -> PublicListInput:
        if (
            self.price_min is not None
            and self.price_max is not None
            and self.price_min > self.price_max
        ):
            raise ValueError("price_min must be <= price_max")
        if self.area_min is not None and self.area_max is not None and self.area_min > self.area_max:
            raise ValueError("area_min must be <= area_max")
        return self

    def to_filters(self) -> ListFilters:
        """Translate to repository filters restricted to published listings."""
        data = self.model_dump(exclude={"sort"})
        return ListFilters(status="published", sort_by=self.sort, **data)
