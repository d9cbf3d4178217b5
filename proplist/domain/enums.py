"""Enumerations shared by the property domain.

Every enum is a :class:`enum.StrEnum` so values serialise as plain strings
(e.g. ``"published"``) in SQLite rows and JSON output without extra plumbing.

Legacy or free-form spellings for document and media types are resolved
through alias tables; see :mod:`proplist.domain.policies.documents`.
"""

from __future__ import annotations

import logging
from enum import StrEnum

__all__ = [
    "PropertyStatus",
    "OperationType",
    "PropertyType",
    "Currency",
    "VerificationStatus",
    "NormalizedStatus",
    "DocumentType",
    "DOCUMENT_TYPE_ALIASES",
    "MediaType",
    "MEDIA_TYPE_ALIASES",
    "Condition",
    "Orientation",
    "ProgressBucket",
    "ReadinessIssue",
    "ListStatusFilter",
    "SortKey",
]

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Property
# ---------------------------------------------------------------------------


class PropertyStatus(StrEnum):
    """Lifecycle states of a listing; ``sold`` is terminal."""

    DRAFT = "draft"
    PUBLISHED = "published"
    SOLD = "sold"


class OperationType(StrEnum):
    """Declared operation types.  Only sales are listed."""

    SALE = "sale"


class PropertyType(StrEnum):
    HOUSE = "house"
    APARTMENT = "apartment"
    LAND = "land"
    OFFICE = "office"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
    OTHER = "other"


class Currency(StrEnum):
    MXN = "MXN"
    USD = "USD"


class VerificationStatus(StrEnum):
    """Status of an RPP document, and of the property-level RPP summary."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class NormalizedStatus(StrEnum):
    """Status of the derived normalized-address sub-object."""

    PENDING = "pending"
    OK = "ok"
    ERROR = "error"

    @classmethod
    def resolve(cls, value: object) -> NormalizedStatus:
        """Return the member for *value*, or ``PENDING`` for anything unknown."""
        try:
            return cls(str(value))
        except ValueError:
            return cls.PENDING


class Condition(StrEnum):
    NEW = "new"
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_RENOVATION = "needs_renovation"
    UNKNOWN = "unknown"


class Orientation(StrEnum):
    NORTH = "north"
    NORTHEAST = "northeast"
    EAST = "east"
    SOUTHEAST = "southeast"
    SOUTH = "south"
    SOUTHWEST = "southwest"
    WEST = "west"
    NORTHWEST = "northwest"


# ---------------------------------------------------------------------------
# Documents and media
# ---------------------------------------------------------------------------


class DocumentType(StrEnum):
    RPP_CERTIFICATE = "rpp_certificate"
    DEED = "deed"
    PROOF_OF_ADDRESS = "proof_of_address"
    TAX_RECEIPT = "tax_receipt"
    INE = "ine"
    PLAN = "plan"
    OTHER = "other"


#: Legacy / localised spellings accepted for :class:`DocumentType` (lower-case keys).
DOCUMENT_TYPE_ALIASES: dict[str, DocumentType] = {
    "id_doc": DocumentType.INE,
    "floorplan": DocumentType.PLAN,
    "no_predial_debt": DocumentType.TAX_RECEIPT,
    "predial": DocumentType.TAX_RECEIPT,
    "rpp": DocumentType.RPP_CERTIFICATE,
    "comprobante_domicilio": DocumentType.PROOF_OF_ADDRESS,
}


class MediaType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    DOCUMENT = "document"


#: Alternate spellings accepted for :class:`MediaType`.
MEDIA_TYPE_ALIASES: dict[str, MediaType] = {
    "floorplan": MediaType.DOCUMENT,
}


# ---------------------------------------------------------------------------
# Readiness
# ---------------------------------------------------------------------------


class ProgressBucket(StrEnum):
    RED = "red"
    AMBER = "amber"
    GREEN = "green"


class ReadinessIssue(StrEnum):
    """Stable issue codes; consumers branch on these, never on reason text."""

    KYC_MISSING = "kyc_missing"
    SCORE_BELOW_MIN = "score_below_min"
    RPP_REJECTED = "rpp_rejected"
    MEDIA_MIN_MISSING = "media_min_missing"
    ADDRESS_INCOMPLETE = "address_incomplete"
    REQUIRED_FIELDS_MISSING = "required_fields_missing"


# ---------------------------------------------------------------------------
# Listing queries
# ---------------------------------------------------------------------------


class ListStatusFilter(StrEnum):
    """Status filter for list queries; ``archived`` selects soft-deleted rows."""

    DRAFT = "draft"
    PUBLISHED = "published"
    SOLD = "sold"
    ARCHIVED = "archived"
    ALL = "all"


class SortKey(StrEnum):
    RECENT = "recent"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    COMPLETENESS_DESC = "completeness_desc"
