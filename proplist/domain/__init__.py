"""Property domain: value objects, policies, entities and domain services."""

from proplist.domain.document import Document
from proplist.domain.enums import (
    Condition,
    Currency,
    DocumentType,
    MediaType,
    NormalizedStatus,
    OperationType,
    Orientation,
    ProgressBucket,
    PropertyStatus,
    PropertyType,
    ReadinessIssue,
    VerificationStatus,
)
from proplist.domain.factory import PropertyFactory
from proplist.domain.media import MediaAsset
from proplist.domain.property import Property
from proplist.domain.readiness import Readiness, ReadinessInputs, ReadinessService
from proplist.domain.value_objects import Address, GeoPoint, Money, UniqueEntityID

__all__ = [
    # Enums
    "PropertyStatus",
    "OperationType",
    "PropertyType",
    "Currency",
    "VerificationStatus",
    "NormalizedStatus",
    "DocumentType",
    "MediaType",
    "Condition",
    "Orientation",
    "ProgressBucket",
    "ReadinessIssue",
    # Value objects
    "Money",
    "Address",
    "GeoPoint",
    "UniqueEntityID",
    # Entities
    "Property",
    "Document",
    "MediaAsset",
    # Services
    "PropertyFactory",
    "ReadinessService",
    "ReadinessInputs",
    "Readiness",
]
