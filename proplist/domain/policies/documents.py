"""Document type normalisation, locator checks and RPP summary derivation."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from proplist.domain.enums import DOCUMENT_TYPE_ALIASES, DocumentType, VerificationStatus

__all__ = [
    "ALLOWED_DOC_TYPES",
    "DocumentLike",
    "normalize_document_type",
    "is_allowed_type",
    "has_valid_locator",
    "rpp_status_from_docs",
]

logger = logging.getLogger(__name__)

ALLOWED_DOC_TYPES: frozenset[DocumentType] = frozenset(DocumentType)


class DocumentLike(Protocol):
    """Anything exposing the document fields the policy reads."""

    doc_type: DocumentType | str
    verification: VerificationStatus | str
    storage_key: str | None
    url: str | None


def normalize_document_type(value: str | None) -> DocumentType | None:
    """Resolve a free-form or legacy spelling to a canonical :class:`DocumentType`.

    Matching is case-insensitive and ignores surrounding whitespace.  Returns
    ``None`` when *value* matches neither a canonical value nor an alias.
    """
    if not value:
        return None
    key = value.strip().lower()
    if key in DOCUMENT_TYPE_ALIASES:
        return DOCUMENT_TYPE_ALIASES[key]
    try:
        return DocumentType(key)
    except ValueError:
        return None


def is_allowed_type(value: str | None) -> bool:
    return normalize_document_type(value) is not None


def has_valid_locator(doc: DocumentLike) -> bool:
    """A document is retrievable when it has a non-blank storage key or URL."""
    return bool((doc.storage_key or "").strip() or (doc.url or "").strip())


def rpp_status_from_docs(docs: Iterable[DocumentLike]) -> VerificationStatus | None:
    """Derive the property-level RPP status from its RPP documents.

    Precedence is rejected > pending > verified.  Returns ``None`` when no
    RPP document exists, which is distinct from ``pending``.
    """
    statuses = {
        VerificationStatus(doc.verification)
        for doc in docs
        if normalize_document_type(str(doc.doc_type)) is DocumentType.RPP_CERTIFICATE
    }
    for status in (
        VerificationStatus.REJECTED,
        VerificationStatus.PENDING,
        VerificationStatus.VERIFIED,
    ):
        if status in statuses:
            return status
    return None
