"""Document entity: a file reference attached to one property.

A document's verification status is independent of the property's RPP
summary; the summary is derived from all RPP documents by
:func:`~proplist.domain.policies.documents.rpp_status_from_docs`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from proplist.core.clock import Clock
from proplist.core.exceptions import InvalidValueError, InvariantViolationError
from proplist.domain.enums import DocumentType, VerificationStatus
from proplist.domain.policies.documents import has_valid_locator, normalize_document_type
from proplist.domain.value_objects import UniqueEntityID, coerce_enum, optional_text

__all__ = ["Document"]

logger = logging.getLogger(__name__)


def _resolve_type(value: DocumentType | str) -> DocumentType:
    doc_type = normalize_document_type(str(value) if value is not None else None)
    if doc_type is None:
        raise InvalidValueError(
            f"Unsupported document type {value!r}", details={"field": "doc_type", "value": value}
        )
    return doc_type


class Document:
    """A verifiable document (RPP certificate, deed, ...) of a property.

    ``doc_type`` accepts legacy spellings (``"predial"``, ``"id_doc"``) and
    stores the canonical type.
    """

    related_type = "property"

    def __init__(
        self,
        *,
        id: UniqueEntityID | str,  # noqa: A002
        related_id: UniqueEntityID | str,
        doc_type: DocumentType | str,
        verification: VerificationStatus | str = VerificationStatus.PENDING,
        org_id: UniqueEntityID | str | None = None,
        source: str | None = None,
        storage_key: str | None = None,
        url: str | None = None,
        hash_sha256: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        clock: Clock,
    ) -> None:
        self._clock = clock
        self._id = id if isinstance(id, UniqueEntityID) else UniqueEntityID(id)
        self._related_id = (
            related_id if isinstance(related_id, UniqueEntityID) else UniqueEntityID(related_id)
        )
        self._org_id = (
            None
            if org_id is None
            else org_id if isinstance(org_id, UniqueEntityID) else UniqueEntityID(org_id)
        )
        self._doc_type = _resolve_type(doc_type)
        self._verification = coerce_enum(VerificationStatus, verification, "verification")
        self.source = optional_text(source)
        self.storage_key = optional_text(storage_key)
        self.url = optional_text(url)
        self.hash_sha256 = optional_text(hash_sha256)
        self.metadata: dict[str, Any] | None = dict(metadata) if metadata is not None else None
        self._created_at = created_at or self._clock.now()
        self._updated_at = updated_at or self._created_at

    @property
    def id(self) -> UniqueEntityID:
        return self._id

    @property
    def related_id(self) -> UniqueEntityID:
        """Back-reference to the owning property."""
        return self._related_id

    @property
    def org_id(self) -> UniqueEntityID | None:
        return self._org_id

    @property
    def doc_type(self) -> DocumentType:
        return self._doc_type

    @property
    def verification(self) -> VerificationStatus:
        return self._verification

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def is_rpp(self) -> bool:
        return self._doc_type is DocumentType.RPP_CERTIFICATE

    @property
    def is_retrievable(self) -> bool:
        return has_valid_locator(self)

    @property
    def is_deletable(self) -> bool:
        """Verified documents are never removed by this core."""
        return self._verification is not VerificationStatus.VERIFIED

    def retype(self, doc_type: DocumentType | str) -> None:
        self._doc_type = _resolve_type(doc_type)
        self._touch()

    def verify(self) -> None:
        self._verification = VerificationStatus.VERIFIED
        self._touch()

    def reject(self) -> None:
        self._verification = VerificationStatus.REJECTED
        self._touch()

    def mark_pending(self) -> None:
        self._verification = VerificationStatus.PENDING
        self._touch()

    def set_verification(self, status: VerificationStatus | str) -> None:
        target = coerce_enum(VerificationStatus, status, "verification")
        if target is VerificationStatus.VERIFIED:
            self.verify()
        elif target is VerificationStatus.REJECTED:
            self.reject()
        else:
            self.mark_pending()

    def record_rpp_verdict(self, status: VerificationStatus | str) -> None:
        """Apply the public registry's verdict to this certificate.

        Raises:
            InvariantViolationError: The document is not an RPP certificate.
            InvalidValueError: *status* is not a verification status.
        """
        if not self.is_rpp:
            raise InvariantViolationError(
                "Only RPP certificates carry a registry verdict",
                details={"document_id": self._id.value, "doc_type": self._doc_type.value},
            )
        self.set_verification(status)

    def __repr__(self) -> str:
        return (
            f"Document(id={self._id.value!r}, type={self._doc_type.value!r}, "
            f"verification={self._verification.value!r})"
        )

    def _touch(self) -> None:
        self._updated_at = self._clock.now()
