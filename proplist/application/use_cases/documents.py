"""Document use cases: attach, list, delete, verify RPP.

The property's ``rpp_verified`` column is a summary of all its RPP
certificates (see
:func:`~proplist.domain.policies.documents.rpp_status_from_docs`), so it is
re-derived together with the completeness score whenever the document set or
a verification status changes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from proplist.application.dto import DocumentAttachment, DocumentDTO
from proplist.application.mappers import document_to_domain
from proplist.application.schemas import (
    AttachDocumentInput,
    DocumentRefInput,
    PropertyIdInput,
    VerifyRppInput,
    parse_input,
)
from proplist.application.use_cases.base import (
    UseCase,
    load_caller_and_property,
    refresh_derived_state,
    use_case_boundary,
)
from proplist.core import events
from proplist.core.exceptions import ConflictError, NotFoundError
from proplist.core.result import Err, Ok, Result

__all__ = ["AttachDocument", "ListPropertyDocuments", "DeleteDocument", "VerifyRpp"]

logger = logging.getLogger(__name__)


def _find(docs: Sequence[DocumentDTO], document_id: str) -> DocumentDTO | None:
    return next((d for d in docs if d.id == document_id), None)


class AttachDocument(UseCase):
    """Attach a file reference; legacy type spellings are normalised."""

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[DocumentDTO]:
        parsed = parse_input(AttachDocumentInput, raw)
        if isinstance(parsed, Err):
            return parsed
        cmd = parsed.value
        loaded = await load_caller_and_property(self._deps, cmd.property_id)
        if isinstance(loaded, Err):
            return loaded
        _, prop = loaded.value

        attached = await self._deps.documents.attach(
            cmd.property_id,
            DocumentAttachment(
                doc_type=cmd.doc_type,
                url=cmd.url,
                storage_key=cmd.storage_key,
                source=cmd.source,
                hash_sha256=cmd.hash_sha256,
                metadata=cmd.metadata,
            ),
            org_id=prop.org_id,
        )
        if isinstance(attached, Err):
            return attached
        refreshed = await refresh_derived_state(self._deps, cmd.property_id, sync_rpp=True)
        if isinstance(refreshed, Err):
            return refreshed
        logger.info(
            "Document %s (%s) attached to %s",
            attached.value.id,
            attached.value.doc_type,
            cmd.property_id,
            extra={"event": events.DOCUMENT_ATTACHED, "property_id": cmd.property_id},
        )
        return attached


class ListPropertyDocuments(UseCase):
    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[list[DocumentDTO]]:
        parsed = parse_input(PropertyIdInput, raw)
        if isinstance(parsed, Err):
            return parsed
        loaded = await load_caller_and_property(self._deps, parsed.value.id)
        if isinstance(loaded, Err):
            return loaded
        return await self._deps.documents.list_by_property(parsed.value.id)


class DeleteDocument(UseCase):
    """Remove a document that is not verified.

    Verified documents are evidence and are refused with ``ConflictError``.
    """

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[None]:
        parsed = parse_input(DocumentRefInput, raw)
        if isinstance(parsed, Err):
            return parsed
        cmd = parsed.value
        loaded = await load_caller_and_property(self._deps, cmd.property_id)
        if isinstance(loaded, Err):
            return loaded
        listed = await self._deps.documents.list_by_property(cmd.property_id)
        if isinstance(listed, Err):
            return listed
        found = _find(listed.value, cmd.document_id)
        if found is None:
            return Err(NotFoundError("document", cmd.document_id))
        if not document_to_domain(found, self._deps.clock).is_deletable:
            return Err(
                ConflictError(
                    "Verified documents cannot be deleted",
                    details={"document_id": cmd.document_id},
                )
            )

        deleted = await self._deps.documents.delete(cmd.document_id)
        if isinstance(deleted, Err):
            return deleted
        refreshed = await refresh_derived_state(self._deps, cmd.property_id, sync_rpp=True)
        if isinstance(refreshed, Err):
            return refreshed
        logger.info(
            "Document %s deleted from %s",
            cmd.document_id,
            cmd.property_id,
            extra={"event": events.DOCUMENT_DELETED, "property_id": cmd.property_id},
        )
        return Ok(None)


class VerifyRpp(UseCase):
    """Record the registry's verdict on an RPP certificate.

    The property summary follows the precedence rejected > pending >
    verified over all of its RPP certificates.  Any other document type is
    ``Err(InvariantViolationError)``.
    """

    @use_case_boundary
    async def execute(self, raw: Mapping[str, Any]) -> Result[DocumentDTO]:
        parsed = parse_input(VerifyRppInput, raw)
        if isinstance(parsed, Err):
            return parsed
        cmd = parsed.value
        loaded = await load_caller_and_property(self._deps, cmd.property_id)
        if isinstance(loaded, Err):
            return loaded
        listed = await self._deps.documents.list_by_property(cmd.property_id)
        if isinstance(listed, Err):
            return listed
        found = _find(listed.value, cmd.document_id)
        if found is None:
            return Err(NotFoundError("document", cmd.document_id))

        doc = document_to_domain(found, self._deps.clock)
        doc.record_rpp_verdict(cmd.status)
        verified = await self._deps.documents.verify_rpp(cmd.document_id, doc.verification)
        if isinstance(verified, Err):
            return verified
        refreshed = await refresh_derived_state(self._deps, cmd.property_id, sync_rpp=True)
        if isinstance(refreshed, Err):
            return refreshed
        logger.info(
            "RPP document %s marked %s; property %s summary is %s",
            cmd.document_id,
            cmd.status,
            cmd.property_id,
            refreshed.value.rpp_verified,
            extra={"event": events.RPP_VERIFIED, "property_id": cmd.property_id},
        )
        return verified
