"""Unit tests for the Document and MediaAsset entities.

Covers:
- :class:`~proplist.domain.document.Document` type normalisation,
  verification transitions and deletability.
- :class:`~proplist.domain.media.MediaAsset` type aliases and positions.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import pytest

from proplist.core.clock import FixedClock
from proplist.core.exceptions import InvalidValueError, InvariantViolationError
from proplist.core.ids import new_id
from proplist.domain.document import Document
from proplist.domain.enums import DocumentType, MediaType, VerificationStatus
from proplist.domain.media import MediaAsset, resolve_media_type

logger = logging.getLogger(__name__)

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Factories / helpers
# ---------------------------------------------------------------------------


def _make_document(clock: FixedClock, **overrides: object) -> Document:
    fields: dict[str, object] = {
        "id": new_id(),
        "related_id": new_id(),
        "doc_type": DocumentType.RPP_CERTIFICATE,
        "storage_key": "p/docs/d.pdf",
        "clock": clock,
    }
    fields.update(overrides)
    return Document(**fields)  # type: ignore[arg-type]


def _make_asset(clock: FixedClock, **overrides: object) -> MediaAsset:
    fields: dict[str, object] = {
        "id": new_id(),
        "property_id": new_id(),
        "media_type": MediaType.IMAGE,
        "position": 0,
        "clock": clock,
    }
    fields.update(overrides)
    return MediaAsset(**fields)  # type: ignore[arg-type]


# ===========================================================================
# Document
# ===========================================================================


class TestDocument:
    def test_defaults(self) -> None:
        clock = FixedClock(T0)
        doc = _make_document(clock)
        assert doc.verification is VerificationStatus.PENDING
        assert doc.is_rpp is True
        assert doc.related_type == "property"
        assert doc.created_at == T0

    @pytest.mark.parametrize(
        "raw,expected",
        [("predial", DocumentType.TAX_RECEIPT), ("id_doc", DocumentType.INE), ("deed", DocumentType.DEED)],
    )
    def test_legacy_type_normalised(self, raw: str, expected: DocumentType) -> None:
        doc = _make_document(FixedClock(T0), doc_type=raw)
        assert doc.doc_type is expected

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(InvalidValueError, match="Unsupported document type"):
            _make_document(FixedClock(T0), doc_type="passport")

    def test_verification_transitions(self) -> None:
        clock = FixedClock(T0)
        doc = _make_document(clock)
        doc.verify()
        assert doc.verification is VerificationStatus.VERIFIED
        doc.reject()
        assert doc.verification is VerificationStatus.REJECTED
        later = clock.advance(minutes=1)
        doc.mark_pending()
        assert doc.verification is VerificationStatus.PENDING
        assert doc.updated_at == later

    def test_set_verification_validates(self) -> None:
        doc = _make_document(FixedClock(T0))
        with pytest.raises(InvalidValueError):
            doc.set_verification("approved")
        assert doc.verification is VerificationStatus.PENDING

    def test_set_verification_stamps_updated_at(self) -> None:
        clock = FixedClock(T0)
        doc = _make_document(clock)
        later = clock.advance(hours=2)
        doc.set_verification("rejected")
        assert doc.verification is VerificationStatus.REJECTED
        assert doc.updated_at == later

    def test_rpp_verdict_on_certificate(self) -> None:
        clock = FixedClock(T0)
        doc = _make_document(clock)
        later = clock.advance(minutes=5)
        doc.record_rpp_verdict(VerificationStatus.VERIFIED)
        assert doc.verification is VerificationStatus.VERIFIED
        assert doc.updated_at == later

    def test_rpp_verdict_refused_for_other_types(self) -> None:
        clock = FixedClock(T0)
        doc = _make_document(clock, doc_type=DocumentType.DEED)
        clock.advance(minutes=5)
        with pytest.raises(InvariantViolationError, match="RPP") as excinfo:
            doc.record_rpp_verdict("verified")
        assert excinfo.value.details["doc_type"] == "deed"
        assert doc.verification is VerificationStatus.PENDING
        assert doc.updated_at == T0

    def test_clock_is_required(self) -> None:
        with pytest.raises(TypeError, match="clock"):
            Document(id=new_id(), related_id=new_id(), doc_type="deed")  # type: ignore[call-arg]

    def test_verified_documents_are_not_deletable(self) -> None:
        doc = _make_document(FixedClock(T0))
        assert doc.is_deletable is True
        doc.verify()
        assert doc.is_deletable is False

    def test_retrievable_needs_locator(self) -> None:
        clock = FixedClock(T0)
        assert _make_document(clock).is_retrievable is True
        assert _make_document(clock, storage_key=None, url="  ").is_retrievable is False

    def test_retype(self) -> None:
        doc = _make_document(FixedClock(T0))
        doc.retype("floorplan")
        assert doc.doc_type is DocumentType.PLAN
        assert doc.is_rpp is False


# ===========================================================================
# MediaAsset
# ===========================================================================


class TestMediaAsset:
    def test_floorplan_is_document_like(self) -> None:
        assert resolve_media_type("floorplan") is MediaType.DOCUMENT
        assert resolve_media_type(" IMAGE ") is MediaType.IMAGE

    def test_unknown_media_type_rejected(self) -> None:
        with pytest.raises(InvalidValueError, match="Unsupported media type"):
            resolve_media_type("hologram")

    def test_negative_position_rejected(self) -> None:
        with pytest.raises(InvalidValueError, match="position"):
            _make_asset(FixedClock(T0), position=-1)

    def test_move_and_mark_cover(self) -> None:
        clock = FixedClock(T0)
        asset = _make_asset(clock, position=3)
        later = clock.advance(seconds=30)
        asset.move_to(0)
        asset.mark_cover()
        assert asset.position == 0
        assert asset.is_cover is True
        assert asset.updated_at == later

    def test_clock_is_required(self) -> None:
        with pytest.raises(TypeError, match="clock"):
            MediaAsset(  # type: ignore[call-arg]
                id=new_id(), property_id=new_id(), media_type="image", position=0
            )

    def test_move_to_validates(self) -> None:
        asset = _make_asset(FixedClock(T0), position=2)
        with pytest.raises(InvalidValueError):
            asset.move_to(-5)
        assert asset.position == 2
