"""Unit tests for the pure domain policies.

Covers:
- :mod:`~proplist.domain.policies.status` transition table.
- :mod:`~proplist.domain.policies.completeness` scoring and buckets.
- :mod:`~proplist.domain.policies.publish` gate (collecting and throwing).
- :mod:`~proplist.domain.policies.documents` type aliases and RPP summary.
- :mod:`~proplist.domain.policies.media_ordering` cover selection and ordering.
- :mod:`~proplist.domain.policies.address_privacy` public projection.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass

import pytest

from proplist.core.exceptions import (
    KycRequiredError,
    PublishBlockedError,
    RppRejectedError,
    StatusTransitionError,
)
from proplist.domain.enums import (
    DocumentType,
    MediaType,
    ProgressBucket,
    PropertyStatus,
    VerificationStatus,
)
from proplist.domain.policies import (
    VALID_TRANSITIONS,
    CompletenessInputs,
    MediaSlot,
    assert_publishable,
    assert_transition,
    can_publish,
    can_transition,
    classify,
    compute_score,
    ensure_cover_at_zero,
    has_valid_locator,
    is_allowed_type,
    normalize_document_type,
    normalize_positions,
    rpp_status_from_docs,
    select_cover,
    to_public_address,
)
from proplist.domain.policies.publish import REASON_KYC, REASON_RPP_REJECTED, score_reason
from proplist.domain.value_objects import Address

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Factories / helpers
# ---------------------------------------------------------------------------


@dataclass
class _Doc:
    doc_type: str
    verification: VerificationStatus = VerificationStatus.PENDING
    storage_key: str | None = None
    url: str | None = None


def _full_inputs(**overrides: object) -> CompletenessInputs:
    """Inputs with all nine signals present unless overridden."""
    fields: dict[str, object] = {
        "has_title": True,
        "has_property_type": True,
        "price_amount": 1_500_000,
        "has_city": True,
        "has_state": True,
        "has_description": True,
        "amenities_count": 3,
        "media_count": 5,
        "has_document": True,
    }
    fields.update(overrides)
    return CompletenessInputs(**fields)  # type: ignore[arg-type]


def _slots(*specs: tuple[MediaType, int]) -> list[MediaSlot]:
    return [MediaSlot(id=f"m{i}", media_type=t, position=p) for i, (t, p) in enumerate(specs)]


# ===========================================================================
# Status transitions
# ===========================================================================


class TestStatusTransitions:
    """The transition table is the only source of legal status changes."""

    LEGAL = {
        (PropertyStatus.DRAFT, PropertyStatus.PUBLISHED),
        (PropertyStatus.PUBLISHED, PropertyStatus.DRAFT),
        (PropertyStatus.PUBLISHED, PropertyStatus.SOLD),
    }

    def test_closure_over_every_pair(self) -> None:
        for source, target in itertools.product(PropertyStatus, repeat=2):
            assert can_transition(source, target) is ((source, target) in self.LEGAL), (
                f"{source} -> {target}"
            )

    def test_table_matches_legal_set(self) -> None:
        pairs = {(s, t) for s, targets in VALID_TRANSITIONS.items() for t in targets}
        assert pairs == self.LEGAL

    def test_sold_is_terminal(self) -> None:
        assert VALID_TRANSITIONS[PropertyStatus.SOLD] == frozenset()

    def test_string_values_accepted(self) -> None:
        assert can_transition("draft", "published") is True

    def test_unknown_status_never_legal(self) -> None:
        assert can_transition("archived", "draft") is False
        assert can_transition("draft", "archived") is False

    def test_assert_transition_raises_with_from_and_to(self) -> None:
        with pytest.raises(StatusTransitionError) as info:
            assert_transition(PropertyStatus.DRAFT, PropertyStatus.SOLD)
        assert info.value.details == {"from": "draft", "to": "sold"}

    def test_assert_transition_passes_for_legal_pair(self) -> None:
        assert_transition(PropertyStatus.PUBLISHED, PropertyStatus.SOLD)


# ===========================================================================
# Completeness
# ===========================================================================


class TestCompleteness:
    """Tests for :func:`compute_score` and :func:`classify`."""

    def test_empty_listing_scores_zero(self) -> None:
        assert compute_score(CompletenessInputs()) == 0

    def test_all_signals_score_hundred(self) -> None:
        assert compute_score(_full_inputs()) == 100

    @pytest.mark.parametrize(
        "missing",
        [
            {"has_title": False},
            {"has_property_type": False},
            {"price_amount": 0},
            {"has_city": False},
            {"has_state": False},
            {"has_description": False},
            {"amenities_count": 0},
            {"media_count": 0},
            {"has_document": False},
        ],
    )
    def test_each_signal_has_equal_weight(self, missing: dict[str, object]) -> None:
        assert compute_score(_full_inputs(**missing)) == 89

    @pytest.mark.parametrize(
        "present,expected",
        [(1, 11), (2, 22), (3, 33), (4, 44), (5, 56), (6, 67), (7, 78), (8, 89)],
    )
    def test_score_rounds_weighted_sum(self, present: int, expected: int) -> None:
        signals: list[tuple[str, object]] = [
            ("has_title", True),
            ("has_property_type", True),
            ("price_amount", 1),
            ("has_city", True),
            ("has_state", True),
            ("has_description", True),
            ("amenities_count", 1),
            ("media_count", 1),
            ("has_document", True),
        ]
        fields = dict(signals[:present])
        assert compute_score(CompletenessInputs(**fields)) == expected  # type: ignore[arg-type]

    def test_richness_does_not_move_score(self) -> None:
        assert compute_score(_full_inputs(amenities_count=1, media_count=1)) == compute_score(
            _full_inputs(amenities_count=40, media_count=30)
        )

    def test_score_in_range_for_every_combination(self) -> None:
        for flags in itertools.product((False, True), repeat=9):
            inputs = CompletenessInputs(
                has_title=flags[0],
                has_property_type=flags[1],
                price_amount=1 if flags[2] else 0,
                has_city=flags[3],
                has_state=flags[4],
                has_description=flags[5],
                amenities_count=int(flags[6]),
                media_count=int(flags[7]),
                has_document=flags[8],
            )
            assert 0 <= compute_score(inputs) <= 100

    @pytest.mark.parametrize(
        "score,bucket",
        [
            (0, ProgressBucket.RED),
            (49, ProgressBucket.RED),
            (50, ProgressBucket.AMBER),
            (79, ProgressBucket.AMBER),
            (80, ProgressBucket.GREEN),
            (100, ProgressBucket.GREEN),
        ],
    )
    def test_classify_boundaries(self, score: int, bucket: ProgressBucket) -> None:
        assert classify(score) is bucket


# ===========================================================================
# Publish gate
# ===========================================================================


class TestPublishGate:
    """Tests for :func:`can_publish` and :func:`assert_publishable`."""

    def test_all_gates_pass(self) -> None:
        result = can_publish(kyc_verified=True, score=80)
        assert result.ok is True
        assert result.reasons == ()

    def test_score_boundary(self) -> None:
        assert can_publish(kyc_verified=True, score=79).ok is False
        assert can_publish(kyc_verified=True, score=80).ok is True

    def test_custom_min_score(self) -> None:
        result = can_publish(kyc_verified=True, score=60, min_score=70)
        assert result.reasons == (score_reason(70),)
        assert result.reasons == ("Completeness < 70",)

    def test_reasons_collected_in_order(self) -> None:
        result = can_publish(
            kyc_verified=False, score=10, rpp_status=VerificationStatus.REJECTED
        )
        assert result.ok is False
        assert result.reasons == (REASON_KYC, score_reason(80), REASON_RPP_REJECTED)

    def test_gates_are_independent(self) -> None:
        """Each gate's reason appears exactly when that gate fails."""
        for kyc, score, rpp in itertools.product(
            (False, True), (79, 80), (None, VerificationStatus.PENDING, VerificationStatus.REJECTED)
        ):
            reasons = can_publish(kyc_verified=kyc, score=score, rpp_status=rpp).reasons
            assert (REASON_KYC in reasons) is (not kyc)
            assert (score_reason(80) in reasons) is (score < 80)
            assert (REASON_RPP_REJECTED in reasons) is (rpp is VerificationStatus.REJECTED)

    def test_rpp_gate_can_be_disabled(self) -> None:
        result = can_publish(
            kyc_verified=True,
            score=100,
            rpp_status=VerificationStatus.REJECTED,
            block_if_rpp_rejected=False,
        )
        assert result.ok is True

    def test_pending_rpp_does_not_block(self) -> None:
        assert can_publish(True, 100, VerificationStatus.PENDING).ok is True

    def test_assert_raises_kyc_first(self) -> None:
        with pytest.raises(KycRequiredError):
            assert_publishable(False, 0, VerificationStatus.REJECTED)

    def test_assert_raises_score_second(self) -> None:
        with pytest.raises(PublishBlockedError) as info:
            assert_publishable(True, 44, VerificationStatus.REJECTED)
        assert info.value.details == {"min": 80, "score": 44}

    def test_assert_raises_rpp_last(self) -> None:
        with pytest.raises(RppRejectedError):
            assert_publishable(True, 100, VerificationStatus.REJECTED)

    def test_assert_passes(self) -> None:
        assert_publishable(True, 100, VerificationStatus.VERIFIED)


# ===========================================================================
# Documents
# ===========================================================================


class TestDocumentPolicy:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("predial", DocumentType.TAX_RECEIPT),
            ("no_predial_debt", DocumentType.TAX_RECEIPT),
            ("id_doc", DocumentType.INE),
            ("floorplan", DocumentType.PLAN),
            ("rpp", DocumentType.RPP_CERTIFICATE),
            ("comprobante_domicilio", DocumentType.PROOF_OF_ADDRESS),
            ("  DEED ", DocumentType.DEED),
            ("rpp_certificate", DocumentType.RPP_CERTIFICATE),
        ],
    )
    def test_normalize_aliases(self, raw: str, expected: DocumentType) -> None:
        assert normalize_document_type(raw) is expected

    @pytest.mark.parametrize("raw", [None, "", "passport", "selfie"])
    def test_unknown_types(self, raw: str | None) -> None:
        assert normalize_document_type(raw) is None
        assert is_allowed_type(raw) is False

    def test_every_canonical_type_allowed(self) -> None:
        for doc_type in DocumentType:
            assert is_allowed_type(doc_type.value)

    def test_locator_requires_non_blank_key_or_url(self) -> None:
        assert has_valid_locator(_Doc("deed", storage_key="p/docs/d.pdf")) is True
        assert has_valid_locator(_Doc("deed", url="https://x.test/d.pdf")) is True
        assert has_valid_locator(_Doc("deed", storage_key="  ", url="")) is False
        assert has_valid_locator(_Doc("deed")) is False

    def test_rpp_summary_none_without_rpp_docs(self) -> None:
        assert rpp_status_from_docs([]) is None
        assert rpp_status_from_docs([_Doc("deed", VerificationStatus.REJECTED)]) is None

    @pytest.mark.parametrize(
        "statuses,expected",
        [
            ([VerificationStatus.VERIFIED], VerificationStatus.VERIFIED),
            ([VerificationStatus.PENDING, VerificationStatus.VERIFIED], VerificationStatus.PENDING),
            (
                [VerificationStatus.VERIFIED, VerificationStatus.REJECTED, VerificationStatus.PENDING],
                VerificationStatus.REJECTED,
            ),
        ],
    )
    def test_rpp_summary_precedence(
        self, statuses: list[VerificationStatus], expected: VerificationStatus
    ) -> None:
        docs = [_Doc("rpp_certificate", s) for s in statuses]
        assert rpp_status_from_docs(docs) is expected

    def test_rpp_summary_reads_aliases(self) -> None:
        assert rpp_status_from_docs([_Doc("rpp", VerificationStatus.VERIFIED)]) is (
            VerificationStatus.VERIFIED
        )


# ===========================================================================
# Media ordering
# ===========================================================================


class TestMediaOrdering:
    def test_cover_is_lowest_position_image(self) -> None:
        items = _slots((MediaType.IMAGE, 2), (MediaType.VIDEO, 0), (MediaType.IMAGE, 1))
        assert select_cover(items) == 2

    def test_cover_falls_back_to_any_type(self) -> None:
        items = _slots((MediaType.VIDEO, 3), (MediaType.DOCUMENT, 1))
        assert select_cover(items) == 1

    def test_cover_of_empty_list(self) -> None:
        assert select_cover([]) == -1

    def test_cover_tie_resolves_to_earlier_item(self) -> None:
        items = _slots((MediaType.IMAGE, 1), (MediaType.IMAGE, 1))
        assert select_cover(items) == 0

    def test_normalize_positions_renumbers(self) -> None:
        items = _slots((MediaType.IMAGE, 7), (MediaType.VIDEO, 2), (MediaType.IMAGE, 40))
        result = normalize_positions(items)
        assert [m.id for m in result] == ["m1", "m0", "m2"]
        assert [m.position for m in result] == [0, 1, 2]

    def test_normalize_does_not_mutate_input(self) -> None:
        items = _slots((MediaType.IMAGE, 5))
        normalize_positions(items)
        assert items[0].position == 5

    def test_ensure_cover_at_zero(self) -> None:
        items = _slots((MediaType.IMAGE, 2), (MediaType.VIDEO, 0), (MediaType.IMAGE, 1))
        result = ensure_cover_at_zero(items)
        assert [m.id for m in result] == ["m2", "m1", "m0"]
        assert [m.position for m in result] == [0, 1, 2]
        assert select_cover(result) == 0

    def test_ensure_cover_at_zero_empty(self) -> None:
        assert ensure_cover_at_zero([]) == []

    def test_ensure_cover_is_idempotent(self) -> None:
        items = _slots((MediaType.VIDEO, 0), (MediaType.IMAGE, 4), (MediaType.IMAGE, 9))
        once = ensure_cover_at_zero(items)
        assert ensure_cover_at_zero(once) == once


# ===========================================================================
# Address privacy
# ===========================================================================


class TestAddressPrivacy:
    def _address(self, display: bool) -> Address:
        return Address(
            city="Monterrey",
            state="Nuevo León",
            country="MX",
            address_line="Calle Hidalgo 12",
            neighborhood="Centro",
            postal_code="64000",
            display_address=display,
        )

    def test_hidden_by_default(self) -> None:
        public = to_public_address(self._address(display=False))
        assert (public.city, public.state, public.country) == ("Monterrey", "Nuevo León", "MX")
        assert public.address_line is None
        assert public.neighborhood is None
        assert public.postal_code is None

    def test_shown_when_opted_in(self) -> None:
        public = to_public_address(self._address(display=True))
        assert public.address_line == "Calle Hidalgo 12"
        assert public.neighborhood == "Centro"
        assert public.postal_code == "64000"
