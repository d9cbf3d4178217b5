"""Publish-readiness checklist.

Combines completeness scoring with the publish gate and reports stable issue
codes.  Consumers branch on :class:`~proplist.domain.enums.ReadinessIssue`
codes; the ``reasons`` strings are for logs and debugging only.

Typical usage::

    from proplist.domain.readiness import ReadinessService

    readiness = ReadinessService().readiness_for_property(
        prop, kyc_verified=True, media_count=4, document_count=1
    )
    if not readiness.can_publish:
        print(readiness.issues)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from proplist.domain.enums import ProgressBucket, ReadinessIssue, VerificationStatus
from proplist.domain.policies.completeness import (
    MIN_PUBLISH_SCORE,
    CompletenessInputs,
    classify,
    compute_score,
)
from proplist.domain.policies.publish import can_publish
from proplist.domain.property import Property

__all__ = ["ReadinessInputs", "Readiness", "ReadinessService"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReadinessInputs:
    """Plain inputs of :meth:`ReadinessService.build_readiness`.

    Attributes:
        completeness: Presence signals used for the score.
        address_filled: City, state and country are all present.
        kyc_verified: Lister passed identity verification.
        rpp_status: Property-level RPP summary (``None`` = no RPP documents).
        min_score: Threshold override.
        block_if_rpp_rejected: Whether a rejected RPP blocks publishing.
    """

    completeness: CompletenessInputs
    address_filled: bool
    kyc_verified: bool
    rpp_status: VerificationStatus | None = None
    min_score: int | None = None
    block_if_rpp_rejected: bool = True


@dataclass(frozen=True, slots=True)
class Readiness:
    score: int
    bucket: ProgressBucket
    can_publish: bool
    issues: tuple[ReadinessIssue, ...] = field(default_factory=tuple)
    reasons: tuple[str, ...] | None = None


class ReadinessService:
    """Stateless composition of the completeness and publish policies."""

    def build_readiness(self, inputs: ReadinessInputs) -> Readiness:
        score = compute_score(inputs.completeness)
        minimum = MIN_PUBLISH_SCORE if inputs.min_score is None else inputs.min_score
        gate = can_publish(
            kyc_verified=inputs.kyc_verified,
            score=score,
            rpp_status=inputs.rpp_status,
            min_score=minimum,
            block_if_rpp_rejected=inputs.block_if_rpp_rejected,
        )

        signals = inputs.completeness
        issues: list[ReadinessIssue] = []
        if not inputs.kyc_verified:
            issues.append(ReadinessIssue.KYC_MISSING)
        if not inputs.address_filled:
            issues.append(ReadinessIssue.ADDRESS_INCOMPLETE)
        if signals.media_count < 1:
            issues.append(ReadinessIssue.MEDIA_MIN_MISSING)
        if not signals.has_title or signals.price_amount <= 0:
            issues.append(ReadinessIssue.REQUIRED_FIELDS_MISSING)
        if score < minimum:
            issues.append(ReadinessIssue.SCORE_BELOW_MIN)
        if inputs.block_if_rpp_rejected and inputs.rpp_status == VerificationStatus.REJECTED:
            issues.append(ReadinessIssue.RPP_REJECTED)

        return Readiness(
            score=score,
            bucket=classify(score),
            can_publish=gate.ok,
            issues=tuple(issues),
            reasons=None if gate.ok else gate.reasons,
        )

    def readiness_for_property(
        self,
        prop: Property,
        *,
        kyc_verified: bool,
        media_count: int,
        document_count: int = 0,
        rpp_status: VerificationStatus | None = None,
        min_score: int | None = None,
        block_if_rpp_rejected: bool = True,
    ) -> Readiness:
        """Derive readiness inputs from *prop* and its asset counts.

        *rpp_status* defaults to the property's own RPP summary.
        """
        return self.build_readiness(
            ReadinessInputs(
                completeness=prop.completeness_inputs(
                    media_count=media_count, document_count=document_count
                ),
                address_filled=prop.address.is_complete,
                kyc_verified=kyc_verified,
                rpp_status=prop.rpp_verified if rpp_status is None else rpp_status,
                min_score=min_score,
                block_if_rpp_rejected=block_if_rpp_rejected,
            )
        )
