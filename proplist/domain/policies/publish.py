"""Publish gate: KYC, minimum completeness and RPP status.

Two flavours of the same three checks:

* :func:`can_publish` collects every failing gate as a human-readable reason
  (readiness screens, dry-run checks).
* :func:`assert_publishable` raises the *first* failure in priority order
  KYC → score → RPP (commands that must fail loudly).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from proplist.core.exceptions import KycRequiredError, PublishBlockedError, RppRejectedError
from proplist.domain.enums import VerificationStatus
from proplist.domain.policies.completeness import MIN_PUBLISH_SCORE

__all__ = [
    "REASON_KYC",
    "REASON_RPP_REJECTED",
    "score_reason",
    "PublishGateResult",
    "can_publish",
    "assert_publishable",
]

logger = logging.getLogger(__name__)

REASON_KYC = "KYC not verified"
REASON_RPP_REJECTED = "RPP is rejected"


def score_reason(min_score: int) -> str:
    return f"Completeness < {min_score}"


@dataclass(frozen=True, slots=True)
class PublishGateResult:
    """Outcome of :func:`can_publish`.

    Attributes:
        ok: ``True`` when every gate passed.
        reasons: One entry per failing gate, in evaluation order; empty when ok.
    """

    ok: bool
    reasons: tuple[str, ...] = field(default_factory=tuple)


def _rpp_blocks(rpp_status: VerificationStatus | str | None, block_if_rpp_rejected: bool) -> bool:
    return block_if_rpp_rejected and rpp_status == VerificationStatus.REJECTED


def can_publish(
    kyc_verified: bool,
    score: int,
    rpp_status: VerificationStatus | str | None = None,
    min_score: int | None = None,
    block_if_rpp_rejected: bool = True,
) -> PublishGateResult:
    """Evaluate the three publish gates independently.

    Args:
        kyc_verified: Whether the lister passed identity verification.
        score: Current completeness score.
        rpp_status: Property-level RPP summary; ``None`` means no RPP documents.
        min_score: Threshold override; defaults to :data:`MIN_PUBLISH_SCORE`.
        block_if_rpp_rejected: Set ``False`` to skip the RPP gate.

    Returns:
        A :class:`PublishGateResult` listing every failed gate.
    """
    minimum = MIN_PUBLISH_SCORE if min_score is None else min_score
    reasons: list[str] = []
    if not kyc_verified:
        reasons.append(REASON_KYC)
    if score < minimum:
        reasons.append(score_reason(minimum))
    if _rpp_blocks(rpp_status, block_if_rpp_rejected):
        reasons.append(REASON_RPP_REJECTED)
    return PublishGateResult(ok=not reasons, reasons=tuple(reasons))


def assert_publishable(
    kyc_verified: bool,
    score: int,
    rpp_status: VerificationStatus | str | None = None,
    min_score: int | None = None,
    block_if_rpp_rejected: bool = True,
) -> None:
    """Throwing twin of :func:`can_publish`.

    Raises:
        KycRequiredError: KYC is not verified.
        PublishBlockedError: *score* is below the threshold (details: min, score).
        RppRejectedError: RPP is rejected and the gate is active.
    """
    minimum = MIN_PUBLISH_SCORE if min_score is None else min_score
    if not kyc_verified:
        raise KycRequiredError()
    if score < minimum:
        raise PublishBlockedError(minimum, score)
    if _rpp_blocks(rpp_status, block_if_rpp_rejected):
        raise RppRejectedError()
