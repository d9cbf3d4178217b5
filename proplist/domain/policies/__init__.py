"""Pure business policies: no state, no I/O, plain inputs in and answers out."""

from proplist.domain.policies.address_privacy import PublicAddress, to_public_address
from proplist.domain.policies.completeness import (
    MIN_PUBLISH_SCORE,
    PROGRESS_THRESHOLDS,
    SIGNAL_WEIGHT,
    CompletenessInputs,
    classify,
    compute_score,
)
from proplist.domain.policies.documents import (
    ALLOWED_DOC_TYPES,
    has_valid_locator,
    is_allowed_type,
    normalize_document_type,
    rpp_status_from_docs,
)
from proplist.domain.policies.media_ordering import (
    MediaSlot,
    ensure_cover_at_zero,
    normalize_positions,
    select_cover,
)
from proplist.domain.policies.publish import PublishGateResult, assert_publishable, can_publish
from proplist.domain.policies.status import VALID_TRANSITIONS, assert_transition, can_transition

__all__ = [
    # Status
    "VALID_TRANSITIONS",
    "can_transition",
    "assert_transition",
    # Completeness
    "MIN_PUBLISH_SCORE",
    "PROGRESS_THRESHOLDS",
    "SIGNAL_WEIGHT",
    "CompletenessInputs",
    "compute_score",
    "classify",
    # Publish
    "PublishGateResult",
    "can_publish",
    "assert_publishable",
    # Documents
    "ALLOWED_DOC_TYPES",
    "normalize_document_type",
    "is_allowed_type",
    "has_valid_locator",
    "rpp_status_from_docs",
    # Media
    "MediaSlot",
    "select_cover",
    "normalize_positions",
    "ensure_cover_at_zero",
    # Address
    "PublicAddress",
    "to_public_address",
]
