"""Completeness scoring for property listings.

Nine presence signals contribute an equal share (100 / 9) of the score:

=====================  =============================================
Signal                 True when
=====================  =============================================
``has_title``          title is non-blank
``has_property_type``  a property type is set
``price_amount``       price amount > 0
``has_city``           address city is non-blank
``has_state``          address state is non-blank
``has_description``    description is non-blank (length ignored)
``amenities_count``    at least one amenity
``media_count``        at least one media asset
``has_document``       at least one attached document
=====================  =============================================

Only presence counts, never richness, so padding a description does not move
the score.  The weighted sum is rounded and clamped to ``[0, 100]``.

Typical usage::

    from proplist.domain.policies.completeness import CompletenessInputs, classify, compute_score

    score = compute_score(CompletenessInputs(has_title=True, price_amount=1_000_000))
    bucket = classify(score)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from proplist.domain.enums import ProgressBucket

__all__ = [
    "SIGNAL_COUNT",
    "SIGNAL_WEIGHT",
    "PROGRESS_THRESHOLDS",
    "MIN_PUBLISH_SCORE",
    "CompletenessInputs",
    "compute_score",
    "classify",
]

logger = logging.getLogger(__name__)

SIGNAL_COUNT: int = 9

#: Share of the score contributed by each signal.
SIGNAL_WEIGHT: float = 100 / SIGNAL_COUNT

#: Lower bound (inclusive) of each progress bucket.
PROGRESS_THRESHOLDS: dict[ProgressBucket, int] = {
    ProgressBucket.RED: 0,
    ProgressBucket.AMBER: 50,
    ProgressBucket.GREEN: 80,
}

#: Score a listing must reach before it may be published.
MIN_PUBLISH_SCORE: int = 80


@dataclass(frozen=True, slots=True)
class CompletenessInputs:
    """Plain inputs for :func:`compute_score`; defaults describe an empty listing."""

    has_title: bool = False
    has_property_type: bool = False
    price_amount: float = 0
    has_city: bool = False
    has_state: bool = False
    has_description: bool = False
    amenities_count: int = 0
    media_count: int = 0
    has_document: bool = False

    def signals(self) -> tuple[bool, ...]:
        """Return the nine presence signals in table order."""
        return (
            self.has_title,
            self.has_property_type,
            (self.price_amount or 0) > 0,
            self.has_city,
            self.has_state,
            self.has_description,
            (self.amenities_count or 0) > 0,
            (self.media_count or 0) > 0,
            self.has_document,
        )


def compute_score(inputs: CompletenessInputs) -> int:
    """Return the completeness score of *inputs* as an integer in ``[0, 100]``."""
    raw = sum(SIGNAL_WEIGHT for signal in inputs.signals() if signal)
    return max(0, min(100, round(raw)))


def classify(score: int) -> ProgressBucket:
    """Map *score* to its progress bucket (``green`` ≥ 80, ``amber`` ≥ 50)."""
    if score >= PROGRESS_THRESHOLDS[ProgressBucket.GREEN]:
        return ProgressBucket.GREEN
    if score >= PROGRESS_THRESHOLDS[ProgressBucket.AMBER]:
        return ProgressBucket.AMBER
    return ProgressBucket.RED
