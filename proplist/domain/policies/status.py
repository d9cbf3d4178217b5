"""Status state machine for property listings.

The transition table below is the single source of truth for which status
changes are legal.  Entities never hand-roll transition checks; they call
:func:`assert_transition`.

    draft ──► published ──► sold
      ▲           │
      └───────────┘   (pause)
"""

from __future__ import annotations

import logging

from proplist.core.exceptions import StatusTransitionError
from proplist.domain.enums import PropertyStatus

__all__ = ["VALID_TRANSITIONS", "can_transition", "assert_transition"]

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: dict[PropertyStatus, frozenset[PropertyStatus]] = {
    PropertyStatus.DRAFT: frozenset({PropertyStatus.PUBLISHED}),
    PropertyStatus.PUBLISHED: frozenset({PropertyStatus.DRAFT, PropertyStatus.SOLD}),
    PropertyStatus.SOLD: frozenset(),
}


def can_transition(from_status: PropertyStatus | str, to_status: PropertyStatus | str) -> bool:
    """Return ``True`` if the table has an entry ``from_status → to_status``.

    Unknown status strings are never legal on either side.
    """
    try:
        source = PropertyStatus(from_status)
        target = PropertyStatus(to_status)
    except ValueError:
        return False
    return target in VALID_TRANSITIONS[source]


def assert_transition(from_status: PropertyStatus | str, to_status: PropertyStatus | str) -> None:
    """Raise :class:`StatusTransitionError` unless the transition is legal."""
    if not can_transition(from_status, to_status):
        raise StatusTransitionError(str(from_status), str(to_status))
