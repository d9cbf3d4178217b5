"""Public view of an address.

Privacy by default: only city, state and country are exposed unless the
lister opted in via ``display_address``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from proplist.domain.value_objects import Address

__all__ = ["PublicAddress", "to_public_address"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PublicAddress:
    city: str
    state: str
    country: str
    neighborhood: str | None = None
    postal_code: str | None = None
    address_line: str | None = None


def to_public_address(address: Address) -> PublicAddress:
    if not address.display_address:
        return PublicAddress(city=address.city, state=address.state, country=address.country)
    return PublicAddress(
        city=address.city,
        state=address.state,
        country=address.country,
        neighborhood=address.neighborhood,
        postal_code=address.postal_code,
        address_line=address.address_line,
    )
