"""Construction of coherent draft listings."""

from __future__ import annotations

import logging
from datetime import datetime

from proplist.core.clock import Clock
from proplist.domain.enums import OperationType, PropertyStatus, PropertyType
from proplist.domain.property import Property
from proplist.domain.value_objects import Address, Money, UniqueEntityID

__all__ = ["PropertyFactory"]

logger = logging.getLogger(__name__)


class PropertyFactory:
    """Builds new :class:`~proplist.domain.property.Property` aggregates.

    Args:
        clock: Time source handed to every entity the factory creates.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock

    def create_draft(
        self,
        *,
        id: UniqueEntityID | str,  # noqa: A002
        org_id: UniqueEntityID | str,
        lister_user_id: UniqueEntityID | str,
        title: str,
        property_type: PropertyType | str,
        price: Money,
        address: Address,
        operation_type: OperationType | str = OperationType.SALE,
        description: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> Property:
        """Return a draft with no publication history and a zero score.

        Raises:
            InvariantViolationError: Blank title or undeclared operation type.
            InvalidValueError: Malformed id or property type.
        """
        return Property(
            id=id,
            org_id=org_id,
            lister_user_id=lister_user_id,
            status=PropertyStatus.DRAFT,
            operation_type=operation_type,
            property_type=property_type,
            title=title,
            description=description,
            price=price,
            address=address,
            clock=self._clock,
            amenities=[],
            tags=[],
            normalized_address=None,
            published_at=None,
            sold_at=None,
            deleted_at=None,
            completeness_score=0,
            trust_score=0,
            created_at=created_at,
            updated_at=updated_at,
        )
