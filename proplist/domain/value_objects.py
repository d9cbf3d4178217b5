"""Immutable, self-validating value objects.

Each constructor validates its input and raises
:class:`~proplist.core.exceptions.InvalidValueError` on malformed data.
Instances are frozen dataclasses: equality is structural and any "change"
produces a new instance (``dataclasses.replace``).

Typical usage::

    from proplist.domain.value_objects import Address, Money

    price = Money(2_500_000)                       # MXN by default
    addr = Address(city="Guadalajara", state="Jalisco", country="MX")
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from proplist.core.exceptions import InvalidValueError
from proplist.core.ids import is_uuid
from proplist.domain.enums import Currency

__all__ = [
    "require_non_empty",
    "require_positive_number",
    "require_non_negative_integer",
    "require_non_negative_number",
    "coerce_enum",
    "optional_text",
    "Money",
    "Address",
    "GeoPoint",
    "UniqueEntityID",
]

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def require_non_empty(value: object, field_name: str) -> str:
    """Return *value* trimmed, or raise if it is not a non-blank string."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidValueError(
            f"{field_name} is required", details={"field": field_name, "value": value}
        )
    return value.strip()


def require_positive_number(value: object, field_name: str) -> float:
    """Return *value* if it is a finite number greater than zero."""
    if (
        isinstance(value, bool)
        or not isinstance(value, int | float)
        or not math.isfinite(value)
        or value <= 0
    ):
        raise InvalidValueError(
            f"{field_name} must be > 0", details={"field": field_name, "value": value}
        )
    return value


def require_non_negative_integer(value: object, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidValueError(
            f"{field_name} must be a non-negative integer",
            details={"field": field_name, "value": value},
        )
    return value


def require_non_negative_number(value: object, field_name: str) -> float | None:
    """Return *value* if it is ``None`` or a finite number >= 0."""
    if value is None:
        return None
    if not _is_finite_number(value) or value < 0:
        raise InvalidValueError(
            f"{field_name} must be a non-negative number",
            details={"field": field_name, "value": value},
        )
    return value


def coerce_enum(enum_cls: type[E], value: object, field_name: str) -> E:
    """Return the *enum_cls* member for *value* or raise :class:`InvalidValueError`."""
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise InvalidValueError(
            f"Unsupported {field_name} {value!r}",
            cause=exc,
            details={"field": field_name, "value": value},
        ) from exc


def optional_text(value: str | None) -> str | None:
    """Trim *value*; blank or ``None`` becomes ``None``."""
    if value is None:
        return None
    return value.strip() or None


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Money:
    """A positive amount in a declared currency.

    Attributes:
        amount: Finite number greater than zero.
        currency: ISO code; defaults to the home currency (MXN).
    """

    amount: float
    currency: Currency = Currency.MXN

    def __post_init__(self) -> None:
        require_positive_number(self.amount, "amount")
        object.__setattr__(self, "currency", coerce_enum(Currency, self.currency, "currency"))


@dataclass(frozen=True, slots=True)
class Address:
    """Postal address with a privacy flag.

    ``city``, ``state`` and ``country`` are required and trimmed.  The
    optional parts are trimmed and blank values become ``None``.  The full
    street address stays hidden from public views unless ``display_address``
    is set.
    """

    city: str
    state: str
    country: str
    address_line: str | None = None
    neighborhood: str | None = None
    postal_code: str | None = None
    display_address: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "city", require_non_empty(self.city, "city"))
        object.__setattr__(self, "state", require_non_empty(self.state, "state"))
        object.__setattr__(self, "country", require_non_empty(self.country, "country"))
        object.__setattr__(self, "address_line", optional_text(self.address_line))
        object.__setattr__(self, "neighborhood", optional_text(self.neighborhood))
        object.__setattr__(self, "postal_code", optional_text(self.postal_code))
        object.__setattr__(self, "display_address", bool(self.display_address))

    @property
    def is_complete(self) -> bool:
        return bool(self.city and self.state and self.country)


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """Latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not _is_finite_number(self.lat) or not -90 <= self.lat <= 90:
            raise InvalidValueError(
                "Latitude must be between -90 and 90", details={"lat": self.lat}
            )
        if not _is_finite_number(self.lng) or not -180 <= self.lng <= 180:
            raise InvalidValueError(
                "Longitude must be between -180 and 180", details={"lng": self.lng}
            )


@dataclass(frozen=True, slots=True)
class UniqueEntityID:
    """A UUID-shaped identifier (format check only)."""

    value: str

    def __post_init__(self) -> None:
        if not is_uuid(self.value):
            raise InvalidValueError("Invalid UUID", details={"value": self.value})

    def __str__(self) -> str:
        return self.value


def _is_finite_number(value: object) -> bool:
    return (
        not isinstance(value, bool)
        and isinstance(value, int | float)
        and math.isfinite(value)
    )
