"""Property aggregate root.

A :class:`Property` is built fresh for every operation from a persisted
snapshot, mutated through its own methods, then flattened back out by the
mappers.  Outside code never assigns attributes directly.

Every mutator validates its arguments *before* assigning anything, so a
failed call leaves the entity exactly as it was.  After each successful
mutation the structural invariants are re-checked and ``updated_at`` is
stamped from the injected clock:

* ``status == published`` ⇒ ``published_at`` is set.
* ``status == sold`` ⇒ ``sold_at`` is set.
* ``title`` is never blank.
* ``operation_type`` is a declared :class:`~proplist.domain.enums.OperationType`.

Decisions are delegated to policies: transitions to
:mod:`~proplist.domain.policies.status`, publish gating to
:mod:`~proplist.domain.policies.publish` and scoring to
:mod:`~proplist.domain.policies.completeness`.

Typical usage::

    from proplist.domain.property import Property

    prop.publish(kyc_verified=True)
    prop.mark_sold(clock.now())
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Final

from proplist.core.clock import Clock
from proplist.core.exceptions import InvalidValueError, InvariantViolationError
from proplist.domain.enums import (
    Condition,
    NormalizedStatus,
    OperationType,
    Orientation,
    PropertyStatus,
    PropertyType,
    VerificationStatus,
)
from proplist.domain.policies.completeness import CompletenessInputs, compute_score
from proplist.domain.policies.publish import assert_publishable
from proplist.domain.policies.status import assert_transition
from proplist.domain.value_objects import (
    Address,
    GeoPoint,
    Money,
    UniqueEntityID,
    coerce_enum,
    optional_text,
    require_non_negative_integer,
    require_non_negative_number,
)

__all__ = ["UNSET", "FEATURE_FIELDS", "Property"]

logger = logging.getLogger(__name__)


class _Unset:
    """Marker for "argument not given", distinct from an explicit ``None``."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()

#: Whole-number physical features.
_INT_FEATURES = ("bedrooms", "parking_spots", "levels", "year_built", "floor")
#: Real-valued physical features (half bathrooms, areas).
_REAL_FEATURES = ("bathrooms", "construction_m2", "land_m2")
FEATURE_FIELDS: tuple[str, ...] = _INT_FEATURES + _REAL_FEATURES


def _as_id(value: UniqueEntityID | str, field_name: str) -> UniqueEntityID:
    if isinstance(value, UniqueEntityID):
        return value
    try:
        return UniqueEntityID(value)
    except InvalidValueError as exc:
        exc.details.setdefault("field", field_name)
        raise


def _require_instant(value: object, field_name: str) -> datetime:
    if not isinstance(value, datetime):
        raise InvariantViolationError(
            f"Invalid {field_name}", details={"field": field_name, "value": value}
        )
    return value


def _clean_labels(values: Iterable[str] | None) -> list[str]:
    """Trim, drop blanks and de-duplicate while keeping first-seen order."""
    seen: dict[str, None] = {}
    for raw in values or ():
        label = raw.strip() if isinstance(raw, str) else ""
        if label:
            seen.setdefault(label, None)
    return list(seen)


def _sanitize_normalized_address(
    value: Mapping[str, Any] | None, fallback_status: str | None = None
) -> dict[str, Any] | None:
    if not value and not fallback_status:
        return None
    data = dict(value or {})
    status = NormalizedStatus.resolve(data.pop("status", None) or fallback_status)
    return {"status": status, **data}


def _validate_feature(name: str, value: object) -> Any:
    if value is None:
        return None
    if name in _INT_FEATURES:
        return require_non_negative_integer(value, name)
    return require_non_negative_number(value, name)


class Property:
    """Aggregate root of a property listing.

    Args:
        id: Listing id.
        org_id: Owning organisation.
        lister_user_id: User who lists the property.
        status: Lifecycle status.
        operation_type: Declared operation type (``sale``).
        property_type: Kind of property.
        title: Non-blank headline; trimmed.
        price: Asking price.
        address: Postal address.
        clock: Time source used for every timestamp the entity produces.

    Every other keyword argument is optional and mirrors a persisted column.

    Raises:
        InvariantViolationError: Blank title, undeclared operation type, or a
            status without its timestamp.
        InvalidValueError: A malformed id, enum value or feature number.
    """

    def __init__(
        self,
        *,
        id: UniqueEntityID | str,  # noqa: A002
        org_id: UniqueEntityID | str,
        lister_user_id: UniqueEntityID | str,
        status: PropertyStatus | str,
        operation_type: OperationType | str,
        property_type: PropertyType | str,
        title: str,
        price: Money,
        address: Address,
        clock: Clock,
        description: str | None = None,
        bedrooms: int | None = None,
        bathrooms: float | None = None,
        parking_spots: int | None = None,
        construction_m2: float | None = None,
        land_m2: float | None = None,
        levels: int | None = None,
        year_built: int | None = None,
        floor: int | None = None,
        location: GeoPoint | None = None,
        amenities: Iterable[str] | None = None,
        amenities_extra: str | None = None,
        tags: Iterable[str] | None = None,
        internal_id: str | None = None,
        normalized_address: Mapping[str, Any] | None = None,
        normalized_status: str | None = None,
        hoa_fee: Money | None = None,
        condition: Condition | str | None = None,
        furnished: bool | None = None,
        pet_friendly: bool | None = None,
        orientation: Orientation | str | None = None,
        rpp_verified: VerificationStatus | str | None = None,
        trust_score: int | None = None,
        completeness_score: int | None = None,
        published_at: datetime | None = None,
        sold_at: datetime | None = None,
        deleted_at: datetime | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        if not isinstance(title, str) or not title.strip():
            raise InvariantViolationError("Title required", details={"field": "title"})
        try:
            operation = OperationType(operation_type)
        except ValueError as exc:
            raise InvariantViolationError(
                "Unsupported operation type",
                cause=exc,
                details={"operation_type": operation_type},
            ) from exc

        self._clock = clock

        self._id = _as_id(id, "id")
        self._org_id = _as_id(org_id, "org_id")
        self._lister_user_id = _as_id(lister_user_id, "lister_user_id")

        self._status = coerce_enum(PropertyStatus, status, "status")
        self._operation_type = operation
        self._property_type = coerce_enum(PropertyType, property_type, "property_type")
        self._published_at = published_at
        self._sold_at = sold_at
        self._deleted_at = deleted_at
        self._rpp_verified = (
            coerce_enum(VerificationStatus, rpp_verified, "rpp_verified")
            if rpp_verified is not None
            else VerificationStatus.PENDING
        )

        self._title = title.strip()
        self._description = optional_text(description)
        self._price = price

        self._features: dict[str, Any] = {}
        supplied = {
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "parking_spots": parking_spots,
            "construction_m2": construction_m2,
            "land_m2": land_m2,
            "levels": levels,
            "year_built": year_built,
            "floor": floor,
        }
        for name in FEATURE_FIELDS:
            self._features[name] = _validate_feature(name, supplied[name])

        self._address = address
        self._location = location
        self._amenities = _clean_labels(amenities)
        self._amenities_extra = optional_text(amenities_extra)
        self._tags = _clean_labels(tags)
        self._internal_id = optional_text(internal_id)
        self._normalized_address = _sanitize_normalized_address(
            normalized_address, normalized_status
        )

        self._hoa_fee = hoa_fee
        self._condition = coerce_enum(Condition, condition, "condition") if condition else None
        self._furnished = furnished
        self._pet_friendly = pet_friendly
        self._orientation = (
            coerce_enum(Orientation, orientation, "orientation") if orientation else None
        )

        self._completeness_score = int(completeness_score or 0)
        self._trust_score = int(trust_score or 0)
        self._created_at = created_at or clock.now()
        self._updated_at = updated_at or self._created_at

        self._assert_invariants()

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def id(self) -> UniqueEntityID:
        return self._id

    @property
    def org_id(self) -> UniqueEntityID:
        return self._org_id

    @property
    def lister_user_id(self) -> UniqueEntityID:
        return self._lister_user_id

    @property
    def status(self) -> PropertyStatus:
        return self._status

    @property
    def operation_type(self) -> OperationType:
        return self._operation_type

    @property
    def property_type(self) -> PropertyType:
        return self._property_type

    @property
    def title(self) -> str:
        return self._title

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def price(self) -> Money:
        return self._price

    @property
    def features(self) -> dict[str, Any]:
        """Copy of the physical features keyed by :data:`FEATURE_FIELDS`."""
        return dict(self._features)

    @property
    def bedrooms(self) -> int | None:
        return self._features["bedrooms"]

    @property
    def bathrooms(self) -> float | None:
        return self._features["bathrooms"]

    @property
    def parking_spots(self) -> int | None:
        return self._features["parking_spots"]

    @property
    def construction_m2(self) -> float | None:
        return self._features["construction_m2"]

    @property
    def land_m2(self) -> float | None:
        return self._features["land_m2"]

    @property
    def levels(self) -> int | None:
        return self._features["levels"]

    @property
    def year_built(self) -> int | None:
        return self._features["year_built"]

    @property
    def floor(self) -> int | None:
        return self._features["floor"]

    @property
    def address(self) -> Address:
        return self._address

    @property
    def location(self) -> GeoPoint | None:
        return self._location

    @property
    def amenities(self) -> list[str]:
        return list(self._amenities)

    @property
    def amenities_extra(self) -> str | None:
        return self._amenities_extra

    @property
    def tags(self) -> list[str]:
        return list(self._tags)

    @property
    def internal_id(self) -> str | None:
        return self._internal_id

    @property
    def normalized_address(self) -> dict[str, Any] | None:
        return dict(self._normalized_address) if self._normalized_address else None

    @property
    def normalized_status(self) -> NormalizedStatus | None:
        if self._normalized_address is None:
            return None
        return self._normalized_address["status"]

    @property
    def hoa_fee(self) -> Money | None:
        return self._hoa_fee

    @property
    def condition(self) -> Condition | None:
        return self._condition

    @property
    def furnished(self) -> bool | None:
        return self._furnished

    @property
    def pet_friendly(self) -> bool | None:
        return self._pet_friendly

    @property
    def orientation(self) -> Orientation | None:
        return self._orientation

    @property
    def rpp_verified(self) -> VerificationStatus:
        return self._rpp_verified

    @property
    def completeness_score(self) -> int:
        return self._completeness_score

    @property
    def trust_score(self) -> int:
        return self._trust_score

    @property
    def published_at(self) -> datetime | None:
        return self._published_at

    @property
    def sold_at(self) -> datetime | None:
        return self._sold_at

    @property
    def deleted_at(self) -> datetime | None:
        return self._deleted_at

    @property
    def is_deleted(self) -> bool:
        return self._deleted_at is not None

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def __repr__(self) -> str:
        return f"Property(id={self._id.value!r}, status={self._status.value!r}, title={self._title!r})"

    # ------------------------------------------------------------------
    # Content mutators
    # ------------------------------------------------------------------

    def rename(self, title: str) -> None:
        if not isinstance(title, str) or not title.strip():
            raise InvariantViolationError("Title required", details={"field": "title"})
        self._title = title.strip()
        self._touch()

    def retype(self, property_type: PropertyType | str) -> None:
        self._property_type = coerce_enum(PropertyType, property_type, "property_type")
        self._touch()

    def reprice(self, price: Money) -> None:
        if not isinstance(price, Money):
            raise InvalidValueError("price must be Money", details={"field": "price"})
        self._price = price
        self._touch()

    def describe(self, text: str | None) -> None:
        self._description = optional_text(text)
        self._touch()

    def set_features(self, **changes: Any) -> None:
        """Update physical features; omitted ones are kept, ``None`` clears one.

        Accepted keys are :data:`FEATURE_FIELDS`.

        Raises:
            InvalidValueError: Unknown key, negative value, or a non-integer
                where an integer count is expected.
        """
        unknown = set(changes) - set(FEATURE_FIELDS)
        if unknown:
            raise InvalidValueError(
                f"Unknown feature(s): {', '.join(sorted(unknown))}",
                details={"fields": sorted(unknown)},
            )
        validated = {name: _validate_feature(name, value) for name, value in changes.items()}
        self._features.update(validated)
        self._touch()

    def set_extras(
        self,
        *,
        hoa_fee: Money | None | _Unset = UNSET,
        condition: Condition | str | None | _Unset = UNSET,
        furnished: bool | None | _Unset = UNSET,
        pet_friendly: bool | None | _Unset = UNSET,
        orientation: Orientation | str | None | _Unset = UNSET,
    ) -> None:
        """Update listing extras; arguments left as :data:`UNSET` are kept."""
        new_condition = (
            coerce_enum(Condition, condition, "condition")
            if condition not in (UNSET, None)
            else condition
        )
        new_orientation = (
            coerce_enum(Orientation, orientation, "orientation")
            if orientation not in (UNSET, None)
            else orientation
        )
        if hoa_fee is not UNSET and hoa_fee is not None and not isinstance(hoa_fee, Money):
            raise InvalidValueError("hoa_fee must be Money", details={"field": "hoa_fee"})

        if hoa_fee is not UNSET:
            self._hoa_fee = hoa_fee
        if new_condition is not UNSET:
            self._condition = new_condition
        if furnished is not UNSET:
            self._furnished = furnished
        if pet_friendly is not UNSET:
            self._pet_friendly = pet_friendly
        if new_orientation is not UNSET:
            self._orientation = new_orientation
        self._touch()

    def relocate(self, address: Address, location: GeoPoint | None | _Unset = UNSET) -> None:
        """Replace the address (and optionally the geo point).

        The derived normalized address is discarded because it described the
        previous address.
        """
        if not isinstance(address, Address):
            raise InvalidValueError("address must be Address", details={"field": "address"})
        if location is not UNSET and location is not None and not isinstance(location, GeoPoint):
            raise InvalidValueError("location must be GeoPoint", details={"field": "location"})
        if address != self._address:
            self._normalized_address = None
        self._address = address
        if location is not UNSET:
            self._location = location
        self._touch()

    def set_amenities(
        self, amenities: Iterable[str] | None, extra: str | None | _Unset = UNSET
    ) -> None:
        self._amenities = _clean_labels(amenities)
        if extra is not UNSET:
            self._amenities_extra = optional_text(extra)
        self._touch()

    def set_tags(self, tags: Iterable[str] | None) -> None:
        self._tags = _clean_labels(tags)
        self._touch()

    def set_internal_id(self, internal_id: str | None) -> None:
        self._internal_id = optional_text(internal_id)
        self._touch()

    def set_rpp_status(self, status: VerificationStatus | str) -> None:
        self._rpp_verified = coerce_enum(VerificationStatus, status, "rpp_verified")
        self._touch()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def schedule_publication(self, at: datetime) -> None:
        """Set ``published_at`` ahead of publishing; status is unchanged."""
        self._published_at = _require_instant(at, "publication date")
        self._touch()

    def publish(
        self,
        *,
        kyc_verified: bool,
        now: datetime | None = None,
        require_score_gte: int | None = None,
        block_if_rpp_rejected: bool = True,
    ) -> None:
        """Publish the listing.

        Publishing an already-published listing re-runs the gate but keeps
        the existing ``published_at``.

        Raises:
            KycRequiredError: The lister is not KYC-verified.
            PublishBlockedError: Completeness is below the threshold.
            RppRejectedError: RPP is rejected and the gate is active.
            StatusTransitionError: The listing is sold.
        """
        assert_publishable(
            kyc_verified=kyc_verified,
            score=self._completeness_score,
            rpp_status=self._rpp_verified,
            min_score=require_score_gte,
            block_if_rpp_rejected=block_if_rpp_rejected,
        )
        if self._status is not PropertyStatus.PUBLISHED:
            assert_transition(self._status, PropertyStatus.PUBLISHED)
        if self._published_at is None:
            self._published_at = now or self._clock.now()
        self._status = PropertyStatus.PUBLISHED
        self._assert_invariants()
        self._touch()

    def pause(self) -> None:
        """Move a published listing back to draft; a no-op in any other status.

        ``published_at`` is retained as history.
        """
        if self._status is not PropertyStatus.PUBLISHED:
            return
        assert_transition(self._status, PropertyStatus.DRAFT)
        self._status = PropertyStatus.DRAFT
        self._assert_invariants()
        self._touch()

    def mark_sold(self, at: datetime) -> None:
        """Mark the listing sold at *at*.

        Only published listings can be sold; a draft must be published first.

        Raises:
            InvariantViolationError: *at* is not a datetime.
            StatusTransitionError: The current status cannot move to ``sold``.
        """
        sold_at = _require_instant(at, "sold_at")
        assert_transition(self._status, PropertyStatus.SOLD)
        self._sold_at = sold_at
        self._status = PropertyStatus.SOLD
        self._assert_invariants()
        self._touch()

    def soft_delete(self, at: datetime | None = None) -> None:
        """Stamp ``deleted_at``; status is neither checked nor changed."""
        self._deleted_at = at or self._clock.now()
        self._touch()

    def restore(self) -> None:
        self._deleted_at = None
        self._touch()

    def duplicate(
        self,
        new_id: UniqueEntityID | str,
        lister_user_id: UniqueEntityID | str | None = None,
        org_id: UniqueEntityID | str | None = None,
    ) -> Property:
        """Return an independent draft copy of this listing.

        The copy drops ``published_at``, ``sold_at``, ``deleted_at``,
        ``internal_id`` and the normalized address, gets a ``" (copy)"``
        title suffix, and carries the source's cached completeness score
        (callers should recompute it once assets are known).
        """
        now = self._clock.now()
        return Property(
            id=new_id,
            org_id=org_id or self._org_id,
            lister_user_id=lister_user_id or self._lister_user_id,
            status=PropertyStatus.DRAFT,
            operation_type=self._operation_type,
            property_type=self._property_type,
            title=f"{self._title} (copy)",
            description=self._description,
            price=self._price,
            address=self._address,
            clock=self._clock,
            location=self._location,
            amenities=list(self._amenities),
            amenities_extra=self._amenities_extra,
            tags=list(self._tags),
            internal_id=None,
            normalized_address=None,
            hoa_fee=self._hoa_fee,
            condition=self._condition,
            furnished=self._furnished,
            pet_friendly=self._pet_friendly,
            orientation=self._orientation,
            rpp_verified=self._rpp_verified,
            trust_score=self._trust_score,
            completeness_score=self._completeness_score,
            published_at=None,
            sold_at=None,
            deleted_at=None,
            created_at=now,
            updated_at=now,
            **self._features,
        )

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def completeness_inputs(
        self, media_count: int, has_rpp_doc: bool = False, document_count: int = 0
    ) -> CompletenessInputs:
        """Build the scoring inputs from current fields plus external asset counts."""
        return CompletenessInputs(
            has_title=bool(self._title),
            has_property_type=self._property_type is not None,
            price_amount=self._price.amount,
            has_city=bool(self._address.city),
            has_state=bool(self._address.state),
            has_description=bool(self._description),
            amenities_count=len(self._amenities),
            media_count=media_count,
            has_document=document_count > 0 or has_rpp_doc,
        )

    def compute_completeness(
        self, media_count: int, has_rpp_doc: bool = False, document_count: int = 0
    ) -> int:
        """Recompute, store and return the completeness score.

        Media and documents are not fields of the aggregate, so their counts
        are supplied by the caller.
        """
        score = compute_score(self.completeness_inputs(media_count, has_rpp_doc, document_count))
        self._completeness_score = score
        self._touch()
        return score

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _touch(self) -> None:
        self._updated_at = self._clock.now()

    def _assert_invariants(self) -> None:
        if self._status is PropertyStatus.PUBLISHED and self._published_at is None:
            raise InvariantViolationError("published requires published_at")
        if self._status is PropertyStatus.SOLD and self._sold_at is None:
            raise InvariantViolationError("sold requires sold_at")
