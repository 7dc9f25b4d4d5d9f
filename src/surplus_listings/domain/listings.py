"""Domain models for surplus food listings."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TypeVar

from surplus_listings.domain.errors import ListingValidationError

E = TypeVar("E", bound=StrEnum)


class FoodCategory(StrEnum):
    """Food categories with a configured safety window."""

    PREPARED_MEAL = "prepared_meal"
    FRESH_PRODUCE = "fresh_produce"
    PACKAGED_FOOD = "packaged_food"
    BAKERY_ITEM = "bakery_item"
    DAIRY_PRODUCT = "dairy_product"


class HygieneGrade(StrEnum):
    """Accepted hygiene grades. Unordered."""

    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"


class ListingStatus(StrEnum):
    """Listing lifecycle states."""

    ACTIVE = "active"
    EXPIRED = "expired"
    CLAIMED = "claimed"


VALID_STATUSES = tuple(status.value for status in ListingStatus)


@dataclass(frozen=True)
class ListingSubmission:
    """Client submission parsed from the request body, not yet evaluated."""

    food_type: str | None
    quantity: int | None
    prepared_at: datetime | None
    hygiene_status: str | None

    def __post_init__(self) -> None:
        # Naive preparation times are read as UTC.
        if self.prepared_at is not None and self.prepared_at.tzinfo is None:
            object.__setattr__(
                self, "prepared_at", self.prepared_at.replace(tzinfo=UTC)
            )


@dataclass(frozen=True)
class NewListing:
    """Listing ready to be inserted.

    Construction enforces the stored-record constraints: enum membership,
    quantity of at least one and a preparation time no later than creation.
    """

    food_type: FoodCategory
    quantity: int
    prepared_at: datetime
    expiry_time: datetime
    hygiene_status: HygieneGrade
    created_at: datetime
    status: ListingStatus = ListingStatus.ACTIVE

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "food_type", _coerce(FoodCategory, self.food_type, "foodType")
        )
        object.__setattr__(
            self,
            "hygiene_status",
            _coerce(HygieneGrade, self.hygiene_status, "hygieneStatus"),
        )
        object.__setattr__(
            self, "status", _coerce(ListingStatus, self.status, "status")
        )
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ListingValidationError(
                "quantity", "Quantity must be an integer", self.quantity
            )
        if self.quantity < 1:
            raise ListingValidationError(
                "quantity", "Quantity must be at least 1", self.quantity
            )
        if self.prepared_at > self.created_at:
            raise ListingValidationError(
                "preparedAt",
                "Preparation time cannot be in the future",
                self.prepared_at.isoformat(),
            )


@dataclass(frozen=True)
class Listing:
    """Persisted listing record."""

    id: str
    food_type: FoodCategory
    quantity: int
    prepared_at: datetime
    expiry_time: datetime
    hygiene_status: HygieneGrade
    status: ListingStatus
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Return true once the safety window has elapsed."""
        return now > self.expiry_time


@dataclass(frozen=True)
class DeletedListing:
    """Summary echoed back after a hard delete."""

    id: str
    food_type: FoodCategory
    quantity: int
    status: ListingStatus


@dataclass(frozen=True)
class InvalidStatus:
    """Outcome for a status update outside the known states."""

    provided_status: str
    valid_statuses: tuple[str, ...] = VALID_STATUSES


@dataclass(frozen=True)
class CreatedListing:
    """Result of a successful creation.

    ``degraded`` is set when persistence timed out and the listing was
    synthesized instead of stored.
    """

    listing: Listing
    degraded: bool = False


@dataclass(frozen=True)
class ActiveListings:
    """Active listings after a sweep, with the number of records expired."""

    listings: list[Listing]
    expired_marked: int
    timestamp: datetime
    degraded: bool = False


def _coerce(enum_type: type[E], value: object, field_name: str) -> E:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ListingValidationError(
            field_name, f"{field_name} must be one of: {allowed}", value
        ) from None
