"""Safety policy configuration and decision outcomes."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import ClassVar

from surplus_listings.domain.listings import HygieneGrade

DEFAULT_WINDOW_HOURS = 4

ACCEPTABLE_HYGIENE = tuple(grade.value for grade in HygieneGrade)


@dataclass(frozen=True, eq=False)
class SafetyWindows:
    """Read-only mapping of food category to safety window in hours."""

    hours: Mapping[str, int] = field(default_factory=dict)
    default_hours: int = DEFAULT_WINDOW_HOURS

    def __post_init__(self) -> None:
        frozen: dict[str, int] = {}
        for category, value in self.hours.items():
            if value <= 0:
                raise ValueError(
                    f"Safety window for {category} must be positive, got {value}"
                )
            frozen[str(category)] = value
        if self.default_hours <= 0:
            raise ValueError("Default safety window must be positive")
        object.__setattr__(self, "hours", MappingProxyType(frozen))

    def for_category(self, category: str) -> int:
        """Return the window for a category, falling back to the default."""
        return self.hours.get(str(category), self.default_hours)


@dataclass(frozen=True)
class Accepted:
    """Submission passed every safety check."""

    expiry_time: datetime


@dataclass(frozen=True)
class MissingFields:
    """Required submission fields were absent."""

    missing_fields: tuple[str, ...]

    code: ClassVar[str] = "SAFETY_004"
    http_status: ClassVar[int] = 400
    message: ClassVar[str] = "Missing required fields for safety validation"

    def details(self) -> dict[str, object]:
        return {"missingFields": list(self.missing_fields)}


@dataclass(frozen=True)
class FuturePreparation:
    """Preparation time lies after the evaluation instant."""

    prepared_at: datetime
    current_time: datetime

    code: ClassVar[str] = "SAFETY_003"
    http_status: ClassVar[int] = 400
    message: ClassVar[str] = "Preparation time cannot be in the future"

    def details(self) -> dict[str, object]:
        return {
            "preparedAt": self.prepared_at.isoformat(),
            "currentTime": self.current_time.isoformat(),
        }


@dataclass(frozen=True)
class ExpiredFood:
    """The safety window for the category has already elapsed."""

    food_type: str
    prepared_at: datetime
    window_hours: int
    current_time: datetime

    code: ClassVar[str] = "SAFETY_001"
    http_status: ClassVar[int] = 422
    message: ClassVar[str] = "Food has exceeded safety window"

    def details(self) -> dict[str, object]:
        prepared = self.prepared_at.isoformat()
        return {
            "foodType": self.food_type,
            "preparedAt": prepared,
            "safetyWindowHours": self.window_hours,
            "currentTime": self.current_time.isoformat(),
            "message": (
                f"Food prepared at {prepared} has exceeded the "
                f"{self.window_hours}-hour safety window for {self.food_type}"
            ),
        }


@dataclass(frozen=True)
class MissingHygiene:
    """Hygiene grade was not supplied."""

    code: ClassVar[str] = "SAFETY_004"
    http_status: ClassVar[int] = 400
    message: ClassVar[str] = "Missing required field: hygieneStatus"

    def details(self) -> dict[str, object]:
        return {
            "missingFields": ["hygieneStatus"],
            "acceptableValues": list(ACCEPTABLE_HYGIENE),
        }


@dataclass(frozen=True)
class InvalidHygiene:
    """Hygiene grade is not one of the accepted values."""

    provided_status: str

    code: ClassVar[str] = "SAFETY_002"
    http_status: ClassVar[int] = 422
    message: ClassVar[str] = "Hygiene status does not meet minimum requirements"

    def details(self) -> dict[str, object]:
        return {
            "providedStatus": self.provided_status,
            "acceptableStatuses": list(ACCEPTABLE_HYGIENE),
            "message": (
                f"Hygiene status must be one of: {', '.join(ACCEPTABLE_HYGIENE)}"
            ),
        }


Rejection = (
    MissingFields | FuturePreparation | ExpiredFood | MissingHygiene | InvalidHygiene
)
Decision = Accepted | Rejection
