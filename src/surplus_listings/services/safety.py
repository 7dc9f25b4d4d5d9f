"""Food safety policy evaluation.

Pure decision logic: no persistence and no clock of its own. Callers pass the
evaluation instant so submission-time and read-time checks use the same code.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from surplus_listings.domain.safety import (
    ACCEPTABLE_HYGIENE,
    Accepted,
    Decision,
    ExpiredFood,
    FuturePreparation,
    InvalidHygiene,
    MissingFields,
    MissingHygiene,
    Rejection,
    SafetyWindows,
)


@dataclass(frozen=True)
class SafetyPolicy:
    """Evaluates listing submissions against per-category safety windows."""

    windows: SafetyWindows

    def window_hours(self, category: str) -> int:
        """Return the safety window for a category in hours."""
        return self.windows.for_category(category)

    def compute_expiry(
        self, prepared_at: datetime | None, category: str | None
    ) -> datetime:
        """Return the instant the category's safety window ends."""
        if prepared_at is None or not category:
            raise ValueError("Both prepared_at and category are required")
        if not isinstance(prepared_at, datetime):
            raise TypeError(f"prepared_at must be a datetime, got {prepared_at!r}")
        return prepared_at + timedelta(hours=self.window_hours(category))

    def is_within_safety_window(
        self, prepared_at: datetime, category: str, now: datetime
    ) -> bool:
        """Return true while ``now`` is strictly before the expiry time."""
        return self.compute_expiry(prepared_at, category) > now

    def check_safety_window(
        self, prepared_at: datetime | None, category: str | None, now: datetime
    ) -> Rejection | None:
        """First stage: field presence, temporal sanity and the window itself."""
        missing = tuple(
            name
            for name, value in (("preparedAt", prepared_at), ("foodType", category))
            if not value
        )
        if missing:
            return MissingFields(missing_fields=missing)
        if prepared_at > now:
            return FuturePreparation(prepared_at=prepared_at, current_time=now)
        if not self.is_within_safety_window(prepared_at, category, now):
            return ExpiredFood(
                food_type=category,
                prepared_at=prepared_at,
                window_hours=self.window_hours(category),
                current_time=now,
            )
        return None

    def check_hygiene(self, hygiene: str | None) -> Rejection | None:
        """Second stage: hygiene grade membership."""
        if not hygiene:
            return MissingHygiene()
        if hygiene not in ACCEPTABLE_HYGIENE:
            return InvalidHygiene(provided_status=hygiene)
        return None

    def evaluate_submission(
        self,
        prepared_at: datetime | None,
        category: str | None,
        hygiene: str | None,
        now: datetime,
    ) -> Decision:
        """Run both stages in order; the first rejection wins."""
        rejection = self.check_safety_window(prepared_at, category, now)
        if rejection is None:
            rejection = self.check_hygiene(hygiene)
        if rejection is not None:
            return rejection
        return Accepted(expiry_time=self.compute_expiry(prepared_at, category))

    def is_safe(
        self,
        prepared_at: datetime,
        category: str,
        expiry_time: datetime,
        hygiene: str,
        now: datetime,
    ) -> bool:
        """Re-check a constructed record: derived expiry, freshness and hygiene."""
        return (
            expiry_time == self.compute_expiry(prepared_at, category)
            and expiry_time > now
            and hygiene in ACCEPTABLE_HYGIENE
        )
