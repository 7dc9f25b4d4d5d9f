"""Listing lifecycle service: policy-gated creation and expiry reconciliation."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol, TypeVar

from surplus_listings.domain.errors import PersistenceTimeoutError
from surplus_listings.domain.listings import (
    VALID_STATUSES,
    ActiveListings,
    CreatedListing,
    DeletedListing,
    InvalidStatus,
    Listing,
    ListingStatus,
    ListingSubmission,
    NewListing,
)
from surplus_listings.domain.safety import (
    Accepted,
    ExpiredFood,
    MissingFields,
    Rejection,
)
from surplus_listings.services.safety import SafetyPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

SLOW_OPERATION_MS = 1000


class ListingRepository(Protocol):
    """Persistence interface for listings."""

    def create_listing(self, listing: NewListing) -> Listing:
        """Insert a listing and return the stored record."""

    def get_listing(self, listing_id: str) -> Listing | None:
        """Return a listing by id, if present."""

    def list_by_status(self, status: ListingStatus) -> list[Listing]:
        """Return listings in a status, newest first."""

    def expire_stale(self, now: datetime) -> int:
        """Mark active listings whose expiry is before ``now``; return the count."""

    def expire_if_active(self, listing_id: str, now: datetime) -> Listing | None:
        """Expire one listing only if it is still active and past ``now``.

        Returns the updated record, or None when no row matched.
        """

    def update_status(
        self, listing_id: str, status: ListingStatus
    ) -> Listing | None:
        """Set the status of one listing and return the updated record."""

    def delete_listing(self, listing_id: str) -> Listing | None:
        """Delete a listing and return the removed record."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ListingService:
    """Owns listing status transitions and applies the safety policy."""

    policy: SafetyPolicy
    repository: ListingRepository
    timeout_seconds: float = 5.0
    degrade_on_timeout: bool = False
    clock: Callable[[], datetime] = field(default=_utc_now)

    async def create(
        self, submission: ListingSubmission
    ) -> CreatedListing | Rejection:
        """Evaluate a submission and persist it when it is safe."""
        now = self.clock()
        decision = self.policy.evaluate_submission(
            submission.prepared_at,
            submission.food_type,
            submission.hygiene_status,
            now,
        )
        if not isinstance(decision, Accepted):
            _log_rejection(decision)
            return decision
        if submission.quantity is None:
            rejection = MissingFields(missing_fields=("quantity",))
            _log_rejection(rejection)
            return rejection

        new_listing = NewListing(
            food_type=submission.food_type,
            quantity=submission.quantity,
            prepared_at=submission.prepared_at,
            expiry_time=decision.expiry_time,
            hygiene_status=submission.hygiene_status,
            created_at=now,
        )
        if not self.policy.is_safe(
            new_listing.prepared_at,
            new_listing.food_type,
            new_listing.expiry_time,
            new_listing.hygiene_status,
            now,
        ):
            logger.error(
                "Listing failed safety check during creation",
                extra={
                    "food_type": new_listing.food_type.value,
                    "expiry_time": new_listing.expiry_time.isoformat(),
                },
            )
            return ExpiredFood(
                food_type=new_listing.food_type.value,
                prepared_at=new_listing.prepared_at,
                window_hours=self.policy.window_hours(new_listing.food_type),
                current_time=now,
            )

        try:
            listing = await self._with_timeout(
                "create_listing",
                self._run(
                    "create_listing", self.repository.create_listing, new_listing
                ),
            )
        except PersistenceTimeoutError:
            if not self.degrade_on_timeout:
                raise
            logger.warning(
                "Persistence timed out; returning unsaved listing",
                extra={"food_type": new_listing.food_type.value},
            )
            return CreatedListing(listing=_unsaved_listing(new_listing), degraded=True)

        logger.info(
            "Listing created",
            extra={
                "listing_id": listing.id,
                "food_type": listing.food_type.value,
                "expiry_time": listing.expiry_time.isoformat(),
            },
        )
        return CreatedListing(listing=listing)

    async def reconcile_one(self, listing_id: str) -> Listing | None:
        """Return a listing, expiring it first if its window has elapsed."""
        now = self.clock()
        listing = await self._run(
            "get_listing", self.repository.get_listing, listing_id
        )
        if listing is None:
            return None
        if listing.status is not ListingStatus.ACTIVE or not listing.is_expired(now):
            return listing
        expired = await self._run(
            "expire_if_active", self.repository.expire_if_active, listing_id, now
        )
        if expired is not None:
            logger.info("Listing %s marked as expired", listing_id)
            return expired
        # The row changed or vanished since the read.
        return await self._run("get_listing", self.repository.get_listing, listing_id)

    async def sweep_expired(self, now: datetime | None = None) -> int:
        """Expire every stale active listing and return how many changed."""
        resolved_now = now or self.clock()
        count = await self._run(
            "expire_stale", self.repository.expire_stale, resolved_now
        )
        if count:
            logger.info("Marked %d listings as expired", count)
        return count

    async def list_active(self) -> ActiveListings:
        """Sweep, then return active listings newest first."""
        now = self.clock()

        async def sweep_then_list() -> tuple[int, list[Listing]]:
            expired = await self.sweep_expired(now)
            listings = await self._run(
                "list_by_status",
                self.repository.list_by_status,
                ListingStatus.ACTIVE,
            )
            return expired, listings

        try:
            expired, listings = await self._with_timeout(
                "list_active", sweep_then_list()
            )
        except PersistenceTimeoutError:
            if not self.degrade_on_timeout:
                raise
            logger.warning("Persistence timed out; returning empty listing feed")
            return ActiveListings(
                listings=[], expired_marked=0, timestamp=now, degraded=True
            )
        return ActiveListings(listings=listings, expired_marked=expired, timestamp=now)

    async def set_status(
        self, listing_id: str, status: str | None
    ) -> Listing | InvalidStatus | None:
        """Set a listing's status. Any known status is allowed from any state."""
        listing = await self._run(
            "get_listing", self.repository.get_listing, listing_id
        )
        if listing is None:
            return None
        if not status:
            return listing
        if status not in VALID_STATUSES:
            return InvalidStatus(provided_status=status)
        # TODO: decide whether claimed/expired listings may return to active;
        # any transition is accepted until that rule exists.
        updated = await self._run(
            "update_status",
            self.repository.update_status,
            listing_id,
            ListingStatus(status),
        )
        logger.info(
            "Listing status updated",
            extra={
                "listing_id": listing_id,
                "previous_status": listing.status.value,
                "new_status": status,
            },
        )
        return updated

    async def delete(self, listing_id: str) -> DeletedListing | None:
        """Hard-delete a listing and return a summary of what was removed."""
        removed = await self._run(
            "delete_listing", self.repository.delete_listing, listing_id
        )
        if removed is None:
            return None
        logger.info(
            "Listing deleted",
            extra={"listing_id": removed.id, "food_type": removed.food_type.value},
        )
        return DeletedListing(
            id=removed.id,
            food_type=removed.food_type,
            quantity=removed.quantity,
            status=removed.status,
        )

    async def _with_timeout(self, operation: str, work: Awaitable[T]) -> T:
        # The worker thread keeps running after a timeout; only the await is dropped.
        try:
            return await asyncio.wait_for(work, timeout=self.timeout_seconds)
        except TimeoutError:
            raise PersistenceTimeoutError(operation, self.timeout_seconds) from None

    async def _run(self, operation: str, func: Callable[..., T], *args: object) -> T:
        started = time.perf_counter()
        try:
            result = await asyncio.to_thread(func, *args)
        except Exception:
            logger.exception(
                "Database operation failed: %s",
                operation,
                extra={"duration_ms": _elapsed_ms(started)},
            )
            raise
        duration_ms = _elapsed_ms(started)
        logger.debug(
            "Database operation completed: %s",
            operation,
            extra={
                "duration_ms": duration_ms,
                "performance": "SLOW" if duration_ms > SLOW_OPERATION_MS else "NORMAL",
            },
        )
        return result


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _log_rejection(rejection: Rejection) -> None:
    logger.warning(
        "Safety validation failed: %s",
        rejection.code,
        extra={"violation": type(rejection).__name__, "details": rejection.details()},
    )


def _unsaved_listing(new_listing: NewListing) -> Listing:
    created_ms = int(new_listing.created_at.timestamp() * 1000)
    return Listing(
        id=f"mock_{created_ms}",
        food_type=new_listing.food_type,
        quantity=new_listing.quantity,
        prepared_at=new_listing.prepared_at,
        expiry_time=new_listing.expiry_time,
        hygiene_status=new_listing.hygiene_status,
        status=new_listing.status,
        created_at=new_listing.created_at,
    )
