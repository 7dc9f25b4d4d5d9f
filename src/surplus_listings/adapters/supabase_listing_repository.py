"""Supabase repository for listings."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from surplus_listings.domain.errors import ListingValidationError
from surplus_listings.domain.listings import (
    FoodCategory,
    HygieneGrade,
    Listing,
    ListingStatus,
    NewListing,
)
from surplus_listings.services.listings import ListingRepository

_TABLE = "listings"
_COLUMNS = (
    "id, food_type, quantity, prepared_at, expiry_time, hygiene_status, status, "
    "created_at"
)


@dataclass
class SupabaseListingRepository(ListingRepository):
    """Supabase implementation for listings."""

    client: Client

    def create_listing(self, listing: NewListing) -> Listing:
        """Insert a listing row and return it."""
        response = (
            self.client.table(_TABLE)
            .insert(
                {
                    "food_type": listing.food_type.value,
                    "quantity": listing.quantity,
                    "prepared_at": listing.prepared_at.isoformat(),
                    "expiry_time": listing.expiry_time.isoformat(),
                    "hygiene_status": listing.hygiene_status.value,
                    "status": listing.status.value,
                    "created_at": listing.created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create listing")
        return _parse_listing(response.data[0])

    def get_listing(self, listing_id: str) -> Listing | None:
        """Return a listing by id."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("id", _validate_id(listing_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_listing(response.data[0])

    def list_by_status(self, status: ListingStatus) -> list[Listing]:
        """Return listings in a status, newest first."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("status", status.value)
            .order("created_at", desc=True)
            .execute()
        )
        listings = [_parse_listing(row) for row in response.data or []]
        # Equal creation times fall back to id, newest first.
        listings.sort(key=lambda item: (item.created_at, item.id), reverse=True)
        return listings

    def expire_stale(self, now: datetime) -> int:
        """Expire active listings past their expiry time; return the count."""
        response = (
            self.client.table(_TABLE)
            .update({"status": ListingStatus.EXPIRED.value})
            .eq("status", ListingStatus.ACTIVE.value)
            .lt("expiry_time", now.isoformat())
            .execute()
        )
        return len(response.data or [])

    def expire_if_active(self, listing_id: str, now: datetime) -> Listing | None:
        """Expire one listing if it is still active and past its expiry."""
        response = (
            self.client.table(_TABLE)
            .update({"status": ListingStatus.EXPIRED.value})
            .eq("id", _validate_id(listing_id))
            .eq("status", ListingStatus.ACTIVE.value)
            .lt("expiry_time", now.isoformat())
            .execute()
        )
        if not response.data:
            return None
        return _parse_listing(response.data[0])

    def update_status(
        self, listing_id: str, status: ListingStatus
    ) -> Listing | None:
        """Update one listing's status."""
        response = (
            self.client.table(_TABLE)
            .update({"status": status.value})
            .eq("id", _validate_id(listing_id))
            .execute()
        )
        if not response.data:
            return None
        return _parse_listing(response.data[0])

    def delete_listing(self, listing_id: str) -> Listing | None:
        """Delete one listing and return the removed row."""
        response = (
            self.client.table(_TABLE)
            .delete()
            .eq("id", _validate_id(listing_id))
            .execute()
        )
        if not response.data:
            return None
        return _parse_listing(response.data[0])


def _validate_id(listing_id: str) -> str:
    try:
        return str(UUID(listing_id))
    except ValueError:
        raise ListingValidationError(
            "id", "Invalid id format for field 'id'", listing_id
        ) from None


def _parse_listing(row: dict[str, object]) -> Listing:
    return Listing(
        id=str(row["id"]),
        food_type=FoodCategory(row["food_type"]),
        quantity=int(row["quantity"]),
        prepared_at=datetime.fromisoformat(str(row["prepared_at"])),
        expiry_time=datetime.fromisoformat(str(row["expiry_time"])),
        hygiene_status=HygieneGrade(row["hygiene_status"]),
        status=ListingStatus(row["status"]),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )
