"""Listing API endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from surplus_listings.api.listing_models import (
    ListingCreateRequest,  # noqa: TC001
    ListingUpdateRequest,  # noqa: TC001
)
from surplus_listings.domain.listings import CreatedListing, InvalidStatus, Listing

if TYPE_CHECKING:
    from surplus_listings.containers import AppContainer
    from surplus_listings.domain.safety import Rejection

router = APIRouter(prefix="/api/listings", tags=["listings"])

DEGRADED_NOTE = "Database connection unavailable - listing was not persisted"


@router.post("")
async def create_listing(
    request: Request, payload: ListingCreateRequest | None = None
) -> JSONResponse:
    """Create a listing after the safety checks pass."""
    container: AppContainer = request.app.state.container
    # An empty body is reported by the safety checks as missing fields.
    submission = (payload or ListingCreateRequest()).to_submission()
    outcome = await container.listing_service.create(submission)
    if not isinstance(outcome, CreatedListing):
        return _rejection_response(outcome)
    body: dict[str, object] = {
        "success": True,
        "data": _serialize_listing(outcome.listing),
        "message": "Listing created successfully",
    }
    if outcome.degraded:
        body["message"] = "Listing accepted but not saved"
        body["degraded"] = True
        body["note"] = DEGRADED_NOTE
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=body)


@router.get("")
async def list_listings(request: Request) -> JSONResponse:
    """Expire stale listings, then return the active ones."""
    container: AppContainer = request.app.state.container
    result = await container.listing_service.list_active()
    meta: dict[str, object] = {
        "totalActive": len(result.listings),
        "expiredMarked": result.expired_marked,
        "timestamp": result.timestamp.isoformat(),
    }
    body: dict[str, object] = {
        "success": True,
        "data": [_serialize_listing(listing) for listing in result.listings],
        "message": f"Retrieved {len(result.listings)} active listings",
        "meta": meta,
    }
    if result.degraded:
        meta["degraded"] = True
        body["degraded"] = True
        body["note"] = "Database connection unavailable - returning empty feed"
    return JSONResponse(content=body)


@router.get("/{listing_id}")
async def get_listing(listing_id: str, request: Request) -> JSONResponse:
    """Return a listing, expiring it first if its window has passed."""
    container: AppContainer = request.app.state.container
    listing = await container.listing_service.reconcile_one(listing_id)
    if listing is None:
        return _not_found(listing_id)
    return JSONResponse(
        content={
            "success": True,
            "data": _serialize_listing(listing),
            "message": "Listing retrieved successfully",
        }
    )


@router.put("/{listing_id}")
async def update_listing(
    listing_id: str, payload: ListingUpdateRequest, request: Request
) -> JSONResponse:
    """Update a listing's status, e.g. to mark it claimed."""
    container: AppContainer = request.app.state.container
    outcome = await container.listing_service.set_status(listing_id, payload.status)
    if outcome is None:
        return _not_found(listing_id)
    if isinstance(outcome, InvalidStatus):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "error": "Invalid status",
                "details": {
                    "providedStatus": outcome.provided_status,
                    "validStatuses": list(outcome.valid_statuses),
                    "message": (
                        "Status must be one of: "
                        f"{', '.join(outcome.valid_statuses)}"
                    ),
                },
            },
        )
    return JSONResponse(
        content={
            "success": True,
            "data": _serialize_listing(outcome),
            "message": "Listing updated successfully",
        }
    )


@router.delete("/{listing_id}")
async def delete_listing(listing_id: str, request: Request) -> JSONResponse:
    """Permanently remove a listing."""
    container: AppContainer = request.app.state.container
    deleted = await container.listing_service.delete(listing_id)
    if deleted is None:
        return _not_found(listing_id)
    return JSONResponse(
        content={
            "success": True,
            "data": {
                "deletedListing": {
                    "id": deleted.id,
                    "foodType": deleted.food_type.value,
                    "quantity": deleted.quantity,
                    "status": deleted.status.value,
                }
            },
            "message": "Listing deleted successfully",
        }
    )


def _serialize_listing(listing: Listing) -> dict[str, object]:
    return {
        "id": listing.id,
        "foodType": listing.food_type.value,
        "quantity": listing.quantity,
        "preparedAt": listing.prepared_at.isoformat(),
        "expiryTime": listing.expiry_time.isoformat(),
        "hygieneStatus": listing.hygiene_status.value,
        "status": listing.status.value,
        "createdAt": listing.created_at.isoformat(),
    }


def _rejection_response(rejection: Rejection) -> JSONResponse:
    return JSONResponse(
        status_code=rejection.http_status,
        content={
            "success": False,
            "error": rejection.message,
            "code": rejection.code,
            "httpStatus": rejection.http_status,
            "details": rejection.details(),
        },
    )


def _not_found(listing_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "success": False,
            "error": "Listing not found",
            "details": {
                "listingId": listing_id,
                "message": "No listing found with the provided ID",
            },
            "timestamp": datetime.now(tz=UTC).isoformat(),
        },
    )
