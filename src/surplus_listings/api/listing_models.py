"""Pydantic models for listing request bodies."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from surplus_listings.domain.listings import ListingSubmission


class ListingCreateRequest(BaseModel):
    """Listing submission payload.

    Every field is optional here so absent fields reach the safety checks and
    are reported with their stable rejection codes.
    """

    model_config = ConfigDict(populate_by_name=True)

    food_type: str | None = Field(default=None, alias="foodType")
    quantity: int | None = None
    prepared_at: datetime | None = Field(default=None, alias="preparedAt")
    hygiene_status: str | None = Field(default=None, alias="hygieneStatus")

    def to_submission(self) -> ListingSubmission:
        """Return the domain submission."""
        return ListingSubmission(
            food_type=self.food_type,
            quantity=self.quantity,
            prepared_at=self.prepared_at,
            hygiene_status=self.hygiene_status,
        )


class ListingUpdateRequest(BaseModel):
    """Status update payload."""

    status: str | None = None
