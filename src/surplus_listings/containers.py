"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from surplus_listings.adapters.supabase_listing_repository import (
    SupabaseListingRepository,
)
from surplus_listings.config import Settings, build_safety_windows
from surplus_listings.services.listings import ListingService
from surplus_listings.services.safety import SafetyPolicy


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    safety_policy: SafetyPolicy
    listing_service: ListingService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    safety_policy = SafetyPolicy(build_safety_windows(resolved_settings))
    listing_service = ListingService(
        policy=safety_policy,
        repository=SupabaseListingRepository(supabase_client),
        timeout_seconds=resolved_settings.persistence_timeout_seconds,
        degrade_on_timeout=resolved_settings.degrade_on_timeout,
    )
    return AppContainer(
        settings=resolved_settings,
        safety_policy=safety_policy,
        listing_service=listing_service,
    )
