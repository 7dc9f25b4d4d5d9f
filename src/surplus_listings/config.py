"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from surplus_listings.domain.listings import FoodCategory
from surplus_listings.domain.safety import SafetyWindows

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    environment: str = _ENVIRONMENT
    log_level: str = "INFO"
    enable_request_logging: bool = False
    persistence_timeout_seconds: float = Field(default=5.0, gt=0)
    degrade_on_timeout: bool = False
    prepared_meal_safety_window: int = Field(default=4, gt=0)
    fresh_produce_safety_window: int = Field(default=24, gt=0)
    packaged_food_safety_window: int = Field(default=720, gt=0)
    bakery_item_safety_window: int = Field(default=12, gt=0)
    dairy_product_safety_window: int = Field(default=168, gt=0)

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def build_safety_windows(settings: Settings) -> SafetyWindows:
    """Freeze the per-category safety windows from settings."""
    return SafetyWindows(
        hours={
            category.value: getattr(settings, f"{category.value}_safety_window")
            for category in FoodCategory
        }
    )
