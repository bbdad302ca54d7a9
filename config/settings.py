"""
Configuration settings for the Kitchen Timer application.
Supports both real-time (asyncio) and manually driven tick modes.
"""

from pydantic_settings import BaseSettings
from typing import Optional, Literal
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application settings
    app_name: str = "Kitchen Timer"
    app_version: str = "1.0.0"

    # Server settings
    host: str = "0.0.0.0"
    port: int = 5000

    # Tick producer: "asyncio" (1 Hz on the event loop) or "manual" (tests)
    tick_mode: Literal["asyncio", "manual"] = "asyncio"
    tick_interval: float = 1.0

    # Live timers
    max_live_timers: int = 50

    # In-app transient messages
    message_maxsize: int = 100
    message_ttl: int = 10

    # Notification capability
    notification_permission: Literal["default", "granted", "denied"] = "default"
    grant_on_request: bool = True
    request_permission_on_start: bool = True
    notification_history: int = 50

    # Completion sound asset, loaded once at startup
    sound_file: Optional[str] = None

    # Recipe search
    fuzzy_threshold: int = 70

    # Data paths
    data_dir: str = "data"
    recipes_file: str = "recipes.json"
    saved_timers_file: Optional[str] = None

    class Config:
        env_file = ".env"
        env_prefix = "RECIPE_"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# User-facing message templates
MESSAGE_TEMPLATES = {
    "completed_title": "Timer Completed",
    "completed_body": "{title} has finished!",
    "invalid_time": "Please enter a valid time",
    "notifications_enabled": "Notifications enabled for timers",
    "timer_created": "Timer created successfully",
    "timer_deleted": "Timer deleted successfully",
    "name_required": "Please enter a timer name",
    "duration_required": "Timer duration is required",
    "recipe_fields_required": "Title, description, ingredients and steps are required",
    "recipe_invalid_numbers": "Times and servings cannot be negative",
    "recipe_created": "Recipe created successfully",
    "recipe_deleted": "Recipe deleted successfully",
    "list_name_required": "Shopping list name is required",
    "list_created": "Shopping list created successfully",
    "list_deleted": "Shopping list deleted successfully",
    "ingredients_added": "Ingredients added to shopping list successfully"
}
