"""Application configuration."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./canteen.db"
    persistence_timeout_seconds: float = 5.0

    # Canteen
    canteen_name: str = "Canteen"

    # Auth
    auth_password: str = "canteen"
    session_ttl_hours: int = 24

    # Pickup slots
    slot_baseline_load_ratio: float = 0.5
    pickup_interval_minutes: int = 15
    pickup_prep_buffer_minutes: int = 10
    pickup_slot_count: int = 8

    # Collection codes
    otp_unique_attempts: int = 10

    # Startup data
    seed_file: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
