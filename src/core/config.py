"""Configuration management for ecodispensa."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote store configuration
    sqlite_db_path: str = Field(default="data/ecodispensa.db", description="SQLite database file path")

    # OpenRouter Configuration
    openrouter_api_key: str | None = Field(default=None, description="OpenRouter API key for LLM access")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Session Configuration
    session_secret: str | None = Field(default=None, description="Secret key used to sign session tokens")
    session_max_age_seconds: int = Field(
        default=7 * 24 * 3600, description="Lifetime of a signed session token (in seconds)"
    )

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value

    # AI Model Configuration
    model_id: str = Field(
        default="google/gemini-2.5-flash",
        description="Model ID for OpenRouter (must accept image input for product recognition)",
    )
    model_provider: str | None = Field(default=None, description="Restrict OpenRouter routing to one provider")

    # Recipe Throttling
    recipe_cooldown_seconds: int = Field(
        default=30, description="Lockout period after the recipe service reports too many requests (in seconds)"
    )

    # Expiry Notifications
    expiry_warning_days: int = Field(
        default=3, description="Items expiring within this many days are included in the daily notification"
    )

    # Consumption
    persist_consumption: bool = Field(
        default=False, description="Write pantry quantities back to the store after cooking a recipe"
    )


# Application Constants
class Constants:
    """Application-wide constants."""

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 200  # Page size used when loading whole collections

    # Quantities
    QUANTITY_DECIMALS: int = 2  # Pantry quantities are rounded to this many decimals
    UNIT_SCALE: int = 1000  # g per kg, ml per l

    # Auth
    MIN_PASSWORD_LENGTH: int = 6
    SESSION_TOKEN_SALT: str = "ecodispensa-session"

    # Move defaults
    DEFAULT_MOVE_QUANTITY: float = 1.0

    # Notifications
    EXPIRY_NOTIFICATION_TITLE: str = "EcoDispensa - Anti Spreco"
    EXPIRY_NOTIFICATION_MAX_NAMES: int = 2


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
