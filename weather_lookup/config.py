from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent  # weather-lookup/


class Settings(BaseSettings):
    """Application settings with validation.

    The API key is required and will raise a validation error if missing.
    Secrets must be provided via environment variables or .env file.
    """

    # Weather API
    weather_api_key: str = Field(min_length=1, description="OpenWeatherMap API key")
    api_base_url: str = Field(default="https://api.openweathermap.org", description="Geocoding/weather API base URL")
    icon_base_url: str = Field(default="https://openweathermap.org/img/wn", description="Weather icon base URL")
    request_timeout: float = Field(gt=0, default=10.0, description="HTTP timeout in seconds")

    # Application-private storage
    data_dir: Path = Field(default=Path.home() / ".weather_lookup", description="Application data directory")
    icon_cache_dir_name: str = Field(min_length=1, default="ImageCache", description="Icon cache subdirectory")
    preferences_file: str = Field(min_length=1, default="preferences.json", description="Preference slot file")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_dir: Path | None = Field(default=None, description="Directory for JSON log files")

    model_config = SettingsConfigDict(
        env_file=Path(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    @property
    def icon_cache_dir(self) -> Path:
        """Directory holding one file per cached icon code."""
        return self.data_dir / self.icon_cache_dir_name

    @property
    def preferences_path(self) -> Path:
        """File backing the persistent key-value slot."""
        return self.data_dir / self.preferences_file

    @field_validator("api_base_url", "icon_base_url", mode="after")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base URLs are http(s) and carry no trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base URLs must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log_level names a standard logging level."""
        v = v.strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"log_level must be a standard logging level, got {v!r}")
        return v


# Singleton settings instance (cached for performance)
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get singleton Settings instance for the application entry point.

    Components never call this themselves; the entry point passes the values
    they need explicitly.

    Returns:
        Cached Settings instance
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
