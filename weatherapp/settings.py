from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized configuration.

    Loaded from:
    - environment variables (prefixed with WEATHERAPP_)
    - .env file (if present)

    Open-Meteo needs no API key, so every field has a working default.
    """
    model_config = SettingsConfigDict(env_file=".env", env_prefix="WEATHERAPP_", extra="ignore")

    app_name: str = "Weather Range Requests"

    # SQLite file path (simple local persistence)
    sqlite_path: str = "weatherapp.sqlite3"

    # Upstream endpoints
    geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    archive_url: str = "https://archive-api.open-meteo.com/v1/archive"
    http_timeout_s: float = 10.0

    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]


settings = Settings()
