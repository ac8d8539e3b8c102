from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized configuration.

    Loaded from:
    - environment variables
    - .env file (if present)
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Required key (the app should fail fast if missing)
    weather_api_key: str

    # WeatherAPI.com v1 endpoint; override to point at a stub provider
    weather_api_base_url: str = "https://api.weatherapi.com/v1"

    # Bounded wait for every upstream call
    request_timeout_s: float = 10.0

    app_name: str = "Farm Dashboard Weather API"
    log_level: str = "INFO"

    # Browser dashboards allowed to call the API
    cors_origins: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]


settings = Settings()
