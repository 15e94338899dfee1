"""
Application configuration via pydantic-settings.
All config read from environment variables with sensible defaults for local dev.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # App
    app_name: str = "forecast-cache-api"
    app_version: str = "0.1.0"
    environment: str = Field(default="development", pattern=r"^(development|staging|production)$")
    log_level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR)$")

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0")

    # CORS
    cors_origins: list[str] = Field(default=["http://localhost:3000"])

    # Sentry
    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)

    # Weather (api.weather.gov)
    # No key required, but the API rejects requests without a User-Agent.
    weather_api_base_url: str = "https://api.weather.gov"
    weather_api_timeout_s: float = Field(default=8.0, gt=0.0)
    weather_api_user_agent: str = "weatherCachingApp/1.0"

    # Forecast cache freshness
    # Sliding TTL controls how long an idle entry stays in Redis.
    # Max TTL caps the age of served data no matter how often it is read.
    forecast_sliding_ttl_s: int = Field(default=5, gt=0)
    forecast_max_ttl_s: int = Field(default=30, gt=0)

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()
