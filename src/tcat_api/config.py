"""Application configuration via environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "TCAT Data API"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8080

    # Basic-auth secret for the client-credentials token endpoint
    token: str = Field(
        default="",
        validation_alias=AliasChoices("TOKEN", "TCAT_TOKEN"),
    )

    # Upstream endpoints
    token_url: str = Field(
        default="https://gateway.api.cloud.wso2.com:443/token",
        validation_alias=AliasChoices("TOKEN_URL", "TCAT_TOKEN_URL"),
    )
    alerts_url: str = Field(
        default=(
            "https://gateway.api.cloud.wso2.com:443/t/mystop/tcat/v1/rest/"
            "PublicMessages/GetAllMessages"
        ),
        validation_alias=AliasChoices("ALERTS_URL", "TCAT_ALERTS_URL"),
    )
    stops_url: str = Field(
        default="https://gateway.api.cloud.wso2.com:443/t/mystop/tcat/v1/rest/Stops/GetAllStops",
        validation_alias=AliasChoices("STOPS_URL", "TCAT_STOPS_URL"),
    )
    rtf_url: str = Field(
        default=(
            "https://realtimetcatbus.availtec.com/InfoPoint/GTFS-Realtime.ashx"
            "?&Type=TripUpdate"
        ),
        validation_alias=AliasChoices("RTF_URL", "TRIP_UPDATES_URL"),
    )

    # Static GTFS route table
    routes_path: str = Field(
        default="tcat-ny-us/routes.txt",
        validation_alias=AliasChoices("ROUTES_PATH", "GTFS_ROUTES_PATH"),
    )

    # Refresh cycle
    refresh_interval_sec: float = Field(default=60.0, gt=0)
    refresh_auto_start: bool = True
    fetch_timeout_sec: float = Field(default=10.0, gt=0)
    fetch_max_retries: int = Field(default=1, ge=1, le=10)
    fetch_backoff_base: float = 2.0

    def missing_required_env(self) -> list[str]:
        """Return required environment variables that are missing or empty."""
        missing: list[str] = []

        if not self.token:
            missing.append("TOKEN")

        return missing


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
