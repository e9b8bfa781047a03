from functools import lru_cache
import json
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Dashboard service configuration loaded from environment variables or .env files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LMATE_",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "L-Mate Dashboard"
    version: str = "1.2.0"
    debug: bool = False
    log_level: str = "INFO"

    # L-Mate backend
    api_base_url: str = "http://localhost/api"
    request_timeout_seconds: float = 4.0

    # Polling cadences
    provisioning_interval_seconds: float = 3.0
    metrics_interval_seconds: float = 1.0
    max_samples: int = 30

    # Dashboard sessions nobody has read for this long are stopped and dropped
    session_idle_timeout_seconds: float = 300.0

    default_serial: str = "DEMO-123"
    default_environment: str = "dev"

    # Optional bearer token guarding the local API; disabled when empty
    api_token: str | None = None
    cors_allow_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )

    @field_validator("api_base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: str | None) -> str:
        if value is None:
            return "http://localhost/api"
        base = str(value).strip()
        if not base:
            return "http://localhost/api"
        return base.rstrip("/")

    @field_validator("request_timeout_seconds", mode="before")
    @classmethod
    def _validate_timeout(cls, value: float | str | None) -> float:
        if value in (None, ""):
            return 4.0
        try:
            numeric = float(value)
        except (TypeError, ValueError):
            return 4.0
        return max(0.001, numeric)

    @field_validator("provisioning_interval_seconds", "metrics_interval_seconds", mode="before")
    @classmethod
    def _validate_interval(cls, value: float | str | None, info) -> float:
        fallback = 3.0 if info.field_name == "provisioning_interval_seconds" else 1.0
        if value in (None, ""):
            return fallback
        try:
            numeric = float(value)
        except (TypeError, ValueError):
            return fallback
        return max(0.05, numeric)

    @field_validator("session_idle_timeout_seconds", mode="before")
    @classmethod
    def _validate_idle_timeout(cls, value: float | str | None) -> float:
        if value in (None, ""):
            return 300.0
        try:
            numeric = float(value)
        except (TypeError, ValueError):
            return 300.0
        return max(1.0, numeric)

    @field_validator("max_samples", mode="before")
    @classmethod
    def _validate_max_samples(cls, value: int | str | None) -> int:
        if value in (None, ""):
            return 30
        try:
            numeric = int(value)
        except (TypeError, ValueError):
            return 30
        return max(1, numeric)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: List[str] | str | None) -> List[str]:
        # NoDecode hands env values over as raw strings: JSON list or comma separated
        if isinstance(value, str):
            value = json.loads(value) if value.strip().startswith("[") else value.split(",")
        origins = (str(origin).strip().strip("'\"") for origin in value or [])
        return [origin for origin in origins if origin]


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings = get_settings()
