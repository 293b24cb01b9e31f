"""Application Settings - Environment / .env driven configuration"""
from functools import lru_cache
from typing import List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Helpdesk workflow service settings

    Every field can be set through an environment variable of the same
    name (case-insensitive) or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "helpdesk_dev"

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # Comma separated, or "*" for any origin
    cors_origins: str = "*"

    # Approve / reject / need-more-info / resubmit calls allowed per caller per window
    approval_rate_limit_requests: int = Field(30, ge=1)
    approval_rate_limit_window_seconds: int = Field(60, ge=1)

    environment: str = "development"
    debug: bool = True

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def docs_enabled(self) -> bool:
        """OpenAPI docs are served in debug mode, never in production"""
        return self.debug and not self.is_production


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
