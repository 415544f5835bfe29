"""Application settings loaded from environment variables / .env"""
import logging
from typing import List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Runtime configuration for the expense API.
    """
    mongodb_uri: str = "mongodb://localhost:27017"
    db_name: str = "expense_tracker"
    expenses_collection: str = "expenses"
    upload_dir: str = "uploads"
    upload_url_prefix: str = "/uploads"
    max_upload_size: int = 5 * 1024 * 1024  # 5MB limit
    delete_replaced_receipts: bool = True
    rate_limit: str = "60/minute"
    rate_limit_enabled: bool = False
    log_level: str = "INFO"
    cors_origins: str = "*"  # comma-separated

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("upload_url_prefix")
    @classmethod
    def normalize_prefix(cls, value: str) -> str:
        return "/" + value.strip("/")

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def load_settings(env_file: Optional[str] = ".env") -> Settings:
    """Reads settings from the environment, with a local .env file as fallback."""
    settings = Settings(_env_file=env_file)
    if "mongodb_uri" not in settings.model_fields_set:
        logger.warning(f"MONGODB_URI not set, falling back to {settings.mongodb_uri}")
    return settings
